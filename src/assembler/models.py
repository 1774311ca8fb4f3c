import enum
import logging
import threading
import time
from pathlib import Path
from typing import List, Optional

from assembler.errors import CleanupWarning

logger = logging.getLogger(__name__)

JOB_ID_PREFIX = "job_"


class TemplateRole(str, enum.Enum):
    INTRO = "intro"
    OUTRO = "outro"


class JobState(str, enum.Enum):
    VALIDATING = "validating"
    OVERLAYING = "overlaying"
    CONCATENATING = "concatenating"
    CLEANING_UP = "cleaning_up"
    DONE = "done"
    ERRORED = "errored"


# Legal forward moves; ERRORED is reachable from any non-terminal state.
_TRANSITIONS = {
    JobState.VALIDATING: {JobState.OVERLAYING},
    JobState.OVERLAYING: {JobState.CONCATENATING},
    JobState.CONCATENATING: {JobState.CLEANING_UP},
    JobState.CLEANING_UP: {JobState.DONE},
}
TERMINAL_STATES = {JobState.DONE, JobState.ERRORED}


class JobIdAllocator:
    """Hands out ``job_<ms>`` ids that never repeat within the process.

    Ids come from the wall clock at millisecond resolution. When two
    requests land in the same millisecond the later one is pushed to the
    next unused millisecond, so every id keeps the ``job_<digits>`` shape.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._last_ms = 0

    def allocate(self, now_ms: Optional[int] = None) -> str:
        if now_ms is None:
            now_ms = int(time.time() * 1000)
        with self._lock:
            ms = max(now_ms, self._last_ms + 1)
            self._last_ms = ms
        return f"{JOB_ID_PREFIX}{ms}"


class Job:
    """One intro + main + outro assembly request, alive for a single call"""

    def __init__(self, job_id: str, customer_name: str, main_video: Optional[Path]):
        self.job_id = job_id
        self.customer_name = customer_name
        self.main_video = main_video
        self.state = JobState.VALIDATING
        self.started_at = time.monotonic()
        self.finished_at: Optional[float] = None
        self.warnings: List[CleanupWarning] = []

    def advance(self, state: JobState) -> None:
        if self.state in TERMINAL_STATES:
            raise RuntimeError(f"Job {self.job_id} already finished in state {self.state.value}")
        if state != JobState.ERRORED and state not in _TRANSITIONS[self.state]:
            raise RuntimeError(
                f"Illegal transition for {self.job_id}: {self.state.value} -> {state.value}"
            )
        logger.info("Job %s: %s -> %s", self.job_id, self.state.value, state.value)
        self.state = state
        if state in TERMINAL_STATES:
            self.finished_at = time.monotonic()

    @property
    def elapsed_ms(self) -> int:
        end = self.finished_at if self.finished_at is not None else time.monotonic()
        return int((end - self.started_at) * 1000)

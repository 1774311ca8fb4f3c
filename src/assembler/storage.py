import logging
import os
import re
import tempfile
import threading
import uuid
from pathlib import Path
from typing import BinaryIO, Dict, List, Optional

from assembler.config import Settings
from assembler.errors import NotFoundError, ValidationError
from assembler.models import TemplateRole

logger = logging.getLogger(__name__)

COPY_CHUNK_SIZE = 1024 * 1024
_SUFFIX_RE = re.compile(r"\.[A-Za-z0-9]{1,8}")


def _safe_suffix(filename: Optional[str]) -> str:
    suffix = os.path.splitext(os.path.basename(filename or ""))[1]
    return suffix.lower() if _SUFFIX_RE.fullmatch(suffix) else ""


class ArtifactStore:
    """Filesystem home for templates, landed uploads, job scratch files and outputs.

    Three roots are used: ``uploads_dir`` holds transient per-job files,
    ``output_dir`` holds final artifacts and ``templates_dir`` holds exactly
    one file per template role.
    """

    def __init__(self, uploads_dir: str, output_dir: str, templates_dir: str,
                 video_extension: str = "mp4", max_upload_size: Optional[int] = None):
        # Absolute, so paths handed to ffmpeg do not depend on its working directory
        self.uploads_dir = Path(uploads_dir).resolve()
        self.output_dir = Path(output_dir).resolve()
        self.templates_dir = Path(templates_dir).resolve()
        self.video_extension = video_extension.lstrip(".")
        self.max_upload_size = max_upload_size
        self._template_locks: Dict[TemplateRole, threading.Lock] = {
            role: threading.Lock() for role in TemplateRole
        }

    @classmethod
    def from_settings(cls, settings: Settings) -> "ArtifactStore":
        return cls(
            uploads_dir=settings.uploads_dir,
            output_dir=settings.output_dir,
            templates_dir=settings.templates_dir,
            video_extension=settings.video_extension,
            max_upload_size=settings.max_upload_size,
        )

    def ensure_directories(self) -> None:
        for directory in (self.uploads_dir, self.output_dir, self.templates_dir):
            directory.mkdir(parents=True, exist_ok=True)

    # Templates

    def template_path(self, role: TemplateRole) -> Path:
        return self.templates_dir / f"{TemplateRole(role).value}.{self.video_extension}"

    def template_exists(self, role: TemplateRole) -> bool:
        return self.template_path(role).is_file()

    def template_status(self) -> Dict[str, bool]:
        return {role.value: self.template_exists(role) for role in TemplateRole}

    def store_template(self, role: TemplateRole, source: BinaryIO) -> Path:
        """Replace the template for ``role`` with the bytes read from ``source``.

        The new file is written next to the old one and renamed over it, so a
        job that opens the template mid-upload sees either version in full.
        """
        role = TemplateRole(role)
        target = self.template_path(role)
        self.templates_dir.mkdir(parents=True, exist_ok=True)
        with self._template_locks[role]:
            fd, tmp_name = tempfile.mkstemp(
                prefix=f".{role.value}-", suffix=".part", dir=self.templates_dir
            )
            try:
                with os.fdopen(fd, "wb") as buffer:
                    self._copy_limited(source, buffer)
                os.replace(tmp_name, target)
            except BaseException:
                Path(tmp_name).unlink(missing_ok=True)
                raise
        logger.info("Stored %s template at %s", role.value, target)
        return target

    # Uploads and per-job scratch files

    def save_upload(self, source: BinaryIO, filename: Optional[str]) -> Path:
        """Land an uploaded main video under a collision-free name"""
        self.uploads_dir.mkdir(parents=True, exist_ok=True)
        # The client filename only contributes a sanitized extension
        upload_path = self.uploads_dir / f"{uuid.uuid4().hex}{_safe_suffix(filename)}"
        try:
            with open(upload_path, "wb") as buffer:
                self._copy_limited(source, buffer)
        except BaseException:
            upload_path.unlink(missing_ok=True)
            raise
        return upload_path

    def work_path(self, job_id: str, suffix: str) -> Path:
        return self.uploads_dir / f"{job_id}_{suffix}"

    def final_name(self, job_id: str) -> str:
        return f"{job_id}_final.{self.video_extension}"

    def staging_path(self, job_id: str) -> Path:
        """Where the concat step writes; hidden from listing until published"""
        self.output_dir.mkdir(parents=True, exist_ok=True)
        return self.output_dir / f".{job_id}_final.part"

    def publish_final(self, staged: Path, job_id: str) -> Path:
        """Rename a finished output into place; same directory, so atomic"""
        target = self.output_dir / self.final_name(job_id)
        os.replace(staged, target)
        return target

    # Final artifacts

    def list_final_artifacts(self) -> List[str]:
        if not self.output_dir.is_dir():
            return []
        suffix = f".{self.video_extension}"
        return sorted(
            entry.name for entry in self.output_dir.iterdir()
            if entry.is_file() and not entry.name.startswith(".") and entry.name.endswith(suffix)
        )

    def resolve_output(self, name: str) -> Path:
        """Path of a final artifact, or NotFoundError if absent or outside ``output_dir``"""
        if not name or name != os.path.basename(name) or name in (".", ".."):
            raise NotFoundError(f"{name} not found")
        path = self.output_dir / name
        if not path.is_file():
            raise NotFoundError(f"{name} not found")
        return path

    def _copy_limited(self, source: BinaryIO, target: BinaryIO) -> None:
        written = 0
        while True:
            chunk = source.read(COPY_CHUNK_SIZE)
            if not chunk:
                break
            written += len(chunk)
            if self.max_upload_size is not None and written > self.max_upload_size:
                raise ValidationError(
                    f"Upload exceeds the maximum size of {self.max_upload_size} bytes"
                )
            target.write(chunk)

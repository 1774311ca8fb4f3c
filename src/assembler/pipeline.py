import logging
from pathlib import Path
from typing import Optional

from assembler.encoder import EncoderCommand, FFmpegEncoder
from assembler.errors import CleanupWarning, EncodingError, PipelineError, ValidationError
from assembler.models import Job, JobIdAllocator, JobState, TemplateRole
from assembler.schemas import JobSuccess
from assembler.storage import ArtifactStore

logger = logging.getLogger(__name__)


class VideoPipeline:
    """Builds intro (with customer name) + main clip + outro into one video.

    Each call to ``process`` is one job and runs entirely on the calling
    thread: overlay the name onto the intro, concatenate the three
    segments, then remove every job-scoped scratch file.
    """

    def __init__(self, store: ArtifactStore, encoder: FFmpegEncoder,
                 allocator: Optional[JobIdAllocator] = None):
        self.store = store
        self.encoder = encoder
        self.allocator = allocator or JobIdAllocator()

    def process(self, customer_name: Optional[str], main_video: Optional[Path]) -> JobSuccess:
        job = Job(self.allocator.allocate(), (customer_name or "").strip(), main_video)
        try:
            intro, outro = self._validate(job)
        except ValidationError as e:
            e.job_id = job.job_id
            job.advance(JobState.ERRORED)
            # Nothing was produced; drop the landed upload so no file outlives the request
            if main_video is not None:
                self._remove(job, main_video)
            raise

        name_file = self.store.work_path(job.job_id, "name.txt")
        intermediate = self.store.work_path(job.job_id, f"intro_with_name.{self.store.video_extension}")
        manifest = self.store.work_path(job.job_id, "concat.txt")
        staged_final = self.store.staging_path(job.job_id)
        scratch = [main_video, name_file, intermediate, manifest]

        try:
            # Step 1: burn the customer name into the intro
            job.advance(JobState.OVERLAYING)
            name_file.write_text(job.customer_name, encoding="utf-8")
            self._run(job, self.encoder.overlay_text_command(intro, name_file, intermediate))

            # Step 2: stream-copy intro_with_name + main + outro
            job.advance(JobState.CONCATENATING)
            self.encoder.write_concat_manifest(manifest, [intermediate, main_video, outro])
            self._run(job, self.encoder.concat_command(manifest, staged_final, self.store.video_extension))
            final_path = self.store.publish_final(staged_final, job.job_id)

            job.advance(JobState.CLEANING_UP)
        except PipelineError:
            job.advance(JobState.ERRORED)
            scratch.append(staged_final)
            raise
        except (OSError, ValueError) as e:
            job.advance(JobState.ERRORED)
            scratch.append(staged_final)
            raise EncodingError(f"Video processing failed: {e}", job_id=job.job_id) from e
        finally:
            for path in scratch:
                self._remove(job, path)

        job.advance(JobState.DONE)
        logger.info("Job %s finished in %d ms: %s", job.job_id, job.elapsed_ms, final_path)
        return JobSuccess(
            job_id=job.job_id,
            customer_name=job.customer_name,
            output_url=f"/{final_path.name}",
            processing_time_ms=job.elapsed_ms,
        )

    def _validate(self, job: Job):
        """Check inputs and snapshot the template paths this job will read"""
        if not job.customer_name:
            raise ValidationError("customer_name is required")
        if job.main_video is None or not job.main_video.is_file():
            raise ValidationError("main_video file is required")
        if not all(self.store.template_exists(role) for role in TemplateRole):
            raise ValidationError(
                "Template files not found. Please upload intro and outro videos first."
            )
        return self.store.template_path(TemplateRole.INTRO), self.store.template_path(TemplateRole.OUTRO)

    def _run(self, job: Job, command: EncoderCommand) -> None:
        success, detail = self.encoder.invoke(command)
        if not success:
            logger.error("Job %s: %s failed: %s", job.job_id, command.description, detail)
            raise EncodingError(detail, job_id=job.job_id, diagnostic=detail)

    def _remove(self, job: Job, path: Path) -> None:
        try:
            path.unlink(missing_ok=True)
        except OSError as e:
            warning = CleanupWarning(str(path), str(e))
            job.warnings.append(warning)
            logger.warning("Job %s cleanup warning: %s", job.job_id, warning)

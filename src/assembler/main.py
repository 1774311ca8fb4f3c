from fastapi import FastAPI, UploadFile, File, Depends, Form, Request
from fastapi.responses import FileResponse, HTMLResponse, JSONResponse
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles
from datetime import datetime, timezone
from typing import Optional
import logging

from assembler.config import Settings, settings as default_settings
from assembler.encoder import FFmpegEncoder
from assembler.errors import PipelineError, ValidationError
from assembler.logging_config import configure_logging
from assembler.models import TemplateRole
from assembler.pipeline import VideoPipeline
from assembler.schemas import (
    JobSuccess, JobFailure, TemplateStatus, TemplateUploadResponse,
    VideoListResponse, HealthResponse
)
from assembler.storage import ArtifactStore
from assembler.ui import INDEX_HTML

logger = logging.getLogger(__name__)


def get_store(request: Request) -> ArtifactStore:
    return request.app.state.store


def get_pipeline(request: Request) -> VideoPipeline:
    return request.app.state.pipeline


def create_app(settings: Optional[Settings] = None,
               encoder: Optional[FFmpegEncoder] = None) -> FastAPI:
    settings = settings or default_settings
    store = ArtifactStore.from_settings(settings)
    pipeline = VideoPipeline(store, encoder or FFmpegEncoder.from_settings(settings))

    app = FastAPI(title="Video Assembler API", version="1.0.0")
    app.state.settings = settings
    app.state.store = store
    app.state.pipeline = pipeline

    # CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.on_event("startup")
    def startup_event():
        configure_logging(settings.log_level)
        store.ensure_directories()
        logger.info("Video assembler ready (outputs in %s)", store.output_dir)

    @app.exception_handler(PipelineError)
    async def pipeline_error_handler(request: Request, exc: PipelineError):
        return JSONResponse(status_code=exc.status_code, content=exc.to_failure().model_dump())

    @app.get("/", response_class=HTMLResponse)
    async def index():
        return INDEX_HTML

    @app.get("/health", response_model=HealthResponse)
    async def health_check():
        """Health check endpoint"""
        return HealthResponse(status="healthy", timestamp=datetime.now(timezone.utc))

    @app.get("/template-status", response_model=TemplateStatus)
    def template_status(store: ArtifactStore = Depends(get_store)):
        return TemplateStatus(**store.template_status())

    @app.post("/upload-template/{role}", response_model=TemplateUploadResponse)
    def upload_template(
        role: str,
        video: UploadFile = File(...),
        store: ArtifactStore = Depends(get_store)
    ):
        """Replace the intro or outro template"""
        if role not in {r.value for r in TemplateRole}:
            raise ValidationError(f"Invalid template type: {role}")

        path = store.store_template(TemplateRole(role), video.file)
        return TemplateUploadResponse(
            message=f"{role} template uploaded successfully",
            path=str(path)
        )

    @app.post(
        "/process-video",
        response_model=JobSuccess,
        responses={400: {"model": JobFailure}, 500: {"model": JobFailure}},
    )
    def process_video(
        customer_name: Optional[str] = Form(None),
        main_video: Optional[UploadFile] = File(None),
        store: ArtifactStore = Depends(get_store),
        pipeline: VideoPipeline = Depends(get_pipeline)
    ):
        """Assemble intro (with customer name) + main_video + outro.

        Declared sync so every job runs on its own worker thread while the
        encoder calls block.
        """
        upload_path = None
        if main_video is not None and main_video.filename:
            upload_path = store.save_upload(main_video.file, main_video.filename)
        return pipeline.process(customer_name, upload_path)

    @app.get("/videos", response_model=VideoListResponse)
    def list_videos(store: ArtifactStore = Depends(get_store)):
        return VideoListResponse(videos=store.list_final_artifacts())

    @app.get("/download/{filename}")
    def download_video(filename: str, store: ArtifactStore = Depends(get_store)):
        path = store.resolve_output(filename)
        # media type is guessed from the extension
        return FileResponse(path=path, filename=filename)

    # Final artifacts are reachable at /<name>; mounted last so routes win
    app.mount("/", StaticFiles(directory=store.output_dir, check_dir=False), name="outputs")

    return app


app = create_app()


def run():
    configure_logging(default_settings.log_level)
    import uvicorn
    uvicorn.run(app, host=default_settings.host, port=default_settings.port)


if __name__ == "__main__":
    run()

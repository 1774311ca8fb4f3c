from pydantic_settings import BaseSettings
from typing import Optional

class Settings(BaseSettings):
    uploads_dir: str = "/tmp/uploads"
    output_dir: str = "/tmp/output"
    templates_dir: str = "/tmp/templates"
    video_extension: str = "mp4"
    ffmpeg_binary: str = "ffmpeg"
    encoder_timeout: float = 3600
    overlay_font_size: int = 48
    overlay_font_color: str = "white"
    overlay_box_color: str = "black@0.5"
    overlay_y_offset: int = 100
    overlay_font_file: Optional[str] = None
    max_upload_size: int = 524288000  # 500MB
    host: str = "0.0.0.0"
    port: int = 3000
    log_level: str = "INFO"
    
    class Config:
        env_file = ".env"
        case_sensitive = False

settings = Settings()

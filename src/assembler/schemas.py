from pydantic import BaseModel
from typing import List, Optional
from datetime import datetime

class JobSuccess(BaseModel):
    success: bool = True
    job_id: str
    customer_name: str
    output_url: str
    processing_time_ms: int
    message: str = "Video processed successfully"

class JobFailure(BaseModel):
    success: bool = False
    error: str
    kind: str
    details: str
    job_id: Optional[str] = None

class TemplateStatus(BaseModel):
    intro: bool
    outro: bool

class TemplateUploadResponse(BaseModel):
    success: bool = True
    message: str
    path: str

class VideoListResponse(BaseModel):
    videos: List[str]

class HealthResponse(BaseModel):
    status: str
    timestamp: datetime

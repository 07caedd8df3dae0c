from typing import Optional
from datetime import datetime
from pydantic import Field

from taskboard.schemas.base import CamelModel
from taskboard.schemas.user import UserSummary


class FileResponse(CamelModel):
    id: int = Field(..., description="Unique identifier of the file")
    filename: str = Field(..., description="Generated name of the stored object")
    original_name: str = Field(..., description="Filename as uploaded by the client")
    mime_type: Optional[str] = Field(None, description="Content type reported on upload")
    size: int = Field(..., description="Size in bytes")
    path: str = Field(..., description="Location of the stored object on disk")
    project_id: Optional[int] = None
    task_id: Optional[int] = None
    user_id: int
    created_at: Optional[datetime] = None
    user: Optional[UserSummary] = None

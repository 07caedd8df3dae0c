from datetime import datetime
from typing import Optional

from pydantic import field_validator

from taskboard.schemas.base import CamelModel
from taskboard.schemas.user import UserSummary


class CommentCreate(CamelModel):
    content: str

    @field_validator("content")
    @classmethod
    def content_not_blank(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("Comment content is required")
        return value


class CommentResponse(CamelModel):
    id: int
    content: str
    task_id: int
    user_id: int
    created_at: Optional[datetime] = None
    user: UserSummary

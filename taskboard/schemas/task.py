from datetime import datetime, timezone
from enum import Enum
from typing import List, Optional

from pydantic import Field, field_validator

from taskboard.schemas.base import CamelModel
from taskboard.schemas.comment import CommentResponse
from taskboard.schemas.file import FileResponse
from taskboard.schemas.user import UserSummary


class TaskStatus(str, Enum):
    TODO = "todo"
    IN_PROGRESS = "in_progress"
    IN_REVIEW = "in_review"
    DONE = "done"


class TaskPriority(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    URGENT = "urgent"


def _as_utc(value: Optional[datetime]) -> Optional[datetime]:
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


class TaskCreate(CamelModel):
    title: str
    project_id: int
    description: Optional[str] = None
    status: TaskStatus = TaskStatus.TODO
    priority: TaskPriority = TaskPriority.MEDIUM
    due_date: Optional[datetime] = None
    assignee_names: Optional[List[str]] = None

    @field_validator("title")
    @classmethod
    def title_not_blank(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("Task title is required")
        return value

    @field_validator("description")
    @classmethod
    def strip_description(cls, value: Optional[str]) -> Optional[str]:
        return value.strip() if value is not None else None

    @field_validator("due_date")
    @classmethod
    def due_date_utc(cls, value: Optional[datetime]) -> Optional[datetime]:
        return _as_utc(value)


class TaskUpdate(CamelModel):
    """Partial update; only fields present in the request body are applied."""

    title: Optional[str] = None
    description: Optional[str] = None
    status: Optional[TaskStatus] = None
    priority: Optional[TaskPriority] = None
    due_date: Optional[datetime] = None
    assignee_names: Optional[List[str]] = None
    position: Optional[int] = None

    @field_validator("title")
    @classmethod
    def title_not_blank(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return value
        value = value.strip()
        if not value:
            raise ValueError("Task title cannot be empty")
        return value

    @field_validator("due_date")
    @classmethod
    def due_date_utc(cls, value: Optional[datetime]) -> Optional[datetime]:
        return _as_utc(value)


class ReorderItem(CamelModel):
    id: int
    position: int


class ReorderRequest(CamelModel):
    tasks: List[ReorderItem] = Field(..., description="New positions, one entry per moved task")


class ReorderResponse(CamelModel):
    message: str
    tasks: List[ReorderItem]


class TaskProjectSummary(CamelModel):
    id: int
    name: str
    color: str


class TaskCounts(CamelModel):
    comments: int = 0
    files: int = 0


class TaskResponse(CamelModel):
    id: int
    title: str
    description: Optional[str] = None
    status: TaskStatus
    priority: TaskPriority
    due_date: Optional[datetime] = None
    position: int
    assignee_names: Optional[List[str]] = None
    project_id: int
    creator_id: int
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    project: Optional[TaskProjectSummary] = None
    creator: Optional[UserSummary] = None
    counts: Optional[TaskCounts] = Field(None, alias="_count")

    @field_validator("due_date", "created_at", "updated_at")
    @classmethod
    def stored_times_utc(cls, value: Optional[datetime]) -> Optional[datetime]:
        # SQLite hands back naive values; they were written as UTC
        return _as_utc(value)


class TaskDetailResponse(TaskResponse):
    comments: List[CommentResponse] = []
    files: List[FileResponse] = []

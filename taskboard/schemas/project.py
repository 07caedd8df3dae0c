from pydantic import ConfigDict, Field
from typing import Optional, List
from enum import Enum
from datetime import datetime

from taskboard.schemas.base import CamelModel
from taskboard.schemas.task import TaskResponse
from taskboard.schemas.user import MemberUserSummary, UserSummary

HEX_COLOR_PATTERN = r"^#(?:[0-9a-fA-F]{3}){1,2}$"


class ProjectRole(str, Enum):
    MANAGER = "manager"
    MEMBER = "member"
    VIEWER = "viewer"


class ProjectCreate(CamelModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    name: str = Field(..., min_length=1, description="The name of the project")
    description: Optional[str] = Field(None, description="Project description")
    color: Optional[str] = Field(None, pattern=HEX_COLOR_PATTERN, description="Board color")


class ProjectUpdate(CamelModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    name: Optional[str] = Field(None, min_length=1, description="Updated project name")
    description: Optional[str] = Field(None, description="Updated description")
    color: Optional[str] = Field(None, pattern=HEX_COLOR_PATTERN, description="Updated color")


class MemberCreate(CamelModel):
    user_id: int = Field(..., description="User to add")
    role: ProjectRole = Field(ProjectRole.MEMBER, description="Role within the project")


class MemberResponse(CamelModel):
    project_id: int
    user_id: int
    role: ProjectRole
    joined_at: Optional[datetime] = None
    user: MemberUserSummary


class ProjectCounts(CamelModel):
    tasks: int = 0
    members: int = 0
    files: Optional[int] = None


class ProjectResponse(CamelModel):
    id: int = Field(..., description="Project unique ID")
    name: str
    description: Optional[str] = None
    color: str
    creator_id: int
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    creator: UserSummary
    members: List[MemberResponse] = []
    counts: Optional[ProjectCounts] = Field(None, alias="_count")


class ProjectDetailResponse(ProjectResponse):
    tasks: List[TaskResponse] = []

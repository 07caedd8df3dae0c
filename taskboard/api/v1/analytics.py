from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from taskboard.api.v1.auth import get_current_user
from taskboard.core.database import get_db
from taskboard.models.user import User
from taskboard.schemas.analytics import (
    AnalyticsResponse,
    AssigneeSummary,
    ProjectAnalyticsResponse,
)
from taskboard.services import analytics as analytics_service
from taskboard.utils.project_access import get_project_or_404, require_project_access

router = APIRouter()


@router.get("", response_model=AnalyticsResponse)
def get_analytics(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    overview = analytics_service.user_overview(db, current_user.id)
    return AnalyticsResponse.model_validate(overview).to_payload()


@router.get("/assignees", response_model=List[AssigneeSummary])
def get_assignee_analytics(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return [
        AssigneeSummary.model_validate(entry).to_payload()
        for entry in analytics_service.assignee_breakdown(db, current_user.id)
    ]


@router.get("/project/{project_id}", response_model=ProjectAnalyticsResponse)
def get_project_analytics(
    project_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    get_project_or_404(db, project_id)
    require_project_access(db, project_id, current_user)
    breakdown = analytics_service.project_breakdown(db, project_id)
    return ProjectAnalyticsResponse.model_validate(breakdown).to_payload()

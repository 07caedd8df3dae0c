from fastapi import HTTPException, status
from sqlalchemy.orm import Session

from taskboard.core.permissions import can_access_project
from taskboard.models.project import Project
from taskboard.models.project_member import ProjectMember
from taskboard.models.task import Task


def get_membership(db: Session, project_id: int, user_id: int) -> ProjectMember | None:
    return (
        db.query(ProjectMember)
        .filter(
            ProjectMember.project_id == project_id,
            ProjectMember.user_id == user_id,
        )
        .first()
    )


def get_project_or_404(db: Session, project_id: int) -> Project:
    project = db.query(Project).filter(Project.id == project_id).first()
    if not project:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Project not found")
    return project


def get_task_or_404(db: Session, task_id: int) -> Task:
    task = db.query(Task).filter(Task.id == task_id).first()
    if not task:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Task not found")
    return task


def require_project_access(db: Session, project_id: int, user) -> ProjectMember | None:
    """Return the caller's membership row, raising 403 when they may not see the project."""
    member = get_membership(db, project_id, user.id)
    if not can_access_project(user, member):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Access denied to this project",
        )
    return member


def member_project_ids(db: Session, user_id: int) -> list[int]:
    rows = db.query(ProjectMember.project_id).filter(ProjectMember.user_id == user_id).all()
    return [row.project_id for row in rows]

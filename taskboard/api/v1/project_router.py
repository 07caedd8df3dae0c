import logging
from typing import List

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, status
from sqlalchemy import or_, select
from sqlalchemy.orm import Session

from taskboard.api.v1.auth import get_current_user
from taskboard.core.database import get_db
from taskboard.core.permissions import (
    can_delete_project,
    can_edit_project,
    can_manage_members,
)
from taskboard.models.file import File
from taskboard.models.project import Project
from taskboard.models.project_member import ProjectMember
from taskboard.models.task import Task
from taskboard.models.user import User
from taskboard.schemas.base import MessageResponse
from taskboard.schemas.project import (
    MemberCreate,
    MemberResponse,
    ProjectCreate,
    ProjectDetailResponse,
    ProjectResponse,
    ProjectRole,
    ProjectUpdate,
)
from taskboard.services.project_broadcaster import ProjectBroadcaster, get_broadcaster
from taskboard.utils.file_handling import remove_stored_file
from taskboard.utils.project_access import (
    get_membership,
    get_project_or_404,
    require_project_access,
)
from taskboard.utils.serializers import member_payload, project_payload

router = APIRouter()
logger = logging.getLogger(__name__)


@router.get("", response_model=List[ProjectResponse])
def get_projects(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    member_of = select(ProjectMember.project_id).where(
        ProjectMember.user_id == current_user.id
    )
    projects = (
        db.query(Project)
        .filter(or_(Project.creator_id == current_user.id, Project.id.in_(member_of)))
        .order_by(Project.updated_at.desc(), Project.id.desc())
        .all()
    )
    return [project_payload(db, project) for project in projects]


@router.get("/{project_id}", response_model=ProjectDetailResponse)
def get_project(
    project_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    project = get_project_or_404(db, project_id)
    require_project_access(db, project_id, current_user)
    return project_payload(db, project, with_tasks=True)


@router.post("", response_model=ProjectResponse, status_code=status.HTTP_201_CREATED)
def create_project(
    body: ProjectCreate,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
    broadcaster: ProjectBroadcaster = Depends(get_broadcaster),
):
    new_project = Project(
        name=body.name,
        description=body.description,
        color=body.color or "#3b82f6",
        creator_id=current_user.id,
    )
    db.add(new_project)
    db.flush()
    db.add(
        ProjectMember(
            project_id=new_project.id,
            user_id=current_user.id,
            role=ProjectRole.MANAGER.value,
        )
    )
    db.commit()
    db.refresh(new_project)

    payload = project_payload(db, new_project)
    background_tasks.add_task(broadcaster.publish, new_project.id, "project-created", payload)
    return payload


@router.put("/{project_id}", response_model=ProjectResponse)
def update_project(
    project_id: int,
    body: ProjectUpdate,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
    broadcaster: ProjectBroadcaster = Depends(get_broadcaster),
):
    project = get_project_or_404(db, project_id)
    member = require_project_access(db, project_id, current_user)
    if not can_edit_project(current_user, project, member):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Insufficient permissions")

    if body.name:
        project.name = body.name
    if "description" in body.model_fields_set:
        project.description = body.description
    if body.color:
        project.color = body.color
    db.commit()
    db.refresh(project)

    payload = project_payload(db, project)
    background_tasks.add_task(broadcaster.publish, project_id, "project-updated", payload)
    return payload


@router.delete("/{project_id}", response_model=MessageResponse)
def delete_project(
    project_id: int,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
    broadcaster: ProjectBroadcaster = Depends(get_broadcaster),
):
    project = get_project_or_404(db, project_id)
    require_project_access(db, project_id, current_user)
    if not can_delete_project(current_user, project):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN, detail="Only project creator can delete"
        )

    task_ids = select(Task.id).where(Task.project_id == project_id)
    stored_paths = [
        row.path
        for row in db.query(File.path).filter(
            or_(File.project_id == project_id, File.task_id.in_(task_ids))
        )
    ]

    db.delete(project)
    db.commit()

    for path in stored_paths:
        remove_stored_file(path)
    logger.info(f"Deleted project {project_id} and {len(stored_paths)} stored file(s)")

    background_tasks.add_task(
        broadcaster.publish, project_id, "project-deleted", {"projectId": project_id}
    )
    return {"message": "Project deleted successfully"}


@router.post(
    "/{project_id}/members",
    response_model=MemberResponse,
    status_code=status.HTTP_201_CREATED,
)
def add_member(
    project_id: int,
    body: MemberCreate,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
    broadcaster: ProjectBroadcaster = Depends(get_broadcaster),
):
    project = get_project_or_404(db, project_id)
    member = require_project_access(db, project_id, current_user)
    if not can_manage_members(current_user, project, member):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Insufficient permissions")

    user = db.query(User).filter(User.id == body.user_id).first()
    if not user:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
    if get_membership(db, project_id, user.id):
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT, detail="User is already a project member"
        )

    new_member = ProjectMember(project_id=project_id, user_id=user.id, role=body.role.value)
    db.add(new_member)
    db.commit()
    db.refresh(new_member)

    payload = member_payload(new_member)
    background_tasks.add_task(broadcaster.publish, project_id, "member-added", payload)
    return payload


@router.delete("/{project_id}/members/{user_id}", response_model=MessageResponse)
def remove_member(
    project_id: int,
    user_id: int,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
    broadcaster: ProjectBroadcaster = Depends(get_broadcaster),
):
    project = get_project_or_404(db, project_id)
    member = require_project_access(db, project_id, current_user)
    if user_id != current_user.id and not can_manage_members(current_user, project, member):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Insufficient permissions")

    target = get_membership(db, project_id, user_id)
    if not target:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Member not found")

    db.delete(target)
    db.commit()

    background_tasks.add_task(
        broadcaster.publish,
        project_id,
        "member-removed",
        {"userId": user_id, "projectId": project_id},
    )
    return {"message": "Member removed successfully"}

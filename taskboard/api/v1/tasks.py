import logging
from typing import List, Optional

from fastapi import APIRouter, BackgroundTasks, Depends, Query, status
from sqlalchemy import func, or_
from sqlalchemy.orm import Session

from taskboard.api.v1.auth import get_current_user
from taskboard.core.database import get_db
from taskboard.models.comment import Comment
from taskboard.models.task import Task
from taskboard.models.user import User
from taskboard.schemas.base import MessageResponse
from taskboard.schemas.comment import CommentCreate, CommentResponse
from taskboard.schemas.task import (
    ReorderRequest,
    ReorderResponse,
    TaskCreate,
    TaskDetailResponse,
    TaskPriority,
    TaskResponse,
    TaskStatus,
    TaskUpdate,
)
from taskboard.services.assignee_sync import sync_assignee_members
from taskboard.services.project_broadcaster import ProjectBroadcaster, get_broadcaster
from taskboard.utils.project_access import (
    get_project_or_404,
    get_task_or_404,
    member_project_ids,
    require_project_access,
)
from taskboard.utils.serializers import (
    comment_payload,
    dump_assignee_names,
    ordered_tasks_query,
    project_payload,
    task_detail_payload,
    task_payload,
)

router = APIRouter()
logger = logging.getLogger(__name__)


def _announce_new_members(background_tasks, broadcaster, db, project):
    db.refresh(project)
    background_tasks.add_task(
        broadcaster.publish, project.id, "project-updated", project_payload(db, project)
    )


@router.get("", response_model=List[TaskResponse])
def list_tasks(
    project_id: Optional[int] = Query(None, alias="projectId"),
    task_status: Optional[TaskStatus] = Query(None, alias="status"),
    priority: Optional[TaskPriority] = Query(None),
    search: Optional[str] = Query(None),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    query = ordered_tasks_query(db)

    if project_id is not None:
        require_project_access(db, project_id, current_user)
        query = query.filter(Task.project_id == project_id)
    else:
        query = query.filter(Task.project_id.in_(member_project_ids(db, current_user.id)))

    if task_status:
        query = query.filter(Task.status == task_status.value)
    if priority:
        query = query.filter(Task.priority == priority.value)
    if search and search.strip():
        pattern = f"%{search.strip()}%"
        query = query.filter(or_(Task.title.ilike(pattern), Task.description.ilike(pattern)))

    return [task_payload(db, task) for task in query.all()]


@router.get("/{task_id}", response_model=TaskDetailResponse)
def get_task(
    task_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    task = get_task_or_404(db, task_id)
    require_project_access(db, task.project_id, current_user)
    return task_detail_payload(db, task)


@router.post("", response_model=TaskResponse, status_code=status.HTTP_201_CREATED)
def create_task(
    body: TaskCreate,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
    broadcaster: ProjectBroadcaster = Depends(get_broadcaster),
):
    project = get_project_or_404(db, body.project_id)
    require_project_access(db, project.id, current_user)

    members_added = 0
    if body.assignee_names:
        members_added = sync_assignee_members(db, project.id, body.assignee_names)

    # positions are never reused, so a deleted task leaves a gap
    max_position = (
        db.query(func.max(Task.position)).filter(Task.project_id == project.id).scalar()
    )
    task = Task(
        title=body.title,
        description=body.description,
        status=body.status.value,
        priority=body.priority.value,
        due_date=body.due_date,
        assignee_names=dump_assignee_names(body.assignee_names),
        project_id=project.id,
        creator_id=current_user.id,
        position=(max_position or 0) + 1,
    )
    db.add(task)
    db.commit()
    db.refresh(task)

    payload = task_payload(db, task)
    background_tasks.add_task(broadcaster.publish, project.id, "task-created", payload)
    if members_added:
        _announce_new_members(background_tasks, broadcaster, db, project)
    return payload


@router.put("/{project_id}/reorder", response_model=ReorderResponse)
def reorder_tasks(
    project_id: int,
    body: ReorderRequest,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
    broadcaster: ProjectBroadcaster = Depends(get_broadcaster),
):
    get_project_or_404(db, project_id)
    require_project_access(db, project_id, current_user)

    requested_ids = [item.id for item in body.tasks]
    tasks = {
        task.id: task
        for task in db.query(Task).filter(
            Task.project_id == project_id, Task.id.in_(requested_ids)
        )
    }

    applied = []
    for item in body.tasks:
        task = tasks.get(item.id)
        if task is None:
            logger.warning(f"Skipping reorder of task {item.id}: not in project {project_id}")
            continue
        task.position = item.position
        applied.append({"id": item.id, "position": item.position})
    db.commit()

    background_tasks.add_task(
        broadcaster.publish, project_id, "tasks-reordered", {"tasks": applied}
    )
    return {"message": "Tasks reordered successfully", "tasks": applied}


@router.put("/{task_id}", response_model=TaskResponse)
def update_task(
    task_id: int,
    body: TaskUpdate,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
    broadcaster: ProjectBroadcaster = Depends(get_broadcaster),
):
    task = get_task_or_404(db, task_id)
    require_project_access(db, task.project_id, current_user)
    provided = body.model_fields_set

    # membership inserts commit on their own, so run them before touching the task
    members_added = 0
    if "assignee_names" in provided and body.assignee_names:
        members_added = sync_assignee_members(db, task.project_id, body.assignee_names)

    if body.title:
        task.title = body.title
    if "description" in provided:
        task.description = body.description
    if body.status:
        task.status = body.status.value
    if body.priority:
        task.priority = body.priority.value
    if "assignee_names" in provided:
        task.assignee_names = dump_assignee_names(body.assignee_names)
    if "due_date" in provided:
        task.due_date = body.due_date
    if body.position is not None:
        task.position = body.position
    db.commit()
    db.refresh(task)

    payload = task_payload(db, task)
    background_tasks.add_task(broadcaster.publish, task.project_id, "task-updated", payload)
    if members_added:
        _announce_new_members(background_tasks, broadcaster, db, task.project)
    return payload


@router.delete("/{task_id}", response_model=MessageResponse)
def delete_task(
    task_id: int,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
    broadcaster: ProjectBroadcaster = Depends(get_broadcaster),
):
    task = get_task_or_404(db, task_id)
    require_project_access(db, task.project_id, current_user)
    project_id = task.project_id

    db.delete(task)
    db.commit()

    background_tasks.add_task(broadcaster.publish, project_id, "task-deleted", {"taskId": task_id})
    return {"message": "Task deleted successfully"}


@router.post(
    "/{task_id}/comments",
    response_model=CommentResponse,
    status_code=status.HTTP_201_CREATED,
)
def add_comment(
    task_id: int,
    body: CommentCreate,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
    broadcaster: ProjectBroadcaster = Depends(get_broadcaster),
):
    task = get_task_or_404(db, task_id)
    require_project_access(db, task.project_id, current_user)

    comment = Comment(content=body.content, task_id=task.id, user_id=current_user.id)
    db.add(comment)
    db.commit()
    db.refresh(comment)

    payload = comment_payload(comment)
    background_tasks.add_task(broadcaster.publish, task.project_id, "comment-added", payload)
    return payload

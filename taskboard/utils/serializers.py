import json
import logging
from typing import Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from taskboard.models.comment import Comment
from taskboard.models.file import File
from taskboard.models.project import Project
from taskboard.models.project_member import ProjectMember
from taskboard.models.task import Task
from taskboard.schemas.comment import CommentResponse
from taskboard.schemas.file import FileResponse
from taskboard.schemas.project import MemberResponse, ProjectDetailResponse, ProjectResponse
from taskboard.schemas.task import TaskDetailResponse, TaskResponse

logger = logging.getLogger(__name__)


def parse_assignee_names(raw: Optional[str], task_id: Optional[int] = None) -> Optional[list]:
    if not raw:
        return None
    try:
        names = json.loads(raw)
    except ValueError as e:
        logger.error(f"Error parsing assignee names for task {task_id}: {e}")
        return None
    return names if isinstance(names, list) else None


def dump_assignee_names(names: Optional[list]) -> Optional[str]:
    return json.dumps(names) if names else None


def user_summary(user) -> dict:
    return {"id": user.id, "name": user.name, "email": user.email, "avatar": user.avatar}


def member_payload(member: ProjectMember) -> dict:
    return MemberResponse.model_validate(
        {
            "project_id": member.project_id,
            "user_id": member.user_id,
            "role": member.role,
            "joined_at": member.joined_at,
            "user": {**user_summary(member.user), "role": member.user.role},
        }
    ).to_payload()


def _count(db: Session, column, *criteria) -> int:
    return db.query(func.count(column)).filter(*criteria).scalar() or 0


def _task_fields(db: Session, task: Task) -> dict:
    return {
        "id": task.id,
        "title": task.title,
        "description": task.description,
        "status": task.status,
        "priority": task.priority,
        "due_date": task.due_date,
        "position": task.position,
        "assignee_names": parse_assignee_names(task.assignee_names, task.id),
        "project_id": task.project_id,
        "creator_id": task.creator_id,
        "created_at": task.created_at,
        "updated_at": task.updated_at,
        "project": {
            "id": task.project.id,
            "name": task.project.name,
            "color": task.project.color,
        },
        "creator": user_summary(task.creator),
        "counts": {
            "comments": _count(db, Comment.id, Comment.task_id == task.id),
            "files": _count(db, File.id, File.task_id == task.id),
        },
    }


def task_payload(db: Session, task: Task) -> dict:
    return TaskResponse.model_validate(_task_fields(db, task)).to_payload()


def comment_payload(comment: Comment) -> dict:
    return CommentResponse.model_validate(
        {
            "id": comment.id,
            "content": comment.content,
            "task_id": comment.task_id,
            "user_id": comment.user_id,
            "created_at": comment.created_at,
            "user": user_summary(comment.user),
        }
    ).to_payload()


def file_payload(file: File) -> dict:
    return FileResponse.model_validate(
        {
            "id": file.id,
            "filename": file.filename,
            "original_name": file.original_name,
            "mime_type": file.mime_type,
            "size": file.size,
            "path": file.path,
            "project_id": file.project_id,
            "task_id": file.task_id,
            "user_id": file.user_id,
            "created_at": file.created_at,
            "user": user_summary(file.user),
        }
    ).to_payload()


def task_detail_payload(db: Session, task: Task) -> dict:
    files = (
        db.query(File)
        .filter(File.task_id == task.id)
        .order_by(File.created_at.desc(), File.id.desc())
        .all()
    )
    comments = (
        db.query(Comment)
        .filter(Comment.task_id == task.id)
        .order_by(Comment.created_at.asc(), Comment.id.asc())
        .all()
    )
    fields = _task_fields(db, task)
    fields["comments"] = [comment_payload(comment) for comment in comments]
    fields["files"] = [file_payload(file) for file in files]
    return TaskDetailResponse.model_validate(fields).to_payload()


def ordered_tasks_query(db: Session):
    return db.query(Task).order_by(Task.position.asc(), Task.created_at.desc(), Task.id.desc())


def project_payload(db: Session, project: Project, with_tasks: bool = False) -> dict:
    members = (
        db.query(ProjectMember)
        .filter(ProjectMember.project_id == project.id)
        .order_by(ProjectMember.joined_at.asc())
        .all()
    )
    fields = {
        "id": project.id,
        "name": project.name,
        "description": project.description,
        "color": project.color,
        "creator_id": project.creator_id,
        "created_at": project.created_at,
        "updated_at": project.updated_at,
        "creator": user_summary(project.creator),
        "members": [member_payload(member) for member in members],
        "counts": {
            "tasks": _count(db, Task.id, Task.project_id == project.id),
            "members": len(members),
        },
    }
    if not with_tasks:
        return ProjectResponse.model_validate(fields).to_payload()

    fields["counts"]["files"] = _count(db, File.id, File.project_id == project.id)
    tasks = ordered_tasks_query(db).filter(Task.project_id == project.id).all()
    fields["tasks"] = [task_payload(db, task) for task in tasks]
    return ProjectDetailResponse.model_validate(fields).to_payload()

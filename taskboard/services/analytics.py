import logging
from datetime import datetime, timedelta, timezone
from typing import Iterator, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from taskboard.models.comment import Comment
from taskboard.models.project import Project
from taskboard.models.project_member import ProjectMember
from taskboard.models.task import Task
from taskboard.schemas.task import TaskStatus
from taskboard.utils.serializers import parse_assignee_names

logger = logging.getLogger(__name__)

RECENT_ACTIVITY_WINDOW = timedelta(days=7)


def visible_project_ids(db: Session, user_id: int) -> list[int]:
    """Projects the user created plus projects they are a member of."""
    owned = db.query(Project.id).filter(Project.creator_id == user_id).all()
    joined = (
        db.query(ProjectMember.project_id).filter(ProjectMember.user_id == user_id).all()
    )
    return sorted({row[0] for row in owned} | {row[0] for row in joined})


def _count_tasks(db: Session, *criteria) -> int:
    return db.query(func.count(Task.id)).filter(*criteria).scalar() or 0


def _group_tasks(db: Session, column, *criteria) -> dict[str, int]:
    rows = (
        db.query(column, func.count(Task.id))
        .filter(*criteria)
        .group_by(column)
        .all()
    )
    return {value: count for value, count in rows}


def iter_assignee_names(raw: Optional[str], task_id: Optional[int] = None) -> Iterator[str]:
    for name in parse_assignee_names(raw, task_id) or []:
        if isinstance(name, str) and name.strip():
            yield name.strip()


def user_overview(db: Session, user_id: int, now: Optional[datetime] = None) -> dict:
    now = now or datetime.now(timezone.utc)
    project_ids = visible_project_ids(db, user_id)
    in_visible = Task.project_id.in_(project_ids)
    since = now - RECENT_ACTIVITY_WINDOW

    recent_comments = (
        db.query(func.count(Comment.id))
        .join(Task, Comment.task_id == Task.id)
        .filter(in_visible, Comment.created_at >= since)
        .scalar()
        or 0
    )

    assignee_names = set()
    rows = db.query(Task.id, Task.assignee_names).filter(
        in_visible, Task.assignee_names.isnot(None)
    )
    for task_id, raw in rows:
        assignee_names.update(iter_assignee_names(raw, task_id))

    return {
        "overview": {
            "total_projects": len(project_ids),
            "total_tasks": _count_tasks(db, in_visible),
            "my_created_tasks": _count_tasks(db, in_visible, Task.creator_id == user_id),
            "overdue_tasks": _count_tasks(
                db,
                in_visible,
                Task.due_date.isnot(None),
                Task.due_date < now,
                Task.status != TaskStatus.DONE.value,
            ),
            "total_members": len(assignee_names),
        },
        "tasks_by_status": _group_tasks(db, Task.status, in_visible),
        "tasks_by_priority": _group_tasks(db, Task.priority, in_visible),
        "recent_activity": {
            "tasks_created": _count_tasks(db, in_visible, Task.created_at >= since),
            "comments_added": recent_comments,
        },
    }


def assignee_breakdown(db: Session, user_id: int) -> list[dict]:
    project_ids = visible_project_ids(db, user_id)
    tasks = (
        db.query(Task)
        .filter(Task.project_id.in_(project_ids), Task.assignee_names.isnot(None))
        .order_by(Task.id)
        .all()
    )

    assignees: dict[str, dict] = {}
    for task in tasks:
        project = {"id": task.project.id, "name": task.project.name, "color": task.project.color}
        for name in iter_assignee_names(task.assignee_names, task.id):
            entry = assignees.setdefault(
                name, {"name": name, "task_count": 0, "projects": set(), "tasks": []}
            )
            entry["task_count"] += 1
            entry["projects"].add(task.project_id)
            entry["tasks"].append(
                {"id": task.id, "title": task.title, "status": task.status, "project": project}
            )

    summaries = [
        {
            "name": entry["name"],
            "task_count": entry["task_count"],
            "project_count": len(entry["projects"]),
            "tasks": entry["tasks"],
        }
        for entry in assignees.values()
    ]
    summaries.sort(key=lambda entry: entry["task_count"], reverse=True)
    return summaries


def project_breakdown(db: Session, project_id: int) -> dict:
    in_project = Task.project_id == project_id
    total = _count_tasks(db, in_project)
    completed = _count_tasks(db, in_project, Task.status == TaskStatus.DONE.value)
    rate = (completed / total) * 100 if total else 0
    return {
        "total_tasks": total,
        "completed_tasks": completed,
        "completion_rate": round(rate, 2),
        "tasks_by_status": _group_tasks(db, Task.status, in_project),
        "tasks_by_priority": _group_tasks(db, Task.priority, in_project),
    }

from typing import Dict, List

from taskboard.schemas.base import CamelModel
from taskboard.schemas.task import TaskProjectSummary


class AnalyticsOverview(CamelModel):
    total_projects: int
    total_tasks: int
    my_created_tasks: int
    overdue_tasks: int
    total_members: int


class RecentActivity(CamelModel):
    tasks_created: int
    comments_added: int


class AnalyticsResponse(CamelModel):
    overview: AnalyticsOverview
    tasks_by_status: Dict[str, int]
    tasks_by_priority: Dict[str, int]
    recent_activity: RecentActivity


class AssigneeTask(CamelModel):
    id: int
    title: str
    status: str
    project: TaskProjectSummary


class AssigneeSummary(CamelModel):
    name: str
    task_count: int
    project_count: int
    tasks: List[AssigneeTask]


class ProjectAnalyticsResponse(CamelModel):
    total_tasks: int
    completed_tasks: int
    completion_rate: float
    tasks_by_status: Dict[str, int]
    tasks_by_priority: Dict[str, int]

"""
Derived read-side views over tasks.

Status summaries are computed from the current task rows on every call and
never stored on the project, so they always reflect the latest writes.
"""

import logging
from collections import defaultdict
from dataclasses import asdict, dataclass
from datetime import date
from typing import Any, Dict, Iterable, List, Optional

from models import Project, Task, TaskStatus
from time_utils import is_overdue

logger = logging.getLogger(__name__)


@dataclass
class StatusSummary:
    total: int = 0
    todo: int = 0
    in_progress: int = 0
    completed: int = 0
    blocked: int = 0

    def add(self, status: TaskStatus) -> None:
        # Every enum member has a bucket of the same name
        bucket = TaskStatus(status).value
        self.total += 1
        setattr(self, bucket, getattr(self, bucket) + 1)

    def to_dict(self) -> Dict[str, int]:
        return asdict(self)


def _status_of(task: Any) -> TaskStatus:
    return task.status if hasattr(task, "status") else task


def summarize(tasks: Iterable[Any]) -> StatusSummary:
    """
    Count tasks per status.

    Accepts Task rows or bare status values.
    """
    summary = StatusSummary()
    for task in tasks:
        summary.add(_status_of(task))
    return summary


def summarize_by_project(
    rows: Iterable[tuple],
    project_ids: Iterable[int] = (),
) -> Dict[int, StatusSummary]:
    """
    Group (project_id, status) pairs into one summary per project.

    Projects listed in ``project_ids`` get an all-zero summary when they have
    no tasks. Unassigned tasks (project_id None) are skipped.
    """
    grouped: Dict[int, List[TaskStatus]] = defaultdict(list)
    for project_id in project_ids:
        grouped[project_id]
    for project_id, status in rows:
        if project_id is None:
            continue
        grouped[project_id].append(status)
    return {project_id: summarize(statuses) for project_id, statuses in grouped.items()}


def project_brief(project: Optional[Project]) -> Optional[Dict[str, Any]]:
    """The narrow {id, name, color} projection attached to tasks."""
    if project is None:
        return None
    return {"id": project.id, "name": project.name, "color": project.color}


def task_view(task: Task, include_project: bool = True, today: Optional[date] = None) -> Dict[str, Any]:
    """Serialize a task row with its derived fields."""
    view = {
        "id": task.id,
        "title": task.title,
        "description": task.description,
        "status": task.status,
        "priority": task.priority,
        "due_date": task.due_date,
        "project_id": task.project_id,
        "owner_id": task.owner_id,
        "is_overdue": is_overdue(task.due_date, task.status, today),
        "created_at": task.created_at,
        "updated_at": task.updated_at,
    }
    if include_project:
        view["project"] = project_brief(task.project)
    return view


def project_view(project: Project) -> Dict[str, Any]:
    return {
        "id": project.id,
        "name": project.name,
        "description": project.description,
        "color": project.color,
        "owner_id": project.owner_id,
        "created_at": project.created_at,
        "updated_at": project.updated_at,
    }

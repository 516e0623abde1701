"""
Tests for status summaries and task/project projections.
"""

from datetime import date

from sqlalchemy.orm import Session

import models
from aggregation import StatusSummary, project_brief, summarize, summarize_by_project, task_view
from models import TaskStatus
from time_utils import is_overdue
from tests.conftest import make_project, make_task


def test_summarize_empty():
    assert summarize([]).to_dict() == {
        "total": 0, "todo": 0, "in_progress": 0, "completed": 0, "blocked": 0
    }


def test_summarize_counts_each_status():
    statuses = [
        TaskStatus.todo, TaskStatus.todo, TaskStatus.in_progress,
        TaskStatus.completed, TaskStatus.blocked, TaskStatus.blocked, TaskStatus.blocked,
    ]
    summary = summarize(statuses)

    assert summary == StatusSummary(total=7, todo=2, in_progress=1, completed=1, blocked=3)
    assert summary.todo + summary.in_progress + summary.completed + summary.blocked == summary.total


def test_summarize_accepts_task_rows(test_db: Session, user: models.User, project: models.Project):
    make_task(test_db, user, "one", project, status=TaskStatus.completed)
    make_task(test_db, user, "two", project)

    summary = summarize(test_db.query(models.Task).all())

    assert summary.total == 2
    assert summary.completed == 1
    assert summary.todo == 1


def test_summarize_by_project_groups_and_zero_fills():
    rows = [
        (1, TaskStatus.todo),
        (1, TaskStatus.blocked),
        (2, TaskStatus.completed),
        (None, TaskStatus.todo),
    ]
    summaries = summarize_by_project(rows, project_ids=[1, 2, 3])

    assert summaries[1].to_dict() == {"total": 2, "todo": 1, "in_progress": 0, "completed": 0, "blocked": 1}
    assert summaries[2].total == 1
    assert summaries[3] == StatusSummary()
    assert None not in summaries


def test_project_brief(test_db: Session, user: models.User):
    project = make_project(test_db, user, "Brief", color="#abcdef")

    assert project_brief(project) == {"id": project.id, "name": "Brief", "color": "#abcdef"}
    assert project_brief(None) is None


def test_task_view_attaches_brief_and_overdue(test_db: Session, user: models.User, project: models.Project):
    task = make_task(test_db, user, "late", project, due_date=date(2025, 1, 1))

    view = task_view(task, today=date(2025, 1, 2))

    assert view["project"] == {"id": project.id, "name": "Launch", "color": "#3498db"}
    assert view["is_overdue"] is True


def test_task_view_unassigned(test_db: Session, user: models.User):
    task = make_task(test_db, user, "loose")
    assert task_view(task)["project"] is None


def test_is_overdue_rules():
    today = date(2025, 5, 10)
    assert is_overdue(date(2025, 5, 9), "todo", today) is True
    assert is_overdue(date(2025, 5, 10), "todo", today) is False
    assert is_overdue(date(2025, 5, 9), "completed", today) is False
    assert is_overdue(None, "blocked", today) is False


def test_summarize_by_project_matches_summarize_per_project():
    rows = [(1, TaskStatus.todo), (2, TaskStatus.blocked), (1, TaskStatus.completed), (1, TaskStatus.todo)]

    summaries = summarize_by_project(rows)

    for project_id in (1, 2):
        statuses = [status for pid, status in rows if pid == project_id]
        assert summaries[project_id] == summarize(statuses)

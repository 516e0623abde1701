"""
Cross-user isolation tests.

Another user's records must look exactly like missing ones: every
operation on them answers 404 and leaves the data untouched.
"""

import logging

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import Session

import models
from tests.conftest import make_task

logger = logging.getLogger(__name__)


@pytest.mark.parametrize(
    "method,path,body",
    [
        ("get", "/api/tasks/{task}", None),
        ("put", "/api/tasks/{task}", {"title": "hijacked"}),
        ("patch", "/api/tasks/{task}/status", {"status": "completed"}),
        ("delete", "/api/tasks/{task}", None),
        ("get", "/api/projects/{project}", None),
        ("put", "/api/projects/{project}", {"name": "hijacked"}),
        ("delete", "/api/projects/{project}", None),
        ("get", "/api/projects/{project}/tasks", None),
    ],
)
def test_foreign_records_are_not_found(
    client: TestClient,
    test_db: Session,
    auth_headers,
    other_project: models.Project,
    other_task: models.Task,
    method,
    path,
    body,
):
    url = path.format(task=other_task.id, project=other_project.id)
    kwargs = {"headers": auth_headers}
    if body is not None:
        kwargs["json"] = body

    response = client.request(method.upper(), url, **kwargs)

    assert response.status_code == 404, f"Expected 404, got {response.status_code}: {response.json()}"
    assert response.json()["success"] is False

    test_db.expire_all()
    task = test_db.get(models.Task, other_task.id)
    project = test_db.get(models.Project, other_project.id)
    assert task is not None and task.title == "Bob's Task"
    assert task.status == models.TaskStatus.todo
    assert project is not None and project.name == "Bob's Project"
    logger.info(f"✓ {method.upper()} {path} hid another user's record")


def test_missing_and_foreign_look_identical(
    client: TestClient, auth_headers, other_task: models.Task
):
    foreign = client.get(f"/api/tasks/{other_task.id}", headers=auth_headers)
    missing = client.get("/api/tasks/99999", headers=auth_headers)

    assert foreign.status_code == missing.status_code == 404
    assert foreign.json() == missing.json()


def test_listings_only_show_own_records(
    client: TestClient,
    test_db: Session,
    auth_headers,
    other_auth_headers,
    user: models.User,
    project: models.Project,
    other_project: models.Project,
    other_task: models.Task,
):
    make_task(test_db, user, "mine", project)

    tasks = client.get("/api/tasks", headers=auth_headers).json()["data"]["tasks"]
    projects = client.get("/api/projects", headers=auth_headers).json()["data"]["projects"]
    assert [t["title"] for t in tasks] == ["mine"]
    assert [p["name"] for p in projects] == ["Launch"]

    their_tasks = client.get("/api/tasks", headers=other_auth_headers).json()["data"]["tasks"]
    assert [t["title"] for t in their_tasks] == ["Bob's Task"]


def test_filter_by_foreign_project_returns_nothing(
    client: TestClient, auth_headers, other_project: models.Project, other_task: models.Task
):
    response = client.get("/api/tasks", params={"project_id": other_project.id}, headers=auth_headers)

    assert response.status_code == 200
    assert response.json()["data"]["tasks"] == []
    assert response.json()["data"]["pagination"]["total"] == 0


def test_cannot_move_task_into_foreign_project(
    client: TestClient,
    test_db: Session,
    auth_headers,
    user: models.User,
    other_project: models.Project,
):
    task = make_task(test_db, user, "mine")

    response = client.put(f"/api/tasks/{task.id}", json={"project_id": other_project.id}, headers=auth_headers)

    assert response.status_code == 400
    assert response.json()["error"]["message"] == "Invalid project ID"
    test_db.expire_all()
    assert test_db.get(models.Task, task.id).project_id is None


def test_foreign_tasks_still_block_project_delete(
    client: TestClient,
    test_db: Session,
    auth_headers,
    other_user: models.User,
    project: models.Project,
):
    """A task counts against delete regardless of who owns it."""
    # Only reachable through direct writes; the API never lets bob attach to alice's project
    make_task(test_db, other_user, "stray", project)

    response = client.delete(f"/api/projects/{project.id}", headers=auth_headers)

    assert response.status_code == 409

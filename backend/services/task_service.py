"""
Task use cases for the authenticated caller.

Every lookup is scoped to the caller, so a task owned by someone else is
reported exactly like a missing one.
"""

import logging
from typing import Any, Dict, Optional

from aggregation import task_view
from errors import NotFoundError
from models import Task, TaskPriority, TaskStatus
from query_builder import Page, PageRequest, TaskFilters, build_task_query
from repository import TaskRepository
from services.base import OwnedService

logger = logging.getLogger(__name__)


class TaskService(OwnedService):

    def _require_task(self, task_id: int) -> Task:
        task = self.tasks.find_by_id(task_id, self.owner_id)
        if task is None:
            logger.info(f"Task {task_id} not found for user {self.owner_id}")
            raise NotFoundError("Task")
        return task

    def _reload(self, task_id: int) -> Dict[str, Any]:
        task = self.tasks.find_with_project(task_id, self.owner_id)
        return task_view(task)

    def list(self, filters: Optional[TaskFilters] = None, page: Optional[PageRequest] = None) -> Page:
        """Paginated, filtered listing in the fixed task order."""
        page = page or PageRequest()
        logger.debug(f"User {self.owner_id} listing tasks: filters={filters}, page={page.page}, limit={page.limit}")

        plan = build_task_query(self.owner_id, filters, page)
        rows, total = self.tasks.find_many(
            plan.where,
            order_by=plan.order_by,
            offset=plan.offset,
            limit=plan.limit,
            options=TaskRepository.with_project,
        )

        logger.info(f"list_tasks returned {len(rows)} of {total} tasks for user {self.owner_id}")
        return Page(items=[task_view(task) for task in rows], total=total, page=page.page, limit=page.limit)

    def get(self, task_id: int) -> Dict[str, Any]:
        logger.debug(f"User {self.owner_id} requesting task {task_id}")
        task = self.tasks.find_with_project(task_id, self.owner_id)
        if task is None:
            logger.info(f"Task {task_id} not found for user {self.owner_id}")
            raise NotFoundError("Task")
        return task_view(task)

    def create(self, fields: Dict[str, Any]) -> Dict[str, Any]:
        """
        Create a task owned by the caller.

        Raises:
            InvalidReferenceError: project_id is not one of the caller's projects
        """
        data = dict(fields)
        data.setdefault("status", TaskStatus.todo)
        data.setdefault("priority", TaskPriority.medium)
        # Ownership always comes from the identity, never from input
        data.pop("owner_id", None)

        if data.get("project_id") is not None:
            self._require_own_project_reference(data["project_id"])

        task = self.tasks.create(self.owner_id, data)
        self._commit()

        logger.info(f"Task created successfully: id={task.id} by user {self.owner_id}")
        return self._reload(task.id)

    def update(self, task_id: int, changes: Dict[str, Any]) -> Dict[str, Any]:
        """
        Apply a partial update.

        Only keys present in ``changes`` are written. A None value clears a
        nullable field.
        """
        logger.debug(f"User {self.owner_id} updating task {task_id}: fields={sorted(changes)}")
        task = self._require_task(task_id)

        changes = {key: value for key, value in changes.items() if key != "owner_id"}
        new_project_id = changes.get("project_id")
        if new_project_id is not None and new_project_id != task.project_id:
            self._require_own_project_reference(new_project_id)

        for key, value in changes.items():
            setattr(task, key, value)
        self._commit()

        logger.info(f"Task {task_id} updated successfully")
        return self._reload(task_id)

    def delete(self, task_id: int) -> None:
        if not self.tasks.delete(task_id, self.owner_id):
            logger.info(f"Task {task_id} not found for user {self.owner_id}")
            raise NotFoundError("Task")
        self._commit()
        logger.info(f"Task {task_id} deleted by user {self.owner_id}")

    def set_status(self, task_id: int, status: TaskStatus) -> Dict[str, Any]:
        """Single-field status change; the value is validated upstream."""
        task = self._require_task(task_id)
        old_status = task.status
        task.status = status
        self._commit()

        logger.info(f"Task {task_id} status changed: {TaskStatus(old_status).value} -> {TaskStatus(status).value}")
        return self._reload(task_id)

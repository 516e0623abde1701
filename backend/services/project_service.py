"""
Project use cases for the authenticated caller.
"""

import logging
from dataclasses import replace
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy.exc import IntegrityError

from aggregation import project_brief, project_view, summarize_by_project, task_view
from errors import ConflictError, NotFoundError
from models import Project
from query_builder import (
    Page,
    PageRequest,
    TaskFilters,
    build_task_query,
    project_order_clauses,
    task_filter_clauses,
    task_order_clauses,
)
from repository import TaskRepository
from services.base import OwnedService

logger = logging.getLogger(__name__)

DELETE_CONFLICT_MESSAGE = (
    "Cannot delete project with existing tasks. Please delete or reassign tasks first."
)


class ProjectService(OwnedService):

    def list(self) -> List[Dict[str, Any]]:
        """
        All of the caller's projects, newest first, each with a status
        summary of its tasks in place of the task list.
        """
        logger.debug(f"User {self.owner_id} listing projects")

        projects, _ = self.projects.find_many(
            [Project.owner_id == self.owner_id],
            order_by=project_order_clauses(),
        )
        summaries = summarize_by_project(
            self.tasks.statuses_for_owner(self.owner_id),
            project_ids=[project.id for project in projects],
        )

        logger.info(f"User {self.owner_id} retrieved {len(projects)} projects")
        return [
            {**project_view(project), "task_stats": summaries[project.id].to_dict()}
            for project in projects
        ]

    def get(self, project_id: int) -> Dict[str, Any]:
        """Project plus every one of its tasks in the fixed task order."""
        logger.debug(f"User {self.owner_id} requesting project {project_id}")
        project = self._require_project(project_id)

        tasks, _ = self.tasks.find_many(
            task_filter_clauses(self.owner_id, TaskFilters(project_id=project.id)),
            order_by=task_order_clauses(),
            options=TaskRepository.with_project,
        )
        return {**project_view(project), "tasks": [task_view(task) for task in tasks]}

    def create(self, fields: Dict[str, Any]) -> Dict[str, Any]:
        data = {key: value for key, value in fields.items() if key != "owner_id"}
        project = self.projects.create(self.owner_id, data)
        self._commit()

        logger.info(f"Project created: {project.name} (ID: {project.id}) by user {self.owner_id}")
        return project_view(project)

    def update(self, project_id: int, changes: Dict[str, Any]) -> Dict[str, Any]:
        logger.debug(f"User {self.owner_id} updating project {project_id}: fields={sorted(changes)}")
        project = self._require_project(project_id)

        for key, value in changes.items():
            if key == "owner_id":
                continue
            setattr(project, key, value)
        self._commit()
        self.db.refresh(project)

        logger.info(f"Project updated: {project.name} (ID: {project_id})")
        return project_view(project)

    def delete(self, project_id: int) -> None:
        """
        Delete an empty project.

        The project row is locked before the task count so no task can be
        attached between the check and the delete. The RESTRICT foreign key
        catches anything the lock cannot (SQLite has no row locks).

        Raises:
            NotFoundError: project missing or not the caller's
            ConflictError: one or more tasks still reference the project
        """
        logger.debug(f"User {self.owner_id} deleting project {project_id}")

        project = self.projects.lock(project_id, self.owner_id)
        if project is None:
            self.db.rollback()
            logger.info(f"Project {project_id} not found for user {self.owner_id}")
            raise NotFoundError("Project")

        task_count = self.tasks.count_for_project(project_id)
        if task_count > 0:
            self.db.rollback()
            logger.info(f"Project {project_id} delete blocked: {task_count} task(s) still reference it")
            raise ConflictError(DELETE_CONFLICT_MESSAGE)

        name = project.name
        try:
            self.db.delete(project)
            self.db.commit()
        except IntegrityError:
            self.db.rollback()
            logger.info(f"Project {project_id} delete blocked by foreign key: a task was added concurrently")
            raise ConflictError(DELETE_CONFLICT_MESSAGE)

        logger.info(f"Project deleted: {name} (ID: {project_id})")

    def list_tasks(
        self,
        project_id: int,
        filters: Optional[TaskFilters] = None,
        page: Optional[PageRequest] = None,
    ) -> Tuple[Page, Dict[str, Any]]:
        """
        Paginated task listing inside one project.

        Ownership of the project is checked first; the listing itself uses
        the same query plan as TaskService.list with project_id pinned.
        """
        page = page or PageRequest()
        project = self._require_project(project_id)

        filters = replace(filters or TaskFilters(), project_id=project.id)
        plan = build_task_query(self.owner_id, filters, page)
        rows, total = self.tasks.find_many(
            plan.where,
            order_by=plan.order_by,
            offset=plan.offset,
            limit=plan.limit,
            options=TaskRepository.with_project,
        )

        logger.info(f"Project {project_id} tasks: returned {len(rows)} of {total}")
        items = [task_view(task) for task in rows]
        return Page(items=items, total=total, page=page.page, limit=page.limit), project_brief(project)

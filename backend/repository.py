"""
Owner-keyed persistence for projects and tasks.

Every lookup takes the caller's owner_id so no method can return or touch
another user's row. Repositories flush but never commit; the service that
owns the unit of work decides when to commit or roll back.
"""

import logging
from typing import Any, Dict, Generic, Iterable, List, Optional, Sequence, Tuple, Type, TypeVar

from sqlalchemy import func
from sqlalchemy.orm import Session, joinedload

from models import Project, Task, TaskStatus

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT")


class OwnedRepository(Generic[ModelT]):
    """CRUD helpers for a model that carries an ``owner_id`` column."""

    model: Type[ModelT]

    def __init__(self, db: Session):
        self.db = db

    def _scoped(self, owner_id: int, options: Iterable[Any] = ()):
        query = self.db.query(self.model).filter(self.model.owner_id == owner_id)
        if options:
            query = query.options(*options)
        return query

    def create(self, owner_id: int, fields: Dict[str, Any]) -> ModelT:
        obj = self.model(**fields, owner_id=owner_id)
        self.db.add(obj)
        self.db.flush()
        logger.debug(f"Inserted {self.model.__name__} {obj.id} for owner {owner_id}")
        return obj

    def find_by_id(self, id: int, owner_id: int, options: Iterable[Any] = ()) -> Optional[ModelT]:
        return self._scoped(owner_id, options).filter(self.model.id == id).first()

    def find_many(
        self,
        where: Sequence[Any],
        order_by: Sequence[Any] = (),
        offset: Optional[int] = None,
        limit: Optional[int] = None,
        options: Iterable[Any] = (),
    ) -> Tuple[List[ModelT], int]:
        """
        Run a filtered scan.

        ``where`` must already contain the owner clause; query_builder puts
        it there. Returns the requested window and the total match count.
        """
        total = self.count(where)

        query = self.db.query(self.model).filter(*where)
        if options:
            query = query.options(*options)
        if order_by:
            query = query.order_by(*order_by)
        if offset:
            query = query.offset(offset)
        if limit is not None:
            query = query.limit(limit)

        return query.all(), total

    def update(self, id: int, owner_id: int, fields: Dict[str, Any]) -> Optional[ModelT]:
        obj = self.find_by_id(id, owner_id)
        if obj is None:
            return None
        for key, value in fields.items():
            setattr(obj, key, value)
        self.db.flush()
        return obj

    def delete(self, id: int, owner_id: int) -> bool:
        obj = self.find_by_id(id, owner_id)
        if obj is None:
            return False
        self.db.delete(obj)
        self.db.flush()
        return True

    def count(self, where: Sequence[Any]) -> int:
        return self.db.query(func.count(self.model.id)).filter(*where).scalar() or 0


class ProjectRepository(OwnedRepository[Project]):
    model = Project

    def lock(self, id: int, owner_id: int) -> Optional[Project]:
        """Fetch and row-lock a project (FOR UPDATE; a no-op on SQLite)."""
        return self._scoped(owner_id).filter(Project.id == id).with_for_update().first()


class TaskRepository(OwnedRepository[Task]):
    model = Task

    # Narrow project context is loaded in the same round trip
    with_project = (joinedload(Task.project),)

    def find_with_project(self, id: int, owner_id: int) -> Optional[Task]:
        return self.find_by_id(id, owner_id, options=self.with_project)

    def count_for_project(self, project_id: int) -> int:
        # Not owner-scoped: any task pointing at the project blocks its deletion
        return self.count([Task.project_id == project_id])

    def statuses_for_owner(self, owner_id: int) -> List[Tuple[Optional[int], TaskStatus]]:
        """(project_id, status) for every task the owner has."""
        return (
            self.db.query(Task.project_id, Task.status)
            .filter(Task.owner_id == owner_id)
            .all()
        )

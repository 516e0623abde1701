import logging

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from auth.identity import Identity
from errors import InvalidReferenceError, NotFoundError
from models import Project
from repository import ProjectRepository, TaskRepository

logger = logging.getLogger(__name__)


class OwnedService:
    """
    Shared plumbing for services that act on behalf of one user.

    A service instance lives for a single request: it is built with that
    request's session and the caller's Identity, and holds no other state.
    """

    def __init__(self, db: Session, identity: Identity):
        self.db = db
        self.identity = identity
        self.projects = ProjectRepository(db)
        self.tasks = TaskRepository(db)

    @property
    def owner_id(self) -> int:
        return self.identity.user_id

    def _commit(self) -> None:
        try:
            self.db.commit()
        except SQLAlchemyError:
            self.db.rollback()
            raise

    def _require_project(self, project_id: int) -> Project:
        project = self.projects.find_by_id(project_id, self.owner_id)
        if project is None:
            logger.info(f"Project {project_id} not found for user {self.owner_id}")
            raise NotFoundError("Project")
        return project

    def _require_own_project_reference(self, project_id: int) -> Project:
        """Referential guard: a task may only point at the caller's own project."""
        project = self.projects.find_by_id(project_id, self.owner_id)
        if project is None:
            logger.info(f"User {self.owner_id} referenced project {project_id} they do not own")
            raise InvalidReferenceError("Invalid project ID")
        return project

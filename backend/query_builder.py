"""
Query construction for task and project listings.

Turns recognized filter and page options into an owner-scoped fetch plan.
Nothing here touches the database; repository.py executes the plans.

Task ordering is fixed and identical for every listing:

1. due_date ascending, tasks without a due date last
2. priority descending (urgent > high > medium > low)
3. created_at descending
4. id ascending, so rows with equal keys never swap between calls
"""

import logging
import math
from dataclasses import dataclass, field
from typing import Any, Generic, List, Optional, Sequence, TypeVar

from sqlalchemy import case

from models import Project, Task, TaskPriority, TaskStatus

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_PAGE = 1
DEFAULT_LIMIT = 10
MAX_LIMIT = 100

# Largest value a signed 64-bit primary key column can hold
MAX_ID = 2**63 - 1

PRIORITY_RANK = {
    TaskPriority.low: 0,
    TaskPriority.medium: 1,
    TaskPriority.high: 2,
    TaskPriority.urgent: 3,
}


@dataclass(frozen=True)
class TaskFilters:
    status: Optional[TaskStatus] = None
    priority: Optional[TaskPriority] = None
    project_id: Optional[int] = None


@dataclass(frozen=True)
class PageRequest:
    page: int = DEFAULT_PAGE
    limit: int = DEFAULT_LIMIT

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit


@dataclass
class Page(Generic[T]):
    items: Sequence[T]
    total: int
    page: int
    limit: int

    @property
    def pages(self) -> int:
        return page_count(self.total, self.limit)


@dataclass
class TaskQuery:
    """A fully resolved fetch plan: where clauses, ordering and window."""

    where: List[Any] = field(default_factory=list)
    order_by: List[Any] = field(default_factory=list)
    offset: int = 0
    limit: int = DEFAULT_LIMIT


def page_count(total: int, limit: int) -> int:
    return math.ceil(total / limit) if limit else 0


def priority_rank():
    """SQL expression mapping priority to its numeric rank."""
    return case(
        *[(Task.priority == priority, rank) for priority, rank in PRIORITY_RANK.items()],
        else_=-1,
    )


def task_order_clauses() -> List[Any]:
    # NULLS LAST is spelled with a CASE so SQLite and PostgreSQL agree
    return [
        case((Task.due_date.is_(None), 1), else_=0).asc(),
        Task.due_date.asc(),
        priority_rank().desc(),
        Task.created_at.desc(),
        Task.id.asc(),
    ]


def project_order_clauses() -> List[Any]:
    return [Project.created_at.desc(), Project.id.desc()]


def task_filter_clauses(owner_id: int, filters: Optional[TaskFilters] = None) -> List[Any]:
    """Owner scope first, then every supplied filter AND-combined."""
    filters = filters or TaskFilters()
    clauses = [Task.owner_id == owner_id]
    if filters.status is not None:
        clauses.append(Task.status == filters.status)
    if filters.priority is not None:
        clauses.append(Task.priority == filters.priority)
    if filters.project_id is not None:
        clauses.append(Task.project_id == filters.project_id)
    return clauses


def build_task_query(
    owner_id: int,
    filters: Optional[TaskFilters] = None,
    page: Optional[PageRequest] = None,
) -> TaskQuery:
    """
    Build the fetch plan for a paginated task listing.

    Args:
        owner_id: Authenticated caller; always applied
        filters: Optional status/priority/project filters
        page: Page window (defaults to page 1, 10 items)

    Returns:
        TaskQuery ready for TaskRepository.find_many
    """
    page = page or PageRequest()
    plan = TaskQuery(
        where=task_filter_clauses(owner_id, filters),
        order_by=task_order_clauses(),
        offset=page.offset,
        limit=page.limit,
    )
    logger.debug(
        f"Built task query for owner {owner_id}: filters={filters}, "
        f"offset={plan.offset}, limit={plan.limit}"
    )
    return plan

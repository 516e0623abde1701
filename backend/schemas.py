from pydantic import BaseModel, ConfigDict, Field, field_validator
from datetime import date, datetime
from typing import Generic, List, Optional, TypeVar

from models import TaskStatus, TaskPriority, DEFAULT_PROJECT_COLOR
from query_builder import MAX_ID

DataT = TypeVar("DataT")

HEX_COLOR_PATTERN = r"^#[0-9A-Fa-f]{6}$"


# Response envelope
class ErrorDetail(BaseModel):
    field: str
    message: str


class ErrorBody(BaseModel):
    message: str
    details: Optional[List[ErrorDetail]] = None


class ApiResponse(BaseModel, Generic[DataT]):
    success: bool = True
    data: Optional[DataT] = None
    message: Optional[str] = None
    error: Optional[ErrorBody] = None


# User schemas
class RegisterRequest(BaseModel):
    username: str = Field(..., min_length=3, max_length=50, pattern=r"^[A-Za-z0-9_.-]+$")
    password: str = Field(..., min_length=8, max_length=100)


class LoginRequest(BaseModel):
    username: str
    password: str


class User(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    username: str
    created_at: datetime


class LoginData(BaseModel):
    token: str
    token_type: str = "bearer"
    user: User


class UserData(BaseModel):
    user: User


# Project schemas
class ProjectBrief(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    color: str


class ProjectBase(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = Field(None, max_length=1000)
    color: str = Field(DEFAULT_PROJECT_COLOR, pattern=HEX_COLOR_PATTERN)


class ProjectCreate(ProjectBase):
    pass


class ProjectUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = Field(None, max_length=1000)
    color: Optional[str] = Field(None, pattern=HEX_COLOR_PATTERN)

    @field_validator("name", "color", mode="before")
    @classmethod
    def reject_null(cls, value, info):
        # Only description may be cleared; the others are required columns
        if value is None:
            raise ValueError(f"{info.field_name} cannot be null")
        return value


class Project(ProjectBase):
    model_config = ConfigDict(from_attributes=True)

    id: int
    owner_id: int
    created_at: datetime
    updated_at: datetime


class StatusSummary(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    total: int = 0
    todo: int = 0
    in_progress: int = 0
    completed: int = 0
    blocked: int = 0


class ProjectWithStats(Project):
    task_stats: StatusSummary


# Task schemas
class TaskBase(BaseModel):
    title: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = Field(None, max_length=5000)
    status: TaskStatus = TaskStatus.todo
    priority: TaskPriority = TaskPriority.medium
    due_date: Optional[date] = None


class TaskCreate(TaskBase):
    project_id: Optional[int] = Field(None, gt=0, le=MAX_ID)


class TaskUpdate(BaseModel):
    """
    Partial task update.

    Omitted fields keep their value. An explicit null clears description,
    due_date or project_id; title, status and priority cannot be null.
    """

    title: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = Field(None, max_length=5000)
    status: Optional[TaskStatus] = None
    priority: Optional[TaskPriority] = None
    due_date: Optional[date] = None
    project_id: Optional[int] = Field(None, gt=0, le=MAX_ID)

    @field_validator("title", "status", "priority", mode="before")
    @classmethod
    def reject_null(cls, value, info):
        if value is None:
            raise ValueError(f"{info.field_name} cannot be null")
        return value


class TaskStatusUpdate(BaseModel):
    status: TaskStatus


class Task(TaskBase):
    model_config = ConfigDict(from_attributes=True)

    id: int
    project_id: Optional[int] = None
    owner_id: int
    project: Optional[ProjectBrief] = None
    is_overdue: bool = False
    created_at: datetime
    updated_at: datetime


class ProjectWithTasks(Project):
    tasks: List[Task] = Field(default_factory=list)


# Listing payloads
class Pagination(BaseModel):
    total: int
    page: int
    limit: int
    pages: int


class TaskData(BaseModel):
    task: Task


class TaskListData(BaseModel):
    tasks: List[Task]
    pagination: Pagination
    project: Optional[ProjectBrief] = None


class ProjectData(BaseModel):
    project: Project


class ProjectDetailData(BaseModel):
    project: ProjectWithTasks


class ProjectListData(BaseModel):
    projects: List[ProjectWithStats]

from fastapi import FastAPI, Depends, Query, Path, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session
from starlette.exceptions import HTTPException as StarletteHTTPException
from typing import Optional
import logging
import os

from database import get_db, init_db
import schemas
from errors import TrackerError
from models import TaskPriority, TaskStatus
from query_builder import DEFAULT_LIMIT, DEFAULT_PAGE, MAX_ID, MAX_LIMIT, Page, PageRequest, TaskFilters
from services import ProjectService, TaskService
from auth.routes import router as auth_router
from auth.dependencies import get_current_user
from auth.identity import Identity

# Configure logging
logging.basicConfig(
    level=os.environ.get("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

DEFAULT_CORS_ORIGINS = "http://localhost:3000,http://127.0.0.1:3000,http://localhost:8080,http://127.0.0.1:8080"

app = FastAPI(
    title="Task Tracker API",
    description="Personal task tracker: projects and tasks scoped to their owner",
    version="1.0.0"
)

# CORS middleware for frontend
app.add_middleware(
    CORSMiddleware,
    allow_origins=[
        origin.strip()
        for origin in os.environ.get("CORS_ORIGINS", DEFAULT_CORS_ORIGINS).split(",")
        if origin.strip()
    ],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Register authentication router
app.include_router(auth_router)


@app.on_event("startup")
def create_tables():
    """Create missing tables. Existing tables are left untouched."""
    init_db()
    logger.info("Database tables ensured")


# ============== Error Handling ==============

def error_response(status_code: int, message: str, details=None) -> JSONResponse:
    error = {"message": message}
    if details:
        error["details"] = details
    return JSONResponse(status_code=status_code, content={"success": False, "error": error})


@app.exception_handler(TrackerError)
def handle_tracker_error(request, exc: TrackerError):
    return error_response(exc.status_code, exc.message, exc.details)


@app.exception_handler(RequestValidationError)
def handle_validation_error(request, exc: RequestValidationError):
    details = []
    for err in exc.errors():
        # Drop the "body"/"query"/"path" prefix so field names match the payload
        loc = [str(part) for part in err.get("loc", ()) if part not in ("body", "query", "path")]
        details.append({"field": ".".join(loc), "message": err.get("msg", "Invalid value")})
    logger.info(f"Validation error on {request.method} {request.url.path}: {details}")
    return error_response(status.HTTP_400_BAD_REQUEST, "Validation error", details)


@app.exception_handler(StarletteHTTPException)
def handle_http_exception(request, exc: StarletteHTTPException):
    return error_response(exc.status_code, str(exc.detail))


@app.exception_handler(Exception)
def handle_unexpected_error(request, exc: Exception):
    # Handlers run outside the except block, so the traceback is passed explicitly
    logger.error(f"Unexpected error on {request.method} {request.url.path}", exc_info=exc)
    return error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, "Internal server error")


def pagination(page: Page) -> dict:
    return {"total": page.total, "page": page.page, "limit": page.limit, "pages": page.pages}


def page_params(
    page: int = Query(DEFAULT_PAGE, ge=1, description="Page number, starting at 1"),
    limit: int = Query(DEFAULT_LIMIT, ge=1, le=MAX_LIMIT, description=f"Items per page (max {MAX_LIMIT})"),
) -> PageRequest:
    return PageRequest(page=page, limit=limit)


# Health check
@app.get("/health")
def health_check():
    return {"status": "healthy"}


@app.get("/api/status")
def server_status():
    return {"success": True, "message": "Task Tracker API is running"}


# ============== Tasks ==============

@app.get("/api/tasks", response_model=schemas.ApiResponse[schemas.TaskListData])
def list_tasks(
    identity: Identity = Depends(get_current_user),
    status: Optional[TaskStatus] = Query(None),
    priority: Optional[TaskPriority] = Query(None),
    project_id: Optional[int] = Query(None, gt=0, le=MAX_ID),
    page: PageRequest = Depends(page_params),
    db: Session = Depends(get_db)
):
    """List the caller's tasks: nearest due date first, then priority, then newest."""
    filters = TaskFilters(status=status, priority=priority, project_id=project_id)
    result = TaskService(db, identity).list(filters, page)
    return {"success": True, "data": {"tasks": result.items, "pagination": pagination(result)}}


@app.post(
    "/api/tasks",
    response_model=schemas.ApiResponse[schemas.TaskData],
    status_code=status.HTTP_201_CREATED,
)
def create_task(
    task: schemas.TaskCreate,
    identity: Identity = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Create a task, optionally inside one of the caller's projects."""
    created = TaskService(db, identity).create(task.model_dump())
    return {"success": True, "data": {"task": created}}


@app.get("/api/tasks/{task_id}", response_model=schemas.ApiResponse[schemas.TaskData])
def get_task(
    task_id: int = Path(..., gt=0, le=MAX_ID),
    identity: Identity = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    return {"success": True, "data": {"task": TaskService(db, identity).get(task_id)}}


@app.put("/api/tasks/{task_id}", response_model=schemas.ApiResponse[schemas.TaskData])
def update_task(
    task_update: schemas.TaskUpdate,
    task_id: int = Path(..., gt=0, le=MAX_ID),
    identity: Identity = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Update only the fields present in the body; null clears nullable fields."""
    updated = TaskService(db, identity).update(task_id, task_update.model_dump(exclude_unset=True))
    return {"success": True, "data": {"task": updated}}


@app.delete("/api/tasks/{task_id}", response_model=schemas.ApiResponse[dict])
def delete_task(
    task_id: int = Path(..., gt=0, le=MAX_ID),
    identity: Identity = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    TaskService(db, identity).delete(task_id)
    return {"success": True, "message": "Task deleted successfully"}


@app.patch("/api/tasks/{task_id}/status", response_model=schemas.ApiResponse[schemas.TaskData])
def update_task_status(
    status_update: schemas.TaskStatusUpdate,
    task_id: int = Path(..., gt=0, le=MAX_ID),
    identity: Identity = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    updated = TaskService(db, identity).set_status(task_id, status_update.status)
    return {"success": True, "data": {"task": updated}}


# ============== Projects ==============

@app.get("/api/projects", response_model=schemas.ApiResponse[schemas.ProjectListData])
def list_projects(
    identity: Identity = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """List the caller's projects with per-status task counts, newest first."""
    return {"success": True, "data": {"projects": ProjectService(db, identity).list()}}


@app.post(
    "/api/projects",
    response_model=schemas.ApiResponse[schemas.ProjectData],
    status_code=status.HTTP_201_CREATED,
)
def create_project(
    project: schemas.ProjectCreate,
    identity: Identity = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    created = ProjectService(db, identity).create(project.model_dump())
    return {"success": True, "data": {"project": created}}


@app.get("/api/projects/{project_id}", response_model=schemas.ApiResponse[schemas.ProjectDetailData])
def get_project(
    project_id: int = Path(..., gt=0, le=MAX_ID),
    identity: Identity = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Get a project with all of its tasks."""
    return {"success": True, "data": {"project": ProjectService(db, identity).get(project_id)}}


@app.put("/api/projects/{project_id}", response_model=schemas.ApiResponse[schemas.ProjectData])
def update_project(
    project_update: schemas.ProjectUpdate,
    project_id: int = Path(..., gt=0, le=MAX_ID),
    identity: Identity = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    updated = ProjectService(db, identity).update(project_id, project_update.model_dump(exclude_unset=True))
    return {"success": True, "data": {"project": updated}}


@app.delete("/api/projects/{project_id}", response_model=schemas.ApiResponse[dict])
def delete_project(
    project_id: int = Path(..., gt=0, le=MAX_ID),
    identity: Identity = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Delete an empty project; 409 while tasks still reference it."""
    ProjectService(db, identity).delete(project_id)
    return {"success": True, "message": "Project deleted successfully"}


@app.get("/api/projects/{project_id}/tasks", response_model=schemas.ApiResponse[schemas.TaskListData])
def list_project_tasks(
    project_id: int = Path(..., gt=0, le=MAX_ID),
    identity: Identity = Depends(get_current_user),
    status: Optional[TaskStatus] = Query(None),
    priority: Optional[TaskPriority] = Query(None),
    page: PageRequest = Depends(page_params),
    db: Session = Depends(get_db)
):
    filters = TaskFilters(status=status, priority=priority)
    result, project = ProjectService(db, identity).list_tasks(project_id, filters, page)
    return {
        "success": True,
        "data": {"tasks": result.items, "pagination": pagination(result), "project": project},
    }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("main:app", host="0.0.0.0", port=int(os.environ.get("PORT", "8081")))

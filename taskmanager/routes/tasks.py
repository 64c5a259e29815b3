"""
Task Management API: Task Routes
================================

What:  CRUD and filter endpoints for tasks. Every route requires a bearer
       token; DELETE additionally requires the Admin role.
How:   Create/update payloads go through the validation engine first, so
       the service only ever sees valid input. Absence comes back from the
       service as None/False and becomes a 404 here.

Telemetry (TaskCreated / TaskCompleted / TaskDeleted) is emitted from these
handlers because they know the acting user.
"""

import logging
from typing import List

from fastapi import APIRouter, Depends, Query, Request, Response

from taskmanager.dependencies import get_current_user, get_task_service, get_telemetry, require_role
from taskmanager.exceptions import STATUS_BY_KIND, ErrorKind, client_message
from taskmanager.middleware.responses import build_error_response, build_validation_response
from taskmanager.models.task import TaskPriority
from taskmanager.models.user import ROLE_ADMIN
from taskmanager.schemas.common import ErrorResponse
from taskmanager.schemas.task import CreateTaskRequest, TaskView, UpdateTaskRequest
from taskmanager.services.task_service import TaskService, utc_now
from taskmanager.services.telemetry import TelemetryService
from taskmanager.services.token_service import Principal
from taskmanager.validation import create_task_validator, update_task_validator

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/tasks",
    tags=["Tasks"],
    responses={401: {"description": "Missing or invalid bearer token", "model": ErrorResponse}},
)

_NOT_FOUND = {404: {"description": "Task not found", "model": ErrorResponse}}
_INVALID = {400: {"description": "Validation failed; body maps field → messages"}}


def _not_found(request: Request) -> Response:
    return build_error_response(
        request, STATUS_BY_KIND[ErrorKind.NOT_FOUND], client_message(ErrorKind.NOT_FOUND)
    )


@router.get("", response_model=List[TaskView], summary="List all tasks, newest first")
async def list_tasks(
    principal: Principal = Depends(get_current_user),
    tasks: TaskService = Depends(get_task_service),
):
    return await tasks.list_all()


@router.get(
    "/filter/status",
    response_model=List[TaskView],
    responses={400: {"description": "`completed` is not a boolean"}},
    summary="List tasks by completion state",
)
async def list_by_status(
    completed: bool = Query(
        default=False, description="true for completed tasks, false (the default) for open ones"
    ),
    principal: Principal = Depends(get_current_user),
    tasks: TaskService = Depends(get_task_service),
):
    return await tasks.list_by_completion(completed)


@router.get(
    "/filter/priority/{priority}",
    response_model=List[TaskView],
    responses={400: {"description": "Unknown priority", "model": ErrorResponse}},
    summary="List tasks by priority (name or number)",
)
async def list_by_priority(
    priority: str,
    principal: Principal = Depends(get_current_user),
    tasks: TaskService = Depends(get_task_service),
):
    # InvalidArgumentError on a bad value is rendered as 400 by the exception boundary
    return await tasks.list_by_priority(TaskPriority.parse(priority))


@router.get("/{task_id}", response_model=TaskView, responses=_NOT_FOUND, summary="Get one task")
async def get_task(
    task_id: int,
    request: Request,
    principal: Principal = Depends(get_current_user),
    tasks: TaskService = Depends(get_task_service),
):
    view = await tasks.get_by_id(task_id)
    if view is None:
        logger.info("Task with ID %s not found", task_id)
        return _not_found(request)
    return view


@router.post(
    "",
    response_model=TaskView,
    status_code=201,
    responses=_INVALID,
    summary="Create a task",
)
async def create_task(
    payload: CreateTaskRequest,
    response: Response,
    principal: Principal = Depends(get_current_user),
    tasks: TaskService = Depends(get_task_service),
    telemetry: TelemetryService = Depends(get_telemetry),
):
    validation = create_task_validator.validate(payload)
    if not validation.is_valid:
        return build_validation_response(validation.to_dict())

    view = await tasks.create(payload)
    telemetry.track_task_created(
        view.id,
        TaskPriority(view.priority).label,
        view.due_date is not None,
        principal.user_id,
    )
    response.headers["Location"] = f"/tasks/{view.id}"
    return view


@router.put(
    "/{task_id}",
    response_model=TaskView,
    responses={**_INVALID, **_NOT_FOUND},
    summary="Replace a task's fields",
)
async def update_task(
    task_id: int,
    payload: UpdateTaskRequest,
    request: Request,
    principal: Principal = Depends(get_current_user),
    tasks: TaskService = Depends(get_task_service),
    telemetry: TelemetryService = Depends(get_telemetry),
):
    validation = update_task_validator.validate(payload)
    if not validation.is_valid:
        return build_validation_response(validation.to_dict())

    outcome = await tasks.update_with_outcome(task_id, payload)
    if outcome is None:
        return _not_found(request)

    if outcome.just_completed:
        telemetry.track_task_completed(
            task_id, utc_now() - outcome.view.created_at, principal.user_id
        )
    return outcome.view


@router.delete(
    "/{task_id}",
    status_code=204,
    responses={403: {"description": "Admin role required", "model": ErrorResponse}, **_NOT_FOUND},
    summary="Delete a task (Admin only)",
)
async def delete_task(
    task_id: int,
    request: Request,
    principal: Principal = Depends(require_role(ROLE_ADMIN)),
    tasks: TaskService = Depends(get_task_service),
    telemetry: TelemetryService = Depends(get_telemetry),
):
    if not await tasks.delete(task_id):
        return _not_found(request)
    telemetry.track_task_deleted(task_id, principal.user_id)
    return Response(status_code=204)

"""
Task Management API: Task Request/Response Schemas
==================================================

What:  Pydantic models defining the task API contract.
How:   Field names are snake_case in Python and camelCase on the wire
       (`isCompleted`, `dueDate`, ...). Both spellings are accepted on input.

Request models are deliberately permissive: they only enforce JSON shape
(types). Business constraints (lengths, whitespace, cross-field rules) are
evaluated by the validation engine so every failing rule is reported at
once.
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from taskmanager.models.task import TaskPriority

_CAMEL = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# ══════════════════════════════════════════════════════════════════════════
# Request Models
# ══════════════════════════════════════════════════════════════════════════


class CreateTaskRequest(BaseModel):
    """Body of POST /tasks."""

    model_config = _CAMEL

    title: Optional[str] = Field(default=None, description="3-100 chars, no surrounding spaces")
    description: Optional[str] = Field(default=None, description="Up to 500 chars")
    priority: int = Field(
        default=int(TaskPriority.MEDIUM),
        description="Low (1), Medium (2), High (3) or Critical (4)",
    )
    due_date: Optional[datetime] = Field(default=None, description="Must be in the future")


class UpdateTaskRequest(CreateTaskRequest):
    """Body of PUT /tasks/{id}; every field overwrites the stored value."""

    is_completed: bool = Field(default=False)


# ══════════════════════════════════════════════════════════════════════════
# Response Models
# ══════════════════════════════════════════════════════════════════════════


class TaskView(BaseModel):
    """
    Read-only projection of a stored task.

    Example:
        {
            "id": 7,
            "title": "Write release notes",
            "description": null,
            "isCompleted": false,
            "priority": 2,
            "createdAt": "2024-01-15T12:00:00Z",
            "updatedAt": null,
            "dueDate": null
        }
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )

    id: int
    title: str
    description: Optional[str] = None
    is_completed: bool
    priority: int = Field(ge=1, le=4)
    created_at: datetime
    updated_at: Optional[datetime] = None
    due_date: Optional[datetime] = None

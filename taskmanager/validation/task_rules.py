"""
Rule sets for task create and update payloads.

Create rules:
    title        required; 3-100 chars; no leading/trailing whitespace;
                 not whitespace-only
    description  ≤ 500 chars; not whitespace-only when present
    priority     one of Low (1), Medium (2), High (3), Critical (4)
    dueDate      strictly after "now" when present
    description  required when priority is Critical
    dueDate      required when priority is High or Critical

Update adds one whole-object rule (reported under "taskUpdate"): a task
being marked completed needs a non-blank title, and a non-blank description
when Critical.
"""

from typing import List, Union

from taskmanager.models.task import TaskPriority
from taskmanager.schemas.task import CreateTaskRequest, UpdateTaskRequest
from taskmanager.validation.engine import (
    Rule,
    Validator,
    as_utc,
    is_blank,
    length_between,
    max_length,
    no_surrounding_whitespace,
    not_only_whitespace,
)

TITLE_MIN = 3
TITLE_MAX = 100
DESCRIPTION_MAX = 500

_VALID_PRIORITIES = {int(p) for p in TaskPriority}

TaskPayload = Union[CreateTaskRequest, UpdateTaskRequest]


def _is_critical(p: TaskPayload) -> bool:
    return p.priority == TaskPriority.CRITICAL


def _needs_due_date(p: TaskPayload) -> bool:
    return p.priority in (TaskPriority.HIGH, TaskPriority.CRITICAL)


def _task_rules() -> List[Rule[TaskPayload]]:
    return [
        # ── Title ─────────────────────────────────────────────────────────
        Rule("title", "Task title is required",
             lambda p, now: not is_blank(p.title)),
        Rule("title", f"Title must be between {TITLE_MIN} and {TITLE_MAX} characters",
             lambda p, now: length_between(p.title, TITLE_MIN, TITLE_MAX)),
        Rule("title", "Title cannot have leading or trailing spaces",
             lambda p, now: no_surrounding_whitespace(p.title)),
        Rule("title", "Title cannot contain only whitespace characters",
             lambda p, now: not_only_whitespace(p.title)),
        # ── Description ───────────────────────────────────────────────────
        Rule("description", f"Description cannot exceed {DESCRIPTION_MAX} characters",
             lambda p, now: max_length(p.description, DESCRIPTION_MAX)),
        Rule("description", "Description cannot contain only whitespace characters",
             lambda p, now: not_only_whitespace(p.description),
             when=lambda p: bool(p.description)),
        # ── Priority ──────────────────────────────────────────────────────
        Rule("priority",
             "Invalid priority value. Must be Low (1), Medium (2), High (3), or Critical (4)",
             lambda p, now: p.priority in _VALID_PRIORITIES),
        # ── Due date ──────────────────────────────────────────────────────
        Rule("dueDate", "Due date must be in the future",
             lambda p, now: as_utc(p.due_date) > now,
             when=lambda p: p.due_date is not None),
        # ── Cross-field ───────────────────────────────────────────────────
        Rule("description", "Critical priority tasks must have a description",
             lambda p, now: not is_blank(p.description),
             when=_is_critical),
        Rule("dueDate", "High and Critical priority tasks should have a due date",
             lambda p, now: p.due_date is not None,
             when=_needs_due_date),
    ]


def _valid_completion(p: UpdateTaskRequest) -> bool:
    return not is_blank(p.title) and (not _is_critical(p) or not is_blank(p.description))


CREATE_TASK_RULES = _task_rules()

UPDATE_TASK_RULES = _task_rules() + [
    Rule("taskUpdate", "Invalid task update combination",
         lambda p, now: _valid_completion(p),
         when=lambda p: p.is_completed),
]

create_task_validator: Validator[CreateTaskRequest] = Validator(CREATE_TASK_RULES)
update_task_validator: Validator[UpdateTaskRequest] = Validator(UPDATE_TASK_RULES)

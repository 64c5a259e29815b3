"""
Task Management API: Declarative Validation Engine
==================================================

What:  Evaluates an ordered list of rules against one payload and collects
       every failure.
How:   A rule is (field, message, check, when). `when` is an optional guard
       over the payload; when it is false the rule is skipped entirely and
       can neither add an error nor block validity. `check` receives the
       payload and the evaluation instant ("now") so time-relative rules are
       deterministic under test.

Evaluation semantics:
    - every applicable rule runs (no stop-on-first-failure)
    - failures keep rule order; one field may collect several messages
    - "now" is sampled once per `validate` call

Example:
    rules = [
        Rule("title", "Task title is required", lambda p, now: bool(p.title)),
        Rule("dueDate", "Due date must be in the future",
             lambda p, now: p.due_date > now,
             when=lambda p: p.due_date is not None),
    ]
    result = Validator(rules).validate(payload)
    result.is_valid, result.to_dict()
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Callable, Dict, Generic, List, Optional, Sequence, Tuple, TypeVar

P = TypeVar("P")


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class Rule(Generic[P]):
    field: str
    message: str
    check: Callable[[P, datetime], bool]
    when: Optional[Callable[[P], bool]] = None

    def applies_to(self, payload: P) -> bool:
        return self.when is None or self.when(payload)


@dataclass
class ValidationResult:
    errors: List[Tuple[str, str]] = field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return not self.errors

    def add(self, field_name: str, message: str) -> None:
        self.errors.append((field_name, message))

    def messages_for(self, field_name: str) -> List[str]:
        return [message for name, message in self.errors if name == field_name]

    def to_dict(self) -> Dict[str, List[str]]:
        """Group messages by field: {"title": ["...", "..."], ...}."""
        grouped: Dict[str, List[str]] = {}
        for name, message in self.errors:
            grouped.setdefault(name, []).append(message)
        return grouped


class Validator(Generic[P]):
    """A fixed rule set bound to one payload shape."""

    def __init__(self, rules: Sequence[Rule[P]], clock: Callable[[], datetime] = utc_now):
        self._rules = tuple(rules)
        self._clock = clock

    @property
    def rules(self) -> Tuple[Rule[P], ...]:
        return self._rules

    def validate(self, payload: P, now: Optional[datetime] = None) -> ValidationResult:
        now = now or self._clock()
        result = ValidationResult()
        for rule in self._rules:
            if not rule.applies_to(payload):
                continue
            if not rule.check(payload, now):
                result.add(rule.field, rule.message)
        return result


# ── Shared string predicates ──────────────────────────────────────────────
# None-tolerant unless the name says otherwise, so "required" stays a
# separate rule with its own message.


def is_blank(value: Optional[str]) -> bool:
    """None, empty or whitespace-only."""
    return value is None or value.strip() == ""


def length_between(value: Optional[str], minimum: int, maximum: int) -> bool:
    return value is None or minimum <= len(value) <= maximum


def max_length(value: Optional[str], maximum: int) -> bool:
    return value is None or len(value) <= maximum


def min_length(value: Optional[str], minimum: int) -> bool:
    return value is None or len(value) >= minimum


def no_surrounding_whitespace(value: Optional[str]) -> bool:
    return not value or value == value.strip()


def not_only_whitespace(value: Optional[str]) -> bool:
    return not value or value.strip() != ""


def as_utc(value: datetime) -> datetime:
    """Naive datetimes are taken to be UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value

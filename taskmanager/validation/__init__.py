"""Declarative payload validation: the rule engine and the rule sets built on it."""

from taskmanager.validation.engine import Rule, ValidationResult, Validator
from taskmanager.validation.login_rules import login_validator
from taskmanager.validation.task_rules import create_task_validator, update_task_validator

__all__ = [
    "Rule",
    "ValidationResult",
    "Validator",
    "create_task_validator",
    "login_validator",
    "update_task_validator",
]

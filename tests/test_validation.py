"""
Task Management API: Validation Engine Tests
============================================

What:  Tests for the rule engine and the task/login rule sets.
How:   Pure unit tests; "now" is pinned so due-date rules are deterministic.

What we test:
    ✅ Title, description, priority and due date rules
    ✅ Cross-field rules for Critical and High priorities
    ✅ Update-only completion rule
    ✅ Login username / password rules
    ✅ Every failure is collected; guarded rules are skipped cleanly
"""

from datetime import datetime, timedelta, timezone

import pytest

from taskmanager.schemas.auth import LoginRequest
from taskmanager.schemas.task import CreateTaskRequest, UpdateTaskRequest
from taskmanager.validation import (
    Rule,
    Validator,
    create_task_validator,
    login_validator,
    update_task_validator,
)

NOW = datetime(2025, 6, 1, 12, 0, tzinfo=timezone.utc)


def create(**fields) -> CreateTaskRequest:
    fields.setdefault("title", "Valid title")
    return CreateTaskRequest(**fields)


def errors_for(payload, validator=create_task_validator):
    return validator.validate(payload, now=NOW).to_dict()


class TestRuleEngine:
    """Engine semantics independent of any rule set."""

    def test_collects_every_failure(self):
        rules = [
            Rule("a", "first", lambda p, now: False),
            Rule("a", "second", lambda p, now: False),
            Rule("b", "third", lambda p, now: True),
        ]
        result = Validator(rules).validate(object(), now=NOW)
        assert not result.is_valid
        assert result.errors == [("a", "first"), ("a", "second")]
        assert result.to_dict() == {"a": ["first", "second"]}

    def test_guarded_rule_is_skipped_when_condition_false(self):
        checked = []

        def check(p, now):
            checked.append(p)
            return False

        rules = [Rule("x", "never", check, when=lambda p: False)]
        result = Validator(rules).validate("payload", now=NOW)
        assert result.is_valid
        assert checked == []

    def test_clock_is_used_when_now_not_given(self):
        seen = []
        rules = [Rule("t", "m", lambda p, now: seen.append(now) or True)]
        Validator(rules, clock=lambda: NOW).validate(None)
        assert seen == [NOW]


class TestTitleRules:

    @pytest.mark.parametrize("title", ["", "a", "ab"])
    def test_short_titles_fail(self, title):
        assert "title" in errors_for(create(title=title))

    @pytest.mark.parametrize("length", [3, 100])
    def test_boundary_lengths_pass(self, length):
        assert errors_for(create(title="x" * length)) == {}

    def test_title_over_100_fails(self):
        errors = errors_for(create(title="x" * 101))
        assert errors["title"] == ["Title must be between 3 and 100 characters"]

    def test_missing_title_is_required(self):
        errors = errors_for(CreateTaskRequest())
        assert "Task title is required" in errors["title"]

    @pytest.mark.parametrize("title", [" Leading", "Trailing ", " both "])
    def test_surrounding_whitespace_fails(self, title):
        errors = errors_for(create(title=title))
        assert "Title cannot have leading or trailing spaces" in errors["title"]

    def test_whitespace_only_title_reports_all_failures(self):
        errors = errors_for(create(title="    "))
        assert errors["title"] == [
            "Task title is required",
            "Title cannot have leading or trailing spaces",
            "Title cannot contain only whitespace characters",
        ]


class TestDescriptionRules:

    def test_description_is_optional(self):
        assert errors_for(create(description=None)) == {}

    def test_description_over_500_fails(self):
        errors = errors_for(create(description="d" * 501))
        assert errors["description"] == ["Description cannot exceed 500 characters"]

    def test_description_of_500_passes(self):
        assert errors_for(create(description="d" * 500)) == {}

    def test_whitespace_only_description_fails(self):
        errors = errors_for(create(description="   "))
        assert errors["description"] == ["Description cannot contain only whitespace characters"]


class TestPriorityAndDueDate:

    @pytest.mark.parametrize("priority", [0, 5, -1])
    def test_out_of_range_priority_fails(self, priority):
        assert "priority" in errors_for(create(priority=priority))

    def test_due_date_in_future_passes(self):
        assert errors_for(create(due_date=NOW + timedelta(minutes=1))) == {}

    @pytest.mark.parametrize("offset", [timedelta(0), timedelta(days=-1)])
    def test_due_date_now_or_past_fails(self, offset):
        errors = errors_for(create(due_date=NOW + offset))
        assert errors["dueDate"] == ["Due date must be in the future"]

    def test_naive_due_date_is_treated_as_utc(self):
        naive = (NOW + timedelta(hours=1)).replace(tzinfo=None)
        assert errors_for(create(due_date=naive)) == {}

    def test_critical_without_description_fails(self):
        errors = errors_for(create(priority=4, due_date=NOW + timedelta(days=1)))
        assert errors == {"description": ["Critical priority tasks must have a description"]}

    def test_critical_with_description_passes(self):
        payload = create(priority=4, description="Why", due_date=NOW + timedelta(days=1))
        assert errors_for(payload) == {}

    def test_high_without_due_date_fails(self):
        errors = errors_for(create(priority=3))
        assert errors == {"dueDate": ["High and Critical priority tasks should have a due date"]}

    def test_high_with_future_due_date_passes(self):
        assert errors_for(create(priority=3, due_date=NOW + timedelta(days=2))) == {}

    def test_low_priority_skips_cross_field_rules(self):
        assert errors_for(create(priority=1)) == {}


class TestUpdateRules:

    def test_completing_critical_task_without_description_fails_both_rules(self):
        payload = UpdateTaskRequest(
            title="Ship it", priority=4, due_date=NOW + timedelta(days=1), is_completed=True
        )
        errors = errors_for(payload, update_task_validator)
        assert errors["description"] == ["Critical priority tasks must have a description"]
        assert errors["taskUpdate"] == ["Invalid task update combination"]

    def test_incomplete_update_skips_completion_rule(self):
        payload = UpdateTaskRequest(title="Ship it", is_completed=False)
        assert errors_for(payload, update_task_validator) == {}

    def test_valid_completion_passes(self):
        payload = UpdateTaskRequest(title="Ship it", is_completed=True)
        assert errors_for(payload, update_task_validator) == {}


class TestLoginRules:

    def login(self, username, password="123456"):
        return errors_for(LoginRequest(username=username, password=password), login_validator)

    @pytest.mark.parametrize("username", ["test@example.com", "john_doe", "a-b", "first.last@sub.example.org"])
    def test_valid_usernames(self, username):
        assert self.login(username) == {}

    def test_two_character_username_fails(self):
        assert "username" in self.login("ab")

    def test_long_email_passes_through_email_branch(self):
        email = "a.very.long.mailbox.name@example.com"
        assert len(email) > 20
        assert self.login(email) == {}

    def test_long_handle_fails_format(self):
        errors = self.login("h" * 21)
        assert len(errors["username"]) == 1
        assert errors["username"][0].startswith("Username must be a valid username")

    def test_handle_with_spaces_fails(self):
        assert "username" in self.login("john doe")

    def test_password_of_five_fails(self):
        errors = self.login("john", "12345")
        assert errors == {"password": ["Password must be at least 6 characters long"]}

    def test_password_of_six_passes(self):
        assert self.login("john", "123456") == {}

    def test_empty_payload_reports_both_fields(self):
        errors = errors_for(LoginRequest(), login_validator)
        assert "Username is required" in errors["username"]
        assert errors["password"] == ["Password is required"]

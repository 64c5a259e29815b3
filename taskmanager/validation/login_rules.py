"""
Rule set for the login payload.

username  required; 3-50 chars; an email address OR a handle of 3-20
          letters, digits, underscores or hyphens
password  required; at least 6 chars (no upper bound, no complexity rule)

The 50-char bound is wider than the handle pattern's 20: long email
addresses pass through the email branch.
"""

import re
from typing import Optional

from taskmanager.schemas.auth import LoginRequest
from taskmanager.validation.engine import Rule, Validator, is_blank, length_between, min_length

EMAIL_PATTERN = re.compile(r"[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}", re.IGNORECASE)
HANDLE_PATTERN = re.compile(r"[a-zA-Z0-9_-]{3,20}")

USERNAME_MIN = 3
USERNAME_MAX = 50
PASSWORD_MIN = 6


def is_username_or_email(value: Optional[str]) -> bool:
    if is_blank(value):
        return False
    return bool(EMAIL_PATTERN.fullmatch(value) or HANDLE_PATTERN.fullmatch(value))


LOGIN_RULES = [
    Rule("username", "Username is required",
         lambda p, now: not is_blank(p.username)),
    Rule("username", f"Username must be between {USERNAME_MIN} and {USERNAME_MAX} characters",
         lambda p, now: length_between(p.username, USERNAME_MIN, USERNAME_MAX)),
    Rule("username",
         "Username must be a valid username (3-20 alphanumeric characters, underscores, "
         "or hyphens) or a valid email address",
         lambda p, now: is_username_or_email(p.username)),
    Rule("password", "Password is required",
         lambda p, now: not is_blank(p.password)),
    Rule("password", f"Password must be at least {PASSWORD_MIN} characters long",
         lambda p, now: min_length(p.password, PASSWORD_MIN)),
]

login_validator: Validator[LoginRequest] = Validator(LOGIN_RULES)

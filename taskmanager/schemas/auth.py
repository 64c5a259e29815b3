"""Login request/response schemas."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class LoginRequest(BaseModel):
    """
    Body of POST /auth/login.

    Both fields are optional at the schema level; "required" is one of the
    login validation rules so it is reported together with the others.
    """

    username: Optional[str] = Field(default=None, description="Handle or email address")
    password: Optional[str] = Field(default=None, description="At least 6 characters")


class LoginResponse(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    token: str = Field(description="Signed HS256 bearer token")
    expiration: datetime = Field(description="When the token stops being accepted (UTC)")
    username: str
    role: str

"""
Pydantic schemas for User-related requests and responses.

These schemas control what user data crosses the API boundary.
password_hash is NEVER included in any response schema, and the API key is
only returned to its owner (registration, login, /users/me, key rotation).
"""

import uuid
from datetime import datetime
from typing import Annotated, Literal

from pydantic import BaseModel, ConfigDict, Field, StringConstraints

from taskmanager.auth.rbac import Role

# Starts with a letter, ends with a letter or digit, 3-25 characters total
USERNAME_PATTERN = r"^[a-zA-Z][a-zA-Z0-9_]{1,23}[a-zA-Z0-9]$"

# Usernames are trimmed; passwords are taken exactly as sent
Username = Annotated[str, StringConstraints(strip_whitespace=True, pattern=USERNAME_PATTERN)]

Gender = Literal["male", "female", "other", "prefer_not_to_say"]


class UserCreateRequest(BaseModel):
    """Request body for POST /users."""
    username: Username
    # Strength is checked by the service so the message can list every gap
    password: str
    age: int | None = Field(default=None, ge=13, le=120)
    gender: Gender | None = None
    organization_id: uuid.UUID | None = None


class UserUpdateRequest(BaseModel):
    """Request body for PUT /users/me. Omitted fields are left unchanged."""
    model_config = ConfigDict(str_strip_whitespace=True)

    username: str | None = Field(default=None, pattern=USERNAME_PATTERN)
    age: int | None = Field(default=None, ge=13, le=120)
    gender: Gender | None = None


class PasswordChangeRequest(BaseModel):
    """Request body for PUT /users/me/password."""
    current_password: str = Field(min_length=1)
    new_password: str


class RoleUpdateRequest(BaseModel):
    """Request body for PUT /admin/users/{user_id}/role."""
    role: Role


class UserResponse(BaseModel):
    """Public representation of a User (never includes the password hash)."""
    id: uuid.UUID
    username: str
    role: str
    age: int | None = None
    gender: str | None = None
    organization_id: uuid.UUID | None = None
    organization_name: str | None = None
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class UserWithKeyResponse(UserResponse):
    """A User as seen by its owner, including the API key."""
    api_key: str

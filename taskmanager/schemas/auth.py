"""
Pydantic schemas for the login and API key endpoints.
"""

from typing import Annotated

from pydantic import BaseModel, Field, StringConstraints

from taskmanager.schemas.user import UserWithKeyResponse


class LoginRequest(BaseModel):
    """Request body for POST /login."""
    username: Annotated[str, StringConstraints(strip_whitespace=True, min_length=1)]
    password: str = Field(min_length=1)


class LoginResponse(BaseModel):
    """
    Response body for a successful login.

    The API key is what the client sends on every later request:

        Authorization: APIKEY <api_key>
    """
    api_key: str
    user: UserWithKeyResponse


class ApiKeyResponse(BaseModel):
    """Response body for POST /users/me/api-key."""
    api_key: str

"""
Pydantic schemas for Task endpoints.

Titles are letters, digits, and whitespace only; descriptions may also use
basic punctuation (. , ! ? -). Both are trimmed before validation.
"""

import uuid
from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

TITLE_PATTERN = r"^[a-zA-Z0-9\s]+$"
DESCRIPTION_PATTERN = r"^[a-zA-Z0-9\s.,!?-]*$"

MAX_TITLE_LENGTH = 255
MAX_DESCRIPTION_LENGTH = 2255

DEFAULT_SEARCH_LIMIT = 10
MAX_SEARCH_LIMIT = 100


class TaskCreateRequest(BaseModel):
    """Request body for POST /tasks."""
    model_config = ConfigDict(str_strip_whitespace=True)

    title: str = Field(min_length=1, max_length=MAX_TITLE_LENGTH, pattern=TITLE_PATTERN)
    description: str = Field(
        default="",
        max_length=MAX_DESCRIPTION_LENGTH,
        pattern=DESCRIPTION_PATTERN,
    )


class TaskUpdateRequest(TaskCreateRequest):
    """Request body for PUT /tasks/{task_id}."""
    is_completed: bool | None = None


class TaskCompletionRequest(BaseModel):
    """Request body for PATCH /tasks/{task_id}/completion."""
    is_completed: bool


class TaskResponse(BaseModel):
    """Public representation of a task."""
    id: uuid.UUID
    title: str
    description: str
    is_completed: bool
    user_id: uuid.UUID
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)

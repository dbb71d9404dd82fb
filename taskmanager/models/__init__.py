"""
SQLAlchemy ORM models package.

All models are imported here so that:
  1. Base.metadata knows every table before create_all() runs
  2. String-based relationship targets ("User", "Task", ...) resolve
"""

from taskmanager.models.organization import Organization  # noqa: F401
from taskmanager.models.user import User  # noqa: F401
from taskmanager.models.task import Task  # noqa: F401

"""
Custom exception classes and FastAPI exception handlers.

Why custom exceptions?
  FastAPI's default HTTPException works, but custom exceptions let the
  auth and service layers raise domain-specific errors (like
  InvalidCredential) without importing HTTP concepts. The handlers
  registered here translate them into HTTP responses.

  This separation means:
    - Auth and service code is testable without HTTP
    - Error responses are consistent across all endpoints
    - Adding new error types is straightforward

Every error response has the same JSON shape:

    {"error": "<message>", "error_type": "<kind>"}

Exception hierarchy:
    TaskAPIError (base)
    ├── AuthenticationError (401)
    │   ├── MissingCredential      — no Authorization header
    │   ├── MalformedCredential    — header not "APIKEY <token>"
    │   ├── InvalidCredential      — unknown key, unknown user, wrong password
    │   └── Unauthenticated        — handler reached without a resolved identity
    ├── Forbidden (403)            — role or permission check failed
    │   └── UnknownRole            — role missing from the permission table
    ├── PasswordHashError (500)
    │   ├── InvalidHashFormat      — stored hash does not parse
    │   └── IncompatibleVersion    — stored hash uses another Argon2 version
    ├── CryptoFailure (500)        — secure randomness unavailable
    ├── InvalidRequestError (400)
    │   └── WeakPasswordError      — password fails the strength policy
    ├── NotFoundError (404)
    │   ├── UserNotFoundError
    │   ├── TaskNotFoundError
    │   └── OrganizationNotFoundError
    └── DuplicateUsernameError (409)

Information leakage:
  MalformedCredential and InvalidCredential share the public message
  "invalid API key" so a caller cannot probe which keys are syntactically
  valid. Login failures share "invalid username or password" whether the
  username exists or not. The precise reason is kept on the exception's
  `reason` attribute for logging only.
"""

import logging
import uuid

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger(__name__)

INVALID_API_KEY_MESSAGE = "invalid API key"
INVALID_LOGIN_MESSAGE = "invalid username or password"


# ---------------------------------------------------------------------------
# Base exception
# ---------------------------------------------------------------------------

class TaskAPIError(Exception):
    """Base exception for all Task Manager API domain errors."""

    status_code = 500
    error_type = "internal_error"

    def __init__(self, detail: str = "An error occurred"):
        self.detail = detail
        super().__init__(self.detail)


# ---------------------------------------------------------------------------
# Authentication (401)
# ---------------------------------------------------------------------------

class AuthenticationError(TaskAPIError):
    """A request could not be tied to a caller."""

    status_code = 401
    error_type = "unauthorized"


class MissingCredential(AuthenticationError):
    """Raised when the Authorization header is absent or blank."""

    error_type = "missing_credential"

    def __init__(self):
        super().__init__("missing authorization header")


class MalformedCredential(AuthenticationError):
    """Raised when the Authorization header is not "APIKEY <token>"."""

    error_type = "invalid_credential"

    def __init__(self, reason: str = "header does not match the APIKEY scheme"):
        self.reason = reason
        super().__init__(INVALID_API_KEY_MESSAGE)


class InvalidCredential(AuthenticationError):
    """
    Raised when a credential does not resolve to a user.

    Attributes:
        reason: Internal explanation for logs (never sent to the client).
    """

    error_type = "invalid_credential"

    def __init__(self, detail: str = INVALID_API_KEY_MESSAGE, reason: str = ""):
        self.reason = reason
        super().__init__(detail)

    @classmethod
    def for_login(cls, reason: str) -> "InvalidCredential":
        return cls(INVALID_LOGIN_MESSAGE, reason=reason)


class Unauthenticated(AuthenticationError):
    """Raised when a handler asks for an identity that was never attached."""

    def __init__(self):
        super().__init__("unauthorized access, please provide a valid API key")


# ---------------------------------------------------------------------------
# Authorization (403)
# ---------------------------------------------------------------------------

class Forbidden(TaskAPIError):
    """Raised when the caller's role or permissions do not allow the action."""

    status_code = 403
    error_type = "forbidden"

    def __init__(self, detail: str = "forbidden: insufficient permissions"):
        super().__init__(detail)


class UnknownRole(Forbidden):
    """Raised when a role has no entry in the permission table."""

    def __init__(self, role: str):
        self.role = role
        super().__init__()


# ---------------------------------------------------------------------------
# Password hashing
# ---------------------------------------------------------------------------

class PasswordHashError(TaskAPIError):
    """A stored password hash cannot be used for verification."""

    error_type = "password_hash_error"


class InvalidHashFormat(PasswordHashError):
    """Raised when an encoded hash does not have the expected structure."""

    def __init__(self, reason: str = "invalid hash format"):
        self.reason = reason
        super().__init__("invalid hash format")


class IncompatibleVersion(PasswordHashError):
    """Raised when an encoded hash was produced by another Argon2 version."""

    def __init__(self, version: int):
        self.version = version
        super().__init__("incompatible version of argon2")


class CryptoFailure(TaskAPIError):
    """Raised when the operating system cannot supply secure random bytes."""

    error_type = "internal_error"

    def __init__(self):
        super().__init__("internal server error, please try again later")


# ---------------------------------------------------------------------------
# Request / resource errors
# ---------------------------------------------------------------------------

class InvalidRequestError(TaskAPIError):
    """Raised when a request is well-formed JSON but breaks a business rule."""

    status_code = 400
    error_type = "invalid_request"


class WeakPasswordError(InvalidRequestError):
    """Raised when a password fails the strength policy."""

    error_type = "weak_password"


class NotFoundError(TaskAPIError):
    status_code = 404
    error_type = "not_found"


class UserNotFoundError(NotFoundError):
    def __init__(self, user_id: uuid.UUID):
        self.user_id = user_id
        super().__init__(f"User {user_id} not found")


class TaskNotFoundError(NotFoundError):
    def __init__(self, task_id: uuid.UUID):
        self.task_id = task_id
        super().__init__("task not found")


class OrganizationNotFoundError(NotFoundError):
    def __init__(self, organization_id: uuid.UUID):
        self.organization_id = organization_id
        super().__init__("organization not found")


class DuplicateUsernameError(TaskAPIError):
    """Raised when attempting to register or rename to a taken username."""

    status_code = 409  # Conflict — the resource already exists
    error_type = "duplicate_username"

    def __init__(self, username: str):
        self.username = username
        super().__init__(f"username {username} is already taken")


# ---------------------------------------------------------------------------
# FastAPI exception handlers
# ---------------------------------------------------------------------------

def error_response(
    status_code: int,
    message: str,
    error_type: str,
    headers: dict[str, str] | None = None,
) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"error": message, "error_type": error_type},
        headers=headers,
    )


def register_exception_handlers(app: FastAPI) -> None:
    """
    Register custom exception handlers with the FastAPI application.

    Each handler maps an exception family to its HTTP status code and the
    shared {"error": ..., "error_type": ...} body.

    This is called once during app startup in main.py.
    """

    @app.exception_handler(AuthenticationError)
    async def authentication_error_handler(
        request: Request, exc: AuthenticationError
    ) -> JSONResponse:
        return error_response(
            exc.status_code,
            exc.detail,
            exc.error_type,
            headers={"WWW-Authenticate": "APIKEY"},
        )

    @app.exception_handler(Forbidden)
    async def forbidden_handler(request: Request, exc: Forbidden) -> JSONResponse:
        # UnknownRole is deliberately indistinguishable from Forbidden here
        return error_response(exc.status_code, exc.detail, Forbidden.error_type)

    @app.exception_handler(CryptoFailure)
    async def crypto_failure_handler(
        request: Request, exc: CryptoFailure
    ) -> JSONResponse:
        logger.critical("secure randomness unavailable; refusing %s %s",
                        request.method, request.url.path)
        return error_response(exc.status_code, exc.detail, exc.error_type)

    @app.exception_handler(PasswordHashError)
    async def password_hash_error_handler(
        request: Request, exc: PasswordHashError
    ) -> JSONResponse:
        logger.error("unusable password hash reached %s: %s", request.url.path, exc)
        return error_response(
            500, "internal server error, please try again later", "internal_error"
        )

    @app.exception_handler(TaskAPIError)
    async def task_api_error_handler(
        request: Request, exc: TaskAPIError
    ) -> JSONResponse:
        return error_response(exc.status_code, exc.detail, exc.error_type)

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(
        request: Request, exc: StarletteHTTPException
    ) -> JSONResponse:
        return error_response(
            exc.status_code, str(exc.detail), "http_error", headers=exc.headers
        )

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        messages = []
        for error in exc.errors():
            field = ".".join(str(part) for part in error["loc"] if part != "body")
            messages.append(f"{field}: {error['msg']}" if field else error["msg"])
        return error_response(422, "; ".join(messages), "validation_error")

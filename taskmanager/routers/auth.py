"""
Authentication router — password login.

Together with POST /users (registration) this is the only public
(unauthenticated) endpoint that touches user data. Everything else
requires an API key.

Endpoints:
  POST /login  — Exchange username + password for the user's API key

Security audit notes:
  - Plaintext passwords exist only in memory during request processing;
    they are never logged.
  - "unknown username" and "wrong password" produce the same 401 body.
  - No request body logging middleware is installed, so POST bodies
    containing passwords are not written to any log file.
"""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from taskmanager.database import get_db
from taskmanager.schemas.auth import LoginRequest, LoginResponse
from taskmanager.schemas.user import UserWithKeyResponse
from taskmanager.services import auth_service

router = APIRouter()


@router.post(
    "/login",
    response_model=LoginResponse,
    summary="Authenticate and get the API key",
)
async def login(
    request: LoginRequest,
    db: AsyncSession = Depends(get_db),
):
    """
    Authenticate with username and password.

    Returns the user's API key, which must be included in the Authorization
    header for all subsequent requests:

        Authorization: APIKEY <api_key>
    """
    user = await auth_service.login(
        db=db,
        username=request.username,
        password=request.password,
    )
    return LoginResponse(
        api_key=user.api_key,
        user=UserWithKeyResponse.model_validate(user),
    )

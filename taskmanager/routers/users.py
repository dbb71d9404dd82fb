"""
Users router — registration and self-service profile endpoints.

Endpoints:
  POST /users                — Register (public)
  GET  /users/me             — Current user's profile and API key
  PUT  /users/me             — Update username, age, gender
  PUT  /users/me/password    — Change password (requires the current one)
  POST /users/me/api-key     — Rotate the API key
"""

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from taskmanager.auth.identity import Identity
from taskmanager.database import get_db
from taskmanager.dependencies import get_current_identity
from taskmanager.schemas.auth import ApiKeyResponse
from taskmanager.schemas.user import (
    PasswordChangeRequest,
    UserCreateRequest,
    UserUpdateRequest,
    UserWithKeyResponse,
)
from taskmanager.services import user_service

router = APIRouter()


@router.post(
    "",
    response_model=UserWithKeyResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Register a new user",
)
async def register(
    request: UserCreateRequest,
    db: AsyncSession = Depends(get_db),
):
    """
    Register a new user with the "user" role.

    - **username**: 3-25 characters, starts with a letter, letters/digits/underscore
    - **password**: at least 8 characters with upper, lower, digit, and special character
    - **age** / **gender** / **organization_id**: optional

    The response includes the API key, so the new user can make
    authenticated requests immediately.
    """
    return await user_service.register_user(
        db=db,
        username=request.username,
        password=request.password,
        age=request.age,
        gender=request.gender,
        organization_id=request.organization_id,
    )


@router.get(
    "/me",
    response_model=UserWithKeyResponse,
    summary="Get current user's profile",
)
async def get_me(
    identity: Identity = Depends(get_current_identity),
    db: AsyncSession = Depends(get_db),
):
    return await user_service.get_user(db, identity.id)


@router.put(
    "/me",
    response_model=UserWithKeyResponse,
    summary="Update profile fields",
)
async def update_me(
    updates: UserUpdateRequest,
    identity: Identity = Depends(get_current_identity),
    db: AsyncSession = Depends(get_db),
):
    """
    Update the authenticated user's profile.

    Only provided fields are updated — omitted fields remain unchanged.
    Role and organization cannot be changed here.
    """
    return await user_service.update_profile(
        db, identity.id, updates.model_dump(exclude_unset=True)
    )


@router.put(
    "/me/password",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Change password",
)
async def change_password(
    request: PasswordChangeRequest,
    identity: Identity = Depends(get_current_identity),
    db: AsyncSession = Depends(get_db),
):
    await user_service.change_password(
        db, identity, request.current_password, request.new_password
    )


@router.post(
    "/me/api-key",
    response_model=ApiKeyResponse,
    summary="Rotate API key",
)
async def rotate_api_key(
    identity: Identity = Depends(get_current_identity),
    db: AsyncSession = Depends(get_db),
):
    """Issue a new API key. The old key is rejected from the next request on."""
    user = await user_service.rotate_api_key(db, identity.id)
    return ApiKeyResponse(api_key=user.api_key)

"""
BookWorm Backend — Profile Route Handlers
===========================================

What:  GET /user-data, PUT /update-user and PUT /update-password.
Who:   Called by the frontend account page. All require a bearer token.
"""

import logging

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from bookworm.database import DBSession
from bookworm.dependencies import get_user_service, require_auth
from bookworm.schemas.auth import (
    PasswordChangeRequest,
    UpdateUserRequest,
    UserProfile,
    UserProfileResponse,
)
from bookworm.schemas.common import Envelope, ErrorResponse
from bookworm.security import TokenClaims
from bookworm.services.user_service import UserService

logger = logging.getLogger(__name__)

router = APIRouter(
    tags=["Profile"],
    dependencies=[DBSession, Depends(require_auth)],
    responses={401: {"description": "Missing, invalid or expired token", "model": ErrorResponse}},
)


@router.get("/user-data", response_model=UserProfileResponse, summary="Return the caller's profile")
async def user_data(
    db: AsyncSession = DBSession,
    claims: TokenClaims = Depends(require_auth),
    users: UserService = Depends(get_user_service),
) -> UserProfileResponse:
    user = await users.get_profile(db, claims)
    return UserProfileResponse(
        message="User data successfully returned",
        data=UserProfile.model_validate(user),
    )


@router.put(
    "/update-user",
    response_model=UserProfileResponse,
    responses={400: {"description": "Invalid value or username taken", "model": ErrorResponse}},
    summary="Change one profile attribute",
)
async def update_user(
    body: UpdateUserRequest,
    db: AsyncSession = DBSession,
    claims: TokenClaims = Depends(require_auth),
    users: UserService = Depends(get_user_service),
) -> UserProfileResponse:
    user = await users.update_profile(db, claims, body.attribute, body.value)
    return UserProfileResponse(
        message="User updated successfully",
        data=UserProfile.model_validate(user),
    )


@router.put("/update-password", response_model=Envelope, summary="Change the caller's password")
async def update_password(
    body: PasswordChangeRequest,
    db: AsyncSession = DBSession,
    claims: TokenClaims = Depends(require_auth),
    users: UserService = Depends(get_user_service),
) -> Envelope:
    await users.change_password(db, claims, body.old_password, body.new_password)
    return Envelope(message="Password updated successfully")

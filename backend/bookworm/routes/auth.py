"""
BookWorm Backend — Account Route Handlers
===========================================

What:  POST /register, POST /log-in and GET /log-out. All public.

Log-out is a stateless acknowledgement: tokens are not revoked server-side,
the client discards its copy.
"""

import logging

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from bookworm.database import DBSession
from bookworm.dependencies import get_user_service
from bookworm.schemas.auth import LoginRequest, RegisterRequest, TokenEnvelope
from bookworm.schemas.common import Envelope, ErrorResponse
from bookworm.services.user_service import UserService

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Account"])


@router.post(
    "/register",
    response_model=TokenEnvelope,
    responses={
        400: {"description": "Email or username already in use", "model": ErrorResponse},
        422: {"description": "Malformed body", "model": ErrorResponse},
    },
    summary="Create an account and receive a session token",
)
async def register(
    body: RegisterRequest,
    db: AsyncSession = DBSession,
    users: UserService = Depends(get_user_service),
) -> TokenEnvelope:
    token = await users.register(db, body)
    return TokenEnvelope(message="Registration successful.", jwt=token, data={"jwt": token})


@router.post(
    "/log-in",
    response_model=TokenEnvelope,
    responses={
        401: {"description": "Password is wrong", "model": ErrorResponse},
        404: {"description": "Email not found", "model": ErrorResponse},
    },
    summary="Exchange email and password for a session token",
)
async def log_in(
    body: LoginRequest,
    db: AsyncSession = DBSession,
    users: UserService = Depends(get_user_service),
) -> TokenEnvelope:
    token = await users.login(db, body.email, body.password)
    return TokenEnvelope(message="Log-in successful.", jwt=token, data={"jwt": token})


@router.get("/log-out", response_model=Envelope, summary="Acknowledge sign-out")
async def log_out() -> Envelope:
    return Envelope(message="Successfully signed out.")

"""
BookWorm Backend — Request Dependencies and the Auth Gate
===========================================================

What:  FastAPI dependencies that fetch app-wide services from app.state and
       authenticate bearer tokens on protected routes.
Who:   Protected routers declare
           dependencies=[DBSession, Depends(require_auth)]
       so every request acquires its database session first, then passes
       the gate, then reaches exactly one handler.

Auth Gate state machine:
    Unauthenticated ──header "Bearer <token>"──▶ TokenPresent
    Unauthenticated ──missing / other scheme──▶ Rejected (401)
    TokenPresent ──TokenCodec.verify ok──▶ Authenticated (claims on request.state)
    TokenPresent ──InvalidToken / ExpiredToken──▶ Rejected (401)
    Any other error during verification propagates (→ 500).
"""

import logging
from typing import Optional

from fastapi import Depends, Header, Request

from bookworm.exceptions import MissingCredentials
from bookworm.security import TokenClaims, TokenCodec
from bookworm.services.book_search_service import BookSearchService
from bookworm.services.user_service import UserService

logger = logging.getLogger(__name__)

BEARER_SCHEME = "Bearer"


def get_token_codec(request: Request) -> TokenCodec:
    return request.app.state.token_codec


def get_user_service(request: Request) -> UserService:
    return request.app.state.user_service


def get_book_search_service(request: Request) -> BookSearchService:
    return request.app.state.book_search


def parse_bearer_token(authorization: Optional[str]) -> str:
    """
    Extract the token from an `Authorization: Bearer <token>` header value.

    Raises:
        MissingCredentials: Header absent, scheme not "Bearer", or no token.
    """
    if not authorization:
        raise MissingCredentials("Invalid authorization, no authorization headers")
    scheme, _, token = authorization.strip().partition(" ")
    if scheme != BEARER_SCHEME:
        raise MissingCredentials("Invalid authorization, invalid authorization scheme")
    token = token.strip()
    if not token:
        raise MissingCredentials("Invalid authorization, no bearer token provided")
    return token


async def require_auth(
    request: Request,
    authorization: Optional[str] = Header(default=None),
    codec: TokenCodec = Depends(get_token_codec),
) -> TokenClaims:
    """
    Authenticate the request and attach the decoded claims to request.state.

    Raises:
        MissingCredentials, InvalidToken, ExpiredToken: all answered with 401
    """
    token = parse_bearer_token(authorization)
    claims = codec.verify(token)
    request.state.claims = claims
    logger.debug("Authenticated user id=%d for %s", claims.user_id, request.url.path)
    return claims

"""
BookWorm Backend — Book List Route Handlers
=============================================

What:  Add to, read and delete from the caller's favorites, wishlist and
       finished-reading lists.
Who:   Called by the frontend search results and shelf pages.

Every route here sits behind the auth gate; the owner email is read from
the verified token claims only.
"""

import logging

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from bookworm.database import DBSession
from bookworm.dependencies import require_auth
from bookworm.schemas.books import (
    AddToListRequest,
    DeleteResponse,
    DeleteResult,
    ListKind,
    ListKindField,
    SavedBookCreatedResponse,
    SavedBookListResponse,
    SavedBookResponse,
)
from bookworm.schemas.common import ErrorResponse
from bookworm.security import TokenClaims
from bookworm.services.list_service import list_service

logger = logging.getLogger(__name__)

router = APIRouter(
    tags=["Lists"],
    dependencies=[DBSession, Depends(require_auth)],
    responses={401: {"description": "Missing, invalid or expired token", "model": ErrorResponse}},
)

_LIST_MESSAGES = {
    ListKind.FAVORITES: "Favorites successfully returned",
    ListKind.WISHLIST: "List of books planned to read successfully returned",
    ListKind.FINISHED: "Previously read books successfully returned",
}


async def _list_response(db: AsyncSession, claims: TokenClaims, kind: ListKind) -> SavedBookListResponse:
    books = await list_service.list_books(db, claims.email, kind)
    return SavedBookListResponse(
        message=_LIST_MESSAGES[kind],
        data=[SavedBookResponse.model_validate(book) for book in books],
    )


@router.post(
    "/add-to-list",
    response_model=SavedBookCreatedResponse,
    summary="File a book into one of the caller's lists",
)
async def add_to_list(
    body: AddToListRequest,
    db: AsyncSession = DBSession,
    claims: TokenClaims = Depends(require_auth),
) -> SavedBookCreatedResponse:
    entry = body.data
    book = await list_service.add(db, claims.email, entry.table, entry)
    return SavedBookCreatedResponse(
        message=f"Book successfully added to {entry.table.value}",
        data=SavedBookResponse.model_validate(book),
    )


@router.get("/fav-books", response_model=SavedBookListResponse, summary="List favorite books")
async def fav_books(
    db: AsyncSession = DBSession,
    claims: TokenClaims = Depends(require_auth),
) -> SavedBookListResponse:
    return await _list_response(db, claims, ListKind.FAVORITES)


@router.get("/wishlist", response_model=SavedBookListResponse, summary="List wishlist books")
async def wishlist(
    db: AsyncSession = DBSession,
    claims: TokenClaims = Depends(require_auth),
) -> SavedBookListResponse:
    return await _list_response(db, claims, ListKind.WISHLIST)


@router.get("/finished-books", response_model=SavedBookListResponse, summary="List finished books")
async def finished_books(
    db: AsyncSession = DBSession,
    claims: TokenClaims = Depends(require_auth),
) -> SavedBookListResponse:
    return await _list_response(db, claims, ListKind.FINISHED)


@router.delete(
    "/delete",
    response_model=DeleteResponse,
    summary="Remove a book from one of the caller's lists",
    description="Idempotent: succeeds even when the book is not on the list.",
)
async def delete_from_list(
    identifier: str = Query(..., min_length=1, max_length=255),
    table: ListKindField = Query(..., description="favorites, wishlist or finished-reading"),
    db: AsyncSession = DBSession,
    claims: TokenClaims = Depends(require_auth),
) -> DeleteResponse:
    deleted = await list_service.delete(db, claims.email, table, identifier)
    return DeleteResponse(
        message="Book successfully deleted",
        data=DeleteResult(identifier=identifier, table=table, deleted=deleted),
    )

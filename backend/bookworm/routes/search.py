"""
BookWorm Backend — Book Search Route Handler
==============================================

What:  GET /search-books, a public proxy to the Google Books volumes API.

Query parameters (hyphenated names kept for the existing frontend):
    search-terms  free text; whitespace becomes '+'
    criteria      author | title | isbn (anything else searches by ISBN)
    page          startIndex passed through to Google Books
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query

from bookworm.dependencies import get_book_search_service
from bookworm.schemas.books import SearchCriteria, SearchResponse
from bookworm.schemas.common import ErrorResponse
from bookworm.services.book_search_service import BookSearchService

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Search"])


@router.get(
    "/search-books",
    response_model=SearchResponse,
    responses={502: {"description": "Google Books unavailable", "model": ErrorResponse}},
    summary="Search the Google Books catalog",
)
async def search_books(
    search_terms: str = Query(..., alias="search-terms", min_length=1, max_length=512),
    criteria: Optional[str] = Query(default=None),
    page: int = Query(default=0, ge=0),
    books: BookSearchService = Depends(get_book_search_service),
) -> SearchResponse:
    data = await books.search(search_terms, SearchCriteria.parse(criteria), page)
    return SearchResponse(message="Search successful.", data=data)

"""
BookWorm Backend — Google Books Search Service
================================================

What:  Public pass-through search against the Google Books volumes API.
How:   Builds the same query the BookWorm frontend always relied on
       (in<criteria>:<terms>, books only, full-view filter, trimmed field
       projection, startIndex paging) and returns the upstream JSON as is.
Who:   Built once by create_app() with a shared httpx.AsyncClient.

Failure handling:
    One attempt, bounded by BOOKS_API_TIMEOUT. Transport errors, timeouts,
    non-2xx statuses and non-JSON bodies all become UpstreamError (→ 502).
    The API key is part of the URL, so URLs are never logged.
"""

import logging
from typing import Any, List, Optional, Tuple
from urllib.parse import quote

import httpx

from bookworm import __version__
from bookworm.config import Settings
from bookworm.exceptions import UpstreamError
from bookworm.schemas.books import SearchCriteria

logger = logging.getLogger(__name__)

VOLUME_FIELDS = (
    "items/id,items/volumeInfo(title,authors,industryIdentifiers,categories,publisher,"
    "publishedDate,description,imageLinks,pageCount,language)"
)

# Characters left unescaped in query values: field selectors and the
# "+" that joins search words.
_QUERY_SAFE = ":+,/()"


def encode_terms(search_terms: str) -> str:
    """Join the words of a search with '+' the way the volumes API expects."""
    return "+".join(search_terms.split())


def build_query(search_terms: str, criteria: SearchCriteria) -> str:
    terms = encode_terms(search_terms)
    if criteria in (SearchCriteria.AUTHOR, SearchCriteria.TITLE):
        return f"in{criteria.value}:{terms}"
    return f"isbn:{terms}"


class BookSearchService:
    """Thin async client for the Google Books volumes endpoint."""

    def __init__(self, settings: Settings, client: Optional[httpx.AsyncClient] = None):
        self.base_url = settings.books_api_url
        self._api_key = settings.books_api_key.get_secret_value()
        self._timeout = settings.books_api_timeout
        self._client = client or httpx.AsyncClient(
            timeout=self._timeout,
            headers={"Accept": "application/json", "User-Agent": f"bookworm/{__version__} (gzip)"},
        )

    def build_url(self, search_terms: str, criteria: SearchCriteria, page: int) -> str:
        params: List[Tuple[str, str]] = [
            ("q", build_query(search_terms, criteria)),
            ("printType", "books"),
            ("filter", "full"),
            ("fields", VOLUME_FIELDS),
            ("startIndex", str(page)),
        ]
        if self._api_key:
            params.append(("key", self._api_key))
        query = "&".join(f"{name}={quote(value, safe=_QUERY_SAFE)}" for name, value in params)
        return f"{self.base_url}?{query}"

    async def search(self, search_terms: str, criteria: SearchCriteria, page: int = 0) -> Any:
        """
        Run one search and return the decoded upstream body.

        Raises:
            UpstreamError: The catalog could not be reached or answered badly.
        """
        url = self.build_url(search_terms, criteria, page)
        logger.info("Searching Google Books: criteria=%s page=%d", criteria.value, page)
        try:
            response = await self._client.get(url, timeout=self._timeout)
            response.raise_for_status()
            return response.json()
        except httpx.HTTPStatusError as e:
            logger.error("Google Books returned HTTP %d", e.response.status_code)
            raise UpstreamError(context={"status": e.response.status_code})
        except httpx.HTTPError as e:
            logger.error("Google Books request failed: %s", type(e).__name__)
            raise UpstreamError(context={"error_type": type(e).__name__})
        except ValueError:
            logger.error("Google Books returned a non-JSON body")
            raise UpstreamError(context={"error_type": "invalid_json"})

    async def aclose(self) -> None:
        await self._client.aclose()

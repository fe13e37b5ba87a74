"""
BookWorm Backend — Book List and Search Schemas
=================================================

What:  List kinds, saved-book request/response models and search parameters.

List kinds:
    The client names a list with one of three fixed values. Legacy table
    names sent by older frontends ("favorite", "finished_reading") are
    mapped onto the same three values; anything else is rejected with 422.
"""

from datetime import datetime
from enum import Enum
from typing import Annotated, Any, List, Optional, Union

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field, field_validator, model_validator

from bookworm.schemas.common import Envelope


class ListKind(str, Enum):
    FAVORITES = "favorites"
    WISHLIST = "wishlist"
    FINISHED = "finished-reading"


_LIST_KIND_ALIASES = {
    "favorite": ListKind.FAVORITES.value,
    "favourites": ListKind.FAVORITES.value,
    "finished": ListKind.FINISHED.value,
    "finished_reading": ListKind.FINISHED.value,
}


def normalize_list_kind(value: Any) -> Any:
    if isinstance(value, str):
        lowered = value.strip().lower()
        return _LIST_KIND_ALIASES.get(lowered, lowered)
    return value


ListKindField = Annotated[ListKind, BeforeValidator(normalize_list_kind)]


class SearchCriteria(str, Enum):
    AUTHOR = "author"
    TITLE = "title"
    ISBN = "isbn"

    @classmethod
    def parse(cls, value: Optional[str]) -> "SearchCriteria":
        """Unknown or missing criteria fall back to ISBN search."""
        try:
            return cls((value or "").strip().lower())
        except ValueError:
            return cls.ISBN


class BookEntry(BaseModel):
    """Book fields the client sends when filing a search result into a list."""

    title: str = Field(..., min_length=1, max_length=512)
    author: Optional[str] = Field(default=None, max_length=512)
    publisher: Optional[str] = Field(default=None, max_length=512)
    year: Optional[Union[int, str]] = Field(default=None, description="Publication year or date")
    identifier: str = Field(..., min_length=1, max_length=255, description="Google Books volume id")
    thumbnail: Optional[str] = Field(default=None, max_length=2048)

    @field_validator("year")
    @classmethod
    def year_as_text(cls, v: Optional[Union[int, str]]) -> Optional[str]:
        if v is None:
            return None
        text = str(v).strip()
        if len(text) > 32:
            raise ValueError("year must be at most 32 characters")
        return text or None


class NewListEntry(BookEntry):
    table: ListKindField = Field(..., description="favorites, wishlist or finished-reading")


class AddToListRequest(BaseModel):
    """
    Body of POST /add-to-list.

    The frontend wraps the book in {"data": {...}}; a flat body is accepted too.
    """

    data: NewListEntry

    @model_validator(mode="before")
    @classmethod
    def accept_flat_body(cls, values: Any) -> Any:
        if isinstance(values, dict) and "data" not in values:
            return {"data": values}
        return values


class SavedBookResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True, populate_by_name=True)

    id: int
    title: str
    author: Optional[str] = None
    publisher: Optional[str] = None
    year: Optional[str] = None
    identifier: str
    thumbnail: Optional[str] = None
    user: str = Field(validation_alias="user_email", description="Owner email")
    created_at: Optional[datetime] = None


class SavedBookListResponse(Envelope):
    data: List[SavedBookResponse]


class SavedBookCreatedResponse(Envelope):
    data: SavedBookResponse


class DeleteResult(BaseModel):
    identifier: str
    table: ListKind
    deleted: int = Field(description="Rows removed; 0 when the book was not on the list")


class DeleteResponse(Envelope):
    data: DeleteResult


class SearchResponse(Envelope):
    """Google Books response body, passed through unchanged as `data`."""

    data: Any

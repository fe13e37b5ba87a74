"""
BookWorm Backend — Auth and Profile Schemas
=============================================

What:  Request bodies for register, log-in, update-user and update-password,
       and the profile payload returned by user-data.
How:   Field aliases keep the camelCase keys the BookWorm frontend sends
       (firstName, dateOfBirth, userIsAdmin, oldPassword, ...); snake_case
       names are accepted too.
"""

from datetime import date
from enum import Enum
from typing import Annotated, Any, Optional

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field

from bookworm.schemas.common import Envelope

EMAIL_PATTERN = r"^[^@\s]+@[^@\s]+$"


class RegisterRequest(BaseModel):
    """Body of POST /register."""

    model_config = ConfigDict(populate_by_name=True)

    email: str = Field(..., min_length=3, max_length=255, pattern=EMAIL_PATTERN)
    username: str = Field(..., min_length=1, max_length=255)
    password: str = Field(..., min_length=1, max_length=128)
    first_name: Optional[str] = Field(default=None, max_length=255, alias="firstName")
    last_name: Optional[str] = Field(default=None, max_length=255, alias="lastName")
    date_of_birth: Optional[date] = Field(default=None, alias="dateOfBirth")

    # Coerced to a strict bool; honoured only when ALLOW_ADMIN_SIGNUP is set.
    is_admin: bool = Field(default=False, alias="userIsAdmin")

    def __repr__(self) -> str:
        return f"RegisterRequest(email={self.email!r}, username={self.username!r})"


class LoginRequest(BaseModel):
    """Body of POST /log-in."""

    email: str = Field(..., min_length=1, max_length=255)
    password: str = Field(..., min_length=1, max_length=128)


class PasswordChangeRequest(BaseModel):
    """Body of PUT /update-password."""

    model_config = ConfigDict(populate_by_name=True)

    old_password: str = Field(..., min_length=1, max_length=128, alias="oldPassword")
    new_password: str = Field(..., min_length=1, max_length=128, alias="newPassword")


class TokenEnvelope(Envelope):
    """Envelope for register/log-in; the token is also exposed top-level as `jwt`."""

    jwt: str = Field(description="Signed session token; send as 'Authorization: Bearer <jwt>'")


# ── Profile ───────────────────────────────────────────────────────────────


class ProfileAttribute(str, Enum):
    """The only user columns PUT /update-user may change."""

    USERNAME = "user_name"
    FIRST_NAME = "first_name"
    LAST_NAME = "last_name"
    DATE_OF_BIRTH = "date_of_birth"


_PROFILE_ATTRIBUTE_ALIASES = {
    "username": "user_name",
    "userName": "user_name",
    "firstName": "first_name",
    "lastName": "last_name",
    "dateOfBirth": "date_of_birth",
}


def _normalize_profile_attribute(value: Any) -> Any:
    if isinstance(value, str):
        return _PROFILE_ATTRIBUTE_ALIASES.get(value, value)
    return value


ProfileAttributeField = Annotated[ProfileAttribute, BeforeValidator(_normalize_profile_attribute)]


class UpdateUserRequest(BaseModel):
    """Body of PUT /update-user: one attribute and its new value."""

    attribute: ProfileAttributeField
    value: Optional[str] = Field(default=None, max_length=255)


class UserProfile(BaseModel):
    """Profile fields returned by GET /user-data (never the password hash)."""

    model_config = ConfigDict(from_attributes=True, populate_by_name=True)

    email: str
    user_name: str = Field(validation_alias="username")
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    date_of_birth: Optional[date] = None


class UserProfileResponse(Envelope):
    data: UserProfile

"""
BookWorm Backend — User Service (Credential Lifecycle)
=======================================================

What:  Registration, log-in, profile read/update and password change.
How:   Works on the request's AsyncSession; hashes with bcrypt off the event
       loop; issues tokens through the TokenCodec it was built with.
Who:   Built once by create_app() and stored on app.state.user_service.

Rules:
    - Registration is all-or-nothing: both uniqueness checks run before the
      INSERT, and a unique-constraint race is reported as the same error.
    - The plaintext password is never persisted or logged.
    - Password change re-verifies the old password even though the caller
      already holds a valid token.
    - The owner's identity always comes from token claims, never the body.
"""

import logging
from datetime import date
from typing import Optional

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from bookworm.exceptions import (
    DuplicateEmail,
    DuplicateUsername,
    NotFoundError,
    UnknownEmail,
    ValidationError,
    WrongPassword,
)
from bookworm.models.user import User
from bookworm.schemas.auth import ProfileAttribute, RegisterRequest
from bookworm.security import TokenClaims, TokenCodec, hash_password, verify_password

logger = logging.getLogger(__name__)


class UserService:
    """Business logic for user accounts."""

    def __init__(self, codec: TokenCodec, bcrypt_rounds: int = 12, allow_admin_signup: bool = False):
        self.codec = codec
        self.bcrypt_rounds = bcrypt_rounds
        self.allow_admin_signup = allow_admin_signup

    async def _by_email(self, db: AsyncSession, email: str) -> Optional[User]:
        result = await db.execute(select(User).where(User.email == email))
        return result.scalar_one_or_none()

    async def _by_username(self, db: AsyncSession, username: str) -> Optional[User]:
        result = await db.execute(select(User).where(User.username == username))
        return result.scalar_one_or_none()

    def _issue_token(self, user: User) -> str:
        return self.codec.issue(self.codec.new_claims(user.id, user.email, user.is_admin))

    async def register(self, db: AsyncSession, payload: RegisterRequest) -> str:
        """
        Create a user and return a session token for it.

        Raises:
            DuplicateEmail:    The email is already on file (→ 400)
            DuplicateUsername: The username is already on file (→ 400)
        """
        if await self._by_email(db, payload.email) is not None:
            raise DuplicateEmail()
        if await self._by_username(db, payload.username) is not None:
            raise DuplicateUsername()

        is_admin = payload.is_admin and self.allow_admin_signup
        if payload.is_admin and not is_admin:
            logger.warning("Ignoring admin flag requested at registration for %s", payload.username)

        user = User(
            email=payload.email,
            username=payload.username,
            password_hash=await hash_password(payload.password, self.bcrypt_rounds),
            is_admin=is_admin,
            first_name=payload.first_name,
            last_name=payload.last_name,
            date_of_birth=payload.date_of_birth,
        )
        db.add(user)
        try:
            await db.flush()
        except IntegrityError as exc:
            # Lost a race with a concurrent registration.
            if "email" in str(exc.orig).lower():
                raise DuplicateEmail() from exc
            raise DuplicateUsername() from exc

        logger.info("Registered user id=%d username=%s", user.id, user.username)
        return self._issue_token(user)

    async def login(self, db: AsyncSession, email: str, password: str) -> str:
        """
        Verify credentials and return a session token.

        Raises:
            UnknownEmail:  No user with this email (→ 404)
            WrongPassword: Password does not match the stored hash (→ 401)
        """
        user = await self._by_email(db, email)
        if user is None:
            raise UnknownEmail()
        if not await verify_password(password, user.password_hash):
            logger.info("Failed log-in for user id=%d", user.id)
            raise WrongPassword()
        return self._issue_token(user)

    async def get_profile(self, db: AsyncSession, claims: TokenClaims) -> User:
        user = await self._by_email(db, claims.email)
        if user is None:
            # Token is validly signed but the account behind it is gone.
            raise NotFoundError(resource="user")
        return user

    async def update_profile(
        self,
        db: AsyncSession,
        claims: TokenClaims,
        attribute: ProfileAttribute,
        value: Optional[str],
    ) -> User:
        """
        Set one whitelisted profile attribute on the caller's account.

        Raises:
            ValidationError:   Empty username or unparsable date (→ 400)
            DuplicateUsername: Another account already uses the username (→ 400)
        """
        user = await self.get_profile(db, claims)

        if attribute is ProfileAttribute.USERNAME:
            username = (value or "").strip()
            if not username:
                raise ValidationError("Username must not be empty", field="value")
            if username != user.username:
                existing = await self._by_username(db, username)
                if existing is not None:
                    raise DuplicateUsername()
            user.username = username
        elif attribute is ProfileAttribute.FIRST_NAME:
            user.first_name = value
        elif attribute is ProfileAttribute.LAST_NAME:
            user.last_name = value
        elif attribute is ProfileAttribute.DATE_OF_BIRTH:
            user.date_of_birth = self._parse_date(value)

        try:
            await db.flush()
        except IntegrityError as exc:
            raise DuplicateUsername() from exc

        logger.info("User id=%d updated %s", user.id, attribute.value)
        return user

    @staticmethod
    def _parse_date(value: Optional[str]) -> Optional[date]:
        if value is None or not value.strip():
            return None
        try:
            return date.fromisoformat(value.strip()[:10])
        except ValueError:
            raise ValidationError("date_of_birth must be an ISO date (YYYY-MM-DD)", field="value")

    async def change_password(
        self,
        db: AsyncSession,
        claims: TokenClaims,
        old_password: str,
        new_password: str,
    ) -> None:
        """
        Replace the caller's password after re-checking the current one.

        Raises:
            WrongPassword: old_password does not match (→ 401)
        """
        user = await self.get_profile(db, claims)
        if not await verify_password(old_password, user.password_hash):
            logger.info("Rejected password change for user id=%d", user.id)
            raise WrongPassword()

        user.password_hash = await hash_password(new_password, self.bcrypt_rounds)
        await db.flush()
        logger.info("Password changed for user id=%d", user.id)

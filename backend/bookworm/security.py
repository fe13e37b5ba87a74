"""
BookWorm Backend — Session Token Codec and Password Hashing
=============================================================

What:  Issues and verifies signed, stateless session tokens (JWT, PyJWT) and
       hashes/verifies passwords (bcrypt).
How:   `TokenCodec` is built once from Settings and stored on app.state.
       Password hashing runs in the threadpool so a slow bcrypt round never
       blocks the event loop.

Token claims:
    userId  int   users.id
    email   str   users.email (owner key for saved books)
    admin   bool  users.is_admin
    exp     int   only when JWT_EXPIRE_MINUTES > 0

Only the configured algorithm is accepted on verification; a token whose
header names any other algorithm (including "none") is rejected.
"""

from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

import bcrypt
import jwt
from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError
from starlette.concurrency import run_in_threadpool

from bookworm.config import Settings
from bookworm.exceptions import ExpiredToken, InvalidToken

REQUIRED_CLAIMS = ["userId", "email", "admin"]

# bcrypt only looks at the first 72 bytes; newer releases reject longer input.
BCRYPT_MAX_BYTES = 72


class TokenClaims(BaseModel):
    """Identity carried by a session token and attached to request.state.claims."""

    user_id: int
    email: str
    is_admin: bool = False
    expires_at: Optional[datetime] = None

    model_config = {"frozen": True}


class TokenCodec:
    """Signs and verifies session tokens with one secret and one algorithm."""

    def __init__(self, secret: str, algorithm: str = "HS256", expire_minutes: int = 0):
        if not secret:
            raise ValueError("Token signing secret must be non-empty")
        self._secret = secret
        self._algorithm = algorithm
        self._expire_minutes = expire_minutes

    @classmethod
    def from_settings(cls, settings: Settings) -> "TokenCodec":
        return cls(
            secret=settings.jwt_secret.get_secret_value(),
            algorithm=settings.jwt_algorithm,
            expire_minutes=settings.jwt_expire_minutes,
        )

    @property
    def algorithm(self) -> str:
        return self._algorithm

    def __repr__(self) -> str:
        return f"TokenCodec(algorithm={self._algorithm!r}, expire_minutes={self._expire_minutes})"

    def new_claims(self, user_id: int, email: str, is_admin: bool) -> TokenClaims:
        """Claims for a freshly authenticated user, with expiry when a TTL is configured."""
        expires_at = None
        if self._expire_minutes > 0:
            now = datetime.now(timezone.utc).replace(microsecond=0)
            expires_at = now + timedelta(minutes=self._expire_minutes)
        return TokenClaims(user_id=user_id, email=email, is_admin=is_admin, expires_at=expires_at)

    def issue(self, claims: TokenClaims) -> str:
        """Encode claims into a signed token. Equal claims give equal tokens."""
        payload: Dict[str, Any] = {
            "userId": claims.user_id,
            "email": claims.email,
            "admin": claims.is_admin,
        }
        if claims.expires_at is not None:
            payload["exp"] = int(claims.expires_at.timestamp())
        return jwt.encode(payload, self._secret, algorithm=self._algorithm)

    def verify(self, token: str) -> TokenClaims:
        """
        Decode and validate a token.

        Raises:
            ExpiredToken: The token carries an `exp` in the past.
            InvalidToken: Bad signature, foreign algorithm, malformed token
                          or missing/mistyped claims.
        """
        try:
            payload = jwt.decode(
                token,
                self._secret,
                algorithms=[self._algorithm],
                options={"require": REQUIRED_CLAIMS},
            )
        except jwt.ExpiredSignatureError:
            raise ExpiredToken()
        except jwt.PyJWTError as exc:
            raise InvalidToken(context={"reason": type(exc).__name__})

        exp = payload.get("exp")
        try:
            return TokenClaims(
                user_id=payload["userId"],
                email=payload["email"],
                is_admin=payload["admin"],
                expires_at=datetime.fromtimestamp(exp, tz=timezone.utc) if exp is not None else None,
            )
        except (PydanticValidationError, TypeError, ValueError) as exc:
            raise InvalidToken(message="Invalid token payload", context={"reason": type(exc).__name__})


def _password_bytes(plain_password: str) -> bytes:
    return plain_password.encode("utf-8")[:BCRYPT_MAX_BYTES]


async def hash_password(plain_password: str, rounds: int = 12) -> str:
    """Hash a plain-text password for storage. Do not store plain passwords."""
    salt = bcrypt.gensalt(rounds=rounds)
    hashed = await run_in_threadpool(bcrypt.hashpw, _password_bytes(plain_password), salt)
    return hashed.decode("utf-8")


async def verify_password(plain_password: str, hashed: str) -> bool:
    """Verify a plain password against a stored hash (constant-time compare in bcrypt)."""
    try:
        return await run_in_threadpool(
            bcrypt.checkpw, _password_bytes(plain_password), hashed.encode("utf-8")
        )
    except (ValueError, TypeError):
        return False

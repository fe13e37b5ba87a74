"""
BookWorm Backend — Token Codec and Password Hashing Tests
===========================================================

What we test:
    ✅ issue → verify round trip keeps userId, email and admin
    ✅ Equal claims give equal tokens (no expiry configured)
    ✅ Wrong secret, tampered payload, "none" and foreign algorithms rejected
    ✅ Missing or mistyped claims rejected
    ✅ Expired tokens raise ExpiredToken; unexpired ones carry exp
    ✅ bcrypt hash/verify, including passwords past the 72-byte limit
"""

from datetime import datetime, timedelta, timezone

import jwt
import pytest

from bookworm.exceptions import ExpiredToken, InvalidToken
from bookworm.security import TokenClaims, TokenCodec, hash_password, verify_password
from conftest import TEST_JWT_SECRET


@pytest.fixture
def codec() -> TokenCodec:
    return TokenCodec(TEST_JWT_SECRET)


class TestIssueAndVerify:

    def test_round_trip(self, codec):
        token = codec.issue(codec.new_claims(7, "ann@example.com", False))
        claims = codec.verify(token)
        assert claims.user_id == 7
        assert claims.email == "ann@example.com"
        assert claims.is_admin is False
        assert claims.expires_at is None

    def test_admin_flag_survives(self, codec):
        claims = codec.verify(codec.issue(codec.new_claims(1, "root@example.com", True)))
        assert claims.is_admin is True

    def test_payload_uses_frontend_claim_names(self, codec):
        token = codec.issue(codec.new_claims(3, "c@example.com", False))
        payload = jwt.decode(token, TEST_JWT_SECRET, algorithms=["HS256"])
        assert payload == {"userId": 3, "email": "c@example.com", "admin": False}

    def test_deterministic_without_expiry(self, codec):
        claims = TokenClaims(user_id=1, email="a@example.com", is_admin=False)
        assert codec.issue(claims) == codec.issue(claims)

    def test_empty_secret_refused(self):
        with pytest.raises(ValueError):
            TokenCodec("")

    def test_repr_hides_secret(self, codec):
        assert TEST_JWT_SECRET not in repr(codec)


class TestRejection:

    def test_wrong_secret(self, codec):
        other = TokenCodec("another-secret-" * 5)
        token = other.issue(other.new_claims(1, "a@example.com", False))
        with pytest.raises(InvalidToken):
            codec.verify(token)

    def test_tampered_payload(self, codec):
        token = codec.issue(codec.new_claims(1, "a@example.com", False))
        forged = jwt.encode(
            {"userId": 1, "email": "a@example.com", "admin": True},
            "not-the-secret-" * 5,
            algorithm="HS256",
        )
        header, _, signature = token.split(".")
        _, forged_payload, _ = forged.split(".")
        with pytest.raises(InvalidToken):
            codec.verify(f"{header}.{forged_payload}.{signature}")

    def test_garbage(self, codec):
        with pytest.raises(InvalidToken):
            codec.verify("not-a-token")

    def test_unsigned_none_algorithm(self, codec):
        token = jwt.encode(
            {"userId": 1, "email": "a@example.com", "admin": True}, "", algorithm="none"
        )
        with pytest.raises(InvalidToken):
            codec.verify(token)

    def test_algorithm_other_than_configured(self, codec):
        token = jwt.encode(
            {"userId": 1, "email": "a@example.com", "admin": False},
            TEST_JWT_SECRET,
            algorithm="HS512",
        )
        with pytest.raises(InvalidToken):
            codec.verify(token)

    def test_configured_hs512_accepts_its_own_tokens(self):
        codec = TokenCodec(TEST_JWT_SECRET, algorithm="HS512")
        claims = codec.verify(codec.issue(codec.new_claims(2, "b@example.com", False)))
        assert claims.user_id == 2
        assert codec.algorithm == "HS512"

    @pytest.mark.parametrize("missing", ["userId", "email", "admin"])
    def test_missing_claim(self, codec, missing):
        payload = {"userId": 1, "email": "a@example.com", "admin": False}
        del payload[missing]
        token = jwt.encode(payload, TEST_JWT_SECRET, algorithm="HS256")
        with pytest.raises(InvalidToken):
            codec.verify(token)

    def test_mistyped_claim(self, codec):
        token = jwt.encode(
            {"userId": "not-a-number", "email": "a@example.com", "admin": False},
            TEST_JWT_SECRET,
            algorithm="HS256",
        )
        with pytest.raises(InvalidToken) as exc_info:
            codec.verify(token)
        assert exc_info.value.message == "Invalid token payload"


class TestExpiry:

    def test_expired_token(self):
        codec = TokenCodec(TEST_JWT_SECRET, expire_minutes=5)
        claims = TokenClaims(
            user_id=1,
            email="a@example.com",
            expires_at=datetime.now(timezone.utc) - timedelta(minutes=1),
        )
        with pytest.raises(ExpiredToken):
            codec.verify(codec.issue(claims))

    def test_ttl_sets_exp(self):
        codec = TokenCodec(TEST_JWT_SECRET, expire_minutes=30)
        claims = codec.new_claims(1, "a@example.com", False)
        assert claims.expires_at is not None
        assert claims.expires_at > datetime.now(timezone.utc) + timedelta(minutes=29)

        verified = codec.verify(codec.issue(claims))
        assert verified.expires_at == claims.expires_at

    def test_zero_ttl_means_no_exp(self, codec):
        token = codec.issue(codec.new_claims(1, "a@example.com", False))
        assert "exp" not in jwt.decode(token, TEST_JWT_SECRET, algorithms=["HS256"])


class TestPasswordHashing:

    @pytest.mark.asyncio
    async def test_hash_and_verify(self):
        hashed = await hash_password("s3cret!", rounds=4)
        assert hashed != "s3cret!"
        assert await verify_password("s3cret!", hashed) is True
        assert await verify_password("wrong", hashed) is False

    @pytest.mark.asyncio
    async def test_same_password_different_hashes(self):
        assert await hash_password("pw", rounds=4) != await hash_password("pw", rounds=4)

    @pytest.mark.asyncio
    async def test_long_password_accepted(self):
        long_password = "x" * 100
        hashed = await hash_password(long_password, rounds=4)
        assert await verify_password(long_password, hashed) is True

    @pytest.mark.asyncio
    async def test_malformed_hash_is_a_mismatch(self):
        assert await verify_password("pw", "not-a-bcrypt-hash") is False

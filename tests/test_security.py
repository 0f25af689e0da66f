from datetime import timedelta

import bcrypt
from jose import jwt

from rideway.core.security import TokenIssuer, get_password_hash, pwd_context, verify_password


def test_password_hash_round_trip():
    hashed = get_password_hash("s3cret-pass")

    assert hashed != "s3cret-pass"
    assert verify_password("s3cret-pass", hashed)
    assert not verify_password("other-pass", hashed)


def test_same_password_hashes_differently():
    assert get_password_hash("s3cret-pass") != get_password_hash("s3cret-pass")


def test_issued_token_carries_user_claims(token_issuer):
    token = token_issuer.issue("u1", "a@b.com")

    assert token_issuer.verify(token) == {"user_id": "u1", "email": "a@b.com"}

    claims = jwt.get_unverified_claims(token)
    assert claims["exp"] - claims["iat"] == 60 * 60


def test_expired_token_is_rejected(token_issuer):
    token = token_issuer.issue("u1", "a@b.com", expires_delta=timedelta(seconds=-5))

    assert token_issuer.verify(token) is None


def test_tampered_token_is_rejected(token_issuer):
    token = token_issuer.issue("u1", "a@b.com")
    header, payload, signature = token.split(".")
    tampered = ".".join([header, payload, signature[::-1]])

    assert token_issuer.verify(tampered) is None


def test_token_signed_with_other_secret_is_rejected(token_issuer):
    foreign = TokenIssuer("another-secret").issue("u1", "a@b.com")

    assert token_issuer.verify(foreign) is None


def test_token_without_email_is_rejected(token_issuer):
    token = jwt.encode({"sub": "u1"}, "test-secret", algorithm="HS256")

    assert token_issuer.verify(token) is None


def test_garbage_is_rejected(token_issuer):
    assert token_issuer.verify("not-a-token") is None


def test_bcrypt_backend_loads_without_version_lookup_errors(caplog):
    assert hasattr(bcrypt, "__about__")
    with caplog.at_level("WARNING", logger="passlib"):
        assert pwd_context.identify(get_password_hash("s3cret-pass")) == "bcrypt"
    assert "__about__" not in caplog.text

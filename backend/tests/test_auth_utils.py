import pytest
from backend.auth_service.utils import (
    Identity,
    create_token,
    decode_token,
    optional_identity_from_request,
    require_admin,
    verify_token,
    verify_token_from_request,
)
from backend.errors import AuthError, ForbiddenError
import jwt
from datetime import datetime, timedelta, timezone


def test_create_token():
    token = create_token(123, True)

    assert isinstance(token, str)

    # Decode to verify contents using the same secret
    payload = jwt.decode(token, "test_secret", algorithms=["HS256"])
    assert payload["userId"] == 123
    assert payload["isAdmin"] is True
    assert "issuedAt" in payload
    assert "exp" in payload
    assert "iat" in payload


def test_token_expires_after_one_hour():
    payload = jwt.decode(create_token(1, False), "test_secret", algorithms=["HS256"])
    assert payload["exp"] - payload["iat"] == 3600


def test_repeated_tokens_are_distinct():
    first = create_token(5, False)
    second = create_token(5, False)

    assert first != second
    assert decode_token(second)["issuedAt"] > decode_token(first)["issuedAt"]


def test_verify_token():
    token = create_token(456, False)

    identity = verify_token(token)
    assert identity.user_id == 456
    assert identity.is_admin is False


def test_verify_token_invalid():
    with pytest.raises(AuthError):
        verify_token("invalid.token.here")


def test_verify_token_wrong_secret():
    now = datetime.now(timezone.utc)
    token = jwt.encode(
        {"userId": 1, "isAdmin": True, "iat": now, "exp": now + timedelta(hours=1)},
        "another_secret",
        algorithm="HS256",
    )
    with pytest.raises(AuthError, match="invalid token"):
        verify_token(token)


def test_verify_token_expired():
    issued = datetime.now(timezone.utc) - timedelta(minutes=61)
    token = jwt.encode(
        {"userId": 1, "isAdmin": True, "issuedAt": 1, "iat": issued, "exp": issued + timedelta(hours=1)},
        "test_secret",
        algorithm="HS256",
    )
    with pytest.raises(AuthError, match="token expired"):
        verify_token(token)


def test_decode_token_skips_signature():
    token = jwt.encode({"userId": 9, "isAdmin": False}, "another_secret", algorithm="HS256")
    assert decode_token(token)["userId"] == 9


def test_decode_token_malformed():
    with pytest.raises(AuthError):
        decode_token("not-a-token")


def test_verify_token_from_request_valid(app):
    token = create_token(789, True)

    with app.test_request_context(headers={"Authorization": f"Bearer {token}"}):
        identity = verify_token_from_request()
        assert identity.user_id == 789
        assert identity.is_admin is True


def test_verify_token_from_request_missing_header(app):
    with app.test_request_context():
        with pytest.raises(AuthError, match="missing token"):
            verify_token_from_request()


def test_verify_token_from_request_invalid_format(app):
    with app.test_request_context(headers={"Authorization": "InvalidFormat"}):
        with pytest.raises(AuthError, match="missing token"):
            verify_token_from_request()


def test_optional_identity_from_request(app):
    with app.test_request_context(headers={"Authorization": "Bearer garbage"}):
        assert optional_identity_from_request() is None

    token = create_token(3, False)
    with app.test_request_context(headers={"Authorization": f"Bearer {token}"}):
        assert optional_identity_from_request().user_id == 3


def test_require_admin():
    require_admin(Identity(1, True, 0))

    with pytest.raises(ForbiddenError):
        require_admin(Identity(2, False, 0))


def test_tokens_differ_even_with_same_issued_at(mocker):
    mocker.patch("backend.auth_service.utils._next_issued_at", return_value=1700000000000)

    first = create_token(5, False)
    second = create_token(5, False)

    assert first != second
    assert decode_token(first)["jti"] != decode_token(second)["jti"]

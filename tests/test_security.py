"""
Tests for token verification, log redaction and settings validation
"""

from datetime import timedelta

import pytest
from pydantic import ValidationError

from forum_access.core.config import Settings
from forum_access.core.exceptions import UnauthenticatedError
from forum_access.core.logging import redact_secrets
from forum_access.core.security import create_access_token, verify_token


def test_token_round_trip():
    token = create_access_token("user-1")

    assert verify_token(token) == "user-1"


def test_expired_token_is_rejected():
    token = create_access_token("user-1", expires_delta=timedelta(minutes=-5))

    with pytest.raises(UnauthenticatedError):
        verify_token(token)


def test_wrong_token_type_is_rejected():
    token = create_access_token("user-1", additional_claims={"type": "refresh"})

    with pytest.raises(UnauthenticatedError):
        verify_token(token, token_type="access")


def test_tampered_token_is_rejected():
    token = create_access_token("user-1")
    header, payload, signature = token.split(".")
    tampered = ".".join([header, payload, signature[::-1]])

    with pytest.raises(UnauthenticatedError):
        verify_token(tampered)


def test_redaction_masks_credential_fields():
    event = redact_secrets(None, "info", {"event": "x", "key": "ABCDEF12", "salt": "s", "user_id": "u1"})

    assert event["key"] == "***"
    assert event["salt"] == "***"
    assert event["user_id"] == "u1"


def test_salt_is_not_rendered():
    settings = Settings(JWT_SECRET_KEY="secret", MONTHLY_KEY_SALT="very-secret-salt-value")

    assert "very-secret-salt-value" not in repr(settings)
    assert settings.MONTHLY_KEY_SALT.get_secret_value() == "very-secret-salt-value"


def test_production_requires_long_salt():
    with pytest.raises(ValidationError):
        Settings(ENVIRONMENT="production", JWT_SECRET_KEY="secret", MONTHLY_KEY_SALT="short")


def test_unknown_timezone_is_rejected():
    with pytest.raises(ValidationError):
        Settings(JWT_SECRET_KEY="secret", MONTHLY_KEY_SALT="salt", MONTHLY_KEY_TIMEZONE="Mars/Olympus")


def test_cors_origins_accept_comma_list():
    settings = Settings(JWT_SECRET_KEY="secret", MONTHLY_KEY_SALT="salt", CORS_ORIGINS="https://a.example, https://b.example")

    assert settings.CORS_ORIGINS == ["https://a.example", "https://b.example"]


def test_unknown_environment_is_rejected():
    with pytest.raises(ValidationError):
        Settings(ENVIRONMENT="qa", JWT_SECRET_KEY="secret", MONTHLY_KEY_SALT="salt")

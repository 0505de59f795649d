"""
Bearer token verification.

Tokens are issued by the forum front end with the shared HS256 secret; this
service only validates them and extracts the subject (user id).
"""

from datetime import datetime, timedelta, timezone
from typing import Any, Optional, Union

from joserfc import jwt as jose_jwt
from joserfc.jwk import OctKey
from joserfc.errors import JoseError
import structlog

from forum_access.core.config import settings
from forum_access.core.exceptions import UnauthenticatedError

logger = structlog.get_logger()

ALGORITHM = settings.JWT_ALGORITHM

# joserfc key object (reusable)
_jwt_key = OctKey.import_key(settings.JWT_SECRET_KEY)

_claims_registry = jose_jwt.JWTClaimsRegistry(sub={"essential": True})


def create_access_token(
    subject: Union[str, Any],
    expires_delta: Optional[timedelta] = None,
    additional_claims: Optional[dict] = None
) -> str:
    """
    Create JWT access token

    Used by tests and operator tooling; regular tokens come from the front end.
    """
    now = datetime.now(timezone.utc)
    expire = now + (expires_delta or timedelta(minutes=30))

    to_encode = {
        "exp": int(expire.timestamp()),
        "sub": str(subject),
        "type": "access",
        "iat": int(now.timestamp()),
    }
    if additional_claims:
        to_encode.update(additional_claims)

    return jose_jwt.encode({"alg": ALGORITHM}, to_encode, _jwt_key)


def verify_token(token: str, token_type: str = "access") -> str:
    """
    Verify JWT token and return its subject

    Raises:
        UnauthenticatedError: If the token is invalid, expired or of the wrong type
    """
    try:
        token_obj = jose_jwt.decode(token, _jwt_key, algorithms=[ALGORITHM])
        claims = token_obj.claims
        _claims_registry.validate(claims)
    except (JoseError, ValueError) as exc:
        logger.warning("JWT verification failed", error=str(exc))
        raise UnauthenticatedError("Could not validate credentials")

    if claims.get("type", token_type) != token_type:
        logger.warning("Invalid token type", expected=token_type, actual=claims.get("type"))
        raise UnauthenticatedError("Invalid token type")

    subject = str(claims["sub"])
    logger.debug("Token verified successfully", subject=subject)
    return subject

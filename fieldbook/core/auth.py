"""Staff authentication: bcrypt password hashing and JWT access/refresh tokens.

Access tokens carry the staff role so clients can shape the dashboard without
another round trip; the server still re-reads the user on every request.
"""

from datetime import UTC, datetime, timedelta

from jose import JWTError, jwt
from passlib.context import CryptContext

from fieldbook.core.config import settings

ACCESS = "access"
REFRESH = "refresh"

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    return pwd_context.verify(plain_password, hashed_password)


def _encode(subject: str, token_type: str, lifetime: timedelta, claims: dict | None = None) -> str:
    payload = {"sub": subject, "type": token_type, "exp": datetime.now(UTC) + lifetime}
    if claims:
        payload.update(claims)
    return jwt.encode(payload, settings.secret_key, algorithm=settings.jwt_algorithm)


def create_access_token(subject: str, claims: dict | None = None) -> str:
    return _encode(subject, ACCESS, timedelta(minutes=settings.access_token_expire_minutes), claims)


def create_refresh_token(subject: str) -> str:
    return _encode(subject, REFRESH, timedelta(days=settings.refresh_token_expire_days))


def decode_token(token: str, expected_type: str | None = None) -> dict:
    """Decode and validate a JWT. Raises JWTError on failure or a token of the wrong type."""
    payload = jwt.decode(token, settings.secret_key, algorithms=[settings.jwt_algorithm])
    if expected_type is not None and payload.get("type") != expected_type:
        raise JWTError(f"Expected a {expected_type} token")
    return payload


def token_user_id(token: str, expected_type: str) -> int:
    """User id from a token's subject. Raises JWTError if the token is unusable."""
    payload = decode_token(token, expected_type)
    try:
        return int(payload["sub"])
    except (KeyError, TypeError, ValueError):
        raise JWTError("Token has no valid subject") from None

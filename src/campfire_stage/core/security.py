"""Bearer token helpers for identities issued by the identity provider."""
from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, datetime, timedelta

from jose import JWTError, jwt

from campfire_stage.core.settings import settings


class InvalidTokenError(ValueError):
    """Raised when a bearer token cannot be validated."""


@dataclass(frozen=True)
class Identity:
    """Authenticated caller: a stable user id plus an optional display name."""

    user_id: str
    display_name: str = ""


def create_access_token(user_id: str, display_name: str | None = None) -> str:
    """Create a signed JWT for ``user_id``.

    Token issuance belongs to the identity provider; this helper exists for
    tooling and tests that need a valid token.
    """
    to_encode: dict[str, object] = {"sub": user_id}
    if display_name:
        to_encode["name"] = display_name
    expire = datetime.now(UTC) + timedelta(minutes=settings.access_token_expire_minutes)
    to_encode["exp"] = expire
    encoded_jwt: str = jwt.encode(
        to_encode,
        settings.secret_key,
        algorithm=settings.jwt_algorithm,
    )
    return encoded_jwt


def decode_access_token(token: str) -> Identity:
    """Validate ``token`` and return the identity it carries.

    Raises:
        InvalidTokenError: If the signature, expiry or subject is invalid.
    """
    try:
        payload = jwt.decode(
            token,
            settings.secret_key,
            algorithms=[settings.jwt_algorithm],
        )
    except JWTError as err:
        raise InvalidTokenError("Could not validate credentials") from err

    subject = payload.get("sub")
    if not subject or not isinstance(subject, str):
        raise InvalidTokenError("Could not validate credentials")
    return Identity(user_id=subject, display_name=str(payload.get("name") or ""))

"""Bearer token helpers used to identify portal callers."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

from jose import JWTError, jwt

from bms.config import get_settings

ALGORITHM = "HS256"


@dataclass(frozen=True)
class Principal:
    """Identity extracted from an access token."""

    user_id: int | None
    tenant_id: int | None
    organization_id: str | None

    def is_staff(self) -> bool:
        """Organization staff carry a user id and no tenant id."""

        return self.user_id is not None and self.tenant_id is None


def create_access_token(data: dict, expires_delta: timedelta | None = None) -> str:
    settings = get_settings()
    expire = datetime.now(timezone.utc) + (
        expires_delta or timedelta(minutes=settings.access_token_expire_minutes)
    )
    return jwt.encode({**data, "exp": expire}, settings.secret_key, algorithm=ALGORITHM)


def decode_access_token(token: str) -> dict:
    try:
        return jwt.decode(token, get_settings().secret_key, algorithms=[ALGORITHM])
    except JWTError as exc:
        raise ValueError("Could not validate credentials") from exc


def _optional_int(value: object) -> int | None:
    if value is None or value == "":
        return None
    try:
        return int(value)
    except (TypeError, ValueError) as exc:
        raise ValueError("Could not validate credentials") from exc


def principal_from_token(token: str) -> Principal:
    """Return the :class:`Principal` described by ``token``.

    Tokens carry ``user_id`` and/or ``tenant_id`` claims plus an optional
    ``organization_id``. A token without any recipient claim is rejected.
    """

    payload = decode_access_token(token)
    user_id = _optional_int(payload.get("user_id"))
    tenant_id = _optional_int(payload.get("tenant_id"))
    if user_id is None and tenant_id is None:
        raise ValueError("Could not validate credentials")
    organization_id = payload.get("organization_id")
    return Principal(
        user_id=user_id,
        tenant_id=tenant_id,
        organization_id=str(organization_id) if organization_id else None,
    )


__all__ = [
    "Principal",
    "create_access_token",
    "decode_access_token",
    "principal_from_token",
]

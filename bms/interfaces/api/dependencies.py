"""FastAPI dependency utilities."""

from functools import lru_cache

from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.orm import Session

from bms.application.use_cases.notifications import NotificationService
from bms.config import get_settings
from bms.infrastructure.channels import build_channel_senders
from bms.infrastructure.database import get_db
from bms.infrastructure.security import Principal, principal_from_token

# Tokens are issued by the portal's identity service.
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="auth/token")


def get_current_principal(token: str = Depends(oauth2_scheme)) -> Principal:
    """Return the caller identity carried by the bearer token."""

    try:
        return principal_from_token(token)
    except ValueError as exc:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Could not validate credentials",
            headers={"WWW-Authenticate": "Bearer"},
        ) from exc


def require_organization(
    principal: Principal = Depends(get_current_principal),
) -> Principal:
    """Ensure the caller acts within an organization."""

    if not principal.organization_id:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Organization context required",
        )
    return principal


def require_staff(principal: Principal = Depends(require_organization)) -> Principal:
    """Ensure the caller is a staff member of an organization."""

    if not principal.is_staff():
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Staff access required",
        )
    return principal


@lru_cache
def get_channel_senders() -> dict:
    """Return the channel senders shared by every request."""

    return build_channel_senders(get_settings())


def get_notification_service(
    db: Session = Depends(get_db),
    senders: dict = Depends(get_channel_senders),
) -> NotificationService:
    """Return a request-scoped :class:`NotificationService`."""

    return NotificationService(db, senders)

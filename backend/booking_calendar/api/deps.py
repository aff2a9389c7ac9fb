from __future__ import annotations

from uuid import UUID

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import OAuth2PasswordBearer
from sqlmodel import select

from booking_calendar.core.config import settings
from booking_calendar.core.security import verify_token
from booking_calendar.db import SessionDep
from booking_calendar.models import User
from booking_calendar.services.change_events import ChangeSink

oauth2_scheme = OAuth2PasswordBearer(tokenUrl=f"{settings.API_V1_STR}/auth/login")


def user_id_from_token(token: str) -> UUID:
    """Subject of a valid access token. Raises ValueError otherwise."""
    payload = verify_token(token, token_type="access")
    subject = payload.get("sub")
    if not subject:
        raise ValueError("Invalid authentication payload")
    return UUID(subject)


def get_current_user(
    session: SessionDep,
    token: str = Depends(oauth2_scheme),
) -> User:
    try:
        user_id = user_id_from_token(token)
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Could not validate credentials",
            headers={"WWW-Authenticate": "Bearer"},
        ) from None

    user = session.exec(select(User).where(User.id == user_id)).one_or_none()
    if not user or not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Inactive or missing user",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return user


def get_current_admin(current_user: User = Depends(get_current_user)) -> User:
    if not current_user.is_admin:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Administrator access required",
        )
    return current_user


def get_change_sink(request: Request) -> ChangeSink:
    return request.app.state.change_sink

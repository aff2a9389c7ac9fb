"""Registration, credential checks and token issuing."""
from __future__ import annotations

import logging
from typing import Optional
from uuid import UUID

from sqlmodel import Session, select

from booking_calendar.core.errors import (
    AuthenticationError,
    PermissionDeniedError,
    ValidationError,
)
from booking_calendar.core.security import (
    create_access_token,
    create_refresh_token,
    get_password_hash,
    verify_password,
    verify_token,
)
from booking_calendar.models import User
from booking_calendar.schemas.user import TokenPair, UserCreate

logger = logging.getLogger(__name__)


def find_user_by_email(session: Session, email: str) -> Optional[User]:
    return session.exec(select(User).where(User.email == email.lower())).one_or_none()


def register_user(session: Session, payload: UserCreate) -> User:
    if find_user_by_email(session, payload.email):
        raise ValidationError("Email is already registered")

    user = User(
        email=payload.email.lower(),
        full_name=payload.full_name,
        hashed_password=get_password_hash(payload.password),
    )
    session.add(user)
    session.commit()
    session.refresh(user)
    logger.info(f"Registered user {user.id}")
    return user


def authenticate(session: Session, email: str, password: str) -> User:
    user = find_user_by_email(session, email)
    if not user or not verify_password(password, user.hashed_password):
        logger.info(f"Failed login for {email.lower()}")
        raise ValidationError("Incorrect email or password")
    if not user.is_active:
        raise PermissionDeniedError("User is inactive")
    return user


def issue_tokens(user_id: UUID | str) -> TokenPair:
    return TokenPair(
        access_token=create_access_token(user_id),
        refresh_token=create_refresh_token(user_id),
    )


def refresh_tokens(session: Session, refresh_token: str) -> TokenPair:
    """New token pair for a valid refresh token of an existing, active user."""
    try:
        payload = verify_token(refresh_token, token_type="refresh")
        user_id = UUID(payload["sub"])
    except (ValueError, KeyError):
        raise AuthenticationError("Invalid refresh token") from None

    user = session.get(User, user_id)
    if not user or not user.is_active:
        raise AuthenticationError("Inactive or missing user")
    return issue_tokens(user.id)

from fastapi import APIRouter, Request, status

from booking_calendar.core.config import settings
from booking_calendar.core.limiter import limiter
from booking_calendar.db import SessionDep
from booking_calendar.models import User
from booking_calendar.schemas import (
    RefreshTokenRequest,
    TokenPair,
    UserCreate,
    UserLogin,
    UserRead,
)
from booking_calendar.services import accounts

router = APIRouter()


@router.post(
    "/register",
    response_model=UserRead,
    status_code=status.HTTP_201_CREATED,
    summary="Register a new user",
)
def register_user(payload: UserCreate, session: SessionDep) -> User:
    """New accounts get the `user` role; admins are promoted afterwards."""
    return accounts.register_user(session, payload)


# slowapi requires the request parameter
@router.post("/login", response_model=TokenPair, summary="Login and obtain tokens")
@limiter.limit(settings.LOGIN_RATE_LIMIT)
def login(request: Request, payload: UserLogin, session: SessionDep) -> TokenPair:
    user = accounts.authenticate(session, payload.email, payload.password)
    return accounts.issue_tokens(user.id)


@router.post("/refresh", response_model=TokenPair, summary="Refresh access token")
def refresh_tokens(payload: RefreshTokenRequest, session: SessionDep) -> TokenPair:
    return accounts.refresh_tokens(session, payload.refresh_token)

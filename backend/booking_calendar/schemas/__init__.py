from .availability_window import (
    AvailabilityWindowCreate,
    AvailabilityWindowRead,
    AvailabilityWindowUpdate,
)
from .booking import (
    BookingCheckRequest,
    BookingCheckResult,
    BookingCreate,
    BookingRead,
    BookingUpdate,
    BookingWithUser,
    ConflictingBookingSummary,
    ExternalEventRefUpdate,
)
from .change_event import ChangeEvent
from .statistics import BookingStatistics
from .user import (
    RefreshTokenRequest,
    RoleUpdate,
    TokenPair,
    UserBase,
    UserCreate,
    UserLogin,
    UserRead,
)

__all__ = [
    "AvailabilityWindowCreate",
    "AvailabilityWindowRead",
    "AvailabilityWindowUpdate",
    "BookingCheckRequest",
    "BookingCheckResult",
    "BookingCreate",
    "BookingRead",
    "BookingStatistics",
    "BookingUpdate",
    "BookingWithUser",
    "ChangeEvent",
    "ConflictingBookingSummary",
    "ExternalEventRefUpdate",
    "RefreshTokenRequest",
    "RoleUpdate",
    "TokenPair",
    "UserBase",
    "UserCreate",
    "UserLogin",
    "UserRead",
]

from .availability_window import AvailabilityWindow
from .booking import Booking
from .user import User

__all__ = [
    "AvailabilityWindow",
    "Booking",
    "User",
]

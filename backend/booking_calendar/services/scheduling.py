"""
Interval arithmetic and availability coverage.

All instants handled here are naive UTC, the storage convention of the models.
Recurring windows are compared by weekday and wall-clock time in the
reference zone (settings.SCHEDULE_TIMEZONE), so a window defined as 09:00-12:00
keeps meaning 09:00-12:00 local time on both sides of a DST change.
"""
from __future__ import annotations

from datetime import datetime, time, timezone
from typing import Iterable, Sequence
from zoneinfo import ZoneInfo

from booking_calendar.core.config import settings
from booking_calendar.core.errors import MSG_INVALID_INTERVAL, ValidationError
from booking_calendar.models import AvailabilityWindow


def to_utc_naive(value: datetime) -> datetime:
    """Aware values are converted to UTC; naive values are taken as UTC already."""
    if value.tzinfo is not None:
        return value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


def normalize_interval(starts_at: datetime, ends_at: datetime) -> tuple[datetime, datetime]:
    starts_at = to_utc_naive(starts_at)
    ends_at = to_utc_naive(ends_at)
    if starts_at >= ends_at:
        raise ValidationError(MSG_INVALID_INTERVAL)
    return starts_at, ends_at


def intervals_overlap(
    start: datetime, end: datetime, other_start: datetime, other_end: datetime
) -> bool:
    """Half-open overlap: touching intervals do not overlap."""
    return start < other_end and end > other_start


def reference_zone() -> ZoneInfo:
    return ZoneInfo(settings.SCHEDULE_TIMEZONE)


def to_reference_zone(value: datetime, zone: ZoneInfo | None = None) -> datetime:
    """Naive UTC instant as an aware datetime in the reference zone."""
    return value.replace(tzinfo=timezone.utc).astimezone(zone or reference_zone())


def sunday_first_weekday(value: datetime) -> int:
    """0 = Sunday ... 6 = Saturday (datetime.weekday() starts on Monday)."""
    return (value.weekday() + 1) % 7


def normalize_days(days: Iterable[int]) -> list[int]:
    return sorted(set(days))


class AvailabilityIndex:
    """Answers whether a requested interval sits entirely inside one window."""

    def __init__(
        self,
        windows: Sequence[AvailabilityWindow],
        zone: ZoneInfo | None = None,
    ) -> None:
        self.windows = windows
        self.zone = zone or reference_zone()

    def _local(self, value: datetime) -> datetime:
        return to_reference_zone(value, self.zone)

    def local_time_range(self, window: AvailabilityWindow) -> tuple[time, time]:
        return (
            self._local(window.starts_at).time(),
            self._local(window.ends_at).time(),
        )

    def window_covers(
        self, window: AvailabilityWindow, start: datetime, end: datetime
    ) -> bool:
        if not window.recurring:
            return window.starts_at <= start and window.ends_at >= end

        local_start = self._local(start)
        local_end = self._local(end)
        # Deliberate extra rule: a weekly window never covers a request that
        # spans two local dates, even when both days are listed
        if local_start.date() != local_end.date():
            return False
        if sunday_first_weekday(local_start) not in (window.days_of_week or []):
            return False

        window_start, window_end = self.local_time_range(window)
        if window_start >= window_end:
            # Crosses midnight; rejected on write, never matches if stored anyway
            return False
        return local_start.time() >= window_start and local_end.time() <= window_end

    def is_covered(self, start: datetime, end: datetime) -> bool:
        start = to_utc_naive(start)
        end = to_utc_naive(end)
        return any(self.window_covers(window, start, end) for window in self.windows)


def is_covered(
    start: datetime,
    end: datetime,
    windows: Sequence[AvailabilityWindow],
    zone: ZoneInfo | None = None,
) -> bool:
    return AvailabilityIndex(windows, zone).is_covered(start, end)

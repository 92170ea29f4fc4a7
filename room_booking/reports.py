from __future__ import annotations

import calendar
from dataclasses import dataclass, field
from datetime import date, datetime, tzinfo
from typing import Any, Callable, Hashable, Iterable, Mapping, TypeVar

from .availability import day_window
from .config import OTHERS_LABEL, TOP_BOOKED_ROOMS_LIMIT
from .models import ReservationRecord, Room, UserRecord

K = TypeVar("K", bound=Hashable)


@dataclass(frozen=True)
class UsageTotals:
    count: int = 0
    attendees: int = 0


@dataclass(frozen=True)
class RankedEntry:
    name: str
    count: int
    percentage: float

    def to_dict(self) -> dict[str, Any]:
        return {"name": self.name, "count": self.count, "percentage": self.percentage}


@dataclass(frozen=True)
class MonthlySummary:
    total_bookings: int
    total_attendees: int
    room_usage: dict[str, int] = field(default_factory=dict)
    top_booked_rooms: list[RankedEntry] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "totalBookings": self.total_bookings,
            "totalAttendees": self.total_attendees,
            "roomUsage": dict(self.room_usage),
            "topBookedRooms": [entry.to_dict() for entry in self.top_booked_rooms],
        }


def group_by_key(
    reservations: Iterable[ReservationRecord],
    key: Callable[[ReservationRecord], K],
) -> dict[K, UsageTotals]:
    """Count reservations and sum their attendees per key, in first-seen key order."""
    grouped: dict[K, UsageTotals] = {}
    for reservation in reservations:
        bucket = key(reservation)
        current = grouped.get(bucket, UsageTotals())
        grouped[bucket] = UsageTotals(current.count + 1, current.attendees + reservation.attendee_count)
    return grouped


def percentage_of(count: int, total: int) -> float:
    if total == 0:
        return 0.0
    return round(count / total * 100, 2)


def top_n_with_rollup(counts: Mapping[str, int], n: int) -> list[RankedEntry]:
    """Rank ``counts`` descending and fold everything past rank ``n - 1`` into ``Others``.

    When there are at most ``n`` labels no rollup happens. Equal counts keep
    their mapping order.
    """
    if n < 1:
        raise ValueError("n must be at least 1")

    ranked = sorted(counts.items(), key=lambda item: item[1], reverse=True)
    total = sum(count for _, count in ranked)

    if len(ranked) <= n:
        return [RankedEntry(name, count, percentage_of(count, total)) for name, count in ranked]

    head = ranked[: n - 1]
    others = sum(count for _, count in ranked[n - 1 :])
    entries = [RankedEntry(name, count, percentage_of(count, total)) for name, count in head]
    entries.append(RankedEntry(OTHERS_LABEL, others, percentage_of(others, total)))
    return entries


def within_period(
    reservations: Iterable[ReservationRecord],
    start: datetime,
    end: datetime,
) -> list[ReservationRecord]:
    return [record for record in reservations if record.start >= start and record.end <= end]


def room_usage_report(
    rooms: Iterable[Room],
    reservations: Iterable[ReservationRecord],
    start: datetime,
    end: datetime,
) -> list[dict[str, Any]]:
    usage = group_by_key(within_period(reservations, start, end), lambda record: record.room_id)
    return [
        {
            "roomId": room.room_id,
            "roomName": room.name,
            "bookingCount": usage.get(room.room_id, UsageTotals()).count,
            "totalAttendees": usage.get(room.room_id, UsageTotals()).attendees,
        }
        for room in rooms
    ]


def user_bookings_report(
    users: Iterable[UserRecord],
    reservations: Iterable[ReservationRecord],
    start: datetime,
    end: datetime,
) -> list[dict[str, Any]]:
    bookings = group_by_key(within_period(reservations, start, end), lambda record: record.user_id)
    return [
        {
            "userId": user.user_id,
            "userName": user.display_name,
            "bookingCount": bookings.get(user.user_id, UsageTotals()).count,
        }
        for user in users
    ]


def month_window(year: int, month: int, tz: tzinfo) -> tuple[datetime, datetime]:
    if not 1 <= month <= 12:
        raise ValueError("month must be between 1 and 12")
    last_day = calendar.monthrange(year, month)[1]
    first_start, _ = day_window(date(year, month, 1), tz)
    _, last_end = day_window(date(year, month, last_day), tz)
    return first_start, last_end


def monthly_summary(
    rooms: Iterable[Room],
    reservations: Iterable[ReservationRecord],
    year: int,
    month: int,
    tz: tzinfo,
    top: int = TOP_BOOKED_ROOMS_LIMIT,
) -> MonthlySummary:
    window_start, window_end = month_window(year, month, tz)
    in_month = within_period(reservations, window_start, window_end)
    room_names = {room.room_id: room.name for room in rooms}

    room_usage: dict[str, int] = {}
    for record in in_month:
        name = room_names.get(record.room_id, f"Room {record.room_id}")
        room_usage[name] = room_usage.get(name, 0) + 1

    return MonthlySummary(
        total_bookings=len(in_month),
        total_attendees=sum(record.attendee_count for record in in_month),
        room_usage=room_usage,
        top_booked_rooms=top_n_with_rollup(room_usage, top),
    )

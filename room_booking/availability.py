"""Free/booked partitioning of room days and interval availability checks."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, time, timedelta, timezone, tzinfo
from typing import Any, Iterable

from .booking import Interval
from .config import DAY_END_MICROSECOND
from .conflicts import find_conflict, find_conflicts_in
from .models import ReservationRecord, Room
from .storage import BookingStorage


@dataclass(frozen=True)
class FreeSlot:
    start: datetime
    end: datetime

    def to_dict(self) -> dict[str, str]:
        return {"start": format_instant(self.start), "end": format_instant(self.end)}


@dataclass(frozen=True)
class DayAvailability:
    day: date
    is_available: bool
    free_slots: tuple[FreeSlot, ...] | None = None

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"date": self.day.isoformat(), "isAvailable": self.is_available}
        if self.free_slots is not None:
            payload["freeSlots"] = [slot.to_dict() for slot in self.free_slots]
        return payload


@dataclass(frozen=True)
class RoomAvailabilityReport:
    room_id: int
    room_name: str
    availability: tuple[DayAvailability, ...]

    def to_dict(self) -> dict[str, Any]:
        return {
            "roomId": self.room_id,
            "roomName": self.room_name,
            "availability": [entry.to_dict() for entry in self.availability],
        }


@dataclass(frozen=True)
class RoomAvailability:
    room_id: int
    is_available: bool
    conflicting_reservations: tuple[ReservationRecord, ...]

    def to_dict(self) -> dict[str, Any]:
        return {
            "isAvailable": self.is_available,
            "conflictingBookings": [record.to_dict() for record in self.conflicting_reservations],
        }


def format_instant(value: datetime) -> str:
    return value.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def day_window(day: date, tz: tzinfo) -> tuple[datetime, datetime]:
    """Return local midnight and the last millisecond (23:59:59.999) of ``day``.

    The end is inclusive, unlike every other interval in the package.
    """
    day_start = datetime.combine(day, time.min, tzinfo=tz)
    day_end = datetime.combine(day, time(23, 59, 59, DAY_END_MICROSECOND), tzinfo=tz)
    return day_start, day_end


def reservations_for_day(
    reservations: Iterable[ReservationRecord],
    day_start: datetime,
    day_end: datetime,
) -> list[ReservationRecord]:
    tz = day_start.tzinfo
    day = day_start.date()
    selected: list[ReservationRecord] = []
    for reservation in reservations:
        touches_window = reservation.start <= day_end and reservation.end > day_start
        # same local start date also counts; kept for reservations crossing midnight
        starts_same_day = reservation.start.astimezone(tz).date() == day
        if touches_window or starts_same_day:
            selected.append(reservation)
    return selected


def find_free_time_slots(
    reservations: Iterable[ReservationRecord],
    day_start: datetime,
    day_end: datetime,
) -> list[FreeSlot]:
    """Sweep the day's reservations in start order and return the gaps.

    The caller's sequence is never reordered; the last slot ends at ``day_end``.
    """
    ordered = sorted(reservations, key=lambda reservation: reservation.start)
    free_slots: list[FreeSlot] = []
    cursor = day_start

    for reservation in ordered:
        if reservation.start > cursor:
            free_slots.append(FreeSlot(cursor, reservation.start))
        if reservation.end > cursor:
            cursor = reservation.end

    if cursor < day_end:
        free_slots.append(FreeSlot(cursor, day_end))
    return free_slots


def scan_availability(
    rooms: Iterable[Room],
    reservations: Iterable[ReservationRecord],
    range_start: datetime,
    range_end: datetime,
) -> list[RoomAvailabilityReport]:
    if range_start.tzinfo is None or range_end.tzinfo is None:
        raise ValueError("Range instants must be timezone-aware.")
    if range_start > range_end:
        raise ValueError("Range start must not be later than range end.")

    tz = range_start.tzinfo
    days = _days_in_range(range_start, range_end)
    reservation_list = list(reservations)

    reports: list[RoomAvailabilityReport] = []
    for room in rooms:
        room_reservations = [record for record in reservation_list if record.room_id == room.room_id]
        entries: list[DayAvailability] = []
        for day in days:
            day_start, day_end = day_window(day, tz)
            day_reservations = reservations_for_day(room_reservations, day_start, day_end)
            if not day_reservations:
                entries.append(DayAvailability(day=day, is_available=True))
                continue

            free_slots = find_free_time_slots(day_reservations, day_start, day_end)
            entries.append(DayAvailability(day=day, is_available=bool(free_slots), free_slots=tuple(free_slots)))

        reports.append(RoomAvailabilityReport(room.room_id, room.name, tuple(entries)))
    return reports


def check_room_availability(storage: BookingStorage, room_id: int, interval: Interval) -> RoomAvailability:
    conflicting = find_conflicts_in(storage.list_reservations_for_room(room_id), interval)
    return RoomAvailability(
        room_id=room_id,
        is_available=not conflicting,
        conflicting_reservations=tuple(conflicting),
    )


def list_available_rooms(storage: BookingStorage, interval: Interval) -> list[Room]:
    return [room for room in storage.list_rooms() if find_conflict(storage, room.room_id, interval) is None]


def _days_in_range(range_start: datetime, range_end: datetime) -> list[date]:
    tz = range_start.tzinfo
    day = range_start.date()
    days: list[date] = []
    while max(range_start, datetime.combine(day, time.min, tzinfo=tz)) < range_end:
        days.append(day)
        day += timedelta(days=1)
    return days

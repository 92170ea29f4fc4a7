from __future__ import annotations

from typing import Iterable

from .booking import Interval
from .models import ReservationRecord
from .storage import BookingStorage


def find_conflicts_in(
    reservations: Iterable[ReservationRecord],
    candidate: Interval,
    exclude_reservation_id: int | None = None,
) -> list[ReservationRecord]:
    """Return every reservation overlapping ``candidate``, in input order."""
    if candidate.is_empty:
        raise ValueError("Candidate start time must be earlier than end time.")

    return [
        reservation
        for reservation in reservations
        if reservation.reservation_id != exclude_reservation_id and reservation.interval.overlaps(candidate)
    ]


def find_conflict(
    storage: BookingStorage,
    room_id: int,
    candidate: Interval,
    exclude_reservation_id: int | None = None,
) -> ReservationRecord | None:
    """Return the first reservation of ``room_id`` overlapping ``candidate``, or None.

    ``exclude_reservation_id`` skips the reservation being updated so it is
    never reported as conflicting with itself.
    """
    if candidate.is_empty:
        raise ValueError("Candidate start time must be earlier than end time.")

    for reservation in storage.list_reservations_for_room(room_id):
        if reservation.reservation_id == exclude_reservation_id:
            continue
        if reservation.interval.overlaps(candidate):
            return reservation
    return None


def can_reserve(
    storage: BookingStorage,
    room_id: int,
    candidate: Interval,
    exclude_reservation_id: int | None = None,
) -> bool:
    return find_conflict(storage, room_id, candidate, exclude_reservation_id) is None

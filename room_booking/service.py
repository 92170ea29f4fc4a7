"""Request-scoped booking flows over an injected storage port.

Every entry point takes the storage, a capability check and explicit inputs,
and returns a :class:`ServiceResult`. Malformed input raises ``ValueError``;
conflicts, missing records and denied access come back as result statuses.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, tzinfo
from typing import Any

from .auth import AuthResult, Authenticator, can_manage, is_owner
from .availability import check_room_availability, list_available_rooms, scan_availability
from .booking import Interval
from .config import TOP_BOOKED_ROOMS_LIMIT, default_timezone
from .conflicts import find_conflict
from .image_store import ImageUpload, RoomImageStore
from .models import ReservationRecord, Room
from .reports import monthly_summary, room_usage_report, user_bookings_report
from .storage import BookingStorage, ReservationFilter

logger = logging.getLogger(__name__)

CONFLICT_MESSAGE = "This room is already booked for the specified time period."


@dataclass(frozen=True)
class ReservationRequest:
    room_id: int
    start: datetime
    end: datetime
    title: str
    attendee_count: int
    description: str | None = None


@dataclass(frozen=True)
class ReservationChange:
    start: datetime
    end: datetime
    title: str
    attendee_count: int
    description: str | None = None


@dataclass(frozen=True)
class RoomRequest:
    name: str
    capacity: int
    description: str | None = None
    image: ImageUpload | None = None


@dataclass(frozen=True)
class ServiceResult:
    status: str
    reservation: ReservationRecord | None = None
    conflict: ReservationRecord | None = None
    room: Room | None = None
    payload: Any = None
    message: str | None = None

    @property
    def ok(self) -> bool:
        return self.status in {"ok", "created", "updated", "deleted"}


def _unauthorized(auth: AuthResult) -> ServiceResult:
    return ServiceResult(status="unauthorized", message=auth.error or "Unauthorized")


def _validated_interval(start: datetime, end: datetime, title: str, attendee_count: int) -> Interval:
    interval = Interval.validated(start, end)
    if not title or not title.strip():
        raise ValueError("title must not be empty")
    if isinstance(attendee_count, bool) or not isinstance(attendee_count, int) or attendee_count <= 0:
        raise ValueError("attendee_count must be a positive integer")
    return interval


# reservations


def create_reservation(
    storage: BookingStorage,
    authenticate: Authenticator,
    request: ReservationRequest,
    now: datetime | None = None,
) -> ServiceResult:
    auth = authenticate()
    if not auth.success:
        return _unauthorized(auth)

    interval = _validated_interval(request.start, request.end, request.title, request.attendee_count)
    if storage.get_room(request.room_id) is None:
        return ServiceResult(status="not_found", message="Room not found")

    with storage.room_lock(request.room_id):
        conflict = find_conflict(storage, request.room_id, interval)
        if conflict is not None:
            logger.info(
                "Reservation for room %s rejected, overlaps reservation %s",
                request.room_id,
                conflict.reservation_id,
            )
            return ServiceResult(status="conflict", conflict=conflict, message=CONFLICT_MESSAGE)

        created = storage.add_reservation(
            user_id=int(auth.user_id),
            room_id=request.room_id,
            start=interval.start,
            end=interval.end,
            title=request.title,
            attendee_count=request.attendee_count,
            description=request.description,
            now=now,
        )
    return ServiceResult(status="created", reservation=created)


def update_reservation(
    storage: BookingStorage,
    authenticate: Authenticator,
    reservation_id: int,
    change: ReservationChange,
    now: datetime | None = None,
) -> ServiceResult:
    auth = authenticate()
    if not auth.success:
        return _unauthorized(auth)

    interval = _validated_interval(change.start, change.end, change.title, change.attendee_count)
    current = storage.get_reservation(reservation_id)
    if current is None:
        return ServiceResult(status="not_found", message="Booking not found")
    if not is_owner(auth, current.user_id):
        return ServiceResult(status="forbidden", message="Access denied. You can only update your own bookings.")

    with storage.room_lock(current.room_id):
        conflict = find_conflict(storage, current.room_id, interval, exclude_reservation_id=reservation_id)
        if conflict is not None:
            logger.info(
                "Update of reservation %s rejected, overlaps reservation %s",
                reservation_id,
                conflict.reservation_id,
            )
            return ServiceResult(status="conflict", conflict=conflict, message=CONFLICT_MESSAGE)

        updated = storage.update_reservation(
            reservation_id,
            start=interval.start,
            end=interval.end,
            title=change.title,
            attendee_count=change.attendee_count,
            description=change.description,
            now=now,
        )
    return ServiceResult(status="updated", reservation=updated)


def delete_reservation(
    storage: BookingStorage,
    authenticate: Authenticator,
    reservation_id: int,
    now: datetime | None = None,
) -> ServiceResult:
    auth = authenticate()
    if not auth.success:
        return _unauthorized(auth)

    current = storage.get_reservation(reservation_id)
    if current is None:
        return ServiceResult(status="not_found", message="Booking not found")
    if not can_manage(auth, current.user_id):
        return ServiceResult(status="forbidden", message="Access denied. You can only delete your own bookings.")

    with storage.room_lock(current.room_id):
        deleted = storage.delete_reservation(reservation_id, now=now)
    return ServiceResult(status="deleted", reservation=deleted)


def get_reservation(storage: BookingStorage, authenticate: Authenticator, reservation_id: int) -> ServiceResult:
    auth = authenticate()
    if not auth.success:
        return _unauthorized(auth)

    record = storage.get_reservation(reservation_id)
    if record is None:
        return ServiceResult(status="not_found", message="Booking not found")
    if not is_owner(auth, record.user_id):
        return ServiceResult(status="forbidden", message="Access denied. You can only view your own bookings.")
    return ServiceResult(status="ok", reservation=record)


def list_reservations(storage: BookingStorage, authenticate: Authenticator) -> ServiceResult:
    auth = authenticate()
    if not auth.success:
        return _unauthorized(auth)
    return ServiceResult(status="ok", payload=storage.list_reservations())


def list_my_reservations(storage: BookingStorage, authenticate: Authenticator) -> ServiceResult:
    auth = authenticate()
    if not auth.success:
        return _unauthorized(auth)
    return ServiceResult(status="ok", payload=storage.list_reservations(ReservationFilter(user_id=auth.user_id)))


# rooms


def _store_image(image_store: RoomImageStore, image: ImageUpload | None) -> str | None:
    if image is None or not image.is_image:
        return None
    return image_store.save(image)


def create_room(
    storage: BookingStorage,
    authenticate: Authenticator,
    image_store: RoomImageStore,
    request: RoomRequest,
) -> ServiceResult:
    auth = authenticate()
    if not auth.success:
        return _unauthorized(auth)
    if not auth.is_admin:
        return ServiceResult(status="forbidden", message="Access denied. Administrator role required.")

    image_url = _store_image(image_store, request.image)
    try:
        room = storage.add_room(request.name, request.capacity, request.description, image_url)
    except Exception:
        image_store.release(image_url)
        raise
    return ServiceResult(status="created", room=room)


def update_room(
    storage: BookingStorage,
    authenticate: Authenticator,
    image_store: RoomImageStore,
    room_id: int,
    request: RoomRequest,
) -> ServiceResult:
    auth = authenticate()
    if not auth.success:
        return _unauthorized(auth)
    if not auth.is_admin:
        return ServiceResult(status="forbidden", message="Access denied. Administrator role required.")

    current = storage.get_room(room_id)
    if current is None:
        return ServiceResult(status="not_found", message="Room not found")

    new_image_url = _store_image(image_store, request.image)
    try:
        updated = storage.update_room(
            room_id,
            name=request.name,
            capacity=request.capacity,
            description=request.description,
            image_url=new_image_url or current.image_url,
        )
    except Exception:
        image_store.release(new_image_url)
        raise

    # old blob goes only once the room no longer points at it
    if new_image_url is not None:
        image_store.release(current.image_url)
    return ServiceResult(status="updated", room=updated)


def delete_room(
    storage: BookingStorage,
    authenticate: Authenticator,
    image_store: RoomImageStore,
    room_id: int,
) -> ServiceResult:
    auth = authenticate()
    if not auth.success:
        return _unauthorized(auth)
    if not auth.is_admin:
        return ServiceResult(status="forbidden", message="Access denied. Administrator role required.")

    current = storage.get_room(room_id)
    if current is None:
        return ServiceResult(status="not_found", message="Room not found")

    image_store.release(current.image_url)
    deleted = storage.delete_room(room_id)
    return ServiceResult(status="deleted", room=deleted)


# availability and reports


def _check_range(start: datetime, end: datetime) -> None:
    if start.tzinfo is None or end.tzinfo is None:
        raise ValueError("Range instants must be timezone-aware.")
    if start > end:
        raise ValueError("Invalid date range")


def room_availability(storage: BookingStorage, room_id: int, start: datetime, end: datetime) -> ServiceResult:
    interval = Interval.validated(start, end)
    return ServiceResult(status="ok", payload=check_room_availability(storage, room_id, interval).to_dict())


def available_rooms(
    storage: BookingStorage,
    authenticate: Authenticator,
    start: datetime,
    end: datetime,
) -> ServiceResult:
    auth = authenticate()
    if not auth.success:
        return _unauthorized(auth)

    interval = Interval.validated(start, end)
    return ServiceResult(status="ok", payload=[room.to_dict() for room in list_available_rooms(storage, interval)])


def available_rooms_report(
    storage: BookingStorage,
    authenticate: Authenticator,
    start: datetime,
    end: datetime,
) -> ServiceResult:
    auth = authenticate()
    if not auth.success:
        return _unauthorized(auth)
    _check_range(start, end)

    reports = scan_availability(storage.list_rooms(), storage.list_reservations(), start, end)
    return ServiceResult(status="ok", payload=[report.to_dict() for report in reports])


def room_usage(storage: BookingStorage, authenticate: Authenticator, start: datetime, end: datetime) -> ServiceResult:
    auth = authenticate()
    if not auth.success:
        return _unauthorized(auth)
    _check_range(start, end)

    reservations = storage.list_reservations(ReservationFilter(starts_at_or_after=start, ends_at_or_before=end))
    return ServiceResult(status="ok", payload=room_usage_report(storage.list_rooms(), reservations, start, end))


def user_bookings(storage: BookingStorage, authenticate: Authenticator, start: datetime, end: datetime) -> ServiceResult:
    auth = authenticate()
    if not auth.success:
        return _unauthorized(auth)
    _check_range(start, end)

    reservations = storage.list_reservations(ReservationFilter(starts_at_or_after=start, ends_at_or_before=end))
    return ServiceResult(status="ok", payload=user_bookings_report(storage.list_users(), reservations, start, end))


def monthly_report(
    storage: BookingStorage,
    authenticate: Authenticator,
    year: int,
    month: int,
    tz: tzinfo | None = None,
    top: int = TOP_BOOKED_ROOMS_LIMIT,
) -> ServiceResult:
    auth = authenticate()
    if not auth.success:
        return _unauthorized(auth)

    summary = monthly_summary(
        storage.list_rooms(),
        storage.list_reservations(),
        int(year),
        int(month),
        tz or default_timezone(),
        top=top,
    )
    return ServiceResult(status="ok", payload=summary.to_dict())

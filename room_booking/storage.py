from __future__ import annotations

from contextlib import AbstractContextManager
from dataclasses import dataclass
from datetime import datetime
from typing import Protocol

from .models import ReservationRecord, Room, UserRecord


@dataclass(frozen=True)
class ReservationFilter:
    room_id: int | None = None
    user_id: int | None = None
    starts_at_or_after: datetime | None = None
    ends_at_or_before: datetime | None = None

    def matches(self, record: ReservationRecord) -> bool:
        if self.room_id is not None and record.room_id != self.room_id:
            return False
        if self.user_id is not None and record.user_id != self.user_id:
            return False
        if self.starts_at_or_after is not None and record.start < self.starts_at_or_after:
            return False
        if self.ends_at_or_before is not None and record.end > self.ends_at_or_before:
            return False
        return True


class BookingStorage(Protocol):
    """Query and write surface the booking core needs from a data store."""

    def list_rooms(self) -> list[Room]: ...

    def get_room(self, room_id: int) -> Room | None: ...

    def list_users(self) -> list[UserRecord]: ...

    def list_reservations(self, reservation_filter: ReservationFilter | None = None) -> list[ReservationRecord]: ...

    def list_reservations_for_room(self, room_id: int) -> list[ReservationRecord]: ...

    def get_reservation(self, reservation_id: int) -> ReservationRecord | None: ...

    def room_lock(self, room_id: int) -> AbstractContextManager[None]: ...

    def add_reservation(
        self,
        *,
        user_id: int,
        room_id: int,
        start: datetime,
        end: datetime,
        title: str,
        attendee_count: int,
        description: str | None = None,
        now: datetime | None = None,
    ) -> ReservationRecord: ...

    def update_reservation(
        self,
        reservation_id: int,
        *,
        start: datetime,
        end: datetime,
        title: str,
        attendee_count: int,
        description: str | None = None,
        now: datetime | None = None,
    ) -> ReservationRecord: ...

    def delete_reservation(self, reservation_id: int, now: datetime | None = None) -> ReservationRecord: ...

    def add_room(
        self,
        name: str,
        capacity: int,
        description: str | None = None,
        image_url: str | None = None,
    ) -> Room: ...

    def update_room(
        self,
        room_id: int,
        *,
        name: str,
        capacity: int,
        description: str | None = None,
        image_url: str | None = None,
    ) -> Room: ...

    def delete_room(self, room_id: int) -> Room: ...

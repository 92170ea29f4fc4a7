from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import replace
from datetime import date, datetime, timedelta, timezone, tzinfo
from pathlib import Path
from typing import Any
import random
import shutil
import threading

import yaml

from .booking import has_time_overlap
from .models import ReservationRecord, Role, Room, UserRecord
from .storage import ReservationFilter


class BookingStorageError(RuntimeError):
    pass


BUSINESS_START_HOUR = 8
BUSINESS_END_HOUR = 19
DEMO_ROOMS = [
    ("Board Room", "Executive meeting room with video wall", 12),
    ("Focus Room", "Quiet room for two", 2),
    ("Workshop", "Open space with whiteboards", 30),
    ("Studio", "Recording and call booth", 4),
    ("Garden Room", "Ground floor, garden view", 8),
    ("Lecture Hall", "Tiered seating with projector", 80),
]
DEMO_USERS = [
    ("admin", "admin@example.com", "Ada", "Admin", Role.ADMIN),
    ("jdoe", "jdoe@example.com", "John", "Doe", Role.USER),
    ("msmith", "msmith@example.com", "Mary", "Smith", Role.USER),
    ("kchan", "kchan@example.com", "Kai", "Chan", Role.USER),
]


class BookingYamlRepository:
    def __init__(self, base_dir: str | Path = "data") -> None:
        self.base_dir = Path(base_dir)
        self.rooms_file = self.base_dir / "rooms.yaml"
        self.users_file = self.base_dir / "users.yaml"
        self.reservations_file = self.base_dir / "reservations.yaml"
        self.log_file = self.base_dir / "booking_events.yaml"
        self._file_lock = threading.RLock()
        self._room_locks: dict[int, threading.Lock] = {}
        self._room_locks_guard = threading.Lock()
        self._ensure_files()

    def _ensure_files(self) -> None:
        self.base_dir.mkdir(parents=True, exist_ok=True)
        for path in (self.rooms_file, self.users_file, self.reservations_file, self.log_file):
            if not path.exists():
                path.write_text("[]\n", encoding="utf-8")

    def _read_yaml_list(self, path: Path) -> list[dict[str, Any]]:
        try:
            payload = yaml.safe_load(path.read_text(encoding="utf-8"))
        except FileNotFoundError:
            path.write_text("[]\n", encoding="utf-8")
            return []
        except (OSError, UnicodeDecodeError, yaml.YAMLError) as error:
            self._recover_corrupted_yaml(path, error)
            return []

        if payload is None:
            return []
        if not isinstance(payload, list):
            self._recover_corrupted_yaml(path, ValueError("top-level YAML is not a list"))
            return []

        sanitized: list[dict[str, Any]] = []
        for index, row in enumerate(payload):
            if isinstance(row, dict):
                sanitized.append(row)
            elif path != self.log_file:
                self._log_event(
                    "YAML_ROW_SKIPPED",
                    {
                        "file": str(path.name),
                        "index": index,
                        "reason": "row is not a mapping",
                    },
                )
        return sanitized

    def _write_yaml_list(self, path: Path, rows: list[dict[str, Any]]) -> None:
        temp_path = path.with_suffix(path.suffix + ".tmp")
        try:
            temp_path.write_text(yaml.safe_dump(rows, allow_unicode=True, sort_keys=False), encoding="utf-8")
            temp_path.replace(path)
        except OSError as error:
            raise BookingStorageError(f"Failed to write YAML file: {path}") from error
        finally:
            if temp_path.exists():
                temp_path.unlink(missing_ok=True)

    def _recover_corrupted_yaml(self, path: Path, error: Exception) -> None:
        timestamp = datetime.now().strftime("%Y%m%d%H%M%S")
        backup_path = path.with_name(f"{path.stem}.corrupt.{timestamp}{path.suffix}")
        try:
            if path.exists():
                shutil.copy2(path, backup_path)
        except OSError:
            backup_path = path

        path.write_text("[]\n", encoding="utf-8")
        if path != self.log_file:
            self._log_event(
                "YAML_RECOVERED",
                {
                    "file": str(path.name),
                    "backup": str(backup_path.name),
                    "reason": str(error),
                },
            )

    def _log_event(self, event_type: str, payload: dict[str, Any], event_time: datetime | None = None) -> None:
        timestamp = (event_time or datetime.now(timezone.utc)).isoformat(timespec="seconds")
        with self._file_lock:
            events = self._read_yaml_list(self.log_file)
            events.append({"event_time": timestamp, "event_type": event_type, "payload": payload})
            self._write_yaml_list(self.log_file, events)

    def get_events(self) -> list[dict[str, Any]]:
        return self._read_yaml_list(self.log_file)

    @contextmanager
    def room_lock(self, room_id: int) -> Iterator[None]:
        """Serialize check-then-write sequences for one room within this process."""
        with self._room_locks_guard:
            lock = self._room_locks.setdefault(room_id, threading.Lock())
        with lock:
            yield

    # rooms

    def list_rooms(self) -> list[Room]:
        return [Room.from_dict(row) for row in self._read_yaml_list(self.rooms_file)]

    def get_room(self, room_id: int) -> Room | None:
        for room in self.list_rooms():
            if room.room_id == room_id:
                return room
        return None

    def add_room(
        self,
        name: str,
        capacity: int,
        description: str | None = None,
        image_url: str | None = None,
    ) -> Room:
        name = _normalize_name(name, "room name")
        _validate_positive(capacity, "capacity")

        with self._file_lock:
            rows = self._read_yaml_list(self.rooms_file)
            room = Room(
                room_id=_next_id(rows, "room_id"),
                name=name,
                capacity=capacity,
                description=description,
                image_url=image_url,
            )
            rows.append(room.to_dict())
            self._write_yaml_list(self.rooms_file, rows)

        self._log_event("ROOM_CREATED", {"room_id": room.room_id, "name": room.name, "capacity": room.capacity})
        return room

    def update_room(
        self,
        room_id: int,
        *,
        name: str,
        capacity: int,
        description: str | None = None,
        image_url: str | None = None,
    ) -> Room:
        name = _normalize_name(name, "room name")
        _validate_positive(capacity, "capacity")

        with self._file_lock:
            rows = self._read_yaml_list(self.rooms_file)
            found_index = _find_index(rows, "room_id", room_id)
            if found_index < 0:
                raise ValueError("room_id not found")

            updated = Room(
                room_id=room_id,
                name=name,
                capacity=capacity,
                description=description,
                image_url=image_url,
            )
            rows[found_index] = updated.to_dict()
            self._write_yaml_list(self.rooms_file, rows)

        self._log_event("ROOM_UPDATED", {"room_id": room_id, "name": name, "capacity": capacity})
        return updated

    def delete_room(self, room_id: int) -> Room:
        with self._file_lock:
            rows = self._read_yaml_list(self.rooms_file)
            found_index = _find_index(rows, "room_id", room_id)
            if found_index < 0:
                raise ValueError("room_id not found")

            deleted = Room.from_dict(rows.pop(found_index))
            self._write_yaml_list(self.rooms_file, rows)

        self._log_event("ROOM_DELETED", {"room_id": room_id, "name": deleted.name})
        return deleted

    # users

    def list_users(self) -> list[UserRecord]:
        return [UserRecord.from_dict(row) for row in self._read_yaml_list(self.users_file)]

    def get_user(self, user_id: int) -> UserRecord | None:
        for user in self.list_users():
            if user.user_id == user_id:
                return user
        return None

    def add_user(
        self,
        username: str,
        email: str,
        password_hash: str,
        first_name: str,
        last_name: str,
        role: Role = Role.USER,
        nickname: str | None = None,
        phone: str | None = None,
    ) -> UserRecord:
        username = _normalize_name(username, "username")
        email = _normalize_name(email, "email")

        with self._file_lock:
            rows = self._read_yaml_list(self.users_file)
            existing = [UserRecord.from_dict(row) for row in rows]
            if any(user.username == username or user.email == email for user in existing):
                raise ValueError("Username or email already exists")

            user = UserRecord(
                user_id=_next_id(rows, "user_id"),
                username=username,
                email=email,
                password_hash=password_hash,
                first_name=first_name,
                last_name=last_name,
                nickname=nickname,
                phone=phone,
                role=role,
            )
            rows.append(user.to_dict())
            self._write_yaml_list(self.users_file, rows)

        self._log_event("USER_CREATED", {"user_id": user.user_id, "username": username, "role": role.value})
        return user

    # reservations

    def list_reservations(self, reservation_filter: ReservationFilter | None = None) -> list[ReservationRecord]:
        records = [ReservationRecord.from_dict(row) for row in self._read_yaml_list(self.reservations_file)]
        if reservation_filter is None:
            return records
        return [record for record in records if reservation_filter.matches(record)]

    def list_reservations_for_room(self, room_id: int) -> list[ReservationRecord]:
        return self.list_reservations(ReservationFilter(room_id=room_id))

    def get_reservation(self, reservation_id: int) -> ReservationRecord | None:
        for record in self.list_reservations():
            if record.reservation_id == reservation_id:
                return record
        return None

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
    ) -> ReservationRecord:
        effective_now = now or datetime.now(timezone.utc)
        if start >= end:
            raise ValueError("Reservation start time must be earlier than end time.")
        _validate_positive(attendee_count, "attendee_count")
        if self.get_room(room_id) is None:
            raise ValueError("room_id not found")

        with self._file_lock:
            rows = self._read_yaml_list(self.reservations_file)
            record = ReservationRecord(
                reservation_id=_next_id(rows, "reservation_id"),
                user_id=user_id,
                room_id=room_id,
                start=start,
                end=end,
                title=title,
                attendee_count=attendee_count,
                created_at=effective_now,
                updated_at=effective_now,
                description=description,
            )
            rows.append(record.to_dict())
            self._write_yaml_list(self.reservations_file, rows)

        self._log_event(
            "RESERVATION_CREATED",
            {
                "reservation_id": record.reservation_id,
                "user_id": user_id,
                "room_id": room_id,
                "start": record.start.isoformat(),
                "end": record.end.isoformat(),
            },
            effective_now,
        )
        return record

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
    ) -> ReservationRecord:
        effective_now = now or datetime.now(timezone.utc)
        if start >= end:
            raise ValueError("Reservation start time must be earlier than end time.")
        _validate_positive(attendee_count, "attendee_count")

        with self._file_lock:
            rows = self._read_yaml_list(self.reservations_file)
            found_index = _find_index(rows, "reservation_id", reservation_id)
            if found_index < 0:
                raise ValueError("reservation_id not found")

            current = ReservationRecord.from_dict(rows[found_index])
            updated = replace(
                current,
                start=start,
                end=end,
                title=title,
                attendee_count=attendee_count,
                description=description,
                updated_at=effective_now,
            )
            rows[found_index] = updated.to_dict()
            self._write_yaml_list(self.reservations_file, rows)

        self._log_event(
            "RESERVATION_UPDATED",
            {
                "reservation_id": reservation_id,
                "room_id": updated.room_id,
                "start": start.isoformat(),
                "end": end.isoformat(),
            },
            effective_now,
        )
        return updated

    def delete_reservation(self, reservation_id: int, now: datetime | None = None) -> ReservationRecord:
        effective_now = now or datetime.now(timezone.utc)
        with self._file_lock:
            rows = self._read_yaml_list(self.reservations_file)
            found_index = _find_index(rows, "reservation_id", reservation_id)
            if found_index < 0:
                raise ValueError("reservation_id not found")

            deleted = ReservationRecord.from_dict(rows.pop(found_index))
            self._write_yaml_list(self.reservations_file, rows)

        self._log_event(
            "RESERVATION_DELETED",
            {"reservation_id": reservation_id, "room_id": deleted.room_id},
            effective_now,
        )
        return deleted

    def seed_demo_data(
        self,
        start_date: date,
        tz: tzinfo = timezone.utc,
        days: int = 30,
        per_room_per_day: int = 3,
    ) -> list[ReservationRecord]:
        """Replace rooms, users and reservations with a deterministic demo data set."""
        with self._file_lock:
            for path in (self.rooms_file, self.users_file, self.reservations_file):
                self._write_yaml_list(path, [])

        rooms = [self.add_room(name, capacity, description) for name, description, capacity in DEMO_ROOMS]
        users = [
            self.add_user(username, email, "!", first_name, last_name, role=role)
            for username, email, first_name, last_name, role in DEMO_USERS
        ]

        generated = generate_demo_reservations(
            rooms,
            [user.user_id for user in users],
            start_date,
            tz=tz,
            days=days,
            per_room_per_day=per_room_per_day,
        )
        with self._file_lock:
            self._write_yaml_list(self.reservations_file, [record.to_dict() for record in generated])

        self._log_event(
            "DEMO_DATA_GENERATED",
            {
                "rooms": len(rooms),
                "users": len(users),
                "reservations": len(generated),
                "start_date": start_date.isoformat(),
                "days": days,
                "business_hours": f"{BUSINESS_START_HOUR:02d}:00-{BUSINESS_END_HOUR:02d}:00",
            },
        )
        return generated


def generate_demo_reservations(
    rooms: list[Room],
    user_ids: list[int],
    start_date: date,
    tz: tzinfo = timezone.utc,
    days: int = 30,
    per_room_per_day: int = 3,
) -> list[ReservationRecord]:
    if days <= 0:
        raise ValueError("days must be greater than zero")
    if per_room_per_day <= 0:
        raise ValueError("per_room_per_day must be greater than zero")
    if not user_ids:
        raise ValueError("user_ids must not be empty")

    rng = random.Random(f"demo:{start_date.isoformat()}:{days}:{per_room_per_day}")
    created_at = datetime(start_date.year, start_date.month, start_date.day, tzinfo=tz)
    records: list[ReservationRecord] = []

    for offset in range(days):
        day = start_date + timedelta(days=offset)
        if day.weekday() >= 5:
            continue

        for room in rooms:
            taken: list[tuple[datetime, datetime]] = []
            for _ in range(per_room_per_day * 3):
                if len(taken) >= per_room_per_day:
                    break
                start = datetime(
                    day.year,
                    day.month,
                    day.day,
                    rng.randint(BUSINESS_START_HOUR, BUSINESS_END_HOUR - 2),
                    rng.choice([0, 15, 30, 45]),
                    tzinfo=tz,
                )
                end = start + timedelta(minutes=rng.choice([30, 45, 60, 90, 120]))
                if any(has_time_overlap(start, end, other_start, other_end) for other_start, other_end in taken):
                    continue

                taken.append((start, end))
                records.append(
                    ReservationRecord(
                        reservation_id=len(records) + 1,
                        user_id=rng.choice(user_ids),
                        room_id=room.room_id,
                        start=start,
                        end=end,
                        title=f"{room.name} meeting",
                        attendee_count=rng.randint(1, room.capacity),
                        created_at=created_at,
                        updated_at=created_at,
                    )
                )

    return records


def _next_id(rows: list[dict[str, Any]], field_name: str) -> int:
    return max((int(row.get(field_name, 0)) for row in rows), default=0) + 1


def _find_index(rows: list[dict[str, Any]], field_name: str, value: int) -> int:
    for index, row in enumerate(rows):
        if str(row.get(field_name)) == str(value):
            return index
    return -1


def _normalize_name(value: str | None, label: str) -> str:
    if value is None:
        raise ValueError(f"{label} must not be None")

    normalized = value.strip()
    if not normalized:
        raise ValueError(f"{label} must not be empty")
    return normalized


def _validate_positive(value: int, label: str) -> None:
    if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
        raise ValueError(f"{label} must be a positive integer")

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any

from .booking import Interval


class Role(str, Enum):
    USER = "USER"
    ADMIN = "ADMIN"


@dataclass(frozen=True)
class Room:
    room_id: int
    name: str
    capacity: int
    description: str | None = None
    image_url: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "room_id": self.room_id,
            "name": self.name,
            "description": self.description,
            "capacity": self.capacity,
            "image_url": self.image_url,
        }

    @staticmethod
    def from_dict(data: dict[str, Any]) -> "Room":
        return Room(
            room_id=int(data["room_id"]),
            name=str(data["name"]),
            capacity=int(data["capacity"]),
            description=(str(data["description"]) if data.get("description") is not None else None),
            image_url=(str(data["image_url"]) if data.get("image_url") is not None else None),
        )


@dataclass(frozen=True)
class ReservationRecord:
    reservation_id: int
    user_id: int
    room_id: int
    start: datetime
    end: datetime
    title: str
    attendee_count: int
    created_at: datetime
    updated_at: datetime
    description: str | None = None

    @property
    def interval(self) -> Interval:
        return Interval(self.start, self.end)

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "reservation_id": self.reservation_id,
            "user_id": self.user_id,
            "room_id": self.room_id,
            "start": self.start.isoformat(),
            "end": self.end.isoformat(),
            "title": self.title,
            "attendee_count": self.attendee_count,
            "created_at": self.created_at.isoformat(timespec="seconds"),
            "updated_at": self.updated_at.isoformat(timespec="seconds"),
        }
        if self.description is not None:
            payload["description"] = self.description
        return payload

    @staticmethod
    def from_dict(data: dict[str, Any]) -> "ReservationRecord":
        return ReservationRecord(
            reservation_id=int(data["reservation_id"]),
            user_id=int(data["user_id"]),
            room_id=int(data["room_id"]),
            start=datetime.fromisoformat(str(data["start"])),
            end=datetime.fromisoformat(str(data["end"])),
            title=str(data["title"]),
            attendee_count=int(data["attendee_count"]),
            created_at=datetime.fromisoformat(str(data["created_at"])),
            updated_at=datetime.fromisoformat(str(data["updated_at"])),
            description=(str(data.get("description")) if data.get("description") is not None else None),
        )


@dataclass(frozen=True)
class UserRecord:
    user_id: int
    username: str
    email: str
    password_hash: str
    first_name: str
    last_name: str
    nickname: str | None = None
    phone: str | None = None
    role: Role = Role.USER
    password_changed: bool = False

    @property
    def display_name(self) -> str:
        return f"{self.first_name} {self.last_name}"

    def to_dict(self) -> dict[str, Any]:
        return {
            "user_id": self.user_id,
            "username": self.username,
            "email": self.email,
            "password_hash": self.password_hash,
            "first_name": self.first_name,
            "last_name": self.last_name,
            "nickname": self.nickname,
            "phone": self.phone,
            "role": self.role.value,
            "password_changed": self.password_changed,
        }

    @staticmethod
    def from_dict(data: dict[str, Any]) -> "UserRecord":
        return UserRecord(
            user_id=int(data["user_id"]),
            username=str(data["username"]),
            email=str(data["email"]),
            password_hash=str(data["password_hash"]),
            first_name=str(data["first_name"]),
            last_name=str(data["last_name"]),
            nickname=(str(data["nickname"]) if data.get("nickname") is not None else None),
            phone=(str(data["phone"]) if data.get("phone") is not None else None),
            role=Role(str(data.get("role", Role.USER.value))),
            password_changed=bool(data.get("password_changed", False)),
        )

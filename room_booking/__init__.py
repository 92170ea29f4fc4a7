from .auth import AuthResult, Authenticator
from .availability import (
    DayAvailability,
    FreeSlot,
    RoomAvailability,
    RoomAvailabilityReport,
    check_room_availability,
    day_window,
    find_free_time_slots,
    list_available_rooms,
    scan_availability,
)
from .booking import Interval, has_time_overlap, parse_instant
from .conflicts import can_reserve, find_conflict, find_conflicts_in
from .image_store import ImageUpload, RoomImageStore
from .models import ReservationRecord, Role, Room, UserRecord
from .reports import (
    MonthlySummary,
    RankedEntry,
    UsageTotals,
    group_by_key,
    month_window,
    monthly_summary,
    room_usage_report,
    top_n_with_rollup,
    user_bookings_report,
)
from .storage import BookingStorage, ReservationFilter
from .yaml_store import BookingStorageError, BookingYamlRepository, generate_demo_reservations

__all__ = [
    "AuthResult",
    "Authenticator",
    "DayAvailability",
    "FreeSlot",
    "RoomAvailability",
    "RoomAvailabilityReport",
    "check_room_availability",
    "day_window",
    "find_free_time_slots",
    "list_available_rooms",
    "scan_availability",
    "Interval",
    "has_time_overlap",
    "parse_instant",
    "can_reserve",
    "find_conflict",
    "find_conflicts_in",
    "ImageUpload",
    "RoomImageStore",
    "ReservationRecord",
    "Role",
    "Room",
    "UserRecord",
    "MonthlySummary",
    "RankedEntry",
    "UsageTotals",
    "group_by_key",
    "month_window",
    "monthly_summary",
    "room_usage_report",
    "top_n_with_rollup",
    "user_bookings_report",
    "BookingStorage",
    "ReservationFilter",
    "BookingStorageError",
    "BookingYamlRepository",
    "generate_demo_reservations",
]

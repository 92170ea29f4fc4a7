from __future__ import annotations

import os
from datetime import timezone, tzinfo
from pathlib import Path
from zoneinfo import ZoneInfo

DATA_DIR = Path(os.getenv("ROOM_BOOKING_DATA_DIR", "data"))
UPLOAD_DIR = Path(os.getenv("ROOM_BOOKING_UPLOAD_DIR", "uploads"))
TIMEZONE_NAME = os.getenv("ROOM_BOOKING_TIMEZONE", "UTC")

TOP_BOOKED_ROOMS_LIMIT = 5
# last instant of a day is 23:59:59.999, inclusive
DAY_END_MICROSECOND = 999000
IMAGE_URL_PREFIX = "/uploads/"
OTHERS_LABEL = "Others"


def default_timezone(name: str | None = None) -> tzinfo:
    effective = name or TIMEZONE_NAME
    if effective.upper() == "UTC":
        return timezone.utc
    return ZoneInfo(effective)

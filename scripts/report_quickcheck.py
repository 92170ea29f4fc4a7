from __future__ import annotations

from datetime import date, datetime, timedelta
import logging
import traceback

from room_booking import AuthResult, BookingYamlRepository
from room_booking import service
from room_booking.config import DATA_DIR, default_timezone
from room_booking.service import ReservationRequest


def main() -> int:
    logging.basicConfig(level=logging.INFO, format="[%(levelname)s] %(name)s: %(message)s")
    print("[INFO] Room Booking Report Quick Check")
    print("[INFO] Generating and validating demo data...")

    tz = default_timezone()
    repo = BookingYamlRepository(DATA_DIR)
    start_date = date(2026, 2, 2)
    generated = repo.seed_demo_data(start_date, tz=tz, days=28, per_room_per_day=3)
    print(f"[OK] Demo data generated: {len(generated)} reservations")

    admin = repo.list_users()[0]

    def authenticate() -> AuthResult:
        return AuthResult.granted({"userId": admin.user_id, "username": admin.username, "role": admin.role.value})

    existing = generated[0]
    clash = service.create_reservation(
        repo,
        authenticate,
        ReservationRequest(
            room_id=existing.room_id,
            start=existing.start,
            end=existing.end + timedelta(minutes=15),
            title="Quick check clash",
            attendee_count=1,
        ),
    )
    print(f"[OK] Overlapping request outcome: {clash.status}")

    day_start = datetime(2026, 2, 3, tzinfo=tz)
    report = service.available_rooms_report(repo, authenticate, day_start, day_start + timedelta(days=1))
    for room in report.payload:
        entry = room["availability"][0]
        print(f"[OK] {room['roomName']}: {len(entry.get('freeSlots', []))} free slots on {entry['date']}")

    summary = service.monthly_report(repo, authenticate, 2026, 2, tz=tz).payload
    print(f"[OK] February bookings: {summary['totalBookings']}, attendees: {summary['totalAttendees']}")
    for entry in summary["topBookedRooms"]:
        print(f"[OK]   {entry['name']}: {entry['count']} ({entry['percentage']}%)")

    print(f"[OK] Event Log YAML: {repo.log_file.resolve()}")
    print("[DONE] Quick check completed successfully.")
    return 0


if __name__ == "__main__":
    try:
        raise SystemExit(main())
    except Exception:
        print("[ERROR] Quick check failed.")
        traceback.print_exc()
        raise SystemExit(1)

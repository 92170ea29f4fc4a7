import tempfile
import threading
import unittest
from datetime import date
from pathlib import Path

from booking_fixtures import UTC, at
from room_booking import BookingYamlRepository, ReservationFilter, Role, generate_demo_reservations
from room_booking.booking import has_time_overlap


class TestBookingYamlRepository(unittest.TestCase):
    def setUp(self) -> None:
        self._temp_dir = tempfile.TemporaryDirectory()
        self.data_dir = Path(self._temp_dir.name) / "data"
        self.repo = BookingYamlRepository(self.data_dir)

    def tearDown(self) -> None:
        self._temp_dir.cleanup()

    def test_files_are_created_empty(self) -> None:
        for name in ("rooms.yaml", "users.yaml", "reservations.yaml", "booking_events.yaml"):
            self.assertEqual((self.data_dir / name).read_text(encoding="utf-8"), "[]\n")

    def test_rooms_get_sequential_ids(self) -> None:
        first = self.repo.add_room("Board Room", 12, "Video wall")
        second = self.repo.add_room("Focus Room", 2)

        self.assertEqual((first.room_id, second.room_id), (1, 2))
        self.assertEqual(self.repo.get_room(1).description, "Video wall")
        self.assertEqual([room.name for room in self.repo.list_rooms()], ["Board Room", "Focus Room"])

    def test_add_room_rejects_bad_input(self) -> None:
        with self.assertRaises(ValueError):
            self.repo.add_room("   ", 4)
        with self.assertRaises(ValueError):
            self.repo.add_room("Studio", 0)

    def test_update_and_delete_room(self) -> None:
        room = self.repo.add_room("Board Room", 12)

        updated = self.repo.update_room(room.room_id, name="Boardroom", capacity=14, image_url="/uploads/a.png")
        self.assertEqual(self.repo.get_room(room.room_id), updated)

        deleted = self.repo.delete_room(room.room_id)
        self.assertEqual(deleted.image_url, "/uploads/a.png")
        self.assertIsNone(self.repo.get_room(room.room_id))
        with self.assertRaises(ValueError):
            self.repo.delete_room(room.room_id)

    def test_add_user_enforces_unique_username_and_email(self) -> None:
        self.repo.add_user("jdoe", "jdoe@example.com", "hash", "John", "Doe")

        with self.assertRaises(ValueError):
            self.repo.add_user("jdoe", "other@example.com", "hash", "J", "D")
        with self.assertRaises(ValueError):
            self.repo.add_user("other", "jdoe@example.com", "hash", "J", "D")

        admin = self.repo.add_user("root", "root@example.com", "hash", "Ada", "Admin", role=Role.ADMIN)
        self.assertEqual(self.repo.get_user(admin.user_id).role, Role.ADMIN)

    def test_reservation_round_trips_through_yaml(self) -> None:
        room = self.repo.add_room("Board Room", 12)
        created = self.repo.add_reservation(
            user_id=7,
            room_id=room.room_id,
            start=at(9),
            end=at(10),
            title="Planning",
            attendee_count=5,
            description="Quarterly",
            now=at(8),
        )

        reloaded = BookingYamlRepository(self.data_dir).get_reservation(created.reservation_id)
        self.assertEqual(reloaded, created)
        self.assertEqual(reloaded.start.tzinfo.utcoffset(None), UTC.utcoffset(None))

    def test_add_reservation_requires_existing_room_and_valid_values(self) -> None:
        with self.assertRaises(ValueError):
            self.repo.add_reservation(user_id=1, room_id=99, start=at(9), end=at(10), title="x", attendee_count=1)

        room = self.repo.add_room("Board Room", 12)
        with self.assertRaises(ValueError):
            self.repo.add_reservation(user_id=1, room_id=room.room_id, start=at(10), end=at(9), title="x", attendee_count=1)
        with self.assertRaises(ValueError):
            self.repo.add_reservation(user_id=1, room_id=room.room_id, start=at(9), end=at(10), title="x", attendee_count=0)

    def test_list_reservations_with_filter(self) -> None:
        first_room = self.repo.add_room("Board Room", 12)
        second_room = self.repo.add_room("Focus Room", 2)
        self.repo.add_reservation(user_id=1, room_id=first_room.room_id, start=at(9), end=at(10), title="a", attendee_count=2)
        self.repo.add_reservation(user_id=2, room_id=second_room.room_id, start=at(9), end=at(10), title="b", attendee_count=2)
        self.repo.add_reservation(user_id=1, room_id=second_room.room_id, start=at(13), end=at(14), title="c", attendee_count=2)

        self.assertEqual(len(self.repo.list_reservations_for_room(second_room.room_id)), 2)
        self.assertEqual(len(self.repo.list_reservations(ReservationFilter(user_id=1))), 2)
        self.assertEqual(
            [record.title for record in self.repo.list_reservations(ReservationFilter(ends_at_or_before=at(12)))],
            ["a", "b"],
        )

    def test_logs_create_update_delete_events(self) -> None:
        room = self.repo.add_room("Board Room", 12)
        created = self.repo.add_reservation(user_id=1, room_id=room.room_id, start=at(9), end=at(10), title="a", attendee_count=2)
        updated = self.repo.update_reservation(
            created.reservation_id,
            start=at(10),
            end=at(11),
            title="a2",
            attendee_count=3,
            now=at(8),
        )
        self.repo.delete_reservation(created.reservation_id)

        self.assertEqual(updated.created_at, created.created_at)
        self.assertEqual(updated.updated_at, at(8))
        event_types = [event["event_type"] for event in self.repo.get_events()]
        self.assertEqual(
            event_types,
            ["ROOM_CREATED", "RESERVATION_CREATED", "RESERVATION_UPDATED", "RESERVATION_DELETED"],
        )

    def test_update_missing_reservation_raises(self) -> None:
        with self.assertRaises(ValueError):
            self.repo.update_reservation(5, start=at(9), end=at(10), title="x", attendee_count=1)

    def test_corrupted_yaml_is_recovered(self) -> None:
        rooms_path = self.data_dir / "rooms.yaml"
        rooms_path.write_text("this: [is: invalid", encoding="utf-8")

        self.assertEqual(self.repo.list_rooms(), [])
        self.assertIn("[]", rooms_path.read_text(encoding="utf-8"))
        self.assertEqual(self.repo.get_events()[-1]["event_type"], "YAML_RECOVERED")
        self.assertTrue(list(self.data_dir.glob("rooms.corrupt.*.yaml")))

    def test_non_mapping_row_in_data_file_is_skipped_and_logged(self) -> None:
        (self.data_dir / "rooms.yaml").write_text("- just a string\n- {room_id: 1, name: Studio, capacity: 4}\n", encoding="utf-8")

        self.assertEqual([room.name for room in self.repo.list_rooms()], ["Studio"])
        skipped = self.repo.get_events()[-1]
        self.assertEqual(skipped["event_type"], "YAML_ROW_SKIPPED")
        self.assertEqual(skipped["payload"]["file"], "rooms.yaml")

    def test_non_mapping_row_in_event_log_does_not_block_writes(self) -> None:
        (self.data_dir / "booking_events.yaml").write_text("- just a string\n", encoding="utf-8")

        room = self.repo.add_room("Studio", 4)

        self.assertEqual(self.repo.get_room(room.room_id), room)
        self.assertEqual([event["event_type"] for event in self.repo.get_events()], ["ROOM_CREATED"])

    def test_room_lock_is_per_room(self) -> None:
        acquired: list[int] = []

        with self.repo.room_lock(1):
            worker = threading.Thread(target=lambda: self._take_lock(2, acquired))
            worker.start()
            worker.join(timeout=5)

        self.assertEqual(acquired, [2])

    def _take_lock(self, room_id: int, acquired: list[int]) -> None:
        with self.repo.room_lock(room_id):
            acquired.append(room_id)


class TestDemoData(unittest.TestCase):
    def test_seed_demo_data_writes_rooms_users_and_reservations(self) -> None:
        with tempfile.TemporaryDirectory() as temp_dir:
            repo = BookingYamlRepository(Path(temp_dir) / "data")
            generated = repo.seed_demo_data(date(2026, 2, 23), days=5)

            self.assertEqual(len(repo.list_rooms()), 6)
            self.assertEqual(len(repo.list_users()), 4)
            self.assertEqual(len(repo.list_reservations()), len(generated))
            self.assertGreater(len(generated), 0)

    def test_generated_reservations_never_overlap_within_a_room(self) -> None:
        with tempfile.TemporaryDirectory() as temp_dir:
            repo = BookingYamlRepository(Path(temp_dir) / "data")
            rooms = [repo.add_room("Board Room", 12), repo.add_room("Focus Room", 2)]

        records = generate_demo_reservations(rooms, [1, 2], date(2026, 2, 23), days=10, per_room_per_day=4)

        for first in records:
            self.assertLess(first.start.weekday(), 5)
            self.assertLessEqual(first.attendee_count, 12)
            for second in records:
                if first.reservation_id == second.reservation_id or first.room_id != second.room_id:
                    continue
                self.assertFalse(has_time_overlap(first.start, first.end, second.start, second.end))

    def test_generation_is_deterministic(self) -> None:
        with tempfile.TemporaryDirectory() as temp_dir:
            repo = BookingYamlRepository(Path(temp_dir) / "data")
            rooms = [repo.add_room("Board Room", 12)]

        first = generate_demo_reservations(rooms, [1], date(2026, 2, 23), days=3)
        second = generate_demo_reservations(rooms, [1], date(2026, 2, 23), days=3)
        self.assertEqual(first, second)

    def test_invalid_parameters(self) -> None:
        with self.assertRaises(ValueError):
            generate_demo_reservations([], [1], date(2026, 2, 23), days=0)
        with self.assertRaises(ValueError):
            generate_demo_reservations([], [], date(2026, 2, 23))


if __name__ == "__main__":
    unittest.main()

import unittest
from datetime import datetime, timedelta, timezone

from room_booking import Interval, has_time_overlap, parse_instant

UTC = timezone.utc


def at(hour: int, minute: int = 0) -> datetime:
    return datetime(2026, 2, 24, hour, minute, tzinfo=UTC)


class TestTimeOverlap(unittest.TestCase):
    def setUp(self) -> None:
        self.existing = Interval(at(10), at(11))

    def test_non_overlapping_before_passes(self) -> None:
        self.assertFalse(Interval(at(9), at(9, 59)).overlaps(self.existing))

    def test_non_overlapping_after_passes(self) -> None:
        self.assertFalse(Interval(at(11, 1), at(12)).overlaps(self.existing))

    def test_exactly_touching_boundary_passes(self) -> None:
        self.assertFalse(Interval(at(11), at(12)).overlaps(self.existing))
        self.assertFalse(Interval(at(9), at(10)).overlaps(self.existing))

    def test_partially_overlapping_fails(self) -> None:
        self.assertTrue(Interval(at(10, 30), at(11, 30)).overlaps(self.existing))

    def test_fully_contained_fails(self) -> None:
        self.assertTrue(Interval(at(10, 15), at(10, 45)).overlaps(self.existing))

    def test_fully_containing_fails(self) -> None:
        self.assertTrue(Interval(at(9), at(12)).overlaps(self.existing))

    def test_overlap_is_symmetric(self) -> None:
        samples = [
            Interval(at(9), at(10)),
            Interval(at(9, 30), at(10, 30)),
            Interval(at(10), at(11)),
            Interval(at(10, 15), at(10, 45)),
            Interval(at(8), at(12)),
            Interval(at(11), at(11)),
        ]
        for first in samples:
            for second in samples:
                self.assertEqual(first.overlaps(second), second.overlaps(first))

    def test_interval_overlaps_itself_unless_empty(self) -> None:
        self.assertTrue(self.existing.overlaps(self.existing))
        empty = Interval(at(10), at(10))
        self.assertFalse(empty.overlaps(empty))

    def test_raw_instant_predicate_matches_interval(self) -> None:
        self.assertTrue(has_time_overlap(at(9, 30), at(10, 30), at(9), at(10)))
        self.assertFalse(has_time_overlap(at(10), at(11), at(9), at(10)))


class TestIntervalContains(unittest.TestCase):
    def test_start_is_included_end_is_excluded(self) -> None:
        interval = Interval(at(9), at(10))
        self.assertTrue(interval.contains(at(9)))
        self.assertTrue(interval.contains(at(9, 59)))
        self.assertFalse(interval.contains(at(10)))
        self.assertFalse(interval.contains(at(8, 59)))


class TestIntervalValidation(unittest.TestCase):
    def test_validated_rejects_inverted_and_empty(self) -> None:
        with self.assertRaises(ValueError):
            Interval.validated(at(11), at(10))
        with self.assertRaises(ValueError):
            Interval.validated(at(10), at(10))

    def test_validated_rejects_naive_instants(self) -> None:
        with self.assertRaises(ValueError):
            Interval.validated(datetime(2026, 2, 24, 9, 0), datetime(2026, 2, 24, 10, 0))

    def test_validated_accepts_positive_duration(self) -> None:
        interval = Interval.validated(at(9), at(10))
        self.assertEqual(interval.end - interval.start, timedelta(hours=1))


class TestParseInstant(unittest.TestCase):
    def test_parses_zulu_suffix(self) -> None:
        self.assertEqual(parse_instant("2026-02-24T09:00:00.000Z", UTC), at(9))

    def test_attaches_default_timezone_to_naive_text(self) -> None:
        plus_seven = timezone(timedelta(hours=7))
        parsed = parse_instant("2026-02-24T09:00", plus_seven)
        self.assertEqual(parsed.tzinfo, plus_seven)
        self.assertEqual(parsed, at(2))

    def test_rejects_malformed_text(self) -> None:
        with self.assertRaises(ValueError):
            parse_instant("tomorrow morning", UTC)
        with self.assertRaises(ValueError):
            parse_instant("   ", UTC)


if __name__ == "__main__":
    unittest.main()

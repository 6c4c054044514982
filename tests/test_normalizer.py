import unittest
from datetime import date

from stay_calendar.models import NormalizedTime, ReservationRecord, ReservationStatus, UnitInfo
from stay_calendar.normalizer import (
    DefaultTimes,
    TimeNormalizer,
    has_time_component,
    normalize,
    parse_instant,
)


class TestNormalize(unittest.TestCase):
    def test_literal_midnight_has_no_explicit_time(self):
        self.assertEqual(normalize("2025-03-10T00:00:00"), NormalizedTime(has_explicit_time=False))

    def test_afternoon_time_is_explicit(self):
        result = normalize("2025-03-10T15:30:00")
        self.assertTrue(result.has_explicit_time)
        self.assertEqual(result.hour, 15)
        self.assertEqual(result.minute, 30)

    def test_date_only_has_no_time(self):
        self.assertFalse(normalize("2025-03-10").has_explicit_time)

    def test_utc_midnight_reads_as_placeholder(self):
        # 00:00Z is 08:00 in Manila.
        self.assertFalse(normalize("2025-03-10T00:00:00Z").has_explicit_time)
        self.assertFalse(normalize("2025-03-10T00:00:00.000+00:00").has_explicit_time)

    def test_offset_aware_values_are_converted(self):
        result = normalize("2025-03-10T07:30:00Z")
        self.assertEqual((result.has_explicit_time, result.hour, result.minute), (True, 15, 30))

    def test_converted_local_midnight_is_placeholder(self):
        self.assertFalse(normalize("2025-03-10T16:00:00Z").has_explicit_time)

    def test_eight_am_is_indistinguishable_from_placeholder(self):
        self.assertFalse(normalize("2025-03-10T08:00:00").has_explicit_time)
        self.assertFalse(normalize("2025-03-10T08:45:00").has_explicit_time)

    def test_postgres_style_timestamp(self):
        result = normalize("2025-03-10 15:30:00+00")
        self.assertEqual((result.has_explicit_time, result.hour), (True, 23))

    def test_bare_time_fragment(self):
        self.assertEqual(normalize("15:45"), NormalizedTime(True, 15, 45))
        self.assertFalse(normalize("00:00").has_explicit_time)
        self.assertFalse(normalize("08:15").has_explicit_time)
        self.assertFalse(normalize("25:00").has_explicit_time)

    def test_malformed_input_degrades(self):
        for raw in ("", "   ", None, "not a date", "2025-13-45T10:00:00"):
            with self.subTest(raw=raw):
                self.assertFalse(normalize(raw).has_explicit_time)

    def test_target_timezone_is_configurable(self):
        self.assertEqual(normalize("2025-03-10T15:30:00Z", "UTC").hour, 15)
        # New York switched to daylight time on 2025-03-09.
        self.assertEqual(normalize("2025-03-08T15:30:00Z", "America/New_York").hour, 10)
        self.assertEqual(normalize("2025-03-10T15:30:00Z", "America/New_York").hour, 11)

    def test_idempotent(self):
        for raw in ("2025-03-10T15:30:00", "2025-03-10", "2025-03-10T00:00:00Z", "09:10"):
            with self.subTest(raw=raw):
                self.assertEqual(normalize(raw), normalize(raw))

    def test_has_time_component(self):
        self.assertTrue(has_time_component("2025-03-10T15:30:00"))
        self.assertFalse(has_time_component("2025-03-10"))
        self.assertFalse(has_time_component(None))


class TestParseInstant(unittest.TestCase):
    def test_date_only(self):
        instant = parse_instant("2025-06-10")
        self.assertEqual(instant.day, date(2025, 6, 10))
        self.assertIsNone(instant.hour)

    def test_aware_value_lands_on_target_timezone_date(self):
        instant = parse_instant("2025-06-10T20:00:00Z")
        self.assertEqual(instant.day, date(2025, 6, 11))
        self.assertEqual(instant.hour, 4)

    def test_midnight_placeholder_keeps_written_date(self):
        for zone in ("America/New_York", "Asia/Manila", "UTC"):
            with self.subTest(zone=zone):
                instant = parse_instant("2025-06-10T00:00:00Z", zone)
                self.assertFalse(normalize("2025-06-10T00:00:00Z", zone).has_explicit_time)
                self.assertEqual(instant.day, date(2025, 6, 10))
                self.assertIsNone(instant.hour)

    def test_explicit_time_still_converts_date(self):
        instant = parse_instant("2025-06-10T02:00:00Z", "America/New_York")
        self.assertEqual(instant.day, date(2025, 6, 9))
        self.assertEqual(instant.hour, 22)

    def test_bare_time_has_no_date(self):
        self.assertIsNone(parse_instant("14:00"))
        self.assertIsNone(parse_instant("garbage"))


class TestToInterval(unittest.TestCase):
    def setUp(self):
        self.normalizer = TimeNormalizer("Asia/Manila")

    def _record(self, check_in="2025-06-10", check_out="2025-06-13", **extra):
        return ReservationRecord(check_in_raw=check_in, check_out_raw=check_out, **extra)

    def test_builds_interval(self):
        interval = self.normalizer.to_interval(
            self._record(status="confirmed", guest_label="Ana", total_amount=4500, reference_id="b-1"),
            order=2,
        )
        self.assertEqual(interval.check_in_date, date(2025, 6, 10))
        self.assertEqual(interval.check_out_date, date(2025, 6, 13))
        self.assertEqual(interval.status, ReservationStatus.BOOKED)
        self.assertEqual(interval.guest_label, "Ana")
        self.assertEqual(interval.total_amount, 4500)
        self.assertEqual(interval.order, 2)
        self.assertEqual(interval.nights, 3)

    def test_unset_status_and_guest(self):
        interval = self.normalizer.to_interval(self._record())
        self.assertEqual(interval.status, ReservationStatus.BOOKED)
        self.assertEqual(interval.guest_label, "Guest")

    def test_pending_status_is_kept(self):
        interval = self.normalizer.to_interval(self._record(status="Pending"))
        self.assertEqual(interval.status, ReservationStatus.PENDING)

    def test_hidden_statuses_are_dropped(self):
        self.assertIsNone(self.normalizer.to_interval(self._record(status="declined")))
        self.assertIsNone(self.normalizer.to_interval(self._record(status="cancelled")))

    def test_unreadable_dates_are_dropped(self):
        self.assertIsNone(self.normalizer.to_interval(self._record(check_in="soon")))

    def test_check_out_before_check_in_is_dropped(self):
        self.assertIsNone(self.normalizer.to_interval(self._record("2025-06-13", "2025-06-10")))

    def test_same_day_stay_is_legal(self):
        interval = self.normalizer.to_interval(self._record("2025-06-10T09:00:00", "2025-06-10T17:00:00"))
        self.assertEqual(interval.nights, 0)

    def test_record_accepts_data_layer_column_names(self):
        record = ReservationRecord.model_validate(
            {"check_in_date": "2025-06-10", "check_out_date": "2025-06-11", "id": 42, "guest_name": "Ben"}
        )
        self.assertEqual(record.reference_id, "42")
        self.assertEqual(record.guest_label, "Ben")

    def test_effective_times_use_defaults(self):
        interval = self.normalizer.to_interval(self._record("2025-06-10", "2025-06-13T10:15:00"))
        defaults = DefaultTimes()
        self.assertEqual(self.normalizer.check_in_time(interval, defaults), (14, 0))
        self.assertEqual(self.normalizer.check_out_time(interval, defaults), (10, 15))


class TestDefaultTimes(unittest.TestCase):
    def test_fallback_to_configured_hours(self):
        self.assertEqual(DefaultTimes.for_unit(None), DefaultTimes(14, 12))
        self.assertEqual(DefaultTimes.for_unit(None, 15, 11), DefaultTimes(15, 11))

    def test_unit_times_override(self):
        unit = UnitInfo(id="u1", check_in_time="15:00:00", check_out_time="1970-01-01T10:30:00")
        defaults = DefaultTimes.for_unit(unit)
        self.assertEqual((defaults.check_in_hour, defaults.check_in_minute), (15, 0))
        self.assertEqual((defaults.check_out_hour, defaults.check_out_minute), (10, 30))

    def test_unparseable_unit_time_falls_back(self):
        unit = UnitInfo(id="u1", check_in_time="afternoon")
        self.assertEqual(DefaultTimes.for_unit(unit).check_in_hour, 14)


if __name__ == "__main__":
    unittest.main()

"""Unit tests for case folding and value coercion."""

from datetime import date, datetime, timedelta, timezone
import math

import pytest

from query_pipeline.matching.normalize import format_iso_utc, normalize_case, to_comparable_string, to_number


@pytest.mark.unit
class TestNormalizeCase:
    def test_case_insensitive_lowercases(self):
        assert normalize_case("HeLLo", False) == "hello"

    def test_case_sensitive_unchanged(self):
        assert normalize_case("HeLLo", True) == "HeLLo"

    def test_non_ascii(self):
        assert normalize_case("ÉCOLE", False) == "école"


@pytest.mark.unit
class TestToComparableString:
    def test_strings_unchanged(self):
        assert to_comparable_string("Alice") == "Alice"

    def test_booleans(self):
        assert to_comparable_string(True) == "true"
        assert to_comparable_string(False) == "false"

    def test_none(self):
        assert to_comparable_string(None) == "null"

    def test_integers(self):
        assert to_comparable_string(42) == "42"
        assert to_comparable_string(-7) == "-7"

    def test_integral_floats_drop_fraction(self):
        assert to_comparable_string(30.0) == "30"
        assert to_comparable_string(-0.0) == "0"

    def test_fractional_floats(self):
        assert to_comparable_string(2.5) == "2.5"
        assert to_comparable_string(0.1) == "0.1"

    @pytest.mark.parametrize(
        ("value", "expected"),
        [
            (1e-7, "1e-7"),
            (-1.5e-7, "-1.5e-7"),
            (2.5e-10, "2.5e-10"),
            (1e-5, "0.00001"),
            (1.5e-6, "0.0000015"),
            (1e21, "1e+21"),
            (1.5e300, "1.5e+300"),
        ],
    )
    def test_exponents_written_like_javascript(self, value, expected):
        assert to_comparable_string(value) == expected

    def test_special_floats(self):
        assert to_comparable_string(math.nan) == "NaN"
        assert to_comparable_string(math.inf) == "Infinity"
        assert to_comparable_string(-math.inf) == "-Infinity"

    def test_aware_datetime_rendered_in_utc(self):
        tz = timezone(timedelta(hours=2))
        value = datetime(2024, 1, 2, 5, 4, 5, 678901, tzinfo=tz)
        assert to_comparable_string(value) == "2024-01-02T03:04:05.678Z"

    def test_naive_datetime_taken_as_utc(self):
        assert to_comparable_string(datetime(2024, 1, 2, 3, 4, 5)) == "2024-01-02T03:04:05.000Z"

    def test_date_is_midnight_utc(self):
        assert to_comparable_string(date(2024, 1, 2)) == "2024-01-02T00:00:00.000Z"

    def test_sequences_joined_with_commas(self):
        assert to_comparable_string(["a", 1, True, None]) == "a,1,true,"

    def test_mappings_rendered_as_json(self):
        assert to_comparable_string({"a": 1, "b": "x"}) == '{"a":1,"b":"x"}'

    def test_format_iso_utc_matches(self):
        value = datetime(1999, 12, 31, 23, 59, 59, tzinfo=timezone.utc)
        assert format_iso_utc(value) == "1999-12-31T23:59:59.000Z"


@pytest.mark.unit
class TestToNumber:
    @pytest.mark.parametrize(
        ("value", "expected"),
        [
            (None, 0.0),
            (True, 1.0),
            (False, 0.0),
            (7, 7.0),
            (2.5, 2.5),
            ("42", 42.0),
            ("  42  ", 42.0),
            ("", 0.0),
            ("   ", 0.0),
            ("-3.5", -3.5),
            (".5", 0.5),
            ("5.", 5.0),
            ("1e3", 1000.0),
            ("0x10", 16.0),
            ("0b101", 5.0),
            ("0o17", 15.0),
            ("Infinity", math.inf),
            ("-Infinity", -math.inf),
        ],
    )
    def test_numeric_values(self, value, expected):
        assert to_number(value) == expected

    @pytest.mark.parametrize("value", ["abc", "12abc", "1_000", "inf", "nan", "0x", "0xzz", [1], {"a": 1}])
    def test_non_numeric_values_are_nan(self, value):
        assert math.isnan(to_number(value))

    def test_datetime_is_epoch_milliseconds(self):
        assert to_number(datetime(1970, 1, 1, 0, 0, 1, tzinfo=timezone.utc)) == 1000.0

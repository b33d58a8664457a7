"""
Unit tests for the input validators.
"""
from datetime import datetime, timezone

import pytest

from campus_events.core.errors import InvalidInput
from campus_events.core.validators import (
    format_event_datetime,
    is_positive_int,
    is_valid_event_datetime,
    is_valid_event_type,
    is_valid_uuid,
    parse_event_datetime,
    require_event_type,
    require_positive_int,
    require_uuid,
)


@pytest.mark.unit
class TestValidators:

    def test_uuid_accepts_versions_one_to_five_any_case(self):
        assert is_valid_uuid("0b6f1c52-5d0e-4f4e-9a57-3f1d2a8c7e01")
        assert is_valid_uuid("0B6F1C52-5D0E-1F4E-8A57-3F1D2A8C7E01")

    def test_uuid_rejects_bad_version_variant_and_non_strings(self):
        assert not is_valid_uuid("0b6f1c52-5d0e-6f4e-9a57-3f1d2a8c7e01")
        assert not is_valid_uuid("0b6f1c52-5d0e-4f4e-ca57-3f1d2a8c7e01")
        assert not is_valid_uuid("not-a-uuid")
        assert not is_valid_uuid(None)
        assert not is_valid_uuid(12)

    def test_event_datetime_requires_millisecond_utc_form(self):
        assert is_valid_event_datetime("2026-11-02T09:30:00.000Z")
        assert not is_valid_event_datetime("2026-11-02T09:30:00Z")
        assert not is_valid_event_datetime("2026-11-02T09:30:00.000+00:00")
        assert not is_valid_event_datetime("2026-11-02 09:30:00.000Z")

    def test_uuid_rejects_trailing_newline(self):
        assert not is_valid_uuid("0b6f1c52-5d0e-4f4e-9a57-3f1d2a8c7e01\n")
        with pytest.raises(InvalidInput):
            require_uuid("0b6f1c52-5d0e-4f4e-9a57-3f1d2a8c7e01\n", "Invalid student ID provided")

    def test_event_datetime_rejects_trailing_newline_and_non_ascii_digits(self):
        assert not is_valid_event_datetime("2026-11-02T09:30:00.000Z\n")
        assert not is_valid_event_datetime("\uff12\uff10\uff12\uff16-11-02T09:30:00.000Z")

    def test_event_datetime_must_be_a_real_instant(self):
        assert not is_valid_event_datetime("2026-02-30T09:30:00.000Z")
        assert not is_valid_event_datetime("2026-11-02T25:30:00.000Z")

    def test_parse_rejects_with_format_message(self):
        with pytest.raises(InvalidInput) as exc:
            parse_event_datetime("tomorrow")
        assert "Invalid event_datetime format" in exc.value.message

    def test_format_keeps_milliseconds_and_z_suffix(self):
        value = parse_event_datetime("2026-11-02T09:30:00.120Z")
        assert value.tzinfo is not None
        assert format_event_datetime(value) == "2026-11-02T09:30:00.120Z"

    def test_format_treats_naive_values_as_utc(self):
        assert format_event_datetime(datetime(2026, 1, 5, 8, 0, 0, 999999)) == "2026-01-05T08:00:00.999Z"
        assert format_event_datetime(None) is None

    def test_format_converts_offsets_to_utc(self):
        from datetime import timedelta
        value = datetime(2026, 1, 5, 10, 0, tzinfo=timezone(timedelta(hours=2)))
        assert format_event_datetime(value) == "2026-01-05T08:00:00.000Z"

    def test_event_types(self):
        for value in ("follow-up", "kick-off", "keynote", "hub-talk", "other"):
            assert is_valid_event_type(value)
        assert not is_valid_event_type("party")
        assert not is_valid_event_type("Keynote")

    def test_require_event_type_default_message_lists_values(self):
        with pytest.raises(InvalidInput) as exc:
            require_event_type("party")
        assert "kick-off" in exc.value.message
        with pytest.raises(InvalidInput) as exc:
            require_event_type("party", "Invalid type provided")
        assert exc.value.message == "Invalid type provided"

    def test_positive_int_rejects_bools_zero_and_floats(self):
        assert is_positive_int(1)
        assert not is_positive_int(True)
        assert not is_positive_int(0)
        assert not is_positive_int(-3)
        assert not is_positive_int(2.0)
        assert not is_positive_int("5")

    def test_require_positive_int_names_the_field(self):
        with pytest.raises(InvalidInput) as exc:
            require_positive_int(0, "slot_duration")
        assert exc.value.message == "slot_duration must be a positive integer"
        assert exc.value.status_code == 400

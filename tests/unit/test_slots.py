"""
Unit tests for slot normalization and presentation.
"""
import pytest

from campus_events.core.errors import InvalidInput
from campus_events.services.slots import capacity, normalize_slots, occupants, present_slot, present_slots
from tests.factories import student_id


@pytest.mark.unit
class TestSlots:

    def test_legacy_user_is_read_as_single_occupant(self):
        assert occupants({"user": student_id(1).upper()}) == [student_id(1)]
        assert occupants({"user": None}) == []
        assert occupants({"users": [student_id(1)], "user": student_id(2)}) == [student_id(1)]

    def test_capacity_is_one_for_exclusive_events(self):
        assert capacity({"maxUsers": 5}, False) == 1
        assert capacity({"maxUsers": 5}, True) == 5
        assert capacity({}, True) == 1

    def test_normalize_drops_derived_fields_and_keeps_extras(self):
        slots = normalize_slots(
            [{"start": "09:00", "user": student_id(1), "currentUsers": 1}],
            allow_multiple_users=False,
        )
        assert slots == [{"start": "09:00", "maxUsers": 1, "users": [student_id(1)]}]

    def test_normalize_forces_capacity_one_when_exclusive(self):
        slots = normalize_slots([{"maxUsers": 4}], allow_multiple_users=False)
        assert slots[0]["maxUsers"] == 1

    def test_normalize_none_is_empty(self):
        assert normalize_slots(None, True) == []

    def test_normalize_rejects_overfull_slot(self):
        with pytest.raises(InvalidInput):
            normalize_slots([{"maxUsers": 1, "users": [student_id(1), student_id(2)]}], True)

    def test_normalize_rejects_student_in_two_slots(self):
        with pytest.raises(InvalidInput):
            normalize_slots([{"users": [student_id(1)]}, {"user": student_id(1)}], False)

    @pytest.mark.parametrize("raw", ["slots", [1], [{"maxUsers": 0}], [{"maxUsers": True}]])
    def test_normalize_rejects_malformed_input(self, raw):
        with pytest.raises(InvalidInput):
            normalize_slots(raw, True)

    def test_present_slot_derives_occupancy(self):
        view = present_slot({"maxUsers": 3, "users": [student_id(1), student_id(2)], "label": "A"})
        assert view["currentUsers"] == 2
        assert view["user"] == student_id(1)
        assert view["label"] == "A"

    def test_present_empty_slot(self):
        assert present_slots([{"maxUsers": 1, "users": []}]) == [
            {"maxUsers": 1, "users": [], "currentUsers": 0, "user": None}
        ]

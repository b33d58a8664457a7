"""
Slot records embedded in ``event.slots``.

A slot is stored as ``{"maxUsers": int, "users": [identity, ...], **extra}``
where ``extra`` holds whatever the client attached (start/end times, labels).
``currentUsers`` and ``user`` are derived on the way out and are never
persisted. Older records carrying only ``user`` are read as a single
occupant.
"""
from typing import Any, Dict, List, Optional

from campus_events.core.errors import InvalidInput
from campus_events.core.validators import is_positive_int

DERIVED_KEYS = ("user", "currentUsers")


def occupants(slot: Dict[str, Any]) -> List[str]:
    """Identities currently holding the slot."""
    users = slot.get("users")
    if isinstance(users, list):
        return [str(u).lower() for u in users if u]
    legacy = slot.get("user")
    return [str(legacy).lower()] if legacy else []


def capacity(slot: Dict[str, Any], allow_multiple_users: bool) -> int:
    if not allow_multiple_users:
        return 1
    max_users = slot.get("maxUsers", 1)
    return max_users if is_positive_int(max_users) else 1


def normalize_slots(raw_slots: Optional[List[Any]], allow_multiple_users: bool) -> List[Dict[str, Any]]:
    """
    Validate client-supplied slots and convert them to the stored form.

    Raises:
        InvalidInput: malformed slot, bad capacity, overfull slot, or a
            student holding more than one slot
    """
    if raw_slots is None:
        return []
    if not isinstance(raw_slots, list):
        raise InvalidInput("slots must be a list")

    normalized = []
    seen = set()
    for index, raw in enumerate(raw_slots):
        if not isinstance(raw, dict):
            raise InvalidInput(f"Slot {index} must be an object")

        max_users = raw.get("maxUsers", 1)
        if not is_positive_int(max_users):
            raise InvalidInput(f"Slot {index}: maxUsers must be a positive integer")

        users = []
        for user in occupants(raw):
            if user not in users:
                users.append(user)

        slot = {k: v for k, v in raw.items() if k not in DERIVED_KEYS}
        slot["maxUsers"] = max_users if allow_multiple_users else 1
        slot["users"] = users

        if len(users) > capacity(slot, allow_multiple_users):
            raise InvalidInput(f"Slot {index} has more occupants than its capacity")
        for user in users:
            if user in seen:
                raise InvalidInput(f"Student {user} holds more than one slot")
            seen.add(user)

        normalized.append(slot)
    return normalized


def present_slot(slot: Dict[str, Any]) -> Dict[str, Any]:
    """Public view of a stored slot, with the derived occupancy fields."""
    users = occupants(slot)
    view = {k: v for k, v in slot.items() if k not in DERIVED_KEYS}
    view["maxUsers"] = slot.get("maxUsers", 1)
    view["users"] = users
    view["currentUsers"] = len(users)
    view["user"] = users[0] if users else None
    return view


def present_slots(slots: Optional[List[Dict[str, Any]]]) -> List[Dict[str, Any]]:
    return [present_slot(s) for s in (slots or []) if isinstance(s, dict)]

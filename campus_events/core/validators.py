"""
Input validators shared by the services.

The ``is_*`` helpers are pure predicates; the ``require_*`` helpers raise
:class:`InvalidInput` with a client-facing message.
"""
import re
from datetime import datetime, timezone
from typing import Any, Optional

from campus_events.core.errors import InvalidInput

EVENT_TYPES = ("follow-up", "kick-off", "keynote", "hub-talk", "other")

UUID_RE = re.compile(
    r"^[0-9a-f]{8}-[0-9a-f]{4}-[1-5][0-9a-f]{3}-[89ab][0-9a-f]{3}-[0-9a-f]{12}\Z",
    re.IGNORECASE,
)
EVENT_DATETIME_RE = re.compile(r"^[0-9]{4}-[0-9]{2}-[0-9]{2}T[0-9]{2}:[0-9]{2}:[0-9]{2}\.[0-9]{3}Z\Z")
EVENT_DATETIME_FORMAT = "%Y-%m-%dT%H:%M:%S.%fZ"
# Largest value an INTEGER primary key column can hold
MAX_ROW_ID = 2**31 - 1


def is_valid_uuid(value: Any) -> bool:
    return isinstance(value, str) and bool(UUID_RE.fullmatch(value))


def is_valid_event_datetime(value: Any) -> bool:
    """Accept only ``YYYY-MM-DDTHH:mm:ss.sssZ`` denoting a real instant."""
    if not isinstance(value, str) or not EVENT_DATETIME_RE.fullmatch(value):
        return False
    try:
        datetime.strptime(value, EVENT_DATETIME_FORMAT)
    except ValueError:
        return False
    return True


def is_valid_event_type(value: Any) -> bool:
    return value in EVENT_TYPES


def is_positive_int(value: Any) -> bool:
    # bool is an int subclass; True must not pass as 1
    return isinstance(value, int) and not isinstance(value, bool) and value > 0


def parse_event_datetime(value: str) -> datetime:
    """Parse a validated event datetime string into an aware UTC datetime."""
    if not is_valid_event_datetime(value):
        raise InvalidInput(
            "Invalid event_datetime format. Expected ISO format: YYYY-MM-DDTHH:mm:ss.sssZ"
        )
    return datetime.strptime(value, EVENT_DATETIME_FORMAT).replace(tzinfo=timezone.utc)


def format_event_datetime(value: Optional[datetime]) -> Optional[str]:
    """Render a datetime as ``YYYY-MM-DDTHH:mm:ss.sssZ``.

    Naive values (SQLite drops the offset) are taken to be UTC.
    """
    if value is None:
        return None
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    value = value.astimezone(timezone.utc)
    return value.strftime("%Y-%m-%dT%H:%M:%S.") + f"{value.microsecond // 1000:03d}Z"


def require_uuid(value: Any, message: str) -> str:
    if not is_valid_uuid(value):
        raise InvalidInput(message)
    return value


def require_event_type(value: Any, message: Optional[str] = None) -> str:
    if not is_valid_event_type(value):
        raise InvalidInput(
            message or f"Invalid event_type. Allowed values: {', '.join(EVENT_TYPES)}"
        )
    return value


def require_positive_int(value: Any, field: str) -> int:
    if not is_positive_int(value):
        raise InvalidInput(f"{field} must be a positive integer")
    return value

"""Value formatting shared by the report sections."""

from datetime import date, datetime
from typing import Any, Optional, Union

NOT_AVAILABLE = "N/A"

_BASE36 = "0123456789ABCDEFGHIJKLMNOPQRSTUVWXYZ"


def value_or_na(value: Any) -> str:
    """Render a field, using N/A for None and blank strings."""
    if value is None:
        return NOT_AVAILABLE
    text = str(value).strip()
    return text or NOT_AVAILABLE


def _coerce_date(value: Union[str, date, datetime]) -> Optional[Union[date, datetime]]:
    if isinstance(value, (date, datetime)):
        return value
    text = str(value).strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        return datetime.fromisoformat(text)
    except ValueError:
        return None


def _to_local(value: Union[date, datetime]) -> Union[date, datetime]:
    if isinstance(value, datetime) and value.tzinfo is not None:
        return value.astimezone()
    return value


def format_date(value: Optional[Union[str, date, datetime]]) -> str:
    """
    Short date in month/day/year form (e.g. 3/7/2024).

    Absent values give N/A; strings that are not ISO dates are echoed as
    supplied.
    """
    if value is None or (isinstance(value, str) and not value.strip()):
        return NOT_AVAILABLE
    parsed = _coerce_date(value)
    if parsed is None:
        return str(value).strip()
    parsed = _to_local(parsed)
    return f"{parsed.month}/{parsed.day}/{parsed.year}"


def format_datetime(value: Optional[Union[str, datetime]]) -> str:
    """Short date plus 12-hour time (e.g. 3/7/2024, 2:05:09 PM)."""
    if value is None or (isinstance(value, str) and not value.strip()):
        return NOT_AVAILABLE
    parsed = _coerce_date(value)
    if parsed is None:
        return str(value).strip()
    if not isinstance(parsed, datetime):
        return format_date(parsed)
    parsed = _to_local(parsed)
    hour = parsed.hour % 12 or 12
    meridiem = "AM" if parsed.hour < 12 else "PM"
    return (
        f"{parsed.month}/{parsed.day}/{parsed.year}, "
        f"{hour}:{parsed.minute:02d}:{parsed.second:02d} {meridiem}"
    )


def truncate(value: str, limit: int = 25) -> str:
    """Cut values longer than limit to limit - 3 characters plus an ellipsis."""
    if len(value) > limit:
        return value[:limit - 3] + "..."
    return value


def witness_summary(count: int) -> str:
    if count <= 0:
        return "None"
    return f"{count} witness{'es' if count > 1 else ''}"


def to_base36(number: int) -> str:
    if number == 0:
        return "0"
    digits = []
    while number:
        number, remainder = divmod(number, 36)
        digits.append(_BASE36[remainder])
    return "".join(reversed(digits))


def generate_claim_id(now: Optional[datetime] = None) -> str:
    """Claim id of the form CLM-<base36 epoch milliseconds>."""
    now = now or datetime.now()
    millis = int(now.timestamp() * 1000)
    return f"CLM-{to_base36(millis)}"

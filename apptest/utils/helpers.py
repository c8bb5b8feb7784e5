import base64
from datetime import datetime, timezone
from typing import Any, Iterable, List, Optional


def iso_datestr_to_datetime(datestr: Optional[str]) -> Optional[datetime]:
    """Parse an ISO 8601 timestamp, returning None for empty input."""
    if not isinstance(datestr, str) or not datestr:
        return None
    if datestr[-1] == "Z":
        datestr = datestr[:-1] + "+00:00"
    # fromisoformat only takes 3 or 6 fraction digits, Helm writes 9.
    head, sep, tail = datestr.partition(".")
    if sep:
        digits = len(tail) - len(tail.lstrip("0123456789"))
        tail = tail[:digits][:6].ljust(6, "0") + tail[digits:]
        datestr = f"{head}.{tail}"
    dt = datetime.fromisoformat(datestr)
    return dt if dt.tzinfo else dt.replace(tzinfo=timezone.utc)


def b64encode_str(value: str) -> str:
    return base64.b64encode(value.encode("utf-8")).decode("ascii")


def unique(values: Iterable[Any]) -> List[Any]:
    """Deduplicate preserving first-seen order."""
    seen = set()
    result = []
    for value in values:
        if value not in seen:
            seen.add(value)
            result.append(value)
    return result

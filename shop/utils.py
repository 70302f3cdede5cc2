import random
import re
import string
from datetime import datetime, timezone
from typing import Any, Mapping, Optional

_LEADING_INT = re.compile(r"^\s*([+-]?\d+)")


def parse_int(value: Optional[Any]) -> Optional[int]:
    """Parse the leading integer of ``value`` the lenient way.

    ``"12abc"`` gives 12, ``"abc"`` gives None. Callers interpolate the
    result as-is, so None ends up in the query text.
    """
    if value is None:
        return None
    if isinstance(value, int):
        return value
    m = _LEADING_INT.match(str(value))
    return int(m.group(1)) if m else None


def sql_literal(value: Any) -> str:
    """Render a value into SQL text. Strings are quoted but never escaped."""
    if value is None:
        return "NULL"
    if isinstance(value, bool):
        return "TRUE" if value else "FALSE"
    if isinstance(value, str):
        return f"'{value}'"
    return str(value)


def sql_assignments(fields: Mapping[str, Any]) -> list[str]:
    """Turn a field -> value mapping into ``key = value`` fragments (keys verbatim)."""
    return [f"{key} = {sql_literal(value)}" for key, value in fields.items()]


def now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def random_password(length: int = 8) -> str:
    return "".join(random.choices(string.ascii_lowercase + string.digits, k=length))


def _as_datetime(value: Any) -> Optional[datetime]:
    if value is None:
        return None
    if isinstance(value, str):
        try:
            value = datetime.fromisoformat(value)
        except ValueError:
            return None
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value


def age_in_days(created_at: Any) -> Optional[int]:
    created = _as_datetime(created_at)
    return (datetime.now(timezone.utc) - created).days if created else None


def epoch_millis(created_at: Any) -> Optional[int]:
    created = _as_datetime(created_at)
    return int(created.timestamp() * 1000) if created else None

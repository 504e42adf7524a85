"""
TravelHub - Shared Helpers
===========================
Pure utility functions with NO database or module dependencies.
"""

from datetime import datetime, timezone
from decimal import Decimal, InvalidOperation
from typing import Iterable, List, Optional

# Integer columns are 32-bit on PostgreSQL
DB_INT_MAX = 2**31 - 1


def now_utc() -> datetime:
    """Returns current UTC datetime (timezone-aware)."""
    return datetime.now(timezone.utc)


def safe_decimal(value, default: Optional[Decimal] = None) -> Optional[Decimal]:
    """Safely convert a value to Decimal. Returns default on failure."""
    if value is None:
        return default
    try:
        return Decimal(str(value).strip())
    except (InvalidOperation, ValueError, TypeError):
        return default


def money(value) -> Optional[float]:
    """Decimal column -> JSON number."""
    if value is None:
        return None
    return float(value)


def iso(value: Optional[datetime]) -> Optional[str]:
    if value is None:
        return None
    return value.isoformat()


def unique_ids(ids: Iterable[int]) -> List[int]:
    """De-duplicate ids, keeping first-seen order."""
    seen = set()
    out = []
    for i in ids:
        if i not in seen:
            seen.add(i)
            out.append(i)
    return out


def normalize_email(email: str) -> str:
    return (email or "").strip().lower()


def fits_db_int(value) -> bool:
    """True if value can be bound to an Integer column."""
    return isinstance(value, int) and not isinstance(value, bool) and -DB_INT_MAX - 1 <= value <= DB_INT_MAX

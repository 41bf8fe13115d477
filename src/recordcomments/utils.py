from datetime import UTC, datetime
from uuid import uuid4


def now() -> datetime:
    return datetime.now(UTC)


def now_iso() -> str:
    """Current time in the ISO format stored in `dateISO` (millisecond precision, `Z` suffix)."""
    return now().isoformat(timespec="milliseconds").replace("+00:00", "Z")


def new_id() -> str:
    return str(uuid4())

"""Utility functions: slugify, URI generation, note paths, date helpers."""

import re
import unicodedata
from datetime import date, datetime, timedelta, timezone
from urllib.parse import quote


SB_NS = "http://secondbrain.local/kg/"
FOAF_NS = "http://xmlns.com/foaf/0.1/"

LONG_TERM_PATH = "MEMORY.md"
LONG_TERM_NAME = "Long-term Memory"

_DAILY_PATH_RE = re.compile(r"^memory/([^/]+)\.md$")
# Fractional seconds of any length, followed by an offset or end of string.
_FRACTION_RE = re.compile(r"\.(\d+)(?=[+-]\d{2}:?\d{2}$|$)")


def slugify(text: str) -> str:
    """Convert text to a URL-safe slug."""
    text = unicodedata.normalize("NFKD", text)
    text = text.encode("ascii", "ignore").decode("ascii")
    text = text.lower().strip()
    text = re.sub(r"[^\w\s-]", "", text)
    text = re.sub(r"[-\s]+", "-", text)
    return text.strip("-") or "untitled"


def make_memory_uri(path: str) -> str:
    """Generate a URI for a memory from its storage path."""
    return f"{SB_NS}memory/{quote(path, safe='')}"


def make_concept_uri(tag: str) -> str:
    """Generate a URI for a tag concept."""
    return f"{SB_NS}concept/{quote(tag.lower(), safe='')}"


def make_person_uri(name: str) -> str:
    """Generate a URI for a mentioned contact (case-insensitive)."""
    return f"{SB_NS}person/{quote(name.lower(), safe='')}"


def daily_path(day: date) -> str:
    return f"memory/{day.isoformat()}.md"


def note_identity(path: str) -> tuple[str, str]:
    """Return (display name, category) for a storage path.

    ``MEMORY.md`` is the long-term singleton; ``memory/<name>.md`` is a daily
    note named by its stem (a date, or a date-prefixed title for notes created
    from wiki links). Anything else raises ValueError.
    """
    if path == LONG_TERM_PATH:
        return LONG_TERM_NAME, "long-term"
    m = _DAILY_PATH_RE.match(path)
    if m:
        return m.group(1), "daily"
    raise ValueError(f"Unsupported memory path: {path}. Expected {LONG_TERM_PATH} or memory/<name>.md")


def now_utc() -> datetime:
    return datetime.now(timezone.utc)


def now_iso() -> str:
    """Return current UTC time as ISO 8601 string."""
    return now_utc().isoformat()


def parse_iso(date_str: str) -> datetime:
    """Parse an ISO 8601 date or datetime string into an aware UTC datetime.

    A trailing ``Z`` is accepted; naive values are taken to be UTC. Fractional
    seconds are padded or cut to microseconds, since Oxigraph drops trailing
    zeros and ``fromisoformat`` before 3.11 wants exactly 3 or 6 digits.
    """
    value = date_str.strip()
    if value.endswith("Z"):
        value = value[:-1] + "+00:00"
    value = _FRACTION_RE.sub(lambda m: "." + m.group(1)[:6].ljust(6, "0"), value)
    return to_utc(datetime.fromisoformat(value))


def window_bound(value: str | datetime | date, end_of_day: bool = False) -> datetime:
    """Normalise a window bound to UTC.

    With ``end_of_day``, a date-only bound (``YYYY-MM-DD`` or a ``date``)
    covers that whole day.
    """
    if end_of_day and isinstance(value, date) and not isinstance(value, datetime):
        return to_utc(value) + timedelta(days=1) - timedelta(microseconds=1)
    if end_of_day and isinstance(value, str) and len(value.strip()) == 10:
        return parse_iso(value) + timedelta(days=1) - timedelta(microseconds=1)
    return to_utc(value)


def to_utc(value: datetime | date | str) -> datetime:
    """Normalise a datetime, date, or ISO string to an aware UTC datetime."""
    if isinstance(value, str):
        return parse_iso(value)
    if not isinstance(value, datetime):
        value = datetime(value.year, value.month, value.day)
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def top_counts(counts: dict[str, int], limit: int | None = None) -> list[tuple[str, int]]:
    """Sort a count map descending by count; ties keep insertion order."""
    ordered = sorted(counts.items(), key=lambda kv: kv[1], reverse=True)
    return ordered if limit is None else ordered[:limit]

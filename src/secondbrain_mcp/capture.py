"""Quick capture: append emails, web clips, and voice notes to today's memory."""

from __future__ import annotations

from collections.abc import Sequence
from datetime import datetime

from .email_parser import format_email_memory, parse_email
from .logging_config import get_logger
from .models import EmailCapture, Note, StructuredMemory
from .store import MemoryStore
from .utils import daily_path, now_utc, to_utc
from .voice import structure_transcript, to_markdown

logger = get_logger(__name__)

ENTRY_SEPARATOR = "\n\n---\n\n"


def append_to_daily(
    store: MemoryStore,
    entry: str,
    section: str | None = None,
    now: datetime | str | None = None,
) -> Note:
    """Append ``entry`` to the daily memory for ``now``'s date.

    A new daily memory starts with a ``# <date>`` heading and, when given, a
    ``## <section>`` heading.
    """
    moment = to_utc(now) if now else now_utc()
    today = moment.date().isoformat()
    path = daily_path(moment.date())

    existing = store.get_note(path)
    if existing is not None and existing.content.strip():
        content = existing.content.rstrip("\n") + ENTRY_SEPARATOR + entry
    elif section is None:
        content = entry
    else:
        content = f"# {today}\n\n## {section}\n\n{entry}\n"

    logger.debug("Appending %d chars to %s", len(entry), path)
    return store.set_note(path, content, modified_at=moment)


def capture_email(store: MemoryStore, raw: str, now: datetime | str | None = None) -> tuple[Note, EmailCapture]:
    moment = to_utc(now) if now else now_utc()
    capture = parse_email(raw)
    entry = format_email_memory(capture, moment.strftime("%H:%M"))
    return append_to_daily(store, entry, section="Emails", now=moment), capture


def format_web_clip(
    title: str | None = None,
    url: str | None = None,
    selection: str | None = None,
    notes: str | None = None,
    tags: Sequence[str] = (),
    timestamp: str = "",
) -> str:
    """Format a browser clip; at least one of title, selection, or notes is required."""
    if not (title or selection or notes):
        raise ValueError("At least one of title, selection, or notes required")

    lines = ["🌐 **From Web**", ""]
    if title:
        lines.append(f"**{title}**")
    if url:
        lines += [f"🔗 [{url}]({url})", ""]
    if selection:
        lines += ["> " + selection.replace("\n", "\n> "), ""]
    if notes:
        lines += [notes, ""]
    if tags:
        lines += [" ".join(f"#{t.lstrip('#')}" for t in tags), ""]
    lines.append(f"_Captured at {timestamp}_")
    return "\n".join(lines).strip()


def capture_web_clip(
    store: MemoryStore,
    title: str | None = None,
    url: str | None = None,
    selection: str | None = None,
    notes: str | None = None,
    tags: Sequence[str] = (),
    now: datetime | str | None = None,
) -> Note:
    moment = to_utc(now) if now else now_utc()
    entry = format_web_clip(title, url, selection, notes, tags, moment.strftime("%H:%M"))
    return append_to_daily(store, entry, section="Web Clips", now=moment)


def capture_voice(
    store: MemoryStore,
    transcript: str,
    now: datetime | str | None = None,
) -> tuple[Note, StructuredMemory]:
    """Structure a transcript and append its markdown to today's memory."""
    moment = to_utc(now) if now else now_utc()
    structured = structure_transcript(transcript)
    markdown = to_markdown(structured, moment.date().isoformat())
    return append_to_daily(store, markdown, now=moment), structured

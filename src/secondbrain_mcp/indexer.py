"""Tag and contact aggregation across memories, recomputed on every call."""

from __future__ import annotations

import re
from collections.abc import Iterable, Mapping, Sequence
from datetime import datetime, timedelta

from .markdown_parser import extract_action_items, parse_memory_content
from .models import ActionItem, ActivityDay, Analytics, Contact, ContactMention, CountEntry, Note
from .utils import now_utc, parse_iso, to_utc, top_counts, window_bound


def _count(values_per_note: Iterable[list[str]]) -> list[CountEntry]:
    counts: dict[str, int] = {}
    for values in values_per_note:
        for value in values:
            counts[value] = counts.get(value, 0) + 1
    return [CountEntry(name=n, count=c) for n, c in top_counts(counts)]


def count_tags(notes: Sequence[Note]) -> list[CountEntry]:
    """Number of memories carrying each tag, most used first."""
    return _count(parse_memory_content(n.content).tags for n in notes)


def count_contacts(notes: Sequence[Note]) -> list[CountEntry]:
    """Number of memories mentioning each contact name, most mentioned first."""
    return _count(parse_memory_content(n.content).contacts for n in notes)


def filter_by_tag(notes: Sequence[Note], tag: str) -> list[Note]:
    tag = tag.lower().lstrip("#")
    return [n for n in notes if tag in parse_memory_content(n.content).tags]


def filter_by_contact(notes: Sequence[Note], contact_name: str) -> list[Note]:
    wanted = contact_name.lower().lstrip("@")
    return [
        n for n in notes
        if any(c.lower() == wanted for c in parse_memory_content(n.content).contacts)
    ]


def find_contact_mentions(
    notes: Sequence[Note],
    contact_name: str,
    contacts: Iterable[Contact] = (),
    context_chars: int = 100,
) -> list[ContactMention]:
    """Every memory mentioning ``@contact_name`` with the first surrounding snippet.

    ``contact_id`` is filled when the name matches a directory entry's full name.
    """
    contact_id = ""
    for contact in contacts:
        if contact.full_name.lower() == contact_name.lower():
            contact_id = contact.id
            break

    context_re = re.compile(
        rf"(.{{0,{context_chars}}}@{re.escape(contact_name)}.{{0,{context_chars}}})",
        re.IGNORECASE,
    )
    mentions: list[ContactMention] = []
    for note in filter_by_contact(notes, contact_name):
        m = context_re.search(note.content)
        mentions.append(ContactMention(
            contact_name=contact_name,
            contact_id=contact_id,
            memory_path=note.path,
            memory_date=note.name,
            context=m.group(1) if m else f"Mentioned in {note.name}",
            timestamp=note.last_modified,
        ))
    return mentions


def collect_action_items(notes: Sequence[Note]) -> list[tuple[str, list[ActionItem]]]:
    """(memory name, items) for each memory that has action items."""
    collected = []
    for note in notes:
        items = extract_action_items(note.content)
        if items:
            collected.append((note.name, items))
    return collected


def _modified(note: Note) -> datetime | None:
    if not note.last_modified:
        return None
    try:
        return parse_iso(note.last_modified)
    except ValueError:
        return None


def search_memories(
    notes: Sequence[Note],
    query: str | None = None,
    tag: str | None = None,
    contact: str | None = None,
    date_from: str | datetime | None = None,
    date_to: str | datetime | None = None,
) -> list[Note]:
    """Filter memories by text, tag, contact, and modification date.

    A date-only ``date_to`` includes the whole of that day.
    """
    results = list(notes)
    if query:
        q = query.lower()
        results = [n for n in results if q in n.content.lower() or q in n.name.lower()]
    if tag:
        results = filter_by_tag(results, tag)
    if contact:
        results = filter_by_contact(results, contact)
    if date_from or date_to:
        lower = window_bound(date_from, end_of_day=False) if date_from else None
        upper = window_bound(date_to, end_of_day=True) if date_to else None
        results = [n for n in results if _in_window(_modified(n), lower, upper)]
    return results


def _in_window(moment: datetime | None, lower: datetime | None, upper: datetime | None) -> bool:
    if moment is None:
        return False
    if lower is not None and moment < lower:
        return False
    return upper is None or moment <= upper


def compute_analytics(notes: Sequence[Note], now: datetime | None = None) -> Analytics:
    """Dashboard totals: counts, recent activity, top tags and contacts."""
    now = to_utc(now) if now else now_utc()
    week_ago = now - timedelta(days=7)
    month_ago = now - timedelta(days=30)

    analytics = Analytics(total_memories=len(notes))
    tag_counts: dict[str, int] = {}
    contact_counts: dict[str, int] = {}
    activity: dict[str, int] = {}

    for note in notes:
        analytics.total_words += len(note.content.split())
        modified = _modified(note)
        if modified is not None:
            if modified >= week_ago:
                analytics.memories_this_week += 1
            if modified >= month_ago:
                analytics.memories_this_month += 1
            day = modified.date().isoformat()
            activity[day] = activity.get(day, 0) + 1

        parsed = parse_memory_content(note.content)
        for tag in parsed.tags:
            tag_counts[tag] = tag_counts.get(tag, 0) + 1
        for name in parsed.contacts:
            contact_counts[name] = contact_counts.get(name, 0) + 1
        analytics.action_items_pending += len(extract_action_items(note.content))

    analytics.top_tags = [CountEntry(n, c) for n, c in top_counts(tag_counts, 10)]
    analytics.top_contacts = [CountEntry(n, c) for n, c in top_counts(contact_counts, 10)]
    analytics.recent_activity = [
        ActivityDay(date=d, count=c)
        for d, c in sorted(activity.items(), reverse=True)[:30]
    ]
    return analytics


def build_reindex_entries(
    path: str,
    content: str,
    existing: Mapping[str, list[str]] | None = None,
) -> dict[str, list[str]]:
    """Index entries a caller may persist for one memory.

    Keys are ``tags:<tag>:memories`` and ``contacts:<lower name>:mentions``;
    values are memory path lists with ``path`` appended when missing. Only the
    keys this memory touches are returned; ``existing`` is not modified.
    """
    existing = existing or {}
    parsed = parse_memory_content(content)
    keys = [f"tags:{tag}:memories" for tag in parsed.tags]
    keys += [f"contacts:{name.lower()}:mentions" for name in parsed.contacts]

    entries: dict[str, list[str]] = {}
    for key in keys:
        paths = list(existing.get(key, []))
        if path not in paths:
            paths.append(path)
        entries[key] = paths
    return entries

"""Weekly and monthly digests of memories, rendered as markdown or chat text."""

from __future__ import annotations

import re
from collections.abc import Sequence
from dataclasses import fields
from datetime import datetime, timedelta

from .errors import InvalidRangeError
from .logging_config import get_logger
from .markdown_parser import parse_memory_content
from .models import (
    ActionItemSummary,
    CountEntry,
    Deal,
    Meeting,
    MonthlySummary,
    Note,
    PendingAction,
    Period,
    Trends,
    WeeklySummary,
)
from .utils import now_utc, parse_iso, to_utc, top_counts, window_bound

logger = get_logger(__name__)

# Known to be fragile: keyed on capitalisation, and the suffix pattern is
# case-insensitive so it also accepts lowercase words before "inc"/"ltd".
_COMPANY_RES = (
    re.compile(r"(?:company|from|at|with)\s+([A-Z][a-zA-Z]+(?:\s+[A-Z]?[a-z]+)?)"),
    re.compile(r"([A-Z][a-zA-Z]+(?:\s+[A-Z]?[a-z]+)?)\s+(?:Inc|LLC|Ltd|Corp|Pty|GmbH)", re.IGNORECASE),
)
_COMPANY_STOPLIST = frozenset({"The", "This", "That", "Meeting", "Call"})
_SUMMARY_ACTION_RE = re.compile(r"[-*]\s*\[\s*\]\s*(.+)")
_MARKUP_RE = re.compile(r"[#*@]")

_MEETING_KEYWORDS = ("meeting", "call with")
_DEAL_KEYWORDS = ("deal", "contract", "proposal", "tender")

TOP_CONTACTS = 5
TOP_TAGS = 10
TOP_COMPANIES = 5
MAX_PENDING = 10
KEY_TOPICS = 5


def _modified(note: Note) -> datetime | None:
    try:
        return parse_iso(note.last_modified)
    except ValueError:
        logger.debug("Skipping memory %s with unparseable timestamp %r", note.path, note.last_modified)
        return None


def _window_notes(notes: Sequence[Note], start: datetime, end: datetime) -> list[Note]:
    selected = []
    for note in notes:
        modified = _modified(note) if note.last_modified else None
        if modified is not None and start <= modified <= end:
            selected.append(note)
    return selected


def _deal_status(lower: str) -> str:
    # Later rules override earlier ones.
    status = "In Progress"
    if "won" in lower or "signed" in lower or "closed" in lower:
        status = "Won"
    if "lost" in lower or "declined" in lower:
        status = "Lost"
    if "submitted" in lower:
        status = "Submitted"
    return status


def extract_companies(content: str) -> list[str]:
    """Company-name guesses in match order (may repeat)."""
    companies = []
    for pattern in _COMPANY_RES:
        for m in pattern.finditer(content):
            company = m.group(1).strip()
            if len(company) > 2 and company not in _COMPANY_STOPLIST:
                companies.append(company)
    return companies


def generate_summary(
    notes: Sequence[Note],
    window_start: datetime | str,
    window_end: datetime | str,
    now: datetime | str | None = None,
) -> WeeklySummary:
    """Summarise memories last modified within ``[window_start, window_end]``.

    A date-only ``window_end`` includes the whole of that day. Raises
    InvalidRangeError when the window starts after it ends.
    """
    start = window_bound(window_start)
    end = window_bound(window_end, end_of_day=True)
    if start > end:
        raise InvalidRangeError(
            f"Summary window starts after it ends: {start.isoformat()} > {end.isoformat()}",
            context={"start": start.isoformat(), "end": end.isoformat()},
        )
    generated = to_utc(now) if now else now_utc()

    window = _window_notes(notes, start, end)
    contact_counts: dict[str, int] = {}
    tag_counts: dict[str, int] = {}
    company_counts: dict[str, int] = {}
    actions: list[PendingAction] = []
    meetings: list[Meeting] = []
    deals: list[Deal] = []
    total_words = 0

    for note in window:
        content = note.content
        lower = content.lower()
        first_line = content.split("\n")[0]
        total_words += len(content.split())

        parsed = parse_memory_content(content)
        for mention in parsed.mentions:
            if mention.type == "contact":
                contact_counts[mention.value] = contact_counts.get(mention.value, 0) + 1
            elif mention.type == "tag":
                tag_counts[mention.value] = tag_counts.get(mention.value, 0) + 1

        for company in extract_companies(content):
            company_counts[company] = company_counts.get(company, 0) + 1

        for m in _SUMMARY_ACTION_RE.finditer(content):
            actions.append(PendingAction(text=m.group(1).strip(), memory=note.name))

        if any(k in lower for k in _MEETING_KEYWORDS):
            meetings.append(Meeting(
                date=note.name,
                contacts=list(parsed.contacts),
                summary=_MARKUP_RE.sub("", first_line).strip()[:100],
            ))

        # The deal is pinned to the first company seen so far in the window,
        # not necessarily the one this memory is about.
        if any(k in lower for k in _DEAL_KEYWORDS) and company_counts:
            deals.append(Deal(
                company=next(iter(company_counts)),
                status=_deal_status(lower),
                notes=first_line[:100],
            ))

    top_tags = [CountEntry(n, c) for n, c in top_counts(tag_counts, TOP_TAGS)]
    summary = WeeklySummary(
        period=Period(start=start.date().isoformat(), end=end.date().isoformat()),
        total_memories=len(window),
        total_words=total_words,
        top_contacts=[CountEntry(n, c) for n, c in top_counts(contact_counts, TOP_CONTACTS)],
        top_tags=top_tags,
        top_companies=[CountEntry(n, c) for n, c in top_counts(company_counts, TOP_COMPANIES)],
        action_items=ActionItemSummary(
            total=len(actions),
            completed=0,
            pending=actions[:MAX_PENDING],
        ),
        key_topics=[t.name for t in top_tags[:KEY_TOPICS]],
        meetings=meetings,
        deals=deals,
        generated=generated.isoformat(),
    )
    logger.info("Summarised %d memories between %s and %s", len(window), summary.period.start, summary.period.end)
    return summary


def generate_weekly_summary(
    notes: Sequence[Note],
    now: datetime | str | None = None,
    days: int = 7,
) -> WeeklySummary:
    """Summary of the ``days`` (default 7) ending at ``now``."""
    end = to_utc(now) if now else now_utc()
    return generate_summary(notes, end - timedelta(days=days), end, now=end)


def _distinct_contacts(notes: Sequence[Note]) -> int:
    names: set[str] = set()
    for note in notes:
        names.update(parse_memory_content(note.content).contacts)
    return len(names)


def generate_monthly_summary(
    notes: Sequence[Note],
    now: datetime | str | None = None,
    days: int = 30,
) -> MonthlySummary:
    """Summary of the ``days`` (default 30) ending at ``now``, with weekly
    breakdown and change against the preceding window of equal length."""
    end = to_utc(now) if now else now_utc()
    start = end - timedelta(days=days)
    base = generate_summary(notes, start, end, now=end)

    weeks: list[WeeklySummary] = []
    slice_start = start
    while slice_start < end:
        slice_end = min(slice_start + timedelta(days=7), end)
        # Slices share no instant except the final window end.
        upper = slice_end if slice_end == end else slice_end - timedelta(microseconds=1)
        weeks.append(generate_summary(notes, slice_start, upper, now=end))
        slice_start = slice_end

    current = _window_notes(notes, start, end)
    previous = _window_notes(notes, start - timedelta(days=days), start - timedelta(microseconds=1))
    active_days = {_modified(n).date() for n in current}

    trends = Trends(
        memories_change=len(current) - len(previous),
        contacts_change=_distinct_contacts(current) - _distinct_contacts(previous),
        activity_score=round(100 * len(active_days) / days) if days > 0 else 0,
    )
    values = {f.name: getattr(base, f.name) for f in fields(WeeklySummary)}
    return MonthlySummary(**values, weeks=weeks, trends=trends)


def _generated_label(summary: WeeklySummary) -> str:
    try:
        return parse_iso(summary.generated).strftime("%Y-%m-%d %H:%M UTC")
    except ValueError:
        return summary.generated


def format_summary_markdown(summary: WeeklySummary, title: str) -> str:
    """Render a summary as a markdown document."""
    lines: list[str] = [
        f"# {title}",
        "",
        f"**Period:** {summary.period.start} to {summary.period.end}",
        "",
        "## 📊 Quick Stats",
        "",
        f"- **{summary.total_memories}** memories captured",
        f"- **{summary.total_words}** words written",
        f"- **{summary.action_items.total}** action items",
        f"- **{len(summary.meetings)}** meetings/calls",
        "",
    ]

    if summary.top_contacts:
        lines += ["## 👥 Top Contacts", ""]
        lines += [f"- @{c.name} ({c.count} mentions)" for c in summary.top_contacts]
        lines.append("")

    if summary.top_tags:
        lines += ["## 🏷️ Top Tags", ""]
        lines.append(" ".join(f"#{t.name}" for t in summary.top_tags))
        lines.append("")

    if summary.top_companies:
        lines += ["## 🏢 Companies Mentioned", ""]
        lines += [f"- {c.name} ({c.count})" for c in summary.top_companies]
        lines.append("")

    if summary.meetings:
        lines += ["## 📅 Meetings & Calls", ""]
        for meeting in summary.meetings:
            who = ", ".join(f"@{c}" for c in meeting.contacts) if meeting.contacts else meeting.summary
            lines.append(f"- **{meeting.date}**: {who}")
        lines.append("")

    if summary.deals:
        lines += ["## 💼 Deals & Opportunities", ""]
        for deal in summary.deals:
            emoji = {"Won": "✅", "Lost": "❌"}.get(deal.status, "🔄")
            lines.append(f"- {emoji} **{deal.company}** - {deal.status}")
        lines.append("")

    if summary.action_items.pending:
        lines += ["## ✅ Pending Action Items", ""]
        lines += [f"- [ ] {item.text} _({item.memory})_" for item in summary.action_items.pending]
        lines.append("")

    lines += ["---", f"_Generated on {_generated_label(summary)}_"]
    return "\n".join(lines)


def format_summary_text(summary: WeeklySummary, title: str) -> str:
    """Render a condensed plain-text digest for chat or email delivery."""
    lines: list[str] = [
        f"📊 *{title}*",
        f"_{summary.period.start} to {summary.period.end}_",
        "",
        f"📝 {summary.total_memories} memories • {summary.total_words} words",
        f"📋 {summary.action_items.total} action items • {len(summary.meetings)} meetings",
        "",
    ]

    if summary.top_contacts:
        lines.append("👥 *Top Contacts:*")
        lines.append(", ".join(f"@{c.name}" for c in summary.top_contacts))
        lines.append("")

    if summary.top_tags:
        lines.append("🏷️ *Top Tags:*")
        lines.append(" ".join(f"#{t.name}" for t in summary.top_tags[:5]))
        lines.append("")

    if summary.meetings:
        lines.append("📅 *Recent Meetings:*")
        for meeting in summary.meetings[:3]:
            lines.append(f"• {meeting.date}: {meeting.contacts[0] if meeting.contacts else 'Meeting'}")
        lines.append("")

    if summary.action_items.pending:
        lines.append("✅ *Pending Actions:*")
        lines += [f"• {item.text}" for item in summary.action_items.pending[:5]]

    return "\n".join(lines)

"""Dataclasses for memories, mentions, links, summaries, and voice captures."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date


LONG_TERM = "long-term"
DAILY = "daily"


@dataclass
class Note:
    path: str
    name: str
    content: str = ""
    last_modified: str = ""
    category: str = DAILY  # long-term (MEMORY.md) or daily (memory/<date>.md)
    attachments: list[str] = field(default_factory=list)


@dataclass
class Contact:
    id: str
    first_name: str
    last_name: str = ""

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()

    @classmethod
    def from_dict(cls, data: dict) -> Contact:
        """Build from a contact-directory record ({id, firstName, lastName})."""
        return cls(
            id=str(data.get("id", "")),
            first_name=data.get("firstName", data.get("first_name", "")),
            last_name=data.get("lastName", data.get("last_name", "")),
        )


@dataclass
class Mention:
    type: str  # contact, tag, link (project and deal are reserved for UI use)
    value: str
    start: int
    end: int


@dataclass
class ParsedContent:
    mentions: list[Mention] = field(default_factory=list)
    tags: list[str] = field(default_factory=list)
    contacts: list[str] = field(default_factory=list)
    links: list[str] = field(default_factory=list)


@dataclass
class ActionItem:
    text: str
    due_date: str | None = None
    priority: str = "medium"  # high, medium, low
    completed: bool = False


@dataclass
class ExtractedDate:
    text: str
    date: date
    type: str = "mention"  # meeting, deadline, reminder, mention


@dataclass
class ContactMention:
    contact_name: str
    memory_path: str
    memory_date: str
    context: str
    timestamp: str
    contact_id: str = ""


@dataclass
class ActivityDay:
    date: str
    count: int


@dataclass
class Analytics:
    total_memories: int = 0
    total_words: int = 0
    memories_this_week: int = 0
    memories_this_month: int = 0
    top_tags: list[CountEntry] = field(default_factory=list)
    top_contacts: list[CountEntry] = field(default_factory=list)
    action_items_pending: int = 0
    recent_activity: list[ActivityDay] = field(default_factory=list)


@dataclass
class Backlink:
    source_memory: str
    source_path: str
    context: str
    last_modified: str


@dataclass
class ForwardLink:
    title: str
    exists: bool
    path: str | None = None


@dataclass
class GraphNode:
    id: str
    label: str
    virtual: bool = False


@dataclass
class GraphEdge:
    source: str
    target: str


@dataclass
class LinkGraph:
    nodes: list[GraphNode] = field(default_factory=list)
    edges: list[GraphEdge] = field(default_factory=list)


@dataclass
class LinkCount:
    title: str
    count: int


@dataclass
class LinkStats:
    total_links: int = 0
    unique_targets: int = 0
    orphan_links: int = 0
    most_linked: list[LinkCount] = field(default_factory=list)


@dataclass
class CountEntry:
    name: str
    count: int


@dataclass
class PendingAction:
    text: str
    memory: str


@dataclass
class ActionItemSummary:
    total: int = 0
    completed: int = 0  # completion is not tracked in note text
    pending: list[PendingAction] = field(default_factory=list)


@dataclass
class Meeting:
    date: str
    contacts: list[str] = field(default_factory=list)
    summary: str = ""


@dataclass
class Deal:
    company: str
    status: str
    notes: str = ""


@dataclass
class Period:
    start: str
    end: str


@dataclass
class WeeklySummary:
    period: Period
    total_memories: int = 0
    total_words: int = 0
    top_contacts: list[CountEntry] = field(default_factory=list)
    top_tags: list[CountEntry] = field(default_factory=list)
    top_companies: list[CountEntry] = field(default_factory=list)
    action_items: ActionItemSummary = field(default_factory=ActionItemSummary)
    key_topics: list[str] = field(default_factory=list)
    meetings: list[Meeting] = field(default_factory=list)
    deals: list[Deal] = field(default_factory=list)
    generated: str = ""


@dataclass
class Trends:
    memories_change: int = 0
    contacts_change: int = 0
    activity_score: int = 0  # percentage of days in the window with a memory


@dataclass
class MonthlySummary(WeeklySummary):
    weeks: list[WeeklySummary] = field(default_factory=list)
    trends: Trends = field(default_factory=Trends)


@dataclass
class VoiceActionItem:
    text: str
    assignee: str | None = None
    due_date: str | None = None


@dataclass
class StructuredMemory:
    title: str
    type: str  # meeting, call, note, idea, reminder
    summary: str = ""
    attendees: list[str] = field(default_factory=list)
    key_points: list[str] = field(default_factory=list)
    action_items: list[VoiceActionItem] = field(default_factory=list)
    tags: list[str] = field(default_factory=list)
    contacts: list[str] = field(default_factory=list)
    raw_transcript: str = ""


@dataclass
class TranscriptionResult:
    text: str
    confidence: float = 0.0
    duration: float = 0.0  # seconds
    timestamp: str | None = None


@dataclass
class EmailCapture:
    subject: str
    sender_name: str = ""
    sender_email: str = ""
    body: str = ""
    date: str | None = None
    kind: str = "note"  # note, meeting, task, contact
    tags: list[str] = field(default_factory=list)
    attachments: list[str] = field(default_factory=list)

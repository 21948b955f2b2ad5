"""Note text → annotations: @mentions, #tags, [[links]], action items, dates, triples."""

from __future__ import annotations

import re
from datetime import date
from types import MappingProxyType

from pyoxigraph import DefaultGraph, Literal, NamedNode, Quad

from .models import ActionItem, ExtractedDate, Mention, Note, ParsedContent
from .utils import (
    FOAF_NS,
    SB_NS,
    make_concept_uri,
    make_memory_uri,
    make_person_uri,
)


# These token shapes are the note interchange format; do not change them.
CONTACT_RE = re.compile(r"@([A-Z][a-zA-Z]+\s?[A-Z]?[a-zA-Z]*)")
TAG_RE = re.compile(r"#([a-zA-Z0-9_-]+)")
WIKILINK_RE = re.compile(r"\[\[([^\]]+)\]\]")

_CHECKBOX_RE = re.compile(r"[-*]?\s*\[\s*\]\s*(.+)")
_FOLLOW_UP_RE = re.compile(
    r"follow[\s-]?up\s+(?:with\s+)?(.+?)(?:\s+by\s+(.+?))?(?:\s*$|[,;.])",
    re.IGNORECASE | re.MULTILINE,
)
_DUE_RE = re.compile(r"by\s+(.+?)(?:\s*$|[,;])", re.IGNORECASE)
_URGENT_RE = re.compile(r"urgent:?", re.IGNORECASE)
_IMPORTANT_RE = re.compile(r"important:?", re.IGNORECASE)

_ISO_DATE_RE = re.compile(r"\b(\d{4}-\d{2}-\d{2})\b")
_RELATIVE_DATE_RE = re.compile(
    r"\b(tomorrow|next week|next month|on (?:monday|tuesday|wednesday|thursday|friday|saturday|sunday))\b",
    re.IGNORECASE,
)

_RDF_TYPE = NamedNode("http://www.w3.org/1999/02/22-rdf-syntax-ns#type")
_XSD_DT = NamedNode("http://www.w3.org/2001/XMLSchema#dateTime")

# (tag, keywords) in suggestion order
TAG_KEYWORDS: tuple[tuple[str, tuple[str, ...]], ...] = (
    # Business/sales
    ("tender", ("tender", "rfp", "proposal")),
    ("partner", ("partner", "partnership")),
    ("deal", ("deal", "contract", "signed")),
    ("follow-up", ("follow up", "follow-up")),
    ("meeting", ("meeting", "call")),
    ("pricing", ("quote", "pricing")),
    # LoRaWAN/IoT
    ("lorawan", ("lorawan", "lora")),
    ("iot", ("iot", "internet of things")),
    ("gateway", ("gateway", "gateways")),
    ("tracking", ("tracker", "tracking")),
    # Companies/products
    ("actility", ("actility", "thingpark")),
    ("abeeway", ("abeeway",)),
    # Regions
    ("apac", ("apac", "asia pacific")),
    ("australia", ("australia", "aus")),
)

TAG_COLORS = MappingProxyType({
    "tender": "bg-orange-600",
    "partner": "bg-blue-600",
    "deal": "bg-green-600",
    "follow-up": "bg-yellow-600",
    "meeting": "bg-purple-600",
    "pricing": "bg-pink-600",
    "lorawan": "bg-cyan-600",
    "iot": "bg-teal-600",
    "actility": "bg-indigo-600",
    "abeeway": "bg-rose-600",
    "apac": "bg-amber-600",
    "hot-lead": "bg-red-600",
})


def parse_memory_content(content: str) -> ParsedContent:
    """Extract contact mentions, tags, and wiki links from note text.

    ``mentions`` keeps every occurrence with offsets into ``content`` (contacts,
    then tags, then links); the flat lists are de-duplicated in first-seen order.
    """
    mentions: list[Mention] = []
    contacts: dict[str, None] = {}
    tags: dict[str, None] = {}
    links: dict[str, None] = {}

    for m in CONTACT_RE.finditer(content):
        name = m.group(1).strip()
        contacts[name] = None
        mentions.append(Mention("contact", name, m.start(), m.end()))

    for m in TAG_RE.finditer(content):
        tag = m.group(1).lower()
        tags[tag] = None
        mentions.append(Mention("tag", tag, m.start(), m.end()))

    for m in WIKILINK_RE.finditer(content):
        links[m.group(1)] = None
        mentions.append(Mention("link", m.group(1), m.start(), m.end()))

    return ParsedContent(
        mentions=mentions,
        tags=list(tags),
        contacts=list(contacts),
        links=list(links),
    )


def extract_wiki_links(content: str) -> list[str]:
    """Return trimmed, de-duplicated [[link]] titles in order of appearance."""
    return list(dict.fromkeys(m.group(1).strip() for m in WIKILINK_RE.finditer(content)))


def extract_mention_context(content: str, mention_name: str, context_chars: int = 50) -> str:
    """Return text around the first ``@mention_name`` with ``...`` where clipped."""
    m = re.search(f"@{re.escape(mention_name)}", content, re.IGNORECASE)
    if not m:
        return ""

    start = max(0, m.start() - context_chars)
    end = min(len(content), m.start() + len(mention_name) + 1 + context_chars)
    context = content[start:end]
    if start > 0:
        context = "..." + context
    if end < len(content):
        context = context + "..."
    return context


def extract_action_items(content: str) -> list[ActionItem]:
    """Extract checkbox tasks, then "follow up with" phrases.

    Checkbox items are scanned first and follow-ups second, so the result is
    not interleaved by position.
    """
    items: list[ActionItem] = []

    for m in _CHECKBOX_RE.finditer(content):
        text = m.group(1).strip()
        priority = "medium"
        due_date = None

        if "!!!" in text or "urgent" in text.lower():
            priority = "high"
            text = _URGENT_RE.sub("", text.replace("!!!", "")).strip()
        elif "!" in text or "important" in text.lower():
            text = _IMPORTANT_RE.sub("", text.replace("!", "")).strip()

        due = _DUE_RE.search(text)
        if due:
            due_date = due.group(1)
            text = text.replace(due.group(0), "", 1).strip()

        items.append(ActionItem(text=text, due_date=due_date, priority=priority))

    for m in _FOLLOW_UP_RE.finditer(content):
        due_date = m.group(2).strip() if m.group(2) else None
        items.append(ActionItem(
            text=f"Follow up with {m.group(1).strip()}",
            due_date=due_date,
            priority="medium",
        ))

    return items


def extract_dates(content: str) -> list[ExtractedDate]:
    """Extract ISO ``YYYY-MM-DD`` tokens; impossible calendar dates are skipped."""
    dates: list[ExtractedDate] = []
    for m in _ISO_DATE_RE.finditer(content):
        try:
            parsed = date.fromisoformat(m.group(1))
        except ValueError:
            continue
        dates.append(ExtractedDate(text=m.group(1), date=parsed, type="mention"))
    return dates


def find_relative_dates(content: str) -> list[str]:
    """Return relative date phrases ("tomorrow", "on friday", ...) unresolved."""
    return [m.group(1) for m in _RELATIVE_DATE_RE.finditer(content)]


def suggest_tags(content: str) -> list[str]:
    """Suggest tags from the fixed keyword table."""
    lower = content.lower()
    return [
        tag for tag, keywords in TAG_KEYWORDS
        if any(k in lower for k in keywords)
    ]


def extract_triples(note: Note) -> list[Quad]:
    """Convert a memory and its derived index (tags, mentions, links) to quads."""
    memory_uri = NamedNode(make_memory_uri(note.path))
    graph = DefaultGraph()
    quads: list[Quad] = []

    def q(s, p, o):
        quads.append(Quad(s, p, o, graph))

    q(memory_uri, _RDF_TYPE, NamedNode(f"{SB_NS}Memory"))
    q(memory_uri, NamedNode(f"{SB_NS}path"), Literal(note.path))
    q(memory_uri, NamedNode(f"{SB_NS}name"), Literal(note.name))
    q(memory_uri, NamedNode(f"{SB_NS}category"), Literal(note.category))
    q(memory_uri, NamedNode(f"{SB_NS}content"), Literal(note.content))
    if note.last_modified:
        q(memory_uri, NamedNode(f"{SB_NS}modifiedAt"), Literal(note.last_modified, datatype=_XSD_DT))

    for ref in note.attachments:
        q(memory_uri, NamedNode(f"{SB_NS}attachment"), Literal(ref))

    parsed = parse_memory_content(note.content)

    # Tags → Concepts
    for tag in parsed.tags:
        concept_uri = NamedNode(make_concept_uri(tag))
        q(concept_uri, _RDF_TYPE, NamedNode(f"{SB_NS}Concept"))
        q(concept_uri, NamedNode(f"{SB_NS}title"), Literal(tag))
        q(memory_uri, NamedNode(f"{SB_NS}hasTag"), concept_uri)

    # Contact mentions → Person URIs
    for name in parsed.contacts:
        person_uri = NamedNode(make_person_uri(name))
        q(person_uri, _RDF_TYPE, NamedNode(f"{FOAF_NS}Person"))
        q(person_uri, NamedNode(f"{FOAF_NS}name"), Literal(name))
        q(memory_uri, NamedNode(f"{SB_NS}mentions"), person_uri)

    # Wikilinks → linksTo (titles, resolved at query time)
    for link in parsed.links:
        q(memory_uri, NamedNode(f"{SB_NS}linksTo"), Literal(link))

    return quads

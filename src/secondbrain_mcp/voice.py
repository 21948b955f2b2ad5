"""Turn a raw voice transcript into a structured memory."""

from __future__ import annotations

import re

from .models import StructuredMemory, TranscriptionResult, VoiceActionItem


# First matching rule wins; order matters.
_TYPE_RULES: tuple[tuple[str, tuple[str, ...]], ...] = (
    ("meeting", ("meeting", "call with", "discussed with")),
    ("call", ("call", "phone", "spoke to")),
    ("reminder", ("remember", "remind me", "don't forget")),
    ("idea", ("idea", "what if", "maybe we could")),
)

_CONTACT_RES = (
    re.compile(r"(?:with|met|spoke to|called|talked to)\s+([A-Z][a-z]+(?:\s+[A-Z][a-z]+)?)"),
    re.compile(r"([A-Z][a-z]+(?:\s+[A-Z][a-z]+)?)\s+(?:said|mentioned|told|asked)"),
)
_CONTACT_STOPLIST = frozenset({
    "The", "This", "That", "Today", "Tomorrow",
    "Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday",
})

_ACTION_RES = (
    re.compile(r"(?:need to|have to|should|must|will)\s+(.+?)(?:\.|,|before|by|tomorrow|today|$)", re.IGNORECASE),
    re.compile(r"(?:follow up|follow-up|followup)\s+(?:with\s+)?(.+?)(?:\.|,|by|before|tomorrow|today|$)", re.IGNORECASE),
    re.compile(r"(?:send|email|call|message|write)\s+(.+?)(?:\.|,|by|before|tomorrow|today|$)", re.IGNORECASE),
    re.compile(r"(?:remember to|don't forget to|make sure to)\s+(.+?)(?:\.|,|$)", re.IGNORECASE),
)
_ASSIGNEE_RE = re.compile(r"(.+?)\s+to\s+(.+)")

# (phrase searched in the whole transcript, due date reported)
_DUE_KEYWORDS = (
    ("tomorrow", "tomorrow"),
    ("today", "today"),
    ("next week", "next week"),
    ("by friday", "Friday"),
    ("by monday", "Monday"),
)

_KEY_INDICATORS = ("important", "key", "main", "critical", "essential", "focus", "priority", "decided", "agreed")
_SENTENCE_SPLIT_RE = re.compile(r"[.!?]+")

_VOICE_TAG_KEYWORDS: tuple[tuple[str, tuple[str, ...]], ...] = (
    # Business/sales
    ("tender", ("tender", "rfp", "proposal")),
    ("partner", ("partner", "partnership")),
    ("deal", ("deal", "contract", "signed")),
    ("follow-up", ("follow up", "follow-up")),
    ("meeting", ("meeting", "call")),
    ("pricing", ("quote", "pricing", "price")),
    ("demo", ("demo", "demonstration")),
    # Technology
    ("lorawan", ("lorawan", "lora")),
    ("iot", ("iot",)),
    ("gateway", ("gateway", "gateways")),
    ("tracking", ("tracker", "tracking")),
    ("sensor", ("sensor", "sensors")),
    # Companies
    ("actility", ("actility", "thingpark")),
    ("abeeway", ("abeeway",)),
    # Regions
    ("apac", ("apac", "asia pacific")),
    ("australia", ("australia", "australian")),
    ("singapore", ("singapore",)),
    ("japan", ("japan",)),
    ("korea", ("korea",)),
    # Priority
    ("urgent", ("urgent", "asap", "immediately")),
    ("important", ("important", "critical")),
)

_TOPIC_RE = re.compile(r"(?:about|regarding|discussing|on)\s+(.+?)(?:\.|,|with)", re.IGNORECASE)
_REMINDER_RE = re.compile(r"(?:remember to|don't forget to|remind me to)\s+(.+?)(?:\.|,|$)", re.IGNORECASE)
_IDEA_RE = re.compile(r"(?:idea:|what if|maybe we could)\s+(.+?)(?:\.|,|$)", re.IGNORECASE)

TYPE_EMOJI = {
    "meeting": "📅",
    "call": "📞",
    "note": "📝",
    "idea": "💡",
    "reminder": "⏰",
}


def format_duration(seconds: float) -> str:
    """Format seconds as m:ss."""
    mins = int(seconds // 60)
    secs = int(seconds % 60)
    return f"{mins}:{secs:02d}"


def detect_memory_type(text: str) -> str:
    lower = text.lower()
    for memory_type, keywords in _TYPE_RULES:
        if any(k in lower for k in keywords):
            return memory_type
    return "note"


def extract_contacts(text: str) -> list[str]:
    """Names introduced by "with/met/spoke to ..." or followed by "said/asked ..."."""
    contacts: dict[str, None] = {}
    for pattern in _CONTACT_RES:
        for m in pattern.finditer(text):
            name = m.group(1).strip()
            if name not in _CONTACT_STOPLIST and len(name) > 2:
                contacts[name] = None
    return list(contacts)


def _due_date(lower: str) -> str | None:
    for phrase, due in _DUE_KEYWORDS:
        if phrase in lower:
            return due
    return None


def extract_voice_action_items(text: str) -> list[VoiceActionItem]:
    """Extract obligations, follow-ups, messages to send, and reminders.

    The due date is taken from anywhere in the transcript and applied to
    every item, not just the clause the item came from.
    """
    due_date = _due_date(text.lower())
    items: list[VoiceActionItem] = []
    seen: set[str] = set()

    for pattern in _ACTION_RES:
        for m in pattern.finditer(text):
            item = m.group(1).strip()
            assignee = None
            split = _ASSIGNEE_RE.search(item)
            if split:
                assignee = split.group(1)
                item = split.group(2)

            if len(item) > 5 and item not in seen:
                seen.add(item)
                items.append(VoiceActionItem(text=item, assignee=assignee, due_date=due_date))

    return items


def _sentences(text: str, min_length: int) -> list[str]:
    return [s.strip() for s in _SENTENCE_SPLIT_RE.split(text) if len(s.strip()) > min_length]


def extract_key_points(text: str) -> list[str]:
    """Sentences with importance keywords, else the first three sentences."""
    sentences = _sentences(text, 10)
    points = [s for s in sentences if any(i in s.lower() for i in _KEY_INDICATORS)]
    if not points:
        return sentences[:3]
    return points[:5]


def suggest_voice_tags(text: str) -> list[str]:
    lower = text.lower()
    return [tag for tag, keywords in _VOICE_TAG_KEYWORDS if any(k in lower for k in keywords)]


def generate_title(text: str, memory_type: str) -> str:
    contacts = extract_contacts(text)

    if memory_type == "meeting":
        topic_match = _TOPIC_RE.search(text)
        topic = topic_match.group(1).strip() if topic_match else ""
        if contacts and topic:
            return f"Meeting with {contacts[0]} - {topic}"
        if contacts:
            return f"Meeting with {contacts[0]}"
        return "Meeting Notes"

    if memory_type == "call":
        return f"Call with {contacts[0]}" if contacts else "Phone Call"

    if memory_type == "reminder":
        m = _REMINDER_RE.search(text)
        return f"Reminder: {m.group(1)[:50]}" if m else "Reminder"

    if memory_type == "idea":
        m = _IDEA_RE.search(text)
        return f"Idea: {m.group(1)[:50]}" if m else "Quick Idea"

    first_sentence = re.split(r"[.!?]", text)[0].strip()
    if first_sentence and len(first_sentence) < 60:
        return first_sentence
    return "Quick Note"


def _summarise(text: str) -> str:
    summary = ". ".join(_sentences(text, 5)[:2])
    return summary[:200] + "..." if len(summary) > 200 else summary


def structure_transcript(transcript: str | TranscriptionResult) -> StructuredMemory:
    """Classify and structure a raw transcript; the transcript is kept verbatim."""
    if isinstance(transcript, TranscriptionResult):
        transcript = transcript.text

    memory_type = detect_memory_type(transcript)
    contacts = extract_contacts(transcript)
    return StructuredMemory(
        title=generate_title(transcript, memory_type),
        type=memory_type,
        summary=_summarise(transcript),
        attendees=list(contacts),
        key_points=extract_key_points(transcript),
        action_items=extract_voice_action_items(transcript),
        tags=suggest_voice_tags(transcript),
        contacts=contacts,
        raw_transcript=transcript,
    )


def to_markdown(structured: StructuredMemory, date: str) -> str:
    """Render a structured memory in the note text format."""
    lines: list[str] = [
        f"# {date}",
        "",
        f"**{structured.title}**",
        "",
        f"{TYPE_EMOJI.get(structured.type, '📝')} {structured.type.capitalize()}",
        "",
    ]

    if structured.summary:
        lines += ["## Summary", structured.summary, ""]

    if structured.attendees:
        lines.append("## People")
        lines += [f"- @{a}" for a in structured.attendees]
        lines.append("")

    if structured.key_points:
        lines.append("## Key Points")
        lines += [f"- {p}" for p in structured.key_points]
        lines.append("")

    if structured.action_items:
        lines.append("## Action Items")
        for item in structured.action_items:
            text = f"- [ ] {item.text}"
            if item.assignee:
                text += f" (@{item.assignee})"
            if item.due_date:
                text += f" - by {item.due_date}"
            lines.append(text)
        lines.append("")

    if structured.tags:
        lines += ["## Tags", " ".join(f"#{t}" for t in structured.tags), ""]

    lines += [
        "<details>",
        "<summary>📝 Full Transcript</summary>",
        "",
        structured.raw_transcript,
        "",
        "</details>",
    ]
    return "\n".join(lines)

"""FastMCP server with Second Brain tools."""

from __future__ import annotations

import json
from dataclasses import asdict, is_dataclass
from pathlib import Path

from mcp.server.fastmcp import FastMCP

from .capture import append_to_daily, capture_email, capture_voice, capture_web_clip
from .config import AppConfig, load_config
from .errors import SecondBrainError
from .indexer import (
    build_reindex_entries,
    collect_action_items,
    compute_analytics,
    count_contacts,
    count_tags,
    filter_by_tag,
    find_contact_mentions,
    search_memories,
)
from .logging_config import get_logger, setup_logging
from .markdown_parser import (
    extract_action_items,
    extract_dates,
    extract_mention_context,
    find_relative_dates,
    parse_memory_content,
    suggest_tags,
)
from .models import Contact
from .renderer import render_memory_with_mentions
from .store import MemoryStore
from .summary import (
    format_summary_markdown,
    format_summary_text,
    generate_monthly_summary,
    generate_summary,
    generate_weekly_summary,
)
from .utils import now_utc
from .voice import format_duration, structure_transcript, to_markdown
from .wiki_links import (
    build_link_graph,
    create_linked_memory,
    find_backlinks,
    find_forward_links,
    get_link_stats,
)

logger = get_logger(__name__)

mcp = FastMCP("secondbrain")

_store: MemoryStore | None = None
_config: AppConfig | None = None


def _get_config() -> AppConfig:
    global _config
    if _config is None:
        _config = load_config()
    return _config


def _get_store() -> MemoryStore:
    global _store
    if _store is None:
        db_path = _get_config().db_path
        _store = MemoryStore(Path(db_path) if db_path else None)
    return _store


def _jsonable(value):
    if is_dataclass(value):
        return asdict(value)
    if isinstance(value, (list, tuple)):
        return [_jsonable(v) for v in value]
    if isinstance(value, dict):
        return {k: _jsonable(v) for k, v in value.items()}
    return value


def _dump(value) -> str:
    return json.dumps(_jsonable(value), default=str, ensure_ascii=False)


def _error(exc: Exception) -> str:
    logger.warning("Tool error: %s", exc)
    payload = {"error": str(exc)}
    if isinstance(exc, SecondBrainError) and exc.context:
        payload["context"] = exc.context
    return json.dumps(payload)


def _contacts(contacts: list[dict] | None) -> list[Contact]:
    return [Contact.from_dict(c) for c in contacts or []]


# ---------------------------------------------------------------------------
# Tool 1: sb_save_memory
# ---------------------------------------------------------------------------
@mcp.tool()
def sb_save_memory(path: str, content: str) -> str:
    """
    Create or replace a memory and re-index its tags, contacts and links.

    Args:
        path: MEMORY.md for long-term memory, or memory/YYYY-MM-DD.md for a daily note
        content: Full markdown body

    Returns:
        str: JSON with the saved path, extracted tags/contacts/links and index entries
    """
    try:
        note = _get_store().set_note(path, content)
    except (SecondBrainError, ValueError) as exc:
        return _error(exc)
    parsed = parse_memory_content(content)
    return _dump({
        "success": True,
        "path": note.path,
        "name": note.name,
        "last_modified": note.last_modified,
        "tags": parsed.tags,
        "contacts": parsed.contacts,
        "links": parsed.links,
        "index": build_reindex_entries(note.path, content),
    })


# ---------------------------------------------------------------------------
# Tool 2: sb_get_memory
# ---------------------------------------------------------------------------
@mcp.tool()
def sb_get_memory(path: str) -> str:
    """
    Fetch one memory with its annotations.

    Args:
        path: Storage path of the memory

    Returns:
        str: JSON with the memory, parsed mentions, action items and dates
    """
    note = _get_store().get_note(path)
    if note is None:
        return json.dumps({"error": f"No memory at {path}"})
    return _dump({
        "memory": note,
        "parsed": parse_memory_content(note.content),
        "action_items": extract_action_items(note.content),
        "dates": extract_dates(note.content),
    })


# ---------------------------------------------------------------------------
# Tool 3: sb_list_memories
# ---------------------------------------------------------------------------
@mcp.tool()
def sb_list_memories() -> str:
    """
    List all memories, most recently modified first.

    Returns:
        str: JSON with the memories array
    """
    return _dump({"memories": _get_store().list_notes()})


# ---------------------------------------------------------------------------
# Tool 4: sb_delete_memory
# ---------------------------------------------------------------------------
@mcp.tool()
def sb_delete_memory(path: str) -> str:
    """
    Delete a daily memory. The long-term memory cannot be deleted.

    Args:
        path: Storage path of the memory

    Returns:
        str: JSON with deletion status
    """
    try:
        deleted = _get_store().delete_note(path)
    except SecondBrainError as exc:
        return _error(exc)
    if not deleted:
        return json.dumps({"deleted": False, "message": f"No memory at {path}"})
    return json.dumps({"deleted": True, "path": path})


# ---------------------------------------------------------------------------
# Tool 5: sb_attachment
# ---------------------------------------------------------------------------
@mcp.tool()
def sb_attachment(path: str, reference: str, remove: bool = False) -> str:
    """
    Add or remove an attachment reference on a memory.

    Args:
        path: Storage path of the memory
        reference: Attachment reference (file path or URL)
        remove: Remove the reference instead of adding it

    Returns:
        str: JSON with the memory's attachment list
    """
    store = _get_store()
    try:
        if remove:
            note = store.remove_attachment(path, reference)
        else:
            note = store.add_attachment(path, reference)
    except SecondBrainError as exc:
        return _error(exc)
    return _dump({"path": note.path, "attachments": note.attachments})


# ---------------------------------------------------------------------------
# Tool 6: sb_parse_content
# ---------------------------------------------------------------------------
@mcp.tool()
def sb_parse_content(content: str, mention: str | None = None) -> str:
    """
    Extract mentions, tags, wiki links, action items and dates from text.

    Args:
        content: Free-form note text
        mention: Optional contact name; adds the text around its first @mention

    Returns:
        str: JSON with parsed annotations and suggested tags
    """
    result = {
        "parsed": parse_memory_content(content),
        "action_items": extract_action_items(content),
        "dates": extract_dates(content),
        "relative_dates": find_relative_dates(content),
        "suggested_tags": suggest_tags(content),
    }
    if mention:
        result["mention_context"] = extract_mention_context(
            content, mention.lstrip("@"), context_chars=_get_config().context_chars,
        )
    return _dump(result)


# ---------------------------------------------------------------------------
# Tool 7: sb_render_memory
# ---------------------------------------------------------------------------
@mcp.tool()
def sb_render_memory(content: str, contacts: list[dict] | None = None) -> str:
    """
    Render note text as HTML with linked contacts, tag badges and wiki links.

    Args:
        content: Note text
        contacts: Contact directory records ({id, firstName, lastName})

    Returns:
        str: JSON with the rendered html
    """
    return json.dumps({"html": render_memory_with_mentions(content, _contacts(contacts))})


# ---------------------------------------------------------------------------
# Tool 8: sb_list_tags
# ---------------------------------------------------------------------------
@mcp.tool()
def sb_list_tags() -> str:
    """
    List every tag with the number of memories using it.

    Returns:
        str: JSON with tags sorted by count
    """
    return _dump({"tags": count_tags(_get_store().list_notes())})


# ---------------------------------------------------------------------------
# Tool 9: sb_list_contacts
# ---------------------------------------------------------------------------
@mcp.tool()
def sb_list_contacts() -> str:
    """
    List every @mentioned contact name with the number of memories mentioning it.

    Returns:
        str: JSON with contacts sorted by count
    """
    return _dump({"contacts": count_contacts(_get_store().list_notes())})


# ---------------------------------------------------------------------------
# Tool 10: sb_memories_by_tag
# ---------------------------------------------------------------------------
@mcp.tool()
def sb_memories_by_tag(tag: str) -> str:
    """
    List memories carrying a tag.

    Args:
        tag: Tag name, with or without '#'

    Returns:
        str: JSON with matching memories
    """
    return _dump({"memories": filter_by_tag(_get_store().list_notes(), tag)})


# ---------------------------------------------------------------------------
# Tool 11: sb_contact_mentions
# ---------------------------------------------------------------------------
@mcp.tool()
def sb_contact_mentions(contact: str, contacts: list[dict] | None = None) -> str:
    """
    Find every memory mentioning @contact, with surrounding context.

    Args:
        contact: Contact name as written after '@'
        contacts: Optional contact directory used to resolve the contact id

    Returns:
        str: JSON with mention records
    """
    if not contact:
        return json.dumps({"error": "Contact name required"})
    mentions = find_contact_mentions(
        _get_store().list_notes(),
        contact,
        _contacts(contacts),
        context_chars=_get_config().context_chars,
    )
    return _dump({"mentions": mentions})


# ---------------------------------------------------------------------------
# Tool 12: sb_action_items
# ---------------------------------------------------------------------------
@mcp.tool()
def sb_action_items() -> str:
    """
    Collect action items across all memories.

    Returns:
        str: JSON with one entry per memory that has action items
    """
    collected = collect_action_items(_get_store().list_notes())
    return _dump({"action_items": [{"memory": name, "items": items} for name, items in collected]})


# ---------------------------------------------------------------------------
# Tool 13: sb_suggest_tags
# ---------------------------------------------------------------------------
@mcp.tool()
def sb_suggest_tags(content: str) -> str:
    """
    Suggest tags for text from the built-in keyword table.

    Args:
        content: Text to scan

    Returns:
        str: JSON with suggested tag names
    """
    return json.dumps({"suggestions": suggest_tags(content)})


# ---------------------------------------------------------------------------
# Tool 14: sb_analytics
# ---------------------------------------------------------------------------
@mcp.tool()
def sb_analytics() -> str:
    """
    Dashboard analytics: totals, weekly/monthly activity, top tags and contacts.

    Returns:
        str: JSON analytics object
    """
    return _dump({"analytics": compute_analytics(_get_store().list_notes())})


# ---------------------------------------------------------------------------
# Tool 15: sb_search
# ---------------------------------------------------------------------------
@mcp.tool()
def sb_search(
    query: str | None = None,
    tag: str | None = None,
    contact: str | None = None,
    date_from: str | None = None,
    date_to: str | None = None,
) -> str:
    """
    Search memories by text, tag, contact and modification date.

    Args:
        query: Case-insensitive text to find in content or name
        tag: Tag filter
        contact: Contact mention filter
        date_from: ISO date/time lower bound
        date_to: ISO date/time upper bound (a date includes the whole day)

    Returns:
        str: JSON with matching memories and count
    """
    try:
        memories = search_memories(_get_store().list_notes(), query, tag, contact, date_from, date_to)
    except ValueError as exc:
        return _error(exc)
    return _dump({"memories": memories, "count": len(memories)})


# ---------------------------------------------------------------------------
# Tool 16: sb_backlinks
# ---------------------------------------------------------------------------
@mcp.tool()
def sb_backlinks(title: str) -> str:
    """
    Find memories that link to [[title]].

    Args:
        title: Wiki-link title

    Returns:
        str: JSON with backlinks and their context
    """
    return _dump({"backlinks": find_backlinks(title, _get_store().list_notes())})


# ---------------------------------------------------------------------------
# Tool 17: sb_forward_links
# ---------------------------------------------------------------------------
@mcp.tool()
def sb_forward_links(path: str) -> str:
    """
    List the wiki links in a memory and whether each target exists.

    Args:
        path: Storage path of the memory

    Returns:
        str: JSON with forward links
    """
    store = _get_store()
    note = store.get_note(path)
    if note is None:
        return json.dumps({"error": f"No memory at {path}"})
    return _dump({"links": find_forward_links(note.content, store.list_notes())})


# ---------------------------------------------------------------------------
# Tool 18: sb_link_graph
# ---------------------------------------------------------------------------
@mcp.tool()
def sb_link_graph(include_stats: bool = True) -> str:
    """
    Build the wiki-link graph of all memories.

    Args:
        include_stats: Also return link statistics

    Returns:
        str: JSON with nodes, edges and optional stats
    """
    notes = _get_store().list_notes()
    result = {"graph": build_link_graph(notes)}
    if include_stats:
        result["stats"] = get_link_stats(notes)
    return _dump(result)


# ---------------------------------------------------------------------------
# Tool 19: sb_create_linked_memory
# ---------------------------------------------------------------------------
@mcp.tool()
def sb_create_linked_memory(title: str, date: str | None = None) -> str:
    """
    Create a stub memory for a wiki-link title that has no memory yet.

    Args:
        title: Wiki-link title
        date: ISO date prefix for the new memory (defaults to today)

    Returns:
        str: JSON with the created path
    """
    day = date or now_utc().date().isoformat()
    path, content = create_linked_memory(title, day)
    store = _get_store()
    if store.get_note(path) is not None:
        return json.dumps({"created": False, "path": path, "message": "Memory already exists"})
    store.set_note(path, content)
    return json.dumps({"created": True, "path": path})


# ---------------------------------------------------------------------------
# Tool 20: sb_summary
# ---------------------------------------------------------------------------
@mcp.tool()
def sb_summary(
    period: str = "week",
    format: str = "markdown",
    start: str | None = None,
    end: str | None = None,
    save: bool = False,
) -> str:
    """
    Generate a weekly, monthly or custom-window summary of memories.

    Args:
        period: week, month, or custom (requires start and end)
        format: markdown, text, or json
        start: ISO start of a custom window
        end: ISO end of a custom window
        save: Append the markdown summary to today's memory

    Returns:
        str: JSON with the summary data and rendered content
    """
    config = _get_config()
    notes = _get_store().list_notes()
    try:
        if period == "custom":
            if not (start and end):
                return json.dumps({"error": "Custom summaries need start and end"})
            summary = generate_summary(notes, start, end)
            title = "Summary"
        elif period == "month":
            summary = generate_monthly_summary(notes, days=config.monthly_days)
            title = "Monthly Summary"
        else:
            summary = generate_weekly_summary(notes, days=config.weekly_days)
            title = "Weekly Summary"
    except (SecondBrainError, ValueError) as exc:
        return _error(exc)

    result = {"summary": summary}
    markdown = format_summary_markdown(summary, title)
    if format == "markdown":
        result["content"] = markdown
    elif format == "text":
        result["content"] = format_summary_text(summary, title)
    if save:
        result["saved_to"] = append_to_daily(_get_store(), markdown).path
    return _dump(result)


# ---------------------------------------------------------------------------
# Tool 21: sb_structure_transcript
# ---------------------------------------------------------------------------
@mcp.tool()
def sb_structure_transcript(transcript: str, save: bool = False, duration: float | None = None) -> str:
    """
    Structure a voice transcript into a titled memory.

    Args:
        transcript: Raw transcript text
        save: Append the structured markdown to today's memory
        duration: Recording length in seconds, reported as m:ss

    Returns:
        str: JSON with the structured memory and its markdown
    """
    if save:
        note, structured = capture_voice(_get_store(), transcript)
        result = {
            "structured": structured,
            "markdown": to_markdown(structured, note.name),
            "saved_to": note.path,
        }
    else:
        structured = structure_transcript(transcript)
        result = {
            "structured": structured,
            "markdown": to_markdown(structured, now_utc().date().isoformat()),
        }
    if duration is not None:
        result["duration"] = format_duration(duration)
    return _dump(result)


# ---------------------------------------------------------------------------
# Tool 22: sb_capture_email
# ---------------------------------------------------------------------------
@mcp.tool()
def sb_capture_email(raw: str) -> str:
    """
    Append an RFC 2822 email to today's memory.

    Args:
        raw: Raw email source

    Returns:
        str: JSON with the memory path and parsed email fields
    """
    note, capture = capture_email(_get_store(), raw)
    return _dump({"success": True, "path": note.path, "email": capture})


# ---------------------------------------------------------------------------
# Tool 23: sb_capture_web
# ---------------------------------------------------------------------------
@mcp.tool()
def sb_capture_web(
    title: str | None = None,
    url: str | None = None,
    selection: str | None = None,
    notes: str | None = None,
    tags: list[str] | None = None,
) -> str:
    """
    Append a web clip to today's memory.

    Args:
        title: Page title
        url: Page URL
        selection: Selected text, quoted in the memory
        notes: Free-form notes
        tags: Tags to add

    Returns:
        str: JSON with the memory path
    """
    try:
        note = capture_web_clip(_get_store(), title, url, selection, notes, tags or [])
    except ValueError as exc:
        return _error(exc)
    return json.dumps({"success": True, "path": note.path})


# ---------------------------------------------------------------------------
# Tool 24: sb_get_stats
# ---------------------------------------------------------------------------
@mcp.tool()
def sb_get_stats() -> str:
    """
    Get store statistics.

    Returns:
        str: JSON with triple, memory, tag and people counts
    """
    return json.dumps(_get_store().get_stats())


# ---------------------------------------------------------------------------
# Tool 25: sb_export
# ---------------------------------------------------------------------------
@mcp.tool()
def sb_export(format: str = "turtle", path: str | None = None) -> str:
    """
    Export the memory store as RDF.

    Args:
        format: turtle, ntriples, or nquads
        path: Optional file path to write to. If omitted, returns the content.

    Returns:
        str: JSON with export status and content or file path
    """
    try:
        result = _get_store().export(fmt=format, path=path)
    except ValueError as exc:
        return _error(exc)
    if path:
        return json.dumps({"exported_to": result, "format": format})
    return json.dumps({"format": format, "content": result})


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------
def main():
    config = _get_config()
    setup_logging(config)
    logger.info("Starting secondbrain MCP server (%s)", config.transport)
    mcp.run(transport=config.transport)


if __name__ == "__main__":
    main()

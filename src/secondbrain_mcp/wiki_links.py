"""Wiki-style linked references: forward links, backlinks, link graph."""

from __future__ import annotations

import re
from collections.abc import Sequence

from .markdown_parser import extract_wiki_links
from .models import Backlink, ForwardLink, GraphEdge, GraphNode, LinkCount, LinkGraph, LinkStats, Note
from .utils import slugify

_CONTEXT_CHARS = 100


def resolve_link(title: str, notes: Sequence[Note]) -> Note | None:
    """Find the note a wiki-link title refers to.

    A note matches when its name equals the title case-insensitively or either
    one contains the other. Among several matches an exact name wins, then the
    shortest name, then the lowest path. Notes with an empty name never match.
    """
    title_lower = title.lower()
    candidates = []
    for note in notes:
        name_lower = note.name.lower()
        if not name_lower:
            continue
        if name_lower == title_lower or title_lower in name_lower or name_lower in title_lower:
            candidates.append(note)
    if not candidates:
        return None
    return min(
        candidates,
        key=lambda n: (n.name.lower() != title_lower, len(n.name), n.path),
    )


def find_forward_links(content: str, notes: Sequence[Note]) -> list[ForwardLink]:
    """Report every [[link]] in ``content`` and whether a note backs it."""
    links: list[ForwardLink] = []
    for title in extract_wiki_links(content):
        target = resolve_link(title, notes)
        links.append(ForwardLink(
            title=title,
            exists=target is not None,
            path=target.path if target else None,
        ))
    return links


def find_backlinks(target_title: str, notes: Sequence[Note]) -> list[Backlink]:
    """Find notes whose text contains ``[[target_title]]`` (case-insensitive)."""
    escaped = re.escape(target_title)
    context_re = re.compile(
        rf"(.{{0,{_CONTEXT_CHARS}}}\[\[{escaped}\]\].{{0,{_CONTEXT_CHARS}}})",
        re.IGNORECASE,
    )

    backlinks: list[Backlink] = []
    for note in notes:
        contexts = [m.group(1).strip() for m in context_re.finditer(note.content)]
        if not contexts:
            continue
        backlinks.append(Backlink(
            source_memory=note.name,
            source_path=note.path,
            context=contexts[0] or f"Links to [[{target_title}]]",
            last_modified=note.last_modified,
        ))
    return backlinks


def build_link_graph(notes: Sequence[Note]) -> LinkGraph:
    """Build a directed multigraph of notes and the titles they link to.

    Links with no matching note point at a shared ``virtual:<title>`` node.
    """
    graph = LinkGraph()
    virtual_ids: set[str] = set()

    for note in notes:
        graph.nodes.append(GraphNode(id=note.path, label=note.name))

        for link in extract_wiki_links(note.content):
            target = resolve_link(link, notes)
            if target is not None:
                graph.edges.append(GraphEdge(source=note.path, target=target.path))
                continue

            virtual_id = f"virtual:{link}"
            if virtual_id not in virtual_ids:
                virtual_ids.add(virtual_id)
                graph.nodes.append(GraphNode(id=virtual_id, label=link, virtual=True))
            graph.edges.append(GraphEdge(source=note.path, target=virtual_id))

    return graph


def get_link_stats(notes: Sequence[Note]) -> LinkStats:
    """Count links, distinct targets, orphans, and the ten most linked titles."""
    link_counts: dict[str, int] = {}
    total = 0
    for note in notes:
        links = extract_wiki_links(note.content)
        total += len(links)
        for link in links:
            link_counts[link] = link_counts.get(link, 0) + 1

    orphans = sum(1 for title in link_counts if resolve_link(title, notes) is None)
    most_linked = sorted(link_counts.items(), key=lambda kv: kv[1], reverse=True)[:10]

    return LinkStats(
        total_links=total,
        unique_targets=len(link_counts),
        orphan_links=orphans,
        most_linked=[LinkCount(title=t, count=c) for t, c in most_linked],
    )


def create_linked_memory(title: str, date: str) -> tuple[str, str]:
    """Return (path, content) for a new note created from a wiki link."""
    path = f"memory/{date}-{slugify(title)}.md"
    content = (
        f"# {title}\n"
        "\n"
        "Created from wiki link.\n"
        "\n"
        "## Notes\n"
        "<!-- Add your notes here -->\n"
        "\n"
        "## Related\n"
        f"- [[{date}]]\n"
    )
    return path, content

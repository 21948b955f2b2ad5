"""Render note text with @mentions, #tags, and [[links]] as HTML markup."""

from __future__ import annotations

import html
from collections.abc import Iterable
from urllib.parse import quote

from .markdown_parser import CONTACT_RE, TAG_RE, WIKILINK_RE
from .models import Contact


_RESOLVED_CLASS = "text-blue-400 hover:text-blue-300 bg-blue-900/30 px-1 rounded"
_UNRESOLVED_CLASS = "text-yellow-400 bg-yellow-900/30 px-1 rounded"
_TAG_CLASS = "text-purple-400 hover:text-purple-300 bg-purple-900/30 px-1 rounded"
_LINK_CLASS = "text-green-400 hover:text-green-300 bg-green-900/30 px-1 rounded"
_WIKI_SPAN_CLASS = "wiki-link text-green-400 bg-green-900/30 px-1 rounded cursor-pointer hover:bg-green-800/50"


def escape_html(text: str) -> str:
    """Escape ``&``, ``<`` and ``>`` only."""
    return text.replace("&", "&amp;").replace("<", "&lt;").replace(">", "&gt;")


def _encode_uri_component(value: str) -> str:
    return quote(value, safe="!~*'()")


def render_memory_with_mentions(content: str, contacts: Iterable[Contact | dict] = ()) -> str:
    """Convert note text to display markup.

    Contacts are substituted before tags and links so a tag or link pattern
    never fires inside generated contact markup.
    """
    directory = [c if isinstance(c, Contact) else Contact.from_dict(c) for c in contacts]
    by_name = {}
    for contact in directory:
        by_name.setdefault(contact.full_name.lower(), contact)

    rendered = escape_html(content)

    def contact_sub(m) -> str:
        raw = m.group(1)
        name = raw.rstrip()
        trailing = raw[len(name):]
        contact = by_name.get(name.lower())
        if contact:
            return f'<a href="/contacts?highlight={contact.id}" class="{_RESOLVED_CLASS}">@{name}</a>{trailing}'
        return f'<span class="{_UNRESOLVED_CLASS}">@{name}</span>{trailing}'

    rendered = CONTACT_RE.sub(contact_sub, rendered)
    rendered = TAG_RE.sub(
        lambda m: f'<a href="/memories?tag={m.group(1)}" class="{_TAG_CLASS}">#{m.group(1)}</a>',
        rendered,
    )
    rendered = WIKILINK_RE.sub(
        lambda m: (
            f'<a href="/memories?project={_encode_uri_component(m.group(1))}" '
            f'class="{_LINK_CLASS}">[[{m.group(1)}]]</a>'
        ),
        rendered,
    )
    return rendered.replace("\n", "<br/>")


def render_wiki_links(content: str) -> str:
    """Wrap each [[link]] in a clickable span carrying its title.

    The title is attribute-escaped in ``data-wiki``; the visible text is left
    as written.
    """
    return WIKILINK_RE.sub(
        lambda m: f'<span class="{_WIKI_SPAN_CLASS}" data-wiki="{html.escape(m.group(1), quote=True)}">[[{m.group(1)}]]</span>',
        content,
    )

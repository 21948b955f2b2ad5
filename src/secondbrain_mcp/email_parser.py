"""Parse RFC 2822 email into a memory entry for the daily note."""

from __future__ import annotations

import email
import email.policy
import re
from email.utils import parseaddr, parsedate_to_datetime

from .models import EmailCapture


_BRACKET_TAG_RE = re.compile(r"\[([^\]]+)\]")
_HASH_TAG_RE = re.compile(r"#(\w+)")

_KIND_EMOJI = {
    "note": "📧",
    "meeting": "📅",
    "task": "✅",
    "contact": "👤",
}


def _strip_html(html: str) -> str:
    """Minimal HTML stripping for fallback body extraction."""
    text = re.sub(r"<style[^>]*>[\s\S]*?</style>", "", html, flags=re.IGNORECASE)
    text = re.sub(r"<script[^>]*>[\s\S]*?</script>", "", text, flags=re.IGNORECASE)
    text = re.sub(r"<[^>]+>", " ", text)
    return re.sub(r"\s+", " ", text).strip()


def detect_email_kind(subject: str) -> str:
    """Classify an email by its subject: meeting, task, contact, or note."""
    lower = subject.lower()
    if "meeting" in lower or "call" in lower:
        return "meeting"
    if "task" in lower or "todo" in lower or "to-do" in lower:
        return "task"
    if "contact" in lower or "referral" in lower:
        return "contact"
    return "note"


def extract_subject_tags(subject: str) -> list[str]:
    """Tags written as ``[tag]`` or ``#tag`` in a subject line, lowercased."""
    tags = [t.lower() for t in _BRACKET_TAG_RE.findall(subject)]
    tags += [t.lower() for t in _HASH_TAG_RE.findall(subject)]
    return list(dict.fromkeys(tags))


def parse_email(raw: str) -> EmailCapture:
    """Parse an RFC 2822 raw email string into an EmailCapture.

    - Subject → subject, kind, and tags
    - Body (text/plain preferred, fallback stripped text/html) → body
    - From → sender name and address
    - Date → ISO date
    - Attachment filenames → attachments
    """
    msg = email.message_from_string(raw, policy=email.policy.default)

    subject = msg.get("Subject", "Untitled Email")
    sender_name, sender_email = parseaddr(msg.get("From", ""))

    date: str | None = None
    date_header = msg.get("Date")
    if date_header:
        try:
            date = parsedate_to_datetime(date_header).isoformat()
        except (ValueError, TypeError):
            pass

    body = ""
    attachment_names: list[str] = []

    if msg.is_multipart():
        for part in msg.walk():
            content_type = part.get_content_type()
            disposition = str(part.get("Content-Disposition", ""))

            if "attachment" in disposition:
                filename = part.get_filename()
                if filename:
                    attachment_names.append(filename)
                continue

            if content_type == "text/plain" and not body:
                payload = part.get_content()
                if isinstance(payload, str):
                    body = payload
            elif content_type == "text/html" and not body:
                payload = part.get_content()
                if isinstance(payload, str):
                    body = _strip_html(payload)
    else:
        payload = msg.get_content()
        if isinstance(payload, str):
            if msg.get_content_type() == "text/html":
                body = _strip_html(payload)
            else:
                body = payload

    return EmailCapture(
        subject=subject,
        sender_name=sender_name,
        sender_email=sender_email,
        body=body.strip(),
        date=date,
        kind=detect_email_kind(subject),
        tags=extract_subject_tags(subject),
        attachments=attachment_names,
    )


def format_email_memory(capture: EmailCapture, timestamp: str) -> str:
    """Format a parsed email as a memory entry; ``timestamp`` is e.g. ``09:30``."""
    sender = capture.sender_name or capture.sender_email
    from_line = (
        f"{capture.sender_name} <{capture.sender_email}>"
        if capture.sender_name else capture.sender_email
    )

    lines = [
        f"{_KIND_EMOJI[capture.kind]} **Email from {sender}**",
        "",
        f"**Subject:** {capture.subject}",
        "",
        f"**From:** {from_line}",
    ]
    if capture.date:
        lines.append(f"**Date:** {capture.date}")
    lines += ["", "---", "", capture.body]

    if capture.attachments:
        lines += ["", "Attachments:"]
        lines += [f"- {fn}" for fn in capture.attachments]
    if capture.tags:
        lines += ["", " ".join(f"#{t}" for t in capture.tags)]

    lines += ["", f"_Captured via email at {timestamp}_"]
    return "\n".join(lines).strip()

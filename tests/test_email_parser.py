"""Tests for the email parser."""

import textwrap

from secondbrain_mcp.email_parser import (
    detect_email_kind,
    extract_subject_tags,
    format_email_memory,
    parse_email,
)


class TestParseEmail:
    def test_basic_email(self):
        raw = textwrap.dedent("""\
            From: Alice Smith <alice@example.com>
            To: Bob Jones <bob@example.com>
            Subject: Meeting Notes
            Date: Mon, 15 Jan 2024 10:30:00 +0000

            Here are the notes from today's meeting.
            Action items listed below.
        """)
        capture = parse_email(raw)
        assert capture.subject == "Meeting Notes"
        assert capture.sender_name == "Alice Smith"
        assert capture.sender_email == "alice@example.com"
        assert capture.kind == "meeting"
        assert capture.body.startswith("Here are the notes")
        assert "2024-01-15" in capture.date

    def test_no_display_name(self):
        raw = textwrap.dedent("""\
            From: jane@example.com
            Subject: Project Update

            The project is on track.
        """)
        capture = parse_email(raw)
        assert capture.sender_name == ""
        assert capture.sender_email == "jane@example.com"
        assert capture.kind == "note"
        assert capture.date is None

    def test_multipart_email(self):
        raw = (
            "From: sender@example.com\r\n"
            "Subject: Multipart Test\r\n"
            "MIME-Version: 1.0\r\n"
            'Content-Type: multipart/mixed; boundary="boundary123"\r\n'
            "\r\n"
            "--boundary123\r\n"
            "Content-Type: text/plain; charset=utf-8\r\n"
            "\r\n"
            "This is the plain text body.\r\n"
            "--boundary123\r\n"
            "Content-Type: text/html; charset=utf-8\r\n"
            "\r\n"
            "<html><body><p>HTML version</p></body></html>\r\n"
            "--boundary123--\r\n"
        )
        capture = parse_email(raw)
        # Should prefer text/plain
        assert "plain text body" in capture.body
        assert "HTML version" not in capture.body

    def test_attachment_filenames(self):
        raw = (
            "From: sender@example.com\r\n"
            "Subject: With Attachment\r\n"
            "MIME-Version: 1.0\r\n"
            'Content-Type: multipart/mixed; boundary="bnd"\r\n'
            "\r\n"
            "--bnd\r\n"
            "Content-Type: text/plain\r\n"
            "\r\n"
            "See attached.\r\n"
            "--bnd\r\n"
            "Content-Type: application/pdf\r\n"
            'Content-Disposition: attachment; filename="report.pdf"\r\n'
            "\r\n"
            "PDF_CONTENT_HERE\r\n"
            "--bnd--\r\n"
        )
        capture = parse_email(raw)
        assert capture.attachments == ["report.pdf"]
        assert capture.body == "See attached."

    def test_html_only_body(self):
        raw = textwrap.dedent("""\
            From: html@example.com
            Subject: HTML Only
            Content-Type: text/html

            <html><head><style>p { color: red; }</style></head><body><p>Hello <b>World</b></p></body></html>
        """)
        capture = parse_email(raw)
        assert capture.body == "Hello World"

    def test_missing_subject(self):
        raw = textwrap.dedent("""\
            From: test@example.com

            Body without subject.
        """)
        assert parse_email(raw).subject == "Untitled Email"


class TestSubjectHelpers:
    def test_kinds(self):
        assert detect_email_kind("Call tomorrow?") == "meeting"
        assert detect_email_kind("TODO: invoices") == "task"
        assert detect_email_kind("Referral from Dana") == "contact"
        assert detect_email_kind("Hello") == "note"

    def test_subject_tags(self):
        assert extract_subject_tags("[Acme] Proposal #Urgent [acme]") == ["acme", "urgent"]


class TestFormatEmailMemory:
    def test_entry(self):
        raw = textwrap.dedent("""\
            From: Alice Smith <alice@example.com>
            Subject: [Acme] Meeting recap

            Notes inside.
        """)
        entry = format_email_memory(parse_email(raw), "09:30")
        lines = entry.splitlines()
        assert lines[0] == "📅 **Email from Alice Smith**"
        assert "**From:** Alice Smith <alice@example.com>" in lines
        assert "#acme" in lines
        assert lines[-1] == "_Captured via email at 09:30_"

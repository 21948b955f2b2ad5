"""Tests for weekly and monthly summaries."""

import textwrap

import pytest

from secondbrain_mcp.errors import InvalidRangeError
from secondbrain_mcp.models import Note
from secondbrain_mcp.summary import (
    extract_companies,
    format_summary_markdown,
    format_summary_text,
    generate_monthly_summary,
    generate_summary,
    generate_weekly_summary,
)

NOW = "2024-01-20T12:00:00+00:00"


def _note(day, content):
    return Note(
        path=f"memory/{day}.md",
        name=day,
        content=content,
        last_modified=f"{day}T10:00:00+00:00",
    )


@pytest.fixture
def week_notes():
    return [
        _note("2024-01-15", "Meeting with @Jane, #iot pricing\n- [ ] Send quote"),
        _note("2024-01-16", "Contract signed with Acme Corp today #iot"),
        _note("2024-01-17", "Quiet day, reading about #iot"),
    ]


class TestWeeklySummary:
    def test_tag_counts(self, week_notes):
        summary = generate_weekly_summary(week_notes, now=NOW)
        assert summary.total_memories == 3
        assert [(t.name, t.count) for t in summary.top_tags] == [("iot", 3)]
        assert summary.key_topics == ["iot"]

    def test_outside_window_excluded(self, week_notes):
        week_notes.append(_note("2024-01-01", "Old news #legacy"))
        summary = generate_weekly_summary(week_notes, now=NOW)
        assert summary.total_memories == 3
        assert "legacy" not in [t.name for t in summary.top_tags]

    def test_meetings(self, week_notes):
        summary = generate_weekly_summary(week_notes, now=NOW)
        assert len(summary.meetings) == 1
        meeting = summary.meetings[0]
        assert meeting.date == "2024-01-15"
        assert meeting.contacts == ["Jane"]
        assert meeting.summary == "Meeting with Jane, iot pricing"

    def test_deals(self, week_notes):
        summary = generate_weekly_summary(week_notes, now=NOW)
        assert len(summary.deals) == 1
        assert summary.deals[0].company == "Acme Corp"
        assert summary.deals[0].status == "Won"

    def test_pending_actions(self, week_notes):
        summary = generate_weekly_summary(week_notes, now=NOW)
        assert summary.action_items.total == 1
        assert summary.action_items.pending[0].text == "Send quote"
        assert summary.action_items.pending[0].memory == "2024-01-15"

    def test_period_and_generated(self, week_notes):
        summary = generate_weekly_summary(week_notes, now=NOW)
        assert summary.period.start == "2024-01-13"
        assert summary.period.end == "2024-01-20"
        assert summary.generated == NOW


class TestGenerateSummary:
    def test_inverted_window(self, week_notes):
        with pytest.raises(InvalidRangeError):
            generate_summary(week_notes, "2024-02-01", "2024-01-01")

    def test_date_only_end_includes_last_day(self):
        notes = [_note("2024-01-31", "Month-end review #iot")]
        summary = generate_summary(notes, "2024-01-01", "2024-01-31")
        assert summary.total_memories == 1
        assert summary.period.end == "2024-01-31"

    def test_datetime_end_is_exact(self):
        notes = [_note("2024-01-31", "Month-end review #iot")]
        summary = generate_summary(notes, "2024-01-01", "2024-01-31T09:00:00+00:00")
        assert summary.total_memories == 0

    def test_deal_without_company(self):
        notes = [_note("2024-01-15", "the tender was submitted")]
        summary = generate_summary(notes, "2024-01-01", "2024-01-31")
        assert summary.deals == []

    def test_status_ladder_later_rule_wins(self):
        notes = [_note("2024-01-15", "Deal with Globex: proposal won, then submitted again")]
        summary = generate_summary(notes, "2024-01-01", "2024-01-31")
        assert summary.deals[0].status == "Submitted"

    def test_contacts_counted_per_occurrence(self):
        notes = [_note("2024-01-15", "@Jane, then @Jane, again")]
        summary = generate_summary(notes, "2024-01-01", "2024-01-31")
        assert summary.top_contacts[0].count == 2


class TestMonthlySummary:
    def test_weeks_and_trends(self, week_notes):
        week_notes.append(_note("2023-12-20", "Earlier note with @Bob."))
        summary = generate_monthly_summary(week_notes, now="2024-01-31T00:00:00+00:00")
        assert summary.total_memories == 3
        assert len(summary.weeks) == 5
        assert sum(w.total_memories for w in summary.weeks) == 3
        assert summary.trends.memories_change == 2
        assert summary.trends.contacts_change == 0
        assert summary.trends.activity_score == 10


class TestExtractCompanies:
    def test_suffix_and_preposition(self):
        assert "Acme Corp" in extract_companies("Met the team at Acme Corp")

    def test_stoplist(self):
        assert extract_companies("Notes from This.") == []


class TestFormatting:
    def test_markdown(self, week_notes):
        summary = generate_weekly_summary(week_notes, now=NOW)
        md = format_summary_markdown(summary, "Weekly Summary")
        assert md.startswith("# Weekly Summary\n")
        assert "- **3** memories captured" in md
        assert "#iot" in md
        assert "- [ ] Send quote _(2024-01-15)_" in md
        assert md.endswith("_Generated on 2024-01-20 12:00 UTC_")

    def test_text(self, week_notes):
        summary = generate_weekly_summary(week_notes, now=NOW)
        text = format_summary_text(summary, "Weekly Summary")
        assert text.splitlines()[0] == "📊 *Weekly Summary*"
        assert "@Jane" in text

    def test_empty_summary_sections_omitted(self):
        summary = generate_weekly_summary([], now=NOW)
        md = format_summary_markdown(summary, "Weekly Summary")
        assert "Top Contacts" not in md
        assert textwrap.dedent("""\
            - **0** memories captured
            - **0** words written""") in md

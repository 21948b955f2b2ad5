"""Tests for the annotation parser."""

import textwrap
from datetime import date

import pytest

from secondbrain_mcp.markdown_parser import (
    extract_action_items,
    extract_dates,
    extract_mention_context,
    extract_triples,
    extract_wiki_links,
    find_relative_dates,
    parse_memory_content,
    suggest_tags,
    TAG_COLORS,
)
from secondbrain_mcp.models import Note
from secondbrain_mcp.utils import FOAF_NS, SB_NS


def _pred_values(quads, predicate_fragment):
    """Helper: return object values for quads whose predicate contains fragment."""
    return [
        q.object.value
        for q in quads
        if predicate_fragment in q.predicate.value
    ]


@pytest.fixture
def sample_content():
    return textwrap.dedent("""\
        # 2024-01-15

        Lunch with @John Smith, then #IoT review for [[Project Alpha]].
        Pinged @Jane, about #iot and #hot-lead pricing.
        See [[Project Alpha]] and [[ Beta ]].
    """)


class TestParseMemoryContent:
    def test_contacts(self, sample_content):
        parsed = parse_memory_content(sample_content)
        assert parsed.contacts == ["John Smith", "Jane"]

    def test_tags_lowercase_and_deduplicated(self, sample_content):
        parsed = parse_memory_content(sample_content)
        assert parsed.tags == ["iot", "hot-lead"]

    def test_links_deduplicated(self, sample_content):
        parsed = parse_memory_content(sample_content)
        assert parsed.links == ["Project Alpha", " Beta "]

    def test_mention_offsets_reproduce_tokens(self, sample_content):
        parsed = parse_memory_content(sample_content)
        for mention in parsed.mentions:
            token = sample_content[mention.start:mention.end]
            if mention.type == "contact":
                assert token.rstrip() == f"@{mention.value}"
            elif mention.type == "tag":
                assert token.lower() == f"#{mention.value}"
            else:
                assert token == f"[[{mention.value}]]"

    def test_mentions_keep_every_occurrence(self, sample_content):
        parsed = parse_memory_content(sample_content)
        kinds = [m.type for m in parsed.mentions]
        assert kinds.count("tag") == 3
        assert kinds.count("link") == 3
        # contacts, then tags, then links
        assert kinds == sorted(kinds, key=["contact", "tag", "link"].index)

    def test_lowercase_at_is_not_a_contact(self):
        assert parse_memory_content("mail me at bob@example.com").contacts == []

    def test_repeat_parse_is_identical(self, sample_content):
        assert parse_memory_content(sample_content) == parse_memory_content(sample_content)

    def test_empty(self):
        parsed = parse_memory_content("")
        assert parsed.mentions == []
        assert parsed.tags == []


class TestWikiLinks:
    def test_trimmed_and_deduplicated(self):
        content = "[[Alpha]] then [[ Alpha ]] and [[Beta]]"
        assert extract_wiki_links(content) == ["Alpha", "Beta"]


class TestMentionContext:
    def test_clipped_both_sides(self):
        context = extract_mention_context("Had lunch with @Jane today", "Jane", context_chars=5)
        assert context == "...with @Jane toda..."

    def test_not_found(self):
        assert extract_mention_context("nobody here", "Jane") == ""


class TestActionItems:
    def test_due_date_extracted(self):
        items = extract_action_items("- [ ] Call vendor by Friday")
        assert len(items) == 1
        assert items[0].text == "Call vendor"
        assert items[0].due_date == "Friday"
        assert items[0].priority == "medium"

    def test_urgent_priority(self):
        items = extract_action_items("- [ ] !!! Fix outage urgent")
        assert items[0].priority == "high"
        assert items[0].text == "Fix outage"

    def test_important_marker_stripped(self):
        items = extract_action_items("- [ ] Important: renew domain!")
        assert items[0].text == "renew domain"
        assert items[0].priority == "medium"

    def test_follow_up(self):
        items = extract_action_items("Follow up with Sarah by Monday.")
        assert len(items) == 1
        assert items[0].text == "Follow up with Sarah"
        assert items[0].due_date == "Monday"

    def test_checkboxes_before_follow_ups(self):
        content = textwrap.dedent("""\
            Follow up with Acme.
            - [ ] Send quote
        """)
        texts = [i.text for i in extract_action_items(content)]
        assert texts == ["Send quote", "Follow up with Acme"]

    def test_checked_box_ignored(self):
        assert extract_action_items("- [x] Done already") == []


class TestDates:
    def test_iso_dates(self):
        dates = extract_dates("Due 2024-03-15, kickoff 2024-04-01")
        assert [d.date for d in dates] == [date(2024, 3, 15), date(2024, 4, 1)]
        assert all(d.type == "mention" for d in dates)

    def test_impossible_date_skipped(self):
        dates = extract_dates("2024-02-30 and 2024-02-29")
        assert [d.text for d in dates] == ["2024-02-29"]

    def test_relative_dates_not_resolved(self):
        assert find_relative_dates("See you tomorrow or on Friday") == ["tomorrow", "on Friday"]


class TestSuggestTags:
    def test_keyword_table(self):
        assert suggest_tags("LoRaWAN gateway deal in Australia") == [
            "deal", "lorawan", "gateway", "australia",
        ]

    def test_no_match(self):
        assert suggest_tags("groceries") == []


class TestExtractTriples:
    def test_memory_triples(self):
        note = Note(
            path="memory/2024-01-15.md",
            name="2024-01-15",
            content="Call @Jane, about #IoT and [[Alpha]]",
            last_modified="2024-01-15T10:00:00+00:00",
        )
        quads = extract_triples(note)
        assert f"{SB_NS}Memory" in _pred_values(quads, "rdf-syntax-ns#type")
        assert _pred_values(quads, f"{SB_NS}path") == ["memory/2024-01-15.md"]
        assert _pred_values(quads, f"{SB_NS}hasTag") == [f"{SB_NS}concept/iot"]
        assert _pred_values(quads, f"{SB_NS}mentions") == [f"{SB_NS}person/jane"]
        assert _pred_values(quads, f"{FOAF_NS}name") == ["Jane"]
        assert _pred_values(quads, f"{SB_NS}linksTo") == ["Alpha"]

    def test_attachments(self):
        note = Note(path="MEMORY.md", name="Long-term Memory", attachments=["a.pdf"])
        quads = extract_triples(note)
        assert _pred_values(quads, f"{SB_NS}attachment") == ["a.pdf"]


class TestTagColors:
    def test_read_only(self):
        assert TAG_COLORS["deal"] == "bg-green-600"
        with pytest.raises(TypeError):
            TAG_COLORS["deal"] = "bg-black"

"""Tests for tag and contact aggregation."""

from datetime import datetime, timezone

import pytest

from secondbrain_mcp.indexer import (
    build_reindex_entries,
    collect_action_items,
    compute_analytics,
    count_contacts,
    count_tags,
    filter_by_contact,
    filter_by_tag,
    find_contact_mentions,
    search_memories,
)
from secondbrain_mcp.models import Contact, Note


@pytest.fixture
def notes():
    return [
        Note(
            path="memory/2024-01-16.md",
            name="2024-01-16",
            content="Call @Jane, then #iot review\n- [ ] Send quote",
            last_modified="2024-01-16T10:00:00+00:00",
        ),
        Note(
            path="memory/2024-01-15.md",
            name="2024-01-15",
            content="Lunch with @Jane, #IoT #deal",
            last_modified="2024-01-15T10:00:00+00:00",
        ),
        Note(
            path="MEMORY.md",
            name="Long-term Memory",
            content="Key contacts: @Bob.",
            last_modified="2024-01-10T10:00:00+00:00",
            category="long-term",
        ),
    ]


class TestCounts:
    def test_count_tags(self, notes):
        counts = count_tags(notes)
        assert [(c.name, c.count) for c in counts] == [("iot", 2), ("deal", 1)]

    def test_count_contacts(self, notes):
        counts = count_contacts(notes)
        assert [(c.name, c.count) for c in counts] == [("Jane", 2), ("Bob", 1)]

    def test_repeat_in_one_memory_counts_once(self):
        notes = [Note(path="memory/a.md", name="a", content="#x #x #x")]
        assert count_tags(notes)[0].count == 1


class TestFilters:
    def test_by_tag_accepts_hash(self, notes):
        assert [n.name for n in filter_by_tag(notes, "#Deal")] == ["2024-01-15"]

    def test_by_contact_case_insensitive(self, notes):
        assert [n.path for n in filter_by_contact(notes, "bob")] == ["MEMORY.md"]


class TestContactMentions:
    def test_mentions_with_directory_id(self, notes):
        mentions = find_contact_mentions(notes, "Jane", [Contact(id="c1", first_name="Jane")])
        assert [m.memory_path for m in mentions] == ["memory/2024-01-16.md", "memory/2024-01-15.md"]
        assert all(m.contact_id == "c1" for m in mentions)
        assert "@Jane" in mentions[0].context
        assert mentions[0].timestamp == "2024-01-16T10:00:00+00:00"

    def test_unknown_contact(self, notes):
        assert find_contact_mentions(notes, "Zed") == []


class TestActionItems:
    def test_grouped_by_memory(self, notes):
        collected = collect_action_items(notes)
        assert len(collected) == 1
        name, items = collected[0]
        assert name == "2024-01-16"
        assert [i.text for i in items] == ["Send quote"]


class TestSearch:
    def test_text_query(self, notes):
        assert len(search_memories(notes, query="IOT")) == 2

    def test_tag_and_contact(self, notes):
        assert search_memories(notes, tag="deal", contact="jane")[0].name == "2024-01-15"

    def test_date_only_upper_bound_covers_day(self, notes):
        results = search_memories(notes, date_from="2024-01-15", date_to="2024-01-15")
        assert [n.name for n in results] == ["2024-01-15"]

    def test_invalid_date(self, notes):
        with pytest.raises(ValueError):
            search_memories(notes, date_from="last tuesday")


class TestAnalytics:
    def test_dashboard_totals(self, notes):
        analytics = compute_analytics(notes, now=datetime(2024, 1, 17, tzinfo=timezone.utc))
        assert analytics.total_memories == 3
        assert analytics.total_words == 18
        assert analytics.memories_this_week == 3
        assert analytics.memories_this_month == 3
        assert analytics.action_items_pending == 1
        assert analytics.top_tags[0].name == "iot"
        assert analytics.top_contacts[0].name == "Jane"
        assert analytics.recent_activity[0].date == "2024-01-16"

    def test_week_window(self, notes):
        analytics = compute_analytics(notes, now=datetime(2024, 1, 20, tzinfo=timezone.utc))
        assert analytics.memories_this_week == 2


class TestReindexEntries:
    def test_appends_path(self):
        existing = {"tags:iot:memories": ["memory/a.md"]}
        entries = build_reindex_entries("memory/x.md", "#iot @Jane", existing)
        assert entries == {
            "tags:iot:memories": ["memory/a.md", "memory/x.md"],
            "contacts:jane:mentions": ["memory/x.md"],
        }
        assert existing["tags:iot:memories"] == ["memory/a.md"]

    def test_idempotent(self):
        existing = {"tags:iot:memories": ["memory/x.md"]}
        entries = build_reindex_entries("memory/x.md", "#iot", existing)
        assert entries["tags:iot:memories"] == ["memory/x.md"]

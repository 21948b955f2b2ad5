"""Tests for the content renderer."""

from secondbrain_mcp.models import Contact
from secondbrain_mcp.renderer import escape_html, render_memory_with_mentions, render_wiki_links


CONTACTS = [{"id": "c1", "firstName": "Jane", "lastName": "Doe"}]


class TestRenderMemoryWithMentions:
    def test_resolved_contact_links_to_directory(self):
        html = render_memory_with_mentions("Hi @Jane Doe, welcome", CONTACTS)
        assert 'href="/contacts?highlight=c1"' in html
        assert ">@Jane Doe</a>, welcome" in html

    def test_contact_objects_accepted(self):
        html = render_memory_with_mentions("@Jane Doe", [Contact(id="c9", first_name="Jane", last_name="Doe")])
        assert "highlight=c9" in html

    def test_unresolved_contact_is_span(self):
        html = render_memory_with_mentions("Ping @Bob 2pm", CONTACTS)
        assert "<span" in html
        assert "@Bob</span> 2pm" in html
        assert "/contacts" not in html

    def test_tags_link_to_filter(self):
        html = render_memory_with_mentions("Status #iot", [])
        assert '<a href="/memories?tag=iot"' in html
        assert ">#iot</a>" in html

    def test_wiki_link_is_uri_encoded(self):
        html = render_memory_with_mentions("See [[Project Alpha]]", [])
        assert 'href="/memories?project=Project%20Alpha"' in html
        assert ">[[Project Alpha]]</a>" in html

    def test_escapes_before_markup(self):
        html = render_memory_with_mentions("a < b & c", [])
        assert html == "a &lt; b &amp; c"

    def test_newlines_become_breaks(self):
        assert render_memory_with_mentions("one\ntwo", []) == "one<br/>two"

    def test_contact_markup_not_retagged(self):
        html = render_memory_with_mentions("@Jane Doe #deal", CONTACTS)
        assert html.count("<a ") == 2

    def test_same_input_same_output(self):
        content = "Lunch with @Jane Doe, @Bob then #iot for [[Project Alpha]]\nnext line"
        assert render_memory_with_mentions(content, CONTACTS) == render_memory_with_mentions(content, CONTACTS)


class TestEscapeHtml:
    def test_quotes_untouched(self):
        assert escape_html('"x" & <y>') == '"x" &amp; &lt;y&gt;'


class TestRenderWikiLinks:
    def test_span_carries_title(self):
        html = render_wiki_links("open [[Roadmap]] now")
        assert 'data-wiki="Roadmap"' in html
        assert html.startswith("open <span")
        assert html.endswith("</span> now")

    def test_quote_in_title_escaped_in_attribute(self):
        html = render_wiki_links('see [[Say "hi"]]')
        assert 'data-wiki="Say &quot;hi&quot;"' in html
        assert '>[[Say "hi"]]</span>' in html

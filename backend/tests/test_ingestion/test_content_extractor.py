"""Tests for app.services.ingestion.content_extractor and context discovery."""

from bs4 import BeautifulSoup

from app.models.ingestion import ContextRelationship, MediaType
from app.services.ingestion.content_extractor import ContentExtractor, has_version_info
from app.services.ingestion.context import discover_context_pages

BASE_URL = "https://docs.example.com/guides/webhooks"


def _soup(html: str) -> BeautifulSoup:
    return BeautifulSoup(html, "lxml")


class TestMediaElements:
    def test_images_videos_and_interactive(self):
        soup = _soup(
            '<img src="/img/a.png" alt="Diagram" title="Flow">'
            '<img src="b.png">'
            '<iframe src="https://www.youtube.com/embed/xyz"></iframe>'
            '<iframe src="https://maps.example.com"></iframe>'
            "<form></form>"
            '<div data-interactive="true"></div>'
        )
        media = ContentExtractor().extract_media_elements(soup, BASE_URL)
        types = [m.type for m in media]
        assert types.count(MediaType.IMAGE) == 2
        assert types.count(MediaType.VIDEO) == 1
        assert types.count(MediaType.INTERACTIVE) == 2

        first, second = media[0], media[1]
        assert first.src == "https://docs.example.com/img/a.png"
        assert first.alt == "Diagram"
        assert first.caption == "Flow"
        assert first.analysis_note == "Has alt text"
        assert "accessibility" in second.analysis_note

    def test_capped_at_ten(self):
        soup = _soup("".join(f'<img src="{i}.png">' for i in range(15)))
        assert len(ContentExtractor().extract_media_elements(soup, BASE_URL)) == 10


class TestCodeSnippets:
    def test_extracts_language_and_line_number(self):
        soup = _soup(
            "<code>x</code>"
            '<pre><code class="language-python">import requests\nrequests.get(url)</code></pre>'
        )
        snippets = ContentExtractor().extract_code_snippets(soup)
        assert len(snippets) == 1
        assert snippets[0].language == "python"
        assert snippets[0].line_number == 2

    def test_truncates_and_caps(self):
        soup = _soup("".join(f"<code>{'y' * 2000}{i}</code>" for i in range(20)))
        snippets = ContentExtractor().extract_code_snippets(soup)
        assert len(snippets) == 15
        assert all(len(s.code) == 1000 for s in snippets)

    def test_version_info(self):
        assert has_version_info("/** @since 5.2 */")
        assert has_version_info("Requires version 1.4 or later")
        assert not has_version_info("print('hello')")


class TestLinkStructure:
    HTML = (
        '<a href="/guides/webhooks/verify">Verify signatures</a>'
        '<a href="https://api.example.com/ref">API reference</a>'
        '<a href="https://github.com/example/sdk">SDK</a>'
        '<a href="https://other.org/post">Blog</a>'
        '<a href="mailto:help@example.com">Mail</a>'
        '<a href="#top">Top</a>'
        '<a href="/guides/webhooks/verify">Verify again</a>'
    )

    def test_counts_and_candidates(self):
        analysis, candidates = ContentExtractor().analyze_link_structure(
            _soup(self.HTML), BASE_URL
        )
        assert analysis.total_links == 5
        assert analysis.internal_links == 3
        assert analysis.external_links == 2
        assert [c.url for c in candidates] == [
            "https://docs.example.com/guides/webhooks/verify",
            "https://api.example.com/ref",
        ]
        assert candidates[0].anchor_text == "Verify signatures"
        assert analysis.link_context == "multi-page-referenced"
        assert "Verify signatures" in analysis.sub_pages_identified

    def test_injected_domain_groups(self):
        extractor = ContentExtractor(domain_groups=(frozenset({"example.com", "github.com"}),))
        analysis, candidates = extractor.analyze_link_structure(_soup(self.HTML), BASE_URL)
        assert "https://github.com/example/sdk" in [c.url for c in candidates]
        assert analysis.internal_links == 4

    def test_no_links(self):
        analysis, candidates = ContentExtractor().analyze_link_structure(
            _soup("<p>none</p>"), BASE_URL
        )
        assert analysis.total_links == 0
        assert analysis.link_context == "single-page"
        assert candidates == []


class TestContextDiscovery:
    def test_parent_from_breadcrumb_and_children(self):
        soup = _soup(
            '<nav class="breadcrumb"><a href="/guides/">Guides</a></nav>'
            '<a href="/guides/webhooks/verify">Verify</a>'
            '<a href="/guides/webhooks/retries">Retries</a>'
            '<a href="/guides/webhooks/events">Events</a>'
            '<a href="/guides/webhooks/testing">Testing</a>'
            '<a href="/guides/webhooks/empty"></a>'
            '<a href="https://elsewhere.com/guides/webhooks/x">Elsewhere</a>'
        )
        pages = discover_context_pages(soup, BASE_URL)

        parent = pages[0]
        assert parent.relationship == ContextRelationship.PARENT
        assert parent.url == "https://docs.example.com/guides/"
        assert parent.title == "Guides"
        assert parent.confidence == 0.8

        children = [p for p in pages if p.relationship == ContextRelationship.CHILD]
        assert [c.title for c in children] == ["Verify", "Retries", "Events"]
        assert all(c.confidence == 0.7 for c in children)

    def test_parent_placeholder_title(self):
        pages = discover_context_pages(_soup("<p>no links</p>"), BASE_URL)
        assert len(pages) == 1
        assert pages[0].title == "Parent Documentation"

    def test_single_segment_path_has_no_parent(self):
        pages = discover_context_pages(_soup("<p></p>"), "https://docs.example.com/intro")
        assert pages == []

    def test_respects_max_pages(self):
        soup = _soup(
            '<a href="/guides/webhooks/a">A</a><a href="/guides/webhooks/b">B</a>'
        )
        pages = discover_context_pages(soup, BASE_URL, max_pages=2)
        assert len(pages) == 2

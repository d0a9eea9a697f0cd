"""Tests for app.services.validation.evidence."""

from app.models.validation import Issue
from app.services.validation.evidence import (
    PageCodeSnippet,
    analyze_page_content,
    extract_keywords,
    extract_page_code_snippets,
    find_content_gaps,
    keyword_search,
)

SPAM_ISSUE = Issue(
    id="issue-1",
    title="Emails land in spam folder",
    description="Messages from Gmail go to spam",
    category="email-delivery",
)

VERCEL_ISSUE = Issue(
    id="issue-2",
    title="Deploy to Vercel fails",
    description="Build works locally",
    category="deployment",
)


class TestExtractKeywords:
    def test_words_then_category_keywords_deduplicated(self):
        assert extract_keywords(SPAM_ISSUE) == [
            "emails", "land", "spam", "folder", "messages", "from", "gmail",
            "email", "delivery", "deliverability", "dns", "spf", "dkim",
        ]

    def test_stop_words_and_short_words_dropped(self):
        issue = Issue(id="i", title="The API should return the key", category="")
        assert extract_keywords(issue) == ["api", "return", "key"]

    def test_unknown_category_adds_nothing(self):
        issue = Issue(id="i", title="Slow dashboard", category="performance")
        assert extract_keywords(issue) == ["slow", "dashboard", "performance"]


class TestKeywordSearch:
    def test_ranked_by_hits_with_docs_bonus(self):
        urls = ["/pricing", "/docs/intro", "/blog/webhook", "/docs/webhooks/verify"]
        assert keyword_search(["webhook", "verify"], urls) == [
            "/docs/webhooks/verify",
            "/blog/webhook",
            "/docs/intro",
        ]

    def test_top_k(self):
        urls = ["/docs/a", "/docs/b", "/docs/c"]
        assert keyword_search(["x"], urls, top_k=2) == ["/docs/a", "/docs/b"]


class TestPageCodeSnippets:
    def test_language_tagged_blocks_preferred(self):
        html = (
            '<pre><code class="language-js">const { data } = await resend.emails.send();</code></pre>'
            "<pre><code>plain block without a language tag</code></pre>"
            "<p><code>inline_call(argument_one, argument_two, argument_three)</code></p>"
        )
        assert extract_page_code_snippets(html) == [
            PageCodeSnippet("const { data } = await resend.emails.send();", "js")
        ]

    def test_long_inline_code_when_no_tagged_blocks(self):
        long_code = "resend.domains.verify({ id: 'd91cd9bd-1176-453e-8fc1-35364d380206' })"
        html = f"<p><code>short()</code> and <code>{long_code}</code></p>"
        assert extract_page_code_snippets(html) == [PageCodeSnippet(long_code)]

    def test_limit(self):
        block = '<pre><code class="language-py">print("hello world")</code></pre>'
        assert len(extract_page_code_snippets(block * 8, limit=3)) == 3


class TestContentGaps:
    def test_deployment_gaps_in_order(self):
        assert find_content_gaps("", VERCEL_ISSUE, 0) == [
            "Missing code examples",
            "Missing production deployment guidance",
            "Missing error handling and troubleshooting steps",
            "Missing platform-specific deployment examples (Vercel/Netlify)",
            "Missing environment variable configuration",
        ]

    def test_email_delivery_gaps(self):
        gaps = find_content_gaps("handle every error", SPAM_ISSUE, 1)
        assert gaps == [
            "Missing spam/deliverability troubleshooting",
            "Missing DNS configuration examples",
        ]

    def test_covered_deployment_page(self):
        content = "deploy to production on vercel; set the env vars; troubleshoot errors"
        assert find_content_gaps(content, VERCEL_ISSUE, 2) == []


class TestAnalyzePageContent:
    def test_relevant_page_without_gaps(self):
        content = (
            "<html><head><title>Domains</title></head><body>"
            "<pre><code>dig TXT send.example.com</code></pre>"
            "<p>Fix spam placement with DNS records. Error codes are listed below.</p>"
            "</body></html>"
        )

        evidence = analyze_page_content(content, SPAM_ISSUE, "https://x.com/docs/domains", 0.7)

        assert evidence.page_title == "Domains"
        assert evidence.has_relevant_content is True
        assert evidence.code_examples == 2
        assert evidence.content_gaps == []
        assert evidence.production_guidance is False
        assert evidence.semantic_score == 0.7

    def test_title_falls_back_to_url(self):
        evidence = analyze_page_content("<p>nothing here</p>", SPAM_ISSUE, "https://x.com/docs/a")

        assert evidence.page_title == "https://x.com/docs/a"
        assert evidence.has_relevant_content is False
        assert "Missing code examples" in evidence.content_gaps
        assert evidence.score == 0.0

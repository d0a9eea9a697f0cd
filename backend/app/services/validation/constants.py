"""Named constants for the validation package.

Centralizes all magic numbers so they can be tuned from one place.
"""

# ---------------------------------------------------------------------------
# Gap classification
# ---------------------------------------------------------------------------
RESOLVED_THRESHOLD = 0.85  # Semantic score a clean, relevant page must exceed
POTENTIAL_GAP_THRESHOLD = 0.6
RECOMMENDATION_MIN_SCORE = 0.5  # Below this no page is worth rewriting

CONFIDENCE_RESOLVED = 90
CONFIDENCE_POTENTIAL_GAP = 75
CONFIDENCE_CONFIRMED = 70
CONFIDENCE_CRITICAL_GAP = 85
CONFIDENCE_NO_CANDIDATES = 95

# ---------------------------------------------------------------------------
# Candidate search
# ---------------------------------------------------------------------------
SEMANTIC_TOP_K = 5
KEYWORD_TOP_K = 5
MIN_RELEVANT_KEYWORD_MATCHES = 2
DOCS_PATH_BONUS = 0.5
DOCS_PATH_MARKER = "/docs/"

# ---------------------------------------------------------------------------
# Embeddings
# ---------------------------------------------------------------------------
MAX_EMBEDDING_CONTENT_CHARS = 8_000
MIN_EMBEDDING_TEXT_CHARS = 10
STRIPPED_PAGE_TAGS = ("script", "style", "nav", "footer", "header", "aside")

# ---------------------------------------------------------------------------
# Evidence
# ---------------------------------------------------------------------------
STOP_WORDS = frozenset(
    {
        "the", "a", "an", "and", "or", "but", "in", "on", "at", "to", "for",
        "of", "with", "is", "are", "was", "were", "been", "be", "have", "has",
        "had", "do", "does", "did", "will", "would", "should", "could", "may",
        "might", "must", "can",
    }
)

CATEGORY_KEYWORDS: dict[str, tuple[str, ...]] = {
    "deployment": ("deploy", "production", "environment", "vercel", "netlify", "hosting"),
    "email-delivery": ("email", "spam", "deliverability", "dns", "spf", "dkim", "gmail"),
    "api-usage": ("api", "endpoint", "request", "response", "integration"),
    "authentication": ("auth", "key", "token", "credential", "permission"),
    "documentation": ("docs", "guide", "tutorial", "example"),
}

PRODUCTION_KEYWORDS = ("production", "deploy", "environment", "configuration", "setup")
CODE_MARKERS = ("<code", "<pre", "```")

# ---------------------------------------------------------------------------
# Recommendations
# ---------------------------------------------------------------------------
RECOMMENDATION_MAX_TOKENS = 4_096
RECOMMENDATION_TEMPERATURE = 0.3
MAX_CONTINUATION_ATTEMPTS = 5
MAX_RECOMMENDATIONS = 5
MAX_PAGE_CODE_SNIPPETS = 5
PROMPT_CODE_SNIPPETS = 2
PROMPT_CODE_SNIPPET_CHARS = 500
MIN_FENCED_SNIPPET_CHARS = 10
MIN_INLINE_SNIPPET_CHARS = 50
CONTINUE_PROMPT = (
    "Please continue from where you left off. "
    "Complete the code example and explanation."
)

# ---------------------------------------------------------------------------
# Sitemaps
# ---------------------------------------------------------------------------
SITEMAP_MAX_DEPTH = 3
SITEMAP_FETCH_TIMEOUT_SECONDS = 10.0
SITEMAP_HEALTH_BATCH_SIZE = 10
SITEMAP_HEALTH_TIMEOUT_SECONDS = 8.0

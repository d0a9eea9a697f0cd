"""Named constants for the ingestion package.

Centralizes all magic numbers so they can be tuned from one place.
"""

# ---------------------------------------------------------------------------
# Session keys
# ---------------------------------------------------------------------------
SESSION_KEY_PREFIX = "session-"
SESSION_KEY_HASH_CHARS = 12

# ---------------------------------------------------------------------------
# Content extraction
# ---------------------------------------------------------------------------
MIN_MAIN_CONTENT_CHARS = 500  # Candidate container must exceed this much text
MAX_MEDIA_ELEMENTS = 10
MAX_CODE_SNIPPETS = 15
MIN_CODE_SNIPPET_CHARS = 10
MAX_CODE_SNIPPET_CHARS = 1_000
MAX_SUB_PAGES = 10

# ---------------------------------------------------------------------------
# Context page discovery
# ---------------------------------------------------------------------------
MAX_CONTEXT_PAGES = 5
MAX_CHILD_PAGES = 3
MAX_CHILD_PATH_LENGTH = 200
PARENT_CONFIDENCE = 0.8
CHILD_CONFIDENCE = 0.7
PARENT_TITLE_PLACEHOLDER = "Parent Documentation"

# ---------------------------------------------------------------------------
# Link validation
# ---------------------------------------------------------------------------
LINK_CHECK_BATCH_SIZE = 10
LINK_CHECK_TIMEOUT_SECONDS = 5.0

# ---------------------------------------------------------------------------
# LLM limits
# ---------------------------------------------------------------------------
CLASSIFIER_MAX_TOKENS = 50
CODE_ANALYSIS_MAX_TOKENS = 1_000
MIN_ANALYZABLE_CODE_CHARS = 20
CODE_ANALYSIS_BATCH_SIZE = 3

# ---------------------------------------------------------------------------
# Known cross-organization domain groups (root domains)
# ---------------------------------------------------------------------------
RELATED_DOMAIN_GROUPS: tuple[frozenset[str], ...] = (
    frozenset({"x.com", "twitter.com"}),
    frozenset({"github.com", "github.io", "githubapp.com"}),
    frozenset({"google.com", "googleapis.com", "googleusercontent.com", "gstatic.com"}),
    frozenset({"amazon.com", "amazonaws.com", "awsstatic.com"}),
    frozenset({"microsoft.com", "microsoftonline.com", "azure.com", "office.com"}),
    frozenset({"facebook.com", "fbcdn.net", "instagram.com"}),
    frozenset({"atlassian.com", "atlassian.net", "bitbucket.org"}),
    frozenset({"salesforce.com", "force.com", "herokuapp.com"}),
)

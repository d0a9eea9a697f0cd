"""URL normalization, session-key derivation and domain relation checks.

Pure functions: no I/O, safe to call from anywhere.
"""

import hashlib
import logging
from collections.abc import Iterable
from enum import Enum
from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit

from app.services.ingestion.constants import (
    RELATED_DOMAIN_GROUPS,
    SESSION_KEY_HASH_CHARS,
    SESSION_KEY_PREFIX,
)

logger = logging.getLogger(__name__)


def normalize_url(url: str) -> str:
    """Return the canonical form of *url* used for cache addressing.

    Drops the fragment, sorts query parameters by key (first value wins for
    repeated keys), strips trailing slashes from non-root paths and lowercases
    the hostname. Idempotent. Unparseable input is returned unchanged.
    """
    try:
        parts = urlsplit(url.strip())
    except ValueError:
        logger.warning(f"Failed to normalize URL, using original: {url}")
        return url

    if not parts.scheme or not parts.netloc:
        return url

    params: dict[str, str] = {}
    for key, value in parse_qsl(parts.query, keep_blank_values=True):
        params.setdefault(key, value)
    query = urlencode(sorted(params.items()))

    path = parts.path.rstrip("/") or "/"

    userinfo, at, hostport = parts.netloc.rpartition("@")
    netloc = f"{userinfo}{at}{hostport.lower()}"

    return urlunsplit((parts.scheme, netloc, path, query, ""))


def derive_session_key(url: str, contextual_setting: str | Enum) -> str:
    """Deterministic short key for ``(normalize(url), contextual_setting)``."""
    setting = contextual_setting.value if isinstance(contextual_setting, Enum) else contextual_setting
    digest = hashlib.sha256(f"{normalize_url(url)}#{setting}".encode("utf-8")).hexdigest()
    return f"{SESSION_KEY_PREFIX}{digest[:SESSION_KEY_HASH_CHARS]}"


def root_domain(hostname: str) -> str:
    """Last two labels of *hostname* (``docs.x.com`` -> ``x.com``)."""
    labels = hostname.lower().split(".")
    if len(labels) >= 2:
        return ".".join(labels[-2:])
    return hostname.lower()


def is_related_domain(
    link_hostname: str,
    base_hostname: str,
    domain_groups: Iterable[frozenset[str]] = RELATED_DOMAIN_GROUPS,
) -> bool:
    """True when two hostnames belong to the same documentation property.

    Same hostname, same two-label root domain, or both roots listed in one
    entry of *domain_groups*.
    """
    if not link_hostname or not base_hostname:
        return False
    if link_hostname.lower() == base_hostname.lower():
        return True

    link_root = root_domain(link_hostname)
    base_root = root_domain(base_hostname)
    if link_root == base_root:
        return True

    return any(link_root in group and base_root in group for group in domain_groups)

"""Cross-request cache of processed pages.

Two parts: an index row per ``(normalized url, contextual setting)`` and the
full ``ProcessedContent`` JSON object under the deterministic session-key
path. The object is always written before its index row, and a row whose
object cannot be read counts as a miss. The cache is best-effort: every
failure is logged and swallowed.
"""

import hashlib
import logging
import time
from collections.abc import Callable
from typing import Optional

from app.errors import CacheError
from app.models.ingestion import CacheIndexEntry, ContextualSetting, ProcessedContent
from app.services.ingestion.url_utils import derive_session_key, normalize_url
from app.services.storage import ArtifactStore, CacheIndexStore, processed_content_path

logger = logging.getLogger(__name__)

SECONDS_PER_DAY = 24 * 60 * 60


def content_hash(structured_text: str) -> str:
    return hashlib.sha256(structured_text.encode("utf-8")).hexdigest()


class ContentCache:
    """Index store + object store with lazy TTL expiry."""

    def __init__(
        self,
        artifacts: ArtifactStore,
        index: CacheIndexStore,
        *,
        ttl_days: int = 7,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.artifacts = artifacts
        self.index = index
        self.ttl_days = ttl_days
        self.clock = clock

    def is_expired(self, entry: CacheIndexEntry) -> bool:
        return entry.ttl < int(self.clock())

    async def lookup(
        self, url: str, contextual_setting: ContextualSetting
    ) -> Optional[CacheIndexEntry]:
        """Unexpired index entry for *url*, or ``None`` on miss or failure."""
        clean_url = normalize_url(url)
        try:
            entry = await self.index.get(clean_url, contextual_setting)
        except CacheError as e:
            logger.warning(f"Cache check failed, continuing without cache: {e}")
            return None

        if entry is None:
            logger.info(f"No cache entry for {clean_url} ({contextual_setting.value})")
            return None
        if self.is_expired(entry):
            logger.info(f"Cache entry for {clean_url} expired at {entry.ttl}")
            return None

        logger.info(f"Cache entry found for {clean_url}, processed at {entry.processed_at}")
        return entry

    async def restore(self, entry: CacheIndexEntry, session_id: str) -> bool:
        """Copy the cached object into *session_id*'s artifact path.

        Returns ``False`` (treat as a miss) if the object cannot be copied.
        """
        destination = processed_content_path(session_id)
        try:
            await self.artifacts.copy(entry.object_location, destination)
        except CacheError as e:
            logger.warning(f"Cached object unreadable, treating as miss: {e}")
            return False

        logger.info(f"Copied cached content from {entry.object_location} to {destination}")
        return True

    async def store(
        self,
        url: str,
        content: ProcessedContent,
        contextual_setting: ContextualSetting,
    ) -> Optional[CacheIndexEntry]:
        """Unconditionally upsert the object then its index row (last writer wins)."""
        location = processed_content_path(derive_session_key(url, contextual_setting))
        entry = CacheIndexEntry(
            url=normalize_url(url),
            contextual_setting=contextual_setting,
            object_location=location,
            content_hash=content_hash(content.structured_text),
            ttl=int(self.clock()) + self.ttl_days * SECONDS_PER_DAY,
            content_type=content.content_type,
            noise_reduction_metrics=content.noise_reduction_metrics,
        )

        try:
            await self.artifacts.put_json(location, content.to_payload())
            await self.index.upsert(entry)
        except CacheError as e:
            logger.warning(f"Failed to store in cache: {e}")
            return None

        logger.info(
            f"Stored cache index for {entry.url} ({contextual_setting.value}) with TTL {entry.ttl}"
        )
        return entry

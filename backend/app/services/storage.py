"""Persistence layer: JSON artifacts in Supabase Storage and the cache index table.

Every storage failure is re-raised as ``CacheError`` so callers decide
whether it is fatal (session artifacts) or best-effort (content cache).
"""

import json
import logging
from typing import Any, Optional

from supabase import AsyncClient

from app.errors import CacheError
from app.models.ingestion import CacheIndexEntry, ContextualSetting

logger = logging.getLogger(__name__)


# =====================================================================
# Artifact paths
# =====================================================================


def processed_content_path(session_id: str) -> str:
    return f"sessions/{session_id}/processed-content.json"


def session_metadata_path(session_id: str) -> str:
    return f"sessions/{session_id}/metadata.json"


def cache_metadata_path(session_id: str) -> str:
    return f"sessions/{session_id}/cache-metadata.json"


def validation_results_path(session_id: str) -> str:
    return f"sessions/{session_id}/issue-validation-results.json"


def domain_key(domain: str) -> str:
    """``docs.Example.com`` -> ``docs-example-com``."""
    return domain.strip().lower().replace(".", "-").replace("/", "-")


def embeddings_path(domain: str) -> str:
    return f"embeddings/rich-content-embeddings-{domain_key(domain)}.json"


def sitemap_health_path(domain: str) -> str:
    return f"sitemap-health/sitemap-health-{domain_key(domain)}.json"


# =====================================================================
# Object store
# =====================================================================


class ArtifactStore:
    """JSON object store over one Supabase Storage bucket."""

    def __init__(self, supabase: AsyncClient, bucket: str) -> None:
        self.supabase = supabase
        self.bucket = bucket

    def _bucket(self):
        return self.supabase.storage.from_(self.bucket)

    async def put_bytes(self, path: str, body: bytes) -> None:
        try:
            await self._bucket().upload(
                path,
                body,
                file_options={"content-type": "application/json", "upsert": "true"},
            )
        except Exception as e:
            raise CacheError(f"Failed to write {path}: {e}") from e
        logger.debug(f"Stored {len(body)} bytes at {self.bucket}/{path}")

    async def put_json(self, path: str, payload: Any) -> None:
        await self.put_bytes(path, json.dumps(payload).encode("utf-8"))

    async def get_bytes(self, path: str) -> bytes:
        try:
            return await self._bucket().download(path)
        except Exception as e:
            raise CacheError(f"Failed to read {path}: {e}") from e

    async def get_json(self, path: str) -> Any:
        body = await self.get_bytes(path)
        try:
            return json.loads(body)
        except json.JSONDecodeError as e:
            raise CacheError(f"Corrupt JSON at {path}: {e}") from e

    async def get_json_or_none(self, path: str) -> Optional[Any]:
        """Like ``get_json`` but ``None`` when the object is missing or unreadable."""
        try:
            return await self.get_json(path)
        except CacheError as e:
            logger.info(f"No readable artifact at {path}: {e}")
            return None

    async def copy(self, source: str, destination: str) -> None:
        """Byte-for-byte copy (download then upsert-upload)."""
        if source == destination:
            return
        await self.put_bytes(destination, await self.get_bytes(source))


# =====================================================================
# Index store
# =====================================================================


class CacheIndexStore:
    """Cache index rows keyed by ``(url, contextual_setting)``."""

    def __init__(self, supabase: AsyncClient, table: str) -> None:
        self.supabase = supabase
        self.table = table

    async def get(
        self, url: str, contextual_setting: ContextualSetting
    ) -> Optional[CacheIndexEntry]:
        try:
            result = await (
                self.supabase.table(self.table)
                .select("*")
                .eq("url", url)
                .eq("contextual_setting", contextual_setting.value)
                .limit(1)
                .execute()
            )
        except Exception as e:
            raise CacheError(f"Cache index lookup failed for {url}: {e}") from e

        if not result.data:
            return None
        return CacheIndexEntry.model_validate(result.data[0])

    async def upsert(self, entry: CacheIndexEntry) -> None:
        row = entry.model_dump(mode="json")
        try:
            await (
                self.supabase.table(self.table)
                .upsert(row, on_conflict="url,contextual_setting")
                .execute()
            )
        except Exception as e:
            raise CacheError(f"Cache index write failed for {entry.url}: {e}") from e

"""Shared fixtures: in-memory artifact and cache index stores."""

from typing import Optional

import pytest

from app.errors import CacheError
from app.models.ingestion import CacheIndexEntry, ContextualSetting
from app.services.storage import ArtifactStore, CacheIndexStore


class FakeArtifactStore(ArtifactStore):
    """``ArtifactStore`` over a dict of path -> bytes."""

    def __init__(self) -> None:
        super().__init__(supabase=None, bucket="test-bucket")
        self.objects: dict[str, bytes] = {}
        self.fail_writes = False
        self.fail_reads = False

    async def put_bytes(self, path: str, body: bytes) -> None:
        if self.fail_writes:
            raise CacheError(f"Failed to write {path}: storage unavailable")
        self.objects[path] = body

    async def get_bytes(self, path: str) -> bytes:
        if self.fail_reads or path not in self.objects:
            raise CacheError(f"Failed to read {path}: not found")
        return self.objects[path]


class FakeIndexStore(CacheIndexStore):
    """``CacheIndexStore`` over a dict keyed by ``(url, setting)``."""

    def __init__(self) -> None:
        super().__init__(supabase=None, table="test-cache")
        self.rows: dict[tuple[str, str], CacheIndexEntry] = {}
        self.fail = False

    async def get(
        self, url: str, contextual_setting: ContextualSetting
    ) -> Optional[CacheIndexEntry]:
        if self.fail:
            raise CacheError("Cache index lookup failed: table unavailable")
        return self.rows.get((url, contextual_setting.value))

    async def upsert(self, entry: CacheIndexEntry) -> None:
        if self.fail:
            raise CacheError("Cache index write failed: table unavailable")
        self.rows[(entry.url, entry.contextual_setting.value)] = entry


@pytest.fixture
def artifacts() -> FakeArtifactStore:
    return FakeArtifactStore()


@pytest.fixture
def index_store() -> FakeIndexStore:
    return FakeIndexStore()

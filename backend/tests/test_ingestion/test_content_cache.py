"""Tests for app.services.ingestion.content_cache."""

import json

import pytest

from app.models.ingestion import (
    CacheIndexEntry,
    ContentType,
    ContextualSetting,
    NoiseReductionMetrics,
    ProcessedContent,
)
from app.services.ingestion.content_cache import ContentCache, SECONDS_PER_DAY, content_hash
from app.services.ingestion.url_utils import derive_session_key
from app.services.storage import processed_content_path

URL = "https://Docs.Example.com/guide/?b=2&a=1#intro"
CLEAN_URL = "https://docs.example.com/guide?a=1&b=2"
NOW = 1_700_000_000


def _content() -> ProcessedContent:
    return ProcessedContent(
        url=URL,
        cleaned_html="<h1>Guide</h1><p>Send an email.</p>",
        structured_text="# Guide\n\nSend an email.",
        content_type=ContentType.HOW_TO,
        noise_reduction_metrics=NoiseReductionMetrics.from_sizes(1000, 40),
    )


class FakeClock:
    def __init__(self, now: float = NOW) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now


@pytest.mark.asyncio
class TestContentCache:
    async def test_store_then_lookup_round_trip(self, artifacts, index_store):
        cache = ContentCache(artifacts, index_store, clock=FakeClock())
        content = _content()

        stored = await cache.store(URL, content, ContextualSetting.WITHOUT_CONTEXT)

        assert stored is not None
        assert stored.url == CLEAN_URL
        assert stored.ttl == NOW + 7 * SECONDS_PER_DAY
        assert stored.content_hash == content_hash(content.structured_text)
        assert stored.object_location == processed_content_path(
            derive_session_key(URL, ContextualSetting.WITHOUT_CONTEXT)
        )

        entry = await cache.lookup(CLEAN_URL, ContextualSetting.WITHOUT_CONTEXT)
        assert entry is not None
        assert entry.content_type == ContentType.HOW_TO

        body = artifacts.objects[entry.object_location]
        assert body == json.dumps(content.to_payload()).encode("utf-8")
        assert ProcessedContent.model_validate_json(body) == content

    async def test_settings_are_separate_partitions(self, artifacts, index_store):
        cache = ContentCache(artifacts, index_store, clock=FakeClock())
        await cache.store(URL, _content(), ContextualSetting.WITHOUT_CONTEXT)

        assert await cache.lookup(URL, ContextualSetting.WITH_CONTEXT) is None

    async def test_expired_entry_is_a_miss(self, artifacts, index_store):
        clock = FakeClock()
        cache = ContentCache(artifacts, index_store, ttl_days=1, clock=clock)
        await cache.store(URL, _content(), ContextualSetting.WITHOUT_CONTEXT)

        clock.now = NOW + SECONDS_PER_DAY
        assert await cache.lookup(URL, ContextualSetting.WITHOUT_CONTEXT) is not None

        clock.now = NOW + SECONDS_PER_DAY + 1
        assert await cache.lookup(URL, ContextualSetting.WITHOUT_CONTEXT) is None

    async def test_restore_copies_into_session(self, artifacts, index_store):
        cache = ContentCache(artifacts, index_store, clock=FakeClock())
        entry = await cache.store(URL, _content(), ContextualSetting.WITHOUT_CONTEXT)

        assert await cache.restore(entry, "session-9") is True
        assert (
            artifacts.objects[processed_content_path("session-9")]
            == artifacts.objects[entry.object_location]
        )

    async def test_missing_object_restore_is_a_miss(self, artifacts, index_store):
        cache = ContentCache(artifacts, index_store, clock=FakeClock())
        entry = CacheIndexEntry(
            url=CLEAN_URL,
            contextual_setting=ContextualSetting.WITHOUT_CONTEXT,
            object_location="sessions/gone/processed-content.json",
            content_hash="0" * 64,
            ttl=NOW + 60,
        )
        index_store.rows[(CLEAN_URL, "without-context")] = entry

        found = await cache.lookup(URL, ContextualSetting.WITHOUT_CONTEXT)
        assert found is not None
        assert await cache.restore(found, "session-9") is False

    async def test_index_failure_is_swallowed(self, artifacts, index_store):
        index_store.fail = True
        cache = ContentCache(artifacts, index_store, clock=FakeClock())

        assert await cache.lookup(URL, ContextualSetting.WITHOUT_CONTEXT) is None
        assert await cache.store(URL, _content(), ContextualSetting.WITHOUT_CONTEXT) is None

    async def test_object_write_failure_skips_index(self, artifacts, index_store):
        artifacts.fail_writes = True
        cache = ContentCache(artifacts, index_store, clock=FakeClock())

        assert await cache.store(URL, _content(), ContextualSetting.WITHOUT_CONTEXT) is None
        assert index_store.rows == {}

    async def test_object_written_before_index_row(self, artifacts, index_store):
        order = []
        put_bytes = artifacts.put_bytes
        upsert = index_store.upsert

        async def recording_put(path, body):
            order.append("object")
            await put_bytes(path, body)

        async def recording_upsert(entry):
            order.append("index")
            await upsert(entry)

        artifacts.put_bytes = recording_put
        index_store.upsert = recording_upsert
        cache = ContentCache(artifacts, index_store, clock=FakeClock())

        await cache.store(URL, _content(), ContextualSetting.WITHOUT_CONTEXT)

        assert order == ["object", "index"]

    async def test_restore_same_location_is_noop(self, artifacts, index_store):
        cache = ContentCache(artifacts, index_store, clock=FakeClock())
        entry = await cache.store(URL, _content(), ContextualSetting.WITHOUT_CONTEXT)
        session_key = derive_session_key(URL, ContextualSetting.WITHOUT_CONTEXT)

        assert await cache.restore(entry, session_key) is True

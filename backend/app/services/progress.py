"""Per-session progress channel backed by a Supabase realtime table.

Each event is one inserted row; subscribers filter by ``session_id``.
Publishing is best-effort and never raises.
"""

import logging
import time
from typing import Any, Optional

from supabase import AsyncClient

from app.models.progress import ProgressEvent, ProgressType

logger = logging.getLogger(__name__)


class ProgressPublisher:
    """Publishes ordered progress events for one session."""

    def __init__(
        self,
        session_id: str,
        supabase: Optional[AsyncClient] = None,
        table: str = "analysis_progress",
        *,
        phase: Optional[str] = None,
    ) -> None:
        self.session_id = session_id
        self.supabase = supabase
        self.table = table
        self.phase = phase
        self.events: list[ProgressEvent] = []

    async def publish(self, event: ProgressEvent) -> None:
        self.events.append(event)

        if self.supabase is None:
            logger.debug(f"Progress channel not configured, skipping: {event.message}")
            return

        row = {
            "session_id": self.session_id,
            "type": event.type.value,
            "phase": event.phase,
            "message": event.message,
            "metadata": event.metadata,
            "timestamp": event.timestamp,
        }
        try:
            await self.supabase.table(self.table).insert(row).execute()
        except Exception as e:
            logger.warning(f"Failed to publish progress for {self.session_id}: {e}")

    async def _emit(
        self,
        type_: ProgressType,
        message: str,
        metadata: Optional[dict[str, Any]] = None,
        phase: Optional[str] = None,
    ) -> None:
        await self.publish(
            ProgressEvent(
                type=type_,
                message=message,
                timestamp=int(time.time() * 1000),
                phase=phase or self.phase,
                metadata=metadata,
            )
        )

    async def info(self, message: str, metadata: Optional[dict[str, Any]] = None) -> None:
        await self._emit(ProgressType.INFO, message, metadata)

    async def success(self, message: str, metadata: Optional[dict[str, Any]] = None) -> None:
        await self._emit(ProgressType.SUCCESS, message, metadata)

    async def error(self, message: str, metadata: Optional[dict[str, Any]] = None) -> None:
        await self._emit(ProgressType.ERROR, message, metadata)

    async def progress(
        self,
        message: str,
        phase: Optional[str] = None,
        metadata: Optional[dict[str, Any]] = None,
    ) -> None:
        await self._emit(ProgressType.PROGRESS, message, metadata, phase)

    async def cache_hit(self, message: str, metadata: Optional[dict[str, Any]] = None) -> None:
        await self._emit(ProgressType.CACHE_HIT, message, metadata)

    async def cache_miss(self, message: str, metadata: Optional[dict[str, Any]] = None) -> None:
        await self._emit(ProgressType.CACHE_MISS, message, metadata)

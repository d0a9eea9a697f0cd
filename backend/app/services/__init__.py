from app.services.embedding_service import (
    EmbeddingService,
    get_embedding_service,
    reset_embedding_service,
)
from app.services.page_fetcher import PageFetcher, build_http_client
from app.services.progress import ProgressPublisher
from app.services.storage import ArtifactStore, CacheIndexStore

__all__ = [
    # Embedding service
    "EmbeddingService",
    "get_embedding_service",
    "reset_embedding_service",
    # Page retrieval
    "PageFetcher",
    "build_http_client",
    # Progress channel
    "ProgressPublisher",
    # Persistence
    "ArtifactStore",
    "CacheIndexStore",
]

"""Pre-generate and persist a documentation domain's embedding pool.

Usage:
    python scripts/warm_embeddings.py resend.com [--force]

Without ``--force`` an existing pool is left in place.
"""

import asyncio
import logging
import os
import sys
from pathlib import Path

from dotenv import load_dotenv

# Add the backend directory to sys.path to import app modules
sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from app.config import get_settings
from app.db.supabase import get_async_supabase_client_async
from app.services.clients import close_http_client, get_http_client
from app.services.embedding_service import get_embedding_service
from app.services.page_fetcher import PageFetcher
from app.services.storage import ArtifactStore, embeddings_path
from app.services.validation.semantic_search import SemanticSearchEngine
from app.services.validation.sitemap import SitemapParser

# Load env from backend/.env regardless of the working directory
load_dotenv(Path(__file__).resolve().parents[1] / ".env")

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


async def warm(domain: str, force: bool) -> int:
    settings = get_settings()
    supabase = await get_async_supabase_client_async()
    artifacts = ArtifactStore(supabase, settings.storage_bucket)
    fetcher = PageFetcher(
        get_http_client(),
        user_agent=settings.user_agent,
        timeout=settings.validation_fetch_timeout,
    )
    engine = SemanticSearchEngine(
        get_embedding_service(), artifacts, fetcher, SitemapParser(fetcher)
    )

    try:
        if force:
            pool = await engine.generate_embeddings(domain)
            await artifacts.put_json(embeddings_path(domain), [e.to_payload() for e in pool])
        else:
            pool = await engine.load_or_generate_embeddings(domain)
    finally:
        await close_http_client()

    print(f"{domain}: {len(pool)} page embeddings at {embeddings_path(domain)}")
    return 0 if pool else 1


def main() -> int:
    args = [a for a in sys.argv[1:] if not a.startswith("--")]
    if len(args) != 1:
        print(__doc__)
        return 2
    return asyncio.run(warm(args[0], "--force" in sys.argv[1:]))


if __name__ == "__main__":
    sys.exit(main())

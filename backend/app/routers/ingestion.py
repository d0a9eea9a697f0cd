"""Documentation page ingestion API router."""

import logging

from fastapi import APIRouter
from fastapi.responses import JSONResponse

from app.errors import ConfigurationError, InputValidationError
from app.models.ingestion import IngestionRequest, IngestionResponse
from app.services.ingestion import get_url_processor, require_url

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/ingestion", tags=["ingestion"])


def error_response(status_code: int, message: str) -> JSONResponse:
    body = IngestionResponse(success=False, session_key="", message=message)
    return JSONResponse(status_code=status_code, content=body.to_payload())


@router.post("/process", response_model=IngestionResponse)
async def process_url(request: IngestionRequest):
    """
    Ingest one documentation page.

    Serves the page from the content cache when a fresh entry exists for the
    (URL, contextual setting) pair; otherwise fetches, strips, extracts,
    validates links, classifies and caches it. Progress events stream to the
    session's progress channel.

    Returns the session key the processed content was written under.
    """
    try:
        require_url(request)
        processor = await get_url_processor()
        return await processor.process(request)
    except InputValidationError as e:
        return error_response(400, str(e))
    except ConfigurationError as e:
        logger.error(f"Ingestion unavailable: {e}")
        return error_response(500, str(e))

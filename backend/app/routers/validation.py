"""Issue validation API router."""

import logging

from fastapi import APIRouter
from fastapi.responses import JSONResponse

from app.errors import ConfigurationError, InputValidationError
from app.models.validation import ValidationRequest, ValidationResponse
from app.services.validation import get_issue_validator, require_parameters

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/validation", tags=["validation"])


def error_response(status_code: int, message: str) -> JSONResponse:
    body = ValidationResponse(success=False, message=message)
    return JSONResponse(status_code=status_code, content=body.to_payload())


@router.post("/issues", response_model=ValidationResponse)
async def validate_issues(request: ValidationRequest):
    """
    Validate developer issues against a domain's live documentation.

    Each issue is matched to candidate pages (curated, semantic, then keyword
    search), classified as resolved / potential-gap / confirmed / critical-gap
    and given remediation recommendations. A sitemap health check for the
    domain runs alongside. Results are persisted under the session key.
    """
    try:
        require_parameters(request)
        validator = await get_issue_validator()
        return await validator.validate(request)
    except InputValidationError as e:
        return error_response(400, str(e))
    except ConfigurationError as e:
        logger.error(f"Validation unavailable: {e}")
        return error_response(500, str(e))

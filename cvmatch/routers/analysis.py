"""
Analysis service checks: key verification and a short test completion
"""
from fastapi import APIRouter

from cvmatch.models.response import ServiceCheckResponse
from cvmatch.services.factory import build_analysis_client
from cvmatch.utils.exceptions import CVMatchBaseException, map_to_http_exception
from cvmatch.utils.logging_config import get_logger

router = APIRouter(prefix="/analysis", tags=["analysis"])
logger = get_logger(__name__)


@router.post("/verify-key", response_model=ServiceCheckResponse)
def verify_key():
    """Check that the configured API key is accepted by the analysis service"""
    try:
        details = build_analysis_client().verify_key()
    except CVMatchBaseException as exc:
        logger.error(f"API key verification failed: {exc.message}")
        raise map_to_http_exception(exc)

    return ServiceCheckResponse(message="API key verified successfully", details=details)


@router.post("/test", response_model=ServiceCheckResponse)
def test_service():
    """Run a short completion against the analysis service"""
    try:
        details = build_analysis_client().test_completion()
    except CVMatchBaseException as exc:
        logger.error(f"Analysis service test failed: {exc.message}")
        raise map_to_http_exception(exc)

    return ServiceCheckResponse(message="API test completed successfully", details=details)

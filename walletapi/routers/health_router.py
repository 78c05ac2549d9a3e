import logging

from fastapi import APIRouter, Depends, Response, status
from sqlalchemy import text
from sqlalchemy.orm import Session

from walletapi.database.session import get_db
from walletapi.schemas.health import HealthCheckResponse

logger = logging.getLogger(__name__)

router = APIRouter(tags=["health"])


@router.get("/health", response_model=HealthCheckResponse)
async def health_check(
    response: Response, db: Session = Depends(get_db)
) -> HealthCheckResponse:
    """Liveness plus a round trip to the database; 503 when it is unreachable."""
    try:
        db.execute(text("SELECT 1"))
    except Exception as e:
        logger.error(f"Health check database error: {str(e)}")
        response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE
        return HealthCheckResponse(status="degraded", database="unavailable", error=str(e))

    return HealthCheckResponse()

import logging
from datetime import UTC, datetime

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from app.schemas.health import HealthResponse

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/health", tags=["health"])


@router.get("", response_model=HealthResponse, response_model_exclude_none=True)
def health(request: Request):
    timestamp = datetime.now(UTC)
    try:
        request.app.state.database.ping()
    except SQLAlchemyError as exc:
        logger.error("Health check failed: %s", exc)
        unhealthy = HealthResponse(
            status="ERROR", timestamp=timestamp, database="disconnected", error=str(exc)
        )
        return JSONResponse(status_code=503, content=unhealthy.model_dump(mode="json"))
    return HealthResponse(status="OK", timestamp=timestamp, database="connected")

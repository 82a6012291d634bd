import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger(__name__)


class ParticipantError(Exception):
    """Base class for participant errors that map onto an HTTP status."""

    status_code = 500


class InvalidScoreError(ParticipantError):
    status_code = 400


class ParticipantNotFound(ParticipantError):
    status_code = 404

    def __init__(self, participant_id: str):
        self.participant_id = participant_id
        super().__init__("Participant not found")


class ParticipantAlreadyExists(ParticipantError):
    status_code = 409

    def __init__(self, full_name: str):
        self.full_name = full_name
        super().__init__(f"A participant named '{full_name}' already exists")


class StorageError(ParticipantError):
    status_code = 500


def error_response(status_code: int, message: str, details: list[str] | None = None) -> JSONResponse:
    content: dict = {"error": message}
    if details:
        content["details"] = details
    return JSONResponse(status_code=status_code, content=content)


def validation_response(messages: list[str]) -> JSONResponse:
    if len(messages) == 1:
        return error_response(400, messages[0])
    return error_response(400, "Validation failed", messages)


async def participant_error_handler(request: Request, exc: ParticipantError) -> JSONResponse:
    if isinstance(exc, StorageError) or exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc, exc_info=exc)
        return error_response(500, "Internal server error")
    if isinstance(exc, ParticipantNotFound):
        logger.info("%s %s: participant %s not found", request.method, request.url.path, exc.participant_id)
    return error_response(exc.status_code, str(exc))


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    logger.info("Rejected request body for %s %s: %s", request.method, request.url.path, exc.errors())
    return error_response(400, "Request body must be a JSON object")


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    if exc.status_code == 404:
        return error_response(404, "Route not found")
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": str(exc.detail)},
        headers=getattr(exc, "headers", None),
    )


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path, exc_info=exc)
    return error_response(500, "Internal server error")


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(ParticipantError, participant_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)

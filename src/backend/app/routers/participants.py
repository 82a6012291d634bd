import math
from typing import Any

from fastapi import APIRouter, Body, Depends, Query, Request, Response

from app.errors import ParticipantNotFound, error_response, validation_response
from app.models.participant import Participant
from app.repositories.participants import ParticipantRepository, get_participant_repository
from app.schemas.participant import (
    ErrorResponse,
    Pagination,
    ParticipantListResponse,
    ParticipantResponse,
)
from app.services.validation import (
    is_participant_id,
    parse_list_query,
    validate_create,
    validate_update,
)

router = APIRouter(prefix="/api/participants", tags=["participants"])

INVALID_ID_MESSAGE = "ID must be a valid UUID"

ERROR_RESPONSES: dict[int | str, dict[str, Any]] = {
    400: {"model": ErrorResponse},
    404: {"model": ErrorResponse},
    409: {"model": ErrorResponse},
    500: {"model": ErrorResponse},
}


def _to_response(participant: Participant) -> ParticipantResponse:
    return ParticipantResponse.model_validate(participant)


@router.get("", response_model=ParticipantListResponse, responses=ERROR_RESPONSES)
def list_participants(
    request: Request,
    page: str | None = Query(default=None),
    limit: str | None = Query(default=None),
    sort_by: str | None = Query(default=None, alias="sortBy"),
    sort_order: str | None = Query(default=None, alias="sortOrder"),
    repository: ParticipantRepository = Depends(get_participant_repository),
):
    settings = request.app.state.settings
    parsed = parse_list_query(
        page,
        limit,
        sort_by,
        sort_order,
        default_limit=settings.default_page_size,
        max_limit=settings.max_page_size,
    )
    if not parsed.ok:
        return validation_response(parsed.messages())

    query = parsed.value
    items, total = repository.list(query)
    return ParticipantListResponse(
        data=[_to_response(item) for item in items],
        pagination=Pagination(
            page=query.page,
            limit=query.limit,
            total=total,
            total_pages=math.ceil(total / query.limit),
        ),
    )


@router.get("/{participant_id}", response_model=ParticipantResponse, responses=ERROR_RESPONSES)
def get_participant(
    participant_id: str,
    repository: ParticipantRepository = Depends(get_participant_repository),
):
    if not is_participant_id(participant_id):
        return error_response(400, INVALID_ID_MESSAGE)

    participant = repository.get(participant_id.lower())
    if participant is None:
        raise ParticipantNotFound(participant_id)
    return _to_response(participant)


@router.post("", status_code=201, response_model=ParticipantResponse, responses=ERROR_RESPONSES)
def create_participant(
    payload: dict[str, Any] = Body(...),
    repository: ParticipantRepository = Depends(get_participant_repository),
):
    validated = validate_create(payload)
    if not validated.ok:
        return validation_response(validated.messages())

    participant = repository.create(validated.value)
    return _to_response(participant)


@router.put("/{participant_id}", response_model=ParticipantResponse, responses=ERROR_RESPONSES)
def update_participant(
    participant_id: str,
    payload: dict[str, Any] = Body(...),
    repository: ParticipantRepository = Depends(get_participant_repository),
):
    if not is_participant_id(participant_id):
        return error_response(400, INVALID_ID_MESSAGE)

    validated = validate_update(payload)
    if not validated.ok:
        return validation_response(validated.messages())

    participant = repository.update(participant_id.lower(), validated.value)
    if participant is None:
        raise ParticipantNotFound(participant_id)
    return _to_response(participant)


@router.delete("/{participant_id}", status_code=204, responses=ERROR_RESPONSES)
def delete_participant(
    participant_id: str,
    repository: ParticipantRepository = Depends(get_participant_repository),
):
    if not is_participant_id(participant_id):
        return error_response(400, INVALID_ID_MESSAGE)

    if not repository.delete(participant_id.lower()):
        raise ParticipantNotFound(participant_id)
    return Response(status_code=204)

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class ParticipantResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    full_name: str
    age: int
    first_semester: float
    second_semester: float
    final_average: float
    created_at: datetime
    updated_at: datetime


class Pagination(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    page: int
    limit: int
    total: int
    total_pages: int = Field(alias="totalPages")


class ParticipantListResponse(BaseModel):
    data: list[ParticipantResponse]
    pagination: Pagination


class ErrorResponse(BaseModel):
    error: str
    details: list[str] | None = None

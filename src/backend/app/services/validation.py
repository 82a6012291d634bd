import math
import re
from collections.abc import Mapping
from dataclasses import dataclass, field, replace
from typing import Any, Generic, TypeVar

from app.models.enums import SortField, SortOrder

T = TypeVar("T")

PARTICIPANT_FIELDS = ("full_name", "age", "first_semester", "second_semester")
MAX_NAME_LENGTH = 255
MIN_AGE = 1
MAX_AGE = 150
MIN_SCORE = 0
MAX_SCORE = 10
# Largest OFFSET a signed 64-bit SQL integer can carry.
MAX_OFFSET = 2**63 - 1

UUID_PATTERN = re.compile(
    r"[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}", re.IGNORECASE
)
SORT_FIELDS_TEXT = ", ".join(sort_field.value for sort_field in SortField)


@dataclass
class ValidationIssue:
    key: str
    message: str


@dataclass
class ValidationResult(Generic[T]):
    value: T | None = None
    issues: list[ValidationIssue] = field(default_factory=list)
    missing: list[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.value is not None and not self.issues and not self.missing

    def messages(self) -> list[str]:
        if self.missing:
            return [f"Missing required fields: {', '.join(self.missing)}"]
        return [issue.message for issue in self.issues]


@dataclass(frozen=True)
class ParticipantFields:
    full_name: str
    age: int
    first_semester: float
    second_semester: float


@dataclass(frozen=True)
class ParticipantPatch:
    """Fields supplied by an update; ``None`` means keep the stored value."""

    full_name: str | None = None
    age: int | None = None
    first_semester: float | None = None
    second_semester: float | None = None

    def apply(self, current: ParticipantFields) -> ParticipantFields:
        changes = {
            key: getattr(self, key) for key in PARTICIPANT_FIELDS if getattr(self, key) is not None
        }
        return replace(current, **changes)


@dataclass(frozen=True)
class ListQuery:
    page: int
    limit: int
    sort_by: SortField
    sort_order: SortOrder

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit


def is_participant_id(raw: str) -> bool:
    return UUID_PATTERN.fullmatch(raw) is not None


def _is_number(value: Any) -> bool:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    return isinstance(value, int) or math.isfinite(value)


def _check_full_name(value: Any) -> tuple[str | None, ValidationIssue | None]:
    if not isinstance(value, str):
        return None, ValidationIssue(key="full_name", message="full_name must be a string")
    trimmed = value.strip()
    if not trimmed:
        return None, ValidationIssue(key="full_name", message="full_name must not be empty")
    if len(trimmed) > MAX_NAME_LENGTH:
        return None, ValidationIssue(
            key="full_name", message=f"full_name must be at most {MAX_NAME_LENGTH} characters"
        )
    return trimmed, None


def _check_age(value: Any) -> tuple[int | None, ValidationIssue | None]:
    issue = ValidationIssue(
        key="age", message=f"age must be an integer between {MIN_AGE} and {MAX_AGE}"
    )
    if not _is_number(value):
        return None, issue
    if isinstance(value, float):
        if not value.is_integer():
            return None, issue
        value = int(value)
    if not MIN_AGE <= value <= MAX_AGE:
        return None, issue
    return value, None


def _check_score(key: str, value: Any) -> tuple[float | None, ValidationIssue | None]:
    if not _is_number(value):
        return None, ValidationIssue(key=key, message=f"{key} must be a number")
    if not MIN_SCORE <= value <= MAX_SCORE:
        return None, ValidationIssue(
            key=key, message=f"{key} must be between {MIN_SCORE} and {MAX_SCORE}"
        )
    return float(value), None


def _clean_fields(payload: Mapping[str, Any]) -> tuple[dict[str, Any], list[ValidationIssue]]:
    cleaned: dict[str, Any] = {}
    issues: list[ValidationIssue] = []
    for key in PARTICIPANT_FIELDS:
        value = payload.get(key)
        if value is None:
            continue
        if key == "full_name":
            clean, issue = _check_full_name(value)
        elif key == "age":
            clean, issue = _check_age(value)
        else:
            clean, issue = _check_score(key, value)
        if issue:
            issues.append(issue)
        else:
            cleaned[key] = clean
    return cleaned, issues


def validate_create(payload: Mapping[str, Any]) -> ValidationResult[ParticipantFields]:
    missing = [key for key in PARTICIPANT_FIELDS if payload.get(key) is None]
    if missing:
        return ValidationResult(missing=missing)

    cleaned, issues = _clean_fields(payload)
    if issues:
        return ValidationResult(issues=issues)
    return ValidationResult(value=ParticipantFields(**cleaned))


def validate_update(payload: Mapping[str, Any]) -> ValidationResult[ParticipantPatch]:
    cleaned, issues = _clean_fields(payload)
    if issues:
        return ValidationResult(issues=issues)
    return ValidationResult(value=ParticipantPatch(**cleaned))


def _parse_int(raw: str | None, default: int) -> int:
    if raw is None:
        return default
    try:
        return int(raw.strip())
    except ValueError:
        return default


def parse_list_query(
    page: str | None,
    limit: str | None,
    sort_by: str | None,
    sort_order: str | None,
    *,
    default_limit: int,
    max_limit: int,
) -> ValidationResult[ListQuery]:
    sort_key = (sort_by or SortField.full_name.value).strip()
    if sort_key not in SortField.__members__:
        return ValidationResult(
            issues=[ValidationIssue(key="sortBy", message=f"sortBy must be one of: {SORT_FIELDS_TEXT}")]
        )

    order = SortOrder.desc if (sort_order or "").strip().lower() == "desc" else SortOrder.asc
    page_number = max(1, _parse_int(page, 1))
    page_size = min(max(1, _parse_int(limit, default_limit)), max_limit)
    max_page = MAX_OFFSET // page_size + 1
    if page_number > max_page:
        return ValidationResult(
            issues=[ValidationIssue(key="page", message=f"page must be at most {max_page}")]
        )

    return ValidationResult(
        value=ListQuery(
            page=page_number,
            limit=page_size,
            sort_by=SortField(sort_key),
            sort_order=order,
        )
    )

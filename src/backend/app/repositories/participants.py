import logging
from collections.abc import Iterator
from contextlib import contextmanager

from fastapi import Depends
from sqlalchemy import delete, func, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from app.db.database import get_db
from app.errors import InvalidScoreError, ParticipantAlreadyExists, StorageError
from app.models.enums import SortField, SortOrder
from app.models.participant import Participant, casefold_name
from app.services.grading import compute_final_average
from app.services.validation import ListQuery, ParticipantFields, ParticipantPatch

logger = logging.getLogger(__name__)

SORT_COLUMNS = {
    SortField.full_name: Participant.full_name,
    SortField.age: Participant.age,
    SortField.final_average: Participant.final_average,
    SortField.first_semester: Participant.first_semester,
    SortField.second_semester: Participant.second_semester,
}


def _fields_of(participant: Participant) -> ParticipantFields:
    return ParticipantFields(
        full_name=participant.full_name,
        age=participant.age,
        first_semester=participant.first_semester,
        second_semester=participant.second_semester,
    )


def _final_average(fields: ParticipantFields) -> float:
    result = compute_final_average(fields.first_semester, fields.second_semester)
    if not result.ok:
        raise InvalidScoreError(result.error)
    return result.value


class ParticipantRepository:
    """Single-row CRUD over the ``participants`` table for one request session.

    Name uniqueness is checked before writing and backed by the unique index on
    ``name_key``, the casefolded name. Two concurrent writers can both pass the pre-check; the
    loser then hits the index and gets the same ``ParticipantAlreadyExists``.
    """

    def __init__(self, db: Session) -> None:
        self.db = db

    @contextmanager
    def _storage(self, action: str) -> Iterator[None]:
        try:
            yield
        except SQLAlchemyError as exc:
            self.db.rollback()
            raise StorageError(f"Failed to {action}") from exc

    def _commit(self, full_name: str) -> None:
        try:
            self.db.commit()
        except IntegrityError as exc:
            self.db.rollback()
            logger.warning("Unique name constraint rejected '%s'", full_name)
            raise ParticipantAlreadyExists(full_name) from exc

    def _name_taken(self, full_name: str, exclude_id: str | None = None) -> bool:
        stmt = select(Participant.id).where(Participant.name_key == casefold_name(full_name))
        if exclude_id is not None:
            stmt = stmt.where(Participant.id != exclude_id)
        return self.db.scalar(stmt.limit(1)) is not None

    def list(self, query: ListQuery) -> tuple[list[Participant], int]:
        column = SORT_COLUMNS[query.sort_by]
        ordering = column.desc() if query.sort_order is SortOrder.desc else column.asc()
        with self._storage("list participants"):
            total = self.db.scalar(select(func.count()).select_from(Participant)) or 0
            items = self.db.scalars(
                select(Participant)
                .order_by(ordering, Participant.created_at.asc(), Participant.id.asc())
                .offset(query.offset)
                .limit(query.limit)
            ).all()
        return list(items), total

    def get(self, participant_id: str) -> Participant | None:
        with self._storage("load participant"):
            return self.db.get(Participant, participant_id)

    def create(self, fields: ParticipantFields) -> Participant:
        final_average = _final_average(fields)
        with self._storage("create participant"):
            if self._name_taken(fields.full_name):
                logger.info("Rejected duplicate participant name '%s'", fields.full_name)
                raise ParticipantAlreadyExists(fields.full_name)

            participant = Participant(
                full_name=fields.full_name,
                name_key=casefold_name(fields.full_name),
                age=fields.age,
                first_semester=fields.first_semester,
                second_semester=fields.second_semester,
                final_average=final_average,
            )
            self.db.add(participant)
            self._commit(fields.full_name)
            self.db.refresh(participant)
        logger.info("Created participant %s", participant.id)
        return participant

    def update(self, participant_id: str, patch: ParticipantPatch) -> Participant | None:
        with self._storage("update participant"):
            participant = self.db.get(Participant, participant_id)
            if participant is None:
                return None

            merged = patch.apply(_fields_of(participant))
            if patch.full_name is not None and self._name_taken(
                merged.full_name, exclude_id=participant.id
            ):
                logger.info("Rejected rename of %s to duplicate '%s'", participant.id, merged.full_name)
                raise ParticipantAlreadyExists(merged.full_name)
            final_average = _final_average(merged)

            participant.full_name = merged.full_name
            participant.name_key = casefold_name(merged.full_name)
            participant.age = merged.age
            participant.first_semester = merged.first_semester
            participant.second_semester = merged.second_semester
            participant.final_average = final_average
            participant.updated_at = func.now()
            self._commit(merged.full_name)
            self.db.refresh(participant)
        logger.info("Updated participant %s", participant_id)
        return participant

    def delete(self, participant_id: str) -> bool:
        with self._storage("delete participant"):
            result = self.db.execute(delete(Participant).where(Participant.id == participant_id))
            self.db.commit()
        deleted = result.rowcount > 0
        if deleted:
            logger.info("Deleted participant %s", participant_id)
        return deleted


def get_participant_repository(db: Session = Depends(get_db)) -> ParticipantRepository:
    return ParticipantRepository(db)

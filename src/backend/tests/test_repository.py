import pytest
from sqlalchemy.exc import OperationalError

from app.errors import ParticipantAlreadyExists, StorageError
from app.models.enums import SortField, SortOrder
from app.repositories.participants import ParticipantRepository
from app.services.validation import ListQuery, ParticipantFields, ParticipantPatch


def _fields(name: str = "Maria Santos", age: int = 22, first: float = 9.0, second: float = 8.5):
    return ParticipantFields(full_name=name, age=age, first_semester=first, second_semester=second)


def _query(sort_by=SortField.full_name, sort_order=SortOrder.asc, page=1, limit=10) -> ListQuery:
    return ListQuery(page=page, limit=limit, sort_by=sort_by, sort_order=sort_order)


def test_create_assigns_id_average_and_timestamps(repository: ParticipantRepository) -> None:
    participant = repository.create(_fields())

    assert len(participant.id) == 36
    assert participant.final_average == 8.75
    assert participant.created_at is not None
    assert participant.updated_at is not None
    assert repository.get(participant.id).full_name == "Maria Santos"


def test_create_rejects_case_insensitive_duplicate(repository: ParticipantRepository) -> None:
    repository.create(_fields())

    with pytest.raises(ParticipantAlreadyExists):
        repository.create(_fields(name="MARIA santos"))

    items, total = repository.list(_query())
    assert total == 1


def test_unique_index_backstops_the_name_check(
    repository: ParticipantRepository, monkeypatch: pytest.MonkeyPatch
) -> None:
    repository.create(_fields())
    monkeypatch.setattr(repository, "_name_taken", lambda *args, **kwargs: False)

    with pytest.raises(ParticipantAlreadyExists):
        repository.create(_fields(name="maria santos"))

    monkeypatch.undo()
    assert repository.list(_query())[1] == 1


@pytest.mark.parametrize("duplicate", ["JOÃO SILVA", "joão silva"])
def test_create_rejects_accented_duplicate(repository: ParticipantRepository, duplicate: str) -> None:
    repository.create(_fields(name="João Silva"))

    with pytest.raises(ParticipantAlreadyExists):
        repository.create(_fields(name=duplicate))

    assert repository.list(_query())[1] == 1


def test_unique_index_folds_non_ascii_names(
    repository: ParticipantRepository, monkeypatch: pytest.MonkeyPatch
) -> None:
    repository.create(_fields(name="Straße Müller"))
    monkeypatch.setattr(repository, "_name_taken", lambda *args, **kwargs: False)

    with pytest.raises(ParticipantAlreadyExists):
        repository.create(_fields(name="STRASSE MÜLLER"))


def test_update_merges_and_recomputes_average(repository: ParticipantRepository) -> None:
    created = repository.create(_fields(name="João Silva", age=25, first=8.5, second=7.5))
    assert created.final_average == 8.0

    updated = repository.update(created.id, ParticipantPatch(first_semester=9.0, second_semester=9.5))

    assert updated.final_average == 9.25
    assert updated.full_name == "João Silva"
    assert updated.age == 25


def test_update_of_missing_participant_returns_none(repository: ParticipantRepository) -> None:
    assert repository.update("123e4567-e89b-12d3-a456-426614174000", ParticipantPatch(age=30)) is None


def test_rename_to_another_participants_name_conflicts(repository: ParticipantRepository) -> None:
    repository.create(_fields(name="Ana Lima"))
    other = repository.create(_fields(name="Bruno Costa"))

    with pytest.raises(ParticipantAlreadyExists):
        repository.update(other.id, ParticipantPatch(full_name="ana lima"))

    assert repository.get(other.id).full_name == "Bruno Costa"


def test_rename_to_own_name_in_other_case_is_allowed(repository: ParticipantRepository) -> None:
    created = repository.create(_fields())

    updated = repository.update(created.id, ParticipantPatch(full_name="MARIA SANTOS"))

    assert updated.full_name == "MARIA SANTOS"


def test_rename_to_accented_duplicate_conflicts(repository: ParticipantRepository) -> None:
    repository.create(_fields(name="Márcia Araújo"))
    other = repository.create(_fields(name="Bruno Costa"))

    with pytest.raises(ParticipantAlreadyExists):
        repository.update(other.id, ParticipantPatch(full_name="MÁRCIA ARAÚJO"))

    assert repository.get(other.id).full_name == "Bruno Costa"


def test_delete_reports_whether_a_row_was_removed(repository: ParticipantRepository) -> None:
    created = repository.create(_fields())

    assert repository.delete(created.id) is True
    assert repository.get(created.id) is None
    assert repository.delete(created.id) is False


def test_list_sorts_and_paginates(repository: ParticipantRepository) -> None:
    repository.create(_fields(name="Carla", age=30, first=5.0, second=5.0))
    repository.create(_fields(name="Ana", age=20, first=10.0, second=9.0))
    repository.create(_fields(name="Bruno", age=25, first=7.0, second=8.0))

    items, total = repository.list(_query())
    assert total == 3
    assert [item.full_name for item in items] == ["Ana", "Bruno", "Carla"]

    items, _ = repository.list(_query(sort_by=SortField.final_average, sort_order=SortOrder.desc))
    assert [item.final_average for item in items] == [9.5, 7.5, 5.0]

    items, total = repository.list(_query(sort_by=SortField.age, page=2, limit=2))
    assert total == 3
    assert [item.full_name for item in items] == ["Carla"]


@pytest.mark.parametrize("sort_by", [SortField.age, SortField.final_average])
@pytest.mark.parametrize("sort_order", [SortOrder.asc, SortOrder.desc])
def test_tied_rows_page_in_creation_then_id_order(
    repository: ParticipantRepository, sort_by: SortField, sort_order: SortOrder
) -> None:
    created = [
        repository.create(_fields(name=name, age=30, first=8.0, second=8.0))
        for name in ["Carla", "Ana", "Bruno", "Diego", "Elisa"]
    ]

    paged = []
    for page in range(1, len(created) + 2):
        items, total = repository.list(
            _query(sort_by=sort_by, sort_order=sort_order, page=page, limit=1)
        )
        assert total == len(created)
        paged.extend(item.id for item in items)

    expected = [p.id for p in sorted(created, key=lambda p: (p.created_at, p.id))]
    assert paged == expected


def test_database_failures_become_storage_errors(
    repository: ParticipantRepository, monkeypatch: pytest.MonkeyPatch
) -> None:
    def broken(*args, **kwargs):
        raise OperationalError("SELECT", {}, Exception("connection refused"))

    monkeypatch.setattr(repository.db, "scalar", broken)

    with pytest.raises(StorageError, match="Failed to list participants"):
        repository.list(_query())

from collections.abc import Iterator

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import Session

from app.config import Settings
from app.db.database import Database
from app.main import create_app
from app.repositories.participants import ParticipantRepository

MARIA = {"full_name": "Maria Santos", "age": 22, "first_semester": 9.0, "second_semester": 8.5}


@pytest.fixture()
def test_settings() -> Settings:
    return Settings(
        database_url="sqlite://",
        db_startup_retries=1,
        db_startup_backoff_seconds=0,
        log_level="WARNING",
    )


@pytest.fixture()
def database(test_settings: Settings) -> Iterator[Database]:
    db = Database.from_settings(test_settings)
    db.create_schema()
    yield db
    db.dispose()


@pytest.fixture()
def session(database: Database) -> Iterator[Session]:
    db = database.session_factory()
    yield db
    db.close()


@pytest.fixture()
def repository(session: Session) -> ParticipantRepository:
    return ParticipantRepository(session)


@pytest.fixture()
def app(test_settings: Settings, database: Database):
    return create_app(test_settings, database)


@pytest.fixture()
def client(app) -> Iterator[TestClient]:
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture()
def create_participant(client: TestClient):
    def _create(**overrides) -> dict:
        response = client.post("/api/participants", json={**MARIA, **overrides})
        assert response.status_code == 201, response.text
        return response.json()

    return _create

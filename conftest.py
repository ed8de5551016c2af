from datetime import datetime, timedelta

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from backend.core.config import Settings
from backend.database import Base, initialize_database
from backend.main import create_app
from backend.models.user import User


class FakeClock:
    """Returns strictly increasing timestamps, one minute apart."""

    def __init__(self, start: datetime = datetime(2026, 1, 5, 9, 0)) -> None:
        self.current = start

    def __call__(self) -> datetime:
        self.current += timedelta(minutes=1)
        return self.current


@pytest.fixture
def db():
    engine = create_engine('sqlite:///:memory:')
    testing_session_local = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    initialize_database(engine)

    session = testing_session_local()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture
def make_user(db):
    def _make_user(email: str, role) -> User:
        user = User(email=email, password_hash='not-a-real-hash', role=role)
        db.add(user)
        db.commit()
        db.refresh(user)
        return user

    return _make_user


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def app_settings(tmp_path) -> Settings:
    return Settings(
        database_url=f"sqlite:///{tmp_path / 'portal.db'}",
        jwt_secret_key='route-test-secret',
        upload_root=str(tmp_path / 'uploads'),
    )


@pytest.fixture
def app(app_settings):
    application = create_app(app_settings)
    yield application
    application.state.engine.dispose()


@pytest.fixture
def client(app):
    with TestClient(app) as test_client:
        yield test_client

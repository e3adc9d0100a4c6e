import pytest
from sqlalchemy import StaticPool
from sqlalchemy.orm import sessionmaker

from vocabatch.config import settings
from vocabatch.database import Base, get_db, make_engine
from vocabatch.main import app


@pytest.fixture(autouse=True)
def _tmp_log_dir(tmp_path, monkeypatch):
    monkeypatch.setattr(settings, "log_dir", tmp_path / "logs")


@pytest.fixture
def session_factory():
    engine = make_engine("sqlite:///:memory:", poolclass=StaticPool)
    Base.metadata.create_all(bind=engine)
    try:
        yield sessionmaker(bind=engine)
    finally:
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture
def db_session(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client(db_session):
    from fastapi.testclient import TestClient

    def override_get_db():
        try:
            yield db_session
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()

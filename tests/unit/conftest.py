import os

os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("CACHE_BACKEND", "memory")
os.environ.setdefault("LLM_ENABLED", "false")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from tvguide.core.database import build_engine, get_db
from tvguide.models import Base, Household, Profile, TrackedTitle


@pytest.fixture
def engine():
    engine = build_engine("sqlite://", poolclass=StaticPool)
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def db(engine):
    session = sessionmaker(autocommit=False, autoflush=False, bind=engine)()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def household(db):
    household = Household(name="Test Household", owner_id="owner-1")
    db.add(household)
    db.commit()
    return household


@pytest.fixture
def profile(db, household):
    profile = Profile(household_id=household.id, name="Alex")
    db.add(profile)
    db.commit()
    return profile


@pytest.fixture
def make_title(db, household):
    def _make(tmdb_id, media_type="tv"):
        title = TrackedTitle(household_id=household.id, tmdb_id=tmdb_id, media_type=media_type)
        db.add(title)
        db.commit()
        return title
    return _make


@pytest.fixture
def show(make_title):
    return make_title(1396)


@pytest.fixture
def movie(make_title):
    return make_title(603, "movie")


@pytest.fixture
def client(engine):
    from tvguide.main import app

    Session = sessionmaker(autocommit=False, autoflush=False, bind=engine)

    def _get_test_db():
        session = Session()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = _get_test_db
    yield TestClient(app)
    app.dependency_overrides.clear()

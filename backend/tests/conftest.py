"""
Configuration partagée pour tous les tests.
Base SQLite en mémoire (StaticPool) : une seule connexion partagée par la session
de test et le client HTTP, recréée pour chaque test.
"""

import os

os.environ.setdefault("DATABASE_URL", "sqlite://")

import copy

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

import app.models  # noqa: F401
from app.database import Base, build_engine, get_db
from app.main import app

BASE_STUDENT = {
    "studentId": "S100",
    "firstName": "Alice",
    "lastName": "Martin",
    "email": "a@x.edu",
    "phone": "+15551234567",
    "dateOfBirth": "2003-04-12",
    "gender": "Female",
    "address": {
        "street": "12 College Ave",
        "city": "Boston",
        "state": "MA",
        "zipCode": "02115",
    },
    "academicInfo": {
        "major": "Computer Science",
        "expectedGraduation": "2027-05-30",
        "currentSemester": "Fall",
        "currentYear": 2,
    },
    "emergencyContact": {
        "name": "Paul Martin",
        "relationship": "Father",
        "phone": "+15557654321",
        "email": "paul.martin@x.edu",
    },
}


@pytest.fixture
def db():
    """Session SQLAlchemy sur une base SQLite en mémoire avec toutes les tables."""
    engine = build_engine("sqlite://", poolclass=StaticPool)
    Base.metadata.create_all(bind=engine)
    session = sessionmaker(autocommit=False, autoflush=False, bind=engine)()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture
def client(db):
    """Client HTTP de test branché sur la même session que la fixture db."""
    app.dependency_overrides[get_db] = lambda: db
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture
def student_payload():
    """
    Fabrique de corps de requête étudiant valides (clés camelCase).
    Les clés de premier niveau passées en argument remplacent celles par défaut.
    """
    def make(**overrides):
        payload = copy.deepcopy(BASE_STUDENT)
        payload.update(overrides)
        return payload
    return make


ADMIN = {"X-User-Role": "admin"}
FACULTY = {"X-User-Role": "faculty"}


@pytest.fixture
def admin_headers():
    return dict(ADMIN)


@pytest.fixture
def faculty_headers():
    return dict(FACULTY)

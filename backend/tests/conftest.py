"""
Configuration partagée pour tous les tests.
Override les dépendances get_db et get_caller pour éviter toute connexion
réelle à PostgreSQL et toute identité transmise par en-têtes.
"""

import uuid

import pytest
from fastapi.testclient import TestClient
from unittest.mock import MagicMock

from appel.database import get_db
from appel.dependencies import get_caller
from appel.main import app
from appel.schemas.user import Caller


@pytest.fixture
def teacher():
    return Caller(id=uuid.uuid4(), role="TEACHER")


@pytest.fixture
def student():
    return Caller(id=uuid.uuid4(), role="STUDENT")


def _make_client(caller):
    mock_db = MagicMock()
    app.dependency_overrides[get_db] = lambda: mock_db
    app.dependency_overrides[get_caller] = lambda: caller
    return TestClient(app)


@pytest.fixture
def client(teacher):
    """Client HTTP de test avec la BDD mockée, appelant = enseignant."""
    with _make_client(teacher) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture
def student_client(student):
    """Client HTTP de test avec la BDD mockée, appelant = élève."""
    with _make_client(student) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture
def anonymous_client():
    """Client sans override de get_caller : l'identité vient des en-têtes."""
    mock_db = MagicMock()
    app.dependency_overrides[get_db] = lambda: mock_db
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()

import os
import sys
from pathlib import Path
from types import SimpleNamespace

# Ajoute la racine du projet au PYTHONPATH EN PREMIER
sys.path.insert(0, str(Path(__file__).parent.parent))

# SQLite pour les tests AVANT d'importer tasktracker
SQLALCHEMY_TEST_DATABASE_URL = "sqlite:///./test.db"
os.environ["DATABASE_URL"] = SQLALCHEMY_TEST_DATABASE_URL

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

test_engine = create_engine(
    SQLALCHEMY_TEST_DATABASE_URL,
    connect_args={"check_same_thread": False}
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=test_engine)

# PATCH: remplacer le engine et SessionLocal du core.database AVANT d'importer l'app
import tasktracker.core.database
tasktracker.core.database.engine = test_engine
tasktracker.core.database.SessionLocal = TestingSessionLocal

from tasktracker.core.database import Base, get_db
from tasktracker.main import app
from tasktracker.models.project import Project
from tasktracker.models.user import User
from tasktracker.schemas.task import TaskCreate
from tasktracker.services.store import EntityStore
from tasktracker.services.task_service import create_task

def override_get_db():
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()

app.dependency_overrides[get_db] = override_get_db


@pytest.fixture(autouse=True)
def setup_teardown():
    """Crée et nettoie la DB avant/après chaque test"""
    Base.metadata.drop_all(bind=test_engine)
    Base.metadata.create_all(bind=test_engine)
    yield
    Base.metadata.drop_all(bind=test_engine)


@pytest.fixture
def client():
    """Client de test FastAPI"""
    from fastapi.testclient import TestClient
    return TestClient(app)


@pytest.fixture
def db():
    """Session DB pour les tests"""
    db = TestingSessionLocal()
    yield db
    db.close()


@pytest.fixture
def store(db):
    return EntityStore(db)


@pytest.fixture
def make_user(db):
    """Fabrique d'utilisateurs (sans bcrypt, trop lent pour les tests unitaires)"""
    def _make(username, roles=("staff",), department="it"):
        user = User(
            email=f"{username}@example.com",
            username=username,
            password_hash="not-a-real-hash",
            roles=list(roles),
            department=department
        )
        db.add(user)
        db.commit()
        db.refresh(user)
        return user
    return _make


@pytest.fixture
def users(make_user):
    """
    alice  staff   it      (propriétaire du projet)
    bob    staff   it
    carol  manager it
    dave   manager sales
    erin   admin   hr
    frank  staff   sales
    gina   staff   sales
    """
    return SimpleNamespace(
        alice=make_user("alice"),
        bob=make_user("bob"),
        carol=make_user("carol", roles=("staff", "manager")),
        dave=make_user("dave", roles=("manager",), department="sales"),
        erin=make_user("erin", roles=("admin",), department="hr"),
        frank=make_user("frank", department="sales"),
        gina=make_user("gina", department="sales"),
    )


@pytest.fixture
def project(db, users):
    project = Project(name="Website", owner_id=users.alice.id, members=[users.bob])
    db.add(project)
    db.commit()
    db.refresh(project)
    return project


@pytest.fixture
def make_task(store, project, users):
    """Crée une tâche via le service (créateur = alice par défaut)"""
    def _make(actor=None, **fields):
        actor = actor or users.alice
        fields.setdefault("title", "Write release notes")
        fields.setdefault("project_id", project.id)
        return create_task(store, TaskCreate(**fields), actor.id)
    return _make

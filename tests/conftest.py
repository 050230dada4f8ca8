import os
import tempfile

# app.main builds a module-level app on import; keep it away from the working tree.
os.environ.setdefault("POLYSHARE_DATABASE_URL", "sqlite://")
os.environ.setdefault("POLYSHARE_UPLOAD_DIR", tempfile.mkdtemp(prefix="polyshare-uploads-"))

import pytest
from fastapi.testclient import TestClient

from app.auth.auth_service import generate_token, hash_password
from app.config import Settings
from app.database import Database
from app.document.document_service import DocumentCatalogService
from app.document.storage import LocalStorage
from app.main import create_app
from app.models import Course, Faculty, Major, University, User

PASSWORD = "secret123"


def pdf_bytes(tag: str, size: int = 100) -> bytes:
    """A small PDF-looking payload; ``tag`` makes the content (and hash) unique."""
    body = b"%PDF-1.4\n" + tag.encode() + b"\n"
    return body.ljust(size - 6, b"0") + b"\n%%EOF"


@pytest.fixture(scope="session")
def password_hash():
    return hash_password(PASSWORD)


@pytest.fixture
def database(tmp_path):
    db = Database(f"sqlite:///{tmp_path / 'polyshare-test.db'}")
    db.create_all()
    yield db
    db.dispose()


@pytest.fixture
def session(database):
    with database.session() as db:
        yield db


@pytest.fixture
def storage(tmp_path):
    return LocalStorage(str(tmp_path / "uploads"))


@pytest.fixture
def catalog(session, storage):
    return DocumentCatalogService(session, storage, max_upload_bytes=1024 * 1024)


@pytest.fixture
def hierarchy(session):
    """Two universities; ids of every level keyed by short names."""
    poly = University(name="Polytechnique", city="Montréal")
    eng = Faculty(name="Engineering", university=poly)
    computer = Major(name="Computer Engineering", faculty=eng)
    electrical = Major(name="Electrical Engineering", faculty=eng)
    algorithms = Course(name="Algorithms", code="INF2010", semester=3, major=computer)
    systems = Course(name="Operating Systems", code="INF2610", semester=4, major=computer)
    circuits = Course(name="Circuits", code="ELE1600", semester=2, major=electrical)

    other = University(name="Other University", city="Québec")
    sciences = Faculty(name="Sciences", university=other)
    maths = Major(name="Mathematics", faculty=sciences)
    algebra = Course(name="Algebra", code="MTH1007", semester=1, major=maths)

    session.add_all([poly, other])
    session.commit()
    return {
        "poly": poly.id,
        "other": other.id,
        "eng": eng.id,
        "sciences": sciences.id,
        "computer": computer.id,
        "electrical": electrical.id,
        "maths": maths.id,
        "algorithms": algorithms.id,
        "systems": systems.id,
        "circuits": circuits.id,
        "algebra": algebra.id,
    }


@pytest.fixture
def make_user(session, password_hash):
    counter = {"n": 0}

    def _make(username=None, karma=0, role="user", university_id=None):
        counter["n"] += 1
        username = username or f"student{counter['n']}"
        user = User(
            email=f"{username.lower()}@example.com",
            password_hash=password_hash,
            username=username,
            role=role,
            karma_points=karma,
            university_id=university_id,
        )
        session.add(user)
        session.commit()
        return user

    return _make


def karma_of(session, user) -> int:
    session.expire_all()
    return session.get(User, user.id).karma_points


@pytest.fixture
def app(database, tmp_path):
    settings = Settings(
        _env_file=None,
        database_url=database.url,
        upload_dir=str(tmp_path / "uploads"),
        max_upload_bytes=1024 * 1024,
    )
    return create_app(settings, database=database)


@pytest.fixture
def client(app):
    with TestClient(app) as test_client:
        yield test_client


def auth_headers(user) -> dict:
    return {"Authorization": f"Bearer {generate_token(user)}"}

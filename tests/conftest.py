import itertools
import os
import tempfile

_TMP_DIR = tempfile.mkdtemp(prefix="masjid_portal_tests_")

# La configuration est lue à l'import du paquet
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["STORAGE_BACKEND"] = "local"
os.environ["LOCAL_MEDIA_DIR"] = os.path.join(_TMP_DIR, "media")
os.environ["LOG_FILE"] = os.path.join(_TMP_DIR, "logs", "tests.log")
os.environ["SECRET_KEY"] = "test-secret-key"
os.environ["ENVIRONMENT"] = "test"

import pytest
from fastapi.testclient import TestClient

from masjid_portal.core.exceptions import StorageError
from masjid_portal.core.security import get_pin_hash
from masjid_portal.database import Base, SessionLocal, engine, get_db
from masjid_portal.main import app
from masjid_portal.api.deps import get_storage
from masjid_portal.models import CommitteeMember, User
from masjid_portal.services import media_service
from masjid_portal.services.storage import StorageBackend


class InMemoryStorage(StorageBackend):
    """Bucket en mémoire; `fail_on` force l'échec d'une opération."""

    bucket = "committee_photos"

    def __init__(self):
        self.blobs = {}
        self.calls = []
        self.fail_on = {}

    def _check(self, action, *keys):
        self.calls.append((action,) + keys)
        error = self.fail_on.get(action)
        if error is not None:
            raise error

    def fail(self, action, error=None):
        self.fail_on[action] = error or StorageError(f"{action} refusé", status_code=500)

    async def upload(self, key, data, content_type):
        self._check("upload", key)
        if key in self.blobs:
            raise StorageError("The resource already exists", status_code=409)
        self.blobs[key] = data
        return self.get_public_url(key)

    async def copy(self, source_key, destination_key):
        self._check("copy", source_key, destination_key)
        if source_key not in self.blobs:
            raise StorageError("Object not found", status_code=404)
        self.blobs[destination_key] = self.blobs[source_key]

    async def remove(self, keys):
        self._check("remove", *keys)
        for key in keys:
            self.blobs.pop(key, None)

    def get_public_url(self, key):
        return f"https://storage.test/object/public/{self.bucket}/{key}"

    def resolves(self, url):
        return url.rsplit("/", 1)[-1] in self.blobs


PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 64


@pytest.fixture
def db():
    Base.metadata.create_all(bind=engine)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def storage():
    return InMemoryStorage()


@pytest.fixture(autouse=True)
def clock(monkeypatch):
    """Horodatages distincts et prévisibles pour les clés de photos."""
    ticks = itertools.count(1_700_000_000_000)
    monkeypatch.setattr(media_service, "_timestamp_ms", lambda: next(ticks))


@pytest.fixture
def client(db, storage):
    def _get_db():
        yield db

    app.dependency_overrides[get_db] = _get_db
    app.dependency_overrides[get_storage] = lambda: storage
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def make_user(db):
    def _make_user(name="Aisha", role="cashier", pin="1234", is_active=True):
        user = User(name=name, role=role, pin_hash=get_pin_hash(pin), is_active=is_active)
        db.add(user)
        db.commit()
        db.refresh(user)
        return user

    return _make_user


@pytest.fixture
def make_member(db):
    def _make_member(name="Ibrahim", designation="Président", **fields):
        member = CommitteeMember(name=name, designation=designation, **fields)
        db.add(member)
        db.commit()
        db.refresh(member)
        return member

    return _make_member


def auth_headers(client, role, pin):
    response = client.post("/api/v1/auth/login", json={"pin": pin, "role": role})
    assert response.status_code == 200, response.text
    # La session passe par l'en-tête, pas par le cookie du client de test
    client.cookies.clear()
    return {"Authorization": f"Bearer {response.json()['access_token']}"}


@pytest.fixture
def cashier_headers(client, make_user):
    make_user(name="Caissier Omar", role="cashier", pin="5678")
    return auth_headers(client, "cashier", "5678")


@pytest.fixture
def admin_headers(client, make_user):
    make_user(name="Admin Fatima", role="admin", pin="1234")
    return auth_headers(client, "admin", "1234")


@pytest.fixture
def login_as(client):
    return lambda role, pin: auth_headers(client, role, pin)


@pytest.fixture
def png():
    return PNG_BYTES

"""Shared pytest fixtures for all tests."""

from datetime import datetime, timedelta

import pytest
from fastapi.testclient import TestClient
from fastapi_mail.errors import ConnectionErrors
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from fileshare import crud, schemas
from fileshare.api import deps
from fileshare.core.exceptions import StorageError
from fileshare.db.base import Base
from fileshare.main import app
from fileshare.services.lifecycle import ShareLifecycle
from fileshare.services.upload import UploadOrchestrator
from fileshare.storage.object_store import ObjectStoreGateway


class FakeClock:
    """Naive-UTC clock that only moves when told to."""

    def __init__(self, start=None):
        self.now = start or datetime(2024, 1, 15, 12, 0, 0)

    def __call__(self):
        return self.now

    def advance(self, **kwargs):
        self.now = self.now + timedelta(**kwargs)


class FakeObjectStore(ObjectStoreGateway):
    """In-memory object store recording every call."""

    def __init__(self):
        self.blobs = {}
        self.signed = []
        self.fail_delete = False
        self.fail_put_after = None

    def put(self, key, data, content_type):
        if self.fail_put_after is not None and len(self.blobs) >= self.fail_put_after:
            raise StorageError("bucket unavailable")
        self.blobs[key] = (data, content_type)

    def get(self, key):
        if key not in self.blobs:
            raise StorageError(f"Object not found: {key}")
        return self.blobs[key][0]

    def delete(self, key):
        if self.fail_delete:
            raise StorageError("delete refused")
        self.blobs.pop(key, None)

    def public_url(self, key):
        return f"http://storage.test/file-share/{key}"

    def signed_url(self, key, filename, ttl):
        self.signed.append((key, filename, ttl))
        return f"http://storage.test/file-share/{key}?expires={int(ttl.total_seconds())}&sig=abc"


class FakeMailer:
    def __init__(self):
        self.sent = []
        self.fail = False

    async def send_message(self, message, template_name=None):
        if self.fail:
            raise ConnectionErrors("SMTP server unreachable")
        self.sent.append(message)


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def store():
    return FakeObjectStore()


@pytest.fixture
def mailer():
    return FakeMailer()


@pytest.fixture
def lifecycle(db, store, clock):
    return ShareLifecycle(db, store, clock=clock)


@pytest.fixture
def uploader(lifecycle):
    return UploadOrchestrator(lifecycle)


@pytest.fixture
def user(db):
    return crud.user.create(db, obj_in=schemas.UserCreate(fullname="Ada Lovelace", email="ada@example.com"))


@pytest.fixture
def client(session_factory, store, clock, mailer):
    """FastAPI test client wired to the in-memory database and fakes."""

    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    def override_get_lifecycle():
        session = session_factory()
        try:
            yield ShareLifecycle(session, store, clock=clock)
        finally:
            session.close()

    app.dependency_overrides[deps.get_db] = override_get_db
    app.dependency_overrides[deps.get_object_store] = lambda: store
    app.dependency_overrides[deps.get_lifecycle] = override_get_lifecycle
    app.dependency_overrides[deps.get_mailer] = lambda: mailer
    yield TestClient(app)
    app.dependency_overrides.clear()

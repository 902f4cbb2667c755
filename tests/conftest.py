import pytest
from fastapi.testclient import TestClient
from unittest.mock import MagicMock
from pydantic import BaseModel

from crealink.main import app
from crealink.models.schemas import User

ROUTER_MODULES = [
    "auth",
    "users",
    "profiles",
    "portfolio",
    "jobs",
    "projects",
    "contracts",
    "messaging",
    "notifications",
]

AUTH_HEADERS = {"Authorization": "Bearer fake-token"}


@pytest.fixture
def client():
    return TestClient(app)


@pytest.fixture
def documents():
    """In-memory documents keyed by (collection, id); values are dicts or models."""
    return {}


@pytest.fixture
def mock_firestore_ops(documents):
    """
    MagicMock standing in for FirestoreBaseModel. get/save/update/delete read and
    write `documents`; query/query_many/paginate are left for each test to set.
    """
    mock_ops = MagicMock()

    def fake_get(collection_name, document_id, pydantic_model=None):
        doc = documents.get((collection_name, document_id))
        if doc is None:
            return None
        data = doc.model_dump() if isinstance(doc, BaseModel) else dict(doc)
        # Same shape as FirestoreBaseModel._parse: the document id is merged in
        data = {"id": document_id, **data}
        return pydantic_model(**data) if pydantic_model else data

    def fake_save(collection_name, data_model, document_id=None):
        document_id = document_id or "generated-id"
        documents[(collection_name, document_id)] = dict(data_model)
        return document_id

    def fake_update(collection_name, document_id, updates):
        doc = documents.get((collection_name, document_id))
        if doc is None:
            return False
        data = doc.model_dump() if isinstance(doc, BaseModel) else dict(doc)
        data.update(updates)
        documents[(collection_name, document_id)] = data
        return True

    def fake_delete(collection_name, document_id):
        documents.pop((collection_name, document_id), None)
        return True

    mock_ops.get.side_effect = fake_get
    mock_ops.save.side_effect = fake_save
    mock_ops.update.side_effect = fake_update
    mock_ops.delete.side_effect = fake_delete
    mock_ops.query.return_value = []
    mock_ops.query_many.return_value = []
    mock_ops.get_all.return_value = []
    return mock_ops


@pytest.fixture(autouse=True)
def patched_ops(monkeypatch, mock_firestore_ops):
    """Route every router to the mock store and reject tokens unless a test logs in."""
    for name in ROUTER_MODULES:
        monkeypatch.setattr(f"crealink.routers.{name}.get_firestore_ops_instance", lambda: mock_firestore_ops)
    monkeypatch.setattr("crealink.routers.auth.decode_access_token", MagicMock(return_value=None))
    return mock_firestore_ops


@pytest.fixture
def make_user():
    def _make_user(uid="user-1", role="creator", **fields):
        fields.setdefault("display_name", f"User {uid}")
        return User(uid=uid, role=role, **fields)
    return _make_user


@pytest.fixture
def login(documents, monkeypatch):
    """Store `user` and make any bearer token decode to its uid."""
    def _login(user):
        documents[("users", user.uid)] = user
        monkeypatch.setattr("crealink.routers.auth.decode_access_token", MagicMock(return_value=user.uid))
        return AUTH_HEADERS
    return _login

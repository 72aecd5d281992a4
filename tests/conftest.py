"""Fixtures communes : application FastAPI branchée sur les doubles en mémoire."""

from __future__ import annotations

from datetime import timedelta

import pytest
from fastapi.testclient import TestClient

from formation_portal.api import deps
from formation_portal.core.security import create_access_token
from formation_portal.main import app
from formation_portal.models.firestore_models import CATEGORIES, FORMATIONS, USERS, utcnow
from formation_portal.services.identity import SessionGateway
from tests.fakes import FakeBlobStore, FakeIdentityProvider, InMemoryStore


@pytest.fixture
def store() -> InMemoryStore:
    store = InMemoryStore()
    now = utcnow()
    store.set_doc(FORMATIONS, "python", {
        "title": "Python avancé",
        "category": "Développement",
        "description": "Décorateurs, générateurs et asyncio. " * 10,
        "duration": 35,
        "places": 5,
        "price": 1200.0,
        "status": "active",
        "content": "Module 1 : rappels",
        "inscriptionCount": 2,
        "updatedAt": now,
    })
    store.set_doc(FORMATIONS, "data", {
        "title": "Data Science",
        "category": "Data Science",
        "description": "Pandas et scikit-learn",
        "duration": 20,
        "places": 0,
        "price": 990.5,
        "status": "active",
        "updatedAt": now - timedelta(days=1),
    })
    store.set_doc(FORMATIONS, "archive", {
        "title": "Ancienne formation",
        "category": "Inconnue",
        "description": "Plus proposée",
        "duration": 10,
        "places": 10,
        "price": 100,
        "status": "inactive",
    })
    store.set_doc(CATEGORIES, "dev", {"name": "Développement"})
    store.set_doc(CATEGORIES, "ds", {"name": "Data Science"})
    return store


@pytest.fixture
def provider() -> FakeIdentityProvider:
    return FakeIdentityProvider()


@pytest.fixture
def blob_store() -> FakeBlobStore:
    return FakeBlobStore()


@pytest.fixture
def gateway(provider, store) -> SessionGateway:
    return SessionGateway(provider, store)


@pytest.fixture
def client(store, provider, blob_store):
    app.dependency_overrides[deps.get_store] = lambda: store
    app.dependency_overrides[deps.get_identity_provider] = lambda: provider
    app.dependency_overrides[deps.get_blob_store] = lambda: blob_store
    yield TestClient(app)
    app.dependency_overrides.clear()


def _session_headers(provider, store, email: str, role: str | None) -> dict[str, str]:
    account = provider.add_account(email, display_name="Camille Martin")
    if role is not None:
        store.set_doc(USERS, account.uid, {"email": email, "nom": "Martin", "prenom": "Camille", "role": role})
    token = create_access_token(data={"sub": account.uid})
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def user_headers(provider, store) -> dict[str, str]:
    return _session_headers(provider, store, "user@example.com", "user")


@pytest.fixture
def admin_headers(provider, store) -> dict[str, str]:
    return _session_headers(provider, store, "admin@example.com", "admin")

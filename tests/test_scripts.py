from types import SimpleNamespace

from formation_portal.models.firestore_models import ACTIVITY, CATEGORIES, USERS
from scripts import make_admin as make_admin_script
from scripts.seed_firestore import seed
from tests.fakes import InMemoryStore


def test_seed_is_idempotent():
    store = InMemoryStore()
    seed(store)
    seed(store)
    names = sorted(d["name"] for d in store.list_docs(CATEGORIES))
    assert names == sorted(["Développement", "Data Science", "Cybersécurité", "Marketing", "Management", "Design"])
    assert len(store.list_docs(ACTIVITY)) == 1


def test_make_admin_keeps_profile(monkeypatch):
    store = InMemoryStore()
    store.set_doc(USERS, "uid-9", {"email": "a@example.com", "nom": "Martin", "role": "user"})
    monkeypatch.setattr(make_admin_script.auth, "get_user_by_email", lambda email: SimpleNamespace(uid="uid-9"))

    assert make_admin_script.make_admin("a@example.com", store, dry_run=True) == "uid-9"
    assert store.get_doc(USERS, "uid-9")["role"] == "user"

    make_admin_script.make_admin("a@example.com", store)
    profile = store.get_doc(USERS, "uid-9")
    assert profile["role"] == "admin"
    assert profile["nom"] == "Martin"

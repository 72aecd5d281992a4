"""FirestoreStore sur un client Firestore simulé (MagicMock)."""

from types import SimpleNamespace
from unittest.mock import MagicMock

import pytest
from firebase_admin import firestore

from formation_portal.core.exceptions import FormationFullError, NotFoundError
from formation_portal.models import firestore_models
from formation_portal.models.firestore_models import FORMATIONS, INSCRIPTIONS, USERS, FirestoreStore


def _snapshot(data, doc_id="doc"):
    snapshot = MagicMock()
    snapshot.exists = data is not None
    snapshot.id = doc_id
    snapshot.to_dict.return_value = data
    return snapshot


@pytest.fixture
def collections():
    return {}


@pytest.fixture
def db(collections):
    db = MagicMock()
    db.collection.side_effect = lambda name: collections.setdefault(name, MagicMock(name=name))
    return db


@pytest.fixture
def firestore_store(db, monkeypatch):
    # la transaction est passée directement à la fonction, sans relance
    monkeypatch.setattr(firestore_models.firestore, "transactional", lambda fn: fn)
    return FirestoreStore(db)


@pytest.fixture
def refs(db):
    formation_ref = db.collection(FORMATIONS).document.return_value
    inscription_ref = db.collection(INSCRIPTIONS).document.return_value
    inscription_ref.id = "ins-1"
    return formation_ref, inscription_ref


def test_enroll_takes_one_place_in_transaction(firestore_store, db, refs):
    formation_ref, inscription_ref = refs
    formation_ref.get.return_value = _snapshot({"places": 3, "inscriptionCount": 7}, "python")

    assert firestore_store.enroll("python", {"nom": "Martin"}) == "ins-1"

    transaction = db.transaction.return_value
    db.collection(FORMATIONS).document.assert_called_with("python")
    formation_ref.get.assert_called_once_with(transaction=transaction)
    transaction.set.assert_called_once_with(inscription_ref, {"nom": "Martin"})
    ref, update = transaction.update.call_args.args
    assert ref is formation_ref
    assert update["places"] == 2
    assert isinstance(update["inscriptionCount"], firestore.Increment)
    assert update["inscriptionCount"].value == 1


@pytest.mark.parametrize("places", [0, -1, None])
def test_enroll_on_full_formation_writes_nothing(firestore_store, db, refs, places):
    formation_ref, inscription_ref = refs
    formation_ref.get.return_value = _snapshot({"places": places}, "data")

    with pytest.raises(FormationFullError):
        firestore_store.enroll("data", {"nom": "Martin"})

    transaction = db.transaction.return_value
    transaction.set.assert_not_called()
    transaction.update.assert_not_called()
    inscription_ref.set.assert_not_called()


def test_enroll_on_missing_formation_writes_nothing(firestore_store, db, refs):
    formation_ref, _ = refs
    formation_ref.get.return_value = _snapshot(None, "ghost")

    with pytest.raises(NotFoundError):
        firestore_store.enroll("ghost", {"nom": "Martin"})

    transaction = db.transaction.return_value
    transaction.set.assert_not_called()
    transaction.update.assert_not_called()


def test_create_and_get_doc(firestore_store, db):
    ref = db.collection(USERS).document.return_value
    ref.id = "new-id"
    assert firestore_store.create_doc(USERS, {"email": "a@example.com"}) == "new-id"
    ref.set.assert_called_once_with({"email": "a@example.com"})

    ref.get.return_value = _snapshot({"email": "a@example.com"}, "new-id")
    assert firestore_store.get_doc(USERS, "new-id") == {"email": "a@example.com", "id": "new-id"}

    ref.get.return_value = _snapshot(None, "missing")
    assert firestore_store.get_doc(USERS, "missing") is None


def test_set_doc_merges(firestore_store, db):
    firestore_store.set_doc(USERS, "u1", {"role": "admin"}, merge=True)
    db.collection(USERS).document.assert_called_with("u1")
    db.collection(USERS).document.return_value.set.assert_called_once_with({"role": "admin"}, merge=True)


def test_delete_missing_doc(firestore_store, db):
    ref = db.collection(FORMATIONS).document.return_value
    ref.get.return_value = _snapshot(None, "gone")
    assert firestore_store.delete_doc(FORMATIONS, "gone") is False
    ref.delete.assert_not_called()

    ref.get.return_value = _snapshot({"title": "Python"}, "python")
    assert firestore_store.delete_doc(FORMATIONS, "python") is True
    ref.delete.assert_called_once_with()


def test_list_docs_builds_filtered_query(firestore_store, db):
    query = db.collection(FORMATIONS)
    query.where.return_value = query
    query.order_by.return_value = query
    query.limit.return_value = query
    query.stream.return_value = [_snapshot({"title": "Python"}, "python")]

    rows = firestore_store.list_docs(
        FORMATIONS, where=[("status", "==", "active")], order_by="updatedAt", descending=True, limit=3,
    )

    assert rows == [{"title": "Python", "id": "python"}]
    field_filter = query.where.call_args.kwargs["filter"]
    assert isinstance(field_filter, firestore.FieldFilter)
    assert (field_filter.field_path, field_filter.op_string, field_filter.value) == ("status", "==", "active")
    query.order_by.assert_called_once_with("updatedAt", direction=firestore.Query.DESCENDING)
    query.limit.assert_called_once_with(3)


def test_list_docs_without_options_streams_collection(firestore_store, db):
    query = db.collection(USERS)
    query.stream.return_value = []
    assert firestore_store.list_docs(USERS) == []
    query.where.assert_not_called()
    query.order_by.assert_not_called()
    query.limit.assert_not_called()


def test_count_uses_aggregation(firestore_store, db):
    query = db.collection(FORMATIONS)
    query.where.return_value = query
    query.count.return_value.get.return_value = [[SimpleNamespace(value=3)]]

    assert firestore_store.count(FORMATIONS, where=[("status", "==", "active")]) == 3
    query.count.assert_called_once_with(alias="total")

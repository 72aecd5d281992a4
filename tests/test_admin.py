"""Console d'administration : accès, tableau de bord, formations, inscriptions."""

import io
from datetime import timedelta

import pytest

from formation_portal.core.exceptions import AccessDeniedError, NotFoundError, PortalError, StoreError
from formation_portal.models.firestore_models import (
    ACTIVITY,
    FORMATIONS,
    INSCRIPTIONS,
    PAIEMENTS,
    USERS,
    utcnow,
)
from formation_portal.schemas.admin import FormationIn
from formation_portal.schemas.auth import Account
from formation_portal.services.admin_console import AdminConsole, ensure_admin, month_start

API = "/api/v1/admin"


@pytest.fixture
def console(store, blob_store):
    return AdminConsole(store, blob_store)


@pytest.fixture
def payments(store):
    now = utcnow()
    store.create_doc(PAIEMENTS, {"amount": 1000, "status": "completed", "date": now})
    store.create_doc(PAIEMENTS, {"amount": "250.5", "status": "completed", "date": month_start(now)})
    store.create_doc(PAIEMENTS, {"amount": 400, "status": "pending", "date": now})
    store.create_doc(PAIEMENTS, {"amount": 999, "status": "completed", "date": month_start(now) - timedelta(days=1)})


def test_ensure_admin():
    assert ensure_admin(Account(uid="a", role="admin")).uid == "a"
    with pytest.raises(AccessDeniedError):
        ensure_admin(Account(uid="u", role="user"))
    with pytest.raises(AccessDeniedError):
        ensure_admin(Account(uid="u"))


def test_revenue_counts_completed_payments_of_current_month(console, payments):
    assert console.monthly_revenue() == 1250.5
    assert console.load_dashboard_data().total_revenue == "1250.5€"


def test_revenue_reads_missing_amounts_as_zero(console, store):
    now = utcnow()
    store.create_doc(PAIEMENTS, {"amount": None, "status": "completed", "date": now})
    store.create_doc(PAIEMENTS, {"amount": float("nan"), "status": "completed", "date": now})
    store.create_doc(PAIEMENTS, {"amount": 80, "status": "completed", "date": now})
    assert console.monthly_revenue() == 80


def test_legacy_inscription_shape(console, store):
    inscription_id = store.create_doc(INSCRIPTIONS, {
        "nom": "Martin", "prenom": "Camille", "telephone": None,
        "id": "python", "titre": "Python avancé", "mode": "presentiel", "type": "cpf",
        "statut": "pending", "createdAt": utcnow(),
    })
    inscription = console.view_inscription(inscription_id)
    assert inscription.financement == "cpf"
    assert inscription.telephone == ""
    assert [row.formation for row in console.load_all_inscriptions()] == ["Python avancé"]


def test_unreadable_profile_is_skipped(console, store):
    store.set_doc(USERS, "u1", {"email": "a@example.com", "nom": "Martin"})
    store.set_doc(USERS, "u2", {"email": "b@example.com", "nom": 42})
    assert [row.id for row in console.load_users()] == ["u1"]


def test_dashboard_counts_and_feeds(console, store):
    now = utcnow()
    store.set_doc(USERS, "u1", {"email": "a@example.com", "role": "user"})
    for i in range(12):
        store.create_doc(INSCRIPTIONS, {
            "nom": "Martin", "prenom": f"C{i}", "titre": "Python avancé",
            "statut": "pending", "createdAt": now - timedelta(minutes=i),
        })
    store.create_doc(ACTIVITY, {"message": "Bienvenue", "icon": "star", "timestamp": now})

    dashboard = console.load_dashboard_data()

    assert dashboard.total_formations == 2
    assert dashboard.total_inscriptions == 12
    assert dashboard.total_users == 1
    assert dashboard.total_revenue == "0€"
    assert len(dashboard.recent_inscriptions) == 10
    assert dashboard.recent_inscriptions[0].name == "Martin C0"
    assert dashboard.recent_inscriptions[0].statut_label == "En attente"
    assert dashboard.recent_activity[0].icon == "fas fa-star"
    assert dashboard.chart.labels == ["Développement", "Data Science", "Cybersécurité", "Marketing", "Management"]
    assert dashboard.chart.datasets[0].data == [30, 20, 15, 20, 15]


def test_feed_failure_yields_empty_feed(console, store):
    store.fail_on.add(ACTIVITY)
    assert console.load_dashboard_data().recent_activity == []


def test_count_failure_surfaces_generic_error(console, store):
    store.fail_on.add(USERS)
    with pytest.raises(StoreError) as excinfo:
        console.load_dashboard_data()
    assert excinfo.value.message == "Erreur lors du chargement des données"


def test_admin_rows_include_inactive_formations(console):
    rows = {row.id: row for row in console.load_formations()}
    assert set(rows) == {"python", "data", "archive"}
    assert rows["archive"].status_label == "Inactif"
    assert rows["archive"].image_url == "https://via.placeholder.com/50"
    assert rows["data"].inscription_count == 0


def test_create_formation_with_image(console, store, blob_store):
    payload = FormationIn(title="Kubernetes", category="Développement", duration=14, places=12, price=800)
    result = console.save_formation(payload, image=io.BytesIO(b"png"), image_name="k8s.png", content_type="image/png")

    saved = store.get_doc(FORMATIONS, result.id)
    assert saved["imageUrl"].endswith("_k8s.png")
    assert saved["inscriptionCount"] == 0
    assert saved["updatedAt"] is not None
    assert blob_store.uploads == [("k8s.png", b"png", "image/png")]


def test_update_missing_formation(console):
    with pytest.raises(NotFoundError):
        console.save_formation(FormationIn(title="X", category="Y"), formation_id="missing")


def test_delete_twice(console, store):
    console.delete_formation("python")
    assert store.get_doc(FORMATIONS, "python") is None
    with pytest.raises(NotFoundError):
        console.delete_formation("python")


def test_edit_inscription_status(console, store):
    inscription_id = store.create_doc(INSCRIPTIONS, {"nom": "Martin", "statut": "pending"})
    updated = console.edit_inscription(inscription_id, "confirmed")
    assert updated.statut == "confirmed"
    assert updated.updated_at is not None
    with pytest.raises(PortalError):
        console.edit_inscription(inscription_id, "archived")
    with pytest.raises(NotFoundError):
        console.edit_inscription("missing", "cancelled")


# --- HTTP ---

def test_dashboard_requires_session(client):
    assert client.get(f"{API}/dashboard").status_code == 401


def test_dashboard_rejects_non_admin(client, user_headers):
    response = client.get(f"{API}/dashboard", headers=user_headers)
    assert response.status_code == 403
    assert response.json()["detail"] == "Accès refusé. Seuls les administrateurs peuvent accéder à cette page."


def test_account_without_profile_is_rejected(client, provider):
    from formation_portal.core.security import create_access_token

    account = provider.add_account("ghost@example.com")
    headers = {"Authorization": f"Bearer {create_access_token(data={'sub': account.uid})}"}
    assert client.get(f"{API}/formations", headers=headers).status_code == 403


def test_dashboard_for_admin(client, admin_headers, payments):
    response = client.get(f"{API}/dashboard", headers=admin_headers)
    assert response.status_code == 200
    body = response.json()
    assert body["totalFormations"] == 2
    assert body["totalUsers"] == 1
    assert body["totalRevenue"] == "1250.5€"
    assert body["formationsChart"]["datasets"][0]["backgroundColor"][0] == "#3498db"


def test_admin_info(client, admin_headers):
    body = client.get(f"{API}/me", headers=admin_headers).json()
    assert body["display_name"] == "Camille Martin"


def test_create_formation_form(client, admin_headers, blob_store):
    response = client.post(
        f"{API}/formations",
        headers=admin_headers,
        data={"title": "Figma", "category": "Design", "duration": "21", "places": "8", "price": "450"},
        files={"image": ("figma.png", b"img", "image/png")},
    )
    assert response.status_code == 201
    formation_id = response.json()["id"]
    body = client.get(f"{API}/formations/{formation_id}", headers=admin_headers).json()
    assert body["title"] == "Figma"
    assert body["imageUrl"].endswith("_figma.png")
    assert len(blob_store.uploads) == 1


def test_create_formation_rejects_negative_places(client, admin_headers):
    response = client.post(
        f"{API}/formations",
        headers=admin_headers,
        data={"title": "Figma", "category": "Design", "places": "-1"},
    )
    assert response.status_code == 422


def test_update_missing_formation_is_404(client, admin_headers):
    response = client.put(
        f"{API}/formations/missing",
        headers=admin_headers,
        data={"title": "X", "category": "Y"},
    )
    assert response.status_code == 404


def test_deleted_formation_leaves_public_catalog(client, admin_headers):
    assert client.delete(f"{API}/formations/python", headers=admin_headers).status_code == 200
    ids = [card["id"] for card in client.get("/api/v1/formations/").json()]
    assert "python" not in ids
    assert client.delete(f"{API}/formations/python", headers=admin_headers).status_code == 404


def test_inscriptions_and_users(client, admin_headers, store):
    inscription_id = store.create_doc(INSCRIPTIONS, {
        "nom": "Martin", "prenom": "Camille", "titre": "Python avancé",
        "statut": "pending", "createdAt": utcnow(),
    })
    rows = client.get(f"{API}/inscriptions", headers=admin_headers).json()
    assert [r["id"] for r in rows] == [inscription_id]

    response = client.patch(f"{API}/inscriptions/{inscription_id}", headers=admin_headers,
                            json={"statut": "completed"})
    assert response.status_code == 200
    assert response.json()["statut"] == "completed"
    assert client.patch(f"{API}/inscriptions/{inscription_id}", headers=admin_headers,
                        json={"statut": "lost"}).status_code == 400

    users = client.get(f"{API}/users", headers=admin_headers).json()
    assert [u["email"] for u in users] == ["admin@example.com"]

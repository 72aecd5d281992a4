"""
Script d'initialisation Firestore : catégories de formation par défaut et
message de bienvenue du fil d'activité.
Usage: python scripts/seed_firestore.py
"""
from formation_portal.core.firebase_connector import initialize_firebase
from formation_portal.models.firestore_models import ACTIVITY, CATEGORIES, FirestoreStore, utcnow
from formation_portal.services.catalog import CATEGORY_COLORS

WELCOME_MESSAGE = "Bienvenue sur la console d'administration"


def seed(store=None):
    if store is None:
        initialize_firebase()
        store = FirestoreStore()

    existing = {d.get("name"): d["id"] for d in store.list_docs(CATEGORIES)}
    for name in CATEGORY_COLORS:
        if name in existing:
            print(f"Catégorie '{name}' existe déjà (id={existing[name]})")
        else:
            doc_id = store.create_doc(CATEGORIES, {"name": name})
            print(f"Catégorie '{name}' créée (id={doc_id})")

    if store.list_docs(ACTIVITY, limit=1):
        print("Le fil d'activité contient déjà des entrées.")
    else:
        doc_id = store.create_doc(ACTIVITY, {"message": WELCOME_MESSAGE, "icon": "star", "timestamp": utcnow()})
        print(f"Activité de bienvenue créée (id={doc_id})")


if __name__ == "__main__":
    seed()

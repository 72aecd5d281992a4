"""
Modèles des documents Firestore et accès au magasin de documents.
"""
from formation_portal.models.firestore_models import (
    Activity,
    Category,
    Formation,
    FirestoreStore,
    Inscription,
    Payment,
    UserProfile,
)

__all__ = ["Activity", "Category", "Formation", "FirestoreStore", "Inscription", "Payment", "UserProfile"]

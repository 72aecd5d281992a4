"""
Donne le rôle « admin » à un utilisateur existant.
Usage: python scripts/make_admin.py email@example.com [--dry-run]
"""
import argparse

from firebase_admin import auth

from formation_portal.core.firebase_connector import initialize_firebase
from formation_portal.models.firestore_models import USERS, FirestoreStore, utcnow


def make_admin(email: str, store, dry_run: bool = False) -> str:
    record = auth.get_user_by_email(email)
    if not dry_run:
        store.set_doc(USERS, record.uid, {"email": email, "role": "admin", "updatedAt": utcnow()}, merge=True)
    return record.uid


def main():
    parser = argparse.ArgumentParser()
    parser.add_argument("email", help="Email du compte Firebase")
    parser.add_argument("--dry-run", action="store_true", help="Affiche le compte sans le modifier")
    args = parser.parse_args()

    initialize_firebase()
    uid = make_admin(args.email, FirestoreStore(), dry_run=args.dry_run)
    if args.dry_run:
        print(f"Dry run : {args.email} (uid={uid}) n'a pas été modifié.")
    else:
        print(f"Rôle admin attribué à {args.email} (uid={uid})")


if __name__ == "__main__":
    main()

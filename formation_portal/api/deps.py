"""
Dépendances FastAPI : collaborateurs Firebase, services, utilisateur courant.
"""
from functools import lru_cache
from typing import Optional
import logging

from fastapi import Depends, HTTPException, status

from formation_portal.core.config import settings
from formation_portal.core.exceptions import AuthError
from formation_portal.core.security import decode_token_payload, issued_before_revocation, oauth2_scheme
from formation_portal.models.firestore_models import FirestoreStore
from formation_portal.schemas.auth import Account
from formation_portal.services.admin_console import AdminConsole, ensure_admin
from formation_portal.services.catalog import CatalogReader
from formation_portal.services.identity import FirebaseIdentityProvider, SessionGateway
from formation_portal.services.storage import FirebaseBlobStore
from formation_portal.services.wizard import InscriptionWizard

logger = logging.getLogger(__name__)


@lru_cache
def get_store() -> FirestoreStore:
    return FirestoreStore()


@lru_cache
def get_identity_provider() -> FirebaseIdentityProvider:
    return FirebaseIdentityProvider()


@lru_cache
def get_blob_store() -> FirebaseBlobStore:
    return FirebaseBlobStore(settings.FIREBASE_STORAGE_BUCKET)


def log_auth_state(account: Optional[Account]) -> None:
    if account is None:
        logger.info("Auth state changed: signed out")
    else:
        logger.info("Auth state changed: %s signed in (role=%s)", account.uid, account.role)


def get_gateway(
    provider=Depends(get_identity_provider),
    store=Depends(get_store),
) -> SessionGateway:
    gateway = SessionGateway(provider, store)
    gateway.on_auth_state_changed(log_auth_state)
    return gateway


def get_catalog(store=Depends(get_store)) -> CatalogReader:
    return CatalogReader(store)


def get_wizard(
    store=Depends(get_store),
    gateway: SessionGateway = Depends(get_gateway),
) -> InscriptionWizard:
    return InscriptionWizard(store, gateway)


def get_admin_console(
    store=Depends(get_store),
    blob_store=Depends(get_blob_store),
) -> AdminConsole:
    return AdminConsole(store, blob_store, feed_limit=settings.RECENT_FEED_LIMIT)


def get_optional_user(
    token: Optional[str] = Depends(oauth2_scheme),
    provider=Depends(get_identity_provider),
    gateway: SessionGateway = Depends(get_gateway),
) -> Optional[Account]:
    """Compte de la session, ou None si aucun jeton valide n'est fourni.

    Le jeton local (JWT) est essayé d'abord, puis un ID token Firebase.
    Un jeton local émis avant la dernière déconnexion est refusé.
    """
    if not token:
        return None
    try:
        payload = decode_token_payload(token)
        if payload and payload.get("sub"):
            account = provider.get_user(payload["sub"])
            if issued_before_revocation(payload, account.tokens_valid_after):
                logger.info("Session token for %s issued before logout", account.uid)
                return None
        else:
            account = provider.verify_id_token(token)
    except AuthError as e:
        logger.info("Session token rejected: %s", e.code)
        return None
    return gateway.attach_role(account)


def get_current_user(account: Optional[Account] = Depends(get_optional_user)) -> Account:
    if account is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Could not validate credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return account


def require_admin(account: Account = Depends(get_current_user)) -> Account:
    return ensure_admin(account)

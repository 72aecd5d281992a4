"""
Passerelle de session : inscription, connexion (email / Google), déconnexion,
réinitialisation du mot de passe.

Le SDK Admin couvre la création de comptes, la vérification des ID tokens et la
révocation des sessions. La connexion par mot de passe et l'envoi de l'email de
réinitialisation passent par l'API REST Identity Toolkit.
"""
from typing import Any, Callable, Dict, List, Optional, Tuple
import logging

import httpx
from email_validator import EmailNotValidError, validate_email
from firebase_admin import auth as firebase_auth
from firebase_admin import exceptions as firebase_exceptions

from formation_portal.core.config import settings
from formation_portal.core.exceptions import AuthError
from formation_portal.core.security import create_access_token
from formation_portal.models.firestore_models import USERS, utcnow
from formation_portal.schemas.auth import DEFAULT_AVATAR_URL, Account, MenuLink, Session, UserMenu

logger = logging.getLogger(__name__)

AuthListener = Callable[[Optional[Account]], None]

# Erreurs REST Identity Toolkit -> codes du fournisseur
REST_ERROR_CODES: Dict[str, str] = {
    "EMAIL_EXISTS": "auth/email-already-in-use",
    "INVALID_EMAIL": "auth/invalid-email",
    "MISSING_EMAIL": "auth/invalid-email",
    "OPERATION_NOT_ALLOWED": "auth/operation-not-allowed",
    "PASSWORD_LOGIN_DISABLED": "auth/operation-not-allowed",
    "WEAK_PASSWORD": "auth/weak-password",
    "USER_DISABLED": "auth/user-disabled",
    "EMAIL_NOT_FOUND": "auth/user-not-found",
    "USER_NOT_FOUND": "auth/user-not-found",
    "INVALID_PASSWORD": "auth/wrong-password",
    "INVALID_LOGIN_CREDENTIALS": "auth/wrong-password",
    "TOO_MANY_ATTEMPTS_TRY_LATER": "auth/too-many-requests",
}


def rest_error_code(message: Optional[str]) -> Optional[str]:
    """'WEAK_PASSWORD : Password should be...' -> 'auth/weak-password'"""
    if not message:
        return None
    key = message.split(":", 1)[0].strip()
    return REST_ERROR_CODES.get(key)


def admin_error_code(error: Exception) -> Optional[str]:
    if isinstance(error, firebase_auth.EmailAlreadyExistsError):
        return "auth/email-already-in-use"
    if isinstance(error, firebase_auth.UserNotFoundError):
        return "auth/user-not-found"
    if isinstance(error, firebase_auth.UserDisabledError):
        return "auth/user-disabled"
    if isinstance(error, ValueError):
        text = str(error).lower()
        if "email" in text:
            return "auth/invalid-email"
        if "password" in text:
            return "auth/weak-password"
        return None
    if isinstance(error, firebase_exceptions.ResourceExhaustedError):
        return "auth/too-many-requests"
    if isinstance(error, firebase_exceptions.UnavailableError):
        return "auth/network-request-failed"
    return None


def split_display_name(display_name: Optional[str]) -> Tuple[str, str]:
    """(prenom, nom) : premier et deuxième mots du nom affiché."""
    parts = (display_name or "").split(" ")
    prenom = parts[0] if parts else ""
    nom = parts[1] if len(parts) > 1 else ""
    return prenom, nom


def _account_from_record(record: Any) -> Account:
    valid_after_ms = getattr(record, "tokens_valid_after_timestamp", None)
    return Account(
        uid=record.uid,
        email=record.email,
        display_name=record.display_name,
        photo_url=record.photo_url,
        disabled=bool(getattr(record, "disabled", False)),
        tokens_valid_after=valid_after_ms / 1000 if valid_after_ms else None,
    )


class FirebaseIdentityProvider:
    """Firebase Authentication (SDK Admin + REST)."""

    def __init__(self, api_key: Optional[str] = None, base_url: Optional[str] = None,
                 http_client: Optional[httpx.Client] = None):
        self.api_key = api_key or settings.FIREBASE_API_KEY
        self.base_url = (base_url or settings.IDENTITY_TOOLKIT_URL).rstrip("/")
        self.http = http_client or httpx.Client(timeout=10.0)

    def _post(self, endpoint: str, payload: dict) -> dict:
        try:
            response = self.http.post(
                f"{self.base_url}/accounts:{endpoint}",
                params={"key": self.api_key},
                json=payload,
            )
        except httpx.HTTPError as e:
            logger.error("Identity Toolkit request %s failed: %s", endpoint, e)
            raise AuthError("auth/network-request-failed")
        if response.status_code >= 400:
            try:
                message = response.json().get("error", {}).get("message")
            except ValueError:
                message = None
            logger.info("Identity Toolkit %s rejected: %s", endpoint, message)
            raise AuthError(rest_error_code(message))
        return response.json()

    def create_user(self, email: str, password: str, display_name: Optional[str] = None) -> Account:
        try:
            record = firebase_auth.create_user(email=email, password=password, display_name=display_name or None)
        except (firebase_exceptions.FirebaseError, ValueError) as e:
            raise AuthError(admin_error_code(e))
        return _account_from_record(record)

    def update_display_name(self, uid: str, display_name: str) -> None:
        try:
            firebase_auth.update_user(uid, display_name=display_name)
        except (firebase_exceptions.FirebaseError, ValueError) as e:
            raise AuthError(admin_error_code(e))

    def sign_in_with_password(self, email: str, password: str) -> Account:
        data = self._post("signInWithPassword", {
            "email": email,
            "password": password,
            "returnSecureToken": True,
        })
        return self.get_user(data["localId"])

    def verify_id_token(self, id_token: str) -> Account:
        try:
            claims = firebase_auth.verify_id_token(id_token, check_revoked=True)
        except firebase_auth.UserDisabledError:
            raise AuthError("auth/user-disabled")
        except (firebase_exceptions.FirebaseError, ValueError) as e:
            logger.info("ID token rejected: %s", e)
            raise AuthError(admin_error_code(e))
        return self.get_user(claims["uid"])

    def get_user(self, uid: str) -> Account:
        try:
            record = firebase_auth.get_user(uid)
        except (firebase_exceptions.FirebaseError, ValueError) as e:
            raise AuthError(admin_error_code(e))
        return _account_from_record(record)

    def revoke_sessions(self, uid: str) -> None:
        firebase_auth.revoke_refresh_tokens(uid)

    def send_password_reset(self, email: str) -> None:
        self._post("sendOobCode", {"requestType": "PASSWORD_RESET", "email": email})


class SessionGateway:
    """Point d'entrée unique des opérations d'identité.

    Les écouteurs enregistrés via `on_auth_state_changed` sont appelés après
    chaque connexion (avec le compte) et chaque déconnexion (avec None).
    """

    def __init__(self, provider, store):
        self.provider = provider
        self.store = store
        self._listeners: List[AuthListener] = []

    def on_auth_state_changed(self, listener: AuthListener) -> None:
        self._listeners.append(listener)

    def _notify(self, account: Optional[Account]) -> None:
        for listener in list(self._listeners):
            try:
                listener(account)
            except Exception:
                logger.exception("Auth state listener failed")

    def attach_role(self, account: Account) -> Account:
        profile = self.store.get_doc(USERS, account.uid) or {}
        account.role = profile.get("role")
        return account

    def create_profile(self, account: Account, profile: dict) -> None:
        now = utcnow()
        self.store.set_doc(USERS, account.uid, {
            **profile,
            "email": account.email,
            "role": "user",
            "createdAt": now,
            "updatedAt": now,
        })

    def register(self, email: str, password: str, profile: dict) -> Account:
        try:
            validate_email(email, check_deliverability=False)
        except EmailNotValidError:
            raise AuthError("auth/invalid-email")
        account = self.provider.create_user(email, password)
        display_name = f"{profile.get('prenom', '')} {profile.get('nom', '')}".strip()
        self.provider.update_display_name(account.uid, display_name)
        account.display_name = display_name
        self.create_profile(account, profile)
        account.role = "user"
        logger.info("Registered %s (%s)", account.uid, email)
        self._notify(account)
        return account

    def login(self, email: str, password: str) -> Account:
        account = self.attach_role(self.provider.sign_in_with_password(email, password))
        logger.info("Signed in %s", account.uid)
        self._notify(account)
        return account

    def login_with_federated_provider(self, id_token: str) -> Account:
        account = self.provider.verify_id_token(id_token)
        if self.store.get_doc(USERS, account.uid) is None:
            prenom, nom = split_display_name(account.display_name)
            self.create_profile(account, {"nom": nom, "prenom": prenom})
        account = self.attach_role(account)
        logger.info("Signed in %s with federated provider", account.uid)
        self._notify(account)
        return account

    def logout(self, account: Account) -> str:
        try:
            self.provider.revoke_sessions(account.uid)
        except Exception:
            logger.exception("Erreur de déconnexion")
        self._notify(None)
        return "index"

    def reset_password(self, email: str) -> None:
        self.provider.send_password_reset(email)

    def open_session(self, account: Account) -> Session:
        token = create_access_token(data={"sub": account.uid})
        return Session(access_token=token, user=account)


def user_menu(account: Optional[Account]) -> UserMenu:
    if account is None:
        return UserMenu(signed_in=False, links=[
            MenuLink(label="Connexion", href="login", css_class="btn btn-outline"),
            MenuLink(label="Inscription", href="register", css_class="btn btn-primary"),
        ])
    return UserMenu(
        signed_in=True,
        display_name=account.display_name or "Utilisateur",
        avatar_url=account.photo_url or DEFAULT_AVATAR_URL,
        links=[
            MenuLink(label="Mon compte", href="dashboard", icon="fas fa-user"),
            MenuLink(label="Déconnexion", href="logout", icon="fas fa-sign-out-alt"),
        ],
    )

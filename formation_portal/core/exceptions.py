"""
Exceptions métier de l'application
"""
from typing import Dict, List, Optional


GENERIC_AUTH_MESSAGE = "Une erreur est survenue. Veuillez réessayer."

AUTH_ERROR_MESSAGES: Dict[str, str] = {
    "auth/email-already-in-use": "Cet email est déjà utilisé.",
    "auth/invalid-email": "Email invalide.",
    "auth/operation-not-allowed": "Opération non autorisée.",
    "auth/weak-password": "Le mot de passe doit contenir au moins 6 caractères.",
    "auth/user-disabled": "Ce compte a été désactivé.",
    "auth/user-not-found": "Aucun compte avec cet email.",
    "auth/wrong-password": "Mot de passe incorrect.",
    "auth/too-many-requests": "Trop de tentatives. Réessayez plus tard.",
    "auth/network-request-failed": "Erreur réseau. Vérifiez votre connexion.",
}


def get_error_message(error_code: Optional[str]) -> str:
    """Message utilisateur pour un code d'erreur du fournisseur d'identité."""
    return AUTH_ERROR_MESSAGES.get(error_code or "", GENERIC_AUTH_MESSAGE)


class PortalError(Exception):
    """Exception de base pour l'application"""
    status_code = 400

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class AuthError(PortalError):
    """Erreur remontée par le fournisseur d'identité"""

    def __init__(self, code: Optional[str]):
        super().__init__(get_error_message(code))
        self.code = code


class AccessDeniedError(PortalError):
    """Exception pour les permissions insuffisantes"""
    status_code = 403

    def __init__(self, message: str = "Accès refusé. Seuls les administrateurs peuvent accéder à cette page."):
        super().__init__(message)


class NotFoundError(PortalError):
    status_code = 404

    def __init__(self, collection: str, doc_id: str):
        super().__init__(f"{collection} '{doc_id}' introuvable")
        self.collection = collection
        self.doc_id = doc_id


class StepValidationError(PortalError):
    """Une étape du formulaire d'inscription n'est pas valide"""
    status_code = 422

    def __init__(self, step: int, errors: Dict[str, str]):
        super().__init__("Veuillez corriger les erreurs dans le formulaire")
        self.step = step
        self.errors = errors

    @property
    def first_error_field(self) -> Optional[str]:
        return next(iter(self.errors), None)

    def to_list(self) -> List[Dict[str, str]]:
        return [{"field": field, "message": msg} for field, msg in self.errors.items()]


class FormationFullError(PortalError):
    """Plus aucune place disponible sur la formation"""
    status_code = 409

    def __init__(self, formation_id: str):
        super().__init__("Cette formation est complète.")
        self.formation_id = formation_id


class InscriptionError(PortalError):
    """Échec générique de l'enregistrement d'une inscription"""
    status_code = 500

    def __init__(self, message: str = "Une erreur est survenue lors de l'inscription. Veuillez réessayer."):
        super().__init__(message)


class StoreError(PortalError):
    """Échec de lecture ou d'écriture dans Firestore"""
    status_code = 500

"""
Schémas d'authentification
"""
from typing import List, Optional
from pydantic import BaseModel, Field


DEFAULT_AVATAR_URL = "https://randomuser.me/api/portraits/men/32.jpg"


class Account(BaseModel):
    """Compte du fournisseur d'identité"""
    uid: str
    email: Optional[str] = None
    display_name: Optional[str] = None
    photo_url: Optional[str] = None
    disabled: bool = False
    # Renseigné depuis le document `users/{uid}` quand il existe
    role: Optional[str] = None
    # Instant (secondes) de la dernière révocation des sessions
    tokens_valid_after: Optional[float] = Field(None, exclude=True)


class Token(BaseModel):
    """Token d'accès"""
    access_token: str
    token_type: str = "bearer"


class Session(Token):
    user: Account


class RegisterRequest(BaseModel):
    email: str
    password: str
    nom: str
    prenom: str
    telephone: Optional[str] = None


class LoginRequest(BaseModel):
    email: str
    password: str


class FederatedLoginRequest(BaseModel):
    id_token: str


class PasswordResetRequest(BaseModel):
    email: str


class MenuLink(BaseModel):
    label: str
    href: str
    icon: Optional[str] = None
    css_class: Optional[str] = None


class UserMenu(BaseModel):
    """Zone « utilisateur courant » de l'en-tête"""
    signed_in: bool
    display_name: Optional[str] = None
    avatar_url: Optional[str] = None
    links: List[MenuLink] = Field(default_factory=list)


class LogoutResponse(BaseModel):
    message: str = "Déconnexion réussie"
    redirect: str = "index"

from typing import Optional

from fastapi import APIRouter, Depends

from formation_portal.api.deps import get_current_user, get_gateway, get_optional_user
from formation_portal.schemas.auth import (
    Account,
    FederatedLoginRequest,
    LoginRequest,
    LogoutResponse,
    PasswordResetRequest,
    RegisterRequest,
    Session,
    UserMenu,
)
from formation_portal.services.identity import SessionGateway, user_menu

router = APIRouter()


@router.post("/register", response_model=Session, status_code=201)
def register(request: RegisterRequest, gateway: SessionGateway = Depends(get_gateway)):
    """Crée le compte et le profil `users/{uid}` (rôle « user »)."""
    profile = request.model_dump(exclude={"email", "password"}, exclude_none=True)
    account = gateway.register(request.email, request.password, profile)
    return gateway.open_session(account)


@router.post("/login", response_model=Session)
def login(request: LoginRequest, gateway: SessionGateway = Depends(get_gateway)):
    account = gateway.login(request.email, request.password)
    return gateway.open_session(account)


@router.post("/federated", response_model=Session)
def login_with_federated_provider(
    request: FederatedLoginRequest,
    gateway: SessionGateway = Depends(get_gateway),
):
    """
    Connexion avec un ID token Firebase obtenu côté client (Google).
    Le profil est créé à la première connexion.
    """
    account = gateway.login_with_federated_provider(request.id_token)
    return gateway.open_session(account)


@router.post("/logout", response_model=LogoutResponse)
def logout(
    account: Account = Depends(get_current_user),
    gateway: SessionGateway = Depends(get_gateway),
):
    return LogoutResponse(redirect=gateway.logout(account))


@router.post("/password-reset")
def reset_password(request: PasswordResetRequest, gateway: SessionGateway = Depends(get_gateway)):
    gateway.reset_password(request.email)
    return {"message": "Un email de réinitialisation a été envoyé"}


@router.get("/me", response_model=Account)
def read_current_account(account: Account = Depends(get_current_user)):
    return account


@router.get("/menu", response_model=UserMenu)
def read_user_menu(account: Optional[Account] = Depends(get_optional_user)):
    return user_menu(account)

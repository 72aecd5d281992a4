"""
Sécurité : jetons d'accès et génération de mots de passe
"""
from datetime import datetime, timedelta, timezone
from typing import Optional
import logging
import secrets
import string

from fastapi.security import OAuth2PasswordBearer
from jose import JWTError, jwt as jose_jwt

from formation_portal.core.config import settings


# OAuth2 ; auto_error=False pour les routes accessibles avec ou sans session
oauth2_scheme = OAuth2PasswordBearer(tokenUrl=f"{settings.API_V1_STR}/auth/login", auto_error=False)


def create_access_token(data: dict, expires_delta: Optional[timedelta] = None) -> str:
    """Créer un token JWT"""
    to_encode = data.copy()
    now = datetime.now(timezone.utc)
    if expires_delta:
        expire = now + expires_delta
    else:
        expire = now + timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)

    to_encode.update({"exp": expire, "iat": now})
    return jose_jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


def decode_token_payload(token: str) -> Optional[dict]:
    try:
        return jose_jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
    except JWTError as e:
        logging.debug("JWT decode error: %s", e)
        return None


def decode_access_token(token: str) -> Optional[str]:
    """Retourne l'uid Firebase porté par un token local, ou None s'il est invalide."""
    payload = decode_token_payload(token)
    return payload.get("sub") if payload else None


def issued_before_revocation(payload: dict, tokens_valid_after: Optional[float]) -> bool:
    """Vrai si le token a été émis avant la dernière révocation des sessions.

    Firebase arrondit l'instant de révocation à la seconde : un token émis
    dans cette même seconde est refusé.
    """
    if not tokens_valid_after:
        return False
    return int(payload.get("iat") or 0) <= tokens_valid_after


def generate_random_password(length: int = 12) -> str:
    """Mot de passe aléatoire pour les comptes créés pendant l'inscription.

    Contient toujours une majuscule, un chiffre et un caractère spécial.
    """
    alphabet = string.ascii_lowercase + string.digits
    return "".join(secrets.choice(alphabet) for _ in range(length - 3)) + "A1!"

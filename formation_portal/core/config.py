"""
Configuration centrale de l'application
"""
from typing import Annotated, List, Optional
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict
from pydantic import field_validator
import json
import os


class Settings(BaseSettings):
    """Configuration de l'application"""

    # Application
    APP_NAME: str = "Formation Portal"
    APP_VERSION: str = "1.0.0"
    DEBUG: bool = False
    API_V1_STR: str = "/api/v1"

    # Security
    SECRET_KEY: str = "votre_cle_secrete_a_changer_en_production"
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60

    # CORS
    BACKEND_CORS_ORIGINS: Annotated[List[str], NoDecode] = []

    @field_validator("BACKEND_CORS_ORIGINS", mode="before")
    @classmethod
    def assemble_cors_origins(cls, v):
        if isinstance(v, str) and not v.startswith("["):
            return [i.strip() for i in v.split(",") if i.strip()]
        if isinstance(v, str):
            return json.loads(v)
        if isinstance(v, list):
            return v
        raise ValueError(v)

    # Firebase
    FIREBASE_CREDENTIALS_JSON: Optional[str] = None
    FIREBASE_API_KEY: Optional[str] = None
    FIREBASE_STORAGE_BUCKET: Optional[str] = None
    IDENTITY_TOOLKIT_URL: str = "https://identitytoolkit.googleapis.com/v1"

    # File Storage
    MAX_UPLOAD_SIZE: int = 10485760  # 10MB

    # Catalogue / tableau de bord
    FEATURED_FORMATIONS_LIMIT: int = 3
    RECENT_FEED_LIMIT: int = 10
    SUCCESS_REDIRECT_DELAY: int = 10

    # Logging
    LOG_LEVEL: str = "INFO"

    model_config = SettingsConfigDict(
        env_file=os.path.join(os.path.dirname(os.path.dirname(os.path.dirname(__file__))), ".env"),
        case_sensitive=True,
        extra="ignore",  # Ignore les variables non déclarées dans le .env
    )


# Instance unique pour l'application
settings = Settings()

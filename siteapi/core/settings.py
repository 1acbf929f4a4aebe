"""Définition et chargement des paramètres de configuration applicative.

Objectif du module
------------------
- Centraliser les paramètres (env/.env) via Pydantic Settings
- Résoudre le fichier `.env` à utiliser selon la stratégie: ENV_FILE > .env.{APP_ENV} > .env
- Valider dès le chargement la liste des clés d'API internes
"""

import os
from pathlib import Path

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# Détermination du fichier .env à utiliser avec priorité:
# 1) ENV_FILE (chemin explicite)
# 2) .env.{APP_ENV} si présent
# 3) .env (défaut)
_cwd = Path.cwd()
_env_file_from_env = os.getenv("ENV_FILE")
if _env_file_from_env:
    _ENV_FILE_PATH = _env_file_from_env
else:
    _app_env = os.getenv("APP_ENV", "dev")
    _candidate_specific = _cwd / f".env.{_app_env}"
    _candidate_default = _cwd / ".env"
    if _candidate_specific.exists():
        _ENV_FILE_PATH = _candidate_specific
    elif _candidate_default.exists():
        _ENV_FILE_PATH = _candidate_default
    else:
        _ENV_FILE_PATH = _candidate_default


def split_api_keys(raw: str) -> list[str]:
    """Découpe une liste CSV de clés en ignorant les entrées vides."""
    return [key.strip() for key in (raw or "").split(",") if key.strip()]


class Settings(BaseSettings):
    """Modèle de configuration chargé depuis l'environnement et .env."""

    model_config = SettingsConfigDict(
        env_file=_ENV_FILE_PATH,
        env_file_encoding="utf-8",
        env_ignore_empty=True,
        case_sensitive=False,
        extra="ignore",
    )
    APP_NAME: str = "site-api"
    APP_ENV: str = "dev"
    APP_DEBUG: bool = False
    APP_HOST: str = "0.0.0.0"
    APP_PORT: int = 3000

    LOG_LEVEL: str = "INFO"
    # JSON lines in production, console renderer otherwise
    LOG_JSON: bool | None = None

    DATABASE_URL: str | None = None
    DATABASE_URL_MIGRATIONS: str | None = None

    # CSV: "key-a,key-b" (rotation: both keys are accepted)
    INTERNAL_API_KEYS: str

    # Snapshot JSON used by the seed CLI
    SITE_CONTENT_SNAPSHOT: str = "content/snapshot.json"

    @field_validator("INTERNAL_API_KEYS")
    @classmethod
    def _require_one_key(cls, value: str) -> str:
        if not split_api_keys(value):
            raise ValueError("INTERNAL_API_KEYS must include at least one non-empty key")
        return value

    @property
    def internal_api_keys(self) -> frozenset[str]:
        """Ensemble des clés d'API internes acceptées (normalisées)."""
        return frozenset(split_api_keys(self.INTERNAL_API_KEYS))

    @property
    def log_as_json(self) -> bool:
        """Rendu JSON explicite, sinon déduit de l'environnement (tout sauf dev)."""
        if self.LOG_JSON is not None:
            return self.LOG_JSON
        return self.APP_ENV != "dev"


def get_settings() -> Settings:
    """Construit et retourne la configuration de l'application."""
    return Settings()

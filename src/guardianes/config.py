# Config Module
# AUTO-DOC-INDEX
#
# ES: Índice rápido
#   1) Propósito del módulo
#   2) Componentes principales
#   3) Puntos de extensión
#
# EN: Quick index
#   1) Module purpose
#   2) Main components
#   3) Extension points
#
# Secciones / Sections:
#   - Configuración / Configuration
#   - Lógica principal / Core logic
#   - Integraciones / Integrations

"""Configuración validada del cargador de datos de Guardianes.

Validated configuration for the Guardianes data loader.
"""

from __future__ import annotations

from pathlib import Path
from typing import Annotated, List, Optional

from dotenv import load_dotenv
from pydantic import Field, ValidationError, field_validator, model_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict

from guardianes.core.models import RowPolicy
from guardianes.schemas import DEFAULT_PARTIES

_ENV_PATH = Path(".env")
_ENV_LOCAL_PATH = Path(".env.local")
LOG_LEVELS = ("CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG")

# Credenciales desde .env y .env.local. / Credentials from .env and .env.local.
load_dotenv(_ENV_PATH, override=False)
load_dotenv(_ENV_LOCAL_PATH, override=False)


class GuardianesSettings(BaseSettings):
    """Variables de entorno y archivo .env para Guardianes.

    English: Environment variables and .env file for Guardianes.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    DATABASE_URL: str = Field(min_length=1)
    DATABASE_SSLMODE: Optional[str] = "require"
    DB_POOL_MIN: int = Field(default=1, ge=1)
    DB_POOL_MAX: int = Field(default=5, ge=1)

    DATA_ROOT: Path = Path(".")
    HISTORICAL_DIR: Path = Path("Historico votaciones")
    ELECTORATE_FILE: Path = Path("INE_limpio.csv")
    IMPORT_PLAN_PATH: Optional[Path] = None

    LOG_LEVEL: str = "INFO"
    LOG_DIR: Path = Path("logs")

    DEFAULT_STATE: str = "Guerrero"
    PARTIES: Annotated[List[str], NoDecode] = Field(default_factory=lambda: list(DEFAULT_PARTIES))
    CREATE_MISSING_MUNICIPALITIES: bool = False
    ELECTORATE_ROW_POLICY: RowPolicy = RowPolicy.ABORT
    HISTORICAL_ROW_POLICY: RowPolicy = RowPolicy.SKIP

    @field_validator("PARTIES", mode="before")
    @classmethod
    def split_parties(cls, value):
        """Acepta lista o texto separado por comas. / Accept a list or comma-separated text."""
        if isinstance(value, str):
            value = [item for item in value.split(",")]
        return [str(item).strip().upper() for item in value if str(item).strip()]

    @field_validator("LOG_LEVEL")
    @classmethod
    def upper_level(cls, value: str) -> str:
        level = value.strip().upper()
        if level not in LOG_LEVELS:
            raise ValueError(f"LOG_LEVEL must be one of {', '.join(LOG_LEVELS)}")
        return level

    @model_validator(mode="after")
    def check_bounds(self) -> "GuardianesSettings":
        if self.DB_POOL_MIN > self.DB_POOL_MAX:
            raise ValueError("DB_POOL_MIN cannot exceed DB_POOL_MAX")
        if not self.PARTIES:
            raise ValueError("PARTIES cannot be empty")
        return self

    def resolve(self, path: Path) -> Path:
        """Ruta relativa a ``DATA_ROOT``. / Path relative to ``DATA_ROOT``."""
        return path if path.is_absolute() else self.DATA_ROOT / path

    @property
    def historical_dir(self) -> Path:
        return self.resolve(self.HISTORICAL_DIR)

    @property
    def electorate_file(self) -> Path:
        return self.resolve(self.ELECTORATE_FILE)

    @property
    def import_plan_path(self) -> Optional[Path]:
        return self.resolve(self.IMPORT_PLAN_PATH) if self.IMPORT_PLAN_PATH else None


def load_config(**overrides) -> GuardianesSettings:
    """/** Carga y valida configuración, fallando con detalle. / Load and validate configuration, failing with details. **/"""
    try:
        return GuardianesSettings(**overrides)
    except ValidationError as exc:
        raise ValueError(f"Invalid configuration: {exc}") from exc

"""Carga del plan de importación histórica (YAML) y descubrimiento de archivos.

Loads the historical import plan (YAML) and discovers source files.
"""

from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import Any, List, Optional

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator

from guardianes.core.models import ElectionType, PlannedFile
from guardianes.errors import SourceNotFound

logger = logging.getLogger(__name__)

_YEAR_PATTERN = re.compile(r"(19|20)\d{2}")


class PlanEntry(BaseModel):
    """Entrada del plan: archivo, tipo y año. (Plan entry: file, type and year.)"""

    file: str = Field(..., min_length=1)
    type: ElectionType
    year: int = Field(ge=1900, le=2100)

    @field_validator("type", mode="before")
    @classmethod
    def parse_type(cls, value: Any) -> ElectionType:
        """Acepta etiquetas y prefijos. (Accept labels and prefixes.)"""
        if isinstance(value, ElectionType):
            return value
        return ElectionType.parse(str(value))


class ImportPlan(BaseModel):
    """Esquema de import_plan.yaml. (Schema for import_plan.yaml.)"""

    files: List[PlanEntry] = Field(default_factory=list)


def _load_yaml_mapping(path: Path) -> dict[str, Any]:
    """Load a YAML mapping or raise a user-facing error.

    Carga un mapa YAML o lanza un error orientado al usuario.
    """
    if not path.exists():
        raise SourceNotFound(path, "Import plan")
    try:
        raw = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as exc:
        raise ValueError(f"{path.name} tiene errores de sintaxis YAML ({path.name} has YAML syntax errors).") from exc
    if not isinstance(raw, dict):
        raise ValueError(f"{path.name} debe ser un mapa YAML ({path.name} must be a YAML mapping).")
    return raw


def load_import_plan(plan_path: Path, historical_dir: Path) -> List[PlannedFile]:
    """Carga y valida el plan; las rutas se resuelven contra ``historical_dir``.

    English: Load and validate the plan, resolving files against ``historical_dir``.
    """
    raw = _load_yaml_mapping(plan_path)
    try:
        plan = ImportPlan.model_validate(raw)
    except ValidationError as exc:
        raise ValueError(
            f"{plan_path.name} no cumple el esquema requerido ({plan_path.name} does not meet the required schema): {exc}"
        ) from exc
    logger.debug("Plan cargado desde %s (Plan loaded from %s).", plan_path.as_posix(), plan_path.as_posix())
    return [
        PlannedFile(path=historical_dir / entry.file, election_type=entry.type, year=entry.year)
        for entry in plan.files
    ]


def classify_file(path: Path) -> Optional[PlannedFile]:
    """Infiere tipo y año desde un nombre ``{tipo}{año}.csv``.

    English:
        Infer election type and year from a ``{type}{year}.csv`` file name.
        Returns ``None`` when either cannot be inferred.
    """
    stem = path.stem.lower()
    match = _YEAR_PATTERN.search(stem)
    if not match:
        return None
    prefix = stem[: match.start()].strip(" _-")
    try:
        election_type = ElectionType.parse(prefix)
    except ValueError:
        return None
    return PlannedFile(path=path, election_type=election_type, year=int(match.group(0)))


def discover_files(historical_dir: Path) -> List[PlannedFile]:
    """Lista los CSV clasificables del directorio histórico, ordenados.

    English: List classifiable CSV files in the historical directory, sorted.
    """
    if not historical_dir.is_dir():
        raise SourceNotFound(historical_dir, "Historical directory")
    planned: List[PlannedFile] = []
    for path in sorted(historical_dir.glob("*.csv")):
        entry = classify_file(path)
        if entry is None:
            logger.warning("historical_file_unclassified file=%s", path.name)
            continue
        planned.append(entry)
    return sorted(planned, key=lambda item: (item.year, item.election_type.value, item.path.name))


def resolve_plan(historical_dir: Path, plan_path: Optional[Path] = None) -> List[PlannedFile]:
    """Plan explícito si existe; si no, descubrimiento por nombre.

    English: Explicit plan when configured, otherwise discovery by file name.
    """
    if plan_path is not None:
        return load_import_plan(plan_path, historical_dir)
    return discover_files(historical_dir)

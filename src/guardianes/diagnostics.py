"""Diagnósticos posteriores a la carga: resumen y municipios sin resolver.

English:
    Post-load diagnostics: per-election summary and unresolved municipality
    names in a source file.
"""

from __future__ import annotations

import logging
from collections import Counter
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Dict, List

from guardianes.core.normalize import has_unexpected_characters, normalize_name
from guardianes.core.storage import PostgresStore
from guardianes.database import checkout
from guardianes.directory import MunicipalityDirectory
from guardianes.errors import RowParseError
from guardianes.reader import CsvSource
from guardianes.schemas import MUNICIPALITY_COLUMN, HeaderSchema

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class UnresolvedName:
    """Nombre sin municipio en el catálogo.

    Attributes:
        name (str): Primer valor crudo visto en el archivo.
        canonical (str): Nombre normalizado.
        occurrences (int): Filas con ese nombre.
        suspicious (bool): Contiene caracteres fuera de letras, acentos, espacio, punto o guion.
    """

    name: str
    canonical: str
    occurrences: int
    suspicious: bool


def summary(pool: Any, store_factory: Callable[[Any], PostgresStore] = PostgresStore) -> List[Dict[str, Any]]:
    """Filas, municipios y votos por (año, tipo) en ``historical_results``."""
    with checkout(pool) as conn:
        try:
            return store_factory(conn).summary()
        finally:
            conn.rollback()


def unresolved_municipalities(
    path: Path,
    directory: MunicipalityDirectory,
    *,
    column: str = MUNICIPALITY_COLUMN,
) -> List[UnresolvedName]:
    """Lista los nombres de ``path`` que no resuelven a un municipio.

    Las filas malformadas se ignoran; el diagnóstico no escribe nada.

    English:
        List names in ``path`` that do not resolve to a municipality.
        Malformed rows are ignored; the check never writes.
    """
    schema = HeaderSchema(name="municipality_check", required=[column])
    counts: Counter = Counter()
    first_seen: Dict[str, str] = {}

    def _ignore(error: RowParseError) -> None:
        logger.debug("municipality_check_row_ignored line=%s reason=%s", error.line_number, error.reason)

    with CsvSource(Path(path), schema) as source:
        for raw in source.rows(on_error=_ignore):
            name = raw.values.get(column, "")
            canonical = normalize_name(name)
            if not canonical or canonical in directory:
                continue
            counts[canonical] += 1
            first_seen.setdefault(canonical, name)

    unresolved = [
        UnresolvedName(
            name=first_seen[canonical],
            canonical=canonical,
            occurrences=occurrences,
            suspicious=has_unexpected_characters(first_seen[canonical]),
        )
        for canonical, occurrences in sorted(counts.items())
    ]
    logger.info("municipality_check file=%s unresolved=%s", Path(path).name, len(unresolved))
    return unresolved

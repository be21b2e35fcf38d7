# Dialect Module
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

"""Detección del delimitador de archivos CSV de dialecto desconocido.

Delimiter detection for CSV files of unknown dialect.
"""

from __future__ import annotations

from typing import Sequence

from guardianes.errors import AmbiguousDelimiterError

# Orden de prioridad: en empate gana el primero. / Priority order: ties go to the first one.
DELIMITER_CANDIDATES: tuple[str, ...] = ("|", "\t", ",", ";")


def detect_delimiter(
    line: str,
    candidates: Sequence[str] = DELIMITER_CANDIDATES,
    *,
    strict: bool = False,
) -> str:
    """Elige el delimitador con más apariciones en la línea.

    Gana el candidato con la cuenta estrictamente mayor; los empates se
    resuelven por el orden de ``candidates``. Si ningún candidato aparece se
    devuelve el primero (archivo de una sola columna), salvo con
    ``strict=True``, que lanza ``AmbiguousDelimiterError``.

    English:
        Pick the delimiter with the most occurrences in ``line``. The strictly
        highest count wins and ties resolve to the earliest candidate. With no
        occurrences at all the first candidate is returned, unless ``strict``
        is set.
    """
    if not candidates:
        raise ValueError("At least one delimiter candidate is required")
    best = candidates[0]
    best_count = 0
    for candidate in candidates:
        count = line.count(candidate)
        if count > best_count:
            best = candidate
            best_count = count
    if best_count == 0 and strict:
        raise AmbiguousDelimiterError(f"No delimiter candidate found in header line: {line!r}")
    return best


def delimiter_label(delimiter: str) -> str:
    """Nombre legible del delimitador para logs. / Human-readable delimiter name for logs."""
    return {"|": "pipe", "\t": "tab", ",": "comma", ";": "semicolon"}.get(delimiter, repr(delimiter))

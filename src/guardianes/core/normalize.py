"""
======================== ÍNDICE / INDEX ========================
1. Descripción general / Overview
2. Componentes principales / Main components
3. Notas de mantenimiento / Maintenance notes

======================== ESPAÑOL ========================
Archivo: `src/guardianes/core/normalize.py`.
Canonicaliza nombres de municipio para empatar fuentes CSV heterogéneas
contra la tabla `municipalities`.

Componentes detectados:
  - normalize_name
  - canonical_header
  - has_unexpected_characters

Notas:
- El empate es exacto sobre la forma canónica; no hay coincidencia difusa.

======================== ENGLISH ========================
File: `src/guardianes/core/normalize.py`.
Canonicalizes municipality names to match heterogeneous CSV sources against
the `municipalities` table.

Detected components:
  - normalize_name
  - canonical_header
  - has_unexpected_characters

Notes:
- Matching is exact on the canonical form; there is no fuzzy matching.
"""

from __future__ import annotations

import re
import unicodedata
from typing import Any

_WHITESPACE = re.compile(r"\s+")
# Letras, acentos, espacio, punto y guion. / Letters, accents, space, dot and hyphen.
_EXPECTED_NAME = re.compile(r"^[A-Za-z\sáéíóúüñÁÉÍÓÚÜÑ.\-]*$")


def normalize_name(value: Any) -> str:
    """Devuelve la forma canónica de un nombre de municipio.

    Mayúsculas, sin espacios al inicio/fin, espacios internos colapsados y
    sin diacríticos (descomposición NFD sin marcas combinantes). ``None`` o
    cadena vacía devuelven ``""``.

    English:
        Return the canonical form of a municipality name. Total function:
        never raises, and ``normalize_name(normalize_name(x)) ==
        normalize_name(x)``.
    """
    if value is None:
        return ""
    text = str(value)
    decomposed = unicodedata.normalize("NFD", text)
    stripped = "".join(ch for ch in decomposed if not unicodedata.combining(ch))
    return _WHITESPACE.sub(" ", stripped.upper()).strip()


def canonical_header(value: str) -> str:
    """Normaliza un encabezado CSV: sin comillas, mayúsculas, espacios a ``_``.

    English: Normalize a CSV header: no quotes, uppercase, spaces to ``_``.
    """
    cleaned = value.strip().replace('"', "").strip().upper()
    return _WHITESPACE.sub("_", cleaned)


def has_unexpected_characters(name: str) -> bool:
    """/** Detecta caracteres fuera del alfabeto esperado. / Detect characters outside the expected alphabet. **/"""
    return not _EXPECTED_NAME.match(name or "")

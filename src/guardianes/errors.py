"""Jerarquía de errores de la importación de datos electorales.

English:
    Error hierarchy for the electoral data import.
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional


class GuardianesImportError(Exception):
    """Error general de importación.

    English: Generic import error.
    """


class SourceNotFound(GuardianesImportError):
    """Archivo o carpeta de origen inexistente; fatal para la fase.

    English: Missing source file or directory; fatal for the import phase.
    """

    def __init__(self, path: Path, description: str = "Source") -> None:
        super().__init__(f"{description} not found: {path}")
        self.path = path


class AmbiguousDelimiterError(GuardianesImportError):
    """No se pudo determinar el delimitador del encabezado.

    English: The header delimiter could not be determined.
    """


class HeaderError(GuardianesImportError):
    """Falta una columna obligatoria en el encabezado.

    English: A required header column is missing.
    """

    def __init__(self, path: Path, missing: list[str]) -> None:
        super().__init__(f"{path.name}: missing required columns {', '.join(missing)}")
        self.path = path
        self.missing = missing


class RowParseError(GuardianesImportError):
    """Fila malformada (columnas incorrectas o campo obligatorio inválido).

    English: Malformed row (wrong column count or invalid required field).
    """

    def __init__(self, line_number: int, reason: str) -> None:
        super().__init__(f"line {line_number}: {reason}")
        self.line_number = line_number
        self.reason = reason


class UnresolvedMunicipality(GuardianesImportError):
    """El nombre normalizado no corresponde a ningún municipio.

    English: The normalized name matches no municipality.
    """

    def __init__(self, name: str, canonical: str, line_number: Optional[int] = None) -> None:
        super().__init__(f"Municipality {name!r} (canonical {canonical!r}) not found")
        self.name = name
        self.canonical = canonical
        self.line_number = line_number


class PersistenceError(GuardianesImportError):
    """Fallo de escritura en la base de datos; provoca rollback del archivo.

    English: Database write failure; triggers rollback of the file.
    """

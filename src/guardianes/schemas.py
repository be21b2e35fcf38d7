# Schemas Module
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

"""Esquemas Pydantic para validar encabezados y filas de los CSV electorales.

Pydantic schemas to validate headers and rows of the electoral CSV files.
"""

from __future__ import annotations

import logging
from typing import Dict, List, Mapping, Optional, Sequence, Tuple

from pydantic import BaseModel, Field, field_validator

from guardianes.core.models import ElectionType
from guardianes.errors import RowParseError

logger = logging.getLogger(__name__)

DEFAULT_PARTIES: Tuple[str, ...] = ("PAN", "PRI", "PRD", "PVEM", "PT", "MC", "MORENA", "NA")

MUNICIPALITY_COLUMN = "MUNICIPIO"
TOTAL_VOTES_COLUMN = "TOTAL_VOTOS"
NOMINAL_LIST_COLUMN = "LISTA_NOMINAL"
VALID_VOTES_COLUMN = "VOTOS_VALIDOS"
NULL_VOTES_COLUMN = "VOTOS_NULOS"

# Encabezados alternos vistos en el acervo. / Alternate headers seen in the archive.
HEADER_ALIASES: Dict[str, str] = {
    "NUEVA_ALIANZA": "NA",
}

AGE_BANDS: Tuple[Tuple[str, str], ...] = (
    ("18", "18"),
    ("19", "19"),
    ("20_24", "20_24"),
    ("25_29", "25_29"),
    ("30_34", "30_34"),
    ("35_39", "35_39"),
    ("40_44", "40_44"),
    ("45_49", "45_49"),
    ("50_54", "50_54"),
    ("55_59", "55_59"),
    ("60_64", "60_64"),
    ("65_mas", "65_Y_MAS"),
)


class HeaderCheck(BaseModel):
    """Resultado de validar un encabezado. / Outcome of a header validation."""

    missing_required: List[str] = Field(default_factory=list)
    missing_expected: List[str] = Field(default_factory=list)
    extra: List[str] = Field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.missing_required

    def warnings(self) -> List[str]:
        messages = [f"missing column {name}" for name in self.missing_expected]
        messages.extend(f"unexpected column {name}" for name in self.extra)
        return messages


class HeaderSchema(BaseModel):
    """Columnas esperadas por clase de archivo.

    English:
        Expected columns per file class. Missing required columns are fatal
        for the file; missing expected and extra columns become warnings.
    """

    name: str = Field(min_length=1)
    required: List[str] = Field(default_factory=list)
    expected: List[str] = Field(default_factory=list)

    def check(self, headers: Sequence[str]) -> HeaderCheck:
        present = set(headers)
        known = set(self.required) | set(self.expected)
        return HeaderCheck(
            missing_required=[name for name in self.required if name not in present],
            missing_expected=[name for name in self.expected if name not in present],
            extra=[name for name in headers if name and name not in known],
        )


def historical_header_schema(parties: Sequence[str] = DEFAULT_PARTIES) -> HeaderSchema:
    """Esquema de encabezado para resultados históricos. / Header schema for historical results."""
    return HeaderSchema(
        name="historical_results",
        required=[MUNICIPALITY_COLUMN],
        expected=[
            *parties,
            TOTAL_VOTES_COLUMN,
            NOMINAL_LIST_COLUMN,
            VALID_VOTES_COLUMN,
            NULL_VOTES_COLUMN,
        ],
    )


def electorate_header_schema() -> HeaderSchema:
    """Esquema de encabezado del archivo de electorado INE. / INE electorate file header schema."""
    expected = [
        "DISTRITO_FEDERAL",
        "CLAVE_MUNICIPIO",
        "NOMBRE_MUNICIPIO",
        "LISTA_NOMINAL",
        "LISTA_HOMBRES",
        "LISTA_MUJERES",
    ]
    for _, source in AGE_BANDS:
        expected.append(f"LISTA_{source}_HOMBRES")
        expected.append(f"LISTA_{source}_MUJERES")
    return HeaderSchema(name="electorado_seccional", required=["SECCION"], expected=expected)


def parse_count(value: Optional[str]) -> Tuple[int, bool]:
    """Convierte un conteo crudo a entero.

    Devuelve ``(valor, ok)``; ausencia o vacío es ``(0, True)`` y un valor no
    numérico es ``(0, False)``. Acepta separadores de miles y decimales
    truncados.

    English:
        Parse a raw count. Absence is ``(0, True)``; a non-numeric or negative
        value is ``(0, False)`` so the caller can record a warning.
    """
    if value is None:
        return 0, True
    text = str(value).strip().replace(",", "").replace(" ", "")
    if not text:
        return 0, True
    try:
        parsed = int(text.split(".")[0])
    except ValueError:
        return 0, False
    if parsed < 0:
        return 0, False
    return parsed, True


class ElectoralResultRow(BaseModel):
    """Fila tipada de resultados electorales.

    English:
        Typed electoral result row. ``valid_votes + null_votes`` is expected to
        match ``total_votes`` but source data may violate it; the mismatch is
        reported through ``totals_consistent``, never enforced.
    """

    year: int = Field(ge=1900, le=2100)
    election_type: ElectionType
    territory_name: str
    votes_by_party: Dict[str, int] = Field(default_factory=dict)
    valid_votes: int = Field(default=0, ge=0)
    null_votes: int = Field(default=0, ge=0)
    total_votes: int = Field(default=0, ge=0)
    nominal_list_size: int = Field(default=0, ge=0)
    line_number: int = 0
    warnings: List[str] = Field(default_factory=list)

    @field_validator("territory_name")
    @classmethod
    def strip_text(cls, value: str) -> str:
        return value.strip()

    @property
    def totals_consistent(self) -> bool:
        if not (self.valid_votes or self.null_votes):
            return True
        return self.valid_votes + self.null_votes == self.total_votes


def parse_result_row(
    raw: Mapping[str, str],
    *,
    line_number: int,
    year: int,
    election_type: ElectionType,
    parties: Sequence[str] = DEFAULT_PARTIES,
) -> ElectoralResultRow:
    """Construye una ``ElectoralResultRow`` desde un mapa encabezado→valor.

    English:
        Build an ``ElectoralResultRow`` from a header→raw value mapping.
        Non-numeric counts become zero plus a row warning.
    """
    warnings: List[str] = []

    def _count(column: str) -> int:
        value, ok = parse_count(raw.get(column))
        if not ok:
            warnings.append(f"invalid count {raw.get(column)!r} for {column}")
        return value

    votes_by_party = {party: _count(party) for party in parties}
    return ElectoralResultRow(
        year=year,
        election_type=election_type,
        territory_name=raw.get(MUNICIPALITY_COLUMN) or "",
        votes_by_party=votes_by_party,
        valid_votes=_count(VALID_VOTES_COLUMN),
        null_votes=_count(NULL_VOTES_COLUMN),
        total_votes=_count(TOTAL_VOTES_COLUMN),
        nominal_list_size=_count(NOMINAL_LIST_COLUMN),
        line_number=line_number,
        warnings=warnings,
    )


class ElectorateRow(BaseModel):
    """Fila de ``electorado_seccional`` (lista nominal por sección).

    English: ``electorado_seccional`` row (nominal list per section).
    """

    distrito_federal: int = 0
    clave_municipio: int = 0
    nombre_municipio: str = ""
    seccion: str = Field(min_length=1)
    lista_nominal_total: int = 0
    hombres_ln: int = 0
    mujeres_ln: int = 0
    bands: Dict[str, int] = Field(default_factory=dict)

    def values(self) -> tuple:
        band_values = [self.bands.get(column, 0) for column in electorate_band_columns()]
        return (
            self.distrito_federal,
            self.clave_municipio,
            self.nombre_municipio,
            self.seccion,
            self.lista_nominal_total,
            self.hombres_ln,
            self.mujeres_ln,
            *band_values,
        )


def electorate_band_columns() -> List[str]:
    """Columnas por banda de edad en orden de tabla. / Age band columns in table order."""
    columns: List[str] = []
    for band, _ in AGE_BANDS:
        columns.append(f"hombres_{band}")
        columns.append(f"mujeres_{band}")
    return columns


def parse_electorate_row(raw: Mapping[str, str], *, line_number: int) -> ElectorateRow:
    """Convierte una fila cruda de electorado; sin sección es fila inválida.

    English: Convert a raw electorate row; a row without section is invalid.
    """
    seccion = (raw.get("SECCION") or "").strip()
    if not seccion:
        raise RowParseError(line_number, "empty SECCION")

    def _int(column: str) -> int:
        return parse_count(raw.get(column))[0]

    bands: Dict[str, int] = {}
    for band, source in AGE_BANDS:
        bands[f"hombres_{band}"] = _int(f"LISTA_{source}_HOMBRES")
        bands[f"mujeres_{band}"] = _int(f"LISTA_{source}_MUJERES")

    return ElectorateRow(
        distrito_federal=_int("DISTRITO_FEDERAL"),
        clave_municipio=_int("CLAVE_MUNICIPIO"),
        nombre_municipio=(raw.get("NOMBRE_MUNICIPIO") or "").strip(),
        seccion=seccion,
        lista_nominal_total=_int("LISTA_NOMINAL"),
        hombres_ln=_int("LISTA_HOMBRES"),
        mujeres_ln=_int("LISTA_MUJERES"),
        bands=bands,
    )

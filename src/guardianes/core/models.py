# Models Module
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

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import List, NamedTuple, Optional


class ElectionType(str, Enum):
    """Tipo de elección usado para particionar resultados históricos.

    English: Contest classification used to partition historical results.
    """

    MUNICIPAL = "Municipal"
    STATE_LEGISLATURE = "StateLegislature"
    GOVERNOR = "Governor"

    @property
    def label(self) -> str:
        """Etiqueta en español para reportes. / Spanish label for reports."""
        return _LABELS[self]

    @property
    def file_prefixes(self) -> tuple[str, ...]:
        """Prefijos de archivo del acervo histórico. / File prefixes in the historical archive."""
        return _FILE_PREFIXES[self]

    @classmethod
    def parse(cls, value: str) -> "ElectionType":
        """Acepta valor, nombre, etiqueta o prefijo de archivo.

        English: Accept enum value, name, Spanish label or file prefix.
        """
        needle = value.strip().lower().replace(" ", "").replace("_", "")
        for member in cls:
            names = {
                member.value.lower(),
                member.name.lower().replace("_", ""),
                member.label.lower().replace(" ", ""),
                *member.file_prefixes,
            }
            if needle in names:
                return member
        raise ValueError(f"Unknown election type: {value!r}")


_LABELS = {
    ElectionType.MUNICIPAL: "Presidencias Municipales",
    ElectionType.STATE_LEGISLATURE: "Diputaciones Locales",
    ElectionType.GOVERNOR: "Gubernatura",
}

_FILE_PREFIXES = {
    ElectionType.MUNICIPAL: ("ayuntamiento", "municipal"),
    ElectionType.STATE_LEGISLATURE: ("diputacionlocal", "statelegislature"),
    ElectionType.GOVERNOR: ("gobernatura", "gubernatura", "governor"),
}


class FileState(str, Enum):
    """Estados de la importación de un archivo.

    English: Per-file import states.
    """

    NOT_STARTED = "not_started"
    HEADER_READ = "header_read"
    STREAMING = "streaming"
    COMMITTED = "committed"
    ROLLED_BACK = "rolled_back"


class RowPolicy(str, Enum):
    """Disciplina ante filas malformadas. / Discipline for malformed rows."""

    ABORT = "abort"
    SKIP = "skip"


@dataclass(frozen=True)
class Municipality:
    """Municipio identificado por su nombre canónico.

    Attributes:
        id (int): Identificador asignado en la primera aparición.
        canonical_name (str): Nombre normalizado.
        state (str): Entidad federativa.

    English:
        Municipality identified by its canonical name.
    """

    id: int
    canonical_name: str
    state: str


class AggregationKey(NamedTuple):
    """Llave transitoria (municipio, partido). / Transient (municipality, party) key."""

    municipality_id: int
    party: str


@dataclass
class AggregationBucket:
    """Acumulador de un par (municipio, partido) durante un archivo.

    English:
        Accumulator for one (municipality, party) pair within one file pass.
        ``total_votes`` and ``nominal_list_size`` hold the last value seen.
    """

    key: AggregationKey
    votes: int = 0
    total_votes: int = 0
    nominal_list_size: int = 0


@dataclass(frozen=True)
class HistoricalResult:
    """Fila persistida en ``historical_results``.

    English:
        Row persisted in ``historical_results``; written once, never updated.
    """

    municipality_id: int
    election_year: int
    election_type: ElectionType
    party: str
    votes: int
    percentage: float
    turnout_percentage: float

    def as_tuple(self) -> tuple:
        return (
            self.municipality_id,
            self.election_year,
            self.election_type.value,
            self.party,
            self.votes,
            self.percentage,
            self.turnout_percentage,
        )


@dataclass
class TotalsBucket:
    """Sumas por municipio de los conteos generales de cada fila.

    English:
        Per-municipality sums of the general counts of every contributing
        row. Unlike ``AggregationBucket`` these are summed, not last-seen.
    """

    municipality_id: int
    rows: int = 0
    valid_votes: int = 0
    null_votes: int = 0
    total_votes: int = 0
    nominal_list_size: int = 0


@dataclass(frozen=True)
class MunicipalTotal:
    """Fila persistida en ``municipal_totals``. / Row persisted in ``municipal_totals``."""

    municipality_id: int
    election_year: int
    election_type: ElectionType
    rows: int
    valid_votes: int
    null_votes: int
    total_votes: int
    nominal_list_size: int
    turnout_percentage: float

    def as_tuple(self) -> tuple:
        return (
            self.municipality_id,
            self.election_year,
            self.election_type.value,
            self.rows,
            self.valid_votes,
            self.null_votes,
            self.total_votes,
            self.nominal_list_size,
            self.turnout_percentage,
        )


@dataclass(frozen=True)
class PlannedFile:
    """Archivo histórico a importar con su año y tipo.

    English: Historical file to import with its year and election type.
    """

    path: Path
    election_type: ElectionType
    year: int


@dataclass
class FileReport:
    """Resumen de la importación de un archivo.

    English:
        Outcome of one file import: counters and final state. A report is only
        successful when its state is ``COMMITTED``.
    """

    path: Path
    election_type: Optional[ElectionType] = None
    year: Optional[int] = None
    state: FileState = FileState.NOT_STARTED
    processed: int = 0
    skipped: int = 0
    inserted: int = 0
    created: int = 0
    totals_inserted: int = 0
    warnings: List[str] = field(default_factory=list)
    error: Optional[str] = None

    @property
    def succeeded(self) -> bool:
        return self.state is FileState.COMMITTED

    def as_dict(self) -> dict:
        return {
            "file": self.path.name,
            "election_type": self.election_type.value if self.election_type else None,
            "year": self.year,
            "state": self.state.value,
            "processed": self.processed,
            "skipped": self.skipped,
            "inserted": self.inserted,
            "created": self.created,
            "totals_inserted": self.totals_inserted,
            "warnings": len(self.warnings),
            "error": self.error,
        }

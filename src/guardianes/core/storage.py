# Storage Module
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

"""Almacenamiento PostgreSQL de municipios, electorado y resultados históricos.

PostgreSQL storage for municipalities, electorate and historical results.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Any, Dict, Iterator, List, Sequence

import psycopg2
from psycopg2.extras import execute_values

from guardianes.core.models import HistoricalResult, MunicipalTotal, Municipality
from guardianes.errors import PersistenceError
from guardianes.schemas import ElectorateRow, electorate_band_columns

logger = logging.getLogger(__name__)

MUNICIPALITIES_DDL = """
CREATE TABLE IF NOT EXISTS municipalities (
    id SERIAL PRIMARY KEY,
    name VARCHAR(255) NOT NULL UNIQUE,
    state VARCHAR(100) NOT NULL DEFAULT 'Guerrero'
)
"""

HISTORICAL_RESULTS_DDL = """
CREATE TABLE IF NOT EXISTS historical_results (
    id SERIAL PRIMARY KEY,
    municipality_id INTEGER NOT NULL REFERENCES municipalities(id),
    election_year INTEGER NOT NULL,
    election_type VARCHAR(50) NOT NULL,
    party VARCHAR(20) NOT NULL,
    votes INTEGER NOT NULL DEFAULT 0,
    percentage NUMERIC(12, 2) NOT NULL DEFAULT 0,
    turnout_percentage NUMERIC(12, 2) NOT NULL DEFAULT 0
)
"""

# Evita duplicados al reimportar (ON CONFLICT DO NOTHING).
# Prevents duplicates on re-import (ON CONFLICT DO NOTHING).
HISTORICAL_RESULTS_UNIQUE = """
CREATE UNIQUE INDEX IF NOT EXISTS historical_results_unique_idx
    ON historical_results (municipality_id, election_year, election_type, party)
"""

MUNICIPAL_TOTALS_DDL = """
CREATE TABLE IF NOT EXISTS municipal_totals (
    id SERIAL PRIMARY KEY,
    municipality_id INTEGER NOT NULL REFERENCES municipalities(id),
    election_year INTEGER NOT NULL,
    election_type VARCHAR(50) NOT NULL,
    source_rows INTEGER NOT NULL DEFAULT 0,
    valid_votes BIGINT NOT NULL DEFAULT 0,
    null_votes BIGINT NOT NULL DEFAULT 0,
    total_votes BIGINT NOT NULL DEFAULT 0,
    nominal_list BIGINT NOT NULL DEFAULT 0,
    turnout_percentage NUMERIC(12, 2) NOT NULL DEFAULT 0
)
"""

MUNICIPAL_TOTALS_UNIQUE = """
CREATE UNIQUE INDEX IF NOT EXISTS municipal_totals_unique_idx
    ON municipal_totals (municipality_id, election_year, election_type)
"""

ELECTORATE_COLUMNS: List[str] = [
    "distrito_federal",
    "clave_municipio",
    "nombre_municipio",
    "seccion",
    "lista_nominal_total",
    "hombres_ln",
    "mujeres_ln",
    *electorate_band_columns(),
]

ELECTORATE_DDL = (
    "CREATE TABLE IF NOT EXISTS electorado_seccional (\n"
    "    id SERIAL PRIMARY KEY,\n"
    "    distrito_federal INTEGER,\n"
    "    clave_municipio INTEGER,\n"
    "    nombre_municipio VARCHAR(255),\n"
    "    seccion VARCHAR(50),\n"
    + ",\n".join(f"    {column} INTEGER DEFAULT 0" for column in ELECTORATE_COLUMNS[4:])
    + "\n)"
)

SCHEMA_STATEMENTS: Sequence[str] = (
    MUNICIPALITIES_DDL,
    HISTORICAL_RESULTS_DDL,
    HISTORICAL_RESULTS_UNIQUE,
    "CREATE INDEX IF NOT EXISTS idx_historical_year_type ON historical_results (election_year, election_type)",
    MUNICIPAL_TOTALS_DDL,
    MUNICIPAL_TOTALS_UNIQUE,
    ELECTORATE_DDL,
    "CREATE INDEX IF NOT EXISTS idx_electorado_municipio ON electorado_seccional (clave_municipio)",
    "CREATE INDEX IF NOT EXISTS idx_electorado_seccion ON electorado_seccional (seccion)",
)

TRUNCATABLE_TABLES = frozenset({"electorado_seccional", "historical_results", "municipal_totals"})

INSERT_HISTORICAL_SQL = """
INSERT INTO historical_results
    (municipality_id, election_year, election_type, party, votes, percentage, turnout_percentage)
VALUES %s
ON CONFLICT DO NOTHING
RETURNING id
"""

INSERT_TOTALS_SQL = """
INSERT INTO municipal_totals
    (municipality_id, election_year, election_type, source_rows,
     valid_votes, null_votes, total_votes, nominal_list, turnout_percentage)
VALUES %s
ON CONFLICT DO NOTHING
RETURNING id
"""

INSERT_ELECTORATE_SQL = f"INSERT INTO electorado_seccional ({', '.join(ELECTORATE_COLUMNS)}) VALUES %s"

SUMMARY_SQL = """
SELECT election_year,
       election_type,
       COUNT(*) AS rows,
       COUNT(DISTINCT municipality_id) AS municipalities,
       COALESCE(SUM(votes), 0) AS votes
FROM historical_results
GROUP BY election_year, election_type
ORDER BY election_year DESC, election_type
"""


class PostgresStore:
    """Consultas y escrituras sobre una conexión ya abierta.

    La conexión pertenece al llamador, que controla la transacción; todo
    error de ``psycopg2`` se eleva como ``PersistenceError``.

    English:
        Queries and writes over an already open connection. The caller owns
        the connection and its transaction; every ``psycopg2`` error is raised
        as ``PersistenceError``.
    """

    def __init__(self, conn: Any, *, page_size: int = 500) -> None:
        self._conn = conn
        self.page_size = page_size

    @contextmanager
    def _cursor(self, action: str) -> Iterator[Any]:
        try:
            with self._conn.cursor() as cursor:
                yield cursor
        except psycopg2.Error as exc:
            logger.error("db_operation_failed action=%s error=%s", action, exc)
            raise PersistenceError(f"{action} failed: {exc}") from exc

    def ensure_schema(self) -> None:
        """Crea tablas, índices y la restricción de unicidad si faltan."""
        with self._cursor("ensure_schema") as cursor:
            for statement in SCHEMA_STATEMENTS:
                cursor.execute(statement)

    def truncate(self, table: str) -> None:
        if table not in TRUNCATABLE_TABLES:
            raise ValueError(f"Refusing to truncate unknown table: {table}")
        with self._cursor(f"truncate {table}") as cursor:
            cursor.execute(f"TRUNCATE TABLE {table} RESTART IDENTITY")  # nosec B608 - allowlisted table.

    def load_municipalities(self) -> List[Municipality]:
        with self._cursor("load_municipalities") as cursor:
            cursor.execute("SELECT id, name, state FROM municipalities ORDER BY id")
            rows = cursor.fetchall()
        return [Municipality(id=row[0], canonical_name=row[1], state=row[2]) for row in rows]

    def insert_municipality(self, name: str, state: str) -> int:
        """Inserta o recupera un municipio por nombre; devuelve su id."""
        with self._cursor("insert_municipality") as cursor:
            cursor.execute(
                "INSERT INTO municipalities (name, state) VALUES (%s, %s) "
                "ON CONFLICT (name) DO UPDATE SET name = EXCLUDED.name RETURNING id",
                (name, state),
            )
            return cursor.fetchone()[0]

    def insert_historical_results(self, results: Sequence[HistoricalResult]) -> int:
        """Inserta en bloque; los duplicados se descartan. Devuelve filas nuevas.

        English: Bulk insert; duplicates are dropped. Returns the new row count.
        """
        if not results:
            return 0
        with self._cursor("insert_historical_results") as cursor:
            returned = execute_values(
                cursor,
                INSERT_HISTORICAL_SQL,
                [result.as_tuple() for result in results],
                page_size=self.page_size,
                fetch=True,
            )
        return len(returned)

    def insert_municipal_totals(self, totals: Sequence[MunicipalTotal]) -> int:
        """Totales por municipio; los repetidos se descartan como en ``historical_results``."""
        if not totals:
            return 0
        with self._cursor("insert_municipal_totals") as cursor:
            returned = execute_values(
                cursor,
                INSERT_TOTALS_SQL,
                [total.as_tuple() for total in totals],
                page_size=self.page_size,
                fetch=True,
            )
        return len(returned)

    def insert_electorate_rows(self, rows: Sequence[ElectorateRow]) -> int:
        if not rows:
            return 0
        with self._cursor("insert_electorate_rows") as cursor:
            execute_values(
                cursor,
                INSERT_ELECTORATE_SQL,
                [row.values() for row in rows],
                page_size=self.page_size,
            )
        return len(rows)

    def distinct_electorate_municipalities(self) -> List[str]:
        with self._cursor("distinct_electorate_municipalities") as cursor:
            cursor.execute(
                "SELECT DISTINCT TRIM(nombre_municipio) FROM electorado_seccional "
                "WHERE TRIM(COALESCE(nombre_municipio, '')) <> '' ORDER BY 1"
            )
            return [row[0] for row in cursor.fetchall()]

    def summary(self) -> List[Dict[str, Any]]:
        """Filas, municipios y votos por (año, tipo). / Rows, municipalities and votes per (year, type)."""
        with self._cursor("summary") as cursor:
            cursor.execute(SUMMARY_SQL)
            rows = cursor.fetchall()
        return [
            {
                "election_year": row[0],
                "election_type": row[1],
                "rows": row[2],
                "municipalities": row[3],
                "votes": int(row[4] or 0),
            }
            for row in rows
        ]

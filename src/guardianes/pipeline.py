"""
======================== ÍNDICE / INDEX ========================
1. Descripción general / Overview
2. Componentes principales / Main components
3. Notas de mantenimiento / Maintenance notes

======================== ESPAÑOL ========================
Archivo: `src/guardianes/pipeline.py`.
Orquesta la importación: crea el esquema, carga el electorado seccional y
luego cada archivo histórico en su propia transacción. Un archivo fallido se
revierte, se reporta y la importación continúa con el siguiente.

Componentes detectados:
  - Importer
  - preflight

======================== ENGLISH ========================
File: `src/guardianes/pipeline.py`.
Orchestrates the import: creates the schema, loads the sectional electorate
and then each historical file in its own transaction. A failed file is rolled
back, reported, and the import continues with the next one.

Detected components:
  - Importer
  - preflight
"""

from __future__ import annotations

import csv
from pathlib import Path
from typing import Any, Callable, Iterable, List, Optional, Sequence

import structlog

from guardianes.config import GuardianesSettings
from guardianes.core.aggregate import AggregationState, aggregate_row, build_results, build_totals
from guardianes.core.models import FileReport, FileState, PlannedFile, RowPolicy
from guardianes.core.storage import PostgresStore
from guardianes.database import checkout, transaction
from guardianes.directory import MunicipalityDirectory
from guardianes.errors import GuardianesImportError, RowParseError, SourceNotFound
from guardianes.logging import bind_context
from guardianes.reader import CsvSource
from guardianes.schemas import (
    ElectorateRow,
    electorate_header_schema,
    historical_header_schema,
    parse_electorate_row,
)
from guardianes.utils.config_loader import resolve_plan

ELECTORATE_BATCH_SIZE = 1000

# Fallos que revierten un archivo sin detener la importación.
# Failures that roll back one file without stopping the import.
FILE_FAILURES = (GuardianesImportError, UnicodeDecodeError, csv.Error)


def preflight(paths: Iterable[Path], description: str) -> None:
    """Verifica que todas las fuentes existan antes de escribir nada.

    English: Check that every source exists before anything is written.
    """
    for path in paths:
        if not Path(path).is_file():
            raise SourceNotFound(path, description)


class Importer:
    """Orquestador de la importación de Guardianes.

    Cada archivo toma una conexión del pool y la devuelve al terminar, pase
    lo que pase. Los archivos pasan por ``NOT_STARTED → HEADER_READ →
    STREAMING → COMMITTED | ROLLED_BACK``.

    English:
        Guardianes import orchestrator. Every file checks a connection out of
        the pool and always returns it. Files move through ``NOT_STARTED →
        HEADER_READ → STREAMING → COMMITTED | ROLLED_BACK``.

    Example:
        >>> importer = Importer(settings, create_pool(settings))
        >>> reports = importer.import_all()
    """

    def __init__(
        self,
        settings: GuardianesSettings,
        pool: Any,
        *,
        store_factory: Callable[[Any], PostgresStore] = PostgresStore,
        logger: Optional[structlog.BoundLogger] = None,
    ) -> None:
        self.settings = settings
        self.pool = pool
        self.store_factory = store_factory
        self.logger = logger or structlog.get_logger(__name__)

    def initialize(self) -> None:
        """Crea tablas, índices y restricciones si no existen."""
        with checkout(self.pool) as conn:
            with transaction(conn):
                self.store_factory(conn).ensure_schema()
        self.logger.info("schema_ready")

    def planned_files(self) -> List[PlannedFile]:
        return resolve_plan(self.settings.historical_dir, self.settings.import_plan_path)

    def _directory(self, store: PostgresStore) -> MunicipalityDirectory:
        return MunicipalityDirectory.load(
            store,
            state=self.settings.DEFAULT_STATE,
            create_missing=self.settings.CREATE_MISSING_MUNICIPALITIES,
        )

    @staticmethod
    def _row_error_handler(report: FileReport, policy: RowPolicy, log) -> Callable[[RowParseError], None]:
        def handle(error: RowParseError) -> None:
            if policy is RowPolicy.ABORT:
                raise error
            report.skipped += 1
            report.warnings.append(str(error))
            log.warning("row_skipped", line=error.line_number, reason=error.reason)

        return handle

    def _fail(self, report: FileReport, error: BaseException, log) -> FileReport:
        report.state = FileState.ROLLED_BACK
        report.error = str(error)
        report.inserted = 0
        report.created = 0
        report.totals_inserted = 0
        log.error("file_rolled_back", error=str(error), error_type=type(error).__name__)
        return report

    def import_electorate(self, path: Optional[Path] = None) -> FileReport:
        """Reemplaza ``electorado_seccional`` con el archivo del INE.

        El vaciado y la carga ocurren en una sola transacción: si el archivo
        falla, la tabla conserva su contenido anterior.

        English:
            Replace ``electorado_seccional`` with the INE file. Truncation and
            load share one transaction: on failure the table keeps its previous
            content.
        """
        path = Path(path) if path is not None else self.settings.electorate_file
        preflight([path], "Electorate file")
        report = FileReport(path=path)
        log = bind_context(self.logger, source_file=path.name)
        on_error = self._row_error_handler(report, self.settings.ELECTORATE_ROW_POLICY, log)

        try:
            with checkout(self.pool) as conn, transaction(conn):
                store = self.store_factory(conn)
                store.truncate("electorado_seccional")
                with CsvSource(path, electorate_header_schema()) as source:
                    report.state = FileState.HEADER_READ
                    report.warnings.extend(source.header.warnings)
                    report.state = FileState.STREAMING
                    batch: List[ElectorateRow] = []
                    for raw in source.rows(on_error=on_error):
                        try:
                            batch.append(parse_electorate_row(raw.values, line_number=raw.line_number))
                        except RowParseError as exc:
                            on_error(exc)
                            continue
                        report.processed += 1
                        if len(batch) >= ELECTORATE_BATCH_SIZE:
                            report.inserted += store.insert_electorate_rows(batch)
                            batch = []
                    report.inserted += store.insert_electorate_rows(batch)
        except FILE_FAILURES as exc:
            return self._fail(report, exc, log)

        report.state = FileState.COMMITTED
        log.info(
            "file_imported",
            processed=report.processed,
            skipped=report.skipped,
            inserted=report.inserted,
            warnings=len(report.warnings),
        )
        return report

    def import_historical_file(self, planned: PlannedFile) -> FileReport:
        """Importa un archivo histórico sin vaciar la tabla.

        Los resultados repetidos se descartan por la restricción única, por
        lo que reimportar el mismo archivo no duplica votos.

        English:
            Import one historical file without truncating. Repeated results
            are dropped by the unique constraint, so re-importing the same
            file never double-counts.
        """
        preflight([planned.path], "Historical file")
        report = FileReport(path=planned.path, election_type=planned.election_type, year=planned.year)
        log = bind_context(
            self.logger,
            source_file=planned.path.name,
            election_year=planned.year,
            election_type=planned.election_type.value,
        )
        on_error = self._row_error_handler(report, self.settings.HISTORICAL_ROW_POLICY, log)
        parties = tuple(self.settings.PARTIES)
        state = AggregationState(year=planned.year, election_type=planned.election_type, parties=parties)

        try:
            with checkout(self.pool) as conn, transaction(conn):
                store = self.store_factory(conn)
                directory = self._directory(store)
                with CsvSource(planned.path, historical_header_schema(parties)) as source:
                    report.state = FileState.HEADER_READ
                    report.warnings.extend(source.header.warnings)
                    report.state = FileState.STREAMING
                    for raw in source.rows(on_error=on_error):
                        aggregate_row(state, raw.values, directory.require, line_number=raw.line_number)
                report.inserted = store.insert_historical_results(build_results(state))
                report.totals_inserted = store.insert_municipal_totals(build_totals(state))
                report.created = directory.created
        except FILE_FAILURES as exc:
            return self._fail(report, exc, log)

        report.state = FileState.COMMITTED
        report.processed = state.processed
        report.skipped += state.skipped
        report.warnings.extend(state.warnings)
        for canonical, count in sorted(state.unresolved.items()):
            report.warnings.append(f"unresolved municipality {canonical} ({count} rows)")
        if state.inconsistent_totals:
            report.warnings.append(f"{state.inconsistent_totals} rows where valid + null != total votes")
        log.info(
            "file_imported",
            processed=report.processed,
            skipped=report.skipped,
            inserted=report.inserted,
            totals_inserted=report.totals_inserted,
            created=report.created,
            unresolved=len(state.unresolved),
        )
        return report

    def import_historical(self, planned: Optional[Sequence[PlannedFile]] = None) -> List[FileReport]:
        """Vacía ``historical_results`` y ``municipal_totals`` e importa cada archivo del plan.

        English:
            Truncate ``historical_results`` and ``municipal_totals`` and import
            every planned file. Missing files abort the phase before the
            truncation.
        """
        files = list(planned) if planned is not None else self.planned_files()
        preflight([item.path for item in files], "Historical file")
        with checkout(self.pool) as conn:
            with transaction(conn):
                store = self.store_factory(conn)
                store.truncate("historical_results")
                store.truncate("municipal_totals")
        self.logger.info("historical_phase_start", files=len(files))

        reports = [self.import_historical_file(item) for item in files]
        failed = [report.path.name for report in reports if not report.succeeded]
        self.logger.info(
            "historical_phase_done",
            files=len(reports),
            failed=len(failed),
            inserted=sum(report.inserted for report in reports),
        )
        return reports

    def import_all(self) -> List[FileReport]:
        """Esquema → electorado → históricos. / Schema → electorate → historical."""
        files = self.planned_files()
        preflight([self.settings.electorate_file], "Electorate file")
        preflight([item.path for item in files], "Historical file")
        self.initialize()
        reports = [self.import_electorate()]
        reports.extend(self.import_historical(files))
        return reports

    def seed_municipalities(self) -> int:
        """Crea los municipios del electorado que falten en el catálogo."""
        with checkout(self.pool) as conn:
            with transaction(conn):
                store = self.store_factory(conn)
                directory = MunicipalityDirectory.load(store, state=self.settings.DEFAULT_STATE)
                added = directory.seed_from_electorate()
        self.logger.info("municipalities_seeded", added=added, total=len(directory))
        return added


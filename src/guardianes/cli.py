"""
======================== ÍNDICE / INDEX ========================
1. Descripción general / Overview
2. Componentes principales / Main components
3. Notas de mantenimiento / Maintenance notes

======================== ESPAÑOL ========================
Archivo: `src/guardianes/cli.py`.
Interfaz de línea de comandos para crear el esquema, importar datos y
revisar el resultado. Sale con código distinto de cero si algún archivo
falló.

Componentes detectados:
  - main
  - init_db, import_all, import_electorate, import_historical
  - seed_municipalities, check_municipalities, summary

======================== ENGLISH ========================
File: `src/guardianes/cli.py`.
Command line interface to create the schema, import data and review the
outcome. Exits non-zero when any file failed.

Detected components:
  - main
  - init_db, import_all, import_electorate, import_historical
  - seed_municipalities, check_municipalities, summary
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import List, Optional

import typer

from guardianes.config import GuardianesSettings, load_config
from guardianes.core.models import ElectionType, FileReport, PlannedFile
from guardianes.database import checkout, create_pool
from guardianes.diagnostics import summary as historical_summary
from guardianes.diagnostics import unresolved_municipalities
from guardianes.directory import MunicipalityDirectory
from guardianes.errors import GuardianesImportError
from guardianes.logging import setup_logging
from guardianes.pipeline import Importer

app = typer.Typer(help="Guardianes electoral data loader")


def _settings() -> GuardianesSettings:
    try:
        return load_config()
    except ValueError as exc:
        typer.echo(str(exc), err=True)
        raise typer.Exit(code=2) from exc


def _importer() -> Importer:
    settings = _settings()
    logger = setup_logging(settings.LOG_LEVEL, settings.LOG_DIR)
    return Importer(settings, create_pool(settings), logger=logger)


def _print_reports(reports: List[FileReport]) -> None:
    for report in reports:
        typer.echo(json.dumps(report.as_dict(), ensure_ascii=False))
    failed = [report for report in reports if not report.succeeded]
    if failed:
        typer.echo(f"{len(failed)} file(s) failed", err=True)
        raise typer.Exit(code=1)


def _run(action):
    try:
        return action()
    except (GuardianesImportError, ValueError) as exc:
        typer.echo(str(exc), err=True)
        raise typer.Exit(code=1) from exc


@app.callback()
def main() -> None:
    """Interfaz de línea de comandos de Guardianes.

    English: Guardianes command line interface.
    """


@app.command("init-db")
def init_db() -> None:
    """Crea tablas, índices y restricciones."""
    _run(lambda: _importer().initialize())
    typer.echo("schema ready")


@app.command("import-all")
def import_all() -> None:
    """Esquema, electorado y todos los archivos históricos."""
    _print_reports(_run(lambda: _importer().import_all()))


@app.command("import-electorate")
def import_electorate(
    path: Optional[Path] = typer.Option(None, "--file", help="Electorate CSV (defaults to ELECTORATE_FILE)."),
) -> None:
    """Reemplaza el electorado seccional."""
    _print_reports([_run(lambda: _importer().import_electorate(path))])


@app.command("import-historical")
def import_historical(
    path: Optional[Path] = typer.Option(None, "--file", help="Single historical CSV, imported without truncation."),
    election_type: Optional[str] = typer.Option(None, "--type", help="Election type for --file."),
    year: Optional[int] = typer.Option(None, "--year", help="Election year for --file."),
) -> None:
    """Importa todos los históricos o un solo archivo."""
    if path is None:
        _print_reports(_run(lambda: _importer().import_historical()))
        return
    if election_type is None or year is None:
        typer.echo("--type and --year are required with --file", err=True)
        raise typer.Exit(code=2)
    try:
        planned = PlannedFile(path=path, election_type=ElectionType.parse(election_type), year=year)
    except ValueError as exc:
        typer.echo(str(exc), err=True)
        raise typer.Exit(code=2) from exc
    _print_reports([_run(lambda: _importer().import_historical_file(planned))])


@app.command("seed-municipalities")
def seed_municipalities() -> None:
    """Crea municipios a partir del electorado cargado."""
    added = _run(lambda: _importer().seed_municipalities())
    typer.echo(f"{added} municipalities added")


@app.command("check-municipalities")
def check_municipalities(path: Path = typer.Argument(..., help="Historical CSV to check.")) -> None:
    """Lista nombres que no resuelven a un municipio."""

    def _check():
        importer = _importer()
        with checkout(importer.pool) as conn:
            try:
                directory = MunicipalityDirectory.load(importer.store_factory(conn))
            finally:
                conn.rollback()
        return unresolved_municipalities(path, directory)

    unresolved = _run(_check)
    for item in unresolved:
        flag = " [unexpected characters]" if item.suspicious else ""
        typer.echo(f"{item.name} -> {item.canonical} ({item.occurrences}){flag}")
    typer.echo(f"{len(unresolved)} unresolved")


@app.command("summary")
def summary() -> None:
    """Resumen de resultados históricos por año y tipo."""
    def _summary():
        importer = _importer()
        return historical_summary(importer.pool, importer.store_factory)

    for row in _run(_summary):
        typer.echo(json.dumps(row, ensure_ascii=False))


if __name__ == "__main__":
    app()

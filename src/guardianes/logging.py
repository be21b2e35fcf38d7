"""
======================== ÍNDICE / INDEX ========================
1. Descripción general / Overview
2. Componentes principales / Main components
3. Notas de mantenimiento / Maintenance notes

======================== ESPAÑOL ========================
Archivo: `src/guardianes/logging.py`.
Configura structlog con salida JSON a consola y archivo rotativo.

Componentes detectados:
  - setup_logging
  - bind_context

======================== ENGLISH ========================
File: `src/guardianes/logging.py`.
Configures structlog with JSON output to console and a rotating file.

Detected components:
  - setup_logging
  - bind_context
"""

from __future__ import annotations

import logging
from logging.handlers import TimedRotatingFileHandler
from pathlib import Path
from typing import Any, Optional

import structlog


def setup_logging(log_level: str, log_dir: Path) -> structlog.BoundLogger:
    """Configura structlog y handlers de consola/archivo.

    English: Configure structlog and console/file handlers.
    """
    log_dir.mkdir(parents=True, exist_ok=True)

    file_handler = TimedRotatingFileHandler(
        log_dir / "guardianes-import.log",
        when="midnight",
        backupCount=30,
        encoding="utf-8",
    )
    console_handler = logging.StreamHandler()

    logging.basicConfig(
        level=log_level.upper(),
        handlers=[file_handler, console_handler],
        format="%(message)s",
        force=True,
    )

    structlog.configure(
        processors=[
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.JSONRenderer(ensure_ascii=False),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(logging.getLevelName(log_level.upper())),
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    return structlog.get_logger()


def bind_context(
    logger: structlog.BoundLogger,
    source_file: Optional[str] = None,
    election_year: Optional[int] = None,
    election_type: Optional[str] = None,
) -> structlog.BoundLogger:
    """Adjunta contexto estándar de archivo al logger.

    English: Bind standard per-file context to the logger.
    """
    context: dict[str, Any] = {}
    if source_file:
        context["source_file"] = source_file
    if election_year:
        context["election_year"] = election_year
    if election_type:
        context["election_type"] = election_type
    return logger.bind(**context)

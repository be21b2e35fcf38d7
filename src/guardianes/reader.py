"""Lectura en flujo de archivos CSV con dialecto autodetectado.

English:
    Streaming reader for CSV files with an auto-detected dialect. The header
    line is inspected once to pick the delimiter, canonicalized and validated
    against a ``HeaderSchema``; data rows are then streamed one at a time.
"""

from __future__ import annotations

import csv
import itertools
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Dict, Iterator, List, Optional, TextIO

from guardianes.core.dialect import delimiter_label, detect_delimiter
from guardianes.core.normalize import canonical_header
from guardianes.errors import AmbiguousDelimiterError, HeaderError, RowParseError, SourceNotFound
from guardianes.schemas import HEADER_ALIASES, HeaderCheck, HeaderSchema

logger = logging.getLogger(__name__)

RowErrorHandler = Callable[[RowParseError], None]


@dataclass(frozen=True)
class RawRow:
    """Fila cruda encabezado→valor con su número de línea.

    English: Raw header→value row with its line number.
    """

    line_number: int
    values: Dict[str, str]


@dataclass
class CsvHeader:
    """Encabezado leído: delimitador, columnas y validación.

    English: Header read from the file: delimiter, columns and validation.
    """

    delimiter: str
    columns: List[str]
    check: HeaderCheck
    warnings: List[str] = field(default_factory=list)


def _raise(error: RowParseError) -> None:
    raise error


def _unquote(value: str) -> str:
    return value.replace('"', "").strip()


class CsvSource:
    """Fuente CSV abierta en modo flujo.

    Example:
        >>> with CsvSource(path, historical_header_schema()) as source:
        ...     for row in source.rows(on_error=report.skip):
        ...         ...
    """

    def __init__(
        self,
        path: Path,
        schema: HeaderSchema,
        *,
        encoding: str = "utf-8-sig",
        strict_delimiter: bool = False,
    ) -> None:
        self.path = Path(path)
        self.schema = schema
        self.encoding = encoding
        self.strict_delimiter = strict_delimiter
        self._handle: Optional[TextIO] = None
        self._csv = None
        self.header: Optional[CsvHeader] = None

    def __enter__(self) -> "CsvSource":
        self.open()
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def open(self) -> CsvHeader:
        """Abre el archivo y lee el encabezado. / Open the file and read the header."""
        if not self.path.is_file():
            raise SourceNotFound(self.path, "Source file")
        self._handle = self.path.open("r", encoding=self.encoding, newline="")
        first_line = self._handle.readline()
        if not first_line.strip():
            self.close()
            raise HeaderError(self.path, list(self.schema.required))

        try:
            delimiter = detect_delimiter(first_line, strict=self.strict_delimiter)
        except AmbiguousDelimiterError:
            self.close()
            raise
        warnings: List[str] = []
        if delimiter not in first_line:
            warnings.append("no delimiter found in header; reading a single column")
            logger.warning("delimiter_fallback file=%s delimiter=%s", self.path.name, delimiter_label(delimiter))

        # Las comillas no agrupan campos: un valor con comilla suelta no debe
        # absorber las líneas siguientes.
        # Quotes never group fields; a stray quote must not swallow later lines.
        self._csv = csv.reader(
            itertools.chain([first_line], self._handle),
            delimiter=delimiter,
            quoting=csv.QUOTE_NONE,
        )
        try:
            raw_columns = next(self._csv)
        except csv.Error as exc:
            self.close()
            raise HeaderError(self.path, list(self.schema.required)) from exc
        columns = [HEADER_ALIASES.get(name, name) for name in (canonical_header(col) for col in raw_columns)]
        check = self.schema.check(columns)
        if not check.ok:
            self.close()
            raise HeaderError(self.path, check.missing_required)
        warnings.extend(check.warnings())
        self.header = CsvHeader(delimiter=delimiter, columns=columns, check=check, warnings=warnings)
        logger.info(
            "delimiter_detected file=%s delimiter=%s columns=%s",
            self.path.name,
            delimiter_label(delimiter),
            len(columns),
        )
        return self.header

    def rows(self, on_error: RowErrorHandler = _raise) -> Iterator[RawRow]:
        """Itera filas de datos; las malformadas van a ``on_error``.

        ``on_error`` decide la disciplina: lanzar la excepción aborta el
        archivo, ignorarla (contándola) la omite.

        English:
            Iterate data rows. Malformed rows (wrong column count or a line
            the csv module cannot parse) are handed to ``on_error``; raising
            aborts the file, returning skips the row. Double quotes are
            stripped from values, never used for grouping.
        """
        header = self.header
        if self._csv is None or header is None:
            header = self.open()
        reader = self._csv
        columns = header.columns
        while True:
            try:
                values = next(reader)
            except StopIteration:
                return
            except csv.Error as exc:
                on_error(RowParseError(reader.line_num, f"unparseable row: {exc}"))
                continue
            if not values or not any(_unquote(value) for value in values):
                continue
            line_number = reader.line_num
            if len(values) != len(columns):
                on_error(
                    RowParseError(
                        line_number,
                        f"expected {len(columns)} columns, got {len(values)}",
                    )
                )
                continue
            yield RawRow(
                line_number=line_number,
                values={name: _unquote(value) for name, value in zip(columns, values)},
            )

    def close(self) -> None:
        if self._handle is not None:
            self._handle.close()
        self._handle = None
        self._csv = None

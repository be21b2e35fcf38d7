"""Pool de conexiones PostgreSQL y manejo de transacciones.

English:
    PostgreSQL connection pool and transaction helpers. A connection is checked
    out per file import and always returned to the pool.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Any, Iterator

import psycopg2
from psycopg2 import pool as pg_pool

from guardianes.config import GuardianesSettings
from guardianes.errors import PersistenceError

logger = logging.getLogger(__name__)


def create_pool(settings: GuardianesSettings) -> pg_pool.SimpleConnectionPool:
    """Crea el pool a partir de ``DATABASE_URL``.

    English: Create the pool from ``DATABASE_URL``.
    """
    options: dict[str, Any] = {}
    if settings.DATABASE_SSLMODE:
        options["sslmode"] = settings.DATABASE_SSLMODE
    logger.info("db_pool_create min=%s max=%s", settings.DB_POOL_MIN, settings.DB_POOL_MAX)
    try:
        return pg_pool.SimpleConnectionPool(
            settings.DB_POOL_MIN,
            settings.DB_POOL_MAX,
            dsn=settings.DATABASE_URL,
            **options,
        )
    except psycopg2.Error as exc:
        logger.error("db_pool_create_failed error=%s", exc)
        raise PersistenceError(f"could not connect to the database: {exc}") from exc


@contextmanager
def checkout(pool: Any) -> Iterator[Any]:
    """Toma una conexión del pool y la devuelve siempre.

    English: Check a connection out of the pool and always give it back.
    Driver and pool errors while connecting become ``PersistenceError``.
    """
    try:
        conn = pool.getconn()
    except psycopg2.Error as exc:
        logger.error("db_checkout_failed error=%s", exc)
        raise PersistenceError(f"could not get a database connection: {exc}") from exc
    try:
        yield conn
    finally:
        pool.putconn(conn)


@contextmanager
def transaction(conn: Any) -> Iterator[Any]:
    """Confirma al salir o revierte ante cualquier excepción.

    English: Commit on exit or roll back on any exception, then re-raise.
    """
    try:
        yield conn
    except BaseException:
        conn.rollback()
        raise
    else:
        try:
            conn.commit()
        except psycopg2.Error as exc:
            raise PersistenceError(f"commit failed: {exc}") from exc

"""
Cliente de fuentes SQL (psycopg v3 para PostgreSQL, mysql-connector para MySQL).

La conexion se abre con las credenciales guardadas, se usa para una sola
consulta y se cierra en cualquier camino de salida. Ambos drivers usan
placeholders `%s`.
"""

from __future__ import annotations

from contextlib import closing
from typing import Any, Callable, Dict, List, Optional, Sequence

import mysql.connector
import psycopg
from loguru import logger
from psycopg.rows import dict_row

from datasync.core.config import settings
from datasync.domain.entities.sync import ExternalConnection
from datasync.shared.constants.sync_constants import DbType
from datasync.shared.exceptions.sync import SourceError

SUPPORTED_DB_TYPES = (DbType.POSTGRES.value, DbType.MYSQL.value)


class DatabaseSourceClient:
    """Ejecuta consultas contra una base externa y retorna filas como dict."""

    def __init__(
        self,
        *,
        connect: Callable[..., Any] = psycopg.connect,
        mysql_connect: Callable[..., Any] = mysql.connector.connect,
        connect_timeout_s: Optional[int] = None,
    ) -> None:
        self._connect = connect
        self._mysql_connect = mysql_connect
        self._connect_timeout_s = (
            settings.SOURCE_DB_CONNECT_TIMEOUT_SECONDS if connect_timeout_s is None else connect_timeout_s
        )

    def fetch(
        self,
        connection: ExternalConnection,
        query: str,
        params: Sequence[Any] = (),
    ) -> List[Dict[str, Any]]:
        dialect = connection.sql_dialect
        if dialect not in SUPPORTED_DB_TYPES:
            raise SourceError(f"Unsupported database type: {connection.db_type}")

        logger.info(f"Consultando base externa {dialect} {connection.host}:{connection.port}/{connection.database}")
        if dialect == DbType.MYSQL.value:
            return self._fetch_mysql(connection, query, params)
        return self._fetch_postgres(connection, query, params)

    def _fetch_postgres(
        self,
        connection: ExternalConnection,
        query: str,
        params: Sequence[Any],
    ) -> List[Dict[str, Any]]:
        try:
            with self._connect(
                host=connection.host,
                port=connection.port,
                dbname=connection.database,
                user=connection.username,
                password=connection.password,
                connect_timeout=self._connect_timeout_s,
                row_factory=dict_row,
            ) as conn:
                with conn.cursor() as cur:
                    # Sin params no hay interpretacion de placeholders: la query custom va literal
                    cur.execute(query, list(params) if params else None)
                    rows = cur.fetchall()
        except psycopg.Error as e:
            raise SourceError(
                f"Database query failed: {e}",
                details={"host": connection.host, "database": connection.database},
            ) from e

        return [dict(row) for row in rows]

    def _fetch_mysql(
        self,
        connection: ExternalConnection,
        query: str,
        params: Sequence[Any],
    ) -> List[Dict[str, Any]]:
        try:
            with closing(self._mysql_connect(
                host=connection.host,
                port=connection.port or 3306,
                database=connection.database,
                user=connection.username,
                password=connection.password,
                connection_timeout=self._connect_timeout_s,
            )) as conn:
                with closing(conn.cursor(dictionary=True)) as cur:
                    cur.execute(query, tuple(params) if params else None)
                    rows = cur.fetchall()
        except mysql.connector.Error as e:
            raise SourceError(
                f"Database query failed: {e}",
                details={"host": connection.host, "database": connection.database},
            ) from e

        return [dict(row) for row in rows]

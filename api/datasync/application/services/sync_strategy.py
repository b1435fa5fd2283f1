"""
Seleccion de la estrategia de sincronizacion.

Construye la consulta a la fuente (SQL) y decide si se limpian los
registros existentes y si se buscan coincidencias por clave.
"""
from dataclasses import dataclass
from datetime import datetime
from typing import Any, List, Optional, Sequence, Tuple

from datasync.domain.entities.sync import SyncSchedule
from datasync.shared.constants.sync_constants import DbType, SyncStrategy
from datasync.shared.exceptions.sync import SyncConfigurationError


@dataclass(frozen=True)
class SourceQuery:
    """Consulta efectiva de la corrida (sql=None para fuentes API)."""

    sql: Optional[str] = None
    params: Tuple[Any, ...] = ()
    cursor: Optional[datetime] = None


def quote_identifier(name: str, dialect: str = DbType.POSTGRES.value) -> str:
    """
    Identificador SQL citado segun el motor (escapa el delimitador interno).

    PostgreSQL usa comillas dobles; MySQL usa backticks.
    """
    quote = "`" if dialect == DbType.MYSQL.value else '"'
    return quote + str(name).replace(quote, quote * 2) + quote


def build_source_query(
    schedule: SyncSchedule,
    *,
    last_successful_start: Optional[datetime] = None,
    query_override: Optional[str] = None,
) -> SourceQuery:
    """
    Arma la consulta SQL de la corrida.

    - Query custom (u override de recuperacion): se usa literal, sin parametros.
    - FULL_REFRESH / APPEND: SELECT * de la tabla externa.
    - INCREMENTAL: filtra por la columna de timestamp desde el inicio de la
      ultima corrida exitosa; sin corrida previa trae todo ordenado.
    - max_records_per_sync agrega LIMIT.

    Raises:
        SyncConfigurationError: falta tabla externa o columna incremental
    """
    if schedule.connection.is_api:
        return SourceQuery()

    custom_query = query_override or schedule.source_query
    params: Tuple[Any, ...] = ()
    cursor = None

    if custom_query:
        sql = custom_query.strip().rstrip(";")
    else:
        table = schedule.data_model.external_table
        if not table:
            raise SyncConfigurationError("External table not specified for database sync")

        dialect = schedule.connection.sql_dialect
        schema = schedule.data_model.external_schema or schedule.connection.database
        source = quote_identifier(table, dialect)
        if schema:
            source = f"{quote_identifier(schema, dialect)}.{source}"
        sql = f"SELECT * FROM {source}"

        if schedule.is_incremental:
            column = schedule.incremental_timestamp_column
            if not column:
                raise SyncConfigurationError(
                    "INCREMENTAL sync requires incremental_timestamp_column"
                )
            quoted = quote_identifier(column, dialect)
            if last_successful_start is not None:
                sql += f" WHERE {quoted} > %s"
                params = (last_successful_start,)
                cursor = last_successful_start
            sql += f" ORDER BY {quoted}"

    if schedule.max_records_per_sync:
        sql += f" LIMIT {int(schedule.max_records_per_sync)}"

    return SourceQuery(sql=sql, params=params, cursor=cursor)


def should_clear_existing(schedule: SyncSchedule) -> bool:
    """Solo FULL_REFRESH con clear_existing_data borra antes de escribir."""
    return schedule.sync_strategy == SyncStrategy.FULL_REFRESH.value and schedule.clear_existing_data


def match_key_for(schedule: SyncSchedule) -> Optional[str]:
    """Clave de match para upsert (INCREMENTAL con incremental_key)."""
    if schedule.is_incremental and schedule.incremental_key:
        return schedule.incremental_key
    return None


def apply_record_cap(records: Sequence[Any], max_records: Optional[int]) -> List[Any]:
    """Aplica max_records_per_sync a fuentes sin LIMIT (API)."""
    if max_records and max_records > 0:
        return list(records[:max_records])
    return list(records)

from __future__ import annotations

from datetime import datetime, timezone

import pytest

from datasync.application.services.sync_strategy import (
    apply_record_cap,
    build_source_query,
    match_key_for,
    quote_identifier,
    should_clear_existing,
)
from datasync.domain.entities.sync import ExternalConnection, SyncSchedule, TargetDataModel
from datasync.shared.exceptions.sync import SyncConfigurationError


def _schedule(connection_type: str = "database", table: str = "users", schema: str = "public", **overrides) -> SyncSchedule:
    values = dict(
        id="s-1",
        space_id="space-1",
        data_model_id="dm-1",
        external_connection_id="c-1",
        name="usuarios",
        schedule_type="MANUAL",
        sync_strategy="FULL_REFRESH",
        connection=ExternalConnection(id="c-1", connection_type=connection_type, db_type="postgres", database="src"),
        data_model=TargetDataModel(id="dm-1", external_table=table, external_schema=schema),
    )
    values.update(overrides)
    return SyncSchedule(**values)


def test_api_sources_have_no_sql() -> None:
    query = build_source_query(_schedule(connection_type="api"))
    assert query.sql is None
    assert query.params == ()


def test_full_refresh_selects_quoted_table() -> None:
    query = build_source_query(_schedule())
    assert query.sql == 'SELECT * FROM "public"."users"'
    assert query.params == ()


def test_schema_falls_back_to_connection_database() -> None:
    query = build_source_query(_schedule(schema=None))
    assert query.sql == 'SELECT * FROM "src"."users"'


def test_missing_table_is_a_configuration_error() -> None:
    with pytest.raises(SyncConfigurationError):
        build_source_query(_schedule(table=None))


def test_incremental_without_cursor_orders_by_timestamp() -> None:
    schedule = _schedule(sync_strategy="INCREMENTAL", incremental_timestamp_column="updated_at")
    query = build_source_query(schedule)
    assert query.sql == 'SELECT * FROM "public"."users" ORDER BY "updated_at"'
    assert query.cursor is None


def test_incremental_with_cursor_filters_strictly_after_last_start() -> None:
    cursor = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)
    schedule = _schedule(sync_strategy="INCREMENTAL", incremental_timestamp_column="updated_at", max_records_per_sync=100)

    query = build_source_query(schedule, last_successful_start=cursor)

    assert query.sql == 'SELECT * FROM "public"."users" WHERE "updated_at" > %s ORDER BY "updated_at" LIMIT 100'
    assert query.params == (cursor,)
    assert query.cursor == cursor


def test_incremental_requires_timestamp_column() -> None:
    with pytest.raises(SyncConfigurationError):
        build_source_query(_schedule(sync_strategy="INCREMENTAL"))


def test_custom_query_is_used_verbatim() -> None:
    schedule = _schedule(source_query="SELECT id, name FROM people WHERE active;", max_records_per_sync=5)
    query = build_source_query(schedule)
    assert query.sql == "SELECT id, name FROM people WHERE active LIMIT 5"
    assert query.params == ()


def test_fallback_query_overrides_custom_query() -> None:
    schedule = _schedule(source_query="SELECT * FROM people")
    query = build_source_query(schedule, query_override="SELECT * FROM people_v2")
    assert query.sql == "SELECT * FROM people_v2"


def test_quote_identifier_escapes_quotes() -> None:
    assert quote_identifier('we"ird') == '"we""ird"'


def test_clear_and_match_key_depend_on_strategy() -> None:
    assert should_clear_existing(_schedule(clear_existing_data=True))
    assert not should_clear_existing(_schedule(sync_strategy="APPEND", clear_existing_data=True))
    assert match_key_for(_schedule(sync_strategy="INCREMENTAL", incremental_key="id")) == "id"
    assert match_key_for(_schedule(incremental_key="id")) is None


def test_apply_record_cap() -> None:
    assert apply_record_cap([1, 2, 3], 2) == [1, 2]
    assert apply_record_cap([1, 2, 3], None) == [1, 2, 3]


def test_mysql_sources_quote_with_backticks() -> None:
    schedule = _schedule(
        connection=ExternalConnection(id="c-1", connection_type="database", db_type="MySQL", database="src"),
        sync_strategy="INCREMENTAL",
        incremental_timestamp_column="updated_at",
    )
    cursor = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)

    query = build_source_query(schedule, last_successful_start=cursor)

    assert query.sql == "SELECT * FROM `public`.`users` WHERE `updated_at` > %s ORDER BY `updated_at`"
    assert quote_identifier("we`ird", "mysql") == "`we``ird`"


def test_null_db_type_quotes_like_postgres() -> None:
    schedule = _schedule(connection=ExternalConnection(id="c-1", connection_type="database", database="src"))
    assert build_source_query(schedule).sql == 'SELECT * FROM "public"."users"'

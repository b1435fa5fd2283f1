"""
Tests unitarios para los endpoints de sincronizacion.

Verifica el contrato HTTP:
- 404 para schedules inexistentes.
- 409 si el schedule ya esta corriendo.
- La corrida devuelve el resultado y queda en el historial.
"""
from __future__ import annotations

import pytest
from httpx import ASGITransport, AsyncClient

from datasync.api.v1.dependencies.repository_deps import get_session_factory
from datasync.api.v1.dependencies.use_case_deps import get_sync_executor


class StaticSource:
    def __init__(self, records):
        self.records = records

    def fetch(self, connection, query=None, params=()):
        return list(self.records)


@pytest.fixture
def app_with_db(session_factory, make_executor):
    """App FastAPI apuntando a la base de prueba via dependency_overrides."""
    from main import create_application
    app = create_application()
    app.dependency_overrides[get_session_factory] = lambda: session_factory
    app.dependency_overrides[get_sync_executor] = lambda: make_executor(
        StaticSource([{"id": 1, "name": "Ana"}, {"id": 2, "name": "Luis"}])
    )
    yield app
    app.dependency_overrides.clear()


async def _post(app, path: str):
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        return await client.post(path)


async def _get(app, path: str):
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        return await client.get(path)


@pytest.mark.asyncio
async def test_execute_unknown_schedule_returns_404(app_with_db) -> None:
    response = await _post(app_with_db, "/api/v1/sync/schedules/no-existe/execute")

    assert response.status_code == 404
    assert response.json()["error"] == "SCHEDULE_NOT_FOUND"


@pytest.mark.asyncio
async def test_execute_running_schedule_returns_409(app_with_db, seed_schedule) -> None:
    schedule_id = seed_schedule(schedule={"last_run_status": "RUNNING"})

    response = await _post(app_with_db, f"/api/v1/sync/schedules/{schedule_id}/execute")

    assert response.status_code == 409
    assert response.json()["error"] == "CONFLICT"


@pytest.mark.asyncio
async def test_execute_then_list_executions(app_with_db, seed_schedule) -> None:
    schedule_id = seed_schedule()

    response = await _post(app_with_db, f"/api/v1/sync/schedules/{schedule_id}/execute")

    assert response.status_code == 200
    data = response.json()
    assert data["success"] is True
    assert data["records_inserted"] == 2
    assert data["execution_id"]

    history = await _get(app_with_db, f"/api/v1/sync/schedules/{schedule_id}/executions?limit=10")
    assert history.status_code == 200
    body = history.json()
    assert body["total"] == 1
    assert body["executions"][0]["id"] == data["execution_id"]
    assert body["executions"][0]["status"] == "COMPLETED"


@pytest.mark.asyncio
async def test_list_alerts_empty(app_with_db, seed_schedule) -> None:
    schedule_id = seed_schedule()

    response = await _get(app_with_db, f"/api/v1/sync/schedules/{schedule_id}/alerts")

    assert response.status_code == 200
    assert response.json() == {"schedule_id": schedule_id, "total": 0, "alerts": []}


@pytest.mark.asyncio
async def test_executions_limit_is_validated(app_with_db, seed_schedule) -> None:
    schedule_id = seed_schedule()

    response = await _get(app_with_db, f"/api/v1/sync/schedules/{schedule_id}/executions?limit=0")

    assert response.status_code == 422

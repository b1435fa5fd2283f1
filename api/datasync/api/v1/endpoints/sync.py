"""
Endpoints para sincronizacion de datos externos.
Permite disparar corridas y consultar su historial y alertas.
"""
import asyncio

from fastapi import APIRouter, Depends, Query
from loguru import logger

from datasync.api.v1.dependencies.repository_deps import (
    get_alert_history_repository,
    get_execution_repository,
    get_schedule_repository,
)
from datasync.api.v1.dependencies.use_case_deps import get_sync_executor
from datasync.application.dto.sync_dto import (
    AlertHistoryDTO,
    AlertHistoryListDTO,
    SyncExecutionDTO,
    SyncExecutionListDTO,
    SyncExecutionResultDTO,
)
from datasync.application.use_cases.sync_use_cases import DataSyncExecutor
from datasync.domain.repositories.sync_repositories import (
    IAlertHistoryRepository,
    ISyncExecutionRepository,
    ISyncScheduleRepository,
)
from datasync.shared.constants.sync_constants import RunStatus
from datasync.shared.exceptions.domain import ConflictException
from datasync.shared.exceptions.sync import ScheduleNotFoundError


router = APIRouter(prefix="/sync", tags=["Sync"])


def _ensure_schedule(schedules: ISyncScheduleRepository, schedule_id: str):
    schedule = schedules.get_by_id(schedule_id)
    if schedule is None:
        raise ScheduleNotFoundError(schedule_id)
    return schedule


@router.post(
    "/schedules/{schedule_id}/execute",
    response_model=SyncExecutionResultDTO,
    summary="Ejecutar un schedule de sincronizacion",
)
async def execute_schedule(
    schedule_id: str,
    schedules: ISyncScheduleRepository = Depends(get_schedule_repository),
    executor: DataSyncExecutor = Depends(get_sync_executor),
):
    """
    Ejecuta una corrida del schedule de forma sincrona.

    La corrida es bloqueante (fuente externa + escrituras por registro),
    por eso se ejecuta en un thread separado. Responde 409 si el schedule
    ya esta RUNNING.
    """
    schedule = await asyncio.to_thread(_ensure_schedule, schedules, schedule_id)
    if schedule.last_run_status == RunStatus.RUNNING.value:
        raise ConflictException(
            f"El schedule {schedule_id} ya tiene una corrida en curso",
            details={"schedule_id": schedule_id},
        )

    logger.info(f"Corrida solicitada via API para schedule {schedule_id}")
    result = await asyncio.to_thread(executor.execute_sync, schedule_id)
    return SyncExecutionResultDTO(**result.to_dict())


@router.get(
    "/schedules/{schedule_id}/executions",
    response_model=SyncExecutionListDTO,
    summary="Historial de corridas",
)
def list_executions(
    schedule_id: str,
    limit: int = Query(50, ge=1, le=500),
    schedules: ISyncScheduleRepository = Depends(get_schedule_repository),
    executions: ISyncExecutionRepository = Depends(get_execution_repository),
):
    """Ultimas corridas del schedule, mas recientes primero."""
    _ensure_schedule(schedules, schedule_id)
    items = executions.list_recent(schedule_id, limit=limit)
    return SyncExecutionListDTO(
        schedule_id=schedule_id,
        total=len(items),
        executions=[SyncExecutionDTO.model_validate(item) for item in items],
    )


@router.get(
    "/schedules/{schedule_id}/alerts",
    response_model=AlertHistoryListDTO,
    summary="Historial de alertas",
)
def list_alerts(
    schedule_id: str,
    limit: int = Query(50, ge=1, le=500),
    schedules: ISyncScheduleRepository = Depends(get_schedule_repository),
    alert_history: IAlertHistoryRepository = Depends(get_alert_history_repository),
):
    """Ultimas alertas disparadas para el schedule."""
    _ensure_schedule(schedules, schedule_id)
    items = alert_history.list_for_schedule(schedule_id, limit=limit)
    return AlertHistoryListDTO(
        schedule_id=schedule_id,
        total=len(items),
        alerts=[AlertHistoryDTO(**item) for item in items],
    )

from datetime import datetime, timedelta
from typing import Any, Dict, Optional

from datasync.shared.constants.sync_constants import ScheduleType


def _config_int(schedule_config: Optional[Dict[str, Any]], key: str) -> int:
    """Lee hour/minute del schedule_config tolerando None, strings y valores invalidos."""
    if not schedule_config:
        return 0
    try:
        return int(schedule_config.get(key) or 0)
    except (TypeError, ValueError):
        return 0


def calculate_next_run_at(
    schedule_type: str,
    schedule_config: Optional[Dict[str, Any]],
    now: datetime,
    current_next_run_at: Optional[datetime] = None,
) -> Optional[datetime]:
    """
    Calcula la proxima ejecucion de un schedule.

    - HOURLY: inicio de la proxima hora.
    - DAILY: mañana a la hora:minuto configurada.
    - WEEKLY: en 7 dias a la hora:minuto configurada.
    - CUSTOM_CRON / MANUAL: se conserva el valor actual (lo resuelve el scheduler externo).
    """
    if schedule_type == ScheduleType.HOURLY.value:
        return now.replace(minute=0, second=0, microsecond=0) + timedelta(hours=1)

    if schedule_type in (ScheduleType.DAILY.value, ScheduleType.WEEKLY.value):
        days = 1 if schedule_type == ScheduleType.DAILY.value else 7
        hour = _config_int(schedule_config, "hour")
        minute = _config_int(schedule_config, "minute")
        # Horas fuera de rango caen a medianoche en vez de romper la corrida
        if not 0 <= hour <= 23:
            hour = 0
        if not 0 <= minute <= 59:
            minute = 0
        return (now + timedelta(days=days)).replace(
            hour=hour, minute=minute, second=0, microsecond=0
        )

    return current_next_run_at

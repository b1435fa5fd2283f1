"""
Politicas de reintento y recuperacion ante fallas de una corrida.

- RecoveryPolicy: acciones (patron de error -> accion) evaluadas en orden;
  la primera que matchea gana.
- RetryPolicy: backoff exponencial sobre next_run_at del schedule.
"""
import re
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional, Sequence

from loguru import logger

from datasync.domain.entities.sync import RecoveryAction, SyncSchedule
from datasync.domain.repositories.sync_repositories import ISyncScheduleRepository
from datasync.shared.constants.sync_constants import RecoveryActionType


def pattern_matches(pattern: Optional[str], error: str) -> bool:
    """
    Patron vacio matchea todo. Si no, substring o regex (sin distinguir mayusculas).
    Una regex invalida se evalua solo como substring.
    """
    if not pattern:
        return True
    error = error or ""
    if pattern.lower() in error.lower():
        return True
    try:
        return re.search(pattern, error, re.IGNORECASE) is not None
    except re.error:
        return False


@dataclass(frozen=True)
class RecoveryDecision:
    """Resultado de consultar las acciones de recuperacion."""

    action: Optional[str] = None
    fallback_query: Optional[str] = None
    pattern: Optional[str] = None

    @property
    def matched(self) -> bool:
        return self.action is not None

    @property
    def reattempt(self) -> bool:
        """Solo fallback_query habilita un segundo intento dentro de la misma corrida."""
        return self.action == RecoveryActionType.FALLBACK_QUERY.value and bool(self.fallback_query)

    def to_log(self) -> dict:
        return {"action": self.action, "pattern": self.pattern}


NO_RECOVERY = RecoveryDecision()


class RecoveryPolicy:
    """Evalua las acciones de recuperacion activas de un schedule."""

    def __init__(self, actions: Sequence[RecoveryAction]):
        self.actions = list(actions)

    def decide(self, error: str) -> RecoveryDecision:
        for action in self.actions:
            if not pattern_matches(action.error_pattern, error):
                continue

            kind = action.recovery_action
            if kind == RecoveryActionType.FALLBACK_QUERY.value:
                fallback = (action.recovery_config or {}).get("fallback_query")
                if fallback:
                    return RecoveryDecision(kind, fallback_query=fallback, pattern=action.error_pattern)
                # fallback_query sin query configurada: se sigue buscando
                continue

            if kind in (
                RecoveryActionType.SKIP.value,
                RecoveryActionType.NOTIFY_ONLY.value,
                RecoveryActionType.RETRY.value,
            ):
                return RecoveryDecision(kind, pattern=action.error_pattern)

            logger.warning(f"Accion de recuperacion desconocida '{kind}', se ignora")

        return NO_RECOVERY


class RetryPolicy:
    """Reprograma el schedule con backoff exponencial."""

    def __init__(self, schedules: ISyncScheduleRepository):
        self.schedules = schedules

    @staticmethod
    def compute_delay(schedule: SyncSchedule) -> float:
        """delay = base * multiplicador ** reintentos_previos (segundos)."""
        return float(schedule.retry_delay_seconds) * (
            float(schedule.retry_backoff_multiplier) ** schedule.current_retry_count
        )

    @staticmethod
    def can_retry(schedule: SyncSchedule) -> bool:
        return bool(schedule.retry_enabled) and schedule.current_retry_count < schedule.max_retries

    def schedule_retry(self, schedule: SyncSchedule, now: datetime) -> bool:
        """
        Programa el proximo intento si la politica lo permite.

        Returns:
            True si se programo un reintento
        """
        if not self.can_retry(schedule):
            return False

        delay = self.compute_delay(schedule)
        retry_count = schedule.current_retry_count + 1
        next_run_at = now + timedelta(seconds=delay)
        self.schedules.schedule_retry(schedule.id, retry_count, next_run_at)

        logger.warning(
            f"Reintento {retry_count}/{schedule.max_retries} del schedule {schedule.id} "
            f"programado en {delay:g}s ({next_run_at.isoformat()})"
        )
        return True

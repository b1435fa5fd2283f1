"""
Interfaz de notificaciones de sincronizacion.

El transporte (email, chat, etc.) queda fuera del motor:
- LoggingNotifier (loguru) por defecto.
- Fake/stub para tests.
"""

from __future__ import annotations

from typing import Optional, Protocol, Sequence

from datasync.domain.entities.alerts import SyncAlert
from datasync.domain.entities.sync import SyncExecutionResult, SyncSchedule


class Notifier(Protocol):
    """Envia avisos de corridas y alertas a los destinatarios del schedule."""

    def send_sync_success(
        self,
        *,
        schedule: SyncSchedule,
        recipients: Sequence[str],
        result: SyncExecutionResult,
        execution_id: Optional[str],
    ) -> None:
        ...

    def send_sync_failure(
        self,
        *,
        schedule: SyncSchedule,
        recipients: Sequence[str],
        result: SyncExecutionResult,
        execution_id: Optional[str],
    ) -> None:
        ...

    def send_alert(
        self,
        *,
        schedule: SyncSchedule,
        recipients: Sequence[str],
        alert: SyncAlert,
    ) -> None:
        ...

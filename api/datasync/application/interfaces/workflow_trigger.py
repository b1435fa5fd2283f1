"""
Contrato hacia el motor de workflows.

El motor de sincronizacion solo emite el evento "termino la corrida";
resolver y ejecutar los workflows es responsabilidad de la implementacion.
"""

from __future__ import annotations

from typing import Protocol


class WorkflowTrigger(Protocol):
    """Dispara los workflows ligados a un schedule."""

    def notify_workflows(self, schedule_id: str, on_success: bool) -> None:
        """
        Reglas:
        - Los errores de un workflow no deben cortar la corrida ni a los demas workflows.
        """

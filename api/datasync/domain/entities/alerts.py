"""
Sistema de alertas extensible para corridas de sincronizacion.

Define el protocolo AlertRule que permite agregar nuevos tipos de alerta
sin modificar codigo existente (Open/Closed Principle).

Cada schedule configura sus alertas (tipo + config) en base de datos; el
AlertRegistry resuelve el tipo a la clase evaluadora y la instancia con
esa configuracion.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import TYPE_CHECKING, Any, Callable, Dict, List, Optional, Protocol

if TYPE_CHECKING:
    from datasync.domain.entities.sync import SyncExecutionResult
    from datasync.domain.repositories.sync_repositories import ISyncExecutionRepository


class AlertSeverity(Enum):
    """
    Severidad de la alerta.

    Define el nivel de urgencia para el operador del schedule.
    """
    WARNING = "warning"     # Requiere atencion, posible degradacion
    ERROR = "error"         # La sincronizacion esta fallando
    CRITICAL = "critical"   # Accion inmediata requerida


@dataclass
class SyncAlert:
    """
    Alerta generada al evaluar una corrida.

    Incluye contexto suficiente para entender y actuar sobre la alerta.
    """

    alert_id: str               # Id de la definicion configurada
    alert_type: str             # Tipo (failure_threshold, error_rate, ...)
    severity: AlertSeverity
    message: str
    value: float                # Valor observado que disparo la alerta
    threshold: float            # Umbral configurado
    created_at: datetime

    metadata: Dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class AlertContext:
    """
    Contexto de evaluacion de una corrida.

    `executions` da acceso al historial para reglas estadisticas.
    """

    schedule_id: str
    execution_id: Optional[str]
    now: datetime
    executions: "ISyncExecutionRepository"


class AlertRule(Protocol):
    """
    Protocolo para reglas de alerta.

    Ejemplo de implementacion:

    ```python
    @dataclass
    class MyCustomAlert:
        alert_id: str = ""
        alert_type: str = "my_alert"

        def evaluate(self, result, context) -> Optional[SyncAlert]:
            if some_condition:
                return SyncAlert(...)
            return None
    ```
    """

    alert_id: str
    alert_type: str

    def evaluate(
        self,
        result: "SyncExecutionResult",
        context: AlertContext
    ) -> Optional[SyncAlert]:
        """
        Evalua la regla contra el resultado de la corrida.

        Returns:
            SyncAlert si la condicion se cumple, None si no
        """
        ...


AlertFactory = Callable[[str, Dict[str, Any]], AlertRule]


class AlertRegistry:
    """
    Registro central de tipos de alerta.

    Mapea alert_type -> factory(alert_id, config). Los tipos base se
    registran en el startup (ver register_default_alerts).
    """

    _factories: Dict[str, AlertFactory] = {}
    _initialized: bool = False

    @classmethod
    def register(cls, alert_type: str, factory: AlertFactory) -> None:
        """Registra un tipo de alerta; no pisa registros existentes."""
        if alert_type not in cls._factories:
            cls._factories[alert_type] = factory

    @classmethod
    def build(cls, alert_id: str, alert_type: str, config: Dict[str, Any]) -> Optional[AlertRule]:
        """Instancia la regla configurada, o None si el tipo no esta registrado."""
        factory = cls._factories.get(alert_type)
        if factory is None:
            return None
        return factory(alert_id, config or {})

    @classmethod
    def get_registered_types(cls) -> List[str]:
        """Retorna los tipos registrados."""
        return list(cls._factories.keys())

    @classmethod
    def clear(cls) -> None:
        """
        Limpia todos los tipos registrados.
        Util para testing.
        """
        cls._factories = {}
        cls._initialized = False

    @classmethod
    def is_initialized(cls) -> bool:
        """Verifica si el registro ya fue inicializado."""
        return cls._initialized

    @classmethod
    def mark_initialized(cls) -> None:
        """Marca el registro como inicializado."""
        cls._initialized = True

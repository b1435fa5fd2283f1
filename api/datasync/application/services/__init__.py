"""
Servicios de aplicacion.

Contiene la logica de negocio reutilizable que no pertenece
a un caso de uso especifico.
"""
from datasync.application.services.record_mapper import apply_data_mapping, get_nested_value
from datasync.application.services.record_validator import (
    CustomValidatorRegistry,
    collect_violations,
    validate_record,
)
from datasync.application.services.sync_strategy import SourceQuery, build_source_query
from datasync.application.services.retry_policy import RecoveryPolicy, RetryPolicy
from datasync.application.services.rate_limiter import RateLimiter
from datasync.application.services.eav_writer import EavWriter
from datasync.application.services.alert_evaluators import (
    register_default_alerts,
    FailureThresholdAlert,
    RecordCountAnomalyAlert,
    DurationAnomalyAlert,
    ErrorRateAlert,
)
from datasync.application.services.alert_engine import AlertEngine

__all__ = [
    # Mapeo y validacion
    "apply_data_mapping",
    "get_nested_value",
    "CustomValidatorRegistry",
    "collect_violations",
    "validate_record",
    # Estrategia y escritura
    "SourceQuery",
    "build_source_query",
    "EavWriter",
    "RateLimiter",
    # Reintentos
    "RecoveryPolicy",
    "RetryPolicy",
    # Alertas
    "AlertEngine",
    "register_default_alerts",
    "FailureThresholdAlert",
    "RecordCountAnomalyAlert",
    "DurationAnomalyAlert",
    "ErrorRateAlert",
]

"""
Constantes relacionadas con la sincronizacion de datos externos.
Define estados, estrategias, tipos de reglas y acciones de recuperacion.
"""
from enum import Enum


class ScheduleType(str, Enum):
    """Frecuencias posibles de un schedule de sincronizacion."""
    HOURLY = "HOURLY"
    DAILY = "DAILY"
    WEEKLY = "WEEKLY"
    CUSTOM_CRON = "CUSTOM_CRON"
    MANUAL = "MANUAL"


class SyncStrategy(str, Enum):
    """Estrategias de reconciliacion contra el store EAV."""
    FULL_REFRESH = "FULL_REFRESH"
    INCREMENTAL = "INCREMENTAL"
    APPEND = "APPEND"


class RunStatus(str, Enum):
    """Estados de una corrida (schedule y ejecuciones)."""
    PENDING = "PENDING"
    RUNNING = "RUNNING"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"


class ConnectionType(str, Enum):
    """Tipos de conexion externa soportados."""
    DATABASE = "database"
    API = "api"


class DbType(str, Enum):
    """Motores SQL soportados como fuente."""
    POSTGRES = "postgres"
    MYSQL = "mysql"


# Alias aceptados en db_type
DB_TYPE_ALIASES = {"postgresql": DbType.POSTGRES.value, "mariadb": DbType.MYSQL.value}


class ApiAuthType(str, Enum):
    """Esquemas de autenticacion para fuentes HTTP."""
    NONE = "none"
    BEARER = "bearer"
    BASIC = "basic"
    APIKEY = "apikey"


class ValidationRuleType(str, Enum):
    """Tipos de reglas de validacion por campo."""
    REQUIRED = "required"
    TYPE = "type"
    FORMAT = "format"
    RANGE = "range"
    CUSTOM = "custom"


class RecoveryActionType(str, Enum):
    """Acciones de recuperacion ante un patron de error conocido."""
    SKIP = "skip"
    RETRY = "retry"
    FALLBACK_QUERY = "fallback_query"
    NOTIFY_ONLY = "notify_only"


class AlertType(str, Enum):
    """Tipos de alerta configurables por schedule."""
    FAILURE_THRESHOLD = "failure_threshold"
    RECORD_COUNT_ANOMALY = "record_count_anomaly"
    DURATION_ANOMALY = "duration_anomaly"
    ERROR_RATE = "error_rate"


# Valores por defecto de la politica de reintentos
DEFAULT_MAX_RETRIES = 3
DEFAULT_RETRY_DELAY_SECONDS = 300
DEFAULT_BACKOFF_MULTIPLIER = 2.0

# Ventana usada para estadisticas de cantidad de registros (dias)
RECORD_COUNT_WINDOW_DAYS = 7

# Metodos HTTP que aceptan body
HTTP_METHODS_WITH_BODY = ("POST", "PUT", "PATCH")

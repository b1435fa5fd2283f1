"""
Configuracion central de la aplicacion.
Gestiona variables de entorno y configuraciones globales.
Soporta configuracion dinamica para desarrollo (ENVIRONMENT=development)
y produccion (ENVIRONMENT=production).
"""
import json
from typing import List
from pydantic_settings import BaseSettings
from pydantic import Field, computed_field


class Settings(BaseSettings):
    """
    Clase de configuracion de la aplicacion.
    Lee variables de entorno y proporciona valores por defecto.

    - DATABASE_URL se puede especificar completa o por componentes
    - Los valores SYNC_* son los defaults del motor cuando el schedule no los define
    """

    # Configuracion de la aplicacion
    APP_NAME: str = Field(default="Data Sync Engine")
    APP_VERSION: str = Field(default="1.0.0")
    DEBUG: bool = Field(default=False)
    ENVIRONMENT: str = Field(default="production")

    # Configuracion del servidor
    HOST: str = Field(default="0.0.0.0")
    PORT: int = Field(default=8000)

    # Base de datos - Componentes separados (recomendado para flexibilidad)
    DATABASE_HOST: str = Field(default="localhost")
    DATABASE_PORT: int = Field(default=5432)
    DATABASE_USER: str = Field(default="sync_user")
    DATABASE_PASSWORD: str = Field(default="sync_pass")
    DATABASE_NAME: str = Field(default="sync_db")

    # Base de datos - URL completa (override de componentes si se proporciona)
    DATABASE_URL: str = Field(default="")
    DB_POOL_SIZE: int = Field(default=5)
    DB_MAX_OVERFLOW: int = Field(default=10)

    # CORS (acepta lista JSON o "*" para todos los origenes)
    CORS_ORIGINS: str = Field(default="*")

    # Logging
    LOG_LEVEL: str = Field(default="INFO")
    LOG_FILE: str = Field(default="logs/sync.log")

    # Fuentes externas
    HTTP_TIMEOUT_SECONDS: int = Field(default=30)
    # Reintentos internos del cliente HTTP ante 429/5xx (0 = sin reintentos)
    HTTP_MAX_RETRIES: int = Field(default=2)
    SOURCE_DB_CONNECT_TIMEOUT_SECONDS: int = Field(default=10)

    # Motor de sincronizacion
    # Tiempo maximo de una corrida en segundos (0 = sin limite)
    SYNC_RUN_TIMEOUT_SECONDS: float = Field(default=0)
    SYNC_DEFAULT_MAX_RETRIES: int = Field(default=3)
    SYNC_DEFAULT_RETRY_DELAY_SECONDS: float = Field(default=300)
    SYNC_DEFAULT_BACKOFF_MULTIPLIER: float = Field(default=2.0)

    @computed_field
    @property
    def effective_database_url(self) -> str:
        """
        Retorna la URL de base de datos efectiva.
        Si DATABASE_URL esta definida, la usa directamente.
        Si no, construye la URL desde los componentes individuales.
        """
        if self.DATABASE_URL:
            return self.DATABASE_URL
        return (
            f"postgresql+psycopg://{self.DATABASE_USER}:{self.DATABASE_PASSWORD}"
            f"@{self.DATABASE_HOST}:{self.DATABASE_PORT}/{self.DATABASE_NAME}"
        )

    class Config:
        """Configuracion de Pydantic."""
        env_file = ".env"
        case_sensitive = True
        extra = "ignore"  # Ignorar campos extra del .env


def get_cors_origins(cors_string: str) -> List[str]:
    """
    Parsea la configuracion de CORS.
    Acepta "*" para todos los origenes o una lista JSON.
    """
    if cors_string == "*":
        return ["*"]
    try:
        return json.loads(cors_string)
    except json.JSONDecodeError:
        # Si no es JSON valido, retornar como lista simple
        return [origin.strip() for origin in cors_string.split(",")]


# Instancia global de configuracion
settings = Settings()

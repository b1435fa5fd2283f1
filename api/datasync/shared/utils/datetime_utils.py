"""
Utilidades para manejo de fechas y horas.
"""
from datetime import datetime, timezone
from typing import Optional


class DateTimeUtils:
    """Clase de utilidades para operaciones con fechas y horas."""

    @staticmethod
    def now_utc() -> datetime:
        """
        Obtiene la fecha y hora actual en UTC.

        Returns:
            datetime: Fecha y hora actual en UTC
        """
        return datetime.now(timezone.utc)

    @staticmethod
    def ensure_utc(dt: datetime) -> datetime:
        """
        Normaliza un datetime a UTC (aware).

        SQLite devuelve datetimes naive aunque la columna sea timezone=True;
        se asumen en UTC para comparar de forma consistente.
        """
        if dt.tzinfo is None:
            return dt.replace(tzinfo=timezone.utc)
        return dt.astimezone(timezone.utc)

    @staticmethod
    def to_iso_string(dt: Optional[datetime]) -> Optional[str]:
        """
        Convierte un datetime a string ISO 8601.

        Args:
            dt: Objeto datetime

        Returns:
            Optional[str]: Fecha en formato ISO 8601 o None
        """
        return dt.isoformat() if dt else None

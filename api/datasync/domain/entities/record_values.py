"""
Valores tipados de un registro mapeado.

En lugar de un dict sin tipos, cada campo mapeado es una variante cerrada:

- TextValue, NumberValue, BooleanValue, DateValue: primitivos conocidos.
- UnknownValue: objetos/listas anidados u otros tipos no primitivos.
- MissingValue: el campo no existe en la fuente o viene en null.

Todas las variantes exponen `type_name` (para reglas `type`) y `as_text()`
(el store EAV guarda todo como texto).
"""
from __future__ import annotations

import json
from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Dict, Optional, Union


@dataclass(frozen=True)
class TextValue:
    value: str
    type_name: str = "string"

    def as_text(self) -> str:
        return self.value

    def as_number(self) -> Optional[float]:
        text = self.value.strip()
        if not text:
            return 0.0
        try:
            return float(text)
        except ValueError:
            return None


@dataclass(frozen=True)
class NumberValue:
    value: Union[int, float, Decimal]
    type_name: str = "number"

    def as_text(self) -> str:
        # 2.0 -> "2" para que el match incremental coincida con ids enteros
        if isinstance(self.value, float) and self.value.is_integer():
            return str(int(self.value))
        return str(self.value)

    def as_number(self) -> Optional[float]:
        return float(self.value)


@dataclass(frozen=True)
class BooleanValue:
    value: bool
    type_name: str = "boolean"

    def as_text(self) -> str:
        return "true" if self.value else "false"

    def as_number(self) -> Optional[float]:
        return 1.0 if self.value else 0.0


@dataclass(frozen=True)
class DateValue:
    value: Union[datetime, date]
    type_name: str = "date"

    def as_text(self) -> str:
        return self.value.isoformat()

    def as_number(self) -> Optional[float]:
        return None


@dataclass(frozen=True)
class UnknownValue:
    """Valor no primitivo (dict, list, bytes...). Se serializa como JSON."""

    raw: Any
    type_name: str = "object"

    def as_text(self) -> str:
        if isinstance(self.raw, (bytes, bytearray)):
            return self.raw.decode("utf-8", errors="replace")
        return json.dumps(self.raw, default=str, ensure_ascii=False)

    def as_number(self) -> Optional[float]:
        return None


@dataclass(frozen=True)
class MissingValue:
    """Campo ausente o nulo en la fuente."""

    type_name: str = "null"

    def as_text(self) -> str:
        return ""

    def as_number(self) -> Optional[float]:
        return None


FieldValue = Union[TextValue, NumberValue, BooleanValue, DateValue, UnknownValue, MissingValue]

# Registro mapeado: nombre de campo destino -> valor tipado
MappedRecord = Dict[str, FieldValue]

MISSING = MissingValue()


def to_field_value(raw: Any) -> FieldValue:
    """Convierte un valor crudo (JSON o fila SQL) en su variante tipada."""
    if raw is None:
        return MISSING
    # bool antes que int: bool es subclase de int
    if isinstance(raw, bool):
        return BooleanValue(raw)
    if isinstance(raw, (int, float, Decimal)):
        return NumberValue(raw)
    if isinstance(raw, str):
        return TextValue(raw)
    if isinstance(raw, (datetime, date)):
        return DateValue(raw)
    return UnknownValue(raw)


def is_missing(value: FieldValue) -> bool:
    return isinstance(value, MissingValue)


def snapshot(record: MappedRecord) -> Dict[str, Any]:
    """Representacion JSON-friendly de un registro mapeado (para el execution log)."""
    result: Dict[str, Any] = {}
    for name, value in record.items():
        if isinstance(value, MissingValue):
            result[name] = None
        elif isinstance(value, UnknownValue):
            result[name] = value.raw
        elif isinstance(value, DateValue):
            result[name] = value.as_text()
        elif isinstance(value, NumberValue) and isinstance(value.value, Decimal):
            result[name] = str(value.value)
        else:
            result[name] = value.value
    return result

"""
Mapeo de registros crudos de la fuente a registros tipados.

data_mapping: {campo_destino: "ruta.en.la.fuente"}. Sin mapping, los campos
pasan tal cual (identidad).
"""
from typing import Any, Dict, Optional

from datasync.domain.entities.record_values import MappedRecord, to_field_value


def get_nested_value(obj: Any, path: str) -> Any:
    """
    Lee un valor por ruta con puntos ("user.address.city").

    Los segmentos numericos indexan listas ("items.0.id").
    Retorna None si algun tramo no existe.
    """
    current = obj
    for part in str(path).split("."):
        if current is None:
            return None
        if isinstance(current, dict):
            current = current.get(part)
        elif isinstance(current, (list, tuple)) and part.lstrip("-").isdigit():
            index = int(part)
            current = current[index] if -len(current) <= index < len(current) else None
        else:
            return None
    return current


def apply_data_mapping(record: Any, mapping: Optional[Dict[str, str]]) -> MappedRecord:
    """Aplica el mapping a un registro crudo y tipa cada valor."""
    if not mapping:
        if isinstance(record, dict):
            return {str(key): to_field_value(value) for key, value in record.items()}
        # Registro escalar (p.ej. API que devuelve una lista de strings)
        return {"value": to_field_value(record)}

    return {
        target_field: to_field_value(get_nested_value(record, source_path))
        for target_field, source_path in mapping.items()
    }

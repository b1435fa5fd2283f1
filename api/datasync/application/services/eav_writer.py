"""
Escritura de registros mapeados en el store EAV.

El mapa nombre -> id de atributos se carga una vez por corrida. Los campos
cuyo nombre no corresponde a un atributo activo se descartan.
"""
from typing import Dict, Optional

from loguru import logger

from datasync.domain.entities.record_values import MappedRecord, is_missing
from datasync.domain.repositories.sync_repositories import IDataRecordRepository
from datasync.shared.exceptions.sync import WriteError

INSERTED = "inserted"
UPDATED = "updated"


class EavWriter:
    """Escritor EAV con cache de atributos de alcance de corrida."""

    def __init__(self, records: IDataRecordRepository, data_model_id: str):
        self.records = records
        self.data_model_id = data_model_id
        self._attribute_map: Optional[Dict[str, str]] = None

    @property
    def attribute_map(self) -> Dict[str, str]:
        if self._attribute_map is None:
            self._attribute_map = self.records.get_attribute_map(self.data_model_id)
            logger.debug(f"{len(self._attribute_map)} atributos cargados para el modelo {self.data_model_id}")
        return self._attribute_map

    def clear_existing(self) -> int:
        """Elimina todos los registros del modelo. Retorna la cantidad borrada."""
        try:
            return self.records.delete_all_records(self.data_model_id)
        except Exception as e:
            raise WriteError(f"Error clearing existing records: {e}") from e

    def to_attribute_values(self, record: MappedRecord) -> Dict[str, str]:
        """Convierte el registro a attribute_id -> texto (sin ausentes ni desconocidos)."""
        attribute_map = self.attribute_map
        return {
            attribute_map[name]: value.as_text()
            for name, value in record.items()
            if name in attribute_map and not is_missing(value)
        }

    def find_existing(self, record: MappedRecord, key_name: str) -> Optional[str]:
        """Id del registro existente con el mismo valor de clave, si lo hay."""
        attribute_id = self.attribute_map.get(key_name)
        value = record.get(key_name)
        if attribute_id is None or value is None or is_missing(value):
            return None
        return self.records.find_record_by_value(self.data_model_id, attribute_id, value.as_text())

    def insert(self, record: MappedRecord) -> str:
        try:
            return self.records.insert_record(self.data_model_id, self.to_attribute_values(record))
        except Exception as e:
            raise WriteError(f"Error inserting record: {e}") from e

    def update(self, record_id: str, record: MappedRecord) -> None:
        try:
            self.records.update_record(record_id, self.to_attribute_values(record))
        except Exception as e:
            raise WriteError(f"Error updating record {record_id}: {e}", details={"record_id": record_id}) from e

    def write(self, record: MappedRecord, *, match_key: Optional[str] = None) -> str:
        """
        Persiste un registro.

        Con match_key (INCREMENTAL + incremental_key) actualiza el registro
        existente con el mismo valor de clave; si no hay match, inserta.

        Returns:
            str: INSERTED o UPDATED
        """
        if match_key:
            try:
                existing_id = self.find_existing(record, match_key)
            except Exception as e:
                raise WriteError(f"Error looking up existing record: {e}") from e
            if existing_id:
                self.update(existing_id, record)
                return UPDATED

        self.insert(record)
        return INSERTED

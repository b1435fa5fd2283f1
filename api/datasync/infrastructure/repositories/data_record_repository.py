"""
Store EAV destino implementado con SQLAlchemy.

Cada metodo abre su propia transaccion: un registro y todos sus valores se
escriben juntos o no se escribe nada.
"""
import uuid
from typing import Dict, Optional

from sqlalchemy import delete, func, select
from sqlalchemy.orm import sessionmaker

from datasync.domain.repositories.sync_repositories import IDataRecordRepository
from datasync.infrastructure.database.models import (
    DataModelAttributeModel,
    DataRecordModel,
    DataRecordValueModel,
)
from datasync.infrastructure.database.session import SessionLocal, session_scope
from datasync.shared.exceptions.domain import EntityNotFoundException
from datasync.shared.utils.datetime_utils import DateTimeUtils


class DataRecordRepositoryImpl(IDataRecordRepository):
    """Implementación del store EAV con SQLAlchemy."""

    def __init__(self, session_factory: sessionmaker = SessionLocal):
        self.session_factory = session_factory

    def get_attribute_map(self, data_model_id: str) -> Dict[str, str]:
        with session_scope(self.session_factory) as session:
            rows = session.execute(
                select(DataModelAttributeModel.name, DataModelAttributeModel.id).where(
                    DataModelAttributeModel.data_model_id == data_model_id,
                    DataModelAttributeModel.is_active.is_(True),
                )
            ).all()
            return {name: attribute_id for name, attribute_id in rows}

    def delete_all_records(self, data_model_id: str) -> int:
        """Borra registros y valores del modelo (los valores primero, sin depender del cascade del motor)."""
        record_ids = select(DataRecordModel.id).where(DataRecordModel.data_model_id == data_model_id)
        with session_scope(self.session_factory) as session:
            session.execute(
                delete(DataRecordValueModel)
                .where(DataRecordValueModel.data_record_id.in_(record_ids))
                .execution_options(synchronize_session=False)
            )
            result = session.execute(
                delete(DataRecordModel)
                .where(DataRecordModel.data_model_id == data_model_id)
                .execution_options(synchronize_session=False)
            )
            return result.rowcount or 0

    def find_record_by_value(self, data_model_id: str, attribute_id: str, value: str) -> Optional[str]:
        with session_scope(self.session_factory) as session:
            return session.execute(
                select(DataRecordValueModel.data_record_id)
                .join(DataRecordModel, DataRecordModel.id == DataRecordValueModel.data_record_id)
                .where(
                    DataRecordModel.data_model_id == data_model_id,
                    DataRecordValueModel.attribute_id == attribute_id,
                    DataRecordValueModel.value == value,
                )
                .order_by(DataRecordModel.created_at)
                .limit(1)
            ).scalar_one_or_none()

    def insert_record(self, data_model_id: str, values: Dict[str, str]) -> str:
        record_id = str(uuid.uuid4())
        now = DateTimeUtils.now_utc()
        with session_scope(self.session_factory) as session:
            session.add(DataRecordModel(id=record_id, data_model_id=data_model_id, created_at=now, updated_at=now))
            # El padre debe existir antes que los valores (FK)
            session.flush()
            session.add_all(
                DataRecordValueModel(data_record_id=record_id, attribute_id=attribute_id, value=value)
                for attribute_id, value in values.items()
            )
        return record_id

    def update_record(self, record_id: str, values: Dict[str, str]) -> None:
        with session_scope(self.session_factory) as session:
            db_record = session.get(DataRecordModel, record_id)
            if db_record is None:
                raise EntityNotFoundException("DataRecord", record_id)

            db_record.updated_at = DateTimeUtils.now_utc()

            existing = {
                row.attribute_id: row
                for row in session.execute(
                    select(DataRecordValueModel).where(DataRecordValueModel.data_record_id == record_id)
                ).scalars()
            }
            for attribute_id, value in values.items():
                if attribute_id in existing:
                    existing[attribute_id].value = value
                else:
                    session.add(
                        DataRecordValueModel(data_record_id=record_id, attribute_id=attribute_id, value=value)
                    )

    def count_records(self, data_model_id: str) -> int:
        with session_scope(self.session_factory) as session:
            return session.execute(
                select(func.count(DataRecordModel.id)).where(DataRecordModel.data_model_id == data_model_id)
            ).scalar_one()

    def get_record_values(self, record_id: str) -> Dict[str, str]:
        with session_scope(self.session_factory) as session:
            rows = session.execute(
                select(DataModelAttributeModel.name, DataRecordValueModel.value)
                .join(DataModelAttributeModel, DataModelAttributeModel.id == DataRecordValueModel.attribute_id)
                .where(DataRecordValueModel.data_record_id == record_id)
            ).all()
            return {name: value for name, value in rows}

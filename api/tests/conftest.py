"""
Configuración de fixtures para pytest.

Los tests corren contra SQLite en memoria. DATABASE_URL se fija antes de
importar datasync: la configuracion y el engine global se crean al importar.
"""
import os

os.environ.setdefault("DATABASE_URL", "sqlite://")

from datetime import datetime, timedelta, timezone  # noqa: E402
from typing import Any, Dict, Iterable, List, Optional  # noqa: E402

import pytest  # noqa: E402
from sqlalchemy import create_engine  # noqa: E402
from sqlalchemy.orm import Session, sessionmaker  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from datasync.application.services.record_validator import CustomValidatorRegistry  # noqa: E402
from datasync.domain.entities.alerts import AlertRegistry  # noqa: E402
from datasync.infrastructure.database import models  # noqa: E402
from datasync.infrastructure.database.session import Base, session_scope  # noqa: E402


# URL de base de datos de prueba
TEST_DATABASE_URL = "sqlite://"


@pytest.fixture(scope="function")
def session_factory():
    """
    Fixture que proporciona una factory de sesiones para tests.
    Crea una base de datos en memoria para cada test.
    """
    # StaticPool: todas las sesiones (y threads) comparten la misma base en memoria
    engine = create_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)

    factory = sessionmaker(engine, class_=Session, expire_on_commit=False, autoflush=False)
    yield factory

    Base.metadata.drop_all(engine)
    engine.dispose()


@pytest.fixture(autouse=True)
def reset_registries():
    """Los registros de alertas y validadores son globales: se limpian entre tests."""
    AlertRegistry.clear()
    CustomValidatorRegistry.clear()
    yield
    AlertRegistry.clear()
    CustomValidatorRegistry.clear()


class FrozenClock:
    """Reloj controlable para el orquestador."""

    def __init__(self, start: Optional[datetime] = None):
        self.now = start or datetime(2026, 3, 2, 10, 0, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs: float) -> datetime:
        self.now = self.now + timedelta(**kwargs)
        return self.now


@pytest.fixture
def clock() -> FrozenClock:
    return FrozenClock()


class RecordingNotifier:
    """Notifier de prueba: guarda cada llamada."""

    def __init__(self):
        self.calls: List[tuple] = []

    def send_sync_success(self, *, schedule, recipients, result, execution_id) -> None:
        self.calls.append(("success", schedule.id, list(recipients), execution_id))

    def send_sync_failure(self, *, schedule, recipients, result, execution_id) -> None:
        self.calls.append(("failure", schedule.id, list(recipients), execution_id))

    def send_alert(self, *, schedule, recipients, alert) -> None:
        self.calls.append(("alert", schedule.id, list(recipients), alert.alert_type))

    def kinds(self) -> List[str]:
        return [call[0] for call in self.calls]


class RecordingWorkflowTrigger:
    def __init__(self):
        self.calls: List[tuple] = []

    def notify_workflows(self, schedule_id: str, on_success: bool) -> None:
        self.calls.append((schedule_id, on_success))


@pytest.fixture
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture
def workflow_trigger() -> RecordingWorkflowTrigger:
    return RecordingWorkflowTrigger()


@pytest.fixture
def seed_schedule(session_factory):
    """
    Crea modelo de datos, atributos, conexion y schedule.

    Retorna una funcion: seed(connection={...}, schedule={...}, attributes=[...])
    que devuelve el id del schedule.
    """

    def _seed(
        *,
        connection: Optional[Dict[str, Any]] = None,
        schedule: Optional[Dict[str, Any]] = None,
        data_model: Optional[Dict[str, Any]] = None,
        attributes: Iterable[str] = ("id", "name"),
        validation_rules: Iterable[Dict[str, Any]] = (),
        recovery_actions: Iterable[Dict[str, Any]] = (),
        alerts: Iterable[Dict[str, Any]] = (),
    ) -> str:
        with session_scope(session_factory) as session:
            db_model = models.DataModelModel(name="Usuarios", **(data_model or {}))
            session.add(db_model)
            session.flush()
            for name in attributes:
                session.add(models.DataModelAttributeModel(data_model_id=db_model.id, name=name, type="text"))

            connection_values = {"connection_type": "api", "name": "fuente"}
            connection_values.update(connection or {})
            db_connection = models.ExternalConnectionModel(**connection_values)
            session.add(db_connection)
            session.flush()

            schedule_values = {
                "space_id": "space-1",
                "name": "sync usuarios",
                "schedule_type": "MANUAL",
                "sync_strategy": "APPEND",
                "last_run_status": "PENDING",
                "current_retry_count": 0,
                "is_active": True,
            }
            schedule_values.update(schedule or {})
            db_schedule = models.SyncScheduleModel(
                data_model_id=db_model.id,
                external_connection_id=db_connection.id,
                **schedule_values,
            )
            session.add(db_schedule)
            session.flush()

            for rule in validation_rules:
                session.add(models.ValidationRuleModel(sync_schedule_id=db_schedule.id, **rule))
            for action in recovery_actions:
                session.add(models.RecoveryActionModel(sync_schedule_id=db_schedule.id, **action))
            for alert in alerts:
                session.add(models.AlertModel(sync_schedule_id=db_schedule.id, **alert))

            return db_schedule.id

    return _seed


@pytest.fixture
def make_executor(session_factory, clock, notifier, workflow_trigger):
    """Orquestador con repositorios SQLAlchemy reales y fuente/notifier de prueba."""
    from datasync.application.use_cases.sync_use_cases import DataSyncExecutor
    from datasync.infrastructure.repositories.alert_history_repository import AlertHistoryRepositoryImpl
    from datasync.infrastructure.repositories.data_record_repository import DataRecordRepositoryImpl
    from datasync.infrastructure.repositories.sync_execution_repository import SyncExecutionRepositoryImpl
    from datasync.infrastructure.repositories.sync_schedule_repository import SyncScheduleRepositoryImpl

    def _make(connection_client, **kwargs):
        kwargs.setdefault("sleep", lambda seconds: None)
        return DataSyncExecutor(
            schedules=SyncScheduleRepositoryImpl(session_factory),
            records=DataRecordRepositoryImpl(session_factory),
            executions=SyncExecutionRepositoryImpl(session_factory),
            alert_history=AlertHistoryRepositoryImpl(session_factory),
            connection_client=connection_client,
            notifier=notifier,
            workflow_trigger=workflow_trigger,
            clock=clock,
            **kwargs,
        )

    return _make

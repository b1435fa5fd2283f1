"""
Disparo de workflows dependientes de un schedule.

Resuelve dos tipos de vinculo:
- data_sync_workflow_triggers: workflow explicito por schedule (on_success / on_failure).
- workflow_schedules con trigger_on_sync: workflows del mismo modelo de datos,
  para cualquier resultado de la corrida.
"""
from typing import Any, Callable, List, Tuple

from loguru import logger
from sqlalchemy import or_, select
from sqlalchemy.orm import sessionmaker

from datasync.infrastructure.database.models import (
    SyncScheduleModel,
    WorkflowModel,
    WorkflowScheduleModel,
    WorkflowTriggerModel,
)
from datasync.infrastructure.database.session import SessionLocal, session_scope

WorkflowLauncher = Callable[[str], Any]


def log_only_launcher(workflow_id: str) -> None:
    """Launcher por defecto: el motor de workflows vive fuera de este servicio."""
    logger.info(f"Workflow {workflow_id} listo para ejecutarse (sin launcher configurado)")


class SqlWorkflowTrigger:
    """Implementación de WorkflowTrigger que lee los vinculos desde la base."""

    def __init__(
        self,
        session_factory: sessionmaker = SessionLocal,
        launcher: WorkflowLauncher = log_only_launcher,
    ):
        self.session_factory = session_factory
        self.launcher = launcher

    def find_workflows(self, schedule_id: str, on_success: bool) -> List[Tuple[str, str]]:
        """Workflows activos a disparar, como (id, nombre), sin duplicados."""
        trigger_flag = (
            WorkflowTriggerModel.trigger_on_success if on_success
            else WorkflowTriggerModel.trigger_on_failure
        )
        data_model_id = (
            select(SyncScheduleModel.data_model_id)
            .where(SyncScheduleModel.id == schedule_id)
            .scalar_subquery()
        )

        with session_scope(self.session_factory) as session:
            explicit = session.execute(
                select(WorkflowModel.id, WorkflowModel.name)
                .join(WorkflowTriggerModel, WorkflowTriggerModel.workflow_id == WorkflowModel.id)
                .where(
                    WorkflowTriggerModel.sync_schedule_id == schedule_id,
                    trigger_flag.is_(True),
                    WorkflowModel.is_active.is_(True),
                    WorkflowModel.status == "ACTIVE",
                )
            ).all()
            on_sync = session.execute(
                select(WorkflowModel.id, WorkflowModel.name)
                .join(WorkflowScheduleModel, WorkflowScheduleModel.workflow_id == WorkflowModel.id)
                .where(
                    WorkflowScheduleModel.trigger_on_sync.is_(True),
                    or_(
                        WorkflowScheduleModel.trigger_on_sync_schedule_id == schedule_id,
                        WorkflowScheduleModel.trigger_on_sync_schedule_id.is_(None),
                    ),
                    WorkflowModel.data_model_id == data_model_id,
                    WorkflowModel.is_active.is_(True),
                    WorkflowModel.status == "ACTIVE",
                )
            ).all()

        workflows: List[Tuple[str, str]] = []
        seen = set()
        for workflow_id, name in [*explicit, *on_sync]:
            if workflow_id in seen:
                continue
            seen.add(workflow_id)
            workflows.append((workflow_id, name))
        return workflows

    def notify_workflows(self, schedule_id: str, on_success: bool) -> None:
        try:
            workflows = self.find_workflows(schedule_id, on_success)
        except Exception as e:
            logger.error(f"Error buscando workflows dependientes del schedule {schedule_id}: {e}")
            return

        outcome = "exito" if on_success else "fallo"
        for workflow_id, name in workflows:
            try:
                logger.info(f"Disparando workflow {name} tras {outcome} del sync {schedule_id}")
                self.launcher(workflow_id)
            except Exception as e:
                logger.error(f"Error disparando workflow {name}: {e}")

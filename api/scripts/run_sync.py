"""
CLI: ejecuta corridas de sincronizacion.

Uso recomendado:
  - Ejecutar como job (cron/systemd timer) con --due.
  - El motor no tiene loop propio: cada invocacion corre y termina.

Ejecución:
  python scripts/run_sync.py --schedule-id <uuid>
  python scripts/run_sync.py --due
"""

from __future__ import annotations

import argparse
import sys
from pathlib import Path

from dotenv import load_dotenv
from loguru import logger

# Permite ejecutar este script desde cualquier cwd sin configurar PYTHONPATH.
# La carpeta "api" contiene el paquete raíz `datasync/`.
_API_ROOT = Path(__file__).resolve().parents[1]
if str(_API_ROOT) not in sys.path:
    sys.path.insert(0, str(_API_ROOT))

# Cargar variables desde .env si existe (api/.env o raiz del repo).
load_dotenv(_API_ROOT / ".env", override=False)
load_dotenv(_API_ROOT.parent / ".env", override=False)

from datasync.application.use_cases.sync_use_cases import build_sync_executor
from datasync.shared.constants.sync_constants import RunStatus
from datasync.shared.utils.datetime_utils import DateTimeUtils


def main() -> int:
    parser = argparse.ArgumentParser(description="Ejecuta schedules de sincronizacion.")
    group = parser.add_mutually_exclusive_group(required=True)
    group.add_argument("--schedule-id", help="Ejecuta un schedule puntual.")
    group.add_argument(
        "--due",
        action="store_true",
        help="Ejecuta todos los schedules activos vencidos (omite los RUNNING).",
    )
    args = parser.parse_args()

    executor = build_sync_executor()

    if args.schedule_id:
        schedule = executor.schedules.get_by_id(args.schedule_id)
        if schedule is not None and schedule.last_run_status == RunStatus.RUNNING.value:
            logger.warning(f"Schedule {args.schedule_id} ya esta RUNNING, se omite")
            return 2

        result = executor.execute_sync(args.schedule_id)
        if result.success:
            logger.info(
                f"Sync OK: fetched={result.records_fetched} inserted={result.records_inserted} "
                f"updated={result.records_updated} failed={result.records_failed}"
            )
            return 0
        logger.error(f"Sync FAILED: {result.error}")
        return 1

    results = executor.execute_due(DateTimeUtils.now_utc())
    failed = [r for r in results if not r.success]
    logger.info(f"Corridas ejecutadas: {len(results)} (fallidas: {len(failed)})")
    return 1 if failed else 0


if __name__ == "__main__":
    raise SystemExit(main())

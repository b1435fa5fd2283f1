"""
Script para inicializar la base de datos (crea las tablas del motor).
"""
import sys
from pathlib import Path

from dotenv import load_dotenv
from loguru import logger

_API_ROOT = Path(__file__).resolve().parents[1]
if str(_API_ROOT) not in sys.path:
    sys.path.insert(0, str(_API_ROOT))

load_dotenv(_API_ROOT / ".env", override=False)

from datasync.infrastructure.database.session import init_db


def main() -> int:
    """Función principal para inicializar la base de datos."""
    logger.info("Inicializando base de datos...")

    try:
        init_db()
        logger.success("Base de datos inicializada correctamente")
    except Exception as e:
        logger.error(f"Error al inicializar base de datos: {e}")
        raise
    return 0


if __name__ == "__main__":
    raise SystemExit(main())

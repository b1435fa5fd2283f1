#!/usr/bin/env python
"""
Migraciones del esquema del motor (Alembic).

Uso:
    python scripts/migrate.py upgrade            # Aplicar migraciones pendientes
    python scripts/migrate.py downgrade -1       # Revertir ultima migracion
    python scripts/migrate.py current            # Ver version actual

La URL de base de datos sale de settings (ver alembic/env.py).
"""
import argparse
from pathlib import Path

from alembic import command
from alembic.config import Config
from dotenv import load_dotenv
from loguru import logger

API_DIR = Path(__file__).resolve().parents[1]


def _alembic_config() -> Config:
    config = Config(str(API_DIR / "alembic.ini"))
    config.set_main_option("script_location", str(API_DIR / "alembic"))
    return config


def main() -> int:
    parser = argparse.ArgumentParser(description="Migraciones de base de datos del motor de sync.")
    sub = parser.add_subparsers(dest="command", required=True)

    up = sub.add_parser("upgrade", help="Aplica migraciones hasta el target (default: head)")
    up.add_argument("target", nargs="?", default="head")

    down = sub.add_parser("downgrade", help="Revierte migraciones hasta el target (default: -1)")
    down.add_argument("target", nargs="?", default="-1")

    sub.add_parser("current", help="Muestra la version actual")
    args = parser.parse_args()

    load_dotenv(API_DIR / ".env", override=False)
    config = _alembic_config()

    if args.command == "upgrade":
        logger.info(f"Aplicando migraciones hasta {args.target}")
        command.upgrade(config, args.target)
    elif args.command == "downgrade":
        logger.info(f"Revirtiendo migraciones hasta {args.target}")
        command.downgrade(config, args.target)
    else:
        command.current(config, verbose=True)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())

#!/usr/bin/env python3
"""
Create the inventory schema for the configured database.

Reads the database URL from inventory_config (``INVENTORY_DATABASE_URL`` /
``DATABASE_URL`` override the settings file) and creates every table the
kernel needs.

Usage:
    python3 scripts/init_db.py                 # create missing tables
    python3 scripts/init_db.py --drop          # drop and recreate everything
    python3 scripts/init_db.py --url sqlite+pysqlite:///inventory.db
"""

import argparse
import sys
from pathlib import Path

# ---------------------------------------------------------------------------
# Project root on sys.path
# ---------------------------------------------------------------------------
ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(ROOT))


def main() -> int:
    from sqlalchemy.exc import SQLAlchemyError

    from inventory_config import get_active_settings
    from inventory_kernel.db.engine import (
        create_tables,
        drop_tables,
        init_engine_from_url,
        reset_engine,
    )
    from inventory_kernel.logging_config import configure_logging

    parser = argparse.ArgumentParser(description="Create the inventory kernel schema")
    parser.add_argument("--url", help="Database URL (overrides configuration)")
    parser.add_argument("--config", type=Path, help="Settings YAML file")
    parser.add_argument("--drop", action="store_true", help="Drop all tables first")
    parser.add_argument("--yes", action="store_true", help="Do not ask before dropping")
    args = parser.parse_args()

    settings = get_active_settings(args.config)
    configure_logging(level=settings.log_level_value)
    url = args.url or settings.database_url

    if args.drop and not args.yes:
        answer = input(f"Drop ALL inventory tables in {url}? [y/N] ")
        if answer.strip().lower() != "y":
            print("Aborted.")
            return 1

    try:
        init_engine_from_url(
            url,
            echo=settings.echo,
            pool_size=settings.pool_size,
            max_overflow=settings.max_overflow,
            pool_pre_ping=settings.pool_pre_ping,
            pool_timeout=settings.pool_timeout,
            pool_recycle=settings.pool_recycle,
        )
        if args.drop:
            drop_tables()
            print("Dropped existing tables.")
        create_tables()
    except SQLAlchemyError as exc:
        print(f"ERROR: {exc}", file=sys.stderr)
        return 1
    finally:
        reset_engine()

    print("Schema ready.")
    return 0


if __name__ == "__main__":
    sys.exit(main())

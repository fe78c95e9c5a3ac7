#!/usr/bin/env python3
"""
Wipe the local store and start over with an empty table and the built-in catalog.

A JSON backup (same format as GET /api/data/export) is written first unless
--no-backup is given. Contracts and invoices are not part of that format, so
they are counted and reported before anything is dropped.
"""

import argparse
import json
import os
import sys
from datetime import datetime

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from dotenv import load_dotenv
load_dotenv(os.path.join(os.path.dirname(os.path.dirname(__file__)), '.env'))

from sqlalchemy import text
from gardenbook.config import settings
from gardenbook.data.default_catalog import DEFAULT_CATALOG
from gardenbook.database import engine, init_db
from gardenbook.models import LocalRecord
from gardenbook.services.storage_service import CONTRACTS, INVOICES, local_store
import logging

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


def write_backup(path: str) -> None:
    backup = local_store.export_all()
    with open(path, "w", encoding="utf-8") as fh:
        json.dump(backup.to_json_dict(), fh, indent=2)
    logger.info(f"Backup of {len(backup.estimates)} estimates written to {path}")


def reset_database(backup_path=None, assume_yes=False):
    init_db()
    contracts = len(local_store.list(CONTRACTS))
    invoices = len(local_store.list(INVOICES))

    logger.warning(f"Local database: {settings.database_url}")
    if contracts or invoices:
        logger.warning(f"{contracts} contracts and {invoices} invoices are not included in the backup and will be lost")
    if settings.remote_database_url:
        logger.warning("The remote replica is left alone; signing in again pulls it back.")

    if not assume_yes:
        response = input("Delete all local data? (yes/no): ")
        if response.lower() != "yes":
            logger.info("Aborted.")
            return

    if backup_path:
        write_backup(backup_path)

    try:
        LocalRecord.__table__.drop(bind=engine, checkfirst=True)
        init_db()
        with engine.begin() as conn:
            conn.execute(text("DROP TABLE IF EXISTS alembic_version"))
        local_store.initialize_catalog(DEFAULT_CATALOG)
    except Exception as e:
        logger.error(f"Error resetting database: {e}", exc_info=True)
        raise

    logger.info("Local store reset. Run `alembic stamp head` to mark migrations as applied.")


def main():
    parser = argparse.ArgumentParser(description="Reset the local Gardenbook store")
    parser.add_argument("--yes", action="store_true", help="skip the confirmation prompt")
    parser.add_argument("--no-backup", action="store_true", help="do not write a JSON backup first")
    parser.add_argument("--backup", default=None, help="backup file path")
    args = parser.parse_args()

    backup_path = None
    if not args.no_backup:
        backup_path = args.backup or f"gardenbook-backup-{datetime.now():%Y%m%d-%H%M%S}.json"
    reset_database(backup_path=backup_path, assume_yes=args.yes)


if __name__ == "__main__":
    main()

"""Create the database tables and snapshot directories."""
from __future__ import annotations

import argparse
import sys

from sqlalchemy.exc import SQLAlchemyError

from round_intake.core.settings import settings
from round_intake.db.session import create_tables, drop_tables
from round_intake.services.lifecycle import SnapshotLifecycle


def main() -> None:
    parser = argparse.ArgumentParser(description="Initialize the Round Intake database and folders")
    parser.add_argument(
        "--drop-tables",
        action="store_true",
        help="Drop all tables before creating them again.",
    )
    args = parser.parse_args()

    try:
        if args.drop_tables:
            drop_tables()
            print("[init_db] dropped all tables")
        create_tables()
        SnapshotLifecycle(settings).ensure_directories()
    except (SQLAlchemyError, OSError) as exc:
        print(f"[init_db] ERROR: {exc}", file=sys.stderr)
        sys.exit(1)

    for name, path in settings.snapshot_folders.items():
        print(f"[init_db] {name}: {path}")
    print("[init_db] database initialized")


if __name__ == "__main__":
    main()

#!/usr/bin/env python3
"""
Database Monitor

Checks that the configured database accepts connections.

USAGE:
    python scripts/db_monitor.py

Exit codes:
    0 - connection successful
    1 - connection failed

Suitable for cron jobs and container health probes.
"""

import sys
from pathlib import Path

# Add project root to Python path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from library_api.database import check_database_connection


def main() -> int:
    if check_database_connection():
        print("Database connection successful.")
        return 0

    print("Database connection failed.", file=sys.stderr)
    return 1


if __name__ == "__main__":
    sys.exit(main())

"""Import a promotion spreadsheet from the command line.

Usage: python scripts/import_promotions.py promotions.xlsx [--dry-run]
"""

from __future__ import annotations

import argparse
import importlib
import json
import logging
import sys
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from config import get_settings_module

from src.hr_services.hr_services.container import build_container
from src.hr_services.hr_services.core.exceptions import DomainError
from src.hr_services.hr_services.promotions.spreadsheet import read_promotion_sheet


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Import employee promotions from an .xlsx file")
    parser.add_argument("path", type=Path)
    parser.add_argument("--dry-run", action="store_true", help="only validate, write nothing")
    args = parser.parse_args(argv)

    settings = importlib.import_module(get_settings_module())
    logging.basicConfig(level=str(getattr(settings, "LOG_LEVEL", "INFO")).upper())
    container = build_container(db_config=settings.DB_CONFIG)

    try:
        with args.path.open("rb") as f:
            proposals, errors = read_promotion_sheet(f, max_rows=int(getattr(settings, "IMPORT_MAX_ROWS", 5000)))
        if args.dry_run:
            errors += container.bulk_import_service.validate_batch(proposals)
        if errors:
            print("\n".join(errors))
            return 1
        if args.dry_run:
            print(f"OK: {len(proposals)} rows valid")
            return 0
        report = container.bulk_import_service.import_batch(proposals)
    except DomainError as e:
        print(f"ERROR: {e}")
        return 2

    print(json.dumps(report.to_dict(), indent=2))
    return 0 if not report.failed else 1


if __name__ == "__main__":
    raise SystemExit(main())

#!/usr/bin/env python3
"""
FHIR Backfill Script

Converts completed source documents that have no linked FHIR resources yet.
Safe to re-run: already converted documents are skipped.

Usage:
    python scripts/run_backfill.py
    python scripts/run_backfill.py --batch-size 50 --workers 4
    python scripts/run_backfill.py --person-id 42 --log-level DEBUG
"""

import argparse
import json
import signal
import sys
from pathlib import Path

from medical_structuring.config.base_config import base_settings
from medical_structuring.config.logging_config import logging_settings
from medical_structuring.config.pipeline_config import pipeline_settings
from medical_structuring.core.backfill import BackfillRunner
from medical_structuring.core.resource_store import ResourceStore
from medical_structuring.utils.exceptions import ConfigurationError, StorageError
from medical_structuring.utils.logging import setup_logging


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Convert completed documents without FHIR resources"
    )

    parser.add_argument(
        "--db",
        type=str,
        default=None,
        help=f"Resource store database (default: {base_settings.RESOURCE_DB_PATH})"
    )

    parser.add_argument(
        "--batch-size",
        type=int,
        default=pipeline_settings.BACKFILL_BATCH_SIZE,
        help="Number of documents scanned"
    )

    parser.add_argument(
        "--person-id",
        type=str,
        default=None,
        help="Only backfill this person's documents"
    )

    parser.add_argument(
        "--workers",
        type=int,
        default=pipeline_settings.BACKFILL_MAX_WORKERS,
        help="Worker threads (1 = serial)"
    )

    parser.add_argument(
        "--log-level",
        type=str,
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default=logging_settings.LOG_LEVEL.upper(),
        help="Logging level"
    )

    parser.add_argument(
        "--json-logs",
        action="store_true",
        default=logging_settings.LOG_FORMAT_JSON,
        help="Emit logs as JSON lines"
    )

    return parser


def main(argv=None) -> int:
    """Main entry point."""
    args = build_parser().parse_args(argv)
    setup_logging(level=args.log_level, log_file=logging_settings.LOG_FILE, format_json=args.json_logs)

    db_path = Path(args.db) if args.db else base_settings.RESOURCE_DB_PATH
    try:
        runner = BackfillRunner(ResourceStore(db_path))
    except StorageError as e:
        print(f"ERROR: {e}", file=sys.stderr)
        return 1

    # Ctrl+C lets in-flight documents finish
    signal.signal(signal.SIGINT, lambda signum, frame: runner.stop())

    try:
        summary = runner.run(
            batch_size=args.batch_size,
            person_id=args.person_id,
            max_workers=args.workers,
        )
    except (ConfigurationError, StorageError) as e:
        print(f"ERROR: {e}", file=sys.stderr)
        return 1

    print(json.dumps(summary.to_dict(), indent=2))
    return 0 if summary.error_count == 0 else 2


if __name__ == "__main__":
    sys.exit(main())

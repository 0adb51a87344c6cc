"""Run the academic role sweep from a scheduler and print its summary as JSON.

Usage:
    python -m backend.run_role_sweep [--dry-run] [--date YYYY-MM-DD]

``--date`` is only accepted with ``--dry-run``.
"""
import argparse
import asyncio
import json
import logging
import sys
from dataclasses import asdict
from datetime import date

from sqlalchemy.exc import SQLAlchemyError

from backend.core import config
from backend.database import SessionLocal, ensure_user_schema
from backend.lifecycle.sweep import preview_sweep, run_sweep

logger = logging.getLogger('backend.run_role_sweep')


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description='Move students to senior and alumni roles.')
    parser.add_argument('--dry-run', action='store_true', help='Only count what would change.')
    parser.add_argument('--date', type=date.fromisoformat, help='Evaluate as of this day (dry run only).')
    args = parser.parse_args(argv)
    if args.date and not args.dry_run:
        parser.error('--date requires --dry-run')
    return args


def main(argv: list[str] | None = None) -> None:
    args = parse_args(argv)
    logging.basicConfig(level=config.LOG_LEVEL, format='%(asctime)s %(levelname)s %(name)s: %(message)s')

    db = SessionLocal()
    try:
        ensure_user_schema()
        if args.dry_run:
            summary = preview_sweep(db, args.date)
        else:
            summary = asyncio.run(run_sweep(db))
    except SQLAlchemyError:
        logger.exception('Role sweep failed; nothing after the failing query was applied.')
        sys.exit(1)
    finally:
        db.close()

    print(json.dumps({**asdict(summary), 'total': summary.total, 'dry_run': args.dry_run}))


if __name__ == "__main__":
    main()

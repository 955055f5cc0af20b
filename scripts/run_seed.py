"""
Apply or roll back JSON seed units from the CLI.

    python -m scripts.run_seed apply seeds.test_users
    python -m scripts.run_seed rollback seeds.test_users
"""

from __future__ import annotations

import argparse
import logging
import os

from db.config import mask_database_url, resolve_database_url
from db.query_interface import SQLAlchemyQueryInterface
from db.session import SessionLocal
from seeder.errors import SeederError
from seeder.seed_unit import load_seed
from seeder.utils import create_summary_report

logger = logging.getLogger(__name__)


def _configure_logging() -> None:
    log_level = os.getenv("LOG_LEVEL", "INFO").strip().upper()
    logging.basicConfig(
        level=getattr(logging, log_level, logging.INFO),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )


def main() -> int:
    parser = argparse.ArgumentParser(description="Apply or roll back JSON seed units.")
    parser.add_argument("action", choices=("apply", "rollback"))
    parser.add_argument(
        "seeds",
        nargs="+",
        help="Seed modules, e.g. seeds.test_users. Rollback runs them in reverse order.",
    )
    args = parser.parse_args()

    _configure_logging()
    logger.info("Seed target database=%s", mask_database_url(resolve_database_url()))

    seeds = [load_seed(module_path) for module_path in args.seeds]
    if args.action == "rollback":
        seeds.reverse()

    operations: dict[str, dict[str, int]] = {}
    exit_code = 0
    with SessionLocal() as db:
        query_interface = SQLAlchemyQueryInterface(db)
        for seed in seeds:
            try:
                if args.action == "apply":
                    count = seed.up(query_interface)
                else:
                    count = seed.down(query_interface)
            except SeederError as exc:
                logger.error("Seed %s failed entity=%s: %s", args.action, seed.entity_name, exc)
                operations[seed.entity_name] = {"inserted": 0, "errors": 1}
                exit_code = 1
                break
            inserted = count if args.action == "apply" else 0
            operations[seed.entity_name] = {"inserted": inserted, "errors": 0}

    print(create_summary_report(operations))
    return exit_code


if __name__ == "__main__":
    raise SystemExit(main())

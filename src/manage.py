"""Warehouse database management CLI.

Creates and drops the SQL schemas of the ordering and catalogue domains.
Domains running on the in-memory provider are reported and skipped.

Usage:
    python src/manage.py setup-db                     # Create all tables
    python src/manage.py drop-db --domain ordering    # Drop ordering tables
"""

import argparse
import sys

from ordering.utils.db import drop_db, setup_db
from ordering.utils.logging import configure_logging, get_logger

DOMAIN_NAMES = ["ordering", "catalogue"]

logger = get_logger(__name__)


def _load_domains(names=None):
    from catalogue.domain import catalogue
    from ordering.domain import ordering

    all_domains = {"ordering": ordering, "catalogue": catalogue}
    return {name: all_domains[name] for name in (names or DOMAIN_NAMES)}


def setup_databases(domains=None):
    """Create database schemas for the specified (or all) domains."""
    for name, domain in _load_domains(domains).items():
        domain.init()
        providers = setup_db(domain)
        if providers:
            logger.info("Schema ready", domain=name, providers=providers)
        else:
            logger.info("No SQL provider configured, nothing to create", domain=name)


def drop_databases(domains=None):
    """Drop database schemas for the specified (or all) domains."""
    for name, domain in _load_domains(domains).items():
        domain.init()
        providers = drop_db(domain)
        if providers:
            logger.info("Schema dropped", domain=name, providers=providers)
        else:
            logger.info("No SQL provider configured, nothing to drop", domain=name)


def main(argv=None):
    parser = argparse.ArgumentParser(description="Warehouse database management")
    parser.add_argument("--log-level", default=None, help="Override LOG_LEVEL")
    subparsers = parser.add_subparsers(dest="command", required=True)

    for command, help_text in (("setup-db", "Create all database tables"), ("drop-db", "Drop all database tables")):
        sub = subparsers.add_parser(command, help=help_text)
        sub.add_argument(
            "--domain",
            choices=DOMAIN_NAMES,
            nargs="*",
            help="Specific domain(s) to target (default: all)",
        )

    args = parser.parse_args(argv)
    configure_logging(level=args.log_level)

    if args.command == "setup-db":
        setup_databases(args.domain)
    elif args.command == "drop-db":
        drop_databases(args.domain)
    else:
        parser.print_help()
        sys.exit(1)


if __name__ == "__main__":
    main()

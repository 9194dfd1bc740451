"""Lightweight CLI for pricing admin database operations.

Usage:
    pricing init-db                              # create missing tables
    pricing export-csv <product_id>              # anchors CSV to stdout
    pricing export-csv <product_id> --mode final -o prices.csv
    pricing import-csv <product_id> prices.csv   # merge into the saved editor state
    pricing log-level DEBUG                      # set log level in settings.toml
"""

import argparse
import logging
import re
import sys
from pathlib import Path
from time import perf_counter

from settings_service import SETTINGS_PATH, _load_settings

VALID_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")
EXPORT_MODES = ("anchors", "final")


def _services():
    """Repositories and services wired to the configured database, outside Streamlit."""
    from config import DatabaseConfig
    from repositories.attribute_repo import AttributeRepository
    from repositories.price_repo import PriceRepository
    from repositories.product_repo import ProductRepository
    from repositories.template_bank_repo import TemplateBankRepository
    from services.attribute_service import AttributeService
    from services.pricing_service import PricingService, state_defaults

    db = DatabaseConfig()
    products = ProductRepository(db)
    pricing = PricingService(products, PriceRepository(db), TemplateBankRepository(db), defaults=state_defaults())
    return products, pricing, AttributeService(AttributeRepository(db))


def cmd_init_db(args: argparse.Namespace) -> int:
    """Create the schema in the configured database."""
    if not args.verbose:
        logging.disable(logging.INFO)

    from init_db import init_db

    t0 = perf_counter()
    print("initializing database …", end=" ", flush=True)
    ok = init_db()
    elapsed = round((perf_counter() - t0) * 1000)
    print(f"{'ok' if ok else 'missing tables'} ({elapsed} ms)")
    return 0 if ok else 1


def cmd_export_csv(args: argparse.Namespace) -> int:
    """Write a product's prices as CSV."""
    from domain import PricingAdminError

    _, pricing, attributes = _services()
    try:
        structure = pricing.load_structure(args.product_id)
        state = pricing.load_state(args.product_id)
        csv_text = pricing.export_csv(state, structure, attributes.product_groups(args.product_id), mode=args.mode)
    except PricingAdminError as e:
        print(f"error: {e}", file=sys.stderr)
        return 1

    if args.output:
        Path(args.output).write_text(csv_text, encoding="utf-8-sig")
        print(f"wrote {args.output}")
    else:
        sys.stdout.write(csv_text)
    return 0


def cmd_import_csv(args: argparse.Namespace) -> int:
    """Merge a CSV into the product's saved editor state."""
    from domain import PricingAdminError

    path = Path(args.file)
    if not path.exists():
        print(f"file not found: {path}", file=sys.stderr)
        return 1

    products, pricing, attributes = _services()
    try:
        structure = pricing.load_structure(args.product_id)
        state = pricing.load_state(args.product_id)
        text = path.read_text(encoding="utf-8-sig", errors="replace")
        updated, result = pricing.import_csv(state, text, attributes.product_groups(args.product_id), structure)
    except PricingAdminError as e:
        print(f"error: {e}", file=sys.stderr)
        return 1

    for warning in result.warnings:
        print(f"warning: {warning}")
    if not result.price_count:
        print("no prices imported")
        return 1

    products.save_generator_state(args.product_id, updated.to_dict())
    print(f"{result.price_count} prices from {result.rows_read} rows merged; publish from the price matrix page")
    return 0


def cmd_log_level(args: argparse.Namespace) -> int:
    """Get or set the log level in settings.toml."""
    settings = _load_settings()
    current = settings["env"]["log_level"]

    if args.level is None:
        print(current)
        return 0

    level = args.level.upper()
    if level not in VALID_LOG_LEVELS:
        print(f"invalid level: {args.level} (expected one of {', '.join(VALID_LOG_LEVELS)})")
        return 1

    if level == current:
        print(f"already {level}")
        return 0

    content = SETTINGS_PATH.read_text()
    updated = re.sub(
        r'(log_level\s*=\s*)"[^"]*"',
        rf'\1"{level}"',
        content,
    )
    SETTINGS_PATH.write_text(updated)
    print(f"{current} → {level}")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="pricing", description="Pricing admin CLI tools")
    sub = parser.add_subparsers(dest="command")

    init_parser = sub.add_parser("init-db", help="Create missing database tables")
    init_parser.add_argument("-v", "--verbose", action="store_true", help="Show detailed logs")

    export_parser = sub.add_parser("export-csv", help="Export a product's prices as CSV")
    export_parser.add_argument("product_id")
    export_parser.add_argument("--mode", choices=EXPORT_MODES, default="anchors", help="anchors (re-importable) or final prices")
    export_parser.add_argument("-o", "--output", help="Write to this file instead of stdout")

    import_parser = sub.add_parser("import-csv", help="Merge a CSV into a product's saved editor state")
    import_parser.add_argument("product_id")
    import_parser.add_argument("file")

    ll_parser = sub.add_parser("log-level", help="Get or set the log level in settings.toml")
    ll_parser.add_argument("level", nargs="?", default=None, help="Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)")
    return parser


def main(argv=None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    commands = {
        "init-db": cmd_init_db,
        "export-csv": cmd_export_csv,
        "import-csv": cmd_import_csv,
        "log-level": cmd_log_level,
    }
    if args.command in commands:
        return commands[args.command](args)

    parser.print_help()
    return 0


if __name__ == "__main__":
    sys.exit(main())

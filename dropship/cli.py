"""Command-line interface for the dropshipping catalog.

Usage:
    python -m dropship.cli init-db
    python -m dropship.cli import https://www.temu.com/no/...-g-601099512345.html --margin 50%
    python -m dropship.cli bulk-import --urls-file urls.txt --reject-existing
    python -m dropship.cli sync --store default --apply
"""

import argparse
import sys
from pathlib import Path
from typing import Optional

from loguru import logger

from dropship.bulk_import import run_bulk_import
from dropship.catalog.database import (
    create_db_engine,
    init_db,
    make_session_factory,
    session_scope,
)
from dropship.config import Settings, load_settings
from dropship.dropshipping.order_dispatch import poll_supplier_status, send_order_to_supplier
from dropship.exporters.report_exporter import export_import_results, export_sync_report
from dropship.importer import (
    bulk_import_products,
    import_product_from_url,
    sync_product_availability,
    sync_product_prices,
)
from dropship.models import ImportResult
from dropship.supplier_sync import sync_runner


def setup_logging(verbose: bool = False) -> None:
    """Configure loguru logging.

    Args:
        verbose: Whether to enable debug logging
    """
    logger.remove()  # Remove default handler

    log_level = "DEBUG" if verbose else "INFO"
    log_format = (
        "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | "
        "<level>{level: <8}</level> | "
        "<cyan>{name}</cyan>:<cyan>{function}</cyan> - "
        "<level>{message}</level>"
    )

    logger.add(sys.stderr, format=log_format, level=log_level, colorize=True)
    logger.add(
        "logs/dropship_{time:YYYY-MM-DD}.log",
        format=log_format,
        level="DEBUG",
        rotation="1 day",
        retention="30 days",
    )


def read_urls_from_file(file_path: str) -> list[str]:
    """Read URLs from text file (one per line, # for comments).

    Raises:
        FileNotFoundError: If file doesn't exist
    """
    path = Path(file_path)
    if not path.exists():
        raise FileNotFoundError(f"URL file not found: {file_path}")

    with open(path, "r", encoding="utf-8") as f:
        return [line.strip() for line in f if line.strip() and not line.startswith("#")]


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Import and sync dropshipping products from Temu, Alibaba and eBay",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Create tables
  python -m dropship.cli init-db

  # Import one product with a 50% margin
  python -m dropship.cli import https://www.temu.com/no/mus-g-601099512345.html --margin 50%

  # Bulk import, rejecting products already in the catalog, with an Excel report
  python -m dropship.cli bulk-import --urls-file urls.txt --reject-existing --report output/import.xlsx

  # Apply the supplier feed to a store (dry run without --apply)
  python -m dropship.cli sync --store default --apply
        """,
    )
    parser.add_argument(
        "--database-url",
        help="Database URL (default: DATABASE_URL or sqlite:///./electrohypex.db)",
    )
    parser.add_argument(
        "--verbose", "-v", action="store_true", help="Enable verbose debug logging"
    )

    commands = parser.add_subparsers(dest="command", required=True)

    commands.add_parser("init-db", help="Create database tables")

    import_cmd = commands.add_parser("import", help="Import or update a single product")
    import_cmd.add_argument("url", help="Supplier product URL")
    import_cmd.add_argument("--margin", "-m", help="Profit margin, e.g. 50%%, +100 or 0.5")
    import_cmd.add_argument(
        "--ai-descriptions",
        action="store_true",
        help="Generate descriptions using AI (requires ANTHROPIC_API_KEY)",
    )

    bulk_cmd = commands.add_parser("bulk-import", help="Import many products")
    url_group = bulk_cmd.add_mutually_exclusive_group(required=True)
    url_group.add_argument("--urls", "-u", help="Comma-separated list of product URLs")
    url_group.add_argument("--urls-file", "-f", help="File with one URL per line")
    bulk_cmd.add_argument(
        "--reject-existing",
        action="store_true",
        help="Skip products already in the catalog instead of updating them",
    )
    bulk_cmd.add_argument("--margin", "-m", help="Profit margin (ignored with --reject-existing)")
    bulk_cmd.add_argument("--ai-descriptions", action="store_true")
    bulk_cmd.add_argument("--report", help="Write an XLSX report to this path")

    sync_cmd = commands.add_parser("sync", help="Apply the supplier feed to a store")
    sync_cmd.add_argument("--store", help="Store id (default: STORE_ID or 'default')")
    sync_cmd.add_argument("--apply", action="store_true", help="Write changes (dry run otherwise)")
    sync_cmd.add_argument("--report", help="Write an XLSX report to this path")

    prices_cmd = commands.add_parser(
        "sync-prices", help="Re-scrape auto-imported products and update prices"
    )
    prices_cmd.add_argument(
        "--availability", action="store_true", help="Also refresh availability"
    )

    send_cmd = commands.add_parser("send-order", help="Send an order to its supplier")
    send_cmd.add_argument("order_id", type=int)

    poll_cmd = commands.add_parser("poll-status", help="Poll suppliers for open orders")
    poll_cmd.add_argument("--store", help="Only poll this store's orders")

    return parser


def _urls_from_args(args: argparse.Namespace) -> list[str]:
    if args.urls:
        return [url.strip() for url in args.urls.split(",") if url.strip()]
    return read_urls_from_file(args.urls_file)


def _log_results(results: list[ImportResult]) -> None:
    for result in results:
        if result.success:
            logger.info(f"OK   {result.product_name} ({result.price} kr) <- {result.url[:80]}")
        else:
            logger.warning(f"FAIL {result.url[:80]}: {result.error}")


def run_command(args: argparse.Namespace, settings: Settings) -> int:
    engine = create_db_engine(args.database_url or settings.database_url)
    if args.command == "init-db":
        init_db(engine)
        return 0

    session_factory = make_session_factory(engine)
    with session_scope(session_factory) as session:
        if args.command == "import":
            product = import_product_from_url(
                session,
                args.url,
                args.margin or settings.pricing.default_margin,
                settings,
                args.ai_descriptions,
            )
            logger.success(f"Imported '{product.name}' as product {product.id} ({product.price} kr)")
            return 0

        if args.command == "bulk-import":
            urls = _urls_from_args(args)
            if args.reject_existing:
                results = run_bulk_import(session, urls, settings)
            else:
                results = bulk_import_products(
                    session,
                    urls,
                    args.margin or settings.pricing.default_margin,
                    settings,
                    args.ai_descriptions,
                )
            _log_results(results)
            if args.report:
                export_import_results(results, args.report)
            succeeded = sum(1 for r in results if r.success)
            logger.success(f"Imported {succeeded}/{len(results)} products")
            return 0 if succeeded == len(results) else 1

        if args.command == "sync":
            report = sync_runner(
                session,
                args.store or settings.default_store_id,
                dry_run=not args.apply,
                settings=settings,
            )
            if args.report:
                export_sync_report(report, args.report)
            return 0

        if args.command == "sync-prices":
            updated = sync_product_prices(session, settings)
            logger.success(f"Updated prices for {updated} products")
            if args.availability:
                checked = sync_product_availability(session, settings)
                logger.success(f"Refreshed availability for {checked} products")
            return 0

        if args.command == "send-order":
            order = send_order_to_supplier(session, args.order_id, settings.dropshipping)
            if order is None:
                logger.error(f"Order {args.order_id} not found")
                return 1
            if order.auto_order_error:
                logger.error(f"Order {order.id} not sent: {order.auto_order_error}")
                return 1
            return 0

        if args.command == "poll-status":
            counts = poll_supplier_status(session, args.store, settings.dropshipping)
            logger.success(f"Polled {counts['processed']} orders, {counts['updated']} updated")
            return 0

    raise ValueError(f"Unknown command: {args.command}")


def main(argv: Optional[list[str]] = None) -> int:
    """Main CLI entry point.

    Returns:
        Exit code (0 for success, 1 for error)
    """
    args = build_parser().parse_args(argv)
    setup_logging(args.verbose)

    try:
        return run_command(args, load_settings())
    except FileNotFoundError as e:
        logger.error(str(e))
        return 1
    except Exception as e:
        logger.exception(f"{args.command} failed: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())

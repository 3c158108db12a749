#!/usr/bin/env python
"""Run catalog imports and exports against the database without the API.

Usage:
    # Create the products table (local development)
    python scripts/catalog_cli.py init-db

    # Import a spreadsheet export
    python scripts/catalog_cli.py import products.csv

    # Export every product in the Shopify dialect
    python scripts/catalog_cli.py export shopify --output shopify.csv

    # Export selected ids in the Excel dialect
    python scripts/catalog_cli.py export excel --ids 1,2,3
"""

import argparse
import asyncio
import sys
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from inventory.core.exporters import get_formatter_registry
from inventory.core.header_aliases import load_header_aliases
from inventory.errors import InventoryError
from inventory.infra.database import close_db_engine, create_tables, get_db_session
from inventory.infra.logging import get_logger, setup_logging
from inventory.services.import_export_service import ImportExportService
from inventory.services.repository import SqlProductRepository

setup_logging()
logger = get_logger(__name__)


async def init_db() -> int:
    await create_tables()
    print("Products table ready")
    return 0


async def import_file(path: Path) -> int:
    data = path.read_bytes()

    async with get_db_session() as session:
        service = ImportExportService(
            repository=SqlProductRepository(session),
            aliases=load_header_aliases(),
        )
        result = await service.import_csv(data)

    print(
        f"Received {result.received} rows: {result.inserted} inserted, "
        f"{result.matched} updated, {len(result.rejections)} rejected, "
        f"{len(result.failures)} failed"
    )
    for rejection in result.rejections:
        print(f"  row {rejection.row}: {rejection.errors}")
    for failure in result.failures:
        print(f"  code {failure.code}: {failure.error}")
    return 0 if not result.failures else 1


async def export_file(format_name: str, ids: list[int], output: Path | None) -> int:
    async with get_db_session() as session:
        service = ImportExportService(
            repository=SqlProductRepository(session),
            aliases=load_header_aliases(),
        )
        result = await service.export(format_name, ids)

    target = output or Path(result.filename)
    target.write_text(result.content, encoding="utf-8")
    print(f"Wrote {result.count} products to {target}")
    return 0


def parse_ids(raw: str | None) -> list[int]:
    if not raw:
        return []
    try:
        return [int(part) for part in raw.split(",") if part.strip()]
    except ValueError:
        raise argparse.ArgumentTypeError(f"--ids must be comma-separated integers, got {raw!r}")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Catalog import/export tool")
    commands = parser.add_subparsers(dest="command", required=True)

    commands.add_parser("init-db", help="Create the products table")

    import_cmd = commands.add_parser("import", help="Import a CSV file")
    import_cmd.add_argument("path", type=Path, help="CSV file to import")

    export_cmd = commands.add_parser("export", help="Export products as CSV")
    export_cmd.add_argument(
        "format",
        help=f"Dialect: {', '.join(get_formatter_registry().get_available())}",
    )
    export_cmd.add_argument("--ids", type=parse_ids, default=[], help="Comma-separated product ids")
    export_cmd.add_argument("--output", type=Path, default=None, help="Output file")

    return parser


async def main(args: argparse.Namespace) -> int:
    try:
        if args.command == "init-db":
            return await init_db()
        if args.command == "import":
            return await import_file(args.path)
        return await export_file(args.format, args.ids, args.output)
    except InventoryError as e:
        logger.error("Command failed", command=args.command, error=str(e))
        print(f"Error: {e}", file=sys.stderr)
        return 2
    finally:
        await close_db_engine()


if __name__ == "__main__":
    sys.exit(asyncio.run(main(build_parser().parse_args())))

"""Import/export orchestration.

Import: parse (fully) -> validate each row -> dedupe + plan -> bulk upsert
-> re-read the affected products. Export: resolve the dialect -> fetch the
selection (or everything) -> render.
"""

import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, BinaryIO, Iterable, Mapping, Sequence

from inventory.core.exporters import FormatterRegistry, get_formatter_registry
from inventory.core.header_aliases import HeaderAliasTable
from inventory.core.row_parser import read_csv
from inventory.core.row_validator import RowRejection, RowValidator
from inventory.core.upsert_planner import plan_upserts
from inventory.infra.logging import get_logger
from inventory.models.product import Product
from inventory.services.repository import ProductRepository, UpsertFailure

logger = get_logger(__name__)


@dataclass
class ImportResult:
    """Outcome of one import call."""

    products: list[Product] = field(default_factory=list)
    received: int = 0
    matched: int = 0
    inserted: int = 0
    failures: list[UpsertFailure] = field(default_factory=list)
    rejections: list[RowRejection] = field(default_factory=list)

    @property
    def accepted(self) -> int:
        return self.received - len(self.rejections)


@dataclass(frozen=True)
class ExportResult:
    """A rendered export."""

    format: str
    filename: str
    content: str
    count: int

    media_type: str = "text/csv; charset=utf-8"


def export_filename(format_name: str, now: datetime | None = None) -> str:
    """products-<format>-<UTC timestamp>.csv"""
    now = now or datetime.now(timezone.utc)
    return f"products-{format_name}-{now.strftime('%Y%m%dT%H%M%SZ')}.csv"


class ImportExportService:
    """CSV import/export on top of a ProductRepository."""

    def __init__(
        self,
        repository: ProductRepository,
        aliases: HeaderAliasTable,
        validator: RowValidator | None = None,
        formatters: FormatterRegistry | None = None,
    ) -> None:
        self.repository = repository
        self.aliases = aliases
        self.validator = validator or RowValidator()
        self.formatters = formatters or get_formatter_registry()

    async def import_csv(self, data: bytes | BinaryIO) -> ImportResult:
        """Import an uploaded CSV document.

        Raises:
            CsvFormatError: If the content is not parseable as CSV; nothing
                is written in that case
        """
        rows = read_csv(data, self.aliases)
        return await self.import_rows(rows)

    async def import_rows(self, rows: Iterable[Mapping[str, Any]]) -> ImportResult:
        """Validate, deduplicate and upsert pre-parsed rows."""
        start_time = time.time()

        report = self.validator.validate_rows(rows)
        result = ImportResult(received=report.received, rejections=report.rejections)

        plan = plan_upserts(report.records)
        if not plan:
            logger.info(
                "Import finished with nothing to write",
                received=result.received,
                rejected=len(result.rejections),
            )
            return result

        write = await self.repository.bulk_upsert(plan)
        result.matched = write.matched
        result.inserted = write.inserted
        result.failures = write.errors
        result.products = await self.repository.find_by_codes(plan.codes)

        logger.info(
            "Import completed",
            received=result.received,
            accepted=result.accepted,
            rejected=len(result.rejections),
            unique_codes=len(plan),
            matched=result.matched,
            inserted=result.inserted,
            errors=len(result.failures),
            duration_ms=int((time.time() - start_time) * 1000),
        )
        return result

    async def export(self, format_name: str, product_ids: Sequence[int] | None = None) -> ExportResult:
        """Render the selected products (or every product) in a dialect.

        The dialect is resolved before anything is fetched.

        Raises:
            UnknownExportFormatError: If `format_name` is not registered
        """
        formatter = self.formatters.get(format_name)

        if product_ids:
            products = await self.repository.find_by_ids(product_ids)
        else:
            products = await self.repository.find_all()

        content = formatter.render(products)
        logger.info(
            "Export rendered",
            format=formatter.name,
            selected=len(product_ids or []),
            exported=len(products),
        )
        return ExportResult(
            format=formatter.name,
            filename=export_filename(formatter.name),
            content=content,
            count=len(products),
        )

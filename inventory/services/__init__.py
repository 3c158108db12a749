"""Services - persistence, CRUD and CSV import/export orchestration."""

from inventory.services.import_export_service import (
    ExportResult,
    ImportExportService,
    ImportResult,
)
from inventory.services.product_service import ProductService
from inventory.services.repository import (
    BulkWriteResult,
    ProductRepository,
    SqlProductRepository,
    UpsertFailure,
)

__all__ = [
    "ExportResult",
    "ImportExportService",
    "ImportResult",
    "ProductService",
    "BulkWriteResult",
    "ProductRepository",
    "SqlProductRepository",
    "UpsertFailure",
]

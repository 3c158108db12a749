"""Core import/export pipeline: header aliases, parsing, validation, planning, formatting."""

from inventory.core.exporters import (
    ExcelFormatter,
    ExportFormatter,
    FormatterRegistry,
    ShopifyFormatter,
    get_formatter,
    get_formatter_registry,
)
from inventory.core.header_aliases import (
    Drop,
    HeaderAliasTable,
    Keep,
    Rename,
    get_alias_loader,
    load_header_aliases,
)
from inventory.core.row_parser import parse_csv, read_csv
from inventory.core.row_validator import RowRejection, RowValidator, ValidationReport
from inventory.core.upsert_planner import UpsertInstruction, UpsertPlan, plan_upserts

__all__ = [
    "ExcelFormatter",
    "ExportFormatter",
    "FormatterRegistry",
    "ShopifyFormatter",
    "get_formatter",
    "get_formatter_registry",
    "Drop",
    "HeaderAliasTable",
    "Keep",
    "Rename",
    "get_alias_loader",
    "load_header_aliases",
    "parse_csv",
    "read_csv",
    "RowRejection",
    "RowValidator",
    "ValidationReport",
    "UpsertInstruction",
    "UpsertPlan",
    "plan_upserts",
]

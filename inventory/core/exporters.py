"""Export formatters - render products as CSV in an external dialect.

Two dialects are registered by default:

- ``shopify``: Shopify-style product sheet, standard CSV quoting
- ``excel``: fixed column layout of the shared spreadsheet template, where
  only cells containing a comma are quoted

Formatters read ORM `Product` instances (or anything with the same
attributes). Missing optional values always render as empty cells.
"""

import csv
import io
from abc import ABC, abstractmethod
from typing import Any, Iterable

from inventory.errors import UnknownExportFormatError
from inventory.infra.logging import get_logger
from inventory.schemas.product import Money, Volume

logger = get_logger(__name__)


def _text(value: Any) -> str:
    return "" if value is None else str(value)


def _money(value: Any) -> Money | None:
    if value is None:
        return None
    return value if isinstance(value, Money) else Money.parse(value)


def _price(value: Any) -> str:
    """Bare amount, as the storefront sheet has no currency column."""
    money = _money(value)
    return money.format_amount() if money is not None else ""


def _labelled_price(value: Any) -> str:
    """Amount with its currency unless it is the default currency."""
    money = _money(value)
    return money.format() if money is not None else ""


def _volume(value: Any) -> str:
    if value is None:
        return ""
    volume = value if isinstance(value, Volume) else Volume.parse(value)
    return volume.format() if volume is not None else ""


class ExportFormatter(ABC):
    """Base class for CSV export dialects."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Format identifier used in export requests."""
        pass

    @property
    @abstractmethod
    def columns(self) -> list[str]:
        """Header row, in output order."""
        pass

    @abstractmethod
    def to_row(self, product: Any) -> list[str]:
        """Project one product onto the dialect's columns."""
        pass

    @abstractmethod
    def render(self, products: Iterable[Any]) -> str:
        """Render a complete CSV document, header included."""
        pass


class ShopifyFormatter(ExportFormatter):
    """Shopify-style product CSV."""

    @property
    def name(self) -> str:
        return "shopify"

    @property
    def columns(self) -> list[str]:
        return [
            "Handle",
            "Title",
            "Body",
            "Vendor",
            "Variant SKU",
            "Variant Inventory Qty",
            "Variant Price",
            "Tags",
        ]

    def to_row(self, product: Any) -> list[str]:
        code = _text(product.code)
        qty = product.stock_qty if product.stock_qty is not None else 0
        return [
            code.lower(),
            _text(product.name),
            _text(product.description),
            _text(product.brand),
            code,
            str(qty),
            _price(product.price),
            ", ".join(product.tags or []),
        ]

    def render(self, products: Iterable[Any]) -> str:
        buffer = io.StringIO()
        writer = csv.writer(buffer, lineterminator="\n")
        writer.writerow(self.columns)
        for product in products:
            writer.writerow(self.to_row(product))
        return buffer.getvalue()


class ExcelFormatter(ExportFormatter):
    """Column layout of the shared Excel template.

    The leading blank column and the header spelling are part of the
    template and must not change.
    """

    @property
    def name(self) -> str:
        return "excel"

    @property
    def columns(self) -> list[str]:
        return [
            "",
            "Barcode",
            "CODE",
            "PRODUCT NAME",
            "PRICE",
            "PRODUCT CATEGORY",
            "IMAGE URL",
            "mL",
        ]

    @staticmethod
    def cell(value: str) -> str:
        """Quote a cell only when it contains a comma."""
        if "," in value:
            return '"' + value.replace('"', '""') + '"'
        return value

    def to_row(self, product: Any) -> list[str]:
        return [
            "",
            _text(product.barcode),
            _text(product.code),
            _text(product.name),
            _labelled_price(product.price),
            _text(product.category),
            _text(product.image_url),
            _volume(product.volume),
        ]

    def render(self, products: Iterable[Any]) -> str:
        lines = [",".join(self.cell(c) for c in self.columns)]
        for product in products:
            lines.append(",".join(self.cell(c) for c in self.to_row(product)))
        return "\n".join(lines) + "\n"


class FormatterRegistry:
    """Registry of export dialects, keyed by format name."""

    def __init__(self) -> None:
        self._formatters: dict[str, type[ExportFormatter]] = {}

    def register(self, name: str, formatter_class: type[ExportFormatter]) -> None:
        """Register a formatter class.

        Raises:
            ValueError: If name is empty or the class is not an ExportFormatter
        """
        if not name or not isinstance(name, str):
            raise ValueError(f"Format name must be a non-empty string, got {name}")
        if not isinstance(formatter_class, type) or not issubclass(formatter_class, ExportFormatter):
            raise ValueError(f"formatter_class must be an ExportFormatter subclass, got {formatter_class}")

        self._formatters[name.lower()] = formatter_class
        logger.debug("Export formatter registered", name=name, cls=formatter_class.__name__)

    def get(self, name: str) -> ExportFormatter:
        """Get a formatter instance by (case-insensitive) name.

        Raises:
            UnknownExportFormatError: If no formatter is registered under `name`
        """
        key = (name or "").strip().lower()
        if key not in self._formatters:
            raise UnknownExportFormatError(name, self.get_available())
        return self._formatters[key]()

    def get_available(self) -> list[str]:
        return list(self._formatters.keys())

    def is_registered(self, name: str) -> bool:
        return (name or "").strip().lower() in self._formatters


def create_default_registry() -> FormatterRegistry:
    """Registry with the Shopify and Excel dialects."""
    registry = FormatterRegistry()
    registry.register("shopify", ShopifyFormatter)
    registry.register("excel", ExcelFormatter)
    return registry


# Singleton registry
_registry: FormatterRegistry | None = None


def get_formatter_registry() -> FormatterRegistry:
    """Get the singleton formatter registry."""
    global _registry
    if _registry is None:
        _registry = create_default_registry()
    return _registry


def get_formatter(name: str) -> ExportFormatter:
    """Resolve a format name against the default registry."""
    return get_formatter_registry().get(name)

"""Schemas for the CSV import and export endpoints."""

from typing import Any

from pydantic import Field, field_validator

from inventory.schemas.product import CamelModel, ProductRead


class RejectedRow(CamelModel):
    """A row excluded from an import because it failed validation."""

    row: int = Field(description="1-based position of the row in the batch")
    errors: dict[str, list[str]] = Field(description="Field name -> error messages")


class UpsertError(CamelModel):
    """A single upsert that the database refused."""

    code: str = Field(description="Business key of the failed upsert")
    error: str = Field(description="Database error message")


class ImportResponse(CamelModel):
    """Result of an import call.

    `count` is the number of records now stored for the imported codes;
    `received` minus the accepted rows is what validation dropped.
    """

    message: str
    count: int
    received: int
    matched: int
    inserted: int
    failed: int
    errors: list[UpsertError] = Field(default_factory=list)
    rejected_rows: list[RejectedRow] = Field(default_factory=list)
    products: list[ProductRead] = Field(default_factory=list)


class ExportRequest(CamelModel):
    """Body of the export endpoint.

    `format` is checked by the formatter registry rather than by a Literal
    so an unknown value produces the registry's explicit 400 message.
    `products` holds ids or objects carrying an ``id`` (or ``_id``); when
    absent or empty every stored product is exported.
    """

    format: str = Field(description="Export dialect: shopify or excel")
    products: list[int | dict[str, Any]] | None = Field(default=None)
    scope: str | None = Field(default=None, description="Informational: all or selected")

    @field_validator("products", mode="before")
    @classmethod
    def coerce_numeric_strings(cls, v: Any) -> Any:
        if isinstance(v, list):
            return [int(item) if isinstance(item, str) and item.strip().isdigit() else item for item in v]
        return v

    def product_ids(self) -> list[int]:
        """Extract the selected storage ids, ignoring entries without one."""
        ids: list[int] = []
        for item in self.products or []:
            if isinstance(item, int):
                ids.append(item)
                continue
            raw = item.get("id", item.get("_id"))
            if isinstance(raw, int) and not isinstance(raw, bool):
                ids.append(raw)
            elif isinstance(raw, str) and raw.strip().isdigit():
                ids.append(int(raw))
        return ids


class DeleteAllResponse(CamelModel):
    """Result of deleting every product."""

    message: str
    deleted: int

"""Product schemas and the price/volume boundary conversions.

Internally a price is always a `Money` and a volume always a `Volume`.
Flat strings such as ``"19.99 EUR"`` or ``"500 mL"`` only exist at the CSV
and HTTP edges and are converted here.
"""

import math
import re
from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from inventory.config import settings

CURRENCY_SYMBOLS = {"€": "EUR", "$": "USD", "£": "GBP"}

UNIT_SPELLINGS = {"ml": "mL", "l": "L", "cl": "cL", "dl": "dL", "g": "g", "kg": "kg", "oz": "oz"}

_PRICE_RE = re.compile(r"([A-Za-z]{3})?\s*([0-9][0-9.,]*)\s*([A-Za-z]{3})?")
_VOLUME_RE = re.compile(r"([0-9][0-9.,]*)\s*([A-Za-z ]+)?")

# Accepted number spellings; anything else is ambiguous
_PLAIN_NUMBER_RE = re.compile(r"[0-9]+(\.[0-9]+)?")
_DECIMAL_COMMA_RE = re.compile(r"[0-9]+,[0-9]{1,2}")
_DOT_GROUPED_RE = re.compile(r"[0-9]{1,3}(\.[0-9]{3})+,[0-9]+")
_COMMA_GROUPED_RE = re.compile(r"[0-9]{1,3}(,[0-9]{3})+\.[0-9]+")


def _parse_number(raw: str) -> float | None:
    """Parse a decimal string written with dot or comma conventions.

    Accepted: ``"1234.5"``, ``"19,99"`` (one comma, 1-2 decimals),
    ``"1.234,56"`` and ``"1,234.56"`` (grouped thousands with decimals).
    Anything ambiguous, such as ``"1,234"`` or ``"1.234.567"``, returns None.
    """
    if _DECIMAL_COMMA_RE.fullmatch(raw):
        raw = raw.replace(",", ".")
    elif _DOT_GROUPED_RE.fullmatch(raw):
        raw = raw.replace(".", "").replace(",", ".")
    elif _COMMA_GROUPED_RE.fullmatch(raw):
        raw = raw.replace(",", "")
    elif not _PLAIN_NUMBER_RE.fullmatch(raw):
        return None

    try:
        value = float(raw)
    except ValueError:
        return None
    if not math.isfinite(value) or value < 0:
        return None
    return value


def format_number(value: float) -> str:
    """Render a number without a trailing ``.0`` for whole values."""
    if float(value).is_integer():
        return str(int(value))
    return repr(float(value))


class CamelModel(BaseModel):
    """Base model exposing camelCase names while accepting snake_case too."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
    )


class Money(CamelModel):
    """Structured price."""

    amount: float = Field(ge=0, allow_inf_nan=False, description="Price amount")
    currency: str = Field(min_length=3, max_length=3, description="ISO 4217 code")

    @field_validator("currency")
    @classmethod
    def upper_currency(cls, v: str) -> str:
        return v.upper()

    @classmethod
    def parse(cls, raw: Any, default_currency: str | None = None) -> "Money | None":
        """Convert a flat price into `Money`.

        Accepts numbers and strings like ``"19.99"``, ``"19.99 EUR"``,
        ``"EUR 19.99"``, ``"€19,99"``. Returns None when no finite,
        non-negative amount can be read.
        """
        currency = default_currency or settings.default_currency

        if isinstance(raw, bool):
            return None
        if isinstance(raw, (int, float)):
            if not math.isfinite(raw) or raw < 0:
                return None
            return cls(amount=float(raw), currency=currency)
        if isinstance(raw, dict):
            try:
                return cls.model_validate(raw)
            except ValueError:
                return None
        if not isinstance(raw, str):
            return None

        text = raw.strip()
        for symbol, code in CURRENCY_SYMBOLS.items():
            if symbol in text:
                currency = code
                text = text.replace(symbol, "")

        match = _PRICE_RE.fullmatch(text.strip())
        if match is None:
            return None

        amount = _parse_number(match.group(2))
        if amount is None:
            return None

        code = match.group(1) or match.group(3)
        return cls(amount=amount, currency=(code or currency).upper())

    def format_amount(self) -> str:
        return f"{self.amount:.2f}"

    def format(self, bare_currency: str | None = None) -> str:
        """Render for CSV; the amount alone when the currency is `bare_currency`."""
        bare_currency = bare_currency or settings.default_currency
        if self.currency == bare_currency.upper():
            return self.format_amount()
        return f"{self.format_amount()} {self.currency}"


class Volume(CamelModel):
    """Structured volume."""

    value: float = Field(ge=0, allow_inf_nan=False, description="Quantity")
    unit: str = Field(min_length=1, max_length=16, description="Unit of measure")

    @classmethod
    def parse(cls, raw: Any, default_unit: str | None = None) -> "Volume | None":
        """Convert a flat volume (``"500"``, ``"500 mL"``, ``"1,5 l"``) into `Volume`."""
        unit = default_unit or settings.default_volume_unit

        if isinstance(raw, bool):
            return None
        if isinstance(raw, (int, float)):
            if not math.isfinite(raw) or raw < 0:
                return None
            return cls(value=float(raw), unit=unit)
        if isinstance(raw, dict):
            try:
                return cls.model_validate(raw)
            except ValueError:
                return None
        if not isinstance(raw, str):
            return None

        match = _VOLUME_RE.fullmatch(raw.strip())
        if match is None:
            return None

        value = _parse_number(match.group(1))
        if value is None:
            return None

        if match.group(2):
            spelled = match.group(2).strip()
            unit = UNIT_SPELLINGS.get(spelled.lower(), spelled)
        return cls(value=value, unit=unit)

    def format(self, bare_unit: str | None = None) -> str:
        """Render for CSV; the value alone when the unit is `bare_unit`."""
        bare_unit = bare_unit or settings.default_volume_unit
        if self.unit.lower() == bare_unit.lower():
            return format_number(self.value)
        return f"{format_number(self.value)} {self.unit}"


class AiDescription(CamelModel):
    """Generated marketing copy, stored as-is."""

    content: str | None = None
    model: str | None = None
    generated_at: datetime | None = None


class ProductFields(CamelModel):
    """Optional product fields shared by create and update bodies."""

    barcode: str | None = Field(default=None, max_length=64)
    short_description: str | None = Field(default=None, max_length=160)
    description: str | None = None
    brand: str | None = Field(default=None, max_length=120)
    category: str | None = Field(default=None, max_length=120)
    price: Money | None = None
    volume: Volume | None = None
    image_url: str | None = None
    ai_description: AiDescription | None = None

    @field_validator("price", mode="before")
    @classmethod
    def coerce_price(cls, v: Any) -> Any:
        if v is None or isinstance(v, (dict, Money)):
            return v
        parsed = Money.parse(v)
        if parsed is None:
            raise ValueError(f"unreadable price: {v!r}")
        return parsed

    @field_validator("volume", mode="before")
    @classmethod
    def coerce_volume(cls, v: Any) -> Any:
        if v is None or isinstance(v, (dict, Volume)):
            return v
        parsed = Volume.parse(v)
        if parsed is None:
            raise ValueError(f"unreadable volume: {v!r}")
        return parsed


class ProductCreate(ProductFields):
    """Body for creating a product."""

    code: str = Field(min_length=1, max_length=64)
    name: str = Field(min_length=1, max_length=255)
    tags: list[str] = Field(default_factory=list)
    attributes: dict[str, str] = Field(default_factory=dict)
    stock_qty: int = Field(default=0, ge=0)
    is_active: bool = True


class ProductUpdate(ProductFields):
    """Body for updating a product. Only fields that are sent are changed."""

    code: str | None = Field(default=None, min_length=1, max_length=64)
    name: str | None = Field(default=None, min_length=1, max_length=255)
    tags: list[str] | None = None
    attributes: dict[str, str] | None = None
    stock_qty: int | None = Field(default=None, ge=0)
    is_active: bool | None = None


class ProductRead(CamelModel):
    """Product as returned by the API."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )

    id: int
    code: str
    barcode: str | None = None
    name: str
    short_description: str | None = None
    description: str | None = None
    brand: str | None = None
    category: str | None = None
    price: Money | None = None
    volume: Volume | None = None
    image_url: str | None = None
    tags: list[str] = Field(default_factory=list)
    attributes: dict[str, str] = Field(default_factory=dict)
    ai_description: AiDescription | None = None
    stock_qty: int = 0
    is_active: bool = True
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @field_validator("tags", mode="before")
    @classmethod
    def none_tags(cls, v: Any) -> Any:
        return v or []

    @field_validator("attributes", mode="before")
    @classmethod
    def none_attributes(cls, v: Any) -> Any:
        return v or {}


class ProductListResponse(CamelModel):
    """Paged product listing."""

    items: list[ProductRead]
    total: int
    offset: int
    limit: int

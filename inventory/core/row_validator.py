"""Row validation and normalization for imports.

Each incoming row (from the CSV parser or a JSON body) is validated against
`ImportRow`. A failing row is rejected with its 1-based position and the
field errors; it never aborts the batch. An accepted row is normalized into
a partial product keyed by ORM attribute name:

- empty values are dropped so a later upsert never blanks stored data
- `price` becomes a `Money` dict, `stock_qty` an int; unreadable values
  are dropped rather than failing the row
- `is_active` defaults to True
"""

import math
from dataclasses import dataclass, field
from typing import Any, Iterable, Mapping

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator
from pydantic.alias_generators import to_camel

from inventory.config import settings
from inventory.infra.logging import get_logger
from inventory.schemas.product import AiDescription, Money, Volume

logger = get_logger(__name__)

NormalizedRecord = dict[str, Any]

TRUE_STRINGS = {"true", "yes", "y", "1", "on"}
FALSE_STRINGS = {"false", "no", "n", "0", "off"}


def _blank_to_none(v: Any) -> Any:
    if isinstance(v, str):
        v = v.strip()
        return v or None
    return v


class ImportRow(BaseModel):
    """Schema an import row must satisfy.

    Only `code` and `name` are required. The loosely typed fields accept
    both their flat CSV spelling and their structured JSON form; coercion
    happens afterwards in `RowValidator`.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
        str_strip_whitespace=True,
    )

    code: str = Field(min_length=1)
    name: str = Field(min_length=1)
    barcode: str | None = None
    short_description: str | None = None
    description: str | None = None
    brand: str | None = None
    category: str | None = None
    image_url: str | None = None

    price: str | int | float | dict[str, Any] | None = None
    volume: str | int | float | dict[str, Any] | None = None
    tags: list[str] | str | None = None
    attributes: dict[str, str] | str | None = None
    ai_description: AiDescription | str | None = None
    stock_qty: str | int | float | None = None
    is_active: bool | str | None = None

    @field_validator(
        "barcode",
        "short_description",
        "description",
        "brand",
        "category",
        "image_url",
        "price",
        "volume",
        "stock_qty",
        "is_active",
        "ai_description",
        mode="before",
    )
    @classmethod
    def empty_is_absent(cls, v: Any) -> Any:
        return _blank_to_none(v)

    @field_validator("tags", mode="after")
    @classmethod
    def split_tags(cls, v: list[str] | str | None) -> list[str] | None:
        if v is None:
            return None
        items = v.split(",") if isinstance(v, str) else v
        tags = [t.strip() for t in items if t.strip()]
        return tags or None

    @field_validator("attributes", mode="after")
    @classmethod
    def split_attributes(cls, v: dict[str, str] | str | None) -> dict[str, str] | None:
        if v is None:
            return None
        if isinstance(v, dict):
            return {k: val for k, val in v.items() if val != ""} or None

        attributes: dict[str, str] = {}
        for pair in v.split(";"):
            if not pair.strip():
                continue
            key, sep, value = pair.partition("=")
            if not sep or not key.strip():
                raise ValueError("attributes must look like 'key=value; key=value'")
            if value.strip():
                attributes[key.strip()] = value.strip()
        return attributes or None


@dataclass(frozen=True)
class RowRejection:
    """A row that failed validation."""

    row: int
    errors: dict[str, list[str]]


@dataclass(frozen=True)
class RowResult:
    """Outcome of validating one row: a record or a rejection."""

    row: int
    record: NormalizedRecord | None = None
    rejection: RowRejection | None = None

    @property
    def accepted(self) -> bool:
        return self.record is not None


@dataclass
class ValidationReport:
    """Accepted records (in input order) and rejected rows of a batch."""

    records: list[NormalizedRecord] = field(default_factory=list)
    rejections: list[RowRejection] = field(default_factory=list)

    @property
    def received(self) -> int:
        return len(self.records) + len(self.rejections)


def _field_errors(exc: ValidationError) -> dict[str, list[str]]:
    errors: dict[str, list[str]] = {}
    for err in exc.errors():
        loc = ".".join(str(part) for part in err["loc"]) or "__row__"
        errors.setdefault(loc, []).append(err["msg"])
    return errors


def _coerce_int(v: Any) -> int | None:
    if isinstance(v, bool):
        return None
    try:
        number = float(v)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(number) or number < 0 or not number.is_integer():
        return None
    return int(number)


def _coerce_bool(v: Any) -> bool | None:
    if isinstance(v, bool):
        return v
    lowered = str(v).strip().lower()
    if lowered in TRUE_STRINGS:
        return True
    if lowered in FALSE_STRINGS:
        return False
    return None


class RowValidator:
    """Validates and normalizes import rows."""

    def __init__(
        self,
        default_currency: str | None = None,
        default_volume_unit: str | None = None,
    ) -> None:
        self.default_currency = default_currency or settings.default_currency
        self.default_volume_unit = default_volume_unit or settings.default_volume_unit

    def validate(self, row: Mapping[str, Any], position: int) -> RowResult:
        """Validate one row.

        Args:
            row: Raw record (field name -> value)
            position: 1-based position in the batch, used for diagnostics

        Returns:
            RowResult carrying either the normalized record or the rejection
        """
        if not isinstance(row, Mapping):
            rejection = RowRejection(row=position, errors={"__row__": ["row must be an object"]})
            logger.warning("Import row skipped", row=position, errors=rejection.errors)
            return RowResult(row=position, rejection=rejection)

        try:
            parsed = ImportRow.model_validate(dict(row))
        except ValidationError as e:
            rejection = RowRejection(row=position, errors=_field_errors(e))
            logger.warning("Import row skipped", row=position, errors=rejection.errors)
            return RowResult(row=position, rejection=rejection)

        return RowResult(row=position, record=self.normalize(parsed))

    def normalize(self, parsed: ImportRow) -> NormalizedRecord:
        """Turn a validated row into a partial product record."""
        data = parsed.model_dump(exclude_none=True)
        record: NormalizedRecord = {}

        for key, value in data.items():
            if value == "" or value == [] or value == {}:
                continue

            if key == "price":
                money = Money.parse(value, self.default_currency)
                if money is not None:
                    record[key] = money.model_dump()
            elif key == "volume":
                volume = Volume.parse(value, self.default_volume_unit)
                if volume is not None:
                    record[key] = volume.model_dump()
            elif key == "stock_qty":
                qty = _coerce_int(value)
                if qty is not None:
                    record[key] = qty
            elif key == "is_active":
                flag = _coerce_bool(value)
                if flag is not None:
                    record[key] = flag
            elif key == "ai_description":
                if isinstance(parsed.ai_description, str):
                    record[key] = {"content": parsed.ai_description}
                else:
                    description = parsed.ai_description.model_dump(mode="json", exclude_none=True)
                    if description:
                        record[key] = description
            else:
                record[key] = value

        record.setdefault("is_active", True)
        return record

    def validate_rows(self, rows: Iterable[Mapping[str, Any]]) -> ValidationReport:
        """Validate a batch in order with 1-based positions."""
        report = ValidationReport()
        for position, row in enumerate(rows, start=1):
            result = self.validate(row, position)
            if result.record is not None:
                report.records.append(result.record)
            elif result.rejection is not None:
                report.rejections.append(result.rejection)
        return report

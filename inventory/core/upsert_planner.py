"""Deduplication and upsert planning for imports.

Normalized records are collapsed by `code` with last-occurrence-wins
semantics: a later row replaces an earlier one wholesale, it is not merged
field by field. The result is a persistence-agnostic plan of one upsert per
code that can be applied in any order.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Iterable, Iterator

from inventory.infra.logging import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class UpsertInstruction:
    """Match the stored product whose code equals `code`; set `set_fields`.

    `set_on_insert` is applied only when no product matches.
    """

    code: str
    set_fields: dict[str, Any]
    set_on_insert: dict[str, Any] = field(default_factory=dict)

    def insert_values(self) -> dict[str, Any]:
        """Full column values for a new product."""
        return {**self.set_on_insert, **self.set_fields}


@dataclass(frozen=True)
class UpsertPlan:
    """Unordered set of upserts, at most one per code."""

    instructions: tuple[UpsertInstruction, ...] = ()

    @property
    def codes(self) -> list[str]:
        return [instruction.code for instruction in self.instructions]

    def __len__(self) -> int:
        return len(self.instructions)

    def __iter__(self) -> Iterator[UpsertInstruction]:
        return iter(self.instructions)

    def __bool__(self) -> bool:
        return bool(self.instructions)


def deduplicate(records: Iterable[dict[str, Any]]) -> list[dict[str, Any]]:
    """Collapse records by `code`; the last occurrence wins.

    Records without a code are skipped; the validator never emits them.
    """
    unique: dict[str, dict[str, Any]] = {}
    for record in records:
        code = record.get("code")
        if not code:
            continue
        unique[code] = record
    return list(unique.values())


def plan_upserts(
    records: Iterable[dict[str, Any]],
    now: datetime | None = None,
) -> UpsertPlan:
    """Build the upsert plan for a batch of normalized records.

    Args:
        records: Normalized partial products in input order
        now: Creation timestamp for inserted products (defaults to utcnow)

    Returns:
        UpsertPlan with one instruction per distinct code
    """
    now = now or datetime.now(timezone.utc)
    docs = deduplicate(records)

    instructions = []
    for doc in docs:
        on_insert: dict[str, Any] = {"created_at": now}
        if "stock_qty" not in doc:
            on_insert["stock_qty"] = 0
        instructions.append(
            UpsertInstruction(code=doc["code"], set_fields=dict(doc), set_on_insert=on_insert)
        )

    plan = UpsertPlan(instructions=tuple(instructions))
    logger.debug("Upsert plan built", instructions=len(plan))
    return plan

"""Header alias table - maps raw CSV headers onto product fields.

The table is loaded from YAML:
1. `settings.header_aliases_path` when configured
2. config/header_aliases.yaml relative to the working directory
3. config/header_aliases.yaml shipped next to the package
4. the built-in default table

Each raw header (trimmed, lower-cased) resolves to one of three actions:
keep the header as it is, rename it to a product field, or drop the column.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from inventory.config import settings
from inventory.infra.logging import get_logger

logger = get_logger(__name__)

DROP_MARKERS = {"drop", "ignore", "skip"}


@dataclass(frozen=True)
class Keep:
    """Pass the header through unchanged."""


@dataclass(frozen=True)
class Rename:
    """Rename the header to a product field."""

    field: str


@dataclass(frozen=True)
class Drop:
    """Discard the column entirely."""


HeaderAction = Keep | Rename | Drop


def normalize_header(raw: str) -> str:
    """Lookup key for a raw header."""
    return raw.strip().lower()


@dataclass(frozen=True)
class HeaderAliasTable:
    """Immutable header -> action mapping."""

    aliases: dict[str, HeaderAction] = field(default_factory=dict)
    version: str = "0.0.0"

    @classmethod
    def from_mapping(cls, data: dict[str, Any], version: str = "0.0.0") -> "HeaderAliasTable":
        """Build a table from a plain mapping.

        Values: a field name renames, ``false``/``null``/``"drop"`` drops.
        """
        aliases: dict[str, HeaderAction] = {}
        for raw, target in data.items():
            key = normalize_header("" if raw is None else str(raw))
            if target is None or target is False:
                aliases[key] = Drop()
            elif isinstance(target, str) and target.strip().lower() in DROP_MARKERS:
                aliases[key] = Drop()
            elif isinstance(target, str) and target.strip():
                aliases[key] = Rename(target.strip())
            else:
                raise ValueError(f"Invalid alias target for header '{raw}': {target!r}")
        return cls(aliases=aliases, version=version)

    @classmethod
    def from_yaml(cls, yaml_content: str) -> "HeaderAliasTable":
        """Parse YAML content with a top-level `aliases` mapping."""
        data = yaml.safe_load(yaml_content) or {}
        if not isinstance(data, dict):
            raise ValueError("Header alias YAML must be a mapping")
        aliases = data.get("aliases") or {}
        if not isinstance(aliases, dict):
            raise ValueError("'aliases' must be a mapping of header -> field")
        return cls.from_mapping(aliases, version=str(data.get("version", "0.0.0")))

    def resolve(self, raw_header: str) -> HeaderAction:
        """Action for a raw header; unknown headers are kept."""
        return self.aliases.get(normalize_header(raw_header), Keep())

    def target(self, raw_header: str) -> str | None:
        """Output field name for a raw header, or None when the column is dropped."""
        match self.resolve(raw_header):
            case Drop():
                return None
            case Rename(field=name):
                return name
            case _:
                return raw_header.strip()

    def with_aliases(self, extra: dict[str, Any]) -> "HeaderAliasTable":
        """Return a new table with `extra` layered on top."""
        merged = dict(self.aliases)
        merged.update(HeaderAliasTable.from_mapping(extra).aliases)
        return HeaderAliasTable(aliases=merged, version=self.version)

    def __len__(self) -> int:
        return len(self.aliases)


DEFAULT_ALIASES: dict[str, str | bool] = {
    "": False,
    "barcode": False,
    "sku": "code",
    "code": "code",
    "product name": "name",
    "name": "name",
    "title": "name",
    "brand": "brand",
    "vendor": "brand",
    "product category": "category",
    "category": "category",
    "price": "price",
    "ml": "volume",
    "volume": "volume",
    "short description": "shortDescription",
    "description": "description",
    "image url": "imageUrl",
    "tags": "tags",
    "stock": "stockQty",
    "stock qty": "stockQty",
    "active": "isActive",
    # Shopify product sheet
    "handle": False,
    "body": "description",
    "variant sku": "code",
    "variant price": "price",
    "variant inventory qty": "stockQty",
}


def default_alias_table() -> HeaderAliasTable:
    """Built-in table used when no YAML file is found."""
    return HeaderAliasTable.from_mapping(DEFAULT_ALIASES, version="0.0.0-default")


class HeaderAliasLoader:
    """Loads the header alias table from the first available source."""

    def __init__(self, path: str | None = None) -> None:
        self._path = path
        self._cache: HeaderAliasTable | None = None

    def search_paths(self) -> list[Path]:
        paths: list[Path] = []
        explicit = self._path or settings.header_aliases_path
        if explicit:
            paths.append(Path(explicit))
        paths.append(Path("config") / "header_aliases.yaml")
        paths.append(Path(__file__).parent.parent.parent / "config" / "header_aliases.yaml")
        return paths

    def load(self) -> HeaderAliasTable:
        """Load (or return the cached) alias table.

        Raises:
            ValueError: If a found file is not a valid alias table
        """
        if self._cache is not None:
            return self._cache

        for path in self.search_paths():
            if path.exists():
                logger.info("Loading header aliases from file", path=str(path))
                table = HeaderAliasTable.from_yaml(path.read_text(encoding="utf-8"))
                break
        else:
            logger.warning(
                "Header alias file not found, using defaults",
                searched=[str(p) for p in self.search_paths()],
            )
            table = default_alias_table()

        self._cache = table
        logger.info("Header aliases loaded", version=table.version, aliases=len(table))
        return table

    def clear_cache(self) -> None:
        self._cache = None
        logger.info("Header alias cache cleared")


# Singleton loader
_loader: HeaderAliasLoader | None = None


def get_alias_loader() -> HeaderAliasLoader:
    """Get the singleton alias loader."""
    global _loader
    if _loader is None:
        _loader = HeaderAliasLoader()
    return _loader


def load_header_aliases() -> HeaderAliasTable:
    """Convenience wrapper around the singleton loader."""
    return get_alias_loader().load()

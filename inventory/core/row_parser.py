"""CSV row parser.

Turns an uploaded CSV byte stream into field-named records, renaming or
dropping columns through a `HeaderAliasTable`. Values are trimmed and empty
cells are left out of the record entirely.

Structural problems (bad quoting, rows wider than the header, undecodable
bytes) raise `CsvFormatError` for the whole stream; they are never turned
into per-row failures.
"""

import csv
import io
from typing import BinaryIO, Iterator

from inventory.core.header_aliases import HeaderAliasTable
from inventory.errors import CsvFormatError
from inventory.infra.logging import get_logger

logger = get_logger(__name__)

RawRecord = dict[str, str]


def _decode(data: bytes | BinaryIO) -> str:
    raw = data if isinstance(data, bytes) else data.read()
    try:
        return raw.decode("utf-8-sig")
    except UnicodeDecodeError as e:
        raise CsvFormatError(f"Upload is not valid UTF-8: {e}") from e


def parse_csv(data: bytes | BinaryIO, aliases: HeaderAliasTable) -> Iterator[RawRecord]:
    """Lazily parse CSV content into records.

    Args:
        data: Raw upload bytes or a binary stream
        aliases: Header alias table used to rename/drop columns

    Yields:
        One mapping of field name -> trimmed non-empty value per data row,
        in source order

    Raises:
        CsvFormatError: If the content is not structurally valid CSV
    """
    text = _decode(data)
    reader = csv.reader(io.StringIO(text, newline=""), strict=True)

    try:
        header = next(reader, None)
        if header is None:
            return

        targets = [aliases.target(h) for h in header]
        logger.debug(
            "CSV header resolved",
            headers=header,
            fields=[t for t in targets if t is not None],
        )

        for cells in reader:
            if not any(cell.strip() for cell in cells):
                continue
            if len(cells) > len(header):
                raise CsvFormatError(
                    f"Line {reader.line_num}: expected at most {len(header)} fields, "
                    f"saw {len(cells)}"
                )

            record: RawRecord = {}
            for target, cell in zip(targets, cells):
                if target is None:
                    continue
                value = cell.strip()
                if value:
                    record[target] = value
            yield record

    except csv.Error as e:
        raise CsvFormatError(f"Line {reader.line_num}: {e}") from e


def read_csv(data: bytes | BinaryIO, aliases: HeaderAliasTable) -> list[RawRecord]:
    """Parse the whole stream before returning.

    A partially parsed upload is never acted upon, so callers that go on
    to write should use this rather than iterating `parse_csv` directly.
    """
    records = list(parse_csv(data, aliases))
    logger.info("CSV parsed", rows=len(records))
    return records

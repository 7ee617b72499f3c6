"""
Delimited-text reading.

Responsibilities:
- delimiter resolution (explicit, escaped tab token, or inferred from the file name)
- encoding detection + decoding
- parsing records into a Table (optional header, ragged rows allowed)
"""

from __future__ import annotations

import codecs
import csv
import io
import logging
import sys
from typing import Iterator, Optional

from charset_normalizer import from_bytes

from .errors import InvalidConfig, ReadError
from .models import Row, Table
from .rules import DEFAULT_DELIMITER, FORBIDDEN_DELIMITERS, TAB, TAB_EXTENSIONS, TAB_TOKEN

logger = logging.getLogger(__name__)

# a single cell may be as large as the input itself
try:
    csv.field_size_limit(sys.maxsize)
except OverflowError:
    csv.field_size_limit(2**31 - 1)


def resolve_delimiter(separator: str = "", input_path: Optional[str] = None) -> str:
    """
    Resolve the one-character delimiter for a render.

    Rules:
    - No separator and a tab-separated file extension: TAB.
    - The literal token ``\\t``: TAB.
    - Any other explicit separator is used as given.
    - Otherwise: comma.
    The result must be exactly one character and usable as a delimiter.
    """
    if not separator and input_path and input_path.lower().endswith(TAB_EXTENSIONS):
        delimiter = TAB
    elif separator == TAB_TOKEN:
        delimiter = TAB
    elif separator:
        delimiter = separator
    else:
        delimiter = DEFAULT_DELIMITER

    if len(delimiter) != 1:
        raise InvalidConfig(f"invalid separator {separator!r}: must be exactly one character")
    if delimiter in FORBIDDEN_DELIMITERS:
        raise InvalidConfig(f"invalid separator {separator!r}: cannot be a quote or line break")
    return delimiter


def check_encoding(encoding: Optional[str]) -> Optional[str]:
    if encoding is None:
        return None
    try:
        return codecs.lookup(encoding).name
    except LookupError as exc:
        raise InvalidConfig(f"unknown encoding {encoding!r}") from exc


def decode_input(raw: bytes, encoding: Optional[str] = None) -> str:
    """
    Decode input bytes to text.

    An explicit encoding is applied strictly. Without one, UTF-8 is tried first
    (dropping a BOM); on failure the best guess from charset-normalizer is used,
    and as a last resort UTF-8 with replacement characters.
    """
    if encoding:
        try:
            return raw.decode(encoding)
        except UnicodeDecodeError as exc:
            raise ReadError(f"decode input as {encoding}: {exc}") from exc

    try:
        return raw.decode("utf-8-sig")
    except UnicodeDecodeError:
        pass

    match = from_bytes(raw).best()
    if match is not None:
        try:
            text = raw.decode(match.encoding)
            logger.info("Input is not UTF-8, decoded as %s", match.encoding)
            return text
        except (UnicodeDecodeError, LookupError):
            pass

    logger.warning("Could not detect input encoding, decoding as UTF-8 with replacement characters")
    return raw.decode("utf-8", errors="replace")


def _records(reader) -> Iterator[Row]:
    # blank lines carry no record
    for row in reader:
        if row:
            yield row


def read_table(raw: bytes, delimiter: str, header: bool = True, encoding: Optional[str] = None) -> Table:
    """
    Parse delimited bytes into a Table.

    With ``header`` set the first record becomes the header and a missing one is
    an error. Any parse failure aborts the whole read; rows are not checked
    against the header width.
    """
    text = decode_input(raw, encoding)
    try:
        reader = csv.reader(io.StringIO(text, newline=""), delimiter=delimiter, strict=True)
    except (TypeError, csv.Error) as exc:
        raise InvalidConfig(f"invalid separator {delimiter!r}: {exc}") from exc
    records = _records(reader)

    header_row: Optional[Row] = None
    if header:
        try:
            header_row = next(records)
        except StopIteration:
            raise ReadError("read header row: no records in input") from None
        except csv.Error as exc:
            raise ReadError(f"read header row: {exc}") from exc

    # TODO: hand rows to the markup builder as they are parsed instead of buffering the whole table.
    rows: list[Row] = []
    while True:
        try:
            row = next(records)
        except StopIteration:
            break
        except csv.Error as exc:
            raise ReadError(f"read row on line {reader.line_num}: {exc}") from exc
        rows.append(row)

    return Table(header=header_row, rows=rows)


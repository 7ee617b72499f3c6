"""
Render pipeline: options -> config -> table -> fragment -> document.

Every call starts from scratch, reading the input source again, so concurrent
HTTP requests never share a Table or a Document.
"""

from __future__ import annotations

import logging
import sys
from typing import BinaryIO, Optional

from .document import compose_document, document_title, render_document
from .errors import ReadError
from .markup import build_table_html
from .models import RenderConfig, RenderOptions
from .reader import check_encoding, read_table, resolve_delimiter

logger = logging.getLogger(__name__)


def build_config(options: RenderOptions) -> RenderConfig:
    """Resolve raw options into the settings for one render. Performs no I/O."""
    return RenderConfig(
        delimiter=resolve_delimiter(options.separator, options.input_path),
        header=options.header,
        detect_links=options.detect_links,
        escape=options.escape,
        encoding=check_encoding(options.encoding),
        input_path=options.input_path,
        title=document_title(options.input_path),
        include_watch=options.live_reload,
    )


def read_source(config: RenderConfig, stdin: Optional[BinaryIO] = None) -> bytes:
    if config.input_path is None:
        stream = stdin if stdin is not None else sys.stdin.buffer
        try:
            return stream.read()
        except OSError as exc:
            raise ReadError(f"read stdin: {exc}") from exc
    try:
        with open(config.input_path, "rb") as fh:
            return fh.read()
    except OSError as exc:
        raise ReadError(f"open input file: {exc}") from exc


def render(config: RenderConfig, stdin: Optional[BinaryIO] = None) -> str:
    raw = read_source(config, stdin)
    table = read_table(raw, config.delimiter, header=config.header, encoding=config.encoding)
    logger.debug("Parsed %d rows from %s", len(table.rows), config.input_path or "stdin")
    fragment = build_table_html(table, detect_links=config.detect_links, escape=config.escape)
    return render_document(compose_document(fragment, config))


def write_document(options: RenderOptions, out: BinaryIO, stdin: Optional[BinaryIO] = None) -> None:
    """Single-shot mode: render once and write the UTF-8 document to ``out``."""
    html = render(build_config(options), stdin)
    out.write(html.encode("utf-8"))
    out.flush()

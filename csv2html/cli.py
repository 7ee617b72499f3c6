"""Command-line entry point.

Usage:
    csv2html --input data.csv > data.html
    csv2html --input data.tsv --serve :8080
    # => Serving on :8080, page reloads whenever data.tsv changes
"""

import argparse
import logging
import sys
from typing import Optional, Sequence, Tuple

from .errors import Csv2HtmlError, InvalidConfig
from .models import RenderOptions
from .service import write_document

logger = logging.getLogger(__name__)


def parse_address(address: str) -> Tuple[str, int]:
    """Split ``host:port`` (host optional, as in ``:8080``) into its parts."""
    host, sep, port = address.rpartition(":")
    if not sep or not port.isdigit():
        raise InvalidConfig(f"invalid serve address {address!r}: expected host:port")
    host = host.strip("[]") or "0.0.0.0"
    return host, int(port)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="csv2html", description="Render CSV or TSV as an HTML table")
    parser.add_argument("--input", default=None, help="Input file. If not specified, stdin is used.")
    parser.add_argument(
        "--separator",
        default="",
        help=r"CSV separator. Defaults to comma, unless --input has a .tsv extension. Use '\t' for tab.",
    )
    parser.add_argument("--header", action=argparse.BooleanOptionalAction, default=True, help="Use first row as header.")
    parser.add_argument(
        "--detect-links",
        action=argparse.BooleanOptionalAction,
        default=True,
        help="Detect links in cells and wrap them in <a> tags.",
    )
    parser.add_argument("--escape", action="store_true", help="HTML-escape cell text (off by default).")
    parser.add_argument("--encoding", default=None, help="Input encoding (default: detect).")
    parser.add_argument("--serve", default="", help="Serve the HTML at the given address instead of writing to stdout.")
    parser.add_argument(
        "--watch",
        action=argparse.BooleanOptionalAction,
        default=True,
        help="In serve mode, reload the page when the input file changes. Needs --input.",
    )
    parser.add_argument("--log-level", default="INFO", choices=["DEBUG", "INFO", "WARNING", "ERROR"])
    return parser


def options_from_args(args: argparse.Namespace) -> RenderOptions:
    return RenderOptions(
        input_path=args.input,
        separator=args.separator,
        header=args.header,
        detect_links=args.detect_links,
        escape=args.escape,
        encoding=args.encoding,
        serve=args.serve,
        watch=args.watch,
    )


def serve(options: RenderOptions) -> None:
    import uvicorn  # pylint: disable=import-outside-toplevel

    from .main import create_app  # pylint: disable=import-outside-toplevel

    host, port = parse_address(options.serve)
    app = create_app(options)
    logger.info("Serving on %s", options.serve)
    uvicorn.run(app, host=host, port=port)


def main(argv: Optional[Sequence[str]] = None) -> None:
    args = build_parser().parse_args(argv)
    logging.basicConfig(level=args.log_level, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    options = options_from_args(args)

    stage = "serve" if options.serve else "render template"
    try:
        if options.serve:
            serve(options)
        else:
            write_document(options, sys.stdout.buffer)
    except Csv2HtmlError as exc:
        logger.error("%s: %s", stage, exc)
        sys.exit(1)


if __name__ == "__main__":
    main()

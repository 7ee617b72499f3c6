"""Compose the final HTML page from the table fragment and the bundled assets."""

from __future__ import annotations

import os
from functools import lru_cache
from pathlib import Path
from typing import Optional

from jinja2 import Environment, FileSystemLoader
from jinja2 import TemplateError as JinjaTemplateError

from .errors import TemplateError
from .models import Document, RenderConfig
from .rules import DEFAULT_TITLE

ASSETS_DIR = Path(__file__).parent / "assets"
TEMPLATES_DIR = Path(__file__).parent / "templates"
DOCUMENT_TEMPLATE = "document.html.j2"


@lru_cache(maxsize=None)
def load_asset(name: str) -> str:
    try:
        return (ASSETS_DIR / name).read_text(encoding="utf-8")
    except OSError as exc:
        raise TemplateError(f"load asset {name}: {exc}") from exc


@lru_cache(maxsize=1)
def _environment() -> Environment:
    # cell text is interpolated as-is, escaping happens in the markup builder when asked for
    return Environment(loader=FileSystemLoader(str(TEMPLATES_DIR)), autoescape=False, keep_trailing_newline=True)


def document_title(input_path: Optional[str]) -> str:
    if not input_path:
        return DEFAULT_TITLE
    return os.path.basename(input_path)


def compose_document(fragment: str, config: RenderConfig) -> Document:
    return Document(
        title=config.title,
        css=load_asset("style.css"),
        html=fragment,
        js=load_asset("script.js"),
        watch_js=load_asset("watch.js") if config.include_watch else "",
    )


def render_document(document: Document) -> str:
    try:
        template = _environment().get_template(DOCUMENT_TEMPLATE)
    except JinjaTemplateError as exc:
        raise TemplateError(f"parse template: {exc}") from exc
    try:
        return template.render(**document.model_dump())
    except JinjaTemplateError as exc:
        raise TemplateError(f"execute template: {exc}") from exc

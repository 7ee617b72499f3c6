from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from .rules import DEFAULT_TITLE

Row = List[str]


class RenderOptions(BaseModel):
    """Raw invocation settings, as given on the command line."""

    model_config = ConfigDict(frozen=True)

    input_path: Optional[str] = Field(default=None, examples=["data.csv"])
    separator: str = ""
    header: bool = True
    detect_links: bool = True
    escape: bool = False
    encoding: Optional[str] = None
    serve: str = Field(default="", examples=[":8080", "127.0.0.1:8080"])
    watch: bool = True

    @property
    def live_reload(self) -> bool:
        """Live reload needs serve mode, the watch flag and a named input file."""
        return bool(self.serve and self.input_path and self.watch)


class RenderConfig(BaseModel):
    """Settings for a single render, resolved from RenderOptions."""

    model_config = ConfigDict(frozen=True)

    delimiter: str = Field(min_length=1, max_length=1)
    header: bool = True
    detect_links: bool = True
    escape: bool = False
    encoding: Optional[str] = None
    input_path: Optional[str] = None
    title: str = DEFAULT_TITLE
    include_watch: bool = False


class Table(BaseModel):
    header: Optional[Row] = None
    rows: List[Row] = Field(default_factory=list)


class Document(BaseModel):
    title: str = DEFAULT_TITLE
    css: str = ""
    html: str
    js: str = ""
    watch_js: str = ""


class HealthResponse(BaseModel):
    ok: bool = True

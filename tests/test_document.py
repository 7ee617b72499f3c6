from csv2html.document import compose_document, document_title, render_document
from csv2html.models import RenderOptions
from csv2html.service import build_config

WATCH_MARKER = "fetch('/watch'"


def _render(options):
    config = build_config(options)
    return render_document(compose_document("<table><tbody></tbody></table>", config))


def test_default_title_without_input():
    assert document_title(None) == "CSV to HTML"
    assert "<title>CSV to HTML</title>" in _render(RenderOptions())


def test_title_is_input_base_name():
    assert document_title("/data/exports/people.csv") == "people.csv"


def test_document_embeds_assets_and_fragment():
    html = _render(RenderOptions())
    assert html.startswith("<!DOCTYPE html>")
    assert "<table><tbody></tbody></table>" in html
    assert ".header-cell-content" in html
    assert "function sortBy" in html


def test_watch_script_only_in_live_reload_mode(tmp_path):
    path = str(tmp_path / "data.csv")
    assert WATCH_MARKER in _render(RenderOptions(input_path=path, serve=":8080"))
    # not serving
    assert WATCH_MARKER not in _render(RenderOptions(input_path=path))
    # stdin input
    assert WATCH_MARKER not in _render(RenderOptions(serve=":8080"))
    # watch disabled
    assert WATCH_MARKER not in _render(RenderOptions(input_path=path, serve=":8080", watch=False))

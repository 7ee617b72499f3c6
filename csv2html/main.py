import logging
from typing import BinaryIO, Optional

from fastapi import FastAPI, Request
from fastapi.responses import HTMLResponse, PlainTextResponse, Response

from .errors import Csv2HtmlError
from .models import HealthResponse, RenderOptions
from .rules import WATCH_ACK, WATCH_ROUTE
from .service import build_config, render
from .watch import WatchSession, WatchState

logger = logging.getLogger(__name__)


async def _wait_for_disconnect(request: Request) -> None:
    while True:
        message = await request.receive()
        if message["type"] == "http.disconnect":
            return


def create_app(options: RenderOptions, stdin: Optional[BinaryIO] = None) -> FastAPI:
    app = FastAPI(
        title="csv2html",
        description="Render delimited text as a sortable HTML table, with live reload",
        version="0.1.0",
    )

    @app.exception_handler(Csv2HtmlError)
    async def pipeline_error(request: Request, exc: Csv2HtmlError):
        logger.error("%s %s failed: %s", request.method, request.url.path, exc)
        return PlainTextResponse(str(exc), status_code=500)

    @app.get("/health", response_model=HealthResponse)
    def health():
        return {"ok": True}

    @app.get("/", response_class=HTMLResponse)
    def index():
        # a fresh config per request, so a bad separator is a 500 and not a dead server
        return HTMLResponse(render(build_config(options), stdin))

    if options.live_reload:
        logger.info("Watching %s for changes", options.input_path)

        @app.get(WATCH_ROUTE, response_class=PlainTextResponse)
        async def watch(request: Request):
            async with WatchSession(options.input_path) as session:
                state = await session.wait(lambda: _wait_for_disconnect(request))
            if state is WatchState.CANCELLED:
                # client is gone, nothing will read this
                return Response()
            return PlainTextResponse(WATCH_ACK)

    return app

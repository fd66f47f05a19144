"""FastAPI preview server for built documents with live reload."""

from __future__ import annotations

import asyncio
import threading
from pathlib import Path
from typing import Any, AsyncIterator, List, Optional, Tuple

import uvicorn
from fastapi import FastAPI
from fastapi.responses import HTMLResponse, PlainTextResponse, StreamingResponse
from pydantic import BaseModel

from ..builder import ProjectBuilder
from ..logging import get_logger
from ..page import inject_reload_script
from .watcher import SourceWatcher

_LOGGER = get_logger("service")

RELOAD_MESSAGE = "data: reload\n\n"


class HealthResponse(BaseModel):
    status: str
    output_dir: str
    clients: int


class ReloadBroadcaster:
    """Fan-out of reload events to connected event-stream clients.

    ``notify`` may be called from any thread; each subscriber queue is fed on
    the event loop it was created on.
    """

    def __init__(self) -> None:
        self._subscribers: List[Tuple[asyncio.AbstractEventLoop, asyncio.Queue]] = []
        self._lock = threading.Lock()

    def subscribe(self) -> asyncio.Queue:
        queue: asyncio.Queue = asyncio.Queue()
        with self._lock:
            self._subscribers.append((asyncio.get_running_loop(), queue))
        return queue

    def unsubscribe(self, queue: asyncio.Queue) -> None:
        with self._lock:
            self._subscribers = [item for item in self._subscribers if item[1] is not queue]

    @property
    def subscriber_count(self) -> int:
        with self._lock:
            return len(self._subscribers)

    def notify(self, *_: Any) -> None:
        with self._lock:
            subscribers = list(self._subscribers)
        for loop, queue in subscribers:
            if loop.is_closed():
                continue
            loop.call_soon_threadsafe(queue.put_nowait, "reload")
        _LOGGER.debug("Sent reload to %d client(s)", len(subscribers))


async def event_stream(broadcaster: ReloadBroadcaster) -> AsyncIterator[str]:
    """Yield one server-sent event per reload notification."""
    queue = broadcaster.subscribe()
    try:
        yield ": connected\n\n"
        while True:
            await queue.get()
            yield RELOAD_MESSAGE
    finally:
        broadcaster.unsubscribe(queue)


def resolve_document(output_dir: Path, url_path: str) -> Optional[Path]:
    """Map a request path to a document inside ``output_dir``.

    ``/`` serves ``index.html``; a path without ``.html`` gets the suffix
    added; a directory path falls back to its ``index.html``.
    """
    root = output_dir.resolve()
    request = "/" + url_path.lstrip("/")
    candidate = "/index.html" if request == "/" else request
    if not candidate.endswith(".html"):
        candidate += ".html"

    for relative in (candidate.lstrip("/"), f"{request.strip('/')}/index.html"):
        path = (root / relative).resolve()
        if not path.is_relative_to(root):
            continue
        if path.is_file():
            return path
    return None


def create_app(output_dir: Path, broadcaster: ReloadBroadcaster | None = None) -> FastAPI:
    """Create the FastAPI application serving ``output_dir``."""
    app = FastAPI(title="litdoc preview", version="1.0.0")
    reloads = broadcaster or ReloadBroadcaster()
    app.state.broadcaster = reloads
    app.state.output_dir = Path(output_dir)

    @app.get("/__health", response_model=HealthResponse)
    async def health() -> HealthResponse:
        return HealthResponse(
            status="ok", output_dir=str(app.state.output_dir), clients=reloads.subscriber_count
        )

    @app.get("/__reload")
    async def reload_events() -> StreamingResponse:
        return StreamingResponse(
            event_stream(reloads),
            media_type="text/event-stream",
            headers={"Cache-Control": "no-cache", "Connection": "keep-alive"},
        )

    @app.get("/{url_path:path}")
    async def serve_document(url_path: str) -> HTMLResponse:
        path = resolve_document(app.state.output_dir, url_path)
        if path is None:
            raise FileNotFoundError(url_path)
        html = path.read_text(encoding="utf-8")
        return HTMLResponse(inject_reload_script(html))

    @app.exception_handler(FileNotFoundError)
    async def file_not_found_handler(_: Any, exc: FileNotFoundError) -> PlainTextResponse:
        return PlainTextResponse("not found", status_code=404)

    return app


def run_server(
    builder: ProjectBuilder,
    *,
    host: str = "127.0.0.1",
    port: int = 3000,
    debounce_ms: int = 100,
) -> None:  # pragma: no cover - integration path
    """Build the project, watch its sources and serve the output until interrupted."""
    _LOGGER.info("Generating docs...")
    builder.build()

    broadcaster = ReloadBroadcaster()
    watcher = SourceWatcher(builder, broadcaster.notify, debounce_ms=debounce_ms)
    watcher.start()

    app = create_app(builder.output_dir, broadcaster)
    _LOGGER.info("Serving at http://%s:%d/", host, port)
    try:
        uvicorn.run(app, host=host, port=port, log_level="warning")
    finally:
        watcher.stop()


__all__ = [
    "RELOAD_MESSAGE",
    "ReloadBroadcaster",
    "create_app",
    "event_stream",
    "resolve_document",
    "run_server",
]

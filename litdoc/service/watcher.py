"""Source watcher that rebuilds changed documents for the preview server."""

from __future__ import annotations

import os
import threading
from pathlib import Path
from typing import Callable, List, Optional, Set

from watchdog.events import FileSystemEvent, FileSystemEventHandler
from watchdog.observers import Observer

from ..builder import ProjectBuilder, is_source_file
from ..logging import get_logger

_LOGGER = get_logger("service.watcher")

RebuildCallback = Callable[[List[Path]], None]


class SourceEventHandler(FileSystemEventHandler):
    """Forwards source file events to the watcher."""

    def __init__(self, watcher: "SourceWatcher") -> None:
        self.watcher = watcher

    def on_created(self, event: FileSystemEvent) -> None:
        if not event.is_directory:
            self.watcher.queue_change(os.fsdecode(event.src_path))

    def on_modified(self, event: FileSystemEvent) -> None:
        if not event.is_directory:
            self.watcher.queue_change(os.fsdecode(event.src_path))

    def on_moved(self, event: FileSystemEvent) -> None:
        if not event.is_directory:
            self.watcher.queue_change(os.fsdecode(event.dest_path))


class SourceWatcher:
    """Batches source changes and regenerates their documents.

    Changes arriving within ``debounce_ms`` of each other are rebuilt
    together. Saves that leave a file's content unchanged are ignored.
    Deleted files keep their last rendered document.
    """

    def __init__(
        self,
        builder: ProjectBuilder,
        on_rebuild: Optional[RebuildCallback] = None,
        *,
        debounce_ms: int = 100,
        join_timeout: float = 5.0,
    ) -> None:
        self.builder = builder
        self.on_rebuild = on_rebuild
        self.debounce_seconds = debounce_ms / 1000
        self._join_timeout = join_timeout
        self._pending: Set[str] = set()
        self._lock = threading.Lock()
        # Held for a whole rebuild; a timer firing mid-rebuild waits its turn.
        self._rebuild_lock = threading.Lock()
        self._timer: Optional[threading.Timer] = None
        self._observer: Optional[Observer] = None

    def start(self) -> None:
        if self._observer is not None:
            return
        observer = Observer()
        observer.schedule(SourceEventHandler(self), str(self.builder.source_dir), recursive=True)
        observer.daemon = True
        observer.start()
        self._observer = observer
        _LOGGER.info("Watching %s for changes", self.builder.source_dir)

    def stop(self) -> None:
        with self._lock:
            if self._timer is not None:
                self._timer.cancel()
                self._timer = None
        if self._observer is not None:
            self._observer.stop()
            self._observer.join(timeout=self._join_timeout)
            self._observer = None

    def queue_change(self, path: str) -> bool:
        """Record a change to ``path``; return True when a rebuild was scheduled."""
        if not is_source_file(Path(path).name):
            return False
        if not self.builder.update_source(path):
            return False
        with self._lock:
            self._pending.add(str(Path(path)))
            if self._timer is not None:
                self._timer.cancel()
            self._timer = threading.Timer(self.debounce_seconds, self.flush)
            self._timer.daemon = True
            self._timer.start()
        return True

    def flush(self) -> List[Path]:
        """Regenerate every pending file now.

        Rebuilds never overlap: a flush that starts while another is running
        blocks until it finishes, then picks up whatever is still pending.
        """
        with self._rebuild_lock:
            with self._lock:
                changed = sorted(self._pending)
                self._pending.clear()
            if not changed:
                return []

            _LOGGER.info("%d file(s) changed", len(changed))
            for file in changed:
                _LOGGER.info("  %s", os.path.relpath(file, self.builder.source_dir))
            written = self.builder.regenerate(changed)
            if self.on_rebuild is not None:
                self.on_rebuild(written)
            return written


__all__ = ["SourceEventHandler", "SourceWatcher"]

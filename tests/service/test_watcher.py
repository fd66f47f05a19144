"""Tests for the source watcher."""

from __future__ import annotations

import threading
import time
from pathlib import Path
from typing import List

from watchdog.events import DirModifiedEvent, FileCreatedEvent, FileModifiedEvent, FileMovedEvent

from litdoc.builder import ProjectBuilder
from litdoc.orchestrator import Orchestrator
from litdoc.service.watcher import SourceEventHandler, SourceWatcher


class _RecordingWatcher:
    def __init__(self) -> None:
        self.paths: List[str] = []

    def queue_change(self, path: str) -> bool:
        self.paths.append(path)
        return True


def _builder(project: Path, tmp_path: Path, orchestrator: Orchestrator) -> ProjectBuilder:
    builder = ProjectBuilder(project, tmp_path / "out", orchestrator=orchestrator)
    builder.build()
    return builder


def test_event_handler_forwards_file_events() -> None:
    recorder = _RecordingWatcher()
    handler = SourceEventHandler(recorder)  # type: ignore[arg-type]

    handler.on_created(FileCreatedEvent("/src/new.ts"))
    handler.on_modified(FileModifiedEvent("/src/a.ts"))
    handler.on_modified(DirModifiedEvent("/src"))
    handler.on_moved(FileMovedEvent("/src/tmp.ts~", "/src/b.ts"))

    assert recorder.paths == ["/src/new.ts", "/src/a.ts", "/src/b.ts"]


def test_queue_change_ignores_non_sources_and_unchanged_files(
    project: Path, tmp_path: Path, orchestrator: Orchestrator
) -> None:
    builder = _builder(project, tmp_path, orchestrator)
    watcher = SourceWatcher(builder, debounce_ms=60_000)
    notes = builder.source_dir / "notes.md"
    notes.write_text("# notes\n", encoding="utf-8")

    assert watcher.queue_change(str(notes)) is False
    assert watcher.queue_change(str(builder.source_dir / "lib.ts")) is False
    assert watcher.flush() == []


def test_flush_rebuilds_pending_changes(project: Path, tmp_path: Path, orchestrator: Orchestrator) -> None:
    builder = _builder(project, tmp_path, orchestrator)
    rebuilt: List[List[Path]] = []
    watcher = SourceWatcher(builder, rebuilt.append, debounce_ms=60_000)
    lib = builder.source_dir / "lib.ts"
    lib.write_text("/// Edited.\nexport function helper() {}\n", encoding="utf-8")

    assert watcher.queue_change(str(lib)) is True
    written = watcher.flush()

    out = builder.output_dir
    assert sorted(written) == sorted([out / "lib.html", out / "index.html"])
    assert rebuilt == [written]
    assert "Edited." in (out / "lib.html").read_text(encoding="utf-8")
    watcher.stop()


def test_stop_cancels_pending_rebuild(project: Path, tmp_path: Path, orchestrator: Orchestrator) -> None:
    builder = _builder(project, tmp_path, orchestrator)
    rebuilt: List[List[Path]] = []
    watcher = SourceWatcher(builder, rebuilt.append, debounce_ms=60_000)
    lib = builder.source_dir / "lib.ts"
    lib.write_text("export function helper() { return 2; }\n", encoding="utf-8")

    assert watcher.queue_change(str(lib)) is True
    timer = watcher._timer
    watcher.stop()

    assert timer is not None
    assert timer.finished.is_set()
    assert watcher._timer is None
    assert rebuilt == []


class _SlowBuilder:
    """Builder double whose rebuilds take a while and record overlap."""

    def __init__(self, source_dir: Path) -> None:
        self.source_dir = source_dir
        self.active = 0
        self.max_active = 0
        self.batches: List[List[str]] = []
        self._lock = threading.Lock()

    def update_source(self, file: str) -> bool:
        return True

    def regenerate(self, changed: List[str]) -> List[Path]:
        with self._lock:
            self.active += 1
            self.max_active = max(self.max_active, self.active)
        time.sleep(0.2)
        with self._lock:
            self.active -= 1
            self.batches.append(list(changed))
        return [Path(file) for file in changed]


def test_rebuilds_run_one_at_a_time(tmp_path: Path) -> None:
    builder = _SlowBuilder(tmp_path)
    watcher = SourceWatcher(builder, debounce_ms=60_000)  # type: ignore[arg-type]

    watcher.queue_change(str(tmp_path / "a.ts"))
    first = threading.Thread(target=watcher.flush)
    first.start()
    time.sleep(0.05)
    watcher.queue_change(str(tmp_path / "b.ts"))
    second = threading.Thread(target=watcher.flush)
    second.start()
    first.join(timeout=5)
    second.join(timeout=5)
    watcher.stop()

    assert builder.max_active == 1
    assert builder.batches == [[str(tmp_path / "a.ts")], [str(tmp_path / "b.ts")]]

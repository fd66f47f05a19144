"""Live-reload preview server."""

from .app import ReloadBroadcaster, create_app, run_server
from .watcher import SourceWatcher

__all__ = ["ReloadBroadcaster", "SourceWatcher", "create_app", "run_server"]

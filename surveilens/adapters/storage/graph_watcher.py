"""File system watcher that reloads workflows when their files change."""

import sys
from pathlib import Path
from typing import Callable

from watchdog.events import FileSystemEventHandler
from watchdog.observers import Observer


def _log(msg: str):
    print(msg, file=sys.stderr)


class WorkflowFileHandler(FileSystemEventHandler):
    """Pushes debounced reload notifications onto the event loop (no polling)."""

    def __init__(self, loop, on_change: Callable[[str], None], debounce_seconds: float = 1.0):
        self._loop = loop
        self._on_change = on_change
        self._debounce_seconds = debounce_seconds
        self._pending = None

    def _should_ignore(self, path: str) -> bool:
        return not path.endswith(".json")

    def _emit(self, path: str, change_type: str):
        detail = f"{Path(path).name} {change_type}"
        self._loop.call_soon_threadsafe(self._schedule, detail)

    def _schedule(self, detail: str):
        # Trailing edge: a burst of changes yields one reload after the last one
        if self._pending is not None:
            self._pending.cancel()
        self._pending = self._loop.call_later(self._debounce_seconds, self._fire, detail)

    def _fire(self, detail: str):
        self._pending = None
        self._on_change(detail)

    def on_modified(self, event):
        if event.is_directory or self._should_ignore(event.src_path):
            return
        self._emit(event.src_path, "modified")

    def on_created(self, event):
        if event.is_directory or self._should_ignore(event.src_path):
            return
        self._emit(event.src_path, "created")

    def on_deleted(self, event):
        if event.is_directory or self._should_ignore(event.src_path):
            return
        self._emit(event.src_path, "deleted")

    def on_moved(self, event):
        # Atomic saves arrive as tmp -> json moves
        if event.is_directory or self._should_ignore(event.dest_path):
            return
        self._emit(event.dest_path, "replaced")


def start_graph_watcher(loop, store_dir, on_change: Callable[[str], None]):
    """Start an OS-level watcher on the workflow directory. Returns the observer."""
    handler = WorkflowFileHandler(loop, on_change)
    observer = Observer()
    observer.schedule(handler, str(store_dir), recursive=False)
    observer.daemon = True
    observer.start()
    _log(f"[Watcher] Workflow watcher started: {store_dir}")
    return observer

# norgdo: data directory watcher
#
# Notices task files changing on disk (edited in another program, synced in,
# deleted) so the board can refresh. The watchdog observer thread only raises
# a flag; the refresh itself runs on the caller's thread inside poll(), so the
# store is never touched from two threads.

import logging
import os
import threading
import time
from pathlib import Path
from typing import Optional

from watchdog.events import FileSystemEventHandler
from watchdog.observers import Observer

from .store import StoreDiff, TaskStore

logger = logging.getLogger(__name__)


class TaskFileHandler(FileSystemEventHandler):
    """Flags changes to task files; ignores directories, temp files and other extensions."""

    def __init__(self, extension: str):
        self.extension = extension
        self._lock = threading.Lock()
        self._pending = False
        self._last_event = 0.0

    def on_any_event(self, event):
        if event.is_directory:
            return
        paths = [event.src_path, getattr(event, "dest_path", "")]
        if any(self._is_task_file(p) for p in paths if p):
            self.mark()

    def _is_task_file(self, path) -> bool:
        p = Path(os.fsdecode(path))
        return p.suffix == self.extension and not p.name.startswith(".")

    def mark(self) -> None:
        with self._lock:
            self._pending = True
            self._last_event = time.monotonic()

    def take(self, debounce_secs: float) -> bool:
        """Clear and return the flag once no event arrived for `debounce_secs`."""
        with self._lock:
            if not self._pending:
                return False
            if time.monotonic() - self._last_event < debounce_secs:
                return False
            self._pending = False
            return True


class DirectoryWatcher:
    """Watches the store's data directory; call poll() from the UI loop."""

    def __init__(self, store: TaskStore, debounce_ms: int = 500):
        self.store = store
        self.debounce_secs = debounce_ms / 1000
        self.handler = TaskFileHandler(store.extension)
        self._observer: Optional[Observer] = None

    def start(self) -> None:
        if self._observer is not None:
            return
        self.store.data_dir.mkdir(parents=True, exist_ok=True)
        observer = Observer()
        observer.schedule(self.handler, str(self.store.data_dir), recursive=False)
        observer.start()
        self._observer = observer
        logger.info(f"Watching {self.store.data_dir} for *{self.store.extension} changes")

    def stop(self) -> None:
        if self._observer is None:
            return
        self._observer.stop()
        self._observer.join()
        self._observer = None

    def poll(self) -> Optional[StoreDiff]:
        """Refresh the store if task files changed. Returns the diff, or None if nothing to do."""
        if not self.handler.take(self.debounce_secs):
            return None
        return self.store.refresh()

    def __enter__(self) -> "DirectoryWatcher":
        self.start()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.stop()

"""Watching of files, and of every directory above them, for changes."""

from __future__ import annotations

import logging
import os
import queue
import threading
from typing import Optional

from watchdog.events import FileSystemEvent, FileSystemEventHandler
from watchdog.observers import Observer

logger = logging.getLogger(__name__)

_RETRY_DELAY = 60.0
_IGNORED_EVENT_TYPES = frozenset({"opened", "closed_no_write"})


def _parent(path: str) -> str:
    return os.path.normpath(os.path.dirname(path) or ".")


class _Handler(FileSystemEventHandler):
    def __init__(self, watcher: "FsWatcher") -> None:
        super().__init__()
        self._watcher = watcher

    def on_any_event(self, event: FileSystemEvent) -> None:
        self._watcher._on_event(event)


class FsWatcher:
    """Signals, rate limited, when any of the given files may have changed."""

    def __init__(self, ratelimit: float, *args: str) -> None:
        self._ratelimit = ratelimit
        self._names = tuple(args)
        self._lock = threading.Lock()
        self._events: "queue.Queue[None]" = queue.Queue()
        self._paths: set[str] = set()
        self._observer: Optional[Observer] = None
        self._timer: Optional[threading.Timer] = None
        self._closed = False
        self._handler = _Handler(self)
        with self._lock:
            self._start_watches()

    def __enter__(self) -> "FsWatcher":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def watched_paths(self) -> frozenset[str]:
        """Return the paths currently being tracked."""
        with self._lock:
            return frozenset(self._paths)

    def wait_event(self, timeout: Optional[float] = None) -> bool:
        """Wait for a change notification; return False on timeout."""
        try:
            self._events.get(timeout=timeout)
        except queue.Empty:
            return False
        return True

    def close(self) -> None:
        """Stop watching."""
        with self._lock:
            self._closed = True
            if self._timer is not None:
                self._timer.cancel()
                self._timer = None
            observer, self._observer = self._observer, None
        if observer is not None:
            observer.stop()
            observer.join()

    def _start_watches(self) -> None:
        self._paths = set()
        observer = Observer()
        observer.daemon = True
        observer.start()
        self._observer = observer
        self._add(self._names)

    def _watch(self, path: str) -> bool:
        if os.path.isdir(path):
            try:
                self._observer.schedule(self._handler, path, recursive=False)
            except OSError as err:
                logger.debug("failed to add watch for %r: %s", path, err)
                return False
            logger.debug("added watch %r", path)
            return True
        # a plain file is seen through the watch on its directory
        return os.path.exists(path)

    def _add(self, names: tuple[str, ...]) -> None:
        for name in names:
            if not name:
                continue
            added = False
            path = os.path.normpath(name)
            # watch every directory component so that renames higher up are caught
            while True:
                if path not in self._paths:
                    if self._watch(path):
                        added = True
                    self._paths.add(path)
                else:
                    added = True
                parent = _parent(path)
                if parent == path:
                    break
                path = parent
            if not added:
                raise OSError("failed to add any watch")

    def _on_event(self, event: FileSystemEvent) -> None:
        if event.event_type in _IGNORED_EVENT_TYPES:
            return
        if event.event_type == "modified" and event.is_directory:
            return
        candidates = [event.src_path, getattr(event, "dest_path", "")]
        with self._lock:
            if self._closed:
                return
            for candidate in candidates:
                if not candidate:
                    continue
                path = os.path.normpath(os.fsdecode(candidate))
                if path in self._paths:
                    logger.debug("%s event in %r detected", event.event_type, path)
                    self._schedule(self._ratelimit)
                    return

    def _schedule(self, delay: float) -> None:
        if self._timer is not None:
            self._timer.cancel()
        timer = threading.Timer(delay, self._fire)
        timer.daemon = True
        self._timer = timer
        timer.start()

    def _fire(self) -> None:
        with self._lock:
            if self._closed:
                return
            self._timer = None
            old, self._observer = self._observer, None
        if old is not None:
            old.stop()
            old.join()
        with self._lock:
            if self._closed:
                return
            try:
                self._start_watches()
            except OSError as err:
                logger.error("%s, re-trying in 60 seconds...", err)
                self._schedule(_RETRY_DELAY)
        self._events.put(None)
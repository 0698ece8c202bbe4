"""File synchronizer: watch the todo file for outside edits and serialize writes to it.

Two background activities run between :meth:`FileSynchronizer.start` and
:meth:`FileSynchronizer.stop`:

* a watchdog observer that turns write/create/move-onto events for the
  managed path into a coalescing "reload requested" signal, and
* a save thread that takes whole record snapshots and rewrites the file's
  managed blocks while holding the write lock.

Usage::

    sync = FileSynchronizer(path)
    sync.start()
    sync.request_save(records)        # returns once the snapshot is queued
    if sync.wait_for_reload(0.5):     # something changed on disk
        session.reload()
    sync.stop()
"""

from __future__ import annotations

import os
import queue
import threading
from collections.abc import Sequence
from pathlib import Path

from watchdog.events import FileSystemEvent, FileSystemEventHandler
from watchdog.observers import Observer

from tdfile import log
from tdfile.errors import WatchError
from tdfile.todos.io import write_todos_to_file
from tdfile.todos.model import TodoRecord

# Seconds a loop waits on its queue before rechecking the stop event.
POLL_INTERVAL = 0.1


class _ManagedFileHandler(FileSystemEventHandler):
    """Forward events that land on the managed path to the synchronizer."""

    def __init__(self, sync: FileSynchronizer) -> None:
        super().__init__()
        self._sync = sync

    def on_modified(self, event: FileSystemEvent) -> None:
        self._handle(event.src_path, event)

    def on_created(self, event: FileSystemEvent) -> None:
        self._handle(event.src_path, event)

    def on_moved(self, event: FileSystemEvent) -> None:
        # editors that save via rename show up as a move onto the path
        self._handle(getattr(event, "dest_path", "") or event.src_path, event)

    def _handle(self, raw_path: str | bytes, event: FileSystemEvent) -> None:
        if event.is_directory or not raw_path:
            return
        if Path(os.fsdecode(raw_path)).resolve() == self._sync.path:
            self._sync.signal_reload()


class FileSynchronizer:
    """Owns the on-disk todo file for one session."""

    def __init__(self, path: Path | str) -> None:
        self.path = Path(path).resolve()
        self.reload_requests: queue.Queue[None] = queue.Queue(maxsize=1)
        self.save_requests: queue.Queue[list[TodoRecord]] = queue.Queue(maxsize=1)
        self._stop = threading.Event()
        self._write_lock = threading.Lock()
        self._observer: Observer | None = None
        self._save_thread: threading.Thread | None = None

    # ── lifecycle ────────────────────────────────────────────────

    @property
    def running(self) -> bool:
        return self._save_thread is not None and not self._stop.is_set()

    def start(self) -> None:
        """Register the watch and launch the save thread.

        Raises :class:`WatchError` when the file cannot be watched.
        """
        if self._save_thread is not None:
            raise RuntimeError("synchronizer already started")
        if not self.path.is_file():
            raise WatchError(f"cannot watch {self.path}: not an existing file")

        observer = Observer()
        try:
            observer.schedule(_ManagedFileHandler(self), str(self.path.parent), recursive=False)
            observer.start()
        except OSError as e:
            raise WatchError(f"cannot watch {self.path}: {e}") from e
        self._observer = observer

        self._save_thread = threading.Thread(
            target=self._save_loop, name="tdfile-save", daemon=True
        )
        self._save_thread.start()
        log.debug(f"Synchronizer started for {self.path}")

    def stop(self) -> None:
        """Ask both loops to exit.

        Does not wait: a write already taken off the queue still finishes,
        a snapshot still sitting in the queue is dropped.
        """
        if self._stop.is_set():
            return
        self._stop.set()
        if self._observer is not None:
            self._observer.stop()
        log.debug(f"Synchronizer stopping for {self.path}")

    def join(self, timeout: float | None = None) -> None:
        """Wait for the background threads to finish after :meth:`stop`."""
        if self._observer is not None:
            self._observer.join(timeout)
        if self._save_thread is not None:
            self._save_thread.join(timeout)

    # ── watch side ───────────────────────────────────────────────

    def signal_reload(self) -> None:
        if self._stop.is_set():
            return
        try:
            self.reload_requests.put_nowait(None)
        except queue.Full:
            pass  # one pending reload already covers this change

    def wait_for_reload(self, timeout: float | None = None) -> bool:
        """Block until a reload is requested; ``False`` on timeout."""
        try:
            self.reload_requests.get(timeout=timeout)
        except queue.Empty:
            return False
        return True

    # ── save side ────────────────────────────────────────────────

    def request_save(self, records: Sequence[TodoRecord]) -> bool:
        """Queue a full snapshot for the save thread.

        Blocks only while a previous snapshot is still waiting. Returns
        ``False`` if the synchronizer stopped before the snapshot was queued.
        """
        snapshot = list(records)
        while not self._stop.is_set():
            try:
                self.save_requests.put(snapshot, timeout=POLL_INTERVAL)
                return True
            except queue.Full:
                continue
        log.debug("Synchronizer stopped; snapshot dropped")
        return False

    def write_now(self, records: Sequence[TodoRecord]) -> bool:
        """Write *records* synchronously under the write lock."""
        with self._write_lock:
            written = write_todos_to_file(self.path, records)
        if written:
            log.debug(f"Wrote {len(records)} todo(s) to {self.path}")
        return written

    def _save_loop(self) -> None:
        while not self._stop.is_set():
            try:
                snapshot = self.save_requests.get(timeout=POLL_INTERVAL)
            except queue.Empty:
                continue
            try:
                self.write_now(snapshot)
            except (OSError, ValueError) as e:  # ValueError covers undecodable files
                log.error(f"Failed to write {self.path}: {e}")

import json
import os
import tempfile
import threading
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Callable, Dict, Iterable, List, Optional, Tuple
from pydantic import ValidationError
from exceptions.custom_errors import StoreError, TooManyRowsError
from schemas.schedule.entry import ScheduleEntry, ScheduleMeta
from utils.constants import MAX_BATCH_OPERATIONS, MAX_POLL_FAILURES, POLL_INTERVAL_SECONDS
from utils.logger import get_logger

logger = get_logger("store")

OnChange = Callable[[List[ScheduleEntry]], None]
OnError = Callable[[Exception], None]
Unsubscribe = Callable[[], None]


@dataclass
class _Subscriber:
    on_change: OnChange
    on_error: Optional[OnError]
    active: bool = True


class ScheduleStore(ABC):
    """
    Shared record set, always replaced as a whole.

    Backends implement `_load` and `_write`; `_write` must be all-or-nothing
    so readers never see old and new rows together. Rows plus the metadata
    record count against `max_batch_operations`.
    """

    def __init__(self, max_batch_operations: int = MAX_BATCH_OPERATIONS):
        self.max_batch_operations = max_batch_operations
        self._subscribers: Dict[int, _Subscriber] = {}
        self._sub_lock = threading.Lock()
        self._next_token = 0

    # -- lifecycle --
    def open(self) -> "ScheduleStore":
        return self

    def dispose(self) -> None:
        with self._sub_lock:
            for sub in self._subscribers.values():
                sub.active = False
            self._subscribers.clear()

    def __enter__(self):
        return self.open()

    def __exit__(self, *exc):
        self.dispose()

    # -- backend --
    @abstractmethod
    def _load(self) -> Tuple[List[ScheduleEntry], ScheduleMeta]:
        """Current rows (in id order) and metadata."""

    @abstractmethod
    def _write(self, rows: List[ScheduleEntry], meta: ScheduleMeta) -> None:
        """Atomically install `rows` and `meta` in place of everything stored."""

    # -- writes --
    def replace_all(self, entries: Iterable[ScheduleEntry]) -> ScheduleMeta:
        """
        Discard the stored set and install `entries`, reassigning ids by position.

        Raises:
            TooManyRowsError: rows + metadata exceed the operation limit; nothing is written.
            StoreError: the backend write failed; the previous set is still in place.
        """
        entries = list(entries)
        if len(entries) + 1 > self.max_batch_operations:
            raise TooManyRowsError(len(entries), self.max_batch_operations - 1)

        rows = [e.model_copy(update={"id": str(i)}) for i, e in enumerate(entries)]
        meta = ScheduleMeta(updatedAt=datetime.now(timezone.utc), count=len(rows))
        try:
            self._write(rows, meta)
        except StoreError:
            raise
        except Exception as e:
            raise StoreError(f"Could not save schedule: {e}") from e

        logger.info("Replaced schedule with %d rows", len(rows))
        self._notify()
        return meta

    def clear(self) -> ScheduleMeta:
        return self.replace_all([])

    # -- reads --
    def _read(self) -> Tuple[List[ScheduleEntry], ScheduleMeta]:
        try:
            return self._load()
        except StoreError:
            raise
        except Exception as e:
            raise StoreError(f"Could not load schedule: {e}") from e

    def entries(self) -> List[ScheduleEntry]:
        """Stored rows ordered by date ascending."""
        rows, _ = self._read()
        return sorted(rows, key=lambda e: e.date)

    def meta(self) -> ScheduleMeta:
        _, meta = self._read()
        return meta

    def last_updated(self) -> Optional[datetime]:
        return self.meta().updatedAt

    # -- subscriptions --
    def subscribe(self, on_change: OnChange, on_error: Optional[OnError] = None) -> Unsubscribe:
        """
        Push the current rows (date ascending) now and after every change.

        `on_error` is called once if the store fails for good; no further
        pushes follow. The returned callable stops delivery.
        """
        sub = _Subscriber(on_change, on_error)
        with self._sub_lock:
            token = self._next_token
            self._next_token += 1
            self._subscribers[token] = sub

        def unsubscribe() -> None:
            sub.active = False
            with self._sub_lock:
                self._subscribers.pop(token, None)
                remaining = len(self._subscribers)
            if not remaining:
                self._on_last_unsubscribe()

        try:
            snapshot = self.entries()
        except StoreError as e:
            self._fail_subscriber(token, sub, e)
            return unsubscribe

        self._on_subscribe()
        self._deliver(sub, snapshot)
        return unsubscribe

    def _active_subscribers(self) -> List[Tuple[int, _Subscriber]]:
        with self._sub_lock:
            return [(t, s) for t, s in self._subscribers.items() if s.active]

    def _deliver(self, sub: _Subscriber, snapshot: List[ScheduleEntry]) -> None:
        # A failing callback must not turn a committed write into an error
        if not sub.active:
            return
        try:
            sub.on_change(list(snapshot))
        except Exception:
            logger.exception("Schedule subscriber failed to handle a push")

    def _notify(self) -> None:
        subs = self._active_subscribers()
        if not subs:
            return
        try:
            snapshot = self.entries()
        except StoreError as e:
            logger.warning("Could not read schedule for subscribers: %s", e)
            return
        for _, sub in subs:
            self._deliver(sub, snapshot)

    def _fail_subscriber(self, token: int, sub: _Subscriber, error: Exception) -> None:
        sub.active = False
        with self._sub_lock:
            self._subscribers.pop(token, None)
        logger.error("Schedule subscription failed: %s", error)
        if sub.on_error is not None:
            sub.on_error(error)

    def _fail_all(self, error: Exception) -> None:
        for token, sub in self._active_subscribers():
            self._fail_subscriber(token, sub, error)

    def _on_subscribe(self) -> None:
        pass

    def _on_last_unsubscribe(self) -> None:
        pass


class InMemoryScheduleStore(ScheduleStore):
    """Process-local store; subscribers are notified synchronously on every write."""

    def __init__(self, entries: Optional[Iterable[ScheduleEntry]] = None, **kwargs):
        super().__init__(**kwargs)
        self._rows: List[ScheduleEntry] = []
        self._meta = ScheduleMeta()
        self._lock = threading.Lock()
        if entries:
            self.replace_all(entries)

    def _load(self) -> Tuple[List[ScheduleEntry], ScheduleMeta]:
        with self._lock:
            return list(self._rows), self._meta.model_copy()

    def _write(self, rows: List[ScheduleEntry], meta: ScheduleMeta) -> None:
        with self._lock:
            self._rows, self._meta = list(rows), meta


class JsonFileScheduleStore(ScheduleStore):
    """
    Schedule document shared through a JSON file.

    Every process pointing at the same path sees the same schedule. Writes go
    to a temp file in the same directory and are swapped in with `os.replace`,
    so a reader gets either the old document or the new one. Changes made by
    other processes are picked up by `poll()`, which a watcher thread runs
    every `poll_interval` seconds while anyone is subscribed. With
    `poll_interval=None` the caller drives `poll()` itself.
    """

    def __init__(
        self,
        path: os.PathLike,
        poll_interval: Optional[float] = POLL_INTERVAL_SECONDS,
        max_poll_failures: int = MAX_POLL_FAILURES,
        **kwargs,
    ):
        super().__init__(**kwargs)
        self.path = Path(path)
        self.poll_interval = poll_interval
        self.max_poll_failures = max_poll_failures
        self._write_lock = threading.Lock()
        self._signature = self._file_signature()
        self._failures = 0
        self._stop = threading.Event()
        self._watcher: Optional[threading.Thread] = None

    def open(self) -> "JsonFileScheduleStore":
        self.path.parent.mkdir(parents=True, exist_ok=True)
        return self

    def dispose(self) -> None:
        self._stop_watcher()
        super().dispose()

    # -- backend --
    def _file_signature(self) -> Optional[Tuple[int, int]]:
        try:
            st = self.path.stat()
        except FileNotFoundError:
            return None
        return st.st_mtime_ns, st.st_size

    def _load(self) -> Tuple[List[ScheduleEntry], ScheduleMeta]:
        if not self.path.exists():
            return [], ScheduleMeta()
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                doc = json.load(f)
            rows = [ScheduleEntry.model_validate(r) for r in doc.get("rows", [])]
            meta = ScheduleMeta.model_validate(doc.get("meta") or {})
        except (json.JSONDecodeError, ValidationError, AttributeError) as e:
            raise StoreError(f"Schedule file {self.path} is corrupt: {e}") from e
        return rows, meta

    def _write(self, rows: List[ScheduleEntry], meta: ScheduleMeta) -> None:
        doc = {
            "meta": meta.model_dump(mode="json"),
            "rows": [r.model_dump(mode="json") for r in rows],
        }
        with self._write_lock:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp = tempfile.mkstemp(dir=self.path.parent, prefix=".schedule-", suffix=".tmp")
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as f:
                    json.dump(doc, f, indent=2)
                    f.flush()
                    os.fsync(f.fileno())
                os.replace(tmp, self.path)
            except BaseException:
                Path(tmp).unlink(missing_ok=True)
                raise
            # Our own write is pushed by replace_all; poll() must not push it again
            self._signature = self._file_signature()

    # -- change detection --
    def poll(self) -> bool:
        """
        Push to subscribers if the file changed since the last look.

        Returns True when a change was delivered. After `max_poll_failures`
        consecutive read failures every subscriber gets `on_error` and the
        watcher stops.
        """
        error: Optional[StoreError] = None
        # Same lock as _write, so a write and its signature are seen together
        with self._write_lock:
            signature = self._file_signature()
            if signature == self._signature:
                return False
            try:
                snapshot = self.entries()
            except StoreError as e:
                error = e
            else:
                self._signature = signature

        if error is not None:
            self._failures += 1
            logger.warning(
                "Schedule poll failed (%d/%d): %s", self._failures, self.max_poll_failures, error
            )
            if self._failures >= self.max_poll_failures:
                self._failures = 0
                self._stop.set()
                self._fail_all(error)
            return False

        self._failures = 0
        logger.info("Schedule file changed, pushing %d rows", len(snapshot))
        for _, sub in self._active_subscribers():
            self._deliver(sub, snapshot)
        return True

    def _watch(self, stop: threading.Event) -> None:
        while not stop.wait(self.poll_interval):
            self.poll()

    def _on_subscribe(self) -> None:
        if self.poll_interval is None:
            return
        if self._watcher and self._watcher.is_alive() and not self._stop.is_set():
            return
        # The previous watcher (if any) is stopping; it keeps its own event
        old = self._watcher
        if old and old.is_alive() and old is not threading.current_thread():
            old.join(timeout=self.poll_interval)
        self._stop = threading.Event()
        self._watcher = threading.Thread(
            target=self._watch, args=(self._stop,), name="schedule-store-watcher", daemon=True
        )
        self._watcher.start()

    def _on_last_unsubscribe(self) -> None:
        self._stop_watcher()

    def _stop_watcher(self) -> None:
        self._stop.set()
        watcher, self._watcher = self._watcher, None
        if watcher and watcher.is_alive() and watcher is not threading.current_thread():
            watcher.join(timeout=self.poll_interval or 1)

"""Background reclamation of expired cache items.

A sweep cycle copies the store's entries under its lock, evaluates expiry on
that copy without the lock, then re-takes the lock and removes only the
candidates that are still present and still expired. Notifications are sent
after the lock has been released.
"""

from __future__ import annotations

import logging
import threading
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import asdict, dataclass
from typing import Any, Callable, Dict, Hashable, List, Optional, Sequence, Tuple

logger = logging.getLogger("kvcache")

Entry = Tuple[Hashable, Any]
SnapshotFunc = Callable[[], List[Entry]]
RemoveExpiredFunc = Callable[[Sequence[Hashable]], List[Tuple[Hashable, Any]]]
NotifyFunc = Callable[[Hashable, Any], int]


@dataclass
class SweepReport:
    cycle: int = 0
    scanned: int = 0
    candidates: int = 0
    removed: int = 0
    notification_failures: int = 0
    duration_ms: float = 0.0

    def to_payload(self) -> Dict[str, Any]:
        payload = asdict(self)
        payload["duration_ms"] = round(self.duration_ms, 2)
        return payload


def _expired_keys(entries: Sequence[Entry]) -> List[Hashable]:
    return [key for key, item in entries if item.is_expired]


class Sweeper:
    def __init__(
        self,
        snapshot: SnapshotFunc,
        remove_expired: RemoveExpiredFunc,
        notify: NotifyFunc,
        *,
        interval_seconds: float,
        max_workers: int = 4,
        parallel_threshold: int = 256,
        name: str = "kvcache-sweeper",
    ):
        self._snapshot = snapshot
        self._remove_expired = remove_expired
        self._notify = notify
        self._interval_seconds = interval_seconds
        self._max_workers = max(1, max_workers)
        self._parallel_threshold = max(1, parallel_threshold)
        self._name = name

        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None
        self._state_lock = threading.Lock()
        self._cycles = 0
        self._last_report: Optional[SweepReport] = None

    @property
    def interval_seconds(self) -> float:
        return self._interval_seconds

    @property
    def is_running(self) -> bool:
        thread = self._thread
        return thread is not None and thread.is_alive()

    @property
    def stopped(self) -> bool:
        return self._stop_event.is_set()

    @property
    def cycles(self) -> int:
        with self._state_lock:
            return self._cycles

    @property
    def last_report(self) -> Optional[SweepReport]:
        with self._state_lock:
            return self._last_report

    def start(self) -> None:
        with self._state_lock:
            if self._thread is not None or self._stop_event.is_set():
                return
            self._thread = threading.Thread(target=self._run, name=self._name, daemon=True)
            self._thread.start()

    def stop(self, timeout: Optional[float] = None) -> None:
        """Signal the loop to exit and wait for it, unless called from the loop itself."""
        self._stop_event.set()
        thread = self._thread
        if thread is None or thread is threading.current_thread():
            return
        thread.join(timeout)

    def _run(self) -> None:
        logger.info("sweeper_started", extra={"interval_seconds": self._interval_seconds})
        while not self._stop_event.wait(self._interval_seconds):
            try:
                self.run_once()
            except Exception:
                logger.exception("sweep_cycle_error")
        logger.info("sweeper_stopped", extra={"cycle": self.cycles})

    def run_once(self) -> SweepReport:
        """Run one sweep cycle on the calling thread."""
        started = time.perf_counter()
        report = SweepReport()
        if self._stop_event.is_set():
            return report

        entries = self._snapshot()
        report.scanned = len(entries)
        candidates = self._scan(entries) if entries else []
        report.candidates = len(candidates)

        if candidates and not self._stop_event.is_set():
            removed = self._remove_expired(candidates)
            report.removed = len(removed)
            for key, value in removed:
                report.notification_failures += self._notify(key, value)

        report.duration_ms = (time.perf_counter() - started) * 1000
        with self._state_lock:
            self._cycles += 1
            report.cycle = self._cycles
            self._last_report = report
        logger.debug("sweep_cycle", extra=report.to_payload())
        return report

    def _scan(self, entries: List[Entry]) -> List[Hashable]:
        if self._max_workers == 1 or len(entries) < self._parallel_threshold:
            return _expired_keys(entries)

        workers = min(self._max_workers, len(entries))
        chunks = [entries[i::workers] for i in range(workers)]
        candidates: List[Hashable] = []
        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix=f"{self._name}-scan") as executor:
            for keys in executor.map(_expired_keys, chunks):
                candidates.extend(keys)
        return candidates

import threading
from typing import Hashable, Iterator


class DeadJobCache:
    """Append-only set of job ids whose streams were found unreachable."""

    def __init__(self) -> None:
        self._ids: set = set()
        self._lock = threading.Lock()

    def add(self, job_id: Hashable) -> None:
        with self._lock:
            self._ids.add(job_id)

    def __contains__(self, job_id: object) -> bool:
        with self._lock:
            return job_id in self._ids

    def __len__(self) -> int:
        with self._lock:
            return len(self._ids)

    def __iter__(self) -> Iterator:
        with self._lock:
            snapshot = list(self._ids)
        return iter(snapshot)

    def snapshot(self) -> list:
        with self._lock:
            return sorted(self._ids, key=str)

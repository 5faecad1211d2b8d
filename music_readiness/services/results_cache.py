from __future__ import annotations

import threading
from collections import OrderedDict

from music_readiness.schemas.submission import SubmissionRecord


class ResultsCache:
    """Bounded LRU of finalized submissions, read when the store misses."""

    def __init__(self, max_size: int = 500):
        self.max_size = max(1, max_size)
        self._items: OrderedDict[str, SubmissionRecord] = OrderedDict()
        self._lock = threading.Lock()

    def put(self, record: SubmissionRecord) -> None:
        with self._lock:
            self._items[record.id] = record
            self._items.move_to_end(record.id)
            while len(self._items) > self.max_size:
                self._items.popitem(last=False)

    def get(self, submission_id: str) -> SubmissionRecord | None:
        with self._lock:
            record = self._items.get(submission_id)
            if record is not None:
                self._items.move_to_end(submission_id)
            return record

    def clear(self) -> None:
        with self._lock:
            self._items.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._items)

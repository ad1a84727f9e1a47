# src/ddbload/batcher.py
from typing import Any, Callable, List

from .config import MAX_BATCH_SIZE
from .errors import ConfigurationError


class Batcher:
    """Groups items into batches of `batch_size` and hands each one to `sink`.

    The sink runs synchronously inside add()/flush(), so a batch is fully
    written before the next item is accepted.
    """

    def __init__(self, sink: Callable[[List[Any]], None], batch_size: int = MAX_BATCH_SIZE):
        if not 1 <= batch_size <= MAX_BATCH_SIZE:
            raise ConfigurationError(f"batch_size must be between 1 and {MAX_BATCH_SIZE}, got {batch_size}")
        self.sink = sink
        self.batch_size = batch_size
        self.emitted = 0
        self._current: List[Any] = []

    @property
    def pending(self) -> int:
        return len(self._current)

    def add(self, item: Any) -> bool:
        """Append an item; returns True when this call emitted a batch."""
        self._current.append(item)
        if len(self._current) >= self.batch_size:
            self._emit()
            return True
        return False

    def flush(self) -> bool:
        if not self._current:
            return False
        self._emit()
        return True

    def _emit(self) -> None:
        batch, self._current = self._current, []
        self.sink(batch)
        self.emitted += 1

from __future__ import annotations

from typing import List, Sequence, Tuple

import numpy as np


class GrowableColumns:
    """
    Column-major row buffer with amortized doubling.

    One float64 array per column plus one int64 segment-id array, all sharing
    a capacity that doubles when full.  :meth:`trimmed` hands out arrays cut
    to the exact row count; the buffer must not be appended to afterwards.
    """

    def __init__(self, n_columns: int, initial_capacity: int = 2048):
        if initial_capacity < 1:
            raise ValueError("initial_capacity must be >= 1")
        self.n_columns = int(n_columns)
        self.capacity = int(initial_capacity)
        self.n_rows = 0
        self._cols: List[np.ndarray] = [np.empty(self.capacity, dtype=np.float64) for _ in range(self.n_columns)]
        self._segment = np.empty(self.capacity, dtype=np.int64)

    def __len__(self) -> int:
        return self.n_rows

    def _grow(self) -> None:
        new_cap = self.capacity * 2
        for k in range(self.n_columns):
            col = np.empty(new_cap, dtype=np.float64)
            col[: self.n_rows] = self._cols[k][: self.n_rows]
            self._cols[k] = col
        seg = np.empty(new_cap, dtype=np.int64)
        seg[: self.n_rows] = self._segment[: self.n_rows]
        self._segment = seg
        self.capacity = new_cap

    def append(self, row: Sequence[float], segment_id: int = 0) -> None:
        if len(row) != self.n_columns:
            raise ValueError(f"row has {len(row)} values, expected {self.n_columns}")
        if self.n_rows == self.capacity:
            self._grow()
        j = self.n_rows
        for k in range(self.n_columns):
            self._cols[k][j] = row[k]
        self._segment[j] = segment_id
        self.n_rows += 1

    def trimmed(self) -> Tuple[List[np.ndarray], np.ndarray]:
        """Return (columns, segment_ids) copied to exactly ``n_rows`` entries."""
        n = self.n_rows
        cols = [c[:n].copy() for c in self._cols]
        return cols, self._segment[:n].copy()

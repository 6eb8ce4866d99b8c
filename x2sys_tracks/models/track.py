from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Tuple

import numpy as np
import pandas as pd


@dataclass(frozen=True)
class Track:
    """
    In-memory representation of one track file after decoding and normalization.

    Notes
    - ``df`` holds one float64 column per field, in schema order, all of length
      ``n_rows``.  Missing values are NaN.
    - ``segment`` holds one segment id per row (non-decreasing within a read).
    - ``year`` is 0 for generic reads; legacy readers fill it from the file.
    """
    name: str
    df: pd.DataFrame
    segment: np.ndarray
    year: int = 0
    source_path: Optional[Path] = None
    agency: str = ""
    nan_columns: Tuple[str, ...] = ()
    warnings: Tuple[str, ...] = ()

    @property
    def n_rows(self) -> int:
        return int(len(self.df))

    @property
    def n_segments(self) -> int:
        if self.segment.size == 0:
            return 0
        return int(np.unique(self.segment).size)

    def column(self, name: str) -> np.ndarray:
        """Column ``name`` as a float64 numpy array."""
        return self.df[name].to_numpy(dtype=np.float64)

    def matrix(self) -> np.ndarray:
        """All columns as an (n_rows, n_fields) float64 array."""
        return self.df.to_numpy(dtype=np.float64)

from __future__ import annotations

from dataclasses import dataclass

import numpy as np


@dataclass
class Histogram:
    """Per-bin example counts and target sums for one (node, feature) pair."""

    cnt: np.ndarray
    sumy: np.ndarray
    total_cnt: int
    total_sum: float

    @property
    def num(self) -> int:
        return int(self.cnt.size)

    @classmethod
    def empty(cls, num: int, total_cnt: int, total_sum: float) -> Histogram:
        return cls(
            cnt=np.zeros(num, dtype=np.int64),
            sumy=np.zeros(num, dtype=np.float64),
            total_cnt=int(total_cnt),
            total_sum=float(total_sum),
        )

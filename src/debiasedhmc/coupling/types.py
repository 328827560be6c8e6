"""
Coupled Chain Data Structures.

- CoupledRunResult: Output of one coupled run (both trajectories + meeting info)
- TrajectoryBuffer: Growable row buffer used while a run is in progress
"""

import math
from dataclasses import dataclass
from typing import Union

import numpy as np


@dataclass(frozen=True)
class CoupledRunResult:
    """
    Result of a coupled-chain run.

    Indexing (0-based, one row per iteration):
        samples1[t] = X_t for t = 0 .. iteration
        samples2[t] = Y_t for t = 0 .. iteration - 1

    Chain 2 lags chain 1 by one step, so samples1 always has exactly one
    more row than samples2. The chains meet at iteration tau when
    X_tau == Y_(tau-1); from then on samples1[t + 1] == samples2[t].

    meeting_time is math.inf when the chains have not met.
    """
    samples1: np.ndarray          # (iteration + 1, dimension)
    samples2: np.ndarray          # (iteration, dimension)
    meeting_time: Union[int, float]
    iteration: int
    finished: bool

    @property
    def met(self) -> bool:
        return not math.isinf(self.meeting_time)

    @property
    def dimension(self) -> int:
        return int(self.samples1.shape[1])


class TrajectoryBuffer:
    """
    Row buffer that grows in blocks instead of reallocating on every append.

    Rows are float64; states are copied in on append. When full, capacity
    doubles.
    """

    def __init__(self, capacity: int, dimension: int):
        self._data = np.full((max(int(capacity), 1), dimension), np.nan, dtype=np.float64)
        self._size = 0

    @classmethod
    def from_array(cls, rows: np.ndarray, extra: int = 0) -> 'TrajectoryBuffer':
        """Buffer pre-filled with `rows` and room for `extra` more."""
        rows = np.asarray(rows, dtype=np.float64)
        buf = cls(rows.shape[0] + extra, rows.shape[1])
        buf._data[:rows.shape[0]] = rows
        buf._size = rows.shape[0]
        return buf

    def __len__(self) -> int:
        return self._size

    @property
    def capacity(self) -> int:
        return self._data.shape[0]

    def grow(self, rows: int) -> None:
        pad = np.full((rows, self._data.shape[1]), np.nan, dtype=np.float64)
        self._data = np.concatenate([self._data, pad], axis=0)

    def append(self, state) -> None:
        if self._size >= self.capacity:
            self.grow(self.capacity)
        self._data[self._size] = np.asarray(state, dtype=np.float64)
        self._size += 1

    def trimmed(self) -> np.ndarray:
        """Copy of the filled rows."""
        return self._data[:self._size].copy()

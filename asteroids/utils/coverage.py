#!/usr/bin/env python3
"""
Residue coverage of a chain by features such as domains
"""
from typing import List, Optional, Tuple

import numpy as np


class Coverage:
    """Fixed-length coverage vector, initially fully uncovered

    Runs are scanned left to right; when two runs tie for longest,
    the first one wins.
    """

    def __init__(self, length: int):
        if length < 0:
            raise ValueError(f"Coverage length cannot be negative: {length}")
        self.bits = np.zeros(length, dtype=bool)

    @classmethod
    def from_array(cls, bits) -> 'Coverage':
        coverage = cls(len(bits))
        coverage.bits[:] = np.asarray(bits, dtype=bool)
        return coverage

    def copy(self) -> 'Coverage':
        return Coverage.from_array(self.bits)

    def __len__(self) -> int:
        return len(self.bits)

    def set(self, start: int, length: int) -> None:
        """Mark [start, start + length) as covered; positions past the end are ignored"""
        if start < 0 or length < 0:
            raise ValueError(f"Invalid coverage range: start={start}, length={length}")
        self.bits[start:start + length] = True

    def flip(self, start: int, end: int) -> None:
        """Toggle [start, end)"""
        self.bits[start:end] = ~self.bits[start:end]

    def runs(self, covered: bool) -> List[Tuple[int, int]]:
        """(start, length) of every maximal run with the given state"""
        target = self.bits if covered else ~self.bits
        padded = np.concatenate(([0], target.astype(np.int8), [0]))
        edges = np.flatnonzero(np.diff(padded))
        return [(int(s), int(e - s)) for s, e in zip(edges[0::2], edges[1::2])]

    def pct_covered(self) -> float:
        """Percent of positions covered, 0-100"""
        if len(self.bits) == 0:
            return 0.0
        return self.n_covered() / len(self.bits) * 100.0

    def n_covered(self, n: int = 1) -> int:
        """Covered positions in runs of at least n"""
        if n <= 1:
            return int(self.bits.sum())
        return sum(length for _, length in self.runs(True) if length >= n)

    def n_uncovered(self, n: int = 1) -> int:
        """Uncovered positions in runs of at least n"""
        if n <= 1:
            return len(self.bits) - int(self.bits.sum())
        return sum(length for _, length in self.runs(False) if length >= n)

    def cover_short(self, n: int) -> None:
        """Cover every uncovered run shorter than n"""
        for start, length in self.runs(False):
            if length < n:
                self.set(start, length)

    def find_longest_uncovered(self) -> Tuple[int, int]:
        """(start, length) of the longest uncovered run; (0, 0) if none"""
        best = (0, 0)
        for start, length in self.runs(False):
            if length > best[1]:
                best = (start, length)
        return best

    def longest_uncovered(self) -> int:
        return self.find_longest_uncovered()[1]

    def longest_covered(self) -> int:
        return max((length for _, length in self.runs(True)), default=0)

    def subset(self, start: int, length: int) -> 'Coverage':
        """Coverage of [start, start + length)"""
        return Coverage.from_array(self.bits[start:start + length])

    def first_covered(self) -> Optional[int]:
        covered = np.flatnonzero(self.bits)
        return int(covered[0]) if len(covered) else None

    def last_covered(self) -> Optional[int]:
        covered = np.flatnonzero(self.bits)
        return int(covered[-1]) if len(covered) else None

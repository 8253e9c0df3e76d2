#!/usr/bin/env python3
"""
Region model for pyASTEROIDS
A contiguous stretch of a chain in whole-chain sequence coordinates
"""
import re
from dataclasses import dataclass
from typing import List, Optional

from asteroids.exceptions import RegionParseError
from asteroids.models.raf import CoordinateSpace

REGION_PATTERN = re.compile(r"\s*(\S+)-(\S+)\s*$")


@dataclass
class Region:
    """Contiguous region of a chain sequence

    Attributes:
        start: 0-based whole-chain sequence index, or None when undefined
        length: Number of residues (0 when undefined)
    """
    start: Optional[int] = None
    length: int = 0

    def __post_init__(self):
        if self.length < 0:
            raise ValueError(f"Region length cannot be negative: {self.length}")
        if self.length > 0 and self.start is None:
            raise ValueError("Region with positive length must have a start")

    @property
    def end(self) -> Optional[int]:
        """Last index of the region (inclusive)"""
        if self.start is None:
            return None
        return self.start + self.length - 1

    @property
    def is_empty(self) -> bool:
        return self.start is None or self.length == 0

    def copy(self) -> 'Region':
        return Region(self.start, self.length)

    def get_sequence(self, seq: str) -> str:
        """Subsequence of a whole-chain sequence covered by this region"""
        if self.is_empty:
            return ''
        return seq[self.start:self.start + self.length]

    def overlap(self, other: 'Region') -> int:
        """Number of residues shared with another region"""
        if self.is_empty or other.is_empty:
            return 0
        olap = min(self.end, other.end) - max(self.start, other.start) + 1
        return olap if olap > 0 else 0

    def unmatched(self, other: 'Region') -> int:
        """Number of residues in either region but not both"""
        return self.length + other.length - 2 * self.overlap(other)

    def max_unmatched(self, other: 'Region') -> int:
        """Largest boundary disagreement, capped by the longer region"""
        return min(max(self.length, other.length),
                   max(abs(self.end - other.end), abs(self.start - other.start)))

    def extend_to_near_end(self, space: CoordinateSpace, forward: bool) -> bool:
        """Extend one boundary outward until a missing residue or the chain end

        Args:
            space: Coordinate space of the chain
            forward: Extend the end if True, the start otherwise

        Returns:
            True if the region was changed
        """
        if self.is_empty:
            return False

        index_start = space.to_record_index(self.start)
        index_end = space.to_record_index(self.end)
        if index_start is None or index_end is None:
            return False

        if forward:
            index_end = space.extend_to_gap(index_end, True)
        else:
            index_start = space.extend_to_gap(index_start, False)
        if index_start > index_end:
            return False

        new_start = space.to_seq_index(index_start)
        new_end = space.to_seq_index(index_end)
        if new_start is None or new_end is None or new_end < new_start:
            return False

        changed = (new_start, new_end - new_start + 1) != (self.start, self.length)
        self.start = new_start
        self.length = new_end - new_start + 1
        return changed

    def get_header(self) -> str:
        """Classic 1-based header, e.g. '1-120'"""
        return f"{self.start + 1}-{self.start + self.length}"

    def get_raf_header(self, space: CoordinateSpace) -> Optional[str]:
        """Header in residue ids of the RAF record, e.g. 'A:10-50'

        Boundaries are moved inward onto residues with ATOM records.
        The whole chain is written as 'A:' or '-' for a chain without
        a letter.

        Returns:
            Header string, or None if the region has no observed residues
        """
        if self.is_empty:
            return None

        index_start = space.nearest_observed(space.to_record_index(self.start), True)
        if index_start is None:
            return None
        index_end = space.nearest_observed(space.to_record_index(self.end), False)
        if index_end is None:
            return None
        if index_start > index_end:
            return None

        record = space.record
        res_start = record.res_id_at(index_start)
        res_end = record.res_id_at(index_end)

        if res_start == record.first_res_id and res_end == record.last_res_id:
            return f"{record.chain}:" if record.has_chain_letter else "-"
        if record.has_chain_letter:
            res_start = f"{record.chain}:{res_start}"
        return f"{res_start}-{res_end}"

    @classmethod
    def parse(cls, text: str, space: CoordinateSpace,
              snap_to_observed: bool = True) -> 'Region':
        """Parse a RAF-style region header

        Args:
            text: Region such as '4-106', 'A:4-106', 'A:' or '-'
            space: Coordinate space of the chain
            snap_to_observed: If a residue id is not in the record, treat it
                as a sequence number and move to the nearest observed residue

        Returns:
            New Region

        Raises:
            RegionParseError: If the text or its residues cannot be resolved
        """
        region_text = text.split(':', 1)[1] if ':' in text else text
        record = space.record

        match = REGION_PATTERN.match(region_text)
        if match:
            res_start, res_end = match.group(1), match.group(2)
        elif region_text.strip() in ('', '-'):
            res_start, res_end = record.first_res_id, record.last_res_id
        else:
            raise RegionParseError(f"Couldn't parse region {text}", {"region": text})

        start = space.to_seq_index(record.index_of(res_start, forward=True))
        if start is None:
            start = cls._snap_literal(res_start, space, True, text, snap_to_observed)

        end = space.to_seq_index(record.index_of(res_end, forward=False))
        if end is None:
            end = cls._snap_literal(res_end, space, False, text, snap_to_observed)

        if end < start:
            raise RegionParseError(f"Region {text} ends before it starts",
                                   {"region": text, "start": start, "end": end})
        return cls(start, end - start + 1)

    @staticmethod
    def _snap_literal(res_id: str, space: CoordinateSpace, forward: bool,
                      text: str, snap_to_observed: bool) -> int:
        if not snap_to_observed:
            raise RegionParseError(f"Residue {res_id} of region {text} is not in the RAF record",
                                   {"region": text, "residue": res_id})
        try:
            number = int(res_id)
        except ValueError:
            raise RegionParseError(f"Residue {res_id} of region {text} is not numeric",
                                   {"region": text, "residue": res_id})

        index = space.nearest_observed(space.to_record_index(number), forward)
        seq_index = space.to_seq_index(index)
        if seq_index is None:
            raise RegionParseError(f"Problem translating index {res_id} of region {text}",
                                   {"region": text, "residue": res_id})
        return seq_index

    def observed_regions(self, space: CoordinateSpace) -> List['Region']:
        """Sub-regions whose residues all have ATOM records"""
        regions = []
        if self.is_empty:
            return regions
        current = None
        for seq_index in range(self.start, self.start + self.length):
            index = space.to_record_index(seq_index)
            if index is not None and space.record.is_observed(index):
                if current is None:
                    current = Region(seq_index, 1)
                    regions.append(current)
                else:
                    current.length += 1
            else:
                current = None
        return regions

    def is_observed_in(self, space: CoordinateSpace) -> bool:
        """True if at least one residue of the region has an ATOM record"""
        return len(self.observed_regions(space)) > 0

    def is_isolated(self, space: CoordinateSpace) -> bool:
        """True if no observed residue is adjacent to either boundary"""
        index_start = space.to_record_index(self.start)
        index_end = space.to_record_index(self.end)
        if index_start is None or index_end is None:
            return True
        return (space.extend_to_gap(index_start, False) == index_start and
                space.extend_to_gap(index_end, True) == index_end)

    def __str__(self) -> str:
        return f"Region(start={self.start}, length={self.length})"

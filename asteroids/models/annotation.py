#!/usr/bin/env python3
"""
Annotation models for pyASTEROIDS
A candidate domain assignment: disjoint regions of a chain plus the
evidence they came from
"""
import math
import re
from dataclasses import dataclass, field
from enum import Enum
from functools import cmp_to_key
from typing import Optional, List, Dict, Any, Sequence, Tuple

import numpy as np

from asteroids.exceptions import RegionMismatchError, RegionParseError, ValidationError
from asteroids.models.raf import CoordinateSpace
from asteroids.models.region import Region

SID_HEADER_PATTERN = re.compile(r"\[ASTRAL-.*-.*-.*\]")


class AnnotationSource(Enum):
    """Kind of evidence an annotation was derived from"""
    UNKNOWN = 'unknown'
    BLAST = 'BLAST'
    PFAM = 'Pfam'
    FAM = 'Fam'
    SF = 'SF'
    SCOP_SEQ_MATCH = 'SCOPSeqMatch'

    def __str__(self) -> str:
        return self.value

    @classmethod
    def parse(cls, text: str) -> 'AnnotationSource':
        """Source for a datastore label; unrecognized labels are UNKNOWN"""
        try:
            return cls(text)
        except ValueError:
            return cls.UNKNOWN


class ConfidenceLevel(Enum):
    """Confidence in an annotation

    HIGH: promote
    MEDIUM: promote, but have an expert check it later
    LOW: first guess for an expert to check
    """
    HIGH = 0
    MEDIUM = 1
    LOW = 2


class SortMode(Enum):
    BY_QUALITY = 'quality'
    BY_POSITION = 'position'


# Ordering tables for BY_QUALITY: lower rank sorts first
SOURCE_CLASS_RANK = {AnnotationSource.PFAM: 1}
SOURCE_TIEBREAK_RANK = {AnnotationSource.BLAST: 0}
DEFAULT_CLASS_RANK = 0
DEFAULT_TIEBREAK_RANK = 1


def _sign(a, b) -> int:
    if a < b:
        return -1
    if a > b:
        return 1
    return 0


def regions_from_gaps(start: int, length: int,
                      gaps: Sequence[Tuple[int, int]]) -> List[Region]:
    """Split a hit span into regions around its alignment gaps

    Args:
        start: First residue of the hit on the chain
        length: Length of the hit on the chain
        gaps: (gap_start, gap_length) pairs ordered by gap_start

    Returns:
        Regions between the gaps
    """
    end = start + length - 1
    regions = []
    for gap_start, gap_length in gaps:
        regions.append(Region(start, gap_start - start))
        start = gap_start + gap_length
    regions.append(Region(start, end - start + 1))
    return regions


def runs_to_regions(bits: np.ndarray, offset: int = 0) -> List[Region]:
    """Regions for the runs of True in a boolean array"""
    padded = np.concatenate(([False], bits.astype(bool), [False]))
    edges = np.flatnonzero(np.diff(padded.astype(np.int8)))
    return [Region(int(s) + offset, int(e - s)) for s, e in zip(edges[0::2], edges[1::2])]


@dataclass(eq=False)
class Annotation:
    """Candidate domain assignment on a chain

    Regions are kept ordered by start and do not overlap each other.
    Equality is identity; use compare() for ordering.
    """
    regions: List[Region] = field(default_factory=list)
    source: AnnotationSource = AnnotationSource.UNKNOWN
    source_id: int = -1
    log10_e: float = math.nan
    family: str = ''
    protein_node_id: int = -1
    species_node_id: int = -1
    hit_node_id: int = -1
    info: str = ''
    sid: Optional[str] = None
    sort_mode: SortMode = SortMode.BY_QUALITY
    confidence: ConfidenceLevel = ConfidenceLevel.LOW

    @classmethod
    def deferred(cls, source: AnnotationSource, source_id: int) -> 'Annotation':
        """Annotation whose details are loaded later through a repository"""
        return cls(source=source, source_id=source_id)

    @classmethod
    def from_region(cls, source: AnnotationSource, source_id: int,
                    start: int, length: int) -> 'Annotation':
        return cls(regions=[Region(start, length)], source=source, source_id=source_id)

    def copy(self) -> 'Annotation':
        """Copy with independent regions"""
        return Annotation(
            regions=[r.copy() for r in self.regions],
            source=self.source,
            source_id=self.source_id,
            log10_e=self.log10_e,
            family=self.family,
            protein_node_id=self.protein_node_id,
            species_node_id=self.species_node_id,
            hit_node_id=self.hit_node_id,
            info=self.info,
            sid=self.sid,
            sort_mode=self.sort_mode,
            confidence=self.confidence
        )

    @property
    def length(self) -> int:
        """Total number of residues in all regions"""
        return sum(r.length for r in self.regions)

    @property
    def start(self) -> Optional[int]:
        return self.regions[0].start if self.regions else None

    @property
    def end(self) -> Optional[int]:
        return self.regions[-1].end if self.regions else None

    def observed_length(self, space: CoordinateSpace) -> int:
        """Number of residues with ATOM records"""
        return sum(o.length for r in self.regions for o in r.observed_regions(space))

    def overlap(self, other: 'Annotation') -> int:
        """Total overlap summed over all region pairs"""
        return sum(a.overlap(b) for a in self.regions for b in other.regions)

    def _check_region_counts(self, other: 'Annotation') -> None:
        if len(self.regions) != len(other.regions):
            raise RegionMismatchError(
                f"Cannot compare annotations with {len(self.regions)} and "
                f"{len(other.regions)} regions",
                {"regions": len(self.regions), "other_regions": len(other.regions)}
            )

    def unmatched(self, other: 'Annotation') -> int:
        """Residues not shared with another annotation, region by region

        Raises:
            RegionMismatchError: If the region counts differ
        """
        self._check_region_counts(other)
        return sum(a.unmatched(b) for a, b in zip(self.regions, other.regions))

    def max_unmatched(self, other: 'Annotation') -> int:
        """Largest boundary disagreement with another annotation

        Raises:
            RegionMismatchError: If the region counts differ
        """
        self._check_region_counts(other)
        return max((a.max_unmatched(b) for a, b in zip(self.regions, other.regions)),
                   default=0)

    def remove_overlap(self, other: 'Annotation') -> None:
        """Delete residues shared with another annotation from this one

        Only positions within this annotation's own extent are considered;
        the other annotation's regions are clamped to it.
        """
        if not self.regions:
            return

        old_start = self.start
        extent = self.end - old_start + 1
        bits = np.zeros(extent, dtype=bool)

        for r in self.regions:
            bits[r.start - old_start:r.start + r.length - old_start] = True

        for r in other.regions:
            if r.is_empty:
                continue
            start = max(r.start - old_start, 0)
            end = min(r.start + r.length - old_start, extent)
            if start < extent and end > 0:
                bits[start:end] = False

        self.regions = runs_to_regions(bits, old_start)

    def max_gap_size(self) -> int:
        """Largest gap between consecutive regions"""
        gaps = [b.start - (a.start + a.length) for a, b in zip(self.regions, self.regions[1:])]
        return max([0] + gaps)

    def fill_gaps(self, min_gap_length: int) -> None:
        """Merge consecutive regions separated by fewer than min_gap_length residues"""
        if len(self.regions) < 2:
            return

        merged = [self.regions[0].copy()]
        for region in self.regions[1:]:
            current = merged[-1]
            gap_length = region.start - (current.start + current.length)
            if gap_length < min_gap_length:
                current.length += region.length + gap_length
            else:
                merged.append(region.copy())
        self.regions = merged

    def expand_to_near_ends(self, space: CoordinateSpace) -> None:
        """Extend the first region backward and the last forward to the nearest gap

        Raises:
            ValidationError: If the annotation has no regions
        """
        if not self.regions:
            raise ValidationError("Cannot expand an annotation with no regions")
        self.regions[0].extend_to_near_end(space, False)
        self.regions[-1].extend_to_near_end(space, True)

    def get_header_regions(self) -> str:
        """Classic 1-based header, e.g. '1-50,60-90'"""
        return ','.join(r.get_header() for r in self.regions)

    def get_raf_header_regions(self, space: CoordinateSpace) -> Optional[str]:
        """RAF header such as '1abc A:1-50,A:60-90'; None if nothing is observed"""
        headers = [h for h in (r.get_raf_header(space) for r in self.regions) if h is not None]
        if not headers:
            return None
        return f"{space.record.code} {','.join(headers)}"

    def parse_header_regions(self, description: str, space: CoordinateSpace) -> None:
        """Replace regions from a RAF header such as '1abc A:1-50,A:60-90'

        Raises:
            RegionParseError: If any region cannot be resolved; regions are
                left unchanged
        """
        regions = []
        for token in description[5:].split(','):
            try:
                regions.append(Region.parse(token, space, snap_to_observed=True))
            except RegionParseError as e:
                raise RegionParseError(
                    f'Description "{description}" includes residues that are missing '
                    f'in the RAF record {space.record.line}',
                    {"description": description, "region": token}
                ) from e
        self.regions = regions

    def get_header_name(self, verbose: bool) -> str:
        """Evidence label used in ASTEROIDS headers"""
        if self.source == AnnotationSource.UNKNOWN:
            return "[UNMATCHED]"

        if self.source == AnnotationSource.BLAST:
            version, sep, match_sid = self.info.partition(' ')
            if not sep:
                return ""
            if not verbose:
                return f"{match_sid}-{self.family}"
            pos = self.family.rfind('.')
            if pos == -1:
                return ""
            return f"[ASTRAL-{version}-BLAST-{match_sid}]{self.family[:pos]}"

        if not verbose:
            return self.family
        if self.source == AnnotationSource.PFAM:
            return f"[PFAM-{self.info}]{self.family}"
        if self.source == AnnotationSource.FAM:
            return f"[ASTRALfam-{self.info}]{self.family}"
        if self.source == AnnotationSource.SF:
            return f"[ASTRALsf-{self.info}]{self.family}"
        if self.source == AnnotationSource.SCOP_SEQ_MATCH:
            version, sep, match_sid = self.info.partition(' ')
            if not sep:
                return ""
            return f"[ASTRAL-{version}-SCOPSeqMatch-{match_sid}]"
        return ""

    @staticmethod
    def sid_from_header(header: str) -> Optional[str]:
        """Matched sid from a header such as
        '(-) ASTEROIDS sf:[ASTRAL-1.75B-SCOPSeqMatch-d1cagb_] logE:0.00 (B:)'
        """
        match = SID_HEADER_PATTERN.search(header)
        if not match:
            return None
        return match.group()[1:-1].split('-')[3]

    def get_sequence(self, seq: str) -> str:
        return ''.join(r.get_sequence(seq) for r in self.regions)

    def get_header_full(self, seq: str) -> str:
        """Full FASTA description for an ASTEROIDS domain"""
        if self.source == AnnotationSource.UNKNOWN:
            e_value = "UNMATCHED"
        else:
            e_value = f"{self.log10_e:.2f}"

        if len(self.regions) == 1 and self.regions[0].length == len(seq):
            region_string = "(-)"
        else:
            region_string = f"({self.get_header_regions()})"

        chain_string = "(-)"
        if self.sid is not None and len(self.sid) >= 6 and self.sid[5] != '_':
            chain_string = f"({self.sid[5]}:)"

        return (f"{region_string} ASTEROIDS sf:{self.get_header_name(True)} "
                f"logE:{e_value} {chain_string}")

    def compare(self, other: 'Annotation') -> int:
        """Three-way comparison under this annotation's sort mode"""
        if self.sort_mode == SortMode.BY_POSITION:
            a_start = self.start if self.start is not None else -1
            b_start = other.start if other.start is not None else -1
            c = _sign(a_start, b_start)
            if c:
                return c
        else:
            c = _sign(SOURCE_CLASS_RANK.get(self.source, DEFAULT_CLASS_RANK),
                      SOURCE_CLASS_RANK.get(other.source, DEFAULT_CLASS_RANK))
            if c:
                return c
            # NaN compares as a tie
            c = _sign(self.log10_e, other.log10_e)
            if c:
                return c
            c = _sign(other.length, self.length)
            if c:
                return c
            c = _sign(SOURCE_TIEBREAK_RANK.get(self.source, DEFAULT_TIEBREAK_RANK),
                      SOURCE_TIEBREAK_RANK.get(other.source, DEFAULT_TIEBREAK_RANK))
            if c:
                return c

        c = _sign(self.info, other.info)
        if c:
            return c
        return _sign(self.family, other.family)

    def __lt__(self, other: 'Annotation') -> bool:
        return self.compare(other) < 0

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary

        Returns:
            Dictionary representation
        """
        return {
            'regions': [{'start': r.start, 'length': r.length} for r in self.regions],
            'source': str(self.source),
            'source_id': self.source_id,
            'log10_e': None if math.isnan(self.log10_e) else self.log10_e,
            'family': self.family,
            'protein_node_id': self.protein_node_id,
            'species_node_id': self.species_node_id,
            'hit_node_id': self.hit_node_id,
            'info': self.info,
            'sid': self.sid,
            'confidence': self.confidence.name
        }


annotation_sort_key = cmp_to_key(Annotation.compare)

#!/usr/bin/env python3
"""
ASTEROIDS consensus engine.

Greedily merges prioritized evidence for one chain into a layout of
non-overlapping domains, then post-processes it (gap filling, boundary
extension, linker splitting, unmatched fill) and assigns domain ids.
"""
import logging
import math
from dataclasses import dataclass
from enum import Enum
from typing import Optional, List, Union, Iterator, Protocol

from asteroids.exceptions import (
    AnnotationStateError, IdentifierExhaustedError, PipelineError, ValidationError
)
from asteroids.models.annotation import (
    Annotation, AnnotationSource, SortMode, annotation_sort_key
)
from asteroids.models.chain import BlastHitInfo, ChainRecord
from asteroids.models.raf import RAFRecord, CoordinateSpace, SequenceSource
from asteroids.models.region import Region

# Domain suffixes in assignment order
DOMAIN_ID_ALPHABET = ("123456789"
                      "abcdefghijklmnopqrstuvwxyz"
                      "ABCDEFGHIJKLMNOPQRSTUVWXYZ")
WHOLE_CHAIN_SUFFIX = '_'


class EvidenceQueries(Protocol):
    """Read-only lookups the engine needs from the datastore"""

    def get_blast_hit_info(self, hit_id: int) -> BlastHitInfo:
        ...

    def get_hit_seq_id(self, hit_id: int) -> int:
        ...


class AnnotationSetState(Enum):
    EMPTY = 'empty'
    ACCUMULATING = 'accumulating'
    POST_PROCESSED = 'post_processed'
    FINALIZED = 'finalized'


@dataclass(frozen=True)
class RegionHandle:
    """Reference to a region owned by an annotation

    The region is looked up on the owner each time, so edits made
    through a handle change the annotation itself.
    """
    owner: Annotation
    index: int

    @property
    def region(self) -> Region:
        return self.owner.regions[self.index]


class AnnotationSet:
    """All accepted annotations for one chain"""

    def __init__(self, chain_id: int = -1, sid: str = '', seq: Optional[str] = None,
                 raf: Optional[Union[RAFRecord, str]] = None,
                 evidence: Optional[EvidenceQueries] = None):
        """Initialize an empty set

        Args:
            chain_id: astral_chain id of the chain
            sid: Chain sid, e.g. '1abcA'
            seq: Whole-chain SEQRES sequence
            raf: RAF record (or line) of the chain
            evidence: Datastore lookups used by linker splitting and
                duplicate removal
        """
        self.chain_id = chain_id
        self.sid = sid
        self.seq = seq
        if isinstance(raf, str):
            raf = RAFRecord(raf)
        self.raf = raf
        self.space = CoordinateSpace(raf, SequenceSource.SEQRES) if raf is not None else None
        self.evidence = evidence
        self.annotations: List[Annotation] = []
        self.report = ''
        self.state = AnnotationSetState.EMPTY
        self.logger = logging.getLogger("asteroids.consensus")

    @classmethod
    def from_chain(cls, chain: ChainRecord,
                   evidence: Optional[EvidenceQueries] = None) -> 'AnnotationSet':
        return cls(chain.chain_id, chain.sid, chain.seq, chain.raf_line, evidence)

    def _empty_like(self) -> 'AnnotationSet':
        return AnnotationSet(self.chain_id, self.sid, self.seq, self.raf, self.evidence)

    def __len__(self) -> int:
        return len(self.annotations)

    def __iter__(self) -> Iterator[Annotation]:
        return iter(self.annotations)

    # State handling

    def _check_not_finalized(self, operation: str) -> None:
        if self.state == AnnotationSetState.FINALIZED:
            raise AnnotationStateError(
                f"Cannot {operation}: domain ids already assigned for chain {self.sid}",
                {"chain_id": self.chain_id, "state": self.state.value}
            )

    def _begin_post_processing(self, operation: str) -> None:
        self._check_not_finalized(operation)
        self.state = AnnotationSetState.POST_PROCESSED

    def _require_space(self, operation: str) -> CoordinateSpace:
        if self.space is None:
            raise ValidationError(f"RAF record must be set before calling {operation}",
                                  {"chain_id": self.chain_id})
        return self.space

    # Accumulation

    def add(self, annotation: Annotation) -> None:
        """Add an annotation as-is, without overlap rules (candidate lists)"""
        self._check_not_finalized("add annotation")
        if self.state == AnnotationSetState.EMPTY:
            self.state = AnnotationSetState.ACCUMULATING
        self.annotations.append(annotation)

    def accepted_union(self) -> Annotation:
        """Annotation sharing every accepted region"""
        return Annotation(regions=[r for a in self.annotations for r in a.regions])

    def annotate(self, candidate: Annotation, max_overlap: int) -> Optional[Annotation]:
        """Try to accept a candidate under the ASTEROIDS overlap rules

        The candidate may not overlap accepted annotations by more than
        max_overlap residues or by more than half its own length.

        Args:
            candidate: Annotation to apply; it is not modified
            max_overlap: Absolute overlap limit

        Returns:
            The accepted copy with overlapping residues removed, or None
            if the candidate was rejected

        Raises:
            AnnotationStateError: If post-processing has already started
        """
        if self.state in (AnnotationSetState.POST_PROCESSED, AnnotationSetState.FINALIZED):
            raise AnnotationStateError(
                f"Cannot annotate chain {self.sid} after post-processing",
                {"chain_id": self.chain_id, "state": self.state.value}
            )

        accepted = self.accepted_union()
        olap = accepted.overlap(candidate)
        if olap > min(max_overlap, candidate.length // 2):
            self.logger.debug(f"Rejected {candidate.source} hit {candidate.source_id} "
                              f"on {self.sid}: overlap {olap}")
            return None

        clone = candidate.copy()
        if olap > 0:
            clone.remove_overlap(accepted)
        self.annotations.append(clone)
        self.state = AnnotationSetState.ACCUMULATING
        return clone

    # Region access

    def all_region_handles(self) -> List[RegionHandle]:
        """Handles to every accepted region, ordered by start"""
        handles = [RegionHandle(a, i) for a in self.annotations for i in range(len(a.regions))]
        handles.sort(key=lambda h: h.region.start)
        return handles

    def get_all_regions(self) -> List[Region]:
        """Every accepted region ordered by start (the owned objects, not copies)"""
        return [h.region for h in self.all_region_handles()]

    def get_annotation(self, region: Region) -> Optional[Annotation]:
        """Annotation owning a region object"""
        for annotation in self.annotations:
            if any(r is region for r in annotation.regions):
                return annotation
        return None

    # Post-processing passes

    def fill_gaps(self, min_gap_length: int) -> None:
        """Close gaps shorter than min_gap_length within each annotation

        A merge is discarded if it would overlap another annotation.
        """
        self._begin_post_processing("fill gaps")
        filled_annotations = []
        for annotation in self.annotations:
            filled = annotation.copy()
            filled.fill_gaps(min_gap_length)
            ok = all(filled.overlap(other) == 0
                     for other in self.annotations if other is not annotation)
            filled_annotations.append(filled if ok else annotation)
        self.annotations = filled_annotations

    def expand_to_near_ends(self) -> None:
        """Extend the first and last regions of the chain to the nearest gap"""
        space = self._require_space("expand_to_near_ends")
        self._begin_post_processing("expand to near ends")
        regions = self.get_all_regions()
        if regions:
            regions[0].extend_to_near_end(space, False)
            regions[-1].extend_to_near_end(space, True)

    def extend_regions_in_atom_res(self, max_extension: int) -> None:
        """Extend region boundaries through observed residues

        The chain's first and last regions grow toward the termini, and each
        pair of neighbors grows toward each other, as long as an extension
        adds at most max_extension residues and does not reach the neighbor.
        """
        space = self._require_space("extend_regions_in_atom_res")
        self._begin_post_processing("extend regions")
        regions = self.get_all_regions()
        if not regions:
            return

        first = regions[0]
        trial = first.copy()
        trial.extend_to_near_end(space, False)
        if trial.length - first.length <= max_extension:
            first.start = trial.start
            first.length = trial.length

        last = regions[-1]
        trial = last.copy()
        trial.extend_to_near_end(space, True)
        if trial.length - last.length <= max_extension:
            last.length = trial.length

        for region1, region2 in zip(regions, regions[1:]):
            region1_new = region1.copy()
            region2_new = region2.copy()
            region1_new.extend_to_near_end(space, True)
            region2_new.extend_to_near_end(space, False)
            if region1_new.end < region2.start and region1_new.length - region1.length <= max_extension:
                region1.start = region1_new.start
                region1.length = region1_new.length
            if region1.end < region2_new.start and region2_new.length - region2.length <= max_extension:
                region2.start = region2_new.start
                region2.length = region2_new.length

    @staticmethod
    def get_linker_size(region1: Region, region2: Region) -> int:
        """Residues between two regions ordered by start"""
        return region2.start - (region1.start + region1.length)

    def add_linker_regions(self, max_linker_size: int) -> None:
        """Split short linkers between neighboring BLAST regions

        Each side gets a share of the linker proportional to the residues
        its hit left unaligned on that side of the subject sequence.

        Raises:
            PipelineError: If no evidence lookups were provided
        """
        space = self._require_space("add_linker_regions")
        if self.evidence is None:
            raise PipelineError("Linker splitting requires BLAST hit lookups",
                                {"chain_id": self.chain_id})
        self._begin_post_processing("add linker regions")
        if not self.annotations:
            return

        handles = self.all_region_handles()
        for handle1, handle2 in zip(handles, handles[1:]):
            region1, region2 = handle1.region, handle2.region

            linker_size = self.get_linker_size(region1, region2)
            if linker_size < 1 or linker_size > max_linker_size:
                continue

            # unobserved residues in the linker
            trial = region1.copy()
            trial.extend_to_near_end(space, True)
            if trial.start + trial.length < region2.start:
                continue

            if (handle1.owner.source != AnnotationSource.BLAST or
                    handle2.owner.source != AnnotationSource.BLAST):
                self.logger.debug(f"Skipping linker at {region2.start} on {self.sid}: "
                                  f"{handle1.owner.source}/{handle2.owner.source} regions")
                continue

            info1 = self.evidence.get_blast_hit_info(handle1.owner.source_id)
            info2 = self.evidence.get_blast_hit_info(handle2.owner.source_id)
            missed1 = info1.missed_after
            missed2 = info2.missed_before

            total = missed1 + missed2
            add1 = math.floor(linker_size * missed1 / total + 0.5) if total else 0
            add2 = linker_size - add1

            region1.length += add1
            region2.start -= add2
            region2.length += add2

    def add_unmatched(self, min_length: int) -> List[Region]:
        """Add UNKNOWN annotations for unassigned stretches of the chain

        Args:
            min_length: Shortest stretch to add

        Returns:
            Regions that were added

        Raises:
            ValidationError: If the chain sequence is not set
        """
        if self.seq is None:
            raise ValidationError("Sequence must be set before calling add_unmatched",
                                  {"chain_id": self.chain_id})
        self._begin_post_processing("add unmatched regions")

        remaining = Annotation.from_region(AnnotationSource.UNKNOWN, -1, 0, len(self.seq))
        remaining.remove_overlap(self.accepted_union())

        unmatched = []
        for region in remaining.regions:
            if region.length >= min_length:
                unmatched.append(region)
                self.annotations.append(
                    Annotation.from_region(AnnotationSource.UNKNOWN, -1, region.start, region.length))
        return unmatched

    def assign_sids(self, prefix: str = 'u') -> None:
        """Sort annotations by position and assign domain sids

        A single annotation covering the whole chain gets the suffix '_';
        otherwise suffixes are taken in order from DOMAIN_ID_ALPHABET.

        Raises:
            IdentifierExhaustedError: If there are more annotations than
                suffixes; no sid is assigned in that case
        """
        self._check_not_finalized("assign sids")

        if len(self.annotations) == 1 and self._spans_chain(self.annotations[0]):
            self.annotations[0].sid = f"{prefix}{self.sid}{WHOLE_CHAIN_SUFFIX}"
            self.state = AnnotationSetState.FINALIZED
            return

        if len(self.annotations) > len(DOMAIN_ID_ALPHABET):
            raise IdentifierExhaustedError(
                f"Out of single letter domain ids for {self.sid}: "
                f"{len(self.annotations)} domains",
                {"chain_id": self.chain_id, "domains": len(self.annotations)}
            )

        for annotation in self.annotations:
            annotation.sort_mode = SortMode.BY_POSITION
        self.annotations.sort(key=annotation_sort_key)
        for annotation, suffix in zip(self.annotations, DOMAIN_ID_ALPHABET):
            annotation.sid = f"{prefix}{self.sid}{suffix}"
        self.state = AnnotationSetState.FINALIZED

    def _spans_chain(self, annotation: Annotation) -> bool:
        if self.space is None:
            return False
        header = annotation.get_raf_header_regions(self.space)
        if header is None:
            return False
        region_text = header.split(' ', 1)[1]
        return region_text.endswith(':') or region_text == '-'

    # Queries

    def get_best_match(self, candidate: Annotation) -> Optional[Annotation]:
        """Overlapping annotation with the smallest boundary disagreement

        Raises:
            RegionMismatchError: If an overlapping annotation has a different
                number of regions than the candidate
        """
        best = None
        best_error = math.inf
        for annotation in self.annotations:
            if annotation.overlap(candidate) <= 0:
                continue
            error = annotation.max_unmatched(candidate)
            if best is None or error < best_error:
                best = annotation
                best_error = error
        return best

    def get_all_matches(self, candidate: Annotation) -> Optional['AnnotationSet']:
        """New set with every annotation overlapping the candidate, or None"""
        matches = self._empty_like()
        for annotation in self.annotations:
            if annotation.overlap(candidate) > 0:
                matches.add(annotation)
        return matches if len(matches) else None

    def get_non_annotated_regions(self, observed_only: bool = True) -> List[Region]:
        """Stretches of the chain covered by no annotation

        Args:
            observed_only: Keep only the residues that have ATOM records
        """
        fresh = self._empty_like()
        for annotation in self.annotations:
            fresh.annotate(annotation, 0)
        regions = fresh.add_unmatched(0)

        if observed_only:
            space = self._require_space("get_non_annotated_regions")
            regions = [o for r in regions for o in r.observed_regions(space)]
        return regions

    def count_annotated_residues(self) -> int:
        """Annotated residues, counting overlaps between annotations once"""
        total = sum(a.length for a in self.annotations)
        for i, annotation1 in enumerate(self.annotations):
            for annotation2 in self.annotations[i + 1:]:
                total -= annotation1.overlap(annotation2)
        return total

    def count_non_annotated_residues(self) -> int:
        """Observed residues covered by no annotation"""
        return sum(r.length for r in self.get_non_annotated_regions(True))

    def get_min_log10e(self) -> Optional[Annotation]:
        """First annotation with the lowest log10 E-value"""
        best = None
        for annotation in self.annotations:
            if best is None or best.log10_e > annotation.log10_e:
                best = annotation
        return best

    def get_max_log10e(self) -> Optional[Annotation]:
        """First annotation with the highest log10 E-value"""
        best = None
        for annotation in self.annotations:
            if best is None or best.log10_e < annotation.log10_e:
                best = annotation
        return best

    # Candidate filters

    def remove_short_annotations(self, min_size: int) -> None:
        self._check_not_finalized("remove short annotations")
        self.annotations = [a for a in self.annotations if a.length >= min_size]

    def remove_genetic_domain_hits(self) -> None:
        """Drop hits to genetic domains (matched sids containing '.')

        Annotations whose info has no matched sid are dropped too.
        """
        self._check_not_finalized("remove genetic domain hits")
        kept = []
        for annotation in self.annotations:
            _, sep, match_sid = annotation.info.partition(' ')
            if sep and '.' not in match_sid:
                kept.append(annotation)
        self.annotations = kept

    def remove_hits_to_same_seq(self) -> None:
        """Keep only the longest annotation among hits to the same subject sequence

        Raises:
            PipelineError: If no evidence lookups were provided
        """
        self._check_not_finalized("remove hits to same sequence")
        if self.evidence is None:
            raise PipelineError("Duplicate hit removal requires hit sequence lookups",
                                {"chain_id": self.chain_id})

        best_by_seq = {}
        for annotation in self.annotations:
            hit_seq_id = self.evidence.get_hit_seq_id(annotation.source_id)
            previous = best_by_seq.get(hit_seq_id)
            if previous is None or previous.length < annotation.length:
                best_by_seq[hit_seq_id] = annotation
        self.annotations = list(best_by_seq.values())

    def summary(self) -> str:
        """One line per annotation, for reports and logging"""
        lines = [f"AnnotationSet {self.sid} ({self.state.value}): {len(self.annotations)} annotations"]
        for annotation in self.annotations:
            lines.append(f"  {annotation.sid or '-'} {annotation.source} "
                         f"{annotation.get_header_regions()} {annotation.family}")
        return '\n'.join(lines)

#!/usr/bin/env python3
"""
Coverage statistics for ASTEROIDS chains
"""
from typing import Dict, Any, Iterable

import pandas as pd

from asteroids.exceptions import ValidationError
from asteroids.models.annotation import AnnotationSource
from asteroids.pipelines.consensus import AnnotationSet
from asteroids.utils.coverage import Coverage

SUMMARY_COLUMNS = [
    'chain_id', 'sid', 'length', 'n_domains', 'n_unmatched',
    'n_covered', 'pct_covered', 'longest_uncovered', 'first_covered', 'last_covered'
]


def chain_coverage(annotation_set: AnnotationSet, observed_only: bool = False) -> Coverage:
    """Coverage of a chain by its matched (non-UNKNOWN) annotations

    Args:
        annotation_set: Annotation set with sequence
        observed_only: Count only residues with ATOM records

    Raises:
        ValidationError: If the chain sequence is missing
    """
    if annotation_set.seq is None:
        raise ValidationError(f"No sequence for chain {annotation_set.sid}",
                              {"chain_id": annotation_set.chain_id})
    if observed_only and annotation_set.space is None:
        raise ValidationError(f"No RAF record for chain {annotation_set.sid}",
                              {"chain_id": annotation_set.chain_id})

    coverage = Coverage(len(annotation_set.seq))
    for annotation in annotation_set.annotations:
        if annotation.source == AnnotationSource.UNKNOWN:
            continue
        for region in annotation.regions:
            if observed_only:
                for observed in region.observed_regions(annotation_set.space):
                    coverage.set(observed.start, observed.length)
            else:
                coverage.set(region.start, region.length)
    return coverage


def chain_statistics(annotation_set: AnnotationSet, observed_only: bool = False) -> Dict[str, Any]:
    coverage = chain_coverage(annotation_set, observed_only)
    n_unmatched = sum(1 for a in annotation_set.annotations
                      if a.source == AnnotationSource.UNKNOWN)
    return {
        'chain_id': annotation_set.chain_id,
        'sid': annotation_set.sid,
        'length': len(coverage),
        'n_domains': len(annotation_set.annotations) - n_unmatched,
        'n_unmatched': n_unmatched,
        'n_covered': coverage.n_covered(),
        'pct_covered': coverage.pct_covered(),
        'longest_uncovered': coverage.longest_uncovered(),
        'first_covered': coverage.first_covered(),
        'last_covered': coverage.last_covered()
    }


def coverage_summary(annotation_sets: Iterable[AnnotationSet],
                     observed_only: bool = False) -> pd.DataFrame:
    """One row of coverage statistics per chain"""
    rows = [chain_statistics(s, observed_only) for s in annotation_sets]
    return pd.DataFrame(rows, columns=SUMMARY_COLUMNS)

#!/usr/bin/env python3
"""
pyASTEROIDS Models Module

RAF coordinate translation, regions, annotations and datastore records.
"""
from .raf import RAFRecord, SequenceSource, CoordinateSpace
from .region import Region
from .annotation import (
    Annotation, AnnotationSource, ConfidenceLevel, SortMode,
    annotation_sort_key, regions_from_gaps
)
from .chain import ChainRecord, EvidenceHit, BlastHitInfo

__all__ = [
    'RAFRecord', 'SequenceSource', 'CoordinateSpace',
    'Region',
    'Annotation', 'AnnotationSource', 'ConfidenceLevel', 'SortMode',
    'annotation_sort_key', 'regions_from_gaps',
    'ChainRecord', 'EvidenceHit', 'BlastHitInfo'
]

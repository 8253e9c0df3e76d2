#!/usr/bin/env python3
"""
Shared fixtures for pyASTEROIDS tests
"""
import math

import pytest

from asteroids.models.annotation import Annotation, AnnotationSource
from asteroids.models.chain import BlastHitInfo
from asteroids.models.raf import RAFRecord, CoordinateSpace, SequenceSource
from asteroids.models.region import Region

# Residues 1, 2, 4 and 5 are observed; the chain has two leading
# unobserved residues, a missing residue 3 and a trailing one.
SMALL_SLOTS = [
    ('B', '.', 'a'),
    ('B', '.', 'b'),
    ('1', 'c', 'c'),
    ('2', 'd', 'd'),
    ('M', '.', 'e'),
    ('4', 'f', 'f'),
    ('5', 'g', 'g'),
    ('E', '.', 'h'),
]


def make_annotation(regions, source=AnnotationSource.BLAST, source_id=1,
                    log10_e=math.nan, **kwargs) -> Annotation:
    """Annotation from (start, length) pairs"""
    return Annotation(regions=[Region(s, n) for s, n in regions], source=source,
                      source_id=source_id, log10_e=log10_e, **kwargs)


def observed_record(n_residues: int, chain: str = 'A', code: str = '1xyz') -> RAFRecord:
    """RAF record where every residue has coordinates"""
    slots = [(str(i + 1), 'a', 'a') for i in range(n_residues)]
    return RAFRecord.from_slots(code, chain, slots)


def blast_info(seq_length: int, start: int, length: int) -> BlastHitInfo:
    return BlastHitInfo(
        hit_node_id=100, hit_sunid=1000, hit_sccs='a.1.1.1', hit_sid='d1abca_',
        hit_description='test domain', hit_seq_length=seq_length, log10_e=-20.0,
        pct_identical=95.0, hit_start=start, hit_length=length
    )


@pytest.fixture
def small_raf():
    return RAFRecord.from_slots('1abc', 'A', SMALL_SLOTS)


@pytest.fixture
def small_raf_no_chain():
    return RAFRecord.from_slots('1abc', '', SMALL_SLOTS)


@pytest.fixture
def seqres_space(small_raf):
    return CoordinateSpace(small_raf, SequenceSource.SEQRES)


@pytest.fixture
def blank_chain_space(small_raf_no_chain):
    return CoordinateSpace(small_raf_no_chain, SequenceSource.SEQRES)


@pytest.fixture
def full_raf():
    """30 observed residues"""
    return observed_record(30)

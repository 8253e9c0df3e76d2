#!/usr/bin/env python3
"""
Tests for FASTA export of domains.
"""
import io

import pytest
from Bio import SeqIO

from asteroids.exceptions import ValidationError
from asteroids.models.annotation import AnnotationSource
from asteroids.pipelines.consensus import AnnotationSet
from asteroids.tests.conftest import make_annotation
from asteroids.utils.fasta import domain_records, write_domain_fasta


@pytest.fixture
def finalized_set():
    seq = 'm' * 60 + 'k' * 40
    annotation_set = AnnotationSet(chain_id=1, sid='1abcA', seq=seq)
    annotation_set.annotate(make_annotation([(0, 60)], log10_e=-10.0,
                                            info='1.75 d1abca_', family='a.1.1.1'), 10)
    annotation_set.add_unmatched(20)
    annotation_set.assign_sids()
    return annotation_set


class TestDomainRecords:

    def test_records(self, finalized_set):
        records = domain_records(finalized_set)

        assert [r.id for r in records] == ['u1abcA1', 'u1abcA2']
        assert str(records[0].seq) == 'm' * 60
        assert str(records[1].seq) == 'k' * 40
        assert records[0].description == \
            '(1-60) ASTEROIDS sf:[ASTRAL-1.75-BLAST-d1abca_]a.1.1 logE:-10.00 (A:)'
        assert 'UNMATCHED' in records[1].description

    def test_requires_sids(self):
        annotation_set = AnnotationSet(chain_id=1, sid='1abcA', seq='a' * 50)
        annotation_set.add(make_annotation([(0, 50)], source=AnnotationSource.UNKNOWN))
        with pytest.raises(ValidationError):
            domain_records(annotation_set)

    def test_requires_sequence(self):
        with pytest.raises(ValidationError):
            domain_records(AnnotationSet(chain_id=1, sid='1abcA'))


class TestWriteFasta:

    def test_write_and_read_back(self, finalized_set):
        handle = io.StringIO()
        count = write_domain_fasta([finalized_set], handle)
        assert count == 2

        handle.seek(0)
        records = list(SeqIO.parse(handle, "fasta"))
        assert [r.id for r in records] == ['u1abcA1', 'u1abcA2']
        assert str(records[1].seq) == 'k' * 40

#!/usr/bin/env python3
"""
Tests for RAF records and coordinate translation.
"""
import pytest

from asteroids.exceptions import ValidationError
from asteroids.models.raf import RAFRecord, CoordinateSpace, SequenceSource, HEADER_LENGTH


class TestRAFRecord:
    """Test parsing of the fixed-width RAF line"""

    def test_header_fields(self, small_raf):
        """Test code, chain and residue range from the header"""
        assert small_raf.code == '1abc'
        assert small_raf.chain == 'A'
        assert small_raf.has_chain_letter
        assert small_raf.first_res_id == '1'
        assert small_raf.last_res_id == '5'
        assert len(small_raf) == 8

    def test_blank_chain(self, small_raf_no_chain):
        """Test a chain without a letter is written as '_'"""
        assert small_raf_no_chain.chain == '_'
        assert not small_raf_no_chain.has_chain_letter

    def test_slot_access(self, small_raf):
        """Test residue ids and sequence characters of individual slots"""
        assert small_raf.res_id_at(0) == 'B'
        assert small_raf.res_id_at(2) == '1'
        assert small_raf.atom_char(2) == 'c'
        assert small_raf.atom_char(4) == '.'
        assert small_raf.seqres_char(4) == 'e'
        assert small_raf.is_observed(3)
        assert not small_raf.is_observed(4)

    def test_res_id_out_of_range(self, small_raf):
        """Test slot indices outside the body are rejected"""
        with pytest.raises(IndexError):
            small_raf.res_id_at(8)
        with pytest.raises(IndexError):
            small_raf.res_id_at(-1)

    def test_index_of(self, small_raf):
        """Test residue id lookup in both directions"""
        assert small_raf.index_of('4') == 5
        assert small_raf.index_of('B', forward=True) == 0
        assert small_raf.index_of('B', forward=False) == 1
        assert small_raf.index_of('99') is None

    def test_n_gaps(self, small_raf):
        """Test counting of slots without coordinates"""
        assert small_raf.n_gaps(0, 7) == 4
        assert small_raf.n_gaps(2, 6) == 1

    def test_invalid_lines(self):
        """Test malformed lines are rejected"""
        with pytest.raises(ValidationError):
            RAFRecord("1abcA")
        with pytest.raises(ValidationError):
            RAFRecord("x" * HEADER_LENGTH + "1  aa")

    def test_whole_chain_seq(self, small_raf):
        """Test whole-chain sequences for each source"""
        assert small_raf.whole_chain_seq() == 'abcdefgh'
        assert small_raf.whole_chain_seq(SequenceSource.ATOM) == 'cdfg'
        assert small_raf.whole_chain_seq(SequenceSource.SEQRES_BOUNDED) == 'cdefg'


class TestSequentialResidueIds:
    """Test residue numbering checks"""

    def test_sequential_with_missing_residue(self, small_raf):
        """Test an 'M' slot counts as the missing number"""
        assert small_raf.are_res_ids_sequential()

    def test_insertion_codes(self):
        """Test insertion codes may repeat the previous number"""
        record = RAFRecord.from_slots('1abc', 'A', [
            ('10', 'a', 'a'), ('10A', 'b', 'b'), ('11', 'c', 'c')
        ])
        assert record.are_res_ids_sequential()

    def test_numbering_jump(self):
        """Test a skipped number without an 'M' slot"""
        record = RAFRecord.from_slots('1abc', 'A', [
            ('1', 'a', 'a'), ('3', 'b', 'b')
        ])
        assert not record.are_res_ids_sequential()

    def test_gap_before_first_residue(self):
        """Test an 'M' before any numbered residue is a format error"""
        record = RAFRecord.from_slots('1abc', 'A', [
            ('M', '.', 'a'), ('1', 'b', 'b')
        ])
        with pytest.raises(ValidationError):
            record.are_res_ids_sequential()


class TestCoordinateSpace:
    """Test translation between sequence and RAF indices"""

    def test_seqres_is_identity(self, seqres_space):
        """Test every slot is a SEQRES residue"""
        assert len(seqres_space) == 8
        for i in range(8):
            assert seqres_space.to_record_index(i) == i
            assert seqres_space.to_seq_index(i) == i

    def test_atom_mapping(self, small_raf):
        """Test ATOM indices skip unobserved slots"""
        space = CoordinateSpace(small_raf, SequenceSource.ATOM)

        assert space.sequence == 'cdfg'
        assert space.to_record_index(0) == 2
        assert space.to_record_index(2) == 5
        assert space.to_record_index(4) is None
        # slot 4 is missing; it maps to the residue before it
        assert space.to_seq_index(4) == 1
        # nothing precedes slot 0
        assert space.to_seq_index(0) is None

    def test_bounded_mapping(self, small_raf):
        """Test SEQRES_BOUNDED starts at the first non-'B' slot"""
        space = CoordinateSpace(small_raf, SequenceSource.SEQRES_BOUNDED)

        assert space.sequence == 'cdefg'
        assert space.to_record_index(0) == 2
        assert space.to_record_index(2) == 4
        assert space.to_seq_index(1) is None
        assert space.to_seq_index(7) is None

    @pytest.mark.parametrize("source", list(SequenceSource))
    def test_round_trip(self, small_raf, source):
        """Test sequence indices survive translation to the record and back"""
        space = CoordinateSpace(small_raf, source)
        for i in range(len(space)):
            assert space.to_seq_index(space.to_record_index(i)) == i
        assert len(space) == len(space.sequence)

    def test_invalid_indices(self, seqres_space):
        """Test invalid indices translate to None"""
        assert seqres_space.to_record_index(-1) is None
        assert seqres_space.to_record_index(None) is None
        assert seqres_space.to_record_index(8) is None
        assert seqres_space.to_seq_index(-1) is None
        assert seqres_space.to_seq_index(None) is None

    def test_nearest_observed(self, seqres_space):
        """Test scanning for residues with coordinates"""
        assert seqres_space.nearest_observed(4, True) == 5
        assert seqres_space.nearest_observed(4, False) == 3
        assert seqres_space.nearest_observed(0, True) == 2
        assert seqres_space.nearest_observed(7, False) == 6
        # termini stop the scan
        assert seqres_space.nearest_observed(7, True) is None
        assert seqres_space.nearest_observed(1, False) is None
        assert seqres_space.nearest_observed(None, True) is None

    def test_extend_to_gap(self, seqres_space, full_raf):
        """Test extension through observed slots"""
        assert seqres_space.extend_to_gap(3, False) == 2
        assert seqres_space.extend_to_gap(3, True) == 3
        assert seqres_space.extend_to_gap(5, True) == 6

        space = CoordinateSpace(full_raf)
        assert space.extend_to_gap(10, True) == 29
        assert space.extend_to_gap(10, False) == 0

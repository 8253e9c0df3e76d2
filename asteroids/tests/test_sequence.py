#!/usr/bin/env python3
"""
Tests for sequence utilities.
"""
import math

import pytest

from asteroids.exceptions import ValidationError
from asteroids.utils.sequence import (
    clean_sequence, validate_sequence, calculate_md5, is_reject, percent_identity
)


class TestSequenceHelpers:

    def test_clean_sequence(self):
        assert clean_sequence('MKV.L"a\n b') == 'mkvlab'

    def test_validate_sequence(self):
        assert validate_sequence('mkvlab')
        with pytest.raises(ValidationError):
            validate_sequence('')
        with pytest.raises(ValidationError, match="Invalid characters"):
            validate_sequence('mkv1')

    def test_md5_ignores_case_and_whitespace(self):
        assert calculate_md5('MKV L') == calculate_md5('mkvl')


class TestIsReject:
    """Test rejection of short or ambiguous sequences"""

    def test_short_sequence(self):
        assert is_reject('a' * 19)
        assert not is_reject('a' * 20)

    def test_unknown_residues(self):
        """Test at most a fifth of the residues may be 'x'"""
        assert not is_reject('x' * 4 + 'a' * 16)
        assert is_reject('x' * 5 + 'a' * 15)
        assert is_reject('X' * 5 + 'a' * 15)


class TestPercentIdentity:

    def test_current_releases(self):
        assert percent_identity(20, 21, 21, 21) == pytest.approx(40 / 42 * 100)

    def test_legacy_releases_round_twice(self):
        """Test early releases keep the sasum rounding"""
        assert percent_identity(20, 21, 21, 21, release_id=5) == pytest.approx(95.24)

    def test_zero_lengths(self):
        assert math.isnan(percent_identity(0, 0, 0, 0))

    def test_legacy_empty_alignment(self):
        assert math.isnan(percent_identity(0, 0, 21, 21, release_id=5))
        assert percent_identity(0, 0, 21, 21) == 0.0

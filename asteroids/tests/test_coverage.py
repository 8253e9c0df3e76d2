#!/usr/bin/env python3
"""
Tests for residue coverage vectors.
"""
import pytest

from asteroids.utils.coverage import Coverage


@pytest.fixture
def coverage():
    """Length 10 with positions 2, 3 and 7 covered"""
    cov = Coverage(10)
    cov.set(2, 2)
    cov.set(7, 1)
    return cov


class TestCoverageCounts:

    def test_counts(self, coverage):
        assert coverage.n_covered() == 3
        assert coverage.n_uncovered() == 7
        assert coverage.pct_covered() == pytest.approx(30.0)

    def test_counts_in_runs(self, coverage):
        """Test only runs of at least n are counted"""
        assert coverage.n_covered(2) == 2
        assert coverage.n_uncovered(3) == 3
        assert coverage.n_uncovered(4) == 0

    def test_longest_runs(self, coverage):
        assert coverage.longest_covered() == 2
        assert coverage.longest_uncovered() == 3
        assert coverage.find_longest_uncovered() == (4, 3)

    def test_first_longest_run_wins(self):
        cov = Coverage(7)
        cov.set(2, 1)
        cov.set(5, 1)
        assert cov.find_longest_uncovered() == (0, 2)

    def test_runs(self, coverage):
        assert coverage.runs(True) == [(2, 2), (7, 1)]
        assert coverage.runs(False) == [(0, 2), (4, 3), (8, 2)]

    def test_first_and_last(self, coverage):
        assert coverage.first_covered() == 2
        assert coverage.last_covered() == 7


class TestCoverageEdits:

    def test_set_past_end(self):
        cov = Coverage(5)
        cov.set(3, 10)
        assert cov.runs(True) == [(3, 2)]

    def test_invalid_set(self):
        with pytest.raises(ValueError):
            Coverage(5).set(-1, 2)
        with pytest.raises(ValueError):
            Coverage(-1)

    def test_flip(self, coverage):
        coverage.flip(0, 4)
        assert coverage.runs(True) == [(0, 2), (7, 1)]

    def test_cover_short(self, coverage):
        """Test uncovered runs shorter than n are filled"""
        coverage.cover_short(3)
        assert coverage.runs(False) == [(4, 3)]

    def test_subset(self, coverage):
        sub = coverage.subset(3, 5)
        assert len(sub) == 5
        assert sub.runs(True) == [(0, 1), (4, 1)]

    def test_copy_is_independent(self, coverage):
        clone = coverage.copy()
        clone.set(0, 10)
        assert coverage.n_covered() == 3


class TestEmptyCoverage:

    def test_empty(self):
        cov = Coverage(0)
        assert cov.pct_covered() == 0.0
        assert cov.find_longest_uncovered() == (0, 0)
        assert cov.longest_covered() == 0
        assert cov.first_covered() is None
        assert cov.last_covered() is None

    def test_fully_covered(self):
        cov = Coverage(4)
        cov.set(0, 4)
        assert cov.find_longest_uncovered() == (0, 0)
        assert cov.n_uncovered() == 0

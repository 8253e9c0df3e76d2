#!/usr/bin/env python3
"""
Sequence utilities for pyASTEROIDS
Functions for working with ASTRAL chain and domain sequences
"""
import re
import math
import logging
import hashlib

from asteroids.exceptions import ValidationError

logger = logging.getLogger("asteroids.utils.sequence")

MIN_SEQUENCE_LENGTH = 20
# at most one residue in MAX_X_FRACTION_DENOMINATOR may be unknown
MAX_X_FRACTION_DENOMINATOR = 5
# SCOP releases (scop_release.id) whose percent identities were computed by sasum
LEGACY_PCT_ID_RELEASES = range(1, 12)


def clean_sequence(sequence: str) -> str:
    """Lowercase sequence without whitespace or non-residue characters"""
    return re.sub(r'[\s."]+', '', sequence).lower()


def validate_sequence(sequence: str) -> bool:
    """Validate an ASTRAL sequence

    Args:
        sequence: Protein sequence

    Returns:
        True if valid

    Raises:
        ValidationError: If the sequence is empty or has non-letter characters
    """
    if not sequence:
        raise ValidationError("Protein sequence cannot be empty")

    invalid_chars = {c for c in sequence if not c.isalpha()}
    if invalid_chars:
        raise ValidationError(f"Invalid characters in sequence: {', '.join(sorted(invalid_chars))}")

    return True


def calculate_md5(sequence: str) -> str:
    """Calculate MD5 hash of a sequence

    Args:
        sequence: Protein sequence

    Returns:
        MD5 hash as hexadecimal string
    """
    return hashlib.md5(clean_sequence(sequence).encode('utf-8')).hexdigest()


def is_reject(sequence: str) -> bool:
    """True for sequences too short or too ambiguous to search with

    A sequence is rejected when it is shorter than 20 residues or
    more than a fifth of it is 'x'.
    """
    length = len(sequence)
    x_count = sequence.lower().count('x')
    return length < MIN_SEQUENCE_LENGTH or x_count * MAX_X_FRACTION_DENOMINATOR > length


def _round_half_up(value: float) -> int:
    return math.floor(value + 0.5)


def percent_identity(n_identical: int, align_length: int, query_length: int,
                     target_length: int, release_id: int = 0) -> float:
    """Percent identity of an alignment relative to both sequence lengths

    Hits against SCOP releases 1-11 keep the double-rounded value that
    sasum produced: BLAST's own percentage rounded to two decimals, then
    rescaled.

    Args:
        n_identical: Identical positions in the alignment
        align_length: Alignment length
        query_length: Query sequence length
        target_length: Target sequence length
        release_id: scop_release id the hit belongs to

    Returns:
        Percent identity (0-100), or NaN when both lengths are zero or a
        legacy alignment is empty
    """
    total_length = query_length + target_length
    if total_length == 0:
        return math.nan

    if release_id in LEGACY_PCT_ID_RELEASES:
        if align_length == 0:
            return math.nan
        blast_pct_id = _round_half_up(n_identical * 10000.0 / align_length)
        return (2 * blast_pct_id * align_length) / (total_length * 100)

    return (n_identical * 2) / total_length * 100.0

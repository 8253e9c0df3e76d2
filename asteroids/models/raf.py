#!/usr/bin/env python3
"""
RAF (Rapid Access Format) records and coordinate translation.

An RAF line maps every SEQRES residue of a chain to its ATOM status:

    offset 0-3    PDB code
    offset 4      chain character ('_' when the chain has no letter)
    offset 28-32  first residue id
    offset 33-37  last residue id
    offset 38+    body: one 7-character slot per residue
                  (residue id token, ATOM character, SEQRES character)

Residue id tokens 'B', 'M' and 'E' mark residues with no coordinates
before the first observed residue, in the interior and after the last
observed residue. Translation failures are reported as None.
"""
from dataclasses import dataclass
from enum import IntEnum
from typing import List, Optional, Sequence, Tuple

from asteroids.exceptions import ValidationError

SLOT_WIDTH = 7
HEADER_LENGTH = 38
BLANK_CHAIN = '_'

GAP_BEFORE = 'B'
GAP_MISSING = 'M'
GAP_AFTER = 'E'
GAP_TOKENS = frozenset((GAP_BEFORE, GAP_MISSING, GAP_AFTER))

# characters in a sequence column that do not represent a residue
NON_RESIDUE_CHARS = frozenset(('.', '"'))


class SequenceSource(IntEnum):
    """Which sequence a whole-chain index refers to (astral_seq_source)"""
    ATOM = 1
    SEQRES = 2
    SEQRES_BOUNDED = 3  # SEQRES between first and last ATOM, pre-1.65 data


@dataclass(frozen=True)
class RAFRecord:
    """A single RAF line"""
    line: str

    def __post_init__(self):
        if len(self.line) < HEADER_LENGTH:
            raise ValidationError(f"RAF line too short ({len(self.line)} characters)",
                                  {"line": self.line})
        if (len(self.line) - HEADER_LENGTH) % SLOT_WIDTH != 0:
            raise ValidationError("RAF body length is not a multiple of the slot width",
                                  {"line": self.line})

    @classmethod
    def from_slots(cls, code: str, chain: str,
                   slots: Sequence[Tuple[str, str, str]]) -> 'RAFRecord':
        """Build a record from (residue id, ATOM char, SEQRES char) slots.

        First and last residue ids are taken from the first and last
        observed slots.
        """
        observed = [res_id for res_id, _, _ in slots if res_id not in GAP_TOKENS]
        first = observed[0] if observed else ''
        last = observed[-1] if observed else ''
        header = f"{code:<4.4}{chain or BLANK_CHAIN:1.1}"
        header = f"{header:<28}{first:<5}{last:<5}"
        body = ''.join(f"{res_id:<5}{atom}{seqres}" for res_id, atom, seqres in slots)
        return cls(header + body)

    @property
    def code(self) -> str:
        return self.line[0:4]

    @property
    def chain(self) -> str:
        return self.line[4]

    @property
    def has_chain_letter(self) -> bool:
        return self.chain != BLANK_CHAIN

    @property
    def first_res_id(self) -> str:
        return self.line[28:33].strip()

    @property
    def last_res_id(self) -> str:
        return self.line[33:38].strip()

    @property
    def body(self) -> str:
        return self.line[HEADER_LENGTH:]

    @property
    def n_slots(self) -> int:
        return len(self.body) // SLOT_WIDTH

    def __len__(self) -> int:
        return self.n_slots

    def res_id_at(self, index: int) -> str:
        """Residue id token at a slot (0-based)"""
        if index < 0 or index >= self.n_slots:
            raise IndexError(f"RAF index {index} out of range for {self.n_slots} slots")
        offset = index * SLOT_WIDTH
        return self.body[offset:offset + 5].strip()

    def atom_char(self, index: int) -> str:
        return self.body[index * SLOT_WIDTH + 5]

    def seqres_char(self, index: int) -> str:
        return self.body[index * SLOT_WIDTH + 6]

    def is_observed(self, index: int) -> bool:
        """True if the slot has ATOM coordinates"""
        return self.res_id_at(index) not in GAP_TOKENS

    def index_of(self, res_id: str, forward: bool = True) -> Optional[int]:
        """Index of a residue id; the last match when forward is False"""
        indices = range(self.n_slots) if forward else range(self.n_slots - 1, -1, -1)
        for i in indices:
            if self.res_id_at(i) == res_id:
                return i
        return None

    def n_gaps(self, first: int, last: int) -> int:
        """Number of slots without ATOM records between two indices, inclusive"""
        return sum(1 for i in range(first, last + 1) if not self.is_observed(i))

    def whole_chain_seq(self, source: SequenceSource = SequenceSource.SEQRES) -> str:
        """Sequence of the entire chain for a source"""
        return CoordinateSpace(self, source).sequence

    def are_res_ids_sequential(self) -> bool:
        """Check that residues are numbered consecutively.

        Insertion codes may repeat a number or advance it by one.

        Raises:
            ValidationError: If an 'M' or 'E' precedes the first numbered residue
        """
        current = 0
        seen_numbered = False
        for i in range(self.n_slots):
            res_id = self.res_id_at(i)
            if not seen_numbered and res_id == GAP_BEFORE:
                continue
            if not seen_numbered and res_id in GAP_TOKENS:
                raise ValidationError(f"Badly formatted RAF line: {self.line}")
            if res_id in GAP_TOKENS:
                current += 1
                continue

            has_insertion = res_id[-1].isalpha()
            number = int(res_id[:-1] if has_insertion else res_id)
            if not seen_numbered:
                current = number
                seen_numbered = True
            elif has_insertion:
                if number not in (current, current + 1):
                    return False
                current = number
            else:
                current += 1
                if number != current:
                    return False
        return True


class CoordinateSpace:
    """Translation between whole-chain sequence indices and RAF indices.

    The mapping for the chosen sequence source is built once from the
    record. Mode SEQRES_BOUNDED only starts counting at the first
    non-'B' slot; ATOM and SEQRES_BOUNDED stop at the first 'E' slot,
    SEQRES counts straight through.
    """

    def __init__(self, record: RAFRecord,
                 source: SequenceSource = SequenceSource.SEQRES):
        self.record = record
        self.source = SequenceSource(source)

        self._seq_to_record: List[int] = []
        self._record_to_seq: List[int] = []
        chars = []

        in_seq = self.source != SequenceSource.SEQRES_BOUNDED
        count = -1
        for i in range(record.n_slots):
            res_id = record.res_id_at(i)
            if not in_seq and res_id != GAP_BEFORE:
                in_seq = True
            if res_id == GAP_AFTER and self.source != SequenceSource.SEQRES:
                break
            if self.source == SequenceSource.ATOM:
                char = record.atom_char(i)
            else:
                char = record.seqres_char(i)
            if in_seq and char not in NON_RESIDUE_CHARS:
                count += 1
                self._seq_to_record.append(i)
                chars.append(char)
            self._record_to_seq.append(count)

        self.sequence = ''.join(chars)

    def __len__(self) -> int:
        return len(self._seq_to_record)

    def to_record_index(self, seq_index: Optional[int]) -> Optional[int]:
        """RAF index of a whole-chain sequence index, or None"""
        if seq_index is None or seq_index < 0 or seq_index >= len(self._seq_to_record):
            return None
        return self._seq_to_record[seq_index]

    def to_seq_index(self, record_index: Optional[int]) -> Optional[int]:
        """Whole-chain sequence index of a RAF index, or None.

        A slot that is not itself part of the sequence maps to the last
        sequence residue before it.
        """
        if record_index is None or record_index < 0 or record_index >= len(self._record_to_seq):
            return None
        seq_index = self._record_to_seq[record_index]
        return seq_index if seq_index >= 0 else None

    def res_id_at(self, record_index: int) -> str:
        return self.record.res_id_at(record_index)

    def nearest_observed(self, record_index: Optional[int], forward: bool) -> Optional[int]:
        """Nearest slot with ATOM coordinates, scanning in one direction.

        Returns None when the chain terminus ('E' forward, 'B' backward)
        or the end of the record is reached first.
        """
        if record_index is None:
            return None
        step = 1 if forward else -1
        terminus = GAP_AFTER if forward else GAP_BEFORE
        i = record_index
        while 0 <= i < self.record.n_slots:
            res_id = self.record.res_id_at(i)
            if res_id not in GAP_TOKENS:
                return i
            if res_id == terminus:
                return None
            i += step
        return None

    def extend_to_gap(self, record_index: int, forward: bool) -> int:
        """Last observed slot before a gap or the end of the record.

        The starting slot is assumed to be observed.
        """
        step = 1 if forward else -1
        i = record_index + step
        while 0 <= i < self.record.n_slots:
            if self.record.res_id_at(i) in GAP_TOKENS:
                return i - step
            i += step
        return self.record.n_slots - 1 if forward else 0

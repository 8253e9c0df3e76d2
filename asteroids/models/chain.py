#!/usr/bin/env python3
"""
Chain and evidence models for pyASTEROIDS
Plain records loaded from the SCOP datastore
"""
from dataclasses import dataclass
from typing import Optional, Dict, Any

from asteroids.models.annotation import AnnotationSource
from asteroids.models.raf import RAFRecord, CoordinateSpace, SequenceSource


@dataclass
class ChainRecord:
    """An ASTRAL chain with its sequence and RAF line"""
    chain_id: int
    sid: str
    seq: str
    raf_line: str
    seq_id: Optional[int] = None

    @classmethod
    def from_db_row(cls, row: Dict[str, Any]) -> 'ChainRecord':
        """Create instance from database row

        Args:
            row: Database row as dictionary

        Returns:
            ChainRecord instance
        """
        return cls(
            chain_id=row.get('id'),
            sid=row.get('sid', ''),
            seq=(row.get('seq') or '').lower(),
            raf_line=row.get('line', ''),
            seq_id=row.get('seq_id')
        )

    @property
    def raf(self) -> RAFRecord:
        return RAFRecord(self.raf_line)

    def space(self, source: SequenceSource = SequenceSource.SEQRES) -> CoordinateSpace:
        return CoordinateSpace(self.raf, source)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'chain_id': self.chain_id,
            'sid': self.sid,
            'seq': self.seq,
            'raf_line': self.raf_line,
            'seq_id': self.seq_id
        }


@dataclass
class EvidenceHit:
    """Identifier of a scored hit against a chain, before its details are loaded"""
    hit_id: int
    source: AnnotationSource
    hit_seq_id: Optional[int] = None
    style_id: Optional[int] = None

    @classmethod
    def from_db_row(cls, row: Dict[str, Any], source: AnnotationSource) -> 'EvidenceHit':
        return cls(
            hit_id=row.get('id'),
            source=source,
            hit_seq_id=row.get('seq2_id'),
            style_id=row.get('style_id')
        )


@dataclass
class BlastHitInfo:
    """Subject-side details of a BLAST hit"""
    hit_node_id: int
    hit_sunid: int
    hit_sccs: str
    hit_sid: str
    hit_description: str
    hit_seq_length: int
    log10_e: float
    pct_identical: float
    hit_start: int
    hit_length: int

    @classmethod
    def from_db_row(cls, row: Dict[str, Any]) -> 'BlastHitInfo':
        """Create instance from database row

        Args:
            row: Database row as dictionary

        Returns:
            BlastHitInfo instance
        """
        return cls(
            hit_node_id=row.get('node_id'),
            hit_sunid=row.get('sunid'),
            hit_sccs=row.get('sccs', ''),
            hit_sid=row.get('sid', ''),
            hit_description=row.get('description', ''),
            hit_seq_length=row.get('seq_length', 0),
            log10_e=row.get('blast_log10_e'),
            pct_identical=row.get('pct_identical'),
            hit_start=row.get('seq2_start', 0),
            hit_length=row.get('seq2_length', 0)
        )

    @property
    def missed_after(self) -> int:
        """Subject residues after the end of the alignment"""
        return self.hit_seq_length - (self.hit_start + self.hit_length)

    @property
    def missed_before(self) -> int:
        """Subject residues before the start of the alignment"""
        return self.hit_start

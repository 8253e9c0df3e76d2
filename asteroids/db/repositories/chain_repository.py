# asteroids/db/repositories/chain_repository.py
#!/usr/bin/env python3
"""
Chain repository for pyASTEROIDS
Loads chains and scored evidence from the SCOP datastore and stores
ASTEROIDS domains
"""
import logging
import math
from typing import List, Dict, Any, Optional

from asteroids.exceptions import QueryError, ValidationError
from asteroids.db.manager import DBManager
from asteroids.models.annotation import Annotation, AnnotationSource, regions_from_gaps
from asteroids.models.chain import ChainRecord, EvidenceHit, BlastHitInfo
from asteroids.utils.sequence import is_reject

# scop_level ids
SPECIES_LEVEL = 7
PROTEIN_LEVEL = 6

GAP_TABLES = {
    AnnotationSource.BLAST: 'astral_seq_blast_gap',
    AnnotationSource.PFAM: 'astral_seq_hmm_pfam_gap',
    AnnotationSource.FAM: 'astral_seq_hmm_asteroids_gap',
    AnnotationSource.SF: 'astral_seq_hmm_asteroids_gap',
}

DETAIL_QUERIES = {
    AnnotationSource.BLAST: """
        SELECT r.version || ' ' || d.sid AS info, n.sccs AS family,
               m.seq1_start AS start, m.seq1_length AS length,
               m.blast_log10_e AS log10_e, n.id AS hit_node_id
        FROM astral_seq_blast m, astral_domain d, scop_node n, scop_release r
        WHERE m.id = %s
          AND d.source_id = 2 AND m.seq2_id = d.seq_id
          AND (m.style2_id = d.style_id OR d.style_id = 1)
          AND m.release_id = n.release_id AND d.node_id = n.id
          AND n.release_id = r.id AND n.sccs ~ '^[a-h]'
        LIMIT 1
    """,
    AnnotationSource.PFAM: """
        SELECT r.version AS info, p.accession AS family,
               m.start AS start, m.length AS length, m.log10_e AS log10_e
        FROM astral_seq_hmm_pfam m, pfam p, pfam_release r
        WHERE m.id = %s AND m.pfam_id = p.id AND p.release_id = r.id
    """,
    AnnotationSource.FAM: """
        SELECT r.version AS info, n.sccs AS family,
               m.start AS start, m.length AS length, m.log10_e AS log10_e
        FROM astral_seq_hmm_asteroids m, scop_node n, scop_release r
        WHERE m.id = %s AND m.node_id = n.id AND n.sccs ~ '^[a-g]' AND n.release_id = r.id
    """,
}
DETAIL_QUERIES[AnnotationSource.SF] = DETAIL_QUERIES[AnnotationSource.FAM]


class ChainRepository:
    """Repository for chains, their evidence and ASTEROIDS domains

    Implements the lookups the consensus engine needs
    (get_blast_hit_info, get_hit_seq_id).
    """

    def __init__(self, db_manager: DBManager):
        """Initialize repository

        Args:
            db_manager: Database manager instance
        """
        self.db = db_manager
        self.logger = logging.getLogger("asteroids.db.chain_repository")

    def get_chain(self, chain_id: int) -> Optional[ChainRecord]:
        """Get chain sid, sequence and RAF line by astral_chain id"""
        query = """
        SELECT ac.id, ac.sid, ac.seq_id, s.seq, r.line
        FROM astral_chain ac
        JOIN astral_seq s ON ac.seq_id = s.id
        JOIN raf r ON r.id = ac.raf_id
        WHERE ac.id = %s
        """
        rows = self.db.execute_dict_query(query, (chain_id,))
        if not rows:
            return None
        return ChainRecord.from_db_row(rows[0])

    def get_candidate_hits(self, chain_id: int, scop_release_id: int,
                           pfam_release_id: Optional[int] = None,
                           blast_max_log10e: float = -4.0,
                           pfam_max_log10e: float = -2.0,
                           include_pfam: bool = False) -> List[EvidenceHit]:
        """Get ids of significant hits against a chain

        Args:
            chain_id: astral_chain id
            scop_release_id: Release the BLAST hits were computed against
            pfam_release_id: Pfam release for profile hits
            blast_max_log10e: Largest log10 E-value for BLAST hits
            pfam_max_log10e: Largest log10 E-value for Pfam hits
            include_pfam: Also return Pfam hits

        Returns:
            List of hits
        """
        blast_query = """
        SELECT DISTINCT m.id, m.seq2_id, d.style_id
        FROM astral_seq_blast m, astral_domain d, scop_node n, astral_chain ac
        WHERE ac.id = %s
          AND m.seq1_id = ac.seq_id AND m.seq2_id = d.seq_id AND d.node_id = n.id
          AND d.source_id = 2 AND m.source_id = 2 AND m.style1_id = 1
          AND (m.style2_id = d.style_id OR d.style_id = 1)
          AND m.blast_log10_e <= %s
          AND n.sccs ~ '^[a-h]'
          AND m.release_id = n.release_id AND n.release_id = %s
        ORDER BY m.id
        """
        rows = self.db.execute_dict_query(blast_query, (chain_id, blast_max_log10e, scop_release_id))
        hits = [EvidenceHit.from_db_row(row, AnnotationSource.BLAST) for row in rows]

        if include_pfam and pfam_release_id is not None:
            pfam_query = """
            SELECT DISTINCT m.id
            FROM astral_seq_hmm_pfam m, pfam p, astral_chain ac
            WHERE ac.seq_id = m.seq_id AND ac.id = %s
              AND m.pfam_id = p.id AND m.log10_e <= %s AND p.release_id = %s
            ORDER BY m.id
            """
            rows = self.db.execute_dict_query(pfam_query, (chain_id, pfam_max_log10e, pfam_release_id))
            hits.extend(EvidenceHit.from_db_row(row, AnnotationSource.PFAM) for row in rows)

        self.logger.debug(f"Found {len(hits)} candidate hits for chain {chain_id}")
        return hits

    def load_annotation(self, annotation: Annotation) -> bool:
        """Fill in the details of a deferred annotation

        Args:
            annotation: Annotation with source and source_id set

        Returns:
            True if the hit was found

        Raises:
            ValidationError: For sources that cannot be loaded from hit tables
        """
        if annotation.source == AnnotationSource.SCOP_SEQ_MATCH:
            raise ValidationError("SCOPSeqMatch annotations cannot be loaded from hit tables; "
                                  "set their attributes directly")
        if annotation.source == AnnotationSource.UNKNOWN:
            return False

        rows = self.db.execute_dict_query(DETAIL_QUERIES[annotation.source], (annotation.source_id,))
        if not rows:
            self.logger.warning(f"{annotation.source} hit {annotation.source_id} not found")
            return False
        row = rows[0]

        annotation.info = row.get('info') or ''
        annotation.family = row.get('family') or ''
        log10_e = row.get('log10_e')
        annotation.log10_e = float(log10_e) if log10_e is not None else math.nan

        if annotation.source == AnnotationSource.BLAST:
            annotation.hit_node_id = row['hit_node_id']
            annotation.species_node_id = self.find_parent(annotation.hit_node_id, SPECIES_LEVEL)
            annotation.protein_node_id = self.find_parent(annotation.species_node_id, PROTEIN_LEVEL)

        gap_query = f"""
        SELECT gap_start, gap_length FROM {GAP_TABLES[annotation.source]}
        WHERE hit_id = %s ORDER BY gap_start
        """
        gaps = self.db.execute_query(gap_query, (annotation.source_id,))
        annotation.regions = regions_from_gaps(row['start'], row['length'], gaps)
        return True

    def load_candidates(self, chain_id: int, scop_release_id: int,
                        pfam_release_id: Optional[int] = None,
                        **hit_filters) -> List[Annotation]:
        """Load and sort the candidate annotations for a chain

        Returns:
            Annotations in consensus priority order
        """
        annotations = []
        for hit in self.get_candidate_hits(chain_id, scop_release_id, pfam_release_id, **hit_filters):
            annotation = Annotation.deferred(hit.source, hit.hit_id)
            if self.load_annotation(annotation):
                annotations.append(annotation)
        annotations.sort()
        return annotations

    def find_parent(self, node_id: int, level_id: int) -> int:
        """Ancestor of a scop_node at a level, or -1"""
        query = """
        WITH RECURSIVE ancestors AS (
            SELECT id, parent_node_id, level_id FROM scop_node WHERE id = %s
            UNION ALL
            SELECT n.id, n.parent_node_id, n.level_id
            FROM scop_node n JOIN ancestors a ON n.id = a.parent_node_id
        )
        SELECT id FROM ancestors WHERE level_id = %s LIMIT 1
        """
        rows = self.db.execute_query(query, (node_id, level_id))
        return rows[0][0] if rows else -1

    def get_blast_hit_info(self, hit_id: int) -> BlastHitInfo:
        """Subject-side details of a BLAST hit

        Raises:
            QueryError: If the hit does not exist
        """
        query = """
        SELECT n.id AS node_id, n.sunid, n.sccs, n.sid, n.description,
               length(s.seq) AS seq_length, b.blast_log10_e, b.pct_identical,
               b.seq2_start, b.seq2_length
        FROM astral_seq_blast b, astral_domain d, scop_node n, astral_seq s
        WHERE n.id = d.node_id AND d.seq_id = s.id AND s.id = b.seq2_id
          AND b.source_id = d.source_id AND b.style1_id = 1
          AND (b.style2_id = d.style_id OR d.style_id = 1)
          AND n.sccs ~ '^[a-h]' AND b.release_id = n.release_id
          AND b.id = %s
        LIMIT 1
        """
        rows = self.db.execute_dict_query(query, (hit_id,))
        if not rows:
            raise QueryError(f"Blast hit {hit_id} not found", {"hit_id": hit_id})
        return BlastHitInfo.from_db_row(rows[0])

    def get_hit_seq_id(self, hit_id: int) -> int:
        """Subject sequence id of a BLAST hit, or -1"""
        rows = self.db.execute_query("SELECT seq2_id FROM astral_seq_blast WHERE id = %s", (hit_id,))
        return rows[0][0] if rows else -1

    def save_asteroids(self, chain_id: int, scop_release_id: int, pfam_release_id: int,
                       domains: List[Dict[str, Any]]) -> int:
        """Replace the ASTEROIDS domains of a chain

        Args:
            chain_id: astral_chain id
            scop_release_id: SCOP release the domains were built for
            pfam_release_id: Pfam release the domains were built for
            domains: Dicts with sid, header, description, blast_hit_id and seq

        Returns:
            Number of domains written
        """
        def _write(cursor) -> int:
            cursor.execute(
                "DELETE FROM asteroid WHERE chain_id = %s AND scop_release_id = %s AND pfam_release_id = %s",
                (chain_id, scop_release_id, pfam_release_id)
            )
            for domain in domains:
                seq_id = self._lookup_or_create_seq(cursor, domain['seq'])
                cursor.execute(
                    """
                    INSERT INTO asteroid (chain_id, pfam_release_id, scop_release_id, domain_id,
                                          sid, header, description, blast_hit_id, seq_id)
                    VALUES (%s, %s, %s, NULL, %s, %s, %s, %s, %s)
                    """,
                    (chain_id, pfam_release_id, scop_release_id, domain['sid'], domain['header'],
                     domain.get('description'), domain.get('blast_hit_id'), seq_id)
                )
            return len(domains)

        count = self.db.execute_transaction(_write)
        self.logger.info(f"Saved {count} ASTEROIDS domains for chain {chain_id}")
        return count

    @staticmethod
    def _lookup_or_create_seq(cursor, seq: str) -> int:
        cursor.execute("SELECT id FROM astral_seq WHERE seq = %s", (seq,))
        row = cursor.fetchone()
        if row:
            return row[0]
        cursor.execute("INSERT INTO astral_seq (seq, is_reject) VALUES (%s, %s) RETURNING id",
                       (seq, 1 if is_reject(seq) else 0))
        return cursor.fetchone()[0]

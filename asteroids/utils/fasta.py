#!/usr/bin/env python3
"""
FASTA export of ASTEROIDS domains
"""
import logging
from typing import List, TextIO, Union

from Bio import SeqIO
from Bio.Seq import Seq
from Bio.SeqRecord import SeqRecord

from asteroids.exceptions import ValidationError
from asteroids.pipelines.consensus import AnnotationSet

logger = logging.getLogger("asteroids.utils.fasta")


def domain_records(annotation_set: AnnotationSet) -> List[SeqRecord]:
    """Sequence records for the domains of a chain

    Records use the domain sid as id and the full ASTEROIDS header as
    description.

    Raises:
        ValidationError: If the chain sequence is missing or a domain has no sid
    """
    if annotation_set.seq is None:
        raise ValidationError(f"No sequence for chain {annotation_set.sid}",
                              {"chain_id": annotation_set.chain_id})

    records = []
    for annotation in annotation_set.annotations:
        if annotation.sid is None:
            raise ValidationError(f"Domain ids have not been assigned for chain {annotation_set.sid}",
                                  {"chain_id": annotation_set.chain_id})
        records.append(SeqRecord(
            Seq(annotation.get_sequence(annotation_set.seq)),
            id=annotation.sid,
            description=annotation.get_header_full(annotation_set.seq)
        ))
    return records


def write_domain_fasta(annotation_sets: List[AnnotationSet],
                       handle: Union[str, TextIO]) -> int:
    """Write the domains of several chains to a FASTA file

    Args:
        annotation_sets: Finalized annotation sets
        handle: Output path or open text handle

    Returns:
        Number of records written
    """
    records = [r for s in annotation_sets for r in domain_records(s)]
    count = SeqIO.write(records, handle, "fasta")
    logger.info(f"Wrote {count} domain sequences")
    return count

#!/usr/bin/env python3
"""
High-level service interface for building ASTEROIDS domains.

This module runs the consensus engine for single chains and batches:
load evidence, accept it in priority order, post-process, assign
domain sids and store the result.
"""
import logging
import os
from dataclasses import dataclass, field, fields
from datetime import datetime
from typing import Dict, Any, List, Optional, Tuple

from asteroids.core.context import ApplicationContext
from asteroids.core.logging_config import LoggingManager
from asteroids.db.repositories.chain_repository import ChainRepository
from asteroids.error_handlers import format_error, log_exception
from asteroids.exceptions import AsteroidsError, ValidationError
from asteroids.models.annotation import AnnotationSource
from asteroids.pipelines.consensus import AnnotationSet


@dataclass
class ConsensusOptions:
    """Thresholds for one ASTEROIDS run"""

    max_overlap: int = 10
    min_gap_length: int = 50
    min_unmatched_length: int = 20
    max_extension: Optional[int] = None  # None skips boundary extension
    max_linker_size: Optional[int] = None  # None skips linker splitting
    sid_prefix: str = 'u'

    blast_max_log10e: float = -4.0
    pfam_max_log10e: float = -2.0
    include_pfam: bool = False

    def validate(self) -> None:
        """Check option values

        Raises:
            ValidationError: With every problem found
        """
        errors = []

        if self.max_overlap < 0:
            errors.append("max_overlap must be >= 0")
        if self.min_gap_length < 0:
            errors.append("min_gap_length must be >= 0")
        if self.min_unmatched_length < 0:
            errors.append("min_unmatched_length must be >= 0")
        if self.max_extension is not None and self.max_extension < 0:
            errors.append("max_extension must be >= 0")
        if self.max_linker_size is not None and self.max_linker_size < 1:
            errors.append("max_linker_size must be at least 1")
        if not self.sid_prefix:
            errors.append("sid_prefix cannot be empty")

        if errors:
            raise ValidationError(f"Invalid consensus options: {'; '.join(errors)}",
                                  {"errors": errors})

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'ConsensusOptions':
        """Options from a config section; unknown keys are ignored"""
        known = {f.name for f in fields(cls)}
        return cls(**{k: v for k, v in data.items() if k in known})

    def to_dict(self) -> Dict[str, Any]:
        return {f.name: getattr(self, f.name) for f in fields(self)}

    def hit_filters(self) -> Dict[str, Any]:
        return {
            'blast_max_log10e': self.blast_max_log10e,
            'pfam_max_log10e': self.pfam_max_log10e,
            'include_pfam': self.include_pfam
        }


@dataclass
class ChainConsensusResult:
    """Outcome for one chain"""
    chain_id: int
    success: bool
    sid: Optional[str] = None
    annotation_set: Optional[AnnotationSet] = None
    domains_saved: int = 0
    error: Optional[str] = None

    @property
    def domain_count(self) -> int:
        if self.annotation_set is None:
            return 0
        return sum(1 for a in self.annotation_set.annotations
                   if a.source != AnnotationSource.UNKNOWN)


@dataclass
class BatchConsensusResult:
    """Outcome for a batch of chains"""
    total: int = 0
    success_count: int = 0
    failure_count: int = 0

    results: List[ChainConsensusResult] = field(default_factory=list)
    failures: List[Tuple[int, str]] = field(default_factory=list)  # (chain_id, error)

    start_time: datetime = field(default_factory=datetime.now)
    end_time: Optional[datetime] = None

    def add_result(self, result: ChainConsensusResult) -> None:
        self.results.append(result)
        self.total += 1
        if result.success:
            self.success_count += 1
        else:
            self.failure_count += 1
            self.failures.append((result.chain_id, result.error or "Unknown error"))

    def finalize(self) -> None:
        self.end_time = datetime.now()

    @property
    def success_rate(self) -> float:
        if self.total == 0:
            return 0.0
        return (self.success_count / self.total) * 100.0

    @property
    def processing_time(self) -> float:
        """Total processing time in seconds"""
        end = self.end_time or datetime.now()
        return (end - self.start_time).total_seconds()

    def get_summary(self) -> Dict[str, Any]:
        return {
            'total': self.total,
            'success_count': self.success_count,
            'failure_count': self.failure_count,
            'success_rate': self.success_rate,
            'domains_found': sum(r.domain_count for r in self.results),
            'processing_time': self.processing_time
        }


class ConsensusService:
    """
    High-level service for ASTEROIDS consensus.

    Loads evidence through a ChainRepository, runs the consensus engine
    for each chain and writes the resulting domains back.
    """

    def __init__(self, context: ApplicationContext,
                 repository: Optional[ChainRepository] = None,
                 options: Optional[ConsensusOptions] = None):
        """
        Initialize the consensus service.

        Args:
            context: Application context with configuration
            repository: Chain repository (built from the context by default)
            options: Default consensus options (read from configuration by default)
        """
        self.context = context
        self.logger = logging.getLogger("asteroids.pipelines.service")

        self.repository = repository or ChainRepository(context.db)

        if options is None:
            options = ConsensusOptions.from_dict(context.config_manager.get_consensus_config())
        options.validate()
        self.default_options = options

        release_ids = context.config_manager.get_release_ids()
        self.scop_release_id = release_ids.get('scop_release_id')
        self.pfam_release_id = release_ids.get('pfam_release_id')

        self.logger.info("ConsensusService initialized")

    def build_chain(self, chain_id: int, scop_release_id: Optional[int] = None,
                    pfam_release_id: Optional[int] = None,
                    options: Optional[ConsensusOptions] = None) -> AnnotationSet:
        """Build the ASTEROIDS domains of one chain

        Args:
            chain_id: astral_chain id
            scop_release_id: SCOP release of the evidence (configured default if None)
            pfam_release_id: Pfam release of the evidence (configured default if None)
            options: Consensus options (service defaults if None)

        Returns:
            Finalized annotation set

        Raises:
            ValidationError: If the chain does not exist
        """
        options = options or self.default_options
        scop_release_id = scop_release_id if scop_release_id is not None else self.scop_release_id
        pfam_release_id = pfam_release_id if pfam_release_id is not None else self.pfam_release_id

        chain = self.repository.get_chain(chain_id)
        if chain is None:
            raise ValidationError(f"Chain {chain_id} not found", {"chain_id": chain_id})

        candidates = self.repository.load_candidates(chain_id, scop_release_id, pfam_release_id,
                                                     **options.hit_filters())
        candidates = sorted(candidates)

        annotation_set = AnnotationSet.from_chain(chain, evidence=self.repository)
        accepted = 0
        for candidate in candidates:
            if annotation_set.annotate(candidate, options.max_overlap) is not None:
                accepted += 1

        annotation_set.fill_gaps(options.min_gap_length)
        if options.max_extension is not None:
            annotation_set.extend_regions_in_atom_res(options.max_extension)
        if options.max_linker_size is not None:
            annotation_set.add_linker_regions(options.max_linker_size)
        unmatched = annotation_set.add_unmatched(options.min_unmatched_length)
        annotation_set.assign_sids(options.sid_prefix)

        annotation_set.report = (f"{len(candidates)} candidates, {accepted} accepted, "
                                 f"{len(unmatched)} unmatched regions")
        self.logger.info(f"Chain {chain.sid} ({chain_id}): {annotation_set.report}")
        return annotation_set

    def domain_rows(self, annotation_set: AnnotationSet) -> List[Dict[str, Any]]:
        """Rows for the asteroid table"""
        rows = []
        for annotation in annotation_set.annotations:
            description = None
            if annotation_set.space is not None:
                description = annotation.get_raf_header_regions(annotation_set.space)
            rows.append({
                'sid': annotation.sid,
                'header': annotation.get_header_full(annotation_set.seq),
                'description': description,
                'blast_hit_id': annotation.source_id if annotation.source == AnnotationSource.BLAST else None,
                'seq': annotation.get_sequence(annotation_set.seq)
            })
        return rows

    def save_chain(self, annotation_set: AnnotationSet, scop_release_id: Optional[int] = None,
                   pfam_release_id: Optional[int] = None) -> int:
        """Store the domains of a finalized annotation set

        Returns:
            Number of domains written
        """
        scop_release_id = scop_release_id if scop_release_id is not None else self.scop_release_id
        pfam_release_id = pfam_release_id if pfam_release_id is not None else self.pfam_release_id
        return self.repository.save_asteroids(annotation_set.chain_id, scop_release_id,
                                              pfam_release_id, self.domain_rows(annotation_set))

    def process_chain(self, chain_id: int, scop_release_id: Optional[int] = None,
                      pfam_release_id: Optional[int] = None,
                      options: Optional[ConsensusOptions] = None,
                      save: bool = True) -> ChainConsensusResult:
        """Build (and optionally save) one chain, capturing ASTEROIDS errors"""
        try:
            annotation_set = self.build_chain(chain_id, scop_release_id, pfam_release_id, options)
            saved = self.save_chain(annotation_set, scop_release_id, pfam_release_id) if save else 0
            return ChainConsensusResult(chain_id=chain_id, success=True, sid=annotation_set.sid,
                                        annotation_set=annotation_set, domains_saved=saved)
        except AsteroidsError as e:
            log_exception(self.logger, e, context={"chain_id": chain_id})
            return ChainConsensusResult(chain_id=chain_id, success=False, error=format_error(e))

    def process_batch(self, chain_ids: List[int], scop_release_id: Optional[int] = None,
                      pfam_release_id: Optional[int] = None,
                      options: Optional[ConsensusOptions] = None,
                      save: bool = True) -> BatchConsensusResult:
        """Process several chains; a failing chain does not stop the others"""
        batch = BatchConsensusResult()
        self.logger.info(f"Processing {len(chain_ids)} chains")

        for chain_id in chain_ids:
            batch.add_result(self.process_chain(chain_id, scop_release_id, pfam_release_id,
                                                options, save))

        batch.finalize()
        self.logger.info(f"Batch complete: {batch.success_count}/{batch.total} chains succeeded "
                         f"in {batch.processing_time:.1f}s")
        return batch


def create_service(config_path: Optional[str] = None, verbose: bool = False,
                   log_file: Optional[str] = None) -> ConsensusService:
    """
    Create a consensus service with logging configured from its settings.

    Args:
        config_path: Optional configuration file path
            (ASTEROIDS_CONFIG_PATH or config/config.yml by default)
        verbose: Enable debug logging
        log_file: Optional log file path

    Returns:
        Configured ConsensusService
    """
    config_path = config_path or os.environ.get('ASTEROIDS_CONFIG_PATH', 'config/config.yml')
    context = ApplicationContext(config_path)
    LoggingManager.configure(verbose=verbose, log_file=log_file, component="asteroids",
                             config=context.config_manager.config)
    return ConsensusService(context)

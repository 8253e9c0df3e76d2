#!/usr/bin/env python3
"""
pyASTEROIDS Pipelines Module
"""
from .consensus import AnnotationSet, AnnotationSetState, RegionHandle, EvidenceQueries
from .service import (
    ConsensusOptions, ConsensusService, ChainConsensusResult,
    BatchConsensusResult, create_service
)

__all__ = [
    'AnnotationSet', 'AnnotationSetState', 'RegionHandle', 'EvidenceQueries',
    'ConsensusOptions', 'ConsensusService', 'ChainConsensusResult',
    'BatchConsensusResult', 'create_service'
]

#!/usr/bin/env python3
"""
Exception hierarchy for pyASTEROIDS.
All custom exceptions should inherit from AsteroidsError.

Coordinates that have no counterpart in another space are reported as None
by the translation layer, never as exceptions.
"""
from typing import Dict, Any, Optional


class AsteroidsError(Exception):
    """Base exception for all ASTEROIDS-related errors"""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        """Initialize with error message and optional details

        Args:
            message: Error message
            details: Optional details dictionary with context
        """
        self.message = message
        self.details = details or {}
        super().__init__(message)


class ConfigurationError(AsteroidsError):
    """Error related to configuration issues"""
    pass


class DatabaseError(AsteroidsError):
    """Base class for database-related errors"""
    pass


class ConnectionError(DatabaseError):
    """Error connecting to a database"""
    pass


class QueryError(DatabaseError):
    """Error executing a database query"""
    pass


class ValidationError(AsteroidsError):
    """Data validation error"""
    pass


class RegionParseError(ValidationError):
    """Region or header text could not be resolved against an RAF record"""
    pass


class RegionMismatchError(ValidationError):
    """Two annotations compared region-by-region have different region counts"""
    pass


class PipelineError(AsteroidsError):
    """Error in consensus processing"""
    pass


class AnnotationStateError(PipelineError):
    """Operation not allowed in the current state of an annotation set"""
    pass


class IdentifierExhaustedError(PipelineError):
    """A chain has more domains than single-character identifiers"""
    pass

#!/usr/bin/env python3
"""
pyASTEROIDS

A Python framework for building consensus domain assignments on
protein chains from prioritized sequence-similarity evidence.
"""

__version__ = '0.1.0'
__author__ = 'SCOPe Team'
__license__ = 'MIT'

# Import core modules for easier access
from .core.context import ApplicationContext
from .exceptions import AsteroidsError

# Make key classes available at package level
__all__ = ['ApplicationContext', 'AsteroidsError']

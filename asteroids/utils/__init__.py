#!/usr/bin/env python3
"""
pyASTEROIDS Utilities Module
"""
from .coverage import Coverage
from .sequence import (
    clean_sequence, validate_sequence, calculate_md5, is_reject, percent_identity
)

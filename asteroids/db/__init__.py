#!/usr/bin/env python3
"""
pyASTEROIDS Database Module
"""
from .manager import DBManager

__all__ = ['DBManager']

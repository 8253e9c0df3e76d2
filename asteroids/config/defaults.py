#!/usr/bin/env python3
"""
Default configuration values for pyASTEROIDS
"""

DEFAULT_CONFIG = {
    'database': {
        'database': 'scop',
        'host': 'localhost',
        'port': 5432,
        'user': 'scop',
    },
    'reference': {
        'scop_release_id': 15,
        'pfam_release_id': 56,
    },
    'logging': {
        'level': 'INFO',
        'format': '%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    },
    'consensus': {
        'max_overlap': 10,
        'min_gap_length': 50,
        'min_unmatched_length': 20,
        'max_extension': None,
        'max_linker_size': None,
        'sid_prefix': 'u',
        'blast_max_log10e': -4.0,
        'pfam_max_log10e': -2.0,
        'include_pfam': False,
    }
}

#!/usr/bin/env python3
"""
Configuration schema definition for validation
"""
from typing import Dict, Any, List


class ConfigSchema:
    """Configuration schema for validation"""

    SCHEMA = {
        'database': {
            'host': {'type': str, 'required': True},
            'port': {'type': int, 'required': True},
            'database': {'type': str, 'required': True},
            'user': {'type': str, 'required': True},
            'password': {'type': str, 'required': False},
        },
        'reference': {
            'scop_release_id': {'type': int, 'required': True},
            'pfam_release_id': {'type': int, 'required': True},
        },
        'logging': {
            'level': {'type': str, 'required': False},
            'format': {'type': str, 'required': False},
            'log_dir': {'type': str, 'required': False},
        },
        'consensus': {
            'max_overlap': {'type': int, 'required': False},
            'min_gap_length': {'type': int, 'required': False},
            'min_unmatched_length': {'type': int, 'required': False},
            'max_extension': {'type': int, 'required': False, 'nullable': True},
            'max_linker_size': {'type': int, 'required': False, 'nullable': True},
            'sid_prefix': {'type': str, 'required': False},
            'blast_max_log10e': {'type': (int, float), 'required': False},
            'pfam_max_log10e': {'type': (int, float), 'required': False},
            'include_pfam': {'type': bool, 'required': False},
        }
    }

    @staticmethod
    def _type_name(expected_type: Any) -> str:
        if isinstance(expected_type, tuple):
            return " or ".join(t.__name__ for t in expected_type)
        return expected_type.__name__

    @classmethod
    def validate(cls, config: Dict[str, Any]) -> List[str]:
        """Validate configuration against schema

        Args:
            config: Configuration to validate

        Returns:
            List of validation errors (empty if valid)
        """
        errors = []

        # Check required fields
        for section, fields in cls.SCHEMA.items():
            if any(props.get('required', False) for _, props in fields.items()):
                if section not in config:
                    errors.append(f"Missing required configuration section: {section}")
                    continue

            if section not in config:
                continue

            section_config = config[section]
            for field, props in fields.items():
                if props.get('required', False) and field not in section_config:
                    errors.append(f"Missing required configuration field: {section}.{field}")

        # Validate field types
        for section, fields in cls.SCHEMA.items():
            if section not in config:
                continue

            section_config = config[section]
            for field, props in fields.items():
                if field not in section_config or 'type' not in props:
                    continue
                value = section_config[field]
                if value is None and props.get('nullable', False):
                    continue
                # bool is an int subclass; only accept it where bool is expected
                if isinstance(value, bool) and props['type'] is not bool:
                    valid = False
                else:
                    valid = isinstance(value, props['type'])
                if not valid:
                    errors.append(
                        f"Invalid type for {section}.{field}: expected {cls._type_name(props['type'])}, "
                        f"got {type(value).__name__}"
                    )

        return errors

#!/usr/bin/env python3
"""
Tests for configuration loading and the application context.
"""
import os

import pytest
import yaml
from unittest.mock import patch

from asteroids.config import ConfigManager, ConfigSchema, DEFAULT_CONFIG
from asteroids.core.context import ApplicationContext
from asteroids.exceptions import ConfigurationError


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch):
    """Drop ASTEROIDS_ overrides from the caller's environment"""
    for key in list(os.environ):
        if key.startswith(ConfigManager.ENV_PREFIX):
            monkeypatch.delenv(key)


@pytest.fixture
def config_file(tmp_path):
    path = tmp_path / "config.yml"
    path.write_text(yaml.safe_dump({
        'database': {'host': 'db.example.org', 'password': 'secret'},
        'consensus': {'max_overlap': 15}
    }))
    return str(path)


class TestConfigManager:
    """Test layered configuration"""

    def test_defaults(self):
        config = ConfigManager()
        assert config.get('consensus.max_overlap') == 10
        assert config.get('consensus.max_linker_size') is None
        assert config.get_release_ids() == {'scop_release_id': 15, 'pfam_release_id': 56}

    def test_defaults_not_shared(self):
        config = ConfigManager()
        config.config['consensus']['max_overlap'] = 99
        assert DEFAULT_CONFIG['consensus']['max_overlap'] == 10

    def test_file_overrides_defaults(self, config_file):
        config = ConfigManager(config_file)
        db = config.get_db_config()
        assert db['host'] == 'db.example.org'
        assert db['port'] == 5432
        assert config.get_consensus_config()['max_overlap'] == 15
        assert config.get_consensus_config()['min_gap_length'] == 50

    def test_local_file_merged(self, config_file, tmp_path):
        (tmp_path / "config.local.yml").write_text(yaml.safe_dump({'consensus': {'max_overlap': 3}}))
        config = ConfigManager(config_file)
        assert config.get('consensus.max_overlap') == 3

    def test_environment_overrides(self, config_file, monkeypatch):
        monkeypatch.setenv('ASTEROIDS_CONSENSUS__MAX_OVERLAP', '7')
        monkeypatch.setenv('ASTEROIDS_CONSENSUS__INCLUDE_PFAM', 'true')
        monkeypatch.setenv('ASTEROIDS_CONSENSUS__MAX_EXTENSION', 'none')
        config = ConfigManager(config_file)

        consensus = config.get_consensus_config()
        assert consensus['max_overlap'] == 7
        assert consensus['include_pfam'] is True
        assert consensus['max_extension'] is None

    def test_missing_key_default(self):
        config = ConfigManager()
        assert config.get('consensus.nonexistent', 'fallback') == 'fallback'
        assert config.get('nonexistent') is None

    def test_invalid_file(self, tmp_path):
        path = tmp_path / "broken.yml"
        path.write_text("consensus: [unclosed")
        with pytest.raises(ConfigurationError):
            ConfigManager(str(path))

    def test_non_mapping_file(self, tmp_path):
        path = tmp_path / "list.yml"
        path.write_text("- a\n- b\n")
        with pytest.raises(ConfigurationError):
            ConfigManager(str(path))


class TestConfigSchema:

    def test_defaults_are_valid(self):
        assert ConfigSchema.validate(DEFAULT_CONFIG) == []

    def test_type_errors_reported(self):
        config = {**DEFAULT_CONFIG, 'consensus': {'max_overlap': 'ten'}}
        errors = ConfigSchema.validate(config)
        assert any('max_overlap' in e for e in errors)


class TestApplicationContext:
    """Test the shared application context"""

    def setup_method(self):
        ApplicationContext.reset()

    def teardown_method(self):
        ApplicationContext.reset()

    @patch('asteroids.core.context.DBManager')
    def test_singleton(self, mock_db_manager, config_file):
        first = ApplicationContext(config_file)
        second = ApplicationContext()
        assert first is second
        mock_db_manager.assert_called_once()
        assert mock_db_manager.call_args[0][0]['host'] == 'db.example.org'

    @patch('asteroids.core.context.DBManager')
    def test_update_config(self, mock_db_manager):
        context = ApplicationContext()
        context.update_config('consensus', 'max_overlap', 4)
        assert context.config_manager.get('consensus.max_overlap') == 4
        assert context.db is mock_db_manager.return_value

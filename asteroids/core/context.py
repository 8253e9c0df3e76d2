"""
context.py -- Provide application context for pyASTEROIDS
"""
import threading
import logging
from typing import Any, Optional

from asteroids.db.manager import DBManager
from asteroids.config import ConfigManager


class ApplicationContext:
    """Application context for ASTEROIDS consensus runs"""

    _instance = None
    _lock = threading.Lock()

    def __new__(cls, config_path: Optional[str] = None):
        """Singleton instance

        Args:
            config_path: Path to configuration file

        Returns:
            ApplicationContext instance
        """
        with cls._lock:
            if cls._instance is None:
                cls._instance = super(ApplicationContext, cls).__new__(cls)
                cls._instance._initialized = False
            return cls._instance

    def __init__(self, config_path: Optional[str] = None):
        """Initialize application context

        Args:
            config_path: Path to configuration file
        """
        if not getattr(self, '_initialized', False):
            self.logger = logging.getLogger("asteroids.context")
            self._setup(config_path)
            self._initialized = True
        elif config_path is not None and config_path != self.config_manager.config_path:
            self.logger.info(f"Re-initializing context with new config: {config_path}")
            self._setup(config_path)

    def _setup(self, config_path: Optional[str]) -> None:
        self.config_manager = ConfigManager(config_path)
        self.logger.info("Configuration initialized")

        self.db_manager = DBManager(self.config_manager.get_db_config())
        self.logger.info("Database manager initialized")

    @classmethod
    def reset(cls) -> None:
        """Drop the singleton so the next construction reloads configuration"""
        with cls._lock:
            cls._instance = None

    @property
    def db(self) -> DBManager:
        """Get database manager

        Returns:
            Database manager
        """
        return self.db_manager

    def update_config(self, section: str, key: str, value: Any) -> None:
        """Update configuration value

        Args:
            section: Configuration section
            key: Configuration key
            value: New value
        """
        if section not in self.config_manager.config:
            self.config_manager.config[section] = {}

        self.config_manager.config[section][key] = value
        self.logger.debug(f"Updated config {section}.{key} = {value}")

"""
Configuration management
"""

from .settings import (
    AnalysisSettings, AlertSettings, SecuritySettings, Config, ConfigManager,
    DatabaseConfig, load_database_config, detect_database_type, parse_interval
)

__all__ = [
    'AnalysisSettings',
    'AlertSettings',
    'SecuritySettings',
    'Config',
    'ConfigManager',
    'DatabaseConfig',
    'load_database_config',
    'detect_database_type',
    'parse_interval'
]

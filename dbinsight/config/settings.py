"""
Analysis settings, config file management and environment-driven connections
"""

import os
import re
import json
from dataclasses import dataclass, field, asdict
from datetime import timedelta
from typing import Dict, List, Any, Optional, Union

from dotenv import load_dotenv
from sqlalchemy.engine import URL

from ..database.errors import InvalidConfiguration
from ..database.factory import DatabaseFactory, to_sqlalchemy_url
from ..utils.log import get_logger
from ..utils.type_utils import PII_VOCABULARY


logger = get_logger(__name__)

_DURATION_PART = re.compile(r'(\d+(?:\.\d+)?)(ms|h|m|s)')
_UNIT_SECONDS = {'h': 3600.0, 'm': 60.0, 's': 1.0, 'ms': 0.001}


def parse_interval(value: Union[str, int, float, timedelta]) -> float:
    """Convert an interval such as ``"24h"``, ``"1h30m"`` or ``90`` to seconds"""
    if isinstance(value, timedelta):
        seconds = value.total_seconds()
    elif isinstance(value, (int, float)) and not isinstance(value, bool):
        seconds = float(value)
    elif isinstance(value, str):
        text = value.strip().lower()
        if re.fullmatch(r'\d+(?:\.\d+)?', text):
            seconds = float(text)
        elif text and re.fullmatch(r'(?:\d+(?:\.\d+)?(?:ms|h|m|s))+', text):
            seconds = sum(float(amount) * _UNIT_SECONDS[unit]
                          for amount, unit in _DURATION_PART.findall(text))
        else:
            raise InvalidConfiguration(f"invalid interval: {value!r}")
    else:
        raise InvalidConfiguration(f"invalid interval: {value!r}")

    if seconds <= 0:
        raise InvalidConfiguration(f"interval must be positive: {value!r}")
    return seconds


@dataclass
class AnalysisSettings:
    """Tuning knobs for analysis passes"""
    sample_size: int = 1000
    large_table_threshold: int = 1000000
    quality_score_minimum: float = 0.7
    auto_analysis_interval: str = "24h"
    max_workers: int = 4


@dataclass
class AlertSettings:
    """Where triggered alerts are delivered"""
    enable_alerts: bool = True
    email_recipients: List[str] = field(default_factory=list)
    slack_webhook: str = ""
    telegram_token: str = ""
    telegram_chat_id: str = ""


@dataclass
class SecuritySettings:
    """Security heuristics configuration"""
    enable_pii_detection: bool = True
    pii_patterns: List[str] = field(default_factory=lambda: list(PII_VOCABULARY))


@dataclass
class Config:
    """Top-level configuration"""
    database_connections: Dict[str, str] = field(default_factory=dict)
    analysis_settings: AnalysisSettings = field(default_factory=AnalysisSettings)
    alert_settings: AlertSettings = field(default_factory=AlertSettings)
    security_settings: SecuritySettings = field(default_factory=SecuritySettings)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def _typed_value(where: str, value: Any, default: Any) -> Any:
    """Check a configured value against the type of its default"""
    if isinstance(default, bool):
        if isinstance(value, bool):
            return value
        raise InvalidConfiguration(f"{where} must be true or false, got {value!r}")
    if isinstance(default, float):
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return float(value)
        raise InvalidConfiguration(f"{where} must be a number, got {value!r}")
    if isinstance(default, int):
        if isinstance(value, int) and not isinstance(value, bool):
            return value
        raise InvalidConfiguration(f"{where} must be an integer, got {value!r}")
    if isinstance(default, str):
        if isinstance(value, str):
            return value
        raise InvalidConfiguration(f"{where} must be a string, got {value!r}")
    if isinstance(default, list):
        if isinstance(value, list) and all(isinstance(item, str) for item in value):
            return list(value)
        raise InvalidConfiguration(f"{where} must be a list of strings, got {value!r}")
    return value


def _merge_with_defaults(data: Dict[str, Any]) -> Config:
    """Build a Config from parsed JSON; missing, zero or empty fields take defaults"""
    defaults = Config()

    def section(name: str, default_obj):
        values = data.get(name) or {}
        if not isinstance(values, dict):
            raise InvalidConfiguration(f"'{name}' must be an object")
        merged = asdict(default_obj)
        for key, value in values.items():
            if key not in merged:
                logger.warning(f"Ignoring unknown setting {name}.{key}")
                continue
            if value in (0, "", None, []) and not isinstance(value, bool):
                continue
            merged[key] = _typed_value(f"{name}.{key}", value, merged[key])
        return type(default_obj)(**merged)

    connections = data.get('database_connections') or {}
    if not isinstance(connections, dict):
        raise InvalidConfiguration("'database_connections' must be an object")
    for conn_name, connection_string in connections.items():
        if not isinstance(connection_string, str):
            raise InvalidConfiguration(f"database connection string for {conn_name} must be a string")

    return Config(
        database_connections=dict(connections),
        analysis_settings=section('analysis_settings', defaults.analysis_settings),
        alert_settings=section('alert_settings', defaults.alert_settings),
        security_settings=section('security_settings', defaults.security_settings)
    )


class ConfigManager:
    """Load, validate and persist the JSON configuration file"""

    def __init__(self):
        self.config: Optional[Config] = None
        self.config_path: str = ""

    def load_config(self, config_path: str = "") -> Config:
        """Load configuration.

        With no path the defaults are used. A path that does not exist yet
        is created holding the defaults.
        """
        self.config = Config()
        self.config_path = config_path

        if not config_path:
            return self.config

        if not os.path.exists(config_path):
            logger.info(f"Config file {config_path} not found, writing defaults")
            self.save(config_path)
            return self.config

        try:
            with open(config_path, 'r', encoding='utf-8') as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            raise InvalidConfiguration(f"failed to read config file: {e}") from e

        if not isinstance(data, dict):
            raise InvalidConfiguration("config file must contain a JSON object")

        self.config = _merge_with_defaults(data)
        return self.config

    def get_config(self) -> Config:
        if self.config is None:
            self.load_config("")
        return self.config

    def update_config(self, config: Config):
        self.validate_config(config)
        self.config = config

    def validate_config(self, config: Config):
        if config is None:
            raise InvalidConfiguration("config cannot be None")

        settings = config.analysis_settings
        if settings.sample_size < 1:
            raise InvalidConfiguration("sample size must be greater than 0")
        if settings.large_table_threshold < 0:
            raise InvalidConfiguration("large table threshold cannot be negative")
        if not 0 <= settings.quality_score_minimum <= 1:
            raise InvalidConfiguration("quality score minimum must be between 0 and 1")
        if settings.max_workers < 1:
            raise InvalidConfiguration("max workers must be greater than 0")
        parse_interval(settings.auto_analysis_interval)

        for name, connection_string in config.database_connections.items():
            if not name:
                raise InvalidConfiguration("database connection name cannot be empty")
            if not connection_string:
                raise InvalidConfiguration(f"database connection string cannot be empty for {name}")

    def save(self, config_path: Optional[str] = None):
        path = config_path or self.config_path
        if not path:
            raise InvalidConfiguration("no config path to save to")
        try:
            with open(path, 'w', encoding='utf-8') as f:
                json.dump(self.get_config().to_dict(), f, indent=2, ensure_ascii=False)
        except OSError as e:
            raise InvalidConfiguration(f"failed to write config file: {e}") from e


@dataclass
class DatabaseConfig:
    """Connection settings resolved from the environment"""
    url: str
    type: str
    host: str = ""
    port: str = ""
    database: str = ""
    username: str = ""
    password: str = ""
    ssl_mode: str = ""


def detect_database_type(url: str) -> str:
    return DatabaseFactory.detect_type(url)


def _build_connection_string(config: DatabaseConfig) -> str:
    db_type = config.type
    if db_type in ('postgres', 'postgresql'):
        return URL.create(
            'postgresql+psycopg2',
            username=config.username or None,
            password=config.password or None,
            host=config.host,
            port=int(config.port or 5432),
            database=config.database,
            query={'sslmode': config.ssl_mode}
        ).render_as_string(hide_password=False)

    if db_type == 'mysql':
        return URL.create(
            'mysql+pymysql',
            username=config.username or None,
            password=config.password or None,
            host=config.host,
            port=int(config.port or 3306),
            database=config.database
        ).render_as_string(hide_password=False)

    if db_type in ('sqlite', 'sqlite3'):
        return to_sqlalchemy_url(config.database)

    if db_type in ('mongo', 'mongodb'):
        port = config.port or '27017'
        if config.username and config.password:
            return f"mongodb://{config.username}:{config.password}@{config.host}:{port}/{config.database}"
        return f"mongodb://{config.host}:{port}/{config.database}"

    raise InvalidConfiguration(f"unsupported database type: {db_type}")


def load_database_config(env_file: Optional[str] = None) -> DatabaseConfig:
    """Resolve the connection from DATABASE_URL, MONGODB_URL or DB_* variables"""
    load_dotenv(env_file)

    url = os.getenv('DATABASE_URL')
    if url:
        return DatabaseConfig(url=url, type=detect_database_type(url))

    mongo_url = os.getenv('MONGODB_URL')
    if mongo_url:
        return DatabaseConfig(url=mongo_url, type='mongodb')

    config = DatabaseConfig(
        url="",
        type=(os.getenv('DB_TYPE') or '').lower(),
        host=os.getenv('DB_HOST') or 'localhost',
        port=os.getenv('DB_PORT') or '',
        database=os.getenv('DB_NAME') or '',
        username=os.getenv('DB_USER') or '',
        password=os.getenv('DB_PASSWORD') or '',
        ssl_mode=os.getenv('DB_SSLMODE') or 'disable'
    )

    if not config.type or not config.database:
        raise InvalidConfiguration("no database configuration found in environment variables")

    config.url = _build_connection_string(config)
    return config

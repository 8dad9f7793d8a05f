"""Configuration management for sqlsession."""

from sqlsession.config.loader import load_config
from sqlsession.config.models import LoggingConfig, SessionSettings, SqlTimingConfig

__all__ = ["LoggingConfig", "SessionSettings", "SqlTimingConfig", "load_config"]

"""Configuration loading utilities."""

import os
from pathlib import Path

import yaml
from pydantic import ValidationError

from sqlsession.config.models import SessionSettings
from sqlsession.errors import ConfigurationError

CONFIG_PATH_ENV = "SQLSESSION_CONFIG"


def load_config(config_path: Path | None) -> SessionSettings:
    """
    Load session settings from a YAML file.

    Without an explicit path, the file named by SQLSESSION_CONFIG is
    used; without either, defaults apply. Environment variables
    prefixed with SQLSESSION_ still fill fields the file leaves unset.

    Args:
        config_path: Path to YAML config file, or None.

    Returns:
        Validated SessionSettings object.

    Raises:
        FileNotFoundError: If the config file doesn't exist.
        ConfigurationError: If the file is not valid YAML, its root is
            not a mapping, or a setting fails validation.
    """
    if config_path is None:
        env_path = os.environ.get(CONFIG_PATH_ENV)
        if not env_path:
            return SessionSettings()
        config_path = Path(env_path)

    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    try:
        with config_path.open() as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Invalid YAML in {config_path}: {e}") from e

    if data is None:
        data = {}

    if not isinstance(data, dict):
        raise ConfigurationError(f"{config_path}: YAML root must be a mapping, not {type(data).__name__}")

    try:
        return SessionSettings(**data)
    except ValidationError as e:
        problems = "; ".join(
            f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in e.errors()
        )
        raise ConfigurationError(f"Invalid settings in {config_path}: {problems}") from e

"""
File and environment access for share-webhook configuration.

YAML parsing, .env loading and secret lookup live here; validation and
environment overrides are layered on top by config_loader.
"""
import os
from typing import Any, Dict

import yaml
from dotenv import load_dotenv


class ConfigError(Exception):
    """
    Configuration could not be loaded or is invalid.

    Covers a missing config file, unparsable YAML, values rejected by the
    schema and secrets missing from the environment.
    """
    pass


def load_yaml_config(path: str) -> Dict[str, Any]:
    """
    Read a YAML config file into a dictionary.

    Args:
        path: Location of the config file

    Returns:
        Parsed mapping; an empty file yields {}

    Raises:
        ConfigError: If the file is missing, is not valid YAML, or its top
            level is not a mapping

    Example:
        >>> load_yaml_config('config/config.yaml')['email']['to']
        'inbox@example.com'
    """
    if not os.path.exists(path):
        raise ConfigError(f"Config file not found: {path}")
    with open(path, 'r', encoding='utf-8') as f:
        try:
            data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ConfigError(f"YAML parse error in {path}: {e}") from e
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError(f"Config file must contain a mapping at the top level: {path}")
    return data


def load_env_vars(env_path: str) -> bool:
    """
    Load a .env file into os.environ when it exists.

    Variables that are already set keep their values.

    Returns:
        Whether a file was loaded
    """
    if not os.path.isfile(env_path):
        return False
    load_dotenv(env_path, override=False)
    return True


def get_secret(env_var: str) -> str:
    """
    Read a secret from the environment.

    Raises:
        ConfigError: If the variable is not set or empty
    """
    value = os.environ.get(env_var)
    if not value:
        raise ConfigError(f"Missing required env var: {env_var}")
    return value

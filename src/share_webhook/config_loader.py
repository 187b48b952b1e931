"""
Configuration Loader

Loads the YAML configuration file, applies environment variable overrides
and validates the result against ShareWebhookConfig.

Environment Variable Overrides:
    Naming convention: SHARE_WEBHOOK_<SECTION>_<KEY> (uppercase, underscores)

    Examples:
        SHARE_WEBHOOK_EMAIL_TO=alerts@example.com
        SHARE_WEBHOOK_SMTP_PORT=587
        SHARE_WEBHOOK_LIMITS_MAX_TEXT_SIZE=2097152
"""
import os
import logging
from typing import Dict, Any, Optional, Union
from pathlib import Path

from pydantic import ValidationError

from share_webhook.config import ConfigError, load_env_vars, load_yaml_config
from share_webhook.config_schema import ShareWebhookConfig

logger = logging.getLogger(__name__)

ENV_PREFIX = "SHARE_WEBHOOK_"

SECTION_MAP = {
    'EMAIL': 'email',
    'SMTP': 'smtp',
    'LIMITS': 'limits',
    'PAYLOAD': 'payload',
    'PATHS': 'paths',
}

INT_FIELDS = {
    'smtp': ['port', 'timeout_seconds'],
    'limits': ['max_text_size'],
}

BOOL_FIELDS = {
    'email': ['enabled'],
    'smtp': ['use_tls'],
}


class ConfigLoader:
    """
    Configuration loader for share-webhook.

    Args:
        config_path: Path to the YAML configuration file, or None to start
            from defaults (environment overrides still apply)
        env_path: Optional .env file loaded before overrides are read

    Raises:
        ConfigError: If the config file is missing

    Example:
        >>> loader = ConfigLoader('config/config.yaml')
        >>> config = loader.load()
        >>> print(config.smtp.host)
        'smtp.example.com'
    """

    def __init__(self, config_path: Optional[Union[str, Path]] = None, env_path: Optional[Union[str, Path]] = None):
        self.config_path = Path(config_path) if config_path else None
        self.env_path = Path(env_path) if env_path else None
        if self.config_path is not None and not self.config_path.exists():
            raise ConfigError(f"Configuration file not found: {config_path}")

    @staticmethod
    def _apply_env_overrides(config_dict: Dict[str, Any]) -> Dict[str, Any]:
        """
        Apply SHARE_WEBHOOK_<SECTION>_<KEY> environment variables.

        Args:
            config_dict: Configuration dictionary from YAML

        Returns:
            Configuration dictionary with environment variable overrides applied
        """
        overrides_applied = []

        for env_key, env_value in sorted(os.environ.items()):
            if not env_key.startswith(ENV_PREFIX):
                continue

            parts = env_key[len(ENV_PREFIX):].split('_', 1)
            if len(parts) != 2:
                logger.warning(f"Invalid environment variable format: {env_key} (expected {ENV_PREFIX}<SECTION>_<KEY>)")
                continue

            section_env, key_env = parts
            section = SECTION_MAP.get(section_env)
            if not section:
                logger.warning(f"Unknown configuration section in environment variable: {env_key}")
                continue

            section_dict = config_dict.get(section)
            if not isinstance(section_dict, dict):
                section_dict = {}
                config_dict[section] = section_dict

            key = key_env.lower()
            section_dict[key] = ConfigLoader._convert_env_value(key, env_value, section)
            overrides_applied.append(f"{section}.{key}")

        if overrides_applied:
            logger.info(f"Applied {len(overrides_applied)} environment variable overrides: {', '.join(overrides_applied)}")

        return config_dict

    @staticmethod
    def _convert_env_value(key: str, value: str, section: str) -> Any:
        """
        Convert environment variable string value to appropriate type.

        Raises:
            ConfigError: If an integer field gets a non-integer value
        """
        if key in INT_FIELDS.get(section, []):
            try:
                return int(value)
            except ValueError:
                raise ConfigError(f"Environment variable value for {section}.{key} must be an integer, got: {value}")

        if key in BOOL_FIELDS.get(section, []):
            return value.strip().lower() in ('true', '1', 'yes', 'on')

        return value

    def load(self) -> ShareWebhookConfig:
        """
        Load and validate the configuration.

        Returns:
            Validated ShareWebhookConfig instance

        Raises:
            ConfigError: If YAML parsing or schema validation fails
        """
        if self.env_path is not None and load_env_vars(str(self.env_path)):
            logger.info(f"Loaded environment variables from {self.env_path}")

        if self.config_path is not None:
            logger.info(f"Loading configuration from {self.config_path}")
            raw_config = load_yaml_config(str(self.config_path))
        else:
            raw_config = {}

        raw_config = self._apply_env_overrides(raw_config)
        return self.load_from_dict(raw_config)

    @staticmethod
    def load_from_dict(config_dict: Dict[str, Any]) -> ShareWebhookConfig:
        """
        Validate configuration from a dictionary.

        Used by load() and directly by tests and embedding code.

        Raises:
            ConfigError: If schema validation fails
        """
        try:
            validated_config = ShareWebhookConfig(**config_dict)
            logger.debug("Configuration validated successfully")
            return validated_config
        except ValidationError as e:
            error_msg = f"Configuration validation failed: {e}"
            logger.error(error_msg)
            raise ConfigError(error_msg) from e

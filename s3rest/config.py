"""Configuration loading for the S3 service connection.

Supports two configuration sources:
1. Environment variables - takes priority when S3_HOST is set
2. A JSON file (for local development)

Environment Variables:
    S3_HOST=s3.example.com
    S3_PORT=9000                  (optional)
    S3_USE_TLS=true               (optional, default false)
    S3_ADDRESSING_STYLE=virtual   (optional, "virtual" or "path")
    S3_ACCESS_KEY=xxx
    S3_SECRET_KEY=xxx

JSON file:
    {
        "host": "s3.example.com",
        "port": 9000,
        "use_tls": true,
        "addressing_style": "path",
        "access_key_id": "xxx",
        "secret_access_key": "xxx"
    }
"""

import json
import logging
import os
from pathlib import Path
from typing import Any, Mapping, Optional

from s3rest.errors import ConfigurationError
from s3rest.models import ServiceConfig

logger = logging.getLogger(__name__)

ADDRESSING_STYLES = ("virtual", "path")

# Required fields in a JSON config file
REQUIRED_FIELDS = [
    "host",
    "access_key_id",
    "secret_access_key",
]

TRUE_VALUES = {"1", "true", "yes", "on"}
FALSE_VALUES = {"0", "false", "no", "off", ""}


def parse_bool(value: Any, name: str) -> bool:
    """Interpret a JSON or environment value as a boolean."""
    if isinstance(value, bool):
        return value
    text = str(value).strip().lower()
    if text in TRUE_VALUES:
        return True
    if text in FALSE_VALUES:
        return False
    raise ConfigurationError(f"Invalid boolean for {name}: {value!r}")


def parse_port(value: Any) -> Optional[int]:
    if value is None or value == "":
        return None
    try:
        return int(value)
    except (TypeError, ValueError) as e:
        raise ConfigurationError(f"Invalid port: {value!r}") from e


def parse_addressing_style(value: Optional[str]) -> bool:
    """Return True for virtual-hosted addressing, False for path-style."""
    style = (value or "virtual").strip().lower()
    if style not in ADDRESSING_STYLES:
        raise ConfigurationError(
            f"Invalid addressing style {value!r}. Expected one of: virtual, path"
        )
    return style == "virtual"


def config_from_mapping(data: Mapping[str, Any]) -> ServiceConfig:
    """Build a ServiceConfig from a parsed JSON object.

    Raises:
        ConfigurationError: If a required field is missing or invalid.
    """
    for field in REQUIRED_FIELDS:
        if field not in data:
            raise ConfigurationError(f"Missing required field '{field}'")

    return ServiceConfig(
        host=data["host"],
        port=parse_port(data.get("port")),
        use_tls=parse_bool(data.get("use_tls", False), "use_tls"),
        virtual_hosted=parse_addressing_style(data.get("addressing_style")),
        access_key_id=data["access_key_id"],
        secret_access_key=data["secret_access_key"],
    )


def load_from_json(config_path: str) -> ServiceConfig:
    """Load the service configuration from a JSON file.

    Args:
        config_path: Path to the JSON file.

    Returns:
        The parsed ServiceConfig.

    Raises:
        ConfigurationError: If the file doesn't exist, contains invalid JSON,
                           or is missing required fields.
    """
    path = Path(config_path)

    if not path.exists():
        raise ConfigurationError(f"Config file not found: {config_path}")

    try:
        with open(path, encoding="utf-8") as f:
            data = json.load(f)
    except json.JSONDecodeError as e:
        raise ConfigurationError(f"Invalid JSON in config file: {e}") from e

    if not isinstance(data, dict):
        raise ConfigurationError("Config file must contain a JSON object")

    logger.debug("Loaded configuration from %s", path)
    return config_from_mapping(data)


def load_from_env() -> ServiceConfig:
    """Load the service configuration from S3_* environment variables.

    Raises:
        ConfigurationError: If a required variable is missing or a value
                           is malformed.
    """
    def require(name: str) -> str:
        value = os.environ.get(name)
        if not value:
            raise ConfigurationError(f"Missing environment variable: {name}")
        return value

    return ServiceConfig(
        host=require("S3_HOST"),
        port=parse_port(os.environ.get("S3_PORT")),
        use_tls=parse_bool(os.environ.get("S3_USE_TLS", ""), "S3_USE_TLS"),
        virtual_hosted=parse_addressing_style(os.environ.get("S3_ADDRESSING_STYLE")),
        access_key_id=require("S3_ACCESS_KEY"),
        secret_access_key=require("S3_SECRET_KEY"),
    )


def has_env_config() -> bool:
    """Check if the S3_HOST environment variable is set."""
    return bool(os.environ.get("S3_HOST"))


def load_config(config_path: str = "s3rest.json") -> ServiceConfig:
    """Load the service configuration with environment priority.

    Priority order:
    1. Environment variables (if S3_HOST is set)
    2. The JSON config file

    Raises:
        ConfigurationError: If neither source provides a configuration.
    """
    if has_env_config():
        logger.debug("Loading configuration from environment")
        return load_from_env()

    if Path(config_path).exists():
        return load_from_json(config_path)

    raise ConfigurationError(
        "No service configured. Set the S3_* environment variables "
        f"or create {config_path}."
    )

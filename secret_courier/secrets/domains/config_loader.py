"""Configuration loader for secret-courier."""
import os
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Mapping, Optional
from urllib.parse import urlparse

import yaml

from .preferences import get_preference

logger = logging.getLogger(__name__)

CONFIG_ENV_VAR = "SECRET_COURIER_CONFIG"
DEFAULT_CONFIG_PATH = Path.home() / ".config" / "secret-courier" / "config.yml"

# Environment variable -> (section, key) in the YAML document
ENV_OVERRIDES = {
    "GCP_PROJECT": ("secret_store", "project_id"),
    "SECRET_STORE_ENDPOINT": ("secret_store", "endpoint"),
    "RETRIEVAL_URL": ("retrieval", "base_url"),
    "EMAIL_USER": ("notification", "sender"),
    "EMAIL_PASS": ("notification", "password"),
    "SMTP_HOST": ("notification", "smtp_host"),
    "SMTP_PORT": ("notification", "smtp_port"),
}


class ConfigError(Exception):
    """Configuration error exception."""
    pass


@dataclass(frozen=True)
class SecretStoreConfig:
    project_id: str
    endpoint: Optional[str] = None
    service_account_path: Optional[str] = None


@dataclass(frozen=True)
class NotificationConfig:
    sender: str
    password: Optional[str] = field(default=None, repr=False)
    smtp_host: str = "smtp.gmail.com"
    smtp_port: int = 465
    use_ssl: bool = True
    subject: str = "Your Secret is Ready"
    dry_run: bool = False


@dataclass(frozen=True)
class CourierConfig:
    """Validated runtime configuration, built once at startup."""
    secret_store: SecretStoreConfig
    retrieval_url: str
    notification: NotificationConfig


def _get_config_path() -> Optional[str]:
    """
    Locate the config file.

    Priority order:
    1. SECRET_COURIER_CONFIG environment variable
    2. User preference (stored in ~/.config/secret-courier/preferences.json)
    3. Default location: ~/.config/secret-courier/config.yml

    Returns:
        Absolute path to the config file, or None when no file exists

    Raises:
        ConfigError: If SECRET_COURIER_CONFIG points at a missing file
    """
    env_path = os.getenv(CONFIG_ENV_VAR)
    if env_path:
        if not Path(env_path).is_file():
            raise ConfigError(f"{CONFIG_ENV_VAR} points to a missing file: {env_path}")
        logger.info(f"Using config from {CONFIG_ENV_VAR}: {env_path}")
        return env_path

    config_path_pref = get_preference("config_path")
    if config_path_pref:
        if Path(config_path_pref).is_file():
            logger.info(f"Using config from preference: {config_path_pref}")
            return config_path_pref
        logger.warning(f"Config path from preference doesn't exist: {config_path_pref}")

    if DEFAULT_CONFIG_PATH.is_file():
        logger.info(f"Using default config location: {DEFAULT_CONFIG_PATH}")
        return str(DEFAULT_CONFIG_PATH)

    return None


def _read_yaml(config_path: str) -> Dict[str, Any]:
    try:
        with open(config_path, 'r') as f:
            raw = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigError(f"Failed to parse YAML config at {config_path}: {e}")
    except OSError as e:
        raise ConfigError(f"Failed to read config file at {config_path}: {e}")

    if raw is None:
        return {}
    if not isinstance(raw, dict):
        raise ConfigError(f"Config file at {config_path} must contain a mapping")
    return raw


def _section(raw: Mapping[str, Any], name: str) -> Dict[str, Any]:
    value = raw.get(name) or {}
    if not isinstance(value, dict):
        raise ConfigError(f"'{name}' section must be a mapping")
    return dict(value)


def _as_bool(value: Any, name: str) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, str) and value.strip().lower() in ("1", "true", "yes", "on"):
        return True
    if isinstance(value, str) and value.strip().lower() in ("0", "false", "no", "off"):
        return False
    raise ConfigError(f"'{name}' must be a boolean, got {value!r}")


def build_config(raw: Mapping[str, Any], environ: Optional[Mapping[str, str]] = None) -> CourierConfig:
    """
    Apply environment overrides to a raw config mapping and validate it.

    Args:
        raw: Parsed YAML document (may be empty)
        environ: Environment mapping, defaults to os.environ

    Returns:
        CourierConfig ready for use

    Raises:
        ConfigError: If a required field is missing or a value is invalid
    """
    environ = os.environ if environ is None else environ
    sections = {name: _section(raw, name) for name in ("secret_store", "retrieval", "notification", "authentication")}

    for env_name, (section, key) in ENV_OVERRIDES.items():
        if environ.get(env_name):
            sections[section][key] = environ[env_name]

    store = sections["secret_store"]
    if not store.get("project_id"):
        raise ConfigError(
            "Missing 'secret_store.project_id' in config\n"
            "Set it in the config file or via the GCP_PROJECT environment variable."
        )

    service_account_path = sections["authentication"].get("service_account_path")
    if service_account_path and not os.path.isfile(service_account_path):
        raise ConfigError(f"Service account file not found at: {service_account_path}")

    base_url = sections["retrieval"].get("base_url")
    if not base_url:
        raise ConfigError(
            "Missing 'retrieval.base_url' in config\n"
            "Set it in the config file or via the RETRIEVAL_URL environment variable."
        )
    parsed = urlparse(str(base_url))
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        raise ConfigError(f"'retrieval.base_url' must be an absolute http(s) URL, got {base_url!r}")

    notification = sections["notification"]
    if not notification.get("sender"):
        raise ConfigError(
            "Missing 'notification.sender' in config\n"
            "Set it in the config file or via the EMAIL_USER environment variable."
        )

    try:
        smtp_port = int(notification.get("smtp_port", 465))
    except (TypeError, ValueError):
        raise ConfigError(f"'notification.smtp_port' must be an integer, got {notification.get('smtp_port')!r}")

    return CourierConfig(
        secret_store=SecretStoreConfig(
            project_id=str(store["project_id"]),
            endpoint=store.get("endpoint") or None,
            service_account_path=service_account_path or None,
        ),
        retrieval_url=str(base_url),
        notification=NotificationConfig(
            sender=str(notification["sender"]),
            password=notification.get("password") or None,
            smtp_host=str(notification.get("smtp_host") or "smtp.gmail.com"),
            smtp_port=smtp_port,
            use_ssl=_as_bool(notification.get("use_ssl", True), "notification.use_ssl"),
            subject=str(notification.get("subject") or "Your Secret is Ready"),
            dry_run=_as_bool(notification.get("dry_run", False), "notification.dry_run"),
        ),
    )


def load_config(environ: Optional[Mapping[str, str]] = None) -> CourierConfig:
    """
    Load, merge and validate configuration.

    The config file is optional when the environment supplies every required
    value. The path is resolved on each call, never cached at module level.

    Raises:
        ConfigError: If the file is unreadable or validation fails
    """
    config_path = _get_config_path()
    raw = _read_yaml(config_path) if config_path else {}
    if config_path is None:
        logger.info("No config file found, using environment variables only")

    config = build_config(raw, environ)
    logger.info(f"Configuration loaded for project {config.secret_store.project_id}")
    logger.debug(f"Retrieval URL: {config.retrieval_url}")
    return config

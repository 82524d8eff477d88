"""Application configuration — defaults, a YAML file and the environment resolved into a BotConfig.

Sources are merged in increasing precedence: built-in defaults, an optional
YAML config file, then the environment.  Reads ``VKTEAMS_BOT_API_TOKEN``,
``VKTEAMS_BOT_API_URL``, ``VKTEAMS_BOT_TIMEOUT_MS`` and
``VKTEAMS_BOT_LOG_LEVEL``, after loading a
``.env`` file via ``python-dotenv``.  Values set in the real environment win
over the ``.env`` file.  The SDK itself never reads the environment; it only
receives the :class:`~vkteams.session.BotConfig` built here.
"""

# ── stdlib ───────────────────────────────────────────────────────────────────
import os
from typing import Any, Mapping, Optional

# ── third-party ──────────────────────────────────────────────────────────────
import yaml
from dotenv import load_dotenv

# ── core / sdk ───────────────────────────────────────────────────────────────
from core.logger import VKTeamsLogger
from vkteams.exceptions import ConfigError
from vkteams.session import DEFAULT_API_URL, DEFAULT_TIMEOUT_MS, LOG_LEVELS, BotConfig

logger = VKTeamsLogger.get_logger()

ENV_VARS: dict[str, str] = {
    "token": "VKTEAMS_BOT_API_TOKEN",
    "api_url": "VKTEAMS_BOT_API_URL",
    "timeout_ms": "VKTEAMS_BOT_TIMEOUT_MS",
    "log_level": "VKTEAMS_BOT_LOG_LEVEL",
}

# Mapping keys accepted from mappings and YAML files: wire-style, snake_case
# and kebab-case.
_KEY_ALIASES: dict[str, str] = {
    "token": "token",
    "botToken": "token",
    "bot_token": "token",
    "bot-token": "token",
    "apiUrl": "api_url",
    "api_url": "api_url",
    "api-url": "api_url",
    "timeoutMs": "timeout_ms",
    "timeout_ms": "timeout_ms",
    "timeout-ms": "timeout_ms",
    "logLevel": "log_level",
    "log_level": "log_level",
    "log-level": "log_level",
}

DEFAULTS: dict[str, Any] = {
    "token": "",
    "api_url": DEFAULT_API_URL,
    "timeout_ms": DEFAULT_TIMEOUT_MS,
    "log_level": "info",
}


# ── Helper functions (private) ───────────────────────────────────────────────


def _parse_timeout(raw: Any) -> Optional[int]:
    """Return *raw* as a positive int, or ``None`` when it is not one."""
    if isinstance(raw, bool):
        return None
    try:
        value = int(raw)
    except (TypeError, ValueError):
        return None
    return value if value > 0 else None


def _normalize(mapping: Mapping[str, Any]) -> dict[str, Any]:
    """Map recognised keys of *mapping* onto BotConfig field names, dropping ``None``."""
    values: dict[str, Any] = {}
    for key, value in mapping.items():
        target = _KEY_ALIASES.get(key)
        if target is not None and value is not None:
            values[target] = value
    return values


# ── Public API ───────────────────────────────────────────────────────────────


def validate_config(values: Mapping[str, Any]) -> BotConfig:
    """Check resolved *values* and freeze them into a :class:`BotConfig`.

    Raises:
        ConfigError: Listing every invalid field in ``problems``.
    """
    problems: dict[str, str] = {}

    token = values.get("token")
    if not isinstance(token, str) or not token.strip():
        problems["token"] = "bot token is required"

    api_url = values.get("api_url")
    if not isinstance(api_url, str) or not api_url.strip():
        problems["api_url"] = "api url must be a non-empty string"

    timeout_ms = _parse_timeout(values.get("timeout_ms"))
    if timeout_ms is None:
        problems["timeout_ms"] = "timeout must be a positive integer (milliseconds)"

    log_level = str(values.get("log_level", "")).lower()
    if log_level not in LOG_LEVELS:
        problems["log_level"] = f"log level must be one of {', '.join(LOG_LEVELS)}"

    if problems:
        raise ConfigError("Invalid configuration", problems=problems)

    return BotConfig(token=token, api_url=api_url, timeout_ms=timeout_ms, log_level=log_level)


def config_from_mapping(mapping: Mapping[str, Any]) -> BotConfig:
    """Merge a plain mapping over the defaults and validate it."""
    return validate_config({**DEFAULTS, **_normalize(mapping)})


def load_config_from_file(path: str) -> dict[str, Any]:
    """Read a YAML config file into BotConfig field names.

    A missing, unreadable or malformed file yields ``{}`` and a warning, so
    the remaining sources still apply.
    """
    if not os.path.exists(path):
        logger.warning("Config file not found", extra={"config_file": path})
        return {}
    try:
        with open(path, encoding="utf-8") as fh:
            data = yaml.safe_load(fh)
    except (OSError, yaml.YAMLError) as exc:
        logger.warning("Failed to load config from file", extra={"config_file": path, "error": str(exc)})
        return {}

    if data is None:
        return {}
    if not isinstance(data, Mapping):
        logger.warning("Config file must hold a mapping", extra={"config_file": path, "found": type(data).__name__})
        return {}
    return _normalize(data)


def load_config_from_env() -> dict[str, str]:
    """Collect the ``VKTEAMS_BOT_*`` variables that are set."""
    return {key: os.environ[var] for key, var in ENV_VARS.items() if os.environ.get(var)}


def load_config(env_file: Optional[str] = None, config_file: Optional[str] = None) -> BotConfig:
    """Merge defaults, *config_file* (YAML) and the environment, then validate.

    ``.env`` (or *env_file*) is loaded into the environment first; variables
    already set in the real environment win over it.

    Raises:
        ConfigError: If the token is missing or any value is invalid.
    """
    load_dotenv(env_file)
    file_values = load_config_from_file(config_file) if config_file else {}
    values = {**DEFAULTS, **file_values, **load_config_from_env()}
    try:
        config = validate_config(values)
    except ConfigError as exc:
        logger.error("Configuration invalid", extra={"problems": exc.problems})
        raise

    logger.info(
        "Configuration loaded",
        extra={"api_url": config.api_url, "timeout_ms": config.timeout_ms, "log_level": config.log_level},
    )
    return config

"""Provides functions for loading and accessing configuration settings.

Supports loading from a YAML configuration file (~/.sheetsguard/config.yaml),
.env files and environment variables, and builds the typed policy objects
(RetryPolicy, CacheConfig, ...) consumed by the decorator stack.
"""

import logging
import os
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

import yaml
from dotenv import load_dotenv

from sheetsguard.domain.models.policies import (
    AdaptiveLimiterConfig,
    CacheConfig,
    RetryPolicy,
    TokenBucketConfig,
)

logger = logging.getLogger(__name__)

# --- Configuration Constants ---
DEFAULT_CONFIG_DIR = Path.home() / ".sheetsguard"
DEFAULT_CONFIG_FILE = DEFAULT_CONFIG_DIR / "config.yaml"
ENV_FILE_NAME = ".env"
ENV_PREFIX = "SHEETSGUARD_"

RATE_LIMIT_STRATEGIES = ("none", "adaptive", "token_bucket")
TRUE_STRINGS = ("true", "yes", "on", "1")
FALSE_STRINGS = ("false", "no", "off", "0")

# --- Global Configuration Store ---
_config: Dict[str, Any] = {}
_overrides: Dict[str, Any] = {}
_loaded = False


def flatten_config(data: Mapping[str, Any], prefix: str = "") -> Dict[str, Any]:
    """Turns nested YAML mappings into dotted keys: {'retry': {'max_attempts': 5}} -> {'retry.max_attempts': 5}."""
    flat: Dict[str, Any] = {}
    for key, value in data.items():
        full_key = f"{prefix}{key}"
        if isinstance(value, Mapping):
            flat.update(flatten_config(value, prefix=f"{full_key}."))
        else:
            flat[full_key] = value
    return flat


def env_var_name(key: str) -> str:
    """'retry.max_attempts' -> 'SHEETSGUARD_RETRY_MAX_ATTEMPTS'."""
    return f"{ENV_PREFIX}{key.upper().replace('.', '_')}"


def _coerce(value: str) -> Any:
    """Converts environment strings to bools and numbers where possible."""
    lowered = value.strip().lower()
    if lowered == 'true':
        return True
    if lowered == 'false':
        return False
    try:
        if '.' in value:
            return float(value)
        return int(value)
    except (ValueError, TypeError):
        return value


def load_configuration(
    config_file: Path = DEFAULT_CONFIG_FILE,
    env_file: Optional[Path] = None,
    force: bool = False,
) -> None:
    """Loads configuration from environment, .env file, and YAML file.

    Priority order (highest to lowest):
    1. Overrides (set_config_overrides, e.g. CLI flags)
    2. Environment Variables
    3. .env file
    4. YAML configuration file
    5. Default values of the accessor functions below

    Args:
        config_file: Path to the YAML configuration file.
        env_file: Path to the .env file (searches upwards from cwd if None).
        force: Reload even if configuration was already loaded.
    """
    global _config, _loaded
    if _loaded and not force:
        logger.debug("Configuration already loaded.")
        return

    _config = {}

    # 1. YAML file (lowest priority)
    if config_file.exists():
        try:
            with open(config_file, 'r', encoding='utf-8') as f:
                yaml_config = yaml.safe_load(f)
            if isinstance(yaml_config, dict):
                _config.update(flatten_config(yaml_config))
                logger.info(f"Loaded configuration from YAML: {config_file}")
            elif yaml_config is not None:
                logger.warning(f"YAML config file {config_file} did not contain a dictionary.")
        except (OSError, yaml.YAMLError) as e:
            logger.error(f"Failed to load or parse YAML config {config_file}: {e}")
    else:
        logger.debug(f"YAML config file not found: {config_file}")

    # 2. .env file; override=False so real environment variables win
    dotenv_path = env_file or find_dotenv_path()
    if dotenv_path:
        if load_dotenv(dotenv_path=dotenv_path, override=False):
            logger.info(f"Loaded environment variables from: {dotenv_path}")
    else:
        logger.debug("No .env file found at or above current directory.")

    # 3. Environment variables are read lazily in get_config
    _loaded = True


def find_dotenv_path() -> Optional[Path]:
    """Searches for the .env file upwards from the current directory."""
    cwd = Path.cwd()
    for path in [cwd] + list(cwd.parents):
        env_path = path / ENV_FILE_NAME
        if env_path.is_file():
            return env_path
    return None


def get_config(key: str, default: Any = None) -> Any:
    """Get a configuration value by dotted key (e.g. 'cache.ttl_seconds')."""
    if key in _overrides:
        return _overrides[key]

    env_key = env_var_name(key)
    if env_key in os.environ:
        return _coerce(os.environ[env_key])

    if key in _config:
        return _config[key]

    return default


def set_config_overrides(config_dict: Dict[str, Any]) -> None:
    """Overrides configuration values with the highest priority (used for CLI flags)."""
    _overrides.update(config_dict)
    logger.debug(f"Set configuration overrides: {config_dict}")


def clear_config_overrides() -> None:
    """Drops every override set with set_config_overrides."""
    _overrides.clear()
    logger.debug("Cleared configuration overrides")


def set_config_for_testing(config_dict: Dict[str, Any]) -> None:
    """Overrides configuration values (highest priority) for tests."""
    set_config_overrides(config_dict)


def clear_test_config() -> None:
    """Clear all testing configuration values."""
    clear_config_overrides()


def _to_bool(key: str, default: bool) -> bool:
    """Reads a flag that may come from YAML (bool) or the environment (string)."""
    value = get_config(key, default)
    if isinstance(value, bool):
        return value
    lowered = str(value).strip().lower()
    if lowered in TRUE_STRINGS:
        return True
    if lowered in FALSE_STRINGS:
        return False
    raise ValueError(
        f"Invalid boolean for '{key}': '{value}'. Use one of: {', '.join(TRUE_STRINGS + FALSE_STRINGS)}."
    )


# --- Typed accessors ---

def get_retry_policy() -> RetryPolicy:
    defaults = RetryPolicy()
    return RetryPolicy(
        max_attempts=int(get_config('retry.max_attempts', defaults.max_attempts)),
        initial_delay_ms=float(get_config('retry.initial_delay_ms', defaults.initial_delay_ms)),
        max_delay_ms=float(get_config('retry.max_delay_ms', defaults.max_delay_ms)),
    )


def get_cache_config() -> CacheConfig:
    defaults = CacheConfig()
    return CacheConfig(
        ttl_seconds=float(get_config('cache.ttl_seconds', defaults.ttl_seconds)),
        max_entries=int(get_config('cache.max_entries', defaults.max_entries)),
    )


def is_cache_enabled() -> bool:
    return _to_bool('cache.enabled', True)


def get_token_bucket_config() -> TokenBucketConfig:
    defaults = TokenBucketConfig()
    return TokenBucketConfig(
        max_tokens=float(get_config('rate_limit.max_tokens', defaults.max_tokens)),
        refill_rate=float(get_config('rate_limit.refill_rate', defaults.refill_rate)),
    )


def get_adaptive_limiter_config() -> AdaptiveLimiterConfig:
    defaults = AdaptiveLimiterConfig()
    return AdaptiveLimiterConfig(
        window_seconds=float(get_config('rate_limit.window_seconds', defaults.window_seconds)),
        max_requests_per_window=int(
            get_config('rate_limit.max_requests_per_window', defaults.max_requests_per_window)
        ),
    )


def get_rate_limit_strategy() -> str:
    strategy = str(get_config('rate_limit.strategy', 'adaptive')).strip().lower().replace('-', '_')
    if strategy not in RATE_LIMIT_STRATEGIES:
        raise ValueError(
            f"Unknown rate limit strategy '{strategy}'. Choose one of: {', '.join(RATE_LIMIT_STRATEGIES)}."
        )
    return strategy


def is_metrics_enabled() -> bool:
    return _to_bool('metrics.enabled', True)


def get_credentials_path() -> Optional[str]:
    """Service-account key file; GOOGLE_APPLICATION_CREDENTIALS is the fallback."""
    path = get_config('credentials.path') or os.environ.get('GOOGLE_APPLICATION_CREDENTIALS')
    return str(path) if path else None

import os

import pytest

from sheetsguard.domain.models.policies import CacheConfig, RetryPolicy
from sheetsguard.infrastructure.config import settings


@pytest.fixture
def empty_env_file(tmp_path):
    path = tmp_path / "empty.env"
    path.write_text("", encoding="utf-8")
    return path


@pytest.fixture
def config_yaml(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text(
        "retry:\n"
        "  max_attempts: 5\n"
        "  initial_delay_ms: 200\n"
        "cache:\n"
        "  ttl_seconds: 30\n"
        "  enabled: false\n"
        "rate_limit:\n"
        "  strategy: token_bucket\n",
        encoding="utf-8",
    )
    return path


@pytest.fixture(autouse=True)
def fresh_config(tmp_path, empty_env_file):
    settings.load_configuration(config_file=tmp_path / "missing.yaml", env_file=empty_env_file, force=True)
    yield
    settings.load_configuration(config_file=tmp_path / "missing.yaml", env_file=empty_env_file, force=True)


def test_flatten_config():
    assert settings.flatten_config({"a": {"b": 1, "c": {"d": 2}}, "e": 3}) == {"a.b": 1, "a.c.d": 2, "e": 3}


def test_env_var_name():
    assert settings.env_var_name("retry.max_attempts") == "SHEETSGUARD_RETRY_MAX_ATTEMPTS"


def test_defaults_without_any_source():
    assert settings.get_retry_policy() == RetryPolicy()
    assert settings.get_cache_config() == CacheConfig()
    assert settings.is_cache_enabled() is True
    assert settings.is_metrics_enabled() is True
    assert settings.get_rate_limit_strategy() == "adaptive"


def test_yaml_values(config_yaml, empty_env_file):
    settings.load_configuration(config_file=config_yaml, env_file=empty_env_file, force=True)
    policy = settings.get_retry_policy()
    assert policy.max_attempts == 5
    assert policy.initial_delay_ms == 200
    assert policy.max_delay_ms == 10000
    assert settings.get_cache_config().ttl_seconds == 30
    assert settings.is_cache_enabled() is False
    assert settings.get_rate_limit_strategy() == "token_bucket"


def test_environment_overrides_yaml(config_yaml, empty_env_file, monkeypatch):
    settings.load_configuration(config_file=config_yaml, env_file=empty_env_file, force=True)
    monkeypatch.setenv("SHEETSGUARD_RETRY_MAX_ATTEMPTS", "7")
    monkeypatch.setenv("SHEETSGUARD_CACHE_ENABLED", "true")
    assert settings.get_retry_policy().max_attempts == 7
    assert settings.is_cache_enabled() is True


def test_dotenv_file_is_loaded_without_overriding_environment(tmp_path, monkeypatch):
    env_file = tmp_path / ".env"
    env_file.write_text(
        "SHEETSGUARD_CACHE_MAX_ENTRIES=12\nSHEETSGUARD_RETRY_MAX_ATTEMPTS=9\n", encoding="utf-8"
    )
    monkeypatch.setenv("SHEETSGUARD_RETRY_MAX_ATTEMPTS", "4")
    try:
        settings.load_configuration(config_file=tmp_path / "missing.yaml", env_file=env_file, force=True)
        assert settings.get_cache_config().max_entries == 12
        assert settings.get_retry_policy().max_attempts == 4
    finally:
        os.environ.pop("SHEETSGUARD_CACHE_MAX_ENTRIES", None)


def test_test_overrides_win(monkeypatch):
    monkeypatch.setenv("SHEETSGUARD_RATE_LIMIT_STRATEGY", "none")
    settings.set_config_for_testing({"rate_limit.strategy": "token-bucket"})
    assert settings.get_rate_limit_strategy() == "token_bucket"
    settings.clear_test_config()
    assert settings.get_rate_limit_strategy() == "none"


def test_unknown_strategy_is_rejected():
    settings.set_config_for_testing({"rate_limit.strategy": "leaky"})
    with pytest.raises(ValueError):
        settings.get_rate_limit_strategy()


def test_invalid_values_fail_in_policy_validation():
    settings.set_config_for_testing({"retry.max_attempts": 0})
    with pytest.raises(ValueError):
        settings.get_retry_policy()


def test_credentials_fall_back_to_google_variable(monkeypatch):
    monkeypatch.delenv("SHEETSGUARD_CREDENTIALS_PATH", raising=False)
    monkeypatch.setenv("GOOGLE_APPLICATION_CREDENTIALS", "/keys/sa.json")
    assert settings.get_credentials_path() == "/keys/sa.json"
    settings.set_config_for_testing({"credentials.path": "/keys/other.json"})
    assert settings.get_credentials_path() == "/keys/other.json"


def test_load_is_idempotent_unless_forced(config_yaml, tmp_path, empty_env_file):
    settings.load_configuration(config_file=config_yaml, env_file=empty_env_file)
    assert settings.get_retry_policy().max_attempts == 3
    settings.load_configuration(config_file=config_yaml, env_file=empty_env_file, force=True)
    assert settings.get_retry_policy().max_attempts == 5


def test_config_overrides_win_over_environment(monkeypatch):
    monkeypatch.setenv("SHEETSGUARD_CACHE_ENABLED", "true")
    settings.set_config_overrides({"cache.enabled": False})
    assert settings.is_cache_enabled() is False
    settings.clear_config_overrides()
    assert settings.is_cache_enabled() is True


@pytest.mark.parametrize("raw, expected", [
    ("off", False), ("no", False), ("0", False), ("FALSE", False),
    ("on", True), ("yes", True), ("1", True), ("True", True),
])
def test_boolean_flags_from_environment(monkeypatch, raw, expected):
    monkeypatch.setenv("SHEETSGUARD_CACHE_ENABLED", raw)
    monkeypatch.setenv("SHEETSGUARD_METRICS_ENABLED", raw)
    assert settings.is_cache_enabled() is expected
    assert settings.is_metrics_enabled() is expected


def test_boolean_flag_from_yaml_string(tmp_path, empty_env_file):
    path = tmp_path / "flags.yaml"
    path.write_text("metrics:\n  enabled: 'off'\n", encoding="utf-8")
    settings.load_configuration(config_file=path, env_file=empty_env_file, force=True)
    assert settings.is_metrics_enabled() is False


def test_unrecognised_boolean_is_rejected(monkeypatch):
    monkeypatch.setenv("SHEETSGUARD_CACHE_ENABLED", "maybe")
    with pytest.raises(ValueError, match="cache.enabled"):
        settings.is_cache_enabled()

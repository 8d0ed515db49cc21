"""Tests for configuration management."""

import pytest

from mdrrmo.core.config import (
    BackendConfig,
    CacheConfig,
    ConfigManager,
    MdrrmoConfig,
    load_config_from_env,
)
from mdrrmo.core.exceptions import ConfigError


class TestDefaults:
    def test_cache_defaults(self):
        config = CacheConfig()

        assert config.default_ttl == 300
        assert config.persistent_ttl == 86400
        assert config.cleanup_interval == 600

    def test_round_trip_dict(self):
        config = MdrrmoConfig(backend=BackendConfig(url="https://a.supabase.co", anon_key="eyJ"))

        assert MdrrmoConfig.from_dict(config.to_dict()) == config

    def test_unknown_field_rejected(self):
        with pytest.raises(ConfigError):
            MdrrmoConfig.from_dict({"cache": {"bogus": 1}})


class TestEnvironment:
    def test_load_from_env(self):
        env = {
            "SUPABASE_URL": "https://a.supabase.co",
            "SUPABASE_ANON_KEY": "eyJabc",
            "MDRRMO_CACHE_TTL": "60",
            "MDRRMO_CACHE_PATH": "/tmp/cache.duckdb",
            "MDRRMO_LOGGING_LEVEL": "DEBUG",
        }

        config = load_config_from_env(env)

        assert config == {
            "cache": {"default_ttl": 60.0, "persistent_path": "/tmp/cache.duckdb"},
            "backend": {"url": "https://a.supabase.co", "anon_key": "eyJabc"},
            "logging": {"level": "DEBUG"},
        }

    def test_empty_env(self):
        assert load_config_from_env({}) == {}

    def test_invalid_number(self):
        with pytest.raises(ConfigError, match="MDRRMO_CACHE_TTL"):
            load_config_from_env({"MDRRMO_CACHE_TTL": "soon"})


class TestConfigManager:
    def test_missing_file_uses_defaults(self, tmp_path):
        manager = ConfigManager(tmp_path / "config.toml", environ={})

        assert manager.get_config() == MdrrmoConfig()

    def test_save_and_reload(self, tmp_path):
        path = tmp_path / "config.toml"
        manager = ConfigManager(path, environ={})
        manager.update_config(cache={"default_ttl": 120}, backend={"url": "https://a.supabase.co"})
        manager.save_config()

        reloaded = ConfigManager(path, environ={}).get_config()

        assert reloaded.cache.default_ttl == 120
        assert reloaded.backend.url == "https://a.supabase.co"

    def test_environment_overrides_file(self, tmp_path):
        path = tmp_path / "config.toml"
        path.write_text('[backend]\nurl = "https://file.supabase.co"\n')

        manager = ConfigManager(path, environ={"SUPABASE_URL": "https://env.supabase.co"})

        assert manager.get_config().backend.url == "https://env.supabase.co"

    def test_corrupt_file_falls_back_to_defaults(self, tmp_path):
        path = tmp_path / "config.toml"
        path.write_text("this is = = not toml")

        manager = ConfigManager(path, environ={})

        assert manager.get_config() == MdrrmoConfig()

"""Configuration management for the mdrrmo core."""

import os
import tomllib
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any

from loguru import logger

from mdrrmo.core.exceptions import ConfigError

DEFAULT_HOME = Path.home() / ".mdrrmo"


@dataclass
class CacheConfig:
    """Cache configuration. Durations are in seconds."""

    default_ttl: float = 5 * 60
    persistent_ttl: float = 24 * 60 * 60
    cleanup_interval: float = 10 * 60
    persistent_path: str = str(DEFAULT_HOME / "cache.duckdb")


@dataclass
class BackendConfig:
    """Backend (Supabase) connection configuration."""

    url: str = ""
    anon_key: str = ""
    timeout: float = 8.0
    max_retries: int = 3
    retry_base_delay: float = 1.0
    application_name: str = "mdrrmo-pio-duran"


@dataclass
class LoggingConfig:
    """Logging configuration."""

    level: str = "INFO"
    file: str | None = None


@dataclass
class MdrrmoConfig:
    """Top level configuration."""

    cache: CacheConfig = field(default_factory=CacheConfig)
    backend: BackendConfig = field(default_factory=BackendConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    @classmethod
    def from_dict(cls, config_dict: dict[str, Any]) -> "MdrrmoConfig":
        """Build a configuration from a (possibly partial) dictionary."""
        try:
            return cls(
                cache=CacheConfig(**config_dict.get("cache", {})),
                backend=BackendConfig(**config_dict.get("backend", {})),
                logging=LoggingConfig(**config_dict.get("logging", {})),
            )
        except TypeError as e:
            raise ConfigError(f"Invalid configuration: {e}") from e

    def to_dict(self) -> dict[str, Any]:
        return {
            "cache": asdict(self.cache),
            "backend": asdict(self.backend),
            "logging": {k: v for k, v in asdict(self.logging).items() if v is not None},
        }


class ConfigManager:
    """Loads, updates and saves the TOML configuration file."""

    def __init__(self, config_path: Path | None = None, environ: dict[str, str] | None = None):
        """Initialize the manager.

        Args:
            config_path: Configuration file path, defaults to ``~/.mdrrmo/config.toml``
            environ: Environment mapping overriding file values, defaults to ``os.environ``
        """
        self.config_path = config_path or DEFAULT_HOME / "config.toml"
        self.environ = os.environ if environ is None else environ
        self.config = self._load_config()

    def _load_config(self) -> MdrrmoConfig:
        config_dict: dict[str, Any] = {}
        if self.config_path.exists():
            try:
                with open(self.config_path, "rb") as f:
                    config_dict = tomllib.load(f)
            except (OSError, tomllib.TOMLDecodeError) as e:
                logger.warning("Failed to load config from {}: {}", self.config_path, e)
                config_dict = {}

        _deep_update(config_dict, load_config_from_env(self.environ))
        return MdrrmoConfig.from_dict(config_dict)

    def get_config(self) -> MdrrmoConfig:
        return self.config

    def update_config(self, **updates: Any) -> None:
        """Deep-merge ``updates`` into the current configuration."""
        config_dict = self.config.to_dict()
        _deep_update(config_dict, updates)
        self.config = MdrrmoConfig.from_dict(config_dict)

    def save_config(self) -> None:
        """Write the current configuration to ``config_path``."""
        import tomli_w

        self.config_path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.config_path, "wb") as f:
            tomli_w.dump(self.config.to_dict(), f)


def _deep_update(d: dict[str, Any], u: dict[str, Any]) -> dict[str, Any]:
    for k, v in u.items():
        if isinstance(v, dict):
            d[k] = _deep_update(d.get(k, {}), v)
        else:
            d[k] = v
    return d


def get_default_config() -> MdrrmoConfig:
    return MdrrmoConfig()


def _read_float(environ: dict[str, str], name: str) -> float | None:
    raw = environ.get(name)
    if raw is None:
        return None
    try:
        return float(raw)
    except ValueError as e:
        raise ConfigError(f"{name} must be a number, got {raw!r}", {"variable": name}) from e


def load_config_from_env(environ: dict[str, str] | None = None) -> dict[str, Any]:
    """Load configuration overrides from environment variables."""
    env = os.environ if environ is None else environ
    config: dict[str, Any] = {}

    cache_config: dict[str, Any] = {}
    for name, key in (
        ("MDRRMO_CACHE_TTL", "default_ttl"),
        ("MDRRMO_CACHE_PERSISTENT_TTL", "persistent_ttl"),
        ("MDRRMO_CACHE_CLEANUP_INTERVAL", "cleanup_interval"),
    ):
        value = _read_float(env, name)
        if value is not None:
            cache_config[key] = value
    if env.get("MDRRMO_CACHE_PATH"):
        cache_config["persistent_path"] = env["MDRRMO_CACHE_PATH"]
    if cache_config:
        config["cache"] = cache_config

    backend_config: dict[str, Any] = {}
    if env.get("SUPABASE_URL") is not None:
        backend_config["url"] = env["SUPABASE_URL"]
    if env.get("SUPABASE_ANON_KEY") is not None:
        backend_config["anon_key"] = env["SUPABASE_ANON_KEY"]
    timeout = _read_float(env, "MDRRMO_BACKEND_TIMEOUT")
    if timeout is not None:
        backend_config["timeout"] = timeout
    if backend_config:
        config["backend"] = backend_config

    logging_config: dict[str, Any] = {}
    if env.get("MDRRMO_LOGGING_LEVEL") is not None:
        logging_config["level"] = env["MDRRMO_LOGGING_LEVEL"]
    if env.get("MDRRMO_LOGGING_FILE") is not None:
        logging_config["file"] = env["MDRRMO_LOGGING_FILE"]
    if logging_config:
        config["logging"] = logging_config

    return config

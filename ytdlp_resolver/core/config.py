"""Configuration management with YAML and environment variable support"""

import dataclasses
import os
import threading
from dataclasses import dataclass
from typing import Any, Dict, Optional, Tuple, Type

import yaml
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, PydanticBaseSettingsSource, SettingsConfigDict

DEFAULT_PROCESS_TIMEOUT_MS = 30000


class BaseConfigSection(BaseSettings):
    """Base class for all config sections with correct environment variable precedence.

    This class customizes the settings source priority to ensure that:
    1. Environment variables have highest priority
    2. Init kwargs (YAML data) have second priority
    3. Default values have lowest priority
    """

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: Type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> Tuple[PydanticBaseSettingsSource, ...]:
        """Customize settings source priority: env vars > init kwargs > defaults."""
        return (env_settings, init_settings, dotenv_settings, file_secret_settings)


@dataclass(frozen=True)
class ResolverSettings:
    """Immutable snapshot of the resolver configuration.

    One snapshot is taken at the start of each resolution and threaded
    through every step, so reconfiguration never affects a call in flight.

    Attributes:
        tool_path: Explicit path to the yt-dlp binary (None = auto-detect)
        install_dir: Directory to install yt-dlp into (None = platform default)
        auto_download: Whether to download yt-dlp when it is missing
        process_timeout_ms: Per-invocation timeout in milliseconds
    """

    tool_path: Optional[str] = None
    install_dir: Optional[str] = None
    auto_download: bool = True
    process_timeout_ms: int = DEFAULT_PROCESS_TIMEOUT_MS

    @property
    def process_timeout(self) -> float:
        """Per-invocation timeout in seconds."""
        return self.process_timeout_ms / 1000.0

    def merged(self, options: "ResolverOptions") -> "ResolverSettings":
        """Return a copy with every non-None option applied."""
        changes: Dict[str, Any] = {}
        if options.tool_path is not None:
            changes["tool_path"] = options.tool_path
        if options.install_dir is not None:
            changes["install_dir"] = options.install_dir
        if options.auto_download is not None:
            changes["auto_download"] = options.auto_download
        if options.process_timeout_ms is not None and options.process_timeout_ms > 0:
            changes["process_timeout_ms"] = options.process_timeout_ms
        return dataclasses.replace(self, **changes)


@dataclass(frozen=True)
class ResolverOptions:
    """Partial configuration update; None fields leave the current value unchanged."""

    tool_path: Optional[str] = None
    install_dir: Optional[str] = None
    auto_download: Optional[bool] = None
    process_timeout_ms: Optional[int] = None


class SettingsHolder:
    """Thread-safe holder for the mutable resolver configuration.

    Readers receive an immutable :class:`ResolverSettings` snapshot. The
    holder also owns the install latch, which is set once per holder
    lifetime so a failed install is never retried automatically.
    """

    def __init__(self, settings: Optional[ResolverSettings] = None):
        self._lock = threading.Lock()
        self._settings = settings or ResolverSettings()
        self._download_attempted = False

    def snapshot(self) -> ResolverSettings:
        with self._lock:
            return self._settings

    def configure(self, options: ResolverOptions) -> ResolverSettings:
        """Merge *options* into the current settings and return the new snapshot."""
        with self._lock:
            self._settings = self._settings.merged(options)
            return self._settings

    def set_tool_path(self, tool_path: Optional[str]) -> ResolverSettings:
        """Replace the tool path override (None restores auto-detection)."""
        with self._lock:
            self._settings = dataclasses.replace(self._settings, tool_path=tool_path)
            return self._settings

    @property
    def download_attempted(self) -> bool:
        with self._lock:
            return self._download_attempted

    def claim_download_attempt(self) -> bool:
        """Atomically set the install latch.

        Returns:
            True if this caller set the latch, False if it was already set
        """
        with self._lock:
            if self._download_attempted:
                return False
            self._download_attempted = True
            return True


class ResolverConfig(BaseConfigSection):
    """yt-dlp resolver configuration"""

    tool_path: Optional[str] = None
    install_dir: Optional[str] = None
    auto_download: bool = True
    process_timeout_ms: int = DEFAULT_PROCESS_TIMEOUT_MS

    model_config = SettingsConfigDict(env_prefix="YTDLP_RESOLVER_")

    @field_validator("process_timeout_ms")
    @classmethod
    def validate_timeout(cls, v: int) -> int:
        if v <= 0:
            raise ValueError("process_timeout_ms must be greater than 0")
        return v

    def to_settings(self) -> ResolverSettings:
        return ResolverSettings(
            tool_path=self.tool_path,
            install_dir=self.install_dir,
            auto_download=self.auto_download,
            process_timeout_ms=self.process_timeout_ms,
        )


class LoggingConfig(BaseConfigSection):
    """Logging configuration"""

    level: str = "INFO"
    format: str = "json"

    model_config = SettingsConfigDict(env_prefix="YTDLP_RESOLVER_LOGGING_")

    @field_validator("level")
    @classmethod
    def validate_level(cls, v: str) -> str:
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        v_upper = v.upper()
        if v_upper not in valid_levels:
            raise ValueError(f"level must be one of {valid_levels}")
        return v_upper

    @field_validator("format")
    @classmethod
    def validate_format(cls, v: str) -> str:
        if v not in ("json", "console"):
            raise ValueError("format must be 'json' or 'console'")
        return v


class MonitoringConfig(BaseConfigSection):
    """Monitoring configuration"""

    metrics_enabled: bool = True

    model_config = SettingsConfigDict(env_prefix="YTDLP_RESOLVER_MONITORING_")


class Config(BaseSettings):
    """Main resolver configuration"""

    resolver: ResolverConfig = Field(default_factory=ResolverConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    monitoring: MonitoringConfig = Field(default_factory=MonitoringConfig)

    model_config = SettingsConfigDict(env_prefix="YTDLP_RESOLVER_")


class ConfigService:
    """Service for loading and managing configuration"""

    def __init__(self, config_path: Optional[str] = None):
        self.config_path = config_path or "config.yaml"
        self._config: Optional[Config] = None

    def load(self) -> Config:
        """Load configuration from YAML file with environment variable overrides.

        Environment variables take precedence over YAML values, which in turn
        take precedence over defaults.
        """
        config_data: Dict[str, Any] = {}

        if os.path.exists(self.config_path):
            with open(self.config_path, "r", encoding="utf-8") as f:
                yaml_data = yaml.safe_load(f)
                if yaml_data:
                    config_data = yaml_data

        resolver = ResolverConfig(**(config_data.get("resolver") or {}))
        logging_config = LoggingConfig(**(config_data.get("logging") or {}))
        monitoring = MonitoringConfig(**(config_data.get("monitoring") or {}))

        self._config = Config(
            resolver=resolver,
            logging=logging_config,
            monitoring=monitoring,
        )

        return self._config

    def validate(self) -> bool:
        """Validate the loaded configuration"""
        if self._config is None:
            raise ValueError("Configuration not loaded. Call load() first.")

        tool_path = self._config.resolver.tool_path
        if tool_path and os.path.isdir(tool_path):
            raise ValueError(f"tool_path points to a directory: {tool_path}")

        return True

    @property
    def config(self) -> Config:
        """Get the loaded configuration"""
        if self._config is None:
            raise ValueError("Configuration not loaded. Call load() first.")
        return self._config

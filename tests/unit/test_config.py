"""Tests for configuration management"""

import threading
from pathlib import Path

import pytest
import yaml

from ytdlp_resolver.core.config import (
    DEFAULT_PROCESS_TIMEOUT_MS,
    ConfigService,
    ResolverOptions,
    ResolverSettings,
    SettingsHolder,
)


class TestConfigService:
    """Test ConfigService functionality"""

    def test_load_from_yaml(self, tmp_path: Path) -> None:
        """Test loading configuration from YAML file"""
        config_file = tmp_path / "config.yaml"
        config_data = {
            "resolver": {"tool_path": "/opt/yt-dlp", "process_timeout_ms": 15000},
            "logging": {"level": "DEBUG", "format": "console"},
        }

        with open(config_file, "w") as f:
            yaml.dump(config_data, f)

        service = ConfigService(str(config_file))
        config = service.load()

        assert config.resolver.tool_path == "/opt/yt-dlp"
        assert config.resolver.process_timeout_ms == 15000
        assert config.logging.level == "DEBUG"
        assert config.logging.format == "console"

    def test_load_with_defaults(self, tmp_path: Path) -> None:
        """Test loading configuration with default values"""
        config_file = tmp_path / "config.yaml"
        config_file.write_text("{}")

        service = ConfigService(str(config_file))
        config = service.load()

        assert config.resolver.tool_path is None
        assert config.resolver.install_dir is None
        assert config.resolver.auto_download is True
        assert config.resolver.process_timeout_ms == DEFAULT_PROCESS_TIMEOUT_MS
        assert config.logging.format == "json"
        assert config.monitoring.metrics_enabled is True

    def test_empty_sections_use_defaults(self, tmp_path: Path) -> None:
        """Test sections present but empty in YAML fall back to defaults"""
        config_file = tmp_path / "config.yaml"
        config_file.write_text("resolver:\nlogging:\n")

        config = ConfigService(str(config_file)).load()

        assert config.resolver.auto_download is True
        assert config.logging.level == "INFO"

    def test_environment_variable_override(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        """Test environment variable overrides YAML configuration"""
        config_file = tmp_path / "config.yaml"
        config_data = {"resolver": {"process_timeout_ms": 15000, "install_dir": "/yaml/dir"}}

        with open(config_file, "w") as f:
            yaml.dump(config_data, f)

        monkeypatch.setenv("YTDLP_RESOLVER_PROCESS_TIMEOUT_MS", "45000")
        monkeypatch.setenv("YTDLP_RESOLVER_AUTO_DOWNLOAD", "false")

        config = ConfigService(str(config_file)).load()

        assert config.resolver.process_timeout_ms == 45000
        assert config.resolver.auto_download is False
        assert config.resolver.install_dir == "/yaml/dir"

    def test_nested_environment_variable_override(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        """Test section-prefixed environment variables"""
        config_file = tmp_path / "config.yaml"
        config_file.write_text("{}")

        monkeypatch.setenv("YTDLP_RESOLVER_LOGGING_LEVEL", "warning")
        monkeypatch.setenv("YTDLP_RESOLVER_MONITORING_METRICS_ENABLED", "false")

        config = ConfigService(str(config_file)).load()

        assert config.logging.level == "WARNING"
        assert config.monitoring.metrics_enabled is False

    def test_validation_timeout_positive(self, tmp_path: Path) -> None:
        """Test process_timeout_ms validation"""
        config_file = tmp_path / "config.yaml"
        with open(config_file, "w") as f:
            yaml.dump({"resolver": {"process_timeout_ms": 0}}, f)

        service = ConfigService(str(config_file))
        with pytest.raises(ValueError, match="process_timeout_ms must be greater than 0"):
            service.load()

    def test_validation_log_level(self, tmp_path: Path) -> None:
        """Test log level validation"""
        config_file = tmp_path / "config.yaml"
        with open(config_file, "w") as f:
            yaml.dump({"logging": {"level": "INVALID"}}, f)

        service = ConfigService(str(config_file))
        with pytest.raises(ValueError, match="level must be one of"):
            service.load()

    def test_validation_log_format(self, tmp_path: Path) -> None:
        """Test log format validation"""
        config_file = tmp_path / "config.yaml"
        with open(config_file, "w") as f:
            yaml.dump({"logging": {"format": "xml"}}, f)

        service = ConfigService(str(config_file))
        with pytest.raises(ValueError, match="format must be"):
            service.load()

    def test_validation_rejects_directory_tool_path(self, tmp_path: Path) -> None:
        """Test validate() rejects a tool_path that is a directory"""
        config_file = tmp_path / "config.yaml"
        with open(config_file, "w") as f:
            yaml.dump({"resolver": {"tool_path": str(tmp_path)}}, f)

        service = ConfigService(str(config_file))
        service.load()

        with pytest.raises(ValueError, match="directory"):
            service.validate()

    def test_validation_passes(self, tmp_path: Path) -> None:
        """Test validate() accepts a default configuration"""
        service = ConfigService(str(tmp_path / "missing.yaml"))
        service.load()

        assert service.validate() is True

    def test_load_nonexistent_file(self) -> None:
        """Test loading when config file doesn't exist uses defaults"""
        service = ConfigService("nonexistent.yaml")
        config = service.load()

        assert config.resolver.auto_download is True
        assert config.logging.level == "INFO"

    def test_config_property_before_load(self) -> None:
        """Test accessing config property before loading raises error"""
        service = ConfigService()

        with pytest.raises(ValueError, match="Configuration not loaded"):
            _ = service.config

    def test_validate_before_load(self) -> None:
        """Test validating before loading raises error"""
        service = ConfigService()

        with pytest.raises(ValueError, match="Configuration not loaded"):
            service.validate()

    def test_to_settings(self, tmp_path: Path) -> None:
        """Test conversion to the immutable settings snapshot"""
        config_file = tmp_path / "config.yaml"
        with open(config_file, "w") as f:
            yaml.dump({"resolver": {"install_dir": "/tools", "process_timeout_ms": 5000}}, f)

        settings = ConfigService(str(config_file)).load().resolver.to_settings()

        assert settings == ResolverSettings(install_dir="/tools", process_timeout_ms=5000)
        assert settings.process_timeout == 5.0


class TestSettingsHolder:
    """Test the thread-safe settings holder"""

    def test_configure_merges_non_none_fields(self) -> None:
        """Test None fields keep their previous value"""
        holder = SettingsHolder(ResolverSettings(tool_path="/a", process_timeout_ms=1000))

        settings = holder.configure(ResolverOptions(install_dir="/b"))

        assert settings.tool_path == "/a"
        assert settings.install_dir == "/b"
        assert settings.process_timeout_ms == 1000

    def test_non_positive_timeout_ignored(self) -> None:
        """Test a zero or negative timeout leaves the current value"""
        holder = SettingsHolder()

        holder.configure(ResolverOptions(process_timeout_ms=0))
        holder.configure(ResolverOptions(process_timeout_ms=-10))

        assert holder.snapshot().process_timeout_ms == DEFAULT_PROCESS_TIMEOUT_MS

    def test_auto_download_can_be_disabled(self) -> None:
        """Test False is applied, not treated as unset"""
        holder = SettingsHolder()

        holder.configure(ResolverOptions(auto_download=False))

        assert holder.snapshot().auto_download is False

    def test_snapshot_is_immutable(self) -> None:
        """Test snapshots are frozen and unaffected by later changes"""
        holder = SettingsHolder()
        before = holder.snapshot()

        holder.set_tool_path("/new/yt-dlp")

        assert before.tool_path is None
        assert holder.snapshot().tool_path == "/new/yt-dlp"
        with pytest.raises(AttributeError):
            before.tool_path = "/other"  # type: ignore[misc]

    def test_download_latch_claimed_once(self) -> None:
        """Test only one of many concurrent claimers wins the install latch"""
        holder = SettingsHolder()
        results = []

        def claim() -> None:
            results.append(holder.claim_download_attempt())

        threads = [threading.Thread(target=claim) for _ in range(20)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert results.count(True) == 1
        assert holder.download_attempted is True

"""Tests for configuration."""

import pytest

from capadapt.config import Config, LogConfig, RuntimeConfig, create_runtime, get_config, reset_config
from capadapt.core.errors import ConfigError
from capadapt.runtime.embedded import EmbeddedRuntime


class TestConfig:
    """Tests for environment-driven configuration."""

    def test_defaults(self, monkeypatch):
        for key in ("CAPADAPT_RUNTIME", "CAPADAPT_RESTRICTED", "CAPADAPT_START_METHOD", "CAPADAPT_LOG_LEVEL"):
            monkeypatch.delenv(key, raising=False)
        config = Config()
        assert config.runtime.kind == "embedded"
        assert config.runtime.restricted is False
        assert config.runtime.start_method is None
        assert config.is_valid()

    def test_environment_overrides(self, monkeypatch):
        monkeypatch.setenv("CAPADAPT_RUNTIME", "PROCESS")
        monkeypatch.setenv("CAPADAPT_RESTRICTED", "true")
        monkeypatch.setenv("CAPADAPT_START_METHOD", "spawn")
        monkeypatch.setenv("CAPADAPT_LOG_LEVEL", "debug")

        config = Config()

        assert config.runtime.kind == "process"
        assert config.runtime.restricted is True
        assert config.runtime.start_method == "spawn"
        assert config.log.level == "DEBUG"

    def test_validate_reports_issues(self, monkeypatch):
        monkeypatch.setenv("CAPADAPT_RUNTIME", "jvm")
        monkeypatch.setenv("CAPADAPT_LOG_FORMAT", "xml")

        issues = Config().validate()

        assert any("CAPADAPT_RUNTIME" in issue for issue in issues)
        assert any("CAPADAPT_LOG_FORMAT" in issue for issue in issues)

    def test_log_dir_override(self, monkeypatch, tmp_path):
        monkeypatch.setenv("CAPADAPT_LOG_DIR", str(tmp_path))
        assert LogConfig().log_dir == tmp_path

    def test_global_config_reset(self):
        reset_config()
        first = get_config()
        assert get_config() is first
        reset_config()
        assert get_config() is not first
        reset_config()


class TestCreateRuntime:
    """Tests for building the configured runtime."""

    def test_embedded(self, monkeypatch, gate, sink):
        monkeypatch.delenv("CAPADAPT_RUNTIME", raising=False)
        monkeypatch.delenv("CAPADAPT_RESTRICTED", raising=False)
        runtime = create_runtime(Config(), gate=gate, sink=sink)
        assert isinstance(runtime, EmbeddedRuntime)
        assert runtime.gate is gate
        runtime.close()

    def test_unknown_kind(self, monkeypatch):
        monkeypatch.delenv("CAPADAPT_RUNTIME", raising=False)
        config = Config(runtime=RuntimeConfig(kind="jvm"))
        with pytest.raises(ConfigError) as exc_info:
            create_runtime(config)
        assert exc_info.value.config_key == "CAPADAPT_RUNTIME"

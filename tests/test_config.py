"""Tests for configuration models and the YAML loader."""

from pathlib import Path

import pytest
from pydantic import ValidationError

from perplexica_search.core.config import (
    AppConfig,
    BatchConfig,
    ClientConfig,
    ConfigError,
    LoggingConfig,
    OptimizationMode,
    load_app_config,
    validate_config_file,
)


class TestModels:
    """Tests for defaults and validation."""

    def test_defaults(self):
        config = AppConfig()

        assert config.client.base_url == "http://localhost:3000"
        assert config.client.mode == OptimizationMode.SPEED
        assert config.batch.delay == 2.0
        assert config.batch.checkpoint_every == 25
        assert config.batch.checkpoint_file is None
        assert config.batch.resume_from is None
        assert config.batch.max_retries == 2
        assert config.batch.verbose is False

    def test_base_url_trailing_slash_removed(self):
        assert ClientConfig(base_url=" http://box:3000/ ").base_url == "http://box:3000"

    def test_empty_base_url_rejected(self):
        with pytest.raises(ValidationError):
            ClientConfig(base_url="  ")

    @pytest.mark.parametrize("field,value", [
        ("delay", -1),
        ("checkpoint_every", 0),
        ("resume_from", 0),
        ("max_retries", -1),
        ("mode", "turbo"),
    ])
    def test_batch_rejects(self, field, value):
        with pytest.raises(ValidationError):
            BatchConfig.model_validate({field: value})

    def test_checkpoint_every_none_disables(self):
        assert BatchConfig(checkpoint_every=None).checkpoint_every is None

    def test_log_level_normalised(self):
        assert LoggingConfig(level="debug").level == "DEBUG"

    def test_unknown_log_level(self):
        with pytest.raises(ValidationError):
            LoggingConfig(level="chatty")


class TestLoader:
    """Tests for load_app_config."""

    def test_missing_file_gives_defaults(self, tmp_path):
        config = load_app_config(tmp_path / "absent.yaml")

        assert config == AppConfig()

    def test_loads_yaml(self, tmp_path):
        path = tmp_path / "perplexica.yaml"
        path.write_text(
            "client:\n"
            "  base_url: http://search.lan:3000/\n"
            "  mode: balanced\n"
            "batch:\n"
            "  delay: 0.5\n"
            "  checkpoint_every: 10\n"
            "  checkpoint_file: out/cp.csv\n",
            encoding="utf-8",
        )

        config = load_app_config(path)

        assert config.client.base_url == "http://search.lan:3000"
        assert config.client.mode == OptimizationMode.BALANCED
        assert config.batch.delay == 0.5
        assert config.batch.checkpoint_every == 10
        assert config.batch.checkpoint_file == Path("out/cp.csv")

    def test_empty_file(self, tmp_path):
        path = tmp_path / "perplexica.yaml"
        path.write_text("", encoding="utf-8")

        assert load_app_config(path) == AppConfig()

    def test_env_var_expansion_default(self, tmp_path):
        path = tmp_path / "perplexica.yaml"
        path.write_text("client:\n  base_url: ${SEARCH_HOST:-http://fallback:3000}\n", encoding="utf-8")

        assert load_app_config(path).client.base_url == "http://fallback:3000"

    def test_env_var_expansion_set(self, tmp_path, monkeypatch):
        monkeypatch.setenv("SEARCH_HOST", "http://from-env:3000")
        path = tmp_path / "perplexica.yaml"
        path.write_text("client:\n  base_url: ${SEARCH_HOST:-http://fallback:3000}\n", encoding="utf-8")

        assert load_app_config(path).client.base_url == "http://from-env:3000"

    def test_url_env_overrides_file(self, tmp_path, monkeypatch):
        """Test PERPLEXICA_URL wins over client.base_url."""
        monkeypatch.setenv("PERPLEXICA_URL", "http://override:3001")
        path = tmp_path / "perplexica.yaml"
        path.write_text("client:\n  base_url: http://file:3000\n  mode: balanced\n", encoding="utf-8")

        config = load_app_config(path)

        assert config.client.base_url == "http://override:3001"
        assert config.client.mode == OptimizationMode.BALANCED

    def test_invalid_values(self, tmp_path):
        path = tmp_path / "perplexica.yaml"
        path.write_text("batch:\n  delay: -3\n", encoding="utf-8")

        with pytest.raises(ConfigError) as exc_info:
            load_app_config(path)

        assert exc_info.value.path == path
        assert "delay" in exc_info.value.details

    def test_invalid_yaml(self, tmp_path):
        path = tmp_path / "perplexica.yaml"
        path.write_text("client: [unclosed\n", encoding="utf-8")

        with pytest.raises(ConfigError, match="Invalid YAML"):
            load_app_config(path)

    def test_non_mapping(self, tmp_path):
        path = tmp_path / "perplexica.yaml"
        path.write_text("- just\n- a list\n", encoding="utf-8")

        with pytest.raises(ConfigError, match="mapping"):
            load_app_config(path)


class TestValidateConfigFile:
    """Tests for validate_config_file."""

    def test_valid(self, tmp_path):
        path = tmp_path / "perplexica.yaml"
        path.write_text("batch:\n  max_retries: 3\n", encoding="utf-8")

        assert validate_config_file(path) == []

    def test_reports_field_locations(self, tmp_path):
        path = tmp_path / "perplexica.yaml"
        path.write_text("batch:\n  max_retries: -1\n  resume_from: 0\n", encoding="utf-8")

        errors = validate_config_file(path)

        assert len(errors) == 2
        assert any(e.startswith("batch.max_retries") for e in errors)
        assert any(e.startswith("batch.resume_from") for e in errors)

    def test_missing_file(self, tmp_path):
        errors = validate_config_file(tmp_path / "absent.yaml")

        assert len(errors) == 1
        assert "not found" in errors[0]

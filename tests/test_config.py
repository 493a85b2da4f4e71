"""
Tests for ThinkingConfig and the sequential_thinking.json loader
"""

import json

import pytest

from sequential_thinking.config import ThinkingConfig
from sequential_thinking.services.config_loader import ConfigLoader


@pytest.fixture
def clean_env(monkeypatch):
    """Remove every SEQTHINK_* variable the loader may set."""
    # setenv first so teardown also removes values the loader writes
    for env_var in [*ConfigLoader.CONFIG_KEY_TO_ENV.values(), "SEQTHINK_PROJECT_ROOT"]:
        monkeypatch.setenv(env_var, "")
        monkeypatch.delenv(env_var)
    return monkeypatch


class TestThinkingConfig:
    """Test defaults, environment variables and validation."""

    def test_defaults(self, clean_env):
        config = ThinkingConfig()

        assert config.max_thoughts_per_session == 100
        assert config.max_branches_per_session == 10
        assert config.session_timeout_seconds == 3600
        assert config.default_export_format == "structured"

    def test_from_env(self, clean_env):
        """Test that environment variables feed the defaults."""
        clean_env.setenv("SEQTHINK_MAX_THOUGHTS", "25")
        clean_env.setenv("SEQTHINK_AUTO_CLEANUP", "false")

        config = ThinkingConfig.from_env()

        assert config.max_thoughts_per_session == 25
        assert config.auto_cleanup is False

    def test_bad_integer_falls_back(self, clean_env):
        clean_env.setenv("SEQTHINK_MAX_BRANCHES", "many")

        assert ThinkingConfig().max_branches_per_session == 10

    def test_validate_warnings(self):
        """Test warnings for non-positive and oversized limits."""
        config = ThinkingConfig.for_testing(max_thoughts_per_session=0, max_sessions=10**6)

        warnings = config.validate()

        assert any("max_thoughts_per_session" in w for w in warnings)
        assert any("max_sessions" in w for w in warnings)

    def test_for_testing_overrides(self):
        config = ThinkingConfig.for_testing(max_sessions=3)

        assert config.max_sessions == 3
        assert config.auto_cleanup is False
        assert config.validate() == []
        assert config.to_dict()["max_sessions"] == 3


class TestConfigLoader:
    """Test sequential_thinking.json loading."""

    def test_missing_file(self, clean_env, tmp_path):
        loader = ConfigLoader()

        assert loader.load(tmp_path) is False
        assert loader.config_path is None

    def test_values_exported_to_env(self, clean_env, tmp_path):
        """Test that config keys become environment variables."""
        (tmp_path / "sequential_thinking.json").write_text(json.dumps({
            "max_thoughts_per_session": 7,
            "auto_cleanup": False,
        }))

        loader = ConfigLoader()
        assert loader.load(tmp_path) is True

        config = ThinkingConfig.from_env()
        assert config.max_thoughts_per_session == 7
        assert config.auto_cleanup is False

    def test_env_wins(self, clean_env, tmp_path):
        """Test that an existing environment variable is kept."""
        clean_env.setenv("SEQTHINK_MAX_THOUGHTS", "42")
        (tmp_path / "sequential_thinking.json").write_text(json.dumps({"max_thoughts_per_session": 7}))

        ConfigLoader().load(tmp_path)

        assert ThinkingConfig.from_env().max_thoughts_per_session == 42

    def test_invalid_json(self, clean_env, tmp_path):
        (tmp_path / "sequential_thinking.json").write_text("{not json")

        assert ConfigLoader().load(tmp_path) is False

"""Tests for configuration loading and the saved source URL."""

from pathlib import Path

import pytest

from sheet_finance.config import (
    DEFAULT_CATEGORIES,
    DEFAULT_PALETTE,
    ConfigError,
    load_config,
    load_source_url,
    save_source_url,
)


class TestLoadConfig:
    """Tests for load_config."""

    def test_missing_file_gives_defaults(self, tmp_path: Path) -> None:
        """Test defaults are used when settings.yaml is absent."""
        config = load_config(config_dir=tmp_path)

        assert config.categories == DEFAULT_CATEGORIES
        assert config.palette == DEFAULT_PALETTE
        assert config.ai.enabled is True
        assert config.ai.batch_size == 20
        assert config.logging.level == "INFO"

    def test_values_override_defaults(self, tmp_path: Path) -> None:
        """Test each section of settings.yaml is applied."""
        (tmp_path / "settings.yaml").write_text(
            "categories: [Food, Rent, Other]\n"
            "palette: ['#111111']\n"
            "ai:\n"
            "  enabled: false\n"
            "  budget_limit: null\n"
            "  batch_size: 5\n"
            "logging:\n"
            "  level: DEBUG\n"
            "state_file: state/source.yaml\n",
            encoding="utf-8",
        )

        config = load_config(config_dir=tmp_path)

        assert config.categories == ["Food", "Rent", "Other"]
        assert config.palette == ["#111111"]
        assert config.ai.enabled is False
        assert config.ai.budget_limit is None
        assert config.ai.batch_size == 5
        assert config.logging.level == "DEBUG"
        assert config.state_path == Path("state/source.yaml")

    def test_empty_file(self, tmp_path: Path) -> None:
        """Test an empty settings file is allowed."""
        settings = tmp_path / "settings.yaml"
        settings.write_text("", encoding="utf-8")

        assert load_config(settings_path=settings).categories == DEFAULT_CATEGORIES

    @pytest.mark.parametrize(
        "content",
        [
            "- just\n- a list\n",
            "categories: []\n",
            "palette: red\n",
            "ai:\n  batch_size: 0\n",
            "categories: [unclosed\n",
        ],
    )
    def test_malformed_settings(self, tmp_path: Path, content: str) -> None:
        """Test malformed settings raise ConfigError."""
        settings = tmp_path / "settings.yaml"
        settings.write_text(content, encoding="utf-8")

        with pytest.raises(ConfigError):
            load_config(settings_path=settings)


class TestSourceUrl:
    """Tests for the persisted source URL."""

    def test_round_trip(self, tmp_path: Path) -> None:
        """Test a saved URL is read back."""
        path = tmp_path / "nested" / "state.yaml"
        save_source_url(path, "https://script.google.com/macros/s/xyz/exec")

        assert load_source_url(path) == "https://script.google.com/macros/s/xyz/exec"

    def test_missing_state(self, tmp_path: Path) -> None:
        """Test no state file means no URL."""
        assert load_source_url(tmp_path / "state.yaml") is None

    def test_unreadable_state_is_ignored(self, tmp_path: Path) -> None:
        """Test a corrupt state file does not stop start-up."""
        path = tmp_path / "state.yaml"
        path.write_text("[not, a, mapping]", encoding="utf-8")

        assert load_source_url(path) is None

"""Tests for configuration management."""

from pathlib import Path

import pytest

from .lib import (
    EnvConfig,
    EnvVar,
    get_canvas_size,
    get_environment,
    get_environment_info,
    get_output_dir,
    list_environment_variables,
)

# =============================================================================
# Tests for get_environment (main interface)
# =============================================================================


class TestGetEnvironment:
    """Tests for the unified get_environment interface."""

    @pytest.mark.unit
    def test_returns_default_when_not_set(self, monkeypatch):
        """Returns default value when env var is not set."""
        monkeypatch.delenv("LABELSYNTH_MAX_ATTEMPTS", raising=False)
        result = get_environment(EnvVar.MAX_ATTEMPTS)
        assert result == 1000

    @pytest.mark.unit
    def test_override_takes_priority(self, monkeypatch):
        """Override parameter takes highest priority."""
        monkeypatch.setenv("LABELSYNTH_MAX_ATTEMPTS", "9999")
        result = get_environment(EnvVar.MAX_ATTEMPTS, override=5)
        assert result == 5

    @pytest.mark.unit
    def test_env_var_overrides_default(self, monkeypatch):
        """Environment variable overrides default value."""
        monkeypatch.setenv("LABELSYNTH_CANVAS_WIDTH", "1024")
        result = get_environment(EnvVar.CANVAS_WIDTH)
        assert result == 1024
        assert isinstance(result, int)

    @pytest.mark.unit
    def test_float_type_conversion(self, monkeypatch):
        """Float type conversion from string."""
        monkeypatch.setenv("LABELSYNTH_INTERVAL", "0.5")
        result = get_environment(EnvVar.INTERVAL)
        assert result == 0.5
        assert isinstance(result, float)

    @pytest.mark.unit
    def test_invalid_float_returns_default(self, monkeypatch):
        """Invalid float value returns default."""
        monkeypatch.setenv("LABELSYNTH_FALLBACK_MARGIN", "wide")
        result = get_environment(EnvVar.FALLBACK_MARGIN)
        assert result == 50.0

    @pytest.mark.unit
    def test_invalid_int_returns_default(self, monkeypatch):
        """Invalid integer value returns default."""
        monkeypatch.setenv("LABELSYNTH_MAX_ATTEMPTS", "not-a-number")
        result = get_environment(EnvVar.MAX_ATTEMPTS)
        assert result == 1000

    @pytest.mark.unit
    def test_seed_defaults_to_none(self, monkeypatch):
        """Seed defaults to None so system entropy is used."""
        monkeypatch.delenv("LABELSYNTH_SEED", raising=False)
        assert get_environment(EnvVar.SEED) is None

    @pytest.mark.unit
    def test_string_type(self, monkeypatch):
        """String type returns as-is."""
        monkeypatch.setenv("LABELSYNTH_OFF_CANVAS_POLICY", "reject")
        result = get_environment(EnvVar.OFF_CANVAS_POLICY)
        assert result == "reject"


class TestGetEnvironmentInfo:
    """Tests for environment variable metadata."""

    @pytest.mark.unit
    def test_returns_env_config(self):
        """Returns EnvConfig dataclass."""
        info = get_environment_info(EnvVar.INTERVAL)
        assert isinstance(info, EnvConfig)
        assert info.name == "LABELSYNTH_INTERVAL"
        assert info.default == 2.0
        assert info.var_type is float
        assert info.category == "runtime"

    @pytest.mark.unit
    def test_description_present(self):
        """Description field is populated."""
        info = get_environment_info(EnvVar.MAX_ATTEMPTS)
        assert "fallback" in info.description


class TestListEnvironmentVariables:
    """Tests for listing environment variables."""

    @pytest.mark.unit
    def test_returns_all_variables(self):
        """Returns all EnvVar members when no category."""
        result = list_environment_variables()
        assert len(result) == len(EnvVar)
        assert all(isinstance(v, EnvVar) for v in result)

    @pytest.mark.unit
    def test_filter_by_category(self):
        """Filters by category correctly."""
        layout_vars = list_environment_variables("layout")
        assert EnvVar.SEED in layout_vars
        assert EnvVar.MAX_ATTEMPTS in layout_vars
        assert EnvVar.CANVAS_WIDTH not in layout_vars


# =============================================================================
# Tests for convenience functions
# =============================================================================


class TestGetOutputDir:
    """Tests for dataset root resolution."""

    @pytest.mark.unit
    def test_override_takes_priority(self, tmp_path, monkeypatch):
        """Override parameter takes highest priority."""
        monkeypatch.setenv("LABELSYNTH_OUTPUT_DIR", str(tmp_path / "env"))
        result = get_output_dir(tmp_path / "custom")
        assert result == tmp_path / "custom"

    @pytest.mark.unit
    def test_string_override(self, tmp_path):
        """Override parameter accepts string paths."""
        result = get_output_dir(str(tmp_path))
        assert result == tmp_path

    @pytest.mark.unit
    def test_env_var_used(self, tmp_path, monkeypatch):
        """LABELSYNTH_OUTPUT_DIR used when no override."""
        monkeypatch.setenv("LABELSYNTH_OUTPUT_DIR", str(tmp_path / "env"))
        assert get_output_dir() == tmp_path / "env"

    @pytest.mark.unit
    def test_defaults_to_cwd(self, tmp_path, monkeypatch):
        """Falls back to the current working directory."""
        monkeypatch.delenv("LABELSYNTH_OUTPUT_DIR", raising=False)
        monkeypatch.chdir(tmp_path)
        assert get_output_dir() == Path.cwd()


class TestGetCanvasSize:
    """Tests for canvas size resolution."""

    @pytest.mark.unit
    def test_default_size(self, monkeypatch):
        """Default canvas is 800x600."""
        monkeypatch.delenv("LABELSYNTH_CANVAS_WIDTH", raising=False)
        monkeypatch.delenv("LABELSYNTH_CANVAS_HEIGHT", raising=False)
        assert get_canvas_size() == (800, 600)

    @pytest.mark.unit
    def test_env_overrides(self, monkeypatch):
        """Both dimensions read from the environment."""
        monkeypatch.setenv("LABELSYNTH_CANVAS_WIDTH", "400")
        monkeypatch.setenv("LABELSYNTH_CANVAS_HEIGHT", "300")
        assert get_canvas_size() == (400, 300)

    @pytest.mark.unit
    def test_explicit_override_per_dimension(self, monkeypatch):
        """An override replaces only its own dimension."""
        monkeypatch.setenv("LABELSYNTH_CANVAS_WIDTH", "400")
        monkeypatch.setenv("LABELSYNTH_CANVAS_HEIGHT", "300")
        assert get_canvas_size(height=720) == (400, 720)
        assert get_canvas_size(width=1024, height=768) == (1024, 768)

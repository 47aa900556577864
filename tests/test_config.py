# =============================================================================
# test_config.py - Configuration Tests
# =============================================================================

import pytest

from m4asm.config import AssemblerConfig


class TestDefaults:
    """Test default values and validation."""

    def test_defaults(self):
        config = AssemblerConfig()
        assert config.output_format == "binary"
        assert config.strict_label_names is True
        assert config.verbose is False

    def test_invalid_format(self):
        with pytest.raises(ValueError):
            AssemblerConfig(output_format="ihex")


class TestFromEnv:
    """Test environment variable overrides."""

    @pytest.fixture(autouse=True)
    def clean_env(self, monkeypatch):
        for name in ("M4ASM_FORMAT", "M4ASM_STRICT_LABELS", "M4ASM_VERBOSE"):
            monkeypatch.delenv(name, raising=False)

    def test_empty_environment(self):
        assert AssemblerConfig.from_env() == AssemblerConfig()

    def test_overrides(self, monkeypatch):
        monkeypatch.setenv("M4ASM_FORMAT", "Logisim")
        monkeypatch.setenv("M4ASM_STRICT_LABELS", "off")
        monkeypatch.setenv("M4ASM_VERBOSE", "1")

        config = AssemblerConfig.from_env()
        assert config.output_format == "logisim"
        assert config.strict_label_names is False
        assert config.verbose is True

    def test_invalid_values_ignored(self, monkeypatch):
        monkeypatch.setenv("M4ASM_FORMAT", "srec")
        monkeypatch.setenv("M4ASM_STRICT_LABELS", "maybe")
        monkeypatch.setenv("M4ASM_VERBOSE", "loud")

        assert AssemblerConfig.from_env() == AssemblerConfig()

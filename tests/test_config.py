"""
Tests for configuration loading and management.
"""

from pathlib import Path

import pytest


class TestConfig:
    """Tests for Config dataclass."""

    def test_config_defaults(self):
        """Test default config values."""
        from mediashrink.config import Config

        cfg = Config()

        assert cfg.files == []
        assert cfg.file_list is None
        assert cfg.suffix == "-optimized"
        assert cfg.overwrite is False
        assert cfg.quality == 70
        assert cfg.min_savings_percent == 20
        assert cfg.savings_check_enabled is True
        assert cfg.progress is True
        assert cfg.notify is True

    def test_zero_disables_savings_check(self):
        from mediashrink.config import Config

        assert Config(min_savings_percent=0).savings_check_enabled is False

    @pytest.mark.parametrize(
        "kwargs",
        [{"quality": -1}, {"quality": 101}, {"min_savings_percent": 100}, {"min_savings_percent": -5}, {"suffix": ""}],
    )
    def test_validate_rejects(self, kwargs):
        from mediashrink.config import Config
        from mediashrink.errors import ConfigError

        with pytest.raises(ConfigError):
            Config(**kwargs).validate()

    def test_validate_accepts_bounds(self):
        from mediashrink.config import Config

        Config(quality=0, min_savings_percent=0).validate()
        Config(quality=100, min_savings_percent=99).validate()

    def test_for_library(self):
        """Library configs are quiet by default."""
        from mediashrink.config import Config

        cfg = Config.for_library(quality=55)
        assert cfg.quality == 55
        assert cfg.progress is False
        assert cfg.notify is False

    def test_script_mode(self, monkeypatch):
        from mediashrink.config import Config

        monkeypatch.setenv("MEDIASHRINK_SCRIPT_MODE", "1")
        cfg = Config()
        cfg.apply_script_mode()
        assert cfg.progress is False
        assert cfg.notify is False


class TestXDGDirectories:
    """Tests for XDG directory functions."""

    def test_get_xdg_config_home_default(self, monkeypatch):
        """Test default config home."""
        from mediashrink.config import get_xdg_config_home

        monkeypatch.delenv("XDG_CONFIG_HOME", raising=False)
        assert get_xdg_config_home() == Path.home() / ".config"

    def test_get_xdg_config_home_custom(self, monkeypatch, temp_dir):
        """Test custom config home."""
        from mediashrink.config import get_xdg_config_home

        monkeypatch.setenv("XDG_CONFIG_HOME", str(temp_dir))
        assert get_xdg_config_home() == temp_dir

    def test_get_app_dirs(self, mock_xdg_dirs, temp_dir):
        """Test app directories creation."""
        from mediashrink.config import get_app_dirs

        dirs = get_app_dirs()

        assert dirs["config"] == temp_dir / "config" / "mediashrink"
        assert dirs["state"] == temp_dir / "state" / "mediashrink"
        assert all(d.exists() for d in dirs.values())


class TestInputFiles:
    """Tests for positional files and file lists."""

    def test_load_file_list(self, temp_dir):
        from mediashrink.config import load_file_list

        path = temp_dir / "files.txt"
        path.write_text("# movies\n/m/a.mkv\n\n  /m/b.mp4  \n#/m/c.mkv\n")

        assert load_file_list(path) == ["/m/a.mkv", "/m/b.mp4"]

    def test_unreadable_file_list(self, temp_dir):
        from mediashrink.config import load_file_list
        from mediashrink.errors import ConfigError

        with pytest.raises(ConfigError):
            load_file_list(temp_dir / "missing.txt")

    def test_collect_input_files(self, temp_dir):
        from mediashrink.config import Config, collect_input_files

        (temp_dir / "list.txt").write_text("/m/c.mkv\n")
        cfg = Config(files=["/m/a.mkv", "/m/b.mkv"], file_list=str(temp_dir / "list.txt"))

        assert collect_input_files(cfg) == [Path("/m/a.mkv"), Path("/m/b.mkv"), Path("/m/c.mkv")]


class TestConfigFileLoading:
    """Tests for configuration file loading."""

    def test_load_config_file_empty(self, temp_config_dir, temp_dir):
        """Test loading from empty directory."""
        from mediashrink.config import load_config_file

        assert load_config_file(temp_config_dir, system_config_dir=temp_dir / "etc") == {}

    def test_load_config_file_ini(self, temp_config_dir, temp_dir):
        """Test loading INI config."""
        from mediashrink.config import load_config_file

        (temp_config_dir / "config.ini").write_text(
            "[output]\nsuffix = -small\noverwrite = yes\n\n[encoding]\nquality = 60\n"
        )

        config = load_config_file(temp_config_dir, system_config_dir=temp_dir / "etc")

        assert config["output"]["suffix"] == "-small"
        assert config["output"]["overwrite"] is True
        assert config["encoding"]["quality"] == 60

    def test_load_config_file_toml(self, temp_config_dir, temp_dir):
        from mediashrink.config import TOML_AVAILABLE, load_config_file

        if not TOML_AVAILABLE:
            pytest.skip("TOML support not available")

        (temp_config_dir / "config.toml").write_text('[encoding]\nquality = 55\nmin_savings_percent = 30\n')

        config = load_config_file(temp_config_dir, system_config_dir=temp_dir / "etc")
        assert config["encoding"] == {"quality": 55, "min_savings_percent": 30}

    def test_invalid_toml_is_ignored(self, temp_config_dir, temp_dir):
        from mediashrink.config import TOML_AVAILABLE, load_config_file

        if not TOML_AVAILABLE:
            pytest.skip("TOML support not available")

        (temp_config_dir / "config.toml").write_text("[encoding\nquality = ")
        assert load_config_file(temp_config_dir, system_config_dir=temp_dir / "etc") == {}

    def test_system_config_merged_underneath(self, temp_config_dir, temp_dir):
        from mediashrink.config import load_config_file

        system_dir = temp_dir / "etc"
        system_dir.mkdir()
        (system_dir / "config.ini").write_text("[encoding]\nquality = 50\nmin_savings_percent = 10\n")
        (temp_config_dir / "config.ini").write_text("[encoding]\nquality = 65\n")

        config = load_config_file(temp_config_dir, system_config_dir=system_dir)
        assert config["encoding"] == {"quality": 65, "min_savings_percent": 10}

    def test_apply_config_to_args(self):
        """Test applying file config to Config instance."""
        from mediashrink.config import Config, apply_config_to_args

        file_config = {
            "output": {"suffix": "-small", "overwrite": True},
            "encoding": {"quality": 60, "min_savings_percent": 0},
            "notifications": {"enabled": False},
        }

        cfg = Config()
        apply_config_to_args(file_config, cfg)

        assert cfg.suffix == "-small"
        assert cfg.overwrite is True
        assert cfg.quality == 60
        assert cfg.min_savings_percent == 0
        assert cfg.notify is False

    def test_cli_values_win(self):
        from mediashrink.config import Config, apply_config_to_args

        cfg = Config(quality=40)
        apply_config_to_args({"encoding": {"quality": 60}}, cfg)
        assert cfg.quality == 40

    def test_wrong_type_ignored(self):
        from mediashrink.config import Config, apply_config_to_args

        cfg = Config()
        apply_config_to_args({"encoding": {"quality": "high"}}, cfg)
        assert cfg.quality == 70

    def test_save_default_config(self, temp_config_dir):
        """Test saving default config file."""
        from mediashrink.config import TOML_AVAILABLE, load_config_file, save_default_config

        path = save_default_config(temp_config_dir)

        assert path.exists()
        assert path.suffix == (".toml" if TOML_AVAILABLE else ".ini")
        config = load_config_file(temp_config_dir, system_config_dir=temp_config_dir / "none")
        assert config["output"]["suffix"] == "-optimized"
        assert config["encoding"]["min_savings_percent"] == 20


class TestParseIniValue:
    """Tests for INI value parsing."""

    def test_bools(self):
        from mediashrink.config import _parse_ini_value

        assert _parse_ini_value("yes") is True
        assert _parse_ini_value("Off") is False

    def test_numbers_and_strings(self):
        from mediashrink.config import _parse_ini_value

        assert _parse_ini_value("42") == 42
        assert _parse_ini_value("1.5") == 1.5
        assert _parse_ini_value("-optimized") == "-optimized"
        assert _parse_ini_value("") == ""

"""
Configuration management for mediashrink.

Handles:
- XDG Base Directory compliance
- TOML/INI configuration file loading
- Config dataclass with all options
- Configuration merging (system -> user -> CLI)
- Input file list resolution
"""

import configparser
import logging
import os
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

from mediashrink.errors import ConfigError

logger = logging.getLogger(__name__)

# -------------------- SCRIPT MODE DETECTION --------------------


def is_script_mode() -> bool:
    """
    Detect if running without an interactive terminal.

    Returns True if:
    - stdout is not a TTY (piped or redirected)
    - NO_COLOR environment variable is set
    - MEDIASHRINK_SCRIPT_MODE environment variable is set

    Returns:
        True if running in script mode, False otherwise.
    """
    if os.getenv("NO_COLOR") or os.getenv("MEDIASHRINK_SCRIPT_MODE"):
        return True
    try:
        return not sys.stdout.isatty()
    except (AttributeError, ValueError):
        return True


# Try TOML support (Python 3.11+ or tomli package)
try:
    import tomllib  # Python 3.11+

    TOML_AVAILABLE = True
except ImportError:
    try:
        import tomli as tomllib  # pip install tomli

        TOML_AVAILABLE = True
    except ImportError:
        TOML_AVAILABLE = False


# -------------------- XDG DIRECTORIES --------------------


def get_xdg_config_home() -> Path:
    """Get XDG config home directory."""
    return Path(os.environ.get("XDG_CONFIG_HOME", Path.home() / ".config"))


def get_xdg_state_home() -> Path:
    """Get XDG state home directory."""
    return Path(os.environ.get("XDG_STATE_HOME", Path.home() / ".local" / "state"))


def get_app_dirs() -> Dict[str, Path]:
    """Return all application directories, creating them if needed."""
    dirs = {
        "config": get_xdg_config_home() / "mediashrink",
        "state": get_xdg_state_home() / "mediashrink",
        "logs": get_xdg_state_home() / "mediashrink" / "logs",
    }
    for d in dirs.values():
        d.mkdir(parents=True, exist_ok=True)
    return dirs


# -------------------- CONFIGURATION DATACLASS --------------------

DEFAULT_SUFFIX = "-optimized"
DEFAULT_QUALITY = 70
DEFAULT_MIN_SAVINGS_PERCENT = 20


@dataclass
class Config:
    """All configuration options for mediashrink."""

    # Inputs
    files: List[str] = field(default_factory=list)
    file_list: Optional[str] = None

    # Output settings
    suffix: str = DEFAULT_SUFFIX
    overwrite: bool = False

    # Encoding
    quality: int = DEFAULT_QUALITY  # HandBrake quality, higher is better
    min_savings_percent: int = DEFAULT_MIN_SAVINGS_PERCENT  # 0 disables size estimation

    # Debug
    debug: bool = False

    # UI settings
    progress: bool = True

    # Notifications
    notify: bool = True
    notify_on_success: bool = True
    notify_on_failure: bool = True

    def validate(self) -> None:
        """Raise ConfigError if a value is out of range."""
        if not 0 <= self.quality <= 100:
            raise ConfigError(f"quality must be between 0 and 100 (got {self.quality})")
        if not 0 <= self.min_savings_percent < 100:
            raise ConfigError(f"min-savings-percent must be between 0 and 99 (got {self.min_savings_percent})")
        if not self.suffix:
            raise ConfigError("output suffix must not be empty")

    @property
    def savings_check_enabled(self) -> bool:
        return self.min_savings_percent > 0

    def apply_script_mode(self) -> None:
        """Disable progress bars and notifications when not attached to a terminal."""
        if is_script_mode():
            self.progress = False
            self.notify = False

    @classmethod
    def for_library(cls, **kwargs) -> "Config":
        """
        Create a Config instance for programmatic use.

        Progress bars and desktop notifications are off unless overridden.

        Example:
            >>> config = Config.for_library(quality=60, min_savings_percent=0)
        """
        defaults: Dict[str, Any] = {
            "progress": False,
            "notify": False,
        }
        defaults.update(kwargs)
        return cls(**defaults)


# -------------------- INPUT FILES --------------------


def load_file_list(path: Path) -> List[str]:
    """
    Read input paths from a text file.

    One path per line. Blank lines and lines starting with '#' are ignored.

    Raises:
        ConfigError: If the file cannot be read.
    """
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigError(f"failed to read file list {path}: {e}") from e

    files = []
    for line in text.splitlines():
        line = line.strip()
        if line and not line.startswith("#"):
            files.append(line)
    return files


def collect_input_files(cfg: Config) -> List[Path]:
    """Combine directly specified files and the file list into one ordered list."""
    files = [Path(f).expanduser() for f in cfg.files]
    if cfg.file_list:
        files.extend(Path(f).expanduser() for f in load_file_list(Path(cfg.file_list).expanduser()))
    return files


# -------------------- CONFIG FILE LOADING --------------------


def _parse_ini_value(value: str):
    """Parse INI value: bool, int, float or string."""
    v = value.strip()
    if not v:
        return ""
    if v.lower() in ("true", "yes", "on"):
        return True
    if v.lower() in ("false", "no", "off"):
        return False
    try:
        return int(v)
    except ValueError:
        pass
    try:
        return float(v)
    except ValueError:
        pass
    return v


def _load_ini_config(path: Path) -> Dict[str, Any]:
    """Load INI file and convert to nested dict."""
    cp = configparser.ConfigParser()
    cp.read(path)
    result: Dict[str, Any] = {}
    for section in cp.sections():
        result[section] = {}
        for key, value in cp.items(section):
            result[section][key] = _parse_ini_value(value)
    return result


def _load_single_config(config_dir: Path) -> Dict[str, Any]:
    """Load config from a single directory (TOML or INI file)."""
    toml_path = config_dir / "config.toml"
    ini_path = config_dir / "config.ini"

    if TOML_AVAILABLE and toml_path.exists():
        try:
            with toml_path.open("rb") as f:
                return dict(tomllib.load(f))
        except (OSError, tomllib.TOMLDecodeError) as e:
            logger.warning("Failed to load config file path=%s error=%s", toml_path, e)
            return {}
    elif ini_path.exists():
        try:
            return _load_ini_config(ini_path)
        except (OSError, configparser.Error) as e:
            logger.warning("Failed to load config file path=%s error=%s", ini_path, e)
            return {}
    return {}


def _deep_merge_dicts(base: dict, override: dict) -> dict:
    """Deep merge two dicts, with override taking precedence."""
    result = base.copy()
    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = _deep_merge_dicts(result[key], value)
        else:
            result[key] = value
    return result


def load_config_file(config_dir: Path, system_config_dir: Path = Path("/etc/mediashrink")) -> dict:
    """
    Load config with priority:
    1. User config: ~/.config/mediashrink/config.toml (highest priority)
    2. System config: /etc/mediashrink/config.toml (lowest priority, optional)
    """
    system_config = {}
    if system_config_dir.exists():
        system_config = _load_single_config(system_config_dir)

    user_config = _load_single_config(config_dir)

    if system_config and user_config:
        return _deep_merge_dicts(system_config, user_config)
    return user_config or system_config or {}


def _get_default_config_toml() -> str:
    """Return default config as TOML string."""
    return """# mediashrink configuration file
# This file is auto-generated on first run

[output]
suffix = "-optimized"
overwrite = false

[encoding]
# HandBrake quality (0-100, higher is better)
quality = 70
# Skip files whose estimated savings are below this percentage (0 disables)
min_savings_percent = 20

[ui]
progress = true

[notifications]
# Desktop notifications when processing completes
enabled = true
on_success = true
on_failure = true
"""


def _get_default_config_ini() -> str:
    """Return default config as INI string."""
    return """# mediashrink configuration file
# This file is auto-generated on first run

[output]
suffix = -optimized
overwrite = false

[encoding]
quality = 70
min_savings_percent = 20

[ui]
progress = true

[notifications]
enabled = true
on_success = true
on_failure = true
"""


def save_default_config(config_dir: Path) -> Path:
    """Create default config file (TOML if available, else INI). Returns path."""
    config_dir.mkdir(parents=True, exist_ok=True)

    if TOML_AVAILABLE:
        path = config_dir / "config.toml"
        if not path.exists():
            path.write_text(_get_default_config_toml())
        return path
    path = config_dir / "config.ini"
    if not path.exists():
        path.write_text(_get_default_config_ini())
    return path


# Map config file keys to Config attribute names
_FILE_MAPPINGS = {
    ("output", "suffix"): "suffix",
    ("output", "overwrite"): "overwrite",
    ("encoding", "quality"): "quality",
    ("encoding", "min_savings_percent"): "min_savings_percent",
    ("ui", "progress"): "progress",
    ("notifications", "enabled"): "notify",
    ("notifications", "on_success"): "notify_on_success",
    ("notifications", "on_failure"): "notify_on_failure",
}


def apply_config_to_args(file_config: dict, cfg: Config) -> None:
    """
    Apply file config values to a Config instance.

    A value is taken from the file only when the CLI left the attribute at
    its default, so explicit command-line options always win.
    """
    default_cfg = Config()

    for (section, key), attr_name in _FILE_MAPPINGS.items():
        if section not in file_config or key not in file_config[section]:
            continue
        if getattr(cfg, attr_name) != getattr(default_cfg, attr_name):
            continue
        file_val = file_config[section][key]
        expected_type = type(getattr(default_cfg, attr_name))
        if not isinstance(file_val, expected_type):
            logger.warning("Ignoring config value with wrong type key=%s.%s value=%r", section, key, file_val)
            continue
        setattr(cfg, attr_name, file_val)

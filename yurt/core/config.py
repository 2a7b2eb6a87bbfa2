"""
Configuration for yurt.

Location:
    $XDG_CONFIG_HOME/yurt/config.yaml   (falls back to ~/.config/yurt/)

The file is YAML; a JSON config parses as well since JSON is a YAML subset.
Every key is optional, missing keys keep their default:

    aur_url: https://aur.archlinux.org
    request_split_n: 150      # max names per AUR info request
    max_workers: 10           # concurrent AUR requests
    sort_by: votes
    sort_mode: bottomup
    optional_keep_alive: true # optional deps keep their targets installed
    ignore: [some-pkg]        # never warn about these AUR packages

A Configuration object is passed explicitly to whatever needs it; nothing
here keeps module-level state.
"""

import logging
import os
from dataclasses import asdict, dataclass, field, fields
from pathlib import Path
from typing import List, Optional

import yaml

logger = logging.getLogger(__name__)

CONFIG_FILE_NAME = "config.yaml"

SORT_KEYS = ('votes', 'popularity', 'name', 'base', 'submitted', 'modified', 'id', 'baseid')
SORT_MODES = ('bottomup', 'topdown')
SEARCH_BY = ('name', 'name-desc', 'maintainer', 'depends', 'makedepends',
             'optdepends', 'checkdepends')
SEARCH_MODES = ('numbered', 'detailed', 'minimal')
TARGET_MODES = ('any', 'aur', 'repo')


class ConfigError(ValueError):
    """Invalid configuration file or value."""


def get_config_dir() -> Path:
    """Get the yurt config directory, honouring XDG_CONFIG_HOME."""
    xdg = os.environ.get('XDG_CONFIG_HOME')
    if xdg:
        return Path(xdg) / "yurt"
    return Path.home() / ".config" / "yurt"


def get_config_path() -> Path:
    return get_config_dir() / CONFIG_FILE_NAME


@dataclass
class Configuration:
    """User settings consumed by the core and the CLI."""
    aur_url: str = "https://aur.archlinux.org"
    request_split_n: int = 150
    max_workers: int = 10
    timeout: float = 30.0
    sort_by: str = "votes"
    sort_mode: str = "bottomup"
    search_by: str = "name-desc"
    search_mode: str = "numbered"
    mode: str = "any"
    optional_keep_alive: bool = True
    pacman_bin: str = "pacman"
    sudo_bin: str = "sudo"
    sudo_flags: str = ""
    no_confirm: bool = False
    ignore: List[str] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: dict) -> 'Configuration':
        """Build a configuration from a parsed file, checking value types."""
        config = cls()
        known = {f.name: f for f in fields(cls)}

        for key, value in data.items():
            if not isinstance(key, str):
                raise ConfigError(f"config keys must be strings, got {key!r}")
            # Accept yay-style lowercase keys without underscores too
            name = key if key in known else _ALIASES.get(key.lower())
            if name is None:
                logger.warning(f"Ignoring unknown config key: {key}")
                continue

            default = getattr(config, name)
            if isinstance(default, bool):
                if not isinstance(value, bool):
                    raise ConfigError(f"{key}: expected a boolean, got {value!r}")
            elif isinstance(default, int) and not isinstance(default, bool):
                if isinstance(value, bool) or not isinstance(value, int):
                    raise ConfigError(f"{key}: expected an integer, got {value!r}")
            elif isinstance(default, float):
                if isinstance(value, bool) or not isinstance(value, (int, float)):
                    raise ConfigError(f"{key}: expected a number, got {value!r}")
                value = float(value)
            elif isinstance(default, list):
                if isinstance(value, str):
                    value = value.split()
                if not isinstance(value, list):
                    raise ConfigError(f"{key}: expected a list, got {value!r}")
                value = [str(v) for v in value]
            elif not isinstance(value, str):
                raise ConfigError(f"{key}: expected a string, got {value!r}")

            setattr(config, name, value)

        return config

    def expand_env(self):
        """Expand $VARIABLES in every string setting."""
        for f in fields(self):
            value = getattr(self, f.name)
            if isinstance(value, str):
                setattr(self, f.name, os.path.expandvars(value))

    def validate(self):
        """Raise ConfigError if a value is out of range."""
        if self.request_split_n < 1:
            raise ConfigError(
                f"request_split_n must be a positive integer, got {self.request_split_n}")
        if self.max_workers < 1:
            raise ConfigError(f"max_workers must be a positive integer, got {self.max_workers}")
        if self.timeout <= 0:
            raise ConfigError(f"timeout must be positive, got {self.timeout}")
        if self.sort_by not in SORT_KEYS:
            raise ConfigError(f"sort_by must be one of {', '.join(SORT_KEYS)}")
        if self.sort_mode not in SORT_MODES:
            raise ConfigError(
                f"invalid sort mode '{self.sort_mode}', use {' or '.join(SORT_MODES)}")
        if self.search_mode not in SEARCH_MODES:
            raise ConfigError(f"search_mode must be one of {', '.join(SEARCH_MODES)}")
        if self.mode not in TARGET_MODES:
            raise ConfigError(f"mode must be one of {', '.join(TARGET_MODES)}")

    def to_dict(self) -> dict:
        return asdict(self)

    def save(self, path: Path = None):
        """Write the configuration as YAML."""
        path = path or get_config_path()
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, 'w') as f:
            yaml.safe_dump(self.to_dict(), f, default_flow_style=False, sort_keys=True)
        logger.debug(f"Saved configuration to {path}")


# yay config.json keys -> field names
_ALIASES = {
    'aururl': 'aur_url',
    'requestsplitn': 'request_split_n',
    'sortby': 'sort_by',
    'sortmode': 'sort_mode',
    'searchby': 'search_by',
    'pacmanbin': 'pacman_bin',
    'sudobin': 'sudo_bin',
    'sudoflags': 'sudo_flags',
}


def load_config(path: Optional[Path] = None) -> Configuration:
    """Load configuration from file, falling back to defaults.

    Args:
        path: Config file to read (None = default location)

    Returns:
        Validated Configuration with environment variables expanded

    Raises:
        ConfigError: If the file cannot be read, is not valid YAML or holds bad values
    """
    path = Path(path) if path else get_config_path()

    if not path.exists():
        logger.debug(f"No config file at {path}, using defaults")
        config = Configuration()
    else:
        try:
            with open(path) as f:
                data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ConfigError(f"{path}: {e}") from e
        except OSError as e:
            raise ConfigError(f"cannot read {path}: {e}") from e

        if data is None:
            data = {}
        if not isinstance(data, dict):
            raise ConfigError(f"{path}: expected a mapping at top level")

        config = Configuration.from_dict(data)
        logger.debug(f"Loaded configuration from {path}")

    config.expand_env()
    config.validate()
    return config

"""Color output support for yurt CLI.

Color palette:
  - Red: errors, orphaned / out-of-date markers
  - Orange: warnings
  - Green: installed markers, success
  - Cyan: package names and versions
  - Magenta: menu numbers
"""

import os
import sys

# ANSI color codes
_COLORS = {
    'reset': '\033[0m',
    'bold': '\033[1m',
    'red': '\033[91m',
    'orange': '\033[93m',   # no true orange in ANSI
    'green': '\033[92m',
    'blue': '\033[94m',
    'magenta': '\033[95m',
    'cyan': '\033[96m',
}

# Repository name colors, picked by hashing the name
_REPO_COLORS = ('red', 'green', 'orange', 'blue', 'magenta', 'cyan')

_colors_enabled = True


def init(nocolor: bool = False):
    """Initialize color support.

    Args:
        nocolor: If True, disable colors unconditionally
    """
    global _colors_enabled

    if nocolor:
        _colors_enabled = False
    elif os.environ.get('NO_COLOR'):
        # https://no-color.org/
        _colors_enabled = False
    elif not sys.stdout.isatty():
        _colors_enabled = False
    else:
        _colors_enabled = True


def _wrap(text: str, color: str) -> str:
    if not _colors_enabled:
        return text
    code = _COLORS.get(color, '')
    reset = _COLORS['reset']
    return f"{code}{text}{reset}"


def error(text: str) -> str:
    """Format text as error (red)."""
    return _wrap(text, 'red')


def warning(text: str) -> str:
    """Format text as warning (orange/yellow)."""
    return _wrap(text, 'orange')


def success(text: str) -> str:
    """Format text as success (green)."""
    return _wrap(text, 'green')


def info(text: str) -> str:
    """Format text as info (blue)."""
    return _wrap(text, 'blue')


def bold(text: str) -> str:
    return _wrap(text, 'bold')


def cyan(text: str) -> str:
    return _wrap(text, 'cyan')


def magenta(text: str) -> str:
    return _wrap(text, 'magenta')


def repo(name: str) -> str:
    """Color a repository name, stable across runs."""
    color = _REPO_COLORS[sum(name.encode('utf-8')) % len(_REPO_COLORS)]
    return _wrap(name, color)


def pkg_remove(name: str) -> str:
    """Format package name for removal (red)."""
    return error(name)

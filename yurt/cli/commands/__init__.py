"""CLI command modules."""

from .query import (
    cmd_search,
    cmd_info,
    cmd_stats,
    cmd_pkgbuild,
    aur_info_print,
)
from .cleanup import (
    cmd_hanging,
    cmd_autoremove,
)
from .config import (
    cmd_config,
)

__all__ = [
    'cmd_search',
    'cmd_info',
    'cmd_stats',
    'cmd_pkgbuild',
    'aur_info_print',
    'cmd_hanging',
    'cmd_autoremove',
    'cmd_config',
]

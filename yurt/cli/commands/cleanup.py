"""Package cleanup commands: hanging, autoremove."""

import sys
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from ...core.config import Configuration

from ...core.pacman import LocalDatabase, PacmanError, remove_packages
from ...core.resolution import hanging_packages


def _remove_optional(args, config: 'Configuration') -> bool:
    """--optional forces optional deps out; otherwise the config decides."""
    return getattr(args, 'optional', False) or not config.optional_keep_alive


def cmd_hanging(args, config: 'Configuration') -> int:
    """Handle hanging command - list packages nothing explicit needs."""
    from .. import colors, display

    try:
        hanging = hanging_packages(LocalDatabase(config),
                                   remove_optional=_remove_optional(args, config))
    except PacmanError as e:
        print(colors.error(f"error: {e}"), file=sys.stderr)
        return 1

    if display.get_mode() != display.DisplayMode.COLUMNS:
        display.print_package_list(hanging)
        return 0

    if not hanging:
        print(colors.success("No hanging packages found"))
        return 0

    print(f"Found {colors.warning(str(len(hanging)))} hanging package(s):")
    display.print_package_list(hanging, color_func=colors.pkg_remove)
    return 0


def cmd_autoremove(args, config: 'Configuration') -> int:
    """Handle autoremove command - remove hanging packages."""
    from .. import colors, display
    from ..display import format_size

    local_db = LocalDatabase(config)
    print("Searching for hanging packages...")
    try:
        hanging = hanging_packages(local_db, remove_optional=_remove_optional(args, config))
    except PacmanError as e:
        print(colors.error(f"error: {e}"), file=sys.stderr)
        return 1

    if not hanging:
        print(colors.success("\nNothing to remove."))
        return 0

    total_size = sum(local_db.get(name).installed_size for name in hanging)
    print(f"\n{colors.bold(f'The following {len(hanging)} package(s) will be removed:')}")
    display.print_package_list(hanging, indent=4, show_all=True, color_func=colors.pkg_remove)
    print(f"\nDisk space to free: {format_size(total_size)}")

    auto = getattr(args, 'auto', False) or config.no_confirm
    if not auto:
        try:
            response = input("\nRemove these packages? [y/N] ")
            if response.lower() not in ('y', 'yes'):
                print("Aborted.")
                return 0
        except (KeyboardInterrupt, EOFError):
            print("\nAborted.")
            return 130

    try:
        return remove_packages(hanging, config)
    except PacmanError as e:
        print(colors.error(f"error: {e}"), file=sys.stderr)
        return 1

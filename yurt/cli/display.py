"""Display utilities for yurt CLI.

Package lists support three output modes:
- columns: Multi-column layout (default, human-friendly)
- flat: One item per line (parsable by scripts)
- json: JSON output (programmatic consumption)

Also formats AUR warnings, search results and package details.
"""

import json
import shutil
import time
from enum import Enum
from typing import Callable, List, Optional, Sequence

from . import colors
from ..core.aur import DEFAULT_AUR_URL, AURPackage
from ..core.query import AURWarnings


class DisplayMode(Enum):
    """Output display mode."""
    COLUMNS = "columns"
    FLAT = "flat"
    JSON = "json"


_display_mode = DisplayMode.COLUMNS
_show_all = False


def init(mode: str = "columns", show_all: bool = False):
    """Initialize display settings.

    Args:
        mode: Display mode ("columns", "flat", "json")
        show_all: If True, never truncate output
    """
    global _display_mode, _show_all
    _display_mode = DisplayMode(mode) if mode else DisplayMode.COLUMNS
    _show_all = show_all


def get_mode() -> DisplayMode:
    return _display_mode


def get_terminal_width() -> int:
    """Get terminal width, with fallback to 80 columns."""
    try:
        return shutil.get_terminal_size().columns
    except (OSError, ValueError):
        return 80


def format_size(size_bytes: int) -> str:
    """Format size in human readable form."""
    if size_bytes < 1024:
        return f"{size_bytes} B"
    elif size_bytes < 1024 * 1024:
        return f"{size_bytes / 1024:.1f} KiB"
    elif size_bytes < 1024 * 1024 * 1024:
        return f"{size_bytes / 1024 / 1024:.1f} MiB"
    else:
        return f"{size_bytes / 1024 / 1024 / 1024:.1f} GiB"


def format_time(timestamp: int) -> str:
    """Format a unix timestamp as a local date."""
    return time.strftime('%Y-%m-%d', time.localtime(timestamp))


def format_package_list(
    packages: List[str],
    max_lines: int = 10,
    show_all: Optional[bool] = None,
    indent: int = 2,
    column_gap: int = 2,
    color_func: Optional[Callable[[str], str]] = None,
    mode: Optional[DisplayMode] = None,
    terminal_width: Optional[int] = None
) -> List[str]:
    """Format a list of packages according to display mode.

    Args:
        packages: List of package names to display
        max_lines: Maximum lines before truncation (columns mode only)
        show_all: Override global show_all setting
        indent: Spaces to indent (columns mode only)
        column_gap: Gap between columns (columns mode only)
        color_func: Optional colorize function (columns mode only)
        mode: Override global display mode
        terminal_width: Override terminal width (for testing)

    Returns:
        List of formatted lines ready to print
    """
    effective_mode = mode if mode is not None else _display_mode
    effective_show_all = show_all if show_all is not None else _show_all

    if effective_mode == DisplayMode.JSON:
        return [json.dumps(list(packages), ensure_ascii=False)]

    if not packages:
        return []

    if effective_mode == DisplayMode.FLAT:
        return list(packages)

    width = terminal_width or get_terminal_width()
    usable_width = width - indent

    col_width = max(len(p) for p in packages) + column_gap
    num_cols = max(1, usable_width // col_width)

    total = len(packages)
    total_lines = (total + num_cols - 1) // num_cols

    if effective_show_all:
        lines_to_show = total_lines
        hidden_count = 0
    else:
        lines_to_show = min(max_lines, total_lines)
        hidden_count = max(0, total - lines_to_show * num_cols)

    result = []
    prefix = " " * indent

    for line_idx in range(lines_to_show):
        cols = []
        for col_idx in range(num_cols):
            pkg_idx = line_idx * num_cols + col_idx
            if pkg_idx >= total:
                break
            pkg = packages[pkg_idx]
            if color_func:
                # Pad on raw length, not colored length
                cols.append(color_func(pkg) + " " * (col_width - len(pkg)))
            else:
                cols.append(pkg.ljust(col_width))
        if cols:
            result.append(prefix + "".join(cols).rstrip())

    if hidden_count > 0:
        result.append(prefix + f"... and {hidden_count} more")

    return result


def print_package_list(packages: List[str], **kwargs) -> None:
    """Print a list of packages according to display mode."""
    for line in format_package_list(packages, **kwargs):
        print(line)


def print_warnings(warnings: AURWarnings, requested: Sequence[str]) -> None:
    """Print missing, orphaned and out-of-date AUR packages."""
    sections = (
        ("Missing AUR Packages:", warnings.missing),
        ("Orphaned AUR Packages:", warnings.orphans),
        ("Flagged Out Of Date AUR Packages:", warnings.out_of_date),
    )
    for title, names in sections:
        if not names:
            continue
        ordered = warnings.sorted_for(requested, names)
        print(f"{colors.bold(colors.warning('::'))} {colors.warning(title)}  " +
              "  ".join(colors.cyan(n) for n in ordered))


def format_search_result(pkg: AURPackage, number: Optional[int] = None,
                         installed_version: Optional[str] = None) -> str:
    """Format one AUR search result on two lines.

    Args:
        pkg: AUR package
        number: Menu number to prefix (None = no number)
        installed_version: Locally installed version, if any
    """
    line = ""
    if number is not None:
        line += colors.magenta(f"{number} ")

    line += (f"{colors.bold(colors.repo('aur'))}/{colors.bold(pkg.name)} "
             f"{colors.cyan(pkg.version)} "
             f"{colors.bold(f'(+{pkg.num_votes} {pkg.popularity:.2f})')} ")

    if pkg.orphaned:
        line += colors.bold(colors.error("(Orphaned)")) + " "
    if pkg.flagged:
        line += colors.bold(colors.error(f"(Out-of-date: {format_time(pkg.out_of_date)})")) + " "

    if installed_version is not None:
        if installed_version != pkg.version:
            line += colors.bold(colors.success(f"(Installed: {installed_version})"))
        else:
            line += colors.bold(colors.success("(Installed)"))

    return line.rstrip() + "\n    " + pkg.description


def print_search(results: Sequence[AURPackage], search_mode: str = 'numbered',
                 sort_mode: str = 'bottomup', installed: Optional[dict] = None,
                 start: int = 1) -> None:
    """Print search results.

    Numbers count from the best match, which is printed last in bottom-up
    mode.

    Args:
        results: Packages in display order
        search_mode: 'numbered', 'detailed' or 'minimal'
        sort_mode: 'bottomup' or 'topdown'
        installed: Map of installed package name -> version
        start: First menu number
    """
    installed = installed or {}
    total = len(results)

    for i, pkg in enumerate(results):
        if search_mode == 'minimal':
            print(pkg.name)
            continue

        number = None
        if search_mode == 'numbered':
            if sort_mode == 'topdown':
                number = start + i
            else:
                number = total + start - i - 1

        print(format_search_result(pkg, number, installed.get(pkg.name)))


def print_info(pkg: AURPackage, aur_url: str = DEFAULT_AUR_URL, extended: bool = False) -> None:
    """Print AUR package details, pacman -Si style."""
    def row(key: str, value: str):
        print(f"{colors.bold(key.ljust(16))}: {value}")

    def join(items: List[str]) -> str:
        return "  ".join(items) if items else "None"

    row("Repository", "aur")
    row("Name", pkg.name)
    row("Version", pkg.version)
    row("Description", pkg.description)
    row("URL", pkg.url)
    row("AUR URL", f"{aur_url.rstrip('/')}/packages/{pkg.name}")
    row("Licenses", join(pkg.license))
    row("Provides", join(pkg.provides))
    row("Depends On", join(pkg.depends))
    row("Make Deps", join(pkg.make_depends))
    row("Check Deps", join(pkg.check_depends))
    row("Optional Deps", join(pkg.opt_depends))
    row("Conflicts With", join(pkg.conflicts))
    row("Maintainer", pkg.maintainer or colors.error("None"))
    row("Votes", str(pkg.num_votes))
    row("Popularity", f"{pkg.popularity:f}")
    row("First Submitted", format_time(pkg.first_submitted))
    row("Last Modified", format_time(pkg.last_modified))
    row("Out-of-date", format_time(pkg.out_of_date) if pkg.flagged else "No")

    if extended:
        row("ID", str(pkg.id))
        row("Package Base ID", str(pkg.package_base_id))
        row("Package Base", pkg.package_base)
        row("Snapshot URL", pkg.url_path)
        row("Keywords", join(pkg.keywords))
    print()

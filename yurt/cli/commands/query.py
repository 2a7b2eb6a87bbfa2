"""Query commands: search, info, stats, pkgbuild."""

import sys
from typing import TYPE_CHECKING, List, Optional, Tuple

if TYPE_CHECKING:
    from ...core.config import Configuration

from ...core.aur import AURClient, AURError, AURPackage
from ...core.multierror import MultiError
from ...core.pacman import (
    LocalDatabase, PacmanError, SyncDatabase,
    package_slices, remove_invalid_targets, split_db_from_name,
)
from ...core.query import AURWarnings, aur_info, classify_warnings


def _installed_versions(config: 'Configuration') -> dict:
    """Installed name -> version, empty if pacman is unavailable."""
    try:
        return {p.name: p.version for p in LocalDatabase(config).packages()}
    except PacmanError:
        return {}


def aur_info_print(names: List[str], config: 'Configuration',
                   client: AURClient = None) -> Tuple[List[AURPackage], AURWarnings, Optional[MultiError]]:
    """Query the AUR for names and print the resulting warnings.

    Returns:
        Tuple of (records, warnings, error); error is None unless a request
        failed, in which case no warnings are classified
    """
    from .. import colors, display

    client = client or AURClient(config.aur_url, timeout=config.timeout)

    print(f"{colors.info('::')} {colors.bold('Querying AUR...')}")
    records, err = aur_info(names, client.info, config.request_split_n,
                            max_workers=config.max_workers)
    if err:
        # Metadata is incomplete, absent names may still exist
        print(colors.error(f"error: {err}"), file=sys.stderr)
        return records, AURWarnings(ignore=set(config.ignore)), err

    warnings = classify_warnings(names, records, ignore=config.ignore)
    display.print_warnings(warnings, names)
    return records, warnings, err


def cmd_search(args, config: 'Configuration') -> int:
    """Handle search command - narrowed AUR search."""
    from .. import colors, display
    from ...core.search import narrow_search

    if config.mode == 'repo':
        print(colors.error("error: search only covers the AUR, drop --repo"))
        return 1

    terms = [t.lower() for t in args.terms]
    sort_by = getattr(args, 'sortby', None) or config.sort_by
    sort_mode = getattr(args, 'sortmode', None) or config.sort_mode
    search_by = getattr(args, 'by', None) or config.search_by
    search_mode = 'minimal' if getattr(args, 'minimal', False) else config.search_mode

    client = AURClient(config.aur_url, timeout=config.timeout)
    try:
        results = narrow_search(terms, client, by=search_by,
                                sort_by=sort_by, sort_mode=sort_mode)
    except AURError as e:
        print(colors.error(f"error during AUR search: {e}"), file=sys.stderr)
        return 1

    if not results:
        if search_mode != 'minimal':
            print("No results found")
        return 1

    display.print_search(results, search_mode=search_mode, sort_mode=sort_mode,
                         installed=_installed_versions(config))
    return 0


def cmd_info(args, config: 'Configuration') -> int:
    """Handle info command - show AUR (and repo) package details."""
    import subprocess
    from .. import colors, display

    targets = remove_invalid_targets(args.packages, config.mode)
    try:
        aur, repo = package_slices(targets, config.mode, SyncDatabase(config))
    except PacmanError as e:
        print(colors.error(f"error: {e}"), file=sys.stderr)
        return 1

    missing = False

    if repo:
        # Repo always goes first
        try:
            result = subprocess.run([config.pacman_bin, '-Si', *repo])
        except OSError as e:
            print(colors.error(f"error: cannot run {config.pacman_bin}: {e}"), file=sys.stderr)
            return 1
        if result.returncode != 0:
            return result.returncode

    if aur:
        names = [split_db_from_name(t)[1] for t in aur]
        records, warnings, err = aur_info_print(names, config)
        if err or warnings.missing or len(records) < len(names):
            missing = True

        by_name = {r.name: r for r in records}
        for name in names:
            pkg = by_name.get(name)
            if pkg is not None:
                display.print_info(pkg, aur_url=config.aur_url,
                                   extended=getattr(args, 'extended', False))

    return 1 if missing else 0


def cmd_stats(args, config: 'Configuration') -> int:
    """Handle stats command - installed package statistics and AUR health."""
    from .. import colors
    from ..display import format_size

    local_db = LocalDatabase(config)
    try:
        stats = local_db.statistics()
        foreign = local_db.foreign_names()
    except PacmanError as e:
        print(colors.error(f"error: {e}"), file=sys.stderr)
        return 1

    rule = colors.bold(colors.cyan("=" * 43))

    def line(label: str, value: str):
        print(f"{colors.info('::')} {colors.bold(label)} {colors.cyan(value)}")

    print(rule)
    line("Total installed packages:", str(stats.total))
    line("Total foreign installed packages:", str(len(foreign)))
    line("Explicitly installed packages:", str(stats.explicit))
    line("Total size occupied by packages:", format_size(stats.total_size))
    print(rule)
    print(f"{colors.info('::')} {colors.bold('Ten biggest packages:')}")
    for pkg in local_db.biggest(10):
        print(f"{colors.bold(pkg.name)}: {colors.cyan(format_size(pkg.installed_size))}")
    print(rule)

    if foreign:
        aur_info_print(foreign, config)
    return 0


def cmd_pkgbuild(args, config: 'Configuration') -> int:
    """Handle pkgbuild command - print PKGBUILDs of AUR and repo packages."""
    from .. import colors
    from ...core.pkgbuild import fetch_pkgbuilds

    targets = remove_invalid_targets(args.packages, config.mode)
    sync_db = SyncDatabase(config)
    try:
        aur, repo = package_slices(targets, config.mode, sync_db)
        pkgbuilds, err = fetch_pkgbuilds(aur, repo, AURClient(config.aur_url, timeout=config.timeout),
                                         sync_db, max_workers=config.max_workers)
    except PacmanError as e:
        print(colors.error(f"error: {e}"), file=sys.stderr)
        return 1

    if err:
        print(colors.error(f"error: {err}"), file=sys.stderr)

    names = list(dict.fromkeys(split_db_from_name(t)[1] for t in targets))
    for name in names:
        if name in pkgbuilds:
            print(pkgbuilds[name], end='')

    return 1 if err or len(pkgbuilds) < len(names) else 0

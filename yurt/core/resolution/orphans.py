"""Hanging package detection.

A package is hanging when it was installed as a dependency and no
explicitly installed package still needs it, directly or through a chain of
dependencies. Dependencies may name a package or a capability another
package provides.
"""

import logging
from enum import IntEnum
from typing import TYPE_CHECKING, Dict, Iterable, List, Set

if TYPE_CHECKING:
    from ..pacman import InstalledPackage, LocalDatabase

logger = logging.getLogger(__name__)


class SafetyState(IntEnum):
    """Per-package mark. Only ever moves forward."""
    REMOVABLE = 0      # not reached from an explicit package (yet)
    KEEP_PENDING = 1   # reached, dependencies not scanned
    KEEP_SCANNED = 2   # reached, dependencies scanned


def build_provides_index(packages: Iterable['InstalledPackage']) -> Dict[str, Set[str]]:
    """Map each provided capability to the names of packages providing it.

    A package's own name is not a key unless some package lists it in
    provides.
    """
    index: Dict[str, Set[str]] = {}
    for pkg in packages:
        for cap in pkg.provides:
            index.setdefault(cap, set()).add(pkg.name)
    return index


def find_hanging_packages(packages: Iterable['InstalledPackage'],
                          remove_optional: bool = False) -> Set[str]:
    """Find packages no explicit package depends on.

    Explicit packages start as KEEP_PENDING, everything else as REMOVABLE.
    Each pass scans the dependencies of every KEEP_PENDING package and
    promotes their REMOVABLE targets; passes repeat until nothing changes.

    Args:
        packages: Local package snapshot (not modified)
        remove_optional: If True, optional dependencies do not keep their
            targets installed

    Returns:
        Names of packages whose final state is REMOVABLE
    """
    packages = list(packages)
    provides = build_provides_index(packages)

    state: Dict[str, SafetyState] = {}
    for pkg in packages:
        state[pkg.name] = SafetyState.KEEP_PENDING if pkg.explicit else SafetyState.REMOVABLE

    def mark(dep: str) -> bool:
        """Promote whatever satisfies dep. Returns True if a state changed."""
        if dep in state:
            if state[dep] is SafetyState.REMOVABLE:
                state[dep] = SafetyState.KEEP_PENDING
                return True
            return False

        changed = False
        for provider in provides.get(dep, ()):
            if state[provider] is SafetyState.REMOVABLE:
                state[provider] = SafetyState.KEEP_PENDING
                changed = True
        # Unknown dependency: nothing installed satisfies it
        return changed

    passes = 0
    iterate_again = True
    while iterate_again:
        iterate_again = False
        passes += 1

        for pkg in packages:
            if state[pkg.name] is not SafetyState.KEEP_PENDING:
                continue
            state[pkg.name] = SafetyState.KEEP_SCANNED

            deps = list(pkg.depends)
            if not remove_optional:
                deps.extend(pkg.optional_depends)

            for dep in deps:
                if mark(dep):
                    iterate_again = True

    hanging = {name for name, s in state.items() if s is SafetyState.REMOVABLE}
    logger.debug(f"Reachability converged after {passes} passes: "
                 f"{len(hanging)} of {len(packages)} packages hanging")
    return hanging


def hanging_packages(local_db: 'LocalDatabase', remove_optional: bool = False) -> List[str]:
    """Hanging package names from the local database, in database order."""
    packages = local_db.packages()
    hanging = find_hanging_packages(packages, remove_optional=remove_optional)
    return [pkg.name for pkg in packages if pkg.name in hanging]

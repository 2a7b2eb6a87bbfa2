"""
Package database access through pacman.

Local packages are read from `pacman -Qi`, sync repositories from
`pacman -Sl` / `pacman -Sg`. Output is parsed with LC_ALL=C so field
names and install reasons are stable.
"""

import logging
import os
import re
import subprocess
from dataclasses import dataclass
from enum import Enum
from typing import Dict, List, Optional, Set, Tuple

from .config import Configuration

logger = logging.getLogger(__name__)

REASON_EXPLICIT = "Explicitly installed"

_SIZE_UNITS = {
    'B': 1,
    'KiB': 1024,
    'MiB': 1024 ** 2,
    'GiB': 1024 ** 3,
    'TiB': 1024 ** 4,
}

# "Depends On      : glibc  attr"
_FIELD_RE = re.compile(r'^(\S[^:]*?)\s*:(?: (.*))?$')


class PacmanError(RuntimeError):
    """pacman could not be run or reported a failure."""


class InstallReason(Enum):
    EXPLICIT = "explicit"
    DEPENDENCY = "dependency"


@dataclass(frozen=True)
class InstalledPackage:
    """A package from the local database snapshot."""
    name: str
    reason: InstallReason = InstallReason.DEPENDENCY
    version: str = ""
    depends: Tuple[str, ...] = ()
    optional_depends: Tuple[str, ...] = ()
    provides: Tuple[str, ...] = ()
    installed_size: int = 0

    @property
    def explicit(self) -> bool:
        return self.reason is InstallReason.EXPLICIT


@dataclass
class PackageStatistics:
    total: int
    explicit: int
    total_size: int


def parse_dependency(dep: str) -> Tuple[str, str, str]:
    """Parse a dependency string with optional version constraint.

    Args:
        dep: String like "glibc>=2.33", "libacl.so=1-64" or just "bash"

    Returns:
        Tuple of (name, operator, version)
    """
    match = re.match(r'^(.+?)(<=|>=|=|<|>)(.*)$', dep)
    if match:
        return match.group(1), match.group(2), match.group(3)
    return dep, '', ''


def parse_size(text: str) -> int:
    """Parse a pacman size like "1.50 MiB" into bytes."""
    parts = text.split()
    if len(parts) != 2 or parts[1] not in _SIZE_UNITS:
        return 0
    try:
        return int(float(parts[0]) * _SIZE_UNITS[parts[1]])
    except ValueError:
        return 0


def _split_list(lines: List[str]) -> List[str]:
    """Split a pacman list field (whitespace separated, "None" if empty)."""
    items = []
    for line in lines:
        items.extend(line.split())
    if items == ['None']:
        return []
    return items


def _optional_names(lines: List[str]) -> List[str]:
    """Names from an Optional Deps field, one "name: reason [installed]" per line."""
    names = []
    for line in lines:
        line = line.strip()
        if not line or line == 'None':
            continue
        name = line.split(':', 1)[0].strip()
        # Entries without a description may still carry a marker
        name = name.split(' [', 1)[0].strip()
        if name:
            names.append(parse_dependency(name)[0])
    return names


def _build_package(record: Dict[str, List[str]]) -> Optional[InstalledPackage]:
    name = ' '.join(record.get('Name', [])).strip()
    if not name:
        return None

    reason_text = ' '.join(record.get('Install Reason', [])).strip()
    reason = InstallReason.EXPLICIT if reason_text == REASON_EXPLICIT else InstallReason.DEPENDENCY

    return InstalledPackage(
        name=name,
        reason=reason,
        version=' '.join(record.get('Version', [])).strip(),
        depends=tuple(parse_dependency(d)[0] for d in _split_list(record.get('Depends On', []))),
        optional_depends=tuple(_optional_names(record.get('Optional Deps', []))),
        provides=tuple(parse_dependency(p)[0] for p in _split_list(record.get('Provides', []))),
        installed_size=parse_size(' '.join(record.get('Installed Size', [])).strip()),
    )


def parse_query_info(text: str) -> List[InstalledPackage]:
    """Parse `pacman -Qi` output into packages.

    Records are separated by blank lines. Each field is "Key : value";
    lines starting with whitespace continue the previous field.

    Args:
        text: Raw pacman output (LC_ALL=C)

    Returns:
        Packages in output order
    """
    packages = []
    record: Dict[str, List[str]] = {}
    current_key = None

    def flush():
        pkg = _build_package(record)
        if pkg is not None:
            packages.append(pkg)

    for line in text.splitlines():
        if not line.strip():
            if record:
                flush()
            record = {}
            current_key = None
            continue

        if line[0].isspace():
            if current_key is not None:
                record[current_key].append(line.strip())
            continue

        match = _FIELD_RE.match(line)
        if not match:
            continue
        current_key = match.group(1)
        record[current_key] = [(match.group(2) or '').strip()]

    if record:
        flush()

    return packages


def split_db_from_name(target: str) -> Tuple[str, str]:
    """Split "core/glibc" into ("core", "glibc"); bare names give ("", name)."""
    if '/' in target:
        db, name = target.split('/', 1)
        return db, name
    return '', target


def remove_invalid_targets(targets: List[str], mode: str) -> List[str]:
    """Drop targets whose repository prefix contradicts the target mode.

    Args:
        targets: Names, optionally prefixed "repo/"
        mode: 'any', 'aur' or 'repo'

    Returns:
        Targets that can be handled in this mode
    """
    valid = []
    for target in targets:
        db, _ = split_db_from_name(target)

        if db == 'aur' and mode == 'repo':
            logger.warning(f"{target}: can't use target with option --repo -- skipping")
            continue
        if db not in ('', 'aur') and mode == 'aur':
            logger.warning(f"{target}: can't use target with option --aur -- skipping")
            continue

        valid.append(target)
    return valid


def _run_pacman(config: Configuration, *args: str, ok_codes=(0,)) -> str:
    cmd = [config.pacman_bin, *args]
    env = dict(os.environ, LC_ALL='C')
    logger.debug(f"Running: {' '.join(cmd)}")
    try:
        result = subprocess.run(cmd, capture_output=True, text=True, env=env)
    except OSError as e:
        raise PacmanError(f"cannot run {config.pacman_bin}: {e}") from e
    if result.returncode not in ok_codes:
        raise PacmanError(
            f"{' '.join(cmd)} failed ({result.returncode}): {result.stderr.strip()}")
    return result.stdout


class LocalDatabase:
    """Snapshot of the installed packages."""

    def __init__(self, config: Configuration):
        self.config = config
        self._packages: Optional[List[InstalledPackage]] = None
        self._foreign: Optional[List[str]] = None

    def packages(self) -> List[InstalledPackage]:
        """Installed packages, queried once per instance."""
        if self._packages is None:
            self._packages = parse_query_info(_run_pacman(self.config, '-Qi'))
            logger.debug(f"Loaded {len(self._packages)} installed packages")
        return self._packages

    def get(self, name: str) -> Optional[InstalledPackage]:
        for pkg in self.packages():
            if pkg.name == name:
                return pkg
        return None

    def foreign_names(self) -> List[str]:
        """Installed packages not found in any sync repository (`pacman -Qmq`)."""
        if self._foreign is None:
            # pacman exits 1 when the query matches nothing
            output = _run_pacman(self.config, '-Qmq', ok_codes=(0, 1))
            self._foreign = output.split()
            logger.debug(f"Found {len(self._foreign)} foreign packages")
        return self._foreign

    def biggest(self, count: int = 10) -> List[InstalledPackage]:
        """The largest installed packages, biggest first."""
        return sorted(self.packages(), key=lambda p: p.installed_size, reverse=True)[:count]

    def statistics(self) -> PackageStatistics:
        """Count installed and explicit packages and sum installed size."""
        pkgs = self.packages()
        return PackageStatistics(
            total=len(pkgs),
            explicit=sum(1 for p in pkgs if p.explicit),
            total_size=sum(p.installed_size for p in pkgs),
        )


class SyncDatabase:
    """Package names (with their repository) and group names from the sync repositories."""

    def __init__(self, config: Configuration):
        self.config = config
        self._packages: Optional[Dict[str, str]] = None
        self._groups: Optional[Set[str]] = None

    def _load(self):
        if self._packages is not None:
            return
        # "core bash 5.2.026-2 [installed]"; the first repository listing a name wins
        packages: Dict[str, str] = {}
        for line in _run_pacman(self.config, '-Sl').splitlines():
            parts = line.split()
            if len(parts) >= 2:
                packages.setdefault(parts[1], parts[0])
        self._packages = packages
        groups = set()
        for line in _run_pacman(self.config, '-Sg').splitlines():
            parts = line.split()
            if parts:
                groups.add(parts[0])
        self._groups = groups
        logger.debug(f"Sync databases: {len(self._packages)} packages, {len(groups)} groups")

    def has_package(self, name: str) -> bool:
        self._load()
        return name in self._packages

    def has_group(self, name: str) -> bool:
        self._load()
        return name in self._groups

    def repository_of(self, name: str) -> Optional[str]:
        """Name of the sync repository providing package name, if any."""
        self._load()
        return self._packages.get(name)


def package_slices(targets: List[str], mode: str, sync_db: SyncDatabase
                   ) -> Tuple[List[str], List[str]]:
    """Separate targets into AUR and repository targets.

    Args:
        targets: Names, optionally prefixed "repo/"
        mode: 'any', 'aur' or 'repo'
        sync_db: Sync repository lookup

    Returns:
        Tuple of (aur, repo) target lists, original spelling preserved
    """
    aur = []
    repo = []

    for target in targets:
        db, name = split_db_from_name(target)

        if db == 'aur' or mode == 'aur':
            aur.append(target)
        elif db or mode == 'repo':
            repo.append(target)
        elif sync_db.has_package(name) or sync_db.has_group(name):
            repo.append(target)
        else:
            aur.append(target)

    return aur, repo


def check_root() -> bool:
    """Check if running as root."""
    return os.geteuid() == 0


def remove_packages(names: List[str], config: Configuration) -> int:
    """Remove packages along with their unneeded deps and config files.

    Returns:
        pacman exit status
    """
    if not names:
        return 0

    cmd = [config.pacman_bin, '-Rns']
    if config.no_confirm:
        cmd.append('--noconfirm')
    cmd.append('--')
    cmd.extend(names)

    if not check_root():
        cmd = [config.sudo_bin, *config.sudo_flags.split(), *cmd]

    logger.debug(f"Running: {' '.join(cmd)}")
    try:
        return subprocess.run(cmd).returncode
    except OSError as e:
        raise PacmanError(f"cannot run {cmd[0]}: {e}") from e

"""
PKGBUILD retrieval over plain HTTP.

AUR PKGBUILDs come from the AUR cgit, repository PKGBUILDs from the
distribution's packaging forge. AUR names are fetched in chunks of
AUR_BATCH_SIZE, one worker per chunk; repository targets get one worker
each. A failed package does not stop the others: callers get whatever was
fetched along with an aggregated error.
"""

import logging
import re
import threading
from concurrent.futures import ThreadPoolExecutor
from typing import TYPE_CHECKING, Callable, Dict, List, Optional, Sequence, Tuple

from .aur import fetch_url
from .multierror import MultiError
from .pacman import split_db_from_name
from .query import chunk_names

if TYPE_CHECKING:
    from .aur import AURClient
    from .pacman import SyncDatabase

logger = logging.getLogger(__name__)

AUR_BATCH_SIZE = 20

ARCH_PKGBUILD_URL = "https://gitlab.archlinux.org/archlinux/packaging/packages/{project}/-/raw/main/PKGBUILD"
ARTIX_PKGBUILD_URL = ("https://gitea.artixlinux.org/packages{initial}/{name}"
                      "/raw/branch/master/trunk/PKGBUILD")

ARCH_REPOS = ('core', 'extra', 'multilib', 'testing', 'core-testing', 'extra-testing',
              'multilib-testing', 'community', 'community-testing')
ARTIX_REPOS = ('system', 'world', 'galaxy')

FetchText = Callable[[str], str]


class PkgbuildError(Exception):
    """A PKGBUILD could not be located or downloaded."""


def gitlab_project_name(pkgbase: str) -> str:
    """Arch packaging project path for a package base ("gtk+" -> "gtkplus")."""
    name = re.sub(r'([a-zA-Z0-9]+)\+([a-zA-Z]+)', r'\1-\2', pkgbase)
    name = name.replace('+', 'plus')
    name = re.sub(r'[^a-zA-Z0-9_\-.]', '-', name)
    name = re.sub(r'[_\-]{2,}', '-', name)
    if name == 'tree':
        return 'unix-tree'
    return name


def repo_pkgbuild_url(db: str, name: str) -> Optional[str]:
    """Raw PKGBUILD URL for a repository package, None for unknown repositories."""
    if db in ARCH_REPOS:
        return ARCH_PKGBUILD_URL.format(project=gitlab_project_name(name))
    if db in ARTIX_REPOS:
        return ARTIX_PKGBUILD_URL.format(initial=name[0].upper(), name=name)
    return None


def fetch_text(url: str, timeout: float) -> str:
    return fetch_url(url, timeout).decode('utf-8', errors='replace')


def aur_pkgbuilds(names: Sequence[str], fetch: FetchText, batch_size: int = AUR_BATCH_SIZE,
                  max_workers: Optional[int] = None
                  ) -> Tuple[Dict[str, str], Optional[MultiError]]:
    """Fetch AUR PKGBUILDs, sequentially within a chunk, chunks concurrently.

    Args:
        names: AUR package bases
        fetch: Returns the PKGBUILD text for one name, e.g. AURClient.pkgbuild
        batch_size: Names handled by one worker
        max_workers: Cap on concurrent workers (None = one per chunk)

    Returns:
        Tuple of (name -> PKGBUILD, error); error is None if every fetch succeeded
    """
    chunks = chunk_names(names, batch_size)
    if not chunks:
        return {}, None

    pkgbuilds: Dict[str, str] = {}
    lock = threading.Lock()
    errors = MultiError()

    def make_request(chunk: List[str]):
        for name in chunk:
            try:
                text = fetch(name)
            except Exception as e:
                errors.add(PkgbuildError(f"{name}: {e}"))
                continue
            with lock:
                pkgbuilds[name] = text

    workers = min(len(chunks), max_workers or len(chunks))
    logger.debug(f"Fetching {len(names)} AUR PKGBUILD(s) with {workers} worker(s)")
    with ThreadPoolExecutor(max_workers=workers) as executor:
        for chunk in chunks:
            executor.submit(make_request, chunk)

    return pkgbuilds, errors.return_error()


def repo_pkgbuilds(targets: Sequence[str], sync_db: 'SyncDatabase', fetch: FetchText,
                   max_workers: Optional[int] = None
                   ) -> Tuple[Dict[str, str], Optional[MultiError]]:
    """Fetch repository PKGBUILDs, one concurrent request per target.

    Targets without a "repo/" prefix are looked up in the sync databases.

    Args:
        targets: Names, optionally prefixed "repo/"
        sync_db: Sync repository lookup
        fetch: Returns the body of one URL
        max_workers: Cap on concurrent requests (None = one per target)

    Returns:
        Tuple of (name -> PKGBUILD, error); error is None if every fetch succeeded
    """
    errors = MultiError()
    urls: Dict[str, str] = {}

    # Resolve before fanning out, the sync database is loaded lazily
    for target in targets:
        db, name = split_db_from_name(target)
        if not db:
            db = sync_db.repository_of(name) or ''
        url = repo_pkgbuild_url(db, name)
        if url is None:
            errors.add(PkgbuildError(f"{name}: unable to get PKGBUILD from repo \"{db}\""))
            continue
        urls[name] = url

    pkgbuilds: Dict[str, str] = {}
    lock = threading.Lock()

    def make_request(name: str, url: str):
        try:
            text = fetch(url)
        except Exception as e:
            errors.add(PkgbuildError(f"{name}: {e}"))
            return
        with lock:
            pkgbuilds[name] = text

    if urls:
        workers = min(len(urls), max_workers or len(urls))
        with ThreadPoolExecutor(max_workers=workers) as executor:
            for name, url in urls.items():
                executor.submit(make_request, name, url)

    return pkgbuilds, errors.return_error()


def fetch_pkgbuilds(aur: Sequence[str], repo: Sequence[str], client: 'AURClient',
                    sync_db: 'SyncDatabase', max_workers: Optional[int] = None
                    ) -> Tuple[Dict[str, str], Optional[MultiError]]:
    """Fetch PKGBUILDs for AUR and repository targets.

    Returns:
        Tuple of (name -> PKGBUILD, error) with the errors of both sources
    """
    pkgbuilds: Dict[str, str] = {}
    errors = MultiError()

    if aur:
        names = [split_db_from_name(t)[1] for t in aur]
        found, err = aur_pkgbuilds(names, client.pkgbuild, max_workers=max_workers)
        pkgbuilds.update(found)
        if err:
            for e in err.errors:
                errors.add(e)

    if repo:
        found, err = repo_pkgbuilds(repo, sync_db,
                                    lambda url: fetch_text(url, client.timeout),
                                    max_workers=max_workers)
        pkgbuilds.update(found)
        if err:
            for e in err.errors:
                errors.add(e)

    return pkgbuilds, errors.return_error()

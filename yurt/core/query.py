"""
Batched AUR metadata queries and warning classification.

The AUR rejects info requests naming too many packages, so long name lists
are split into chunks of at most `max_batch` names which are fetched
concurrently. A failing chunk does not cancel the others: callers get the
records that did arrive together with an aggregated error.
"""

import logging
import threading
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Callable, Iterable, List, Optional, Sequence, Set, Tuple

from .aur import AURPackage
from .multierror import MultiError

logger = logging.getLogger(__name__)

FetchFunc = Callable[[List[str]], List[AURPackage]]


def chunk_names(names: Sequence[str], max_batch: int) -> List[List[str]]:
    """Split names into contiguous chunks of at most max_batch names.

    Raises:
        ValueError: If max_batch is not positive
    """
    if max_batch < 1:
        raise ValueError(f"max_batch must be positive, got {max_batch}")
    return [list(names[n:n + max_batch]) for n in range(0, len(names), max_batch)]


def aur_info(names: Sequence[str], fetch: FetchFunc, max_batch: int,
             max_workers: Optional[int] = None
             ) -> Tuple[List[AURPackage], Optional[MultiError]]:
    """Fetch metadata for all names, one concurrent request per chunk.

    Args:
        names: Package names to query
        fetch: Performs one request, e.g. AURClient.info; raises on failure
        max_batch: Maximum names per request
        max_workers: Cap on concurrent requests (None = one per chunk)

    Returns:
        Tuple of (records, error). error is None when every chunk succeeded;
        otherwise records holds whatever the successful chunks returned.
    """
    chunks = chunk_names(names, max_batch)
    if not chunks:
        return [], None

    info: List[AURPackage] = []
    lock = threading.Lock()
    errors = MultiError()

    def make_request(chunk: List[str]):
        try:
            records = fetch(chunk)
        except Exception as e:
            logger.debug(f"AUR request for {len(chunk)} name(s) failed: {e}")
            errors.add(e)
            return
        with lock:
            info.extend(records)

    workers = min(len(chunks), max_workers or len(chunks))
    logger.debug(f"Querying {len(names)} name(s) in {len(chunks)} chunk(s), "
                 f"{workers} worker(s)")

    # Leaving the with-block waits for every chunk
    with ThreadPoolExecutor(max_workers=workers) as executor:
        for chunk in chunks:
            executor.submit(make_request, chunk)

    return info, errors.return_error()


@dataclass
class AURWarnings:
    """Names worth warning about after an AUR query."""
    missing: Set[str] = field(default_factory=set)
    orphans: Set[str] = field(default_factory=set)
    out_of_date: Set[str] = field(default_factory=set)
    ignore: Set[str] = field(default_factory=set)

    @property
    def empty(self) -> bool:
        return not (self.missing or self.orphans or self.out_of_date)

    def sorted_for(self, requested: Iterable[str], names: Set[str]) -> List[str]:
        """Names from one warning set, in the order they were requested."""
        seen = set()
        ordered = []
        for name in requested:
            if name in names and name not in seen:
                seen.add(name)
                ordered.append(name)
        return ordered


def classify_warnings(requested: Iterable[str], records: Iterable[AURPackage],
                      ignore: Optional[Iterable[str]] = None) -> AURWarnings:
    """Classify requested names as missing, orphaned or flagged out of date.

    A name may be both orphaned and out of date. Ignored names are never
    reported.
    """
    warnings = AURWarnings(ignore=set(ignore or ()))
    by_name = {pkg.name: pkg for pkg in records}

    for name in requested:
        if name in warnings.ignore:
            continue

        pkg = by_name.get(name)
        if pkg is None:
            warnings.missing.add(name)
            continue

        if not pkg.maintainer:
            warnings.orphans.add(name)
        if pkg.out_of_date != 0:
            warnings.out_of_date.add(name)

    return warnings

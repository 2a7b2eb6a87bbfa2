"""AUR search ranking and narrowing."""

import logging
from typing import TYPE_CHECKING, Any, Callable, Dict, List, Sequence

from .aur import AURError, AURPackage

if TYPE_CHECKING:
    from .aur import AURClient

logger = logging.getLogger(__name__)

SORT_FIELDS: Dict[str, Callable[[AURPackage], Any]] = {
    'votes': lambda p: p.num_votes,
    'popularity': lambda p: p.popularity,
    'name': lambda p: p.name,
    'base': lambda p: p.package_base,
    'submitted': lambda p: p.first_submitted,
    'modified': lambda p: p.last_modified,
    'id': lambda p: p.id,
    'baseid': lambda p: p.package_base_id,
}

# Keys where "best first" means largest first
_DESCENDING_BY_DEFAULT = ('votes', 'popularity')


def rank(records: Sequence[AURPackage], key: str, descending: bool = False) -> List[AURPackage]:
    """Stable sort of records by one field.

    Strings compare by code point. Equal keys keep their input order in
    both directions.

    Raises:
        ValueError: If key is not a known sort field
    """
    if key not in SORT_FIELDS:
        raise ValueError(f"unknown sort key: {key}")
    return sorted(records, key=SORT_FIELDS[key], reverse=descending)


def sort_for_display(records: Sequence[AURPackage], sort_by: str,
                     sort_mode: str = 'bottomup') -> List[AURPackage]:
    """Order search results for printing.

    Top-down lists the best match first: most votes or popularity, lowest
    name, id or date. Bottom-up inverts this so the best match ends up next
    to the prompt.
    """
    descending = sort_by in _DESCENDING_BY_DEFAULT
    if sort_mode == 'bottomup':
        descending = not descending
    return rank(records, sort_by, descending=descending)


def narrow_search(terms: Sequence[str], client: 'AURClient', by: str = 'name-desc',
                  sort_by: str = None, sort_mode: str = 'bottomup') -> List[AURPackage]:
    """Search the AUR for packages matching every term.

    The RPC takes a single term, so the first term the AUR accepts is sent
    and the remaining terms filter the results by name or description.

    Args:
        terms: Search words
        client: AUR client
        by: RPC search field
        sort_by: Sort key (None = keep RPC order)
        sort_mode: 'bottomup' or 'topdown'

    Returns:
        Matching packages

    Raises:
        AURError: If no term could be searched (last error)
    """
    if not terms:
        return []

    results = None
    used_index = 0
    last_error = None
    for i, term in enumerate(terms):
        try:
            results = client.search(term, by)
        except AURError as e:
            # Typically "Too many package results" for short terms
            logger.debug(f"Search for '{term}' failed: {e}")
            last_error = e
            continue
        used_index = i
        break

    if results is None:
        raise last_error

    others = [t for i, t in enumerate(terms) if i != used_index]
    if others:
        results = [
            pkg for pkg in results
            if all(t in pkg.name or t in pkg.description.lower() for t in others)
        ]

    if sort_by:
        results = sort_for_display(results, sort_by, sort_mode)
    return results

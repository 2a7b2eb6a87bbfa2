"""
AUR RPC client

Talks to the AUR RPC interface (v5) over HTTPS:
    <aur_url>/rpc/?v=5&type=info&arg[]=foo&arg[]=bar
    <aur_url>/rpc/?v=5&type=search&by=name-desc&arg=foo
    <aur_url>/cgit/aur.git/plain/PKGBUILD?h=foo

Only transport and decoding live here; batching of large name lists is
done by core.query.
"""

import json
import logging
import urllib.error
import urllib.parse
import urllib.request
from dataclasses import dataclass, field
from typing import Any, Dict, List

from .. import __version__
from .config import SEARCH_BY

logger = logging.getLogger(__name__)

RPC_VERSION = 5
DEFAULT_AUR_URL = "https://aur.archlinux.org"


class AURError(Exception):
    """An AUR RPC request failed or returned an error."""


def fetch_url(url: str, timeout: float, accept: str = None) -> bytes:
    """GET url and return the response body.

    Raises:
        AURError: On HTTP errors (including non-200 answers) and network failures
    """
    req = urllib.request.Request(url)
    req.add_header('User-Agent', f'yurt/{__version__}')
    if accept:
        req.add_header('Accept', accept)

    try:
        with urllib.request.urlopen(req, timeout=timeout) as response:
            return response.read()
    except urllib.error.HTTPError as e:
        raise AURError(f"HTTP {e.code}: {e.reason}") from e
    except urllib.error.URLError as e:
        raise AURError(f"URL error: {e.reason}") from e
    except OSError as e:
        raise AURError(str(e)) from e


def get_search_by(value: str) -> str:
    """Normalize a search field, unknown values search name and description."""
    if value in SEARCH_BY:
        return value
    return 'name-desc'


@dataclass
class AURPackage:
    """Metadata for one AUR package as returned by the RPC."""
    name: str
    id: int = 0
    package_base_id: int = 0
    package_base: str = ""
    version: str = ""
    description: str = ""
    url: str = ""
    num_votes: int = 0
    popularity: float = 0.0
    out_of_date: int = 0     # timestamp the package was flagged, 0 if not flagged
    maintainer: str = ""     # empty when orphaned
    first_submitted: int = 0
    last_modified: int = 0
    url_path: str = ""
    depends: List[str] = field(default_factory=list)
    make_depends: List[str] = field(default_factory=list)
    check_depends: List[str] = field(default_factory=list)
    opt_depends: List[str] = field(default_factory=list)
    provides: List[str] = field(default_factory=list)
    conflicts: List[str] = field(default_factory=list)
    license: List[str] = field(default_factory=list)
    keywords: List[str] = field(default_factory=list)

    @property
    def orphaned(self) -> bool:
        return not self.maintainer

    @property
    def flagged(self) -> bool:
        return self.out_of_date != 0

    @classmethod
    def from_rpc(cls, data: Dict[str, Any]) -> 'AURPackage':
        """Build from an RPC result object. JSON null becomes 0 or ""."""
        return cls(
            name=data.get('Name') or '',
            id=data.get('ID') or 0,
            package_base_id=data.get('PackageBaseID') or 0,
            package_base=data.get('PackageBase') or '',
            version=data.get('Version') or '',
            description=data.get('Description') or '',
            url=data.get('URL') or '',
            num_votes=data.get('NumVotes') or 0,
            popularity=float(data.get('Popularity') or 0.0),
            out_of_date=data.get('OutOfDate') or 0,
            maintainer=data.get('Maintainer') or '',
            first_submitted=data.get('FirstSubmitted') or 0,
            last_modified=data.get('LastModified') or 0,
            url_path=data.get('URLPath') or '',
            depends=list(data.get('Depends') or []),
            make_depends=list(data.get('MakeDepends') or []),
            check_depends=list(data.get('CheckDepends') or []),
            opt_depends=list(data.get('OptDepends') or []),
            provides=list(data.get('Provides') or []),
            conflicts=list(data.get('Conflicts') or []),
            license=list(data.get('License') or []),
            keywords=list(data.get('Keywords') or []),
        )


class AURClient:
    """Client for the AUR RPC interface."""

    def __init__(self, base_url: str = DEFAULT_AUR_URL, timeout: float = 30.0):
        """Initialize client.

        Args:
            base_url: AUR web root
            timeout: Timeout for HTTP requests in seconds
        """
        self.base_url = base_url.rstrip('/')
        self.timeout = timeout

    @property
    def rpc_url(self) -> str:
        return f"{self.base_url}/rpc/"

    def _request(self, params: List[tuple]) -> List[Dict[str, Any]]:
        query = urllib.parse.urlencode([('v', RPC_VERSION)] + params)
        url = f"{self.rpc_url}?{query}"

        body = fetch_url(url, self.timeout, accept='application/json')
        try:
            data = json.loads(body.decode('utf-8'))
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            raise AURError(str(e)) from e

        if not isinstance(data, dict):
            raise AURError("unexpected RPC response")
        if data.get('type') == 'error':
            raise AURError(data.get('error') or 'unknown RPC error')

        return data.get('results') or []

    def info(self, names: List[str]) -> List[AURPackage]:
        """Fetch metadata for the given package names in one request.

        Names unknown to the AUR are simply absent from the result.

        Raises:
            AURError: If the request fails
        """
        if not names:
            return []
        logger.debug(f"AUR info request for {len(names)} package(s)")
        results = self._request([('type', 'info')] + [('arg[]', n) for n in names])
        return [AURPackage.from_rpc(r) for r in results]

    def search(self, term: str, by: str = 'name-desc') -> List[AURPackage]:
        """Search the AUR.

        Raises:
            AURError: If the request fails (including "Too many package results")
        """
        by = get_search_by(by)
        logger.debug(f"AUR search for '{term}' by {by}")
        results = self._request([('type', 'search'), ('by', by), ('arg', term)])
        return [AURPackage.from_rpc(r) for r in results]

    def pkgbuild_url(self, pkgbase: str) -> str:
        return f"{self.base_url}/cgit/aur.git/plain/PKGBUILD?{urllib.parse.urlencode({'h': pkgbase})}"

    def pkgbuild(self, pkgbase: str) -> str:
        """Fetch the PKGBUILD of an AUR package base as text.

        Raises:
            AURError: If the request fails
        """
        logger.debug(f"Fetching AUR PKGBUILD for {pkgbase}")
        body = fetch_url(self.pkgbuild_url(pkgbase), self.timeout)
        return body.decode('utf-8', errors='replace')

from __future__ import annotations
"""Construction of service, bucket and key URLs."""
import re
from typing import Mapping, Optional
from urllib.parse import quote, urlencode

from .errors import RequestBuildError

DEFAULT_HOSTNAME = "localhost"

# host or host:port, optionally a bracketed IPv6 literal.
_HOSTNAME_RE = re.compile(r"^(\[[0-9A-Fa-f:.]+\]|[A-Za-z0-9_.-]+)(:\d{1,5})?$")


def validate_hostname(hostname: str) -> str:
    """Return ``hostname`` (or the default) after checking it is usable in a URL."""

    hostname = (hostname or "").strip() or DEFAULT_HOSTNAME
    if not _HOSTNAME_RE.match(hostname):
        raise RequestBuildError(f"invalid hostname: {hostname!r}")
    return hostname


class URLBuilder:
    """Builds path-style request URLs for one host."""

    def __init__(self, hostname: str = "", *, secure: bool = False):
        self._hostname = validate_hostname(hostname)
        self._scheme = "https" if secure else "http"

    @property
    def hostname(self) -> str:
        return self._hostname

    @property
    def scheme(self) -> str:
        return self._scheme

    def service_url(self, hostname: Optional[str] = None) -> str:
        host = self._hostname if hostname is None else validate_hostname(hostname)
        return f"{self._scheme}://{host}/"

    def bucket_url(
        self,
        bucket: str,
        query: Optional[Mapping[str, object] | str] = None,
        *,
        hostname: Optional[str] = None,
    ) -> str:
        """Return ``scheme://host/bucket/`` with an optional query string."""

        if not bucket or "/" in bucket:
            raise RequestBuildError(f"invalid bucket name: {bucket!r}")
        url = f"{self.service_url(hostname)}{quote(bucket, safe='')}/"
        if isinstance(query, str):
            return f"{url}?{query}"
        if query:
            return f"{url}?{urlencode(query, quote_via=quote)}"
        return url

    def key_url(self, bucket: str, key: str) -> str:
        if not key:
            raise RequestBuildError("object key must not be empty")
        return self.bucket_url(bucket) + quote(key, safe="/")

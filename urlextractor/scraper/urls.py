"""URL normalisation used when a fetched link is handed to the links store."""

from __future__ import annotations

from urllib.parse import urlsplit

_DEFAULT_PORTS = {"http": 80, "https": 443}
_WRAPPING_CHARS = "`\"'"


def normalize_url(value: str | None) -> str | None:
    """Return a canonical form of *value* suitable for de-duplicating links.

    Surrounding whitespace, back-ticks and quotes are stripped; scheme and
    host are lower-cased; default ports, a bare ``/`` path and the fragment
    are dropped.  Input that does not parse as an absolute URL is returned
    stripped but otherwise untouched.

    >>> normalize_url(" `HTTPS://Example.COM:443/?q=1#top` ")
    'https://example.com?q=1'
    """
    if not value or not isinstance(value, str):
        return value
    value = value.strip().strip(_WRAPPING_CHARS).strip()

    try:
        parts = urlsplit(value)
        port = parts.port
    except ValueError:
        return value
    if not parts.scheme or not parts.hostname:
        return value

    scheme = parts.scheme.lower()
    host = parts.hostname.lower()
    if ":" in host:
        host = f"[{host}]"
    out = f"{scheme}://{host}"
    if port is not None and port != _DEFAULT_PORTS.get(scheme):
        out += f":{port}"
    if parts.path != "/":
        out += parts.path
    if parts.query:
        out += f"?{parts.query}"
    return out

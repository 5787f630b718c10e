"""Metadata extraction: title, description and images from an HTML page.

Extraction is best-effort enrichment.  :func:`extract_metadata` never
raises; a parsing failure is logged and whatever was gathered up to that
point is returned.
"""

from __future__ import annotations

from typing import Optional
from urllib.parse import urljoin, urlsplit

from bs4 import BeautifulSoup

from urlextractor.observability import get_logger
from urlextractor.scraper.models import ExtractedMetadata, ImageSet

logger = get_logger(__name__)

# Checked in order; the first selector matching an <img> with a src wins.
LOGO_SELECTORS = (
    'img[alt*="logo" i]',
    'img[class*="logo" i]',
    'img[id*="logo" i]',
    ".logo img",
    "#logo img",
    '[class*="brand"] img',
    "header img:first-of-type",
    ".navbar-brand img",
    ".site-logo img",
)

FAVICON_RELS = ("icon", "shortcut icon", "apple-touch-icon")
APPLE_TOUCH_ICON_RELS = ("apple-touch-icon", "apple-touch-icon-precomposed")


# ---------------------------------------------------------------------------
# URL resolution
# ---------------------------------------------------------------------------

def resolve_url(candidate: Optional[str], base: str) -> Optional[str]:
    """Return *candidate* as an absolute URL, resolved against *base*.

    Absolute URLs (``http(s)``, ``data:`` and other schemes) are returned
    unchanged, protocol-relative URLs (``//cdn...``) inherit the scheme of
    *base* and anything else is joined with *base*.  Returns ``None`` for
    empty input or when the result is still relative.
    """
    if not candidate:
        return None
    candidate = candidate.strip()
    if not candidate:
        return None
    if candidate.startswith(("http://", "https://")):
        return candidate

    try:
        base_parts = urlsplit(base)
        if candidate.startswith("//"):
            if not base_parts.scheme:
                raise ValueError(f"base URL has no scheme: {base!r}")
            return f"{base_parts.scheme}:{candidate}"

        resolved = urljoin(base, candidate)
        parts = urlsplit(resolved)
        if not parts.scheme:
            raise ValueError(f"cannot resolve {candidate!r} against {base!r}")
        return resolved
    except ValueError as exc:
        logger.debug("url_resolution_failed", candidate=candidate, base=base, error=str(exc))
        return None


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------

def _clean(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    value = value.strip()
    return value or None


def _first(*candidates: Optional[str]) -> Optional[str]:
    """Return the first candidate that is non-empty after trimming."""
    for candidate in candidates:
        cleaned = _clean(candidate)
        if cleaned:
            return cleaned
    return None


def _meta_content(soup: BeautifulSoup, attr: str, value: str) -> Optional[str]:
    """Return the ``content`` of the first ``<meta attr="value">`` (case-insensitive)."""
    for tag in soup.find_all("meta"):
        attr_value = tag.get(attr)
        if isinstance(attr_value, str) and attr_value.strip().lower() == value:
            content = tag.get("content")
            return content if isinstance(content, str) else None
    return None


def _link_href(soup: BeautifulSoup, rel: str) -> Optional[str]:
    """Return the ``href`` of the first ``<link>`` whose whole ``rel`` equals *rel*."""
    for tag in soup.find_all("link"):
        rel_value = tag.get("rel")
        if isinstance(rel_value, list):
            rel_value = " ".join(rel_value)
        if isinstance(rel_value, str) and rel_value.strip().lower() == rel:
            href = tag.get("href")
            if href:
                return href
    return None


def _element_text(soup: BeautifulSoup, name: str) -> Optional[str]:
    tag = soup.find(name)
    return tag.get_text() if tag is not None else None


def _find_logo(soup: BeautifulSoup) -> Optional[str]:
    for selector in LOGO_SELECTORS:
        tag = soup.select_one(selector)
        if tag is not None and tag.get("src"):
            return tag["src"]
    return None


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def extract_metadata(html: str, base_url: str) -> ExtractedMetadata:
    """Extract title, description and images from *html*.

    Relative image URLs are resolved against *base_url*.  The logo falls back
    to the Open Graph image, then to the favicon.
    """
    title: Optional[str] = None
    description: Optional[str] = None
    og_image: Optional[str] = None
    logo: Optional[str] = None
    favicon: Optional[str] = None
    apple_touch_icon: Optional[str] = None

    try:
        soup = BeautifulSoup(html or "", "html.parser")

        title = _first(
            _meta_content(soup, "property", "og:title"),
            _meta_content(soup, "name", "og:title"),
            _element_text(soup, "title"),
            _element_text(soup, "h1"),
        )
        description = _first(
            _meta_content(soup, "property", "og:description"),
            _meta_content(soup, "name", "og:description"),
            _meta_content(soup, "name", "description"),
            _meta_content(soup, "property", "description"),
        )

        og_image = resolve_url(
            _first(
                _meta_content(soup, "property", "og:image"),
                _meta_content(soup, "name", "og:image"),
            ),
            base_url,
        )
        logo = resolve_url(_find_logo(soup), base_url)
        favicon = resolve_url(
            _first(*(_link_href(soup, rel) for rel in FAVICON_RELS)), base_url
        )
        apple_touch_icon = resolve_url(
            _first(*(_link_href(soup, rel) for rel in APPLE_TOUCH_ICON_RELS)), base_url
        )
    except Exception as exc:  # noqa: BLE001 - metadata is best-effort
        logger.warning("metadata_extraction_failed", url=base_url, error=str(exc))

    return ExtractedMetadata(
        title=title,
        description=description,
        images=ImageSet(
            logo=logo or og_image or favicon,
            og_image=og_image,
            favicon=favicon,
            apple_touch_icon=apple_touch_icon,
        ),
    )

"""Link records handed to the external links store.

The store itself (per-user persistence, favourites, pagination) lives
outside this service; only the record shape and the store contract are
defined here.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any, Iterable, Optional, Protocol

from urlextractor.observability import get_logger
from urlextractor.scraper.urls import normalize_url

logger = get_logger(__name__)


@dataclass
class LinkRecord:
    url: str
    link_type: str
    title: Optional[str] = None
    description: Optional[str] = None
    images: dict[str, Optional[str]] = field(default_factory=dict)
    metadata: dict[str, Any] = field(default_factory=dict)
    tags: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        """Serialise with the store's camelCase field names."""
        record = asdict(self)
        record["linkType"] = record.pop("link_type")
        return record


class LinkStore(Protocol):
    def save(self, user_id: str, record: LinkRecord) -> Any:
        """Persist *record* for *user_id* and return the stored document."""
        ...


def _clean_tags(tags: Iterable[str]) -> list[str]:
    seen: set[str] = set()
    cleaned: list[str] = []
    for tag in tags:
        tag = tag.strip()
        if tag and tag.lower() not in seen:
            seen.add(tag.lower())
            cleaned.append(tag)
    return cleaned


def build_link_record(
    data: dict[str, Any],
    tags: Iterable[str] = (),
    fetched_at: Optional[str] = None,
) -> LinkRecord:
    """Build a :class:`LinkRecord` from the ``data`` of a successful envelope.

    The URL is normalised so repeated saves of the same page collapse onto
    one record; tags are trimmed and de-duplicated case-insensitively.
    """
    metadata: dict[str, Any] = {
        "status": data.get("status"),
        "statusText": data.get("statusText"),
    }
    if fetched_at:
        metadata["fetchedAt"] = fetched_at

    return LinkRecord(
        url=normalize_url(data["url"]) or data["url"],
        link_type=data.get("linkType", "other"),
        title=data.get("title"),
        description=data.get("description"),
        images=dict(data.get("images") or {}),
        metadata=metadata,
        tags=_clean_tags(tags),
    )


def save_link(
    store: LinkStore,
    user_id: str,
    data: dict[str, Any],
    tags: Iterable[str] = (),
    fetched_at: Optional[str] = None,
) -> Any:
    """Build the record for a successful fetch and hand it to *store*."""
    record = build_link_record(data, tags=tags, fetched_at=fetched_at)
    logger.info("link_saved", user_id=user_id, url=record.url, link_type=record.link_type)
    return store.save(user_id, record)

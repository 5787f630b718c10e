"""Data models for the fetch / extract / classify pipeline.

Everything here is request-scoped: created when an inbound request arrives
and discarded once its response has been sent.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional

ALLOWED_METHODS = ("GET", "POST", "PUT", "DELETE", "PATCH", "HEAD")
BODY_METHODS = frozenset({"POST", "PUT", "PATCH"})


class LinkType(str, Enum):
    """Category assigned to a fetched resource.  ``OTHER`` is the fallback."""

    SOCIAL = "social"
    PRODUCT = "product"
    NEWS = "news"
    VIDEO = "video"
    PORTFOLIO = "portfolio"
    BLOG = "blog"
    EDUCATION = "education"
    FORUM = "forum"
    OTHER = "other"


@dataclass
class FetchRequest:
    """A validated outbound request."""

    url: str
    method: str = "GET"
    headers: dict[str, str] = field(default_factory=dict)
    body: Any = None

    @property
    def sends_body(self) -> bool:
        return self.body is not None and self.method in BODY_METHODS


@dataclass(frozen=True)
class Identity:
    """User agent plus the browser-like header set presented on one attempt."""

    user_agent: str
    headers: dict[str, str]


@dataclass
class FetchAttempt:
    """Outcome of a single transport call.

    Exactly one of ``status`` (success) or ``error_kind`` (failure) is set.
    """

    attempt_number: int
    identity: Identity
    status: Optional[int] = None
    status_text: Optional[str] = None
    error_kind: Optional[str] = None
    message: Optional[str] = None


@dataclass
class FetchResult:
    """The raw upstream response returned by the executor."""

    status: int
    status_text: str
    headers: dict[str, str]
    body: str | bytes
    attempt: int

    @property
    def content_type(self) -> str:
        for key, value in self.headers.items():
            if key.lower() == "content-type":
                return value
        return ""

    @property
    def is_html(self) -> bool:
        """``True`` when the upstream declared HTML and the body decoded to text."""
        return "text/html" in self.content_type.lower() and isinstance(self.body, str)


@dataclass(frozen=True)
class ImageSet:
    logo: Optional[str] = None
    og_image: Optional[str] = None
    favicon: Optional[str] = None
    apple_touch_icon: Optional[str] = None

    def to_dict(self) -> dict[str, Optional[str]]:
        return {
            "logo": self.logo,
            "ogImage": self.og_image,
            "favicon": self.favicon,
            "appleTouchIcon": self.apple_touch_icon,
        }


@dataclass(frozen=True)
class ExtractedMetadata:
    """Title, description and representative images recovered from a page."""

    title: Optional[str] = None
    description: Optional[str] = None
    images: ImageSet = field(default_factory=ImageSet)

    def to_dict(self) -> dict[str, Any]:
        return {
            "title": self.title,
            "description": self.description,
            "images": self.images.to_dict(),
        }

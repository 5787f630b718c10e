"""Heuristic link classification.

The classifier is an ordered cascade of ``(predicate, label)`` rules.  The
first predicate that matches decides the label; nothing after it is
evaluated.  Order matters: several domains appear in more than one list
(``youtube.com`` is both social and video) and the earlier list wins.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Sequence
from urllib.parse import urlsplit

from urlextractor.scraper.models import LinkType

# ---------------------------------------------------------------------------
# Domain lists (substring match on the full, lower-cased URL)
# ---------------------------------------------------------------------------

SOCIAL_DOMAINS = (
    "facebook.com", "twitter.com", "x.com", "instagram.com", "linkedin.com",
    "youtube.com", "tiktok.com", "snapchat.com", "pinterest.com", "reddit.com",
    "discord.com", "telegram.org", "whatsapp.com", "tumblr.com", "flickr.com",
    "vimeo.com", "twitch.tv", "clubhouse.com", "mastodon.social",
)

VIDEO_DOMAINS = (
    "youtube.com", "youtu.be", "vimeo.com", "dailymotion.com", "twitch.tv",
    "tiktok.com", "vine.co", "wistia.com", "brightcove.com", "jwplayer.com",
)

NEWS_DOMAINS = (
    "cnn.com", "bbc.com", "reuters.com", "ap.org", "nytimes.com", "wsj.com",
    "guardian.com", "washingtonpost.com", "forbes.com", "bloomberg.com",
    "techcrunch.com", "theverge.com", "engadget.com", "wired.com", "ars-technica.com",
    "news.com", "newsweek.com", "time.com", "npr.org", "abc.com", "cbsnews.com",
)

PRODUCT_DOMAINS = (
    "amazon.com", "ebay.com", "shopify.com", "etsy.com", "alibaba.com",
    "walmart.com", "target.com", "bestbuy.com", "apple.com/store", "store.google.com",
    "microsoft.com/store", "nike.com", "adidas.com", "zalando.com", "asos.com",
)

EDUCATION_DOMAINS = (
    "coursera.org", "edx.org", "udemy.com", "khanacademy.org", "mit.edu",
    "harvard.edu", "stanford.edu", "berkeley.edu", "udacity.com", "pluralsight.com",
    "lynda.com", "skillshare.com", "masterclass.com", "codecademy.com",
)

FORUM_DOMAINS = (
    "stackoverflow.com", "stackexchange.com", "quora.com", "reddit.com",
    "discourse.org", "phpbb.com", "vbulletin.com", "xenforo.com", "invision.com",
)

# ---------------------------------------------------------------------------
# URL path fragments
# ---------------------------------------------------------------------------

PRODUCT_PATHS = ("/shop", "/store", "/buy", "/product", "/cart", "/checkout")
BLOG_PATHS = ("/blog", "/article", "/post")
NEWS_PATHS = ("/news", "/press", "/media")
VIDEO_PATHS = ("/video", "/watch", "/play")
PORTFOLIO_PATHS = ("/portfolio", "/work", "/projects")
EDUCATION_PATHS = ("/course", "/learn", "/education", "/tutorial", "/training")
FORUM_PATHS = ("/forum", "/discussion", "/community")

# ---------------------------------------------------------------------------
# Title / description keywords
# ---------------------------------------------------------------------------

SOCIAL_KEYWORDS = ("follow", "connect", "social", "network", "profile", "posts")
PRODUCT_KEYWORDS = ("buy", "price", "shop", "store", "product", "sale", "discount", "cart")
NEWS_KEYWORDS = ("breaking", "news", "report", "latest", "update", "headline")
VIDEO_KEYWORDS = ("video", "watch", "play", "stream", "episode", "movie")
PORTFOLIO_KEYWORDS = ("portfolio", "work", "projects", "showcase", "gallery", "design")
BLOG_KEYWORDS = ("blog", "article", "post", "author", "written", "published")
EDUCATION_KEYWORDS = (
    "course", "learn", "education", "tutorial", "training", "lesson", "study", "university",
)
FORUM_KEYWORDS = (
    "forum", "discussion", "community", "question", "answer", "thread", "reply", "comment",
)

# ---------------------------------------------------------------------------
# Raw HTML markers
# ---------------------------------------------------------------------------

PRODUCT_MARKERS = ('class="product"', "add to cart", "price", "buy now")
VIDEO_MARKERS = ("video", "<video", "youtube", "vimeo")
BLOG_MARKERS = ("article", "blog", "post-content", "entry-content")


@dataclass(frozen=True)
class _Subject:
    """Lower-cased views of the inputs, computed once per classification."""

    url: str
    path: str
    text: str
    html: str


@dataclass(frozen=True)
class Rule:
    predicate: Callable[[_Subject], bool]
    label: LinkType


def _contains_any(field: str, needles: Sequence[str]) -> Callable[[_Subject], bool]:
    def predicate(subject: _Subject) -> bool:
        haystack = getattr(subject, field)
        return any(needle in haystack for needle in needles)

    return predicate


def _html_contains_any(needles: Sequence[str]) -> Callable[[_Subject], bool]:
    def predicate(subject: _Subject) -> bool:
        return bool(subject.html) and any(needle in subject.html for needle in needles)

    return predicate


RULES: tuple[Rule, ...] = (
    # 1. Domain membership
    Rule(_contains_any("url", SOCIAL_DOMAINS), LinkType.SOCIAL),
    Rule(_contains_any("url", VIDEO_DOMAINS), LinkType.VIDEO),
    Rule(_contains_any("url", NEWS_DOMAINS), LinkType.NEWS),
    Rule(_contains_any("url", PRODUCT_DOMAINS), LinkType.PRODUCT),
    Rule(_contains_any("url", EDUCATION_DOMAINS), LinkType.EDUCATION),
    Rule(_contains_any("url", FORUM_DOMAINS), LinkType.FORUM),
    # 2. URL path patterns
    Rule(_contains_any("path", PRODUCT_PATHS), LinkType.PRODUCT),
    Rule(_contains_any("path", BLOG_PATHS), LinkType.BLOG),
    Rule(_contains_any("path", NEWS_PATHS), LinkType.NEWS),
    Rule(_contains_any("path", VIDEO_PATHS), LinkType.VIDEO),
    Rule(_contains_any("path", PORTFOLIO_PATHS), LinkType.PORTFOLIO),
    Rule(_contains_any("path", EDUCATION_PATHS), LinkType.EDUCATION),
    Rule(_contains_any("path", FORUM_PATHS), LinkType.FORUM),
    # 3. Title + description keywords
    Rule(_contains_any("text", SOCIAL_KEYWORDS), LinkType.SOCIAL),
    Rule(_contains_any("text", PRODUCT_KEYWORDS), LinkType.PRODUCT),
    Rule(_contains_any("text", NEWS_KEYWORDS), LinkType.NEWS),
    Rule(_contains_any("text", VIDEO_KEYWORDS), LinkType.VIDEO),
    Rule(_contains_any("text", PORTFOLIO_KEYWORDS), LinkType.PORTFOLIO),
    Rule(_contains_any("text", BLOG_KEYWORDS), LinkType.BLOG),
    Rule(_contains_any("text", EDUCATION_KEYWORDS), LinkType.EDUCATION),
    Rule(_contains_any("text", FORUM_KEYWORDS), LinkType.FORUM),
    # 4. Raw HTML markers
    Rule(_html_contains_any(PRODUCT_MARKERS), LinkType.PRODUCT),
    Rule(_html_contains_any(VIDEO_MARKERS), LinkType.VIDEO),
    Rule(_html_contains_any(BLOG_MARKERS), LinkType.BLOG),
)


def _url_path(url: str) -> str:
    try:
        return urlsplit(url).path
    except ValueError:
        return ""


def classify_link_type(
    url: str,
    title: str | None = "",
    description: str | None = "",
    html: str | None = "",
) -> LinkType:
    """Return the :class:`LinkType` of *url*.

    Deterministic and total: every input yields exactly one label, with
    :attr:`LinkType.OTHER` as the fallback.  All comparisons are
    case-insensitive.
    """
    if not url:
        return LinkType.OTHER

    url_lower = url.lower()
    subject = _Subject(
        url=url_lower,
        path=_url_path(url_lower),
        text=f"{title or ''} {description or ''}".lower(),
        html=(html or "").lower(),
    )
    for rule in RULES:
        if rule.predicate(subject):
            return rule.label
    return LinkType.OTHER

"""Browser identity rotation.

Each fetch attempt presents a freshly drawn user agent together with the
header set a real browser would send for a top-level navigation.
"""

from __future__ import annotations

import random
from typing import Optional
from urllib.parse import urlsplit

from urlextractor.scraper.models import Identity

USER_AGENTS = (
    # Chrome Windows
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36",
    # Chrome macOS
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36",
    # Chrome Linux
    "Mozilla/5.0 (X11; Linux x86_64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36",
    # Firefox Windows
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64; rv:121.0) Gecko/20100101 Firefox/121.0",
    # Firefox macOS
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10.15; rv:121.0) Gecko/20100101 Firefox/121.0",
    # Safari macOS
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/605.1.15 (KHTML, like Gecko) Version/17.2 Safari/605.1.15",
    # Edge Windows
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36 Edg/120.0.0.0",
)

BASE_HEADERS = {
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,image/avif,image/webp,image/apng,*/*;q=0.8",
    "Accept-Language": "en-US,en;q=0.9",
    "Accept-Encoding": "gzip, deflate, br",
    "DNT": "1",
    "Connection": "keep-alive",
    "Upgrade-Insecure-Requests": "1",
    "Sec-Fetch-Dest": "document",
    "Sec-Fetch-Mode": "navigate",
    "Sec-Fetch-Site": "none",
    "Sec-Fetch-User": "?1",
    "Cache-Control": "max-age=0",
}


def _origin(url: str) -> Optional[str]:
    parts = urlsplit(url)
    if not parts.scheme or not parts.hostname:
        return None
    return f"{parts.scheme}://{parts.hostname}"


def _client_hints(user_agent: str) -> dict[str, str]:
    """Return ``Sec-Ch-Ua-*`` hints for Chromium agents; Firefox and Safari send none."""
    if "Chrome/" not in user_agent:
        return {}
    if "Edg/" in user_agent:
        brand = '"Not_A Brand";v="8", "Chromium";v="120", "Microsoft Edge";v="120"'
    else:
        brand = '"Not_A Brand";v="8", "Chromium";v="120", "Google Chrome";v="120"'
    if "Macintosh" in user_agent:
        platform = '"macOS"'
    elif "Linux" in user_agent:
        platform = '"Linux"'
    else:
        platform = '"Windows"'
    return {
        "Sec-Ch-Ua": brand,
        "Sec-Ch-Ua-Mobile": "?0",
        "Sec-Ch-Ua-Platform": platform,
    }


def random_user_agent(rng: Optional[random.Random] = None) -> str:
    return (rng or random).choice(USER_AGENTS)


def build_headers(url: str, user_agent: str) -> dict[str, str]:
    """Return the full header set a browser running *user_agent* sends to *url*."""
    headers = {"User-Agent": user_agent, **BASE_HEADERS}
    headers.update(_client_hints(user_agent))
    origin = _origin(url)
    if origin:
        headers["Referer"] = origin
        headers["Origin"] = origin
    return headers


def next_identity(url: str, rng: Optional[random.Random] = None) -> Identity:
    """Draw a new identity for one attempt against *url*.

    Must be called once per attempt; identities are never reused across
    retries.
    """
    user_agent = random_user_agent(rng)
    return Identity(user_agent=user_agent, headers=build_headers(url, user_agent))

"""
Browser-like request headers for fetching recipe pages and video pages.
Many recipe sites serve stripped pages (or nothing) to obvious bots.
"""
import itertools
from typing import Dict, Optional
from urllib.parse import urlparse


class RequestHeaderManager:
    """Rotates realistic browser headers across outgoing page fetches"""

    USER_AGENTS = [
        # Chrome on Windows
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/124.0.0.0 Safari/537.36",
        # Chrome on macOS
        "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/124.0.0.0 Safari/537.36",
        # Firefox on Windows
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64; rv:125.0) Gecko/20100101 Firefox/125.0",
        # Safari on macOS
        "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/605.1.15 (KHTML, like Gecko) Version/17.4 Safari/605.1.15",
    ]

    ACCEPT = "text/html,application/xhtml+xml,application/xml;q=0.9,image/webp,*/*;q=0.8"

    def __init__(self):
        self._user_agents = itertools.cycle(self.USER_AGENTS)

    def get_headers(self, url: Optional[str] = None, accept_language: str = "en-US,en;q=0.9") -> Dict[str, str]:
        """Build the header set for one request"""
        user_agent = next(self._user_agents)
        headers = {
            "User-Agent": user_agent,
            "Accept": self.ACCEPT,
            "Accept-Language": accept_language,
            "Upgrade-Insecure-Requests": "1",
        }

        if url:
            parsed = urlparse(url)
            if parsed.netloc:
                headers["Referer"] = f"{parsed.scheme or 'https'}://{parsed.netloc}/"

        # Chromium browsers also send fetch metadata
        if "Chrome" in user_agent:
            headers.update({
                "Sec-Fetch-Dest": "document",
                "Sec-Fetch-Mode": "navigate",
                "Sec-Fetch-Site": "same-origin" if url else "none",
            })

        return headers


def is_http_url(url: str) -> bool:
    """Only absolute http(s) URLs are fetched"""
    parsed = urlparse(url or "")
    return parsed.scheme in ("http", "https") and bool(parsed.netloc)


def source_name_from_url(url: Optional[str]) -> str:
    """Site name shown as a recipe's source, e.g. "seriouseats.com" """
    if not url:
        return ""
    host = urlparse(url).hostname or ""
    return host[4:] if host.startswith("www.") else host

import re
import logging
from typing import Optional

import httpx
from bs4 import BeautifulSoup

from app.core.config import settings
from app.core.exceptions import FetchError
from .request_utils import RequestHeaderManager, is_http_url

logger = logging.getLogger(__name__)


class URLParser:
    """Fetches recipe webpages and reduces them to text for AI extraction"""

    def __init__(self, timeout: Optional[float] = None, transport: Optional[httpx.AsyncBaseTransport] = None):
        self.timeout = timeout or settings.FETCH_TIMEOUT_SECONDS
        self.transport = transport
        self.header_manager = RequestHeaderManager()

    async def fetch_html(self, url: str) -> str:
        """
        Download a page's HTML.

        Raises:
            FetchError: invalid URL, network failure, timeout or an error status.
                Fetch failures are never retried automatically.
        """
        if not is_http_url(url):
            raise FetchError(f"Not an http(s) URL: {url!r}", stage="fetching")

        headers = self.header_manager.get_headers(url)
        try:
            async with httpx.AsyncClient(
                timeout=self.timeout,
                follow_redirects=True,
                transport=self.transport
            ) as client:
                response = await client.get(url, headers=headers)
        except httpx.HTTPError as e:
            logger.warning(f"Fetch failed for {url}: {e.__class__.__name__}: {e}")
            raise FetchError(f"Could not reach {url}", stage="fetching") from e

        if response.status_code >= 400:
            logger.warning(f"Fetch for {url} returned HTTP {response.status_code}")
            raise FetchError(f"{url} returned HTTP {response.status_code}", stage="fetching")

        html = response.text
        if not html or not html.strip():
            raise FetchError(f"{url} returned an empty page", stage="fetching")

        logger.debug(f"Fetched {len(html)} characters from {url}")
        return html

    @staticmethod
    def extract_page_text(html: str, max_chars: Optional[int] = None) -> str:
        """Visible page text with scripts and styles removed, whitespace collapsed and truncated"""
        max_chars = max_chars or settings.MAX_PAGE_TEXT_CHARS
        soup = BeautifulSoup(html, 'html.parser')
        for element in soup(['script', 'style', 'noscript']):
            element.decompose()

        text = soup.get_text(separator=' ')
        text = re.sub(r'\s+', ' ', text).strip()
        return text[:max_chars]

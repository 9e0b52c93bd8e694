"""
Cooking-video source: resolves a YouTube video id and pulls caption text,
falling back to the title and description when a video has no usable captions.
"""
import re
import html
import logging
from typing import Optional

import httpx
from bs4 import BeautifulSoup

from app.core.config import settings
from app.core.exceptions import InvalidVideoUrlError, TranscriptUnavailableError
from .request_utils import RequestHeaderManager

logger = logging.getLogger(__name__)

VIDEO_ID_PATTERN = re.compile(
    r'(?:youtube\.com/watch\?v=|youtu\.be/|youtube\.com/embed/|youtube\.com/shorts/)([^&\n?#]+)'
)
CAPTION_URL_PATTERN = re.compile(r'"baseUrl":\s*"([^"]+timedtext[^"]+)"')
DESCRIPTION_PATTERN = re.compile(r'"description":\s*\{"simpleText":\s*"([^"]+)"')

# Caption text shorter than this is replaced by the title/description fallback
MIN_CAPTION_LENGTH = 100


def extract_video_id(url: str) -> str:
    """Video id from a watch, short, embed or youtu.be URL"""
    match = VIDEO_ID_PATTERN.search(url or "")
    if not match:
        raise InvalidVideoUrlError(f"No video id in {url!r}", stage="fetching")
    return match.group(1)


class YouTubeParser:
    """Fetches transcript text for a video"""

    WATCH_URL = "https://www.youtube.com/watch?v={video_id}"

    def __init__(self, timeout: Optional[float] = None, transport: Optional[httpx.AsyncBaseTransport] = None):
        self.timeout = timeout or settings.FETCH_TIMEOUT_SECONDS
        self.transport = transport
        self.header_manager = RequestHeaderManager()

    async def fetch_transcript(self, video_id: str) -> str:
        """
        Caption text for a video, or "Title: ...\\nDescription: ..." when the
        captions are missing or too short.

        Raises:
            TranscriptUnavailableError: the page could not be read, or the best
                available text is shorter than MIN_TRANSCRIPT_LENGTH.
        """
        watch_url = self.WATCH_URL.format(video_id=video_id)

        try:
            async with httpx.AsyncClient(
                timeout=self.timeout,
                follow_redirects=True,
                transport=self.transport
            ) as client:
                page = await client.get(watch_url, headers=self.header_manager.get_headers())
                if page.status_code >= 400:
                    raise TranscriptUnavailableError(
                        f"Watch page for {video_id} returned HTTP {page.status_code}", stage="fetching"
                    )
                watch_html = page.text

                transcript = ""
                caption_match = CAPTION_URL_PATTERN.search(watch_html)
                if caption_match:
                    caption_url = caption_match.group(1).replace('\\u0026', '&')
                    captions = await client.get(caption_url)
                    if captions.status_code < 400:
                        transcript = self._parse_captions(captions.text)
        except httpx.HTTPError as e:
            logger.warning(f"Transcript fetch failed for {video_id}: {e.__class__.__name__}: {e}")
            raise TranscriptUnavailableError(f"Could not reach video {video_id}", stage="fetching") from e

        if len(transcript) < MIN_CAPTION_LENGTH:
            logger.info(f"No usable captions for {video_id}, using title and description")
            transcript = self._title_and_description(watch_html)

        if len(transcript.strip()) < settings.MIN_TRANSCRIPT_LENGTH:
            raise TranscriptUnavailableError(
                f"Transcript for {video_id} is only {len(transcript.strip())} characters", stage="fetching"
            )

        return transcript[:settings.MAX_TRANSCRIPT_CHARS]

    @staticmethod
    def _parse_captions(caption_xml: str) -> str:
        soup = BeautifulSoup(caption_xml, 'html.parser')
        lines = [html.unescape(node.get_text()).strip() for node in soup.find_all('text')]
        return ' '.join(line for line in lines if line)

    @staticmethod
    def _title_and_description(watch_html: str) -> str:
        soup = BeautifulSoup(watch_html, 'html.parser')
        title = soup.title.get_text().strip() if soup.title else ""

        description = ""
        match = DESCRIPTION_PATTERN.search(watch_html)
        if match:
            description = match.group(1).replace('\\n', '\n')

        return f"Title: {title}\nDescription: {description}"

"""Tests for the content fetchers using mocked HTTP transports."""

import asyncio

import httpx
import pytest

from app.core.config import settings
from app.core.exceptions import FetchError, InvalidPhotoError, InvalidVideoUrlError, TranscriptUnavailableError
from app.services.parsers.photo_parser import decode_photo_payloads
from app.services.parsers.request_utils import RequestHeaderManager, is_http_url, source_name_from_url
from app.services.parsers.url_parser import URLParser
from app.services.parsers.youtube_parser import YouTubeParser, extract_video_id
from tests.fakes import PLAIN_PAGE, TINY_PNG

CAPTION_URL = "https://www.youtube.com/api/timedtext?v=abc123&lang=en"
CAPTIONS = (
    '<?xml version="1.0" encoding="utf-8" ?><transcript>'
    '<text start="0" dur="2">Today we&amp;#39;re making a classic risotto</text>'
    '<text start="2" dur="3">Start by warming two litres of stock in a saucepan</text>'
    '<text start="5" dur="3">then toast the rice in butter for two minutes</text>'
    '</transcript>'
)


def _watch_page(captions=True, description="Creamy mushroom risotto, step by step with all the quantities you need."):
    caption_json = '"captionTracks":[{"baseUrl":"https://www.youtube.com/api/timedtext?v=abc123\\u0026lang=en"}],'
    return (
        "<html><head><title>Perfect Risotto - YouTube</title></head><body><script>var data = {"
        f"{caption_json if captions else ''}"
        f'"description":{{"simpleText":"{description}"}}'
        "};</script></body></html>"
    )


def _youtube_transport(watch_html, captions=CAPTIONS):
    def handler(request):
        if request.url.path == "/watch":
            return httpx.Response(200, text=watch_html)
        if request.url.path == "/api/timedtext":
            return httpx.Response(200, text=captions)
        return httpx.Response(404)
    return httpx.MockTransport(handler)


class TestURLParser:
    """Test suite for webpage fetching."""

    def test_fetches_html_with_browser_headers(self):
        """Test successful fetches send a realistic header set."""
        seen = {}

        def handler(request):
            seen.update(request.headers)
            return httpx.Response(200, text=PLAIN_PAGE)

        parser = URLParser(transport=httpx.MockTransport(handler))
        html = asyncio.run(parser.fetch_html("https://www.example.com/pancakes"))

        assert "Grandma's Pancakes" in html
        assert "Mozilla/5.0" in seen["user-agent"]
        assert seen["referer"] == "https://www.example.com/"

    def test_error_status_is_fetch_failure(self):
        """Test HTTP errors surface as fetch failures."""
        parser = URLParser(transport=httpx.MockTransport(lambda request: httpx.Response(403)))

        with pytest.raises(FetchError) as exc_info:
            asyncio.run(parser.fetch_html("https://example.com/blocked"))

        assert exc_info.value.status_code == 400
        assert exc_info.value.stage == "fetching"

    def test_network_error_is_fetch_failure(self):
        """Test connection errors surface as fetch failures."""
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        parser = URLParser(transport=httpx.MockTransport(handler))

        with pytest.raises(FetchError):
            asyncio.run(parser.fetch_html("https://example.com/down"))

    def test_non_http_url_rejected(self):
        """Test only http(s) URLs are fetched."""
        with pytest.raises(FetchError):
            asyncio.run(URLParser().fetch_html("file:///etc/passwd"))

    def test_page_text_strips_markup(self):
        """Test scripts and styles are removed and the text is truncated."""
        text = URLParser.extract_page_text(PLAIN_PAGE)

        assert "trackVisitor" not in text
        assert "color: red" not in text
        assert "Whisk 2 cups flour with 2 eggs." in text
        assert len(URLParser.extract_page_text(PLAIN_PAGE, max_chars=10)) == 10


class TestRequestUtils:
    """Test suite for header and URL helpers."""

    def test_user_agents_rotate(self):
        """Test consecutive requests use different browsers."""
        manager = RequestHeaderManager()
        agents = {manager.get_headers()["User-Agent"] for _ in RequestHeaderManager.USER_AGENTS}

        assert len(agents) == len(RequestHeaderManager.USER_AGENTS)

    def test_url_helpers(self):
        """Test URL validation and source names."""
        assert is_http_url("https://example.com/r")
        assert not is_http_url("example.com/r")
        assert source_name_from_url("https://www.seriouseats.com/pasta") == "seriouseats.com"
        assert source_name_from_url(None) == ""


class TestYouTube:
    """Test suite for video id resolution and transcripts."""

    @pytest.mark.parametrize("url", [
        "https://www.youtube.com/watch?v=abc123&t=10",
        "https://youtu.be/abc123?si=share",
        "https://www.youtube.com/embed/abc123",
        "https://youtube.com/shorts/abc123#comments",
    ])
    def test_video_id_formats(self, url):
        """Test every supported URL shape yields the id."""
        assert extract_video_id(url) == "abc123"

    def test_invalid_video_url(self):
        """Test URLs without an id are rejected."""
        with pytest.raises(InvalidVideoUrlError):
            extract_video_id("https://www.youtube.com/@somechannel")

    def test_captions_joined(self):
        """Test caption text is unescaped and joined."""
        parser = YouTubeParser(transport=_youtube_transport(_watch_page()))

        transcript = asyncio.run(parser.fetch_transcript("abc123"))

        assert transcript.startswith("Today we're making a classic risotto Start by warming")

    def test_short_captions_fall_back_to_description(self):
        """Test title and description replace captions that are too short."""
        parser = YouTubeParser(transport=_youtube_transport(_watch_page(), captions="<transcript><text>Hi</text></transcript>"))

        transcript = asyncio.run(parser.fetch_transcript("abc123"))

        assert transcript.startswith("Title: Perfect Risotto - YouTube\nDescription: Creamy mushroom risotto")

    def test_missing_transcript_rejected(self):
        """Test videos without captions or a usable description fail before extraction."""
        parser = YouTubeParser(transport=_youtube_transport(_watch_page(captions=False, description="")))

        with pytest.raises(TranscriptUnavailableError):
            asyncio.run(parser.fetch_transcript("abc123"))


class TestPhotoPayloads:
    """Test suite for decode_photo_payloads."""

    def test_only_first_photos_considered(self):
        """Test the photo ceiling."""
        payloads = decode_photo_payloads([TINY_PNG] * (settings.MAX_PHOTOS + 2))

        assert len(payloads) == settings.MAX_PHOTOS
        assert payloads[0].media_type == "image/png"

    def test_invalid_entries_skipped(self):
        """Test non data URIs are ignored while valid ones are kept."""
        payloads = decode_photo_payloads(["not-a-photo", TINY_PNG])

        assert len(payloads) == 1

    def test_no_valid_photos(self):
        """Test an empty or invalid photo list is a fetch failure."""
        with pytest.raises(InvalidPhotoError):
            decode_photo_payloads([])
        with pytest.raises(InvalidPhotoError):
            decode_photo_payloads(["https://example.com/photo.jpg"])

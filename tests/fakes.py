"""Fake collaborators and sample sources shared by the test modules."""
import json
from types import SimpleNamespace

from app.core.exceptions import FetchError
from app.services.parsers.url_parser import URLParser


def json_ld_page(schema, extra_blocks=()):
    blocks = ''.join(f'<script type="application/ld+json">{block}</script>' for block in extra_blocks)
    return (
        "<html><head><title>Weeknight Bolognese</title>"
        f"{blocks}<script type=\"application/ld+json\">{json.dumps(schema)}</script>"
        "</head><body><h1>Weeknight Bolognese</h1></body></html>"
    )


PLAIN_PAGE = (
    "<html><head><title>Grandma's Pancakes</title><style>body {color: red}</style></head>"
    "<body><script>trackVisitor()</script><h1>Grandma's Pancakes</h1>"
    "<p>Whisk 2 cups flour with 2 eggs.</p></body></html>"
)

SCHEMA_RECIPE = {
    "@context": "https://schema.org",
    "@type": "Recipe",
    "name": "Weeknight Bolognese",
    "recipeYield": "4 servings",
    "prepTime": "PT15M",
    "cookTime": "PT1H30M",
    "image": {"@type": "ImageObject", "url": "https://www.example.com/bolognese.jpg"},
    "author": {"@type": "Person", "name": "Ada Cook"},
    "recipeIngredient": ["1 lb ground beef", "1 onion, diced", "2 cups tomato passata"],
    "recipeInstructions": [
        "Brown the beef in a large pot over medium heat.",
        "Add the onion and cook until soft and golden.",
        "Pour in the passata and simmer for an hour."
    ],
}

SLOW_PATH_RECIPE = {
    "title": "Grandma's Pancakes",
    "servings": 2,
    "prepTime": "10 min",
    "cookTime": "15 min",
    "imageUrl": None,
    "ingredients": ["250g / 2 cups flour", "2 eggs", "300ml / 1.25 cups milk"],
    "steps": [
        {"instruction": "Whisk the flour, eggs and milk into a smooth batter.",
         "ingredients": ["250g / 2 cups flour", "2 eggs", "300ml / 1.25 cups milk"]},
        {"instruction": "Cook ladlefuls of batter in a hot buttered pan until golden.", "ingredients": []},
    ],
    "tips": ["Rest the batter for 10 minutes."],
    "source": "",
    "sourceUrl": None,
    "author": None,
}

DUAL_UNIT_RECIPE = {
    "title": "Weeknight Bolognese",
    "servings": 99,
    "ingredients": ["450g / 1 lb ground beef", "1 onion, diced", "480ml / 2 cups tomato passata"],
    "steps": [
        {"instruction": "Brown the beef in a large pot over medium heat.", "ingredients": ["450g / 1 lb ground beef"]},
        {"instruction": "Add the onion and cook until soft and golden.", "ingredients": ["1 onion, diced"]},
        {"instruction": "Pour in the passata and simmer for an hour.",
         "ingredients": ["480ml / 2 cups tomato passata"]},
    ],
    "tips": [],
    "source": "somewhere-else.com",
    "sourceUrl": "https://somewhere-else.com/",
}

TINY_PNG = "data:image/png;base64,iVBORw0KGgoAAAANSUhEUgAAAAEAAAABCAYAAAAfFcSJAAAADUlEQVR42mP8z8BQDwAEhQGAhKmMIQAAAABJRU5ErkJggg=="


class FakeMessages:
    """Stands in for ``AsyncAnthropic().messages``; replies are consumed in order"""

    def __init__(self, replies):
        self.replies = list(replies)
        self.calls = []

    async def create(self, **kwargs):
        self.calls.append(kwargs)
        reply = self.replies.pop(0)
        if isinstance(reply, Exception):
            raise reply
        return SimpleNamespace(content=[SimpleNamespace(type="text", text=reply)], stop_reason="end_turn")


class FakeAnthropic:
    def __init__(self, *replies):
        self.messages = FakeMessages(replies)


class FakeAIExtractor:
    """Scripted AIExtractor; a reply that is an exception is raised instead of returned"""

    def __init__(self, extract=None, enhance=None, repair=None, translate=None):
        self.replies = {"extract": extract, "enhance": enhance, "repair": repair, "translate": translate}
        self.calls = []

    def _reply(self, name, *args):
        self.calls.append((name, args))
        reply = self.replies[name]
        if isinstance(reply, Exception):
            raise reply
        if reply is None:
            raise AssertionError(f"Unexpected AI call: {name}")
        return json.loads(json.dumps(reply))

    def called(self, name):
        return [call for call in self.calls if call[0] == name]

    async def extract_from_webpage(self, page_text, url, language=None):
        return self._reply("extract", page_text, url, language)

    async def extract_from_photos(self, photos, language=None):
        return self._reply("extract", photos, language)

    async def extract_from_transcript(self, transcript, url, language=None):
        return self._reply("extract", transcript, url, language)

    async def enhance_dual_units(self, recipe, language=None):
        return self._reply("enhance", recipe, language)

    async def repair(self, recipe, issues, language=None):
        return self._reply("repair", recipe, issues, language)

    async def translate(self, recipe, target_language):
        return self._reply("translate", recipe, target_language)


class FakeURLParser:
    def __init__(self, html=None, error=None):
        self.html = html
        self.error = error
        self.fetched = []

    async def fetch_html(self, url):
        self.fetched.append(url)
        if self.error:
            raise self.error
        return self.html

    extract_page_text = staticmethod(URLParser.extract_page_text)


class FakeVideoParser:
    def __init__(self, transcript="Today we cook a rich tomato soup. " * 10, error=None):
        self.transcript = transcript
        self.error = error
        self.requested = []

    async def fetch_transcript(self, video_id):
        self.requested.append(video_id)
        if self.error:
            raise self.error
        return self.transcript


def unreachable():
    return FetchError("connection refused", stage="fetching")

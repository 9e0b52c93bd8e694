"""
Embedded schema.org Recipe detection for the fast extraction path.

Recipe sites usually publish their recipe as JSON-LD, sometimes as a bare
object, sometimes inside an array or an ``@graph``. When one is found the
core fields are converted directly, with no AI call.
"""
import re
import json
import logging
from typing import Any, Dict, List, Optional

from bs4 import BeautifulSoup

from app.schemas.recipe import Recipe
from .request_utils import source_name_from_url
from .validation_pipeline import coerce_recipe, parse_servings

logger = logging.getLogger(__name__)

ISO_DURATION_PATTERN = re.compile(r'PT(?:(\d+)H)?(?:(\d+)M)?')


def _is_recipe_type(item: Any) -> bool:
    if not isinstance(item, dict):
        return False
    schema_type = item.get('@type')
    if isinstance(schema_type, list):
        return 'Recipe' in schema_type
    return schema_type == 'Recipe'


def _find_in_candidates(data: Any) -> Optional[Dict[str, Any]]:
    """Search a decoded JSON-LD payload for the first Recipe object"""
    if isinstance(data, dict):
        if _is_recipe_type(data):
            return data
        graph = data.get('@graph')
        if isinstance(graph, list):
            return _find_in_candidates(graph)
        return None

    if isinstance(data, list):
        for item in data:
            found = _find_in_candidates(item)
            if found:
                return found

    return None


def find_recipe_schema(html: str) -> Optional[Dict[str, Any]]:
    """Return the first embedded Recipe object in the page, or None"""
    soup = BeautifulSoup(html, 'html.parser')

    for script in soup.find_all('script', {'type': 'application/ld+json'}):
        raw = script.string or script.get_text()
        if not raw or not raw.strip():
            continue
        try:
            data = json.loads(raw)
        except ValueError:
            # Broken JSON-LD blocks are common; the next block may still be valid
            logger.debug("Skipping unparseable JSON-LD block")
            continue

        recipe = _find_in_candidates(data)
        if recipe:
            return recipe

    return None


def format_duration(duration: Optional[str]) -> Optional[str]:
    """
    Render an ISO 8601 duration for display.

    ``PT15M`` becomes "15 min", ``PT1H`` "1h" and ``PT1H30M`` "1h 30min".
    Values that are not ISO durations are returned unchanged; zero durations
    become None.
    """
    if not duration:
        return None

    duration = str(duration)
    match = ISO_DURATION_PATTERN.search(duration)
    if not match:
        return duration

    hours = int(match.group(1) or 0)
    minutes = int(match.group(2) or 0)
    if hours and minutes:
        return f"{hours}h {minutes}min"
    if hours:
        return f"{hours}h"
    if minutes:
        return f"{minutes} min"
    return None


def _step_text(step: Dict[str, Any]) -> str:
    return str(step.get('text') or step.get('name') or '').strip()


def parse_instructions(instructions: Any) -> List[Dict[str, Any]]:
    """Flatten recipeInstructions into step dicts with empty ingredient references"""
    steps = []

    if isinstance(instructions, str):
        for sentence in re.split(r'\.|\n', instructions):
            if sentence.strip():
                steps.append({"instruction": sentence.strip() + ".", "ingredients": []})
        return steps

    if not isinstance(instructions, list):
        return steps

    for step in instructions:
        if isinstance(step, str):
            steps.append({"instruction": step.strip(), "ingredients": []})
        elif isinstance(step, dict) and step.get('@type') == 'HowToSection':
            for item in step.get('itemListElement') or []:
                if isinstance(item, dict):
                    steps.append({"instruction": _step_text(item), "ingredients": []})
                elif isinstance(item, str):
                    steps.append({"instruction": item.strip(), "ingredients": []})
        elif isinstance(step, dict):
            steps.append({"instruction": _step_text(step), "ingredients": []})
        else:
            steps.append({"instruction": str(step), "ingredients": []})

    return steps


def parse_image(image: Any) -> Optional[str]:
    if isinstance(image, str):
        return image
    if isinstance(image, dict):
        return image.get('url')
    if isinstance(image, list) and image:
        first = image[0]
        if isinstance(first, str):
            return first
        if isinstance(first, dict):
            return first.get('url')
    return None


def parse_author(author: Any) -> Optional[str]:
    if isinstance(author, str):
        return author
    if isinstance(author, dict):
        return author.get('name')
    if isinstance(author, list) and author:
        first = author[0]
        if isinstance(first, str):
            return first
        if isinstance(first, dict):
            return first.get('name')
    return None


def convert_schema_to_recipe(schema: Dict[str, Any], source_url: str) -> Recipe:
    """
    Convert a schema.org Recipe object into the normalized Recipe shape.

    Ingredients are copied as published, so the result still needs the
    dual-unit enhancement stage and has no per-step ingredient references yet.
    """
    ingredients = schema.get('recipeIngredient') or []
    if isinstance(ingredients, str):
        ingredients = [ingredients]

    raw = {
        "title": schema.get('name') or "Recipe",
        "servings": parse_servings(schema.get('recipeYield')),
        "prepTime": format_duration(schema.get('prepTime')),
        "cookTime": format_duration(schema.get('cookTime')),
        "imageUrl": parse_image(schema.get('image')),
        "ingredients": [str(ingredient).strip() for ingredient in ingredients if str(ingredient).strip()],
        "steps": parse_instructions(schema.get('recipeInstructions')),
        "tips": [],
        "source": source_name_from_url(source_url),
        "sourceUrl": source_url,
        "author": parse_author(schema.get('author')),
    }
    return coerce_recipe(raw)

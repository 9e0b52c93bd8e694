from typing import Optional
import logging

from app.core.languages import resolve_language
from app.schemas.recipe import Recipe
from app.services.parsers import AIExtractor, coerce_recipe
from app.services.parsers.validation_pipeline import restore_identity_fields

logger = logging.getLogger(__name__)


class TranslationService:
    """Re-expresses a finished recipe's text in another supported language"""

    def __init__(self, ai_extractor: Optional[AIExtractor] = None):
        self.ai_extractor = ai_extractor or AIExtractor()

    async def translate(self, recipe: Recipe, target_language: Optional[str]) -> Recipe:
        """
        Translate title, ingredients, steps and tips.

        Source, source URL, image URL, author, servings and times are copied
        back from the input unchanged. Unsupported languages fall back to English.

        Raises:
            NoStructuredJsonError: the model answer contained no JSON object.
            UpstreamProviderError: the AI provider call failed.
        """
        language = resolve_language(target_language)
        raw = await self.ai_extractor.translate(recipe, language)
        translated = restore_identity_fields(coerce_recipe(raw), recipe)
        logger.info(f"Translated recipe {recipe.title!r} to {language}")
        return translated

import re
import json
import logging
from typing import Any, Dict, List, Optional

import anthropic
from anthropic import AsyncAnthropic

from app.core.config import settings
from app.core.exceptions import NoStructuredJsonError, UpstreamProviderError
from app.core.languages import language_instruction, language_name
from app.schemas.recipe import Recipe
from .photo_parser import PhotoPayload
from .progress_events import PipelineStage
from .validation_pipeline import ValidationIssue
from . import prompts

logger = logging.getLogger(__name__)

JSON_OBJECT_PATTERN = re.compile(r'\{[\s\S]*\}')
CODE_FENCE_PATTERN = re.compile(r'```(?:json)?\n?')


def extract_json_object(text: str) -> Dict[str, Any]:
    """
    Locate and parse the JSON object in a model response.

    Code fences are stripped and the outermost ``{...}`` span is parsed.
    There is no partial result: anything unparseable is a failure.
    """
    cleaned = CODE_FENCE_PATTERN.sub('', text or '').strip()
    match = JSON_OBJECT_PATTERN.search(cleaned)
    if not match:
        raise NoStructuredJsonError("No JSON object found in model response")

    try:
        data = json.loads(match.group(0))
    except ValueError as e:
        raise NoStructuredJsonError(f"Model response JSON did not parse: {e}") from e

    if not isinstance(data, dict):
        raise NoStructuredJsonError("Model response JSON is not an object")
    return data


class AIExtractor:
    """
    Recipe extraction, repair, enhancement and translation through the
    Anthropic messages API. Each call returns the raw JSON object; callers
    coerce it into a Recipe.
    """

    def __init__(self, client: Optional[Any] = None, api_key: Optional[str] = None):
        self.api_key = api_key or settings.ANTHROPIC_API_KEY
        self._client = client

    @property
    def client(self):
        if self._client is None:
            self._client = AsyncAnthropic(api_key=self.api_key, timeout=settings.AI_REQUEST_TIMEOUT_SECONDS)
        return self._client

    async def _complete(self, model: str, max_tokens: int, content: Any, stage: str) -> str:
        """Send one user message and return the concatenated text blocks"""
        try:
            response = await self.client.messages.create(
                model=model,
                max_tokens=max_tokens,
                messages=[{"role": "user", "content": content}]
            )
        except anthropic.APIError as e:
            # Provider detail is logged, never returned to the client
            logger.error(f"AI provider error during {stage}: {e.__class__.__name__}: {e}")
            raise UpstreamProviderError(f"AI provider failed during {stage}", stage=stage) from e

        text = ''.join(getattr(block, 'text', '') or '' for block in (response.content or []))
        if getattr(response, 'stop_reason', None) == "max_tokens":
            logger.warning(f"AI response for {stage} hit the {max_tokens} token ceiling")
        return text

    async def _complete_json(self, model: str, max_tokens: int, content: Any, stage: str) -> Dict[str, Any]:
        text = await self._complete(model, max_tokens, content, stage)
        try:
            return extract_json_object(text)
        except NoStructuredJsonError as e:
            e.stage = stage
            logger.warning(f"No JSON object in AI response during {stage} ({len(text)} chars)")
            raise

    @staticmethod
    def _shape(source: str = "", source_url: Optional[str] = None) -> str:
        return prompts.RECIPE_JSON_SHAPE.format(source=source, source_url=json.dumps(source_url))

    @staticmethod
    def _rules(language: Optional[str]) -> str:
        return prompts.SHARED_RULES.format(language_instruction=language_instruction(language))

    @staticmethod
    def _recipe_json(recipe: Recipe) -> str:
        return json.dumps(recipe.to_api(), ensure_ascii=False)

    async def extract_from_webpage(self, page_text: str, url: str, language: Optional[str] = None) -> Dict[str, Any]:
        prompt = prompts.WEBPAGE_PROMPT.format(
            shape=self._shape(source_url=url),
            rules=self._rules(language),
            page_text=page_text[:settings.MAX_PAGE_TEXT_CHARS]
        )
        return await self._complete_json(
            settings.EXTRACTION_MODEL, settings.EXTRACTION_MAX_TOKENS, prompt, PipelineStage.SLOW_EXTRACT.value
        )

    async def extract_from_photos(self, photos: List[PhotoPayload], language: Optional[str] = None) -> Dict[str, Any]:
        content = [photo.to_content_block() for photo in photos]
        content.append({
            "type": "text",
            "text": prompts.PHOTO_PROMPT.format(shape=self._shape(source="Cookbook"), rules=self._rules(language))
        })
        return await self._complete_json(
            settings.EXTRACTION_MODEL, settings.PHOTO_EXTRACTION_MAX_TOKENS, content, PipelineStage.SLOW_EXTRACT.value
        )

    async def extract_from_transcript(self, transcript: str, url: str, language: Optional[str] = None) -> Dict[str, Any]:
        prompt = prompts.TRANSCRIPT_PROMPT.format(
            shape=self._shape(source="YouTube", source_url=url),
            rules=self._rules(language),
            transcript=transcript[:settings.MAX_TRANSCRIPT_CHARS]
        )
        return await self._complete_json(
            settings.EXTRACTION_MODEL, settings.VIDEO_EXTRACTION_MAX_TOKENS, prompt, PipelineStage.SLOW_EXTRACT.value
        )

    async def enhance_dual_units(self, recipe: Recipe, language: Optional[str] = None) -> Dict[str, Any]:
        prompt = prompts.ENHANCE_PROMPT.format(recipe_json=self._recipe_json(recipe), rules=self._rules(language))
        return await self._complete_json(
            settings.UTILITY_MODEL, settings.ENHANCE_MAX_TOKENS, prompt, PipelineStage.ENHANCING.value
        )

    async def repair(self, recipe: Recipe, issues: List[ValidationIssue], language: Optional[str] = None) -> Dict[str, Any]:
        fixes = '\n'.join(f"- {issue.suggestion}" for issue in issues if issue.suggestion)
        prompt = prompts.REPAIR_PROMPT.format(
            issue_list=', '.join(issue.type for issue in issues),
            recipe_json=self._recipe_json(recipe),
            fixes=fixes,
            rules=self._rules(language)
        )
        return await self._complete_json(
            settings.UTILITY_MODEL, settings.REPAIR_MAX_TOKENS, prompt, PipelineStage.REPAIRING.value
        )

    async def translate(self, recipe: Recipe, target_language: str) -> Dict[str, Any]:
        prompt = prompts.TRANSLATE_PROMPT.format(
            language_name=language_name(target_language),
            recipe_json=self._recipe_json(recipe)
        )
        return await self._complete_json(
            settings.UTILITY_MODEL, settings.TRANSLATE_MAX_TOKENS, prompt, "translating"
        )

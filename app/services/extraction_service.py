from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Tuple
import logging

from app.core.config import settings
from app.core.exceptions import NoStructuredJsonError, UpstreamProviderError
from app.core.languages import resolve_language
from app.schemas.recipe import Recipe
from app.services.parsers import (
    AIExtractor, URLParser, YouTubeParser, PipelineStage, StageTracker, ValidationIssue,
    coerce_recipe, convert_schema_to_recipe, decode_photo_payloads, extract_video_id,
    find_recipe_schema, validate_recipe
)
from app.services.parsers.request_utils import source_name_from_url
from app.services.parsers.validation_pipeline import drop_noise_steps, restore_identity_fields
from app.utils.id_utils import generate_extraction_id

logger = logging.getLogger(__name__)


class SourceKind(str, Enum):
    URL = "url"
    PHOTO = "photo"
    VIDEO = "video"


class ExtractionPath(str, Enum):
    FAST = "fast"  # embedded structured data, no AI call for the core fields
    SLOW = "slow"  # AI inference over the raw source


@dataclass
class ExtractionResult:
    """A finished recipe plus how it was produced"""
    recipe: Recipe
    source_kind: SourceKind
    path: ExtractionPath
    cost: float
    extraction_id: str
    stages: List[str] = field(default_factory=list)
    issues: List[str] = field(default_factory=list)
    repaired: bool = False


def extraction_cost(source_kind: SourceKind, path: ExtractionPath) -> float:
    """Cost charged to the spending ledger for one successful extraction"""
    if source_kind == SourceKind.PHOTO:
        cost = settings.COST_PER_PHOTO_RECIPE
    elif source_kind == SourceKind.VIDEO:
        cost = settings.COST_PER_URL_RECIPE * settings.VIDEO_COST_FACTOR
    elif path == ExtractionPath.FAST:
        cost = settings.COST_PER_URL_RECIPE * settings.FAST_PATH_COST_FACTOR
    else:
        cost = settings.COST_PER_URL_RECIPE
    return round(cost, 4)


class ExtractionService:
    """
    Runs the extraction pipeline for one source:
    fetch, detect, convert or extract, validate, repair once, enhance.

    Stages run strictly in sequence. Fetch failures surface before any AI
    call; a slow-path response without a JSON object fails the extraction.
    Repair and enhancement are best effort and keep the previous recipe if
    the model answer is unusable.
    """

    def __init__(self, ai_extractor: Optional[AIExtractor] = None, url_parser: Optional[URLParser] = None,
                 video_parser: Optional[YouTubeParser] = None):
        self.ai_extractor = ai_extractor or AIExtractor()
        self.url_parser = url_parser or URLParser()
        self.video_parser = video_parser or YouTubeParser()

    async def extract_from_url(self, url: str, language: Optional[str] = None) -> ExtractionResult:
        language = resolve_language(language)
        tracker = StageTracker(generate_extraction_id())

        try:
            tracker.enter(PipelineStage.FETCHING, url)
            html = await self.url_parser.fetch_html(url)

            tracker.enter(PipelineStage.DETECTING)
            schema = find_recipe_schema(html)

            if schema:
                tracker.enter(PipelineStage.FAST_CONVERT)
                recipe = convert_schema_to_recipe(schema, url)
                path = ExtractionPath.FAST
            else:
                tracker.enter(PipelineStage.SLOW_EXTRACT, "no embedded recipe found")
                page_text = self.url_parser.extract_page_text(html)
                raw = await self.ai_extractor.extract_from_webpage(page_text, url, language)
                recipe = self._with_source(coerce_recipe(raw), url, source_name_from_url(url))
                path = ExtractionPath.SLOW

            return await self._finish(tracker, recipe, SourceKind.URL, path, language)
        except Exception as e:
            tracker.fail(e)
            raise

    async def extract_from_photos(self, photos: List[str], language: Optional[str] = None) -> ExtractionResult:
        language = resolve_language(language)
        tracker = StageTracker(generate_extraction_id())

        try:
            tracker.enter(PipelineStage.FETCHING, f"{len(photos or [])} photos supplied")
            payloads = decode_photo_payloads(photos)

            tracker.enter(PipelineStage.SLOW_EXTRACT)
            raw = await self.ai_extractor.extract_from_photos(payloads, language)
            recipe = coerce_recipe(raw)

            return await self._finish(tracker, recipe, SourceKind.PHOTO, ExtractionPath.SLOW, language)
        except Exception as e:
            tracker.fail(e)
            raise

    async def extract_from_video(self, url: str, language: Optional[str] = None) -> ExtractionResult:
        language = resolve_language(language)
        tracker = StageTracker(generate_extraction_id())

        try:
            tracker.enter(PipelineStage.FETCHING, url)
            video_id = extract_video_id(url)
            transcript = await self.video_parser.fetch_transcript(video_id)

            tracker.enter(PipelineStage.SLOW_EXTRACT)
            raw = await self.ai_extractor.extract_from_transcript(transcript, url, language)
            recipe = self._with_source(coerce_recipe(raw), url, "YouTube")

            return await self._finish(tracker, recipe, SourceKind.VIDEO, ExtractionPath.SLOW, language)
        except Exception as e:
            tracker.fail(e)
            raise

    async def _finish(self, tracker: StageTracker, recipe: Recipe, source_kind: SourceKind,
                      path: ExtractionPath, language: str) -> ExtractionResult:
        tracker.enter(PipelineStage.VALIDATING)
        report = validate_recipe(recipe)
        recipe = report.recipe
        repaired = False

        if report.needs_repair:
            tracker.enter(PipelineStage.REPAIRING, ', '.join(report.issue_types))
            recipe, repaired = await self.repair(recipe, report.issues, language)

        # Structured data rarely carries dual units or step references
        if path == ExtractionPath.FAST:
            tracker.enter(PipelineStage.ENHANCING)
            recipe = await self.enhance(recipe, language)

        tracker.enter(PipelineStage.DONE)
        result = ExtractionResult(
            recipe=recipe,
            source_kind=source_kind,
            path=path,
            cost=extraction_cost(source_kind, path),
            extraction_id=tracker.extraction_id,
            stages=tracker.stages,
            issues=report.issue_types,
            repaired=repaired
        )
        logger.info(
            f"[{result.extraction_id}] {source_kind.value} extraction via {path.value} path "
            f"in {tracker.elapsed_ms()}ms, stages {'>'.join(result.stages)}"
        )
        return result

    async def repair(self, recipe: Recipe, issues: List[ValidationIssue], language: str) -> Tuple[Recipe, bool]:
        """
        One repair round trip for the given issues.

        The answer is coerced but not validated again; if it is unusable the
        candidate is kept as is.
        """
        for attempt in range(settings.MAX_REPAIR_ATTEMPTS):
            try:
                raw = await self.ai_extractor.repair(recipe, issues, language)
            except (NoStructuredJsonError, UpstreamProviderError) as e:
                logger.warning(f"Repair attempt {attempt + 1} failed, keeping unrepaired recipe: {e}")
                continue
            repaired = drop_noise_steps(coerce_recipe(raw))
            return restore_identity_fields(repaired, recipe), True
        return recipe, False

    async def enhance(self, recipe: Recipe, language: str) -> Recipe:
        """Dual-unit measurements and per-step ingredient references for fast-path recipes"""
        try:
            raw = await self.ai_extractor.enhance_dual_units(recipe, language)
        except (NoStructuredJsonError, UpstreamProviderError) as e:
            logger.warning(f"Dual-unit enhancement failed, keeping structured-data recipe: {e}")
            return recipe

        enhanced = coerce_recipe(raw)
        if not enhanced.ingredients and recipe.ingredients:
            logger.warning("Enhancement dropped every ingredient, keeping structured-data recipe")
            return recipe
        return restore_identity_fields(enhanced, recipe)

    @staticmethod
    def _with_source(recipe: Recipe, url: str, default_source: str) -> Recipe:
        return recipe.model_copy(update={
            "source_url": url,
            "source": recipe.source or default_source
        })

import re
import math
from typing import Any, Dict, List, Optional
from enum import Enum
from pydantic import BaseModel, ConfigDict
import logging

from app.core.config import settings
from app.schemas.recipe import Recipe, RecipeStep

logger = logging.getLogger(__name__)


class IssueType(str, Enum):
    STEPS_TOO_LONG = "steps_too_long"
    TOO_FEW_STEPS = "too_few_steps"


class ValidationIssue(BaseModel):
    """Represents a quality issue found in a candidate recipe"""
    model_config = ConfigDict(use_enum_values=True)

    type: IssueType
    severity: str = "warning"
    message: str
    field: Optional[str] = None  # Which field has the issue
    suggestion: Optional[str] = None  # Instruction passed to the repair stage


class ValidationReport(BaseModel):
    recipe: Recipe
    issues: List[ValidationIssue] = []

    @property
    def issue_types(self) -> List[str]:
        return [issue.type for issue in self.issues]

    @property
    def needs_repair(self) -> bool:
        return bool(self.issues)


def _optional_text(value: Any) -> Optional[str]:
    if value is None or isinstance(value, (dict, list)):
        return None
    text = str(value).strip()
    return text or None


def parse_servings(value: Any) -> int:
    """Servings from a number, a string such as "6 servings", or a list of either"""
    if isinstance(value, list):
        value = value[0] if value else None

    if isinstance(value, bool) or value is None:
        return settings.DEFAULT_SERVINGS

    if isinstance(value, (int, float)):
        # json.loads accepts Infinity, NaN and 1e400
        if not math.isfinite(value) or value < 1:
            return settings.DEFAULT_SERVINGS
        return int(value)

    match = re.search(r'(\d+)', str(value))
    if match and int(match.group(1)) > 0:
        return int(match.group(1))
    return settings.DEFAULT_SERVINGS


def _coerce_ingredients(value: Any) -> List[str]:
    if not isinstance(value, list):
        return []
    return [str(item).strip() for item in value if item is not None and str(item).strip()]


def _coerce_step_references(refs: Any, ingredients: List[str]) -> List[str]:
    """Keep only references that are verbatim copies of (part of) a top-level ingredient"""
    if not isinstance(refs, list):
        return []
    kept = []
    for ref in refs:
        if not isinstance(ref, str) or not ref.strip():
            continue
        if ref in ingredients or any(ref in ingredient for ingredient in ingredients):
            kept.append(ref)
    return kept


def _coerce_steps(value: Any, ingredients: List[str]) -> List[RecipeStep]:
    if not isinstance(value, list):
        return []

    steps = []
    for step in value:
        if isinstance(step, str):
            steps.append(RecipeStep(instruction=step, ingredients=[]))
        elif isinstance(step, dict):
            instruction = step.get('instruction') or step.get('text') or ''
            steps.append(RecipeStep(
                instruction=str(instruction),
                ingredients=_coerce_step_references(step.get('ingredients'), ingredients)
            ))
        elif step is not None:
            steps.append(RecipeStep(instruction=str(step), ingredients=[]))
    return steps


def coerce_recipe(raw: Any) -> Recipe:
    """
    Normalize a loosely shaped recipe (AI output or converted structured data)
    into a Recipe. Structural defects are repaired without AI: a missing title
    becomes "Recipe", missing servings become the default, non-list
    ingredients/steps become empty lists and string steps become step objects.
    """
    data: Dict[str, Any] = raw if isinstance(raw, dict) else {}

    ingredients = _coerce_ingredients(data.get('ingredients'))
    tips = data.get('tips')

    return Recipe(
        title=_optional_text(data.get('title')) or "Recipe",
        servings=parse_servings(data.get('servings')),
        prep_time=_optional_text(data.get('prepTime', data.get('prep_time'))),
        cook_time=_optional_text(data.get('cookTime', data.get('cook_time'))),
        image_url=_optional_text(data.get('imageUrl', data.get('image_url'))),
        ingredients=ingredients,
        steps=_coerce_steps(data.get('steps'), ingredients),
        tips=[str(tip).strip() for tip in tips if str(tip).strip()] if isinstance(tips, list) else [],
        source=_optional_text(data.get('source')) or "",
        source_url=_optional_text(data.get('sourceUrl', data.get('source_url'))),
        author=_optional_text(data.get('author'))
    )


IDENTITY_FIELDS = ("source", "source_url", "image_url", "author", "servings", "prep_time", "cook_time")


def restore_identity_fields(candidate: Recipe, original: Recipe) -> Recipe:
    """Copy the fields an AI rewrite must never change back from the original"""
    return candidate.model_copy(update={field: getattr(original, field) for field in IDENTITY_FIELDS})


def find_issues(recipe: Recipe) -> List[ValidationIssue]:
    """Deterministic quality checks that feed the repair stage"""
    issues = []

    longest = max((len(step.instruction) for step in recipe.steps), default=0)
    if longest > settings.MAX_STEP_LENGTH:
        issues.append(ValidationIssue(
            type=IssueType.STEPS_TOO_LONG,
            message=f"A step is {longest} characters long (limit {settings.MAX_STEP_LENGTH})",
            field="steps",
            suggestion="Split long steps (max 300 chars each)"
        ))

    if (len(recipe.ingredients) > settings.TOO_FEW_STEPS_INGREDIENT_THRESHOLD
            and len(recipe.steps) < settings.TOO_FEW_STEPS_MINIMUM):
        issues.append(ValidationIssue(
            type=IssueType.TOO_FEW_STEPS,
            message=f"{len(recipe.ingredients)} ingredients but only {len(recipe.steps)} steps",
            field="steps",
            suggestion="Break into more steps"
        ))

    return issues


def drop_noise_steps(recipe: Recipe) -> Recipe:
    """Remove steps whose instruction is too short to be a real action"""
    kept = [step for step in recipe.steps if len(step.instruction.strip()) > settings.MIN_STEP_LENGTH]
    if len(kept) != len(recipe.steps):
        logger.debug(f"Dropped {len(recipe.steps) - len(kept)} noise steps")
    return recipe.model_copy(update={"steps": kept})


def validate_recipe(recipe: Recipe) -> ValidationReport:
    """
    Check a coerced recipe and clean it up.

    Issues are evaluated on the recipe as produced; noise steps are dropped
    afterwards, so a dense ingredient list squeezed into a couple of
    real steps plus filler is still flagged.
    """
    issues = find_issues(recipe)
    if issues:
        logger.info(f"Validation found issues: {', '.join(issue.type for issue in issues)}")
    return ValidationReport(recipe=drop_noise_steps(recipe), issues=issues)

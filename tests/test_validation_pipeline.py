"""Tests for recipe coercion, quality checks and noise-step removal."""

from app.schemas.recipe import Recipe, RecipeStep
from app.services.parsers.ai_extractor import extract_json_object
from app.services.parsers.validation_pipeline import (
    coerce_recipe, find_issues, restore_identity_fields, validate_recipe
)


def _recipe(ingredient_count, step_lengths):
    return Recipe(
        title="Test",
        ingredients=[f"{i + 1}00g / {i + 1} oz item {i}" for i in range(ingredient_count)],
        steps=[RecipeStep(instruction="x" * length) for length in step_lengths],
    )


class TestFindIssues:
    """Test suite for deterministic quality checks."""

    def test_too_few_steps_flagged(self):
        """Test six ingredients squeezed into two steps."""
        issues = find_issues(_recipe(6, [50, 50]))

        assert [issue.type for issue in issues] == ["too_few_steps"]

    def test_three_steps_not_flagged(self):
        """Test six ingredients with three steps is acceptable."""
        assert find_issues(_recipe(6, [50, 50, 50])) == []

    def test_five_ingredients_not_flagged(self):
        """Test short ingredient lists never trigger the heuristic."""
        assert find_issues(_recipe(5, [50])) == []

    def test_step_length_ceiling(self):
        """Test 401 characters is too long and 400 is not."""
        assert [issue.type for issue in find_issues(_recipe(2, [401]))] == ["steps_too_long"]
        assert find_issues(_recipe(2, [400])) == []

    def test_both_issues_reported(self):
        """Test independent issues are reported together."""
        issues = find_issues(_recipe(7, [500, 20]))

        assert {issue.type for issue in issues} == {"steps_too_long", "too_few_steps"}
        assert all(issue.suggestion for issue in issues)


class TestValidateRecipe:
    """Test suite for validate_recipe."""

    def test_noise_steps_dropped_after_checks(self):
        """Test short steps are removed but still counted by the step heuristic."""
        report = validate_recipe(_recipe(6, [60, 60, 5]))

        assert report.issues == []
        assert len(report.recipe.steps) == 2

    def test_exactly_ten_characters_is_noise(self):
        """Test the noise threshold is inclusive."""
        recipe = Recipe(steps=[RecipeStep(instruction="  Serve hot. "), RecipeStep(instruction="Serve it hot")])

        report = validate_recipe(recipe)

        assert [step.instruction for step in report.recipe.steps] == ["Serve it hot"]

    def test_needs_repair(self):
        """Test issue presence drives the repair decision."""
        assert validate_recipe(_recipe(6, [50])).needs_repair is True
        assert validate_recipe(_recipe(1, [50])).needs_repair is False


class TestCoerceRecipe:
    """Test suite for coerce_recipe."""

    def test_empty_input_defaults(self):
        """Test structural defaults for missing fields."""
        recipe = coerce_recipe({})

        assert recipe.title == "Recipe"
        assert recipe.servings == 4
        assert recipe.ingredients == []
        assert recipe.steps == []
        assert recipe.tips == []

    def test_non_dict_input(self):
        """Test garbage input still yields a recipe."""
        assert coerce_recipe(["not", "a", "recipe"]).title == "Recipe"

    def test_wrong_types_repaired(self):
        """Test non-list collections and bad servings."""
        recipe = coerce_recipe({"title": "Soup", "servings": "lots", "ingredients": "water", "steps": "boil"})

        assert recipe.servings == 4
        assert recipe.ingredients == []
        assert recipe.steps == []

    def test_servings_variants(self):
        """Test servings given as numeric strings, floats or non-positive values."""
        assert coerce_recipe({"servings": "6"}).servings == 6
        assert coerce_recipe({"servings": 2.0}).servings == 2
        assert coerce_recipe({"servings": 0}).servings == 4

    def test_servings_text_read_like_structured_data(self):
        """Test the leading number of a phrase is used, as for recipeYield."""
        assert coerce_recipe({"servings": "6 servings"}).servings == 6
        assert coerce_recipe({"servings": ["2 people"]}).servings == 2

    def test_non_finite_servings_default(self):
        """Test Infinity, NaN and overflowing numbers from model JSON fall back to the default."""
        raw = extract_json_object('{"title": "Stew", "servings": Infinity, "ingredients": ["1 onion"]}')

        assert coerce_recipe(raw).servings == 4
        assert coerce_recipe(extract_json_object('{"servings": 1e400}')).servings == 4
        assert coerce_recipe(extract_json_object('{"servings": NaN}')).servings == 4

    def test_string_steps_become_objects(self):
        """Test string steps get empty ingredient references."""
        recipe = coerce_recipe({"steps": ["Chop the onions finely.", {"instruction": "Fry them slowly."}]})

        assert recipe.steps[0] == RecipeStep(instruction="Chop the onions finely.", ingredients=[])
        assert recipe.steps[1].ingredients == []

    def test_back_references_must_copy_ingredients(self):
        """Test step references not found in the ingredient list are discarded."""
        recipe = coerce_recipe({
            "ingredients": ["200g / 7oz flour", "50g / 1.8oz sugar"],
            "steps": [{"instruction": "Combine the dry ingredients.",
                       "ingredients": ["200g / 7oz flour", "sugar", "butter", 5]}],
        })

        assert recipe.steps[0].ingredients == ["200g / 7oz flour", "sugar"]

    def test_camel_case_fields(self):
        """Test the model's camelCase output maps onto the recipe fields."""
        recipe = coerce_recipe({"prepTime": "10 min", "cookTime": "", "imageUrl": "https://x.test/i.jpg",
                                "sourceUrl": "https://x.test/r", "author": "Ada"})

        assert recipe.prep_time == "10 min"
        assert recipe.cook_time is None
        assert recipe.image_url == "https://x.test/i.jpg"
        assert recipe.source_url == "https://x.test/r"
        assert recipe.author == "Ada"


class TestRestoreIdentityFields:
    """Test suite for restore_identity_fields."""

    def test_identity_fields_copied_back(self):
        """Test AI rewrites cannot alter identity fields."""
        original = Recipe(title="Soup", servings=3, source="example.com", source_url="https://example.com/s",
                          image_url="https://example.com/s.jpg", prep_time="5 min")
        rewritten = Recipe(title="Sopa", servings=8, source="otro.com", source_url=None, image_url=None)

        restored = restore_identity_fields(rewritten, original)

        assert restored.title == "Sopa"
        assert restored.servings == 3
        assert restored.source == "example.com"
        assert restored.source_url == "https://example.com/s"
        assert restored.image_url == "https://example.com/s.jpg"
        assert restored.prep_time == "5 min"

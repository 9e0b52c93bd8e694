from pydantic import BaseModel, ConfigDict, Field
from typing import Optional, List


class RecipeStep(BaseModel):
    instruction: str
    # Exact copies of entries in Recipe.ingredients, so clients can cross-link them
    ingredients: List[str] = []


class Recipe(BaseModel):
    """Normalized recipe returned by every extraction path"""
    model_config = ConfigDict(populate_by_name=True)

    title: str = "Recipe"
    servings: int = Field(4, gt=0)
    prep_time: Optional[str] = Field(None, alias="prepTime")
    cook_time: Optional[str] = Field(None, alias="cookTime")
    image_url: Optional[str] = Field(None, alias="imageUrl")
    ingredients: List[str] = []  # Dual-unit strings, e.g. "500g / 1.1 lb flour"
    steps: List[RecipeStep] = []
    tips: List[str] = []
    source: str = ""
    source_url: Optional[str] = Field(None, alias="sourceUrl")
    author: Optional[str] = None

    def to_api(self) -> dict:
        return self.model_dump(by_alias=True)


class CleanUrlRequest(BaseModel):
    url: str
    language: Optional[str] = None
    fingerprint: Optional[str] = None


class CleanPhotoRequest(BaseModel):
    photos: List[str] = Field(default_factory=list, description="Base64 data URIs, only the first few are read")
    language: Optional[str] = None
    fingerprint: Optional[str] = None


class CleanYouTubeRequest(BaseModel):
    url: str
    language: Optional[str] = None
    fingerprint: Optional[str] = None


class TranslateRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    recipe: Recipe
    target_language: str = Field(alias="targetLanguage")


class CleanRecipeResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    recipe: Recipe
    recipes_remaining: Optional[int] = Field(None, alias="recipesRemaining")


class TranslateResponse(BaseModel):
    recipe: Recipe

from .url_parser import URLParser
from .youtube_parser import YouTubeParser, extract_video_id
from .photo_parser import PhotoPayload, decode_photo_payloads
from .structured_data import find_recipe_schema, convert_schema_to_recipe
from .ai_extractor import AIExtractor, extract_json_object
from .progress_events import PipelineStage, StageTracker
from .validation_pipeline import (
    IssueType, ValidationIssue, ValidationReport, coerce_recipe, validate_recipe
)

__all__ = ["URLParser", "YouTubeParser", "extract_video_id", "PhotoPayload", "decode_photo_payloads",
           "find_recipe_schema", "convert_schema_to_recipe", "AIExtractor", "extract_json_object",
           "PipelineStage", "StageTracker", "IssueType", "ValidationIssue", "ValidationReport",
           "coerce_recipe", "validate_recipe"]

"""
Output languages supported by extraction and translation.
"""
from typing import Optional

DEFAULT_LANGUAGE = "en"

LANGUAGE_INSTRUCTIONS = {
    "en": "Output in English.",
    "es": "Output in Spanish.",
    "fr": "Output in French.",
    "pt": "Output in Portuguese.",
    "zh": "Output in Simplified Chinese.",
    "hi": "Output in Hindi.",
    "ar": "Output in Arabic. Keep JSON keys in English.",
}

LANGUAGE_NAMES = {
    "en": "English",
    "es": "Spanish (Español)",
    "fr": "French (Français)",
    "pt": "Portuguese (Português)",
    "zh": "Simplified Chinese (简体中文)",
    "hi": "Hindi (हिन्दी)",
    "ar": "Arabic (العربية)",
}

SUPPORTED_LANGUAGES = tuple(LANGUAGE_INSTRUCTIONS.keys())


def resolve_language(language: Optional[str]) -> str:
    """Map a client-supplied language code onto the supported set, defaulting to English"""
    if language in LANGUAGE_INSTRUCTIONS:
        return language
    return DEFAULT_LANGUAGE


def language_instruction(language: Optional[str]) -> str:
    return LANGUAGE_INSTRUCTIONS[resolve_language(language)]


def language_name(language: Optional[str]) -> str:
    return LANGUAGE_NAMES[resolve_language(language)]

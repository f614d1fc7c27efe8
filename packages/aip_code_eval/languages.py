from typing import Dict

from packages.aip_core.errors import UnsupportedLanguageError

# Stable ids understood by the execution backend
LANGUAGE_IDS: Dict[str, int] = {
    "javascript": 63,
    "python": 71,
    "java": 62,
    "cpp": 54,
    "c": 50,
    "typescript": 74,
    "go": 60,
    "rust": 73,
    "ruby": 72,
    "php": 68,
}

SUPPORTED_LANGUAGES = list(LANGUAGE_IDS.keys())


def resolve_language_id(language: str) -> int:
    """Raises UnsupportedLanguageError for anything outside the fixed enumeration."""
    key = (language or "").strip().lower()
    if key not in LANGUAGE_IDS:
        raise UnsupportedLanguageError(language)
    return LANGUAGE_IDS[key]

"""
Utility functions for HTML Page Translator

Contains helper functions for text processing and target-script detection
"""

import re
from functools import lru_cache
from typing import Optional, Pattern

from config import LANGUAGE_CONFIG, TRANSLATION_CONFIG


def truncate_str(s: str, length: int = 30) -> str:
    """Truncates string with ellipsis in middle if too long"""
    return f"{s[:length]}...{s[-length:]}" if len(s) > length * 2 else s


def collapse_whitespace(s: str) -> str:
    """Collapses every whitespace run to a single space and trims the ends"""
    return " ".join(s.split())


def language_name(code: str) -> str:
    """Human-readable language name used inside prompts"""
    return LANGUAGE_CONFIG['names'].get(code, code)


def is_source_language(code: str) -> bool:
    return code.lower() == TRANSLATION_CONFIG['source_language']


def is_strict_language(code: str) -> bool:
    """True for languages whose output must contain characters of their own script"""
    return code.lower() in LANGUAGE_CONFIG['strict_languages']


@lru_cache(maxsize=None)
def language_pattern(code: str) -> Optional[Pattern]:
    pattern = LANGUAGE_CONFIG['patterns'].get(code.lower())
    return re.compile(pattern) if pattern else None


def contains_language_chars(text: str, code: str) -> bool:
    """
    Checks for characters of the target language's script
    Non-strict languages and languages without a pattern always pass
    """
    if not is_strict_language(code):
        return True
    pattern = language_pattern(code)
    return pattern is None or pattern.search(text) is not None


def has_letters(text: str) -> bool:
    """True when text holds at least one alphabetic character of any script"""
    return any(char.isalpha() for char in text)

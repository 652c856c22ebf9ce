"""
Data types exchanged with the job pipeline
"""

from dataclasses import dataclass


@dataclass(frozen=True)
class TranslationJob:
    """One HTML document to translate"""
    filename: str
    original_path: str
    html: str


@dataclass
class TranslatedFile:
    """
    A translated, validated document. fallback_count is the number of
    segments that kept their original text because the model skipped them
    """
    filename: str
    original_path: str
    html: str
    fallback_count: int = 0

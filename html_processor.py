"""
HTML Processing module for HTML Page Translator

Handles lexical extraction of translatable text, chunking, position-exact
reconstruction, model-output cleanup and validation of translated documents
"""

import re
import logging
from dataclasses import dataclass
from typing import Iterable, List, Optional, Sequence

from config import TRANSLATION_CONFIG
from utils import collapse_whitespace, contains_language_chars, is_strict_language, truncate_str

logger = logging.getLogger('website_translator')

# Scanner states
IN_TEXT = "text"
IN_TAG = "tag"
IN_NON_TRANSLATABLE = "non_translatable"

TAG_START = re.compile(r'<[A-Za-z/!?]')
TAG_NAME = re.compile(r'<([A-Za-z][A-Za-z0-9:-]*)')
DOCTYPE_START = re.compile(r'<!DOCTYPE\s+html', re.IGNORECASE)
HTML_START = re.compile(r'<html[\s>]', re.IGNORECASE)


@dataclass
class TextSegment:
    """A run of text outside tags; content[start:end] == text"""
    start: int
    end: int
    text: str
    translated_text: Optional[str] = None

    @property
    def source_text(self) -> str:
        """Text as sent for translation: trimmed, one line"""
        return collapse_whitespace(self.text)

    def rendered(self) -> str:
        """
        Text to put back at this segment's position. The original leading
        and trailing whitespace of the run is kept around the translation
        """
        if self.translated_text is None:
            return self.text
        translation = self.translated_text.strip()
        if translation == self.source_text:
            return self.text
        leading = self.text[:len(self.text) - len(self.text.lstrip())]
        trailing = self.text[len(self.text.rstrip()):]
        return leading + translation + trailing


Chunk = List[TextSegment]


@dataclass(frozen=True)
class ValidationResult:
    ok: bool
    reason: str = ""

    def __bool__(self) -> bool:
        return self.ok


def extract_segments(content: str, skip_tags: Optional[Iterable[str]] = None) -> List[TextSegment]:
    """
    Scans HTML left to right and returns the translatable text runs
    in document order. Tags are skipped, and so is everything inside
    script/style/code/pre blocks
    """
    if skip_tags is None:
        skip_tags = TRANSLATION_CONFIG['non_translatable_tags']
    skip_tags = tuple(tag.lower() for tag in skip_tags)
    segments = []
    state = IN_TEXT
    position = text_start = 0
    block_tag = None
    length = len(content)

    while position < length:
        if state == IN_TEXT:
            match = TAG_START.search(content, position)
            tag_start = match.start() if match else length
            _add_segment(segments, content, text_start, tag_start)
            position = tag_start
            state = IN_TAG
        elif state == IN_TAG:
            tag_end = _find_tag_end(content, position)
            block_tag = _opened_block(content[position:tag_end], skip_tags)
            position = tag_end
            state = IN_NON_TRANSLATABLE if block_tag else IN_TEXT
            text_start = position
        else:
            # Unclosed blocks run to the end of the document
            position = _find_block_end(content, position, block_tag)
            state = IN_TEXT
            text_start = position

    logger.info(f"Extracted {len(segments)} segments from {length} chars")
    return segments


def _add_segment(segments: List[TextSegment], content: str, start: int, end: int) -> None:
    text = content[start:end]
    if text.strip():
        segments.append(TextSegment(start, end, text))


def _find_tag_end(content: str, start: int) -> int:
    """Position just after the tag starting at start; quoted attribute values may hold '>'"""
    if content.startswith('<!--', start):
        end = content.find('-->', start + 4)
        return len(content) if end == -1 else end + 3

    quote = None
    after_equals = False
    for index in range(start + 1, len(content)):
        char = content[index]
        if quote:
            if char == quote:
                quote = None
        elif char == '>':
            return index + 1
        elif char in '"\'' and after_equals:
            quote = char
        if not char.isspace():
            after_equals = char == '='
    return len(content)


def _opened_block(tag: str, skip_tags: Sequence[str]) -> Optional[str]:
    """Name of the non-translatable element this tag opens, if any"""
    match = TAG_NAME.match(tag)
    if not match or tag.rstrip('>').rstrip().endswith('/'):
        return None
    name = match.group(1).lower()
    return name if name in skip_tags else None


def _find_block_end(content: str, start: int, tag: str) -> int:
    match = re.compile(rf'</{re.escape(tag)}\b[^>]*>', re.IGNORECASE).search(content, start)
    if not match:
        logger.warning(f"Unclosed <{tag}> at {start}, skipping to end of document")
        return len(content)
    return match.end()


def build_chunks(segments: Sequence[TextSegment], max_size: Optional[int] = None) -> List[Chunk]:
    """
    Greedily packs segments into chunks of at most max_size characters.
    A segment longer than max_size gets a chunk of its own
    """
    max_size = TRANSLATION_CONFIG['chunk_max_size'] if max_size is None else max_size
    chunks, current, current_size = [], [], 0

    for segment in segments:
        size = len(segment.source_text)
        if current and current_size + size > max_size:
            chunks.append(current)
            current, current_size = [], 0
        current.append(segment)
        current_size += size

    if current:
        chunks.append(current)
    logger.info(f"Built {len(chunks)} chunks from {len(segments)} segments (max {max_size} chars)")
    return chunks


def reassemble_html(content: str, segments: Iterable[TextSegment]) -> str:
    """
    Puts translated segment text back at the original offsets.
    Segments are applied from the highest offset down, so no recorded
    offset is invalidated by an earlier replacement
    """
    parts = []
    cursor = len(content)
    for segment in sorted(segments, key=lambda s: s.start, reverse=True):
        if segment.end > cursor:
            raise ValueError(f"Overlapping segment at {segment.start}-{segment.end}")
        parts.append(content[segment.end:cursor])
        parts.append(segment.rendered())
        cursor = segment.start
    parts.append(content[:cursor])
    return "".join(reversed(parts))


def clean_model_output(answer: str) -> str:
    """
    Strips markdown fences and any prose before the opening document tag
    or after the last </html>
    """
    answer = re.sub(r'^\s*```(?:html)?[^\S\n]*\n?', '', answer, flags=re.IGNORECASE)
    answer = re.sub(r'\n?```\s*$', '', answer)

    match = DOCTYPE_START.search(answer) or HTML_START.search(answer)
    if match and match.start() > 0:
        logger.info(f"Removing {match.start()} characters before document start: "
                    f"{truncate_str(answer[:match.start()])}")
        answer = answer[match.start():]

    html_end = answer.lower().rfind('</html>')
    if html_end > 0:
        answer = answer[:html_end + len('</html>')]

    return answer.strip()


def validate_translation(content: str, language: str, min_length: Optional[int] = None) -> ValidationResult:
    """
    Applies the structural checks to a translated document:
    html open/close tags, minimum length and target-script presence
    """
    min_length = TRANSLATION_CONFIG['min_document_length'] if min_length is None else min_length
    lowered = content.lower()

    if '<html' not in lowered or '</html>' not in lowered:
        return ValidationResult(False, "Missing HTML structure")
    if len(content) < min_length:
        return ValidationResult(False, f"Translation too short ({len(content)} characters)")
    if is_strict_language(language) and not contains_language_chars(content, language):
        return ValidationResult(False, f"No {language} characters found in translation")
    return ValidationResult(True)

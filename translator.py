"""
Main Translation module for HTML Page Translator

Handles the core translation process: whole-document translation for
small pages, segment/chunk translation for large ones, validation and
retry, and orchestration of whole batches of files
"""

import os
import re
import sys
import asyncio
import argparse
import logging
from typing import Awaitable, Callable, Dict, List, Optional, Sequence, Tuple, TypeVar
from tqdm import tqdm
logger = logging.getLogger('website_translator')

from html_processor import (Chunk, extract_segments, build_chunks, reassemble_html,
                            clean_model_output, validate_translation)
from utils import (truncate_str, language_name, is_source_language, is_strict_language,
                   contains_language_chars, has_letters)
from errors import (TranslationError, TransportError, GenerationTimeoutError, ValidationError,
                    ExhaustionError, ConfigurationError, BatchTranslationError)
from models import TranslationJob, TranslatedFile
from api_client import TranslationAPIClient
from logger import log_file_name, setup_logger
from packager import read_html_directory, read_html_files, write_translated_files
from job_runner import process_archive, run_with_retry
from config import API_CONFIG, TRANSLATION_CONFIG

RETRYABLE_ERRORS = (TransportError, GenerationTimeoutError, ValidationError)
NUMBERED_LINE = re.compile(r'^\s*\[(\d+)\]\s?(.*)$')

T = TypeVar('T')


async def with_retries(unit: str, attempt_fn: Callable[[int], Awaitable[T]],
                       max_retries: Optional[int] = None) -> T:
    """
    Runs attempt_fn(attempt) until it succeeds, waiting retry_delay * attempt
    seconds between attempts. Raises ExhaustionError at the ceiling
    """
    max_retries = TRANSLATION_CONFIG['max_retries'] if max_retries is None else max_retries
    last_error = None

    for attempt in range(1, max_retries + 1):
        try:
            return await attempt_fn(attempt)
        except RETRYABLE_ERRORS as e:
            last_error = e
            logger.error(f"((0)) {unit} attempt {attempt}/{max_retries} failed: {e}")
            if attempt < max_retries:
                wait_time = TRANSLATION_CONFIG['retry_delay'] * attempt
                logger.info(f".......Waiting {wait_time} seconds before retry")
                await asyncio.sleep(wait_time)

    raise ExhaustionError(unit, max_retries, last_error) from last_error


def build_chunk_prompt(chunk: Chunk, language: str, vertical: str) -> str:
    """Numbered one-line-per-segment prompt for a chunk"""
    segments = "\n".join(f"[{index}] {segment.source_text}" for index, segment in enumerate(chunk, 1))
    return f"""You are translating text segments from a {vertical} webpage into {language_name(language)} ({language}).

RULES:
1. Translate ONLY the text after each [number] marker
2. Keep every [number] marker exactly as given, in the same order, one segment per line
3. Return exactly {len(chunk)} lines, one for each segment, and nothing else
4. Do NOT add explanations, comments, notes or markdown
5. Keep numbers, URLs, email addresses, HTML entities (like &nbsp; or &amp;) and special characters exactly as they are
6. Translate naturally and persuasively for readers of the target language

Segments:
{segments}"""


def parse_numbered_response(answer: str) -> Dict[int, str]:
    """Maps [n] markers in the answer to their text; other lines are ignored"""
    translations = {}
    for line in answer.splitlines():
        match = NUMBERED_LINE.match(line)
        if match:
            translations.setdefault(int(match.group(1)), match.group(2).strip())
    return translations


async def translate_chunk(api_client: TranslationAPIClient, chunk: Chunk, language: str,
                          vertical: str, label: str = "Chunk") -> int:
    """
    Translates one chunk and stores the result on its segments.
    Segments the model skipped keep their original text; their count is returned
    """
    prompt = build_chunk_prompt(chunk, language, vertical)
    check_script = is_strict_language(language) and any(has_letters(s.source_text) for s in chunk)
    min_found = TRANSLATION_CONFIG['min_coverage'] * len(chunk)

    async def attempt(number: int) -> Dict[int, str]:
        logger.info(f"{label} Attempt {number} ({len(chunk)} segments, {len(prompt)} chars)")
        answer = await api_client.generate(prompt)
        found = {index: text for index, text in parse_numbered_response(answer).items()
                 if 1 <= index <= len(chunk) and text}

        if len(found) < min_found:
            raise ValidationError(f"Only {len(found)}/{len(chunk)} segments in answer")
        if check_script and not any(contains_language_chars(text, language) for text in found.values()):
            raise ValidationError(f"No {language} characters found in chunk translation")
        return found

    translations = await with_retries(label, attempt)

    fallbacks = 0
    for index, segment in enumerate(chunk, 1):
        segment.translated_text = translations.get(index)
        if segment.translated_text is None:
            fallbacks += 1
            logger.warning(f"{label}: segment [{index}] missing, keeping original: "
                           f"{truncate_str(segment.source_text)}")
    return fallbacks


def build_document_prompt(html: str, language: str, vertical: str) -> str:
    """Whole-document prompt with the structural-preservation rules"""
    return f"""You are translating a complete webpage to {language_name(language)}.

CRITICAL RULES (FAILURE TO FOLLOW WILL RESULT IN REJECTION):
1. Translate ONLY text content between HTML tags
2. NEVER modify HTML tags, attributes, class names, IDs, or structure
3. Keep ALL image src paths exactly as-is
4. Keep ALL links href exactly as-is
5. Keep ALL data-* attributes exactly as-is
6. Do NOT translate the contents of <script>, <style>, <code> or <pre> elements
7. Preserve all formatting, line breaks, and whitespace structure
8. Return ONLY the complete translated HTML document
9. Do NOT add any explanations, comments, or notes before or after the HTML
10. Your response must start with the document's first tag and end with </html>

Context:
- Vertical: {vertical}
- Target Language: {language_name(language)} ({language})
- This is a landing page, translate naturally and persuasively

HTML to translate:
{html}"""


async def translate_document_direct(api_client: TranslationAPIClient, html: str, language: str,
                                    vertical: str, label: str = "document") -> str:
    """
    Translates a whole document in one request per attempt.
    Every attempt is bounded by the document timeout
    """
    if is_source_language(language):
        return html

    prompt = build_document_prompt(html, language, vertical)
    document_timeout = API_CONFIG['document_timeout']

    async def attempt(number: int) -> str:
        logger.info(f"Translation attempt {number} for {label} ({len(html)} chars) to {language}")
        try:
            answer = await asyncio.wait_for(api_client.generate(prompt), timeout=document_timeout)
        except GenerationTimeoutError:
            raise
        except asyncio.TimeoutError as e:
            raise GenerationTimeoutError(f"{label} exceeded {document_timeout}s") from e

        translated = clean_model_output(answer)
        logger.info(f"After cleanup: {len(translated)} characters")
        result = validate_translation(translated, language)
        if not result:
            logger.info(f"Sample of rejected translation: {truncate_str(translated, 100)}")
            raise ValidationError(result.reason)
        return translated

    return await with_retries(f"Translation of {label}", attempt)


class HTMLTranslator:
    """
    Translates HTML documents with an injected generation client.
    fan_out is 'sequential' (failures collected per file) or 'parallel'
    (all files at once, any failure fails the batch)
    """

    def __init__(self, api_client: TranslationAPIClient, fan_out: Optional[str] = None,
                 direct_threshold: Optional[int] = None, chunk_max_size: Optional[int] = None):
        self.api_client = api_client
        self.fan_out = fan_out or TRANSLATION_CONFIG['fan_out']
        if self.fan_out not in ('sequential', 'parallel'):
            raise ConfigurationError(f"Unknown fan-out policy: {self.fan_out}")
        self.direct_threshold = (TRANSLATION_CONFIG['direct_threshold'] if direct_threshold is None
                                 else direct_threshold)
        self.chunk_max_size = (TRANSLATION_CONFIG['chunk_max_size'] if chunk_max_size is None
                               else chunk_max_size)

    async def translate_html(self, html: str, language: str, vertical: Optional[str] = None,
                             label: str = "document") -> Tuple[str, int]:
        """Returns the translated document and the number of segments left untranslated"""
        vertical = vertical or TRANSLATION_CONFIG['default_vertical']
        if is_source_language(language):
            return html, 0
        if len(html) <= self.direct_threshold:
            return await translate_document_direct(self.api_client, html, language, vertical, label), 0
        return await self._translate_chunked(html, language, vertical, label)

    async def _translate_chunked(self, html: str, language: str, vertical: str,
                                 label: str) -> Tuple[str, int]:
        segments = extract_segments(html)
        chunks = build_chunks(segments, self.chunk_max_size)
        fallbacks = 0

        for number, chunk in enumerate(chunks, 1):
            if number > 1:
                await asyncio.sleep(TRANSLATION_CONFIG['chunk_delay'])
            logger.info(f"]---[]---[ Translating Chunk {number}/{len(chunks)} of {label} ]---[]---[")
            fallbacks += await translate_chunk(self.api_client, chunk, language, vertical,
                                               label=f"Chunk {number}/{len(chunks)} of {label}")

        translated = reassemble_html(html, segments)
        result = validate_translation(translated, language)
        if not result:
            raise ValidationError(f"{label}: {result.reason}")
        return translated, fallbacks

    async def translate_file(self, job: TranslationJob, language: str,
                             vertical: Optional[str] = None) -> TranslatedFile:
        logger.info(f"\n\n===== {job.original_path} ({len(job.html)} chars) =====")
        html, fallbacks = await self.translate_html(job.html, language, vertical, label=job.original_path)
        if fallbacks:
            logger.warning(f"{job.original_path}: {fallbacks} segments kept their original text")
        logger.info(f"(-: Translated {job.original_path} ({len(html)} chars) :-)")
        return TranslatedFile(job.filename, job.original_path, html, fallbacks)

    async def translate_files(self, jobs: Sequence[TranslationJob], language: str,
                              vertical: Optional[str] = None) -> List[TranslatedFile]:
        """
        Translates every job and returns the results in input order.
        Raises BatchTranslationError naming the files that failed
        """
        logger.info(f"Translating {len(jobs)} files to {language} ({self.fan_out})")
        if self.fan_out == 'parallel':
            return await self._translate_parallel(jobs, language, vertical)
        return await self._translate_sequential(jobs, language, vertical)

    async def _translate_sequential(self, jobs: Sequence[TranslationJob], language: str,
                                    vertical: Optional[str]) -> List[TranslatedFile]:
        translated, failures = [], {}
        with tqdm(total=len(jobs), ncols=70) as pbar:
            for job in jobs:
                try:
                    translated.append(await self.translate_file(job, language, vertical))
                except ConfigurationError:
                    raise
                except TranslationError as error:
                    failures[job.original_path] = str(error)
                    logger.error(f")-; Failure processing file {job.original_path}: {error} )-;")
                finally:
                    pbar.update(1)

        logger.info(f"Finished {len(jobs)} files in {language} with {len(failures)} failures")
        if failures:
            raise BatchTranslationError(failures, translated)
        return translated

    async def _translate_parallel(self, jobs: Sequence[TranslationJob], language: str,
                                  vertical: Optional[str]) -> List[TranslatedFile]:
        results = await asyncio.gather(
            *(self.translate_file(job, language, vertical) for job in jobs),
            return_exceptions=True
        )

        failures = {}
        for job, result in zip(jobs, results):
            if isinstance(result, ConfigurationError):
                raise result
            if isinstance(result, TranslationError):
                failures[job.original_path] = str(result)
                logger.error(f")-; Failure processing file {job.original_path}: {result} )-;")
            elif isinstance(result, BaseException):
                raise result

        if failures:
            logger.error(f"Parallel translation failed for {len(failures)} of {len(jobs)} files")
            raise BatchTranslationError(failures)
        logger.info(f"Successfully translated all {len(jobs)} files!")
        return list(results)


async def translate_path(translator: HTMLTranslator, source: str, destination: Optional[str],
                         language: str, vertical: Optional[str] = None,
                         max_attempts: Optional[int] = None) -> str:
    """
    Translates a directory of HTML files or a template .zip.
    A template is one job: it is retried with job backoff up to
    max_attempts times. Returns the path that was written
    """
    if source.lower().endswith('.zip'):
        destination = destination or f"{source[:-4]}_{language}.zip"
        with open(source, 'rb') as f:
            template = f.read()
        jobs = read_html_files(template)
        if not jobs:
            raise ValueError(f"No HTML files found in {source}")
        archive = await run_with_retry(
            source,
            lambda: process_archive(translator, template, language, vertical, html_files=jobs),
            max_attempts
        )
        with open(destination, 'wb') as f:
            f.write(archive)
    else:
        destination = destination or f"{source.rstrip(os.sep)}_{language}"
        jobs = read_html_directory(source)
        if not jobs:
            raise ValueError(f"No HTML files found in {source}")
        try:
            translated = await translator.translate_files(jobs, language, vertical)
        except BatchTranslationError as error:
            write_translated_files(error.translated, destination)
            raise
        write_translated_files(translated, destination)
    return destination


def main(argv: Optional[List[str]] = None) -> int:
    """Entry point for the translation process"""
    parser = argparse.ArgumentParser(description='HTML Page Translator')
    parser.add_argument('language', help='Target language code (e.g., "es", "ru")')
    parser.add_argument('input', help='Directory of .html files or a template .zip')
    parser.add_argument('-o', '--output', help='Output directory or .zip path')
    parser.add_argument('--vertical', default=TRANSLATION_CONFIG['default_vertical'],
                        help='Domain hint used to steer translation tone')
    parser.add_argument('--api-key', help='Anthropic API key (default: ANTHROPIC_API_KEY)')
    parser.add_argument('--parallel', action='store_true', help='Translate all files concurrently')
    parser.add_argument('--max-attempts', type=int, help='Attempts for a template .zip job (default: 10)')
    parser.add_argument('--verbose', action='store_true')
    args = parser.parse_args(argv)

    logger = setup_logger(log_file_name(args.input, args.language), args.verbose or None)

    try:
        translator = HTMLTranslator(TranslationAPIClient(args.api_key),
                                    fan_out='parallel' if args.parallel else None)
        output = asyncio.run(translate_path(translator, args.input, args.output,
                                            args.language, args.vertical, args.max_attempts))
    except BatchTranslationError as error:
        for path, message in error.failures.items():
            logger.error(f"Failed: {path}: {message}")
        if error.translated:
            logger.error(f"{len(error.translated)} other files were translated")
        return 1
    except (TranslationError, ValueError, OSError) as error:
        logger.error(f'Error in main function: {str(error)}')
        return 1

    logger.warning(f"Translated {args.input} to {args.language}: {output}")
    return 0


if __name__ == "__main__":
    sys.exit(main())

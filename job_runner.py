"""
Job runner module for HTML Page Translator

Runs whole translation jobs (template archive in, translated archive out)
and retries failed jobs with capped exponential backoff until a
dead-letter ceiling is reached. The CLI runs each template .zip through
run_with_retry; a job pipeline that has already pre-processed the pages
hands them to process_archive as html_files
"""

import asyncio
import logging
from typing import Awaitable, Callable, List, Optional, TypeVar

from config import JOB_CONFIG
from errors import ConfigurationError, DeadLetterError
from models import TranslationJob
from packager import build_output_archive, read_html_files

logger = logging.getLogger('website_translator')

T = TypeVar('T')


async def process_archive(translator, template_zip: bytes, language: str, vertical: Optional[str] = None,
                          html_files: Optional[List[TranslationJob]] = None) -> bytes:
    """
    Translates the HTML pages of a template archive and returns the output archive.
    html_files overrides the pages read from the template
    """
    if html_files is None:
        html_files = read_html_files(template_zip)
    if not html_files:
        raise ValueError("No HTML files to translate")

    logger.info(f"Translating {len(html_files)} files to {language}")
    translated_files = await translator.translate_files(html_files, language, vertical)
    logger.info(f"All {len(translated_files)} files translated, creating package")
    return build_output_archive(template_zip, translated_files)


def backoff_delay(attempt: int) -> float:
    return min((2 ** attempt) * JOB_CONFIG['base_delay'], JOB_CONFIG['max_delay'])


async def run_with_retry(job_id: str, job: Callable[[], Awaitable[T]],
                         max_attempts: Optional[int] = None) -> T:
    """
    Awaits job() until it succeeds. Configuration errors are not retried;
    after max_attempts failures the job is dead-lettered
    """
    max_attempts = JOB_CONFIG['max_attempts'] if max_attempts is None else max_attempts
    last_error = None

    for attempt in range(1, max_attempts + 1):
        logger.info(f"Translation attempt {attempt} for job {job_id}")
        try:
            result = await job()
            logger.info(f"(-: Job {job_id} completed on attempt {attempt} :-)")
            return result
        except ConfigurationError:
            raise
        except Exception as e:
            last_error = e
            logger.error(f")-; Job {job_id} attempt {attempt}/{max_attempts} failed: {e}")
            if attempt < max_attempts:
                delay = backoff_delay(attempt)
                logger.info(f".......Retrying job {job_id} in {delay} seconds")
                await asyncio.sleep(delay)

    raise DeadLetterError(job_id, max_attempts, last_error) from last_error

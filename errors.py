"""
Error types for HTML Page Translator

Transport, timeout and validation errors are retried inside the
translation loops; exhaustion and configuration errors cross
component boundaries
"""

from typing import Dict, List, Optional


class TranslationError(Exception):
    """Base class for all translator errors"""


class TransportError(TranslationError):
    """The generation call itself failed (network, quota, bad request)"""


class GenerationTimeoutError(TranslationError, TimeoutError):
    """A generation call or document attempt exceeded its time bound"""


class ValidationError(TranslationError):
    """A response was received but failed structural or script checks"""


class ConfigurationError(TranslationError):
    """Required credential or setting is missing"""


class ExhaustionError(TranslationError):
    """Retry ceiling reached for a chunk or a document"""

    def __init__(self, unit: str, attempts: int, last_error: Optional[BaseException] = None):
        self.unit = unit
        self.attempts = attempts
        self.last_error = last_error
        message = f"{unit} failed after {attempts} attempts"
        if last_error is not None:
            message += f": {last_error}"
        super().__init__(message)


class BatchTranslationError(TranslationError):
    """
    One or more documents of a batch failed
    failures maps original path to the last error message, translated holds
    the documents that did succeed
    """

    def __init__(self, failures: Dict[str, str], translated: Optional[List] = None):
        self.failures = failures
        self.translated = translated or []
        details = "; ".join(f"{path}: {error}" for path, error in failures.items())
        super().__init__(f"{len(failures)} file(s) failed to translate: {details}")


class DeadLetterError(TranslationError):
    """A job kept failing until the job-level attempt ceiling was reached"""

    def __init__(self, job_id: str, attempts: int, last_error: Optional[BaseException] = None):
        self.job_id = job_id
        self.attempts = attempts
        self.last_error = last_error
        super().__init__(f"Job {job_id} dead-lettered after {attempts} attempts: {last_error}")

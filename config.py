"""
Configuration module for HTML Page Translator

Holds API, translation, language, logging and job settings.
Deployment-specific values are read from the environment
"""

import logging
import os
from typing import Optional

from errors import ConfigurationError

API_CONFIG = {
    'model': os.getenv('TRANSLATOR_MODEL', 'claude-sonnet-4-5'),
    'max_tokens': 16000,
    'temperature': 0.3,
    'request_timeout': 90.0,    # seconds, single generation call
    'document_timeout': 120.0,  # seconds, one direct-translation attempt
    'stop_sequences': [],
    'api_key_env': 'ANTHROPIC_API_KEY',
}

TRANSLATION_CONFIG = {
    'source_language': 'en',
    'chunk_max_size': 4000,
    'direct_threshold': 15000,
    'max_retries': 3,
    'retry_delay': 2.0,         # seconds, multiplied by the attempt number
    'chunk_delay': 0.5,
    'min_document_length': 200,
    'min_coverage': 0.8,
    'non_translatable_tags': ('script', 'style', 'code', 'pre'),
    'fan_out': 'sequential',    # or 'parallel'
    'default_vertical': 'general',
    'verbose': False,
}

LANGUAGE_CONFIG = {
    'patterns': {
        'ru': r'[А-Яа-яЁё]',
        'ar': r'[\u0600-\u06FF]',
        'zh': r'[\u4E00-\u9FFF]',
        'ja': r'[\u3040-\u309F\u30A0-\u30FF]',
        'ko': r'[\uAC00-\uD7AF]',
        'he': r'[\u0590-\u05FF]',
        'th': r'[\u0E00-\u0E7F]',
        'hi': r'[\u0900-\u097F]',
        'el': r'[\u0370-\u03FF]',
        'vi': r'[\u00C0-\u1EF9]',
    },
    'strict_languages': frozenset(['ru', 'ar', 'zh', 'ja', 'ko', 'he', 'th', 'hi', 'el']),
    'names': {
        'ar': 'Arabic', 'de': 'German', 'el': 'Greek', 'en': 'English',
        'es': 'Spanish', 'fr': 'French', 'he': 'Hebrew', 'hi': 'Hindi',
        'it': 'Italian', 'ja': 'Japanese', 'ko': 'Korean', 'nl': 'Dutch',
        'pl': 'Polish', 'pt': 'Portuguese', 'ru': 'Russian', 'sv': 'Swedish',
        'th': 'Thai', 'tr': 'Turkish', 'vi': 'Vietnamese', 'zh': 'Chinese',
    },
}

LOGGING_CONFIG = {
    'level': getattr(logging, os.getenv('TRANSLATOR_LOG_LEVEL', 'INFO').upper(), logging.INFO),
    'format': '%(asctime)s %(levelname)s %(message)s',
    'datefmt': '%H:%M:%S',
    'log_file_extension': '.log',
}

JOB_CONFIG = {
    'max_attempts': 10,
    'base_delay': 1.0,
    'max_delay': 300.0,
}


def get_api_key(explicit: Optional[str] = None) -> str:
    """Returns the API key, raising ConfigurationError when none is configured"""
    api_key = explicit or os.getenv(API_CONFIG['api_key_env'])
    if not api_key:
        raise ConfigurationError(f"{API_CONFIG['api_key_env']} not configured")
    return api_key

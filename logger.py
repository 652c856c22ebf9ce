"""
Logger configuration for HTML Page Translator

Console output goes through tqdm so log lines and the batch progress bar
don't overwrite each other. Each CLI run can also keep a log file named
after the site or template being translated
"""

import logging
import os
import sys
from typing import Optional

from tqdm import tqdm

from config import LOGGING_CONFIG, TRANSLATION_CONFIG


class TqdmConsoleHandler(logging.StreamHandler):
    """StreamHandler that prints above an active tqdm bar"""

    def emit(self, record: logging.LogRecord) -> None:
        try:
            tqdm.write(self.format(record), file=self.stream)
        except Exception:
            self.handleError(record)


def log_file_name(source: str, language: str) -> str:
    """'sites/dating/' + 'es' -> 'dating_es.log'; a template .zip loses its extension"""
    name = os.path.basename(source.rstrip('/\\')) or 'translation'
    if name.lower().endswith('.zip'):
        name = name[:-4]
    return f"{name}_{language}{LOGGING_CONFIG['log_file_extension']}"


def setup_logger(log_file: Optional[str] = None, verbose: Optional[bool] = None) -> logging.Logger:
    """
    Configures the 'website_translator' logger. The console shows INFO
    in verbose mode and WARNING otherwise; the log file always gets INFO.
    verbose defaults to TRANSLATION_CONFIG['verbose']
    """
    if verbose is None:
        verbose = TRANSLATION_CONFIG['verbose']

    logger = logging.getLogger('website_translator')
    logger.setLevel(LOGGING_CONFIG['level'])
    logger.propagate = False

    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    formatter = logging.Formatter(LOGGING_CONFIG['format'], LOGGING_CONFIG['datefmt'])

    console_handler = TqdmConsoleHandler(sys.stdout)
    console_handler.setFormatter(formatter)
    console_handler.setLevel(logging.INFO if verbose else logging.WARNING)
    logger.addHandler(console_handler)

    if log_file:
        file_handler = logging.FileHandler(log_file, encoding='utf-8')
        file_handler.setFormatter(formatter)
        file_handler.setLevel(logging.INFO)
        logger.addHandler(file_handler)

    for name in ("httpx", "httpcore", "anthropic"):
        logging.getLogger(name).setLevel(logging.WARNING)

    return logger

"""
Packaging module for HTML Page Translator

Reads HTML pages out of template archives or directories and writes
translated pages back, carrying every non-HTML asset along
"""

import io
import logging
import os
import zipfile
from typing import Iterable, List

from models import TranslatedFile, TranslationJob

logger = logging.getLogger('website_translator')


def is_metadata_entry(name: str) -> bool:
    """OS metadata that never belongs in an output archive"""
    return ("__MACOSX/" in name
            or os.path.basename(name).startswith("._")
            or name.endswith(".DS_Store"))


def is_skipped_entry(name: str) -> bool:
    """Entries not copied from the template: metadata, HTML pages and JSON files"""
    lowered = name.lower()
    return is_metadata_entry(name) or lowered.endswith(".html") or lowered.endswith(".json")


def read_html_files(zip_bytes: bytes) -> List[TranslationJob]:
    """Returns a TranslationJob for every HTML page in the archive"""
    jobs = []
    with zipfile.ZipFile(io.BytesIO(zip_bytes)) as archive:
        for info in archive.infolist():
            name = info.filename
            if info.is_dir() or is_metadata_entry(name) or not name.lower().endswith(".html"):
                continue
            html = archive.read(info).decode("utf-8")
            jobs.append(TranslationJob(os.path.basename(name), name, html))
    logger.info(f"Found {len(jobs)} HTML files in archive")
    return jobs


def build_output_archive(template_zip: bytes, translated_files: Iterable[TranslatedFile]) -> bytes:
    """
    Builds the output ZIP: template assets first, then each translated page
    at its original path
    """
    output = io.BytesIO()
    copied = 0
    with zipfile.ZipFile(io.BytesIO(template_zip)) as template, \
            zipfile.ZipFile(output, "w", compression=zipfile.ZIP_DEFLATED, compresslevel=6) as result:
        for info in template.infolist():
            if info.is_dir() or is_skipped_entry(info.filename):
                continue
            result.writestr(info.filename, template.read(info))
            copied += 1

        for file in translated_files:
            result.writestr(file.original_path, file.html.encode("utf-8"))
            logger.info(f"Added translated: {file.original_path}")

    logger.info(f"Copied {copied} asset files, archive size {output.tell()} bytes")
    return output.getvalue()


def read_html_directory(path: str) -> List[TranslationJob]:
    """Returns a TranslationJob for every .html file under path, in sorted order"""
    jobs = []
    for root, dirs, files in os.walk(path):
        dirs.sort()
        for name in sorted(files):
            if not name.lower().endswith(".html"):
                continue
            full_path = os.path.join(root, name)
            with open(full_path, mode='r', encoding='utf-8') as f:
                html = f.read()
            jobs.append(TranslationJob(name, os.path.relpath(full_path, path).replace(os.sep, "/"), html))
    return jobs


def write_translated_files(translated_files: Iterable[TranslatedFile], destination: str) -> None:
    for file in translated_files:
        target = os.path.join(destination, *file.original_path.split("/"))
        os.makedirs(os.path.dirname(target), exist_ok=True)
        with open(target, mode='w', encoding='utf-8') as f:
            f.write(file.html)
        logger.info(f"Saved {target}")

"""
Text extraction for uploads.

PDF pages are read with PyMuPDF and joined with blank lines; the character
range of each page in the joined text is recorded so token chunks can be
mapped back to the pages they span. Plain text files are read as UTF-8.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
import logging
import re
from typing import Callable, Optional

import fitz  # PyMuPDF

from chunking.cancellation import CancellationToken, checkpoint
from chunking.models import PageRange

from .exceptions import ExtractionError, UnsupportedFileError

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[int, int, int], None]

PAGE_SEPARATOR = "\n\n"
TEXT_SUFFIXES = {".txt", ".text", ".md"}


@dataclass
class ExtractedText:
    text: str
    source_file: str
    page_ranges: list[PageRange] = field(default_factory=list)
    page_count: int = 0

    @property
    def paginated(self) -> bool:
        return bool(self.page_ranges)


def clean_page_text(text: str) -> str:
    if not text:
        return ""
    cleaned = text.replace("\r\n", "\n").replace("\r", "\n")
    # De-hyphenate line breaks: "inter-\n vention" -> "intervention"
    cleaned = re.sub(r"(?<=\w)-\n(?=[a-z])", "", cleaned)
    cleaned = re.sub(r"[ \t]+", " ", cleaned)
    cleaned = re.sub(r" *\n *", "\n", cleaned)
    cleaned = re.sub(r"\n{3,}", "\n\n", cleaned)
    return cleaned.strip()


def extract_pdf(
    path: str | Path,
    on_progress: Optional[ProgressCallback] = None,
    cancel_token: Optional[CancellationToken] = None,
) -> ExtractedText:
    path = Path(path)
    try:
        doc = fitz.open(path)
    except (RuntimeError, OSError) as exc:
        raise ExtractionError(str(path), "Cannot open PDF", details=str(exc)) from exc

    parts: list[str] = []
    page_ranges: list[PageRange] = []
    position = 0
    with doc:
        total = len(doc)
        for page_number, page in enumerate(doc, start=1):
            checkpoint(cancel_token, "PDF extraction")
            text = clean_page_text(page.get_text("text"))
            if parts:
                position += len(PAGE_SEPARATOR)
            parts.append(text)
            page_ranges.append(PageRange(
                page=page_number,
                start_char=position,
                end_char=position + len(text),
            ))
            position += len(text)
            if on_progress:
                on_progress(page_number, total, round(page_number / total * 100))

    joined = PAGE_SEPARATOR.join(parts)
    if not joined.strip():
        logger.warning(f"No selectable text in {path.name}; scanned PDFs need OCR first")
    logger.info(f"Extracted {len(joined)} characters from {total} pages of {path.name}")
    return ExtractedText(
        text=joined,
        source_file=path.name,
        page_ranges=page_ranges,
        page_count=total,
    )


def extract_text_file(path: str | Path) -> ExtractedText:
    path = Path(path)
    try:
        text = path.read_text(encoding="utf-8", errors="replace")
    except OSError as exc:
        raise ExtractionError(str(path), "Cannot read file", details=str(exc)) from exc
    return ExtractedText(text=text, source_file=path.name)


def extract_document(
    path: str | Path,
    on_progress: Optional[ProgressCallback] = None,
    cancel_token: Optional[CancellationToken] = None,
) -> ExtractedText:
    """Extract text from a PDF or plain text file."""
    path = Path(path)
    if not path.is_file():
        raise ExtractionError(str(path), "File not found")
    suffix = path.suffix.lower()
    if suffix == ".pdf":
        return extract_pdf(path, on_progress, cancel_token)
    if suffix in TEXT_SUFFIXES:
        return extract_text_file(path)
    raise UnsupportedFileError(str(path), suffix)

"""
Chunk Boundary Repair

Every candidate chunk passes through an ordered pipeline of small, pure
steps ``(text, context) -> Optional[str]``. A step returns the (possibly
trimmed) text, or None to discard the chunk. The pipeline never raises: the
outcome is either a repaired string or "" meaning "drop this chunk".

Steps, in order:
    strip_trailing_header      residual case stamps, page markers, captions
    fix_start                  start at an uppercase letter or digit
    remove_stubborn_suffixes   fixed domain-specific dangling tails
    fix_ending                 end with a sentence terminator
    trim_incomplete_phrase     dangling titles, brackets, citations, connectors
    drop_incomplete_sentence   trailing sentence cut mid-thought
    enforce_min_length         tiny leftovers are discarded

Usage:
    from chunking.boundary_repair import repair_chunk

    text = repair_chunk("the motion. The court agreed with Dr.", is_first=False)
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Callable, Optional, Sequence

from .rules import PatternRule, first_match
from .sentence_splitter import CLOSERS, TERMINATORS, sentence_spans

logger = logging.getLogger(__name__)

DEFAULT_MIN_CHUNK_CHARS = 50


@dataclass(frozen=True)
class RepairContext:
    """
    Facts about the candidate that steps may need.

    Attributes:
        is_first: The candidate is the first chunk of its document and may
            start with any character.
        min_length: Chunks shorter than this are discarded.
    """
    is_first: bool = False
    min_length: int = DEFAULT_MIN_CHUNK_CHARS


RepairFunc = Callable[[str, RepairContext], Optional[str]]


@dataclass(frozen=True)
class RepairStep:
    name: str
    func: RepairFunc

    def __call__(self, text: str, context: RepairContext) -> Optional[str]:
        return self.func(text, context)


@dataclass(frozen=True)
class RepairOutcome:
    text: str
    dropped_by: Optional[str] = None

    @property
    def dropped(self) -> bool:
        return self.dropped_by is not None


# -----------------------------------------------------------------------------
# Shared helpers
# -----------------------------------------------------------------------------

_CONNECTOR_WORDS = (
    "and", "or", "but", "nor", "of", "to", "in", "for", "with", "by", "at",
    "from", "on", "into", "onto", "upon", "the", "a", "an", "that", "which",
    "as", "per", "under", "including", "see", "than", "whether", "because",
)
_TRAILING_CONNECTORS_RE = re.compile(
    r"(?:\s+(?:" + "|".join(_CONNECTOR_WORDS) + r")\b|[\s,;:\-–—(\[/&])+$",
)
_START_POINT_RE = re.compile(r"[.!?][\"')\]”’]*\s+(?=[A-Z0-9])")


def ends_with_terminator(text: str) -> bool:
    """True if ``text`` ends with . ! or ?, optionally followed by closers."""
    stripped = text.rstrip().rstrip(CLOSERS)
    return bool(stripped) and stripped[-1] in TERMINATORS


def starts_validly(text: str) -> bool:
    first = text[:1]
    return first.isupper() or first.isdigit()


def strip_trailing_connectors(text: str) -> str:
    """Remove trailing connector words and dangling punctuation."""
    previous = None
    while previous != text:
        previous = text
        text = _TRAILING_CONNECTORS_RE.sub("", text)
    return text.rstrip()


def _last_terminator_end(text: str) -> int:
    """End offset (after closers) of the last terminator in ``text``, or -1."""
    for idx in range(len(text) - 1, -1, -1):
        if text[idx] in TERMINATORS:
            end = idx + 1
            while end < len(text) and text[end] in CLOSERS:
                end += 1
            return end
    return -1


# -----------------------------------------------------------------------------
# Steps
# -----------------------------------------------------------------------------

TRAILING_HEADER_RULES: list[PatternRule] = [
    PatternRule(
        "case_stamp",
        re.compile(r"\s*Case\s+\d+:\d{2}-[a-z]{2,3}-\d+\S*(?:\s+Document\s+\d+\S*)?(?:\s+Filed\s+\S+)?"
                   r"(?:\s+Page\s+\d+\s+of\s+\d+)?(?:\s+Page\s*ID\s*#?:?\s*\d+)?\s*$"),
    ),
    PatternRule("page_of", re.compile(r"\s*\bPage\s+\d+(?:\s+of\s+\d+)?\s*$", re.IGNORECASE)),
    PatternRule("dashed_page", re.compile(r"\s*-\s*\d{1,4}\s*-\s*$")),
    PatternRule("bare_page_number", re.compile(r"(?<=[.!?\"')\]”’])\s+\d{1,4}\s*$")),
    PatternRule(
        "case_caption",
        re.compile(
            r"(?<=[.!?\"')\]”’])\s+[A-Z][\w.,'&-]*(?:\s+[\w.,'&-]+){0,6}"
            r"\s+v\.\s+[A-Z][\w.,'&-]*(?:\s+[\w.,'&-]+){0,6}\s*$"
        ),
    ),
]


def strip_trailing_header(text: str, context: RepairContext) -> Optional[str]:
    hit = first_match(TRAILING_HEADER_RULES, text)
    while hit:
        text = text[: hit.match.start()].rstrip()
        hit = first_match(TRAILING_HEADER_RULES, text) if text else None
    return text or None


def fix_start(text: str, context: RepairContext) -> Optional[str]:
    """Trim to the first sentence that starts with an uppercase letter or digit."""
    text = text.lstrip()
    if context.is_first or starts_validly(text):
        return text or None
    match = _START_POINT_RE.search(text)
    if not match:
        return None
    return text[match.end():] or None


STUBBORN_SUFFIXES: list[PatternRule] = [
    PatternRule("unclosed_admin_record", re.compile(r"\s*\(\s*Admin\.\s*R\.(?:\s*at)?[\s\d,\-–]*$")),
    PatternRule("dangling_signal", re.compile(r"\s+(?:See(?:,?\s+also)?|Cf\.|But\s+see|Accord)[\s,]*$")),
    PatternRule("dangling_id_at", re.compile(r"\s+Id\.\s+at\s*$")),
    PatternRule("dangling_section_sign", re.compile(r"\s*§§?\s*$")),
    PatternRule("dangling_exhibit", re.compile(r"\s+\(?(?:Ex|Exh|Dkt|Doc)\.(?:\s*No\.)?\s*$")),
]


def remove_stubborn_suffixes(text: str, context: RepairContext) -> Optional[str]:
    hit = first_match(STUBBORN_SUFFIXES, text)
    while hit:
        text = text[: hit.match.start()].rstrip()
        hit = first_match(STUBBORN_SUFFIXES, text) if text else None
    return text or None


def fix_ending(text: str, context: RepairContext) -> Optional[str]:
    """
    End with a terminator: trim back to the last one when it lies past the
    midpoint, otherwise append a period.
    """
    text = text.rstrip()
    if not text:
        return None
    if ends_with_terminator(text):
        return text
    end = _last_terminator_end(text)
    if end > len(text) / 2:
        return text[:end]
    text = strip_trailing_connectors(text)
    return f"{text}." if text else None


INCOMPLETE_PHRASE_RULES: list[PatternRule] = [
    PatternRule(
        "dangling_title",
        re.compile(r"\s*\b(?:Dr|Mr|Mrs|Ms|Prof|Hon|Atty)\.[\"')\]”’]*$"),
    ),
    PatternRule("open_bracket", re.compile(r"\s*[(\[][^)\]]*$")),
    PatternRule(
        "incomplete_citation",
        re.compile(
            r"\s*(?:\b(?:Admin\.\s*R|Id)|\b\d+\s+(?:U\.\s?S\.\s?C|U\.\s?S|F\.\s?Supp(?:\.\s?[23]d)?"
            r"|S\.\s?Ct|F\.\s?[23]d|C\.\s?F\.\s?R))"
            r"\.(?:\s*at)?\s*[.!?]?$"
        ),
    ),
    PatternRule("trailing_connector_punctuation", re.compile(r"\s*[,;:\-–—/&]+\s*[.!?]?$")),
    PatternRule(
        "dangling_preposition",
        re.compile(r"\s+(?:of|to|in|for|with|by|at|from|on|into|and|or|but|the|a|an)[.!?]$"),
    ),
]


def trim_incomplete_phrase(text: str, context: RepairContext) -> Optional[str]:
    """Hard-truncate at known incomplete trailing phrases, then re-verify the ending."""
    hit = first_match(INCOMPLETE_PHRASE_RULES, text)
    while hit:
        logger.debug(f"Trimming incomplete phrase ({hit.rule.name}): {text[-60:]!r}")
        text = strip_trailing_connectors(text[: hit.match.start()])
        if not text:
            return None
        fixed = fix_ending(text, context)
        if fixed is None:
            return None
        text = fixed
        hit = first_match(INCOMPLETE_PHRASE_RULES, text)
    return text


_FINAL_CONNECTOR_RE = re.compile(
    r"\b(?:and|or|but|nor|of|to|in|for|with|by|from|into|the|a|an|that|which)\s*[.!?][\"')\]”’]*$",
)
_JAMMED_WORD_RE = re.compile(r"\b[a-z]{2,}[A-Z][a-z]+")
JAMMED_WINDOW_CHARS = 40


def drop_incomplete_sentence(text: str, context: RepairContext) -> Optional[str]:
    """
    Drop the final sentence when it ends in a preposition/conjunction or shows
    a jammed lowercase->uppercase word near the end (``the courtThe``).
    """
    spans = sentence_spans(text)
    if not spans:
        return None
    last_start, last_end = spans[-1]
    last = text[last_start:last_end]
    tail = last[-JAMMED_WINDOW_CHARS:]
    if not (_FINAL_CONNECTOR_RE.search(last) or _JAMMED_WORD_RE.search(tail)):
        return text
    return text[:last_start].rstrip() or None


def enforce_min_length(text: str, context: RepairContext) -> Optional[str]:
    return text if len(text) >= context.min_length else None


DEFAULT_STEPS: list[RepairStep] = [
    RepairStep("strip_trailing_header", strip_trailing_header),
    RepairStep("fix_start", fix_start),
    RepairStep("remove_stubborn_suffixes", remove_stubborn_suffixes),
    RepairStep("fix_ending", fix_ending),
    RepairStep("trim_incomplete_phrase", trim_incomplete_phrase),
    RepairStep("drop_incomplete_sentence", drop_incomplete_sentence),
    RepairStep("enforce_min_length", enforce_min_length),
]


class BoundaryRepairPipeline:
    """Runs repair steps in order, stopping at the first discard."""

    def __init__(self, steps: Optional[Sequence[RepairStep]] = None):
        self.steps = list(steps) if steps is not None else list(DEFAULT_STEPS)

    def run(self, text: str, context: Optional[RepairContext] = None) -> RepairOutcome:
        context = context or RepairContext()
        current = (text or "").strip()
        if not current:
            return RepairOutcome(text="", dropped_by="empty_input")
        for step in self.steps:
            result = step(current, context)
            if not result:
                logger.debug(f"Chunk dropped by {step.name}: {current[:60]!r}")
                return RepairOutcome(text="", dropped_by=step.name)
            current = result
        return RepairOutcome(text=current)


_default_pipeline = BoundaryRepairPipeline()


def repair_chunk(
    text: str,
    is_first: bool = False,
    min_length: int = DEFAULT_MIN_CHUNK_CHARS,
) -> str:
    """
    Repair a candidate chunk.

    Returns:
        The repaired text, or "" when the chunk should be discarded.
    """
    context = RepairContext(is_first=is_first, min_length=min_length)
    return _default_pipeline.run(text, context).text

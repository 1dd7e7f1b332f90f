"""
Header and Footer Stripping

Court filings, medical charts and insurance records repeat running headers
and footers on every page (case stamps, page markers, court captions). Left
in place they break paragraphs and leak into chunks, so they are removed
before paragraph segmentation.

Two rule tables drive the cleanup:

- HEADER_RULES: a whole line is dropped when the first matching rule says so.
- INLINE_RULES: ordered substitutions that excise stamps and page numbers
  that the extractor glued into running text.

Usage:
    from chunking.headers import strip_headers

    cleaned = strip_headers(raw_text)
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Optional

from .rules import PatternRule, first_match

logger = logging.getLogger(__name__)

ALL_CAPS_MAX_CHARS = 100

_SECTION_TITLES = (
    r"background|introduction|discussion|analysis|conclusion|facts"
    r"|factual background|procedural (?:history|background)"
    r"|standard of review|legal standard|jurisdiction|order|opinion"
    r"|memorandum(?: opinion)?(?: and order)?|summary|relief requested"
    r"|history of present illness|chief complaint|assessment(?: and plan)?"
    r"|plan|impression|findings|diagnosis|medications|allergies"
    r"|exhibits?|table of contents|certificate of service"
)

HEADER_RULES: list[PatternRule] = [
    PatternRule(
        "case_number",
        re.compile(
            r"^(?:Case|Civil Action|Cause|Docket)\s*(?:No\.?|Number|#)?\s*:?\s*"
            r"[\w.]*\d[\w.]*[:\-][\w:.\-]*(?:\s+.*)?$",
            re.IGNORECASE,
        ),
    ),
    PatternRule(
        "case_number",
        re.compile(r"^No\.\s*\d[\d\-:A-Za-z]*\s*$"),
    ),
    PatternRule(
        "page_marker",
        re.compile(r"^(?:Page\s+)?\d{1,4}(?:\s+of\s+\d{1,4})?$|^-\s*\d{1,4}\s*-$", re.IGNORECASE),
    ),
    PatternRule(
        "court_name",
        re.compile(
            r"^(?:in\s+the\s+)?(?:(?:united\s+states|supreme|superior|circuit|district"
            r"|bankruptcy|appellate|county|family|probate)\s+)+court"
            r"(?:\s+(?:of|for)\s+[\w\s,.'()]+)?$"
            r"|^for\s+the\s+(?:\w+\s+)?district\s+of\s+[\w\s]+$",
            re.IGNORECASE,
        ),
    ),
    PatternRule(
        "filing_stamp",
        re.compile(
            r"^(?:Filed|Entered|Decided|Argued|Submitted|Dated|Date Filed|Received)"
            r"\s*:?\s*(?:on\s+)?"
            r"(?:\d{1,2}/\d{1,2}/\d{2,4}|[A-Z][a-z]+\.?\s+\d{1,2},\s+\d{4})\.?$",
            re.IGNORECASE,
        ),
    ),
    PatternRule(
        "section_title",
        re.compile(
            rf"^(?:[IVXLC]+\.\s+|[A-Z]\.\s+|\d+\.\s+)?(?:{_SECTION_TITLES})\s*:?$",
            re.IGNORECASE,
        ),
    ),
    PatternRule(
        "all_caps_short",
        re.compile(
            rf"^(?=.{{1,{ALL_CAPS_MAX_CHARS - 1}}}$)(?=(?:[^a-z]*?[A-Z]){{3}})[^a-z]+$"
        ),
    ),
]


@dataclass(frozen=True)
class SubstitutionRule:
    """A named regex substitution applied to running text."""
    name: str
    pattern: re.Pattern[str]
    replacement: str

    def apply(self, text: str) -> tuple[str, int]:
        return self.pattern.subn(self.replacement, text)


INLINE_RULES: list[SubstitutionRule] = [
    SubstitutionRule(
        "inline_case_stamp",
        re.compile(
            r"Case\s+\d+:\d{2}-[a-z]{2,3}-\d+(?:-[A-Z]+)*\s+Document\s+\d+(?:-\d+)?"
            r"\s+Filed\s+\d{1,2}/\d{1,2}/\d{2,4}\s+Page\s+\d+\s+of\s+\d+"
            r"(?:\s+Page\s*ID\s*#?:?\s*\d+)?"
        ),
        " ",
    ),
    SubstitutionRule(
        "inline_page_of",
        re.compile(r"\bPage\s+\d+\s+of\s+\d+\b"),
        " ",
    ),
    SubstitutionRule(
        "bare_page_number",
        re.compile(r"(?<=[.!?])[ \t]+\d{1,3}[ \t]+(?=[A-Z])"),
        " ",
    ),
]

_HYPHENATION_RE = re.compile(r"(\w)-[ \t]*\n[ \t]*([a-z])")
_BLANK_RUN_RE = re.compile(r"\n{3,}")
_INNER_SPACES_RE = re.compile(r"[ \t]{2,}")


def header_rule_for(line: str) -> Optional[str]:
    """Return the name of the header rule matching ``line``, or None."""
    stripped = line.strip()
    if not stripped:
        return None
    hit = first_match(HEADER_RULES, stripped)
    return hit.rule.name if hit else None


def is_header_line(line: str) -> bool:
    """Return True if ``line`` is a running header/footer to drop."""
    return header_rule_for(line) is not None


def rejoin_hyphenation(text: str) -> str:
    """Join words split across a line break: ``exam-\\nple`` -> ``example``."""
    return _HYPHENATION_RE.sub(r"\1\2", text)


def remove_inline_noise(text: str) -> str:
    """Apply INLINE_RULES in order."""
    for rule in INLINE_RULES:
        text, count = rule.apply(text)
        if count:
            logger.debug(f"Inline rule '{rule.name}' removed {count} fragment(s)")
    return text


def collapse_blank_lines(text: str) -> str:
    """Collapse every run of blank lines into a single blank line."""
    return _BLANK_RUN_RE.sub("\n\n", text)


def strip_headers(text: str) -> str:
    """
    Remove header/footer lines and inline page noise from ``text``.

    Steps:
    1. Rejoin words hyphenated across line breaks.
    2. Drop every line matched by HEADER_RULES.
    3. Excise inline stamps and page numbers (INLINE_RULES).
    4. Collapse runs of blank lines to one.

    Returns:
        The cleaned text, stripped. Empty input yields "".
    """
    if not text or not text.strip():
        return ""

    text = rejoin_hyphenation(text.replace("\r\n", "\n").replace("\r", "\n"))

    kept: list[str] = []
    dropped: dict[str, int] = {}
    for line in text.split("\n"):
        rule = header_rule_for(line)
        if rule:
            dropped[rule] = dropped.get(rule, 0) + 1
            continue
        kept.append(line)

    if dropped:
        logger.debug(f"Dropped header lines: {dropped}")

    cleaned = remove_inline_noise("\n".join(kept))
    cleaned = "\n".join(_INNER_SPACES_RE.sub(" ", line).strip() for line in cleaned.split("\n"))
    return collapse_blank_lines(cleaned).strip()

"""
Paragraph Segmentation and Fragment Merging

A paragraph is a maximal run of lines between blank lines (after header
stripping). Lines inside a paragraph are joined with spaces. Each paragraph
keeps its character range in the cleaned text so chunks can point back to
their source.

Extracted records often break a paragraph in the wrong place: a page break
in mid-sentence, a citation split across lines, a caption glued to the next
paragraph. Such paragraphs are *fragments* and are merged forward into the
following paragraphs before sentence chunking.

Usage:
    from chunking.paragraphs import split_paragraphs, merge_fragments

    paragraphs = split_paragraphs(cleaned_text)
    merged = merge_fragments(paragraphs)
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Optional, Sequence

from .rules import PredicateRule, first_predicate
from .sentence_splitter import CLOSERS, TERMINATORS

DEFAULT_MIN_FRAGMENT_CHARS = 40

_PARAGRAPH_BREAK_RE = re.compile(r"\n[ \t]*\n\s*")
_NUMBERED_ITEM_RE = re.compile(r"^\(?(?:\d{1,3}|[A-Za-z]|[ivxIVX]{1,4})[.)]\s")
_CONTINUATION_START_RE = re.compile(r"^[a-z,;:)\]]")
_OPEN_CITATION_RE = re.compile(
    r"\((?:[^()]*\b)?(?:Admin\.\s*R\.|A\.R\.|Tr\.|Dkt\.|Doc\.|ECF|Ex\.|Exh\.|R\.|Id\.)"
    r"(?:\s*(?:No\.|at|p\.|pp\.))?[\s\d,\-–]*$"
)
_SPACED_ELLIPSIS_RE = re.compile(r"(?:^|\s)\.(?:\s+\.)+\s*$|^\s*\.(?:\s+\.)+")


@dataclass(frozen=True)
class Paragraph:
    """A paragraph and its [start, end) range in the cleaned text."""
    index: int
    text: str
    start: int
    end: int


@dataclass(frozen=True)
class MergedParagraph:
    """
    One or more consecutive paragraphs treated as a unit.

    ``first_index``/``last_index`` are the source paragraph indices;
    ``reason`` is the fragment reason that triggered the merge (None when
    the paragraph stood on its own).
    """
    text: str
    start: int
    end: int
    first_index: int
    last_index: int
    reason: Optional[str] = None

    @property
    def merged(self) -> bool:
        return self.last_index > self.first_index


def split_paragraphs(text: str) -> list[Paragraph]:
    """
    Split ``text`` on blank lines.

    Newlines inside a paragraph become spaces, so every paragraph's text has
    the same length as its source range.
    """
    if not text or not text.strip():
        return []

    paragraphs: list[Paragraph] = []
    cursor = 0
    for match in [*_PARAGRAPH_BREAK_RE.finditer(text), None]:
        end = match.start() if match else len(text)
        _append_paragraph(paragraphs, text, cursor, end)
        if match:
            cursor = match.end()
    return paragraphs


def _append_paragraph(paragraphs: list[Paragraph], text: str, start: int, end: int) -> None:
    while start < end and text[start].isspace():
        start += 1
    while end > start and text[end - 1].isspace():
        end -= 1
    if start >= end:
        return
    paragraphs.append(Paragraph(
        index=len(paragraphs),
        text=text[start:end].replace("\n", " "),
        start=start,
        end=end,
    ))


def paragraphs_from_texts(texts: Sequence[str]) -> list[Paragraph]:
    """Build paragraphs from plain strings as if joined by blank lines."""
    return split_paragraphs("\n\n".join(t.strip() for t in texts if t and t.strip()))


# -----------------------------------------------------------------------------
# Fragment detection
# -----------------------------------------------------------------------------


@dataclass(frozen=True)
class FragmentContext:
    text: str
    min_chars: int

    @property
    def ends_with_terminator(self) -> bool:
        stripped = self.text.rstrip().rstrip(CLOSERS)
        return bool(stripped) and stripped[-1] in TERMINATORS


def _too_short(ctx: FragmentContext) -> bool:
    if len(ctx.text) >= ctx.min_chars:
        return False
    first = ctx.text[:1]
    well_formed = (first.isupper() or first.isdigit()) and ctx.ends_with_terminator
    return not well_formed


def _lowercase_start(ctx: FragmentContext) -> bool:
    return bool(_CONTINUATION_START_RE.match(ctx.text))


def _missing_terminator(ctx: FragmentContext) -> bool:
    if ctx.ends_with_terminator:
        return False
    return not _NUMBERED_ITEM_RE.match(ctx.text)


def _open_citation(ctx: FragmentContext) -> bool:
    return bool(_OPEN_CITATION_RE.search(ctx.text))


def _spaced_ellipsis(ctx: FragmentContext) -> bool:
    return bool(_SPACED_ELLIPSIS_RE.search(ctx.text))


def _open_bracket(ctx: FragmentContext) -> bool:
    text = ctx.text
    return (
        text.rstrip()[-1:] in ("(", "[")
        or text.count("(") > text.count(")")
        or text.count("[") > text.count("]")
    )


FRAGMENT_RULES: list[PredicateRule[FragmentContext]] = [
    PredicateRule("too_short", _too_short),
    PredicateRule("lowercase_start", _lowercase_start),
    PredicateRule("missing_terminator", _missing_terminator),
    PredicateRule("open_citation", _open_citation),
    PredicateRule("spaced_ellipsis", _spaced_ellipsis),
    PredicateRule("open_bracket", _open_bracket),
]


def fragment_reason(
    text: str,
    min_chars: int = DEFAULT_MIN_FRAGMENT_CHARS,
    skip: Sequence[str] = (),
) -> Optional[str]:
    """
    Return the name of the first fragment rule matching ``text``.

    Args:
        text: Paragraph text.
        min_chars: Paragraphs shorter than this are fragments unless they are
            a well-formed capitalized sentence.
        skip: Rule names to ignore.

    Returns:
        Rule name, or None when the paragraph can stand on its own.
    """
    text = text.strip()
    if not text:
        return None
    ctx = FragmentContext(text=text, min_chars=min_chars)
    rules = [rule for rule in FRAGMENT_RULES if rule.name not in skip]
    rule = first_predicate(rules, ctx)
    return rule.name if rule else None


def is_fragment(text: str, min_chars: int = DEFAULT_MIN_FRAGMENT_CHARS) -> bool:
    return fragment_reason(text, min_chars) is not None


def merge_fragments(
    paragraphs: Sequence[Paragraph],
    min_chars: int = DEFAULT_MIN_FRAGMENT_CHARS,
) -> list[MergedParagraph]:
    """
    Merge fragment paragraphs forward.

    A fragment absorbs the following paragraphs until the merged text is no
    longer a fragment or the input runs out. After the first absorption the
    merged text keeps the fragment's own start, so ``lowercase_start`` is no
    longer checked. Every step consumes at least one paragraph.
    """
    merged: list[MergedParagraph] = []
    i = 0
    total = len(paragraphs)
    while i < total:
        first = paragraphs[i]
        reason = fragment_reason(first.text, min_chars)
        text = first.text
        j = i
        still_fragment = reason
        while still_fragment and j + 1 < total:
            j += 1
            following = paragraphs[j]
            gap = " " * max(1, following.start - paragraphs[j - 1].end)
            text = f"{text}{gap}{following.text}"
            still_fragment = fragment_reason(text, min_chars, skip=("lowercase_start",))

        merged.append(MergedParagraph(
            text=text,
            start=first.start,
            end=paragraphs[j].end,
            first_index=first.index,
            last_index=paragraphs[j].index,
            reason=reason,
        ))
        i = j + 1
    return merged

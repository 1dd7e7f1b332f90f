"""
Sentence Splitter for the Chunking Pipeline

Rule-based sentence boundary detection tuned for English legal, medical and
insurance records. Handles titles (Dr., Mr.), corporate suffixes, month
abbreviations, initials and multi-token legal citations (Admin. R., U. S.,
S. Ct., F. Supp.) without requiring external NLP libraries.

Design:
- Every '.', '!' or '?' is a candidate boundary.
- A candidate is classified by an ordered table of named rules; the first
  rule that applies decides.
- Closing quotes and brackets right after a terminator stay with the
  sentence they close.

Usage:
    from chunking.sentence_splitter import split_sentences

    sentences = split_sentences("Dr. Smith filed a motion. The court agreed.")
    # ["Dr. Smith filed a motion.", "The court agreed."]
"""

from __future__ import annotations

import re
from dataclasses import dataclass

from .rules import DecisionRule, decide

TERMINATORS = ".!?"
CLOSERS = "\"')]”’"

_TERMINATOR_RE = re.compile(r"[.!?]")
_CLOSER_THEN_UPPER_RE = re.compile(r"^[\"')\]”’]+\s*[A-Z]")
_PRECEDING_WORD_RE = re.compile(r"(\S+)$")
_NEXT_WORD_RE = re.compile(r"^\S+")
_OPENERS = "\"'([“‘"

# Abbreviations that close a sentence only when a capitalized word follows.
_ABBREVIATIONS = {
    # Latin / general
    "etc", "ie", "eg", "viz", "cf", "al", "approx", "ca", "esp", "incl",
    # Corporate suffixes
    "inc", "corp", "co", "ltd", "llc", "llp", "plc", "bros", "assn", "dept",
    "govt", "natl", "intl", "univ",
    # Degrees and name suffixes
    "jr", "sr", "esq", "phd", "md", "jd", "do", "rn", "np", "pa", "dds",
    "ba", "bs", "ma", "mba", "llm",
    # Months
    "jan", "feb", "mar", "apr", "jun", "jul", "aug", "sep", "sept", "oct",
    "nov", "dec",
    # Legal citation tokens
    "admin", "stat", "supp", "app", "ct", "cir", "dist", "ann", "rev", "reg",
    "regs", "fed", "id", "ibid", "op", "cit", "compl", "aff", "decl", "mem",
    "mot", "ord", "pl", "def", "defs", "resp", "br", "cl",
    # Units and misc
    "hr", "hrs", "min", "max", "mg", "ml", "mm", "cm", "kg",
    "lb", "lbs", "oz", "ft", "est", "tel", "ave", "blvd", "st",
    "rd", "mt",
}

# Abbreviations that always precede another word (a name, a party) and so
# never end a sentence.
_NON_TERMINAL_ABBREVIATIONS = {
    "mr", "mrs", "ms", "mmes", "messrs", "dr", "prof", "hon", "rev'd", "gen", "col",
    "capt", "lt", "sgt", "gov", "sen", "rep", "pres", "atty", "supt",
    "v", "vs",
    # Reference prefixes followed by an identifier: "Ex. A", "No. 12"
    "no", "nos", "ex", "exh", "fig", "figs", "art", "sec", "secs", "para",
    "paras", "vol", "ch", "pp", "p", "dkt", "doc", "tr",
}

# Words that commonly open a new sentence after a trailing initial
# ("... Exhibit A. The court ...").
_SENTENCE_STARTERS = {
    "the", "this", "that", "these", "those", "it", "in", "on", "at", "a",
    "an", "he", "she", "they", "we", "i", "as", "for", "however", "moreover",
    "accordingly", "therefore", "thus", "plaintiff", "defendant", "there",
    "if", "when", "after", "before", "because", "since", "although", "his",
    "her", "their", "our", "no", "not", "by", "to", "see",
}


@dataclass(frozen=True)
class CitationRule:
    """
    A multi-token citation that must never be split.

    ``head`` is matched against the text up to and including the
    terminator, ``tail`` against the text following it.
    """
    name: str
    head: re.Pattern[str]
    tail: re.Pattern[str]

    def matches(self, text: str, index: int) -> bool:
        return bool(
            self.head.search(text[: index + 1]) and self.tail.match(text[index + 1:])
        )


CITATION_RULES: list[CitationRule] = [
    CitationRule("admin_record", re.compile(r"\bAdmin\.$"), re.compile(r"\s*R\.")),
    CitationRule(
        "admin_record_pin",
        re.compile(r"\bAdmin\.\s*R\.$"),
        re.compile(r"\s*(?:at\b|\d)"),
    ),
    CitationRule("united_states", re.compile(r"\bU\.$"), re.compile(r"\s*S\.")),
    CitationRule("united_states_tail", re.compile(r"\bU\.\s?S\.$"), re.compile(r"\s")),
    CitationRule("supreme_court", re.compile(r"\bS\.$"), re.compile(r"\s*Ct\.")),
    CitationRule(
        "federal_reporter",
        re.compile(r"\bF\.$"),
        re.compile(r"\s*(?:Supp\.|App'x|\d)"),
    ),
    CitationRule("federal_supplement", re.compile(r"\bSupp\.$"), re.compile(r"\s*(?:\d|2d|3d)")),
    CitationRule("district_court", re.compile(r"\b[NSEWMC]\.$"), re.compile(r"\s?D\.")),
    CitationRule(
        "district_state",
        re.compile(r"\b[NSEWMC]\.\s?D\.$"),
        re.compile(r"\s*[A-Z][a-z]{0,5}\."),
    ),
    CitationRule("code_fed_regs", re.compile(r"\bC\.\s?F\.$"), re.compile(r"\s?R\.")),
    CitationRule(
        "code_section",
        re.compile(r"\b(?:C\.\s?F\.\s?R|U\.\s?S\.\s?C)\.$"),
        re.compile(r"\s*(?:§|\d)"),
    ),
]


@dataclass(frozen=True)
class BoundaryContext:
    """A candidate terminator at ``index`` inside ``text``."""
    text: str
    index: int

    @property
    def following(self) -> str:
        return self.text[self.index + 1:]

    @property
    def next_char(self) -> str:
        return self.following[:1]

    @property
    def next_visible(self) -> str:
        return self.following.lstrip()[:1]

    @property
    def next_word(self) -> str:
        match = _NEXT_WORD_RE.match(self.following.lstrip())
        return match.group() if match else ""

    @property
    def preceding_word(self) -> str:
        """Token right before the terminator, without opening punctuation."""
        match = _PRECEDING_WORD_RE.search(self.text[: self.index])
        if not match:
            return ""
        return match.group(1).lstrip(_OPENERS)

    @property
    def word_before_preceding(self) -> str:
        head = self.text[: self.index]
        match = _PRECEDING_WORD_RE.search(head)
        if not match:
            return ""
        before = head[: match.start()].rstrip()
        prev = _PRECEDING_WORD_RE.search(before)
        return prev.group(1).lstrip(_OPENERS) if prev else ""


def _normalize_abbreviation(word: str) -> str:
    return word.lower().replace(".", "")


def _at_end(ctx: BoundaryContext) -> bool:
    return not ctx.following.strip().strip(CLOSERS)


def _closer_then_upper(ctx: BoundaryContext) -> bool:
    return bool(_CLOSER_THEN_UPPER_RE.match(ctx.following))


def _no_whitespace_after(ctx: BoundaryContext) -> bool:
    return not ctx.next_char.isspace()


def _lowercase_follows(ctx: BoundaryContext) -> bool:
    return ctx.next_visible.islower()


def _legal_citation(ctx: BoundaryContext) -> bool:
    return any(rule.matches(ctx.text, ctx.index) for rule in CITATION_RULES)


def _is_abbreviation(ctx: BoundaryContext) -> bool:
    if len(ctx.preceding_word) == 1 and ctx.preceding_word.isupper():
        return False
    word = _normalize_abbreviation(ctx.preceding_word)
    return word in _ABBREVIATIONS or word in _NON_TERMINAL_ABBREVIATIONS


def _abbreviation_decision(ctx: BoundaryContext) -> bool:
    if _normalize_abbreviation(ctx.preceding_word) in _NON_TERMINAL_ABBREVIATIONS:
        return False
    return ctx.next_visible.isupper()


def _is_initial(ctx: BoundaryContext) -> bool:
    word = ctx.preceding_word
    return len(word) == 1 and word.isupper()


def _initial_decision(ctx: BoundaryContext) -> bool:
    if not ctx.next_visible.isupper():
        return False
    next_word = ctx.next_word
    if re.match(r"^[A-Z]\.", next_word):
        # Chain of initials: "J. R. Smith"
        return False
    if next_word.strip(CLOSERS + ",;:").lower() in _SENTENCE_STARTERS:
        return True
    previous = ctx.word_before_preceding
    if previous[:1].isupper():
        # Middle initial after a name: "John F. Kennedy"
        return False
    return True


def _default_decision(ctx: BoundaryContext) -> bool:
    nxt = ctx.next_visible
    if nxt.isupper() or nxt.isdigit():
        return True
    return ctx.next_char.isspace()


BOUNDARY_RULES: list[DecisionRule[BoundaryContext, bool]] = [
    DecisionRule("end_of_input", _at_end, lambda ctx: True),
    DecisionRule("closer_then_uppercase", _closer_then_upper, lambda ctx: True),
    DecisionRule("no_whitespace_after", _no_whitespace_after, lambda ctx: False),
    DecisionRule("lowercase_follows", _lowercase_follows, lambda ctx: False),
    DecisionRule("legal_citation", _legal_citation, lambda ctx: False),
    DecisionRule("abbreviation", _is_abbreviation, _abbreviation_decision),
    DecisionRule("initial", _is_initial, _initial_decision),
]


def classify_boundary(text: str, index: int) -> tuple[str, bool]:
    """
    Classify the terminator at ``text[index]``.

    Returns:
        Tuple of (deciding rule name, is_boundary).
    """
    ctx = BoundaryContext(text=text, index=index)
    return decide(BOUNDARY_RULES, ctx, _default_decision(ctx))


def is_sentence_boundary(text: str, index: int) -> bool:
    """Return True if the terminator at ``text[index]`` ends a sentence."""
    if index < 0 or index >= len(text) or text[index] not in TERMINATORS:
        return False
    return classify_boundary(text, index)[1]


def sentence_spans(text: str) -> list[tuple[int, int]]:
    """
    Locate sentences inside ``text``.

    Returns:
        List of (start, end) offsets into ``text``; each span is trimmed of
        surrounding whitespace.
    """
    if not text or not text.strip():
        return []

    spans: list[tuple[int, int]] = []
    start = 0
    for match in _TERMINATOR_RE.finditer(text):
        idx = match.start()
        if idx < start or not is_sentence_boundary(text, idx):
            continue
        end = idx + 1
        while end < len(text) and text[end] in CLOSERS:
            end += 1
        span = _trim_span(text, start, end)
        if span:
            spans.append(span)
        start = end

    tail = _trim_span(text, start, len(text))
    if tail:
        spans.append(tail)
    return spans


def _trim_span(text: str, start: int, end: int) -> tuple[int, int] | None:
    while start < end and text[start].isspace():
        start += 1
    while end > start and text[end - 1].isspace():
        end -= 1
    if start >= end:
        return None
    return start, end


def split_sentences(text: str) -> list[str]:
    """
    Split text into sentences at proper sentence boundaries.

    Args:
        text: Input text to split into sentences.

    Returns:
        List of sentence strings. Empty/whitespace input returns empty list.
        Each sentence is stripped of leading/trailing whitespace.
    """
    if not text:
        return []
    return [text[start:end] for start, end in sentence_spans(text)]

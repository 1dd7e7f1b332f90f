"""Tests for chunking.paragraphs — segmentation and fragment merging."""

import pytest

from chunking.paragraphs import (
    fragment_reason,
    is_fragment,
    merge_fragments,
    paragraphs_from_texts,
    split_paragraphs,
)


# ---------------------------------------------------------------------------
# Segmentation
# ---------------------------------------------------------------------------

class TestSplitParagraphs:
    def test_blank_lines_separate_paragraphs(self):
        text = "First paragraph here.\nStill first.\n\nSecond one."
        paragraphs = split_paragraphs(text)
        assert [p.text for p in paragraphs] == ["First paragraph here. Still first.", "Second one."]
        assert [p.index for p in paragraphs] == [0, 1]

    def test_ranges_point_into_text(self):
        text = "First paragraph here.\nStill first.\n\n   \n\nSecond one."
        first, second = split_paragraphs(text)
        assert (first.start, first.end) == (0, len("First paragraph here.\nStill first."))
        assert second.start == text.index("Second")
        assert text[second.start:second.end] == "Second one."

    def test_empty(self):
        assert split_paragraphs("") == []
        assert split_paragraphs("  \n\n  ") == []

    def test_from_texts(self):
        paragraphs = paragraphs_from_texts(["One.", "", "Two."])
        assert [p.text for p in paragraphs] == ["One.", "Two."]


# ---------------------------------------------------------------------------
# Fragment detection
# ---------------------------------------------------------------------------

class TestFragmentReason:
    @pytest.mark.parametrize("text,reason", [
        ("considering the impact on staff.", "too_short"),
        ("and the claimant then returned to the clinic for a second visit.", "lowercase_start"),
        ("The review covered the reorganization plan and it involved", "missing_terminator"),
        ("The agency relied on the vocational expert testimony (Id.", "open_citation"),
        ("The court noted the earlier ruling [see the order.", "open_bracket"),
    ])
    def test_reasons(self, text, reason):
        assert fragment_reason(text) == reason

    def test_short_well_formed_sentence_is_not_a_fragment(self):
        assert fragment_reason("The motion is denied.") is None

    def test_numbered_item_without_terminator(self):
        assert not is_fragment("1. The parties agree to the following terms")

    def test_skip_rule(self):
        text = "and the claimant then returned to the clinic for a second visit."
        assert fragment_reason(text, skip=("lowercase_start",)) is None


# ---------------------------------------------------------------------------
# Merging
# ---------------------------------------------------------------------------

class TestMergeFragments:
    def test_fragment_absorbs_continuation(self):
        text = (
            "The review covered the reorganization plan and it involved\n\n"
            "considering the impact on staff.\n\n"
            "The board approved the plan after a long debate."
        )
        merged = merge_fragments(split_paragraphs(text))

        assert len(merged) == 2
        first, second = merged
        assert " ".join(first.text.split()) == (
            "The review covered the reorganization plan and it involved "
            "considering the impact on staff."
        )
        assert first.reason == "missing_terminator"
        assert (first.first_index, first.last_index) == (0, 1)
        assert first.merged
        assert second.reason is None
        assert not second.merged
        assert text[first.start:first.end].endswith("staff.")

    def test_trailing_fragment_is_kept(self):
        merged = merge_fragments(split_paragraphs("The hearing ended early.\n\nand then"))
        assert [m.text for m in merged] == ["The hearing ended early.", "and then"]
        assert merged[1].reason == "too_short"

    def test_every_paragraph_is_consumed(self):
        paragraphs = split_paragraphs("one\n\ntwo\n\nthree\n\nfour")
        merged = merge_fragments(paragraphs)
        assert merged[0].first_index == 0
        assert merged[-1].last_index == 3

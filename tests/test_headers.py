"""Tests for chunking.headers — header/footer stripping."""

import pytest

from chunking.headers import (
    collapse_blank_lines,
    header_rule_for,
    is_header_line,
    rejoin_hyphenation,
    remove_inline_noise,
    strip_headers,
)


class TestHeaderRules:
    @pytest.mark.parametrize("line,rule", [
        ("Case No. 2:21-cv-01234", "case_number"),
        ("Page 3 of 10", "page_marker"),
        ("- 12 -", "page_marker"),
        ("UNITED STATES DISTRICT COURT", "court_name"),
        ("Filed 03/15/2021", "filing_stamp"),
        ("BACKGROUND", "section_title"),
        ("II. DISCUSSION", "section_title"),
        ("PLAINTIFF'S MOTION TO DISMISS", "all_caps_short"),
    ])
    def test_header_lines(self, line, rule):
        assert header_rule_for(line) == rule

    @pytest.mark.parametrize("line", [
        "The court granted the motion.",
        "The claimant was seen on March 3, 2021.",
        "",
    ])
    def test_regular_lines(self, line):
        assert not is_header_line(line)

    def test_long_all_caps_line_is_kept(self):
        line = "THE " * 30
        assert header_rule_for(line) is None


class TestCleanupSteps:
    def test_rejoin_hyphenation(self):
        assert rejoin_hyphenation("the com-\nplaint") == "the complaint"

    def test_hyphen_before_capital_is_kept(self):
        assert rejoin_hyphenation("Smith-\nJones") == "Smith-\nJones"

    def test_inline_page_marker_removed(self):
        text = "The motion was denied. Page 2 of 9 The court then ruled."
        assert "Page 2 of 9" not in remove_inline_noise(text)

    def test_bare_page_number_between_sentences(self):
        text = "The motion was denied. 12 The court then ruled."
        assert remove_inline_noise(text) == "The motion was denied. The court then ruled."

    def test_collapse_blank_lines(self):
        assert collapse_blank_lines("a\n\n\n\nb") == "a\n\nb"


class TestStripHeaders:
    def test_full_cleanup(self):
        text = (
            "UNITED STATES DISTRICT COURT\n"
            "Page 1 of 3\n"
            "\n"
            "The plaintiff filed a com-\nplaint in state court.\n"
            "\n\n\n"
            "The defendant removed the case."
        )
        assert strip_headers(text) == (
            "The plaintiff filed a complaint in state court.\n\n"
            "The defendant removed the case."
        )

    def test_inline_spaces_collapsed(self):
        text = "The motion was denied. Page 2 of 9 The court then ruled."
        assert strip_headers(text) == "The motion was denied. The court then ruled."

    def test_windows_line_endings(self):
        assert strip_headers("First line.\r\nPage 2\r\nSecond line.") == "First line.\nSecond line."

    @pytest.mark.parametrize("text", ["", "   ", "Page 1 of 2\nBACKGROUND"])
    def test_empty_result(self, text):
        assert strip_headers(text) == ""

"""Tests for generation.keywords — LLM keyword extraction with fallback."""

import json
from unittest.mock import patch

import pytest

from generation.config import GenerationConfig
from generation.keywords import KeywordExtractor, flatten_terms, parse_keywords
from generation.models import Keyword, KeywordExtraction

QUESTION = "Why was the claim denied?"


@pytest.fixture
def extractor():
    return KeywordExtractor(GenerationConfig())


@pytest.fixture
def mock_chat():
    with patch("generation.keywords.chat") as chat:
        yield chat


class TestExtract:
    def test_model_keywords(self, extractor, mock_chat):
        mock_chat.return_value = json.dumps(
            {"keywords": [{"term": "denial", "variations": ["denied", "rejection"]}]}
        )

        extraction = extractor.extract(QUESTION)

        assert extraction.fallback is False
        assert extraction.error is None
        assert extraction.keywords == [Keyword(term="denial", variations=["denied", "rejection"])]
        assert mock_chat.call_args.kwargs["model"] == "llama3.1:latest"
        assert mock_chat.call_args.kwargs["response_schema"] is not None

    def test_terms_are_flattened(self, extractor, mock_chat):
        mock_chat.return_value = '{"keywords": [{"term": "Denial", "variations": ["denied", "denial"]}]}'
        assert extractor.extract_terms(QUESTION) == ["denial", "denied"]

    def test_fallback_when_model_unreachable(self, extractor, mock_chat):
        mock_chat.side_effect = ConnectionError("down")

        extraction = extractor.extract(QUESTION)

        assert extraction.fallback is True
        assert extraction.error == "down"
        assert [k.term for k in extraction.keywords] == ["claim", "denied"]

    def test_fallback_when_model_returns_nothing(self, extractor, mock_chat):
        mock_chat.return_value = "{}"

        extraction = extractor.extract(QUESTION)

        assert extraction.fallback is True
        assert extraction.error == "Model returned no keywords"

    def test_fallback_respects_limit(self, mock_chat):
        mock_chat.side_effect = RuntimeError("HTTP 500")
        extractor = KeywordExtractor(GenerationConfig(max_fallback_keywords=2))

        extraction = extractor.extract("claimant warehouse injury supervisor report")
        assert [k.term for k in extraction.keywords] == ["claimant", "warehouse"]

    @pytest.mark.parametrize("question", ["", "   "])
    def test_empty_question(self, extractor, mock_chat, question):
        with pytest.raises(ValueError):
            extractor.extract(question)
        mock_chat.assert_not_called()


class TestParseKeywords:
    def test_malformed_entries_are_skipped(self):
        payload = {
            "keywords": [
                "claim",
                {"variations": ["x"]},
                {"term": "  "},
                {"term": "injury", "variations": "wrong type"},
                {"term": " denial ", "variations": ["denied", 3, " "]},
            ]
        }
        assert parse_keywords(payload) == [
            Keyword(term="injury"),
            Keyword(term="denial", variations=["denied"]),
        ]

    def test_missing_list(self):
        assert parse_keywords({"keywords": "claim"}) == []
        assert parse_keywords({}) == []


def test_flatten_terms():
    extraction = KeywordExtraction(keywords=[
        Keyword(term="Claim", variations=["claims"]),
        Keyword(term="claim"),
    ])
    assert flatten_terms(extraction) == ["claim", "claims"]

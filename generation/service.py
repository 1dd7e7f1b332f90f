from __future__ import annotations

import logging
import re
from typing import Optional

from retrieval.config import RetrievalConfig
from retrieval.service import RetrievalService

from .config import GenerationConfig
from .context_builder import build_context
from .keywords import KeywordExtractor
from .models import AskResponse, SourceChunk
from .ollama_client import chat
from .prompts import ANSWER_SYSTEM_PROMPT, ANSWER_USER_TEMPLATE

logger = logging.getLogger(__name__)


class AnswerService:
    def __init__(
        self,
        config: GenerationConfig | None = None,
        retrieval: Optional[RetrievalService] = None,
        extractor: Optional[KeywordExtractor] = None,
    ):
        self.config = config or GenerationConfig.from_env()
        self.extractor = extractor or KeywordExtractor(self.config)
        self.retrieval = retrieval or RetrievalService(
            RetrievalConfig.from_env(),
            extract_terms=self.extractor.extract_terms,
        )

    def answer(self, system_prompt: str, context: str, question: str) -> str:
        if not system_prompt or not system_prompt.strip():
            raise ValueError("system_prompt must be a non-empty string")
        if not question or not question.strip():
            raise ValueError("question must be a non-empty string")

        content = chat(
            base_url=self.config.ollama_base_url,
            model=self.config.ollama_model,
            system_prompt=system_prompt,
            user_prompt=ANSWER_USER_TEMPLATE.format(context=context, question=question.strip()),
            temperature=self.config.temperature,
            output_tokens=self.config.output_tokens,
            context_window=self.config.context_window,
        )
        return _clean_answer(content)

    def ask(
        self,
        project: str,
        question: str,
        top_k: Optional[int] = None,
        mode: Optional[str] = None,
    ) -> AskResponse:
        """Retrieve context for ``question`` from ``project`` and answer it."""
        response = self.retrieval.retrieve(
            project,
            question,
            top_k=top_k or self.config.top_k,
            mode=mode or self.config.retrieval_mode,
        )
        context = build_context(
            question=question,
            results=response.results,
            max_context_tokens=self.config.max_context_tokens,
            system_prompt=ANSWER_SYSTEM_PROMPT,
            user_template=ANSWER_USER_TEMPLATE,
        )
        logger.info(
            f"Answering with {len(context.selected)} of {len(response.results)} chunks "
            f"({context.used_tokens} context tokens)"
        )

        answer = self.answer(ANSWER_SYSTEM_PROMPT, context.context_text, question)
        sources = [
            SourceChunk(
                number=number,
                document_id=result.document_id,
                chunk_id=result.chunk.id,
                file_name=result.source_file or result.chunk.metadata.source_file or "Unknown file",
                text=result.chunk.text,
                score=result.score,
                match_type=result.match_type,
                page_start=result.chunk.metadata.page_start,
                page_end=result.chunk.metadata.page_end,
            )
            for number, result in enumerate(context.selected, start=1)
        ]
        return AskResponse(
            question=question.strip(),
            answer=answer,
            sources_used=len(sources),
            sources=sources,
        )


def _clean_answer(answer: str) -> str:
    text = (answer or "").strip()
    # Reasoning models wrap their scratchpad in <think> tags.
    text = re.sub(r"<think>.*?</think>", "", text, flags=re.DOTALL).strip()
    text = re.sub(r"[ \t]+\n", "\n", text)
    return re.sub(r"\n{3,}", "\n\n", text)

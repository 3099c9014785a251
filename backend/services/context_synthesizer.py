"""Digest of per-keyword retrieval results."""
import json
import logging
from typing import List

from config import SYNTHESIS_MODEL
from models.retrieval import KeywordQueryResult
from services.errors import SynthesisFailure
from services.llm_client import LLMClient, LLMClientError
from services.prompts import CONTEXT_SYNTHESIS_PROMPT

logger = logging.getLogger(__name__)

STAGE = "synthesize_context"


class ContextSynthesizer:
    """Summarize keyword query results with one chat model call."""

    def __init__(self, llm_client: LLMClient, model: str = SYNTHESIS_MODEL):
        self.llm_client = llm_client
        self.model = model

    def synthesize(self, results: List[KeywordQueryResult]) -> str:
        """
        Return a structured digest of ``results``.

        All results go into a single prompt as JSON; nothing is chunked.

        Raises:
            SynthesisFailure: If the model call fails or returns no content
        """
        payload = json.dumps([result.to_dict() for result in results])
        try:
            response = self.llm_client.chat(
                messages=[
                    {"role": "system", "content": CONTEXT_SYNTHESIS_PROMPT},
                    {"role": "user", "content": payload},
                ],
                model=self.model
            )
        except LLMClientError as e:
            logger.error(f"Context synthesis failed: {e.error.message}", extra={"stage": STAGE})
            raise SynthesisFailure(STAGE, "Failed to analyze query results", e)

        logger.info(
            f"Synthesized digest of {len(results)} keyword results ({len(response.text)} chars)",
            extra={"stage": STAGE, "latency_ms": response.latency_ms}
        )
        return response.text

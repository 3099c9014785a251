"""Keyword extraction via the chat model."""
import logging
from typing import List

from config import KEYWORD_MODEL, MAX_KEYWORDS
from services.llm_client import LLMClient, LLMClientError
from services.errors import RetrievalFailure
from services.prompts import KEYWORD_EXTRACTION_PROMPT

logger = logging.getLogger(__name__)

STAGE = "extract_keywords"


class KeywordExtractor:
    """Ask the chat model for a short comma-separated keyword list."""

    def __init__(
        self,
        llm_client: LLMClient,
        model: str = KEYWORD_MODEL,
        max_keywords: int = MAX_KEYWORDS
    ):
        self.llm_client = llm_client
        self.model = model
        self.max_keywords = max_keywords

    def extract(self, text: str) -> List[str]:
        """
        Extract up to ``max_keywords`` keywords from ``text``, in model order.

        Raises:
            RetrievalFailure: If the model call fails or yields no keywords
        """
        try:
            response = self.llm_client.chat(
                messages=[
                    {"role": "system", "content": KEYWORD_EXTRACTION_PROMPT},
                    {"role": "user", "content": f"Transcript: {text}"},
                ],
                model=self.model
            )
        except LLMClientError as e:
            logger.error(f"Keyword extraction failed: {e.error.message}", extra={"stage": STAGE})
            raise RetrievalFailure(STAGE, "Keyword extraction failed", e)

        keywords = parse_keywords(response.text, self.max_keywords)
        if not keywords:
            raise RetrievalFailure(STAGE, f"No keywords in model output: {response.text!r}")

        logger.info(f"Extracted keywords: {keywords}", extra={"stage": STAGE})
        return keywords


def parse_keywords(raw: str, limit: int = MAX_KEYWORDS) -> List[str]:
    """Split a comma-separated model reply into at most ``limit`` keywords."""
    keywords = []
    for part in raw.strip().split(","):
        keyword = part.strip().strip("\"'").strip()
        if keyword:
            keywords.append(keyword)
    return keywords[:limit]

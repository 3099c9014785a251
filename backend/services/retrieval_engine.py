"""Retrieval engine for orchestrating query embedding and snippet retrieval."""
import asyncio
import logging
from typing import List, Optional

from fastapi.concurrency import run_in_threadpool

from config import (
    RETRIEVAL_STRATEGY,
    KEYWORD_SOURCE,
    KEYWORD_FAILURE_POLICY,
    PARALLEL_KEYWORD_QUERIES,
    TOP_K,
)
from models.request import VoiceRequest
from models.retrieval import KeywordQueryResult, RetrievedContext, RetrievedSnippet
from services.embedding_model import EmbeddingModel
from services.errors import RetrievalFailure
from services.keyword_extractor import KeywordExtractor
from services.vector_store import VectorStore

logger = logging.getLogger(__name__)

STAGE = "retrieve"

STRATEGIES = ("keyword", "direct")
KEYWORD_SOURCES = ("transcript", "full_conversation")
FAILURE_POLICIES = ("fail_fast", "skip")


class RetrievalEngine:
    """
    Fetch context for a transcript from the vector index.

    Two strategies are supported:

    - ``direct``: embed the transcript and query the index once.
    - ``keyword``: extract up to five keywords with the chat model, then embed
      and query the index once per keyword. Results stay grouped by keyword
      in extraction order.

    Blocking client calls run in the thread pool so that per-keyword queries
    can be fanned out with ``asyncio.gather``.
    """

    def __init__(
        self,
        vector_store: VectorStore,
        embedding_model: EmbeddingModel,
        keyword_extractor: Optional[KeywordExtractor] = None,
        strategy: str = RETRIEVAL_STRATEGY,
        keyword_source: str = KEYWORD_SOURCE,
        failure_policy: str = KEYWORD_FAILURE_POLICY,
        parallel: bool = PARALLEL_KEYWORD_QUERIES,
        top_k: int = TOP_K
    ):
        """
        Initialize the retrieval engine.

        Raises:
            ValueError: On an unknown strategy, keyword source or failure policy,
                or when the keyword strategy has no extractor
        """
        if strategy not in STRATEGIES:
            raise ValueError(f"Unknown retrieval strategy: {strategy}")
        if keyword_source not in KEYWORD_SOURCES:
            raise ValueError(f"Unknown keyword source: {keyword_source}")
        if failure_policy not in FAILURE_POLICIES:
            raise ValueError(f"Unknown keyword failure policy: {failure_policy}")
        if strategy == "keyword" and keyword_extractor is None:
            raise ValueError("Keyword strategy requires a KeywordExtractor")

        self.vector_store = vector_store
        self.embedding_model = embedding_model
        self.keyword_extractor = keyword_extractor
        self.strategy = strategy
        self.keyword_source = keyword_source
        self.failure_policy = failure_policy
        self.parallel = parallel
        self.top_k = top_k
        logger.info(
            f"Initialized RetrievalEngine (strategy={strategy}, source={keyword_source}, "
            f"policy={failure_policy}, parallel={parallel})"
        )

    async def retrieve(self, transcript: str, request: VoiceRequest) -> RetrievedContext:
        """
        Retrieve context for ``transcript`` with the configured strategy.

        Raises:
            RetrievalFailure: If any embedding, index or extraction call fails
                (under ``skip`` only when every keyword fails)
        """
        if self.strategy == "direct":
            snippets = await self._search(transcript)
            logger.info(f"Direct retrieval returned {len(snippets)} snippets", extra={"stage": STAGE})
            return RetrievedContext(strategy="direct", snippets=snippets)

        keyword_text = transcript
        if self.keyword_source == "full_conversation":
            keyword_text = request.conversation_text(transcript)

        keywords = await run_in_threadpool(self.keyword_extractor.extract, keyword_text)
        results = await self.query_keywords(keywords)
        snippets = [snippet for result in results for snippet in result.snippets]
        return RetrievedContext(
            strategy="keyword",
            keywords=keywords,
            results=results,
            snippets=snippets
        )

    async def query_keywords(self, keywords: List[str]) -> List[KeywordQueryResult]:
        """
        Embed and query each keyword. Output order follows ``keywords``.
        """
        if self.parallel and self.failure_policy == "fail_fast":
            tasks = [asyncio.ensure_future(self._query_keyword(keyword)) for keyword in keywords]
            try:
                outcomes = await asyncio.gather(*tasks)
            except BaseException:
                # First failure wins; stop waiting on the rest
                for task in tasks:
                    task.cancel()
                raise
        elif self.parallel:
            outcomes = await asyncio.gather(
                *(self._query_keyword(keyword) for keyword in keywords),
                return_exceptions=True
            )
        else:
            outcomes = []
            for keyword in keywords:
                try:
                    outcomes.append(await self._query_keyword(keyword))
                except RetrievalFailure as e:
                    if self.failure_policy == "fail_fast":
                        raise
                    outcomes.append(e)

        results: List[KeywordQueryResult] = []
        failures: List[RetrievalFailure] = []
        for keyword, outcome in zip(keywords, outcomes):
            if isinstance(outcome, RetrievalFailure):
                failures.append(outcome)
                if self.failure_policy == "fail_fast":
                    raise outcome
                logger.warning(f"Skipping keyword {keyword!r}: {outcome.message}", extra={"stage": STAGE})
                continue
            if isinstance(outcome, BaseException):
                raise outcome
            results.append(outcome)

        if keywords and not results:
            raise RetrievalFailure(STAGE, "Index query failed for every keyword", failures[-1] if failures else None)

        logger.info(
            f"Queried {len(results)}/{len(keywords)} keywords, "
            f"{sum(len(r.snippets) for r in results)} snippets",
            extra={"stage": STAGE}
        )
        return results

    async def _query_keyword(self, keyword: str) -> KeywordQueryResult:
        snippets = await self._search(keyword)
        return KeywordQueryResult(keyword=keyword, snippets=snippets)

    async def _search(self, text: str) -> List[RetrievedSnippet]:
        try:
            vector = await run_in_threadpool(self.embedding_model.embed_text, text)
            return await run_in_threadpool(self.vector_store.query, vector, self.top_k)
        except Exception as e:
            logger.error(f"Error querying index for {text!r}: {e}", extra={"stage": STAGE})
            raise RetrievalFailure(STAGE, f"Failed to query index for {text!r}", e)

"""Vector index queries against Supabase pgvector."""
import logging
from typing import List, Optional
from supabase import create_client, Client, ClientOptions
from models.retrieval import RetrievedSnippet
from config import SUPABASE_URL, SUPABASE_KEY, VECTOR_MATCH_FUNCTION, VECTOR_TIMEOUT

logger = logging.getLogger(__name__)


class VectorStore:
    """Nearest-neighbour search over the snippet index using Supabase pgvector."""

    def __init__(
        self,
        supabase_url: Optional[str] = SUPABASE_URL,
        supabase_key: Optional[str] = SUPABASE_KEY,
        match_function: str = VECTOR_MATCH_FUNCTION,
        timeout: float = VECTOR_TIMEOUT
    ):
        """
        Initialize the vector store with Supabase client.

        Args:
            supabase_url: Supabase project URL
            supabase_key: Supabase API key
            match_function: Name of the similarity-search RPC
            timeout: PostgREST request timeout in seconds

        Raises:
            ValueError: If Supabase credentials are missing
        """
        if not supabase_url or not supabase_key:
            raise ValueError("SUPABASE_URL and SUPABASE_KEY environment variables are required")

        self.match_function = match_function

        self.client: Client = create_client(
            supabase_url,
            supabase_key,
            options=ClientOptions(postgrest_client_timeout=timeout)
        )

        logger.info(f"Initialized VectorStore with match function: {match_function}")

    def query(self, vector: List[float], top_k: int = 5) -> List[RetrievedSnippet]:
        """
        Return the ``top_k`` snippets nearest to ``vector``.

        Only metadata comes back, never the stored vectors. Order is the
        index's order, most similar first.

        The RPC is expected to look like:

            CREATE OR REPLACE FUNCTION match_snippets(
              query_embedding vector(768),
              match_count int
            )
            RETURNS TABLE (id text, text text, similarity float)
            LANGUAGE sql STABLE AS $$
              SELECT snippets.id, snippets.text,
                     1 - (snippets.embedding <=> query_embedding) AS similarity
              FROM snippets
              ORDER BY snippets.embedding <=> query_embedding
              LIMIT match_count;
            $$;

        Raises:
            ValueError: If vector is empty or top_k is invalid
            RuntimeError: If the query fails or returns an unexpected shape
        """
        if not vector:
            raise ValueError("Query vector cannot be empty")

        if top_k <= 0:
            raise ValueError("top_k must be positive")

        try:
            response = self.client.rpc(
                self.match_function,
                {
                    "query_embedding": vector,
                    "match_count": top_k
                }
            ).execute()
        except Exception as e:
            error_msg = f"Failed to query vector index: {str(e)}"
            logger.error(error_msg)
            raise RuntimeError(error_msg) from e

        rows = response.data
        if not isinstance(rows, list):
            raise RuntimeError("Invalid index query response format")

        try:
            snippets = [
                RetrievedSnippet(
                    id=str(row["id"]),
                    score=float(row["similarity"]),
                    text=row.get("text") or ""
                )
                for row in rows
            ]
        except (KeyError, TypeError, ValueError) as e:
            raise RuntimeError(f"Invalid index row format: {e}") from e

        logger.debug(f"Vector index returned {len(snippets)} snippets")
        return snippets

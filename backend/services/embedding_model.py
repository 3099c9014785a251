"""Embedding model integration with Hugging Face Inference API."""
import time
import logging
from typing import List
import httpx
from config import HUGGINGFACE_API_KEY, EMBEDDING_MODEL, EMBEDDING_TIMEOUT

logger = logging.getLogger(__name__)


class EmbeddingModel:
    """Wrapper for Hugging Face Inference API embedding model."""

    def __init__(
        self,
        api_key: str = HUGGINGFACE_API_KEY,
        model_name: str = EMBEDDING_MODEL,
        timeout: float = EMBEDDING_TIMEOUT
    ):
        """
        Initialize the embedding model client.

        Args:
            api_key: Hugging Face API key
            model_name: Model identifier (default: sentence-transformers/all-mpnet-base-v2)
            timeout: Request timeout in seconds
        """
        if not api_key:
            raise ValueError("HUGGINGFACE_API_KEY environment variable is required")

        self.api_key = api_key
        self.model_name = model_name
        self.timeout = timeout
        self.api_url = f"https://api-inference.huggingface.co/models/{model_name}"

        logger.info(f"Initialized EmbeddingModel with model: {model_name}")

    def embed_text(self, text: str) -> List[float]:
        """
        Generate embedding for a single text string.

        Args:
            text: Text to embed

        Returns:
            Embedding vector as list of floats

        Raises:
            ValueError: If text is empty
            RuntimeError: If the API request fails
        """
        if not text or not text.strip():
            raise ValueError("Text cannot be empty")

        embeddings = self._embed([text])
        if not embeddings or not isinstance(embeddings[0], list) or not embeddings[0]:
            raise RuntimeError("Invalid embedding response format")
        return embeddings[0]

    def _embed(self, texts: List[str]) -> List[List[float]]:
        """
        Call the HF API once. There is no retry: a failed call fails the request.

        Raises:
            RuntimeError: On timeout, network error or non-200 status
        """
        headers = {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json"
        }

        payload = {
            "inputs": texts,
            "options": {
                "wait_for_model": True  # Wait for model to load if sleeping
            }
        }

        start_time = time.time()
        try:
            with httpx.Client(timeout=self.timeout) as client:
                response = client.post(
                    self.api_url,
                    headers=headers,
                    json=payload
                )
        except httpx.TimeoutException as e:
            error_msg = f"Embedding request timeout after {self.timeout}s"
            logger.error(error_msg)
            raise RuntimeError(error_msg) from e
        except httpx.RequestError as e:
            error_msg = f"Embedding network error: {str(e)}"
            logger.error(error_msg)
            raise RuntimeError(error_msg) from e

        elapsed = time.time() - start_time

        if response.status_code == 429:
            logger.error("Rate limit exceeded for Hugging Face API")
            raise RuntimeError("Rate limit exceeded. Please try again later.")

        if response.status_code == 401:
            logger.error("Authentication failed for Hugging Face API")
            raise RuntimeError("Invalid API key")

        if response.status_code != 200:
            error_msg = f"API request failed with status {response.status_code}: {response.text}"
            logger.error(error_msg)
            raise RuntimeError(error_msg)

        embeddings = response.json()
        if not isinstance(embeddings, list):
            raise RuntimeError("Invalid embedding response format")

        logger.debug(f"Generated embeddings for {len(texts)} texts in {elapsed:.2f}s")
        return embeddings

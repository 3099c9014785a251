"""LLM Client for Groq API integration."""
import time
from dataclasses import dataclass
from typing import List, Optional, Dict, Any, NoReturn
from groq import Groq
from groq import RateLimitError, AuthenticationError, APIError, APITimeoutError
import logging

from config import GROQ_API_KEY, CHAT_MODEL, LLM_TIMEOUT

logger = logging.getLogger(__name__)


@dataclass
class LLMResponse:
    """Response from LLM generation."""
    text: str
    tokens_input: int
    tokens_output: int
    latency_ms: int
    model_used: str


@dataclass
class LLMError:
    """Structured error response from LLM operations."""
    code: str
    message: str
    details: Dict[str, Any]


class LLMClientError(Exception):
    """Custom exception for LLM client errors with structured error information."""

    def __init__(self, error: LLMError):
        self.error = error
        super().__init__(error.message)


class LLMClient:
    """Client for interfacing with Groq API for chat completions."""

    def __init__(self, api_key: Optional[str] = None, timeout: float = LLM_TIMEOUT):
        """
        Initialize LLM client with Groq API key.

        Args:
            api_key: Groq API key (defaults to GROQ_API_KEY from environment)
            timeout: Per-request timeout in seconds
        """
        self.api_key = api_key or GROQ_API_KEY
        if not self.api_key:
            raise ValueError("GROQ_API_KEY must be provided or set in environment")

        self.timeout = timeout
        self.client = Groq(api_key=self.api_key, timeout=timeout, max_retries=0)
        logger.info("LLMClient initialized successfully")

    def chat(
        self,
        messages: List[Dict[str, str]],
        model: str = CHAT_MODEL,
        max_tokens: Optional[int] = None,
        temperature: Optional[float] = None
    ) -> LLMResponse:
        """
        Run one chat completion and return the first choice.

        Args:
            messages: Ordered chat messages (system, history, user)
            model: Groq model name
            max_tokens: Optional cap on generated tokens
            temperature: Optional sampling temperature

        Returns:
            LLMResponse with text, token counts, and latency

        Raises:
            LLMClientError: Structured error with code, message, and details.
                Empty or missing content is reported as EMPTY_RESPONSE.
        """
        start_time = time.time()

        kwargs: Dict[str, Any] = {"model": model, "messages": messages}
        if max_tokens is not None:
            kwargs["max_tokens"] = max_tokens
        if temperature is not None:
            kwargs["temperature"] = temperature

        try:
            logger.debug(f"Chat completion with model: {model}, messages={len(messages)}")
            response = self.client.chat.completions.create(**kwargs)
        except RateLimitError as e:
            self._raise(
                "RATE_LIMIT_ERROR",
                "Rate limit exceeded. Please try again in a few moments.",
                model, start_time, e
            )
        except AuthenticationError as e:
            self._raise(
                "AUTHENTICATION_ERROR",
                "Authentication failed. Please check your API key.",
                model, start_time, e
            )
        except APITimeoutError as e:
            self._raise("TIMEOUT_ERROR", "Request timed out.", model, start_time, e)
        except APIError as e:
            self._raise("API_ERROR", f"Groq API error: {str(e)}", model, start_time, e)
        except Exception as e:
            self._raise(
                "UNKNOWN_ERROR",
                f"Unexpected error during generation: {str(e)}",
                model, start_time, e
            )

        latency_ms = int((time.time() - start_time) * 1000)

        text = None
        if response is not None and response.choices:
            message = response.choices[0].message
            text = message.content if message is not None else None
        if not text or not text.strip():
            self._raise("EMPTY_RESPONSE", "No content in completion response.", model, start_time)

        usage = getattr(response, "usage", None)
        tokens_input = getattr(usage, "prompt_tokens", 0) or 0
        tokens_output = getattr(usage, "completion_tokens", 0) or 0

        logger.info(
            f"Generated response: model={model}, "
            f"input_tokens={tokens_input}, output_tokens={tokens_output}, "
            f"latency={latency_ms}ms",
            extra={"latency_ms": latency_ms}
        )

        return LLMResponse(
            text=text,
            tokens_input=tokens_input,
            tokens_output=tokens_output,
            latency_ms=latency_ms,
            model_used=model
        )

    @staticmethod
    def _raise(
        code: str,
        message: str,
        model: str,
        start_time: float,
        cause: Optional[Exception] = None
    ) -> NoReturn:
        latency_ms = int((time.time() - start_time) * 1000)
        details: Dict[str, Any] = {"model": model, "latency_ms": latency_ms}
        if cause is not None:
            details["original_error"] = str(cause)
            details["error_type"] = type(cause).__name__
        error = LLMError(code=code, message=message, details=details)
        logger.error(
            f"{code}: model={model}, latency={latency_ms}ms, error={cause or message}",
            exc_info=cause is not None,
            extra={"error_code": error.code, "error_details": error.details}
        )
        raise LLMClientError(error) from cause

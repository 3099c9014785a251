"""Unit tests for LLMClient."""
import sys
from pathlib import Path

# Add backend to path
sys.path.insert(0, str(Path(__file__).parent.parent / "backend"))

import pytest
from unittest.mock import Mock, patch
from services.llm_client import LLMClient, LLMResponse, LLMClientError
from groq import RateLimitError, AuthenticationError, APIError, APITimeoutError

MESSAGES = [
    {"role": "system", "content": "You are Asyra."},
    {"role": "user", "content": "What is Asycd?"},
]


def _completion(content, prompt_tokens=150, completion_tokens=12):
    response = Mock()
    response.choices = [Mock(message=Mock(content=content))]
    response.usage = Mock(prompt_tokens=prompt_tokens, completion_tokens=completion_tokens)
    return response


def _client_raising(mock_groq_class, error):
    mock_client = Mock()
    mock_client.chat.completions.create.side_effect = error
    mock_groq_class.return_value = mock_client
    return LLMClient(api_key="test_key")


class TestLLMClient:
    """Test suite for LLMClient class."""

    def test_initialization_with_api_key(self):
        """Test LLMClient initializes with provided API key."""
        client = LLMClient(api_key="test_key")
        assert client.api_key == "test_key"

    def test_initialization_without_api_key_raises_error(self):
        """Test LLMClient raises error when no API key provided."""
        with patch('services.llm_client.GROQ_API_KEY', None):
            with pytest.raises(ValueError, match="GROQ_API_KEY must be provided"):
                LLMClient()

    @patch('services.llm_client.Groq')
    def test_client_has_timeout_and_no_retries(self, mock_groq_class):
        """Every call gets an explicit timeout and the SDK does not retry."""
        LLMClient(api_key="test_key", timeout=7.5)
        mock_groq_class.assert_called_once_with(api_key="test_key", timeout=7.5, max_retries=0)

    @patch('services.llm_client.Groq')
    def test_chat_success(self, mock_groq_class):
        """Test successful chat completion."""
        mock_client = Mock()
        mock_client.chat.completions.create.return_value = _completion("Asycd is a platform.")
        mock_groq_class.return_value = mock_client

        client = LLMClient(api_key="test_key")
        response = client.chat(MESSAGES, model="llama3-8b-8192")

        assert isinstance(response, LLMResponse)
        assert response.text == "Asycd is a platform."
        assert response.tokens_input == 150
        assert response.tokens_output == 12
        assert response.model_used == "llama3-8b-8192"
        assert response.latency_ms >= 0
        mock_client.chat.completions.create.assert_called_once_with(
            model="llama3-8b-8192",
            messages=MESSAGES
        )

    @patch('services.llm_client.Groq')
    def test_chat_passes_optional_sampling_arguments(self, mock_groq_class):
        """max_tokens and temperature are only sent when given."""
        mock_client = Mock()
        mock_client.chat.completions.create.return_value = _completion("Answer")
        mock_groq_class.return_value = mock_client

        client = LLMClient(api_key="test_key")
        client.chat(MESSAGES, model="llama3-8b-8192", max_tokens=100, temperature=0.2)

        kwargs = mock_client.chat.completions.create.call_args.kwargs
        assert kwargs["max_tokens"] == 100
        assert kwargs["temperature"] == 0.2

    @patch('services.llm_client.Groq')
    def test_chat_empty_content_raises(self, mock_groq_class):
        """Missing or blank content is an EMPTY_RESPONSE error."""
        mock_client = Mock()
        mock_client.chat.completions.create.side_effect = [
            _completion(None),
            _completion("   "),
        ]
        mock_groq_class.return_value = mock_client

        client = LLMClient(api_key="test_key")

        for _ in range(2):
            with pytest.raises(LLMClientError) as exc_info:
                client.chat(MESSAGES)
            assert exc_info.value.error.code == "EMPTY_RESPONSE"

    @patch('services.llm_client.Groq')
    def test_chat_no_choices_raises(self, mock_groq_class):
        """A response without choices is an EMPTY_RESPONSE error."""
        response = Mock()
        response.choices = []
        mock_client = Mock()
        mock_client.chat.completions.create.return_value = response
        mock_groq_class.return_value = mock_client

        client = LLMClient(api_key="test_key")

        with pytest.raises(LLMClientError) as exc_info:
            client.chat(MESSAGES)
        assert exc_info.value.error.code == "EMPTY_RESPONSE"

    @patch('services.llm_client.Groq')
    def test_chat_handles_unknown_error(self, mock_groq_class):
        """Test that unexpected errors are raised with structured error."""
        client = _client_raising(mock_groq_class, Exception("API Error"))

        with pytest.raises(LLMClientError) as exc_info:
            client.chat(MESSAGES, model="llama3-8b-8192")

        error = exc_info.value.error
        assert error.code == "UNKNOWN_ERROR"
        assert "Unexpected error" in error.message
        assert error.details["model"] == "llama3-8b-8192"
        assert error.details["error_type"] == "Exception"

    @patch('services.llm_client.Groq')
    def test_chat_handles_rate_limit_error(self, mock_groq_class):
        """Test that rate limit errors are classified."""
        client = _client_raising(mock_groq_class, RateLimitError(
            message="Rate limit exceeded",
            response=Mock(status_code=429),
            body=None
        ))

        with pytest.raises(LLMClientError) as exc_info:
            client.chat(MESSAGES, model="llama3-8b-8192")

        error = exc_info.value.error
        assert error.code == "RATE_LIMIT_ERROR"
        assert "Rate limit exceeded" in error.message
        assert error.details["model"] == "llama3-8b-8192"

    @patch('services.llm_client.Groq')
    def test_chat_handles_authentication_error(self, mock_groq_class):
        """Test that authentication errors are classified."""
        client = _client_raising(mock_groq_class, AuthenticationError(
            message="Invalid API key",
            response=Mock(status_code=401),
            body=None
        ))

        with pytest.raises(LLMClientError) as exc_info:
            client.chat(MESSAGES)

        error = exc_info.value.error
        assert error.code == "AUTHENTICATION_ERROR"
        assert "Authentication failed" in error.message

    @patch('services.llm_client.Groq')
    def test_chat_handles_timeout_error(self, mock_groq_class):
        """Test that timeout errors are classified."""
        client = _client_raising(mock_groq_class, APITimeoutError(request=Mock()))

        with pytest.raises(LLMClientError) as exc_info:
            client.chat(MESSAGES)

        error = exc_info.value.error
        assert error.code == "TIMEOUT_ERROR"
        assert "timed out" in error.message

    @patch('services.llm_client.Groq')
    def test_chat_handles_generic_api_error(self, mock_groq_class):
        """Test that generic API errors are classified."""
        client = _client_raising(mock_groq_class, APIError(
            message="Service unavailable",
            request=Mock(),
            body=None
        ))

        with pytest.raises(LLMClientError) as exc_info:
            client.chat(MESSAGES)

        error = exc_info.value.error
        assert error.code == "API_ERROR"
        assert "Groq API error" in error.message

    @patch('services.llm_client.Groq')
    def test_error_includes_latency(self, mock_groq_class):
        """Test that errors include latency measurement."""
        client = _client_raising(mock_groq_class, Exception("boom"))

        with pytest.raises(LLMClientError) as exc_info:
            client.chat(MESSAGES)

        error = exc_info.value.error
        assert isinstance(error.details["latency_ms"], int)
        assert error.details["latency_ms"] >= 0

"""Unit tests for Responder and CallerContext."""
import sys
from datetime import datetime, timezone
from pathlib import Path

# Add backend to path
sys.path.insert(0, str(Path(__file__).parent.parent / "backend"))

import pytest
from unittest.mock import Mock
from models.conversation import ConversationTurn
from models.retrieval import RetrievedContext, RetrievedSnippet
from services.errors import CompletionFailure
from services.llm_client import LLMClientError, LLMError, LLMResponse
from services.prompts import CONTEXT_INSTRUCTION, load_persona_prompt
from services.responder import CallerContext, Responder, build_user_message

NOON_UTC = datetime(2024, 7, 1, 12, 0, 5, tzinfo=timezone.utc)


def _llm_returning(text):
    llm = Mock()
    llm.chat.return_value = LLMResponse(
        text=text, tokens_input=100, tokens_output=10, latency_ms=40, model_used="llama3-8b-8192"
    )
    return llm


class TestCallerContext:
    """Test suite for CallerContext."""

    def test_from_headers(self):
        caller = CallerContext.from_headers({
            "x-vercel-ip-city": "San%20Francisco",
            "x-vercel-ip-country-region": "CA",
            "x-vercel-ip-country": "US",
            "x-vercel-ip-timezone": "America/Los_Angeles",
        })

        assert caller.location() == "San Francisco, CA, US"
        assert caller.time(NOON_UTC) == "5:00:05 AM"

    def test_missing_headers_default_to_unknown(self):
        caller = CallerContext.from_headers({})

        assert caller.location() == "unknown, unknown, unknown"
        assert caller.time(NOON_UTC) == "12:00:05 PM"

    def test_invalid_timezone_falls_back_to_utc(self):
        caller = CallerContext.from_headers({"x-vercel-ip-timezone": "Mars/Olympus_Mons"})
        assert caller.time(NOON_UTC) == "12:00:05 PM"


class TestBuildUserMessage:
    """Test suite for build_user_message."""

    def test_direct_context_follows_transcript(self):
        context = RetrievedContext(
            strategy="direct",
            snippets=[RetrievedSnippet("1", 0.9, "Asycd is a platform for X.")]
        )

        message = build_user_message("What is Asycd?", context)

        assert message.startswith("Query: What is Asycd?")
        assert message.index("What is Asycd?") < message.index("Asycd is a platform for X.")
        assert message.endswith(CONTEXT_INSTRUCTION)

    def test_digest_is_labelled_analyzed_context(self):
        context = RetrievedContext(strategy="keyword", digest="Summary of findings")

        message = build_user_message("What is Asycd?", context)

        assert "Analyzed Context:\nSummary of findings" in message

    def test_no_context(self):
        assert build_user_message("Hello", RetrievedContext(strategy="direct")) == "Query: Hello"
        assert build_user_message("Hello", None) == "Query: Hello"


class TestResponder:
    """Test suite for Responder."""

    def test_messages_layout(self):
        """System persona, history verbatim, then the current turn."""
        responder = Responder(_llm_returning("reply"), persona_prompt="Persona at {location} / {time}")
        history = [
            ConversationTurn(role="user", content="Hi"),
            ConversationTurn(role="assistant", content="Hello!"),
        ]

        messages = responder.build_messages(
            "What is Asycd?", None, history, CallerContext(), now=NOON_UTC
        )

        assert messages[0] == {
            "role": "system",
            "content": "Persona at unknown, unknown, unknown / 12:00:05 PM",
        }
        assert messages[1:3] == [
            {"role": "user", "content": "Hi"},
            {"role": "assistant", "content": "Hello!"},
        ]
        assert messages[3] == {"role": "user", "content": "Query: What is Asycd?"}

    def test_persona_with_stray_braces_rejected_at_construction(self):
        """A template with literal braces fails at startup, not per request."""
        llm = _llm_returning("reply")

        with pytest.raises(ValueError, match="Invalid persona prompt template"):
            Responder(llm, persona_prompt='Reply as JSON {"a": 1}. Location {location} time {time}')
        with pytest.raises(ValueError, match="Invalid persona prompt template"):
            Responder(llm, persona_prompt="Unbalanced { at {location}")

        llm.chat.assert_not_called()

    def test_persona_with_escaped_braces(self):
        responder = Responder(
            _llm_returning("reply"),
            persona_prompt='Reply as JSON {{"a": 1}} from {location} at {time}'
        )

        system = responder.build_messages("q", None, [], CallerContext(), now=NOON_UTC)[0]["content"]

        assert system == 'Reply as JSON {"a": 1} from unknown, unknown, unknown at 12:00:05 PM'

    def test_persona_file_validated_on_load(self, tmp_path):
        path = tmp_path / "persona.txt"
        path.write_text("Persona {name} at {location}", encoding="utf-8")

        with pytest.raises(ValueError, match="Invalid persona prompt template"):
            load_persona_prompt(str(path))

    def test_default_persona_mentions_constraints(self):
        responder = Responder(_llm_returning("reply"))
        system = responder.build_messages("q", None, [], CallerContext(), now=NOON_UTC)[0]["content"]

        assert "Asyra" in system
        assert "Do not use markdown, emojis" in system
        assert "User location is unknown, unknown, unknown." in system

    def test_respond_returns_reply_text(self):
        llm = _llm_returning("Asycd is a platform for X.")
        responder = Responder(llm, model="llama3-8b-8192")

        reply = responder.respond("What is Asycd?", None, [], CallerContext())

        assert reply == "Asycd is a platform for X."
        assert llm.chat.call_count == 1
        assert llm.chat.call_args.kwargs["model"] == "llama3-8b-8192"

    def test_respond_failure(self):
        llm = Mock()
        llm.chat.side_effect = LLMClientError(LLMError(code="EMPTY_RESPONSE", message="empty", details={}))
        responder = Responder(llm)

        with pytest.raises(CompletionFailure) as exc_info:
            responder.respond("q", None, [], CallerContext())

        assert exc_info.value.public_message == "Completion failed"

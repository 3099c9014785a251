"""Reply generation: persona prompt, history, transcript and context."""
import logging
from dataclasses import dataclass
from datetime import datetime, timezone, tzinfo
from typing import Dict, List, Mapping, Optional
from urllib.parse import unquote
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from config import CHAT_MODEL
from models.conversation import ConversationTurn
from models.retrieval import RetrievedContext
from services.errors import CompletionFailure
from services.llm_client import LLMClient, LLMClientError
from services.prompts import CONTEXT_INSTRUCTION, check_persona_prompt, load_persona_prompt

logger = logging.getLogger(__name__)

STAGE = "complete"

UNKNOWN = "unknown"


@dataclass
class CallerContext:
    """Advisory caller location and local time injected into the persona prompt."""
    city: str = UNKNOWN
    region: str = UNKNOWN
    country: str = UNKNOWN
    tz: tzinfo = timezone.utc

    @classmethod
    def from_headers(cls, headers: Mapping[str, str]) -> "CallerContext":
        """Build from Vercel geo headers; anything missing stays ``unknown``/UTC."""
        def _get(name: str) -> str:
            value = headers.get(name)
            return unquote(value) if value else UNKNOWN

        tz: tzinfo = timezone.utc
        tz_name = headers.get("x-vercel-ip-timezone")
        if tz_name:
            try:
                tz = ZoneInfo(tz_name)
            except (ZoneInfoNotFoundError, ValueError):
                logger.debug(f"Unknown timezone header {tz_name!r}, using UTC")

        return cls(
            city=_get("x-vercel-ip-city"),
            region=_get("x-vercel-ip-country-region"),
            country=_get("x-vercel-ip-country"),
            tz=tz,
        )

    def location(self) -> str:
        return f"{self.city}, {self.region}, {self.country}"

    def time(self, now: Optional[datetime] = None) -> str:
        """Local time formatted like ``3:04:05 PM``."""
        local = (now or datetime.now(timezone.utc)).astimezone(self.tz)
        return f"{local.hour % 12 or 12}:{local:%M:%S %p}"


class Responder:
    """Build the chat request and return the model's reply text."""

    def __init__(
        self,
        llm_client: LLMClient,
        model: str = CHAT_MODEL,
        persona_prompt: Optional[str] = None
    ):
        self.llm_client = llm_client
        self.model = model
        self.persona_prompt = check_persona_prompt(persona_prompt or load_persona_prompt())

    def build_messages(
        self,
        transcript: str,
        context: Optional[RetrievedContext],
        history: List[ConversationTurn],
        caller: CallerContext,
        now: Optional[datetime] = None
    ) -> List[Dict[str, str]]:
        """
        Persona system message, then the history verbatim, then one user
        message with the transcript and the retrieved context.
        """
        system_prompt = self.persona_prompt.format(
            location=caller.location(),
            time=caller.time(now)
        )
        return [
            {"role": "system", "content": system_prompt},
            *(turn.to_message() for turn in history),
            {"role": "user", "content": build_user_message(transcript, context)},
        ]

    def respond(
        self,
        transcript: str,
        context: Optional[RetrievedContext],
        history: List[ConversationTurn],
        caller: CallerContext
    ) -> str:
        """
        Run one chat completion and return the first choice's text.

        Raises:
            CompletionFailure: On any model error or an empty reply
        """
        messages = self.build_messages(transcript, context, history, caller)
        try:
            response = self.llm_client.chat(messages=messages, model=self.model)
        except LLMClientError as e:
            logger.error(
                f"Completion failed: {e.error.message}",
                extra={"stage": STAGE, "error_code": e.error.code}
            )
            raise CompletionFailure(STAGE, "No valid completion response received", e)

        logger.info(
            f"Reply generated ({response.tokens_output} tokens)",
            extra={"stage": STAGE, "latency_ms": response.latency_ms}
        )
        return response.text


def build_user_message(transcript: str, context: Optional[RetrievedContext]) -> str:
    """Transcript first, then the context it should be answered from."""
    context_text = context.render() if context is not None else ""
    if not context_text:
        return f"Query: {transcript}"

    label = "Analyzed Context" if context.digest is not None else "Context"
    return f"Query: {transcript}\n\n{label}:\n{context_text}\n\n{CONTEXT_INSTRUCTION}"

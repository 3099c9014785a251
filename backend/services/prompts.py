"""Prompt templates for the chat model calls."""
import logging
from pathlib import Path
from typing import Optional

from config import PERSONA_PROMPT_FILE

logger = logging.getLogger(__name__)

KEYWORD_EXTRACTION_PROMPT = (
    "You are an AI model specialized in keyword extraction. Given a transcript, "
    "extract the maximum 5 most relevant and specific keywords from the transcript. "
    "No need to use double or single quotes. Return the keywords as a comma-separated string."
)

CONTEXT_SYNTHESIS_PROMPT = (
    "You are a specialized assistant tasked with breaking down query results into "
    "digestible insights. Analyze the following results and provide a structured summary."
)

CONTEXT_INSTRUCTION = (
    "Do not mention the retrieval of any context or any search you might conduct for extra info."
)

# Filled with {location} and {time}
DEFAULT_PERSONA_PROMPT = """You are Asyra, a friendly and helpful voice assistant for Asycd pronounced 'ACID'.
- Respond briefly and directly to the user's request.
- Use the provided information to create factually correct responses without mentioning that you received this information.
- You do not have access to up-to-date information, so you should not provide real-time data.
- Do not use markdown, emojis, or other formatting in your responses. Respond in a way easily spoken by text-to-speech software.
- User location is {location}.
- The current time is {time}.
- Your large language model is Llama 3, created by Meta, the 8 billion parameter version. It is hosted on Groq, an AI infrastructure company that builds fast inference technology.
- Your text-to-speech model is Sonic, created and hosted by Cartesia, a company that builds fast and realistic speech synthesis technology.
- Answer concisely and progressively to the user without mentioning that the response is based on any context."""


def load_persona_prompt(path: Optional[str] = PERSONA_PROMPT_FILE) -> str:
    """Persona template from ``path`` when set, otherwise the built-in one."""
    if not path:
        return DEFAULT_PERSONA_PROMPT
    template = check_persona_prompt(Path(path).read_text(encoding="utf-8"))
    logger.info(f"Loaded persona prompt from {path}")
    return template


def check_persona_prompt(template: str) -> str:
    """
    Return ``template`` if it formats with only ``location`` and ``time``.

    Literal braces must be doubled (``{{`` and ``}}``).

    Raises:
        ValueError: If the template has other fields or unbalanced braces
    """
    try:
        template.format(location="", time="")
    except (KeyError, IndexError, ValueError) as e:
        raise ValueError(
            f"Invalid persona prompt template ({type(e).__name__}: {e}); "
            "only {location} and {time} may appear in braces, escape literal braces as {{ }}"
        ) from e
    return template

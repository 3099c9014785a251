"""Multipart request decoding for the voice endpoints."""
import json
import logging
from typing import Any, List

from pydantic import ValidationError
from starlette.datastructures import FormData, UploadFile

from models.conversation import ConversationTurn
from models.request import AudioInput, VoiceRequest
from services.errors import InvalidRequest

logger = logging.getLogger(__name__)

STAGE = "decode"


async def decode_form(form: FormData) -> VoiceRequest:
    """
    Decode the ``input`` and ``message`` fields of a multipart form.

    ``input`` is either a text field or an uploaded audio file. ``message``
    is repeatable; each entry is a JSON ``{"role", "content"}`` object, or a
    JSON array of them (``[]`` sends an empty history).

    Raises:
        InvalidRequest: If a field is missing or does not validate
    """
    raw_input = form.get("input")
    if raw_input is None:
        raise InvalidRequest(STAGE, "Missing 'input' field")

    raw_messages = form.getlist("message")
    if not raw_messages:
        raise InvalidRequest(STAGE, "Missing 'message' field")

    messages: List[ConversationTurn] = []
    for entry in raw_messages:
        messages.extend(_parse_message_entry(entry))

    if isinstance(raw_input, UploadFile):
        data = await raw_input.read()
        request_input = AudioInput(
            data=data,
            filename=raw_input.filename or "audio.webm",
            content_type=raw_input.content_type,
        )
        logger.debug(f"Decoded audio input: {len(data)} bytes, {len(messages)} history turns")
    else:
        request_input = raw_input
        logger.debug(f"Decoded text input, {len(messages)} history turns")

    return VoiceRequest(input=request_input, messages=messages)


def _parse_message_entry(entry: Any) -> List[ConversationTurn]:
    if not isinstance(entry, str):
        raise InvalidRequest(STAGE, "'message' entries must be JSON text, not files")

    try:
        payload = json.loads(entry)
    except json.JSONDecodeError as e:
        raise InvalidRequest(STAGE, f"'message' entry is not valid JSON: {e}", e)

    items = payload if isinstance(payload, list) else [payload]
    try:
        return [ConversationTurn.model_validate(item) for item in items]
    except ValidationError as e:
        raise InvalidRequest(STAGE, f"Invalid conversation turn: {e}", e)

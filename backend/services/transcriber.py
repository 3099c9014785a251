"""Speech-to-text stage backed by Groq Whisper."""
import logging
import time
from typing import Optional, Union

from groq import Groq

from config import GROQ_API_KEY, TRANSCRIPTION_MODEL, LLM_TIMEOUT
from models.request import AudioInput
from services.errors import InvalidAudio

logger = logging.getLogger(__name__)

STAGE = "transcribe"


class Transcriber:
    """Turn request input into a transcript."""

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: str = TRANSCRIPTION_MODEL,
        timeout: float = LLM_TIMEOUT
    ):
        self.api_key = api_key or GROQ_API_KEY
        if not self.api_key:
            raise ValueError("GROQ_API_KEY must be provided or set in environment")

        self.model = model
        self.client = Groq(api_key=self.api_key, timeout=timeout, max_retries=0)
        logger.info(f"Transcriber initialized with model: {model}")

    def transcribe(self, request_input: Union[str, AudioInput]) -> str:
        """
        Return the transcript for typed or spoken input.

        Text is returned verbatim. Audio is sent once to the speech-to-text
        service and the result is trimmed.

        Raises:
            InvalidAudio: If the transcript is empty or transcription fails.
                An empty transcript is treated as silence, so it is not retried.
        """
        if isinstance(request_input, str):
            if not request_input.strip():
                raise InvalidAudio(STAGE, "Text input is empty")
            return request_input

        start_time = time.time()
        try:
            result = self.client.audio.transcriptions.create(
                file=(request_input.filename, request_input.data),
                model=self.model,
            )
        except Exception as e:
            logger.error(f"Transcription failed: {e}", exc_info=True, extra={"stage": STAGE})
            raise InvalidAudio(STAGE, f"Transcription failed: {e}", e)

        transcript = (getattr(result, "text", None) or "").strip()
        latency_ms = int((time.time() - start_time) * 1000)

        if not transcript:
            logger.warning(
                f"Empty transcript for {len(request_input.data)} bytes of audio",
                extra={"stage": STAGE, "latency_ms": latency_ms}
            )
            raise InvalidAudio(STAGE, "Empty transcript")

        logger.info(
            f"Transcribed {len(request_input.data)} bytes in {latency_ms}ms",
            extra={"stage": STAGE, "latency_ms": latency_ms}
        )
        return transcript

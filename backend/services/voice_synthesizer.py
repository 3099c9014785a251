"""Text-to-speech via the Cartesia bytes endpoint."""
import logging
import time
from typing import Optional

import httpx

from config import (
    CARTESIA_API_KEY,
    CARTESIA_URL,
    CARTESIA_VERSION,
    CARTESIA_MODEL_ID,
    CARTESIA_VOICE_ID,
    TTS_SAMPLE_RATE,
    TTS_TIMEOUT,
)
from services.errors import VoiceSynthesisFailure

logger = logging.getLogger(__name__)

STAGE = "synthesize_voice"

PCM_MEDIA_TYPE = "application/octet-stream"


class VoiceSynthesizer:
    """
    Request raw PCM speech (``pcm_f32le``, 24 kHz, mono) for a reply.

    The returned ``httpx.Response`` is still streaming; the caller forwards
    its body unchanged and must close it afterwards.
    """

    def __init__(
        self,
        api_key: Optional[str] = CARTESIA_API_KEY,
        url: str = CARTESIA_URL,
        model_id: str = CARTESIA_MODEL_ID,
        voice_id: str = CARTESIA_VOICE_ID,
        timeout: float = TTS_TIMEOUT
    ):
        if not api_key:
            raise ValueError("CARTESIA_API_KEY environment variable is required")

        self.api_key = api_key
        self.url = url
        self.model_id = model_id
        self.voice_id = voice_id
        self.client = httpx.Client(timeout=timeout)
        logger.info(f"Initialized VoiceSynthesizer with voice: {voice_id}")

    def build_payload(self, text: str) -> dict:
        return {
            "model_id": self.model_id,
            "transcript": text,
            "voice": {
                "mode": "id",
                "id": self.voice_id,
            },
            "output_format": {
                "container": "raw",
                "encoding": "pcm_f32le",
                "sample_rate": TTS_SAMPLE_RATE,
            },
        }

    def synthesize(self, text: str) -> httpx.Response:
        """
        Start synthesis of ``text`` and return the open streaming response.

        Raises:
            VoiceSynthesisFailure: On a transport error, timeout or non-2xx status
        """
        request = self.client.build_request(
            "POST",
            self.url,
            headers={
                "Cartesia-Version": CARTESIA_VERSION,
                "Content-Type": "application/json",
                "X-API-Key": self.api_key,
            },
            json=self.build_payload(text),
        )

        start_time = time.time()
        try:
            response = self.client.send(request, stream=True)
        except httpx.HTTPError as e:
            logger.error(f"Voice synthesis request failed: {e}", extra={"stage": STAGE})
            raise VoiceSynthesisFailure(STAGE, f"Voice synthesis request failed: {e}", e)

        latency_ms = int((time.time() - start_time) * 1000)

        if not response.is_success:
            try:
                body = response.read().decode("utf-8", errors="replace")
            except httpx.HTTPError as e:
                body = f"<unreadable body: {e}>"
            finally:
                response.close()
            logger.error(
                f"Voice synthesis failed: {body}",
                extra={"stage": STAGE, "status_code": response.status_code, "latency_ms": latency_ms}
            )
            raise VoiceSynthesisFailure(STAGE, f"Voice synthesis returned {response.status_code}")

        logger.info(
            f"Voice synthesis started in {latency_ms}ms",
            extra={"stage": STAGE, "latency_ms": latency_ms}
        )
        return response

    def close(self) -> None:
        self.client.close()

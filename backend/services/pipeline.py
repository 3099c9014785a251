"""Request pipeline: transcribe, retrieve, synthesize context, respond, speak."""
import logging
import time
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import Awaitable, Callable, Optional

import httpx
from fastapi.concurrency import run_in_threadpool

from models.request import VoiceRequest
from models.retrieval import RetrievedContext
from services.context_synthesizer import ContextSynthesizer
from services.errors import RequestCancelled, VoiceSynthesisFailure
from services.responder import CallerContext, Responder
from services.retrieval_engine import RetrievalEngine
from services.transcriber import Transcriber
from services.voice_synthesizer import VoiceSynthesizer

logger = logging.getLogger(__name__)

DisconnectCheck = Callable[[], Awaitable[bool]]


@dataclass
class PipelineResult:
    """Output of the text stages for one request."""
    transcript: str
    reply: str
    context: Optional[RetrievedContext] = None


class VoicePipeline:
    """
    Run one request through every stage in order.

    Each stage either returns its output or raises a ``PipelineError``;
    nothing is retried and no partial result is returned. The services held
    here keep no per-request state, so one pipeline serves all requests.
    """

    def __init__(
        self,
        transcriber: Transcriber,
        retrieval_engine: RetrievalEngine,
        responder: Responder,
        context_synthesizer: Optional[ContextSynthesizer] = None,
        voice_synthesizer: Optional[VoiceSynthesizer] = None
    ):
        self.transcriber = transcriber
        self.retrieval_engine = retrieval_engine
        self.responder = responder
        self.context_synthesizer = context_synthesizer
        self.voice_synthesizer = voice_synthesizer

    async def run(
        self,
        voice_request: VoiceRequest,
        caller: CallerContext,
        request_id: str = "local",
        is_disconnected: Optional[DisconnectCheck] = None
    ) -> PipelineResult:
        """
        Produce transcript and reply text for ``voice_request``.

        Raises:
            PipelineError: The classified failure of the first stage that failed
        """
        async with self._stage("transcribe", request_id, is_disconnected):
            transcript = await run_in_threadpool(self.transcriber.transcribe, voice_request.input)

        async with self._stage("retrieve", request_id, is_disconnected):
            context = await self.retrieval_engine.retrieve(transcript, voice_request)

        if context.strategy == "keyword" and self.context_synthesizer is not None:
            async with self._stage("synthesize_context", request_id, is_disconnected):
                context.digest = await run_in_threadpool(
                    self.context_synthesizer.synthesize, context.results
                )

        async with self._stage("complete", request_id, is_disconnected):
            reply = await run_in_threadpool(
                self.responder.respond,
                transcript,
                context,
                voice_request.messages,
                caller
            )

        return PipelineResult(transcript=transcript, reply=reply, context=context)

    async def speak(
        self,
        reply: str,
        request_id: str = "local",
        is_disconnected: Optional[DisconnectCheck] = None
    ) -> httpx.Response:
        """
        Start voice synthesis for ``reply``; returns the open PCM stream.

        Raises:
            VoiceSynthesisFailure: If synthesis is not configured or the speech
                API call fails
        """
        if self.voice_synthesizer is None:
            raise VoiceSynthesisFailure("synthesize_voice", "Voice synthesis is not configured")

        async with self._stage("synthesize_voice", request_id, is_disconnected):
            return await run_in_threadpool(self.voice_synthesizer.synthesize, reply)

    @asynccontextmanager
    async def _stage(
        self,
        name: str,
        request_id: str,
        is_disconnected: Optional[DisconnectCheck]
    ):
        if is_disconnected is not None and await is_disconnected():
            logger.info(f"Client disconnected before {name}", extra={"stage": name, "request_id": request_id})
            raise RequestCancelled(name, f"Client disconnected before {name}")

        start_time = time.time()
        yield
        latency_ms = int((time.time() - start_time) * 1000)
        logger.info(
            f"{name} {request_id}: {latency_ms}ms",
            extra={"stage": name, "request_id": request_id, "latency_ms": latency_ms}
        )

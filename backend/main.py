"""Main entry point for the Asyra voice assistant API."""
import logging
import time
from typing import Dict, Iterator, Optional
from urllib.parse import quote

import httpx
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import PlainTextResponse, Response, StreamingResponse

from config import PORT, LOG_LEVEL, LOG_FORMAT, CORS_ORIGINS, CARTESIA_API_KEY
from logger import setup_logging
from services.context_synthesizer import ContextSynthesizer
from services.embedding_model import EmbeddingModel
from services.errors import InvalidRequest, PipelineError, VoiceSynthesisFailure
from services.keyword_extractor import KeywordExtractor
from services.llm_client import LLMClient
from services.pipeline import PipelineResult, VoicePipeline
from services.request_decoder import decode_form
from services.responder import CallerContext, Responder
from services.retrieval_engine import RetrievalEngine
from services.transcriber import Transcriber
from services.vector_store import VectorStore
from services.voice_synthesizer import PCM_MEDIA_TYPE, VoiceSynthesizer

# Initialize logging
setup_logging(LOG_LEVEL, LOG_FORMAT)
logger = logging.getLogger(__name__)

# Initialize FastAPI app
app = FastAPI(
    title="Asyra Voice Assistant",
    description="Voice assistant endpoint for Asycd: transcribe, retrieve, reply and speak",
    version="1.0.0"
)

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["X-Transcript", "X-Response"],
)

# Initialized on startup
pipeline: VoicePipeline = None
voice_synthesizer: Optional[VoiceSynthesizer] = None


@app.on_event("startup")
async def startup_event():
    """Initialize services on startup."""
    global pipeline, voice_synthesizer

    logger.info("Initializing Asyra voice assistant services...")

    try:
        llm_client = LLMClient()
        transcriber = Transcriber()
        logger.info("Initialized Groq clients")

        embedding_model = EmbeddingModel()
        vector_store = VectorStore()
        retrieval_engine = RetrievalEngine(
            vector_store,
            embedding_model,
            keyword_extractor=KeywordExtractor(llm_client)
        )

        if CARTESIA_API_KEY:
            voice_synthesizer = VoiceSynthesizer()
        else:
            logger.warning("CARTESIA_API_KEY not set, /api/voice will fail")

        pipeline = VoicePipeline(
            transcriber=transcriber,
            retrieval_engine=retrieval_engine,
            responder=Responder(llm_client),
            context_synthesizer=ContextSynthesizer(llm_client),
            voice_synthesizer=voice_synthesizer
        )
        logger.info("All services initialized successfully")
    except Exception as e:
        logger.error(f"Failed to initialize services: {e}", exc_info=True)
        raise


@app.on_event("shutdown")
async def shutdown_event():
    if voice_synthesizer is not None:
        voice_synthesizer.close()


@app.get("/")
async def root():
    """Health check endpoint."""
    return {"status": "ok", "message": "Asyra Voice Assistant API"}


@app.get("/health")
async def health():
    """Detailed health check."""
    return {
        "status": "healthy",
        "service": "asyra-voice-assistant",
        "version": "1.0.0"
    }


@app.post("/api/chat")
async def chat_endpoint(request: Request) -> Response:
    """
    Text-output variant.

    Multipart fields: ``input`` (text or audio file) and repeated ``message``
    JSON turns. Responds with the reply as plain text; ``X-Transcript`` and
    ``X-Response`` carry percent-encoded copies of transcript and reply.
    """
    request_id = _request_id(request)
    try:
        result = await _run_pipeline(request, request_id)
        return PlainTextResponse(result.reply, headers=result_headers(result))
    except PipelineError as e:
        return error_response(e, request_id)
    except Exception as e:
        return _internal_error(e, request_id)


@app.post("/api/voice")
async def voice_endpoint(request: Request) -> Response:
    """
    Voice-output variant.

    Same input as ``/api/chat``; the body is raw PCM (``pcm_f32le``, 24 kHz,
    mono) streamed unmodified from the speech API.
    """
    request_id = _request_id(request)
    try:
        result = await _run_pipeline(request, request_id)
        headers = result_headers(result)
        try:
            voice = await pipeline.speak(result.reply, request_id, request.is_disconnected)
        except VoiceSynthesisFailure as e:
            return error_response(e, request_id, headers)

        return StreamingResponse(
            stream_voice(voice, request_id),
            media_type=PCM_MEDIA_TYPE,
            headers=headers
        )
    except PipelineError as e:
        return error_response(e, request_id)
    except Exception as e:
        return _internal_error(e, request_id)


async def _run_pipeline(request: Request, request_id: str) -> PipelineResult:
    try:
        form = await request.form()
    except Exception as e:
        raise InvalidRequest("decode", f"Unreadable form body: {e}", e)

    voice_request = await decode_form(form)
    caller = CallerContext.from_headers(request.headers)
    return await pipeline.run(voice_request, caller, request_id, request.is_disconnected)


def stream_voice(voice: httpx.Response, request_id: str) -> Iterator[bytes]:
    """Forward the upstream PCM body unchanged, closing it when done."""
    start_time = time.time()
    try:
        yield from voice.iter_bytes()
    finally:
        voice.close()
        latency_ms = int((time.time() - start_time) * 1000)
        logger.info(
            f"stream {request_id}: {latency_ms}ms",
            extra={"stage": "stream", "request_id": request_id, "latency_ms": latency_ms}
        )


def result_headers(result: PipelineResult) -> Dict[str, str]:
    """Percent-encoded transcript and reply; ``unquote`` restores them exactly."""
    return {
        "X-Transcript": quote(result.transcript, safe=""),
        "X-Response": quote(result.reply, safe=""),
    }


def error_response(
    error: PipelineError,
    request_id: str,
    headers: Optional[Dict[str, str]] = None
) -> Response:
    """Log a classified failure and map it to its fixed status and body."""
    log = logger.warning if error.status_code < 500 else logger.error
    log(
        f"{type(error).__name__} at {error.stage}: {error.message}"
        + (f" ({error.cause})" if error.cause is not None else ""),
        extra={"stage": error.stage, "request_id": request_id, "status_code": error.status_code}
    )
    return PlainTextResponse(error.public_message, status_code=error.status_code, headers=headers)


def _internal_error(error: Exception, request_id: str) -> Response:
    logger.error(
        f"Unexpected error processing request: {error}",
        exc_info=True,
        extra={"request_id": request_id}
    )
    return PlainTextResponse("Internal server error", status_code=500)


def _request_id(request: Request) -> str:
    return request.headers.get("x-vercel-id") or "local"


if __name__ == "__main__":
    import uvicorn
    logger.info(f"Starting Asyra Voice Assistant API on port {PORT}")
    uvicorn.run(app, host="0.0.0.0", port=PORT)

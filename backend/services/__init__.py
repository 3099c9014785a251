"""Services for the Asyra voice assistant API."""
from .errors import (
    PipelineError,
    InvalidRequest,
    InvalidAudio,
    RetrievalFailure,
    SynthesisFailure,
    CompletionFailure,
    VoiceSynthesisFailure,
    RequestCancelled,
)
from .embedding_model import EmbeddingModel
from .vector_store import VectorStore
from .llm_client import LLMClient, LLMResponse, LLMError, LLMClientError
from .transcriber import Transcriber
from .keyword_extractor import KeywordExtractor
from .retrieval_engine import RetrievalEngine
from .context_synthesizer import ContextSynthesizer
from .responder import Responder, CallerContext
from .voice_synthesizer import VoiceSynthesizer
from .pipeline import VoicePipeline, PipelineResult

__all__ = [
    'PipelineError', 'InvalidRequest', 'InvalidAudio', 'RetrievalFailure', 'SynthesisFailure',
    'CompletionFailure', 'VoiceSynthesisFailure', 'RequestCancelled',
    'EmbeddingModel', 'VectorStore', 'LLMClient', 'LLMResponse', 'LLMError', 'LLMClientError',
    'Transcriber', 'KeywordExtractor', 'RetrievalEngine', 'ContextSynthesizer', 'Responder',
    'CallerContext', 'VoiceSynthesizer', 'VoicePipeline', 'PipelineResult',
]

"""Data models for the Asyra voice assistant API."""
from .conversation import ConversationTurn
from .request import AudioInput, VoiceRequest
from .retrieval import RetrievedSnippet, KeywordQueryResult, RetrievedContext

__all__ = [
    "ConversationTurn",
    "AudioInput",
    "VoiceRequest",
    "RetrievedSnippet",
    "KeywordQueryResult",
    "RetrievedContext",
]

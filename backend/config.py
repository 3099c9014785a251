"""Configuration management for the Asyra voice assistant API."""
import os
import logging
from dotenv import load_dotenv

# Load environment variables
load_dotenv()


def _get_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


# API Keys
GROQ_API_KEY = os.getenv("GROQ_API_KEY")
HUGGINGFACE_API_KEY = os.getenv("HUGGINGFACE_API_KEY")
SUPABASE_URL = os.getenv("SUPABASE_URL")
SUPABASE_KEY = os.getenv("SUPABASE_KEY")
CARTESIA_API_KEY = os.getenv("CARTESIA_API_KEY")

# Server Configuration
PORT = int(os.getenv("PORT", "8000"))
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
LOG_FORMAT = os.getenv("LOG_FORMAT", "text")  # "text" or "json"

# CORS Configuration
CORS_ORIGINS = os.getenv(
    "CORS_ORIGINS",
    "http://localhost:3000,http://localhost:3001"
).split(",")

# Model Configuration
CHAT_MODEL = os.getenv("CHAT_MODEL", "llama3-8b-8192")
KEYWORD_MODEL = os.getenv("KEYWORD_MODEL", CHAT_MODEL)
SYNTHESIS_MODEL = os.getenv("SYNTHESIS_MODEL", CHAT_MODEL)
TRANSCRIPTION_MODEL = os.getenv("TRANSCRIPTION_MODEL", "whisper-large-v3")
EMBEDDING_MODEL = os.getenv("EMBEDDING_MODEL", "sentence-transformers/all-mpnet-base-v2")

# Text-to-speech Configuration (Cartesia)
CARTESIA_URL = os.getenv("CARTESIA_URL", "https://api.cartesia.ai/tts/bytes")
CARTESIA_VERSION = os.getenv("CARTESIA_VERSION", "2024-06-30")
CARTESIA_MODEL_ID = os.getenv("CARTESIA_MODEL_ID", "sonic-english")
CARTESIA_VOICE_ID = os.getenv("CARTESIA_VOICE_ID", "79a125e8-cd45-4c13-8a67-188112f4dd22")
TTS_SAMPLE_RATE = 24000  # Hz, pcm_f32le mono

# Retrieval Configuration
RETRIEVAL_STRATEGY = os.getenv("RETRIEVAL_STRATEGY", "keyword")  # "keyword" or "direct"
KEYWORD_SOURCE = os.getenv("KEYWORD_SOURCE", "transcript")  # or "full_conversation"
KEYWORD_FAILURE_POLICY = os.getenv("KEYWORD_FAILURE_POLICY", "fail_fast")  # or "skip"
PARALLEL_KEYWORD_QUERIES = _get_bool("PARALLEL_KEYWORD_QUERIES", True)
TOP_K = 5
MAX_KEYWORDS = 5
VECTOR_MATCH_FUNCTION = os.getenv("VECTOR_MATCH_FUNCTION", "match_snippets")

# Timeouts (seconds)
LLM_TIMEOUT = float(os.getenv("LLM_TIMEOUT", "30"))
EMBEDDING_TIMEOUT = float(os.getenv("EMBEDDING_TIMEOUT", "30"))
VECTOR_TIMEOUT = float(os.getenv("VECTOR_TIMEOUT", "10"))
TTS_TIMEOUT = float(os.getenv("TTS_TIMEOUT", "30"))

# Persona prompt override (path to a text template)
PERSONA_PROMPT_FILE = os.getenv("PERSONA_PROMPT_FILE")

# Logging Configuration
logging.basicConfig(
    level=getattr(logging, LOG_LEVEL),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)

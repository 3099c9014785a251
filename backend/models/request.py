"""Decoded request models."""
from dataclasses import dataclass, field
from typing import List, Optional, Union

from models.conversation import ConversationTurn


@dataclass
class AudioInput:
    """Uploaded audio, forwarded opaquely to speech-to-text."""
    data: bytes
    filename: str = "audio.webm"
    content_type: Optional[str] = None


@dataclass
class VoiceRequest:
    """Request payload after multipart decoding."""
    input: Union[str, AudioInput]
    messages: List[ConversationTurn] = field(default_factory=list)

    @property
    def is_audio(self) -> bool:
        return isinstance(self.input, AudioInput)

    def conversation_text(self, transcript: str) -> str:
        """User turns from the history followed by the current transcript, one per line."""
        user_turns = [turn.content for turn in self.messages if turn.role == "user"]
        return "\n".join(user_turns + [transcript])

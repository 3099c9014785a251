"""Conversation data models."""
from typing import Literal
from pydantic import BaseModel, ConfigDict, StrictStr


class ConversationTurn(BaseModel):
    """A single caller-supplied chat message."""
    model_config = ConfigDict(frozen=True)

    role: Literal["user", "assistant"]
    content: StrictStr

    def to_message(self) -> dict:
        """Chat-completion message dict for this turn."""
        return {"role": self.role, "content": self.content}

"""Classified pipeline failures and their HTTP mapping."""
from typing import Optional


class PipelineError(Exception):
    """
    Terminal failure of one pipeline stage.

    Every subclass maps to a fixed HTTP status and a short plain-text body.
    None of them are retried; the request handler turns them into a response.
    """

    status_code: int = 500
    public_message: str = "Internal server error"

    def __init__(self, stage: str, message: str, cause: Optional[BaseException] = None):
        self.stage = stage
        self.message = message
        self.cause = cause
        super().__init__(message)


class InvalidRequest(PipelineError):
    status_code = 400
    public_message = "Invalid request"


class InvalidAudio(PipelineError):
    status_code = 400
    public_message = "Invalid audio"


class RetrievalFailure(PipelineError):
    public_message = "Retrieval failed"


class SynthesisFailure(PipelineError):
    public_message = "Context synthesis failed"


class CompletionFailure(PipelineError):
    public_message = "Completion failed"


class VoiceSynthesisFailure(PipelineError):
    public_message = "Voice synthesis failed"


class RequestCancelled(PipelineError):
    status_code = 499
    public_message = "Client closed request"

"""Voice schemas."""

from pydantic import BaseModel, Field


class SpeechRequest(BaseModel):
    """Text to read aloud."""

    text: str = Field(..., min_length=1, max_length=4096)


class TranscriptionResponse(BaseModel):
    text: str
    duration: float = Field(0.0, description="Clip length in seconds, when the model reports it")

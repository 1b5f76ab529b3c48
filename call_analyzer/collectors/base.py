"""Collaborator contracts consumed by the analysis pipeline.

The pipeline is built against these interfaces only, so alternate call-data
sources or generation providers (and test fakes) plug in unchanged.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from call_analyzer.analysis.transcript import summarize_transcript
from call_analyzer.analysis.types import (
    CallDetails,
    TranscriptData,
    TranscriptEntry,
    TranscriptSummary,
)


class CallDataProvider(ABC):
    """Source of call metadata and transcripts (e.g. a call-recording platform client)."""

    @abstractmethod
    async def get_call_details(self, call_id: str) -> CallDetails:
        """Fetch metadata for one call. Raise on failure."""
        ...

    @abstractmethod
    async def get_call_transcript(self, call_id: str) -> TranscriptData:
        """Fetch the transcript for one call. Raise on failure."""
        ...

    def generate_transcript_summary(self, transcript: list[TranscriptEntry]) -> TranscriptSummary:
        return summarize_transcript(transcript)


class GenerationClient(ABC):
    """Text-generation model behind the analysis."""

    provider: str = ""

    @abstractmethod
    async def create_completion(
        self,
        *,
        model: str,
        max_tokens: int,
        system_prompt: str,
        user_prompt: str,
    ) -> str:
        """Send one prompt and return the raw response text.

        Raises:
            GenerationError: on transport or provider failure.
        """
        ...

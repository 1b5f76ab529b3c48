import copy
import json
from pathlib import Path

import pytest

from call_analyzer.analysis.resources import ResourceLoader, ResourceStore
from call_analyzer.analysis.types import (
    CallDetails,
    Participant,
    TranscriptData,
    TranscriptEntry,
)
from call_analyzer.collectors.base import CallDataProvider, GenerationClient

BUNDLED_FRAMEWORKS = Path(__file__).resolve().parent.parent / "call_analyzer" / "frameworks"


# ---------------------------------------------------------------------------
# Fakes
# ---------------------------------------------------------------------------


class FakeCallDataProvider(CallDataProvider):
    """Serves canned details/transcripts; ids in ``fail_ids`` raise on every fetch."""

    def __init__(self, details=None, transcripts=None, fail_ids=(), fail_transcript_ids=()):
        self.details = details or {}
        self.transcripts = transcripts or {}
        self.fail_ids = set(fail_ids)
        self.fail_transcript_ids = set(fail_transcript_ids)
        self.detail_requests: list[str] = []
        self.transcript_requests: list[str] = []

    async def get_call_details(self, call_id):
        self.detail_requests.append(call_id)
        if call_id in self.fail_ids:
            raise ConnectionError(f"provider unavailable for {call_id}")
        return self.details.get(call_id) or _make_details(call_id)

    async def get_call_transcript(self, call_id):
        self.transcript_requests.append(call_id)
        if call_id in self.fail_ids or call_id in self.fail_transcript_ids:
            raise ConnectionError(f"transcript unavailable for {call_id}")
        entries = self.transcripts.get(call_id, [])
        return TranscriptData(has_transcript=bool(entries), transcript=list(entries))


class ScriptedGenerationClient(GenerationClient):
    """Returns scripted responses keyed by (call_id, framework name).

    The key is matched against the prompt text, so tests script responses
    without depending on prompt layout. A value may be a string or an
    exception instance to raise.
    """

    provider = "scripted"

    def __init__(self, responses=None, default=None):
        self.responses = responses or {}
        self.default = default
        self.calls: list[dict] = []

    async def create_completion(self, *, model, max_tokens, system_prompt, user_prompt):
        self.calls.append(
            {
                "model": model,
                "max_tokens": max_tokens,
                "system_prompt": system_prompt,
                "user_prompt": user_prompt,
            }
        )
        for (title, framework_name), response in self.responses.items():
            if f"- Title: {title}\n" in user_prompt and f"the {framework_name} framework" in user_prompt:
                return _resolve(response)
        if self.default is None:
            raise AssertionError("No scripted response for prompt")
        return _resolve(self.default)


def _resolve(response):
    if isinstance(response, BaseException):
        raise response
    return response


class InMemoryResourceStore(ResourceStore):
    """Content store backed by a dict; counts every read."""

    def __init__(self, files=None):
        self.files = files or {}
        self.reads: list[tuple[str, str]] = []

    def read_text(self, framework_id, filename):
        self.reads.append((framework_id, filename))
        try:
            return self.files[(framework_id, filename)]
        except KeyError:
            raise FileNotFoundError(f"{framework_id}/{filename}") from None


# ---------------------------------------------------------------------------
# Builders
# ---------------------------------------------------------------------------


def _make_details(call_id, title=None, **kwargs):
    return CallDetails(
        call_id=call_id,
        title=title if title is not None else f"Discovery call {call_id}",
        date=kwargs.pop("date", "2026-03-02"),
        duration=kwargs.pop("duration", "32 minutes"),
        participants=kwargs.pop(
            "participants",
            [Participant(name="Sarah Chen", email="sarah@vendor.example"), Participant(name="John Park")],
        ),
        **kwargs,
    )


def _make_transcript(*lines):
    """Entries from ``(speaker, text, start_seconds)`` tuples."""
    return [
        TranscriptEntry(speaker=speaker, text=text, start_time=start * 1000, end_time=(start + 10) * 1000)
        for speaker, text, start in lines
    ]


def _make_citation(speaker="John", quote="We lose a week every time priorities change", timestamp="4:41"):
    return {"speaker": speaker, "timestamp": timestamp, "quote": quote, "context": "Quantified pain"}


def _make_payload(overall_score=7, sub_score=7, strengths=None, weaknesses=None, evidence=None, **extra):
    payload = {
        "overallScore": overall_score,
        "components": [
            {
                "name": "Current State / Desired State",
                "overallScore": sub_score,
                "subComponents": [
                    {
                        "name": "Current State Clarity",
                        "score": sub_score,
                        "evidence": [_make_citation()] if evidence is None else evidence,
                        "qualitativeAssessment": "Current state explored with specifics",
                        "improvementSuggestions": ["Quantify the re-planning cost"],
                    }
                ],
                "keyFindings": ["Buyer quantified the pain"],
            }
        ],
        "executiveSummary": {
            "strengths": strengths if strengths is not None else ["Strong discovery questions"],
            "weaknesses": weaknesses if weaknesses is not None else ["No success metrics agreed"],
            "recommendations": ["Agree on a baseline metric"],
        },
    }
    payload.update(extra)
    return payload


def _make_response(**kwargs):
    return json.dumps(_make_payload(**kwargs))


def _bundled_files(framework_ids):
    files = {}
    for framework_id in framework_ids:
        directory = BUNDLED_FRAMEWORKS / framework_id
        for path in directory.iterdir():
            files[(framework_id, path.name)] = path.read_text(encoding="utf-8")
    return files


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def resource_store():
    return InMemoryResourceStore(
        _bundled_files(["command_of_the_message", "great_demo", "demo2win", "miro_value_selling"])
    )


@pytest.fixture
def resource_loader(resource_store):
    return ResourceLoader(resource_store)


@pytest.fixture
def payload():
    return copy.deepcopy(_make_payload())

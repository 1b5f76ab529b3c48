"""Transcript rendering for citation-ready prompts.

Each entry becomes one line ``[m:ss] Speaker: "text"``. Speakers are reduced
to a readable first name; ids and placeholder labels become "Unknown Speaker"
so the generator never cites ``Speaker 1`` or raw provider ids.
"""

from __future__ import annotations

import re

from call_analyzer.analysis.types import TranscriptEntry, TranscriptSummary

UNKNOWN_SPEAKER = "Unknown Speaker"

MAX_KEY_TOPICS = 10

# "(VP Sales)", "(Acme)" and similar title suffixes
_PARENTHETICAL_RE = re.compile(r"\s*\([^)]*\)")

# Numeric ids, uuid/hex-like ids containing a digit, and placeholder labels
_ID_SHAPED_RE = re.compile(
    r"^(?:\d+|(?=[0-9a-f-]*\d)[0-9a-f-]{8,}|speaker[\s_-]*\d*|unknown(?:\s+speaker)?|n/?a)$",
    re.IGNORECASE,
)


def format_timestamp(ms: int | float | None) -> str:
    """Convert raw milliseconds to ``m:ss``."""
    total_seconds = max(int(ms or 0) // 1000, 0)
    minutes, seconds = divmod(total_seconds, 60)
    return f"{minutes}:{seconds:02d}"


def normalize_speaker(raw: str | None) -> str:
    """Reduce a provider speaker label to a first name, or "Unknown Speaker"."""
    if not raw:
        return UNKNOWN_SPEAKER

    name = _PARENTHETICAL_RE.sub("", str(raw)).strip()
    if not name or _ID_SHAPED_RE.match(name):
        return UNKNOWN_SPEAKER

    if "@" in name:
        # email address: use the local part
        name = re.split(r"[._+-]", name.split("@", 1)[0])[0].capitalize()

    first = name.split()[0].strip(",.;:")
    if not first or not first[0].isalpha():
        return UNKNOWN_SPEAKER
    return first


def render_transcript(entries: list[TranscriptEntry]) -> str:
    """Render entries as citation-ready ``[m:ss] Speaker: "text"`` lines."""
    if not entries:
        return "No transcript available for this call."

    lines = []
    for entry in entries:
        text = " ".join((entry.text or "").split())
        if not text:
            continue
        lines.append(f'[{format_timestamp(entry.start_time)}] {normalize_speaker(entry.speaker)}: "{text}"')
    return "\n".join(lines)


def summarize_transcript(entries: list[TranscriptEntry]) -> TranscriptSummary:
    """Speaker count, topics, duration and per-speaker talk breakdown."""
    if not entries:
        return TranscriptSummary()

    speakers: dict[str, dict[str, int]] = {}
    topics: list[str] = []

    for entry in entries:
        speaker = normalize_speaker(entry.speaker)
        stats = speakers.setdefault(speaker, {"segments": 0, "words": 0, "talk_time_seconds": 0})
        stats["segments"] += 1
        stats["words"] += len((entry.text or "").split())
        if entry.end_time is not None and entry.end_time > entry.start_time:
            stats["talk_time_seconds"] += round((entry.end_time - entry.start_time) / 1000)

        if entry.topic and entry.topic not in topics and len(topics) < MAX_KEY_TOPICS:
            topics.append(entry.topic)

    first_start = entries[0].start_time or 0
    last = entries[-1]
    last_end = last.end_time if last.end_time is not None else last.start_time
    total_duration = max(round(((last_end or 0) - first_start) / 1000), 0)

    return TranscriptSummary(
        total_speakers=len(speakers),
        key_topics=topics,
        total_duration=total_duration,
        speaker_summary=speakers,
    )

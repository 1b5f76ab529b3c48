"""Response Recovery Pipeline: raw generator text to a schema-valid analysis.

Tiers, each tried only when the previous one did not succeed:
  1. Extraction: greedy ``{...}`` span; escalates with the span, or with the
     whole text when no span exists
  2. Repair: json_repair, parse, schema-validate
  3. Truncation: largest balanced top-level object, parse, schema-validate
  4. Minimal fallback: canonical "Analysis Error" object (cannot fail)
  5. Absolute fallback: the raw text verbatim, reported as unrecoverable

Every tier returns ``Success | Escalate | Exhausted``; ``recover_analysis``
folds over the tiers until one succeeds.
"""

from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass
from typing import Any, Callable, Union

from json_repair import repair_json

from call_analyzer.analysis.schema import AnalysisPayload, validate_analysis
from call_analyzer.analysis.types import RecoveryTier
from call_analyzer.core.exceptions import SchemaViolation

logger = logging.getLogger(__name__)

_JSON_SPAN_RE = re.compile(r"\{[\s\S]*\}")

MINIMAL_FALLBACK_EVIDENCE = "JSON parsing failed - unable to extract analysis"


# ---------------------------------------------------------------------------
# Tier results
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Success:
    payload: AnalysisPayload
    tier: RecoveryTier
    text: str


@dataclass(frozen=True)
class Escalate:
    next_input: str
    reason: str


@dataclass(frozen=True)
class Exhausted:
    reason: str


TierResult = Union[Success, Escalate, Exhausted]


@dataclass
class RecoveryResult:
    """Outcome of the whole pipeline.

    ``payload`` is None only for the absolute fallback, where ``text`` is the
    unmodified generator output.
    """

    tier: RecoveryTier
    payload: AnalysisPayload | None
    text: str
    attempts: list[str]

    @property
    def recovered(self) -> bool:
        return self.tier in (RecoveryTier.REPAIR, RecoveryTier.TRUNCATE)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def extract_json_span(text: str) -> str | None:
    """Greedy span from the first ``{`` to the last ``}``."""
    match = _JSON_SPAN_RE.search(text)
    return match.group(0) if match else None


def find_balanced_objects(text: str) -> list[tuple[int, int]]:
    """Return ``(start, end)`` of every top-level balanced ``{...}`` span.

    Braces inside JSON string literals are ignored. ``end`` is exclusive.
    """
    spans: list[tuple[int, int]] = []
    depth = 0
    start = -1
    in_string = False
    escaped = False

    for i, char in enumerate(text):
        if in_string:
            if escaped:
                escaped = False
            elif char == "\\":
                escaped = True
            elif char == '"':
                in_string = False
            continue

        if char == '"' and depth > 0:
            in_string = True
        elif char == "{":
            if depth == 0:
                start = i
            depth += 1
        elif char == "}" and depth > 0:
            depth -= 1
            if depth == 0:
                spans.append((start, i + 1))

    return spans


def truncate_to_balanced_object(text: str) -> str | None:
    """Cut *text* down to its largest balanced top-level object.

    Ties go to the later object, so trailing junk after a complete object and
    a partial second object are both dropped.
    """
    spans = find_balanced_objects(text)
    if not spans:
        return None
    start, end = max(spans, key=lambda s: (s[1] - s[0], s[0]))
    return text[start:end]


def create_minimal_fallback() -> dict[str, Any]:
    """Canonical schema-valid result used when nothing could be recovered."""
    return {
        "overallScore": None,
        "components": [
            {
                "name": "Analysis Error",
                "overallScore": None,
                "subComponents": [
                    {
                        "name": "Processing Error",
                        "score": None,
                        "evidence": [MINIMAL_FALLBACK_EVIDENCE],
                        "qualitativeAssessment": "Analysis could not be completed due to JSON parsing error",
                        "improvementSuggestions": [
                            "Check system logs",
                            "Retry analysis",
                            "Contact support if issue persists",
                        ],
                    }
                ],
                "keyFindings": ["Analysis failed due to technical error"],
            }
        ],
        "executiveSummary": {
            "strengths": [],
            "weaknesses": ["Analysis could not be completed due to technical error"],
            "recommendations": [
                "Retry analysis",
                "Check system configuration",
                "Contact support if issue persists",
            ],
        },
    }


# ---------------------------------------------------------------------------
# Tiers
# ---------------------------------------------------------------------------


def extraction_tier(text: str) -> TierResult:
    span = extract_json_span(text)
    if span is None:
        return Escalate(text, "no JSON object found in response")
    return Escalate(span, "extracted JSON span")


def repair_tier(text: str) -> TierResult:
    try:
        repaired = repair_json(text)
        parsed = json.loads(repaired)
    except (ValueError, TypeError, RecursionError) as e:
        return Escalate(text, f"repair failed: {e}")

    try:
        payload = validate_analysis(parsed)
    except SchemaViolation as e:
        return Escalate(text, f"repaired JSON failed validation: {e.message}")
    return Success(payload, RecoveryTier.REPAIR, repaired)


def truncation_tier(text: str) -> TierResult:
    truncated = truncate_to_balanced_object(text)
    if truncated is None:
        return Exhausted("no balanced object to truncate to")

    try:
        parsed = json.loads(truncated)
    except json.JSONDecodeError as e:
        return Exhausted(f"truncated JSON does not parse: {e}")

    try:
        payload = validate_analysis(parsed)
    except SchemaViolation as e:
        return Exhausted(f"truncated JSON failed validation: {e.message}")
    return Success(payload, RecoveryTier.TRUNCATE, truncated)


RECOVERY_TIERS: tuple[Callable[[str], TierResult], ...] = (
    extraction_tier,
    repair_tier,
    truncation_tier,
)


# ---------------------------------------------------------------------------
# Pipeline
# ---------------------------------------------------------------------------


def recover_analysis(
    raw_text: str,
    tiers: tuple[Callable[[str], TierResult], ...] = RECOVERY_TIERS,
    fallback_factory: Callable[[], dict[str, Any]] = create_minimal_fallback,
) -> RecoveryResult:
    """Fold *raw_text* through the recovery tiers until one succeeds.

    Always returns; the absolute-fallback tier (``payload is None``) is the
    only unrecoverable outcome and signals a defect in the fallback itself.
    """
    attempts: list[str] = []
    current = raw_text or ""

    for tier in tiers:
        result = tier(current)
        if isinstance(result, Success):
            logger.debug("Recovered analysis via %s tier (%d chars)", result.tier.value, len(result.text))
            attempts.append(f"{tier.__name__}: success")
            return RecoveryResult(tier=result.tier, payload=result.payload, text=result.text, attempts=attempts)
        if isinstance(result, Exhausted):
            attempts.append(f"{tier.__name__}: {result.reason}")
            logger.warning("Recovery exhausted at %s: %s", tier.__name__, result.reason)
            break
        attempts.append(f"{tier.__name__}: {result.reason}")
        logger.debug("Escalating from %s: %s", tier.__name__, result.reason)
        current = result.next_input

    try:
        fallback = fallback_factory()
        payload = validate_analysis(fallback)
    except (SchemaViolation, ValueError, TypeError, KeyError) as e:
        logger.error("Minimal fallback failed (%s); returning raw response text", e)
        attempts.append(f"minimal_fallback: {e}")
        return RecoveryResult(
            tier=RecoveryTier.ABSOLUTE_FALLBACK,
            payload=None,
            text=raw_text,
            attempts=attempts,
        )

    logger.warning("Using minimal fallback analysis after %d failed tier(s)", len(attempts))
    attempts.append("minimal_fallback: success")
    return RecoveryResult(
        tier=RecoveryTier.MINIMAL_FALLBACK,
        payload=payload,
        text=json.dumps(fallback),
        attempts=attempts,
    )

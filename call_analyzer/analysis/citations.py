"""Citation Validator: advisory checks over a validated analysis.

Walks every citation (sub-component evidence and follow-up planning
evidence) and reports:
  - missing speaker or quote
  - timestamps not in ``m:ss`` / ``mm:ss`` or ``m:ss - m:ss`` form
  - placeholder speakers such as "Speaker 1" or "Speaker(abc123)"

The report is attached to the CallAnalysis for diagnostics; it never
blocks an otherwise-valid result.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Iterator

from call_analyzer.analysis.schema import AnalysisPayload, CustomerCitation
from call_analyzer.analysis.types import CitationReport, CitationViolation

logger = logging.getLogger(__name__)

# m:ss is canonical; a m:ss - m:ss range is accepted for multi-line passages
_TIMESTAMP_RE = re.compile(r"^\d+:\d{2}$")
_TIMESTAMP_RANGE_RE = re.compile(r"^\d+:\d{2}\s*-\s*\d+:\d{2}$")

_GENERIC_SPEAKER_RE = re.compile(r"^speaker\s*(?:\d+|\(.*\))$", re.IGNORECASE)

MISSING_EVIDENCE_NOTE = (
    "[Analysis Note]: Transcript available but no specific evidence cited. "
    "Review transcript manually for this component."
)


def is_valid_timestamp(timestamp: str) -> bool:
    value = timestamp.strip()
    return bool(_TIMESTAMP_RE.match(value) or _TIMESTAMP_RANGE_RE.match(value))


def is_generic_speaker(speaker: str) -> bool:
    """True for placeholder labels like "Speaker 1" or "Speaker(abc123)"."""
    return bool(_GENERIC_SPEAKER_RE.match(speaker.strip()))


def check_citation(citation: CustomerCitation, location: str) -> list[CitationViolation]:
    violations = []
    speaker = (citation.speaker or "").strip()
    if not speaker:
        violations.append(CitationViolation(location, "Missing speaker"))
    elif is_generic_speaker(speaker):
        violations.append(
            CitationViolation(
                location,
                f"Speaker '{speaker}' should be a readable name or 'Unknown Speaker'",
            )
        )

    if not (citation.quote or "").strip():
        violations.append(CitationViolation(location, "Missing quote"))

    if citation.timestamp and not is_valid_timestamp(citation.timestamp):
        violations.append(
            CitationViolation(
                location,
                f"Invalid timestamp '{citation.timestamp}' (expected m:ss or m:ss - m:ss)",
            )
        )
    return violations


def _follow_up_citations(payload: AnalysisPayload) -> Iterator[tuple[str, CustomerCitation]]:
    plan = payload.follow_up_call_planning
    if plan is None:
        return

    base = "followUpCallPlanning"
    for i, area in enumerate(plan.deeper_inquiry_areas):
        for j, c in enumerate(area.supporting_evidence):
            yield f"{base}.deeperInquiryAreas[{i}].supportingEvidence[{j}]", c
    for i, question in enumerate(plan.unanswered_questions):
        if question.original_customer_response is not None:
            yield f"{base}.unansweredQuestions[{i}].originalCustomerResponse", question.original_customer_response
    for i, gap in enumerate(plan.discovery_gaps):
        for j, c in enumerate(gap.indicator_quotes):
            yield f"{base}.discoveryGaps[{i}].indicatorQuotes[{j}]", c
    for j, c in enumerate(plan.stakeholder_mapping.evidence_of_need):
        yield f"{base}.stakeholderMapping.evidenceOfNeed[{j}]", c
    for i, objective in enumerate(plan.next_call_objectives):
        for j, c in enumerate(objective.customer_evidence):
            yield f"{base}.nextCallObjectives[{i}].customerEvidence[{j}]", c
    for i, indicator in enumerate(plan.opportunity_indicators):
        if indicator.customer_quote is not None:
            yield f"{base}.opportunityIndicators[{i}].customerQuote", indicator.customer_quote


def validate_citations(payload: AnalysisPayload) -> CitationReport:
    """Build the compliance report for every citation in *payload*."""
    report = CitationReport()
    legacy_count = 0

    for ci, component in enumerate(payload.components):
        for si, sub in enumerate(component.sub_components):
            for ei, item in enumerate(sub.evidence):
                if isinstance(item, str):
                    legacy_count += 1
                    continue
                report.total_citations += 1
                location = f"components[{ci}].subComponents[{si}].evidence[{ei}] ({component.name} / {sub.name})"
                report.violations.extend(check_citation(item, location))

    for location, citation in _follow_up_citations(payload):
        report.total_citations += 1
        report.violations.extend(check_citation(citation, location))

    if report.total_citations == 0:
        report.warnings.append("No citations found in analysis")
    if legacy_count:
        report.warnings.append(
            f"{legacy_count} evidence entries use plain strings instead of structured citations (legacy format)"
        )

    report.compliant = not report.violations
    logger.info(
        "Citation validation: %d citations, %d violations, %d warnings",
        report.total_citations,
        len(report.violations),
        len(report.warnings),
    )
    return report


def annotate_missing_evidence(payload: AnalysisPayload, has_transcript: bool) -> int:
    """Add a review note to sub-components without evidence when a transcript existed.

    Returns the number of sub-components annotated.
    """
    if not has_transcript:
        return 0

    annotated = 0
    for component in payload.components:
        for sub in component.sub_components:
            if not sub.evidence:
                sub.evidence = [MISSING_EVIDENCE_NOTE]
                annotated += 1
    if annotated:
        logger.debug("Annotated %d sub-components with a missing-evidence note", annotated)
    return annotated

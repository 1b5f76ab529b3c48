"""Fallback records: error/incomplete analyses, default plans and the fallback aggregate.

None of these carry a score. A failed pair is still reported with the
framework's component skeleton so the caller sees exactly what was not
analyzed and why.
"""

from __future__ import annotations

from call_analyzer.analysis.schema import (
    CallObjective,
    ComponentAnalysis,
    DiscoveryGap,
    ExecutiveSummary,
    FollowUpCallPlanning,
    StakeholderMapping,
    SubComponentScore,
)
from call_analyzer.analysis.types import (
    AggregateAnalysis,
    AggregateInsights,
    AnalysisStatus,
    CallAnalysis,
    CallDetails,
    FrameworkDefinition,
    Recommendations,
)
from call_analyzer.core.config import settings


def call_url_for(details: CallDetails | None, call_id: str) -> str:
    if details is not None and details.call_url:
        return details.call_url
    return settings.call_url_template.format(call_id=call_id)


def create_default_follow_up_plan(details: CallDetails | None, framework_name: str) -> FollowUpCallPlanning:
    """Plan attached when the generator omitted followUpCallPlanning."""
    return FollowUpCallPlanning(
        overall_strategy=f"Follow-up call needed to complete {framework_name} framework analysis",
        stakeholder_mapping=StakeholderMapping(
            current_participants=details.participant_names if details else [],
        ),
        next_call_objectives=[
            CallObjective(
                objective="Complete framework analysis with more detailed discovery",
                rationale="Initial call analysis indicates additional discovery needed",
            )
        ],
    )


def create_error_follow_up_plan(details: CallDetails | None) -> FollowUpCallPlanning:
    return FollowUpCallPlanning(
        overall_strategy="Error recovery and manual analysis required",
        discovery_gaps=[
            DiscoveryGap(
                gap_area="Complete Analysis",
                impact="Cannot provide recommendations due to system error",
                discovery_approach="Fix system error and retry analysis",
            )
        ],
        stakeholder_mapping=StakeholderMapping(
            current_participants=details.participant_names if details else [],
        ),
        next_call_objectives=[
            CallObjective(
                objective="Resolve analysis error and retry",
                rationale="System error prevented analysis completion",
            )
        ],
    )


def _skeleton_components(
    framework: FrameworkDefinition,
    evidence: str,
    assessment: str,
    suggestion: str,
) -> list[ComponentAnalysis]:
    components = []
    for comp in framework.components:
        if not comp.sub_components:
            continue
        components.append(
            ComponentAnalysis(
                name=comp.name,
                overall_score=None,
                sub_components=[
                    SubComponentScore(
                        name=sub.name,
                        score=None,
                        evidence=[evidence],
                        qualitative_assessment=assessment,
                        improvement_suggestions=[suggestion, "Manual review recommended"],
                    )
                    for sub in comp.sub_components
                ],
                key_findings=[f"Analysis could not be completed: {assessment}"],
            )
        )
    return components


def build_error_analysis(
    call_id: str,
    framework: FrameworkDefinition,
    reason: str,
    details: CallDetails | None = None,
    has_transcript: bool = False,
    status: AnalysisStatus = AnalysisStatus.ERROR,
) -> CallAnalysis:
    """Unscored record for a (call, framework) pair that could not be analyzed.

    Messages are graded by what data was available: nothing, metadata only,
    or metadata plus transcript.
    """
    has_metadata = details is not None and bool(details.title)

    if has_metadata and not has_transcript:
        evidence = f"Analysis failed: {reason}. No transcript available."
        assessment = f"Call metadata available but no transcript. Error: {reason}"
        suggestion = "Obtain transcript for more detailed analysis"
    elif has_metadata:
        evidence = f"Analysis failed despite having transcript data: {reason}"
        assessment = f"Technical error occurred during analysis despite having transcript data. Error: {reason}"
        suggestion = "Check system configuration and retry analysis"
    else:
        evidence = f"Analysis failed: {reason}"
        assessment = f"Unable to analyze due to error: {reason}"
        suggestion = "Fix the error and re-run analysis"

    weaknesses = [f"Analysis failed: {reason}"]
    if has_metadata and not has_transcript:
        weaknesses.append("No transcript available")

    return CallAnalysis(
        call_id=call_id,
        call_title=(details.title if details else "") or "Unknown Call",
        call_url=call_url_for(details, call_id),
        call_date=(details.date if details else "") or "Unknown",
        participants=details.participant_names if details else ["Unknown"],
        duration=(details.duration if details else "") or "Unknown",
        framework=framework.name,
        framework_id=framework.framework_id,
        analysis_status=status,
        overall_score=None,
        error_reason=reason,
        components=_skeleton_components(framework, evidence, assessment, suggestion),
        executive_summary=ExecutiveSummary(
            strengths=["Call metadata available"] if has_metadata else [],
            weaknesses=weaknesses,
            recommendations=["Fix the error and re-run analysis", "Check system configuration"],
        ),
        follow_up_call_planning=create_error_follow_up_plan(details),
    )


def build_fallback_aggregate(call_ids: list[str] | None, frameworks: list[str] | None, reason: str) -> AggregateAnalysis:
    """Well-typed report returned when no analysis could be produced at all."""
    return AggregateAnalysis(
        total_calls=len(call_ids or []),
        scored_calls=0,
        frameworks=list(frameworks or []),
        overall_score=None,
        call_analyses=[],
        aggregate_insights=AggregateInsights(
            strengths_across_calls=[],
            weaknesses_across_calls=[f"Analysis failed: {reason}"],
            improvement_opportunities=["Fix analysis error and retry"],
        ),
        recommendations=Recommendations(
            immediate=["Check system logs for analysis errors"],
            strategic=["Review framework analysis configuration"],
            coaching=["Manual call review recommended until issue resolved"],
        ),
    )

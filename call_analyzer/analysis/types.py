"""Core types and DTOs for the call-framework analysis pipeline."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from call_analyzer.analysis.schema import (
    ComponentAnalysis,
    ExecutiveSummary,
    FollowUpCallPlanning,
)


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------


class AnalysisStatus(str, Enum):
    """Why a CallAnalysis does or does not carry a score."""

    COMPLETED = "completed"
    ERROR = "error"  # the system malfunctioned
    INCOMPLETE = "incomplete"  # we could analyze but the input was insufficient


class PromptMode(str, Enum):
    """Prompt construction mode, picked by whether guidance resources loaded."""

    ENHANCED = "enhanced"
    BASIC = "basic"


class RecoveryTier(str, Enum):
    """The recovery tier that produced the final result."""

    REPAIR = "repair"
    TRUNCATE = "truncate"
    MINIMAL_FALLBACK = "minimal_fallback"
    ABSOLUTE_FALLBACK = "absolute_fallback"


# ---------------------------------------------------------------------------
# Call data (input from the CallDataProvider)
# ---------------------------------------------------------------------------


@dataclass
class Participant:
    name: str = ""
    email: str = ""

    @property
    def display_name(self) -> str:
        return self.name or self.email or "Unknown"


@dataclass
class CallDetails:
    """Metadata for one recorded call."""

    call_id: str
    title: str = ""
    date: str = ""
    duration: str = ""
    participants: list[Participant] = field(default_factory=list)
    call_url: str = ""

    @property
    def participant_names(self) -> list[str]:
        if not self.participants:
            return ["Unknown"]
        return [p.display_name for p in self.participants]


@dataclass
class TranscriptEntry:
    """One monologue segment of a call transcript. Times are in milliseconds."""

    speaker: str
    text: str
    start_time: int = 0
    end_time: int | None = None
    topic: str = ""


@dataclass
class TranscriptData:
    has_transcript: bool = False
    transcript: list[TranscriptEntry] = field(default_factory=list)


@dataclass
class TranscriptSummary:
    total_speakers: int = 0
    key_topics: list[str] = field(default_factory=list)
    total_duration: int = 0  # seconds
    speaker_summary: dict[str, dict[str, Any]] = field(default_factory=dict)


@dataclass
class CallContext:
    """Call metadata merged with its transcript; the input for every framework of one call."""

    details: CallDetails
    transcript: list[TranscriptEntry] = field(default_factory=list)
    transcript_summary: TranscriptSummary | None = None
    sequence_position: int = 0  # 1-based position in the requested call list
    sequence_total: int = 0

    @property
    def call_id(self) -> str:
        return self.details.call_id

    @property
    def has_transcript(self) -> bool:
        return len(self.transcript) > 0


# ---------------------------------------------------------------------------
# Framework definitions and resources
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ScoringCriteria:
    excellent: str = ""  # 9-10
    good: str = ""  # 7-8
    fair: str = ""  # 5-6
    poor: str = ""  # 1-4


@dataclass(frozen=True)
class SubComponentDefinition:
    name: str
    description: str = ""
    keywords: tuple[str, ...] = ()
    scoring_criteria: ScoringCriteria = field(default_factory=ScoringCriteria)
    coaching_tips: tuple[str, ...] = ()
    weight: float | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> SubComponentDefinition:
        criteria = data.get("scoringCriteria") or {}
        return cls(
            name=data["name"],
            description=data.get("description", ""),
            keywords=tuple(data.get("keywords", [])),
            scoring_criteria=ScoringCriteria(
                excellent=criteria.get("excellent", ""),
                good=criteria.get("good", ""),
                fair=criteria.get("fair", ""),
                poor=criteria.get("poor", ""),
            ),
            coaching_tips=tuple(data.get("coachingTips", [])),
            weight=data.get("weight"),
        )

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {
            "name": self.name,
            "description": self.description,
            "keywords": list(self.keywords),
            "scoringCriteria": {
                "excellent": self.scoring_criteria.excellent,
                "good": self.scoring_criteria.good,
                "fair": self.scoring_criteria.fair,
                "poor": self.scoring_criteria.poor,
            },
        }
        if self.coaching_tips:
            out["coachingTips"] = list(self.coaching_tips)
        if self.weight is not None:
            out["weight"] = self.weight
        return out


@dataclass(frozen=True)
class ComponentDefinition:
    name: str
    description: str = ""
    sub_components: tuple[SubComponentDefinition, ...] = ()
    weight: float | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ComponentDefinition:
        return cls(
            name=data["name"],
            description=data.get("description", ""),
            sub_components=tuple(SubComponentDefinition.from_dict(s) for s in data.get("subComponents", [])),
            weight=data.get("weight"),
        )

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {
            "name": self.name,
            "description": self.description,
            "subComponents": [s.to_dict() for s in self.sub_components],
        }
        if self.weight is not None:
            out["weight"] = self.weight
        return out


@dataclass(frozen=True)
class FrameworkDefinition:
    """A named methodology rubric. Immutable once parsed."""

    framework_id: str
    name: str
    description: str = ""
    components: tuple[ComponentDefinition, ...] = ()
    display_name: str = ""
    version: str = ""
    category: str = ""
    is_fallback: bool = False

    @classmethod
    def from_dict(cls, framework_id: str, data: dict[str, Any]) -> FrameworkDefinition:
        """Parse a definition.json document.

        Raises:
            KeyError / TypeError: when required fields are missing or mistyped.
        """
        return cls(
            framework_id=framework_id,
            name=data["name"],
            description=data.get("description", ""),
            components=tuple(ComponentDefinition.from_dict(c) for c in data.get("components", [])),
            display_name=data.get("displayName", ""),
            version=data.get("version", ""),
            category=data.get("category", ""),
        )

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {
            "name": self.name,
            "description": self.description,
            "components": [c.to_dict() for c in self.components],
        }
        if self.display_name:
            out["displayName"] = self.display_name
        if self.version:
            out["version"] = self.version
        if self.category:
            out["category"] = self.category
        return out


@dataclass(frozen=True)
class FrameworkResources:
    """Supplementary content for one framework. Every text field may be absent."""

    framework_id: str
    framework: FrameworkDefinition
    methodology: str | None = None
    definition: dict[str, Any] | None = None  # raw definition.json
    scoring_examples: str | None = None
    call_examples: str | None = None
    planning_checklist: str | None = None

    @property
    def has_guidance(self) -> bool:
        """True when any methodology guidance text loaded (selects the enhanced prompt)."""
        return bool(self.methodology or self.scoring_examples or self.call_examples)


# ---------------------------------------------------------------------------
# Analysis results
# ---------------------------------------------------------------------------


@dataclass
class CitationViolation:
    location: str
    error: str

    def to_dict(self) -> dict[str, str]:
        return {"location": self.location, "error": self.error}


@dataclass
class CitationReport:
    """Advisory result of the citation validator; never blocks an analysis."""

    total_citations: int = 0
    compliant: bool = True
    violations: list[CitationViolation] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "totalCitations": self.total_citations,
            "compliant": self.compliant,
            "violations": [v.to_dict() for v in self.violations],
            "warnings": list(self.warnings),
        }


@dataclass
class CallAnalysis:
    """One evaluation of one call against one framework.

    ``overall_score`` is set if and only if ``analysis_status`` is COMPLETED.
    """

    call_id: str
    call_title: str
    call_url: str
    call_date: str
    participants: list[str]
    duration: str
    framework: str  # framework display name
    framework_id: str
    analysis_status: AnalysisStatus
    overall_score: float | None = None
    error_reason: str | None = None
    components: list[ComponentAnalysis] = field(default_factory=list)
    executive_summary: ExecutiveSummary = field(
        default_factory=lambda: ExecutiveSummary(strengths=[], weaknesses=[], recommendations=[])
    )
    follow_up_call_planning: FollowUpCallPlanning = field(default_factory=FollowUpCallPlanning)
    citation_report: CitationReport | None = None

    def __post_init__(self) -> None:
        scored = self.overall_score is not None
        if scored != (self.analysis_status == AnalysisStatus.COMPLETED):
            raise ValueError(
                f"overall_score must be set iff status is completed "
                f"(status={self.analysis_status.value}, score={self.overall_score})"
            )

    @property
    def is_scored(self) -> bool:
        return self.overall_score is not None

    def to_dict(self) -> dict[str, Any]:
        """Serialize to the JSON-compatible camelCase shape returned to API callers."""
        out: dict[str, Any] = {
            "callId": self.call_id,
            "callTitle": self.call_title,
            "callUrl": self.call_url,
            "callDate": self.call_date,
            "participants": list(self.participants),
            "duration": self.duration,
            "framework": self.framework,
            "overallScore": self.overall_score,
            "analysisStatus": self.analysis_status.value,
            "components": [c.model_dump(by_alias=True, exclude_none=True) for c in self.components],
            "executiveSummary": self.executive_summary.model_dump(by_alias=True),
            "followUpCallPlanning": self.follow_up_call_planning.model_dump(by_alias=True, exclude_none=True),
        }
        if self.error_reason:
            out["errorReason"] = self.error_reason
        if self.citation_report is not None:
            out["citationReport"] = self.citation_report.to_dict()
        return out


@dataclass
class FrameworkComparison:
    framework_scores: dict[str, float] = field(default_factory=dict)
    framework_variance: dict[str, float] = field(default_factory=dict)
    insights: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "frameworkScores": dict(self.framework_scores),
            "frameworkVariance": dict(self.framework_variance),
            "insights": list(self.insights),
        }


@dataclass
class AggregateInsights:
    strengths_across_calls: list[str] = field(default_factory=list)
    weaknesses_across_calls: list[str] = field(default_factory=list)
    improvement_opportunities: list[str] = field(default_factory=list)
    framework_comparison: FrameworkComparison | None = None

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {
            "strengthsAcrossCalls": list(self.strengths_across_calls),
            "weaknessesAcrossCalls": list(self.weaknesses_across_calls),
            "improvementOpportunities": list(self.improvement_opportunities),
        }
        if self.framework_comparison is not None:
            out["frameworkComparison"] = self.framework_comparison.to_dict()
        return out


@dataclass
class Recommendations:
    immediate: list[str] = field(default_factory=list)
    strategic: list[str] = field(default_factory=list)
    coaching: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, list[str]]:
        return {
            "immediate": list(self.immediate),
            "strategic": list(self.strategic),
            "coaching": list(self.coaching),
        }


@dataclass
class AggregateAnalysis:
    """Cross-call report: one CallAnalysis per requested (call, framework) pair."""

    total_calls: int
    scored_calls: int
    frameworks: list[str]
    overall_score: float | None
    call_analyses: list[CallAnalysis] = field(default_factory=list)
    aggregate_insights: AggregateInsights = field(default_factory=AggregateInsights)
    recommendations: Recommendations = field(default_factory=Recommendations)

    def to_dict(self) -> dict[str, Any]:
        return {
            "totalCalls": self.total_calls,
            "scoredCalls": self.scored_calls,
            "frameworks": list(self.frameworks),
            "overallScore": self.overall_score,
            "callAnalyses": [a.to_dict() for a in self.call_analyses],
            "aggregateInsights": self.aggregate_insights.to_dict(),
            "recommendations": self.recommendations.to_dict(),
        }

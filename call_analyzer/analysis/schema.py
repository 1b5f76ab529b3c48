"""Schema Validator: the structural contract of a model-produced analysis.

The generator is asked for camelCase JSON; these pydantic models accept that
shape directly (aliases) and are also used as the in-memory component types
of a CallAnalysis.

Contract:
  - overallScore absent/null or within [1, 10] (zero is not a sentinel)
  - every component has a name, a nullable score and at least one sub-component
  - every sub-component has a name, a nullable score in [1, 10], an evidence
    list (citation objects, or plain strings in the legacy format), a
    qualitative assessment and improvement suggestions
  - executiveSummary has strengths, weaknesses and recommendations lists
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic import ValidationError as PydanticValidationError
from pydantic.alias_generators import to_camel

from call_analyzer.core.exceptions import SchemaViolation

logger = logging.getLogger(__name__)


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")


def _require_number(value: Any) -> Any:
    # lax mode would turn true into 1.0 and "7" into 7.0
    if value is None or (isinstance(value, (int, float)) and not isinstance(value, bool)):
        return value
    raise ValueError(f"score must be a number or null, got {type(value).__name__}")


# ---------------------------------------------------------------------------
# Citations
# ---------------------------------------------------------------------------


class CustomerCitation(_CamelModel):
    """A structured reference into the transcript."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
        coerce_numbers_to_str=True,
    )

    speaker: str
    quote: str
    timestamp: str | None = None
    context: str | None = None


Evidence = CustomerCitation | str


# ---------------------------------------------------------------------------
# Scored rubric
# ---------------------------------------------------------------------------


class SubComponentScore(_CamelModel):
    name: str
    score: float | None = Field(default=None, ge=1, le=10)
    evidence: list[Evidence]
    qualitative_assessment: str
    improvement_suggestions: list[str]

    _score_is_number = field_validator("score", mode="before")(_require_number)


class ComponentAnalysis(_CamelModel):
    name: str
    overall_score: float | None = Field(default=None, ge=1, le=10)
    sub_components: list[SubComponentScore] = Field(min_length=1)
    key_findings: list[str] = Field(default_factory=list)

    _score_is_number = field_validator("overall_score", mode="before")(_require_number)


class ExecutiveSummary(_CamelModel):
    strengths: list[str]
    weaknesses: list[str]
    recommendations: list[str]


# ---------------------------------------------------------------------------
# Follow-up call planning (lenient: every field has a default)
# ---------------------------------------------------------------------------


class Priority(str, Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class InquiryArea(_CamelModel):
    area: str = ""
    reason: str = ""
    suggested_questions: list[str] = Field(default_factory=list)
    priority: Priority = Priority.MEDIUM
    supporting_evidence: list[CustomerCitation] = Field(default_factory=list)

    @field_validator("priority", mode="before")
    @classmethod
    def _normalize_priority(cls, value: Any) -> Any:
        # models write "High", "HIGH" or invent levels
        if isinstance(value, str) and value.strip().lower() in {p.value for p in Priority}:
            return value.strip().lower()
        return Priority.MEDIUM


class UnansweredQuestion(_CamelModel):
    question: str = ""
    context: str = ""
    framework_component: str = ""
    original_customer_response: CustomerCitation | None = None
    why_incomplete: str = ""


class DiscoveryGap(_CamelModel):
    gap_area: str = ""
    impact: str = ""
    discovery_approach: str = ""
    indicator_quotes: list[CustomerCitation] = Field(default_factory=list)


class StakeholderMapping(_CamelModel):
    current_participants: list[str] = Field(default_factory=list)
    missing_stakeholders: list[str] = Field(default_factory=list)
    recommended_invites: list[str] = Field(default_factory=list)
    evidence_of_need: list[CustomerCitation] = Field(default_factory=list)


class CallObjective(_CamelModel):
    objective: str = ""
    rationale: str = ""
    customer_evidence: list[CustomerCitation] = Field(default_factory=list)


class OpportunityIndicator(_CamelModel):
    indicator: str = ""
    customer_quote: CustomerCitation | None = None
    follow_up_action: str = ""
    potential_value: str = ""


class FollowUpCallPlanning(_CamelModel):
    overall_strategy: str = ""
    deeper_inquiry_areas: list[InquiryArea] = Field(default_factory=list)
    unanswered_questions: list[UnansweredQuestion] = Field(default_factory=list)
    discovery_gaps: list[DiscoveryGap] = Field(default_factory=list)
    stakeholder_mapping: StakeholderMapping = Field(default_factory=StakeholderMapping)
    next_call_objectives: list[CallObjective] = Field(default_factory=list)
    opportunity_indicators: list[OpportunityIndicator] = Field(default_factory=list)


# ---------------------------------------------------------------------------
# Top-level result
# ---------------------------------------------------------------------------


class AnalysisPayload(_CamelModel):
    """The validated JSON object produced by the generator for one call."""

    overall_score: float | None = Field(default=None, ge=1, le=10)
    components: list[ComponentAnalysis]
    executive_summary: ExecutiveSummary
    follow_up_call_planning: FollowUpCallPlanning | None = None

    _score_is_number = field_validator("overall_score", mode="before")(_require_number)


def _describe(errors: list[dict[str, Any]], limit: int = 3) -> str:
    parts = []
    for err in errors[:limit]:
        loc = ".".join(str(p) for p in err.get("loc", ())) or "<root>"
        parts.append(f"{loc}: {err.get('msg', 'invalid')}")
    more = f" (+{len(errors) - limit} more)" if len(errors) > limit else ""
    return "; ".join(parts) + more


def validate_analysis(data: Any) -> AnalysisPayload:
    """Validate parsed JSON against the analysis contract.

    Raises:
        SchemaViolation: if *data* is not an object or violates the contract.
    """
    if not isinstance(data, dict):
        raise SchemaViolation(f"Analysis result must be a JSON object, got {type(data).__name__}")

    try:
        return AnalysisPayload.model_validate(data)
    except PydanticValidationError as exc:
        errors = exc.errors(include_url=False)
        message = f"{len(errors)} schema error(s): {_describe(errors)}"
        logger.debug("Schema validation failed: %s", message)
        raise SchemaViolation(message, errors=errors) from exc

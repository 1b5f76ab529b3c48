"""Prompt Builder: composes the generation request for one (call, framework) pair.

Two modes:
  - ENHANCED: methodology, scoring examples, call examples and planning
    checklist (each truncated to a character budget) plus the full structured
    framework definition and the complete JSON response contract.
  - BASIC: only the framework's component / sub-component descriptions and a
    short response contract.

Both modes include the call metadata and, when present, the citation-ready
transcript followed by a transcript summary. Without a transcript the prompt
tells the generator to work from metadata only and to write
"No transcript available" instead of inventing citations.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass

from call_analyzer.analysis.transcript import UNKNOWN_SPEAKER, render_transcript
from call_analyzer.analysis.types import (
    CallContext,
    FrameworkDefinition,
    FrameworkResources,
    PromptMode,
)
from call_analyzer.core.config import settings

logger = logging.getLogger(__name__)

NO_TRANSCRIPT_EVIDENCE = "No transcript available"


@dataclass
class AnalysisPrompt:
    system_prompt: str
    user_prompt: str
    mode: PromptMode


# ---------------------------------------------------------------------------
# Fixed prompt text
# ---------------------------------------------------------------------------

_SYSTEM_PROMPT = """\
You are an expert sales methodology analyst with deep expertise in sales frameworks.{resources_note}

CRITICAL: Your response MUST be valid JSON only, no other text. Structure your response exactly as specified in the prompt.

Focus on:
1. Evidence-based scoring (look for specific examples in the call content when available)
2. Actionable improvement suggestions{methodology_note}
3. Clear qualitative assessments
4. Realistic scoring (most calls will score 4-7, perfect 10s are rare)
5. Handle missing transcript gracefully (use "{no_transcript}" as evidence when needed)

IMPORTANT: If no transcript is available:
- Base analysis on call metadata (title, duration, participants)
- Use framework methodology and best practices as guidance
- Use "{no_transcript}" as evidence when specific examples cannot be cited
- Focus on framework application rather than specific call content
- Provide realistic scores based on available information

Use null for a score you cannot support; never use 0 as a placeholder."""

_NO_TRANSCRIPT_BLOCK = f"""

TRANSCRIPT: No transcript available for this call.

IMPORTANT: Since no transcript is available, base your analysis on:
- Call metadata (title, duration, participants)
- Framework methodology and best practices
- General sales call patterns and expectations
- Use "{NO_TRANSCRIPT_EVIDENCE}" as evidence when specific examples cannot be cited
- Do not fabricate quotes, speakers or timestamps"""

_CITATION_FORMAT = f"""\
CITATION FORMAT: cite evidence as objects {{"speaker": "<first name>", "timestamp": "m:ss", \
"quote": "<exact words>", "context": "<why it matters>"}}. Use the speaker names exactly as \
they appear above or "{UNKNOWN_SPEAKER}"; never "Speaker 1" or a raw id. Use "m:ss" for a \
single moment and "m:ss - m:ss" for a passage spanning several lines."""

_CITATION_EXAMPLE = """{
            "speaker": "<first name or Unknown Speaker>",
            "timestamp": "<m:ss or m:ss - m:ss>",
            "quote": "<exact words from the transcript>",
            "context": "<why this supports the score>"
          }"""

_CUSTOMER_CITATION = """{
          "speaker": "<customer first name>",
          "timestamp": "<m:ss>",
          "quote": "<exact customer words>",
          "context": "<why this quote matters>"
        }"""

_ENHANCED_RESPONSE_FORMAT = f"""\
{{
  "overallScore": <number 1-10 or null>,
  "components": [
    {{
      "name": "<component name from the framework>",
      "overallScore": <number 1-10 or null>,
      "subComponents": [
        {{
          "name": "<sub-component name>",
          "score": <number 1-10 or null>,
          "evidence": [
          {_CITATION_EXAMPLE}
          ],
          "qualitativeAssessment": "<assessment against the scoring criteria>",
          "improvementSuggestions": ["<specific suggestion>", "..."]
        }}
      ],
      "keyFindings": ["<finding>", "..."]
    }}
  ],
  "executiveSummary": {{
    "strengths": ["<strength observed in the call>", "..."],
    "weaknesses": ["<area for improvement>", "..."],
    "recommendations": ["<specific recommendation based on framework>", "..."]
  }},
  "followUpCallPlanning": {{
    "overallStrategy": "<high-level approach for next call based on analysis>",
    "deeperInquiryAreas": [
      {{
        "area": "<area needing deeper exploration>",
        "reason": "<why this needs deeper inquiry>",
        "suggestedQuestions": ["<specific discovery question>", "..."],
        "priority": "high|medium|low",
        "supportingEvidence": [{_CUSTOMER_CITATION}]
      }}
    ],
    "unansweredQuestions": [
      {{
        "question": "<question that wasn't fully answered>",
        "context": "<why this question matters>",
        "frameworkComponent": "<related framework component>",
        "originalCustomerResponse": {_CUSTOMER_CITATION},
        "whyIncomplete": "<why the response needs follow-up>"
      }}
    ],
    "discoveryGaps": [
      {{
        "gapArea": "<area where discovery was insufficient>",
        "impact": "<business impact of this gap>",
        "discoveryApproach": "<approach to fill the gap>",
        "indicatorQuotes": [{_CUSTOMER_CITATION}]
      }}
    ],
    "stakeholderMapping": {{
      "currentParticipants": ["<current participants>"],
      "missingStakeholders": ["<stakeholders that should be involved>"],
      "recommendedInvites": ["<people/roles to invite>"],
      "evidenceOfNeed": [{_CUSTOMER_CITATION}]
    }},
    "nextCallObjectives": [
      {{
        "objective": "<objective for next call>",
        "rationale": "<why this objective is important>",
        "customerEvidence": [{_CUSTOMER_CITATION}]
      }}
    ],
    "opportunityIndicators": [
      {{
        "indicator": "<buying signal identified>",
        "customerQuote": {_CUSTOMER_CITATION},
        "followUpAction": "<action to take>",
        "potentialValue": "High|Medium|Low"
      }}
    ]
  }}
}}"""

_GUIDELINES = """\
## Scoring Guidelines
- Use the methodology and scoring examples to guide your evaluation
- Score bands: 9-10 excellent, 7-8 good, 5-6 fair, 1-4 poor
- Look for specific evidence in the transcript to support scores
- Be realistic with scoring (most calls score 4-7, excellence is rare)
- Connect analysis to business outcomes and framework objectives

## Follow-up Planning Guidelines
- Every follow-up recommendation MUST include supporting customer citations
- Use EXACT customer quotes from the transcript, no paraphrasing
- If no customer evidence exists for a recommendation, do not include it
- Deeper inquiry: vague quantification, emotional language, deflected questions, components scored below 7
- Unanswered questions: deflections, incomplete answers, "we need to discuss that internally"
- Discovery gaps: stakeholders mentioned but not present, skipped process or technical details
- Opportunity indicators: budget, timeline urgency, pain intensity, solution enthusiasm, decision-maker language"""

_BASIC_RESPONSE_FORMAT = """\
{
  "overallScore": <number 1-10 or null>,
  "components": [
    {"name": "...", "overallScore": <number or null>, "subComponents": [
      {"name": "...", "score": <number or null>, "evidence": [{"speaker": "...", "timestamp": "m:ss", "quote": "..."}],
       "qualitativeAssessment": "...", "improvementSuggestions": ["..."]}
    ], "keyFindings": ["..."]}
  ],
  "executiveSummary": {"strengths": [...], "weaknesses": [...], "recommendations": [...]}
}"""


# ---------------------------------------------------------------------------
# Sections
# ---------------------------------------------------------------------------


def build_system_prompt(with_resources: bool) -> str:
    return _SYSTEM_PROMPT.format(
        resources_note=" You have access to comprehensive methodology guides and practical examples."
        if with_resources
        else "",
        methodology_note=" based on methodology best practices" if with_resources else "",
        no_transcript=NO_TRANSCRIPT_EVIDENCE,
    )


def build_call_info(
    context: CallContext,
    include_participant_roles: bool = True,
    include_call_sequence: bool = False,
) -> str:
    details = context.details
    lines = [
        "CALL INFORMATION:",
        f"- Title: {details.title or 'Unknown Call'}",
        f"- Date: {details.date or 'Unknown'}",
        f"- Duration: {details.duration or 'Unknown'}",
    ]
    if include_participant_roles:
        lines.append(f"- Participants: {', '.join(details.participant_names)}")
    if include_call_sequence and context.sequence_total:
        lines.append(f"- Call Sequence: Call {context.sequence_position} of {context.sequence_total}")
    return "\n".join(lines)


def build_transcript_section(context: CallContext) -> str:
    if not context.has_transcript:
        return _NO_TRANSCRIPT_BLOCK

    summary = context.transcript_summary
    section = (
        "\n\nCALL TRANSCRIPT (for detailed analysis and citations):\n"
        f"{render_transcript(context.transcript)}\n\n{_CITATION_FORMAT}"
    )
    if summary is not None:
        section += (
            "\n\nTRANSCRIPT SUMMARY:\n"
            f"- Total Speakers: {summary.total_speakers}\n"
            f"- Key Topics Discussed: {', '.join(summary.key_topics) or 'None identified'}\n"
            f"- Conversation Duration: {summary.total_duration} seconds\n"
            f"- Speaker Breakdown: {json.dumps(summary.speaker_summary, indent=2)}"
        )
    return section


def build_framework_context(framework: FrameworkDefinition, resources: FrameworkResources) -> str:
    """Methodology sections (truncated to their budgets) plus the structured definition."""
    parts = [f"# {framework.name} Framework Analysis\n"]
    if resources.methodology:
        parts.append(f"## Framework Methodology\n{resources.methodology[: settings.methodology_char_limit]}\n")
    if resources.scoring_examples:
        parts.append(
            f"## Scoring Examples and Guidelines\n{resources.scoring_examples[: settings.scoring_examples_char_limit]}\n"
        )
    if resources.call_examples:
        parts.append(f"## Call Analysis Examples\n{resources.call_examples[: settings.call_examples_char_limit]}\n")
    if resources.planning_checklist:
        parts.append(
            f"## Follow-up Planning Checklist\n"
            f"{resources.planning_checklist[: settings.planning_checklist_char_limit]}\n"
        )
    parts.append(f"## Framework Structure\n{json.dumps(framework.to_dict(), indent=2, ensure_ascii=False)}\n")
    return "\n".join(parts)


def build_components_text(framework: FrameworkDefinition) -> str:
    blocks = []
    for comp in framework.components:
        subs = "\n".join(f"- {sub.name}: {sub.description}" for sub in comp.sub_components)
        blocks.append(f"{comp.name}: {comp.description}\nSub-components:\n{subs}")
    return "\n\n".join(blocks) or "(no components defined; score the call against the framework as a whole)"


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def build_analysis_prompt(
    framework: FrameworkDefinition,
    resources: FrameworkResources | None,
    context: CallContext,
    include_participant_roles: bool = True,
    include_call_sequence: bool = False,
) -> AnalysisPrompt:
    """Build the system and user prompts for one call against one framework.

    Enhanced mode is used when *resources* carry methodology guidance,
    basic mode otherwise.
    """
    call_info = build_call_info(context, include_participant_roles, include_call_sequence)
    transcript = build_transcript_section(context)

    if resources is not None and resources.has_guidance:
        mode = PromptMode.ENHANCED
        user_prompt = (
            f"Analyze this sales call against the {framework.name} framework using the "
            f"comprehensive methodology and examples provided.\n\n"
            f"{call_info}{transcript}\n\n"
            f"{build_framework_context(framework, resources)}\n"
            f"## Analysis Requirements\n\n"
            f"Provide a detailed analysis in the following JSON format:\n\n"
            f"{_ENHANCED_RESPONSE_FORMAT}\n\n"
            f"{_GUIDELINES}\n\n"
            f"Analyze thoroughly using the framework methodology and respond with ONLY the JSON object."
        )
    else:
        mode = PromptMode.BASIC
        user_prompt = (
            f"Analyze this sales call against the {framework.name} framework.\n\n"
            f"{call_info}{transcript}\n\n"
            f"FRAMEWORK: {framework.name}\n{framework.description}\n\n"
            f"COMPONENTS TO ANALYZE:\n{build_components_text(framework)}\n\n"
            f"Provide analysis in JSON format with components, scores (1-10), evidence from the "
            f"transcript, and recommendations.\n\n"
            f"Response format:\n{_BASIC_RESPONSE_FORMAT}\n\n"
            f"Respond with ONLY the JSON object."
        )

    logger.debug(
        "Built %s prompt for call=%s framework=%s (%d chars)",
        mode.value,
        context.call_id,
        framework.framework_id,
        len(user_prompt),
    )
    return AnalysisPrompt(
        system_prompt=build_system_prompt(mode == PromptMode.ENHANCED),
        user_prompt=user_prompt,
        mode=mode,
    )

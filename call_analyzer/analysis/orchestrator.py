"""Call/Framework Orchestrator: one CallAnalysis for every requested pair.

Per call:
  1. Fetch call details and transcript concurrently, then merge them with a
     transcript summary into a CallContext
  2. For each framework, in order: load resources, build the prompt, call the
     generation client, recover + validate the JSON, check citations
  3. A failing framework yields an error record for that pair
     only; the other frameworks and calls continue
  4. If the fetch fails: retry details alone; build one error record per
     framework with whatever metadata is known

Calls and frameworks are processed sequentially to bound the number of
in-flight generation requests. The aggregate is built from the folded list
of pair results; no pair is ever dropped.

Input:  call ids + framework ids (validated up front)
Output: AggregateAnalysis
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass

from call_analyzer.analysis.aggregator import generate_aggregate_analysis
from call_analyzer.analysis.citations import annotate_missing_evidence, validate_citations
from call_analyzer.analysis.definitions import VALID_FRAMEWORKS, fallback_definition, is_valid_framework
from call_analyzer.analysis.fallbacks import (
    build_error_analysis,
    build_fallback_aggregate,
    call_url_for,
    create_default_follow_up_plan,
)
from call_analyzer.analysis.prompt_builder import build_analysis_prompt
from call_analyzer.analysis.recovery import recover_analysis
from call_analyzer.analysis.resources import ResourceLoader
from call_analyzer.analysis.schema import AnalysisPayload
from call_analyzer.analysis.types import (
    AggregateAnalysis,
    AnalysisStatus,
    CallAnalysis,
    CallContext,
    CallDetails,
    FrameworkDefinition,
    RecoveryTier,
)
from call_analyzer.collectors.base import CallDataProvider, GenerationClient
from call_analyzer.core.config import settings
from call_analyzer.core.exceptions import (
    AnalysisError,
    FetchError,
    GenerationError,
    RecoveryExhausted,
    ValidationError,
)
from call_analyzer.core.logging import pair_logger

logger = logging.getLogger(__name__)

UNPARSEABLE_REASON = "Generator response could not be recovered into a valid analysis"
UNSCORED_REASON = "Generator could not score this call from the available input"


# ---------------------------------------------------------------------------
# Request validation
# ---------------------------------------------------------------------------


def validate_request(call_ids: list[str], frameworks: list[str]) -> None:
    """Reject malformed requests before any fetch or generation work.

    Raises:
        ValidationError: on an empty or malformed call id / framework list.
    """
    if not isinstance(call_ids, (list, tuple)) or len(call_ids) == 0:
        raise ValidationError("callIds must be a non-empty array")
    for call_id in call_ids:
        if not isinstance(call_id, str) or not call_id.strip():
            raise ValidationError("Each call ID must be a non-empty string")

    if not isinstance(frameworks, (list, tuple)) or len(frameworks) == 0:
        raise ValidationError("frameworks must be a non-empty array")
    for framework in frameworks:
        if not is_valid_framework(framework):
            raise ValidationError(
                f"Invalid framework: {framework}. Must be one of: {', '.join(VALID_FRAMEWORKS)}",
                framework=str(framework),
            )


# ---------------------------------------------------------------------------
# Per-pair result
# ---------------------------------------------------------------------------


@dataclass
class PairResult:
    """Outcome of one (call, framework) pair: an analysis or the error that stopped it."""

    call_id: str
    framework_id: str
    context: CallContext | None = None
    analysis: CallAnalysis | None = None
    error: AnalysisError | None = None

    @property
    def ok(self) -> bool:
        return self.analysis is not None


def describe_error(error: AnalysisError) -> str:
    if isinstance(error, GenerationError):
        return f"Generation failed: {error.message}"
    if isinstance(error, RecoveryExhausted):
        return error.message
    return f"Analysis failed: {error.message}"


# ---------------------------------------------------------------------------
# Orchestrator
# ---------------------------------------------------------------------------


class FrameworkAnalyzer:
    """Analyze recorded calls against sales methodology frameworks."""

    def __init__(
        self,
        generation_client: GenerationClient,
        data_provider: CallDataProvider,
        resource_loader: ResourceLoader | None = None,
        model: str | None = None,
        max_tokens: int | None = None,
    ):
        self.generation_client = generation_client
        self.data_provider = data_provider
        self.resource_loader = resource_loader or ResourceLoader()
        self.model = model or settings.generation_model
        self.max_tokens = max_tokens or settings.generation_max_tokens

    async def analyze_calls_framework(
        self,
        call_ids: list[str],
        frameworks: list[str],
        include_participant_roles: bool | None = None,
        include_call_sequence: bool | None = None,
    ) -> AggregateAnalysis:
        """Analyze every call against every framework and aggregate the results.

        Raises:
            ValidationError: if *call_ids* or *frameworks* are malformed.
        """
        validate_request(call_ids, frameworks)
        if include_participant_roles is None:
            include_participant_roles = settings.include_participant_roles
        if include_call_sequence is None:
            include_call_sequence = settings.include_call_sequence

        logger.info("Analyzing %d calls against %d frameworks", len(call_ids), len(frameworks))

        analyses: list[CallAnalysis] = []
        for position, call_id in enumerate(call_ids, start=1):
            results = await self._analyze_call(
                call_id,
                frameworks,
                position=position,
                total=len(call_ids),
                include_participant_roles=include_participant_roles,
                include_call_sequence=include_call_sequence,
            )
            analyses.extend(self._fold_pair_result(result) for result in results)

        if not analyses:
            logger.error("No call analyses produced for %d calls", len(call_ids))
            return build_fallback_aggregate(call_ids, frameworks, "No call analyses available for aggregation")

        result = generate_aggregate_analysis(analyses, list(frameworks))
        logger.info(
            "Framework analysis complete: %d analyses, %d scored, overall=%s",
            result.total_calls,
            result.scored_calls,
            result.overall_score,
        )
        return result

    # -- per call ----------------------------------------------------------

    async def fetch_call_context(self, call_id: str) -> CallContext:
        """Fetch details and transcript concurrently and merge them.

        Raises:
            FetchError: if either fetch fails.
        """
        details, transcript_data = await asyncio.gather(
            self.data_provider.get_call_details(call_id),
            self.data_provider.get_call_transcript(call_id),
            return_exceptions=True,
        )
        for outcome in (details, transcript_data):
            if isinstance(outcome, BaseException):
                raise FetchError(
                    f"Failed to fetch call data: {outcome}",
                    call_id=call_id,
                ) from outcome

        entries = transcript_data.transcript if transcript_data.has_transcript else []
        summary = None
        if entries:
            try:
                summary = self.data_provider.generate_transcript_summary(entries)
            except Exception as e:
                logger.warning("Transcript summary failed for call=%s: %s", call_id, e)

        logger.info(
            "Fetched call=%s: title=%r, transcript entries=%d",
            call_id,
            details.title,
            len(entries),
        )
        return CallContext(details=details, transcript=list(entries), transcript_summary=summary)

    async def _analyze_call(
        self,
        call_id: str,
        frameworks: list[str],
        position: int,
        total: int,
        include_participant_roles: bool,
        include_call_sequence: bool,
    ) -> list[PairResult]:
        try:
            context = await self.fetch_call_context(call_id)
        except FetchError as e:
            logger.error("Error fetching call data for %s: %s", call_id, e.message)
            return await self._degraded_results(call_id, frameworks, e)

        context.sequence_position = position
        context.sequence_total = total

        results = []
        for framework_id in frameworks:
            results.append(
                await self._analyze_pair(context, framework_id, include_participant_roles, include_call_sequence)
            )
        return results

    async def _degraded_results(self, call_id: str, frameworks: list[str], error: FetchError) -> list[PairResult]:
        details: CallDetails | None = None
        try:
            details = await self.data_provider.get_call_details(call_id)
            logger.info("Recovered basic details for call=%s after fetch failure", call_id)
        except Exception as e:
            logger.error("Failed to get even basic call details for %s: %s", call_id, e)

        results = []
        for framework_id in frameworks:
            framework = self._framework_definition(framework_id)
            results.append(
                PairResult(
                    call_id=call_id,
                    framework_id=framework_id,
                    analysis=build_error_analysis(
                        call_id,
                        framework,
                        reason=f"Call data unavailable: {error.message}",
                        details=details,
                        status=AnalysisStatus.ERROR,
                    ),
                )
            )
        return results

    # -- per pair ----------------------------------------------------------

    async def _analyze_pair(
        self,
        context: CallContext,
        framework_id: str,
        include_participant_roles: bool,
        include_call_sequence: bool,
    ) -> PairResult:
        log = pair_logger(logger, context.call_id, framework_id)
        try:
            analysis = await self.analyze_call_against_framework(
                context, framework_id, include_participant_roles, include_call_sequence
            )
        except AnalysisError as e:
            e.call_id = e.call_id or context.call_id
            e.framework = e.framework or framework_id
            log.error("Analysis failed: %s", e.message)
            return PairResult(context.call_id, framework_id, context=context, error=e)
        except Exception as e:
            log.exception("Unexpected error during analysis")
            return PairResult(
                context.call_id,
                framework_id,
                context=context,
                error=AnalysisError(str(e) or type(e).__name__, call_id=context.call_id, framework=framework_id),
            )

        return PairResult(context.call_id, framework_id, context=context, analysis=analysis)

    def _fold_pair_result(self, result: PairResult) -> CallAnalysis:
        """Turn a pair result into its CallAnalysis; failures become unscored records."""
        if result.ok:
            return result.analysis

        context = result.context
        has_transcript = context is not None and context.has_transcript
        return build_error_analysis(
            result.call_id,
            self._framework_definition(result.framework_id),
            reason=describe_error(result.error),
            details=context.details if context else None,
            has_transcript=has_transcript,
            status=AnalysisStatus.ERROR,
        )

    async def analyze_call_against_framework(
        self,
        context: CallContext,
        framework_id: str,
        include_participant_roles: bool = True,
        include_call_sequence: bool = False,
    ) -> CallAnalysis:
        """Run prompt -> generation -> recovery -> citation checks for one pair.

        Raises:
            GenerationError: the generation client failed.
            RecoveryExhausted: the response could not be turned into any structure.
        """
        log = pair_logger(logger, context.call_id, framework_id)
        resources = self.resource_loader.load(framework_id)
        framework = resources.framework
        prompt = build_analysis_prompt(
            framework,
            resources,
            context,
            include_participant_roles=include_participant_roles,
            include_call_sequence=include_call_sequence,
        )

        log.info("Analyzing against %s (%s prompt)", framework.name, prompt.mode.value)
        try:
            raw_text = await self.generation_client.create_completion(
                model=self.model,
                max_tokens=self.max_tokens,
                system_prompt=prompt.system_prompt,
                user_prompt=prompt.user_prompt,
            )
        except GenerationError:
            raise
        except Exception as e:
            raise GenerationError(f"Generation call failed: {e}") from e

        recovery = recover_analysis(raw_text)
        if recovery.tier == RecoveryTier.ABSOLUTE_FALLBACK:
            log.error("Unrecoverable generator output (%d chars)", len(raw_text or ""))
            raise RecoveryExhausted(UNPARSEABLE_REASON, raw_text=raw_text or "")

        if recovery.tier == RecoveryTier.MINIMAL_FALLBACK:
            log.warning("Generator output unparseable; recorded as error (%s)", "; ".join(recovery.attempts))
            return self._build_analysis(
                context,
                framework,
                recovery.payload,
                status=AnalysisStatus.ERROR,
                error_reason=UNPARSEABLE_REASON,
            )

        payload = recovery.payload
        citation_report = validate_citations(payload)
        annotate_missing_evidence(payload, context.has_transcript)

        if payload.overall_score is None:
            reason = UNSCORED_REASON
            if not context.has_transcript:
                reason += " (no transcript available)"
            status = AnalysisStatus.INCOMPLETE
        else:
            reason = None
            status = AnalysisStatus.COMPLETED

        analysis = self._build_analysis(context, framework, payload, status=status, error_reason=reason)
        analysis.citation_report = citation_report
        log.info(
            "Completed %s analysis (%s tier, %d citations), score=%s",
            framework.name,
            recovery.tier.value,
            citation_report.total_citations,
            analysis.overall_score,
        )
        return analysis

    # -- helpers -----------------------------------------------------------

    def _build_analysis(
        self,
        context: CallContext,
        framework: FrameworkDefinition,
        payload: AnalysisPayload,
        status: AnalysisStatus,
        error_reason: str | None,
    ) -> CallAnalysis:
        details = context.details
        return CallAnalysis(
            call_id=details.call_id,
            call_title=details.title or "Unknown Call",
            call_url=call_url_for(details, details.call_id),
            call_date=details.date or "Unknown",
            participants=details.participant_names,
            duration=details.duration or "Unknown",
            framework=framework.name,
            framework_id=framework.framework_id,
            analysis_status=status,
            overall_score=payload.overall_score if status == AnalysisStatus.COMPLETED else None,
            error_reason=error_reason,
            components=list(payload.components),
            executive_summary=payload.executive_summary,
            follow_up_call_planning=payload.follow_up_call_planning
            or create_default_follow_up_plan(details, framework.name),
        )

    def _framework_definition(self, framework_id: str) -> FrameworkDefinition:
        try:
            return self.resource_loader.load(framework_id).framework
        except Exception as e:
            logger.warning("Could not load definition for %s: %s", framework_id, e)
            return fallback_definition(framework_id)


async def safe_framework_analysis(
    analyzer: FrameworkAnalyzer,
    call_ids: list[str],
    frameworks: list[str],
    include_participant_roles: bool | None = None,
    include_call_sequence: bool | None = None,
) -> AggregateAnalysis:
    """Never-raising wrapper: request errors become a fallback AggregateAnalysis."""
    try:
        return await analyzer.analyze_calls_framework(
            call_ids,
            frameworks,
            include_participant_roles=include_participant_roles,
            include_call_sequence=include_call_sequence,
        )
    except AnalysisError as e:
        logger.error("Safe framework analysis failed: %s", e.message)
        ids = list(call_ids) if isinstance(call_ids, (list, tuple)) else []
        fws = list(frameworks) if isinstance(frameworks, (list, tuple)) else []
        return build_fallback_aggregate(ids, fws, e.message)

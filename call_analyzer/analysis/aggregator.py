"""Aggregator: cross-call statistics, insights and recommendations.

All statistics use only scored analyses (status completed). Unscored
analyses are counted and called out, never averaged in as zero.

  - overallScore        = mean(scored overall scores), None when nothing scored
  - strengths/weaknesses = top 5 by exact-string frequency
  - improvement areas   = sub-components scored <= 6, top 3 by frequency
  - framework comparison (more than one framework requested):
        mean and population variance per framework
  - recommendations:
        immediate  lowest call when its score <= 3
        strategic  average < 5 -> systematic training, >= 6 -> approach validated
        coaching   highest call as exemplar when its score >= 9
"""

from __future__ import annotations

import logging
from collections import Counter

import numpy as np

from call_analyzer.analysis.types import (
    AggregateAnalysis,
    AggregateInsights,
    CallAnalysis,
    FrameworkComparison,
    Recommendations,
)

logger = logging.getLogger(__name__)

TOP_INSIGHTS = 5
TOP_IMPROVEMENT_AREAS = 3
WEAK_SUBCOMPONENT_THRESHOLD = 6
FRAMEWORK_GAP_THRESHOLD = 1.0
IMMEDIATE_REVIEW_THRESHOLD = 3
TRAINING_THRESHOLD = 5
VALIDATED_THRESHOLD = 6
EXEMPLAR_THRESHOLD = 9


def _format_score(score: float) -> str:
    return f"{score:g}"


def mean_score(scores: list[float]) -> float | None:
    if not scores:
        return None
    return float(np.mean(scores))


def population_variance(scores: list[float]) -> float:
    if not scores:
        return 0.0
    return float(np.var(scores))


def top_items(items: list[str], limit: int) -> list[str]:
    """Most frequent items first; ties keep first-seen order."""
    return [item for item, _ in Counter(items).most_common(limit)]


def unscored_note(unscored: int, total: int) -> str:
    return f"{unscored} of {total} analyses could not be scored and are excluded from these insights"


def generate_improvement_opportunities(scored: list[CallAnalysis]) -> list[str]:
    weak_areas = [
        sub.name
        for analysis in scored
        for comp in analysis.components
        for sub in comp.sub_components
        if sub.score is not None and sub.score <= WEAK_SUBCOMPONENT_THRESHOLD
    ]
    counts = Counter(weak_areas)
    return [
        f"Focus on improving {area} - identified as weak area in {count} out of {len(scored)} analyses"
        for area, count in counts.most_common(TOP_IMPROVEMENT_AREAS)
    ]


def compare_frameworks(scored: list[CallAnalysis], frameworks: list[str]) -> FrameworkComparison:
    """Mean/variance per framework plus a short natural-language comparison."""
    by_framework: dict[str, list[float]] = {}
    for analysis in scored:
        by_framework.setdefault(analysis.framework, []).append(analysis.overall_score)

    comparison = FrameworkComparison(
        framework_scores={name: round(mean_score(s), 2) for name, s in by_framework.items()},
        framework_variance={name: round(population_variance(s), 2) for name, s in by_framework.items()},
    )

    if len(by_framework) < 2:
        if by_framework:
            only = next(iter(by_framework))
            comparison.insights.append(
                f"Only {only} produced scored analyses; {len(frameworks)} frameworks were requested"
            )
        else:
            comparison.insights.append("No scored analyses available for framework comparison")
        return comparison

    means = {name: mean_score(s) for name, s in by_framework.items()}
    strongest = max(means, key=means.get)
    weakest = min(means, key=means.get)
    if means[strongest] - means[weakest] > FRAMEWORK_GAP_THRESHOLD:
        comparison.insights.append(f"{strongest} framework shows stronger performance overall")
    else:
        comparison.insights.append("Frameworks show similar performance levels")

    variances = {name: population_variance(s) for name, s in by_framework.items()}
    if len(set(variances.values())) > 1:
        most_consistent = min(variances, key=variances.get)
        comparison.insights.append(f"{most_consistent} shows more consistent performance")

    return comparison


def generate_recommendations(
    scored: list[CallAnalysis],
    unscored_count: int,
    top_weaknesses: list[str],
) -> Recommendations:
    recs = Recommendations()

    if scored:
        lowest = min(scored, key=lambda a: a.overall_score)
        highest = max(scored, key=lambda a: a.overall_score)
        average = mean_score([a.overall_score for a in scored])

        if lowest.overall_score <= IMMEDIATE_REVIEW_THRESHOLD:
            recs.immediate.append(
                f"Review {lowest.call_title} (call {lowest.call_id}, {lowest.framework}, "
                f"Score: {_format_score(lowest.overall_score)}) for immediate improvement opportunities"
            )

        if average < TRAINING_THRESHOLD:
            recs.strategic.append("Consider implementing systematic framework training across the team")
        elif average >= VALIDATED_THRESHOLD:
            recs.strategic.append(
                f"Team average of {average:.1f} validates the current approach; "
                "keep reinforcing framework fundamentals"
            )
        if top_weaknesses:
            recs.strategic.append(f"Address common weakness patterns: {', '.join(top_weaknesses[:2])}")

        if highest.overall_score >= EXEMPLAR_THRESHOLD:
            recs.coaching.append(
                f"Use {highest.call_title} (call {highest.call_id}, {highest.framework}, "
                f"Score: {_format_score(highest.overall_score)}) as a coaching exemplar for best practices"
            )
    else:
        recs.strategic.append("No analyses could be scored; resolve analysis errors before drawing team-level conclusions")

    recs.coaching.append("Schedule individual coaching sessions focusing on framework application")

    if unscored_count:
        recs.immediate.append(
            f"{unscored_count} analyses could not be scored; review their error reasons and re-run them"
        )
    return recs


def generate_aggregate_analysis(call_analyses: list[CallAnalysis], frameworks: list[str]) -> AggregateAnalysis:
    """Aggregate per-pair analyses into the cross-call report."""
    scored = [a for a in call_analyses if a.is_scored]
    unscored_count = len(call_analyses) - len(scored)

    overall = mean_score([a.overall_score for a in scored])

    strengths = top_items([s for a in scored for s in a.executive_summary.strengths], TOP_INSIGHTS)
    weaknesses = top_items([w for a in scored for w in a.executive_summary.weaknesses], TOP_INSIGHTS)

    insights = AggregateInsights(
        strengths_across_calls=strengths,
        weaknesses_across_calls=list(weaknesses),
        improvement_opportunities=generate_improvement_opportunities(scored),
    )
    if unscored_count:
        insights.weaknesses_across_calls.append(unscored_note(unscored_count, len(call_analyses)))

    if len(frameworks) > 1:
        insights.framework_comparison = compare_frameworks(scored, frameworks)

    logger.info(
        "Aggregated %d analyses (%d scored), overall score %s",
        len(call_analyses),
        len(scored),
        f"{overall:.2f}" if overall is not None else "n/a",
    )

    return AggregateAnalysis(
        total_calls=len(call_analyses),
        scored_calls=len(scored),
        frameworks=list(frameworks),
        overall_score=overall,
        call_analyses=list(call_analyses),
        aggregate_insights=insights,
        recommendations=generate_recommendations(scored, unscored_count, weaknesses),
    )

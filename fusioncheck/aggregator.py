"""Derived statistics over an AnalysisResult"""
from collections import Counter
from typing import Dict, List, Optional, Sequence, Tuple

from fusioncheck.config import AnalysisConfig
from fusioncheck.error_handling import NoInstructionsFound, create_error
from fusioncheck.models import (
    AnalysisResult,
    FusionCategory,
    FusionSummary,
    MissRecord,
)
from fusioncheck.rules import RuleCatalog, get_catalog


def percentage(part: int, total: int) -> float:
    """Share of ``total`` as a percentage, rounded to two places"""
    if total <= 0:
        raise NoInstructionsFound("Cannot compute fusion rates over zero instructions")
    return round(100.0 * part / total, 2)


def ranked_counts(names: Sequence[str]) -> List[Tuple[str, int]]:
    """Counts by name, highest first; ties keep first-seen order"""
    return Counter(names).most_common()


def summarize(result: AnalysisResult,
              config: Optional[AnalysisConfig] = None,
              catalog: Optional[RuleCatalog] = None) -> FusionSummary:
    """
    Compute summary statistics for an analysis result.

    Each fused pair issues as one macro-op, so it frees exactly one decode
    slot. The throughput estimate is therefore saved slots over total
    instructions, and the implementation advantage is the part of that
    which only the wider core fuses.

    Args:
        result: Output of FusionAnalyzer.analyze
        config: Display limits; counts never depend on it
        catalog: Catalog that produced the result (looked up by name if omitted)

    Raises:
        NoInstructionsFound: If the result covers zero instructions
    """
    config = config or AnalysisConfig()
    catalog = catalog or get_catalog(result.catalog_name)

    if result.total_instructions == 0:
        if config.function_filter:
            raise create_error("function_not_found", pattern=config.function_filter)
        raise NoInstructionsFound("Analysis covered zero instructions")

    universal = result.universal_matches
    specific = result.implementation_specific_matches
    saved = len(universal) + len(specific)

    rule_categories = catalog.rule_categories()
    for match in result.matches:
        rule_categories.setdefault(match.rule_name, match.category)

    miss_examples: Dict[str, List[MissRecord]] = {}
    fix_suggestions: Dict[str, str] = {}
    for miss in result.misses:
        fix_suggestions.setdefault(miss.pattern_name, miss.fix_suggestion)
        examples = miss_examples.setdefault(miss.pattern_name, [])
        if len(examples) < config.miss_example_limit:
            examples.append(miss)

    worst = [stats for stats in result.per_function if stats.total_findings > 0]
    worst.sort(key=lambda stats: stats.total_findings, reverse=True)

    return FusionSummary(
        catalog_name=result.catalog_name,
        total_instructions=result.total_instructions,
        universal_count=len(universal),
        implementation_specific_count=len(specific),
        missed_count=len(result.misses),
        saved_decode_slots=saved,
        throughput_improvement_pct=percentage(saved, result.total_instructions),
        implementation_advantage_pct=percentage(len(specific), result.total_instructions),
        counts_by_category={
            FusionCategory.UNIVERSAL.value: len(universal),
            FusionCategory.IMPLEMENTATION_SPECIFIC.value: len(specific),
        },
        counts_by_rule=ranked_counts([m.rule_name for m in result.matches]),
        rule_categories=rule_categories,
        counts_by_pattern=ranked_counts([m.pattern_name for m in result.misses]),
        fix_suggestions=fix_suggestions,
        worst_functions=worst[:config.top_functions],
        universal_examples=universal[:config.example_limit],
        implementation_specific_examples=specific[:config.example_limit],
        miss_examples=miss_examples,
        low_confidence=result.low_confidence,
        warnings=list(result.warnings),
        baseline_label=catalog.baseline_label,
        target_label=catalog.target_label,
        baseline_fusions_per_cycle=catalog.baseline_fusions_per_cycle,
        target_fusions_per_cycle=catalog.target_fusions_per_cycle,
    )

"""Fusion analysis engine: pairwise rule matching and missed-opportunity detection"""
import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Iterable, List, Optional, Sequence, Tuple

from fusioncheck.models import (
    AnalysisResult,
    FunctionStats,
    Function,
    FusionCategory,
    MatchRecord,
    MissRecord,
)
from fusioncheck.rules import MISS_WINDOW, RuleCatalog, get_catalog

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class _FunctionFindings:
    matches: Tuple[MatchRecord, ...]
    misses: Tuple[MissRecord, ...]
    stats: FunctionStats


class FusionAnalyzer:
    """Walks each function's instruction stream against a rule catalog"""

    def __init__(self, catalog: Optional[RuleCatalog] = None, workers: int = 1):
        """
        Args:
            catalog: Rule catalog to evaluate (default catalog if omitted)
            workers: Functions analyzed concurrently; 1 runs inline
        """
        self.catalog = catalog or get_catalog()
        self.workers = max(1, workers)

    def analyze(self, functions: Iterable[Function],
                function_filter: Optional[str] = None,
                low_confidence: bool = False,
                warnings: Sequence[str] = ()) -> AnalysisResult:
        """
        Analyze functions for fusion pairs and missed opportunities.

        The filter only selects which functions are scanned; it never
        changes how a single function is scanned.

        Args:
            functions: Parsed functions in source order
            function_filter: Substring a function name must contain
            low_confidence: Carried through from the parse
            warnings: Carried through from the parse

        Returns:
            AnalysisResult with records in source order
        """
        selected = self.select_functions(functions, function_filter)

        if self.workers > 1 and len(selected) > 1:
            with ThreadPoolExecutor(max_workers=self.workers) as pool:
                findings = list(pool.map(self.analyze_function, selected))
        else:
            findings = [self.analyze_function(function) for function in selected]

        matches: List[MatchRecord] = []
        misses: List[MissRecord] = []
        for item in findings:
            matches.extend(item.matches)
            misses.extend(item.misses)

        result = AnalysisResult(
            catalog_name=self.catalog.name,
            total_instructions=sum(item.stats.instruction_count for item in findings),
            matches=tuple(matches),
            misses=tuple(misses),
            per_function=tuple(item.stats for item in findings),
            low_confidence=low_confidence,
            warnings=tuple(warnings),
        )
        logger.debug(
            "Analyzed %d functions: %d matches, %d missed opportunities",
            len(selected), len(matches), len(misses)
        )
        return result

    @staticmethod
    def select_functions(functions: Iterable[Function],
                         function_filter: Optional[str] = None) -> List[Function]:
        if not function_filter:
            return list(functions)
        return [function for function in functions if function_filter in function.name]

    def analyze_function(self, function: Function) -> _FunctionFindings:
        """Single left-to-right scan over one function"""
        insns = function.instructions
        matches: List[MatchRecord] = []
        misses: List[MissRecord] = []
        universal = specific = 0

        # The last instruction has no successor and is never a finding
        for i in range(len(insns) - 1):
            curr, nxt = insns[i], insns[i + 1]
            # Every matching rule fires; there is no single winner
            for rule in self.catalog.fusion_rules:
                if not rule.matches(curr, nxt):
                    continue
                matches.append(MatchRecord(
                    function=function.name,
                    address=curr.address,
                    rule_name=rule.name,
                    category=rule.category,
                    pair_text=f"{curr.raw}  →  {nxt.raw}",
                ))
                if rule.category is FusionCategory.UNIVERSAL:
                    universal += 1
                else:
                    specific += 1

            window = insns[i:i + MISS_WINDOW]
            for pattern in self.catalog.missed_patterns:
                if pattern.detect(window):
                    misses.append(MissRecord(
                        function=function.name,
                        address=curr.address,
                        pattern_name=pattern.name,
                        instruction_text=curr.raw,
                        fix_suggestion=pattern.fix_suggestion,
                    ))

        stats = FunctionStats(
            name=function.name,
            instruction_count=len(insns),
            universal=universal,
            implementation_specific=specific,
            missed=len(misses),
        )
        return _FunctionFindings(tuple(matches), tuple(misses), stats)

"""Core data models for fusioncheck"""
from dataclasses import dataclass, field, asdict
from enum import Enum
from typing import Optional, List, Dict, Any, Tuple


class FusionCategory(Enum):
    """Which cores honor a fusion rule"""
    UNIVERSAL = "universal"                              # every targeted ARM64 core
    IMPLEMENTATION_SPECIFIC = "implementation_specific"  # only the wider core


@dataclass(frozen=True)
class Instruction:
    """Represents a single disassembled instruction"""
    address: str      # Hex address without 0x (e.g., "100003f44")
    mnemonic: str     # Upper-case mnemonic (e.g., "B.EQ")
    operands: str     # Raw operand text (e.g., "x0, x1")
    raw: str          # Original source line, stripped

    @property
    def first_operand(self) -> Optional[str]:
        """Leading operand, usually the destination register"""
        head = self.operands.split(',')[0].strip()
        return head or None


@dataclass(frozen=True)
class Function:
    """A disassembled symbol and its instructions in source order"""
    name: str
    instructions: Tuple[Instruction, ...] = ()


@dataclass(frozen=True)
class MatchRecord:
    """One fusion rule satisfied by an adjacent instruction pair"""
    function: str
    address: str
    rule_name: str
    category: FusionCategory
    pair_text: str

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data['category'] = self.category.value
        return data


@dataclass(frozen=True)
class MissRecord:
    """One missed-opportunity pattern satisfied at a position"""
    function: str
    address: str
    pattern_name: str
    instruction_text: str
    fix_suggestion: str

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class FunctionStats:
    """Per-function rollup of findings"""
    name: str
    instruction_count: int
    universal: int = 0
    implementation_specific: int = 0
    missed: int = 0

    @property
    def total_findings(self) -> int:
        return self.universal + self.implementation_specific + self.missed

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class ParseResult:
    """Output of the disassembly parser"""
    functions: Tuple[Function, ...]
    low_confidence: bool = False
    warnings: Tuple[str, ...] = ()
    lines_read: int = 0
    skipped_lines: int = 0

    @property
    def instruction_count(self) -> int:
        return sum(len(function.instructions) for function in self.functions)

    @property
    def function_names(self) -> List[str]:
        return [function.name for function in self.functions]


@dataclass(frozen=True)
class AnalysisResult:
    """
    Raw output of the fusion analysis engine.

    Deterministic for a given input and catalog: re-running the engine on
    the same functions reproduces it exactly.
    """
    catalog_name: str
    total_instructions: int
    matches: Tuple[MatchRecord, ...] = ()
    misses: Tuple[MissRecord, ...] = ()
    per_function: Tuple[FunctionStats, ...] = ()
    low_confidence: bool = False
    warnings: Tuple[str, ...] = ()

    @property
    def universal_matches(self) -> List[MatchRecord]:
        return [m for m in self.matches if m.category is FusionCategory.UNIVERSAL]

    @property
    def implementation_specific_matches(self) -> List[MatchRecord]:
        return [m for m in self.matches if m.category is FusionCategory.IMPLEMENTATION_SPECIFIC]

    def by_function(self) -> Dict[str, FunctionStats]:
        """Map function name to its stats, merging repeated symbol names"""
        merged: Dict[str, FunctionStats] = {}
        for stats in self.per_function:
            seen = merged.get(stats.name)
            if seen is None:
                merged[stats.name] = stats
            else:
                merged[stats.name] = FunctionStats(
                    name=stats.name,
                    instruction_count=seen.instruction_count + stats.instruction_count,
                    universal=seen.universal + stats.universal,
                    implementation_specific=seen.implementation_specific + stats.implementation_specific,
                    missed=seen.missed + stats.missed,
                )
        return merged

    def to_dict(self) -> Dict[str, Any]:
        return {
            'catalog': self.catalog_name,
            'total_instructions': self.total_instructions,
            'matches': [m.to_dict() for m in self.matches],
            'misses': [m.to_dict() for m in self.misses],
            'per_function': [f.to_dict() for f in self.per_function],
            'low_confidence': self.low_confidence,
            'warnings': list(self.warnings),
        }


@dataclass(frozen=True)
class FusionSummary:
    """Derived statistics computed from an AnalysisResult"""
    catalog_name: str
    total_instructions: int
    universal_count: int
    implementation_specific_count: int
    missed_count: int
    saved_decode_slots: int
    throughput_improvement_pct: float
    implementation_advantage_pct: float
    counts_by_category: Dict[str, int] = field(default_factory=dict)
    counts_by_rule: List[Tuple[str, int]] = field(default_factory=list)
    rule_categories: Dict[str, FusionCategory] = field(default_factory=dict)
    counts_by_pattern: List[Tuple[str, int]] = field(default_factory=list)
    fix_suggestions: Dict[str, str] = field(default_factory=dict)
    worst_functions: List[FunctionStats] = field(default_factory=list)
    universal_examples: List[MatchRecord] = field(default_factory=list)
    implementation_specific_examples: List[MatchRecord] = field(default_factory=list)
    miss_examples: Dict[str, List[MissRecord]] = field(default_factory=dict)
    low_confidence: bool = False
    warnings: List[str] = field(default_factory=list)
    baseline_label: str = "baseline"
    target_label: str = "target"
    baseline_fusions_per_cycle: int = 1
    target_fusions_per_cycle: int = 1

    @property
    def total_fusions(self) -> int:
        return self.universal_count + self.implementation_specific_count

    def rule_counts_for(self, category: FusionCategory) -> List[Tuple[str, int]]:
        """Rule counts restricted to one category, ranked as in counts_by_rule"""
        return [(name, count) for name, count in self.counts_by_rule
                if self.rule_categories.get(name) is category]

    def to_dict(self) -> Dict[str, Any]:
        return {
            'catalog': self.catalog_name,
            'total_instructions': self.total_instructions,
            'universal': self.universal_count,
            'implementation_specific': self.implementation_specific_count,
            'missed': self.missed_count,
            'saved_decode_slots': self.saved_decode_slots,
            'throughput_improvement_pct': self.throughput_improvement_pct,
            'implementation_advantage_pct': self.implementation_advantage_pct,
            'counts_by_category': dict(self.counts_by_category),
            'counts_by_rule': [
                {'rule': name, 'category': self.rule_categories[name].value, 'count': count}
                for name, count in self.counts_by_rule
            ],
            'counts_by_pattern': [
                {'pattern': name, 'count': count, 'fix': self.fix_suggestions.get(name, '')}
                for name, count in self.counts_by_pattern
            ],
            'worst_functions': [f.to_dict() for f in self.worst_functions],
            'examples': {
                'universal': [m.to_dict() for m in self.universal_examples],
                'implementation_specific': [m.to_dict() for m in self.implementation_specific_examples],
                'missed': {name: [m.to_dict() for m in records]
                           for name, records in self.miss_examples.items()},
            },
            'low_confidence': self.low_confidence,
            'warnings': list(self.warnings),
            'platforms': {
                'baseline': {
                    'label': self.baseline_label,
                    'fusions': self.universal_count,
                    'max_fusions_per_cycle': self.baseline_fusions_per_cycle,
                },
                'target': {
                    'label': self.target_label,
                    'fusions': self.total_fusions,
                    'max_fusions_per_cycle': self.target_fusions_per_cycle,
                },
            },
        }

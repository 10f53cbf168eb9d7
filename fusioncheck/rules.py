"""
Fusion rule catalogs.

A catalog is plain data: an ordered list of FusionRules evaluated on every
adjacent instruction pair, and an ordered list of MissedPatterns evaluated
on a bounded lookahead window. Modelling another microarchitecture means
registering another catalog; the analysis engine never changes.

Sources for the default catalog: Dougall Johnson's Firestorm reverse
engineering notes and the LLVM AArch64 scheduling models.
"""
import re
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional, Sequence, Tuple, Any

from fusioncheck.error_handling import create_error
from fusioncheck.models import FusionCategory, Instruction

# Every AArch64 condition code, including the HS/LO aliases and NV
CONDITION_CODES = (
    'EQ', 'NE', 'CS', 'HS', 'CC', 'LO', 'MI', 'PL',
    'VS', 'VC', 'HI', 'LS', 'GE', 'LT', 'GT', 'LE', 'AL', 'NV',
)
CONDITIONAL_BRANCH = r'B\.(?:' + '|'.join(CONDITION_CODES) + r')'

MISS_WINDOW = 3


def shares_register(first: Instruction, second: Instruction) -> bool:
    """
    Lexical register cross-reference.

    True when the first operand of ``first`` occurs anywhere in the operand
    text of ``second``. A substring test, not data-flow: ``x1`` also hits
    ``x10``.
    """
    register = first.first_operand
    return bool(register) and register in second.operands


@dataclass(frozen=True)
class FusionRule:
    """An adjacent pair that fuses into one macro-op"""
    name: str
    category: FusionCategory
    first: str                     # regex over the whole upper-case mnemonic
    second: str
    shared_register: bool = False  # second must reference first's destination
    description: str = ""
    _first_re: Any = field(init=False, repr=False, compare=False)
    _second_re: Any = field(init=False, repr=False, compare=False)

    def __post_init__(self):
        object.__setattr__(self, '_first_re', re.compile(self.first))
        object.__setattr__(self, '_second_re', re.compile(self.second))

    def first_matches(self, mnemonic: str) -> bool:
        return self._first_re.fullmatch(mnemonic) is not None

    def second_matches(self, mnemonic: str) -> bool:
        return self._second_re.fullmatch(mnemonic) is not None

    def matches(self, first: Instruction, second: Instruction) -> bool:
        if not (self.first_matches(first.mnemonic) and self.second_matches(second.mnemonic)):
            return False
        return not self.shared_register or shares_register(first, second)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'name': self.name,
            'category': self.category.value,
            'first': self.first,
            'second': self.second,
            'shared_register': self.shared_register,
            'description': self.description,
        }


class SeparatedPair:
    """
    Detects a fusible first instruction whose partner shows up later in the
    window, but not directly after it.
    """

    def __init__(self, first: str, second: str, shared_register: bool = False):
        self.first = first
        self.second = second
        self.shared_register = shared_register
        self._first_re = re.compile(first)
        self._second_re = re.compile(second)

    def __call__(self, window: Sequence[Instruction]) -> bool:
        if not window or self._first_re.fullmatch(window[0].mnemonic) is None:
            return False
        for later in window[2:MISS_WINDOW]:
            if self._second_re.fullmatch(later.mnemonic) is None:
                continue
            if not self.shared_register or shares_register(window[0], later):
                return True
        return False

    def __repr__(self):
        return f"SeparatedPair({self.first!r}, {self.second!r}, shared_register={self.shared_register})"


class UnpairedFirst:
    """Detects a first instruction not immediately followed by its partner"""

    def __init__(self, first: str, second: str):
        self.first = first
        self.second = second
        self._first_re = re.compile(first)
        self._second_re = re.compile(second)

    def __call__(self, window: Sequence[Instruction]) -> bool:
        if not window or self._first_re.fullmatch(window[0].mnemonic) is None:
            return False
        return len(window) < 2 or self._second_re.fullmatch(window[1].mnemonic) is None

    def __repr__(self):
        return f"UnpairedFirst({self.first!r}, {self.second!r})"


@dataclass(frozen=True)
class MissedPattern:
    """A sequence that could fuse if the compiler had scheduled it differently"""
    name: str
    description: str
    detect: Callable[[Sequence[Instruction]], bool]
    fix_suggestion: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            'name': self.name,
            'description': self.description,
            'detector': repr(self.detect),
            'fix': self.fix_suggestion,
        }


@dataclass(frozen=True)
class RuleCatalog:
    """Fusion rules and missed patterns for one baseline/target core pair"""
    name: str
    description: str
    fusion_rules: Tuple[FusionRule, ...]
    missed_patterns: Tuple[MissedPattern, ...] = ()
    baseline_label: str = "baseline"
    target_label: str = "target"
    baseline_fusions_per_cycle: int = 1
    target_fusions_per_cycle: int = 1

    def rules_in(self, category: FusionCategory) -> List[FusionRule]:
        return [rule for rule in self.fusion_rules if rule.category is category]

    def rule_categories(self) -> Dict[str, FusionCategory]:
        return {rule.name: rule.category for rule in self.fusion_rules}

    def to_dict(self) -> Dict[str, Any]:
        return {
            'name': self.name,
            'description': self.description,
            'baseline': {'label': self.baseline_label,
                         'max_fusions_per_cycle': self.baseline_fusions_per_cycle},
            'target': {'label': self.target_label,
                       'max_fusions_per_cycle': self.target_fusions_per_cycle},
            'fusion_rules': [rule.to_dict() for rule in self.fusion_rules],
            'missed_patterns': [pattern.to_dict() for pattern in self.missed_patterns],
        }


def branch_fusion(first: str, category: FusionCategory) -> FusionRule:
    """Flag-producing instruction followed by any conditional branch"""
    return FusionRule(
        name=f"{first}+B.cond",
        category=category,
        first=first,
        second=CONDITIONAL_BRANCH,
        description=f"{first} feeding a conditional branch",
    )


UNIVERSAL = FusionCategory.UNIVERSAL
SPECIFIC = FusionCategory.IMPLEMENTATION_SPECIFIC

APPLE_M_CATALOG = RuleCatalog(
    name="apple-m",
    description="Neoverse-N1 baseline versus Apple M-series (Firestorm and later)",
    baseline_label="Neoverse-N1",
    target_label="Apple M-series",
    baseline_fusions_per_cycle=1,
    target_fusions_per_cycle=3,
    fusion_rules=(
        branch_fusion('CMP', UNIVERSAL),
        branch_fusion('CMN', UNIVERSAL),
        branch_fusion('TST', UNIVERSAL),
        branch_fusion('ADDS', UNIVERSAL),
        branch_fusion('SUBS', UNIVERSAL),
        branch_fusion('ANDS', UNIVERSAL),
        branch_fusion('ADD', SPECIFIC),
        branch_fusion('SUB', SPECIFIC),
        FusionRule(
            name="ADRP+ADD (address generation)",
            category=SPECIFIC,
            first='ADRP',
            second='ADD',
            shared_register=True,
            description="Page address plus low 12 bits into the same register",
        ),
        FusionRule(
            name="ADRP+LDR (address generation)",
            category=SPECIFIC,
            first='ADRP',
            second='LDR',
            shared_register=True,
            description="Page address then a load through the same register",
        ),
        FusionRule(
            name="AES+AESMC (crypto)",
            category=SPECIFIC,
            first='AES[ED]',
            second='AESI?MC',
            description="AES round followed by the (inverse) mix-columns step",
        ),
    ),
    missed_patterns=(
        MissedPattern(
            name="CMP separated from B.cond",
            description="CMP and conditional branch have instructions between them, which prevents fusion",
            detect=SeparatedPair('CMP', CONDITIONAL_BRANCH),
            fix_suggestion="Move CMP immediately before the conditional branch to enable fusion",
        ),
        MissedPattern(
            name="ADRP separated from ADD/LDR",
            description="ADRP and ADD/LDR have instructions between them, which prevents Apple fusion",
            detect=SeparatedPair('ADRP', 'ADD|LDR', shared_register=True),
            fix_suggestion="Place ADD/LDR immediately after ADRP for Apple Silicon address generation fusion",
        ),
        MissedPattern(
            name="AES without AESMC",
            description="AES encrypt/decrypt without an immediate AESMC, a missed crypto fusion",
            detect=UnpairedFirst('AES[ED]', 'AESI?MC'),
            fix_suggestion="Place AESMC/AESIMC immediately after AESE/AESD for crypto fusion",
        ),
    ),
)

DEFAULT_CATALOG = APPLE_M_CATALOG.name

_CATALOGS: Dict[str, RuleCatalog] = {APPLE_M_CATALOG.name: APPLE_M_CATALOG}


def register_catalog(catalog: RuleCatalog, replace: bool = False) -> None:
    """Make a catalog available by name"""
    if catalog.name in _CATALOGS and not replace:
        if _CATALOGS[catalog.name] is catalog:
            return
        raise ValueError(f"Catalog already registered: {catalog.name}")
    _CATALOGS[catalog.name] = catalog


def unregister_catalog(name: str) -> Optional[RuleCatalog]:
    if name == DEFAULT_CATALOG:
        return None
    return _CATALOGS.pop(name, None)


def get_catalog(name: Optional[str] = None) -> RuleCatalog:
    """
    Look up a registered catalog.

    Raises:
        ConfigurationError: If no catalog has that name
    """
    name = name or DEFAULT_CATALOG
    try:
        return _CATALOGS[name]
    except KeyError:
        raise create_error("unknown_catalog", name=name) from None


def available_catalogs() -> List[str]:
    return sorted(_CATALOGS)

"""
fusioncheck - ARM64 macro-op fusion analyzer.

Parses disassembly text and reports instruction pairs that fuse on every
ARM64 core, pairs that fuse only on a wider implementation, and sequences
that would fuse if they were scheduled adjacently.
"""

from .__version__ import __version__
from .aggregator import summarize
from .analyzer import FusionAnalyzer
from .config import AnalysisConfig
from .error_handling import (
    FusionCheckError,
    NoInstructionsFound,
    UnresolvedFunctionContext,
    ConfigurationError,
    DisassemblyError,
)
from .models import (
    Instruction,
    Function,
    FusionCategory,
    MatchRecord,
    MissRecord,
    FunctionStats,
    ParseResult,
    AnalysisResult,
    FusionSummary,
)
from .parser import DisassemblyParser, parse_disassembly
from .pipeline import FusionReport, analyze_disassembly
from .rules import (
    FusionRule,
    MissedPattern,
    RuleCatalog,
    APPLE_M_CATALOG,
    available_catalogs,
    get_catalog,
    register_catalog,
)

__all__ = [
    '__version__',
    'summarize',
    'FusionAnalyzer',
    'AnalysisConfig',
    'FusionCheckError',
    'NoInstructionsFound',
    'UnresolvedFunctionContext',
    'ConfigurationError',
    'DisassemblyError',
    'Instruction',
    'Function',
    'FusionCategory',
    'MatchRecord',
    'MissRecord',
    'FunctionStats',
    'ParseResult',
    'AnalysisResult',
    'FusionSummary',
    'DisassemblyParser',
    'parse_disassembly',
    'FusionReport',
    'analyze_disassembly',
    'FusionRule',
    'MissedPattern',
    'RuleCatalog',
    'APPLE_M_CATALOG',
    'available_catalogs',
    'get_catalog',
    'register_catalog',
]

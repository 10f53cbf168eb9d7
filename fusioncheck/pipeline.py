"""Single-call parse, analyze and summarize pipeline"""
import logging
from dataclasses import dataclass
from typing import Optional

from fusioncheck.aggregator import summarize
from fusioncheck.analyzer import FusionAnalyzer
from fusioncheck.config import AnalysisConfig
from fusioncheck.models import AnalysisResult, FusionSummary, ParseResult
from fusioncheck.parser import DisassemblyParser
from fusioncheck.rules import RuleCatalog, get_catalog

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FusionReport:
    """Everything produced by one run, threaded parse -> analyze -> summarize"""
    parse: ParseResult
    result: AnalysisResult
    summary: FusionSummary


def analyze_disassembly(text: str,
                        function_filter: Optional[str] = None,
                        verbose: bool = False,
                        catalog: Optional[RuleCatalog] = None,
                        config: Optional[AnalysisConfig] = None) -> FusionReport:
    """
    Parse disassembly text and report fusion pairs and missed opportunities.

    Args:
        text: Disassembler output
        function_filter: Only scan functions whose name contains this
        verbose: Retain example pairs for display
        catalog: Rule catalog; defaults to the one named in the config
        config: Full run configuration; overrides the keyword shortcuts

    Raises:
        NoInstructionsFound: Empty input, or no instructions left after filtering
        ConfigurationError: Unknown catalog name
    """
    if config is None:
        config = AnalysisConfig(function_filter=function_filter, verbose=verbose)
    if catalog is None:
        catalog = get_catalog(config.catalog_name)

    parsed = DisassemblyParser().parse(text)
    result = FusionAnalyzer(catalog, workers=config.workers).analyze(
        parsed.functions,
        function_filter=config.function_filter,
        low_confidence=parsed.low_confidence,
        warnings=parsed.warnings,
    )
    summary = summarize(result, config, catalog)

    logger.info(
        "%s: %d instructions, %d universal, %d %s-only, %d missed",
        catalog.name, summary.total_instructions, summary.universal_count,
        summary.implementation_specific_count, catalog.target_label, summary.missed_count
    )
    return FusionReport(parse=parsed, result=result, summary=summary)

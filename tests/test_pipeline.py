import logging

import pytest

from fusioncheck.config import AnalysisConfig
from fusioncheck.error_handling import ConfigurationError
from fusioncheck.pipeline import analyze_disassembly
from fusioncheck.rules import RuleCatalog, FusionRule
from fusioncheck.models import FusionCategory

from samples import GNU_OBJDUMP, LLVM_OBJDUMP


def test_report_threads_all_stages() -> None:
    report = analyze_disassembly(GNU_OBJDUMP)

    assert report.parse.function_names == ["main", "helper"]
    assert report.result.total_instructions == report.parse.instruction_count
    assert report.summary.total_instructions == 8
    assert report.summary.throughput_improvement_pct == 25.0


def test_llvm_objdump_pipeline() -> None:
    summary = analyze_disassembly(LLVM_OBJDUMP).summary

    # cmp+b.ne is universal; add+add is not a fusion pair
    assert summary.universal_count == 1
    assert summary.implementation_specific_count == 0
    assert summary.throughput_improvement_pct == round(100 / 6, 2)


def test_function_filter_shortcut() -> None:
    report = analyze_disassembly(GNU_OBJDUMP, function_filter="help")

    assert report.summary.total_instructions == 2
    assert report.summary.total_fusions == 0
    # The parse still sees every function
    assert report.parse.function_names == ["main", "helper"]


def test_explicit_catalog() -> None:
    catalog = RuleCatalog(
        name="adrp-only",
        description="",
        fusion_rules=(FusionRule("ADRP+ADD", FusionCategory.UNIVERSAL, "ADRP", "ADD"),),
    )
    summary = analyze_disassembly(GNU_OBJDUMP, catalog=catalog).summary

    assert summary.catalog_name == "adrp-only"
    assert summary.universal_count == 1
    assert summary.implementation_specific_count == 0


def test_unknown_catalog_name() -> None:
    with pytest.raises(ConfigurationError):
        analyze_disassembly(GNU_OBJDUMP, config=AnalysisConfig(catalog_name="nope"))


def test_summary_is_logged(caplog) -> None:
    with caplog.at_level(logging.INFO, logger="fusioncheck"):
        analyze_disassembly(GNU_OBJDUMP)
    assert "apple-m: 8 instructions, 1 universal, 1 Apple M-series-only, 0 missed" in caplog.text

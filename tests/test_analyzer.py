import json

import pytest
from hypothesis import given, settings, strategies as st

from fusioncheck.analyzer import FusionAnalyzer
from fusioncheck.error_handling import NoInstructionsFound
from fusioncheck.models import Function, FusionCategory, Instruction
from fusioncheck.parser import UNNAMED_FUNCTION, parse_disassembly
from fusioncheck.pipeline import analyze_disassembly
from fusioncheck.rules import APPLE_M_CATALOG, FusionRule, RuleCatalog

from samples import GNU_OBJDUMP, OTOOL, bare, disasm


def analyze(text, **kwargs):
    parsed = parse_disassembly(text)
    return FusionAnalyzer(**kwargs).analyze(parsed.functions)


def test_scenario_a_single_universal_pair() -> None:
    text = disasm(("empty", []), ("hot", ["CMP X0, X1", "B.EQ label"]))
    report = analyze_disassembly(text)

    assert report.result.total_instructions == 2
    assert [m.rule_name for m in report.result.universal_matches] == ["CMP+B.cond"]
    assert report.result.implementation_specific_matches == []
    assert report.result.misses == ()
    match = report.result.matches[0]
    assert match.function == "hot"
    assert match.category is FusionCategory.UNIVERSAL
    assert match.pair_text == "1000:\tCMP X0, X1  →  1004:\tB.EQ label"


def test_scenario_b_compare_separated_from_branch() -> None:
    text = disasm(("f", ["CMP X0, X1", "MOV X2, X3", "B.EQ label"]))
    result = analyze(text)

    assert result.matches == ()
    assert len(result.misses) == 1
    miss = result.misses[0]
    assert miss.pattern_name == "CMP separated from B.cond"
    assert miss.address == "1000"
    assert miss.instruction_text == "1000:\tCMP X0, X1"
    assert "Move CMP immediately before the conditional branch" in miss.fix_suggestion


def test_scenario_c_address_generation_same_register() -> None:
    result = analyze(disasm(("f", ["ADRP X0, sym", "ADD X0, X0, #0x10"])))

    assert [(m.rule_name, m.category) for m in result.matches] == [
        ("ADRP+ADD (address generation)", FusionCategory.IMPLEMENTATION_SPECIFIC)]
    assert result.misses == ()


def test_scenario_c_address_generation_different_register() -> None:
    result = analyze(disasm(("f", ["ADRP X0, sym", "ADD X1, X1, #0x10"])))

    assert result.matches == ()
    assert result.misses == ()


def test_scenario_d_empty_input() -> None:
    with pytest.raises(NoInstructionsFound):
        analyze_disassembly("")


def test_scenario_e_no_header() -> None:
    report = analyze_disassembly(bare("CMP X0, X1", "B.NE out", "ADRP X3, page",
                                      "NOP", "LDR X4, [X3]"))

    assert report.parse.low_confidence
    assert report.result.low_confidence
    assert report.summary.low_confidence
    assert [f.name for f in report.parse.functions] == [UNNAMED_FUNCTION]
    assert report.result.total_instructions == 5
    assert [m.rule_name for m in report.result.matches] == ["CMP+B.cond"]
    assert [m.pattern_name for m in report.result.misses] == ["ADRP separated from ADD/LDR"]


def test_separated_adrp_needs_shared_register() -> None:
    result = analyze(disasm(("f", ["ADRP X3, page", "NOP", "LDR X4, [X5]"])))
    assert result.misses == ()


def test_lookahead_is_bounded_to_three_instructions() -> None:
    result = analyze(disasm(("f", ["CMP X0, X1", "MOV X2, X3", "MOV X4, X5", "B.EQ label"])))
    assert result.misses == ()


def test_aes_pairs_and_unpaired_rounds() -> None:
    result = analyze(disasm(("f", ["AESE V0.16B, V1.16B", "AESMC V0.16B, V0.16B",
                                   "AESD V2.16B, V1.16B", "EOR V0.16B, V0.16B, V2.16B",
                                   "AESE V3.16B, V1.16B"])))

    assert [m.rule_name for m in result.matches] == ["AES+AESMC (crypto)"]
    # The trailing AESE has no successor and is not a miss
    assert [m.address for m in result.misses] == ["1008"]


@pytest.mark.parametrize("body", [
    ["AESD V0.16B, V1.16B"],
    ["MOV X0, X1", "AESE V0.16B, V1.16B"],
    ["CMP X0, X1"],
])
def test_final_instruction_is_never_a_miss(body) -> None:
    result = analyze(disasm(("f", body)))
    assert result.misses == ()
    assert result.per_function[0].missed == 0


def test_every_matching_rule_fires() -> None:
    catalog = RuleCatalog(
        name="overlap",
        description="",
        fusion_rules=(
            FusionRule("CMP+B.cond", FusionCategory.UNIVERSAL, "CMP", r"B\..."),
            FusionRule("CMP+B.EQ", FusionCategory.IMPLEMENTATION_SPECIFIC, "CMP", r"B\.EQ"),
            FusionRule("ANY+B.EQ", FusionCategory.IMPLEMENTATION_SPECIFIC, "[A-Z]+", r"B\.EQ"),
        ),
    )
    result = FusionAnalyzer(catalog).analyze(
        parse_disassembly(disasm(("f", ["CMP X0, X1", "B.EQ label"]))).functions)

    assert [m.rule_name for m in result.matches] == ["CMP+B.cond", "CMP+B.EQ", "ANY+B.EQ"]
    assert result.per_function[0].universal == 1
    assert result.per_function[0].implementation_specific == 2


def test_function_filter_selects_functions_only() -> None:
    text = disasm(("_main", ["CMP X0, X1", "B.EQ a"]),
                  ("_helper", ["SUBS X0, X0, #1", "B.NE b"]),
                  ("_main_loop", ["TST X0, #1", "B.GT c"]))
    parsed = parse_disassembly(text)
    analyzer = FusionAnalyzer()

    filtered = analyzer.analyze(parsed.functions, function_filter="main")
    assert [s.name for s in filtered.per_function] == ["_main", "_main_loop"]
    assert filtered.total_instructions == 4

    full = analyzer.analyze(parsed.functions)
    main_only = [m for m in full.matches if "main" in m.function]
    assert list(filtered.matches) == main_only


def test_filter_matching_nothing() -> None:
    with pytest.raises(NoInstructionsFound) as exc:
        analyze_disassembly(GNU_OBJDUMP, function_filter="does_not_exist")
    assert "does_not_exist" in exc.value.message


def test_per_function_rollup_covers_every_scanned_function() -> None:
    result = analyze(GNU_OBJDUMP)

    assert [(s.name, s.instruction_count) for s in result.per_function] == [("main", 6), ("helper", 2)]
    main = result.by_function()["main"]
    assert (main.universal, main.implementation_specific, main.missed) == (1, 1, 0)


def test_by_function_merges_repeated_names() -> None:
    text = disasm(("dup", ["CMP X0, X1", "B.EQ a"]), ("dup", ["CMN X0, #1", "B.LT b"]))
    merged = analyze(text).by_function()["dup"]
    assert merged.universal == 2
    assert merged.instruction_count == 4


def test_otool_input_end_to_end() -> None:
    result = analyze(OTOOL)
    assert [m.rule_name for m in result.matches] == ["SUBS+B.cond", "AES+AESMC (crypto)"]


def test_analysis_does_not_mutate_functions() -> None:
    parsed = parse_disassembly(GNU_OBJDUMP)
    before = [f.instructions for f in parsed.functions]
    FusionAnalyzer().analyze(parsed.functions)
    assert [f.instructions for f in parsed.functions] == before


def test_workers_do_not_change_output() -> None:
    text = GNU_OBJDUMP + "\n" + disasm(*[
        (f"fn{i}", ["CMP X0, X1", "B.EQ a", "ADRP X1, p", "MOV X2, X3", "ADD X1, X1, #8"])
        for i in range(12)
    ])
    parsed = parse_disassembly(text)

    serial = FusionAnalyzer(workers=1).analyze(parsed.functions)
    threaded = FusionAnalyzer(workers=4).analyze(parsed.functions)
    assert serial == threaded


_BODY = st.lists(
    st.sampled_from([
        "CMP X0, X1", "CMN X0, #1", "TST X0, #1", "ADDS X0, X0, #1", "SUBS X0, X0, #1",
        "ANDS X0, X0, #1", "ADD X0, X0, #1", "SUB X1, X1, #1", "B.EQ a", "B.HS b",
        "B.LO c", "ADRP X0, p", "LDR X0, [X0]", "AESE V0.16B, V1.16B",
        "AESMC V0.16B, V0.16B", "MOV X2, X3", "RET",
    ]),
    min_size=1, max_size=25,
)


@settings(max_examples=50)
@given(st.lists(_BODY, min_size=1, max_size=5))
def test_deterministic_and_partitioned(bodies) -> None:
    text = disasm(*[(f"f{i}", body) for i, body in enumerate(bodies)])

    first = analyze_disassembly(text)
    second = analyze_disassembly(text)
    assert first == second
    assert first.summary.to_dict() == second.summary.to_dict()

    result = first.result
    assert result.total_instructions == sum(len(body) for body in bodies)
    assert all(m.category in set(FusionCategory) for m in result.matches)
    assert len(result.universal_matches) + len(result.implementation_specific_matches) == len(result.matches)
    assert sum(s.universal + s.implementation_specific for s in result.per_function) == len(result.matches)
    assert sum(s.missed for s in result.per_function) == len(result.misses)


def test_engine_accepts_hand_built_functions() -> None:
    cmp_ = Instruction("10", "CMP", "w0, #3", "10: cmp w0, #3")
    beq = Instruction("14", "B.EQ", "0x40", "14: b.eq 0x40")
    result = FusionAnalyzer(APPLE_M_CATALOG).analyze([Function("f", (cmp_, beq))])
    assert result.catalog_name == "apple-m"
    assert result.matches[0].pair_text == "10: cmp w0, #3  →  14: b.eq 0x40"


def test_analysis_result_serializes_to_json() -> None:
    result = analyze_disassembly(bare("CMP X0, X1", "B.NE out", "ADRP X3, page",
                                      "NOP", "LDR X4, [X3]")).result
    data = json.loads(json.dumps(result.to_dict()))

    assert data["catalog"] == "apple-m"
    assert data["total_instructions"] == 5
    assert data["low_confidence"] is True
    assert len(data["warnings"]) == 1
    assert data["matches"] == [{
        "function": UNNAMED_FUNCTION,
        "address": "2000",
        "rule_name": "CMP+B.cond",
        "category": "universal",
        "pair_text": "2000:\tCMP X0, X1  →  2004:\tB.NE out",
    }]
    assert data["misses"][0]["pattern_name"] == "ADRP separated from ADD/LDR"
    assert data["misses"][0]["address"] == "2008"
    assert data["per_function"] == [{
        "name": UNNAMED_FUNCTION,
        "instruction_count": 5,
        "universal": 1,
        "implementation_specific": 0,
        "missed": 1,
    }]

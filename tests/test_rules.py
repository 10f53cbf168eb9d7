import pytest

from fusioncheck.error_handling import ConfigurationError
from fusioncheck.models import FusionCategory, Instruction
from fusioncheck.rules import (
    APPLE_M_CATALOG,
    CONDITION_CODES,
    FusionRule,
    RuleCatalog,
    SeparatedPair,
    UnpairedFirst,
    available_catalogs,
    get_catalog,
    register_catalog,
    shares_register,
    unregister_catalog,
)


def insn(mnemonic: str, operands: str = "") -> Instruction:
    return Instruction(address="0", mnemonic=mnemonic, operands=operands,
                       raw=f"0: {mnemonic.lower()} {operands}")


def test_default_catalog_partition() -> None:
    universal = [r.name for r in APPLE_M_CATALOG.rules_in(FusionCategory.UNIVERSAL)]
    specific = [r.name for r in APPLE_M_CATALOG.rules_in(FusionCategory.IMPLEMENTATION_SPECIFIC)]

    assert universal == ["CMP+B.cond", "CMN+B.cond", "TST+B.cond",
                         "ADDS+B.cond", "SUBS+B.cond", "ANDS+B.cond"]
    assert specific == ["ADD+B.cond", "SUB+B.cond", "ADRP+ADD (address generation)",
                        "ADRP+LDR (address generation)", "AES+AESMC (crypto)"]
    assert len(universal) + len(specific) == len(APPLE_M_CATALOG.fusion_rules)


@pytest.mark.parametrize("cond", CONDITION_CODES)
def test_branch_rules_cover_every_condition_code(cond) -> None:
    rule = get_catalog().fusion_rules[0]
    assert rule.matches(insn("CMP", "x0, x1"), insn(f"B.{cond}", "0x10"))


@pytest.mark.parametrize("mnemonic", ["B", "BL", "CBZ", "B.XX", "BC.EQ"])
def test_branch_rules_reject_other_branches(mnemonic) -> None:
    rule = get_catalog().fusion_rules[0]
    assert not rule.matches(insn("CMP", "x0, x1"), insn(mnemonic, "0x10"))


def test_mnemonic_patterns_match_whole_mnemonic() -> None:
    add_rule = next(r for r in APPLE_M_CATALOG.fusion_rules if r.name == "ADD+B.cond")
    assert add_rule.first_matches("ADD")
    assert not add_rule.first_matches("ADDS")
    assert not add_rule.first_matches("FADD")


def test_address_generation_requires_shared_register() -> None:
    rule = next(r for r in APPLE_M_CATALOG.fusion_rules if r.name.startswith("ADRP+ADD"))
    assert rule.matches(insn("ADRP", "x0, sym"), insn("ADD", "x0, x0, #0x10"))
    assert not rule.matches(insn("ADRP", "x0, sym"), insn("ADD", "x1, x1, #0x10"))


def test_shares_register_is_lexical() -> None:
    # Substring semantics: x1 is "found" inside x10
    assert shares_register(insn("ADRP", "x1, sym"), insn("LDR", "x10, [x10]"))
    assert not shares_register(insn("ADRP", ""), insn("LDR", "x0, [x0]"))


def test_separated_pair_window() -> None:
    detect = SeparatedPair("CMP", "B\\.EQ")
    assert detect([insn("CMP"), insn("MOV"), insn("B.EQ")])
    assert not detect([insn("CMP"), insn("B.EQ")])
    assert not detect([insn("CMP"), insn("MOV"), insn("MOV")])
    assert not detect([insn("MOV"), insn("MOV"), insn("B.EQ")])
    assert not detect([])


def test_unpaired_first_window() -> None:
    detect = UnpairedFirst("AES[ED]", "AESI?MC")
    assert detect([insn("AESE"), insn("EOR")])
    assert detect([insn("AESD")])
    assert not detect([insn("AESD"), insn("AESIMC")])
    assert not detect([insn("AESMC")])


def test_catalog_registry() -> None:
    assert "apple-m" in available_catalogs()
    assert get_catalog() is APPLE_M_CATALOG

    with pytest.raises(ConfigurationError):
        get_catalog("no-such-core")

    custom = RuleCatalog(
        name="test-only",
        description="",
        fusion_rules=(FusionRule("MOV+RET", FusionCategory.UNIVERSAL, "MOV", "RET"),),
    )
    register_catalog(custom)
    try:
        assert get_catalog("test-only") is custom
        register_catalog(custom)  # same object again is a no-op
        with pytest.raises(ValueError):
            register_catalog(RuleCatalog(
                name="test-only", description="", fusion_rules=()))
    finally:
        unregister_catalog("test-only")
    assert "test-only" not in available_catalogs()


def test_catalog_to_dict() -> None:
    data = APPLE_M_CATALOG.to_dict()
    assert data["baseline"] == {"label": "Neoverse-N1", "max_fusions_per_cycle": 1}
    assert data["target"]["max_fusions_per_cycle"] == 3
    assert data["fusion_rules"][8]["shared_register"] is True
    assert [p["name"] for p in data["missed_patterns"]] == [
        "CMP separated from B.cond", "ADRP separated from ADD/LDR", "AES without AESMC"]

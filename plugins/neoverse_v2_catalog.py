"""
Example catalog plugin for fusioncheck.

Models a Neoverse-N1 baseline against a Neoverse-V2 style core that also
fuses wide-immediate construction and compare-select pairs. Load it with:

    fusioncheck --plugin-dir plugins --catalog neoverse-v2 --objdump disasm.txt
"""

from fusioncheck.models import FusionCategory
from fusioncheck.plugins import CatalogPlugin
from fusioncheck.rules import (
    FusionRule,
    MissedPattern,
    RuleCatalog,
    SeparatedPair,
    UnpairedFirst,
    branch_fusion,
)

UNIVERSAL = FusionCategory.UNIVERSAL
SPECIFIC = FusionCategory.IMPLEMENTATION_SPECIFIC


class NeoverseV2Catalog(CatalogPlugin):
    """Rule catalog for a Neoverse-V2 style target."""

    def get_name(self) -> str:
        return "NeoverseV2Catalog"

    def get_version(self) -> str:
        return "1.0.0"

    def get_description(self) -> str:
        return "Neoverse-N1 baseline versus a Neoverse-V2 style core"

    def get_author(self) -> str:
        return "fusioncheck contributors"

    def get_catalog(self) -> RuleCatalog:
        return RuleCatalog(
            name="neoverse-v2",
            description=self.get_description(),
            baseline_label="Neoverse-N1",
            target_label="Neoverse-V2",
            baseline_fusions_per_cycle=1,
            target_fusions_per_cycle=2,
            fusion_rules=(
                branch_fusion('CMP', UNIVERSAL),
                branch_fusion('CMN', UNIVERSAL),
                branch_fusion('TST', UNIVERSAL),
                branch_fusion('ADDS', UNIVERSAL),
                branch_fusion('SUBS', UNIVERSAL),
                branch_fusion('ANDS', UNIVERSAL),
                FusionRule(
                    name="AES+AESMC (crypto)",
                    category=SPECIFIC,
                    first='AES[ED]',
                    second='AESI?MC',
                ),
                FusionRule(
                    name="MOVZ+MOVK (wide immediate)",
                    category=SPECIFIC,
                    first='MOVZ?',
                    second='MOVK',
                    shared_register=True,
                ),
                FusionRule(
                    name="CMP+CSEL (conditional select)",
                    category=SPECIFIC,
                    first='CMP',
                    second='CSEL|CSET|CSINC',
                ),
            ),
            missed_patterns=(
                MissedPattern(
                    name="AES without AESMC",
                    description="AES round not directly followed by its mix-columns step",
                    detect=UnpairedFirst('AES[ED]', 'AESI?MC'),
                    fix_suggestion="Place AESMC/AESIMC immediately after AESE/AESD for crypto fusion",
                ),
                MissedPattern(
                    name="MOVZ separated from MOVK",
                    description="Wide immediate built with instructions in between",
                    detect=SeparatedPair('MOVZ?', 'MOVK', shared_register=True),
                    fix_suggestion="Emit MOVK directly after the MOVZ/MOV that starts the constant",
                ),
            ),
        )

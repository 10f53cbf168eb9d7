"""Output formatter for fusion analysis summaries"""
import json
from typing import List

from fusioncheck.models import FusionCategory, FusionSummary, MatchRecord


class ReportFormatter:
    """Formats a FusionSummary as a Markdown report or JSON"""

    def format(self, summary: FusionSummary, output_format: str = 'markdown') -> str:
        if output_format == 'json':
            return self.format_json(summary)
        return self.format_markdown(summary)

    def format_json(self, summary: FusionSummary) -> str:
        return json.dumps(summary.to_dict(), indent=2, ensure_ascii=False)

    def format_markdown(self, summary: FusionSummary) -> str:
        """
        Format the summary into a Markdown report.

        Sections: summary table, per-function breakdown, fusion pairs by
        category, missed opportunities, and the cross-platform comparison.
        Example pairs only appear when the summary retained them.
        """
        output_lines: List[str] = []
        add_line = output_lines.append
        baseline = summary.baseline_label
        target = summary.target_label

        add_line("# ARM64 Macro-op Fusion Analysis")
        add_line("")
        add_line(f"Total instructions analyzed: {summary.total_instructions:,}")
        add_line("")

        if summary.low_confidence:
            add_line("> ⚠️ **Low confidence:** instructions appeared before any function header; "
                     "per-function numbers may be unreliable.")
            add_line("")

        add_line("## Summary")
        add_line("")
        add_line("| Category | Count | Effect |")
        add_line("|----------|-------|--------|")
        add_line(f"| Standard fusion ({baseline} + {target}) | {summary.universal_count} "
                 f"| Fuses on all modern ARM |")
        add_line(f"| {target}-specific fusion | {summary.implementation_specific_count} "
                 f"| Fuses ONLY on {target} |")
        add_line(f"| Missed opportunities | {summary.missed_count} "
                 f"| Could fuse but instructions not adjacent |")
        add_line("")

        if summary.saved_decode_slots > 0:
            add_line(f"**Theoretical throughput improvement from fusion:** "
                     f"{summary.throughput_improvement_pct:.2f}%")
            add_line(f"({summary.saved_decode_slots} decode slots saved across "
                     f"{summary.total_instructions} instructions)")
            if summary.implementation_specific_count > 0:
                add_line(f"**{target} advantage:** +{summary.implementation_advantage_pct:.2f}% "
                         f"additional fusion vs {baseline}")
            add_line("")

        if summary.worst_functions:
            add_line("## Per-Function Breakdown")
            add_line("")
            for stats in summary.worst_functions:
                add_line(f"- **{stats.name}**: {stats.universal} standard, "
                         f"{stats.implementation_specific} {target}-specific, {stats.missed} missed")
            add_line("")

        self._add_category(
            output_lines, summary, FusionCategory.UNIVERSAL,
            f"## Standard Fusion Pairs ({baseline} + {target})",
            summary.universal_examples,
        )
        self._add_category(
            output_lines, summary, FusionCategory.IMPLEMENTATION_SPECIFIC,
            f"## {target}-Specific Fusion (not on {baseline})",
            summary.implementation_specific_examples,
        )

        if summary.counts_by_pattern:
            add_line("## Missed Fusion Opportunities")
            add_line("")
            add_line("These instruction sequences could fuse if rearranged:")
            add_line("")
            for pattern, count in summary.counts_by_pattern:
                add_line(f"### {pattern} ({count}×)")
                add_line(f"**Fix:** {summary.fix_suggestions.get(pattern, '')}")
                for miss in summary.miss_examples.get(pattern, []):
                    add_line(f"  - {miss.function}@{miss.address}: {miss.instruction_text}")
                add_line("")

        add_line("## Cross-Platform Comparison")
        add_line("")
        add_line(f"| Metric | {baseline} | {target} |")
        add_line("|--------|" + "-" * (len(baseline) + 2) + "|" + "-" * (len(target) + 2) + "|")
        add_line(f"| Standard fusions | {summary.universal_count} | {summary.universal_count} |")
        add_line(f"| {target}-specific fusions | 0 | {summary.implementation_specific_count} |")
        add_line(f"| Total fusions | {summary.universal_count} | {summary.total_fusions} |")
        add_line(f"| Max fusions/cycle | {summary.baseline_fusions_per_cycle} "
                 f"| {summary.target_fusions_per_cycle} |")
        add_line(f"| Effective saved decode slots | {summary.universal_count} "
                 f"| {summary.total_fusions} |")
        add_line("")

        return "\n".join(output_lines)

    def _add_category(self, output_lines: List[str], summary: FusionSummary,
                      category: FusionCategory, title: str,
                      examples: List[MatchRecord]) -> None:
        counts = summary.rule_counts_for(category)
        if not counts:
            return
        output_lines.append(title)
        output_lines.append("")
        for rule, count in counts:
            output_lines.append(f"- {rule}: {count}×")
        if examples:
            output_lines.append("")
            for match in examples:
                output_lines.append(f"  [{match.function}@{match.address}] {match.rule_name}: {match.pair_text}")
        output_lines.append("")

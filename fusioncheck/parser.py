"""Disassembly parser for ARM64 objdump, llvm-objdump and otool output"""
import logging
import re
from typing import List, Optional, Tuple

from fusioncheck.error_handling import NoInstructionsFound, UnresolvedFunctionContext
from fusioncheck.models import Function, Instruction, ParseResult

logger = logging.getLogger(__name__)

UNNAMED_FUNCTION = "unnamed"

# "0000000100003f40 <_main>:" and "0000000100003f40 [_main]:"
_SYMBOL_HEADER = re.compile(r'^[0-9a-fA-F]+\s+(?:<(.+)>|\[(.+)\]):\s*$')

# "_main:" alone on the line
_LABEL_HEADER = re.compile(r'^([^\s:]+):\s*$')

# "  400544:  d10083ff  sub  sp, sp, #0x20"   (GNU objdump)
# "100003f44: ff 83 00 d1   sub  sp, sp, #0x20" (llvm-objdump; unindented past 8 digits)
# "  100003f44:  sub  sp, sp, #0x20"
_COLON_INSTRUCTION = re.compile(
    r'^\s*(?:0x)?([0-9a-fA-F]+):\s+'
    r'(?:(?:[0-9a-fA-F]{8}|[0-9a-fA-F]{2}(?: [0-9a-fA-F]{2}){3})\s+)?'
    r'([A-Za-z][\w.]*)\s*(.*)$'
)

# otool -tvV: "0000000100003f44\tsub\tsp, sp, #0x20"
_OTOOL_INSTRUCTION = re.compile(r'^([0-9a-fA-F]{8,16})\s+([A-Za-z][\w.]*)\s*(.*)$')


class DisassemblyParser:
    """Parses disassembler text into Functions of Instructions"""

    def parse(self, text: str) -> ParseResult:
        """
        Parse disassembly text in a single forward pass.

        Header lines open a new function, instruction lines append to the
        current one, and every other line is skipped without closing the
        function. Instructions seen before any header are collected under
        a synthetic function and the result is marked low-confidence.

        Args:
            text: Output of objdump, llvm-objdump or otool

        Returns:
            ParseResult with functions in source order

        Raises:
            NoInstructionsFound: If no instruction line was recognized
        """
        functions: List[Function] = []
        warnings: List[str] = []
        current_name: Optional[str] = None
        current: List[Instruction] = []
        low_confidence = False
        lines_read = 0
        skipped = 0

        for line_number, line in enumerate(text.splitlines(), start=1):
            lines_read += 1

            header = self.parse_header(line)
            if header is not None:
                if current_name is not None:
                    functions.append(Function(current_name, tuple(current)))
                current_name = header
                current = []
                continue

            instruction = self.parse_instruction(line)
            if instruction is None:
                skipped += 1
                continue

            if current_name is None:
                current_name = UNNAMED_FUNCTION
                low_confidence = True
                warning = UnresolvedFunctionContext(
                    f"Instruction at line {line_number} appears before any function header; "
                    f"collecting under '{UNNAMED_FUNCTION}'",
                    suggestion="Per-function rollups may be unreliable for this input."
                )
                warnings.append(warning.message)
                logger.warning(warning.message)
            current.append(instruction)

        if current_name is not None:
            functions.append(Function(current_name, tuple(current)))

        result = ParseResult(
            functions=tuple(functions),
            low_confidence=low_confidence,
            warnings=tuple(warnings),
            lines_read=lines_read,
            skipped_lines=skipped,
        )

        if result.instruction_count == 0:
            raise NoInstructionsFound(
                f"No instructions found in disassembly ({lines_read} lines read)"
            )

        logger.debug(
            "Parsed %d instructions in %d functions (%d lines skipped)",
            result.instruction_count, len(result.functions), skipped
        )
        return result

    def parse_header(self, line: str) -> Optional[str]:
        """Return the function name if the line is a function header"""
        if not line or line[0].isspace():
            return None

        match = _SYMBOL_HEADER.match(line)
        if match:
            return match.group(1) or match.group(2)

        match = _LABEL_HEADER.match(line)
        if match:
            return match.group(1)

        return None

    def parse_instruction(self, line: str) -> Optional[Instruction]:
        """
        Parse a single instruction line.

        Accepts the colon form with or without a machine-code column, and
        the unindented otool form. The mnemonic is upper-cased here so rule
        predicates never deal with case.

        Returns:
            Instruction or None if the line is not an instruction
        """
        fields = self._split_instruction(line)
        if fields is None:
            return None

        address, mnemonic, operands = fields
        return Instruction(
            address=address.lower(),
            mnemonic=mnemonic.upper(),
            operands=operands.strip(),
            raw=line.strip(),
        )

    def _split_instruction(self, line: str) -> Optional[Tuple[str, str, str]]:
        match = _COLON_INSTRUCTION.match(line)
        if match is None and line and not line[0].isspace():
            match = _OTOOL_INSTRUCTION.match(line)
        if match is None:
            return None
        return match.group(1), match.group(2), match.group(3)


def parse_disassembly(text: str) -> ParseResult:
    """Convenience wrapper around DisassemblyParser.parse"""
    return DisassemblyParser().parse(text)

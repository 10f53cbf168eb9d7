"""Runs an external disassembler to produce text for the parser"""
import logging
import shutil
import subprocess
from typing import Optional, Sequence

from fusioncheck.error_handling import ErrorContext, create_error

logger = logging.getLogger(__name__)

# Preference order; otool only understands Mach-O
DISASSEMBLERS = ('llvm-objdump', 'objdump', 'otool')
DEFAULT_TIMEOUT = 120


def find_disassembler(candidates: Sequence[str] = DISASSEMBLERS) -> Optional[str]:
    """Return the first available disassembler on PATH, or None"""
    for tool in candidates:
        if shutil.which(tool):
            return tool
    return None


def build_command(tool: str, binary: str, function: Optional[str] = None) -> list:
    """Command line for the given tool"""
    if tool.endswith('otool'):
        return [tool, '-tvV', binary]
    if function:
        return [tool, '-d', f'--disassemble-symbols={function}', binary]
    return [tool, '-d', binary]


def disassemble(binary: str,
                function: Optional[str] = None,
                tool: Optional[str] = None,
                timeout: int = DEFAULT_TIMEOUT) -> str:
    """
    Disassemble a binary and return the tool's text output.

    Args:
        binary: Path to the ARM64 binary
        function: Restrict objdump output to this symbol
        tool: Disassembler to run (auto-detected if omitted)
        timeout: Seconds before the tool is abandoned

    Raises:
        DisassemblyError: No tool, non-zero exit, or timeout
    """
    context = ErrorContext(binary_path=binary)
    tool = tool or find_disassembler()
    if tool is None:
        raise create_error("no_disassembler", tools=", ".join(DISASSEMBLERS), context=context)

    cmd = build_command(tool, binary, function)
    logger.info("Disassembling with: %s", " ".join(cmd))

    try:
        result = subprocess.run(
            cmd,
            capture_output=True,
            text=True,
            timeout=timeout
        )
    except subprocess.TimeoutExpired as e:
        error = create_error("disassembly_timeout", tool=tool, timeout=timeout,
                             path=binary, context=context)
        error.original_exception = e
        raise error from e
    except OSError as e:
        error = create_error("no_disassembler", tools=tool, context=context)
        error.original_exception = e
        raise error from e

    if result.returncode != 0:
        error = create_error("disassembly_failed", tool=tool, path=binary,
                             returncode=result.returncode, context=context)
        if result.stderr:
            error.context.additional_info = {'stderr': result.stderr.strip()[:500]}
        raise error

    return result.stdout

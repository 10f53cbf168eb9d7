"""Input handler for reading disassembly text from files or stdin"""
import sys
from pathlib import Path
from typing import Tuple

from fusioncheck.error_handling import ErrorContext, InputError, create_error


class InputHandler:
    """Reads disassembly text from files or standard input"""

    def __init__(self, show_stats: bool = True):
        self.show_stats = show_stats

    def read_from_file(self, filepath: str) -> str:
        """
        Read disassembly text from a file.

        Empty files are returned as-is; the parser decides whether the
        content holds any instructions.

        Raises:
            InputError: If the path is missing, not a file, or unreadable
        """
        path = Path(filepath)

        if not path.exists():
            raise create_error("file_not_found", path=filepath,
                               context=ErrorContext(file=filepath))

        if not path.is_file():
            raise InputError(f"Not a file: {filepath}", context=ErrorContext(file=filepath))

        try:
            return path.read_text(encoding='utf-8', errors='replace')
        except OSError as e:
            raise InputError(f"Cannot read file: {filepath}",
                             context=ErrorContext(file=filepath),
                             original_exception=e) from e

    def read_from_stdin(self) -> Tuple[str, dict]:
        """
        Read disassembly text from standard input.

        Returns:
            Tuple of (text, stats_dict)
        """
        if self.show_stats:
            print("📥 Reading disassembly from stdin...", file=sys.stderr)

        content = sys.stdin.read()
        stats = {
            'lines': len(content.splitlines()),
            'bytes': len(content),
            'source': 'stdin'
        }

        if self.show_stats:
            print(f"✓ Read {stats['lines']} lines from stdin", file=sys.stderr)

        return content, stats

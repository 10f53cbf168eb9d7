#!/usr/bin/env python3
"""
fusioncheck - ARM64 Macro-op Fusion Analyzer

Finds instruction pairs that fuse on every ARM64 core, pairs that fuse only
on a wider implementation, and sequences that would fuse if reordered.
"""

import argparse
import sys
from pathlib import Path
from typing import List, Optional

from fusioncheck.config import AnalysisConfig
from fusioncheck.disassembler import disassemble
from fusioncheck.error_handling import FusionCheckError, get_error_handler
from fusioncheck.formatter import ReportFormatter
from fusioncheck.input_handler import InputHandler
from fusioncheck.pipeline import analyze_disassembly
from fusioncheck.plugins import PluginManager
from fusioncheck.rules import available_catalogs, get_catalog


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='fusioncheck',
        description='🔍 fusioncheck - ARM64 macro-op fusion analyzer',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
📖 QUICK START:

  Disassemble and analyze a binary:
    fusioncheck ./mybinary

  Analyze existing disassembly:
    fusioncheck --objdump disasm.txt
    llvm-objdump -d ./mybinary | fusioncheck -

  Focus on one function and show example pairs:
    fusioncheck ./mybinary --function main --verbose

  Other microarchitectures:
    fusioncheck --plugin-dir plugins --list-rules
    fusioncheck --plugin-dir plugins --catalog neoverse-v2 --objdump disasm.txt

  JSON API:
    fusioncheck --web --port 8080
        """
    )

    parser.add_argument(
        'file',
        nargs='?',
        type=str,
        help="ARM64 binary to disassemble, or '-' to read disassembly from stdin"
    )

    source = parser.add_argument_group('📥 Input Options')
    source.add_argument(
        '--objdump',
        type=str,
        metavar='FILE',
        help='Analyze existing disassembler output instead of a binary'
    )
    source.add_argument(
        '--disassembler',
        type=str,
        metavar='TOOL',
        help='Disassembler to run on the binary (default: llvm-objdump, objdump, otool)'
    )

    analysis = parser.add_argument_group('🔬 Analysis Options')
    analysis.add_argument(
        '--function', '-f',
        type=str,
        metavar='NAME',
        help='Only analyze functions whose name contains NAME'
    )
    analysis.add_argument(
        '--catalog',
        type=str,
        metavar='NAME',
        help='Rule catalog to apply (default: apple-m)'
    )
    analysis.add_argument(
        '--plugin-dir',
        type=str,
        metavar='DIR',
        help='Load catalog plugins from DIR'
    )
    analysis.add_argument(
        '--list-rules',
        action='store_true',
        help='List the available catalogs and their rules, then exit'
    )
    analysis.add_argument(
        '--workers',
        type=int,
        default=1,
        metavar='N',
        help='Analyze functions on N worker threads'
    )

    output = parser.add_argument_group('💾 Output Options')
    output.add_argument(
        '--verbose', '-v',
        action='store_true',
        help='Include example fusion pairs in the report'
    )
    output.add_argument(
        '--format',
        choices=['markdown', 'json'],
        default='markdown',
        help='Report format (default: markdown)'
    )
    output.add_argument(
        '--output', '-o',
        type=str,
        metavar='FILE',
        help='Write the report to FILE instead of stdout'
    )
    output.add_argument(
        '--debug',
        action='store_true',
        help='Verbose logging and tracebacks'
    )

    web = parser.add_argument_group('🌐 Web API')
    web.add_argument(
        '--web',
        action='store_true',
        help='Serve the JSON analysis API instead of running once'
    )
    web.add_argument(
        '--port',
        type=int,
        default=8080,
        help='Port for --web (default: 8080)'
    )

    return parser


def read_input(input_handler: InputHandler, args: argparse.Namespace) -> str:
    """
    Produce disassembly text from the selected source.

    Raises:
        InputError: Missing input file
        DisassemblyError: The disassembler could not be run
    """
    if args.objdump:
        return input_handler.read_from_file(args.objdump)
    if args.file and args.file != '-':
        return disassemble(args.file, function=args.function, tool=args.disassembler)
    content, _ = input_handler.read_from_stdin()
    return content


def list_rules() -> str:
    lines = []
    for name in available_catalogs():
        catalog = get_catalog(name)
        lines.append(f"## {catalog.name}: {catalog.description}")
        for rule in catalog.fusion_rules:
            lines.append(f"- [{rule.category.value}] {rule.name}")
        for pattern in catalog.missed_patterns:
            lines.append(f"- [missed] {pattern.name}: {pattern.fix_suggestion}")
        lines.append("")
    return "\n".join(lines)


def write_output(output: str, output_path: Optional[str] = None):
    """
    Write the report to a file or stdout.

    Raises:
        IOError: If output file cannot be written
    """
    if output_path:
        try:
            Path(output_path).write_text(output, encoding='utf-8')
        except OSError as e:
            raise IOError(f"Cannot write to output file: {output_path}") from e
        print(f"Report written to {output_path}", file=sys.stderr)
    else:
        print(output)


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for the fusioncheck CLI"""
    parser = build_parser()
    args = parser.parse_args(argv)
    handler = get_error_handler(debug_mode=args.debug)

    try:
        if args.plugin_dir:
            loaded = PluginManager(args.plugin_dir).load_all_plugins()
            handler.log_info(f"Loaded {loaded} catalog plugin(s) from {args.plugin_dir}")

        if args.list_rules:
            write_output(list_rules(), args.output)
            return 0

        config = AnalysisConfig.from_args(args)

        if args.web:
            from fusioncheck.web.server import FusionWebServer
            FusionWebServer(config).run(port=args.port)
            return 0

        if not args.file and not args.objdump and sys.stdin.isatty():
            parser.print_usage(sys.stderr)
            print("error: provide a binary, --objdump FILE, or '-' for stdin", file=sys.stderr)
            return 1

        text = read_input(InputHandler(show_stats=args.debug), args)
        report = analyze_disassembly(text, config=config)
        write_output(ReportFormatter().format(report.summary, config.output_format), args.output)
        return 0

    except FusionCheckError as e:
        handler.handle_error(e)
        return 1
    except IOError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    except KeyboardInterrupt:
        print("\nOperation cancelled by user", file=sys.stderr)
        return 130


if __name__ == '__main__':
    sys.exit(main())

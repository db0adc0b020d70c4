"""Main CLI entry point for the tagtree command-line tool.

Provides commands to parse documents into trees and print them, to validate
documents without printing them, and to reformat a document as indented
markup.
"""

import argparse
import json
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional

from tagtree import __version__
from tagtree.api import parse_file
from tagtree.shared.config import ConfigError, OutputConfig, ParserConfig
from tagtree.shared.logging import configure_logging, get_logger
from tagtree.shared.result import DiagnosticSeverity
from tagtree.tools.profiling import ParseProfiler
from tagtree.tree import OutputFormat, ParseResult, TreeRenderer

PRESETS = ["strict", "lenient", "untrusted"]
MAX_ERRORS_SHOWN = 3


class CLIConfig:
    """Configuration management for CLI operations."""

    def __init__(self, parser_config: Optional[ParserConfig] = None):
        self.parser_config = parser_config or ParserConfig.strict()
        self.output_format = self.parser_config.output.default_format
        self.verbose = False
        self.quiet = False

    @classmethod
    def from_file(cls, config_path: Path) -> "CLIConfig":
        """Load a ParserConfig from a JSON file.

        Raises:
            ConfigError: The file cannot be read or holds invalid settings
        """
        try:
            content = config_path.read_text(encoding="utf-8")
        except OSError as e:
            raise ConfigError(f"Could not read config file {config_path}: {e}") from e
        return cls(ParserConfig.from_json(content))

    @classmethod
    def from_args(cls, args: argparse.Namespace) -> "CLIConfig":
        """Build the configuration selected by ``--config`` or ``--preset``."""
        config_path = getattr(args, "config", None)
        if config_path is not None:
            config = cls.from_file(config_path)
        else:
            config = cls(ParserConfig.from_preset(getattr(args, "preset", None) or "strict"))

        output_format = getattr(args, "format", None)
        if output_format in {f.value for f in OutputFormat}:
            config.output_format = output_format
        config.verbose = args.verbose
        config.quiet = args.quiet
        return config


class DocumentProcessor:
    """Core document processing logic for CLI operations."""

    def __init__(self, config: CLIConfig, profiler: Optional[ParseProfiler] = None):
        self.config = config
        self.profiler = profiler
        self.logger = get_logger(__name__, None, "cli_processor")

    def process_single_file(self, file_path: Path) -> ParseResult:
        """Parse one file; failures come back inside the result."""
        if self.profiler is not None:
            return self.profiler.profile_file(file_path, config=self.config.parser_config)
        return parse_file(file_path, config=self.config.parser_config)

    def describe(self, file_path: Path, result: ParseResult) -> Dict[str, Any]:
        """Summarize a result for validation output."""
        errors = [
            diag.message for diag in result.diagnostics
            if diag.severity in (DiagnosticSeverity.ERROR, DiagnosticSeverity.CRITICAL)
        ]
        description: Dict[str, Any] = {
            "file": str(file_path),
            "valid": result.success,
            "element_count": result.element_count,
            "max_depth": result.document.max_depth if result.document else 0,
            "warnings": len(result.get_diagnostics_by_severity(DiagnosticSeverity.WARNING)),
            "errors": len(errors),
            "processing_time_ms": result.performance.processing_time_ms,
        }
        if errors:
            description["error_details"] = errors
        return description

    def report_problems(self, file_path: Path, result: ParseResult) -> None:
        """Print errors, and warnings unless quiet, to stderr."""
        for diag in result.diagnostics:
            if diag.severity in (DiagnosticSeverity.ERROR, DiagnosticSeverity.CRITICAL):
                print(f"{file_path}: error: {diag.message}", file=sys.stderr)
            elif diag.severity is DiagnosticSeverity.WARNING and not self.config.quiet:
                print(f"{file_path}: warning: {diag.message}", file=sys.stderr)


def create_argument_parser() -> argparse.ArgumentParser:
    """Create the main argument parser."""
    parser = argparse.ArgumentParser(
        prog="tagtree",
        description="Parse restricted markup documents into element and text trees"
    )

    parser.add_argument("--version", action="version", version=__version__)

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # Parse command
    parse_parser = subparsers.add_parser("parse", help="Parse documents and print their trees")
    parse_parser.add_argument(
        "paths",
        nargs="+",
        type=Path,
        help="Documents to parse"
    )
    parse_parser.add_argument(
        "--format", "-f",
        choices=[f.value for f in OutputFormat],
        default=None,
        help="Output format (default: from configuration, markup)"
    )
    parse_parser.add_argument(
        "--output", "-o",
        type=Path,
        help="Output file (default: stdout)"
    )
    parse_parser.add_argument(
        "--profile",
        action="store_true",
        help="Print timing and memory figures to stderr"
    )
    _add_config_arguments(parse_parser)

    # Validate command
    validate_parser = subparsers.add_parser("validate", help="Check documents are well formed")
    validate_parser.add_argument(
        "paths",
        nargs="+",
        type=Path,
        help="Documents to validate"
    )
    validate_parser.add_argument(
        "--format", "-f",
        choices=["json", "text"],
        default="text",
        help="Report format"
    )
    _add_config_arguments(validate_parser)

    # Format command
    format_parser = subparsers.add_parser("format", help="Print a document as indented markup")
    format_parser.add_argument(
        "path",
        type=Path,
        help="Document to reformat"
    )
    format_parser.add_argument(
        "--indent",
        type=int,
        default=2,
        help="Spaces per nesting level (default: 2)"
    )
    _add_config_arguments(format_parser)

    # Global options
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Verbose output"
    )
    parser.add_argument(
        "--quiet", "-q",
        action="store_true",
        help="Quiet output"
    )

    return parser


def _add_config_arguments(subparser: argparse.ArgumentParser) -> None:
    group = subparser.add_mutually_exclusive_group()
    group.add_argument(
        "--preset",
        choices=PRESETS,
        default=None,
        help="Parser configuration preset (default: strict)"
    )
    group.add_argument(
        "--config", "-c",
        type=Path,
        help="JSON configuration file"
    )


def _setup_logging(config: CLIConfig) -> None:
    if config.verbose:
        configure_logging("DEBUG")
    elif config.quiet:
        configure_logging("ERROR")
    else:
        configure_logging(config.parser_config.global_.logging_level)


def format_validation(results: List[Dict[str, Any]], format_type: str) -> str:
    """Format validation results for output."""
    if format_type == "json":
        return json.dumps(results, indent=2)

    valid_count = sum(1 for r in results if r.get("valid", False))
    lines = [f"Validated {len(results)} files, {valid_count} valid", "-" * 50]
    for result in results:
        status = "✓" if result.get("valid", False) else "✗"
        lines.append(f"{status} {result['file']}")
        details = result.get("error_details", [])
        for error in details[:MAX_ERRORS_SHOWN]:
            lines.append(f"   Error: {error}")
        if len(details) > MAX_ERRORS_SHOWN:
            lines.append(f"   ... and {len(details) - MAX_ERRORS_SHOWN} more errors")
    return "\n".join(lines)


def cmd_parse(args: argparse.Namespace) -> int:
    """Handle parse command."""
    config = CLIConfig.from_args(args)
    _setup_logging(config)

    profiler = ParseProfiler() if args.profile else None
    processor = DocumentProcessor(config, profiler)
    renderer = TreeRenderer(config.parser_config.output)

    blocks = []
    failures = 0
    for path in args.paths:
        result = processor.process_single_file(path)
        processor.report_problems(path, result)
        if not result.success:
            failures += 1
            continue
        rendered = renderer.render(result.document, config.output_format)
        if len(args.paths) > 1:
            rendered = f"==> {path} <==\n{rendered}"
        blocks.append(rendered)

    formatted_output = "\n".join(blocks)
    if args.output:
        try:
            args.output.write_text(formatted_output + "\n", encoding="utf-8")
        except OSError as e:
            print(f"Error writing output: {e}", file=sys.stderr)
            return 1
        if not config.quiet:
            print(f"Results written to {args.output}", file=sys.stderr)
    elif blocks:
        print(formatted_output)

    if profiler is not None:
        print(profiler.generate_report().format_summary(), file=sys.stderr)

    return 0 if failures == 0 else 1


def cmd_validate(args: argparse.Namespace) -> int:
    """Handle validate command."""
    config = CLIConfig.from_args(args)
    _setup_logging(config)

    processor = DocumentProcessor(config)
    results = []
    for path in args.paths:
        result = processor.process_single_file(path)
        results.append(processor.describe(path, result))

    print(format_validation(results, args.format))

    valid_count = sum(1 for r in results if r.get("valid", False))
    return 0 if valid_count == len(results) else 1


def cmd_format(args: argparse.Namespace) -> int:
    """Handle format command."""
    if args.indent < 0:
        print("Error: --indent must be >= 0", file=sys.stderr)
        return 1

    config = CLIConfig.from_args(args)
    _setup_logging(config)

    processor = DocumentProcessor(config)
    result = processor.process_single_file(args.path)
    processor.report_problems(args.path, result)
    if not result.success:
        return 1

    renderer = TreeRenderer(OutputConfig(indent=" " * args.indent))
    print(renderer.render(result.document, OutputFormat.PRETTY))
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    """Main CLI entry point."""
    parser = create_argument_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 1

    # Route to appropriate command handler
    try:
        if args.command == "parse":
            return cmd_parse(args)
        elif args.command == "validate":
            return cmd_validate(args)
        elif args.command == "format":
            return cmd_format(args)
        else:
            print(f"Unknown command: {args.command}", file=sys.stderr)
            return 1

    except ConfigError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return 1

    except KeyboardInterrupt:
        print("\nOperation interrupted by user", file=sys.stderr)
        return 130  # Standard exit code for SIGINT


if __name__ == "__main__":
    sys.exit(main())

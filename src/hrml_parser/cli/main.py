"""Main CLI entry point for the hrml-query command-line tool.

The ``query`` command is the batch driver: it reads a header line ``N Q``,
then N lines of markup and Q queries, and prints one result per query. The
``tokens`` and ``tree`` commands dump intermediate stages for a markup file.
"""

import argparse
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, TextIO

from hrml_parser import __version__
from hrml_parser.api import HRMLParser
from hrml_parser.shared import (
    BatchInputError,
    ConfigError,
    HRMLError,
    ParserConfig,
    configure_logging,
    get_logger,
)
from hrml_parser.tokenization import HRMLTokenizer

logger = get_logger(__name__, component="cli")


@dataclass
class BatchInput:
    """Markup document and queries read from one batch input."""

    document: str
    queries: List[str] = field(default_factory=list)


def _read_line(stream: TextIO, line_number: int, what: str) -> str:
    line = stream.readline()
    if not line:
        raise BatchInputError(f"unexpected end of input, expected {what}", line_number)
    return line.rstrip("\r\n")


def read_batch(stream: TextIO) -> BatchInput:
    """Read the ``N Q`` batch layout from a text stream.

    Raises:
        BatchInputError: If the header is malformed or lines are missing
    """
    header = _read_line(stream, 1, "'N Q' header").split()
    if len(header) != 2:
        raise BatchInputError("header must hold exactly two integers 'N Q'", 1)
    try:
        line_count, query_count = int(header[0]), int(header[1])
    except ValueError as e:
        raise BatchInputError("header must hold exactly two integers 'N Q'", 1) from e
    if line_count < 0 or query_count < 0:
        raise BatchInputError("line and query counts must be >= 0", 1)

    markup = [
        _read_line(stream, 2 + i, f"markup line {i + 1} of {line_count}")
        for i in range(line_count)
    ]
    queries = [
        _read_line(stream, 2 + line_count + i, f"query {i + 1} of {query_count}")
        for i in range(query_count)
    ]
    return BatchInput(document="".join(line + "\n" for line in markup), queries=queries)


def run_batch(batch: BatchInput, config: Optional[ParserConfig] = None) -> List[str]:
    """Parse the batch document and resolve its queries in order."""
    parser = HRMLParser(config)
    result = parser.parse(batch.document)
    return parser.query_many(result, batch.queries)


def load_config(args: argparse.Namespace) -> ParserConfig:
    """Build the parser configuration from --config, --strict and --workers."""
    config = ParserConfig.from_file(args.config) if args.config else ParserConfig()
    if getattr(args, "strict", False):
        config = config.override(
            tree__validate_closing_names=True, tree__reject_unclosed=True
        )
    if getattr(args, "workers", None):
        config = config.override(query__max_workers=args.workers)
    return config


def create_argument_parser() -> argparse.ArgumentParser:
    """Create the main argument parser."""
    parser = argparse.ArgumentParser(
        prog="hrml-query",
        description="Parse HRML markup and answer tag.path~attribute queries"
    )
    parser.add_argument("--version", action="version", version=__version__)
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Verbose logging on stderr"
    )
    parser.add_argument(
        "--quiet", "-q",
        action="store_true",
        help="Only log errors"
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    query_parser = subparsers.add_parser(
        "query", help="Run a batch of queries ('N Q' header, markup, queries)"
    )
    query_parser.add_argument(
        "--input", "-i",
        type=Path,
        help="Batch input file (default: stdin)"
    )
    query_parser.add_argument(
        "--workers", "-w",
        type=int,
        help="Number of threads resolving queries"
    )
    query_parser.add_argument(
        "--strict",
        action="store_true",
        help="Reject mismatched closing tags and unclosed tags"
    )
    query_parser.add_argument(
        "--config", "-c",
        type=Path,
        help="JSON configuration file"
    )

    tokens_parser = subparsers.add_parser("tokens", help="Dump the token stream of a markup file")
    tokens_parser.add_argument("path", type=Path, help="HRML markup file")
    tokens_parser.add_argument(
        "--positions",
        action="store_true",
        help="Include line and column of every token"
    )
    tokens_parser.add_argument(
        "--config", "-c",
        type=Path,
        help="JSON configuration file"
    )

    tree_parser = subparsers.add_parser("tree", help="Dump the element tree of a markup file")
    tree_parser.add_argument("path", type=Path, help="HRML markup file")
    tree_parser.add_argument(
        "--format", "-f",
        choices=["text", "json"],
        default="text",
        help="Output format (default: text)"
    )
    tree_parser.add_argument(
        "--strict",
        action="store_true",
        help="Reject mismatched closing tags and unclosed tags"
    )
    tree_parser.add_argument(
        "--config", "-c",
        type=Path,
        help="JSON configuration file"
    )

    return parser


def cmd_query(args: argparse.Namespace) -> int:
    """Handle query command."""
    config = load_config(args)
    if args.input:
        with args.input.open(encoding=config.global_.encoding) as stream:
            batch = read_batch(stream)
    else:
        batch = read_batch(sys.stdin)

    for value in run_batch(batch, config):
        print(value)
    return 0


def cmd_tokens(args: argparse.Namespace) -> int:
    """Handle tokens command."""
    config = load_config(args)
    text = args.path.read_text(encoding=config.global_.encoding)
    result = HRMLTokenizer(config.tokenizer).tokenize(text)
    for token in result.tokens:
        if args.positions and token.position is not None:
            print(f"{token.position.line}:{token.position.column} {token}")
        else:
            print(token)
    return 0


def cmd_tree(args: argparse.Namespace) -> int:
    """Handle tree command."""
    config = load_config(args)
    result = HRMLParser(config).parse(args.path.read_text(encoding=config.global_.encoding))
    if args.format == "json":
        print(result.forest.to_json())
    elif result.forest.roots:
        print(result.forest.to_outline())
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    """Main CLI entry point."""
    parser = create_argument_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 1

    if args.verbose:
        configure_logging("DEBUG")
    elif args.quiet:
        configure_logging("ERROR")
    else:
        configure_logging("WARNING")

    try:
        if args.command == "query":
            return cmd_query(args)
        if args.command == "tokens":
            return cmd_tokens(args)
        if args.command == "tree":
            return cmd_tree(args)
        print(f"Unknown command: {args.command}", file=sys.stderr)
        return 1

    except (HRMLError, ConfigError, OSError) as e:
        logger.debug("Command failed", extra={"command": args.command, "error": str(e)})
        print(f"Error: {e}", file=sys.stderr)
        return 1

    except KeyboardInterrupt:
        print("\nOperation interrupted by user", file=sys.stderr)
        return 130  # Standard exit code for SIGINT


if __name__ == "__main__":
    sys.exit(main())

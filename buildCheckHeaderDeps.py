#!/usr/bin/env python3
# -*- coding: utf-8 -*-
# ****************************************************************************************************************************************************
# * BSD 3-Clause License
# *
# * Copyright (c) 2025, Mana Battery
# * All rights reserved.
# *
# * Redistribution and use in source and binary forms, with or without modification, are permitted provided that the following conditions are met:
# *
# * 1. Redistributions of source code must retain the above copyright notice, this list of conditions and the following disclaimer.
# * 2. Redistributions in binary form must reproduce the above copyright notice, this list of conditions and the following disclaimer in the
# *    documentation and/or other materials provided with the distribution.
# * 3. Neither the name of the copyright holder nor the names of its contributors may be used to endorse or promote products derived from this
# *    software without specific prior written permission.
# *
# * THIS SOFTWARE IS PROVIDED BY THE COPYRIGHT HOLDERS AND CONTRIBUTORS "AS IS" AND ANY EXPRESS OR IMPLIED WARRANTIES, INCLUDING, BUT NOT LIMITED TO,
# * THE IMPLIED WARRANTIES OF MERCHANTABILITY AND FITNESS FOR A PARTICULAR PURPOSE ARE DISCLAIMED. IN NO EVENT SHALL THE COPYRIGHT HOLDER OR
# * CONTRIBUTORS BE LIABLE FOR ANY DIRECT, INDIRECT, INCIDENTAL, SPECIAL, EXEMPLARY, OR CONSEQUENTIAL DAMAGES (INCLUDING, BUT NOT LIMITED TO,
# * PROCUREMENT OF SUBSTITUTE GOODS OR SERVICES; LOSS OF USE, DATA, OR PROFITS; OR BUSINESS INTERRUPTION) HOWEVER CAUSED AND ON ANY THEORY OF
# * LIABILITY, WHETHER IN CONTRACT, STRICT LIABILITY, OR TORT (INCLUDING NEGLIGENCE OR OTHERWISE) ARISING IN ANY WAY OUT OF THE USE OF THIS SOFTWARE,
# * EVEN IF ADVISED OF THE POSSIBILITY OF SUCH DAMAGE.
# ****************************************************************************************************************************************************
"""List the header files the translation units of a compile database depend on.

Runs every compile command of compile_commands.json in dependency-listing mode
(-M), merges the reported dependencies of all translation units and prints the
unique paths in lexicographic order. Records that fail are skipped and reported.

Requirements:
    - Python 3.9+
    - networkx, packaging, colorama
    - The compilers referenced by the compile database

Usage:
    buildCheckHeaderDeps.py <compile_commands.json | build_dir> [list] [--exclude-system-headers] [--headers]

Exit Codes:
    0: Success
    1: Invalid arguments or compile database
    2: Runtime error (no record produced dependencies)
    130: Interrupted
"""

import os
import sys
import json
import signal
import logging
import argparse
import threading
from typing import Any, Dict, Optional

from headerdeps import __version__
from headerdeps.color_utils import Colors, print_error, print_info, print_warning, should_use_color
from headerdeps.compile_db import load_compile_database
from headerdeps.config import HeaderDepsConfig
from headerdeps.constants import (
    EXIT_INVALID_ARGS,
    EXIT_KEYBOARD_INTERRUPT,
    EXIT_RUNTIME_ERROR,
    EXIT_SUCCESS,
    DEPENDENCY_SCAN_TIMEOUT,
    COMPILE_COMMANDS_JSON,
    BuildCheckError,
    CompileDatabaseError,
    NoUsableRecordsError,
)
from headerdeps.export_utils import export_dependency_graph
from headerdeps.file_utils import relative_display_path
from headerdeps.package_verification import require_package
from headerdeps.pipeline import RunSummary, run_pipeline

logger = logging.getLogger(__name__)

__all__ = ["EXIT_SUCCESS", "main", "format_json_output"]

_cancel_event = threading.Event()


def signal_handler(signum: int, frame: Any) -> None:
    """Request cancellation of the running scan."""
    print_warning("\nInterrupted by user. Stopping...", prefix=False)
    _cancel_event.set()


def _display(path: str, relative_to: Optional[str]) -> str:
    return relative_display_path(path, relative_to) if relative_to else path


def format_json_output(summary: RunSummary, relative_to: Optional[str] = None, show_sources: bool = False) -> str:
    """Format a run summary as JSON.

    Args:
        summary: Pipeline result
        relative_to: Optional root for relative paths
        show_sources: Include the originating sources of every header

    Returns:
        JSON formatted string
    """
    result = summary.result
    output: Dict[str, Any] = {
        "version": __version__,
        "headers": [_display(path, relative_to) for path in result.headers],
        "counts": {
            "records": summary.records_total,
            "succeeded": summary.records_succeeded,
            "skipped": summary.skipped_count,
            "unfiltered": result.unfiltered_count,
            "filtered": result.filtered_count,
            "system": result.classification_stats.system,
            "project": result.classification_stats.project,
        },
        "failures": [{"file": f.source_file, "kind": f.kind, "message": f.message} for f in summary.failures],
    }
    if show_sources:
        output["sources"] = {
            _display(path, relative_to): [_display(src, relative_to) for src in summary.aggregator.sources_including(path)] for path in result.headers
        }
    return json.dumps(output, indent=2)


def print_text_output(summary: RunSummary, relative_to: Optional[str] = None, show_sources: bool = False) -> None:
    """Print one path per line, optionally followed by its originating sources."""
    for path in summary.result.headers:
        print(_display(path, relative_to))
        if show_sources:
            for source in summary.aggregator.sources_including(path):
                print(f"  {Colors.DIM}<- {_display(source, relative_to)}{Colors.RESET}")


def print_failure_summary(summary: RunSummary, verbose: bool = False) -> None:
    """Report skipped records on stderr."""
    if not summary.failures:
        return
    counts = ", ".join(f"{count} {kind}" for kind, count in sorted(summary.failure_counts().items()))
    print_warning(f"Skipped {summary.skipped_count} of {summary.records_total} compile records ({counts})")
    if verbose:
        for failure in summary.failures:
            print(f"  {Colors.YELLOW}{failure.source_file}{Colors.RESET}: {failure.message}", file=sys.stderr)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="List the header dependencies of all translation units in a compile database.",
        epilog=f"Version {__version__}\n\nExamples:\n"
        f"  %(prog)s build/compile_commands.json\n"
        f"  %(prog)s build/compile_commands.json list --exclude-system-headers --headers\n"
        f"  %(prog)s build/compile_commands.json --relative-to . --format json\n",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    parser.add_argument("compile_commands", help="Path to compile_commands.json or the build directory containing it")
    parser.add_argument("command", nargs="?", choices=["list"], default="list", help="Subcommand (default: list)")

    parser.add_argument("--exclude-system-headers", action="store_true", help="Exclude system headers from dependency list")
    parser.add_argument("--headers", action="store_true", help="List only headers")
    parser.add_argument("--system-root", action="append", metavar="DIR", help="Directory whose contents count as system headers (repeatable)")
    parser.add_argument("--no-detect-system-roots", action="store_true", help="Do not ask compilers for their default include directories")
    parser.add_argument("--exclude", action="append", metavar="PATTERN", help="Exclude paths matching glob pattern (repeatable)")
    parser.add_argument("--jobs", "-j", type=int, default=None, help="Parallel compiler invocations (default: all CPU cores)")
    parser.add_argument("--timeout", type=float, default=DEPENDENCY_SCAN_TIMEOUT, help="Seconds per compiler invocation, 0 for no limit (default: 60)")
    parser.add_argument("--relative-to", metavar="DIR", help="Print paths relative to DIR")
    parser.add_argument("--format", choices=["text", "json"], default="text", help="Output format (default: text)")
    parser.add_argument("--show-sources", action="store_true", help="Show the sources that pull in each header")
    parser.add_argument("--export-graph", metavar="FILE", help="Export source -> header graph (.graphml, .gexf, .json)")
    parser.add_argument("--no-color", action="store_true", help="Disable colored output")
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable verbose output to stderr")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser


def main(argv: Optional[list] = None) -> int:
    """Main entry point for the script.

    Returns:
        Exit code (0 for success, non-zero for failure)
    """
    _cancel_event.clear()
    signal.signal(signal.SIGINT, signal_handler)
    signal.signal(signal.SIGTERM, signal_handler)

    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.INFO, format="%(levelname)s: %(message)s", stream=sys.stderr)

    if not should_use_color(no_color=args.no_color):
        Colors.disable()

    require_package("networkx", "dependency graph aggregation")

    compile_db_path = args.compile_commands
    if os.path.isdir(compile_db_path):
        compile_db_path = os.path.join(compile_db_path, COMPILE_COMMANDS_JSON)
    if not os.path.isfile(compile_db_path):
        print_error(f"Compile database not found: {compile_db_path}")
        return EXIT_INVALID_ARGS

    config = HeaderDepsConfig.from_args(args)
    relative_to = os.path.abspath(args.relative_to) if args.relative_to else None

    try:
        records = load_compile_database(compile_db_path)
    except CompileDatabaseError as e:
        print_error(str(e))
        return e.exit_code
    logger.info("Loaded %d compile records from %s", len(records), compile_db_path)

    try:
        summary = run_pipeline(records, config, cancellation_event=_cancel_event)
    except NoUsableRecordsError as e:
        print_error(str(e))
        if args.verbose:
            for failure in e.failures:
                print(f"  {failure.source_file}: {failure.message}", file=sys.stderr)
        return e.exit_code

    if args.verbose:
        print_info(f"System roots: {', '.join(summary.system_roots.sorted())}", file=sys.stderr)
    print_failure_summary(summary, verbose=args.verbose)

    if args.export_graph:
        try:
            export_dependency_graph(args.export_graph, summary.aggregator.dependency_graph(), relative_to)
        except OSError as e:
            print_error(f"Cannot write graph to '{args.export_graph}': {e}")
            return EXIT_INVALID_ARGS

    try:
        if args.format == "json":
            print(format_json_output(summary, relative_to, args.show_sources))
        else:
            print_text_output(summary, relative_to, args.show_sources)
    except BrokenPipeError:
        # Output piped to e.g. head
        devnull = os.open(os.devnull, os.O_WRONLY)
        os.dup2(devnull, sys.stdout.fileno())

    return EXIT_SUCCESS


def cli() -> None:
    """Console script entry point."""
    try:
        sys.exit(main())
    except KeyboardInterrupt:
        print_warning("Interrupted.", prefix=False)
        sys.exit(EXIT_KEYBOARD_INTERRUPT)
    except BuildCheckError as e:
        print_error(str(e))
        sys.exit(e.exit_code)
    except Exception as e:
        print(f"Fatal error: {e}", file=sys.stderr)
        sys.exit(EXIT_RUNTIME_ERROR)


if __name__ == "__main__":
    cli()

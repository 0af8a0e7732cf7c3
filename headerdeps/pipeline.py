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
"""Header dependency extraction pipeline.

Runs (invoke compiler -> parse output) for every compile record on a bounded
thread pool, merges the results into a DependencyAggregator and returns the
filtered, ordered result with a summary of the records that were skipped.

Per-record failures never abort the run. The run itself fails only when no
record produced dependencies, or when it is cancelled.
"""

import os
import logging
import threading
from concurrent.futures import FIRST_COMPLETED, Future, ThreadPoolExecutor, wait
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Sequence, Set, Tuple

from headerdeps.aggregator import AggregatedResult, DependencyAggregator
from headerdeps.compile_db import CompileRecord
from headerdeps.config import HeaderDepsConfig
from headerdeps.constants import (
    CANCELLATION_POLL_INTERVAL,
    DEFAULT_SOURCE_LANGUAGE,
    DEFAULT_SYSTEM_ROOTS,
    DISPATCH_WINDOW_FACTOR,
    SOURCE_LANGUAGES,
    NoUsableRecordsError,
    RecordError,
    RunCancelledError,
)
from headerdeps.dependency_parser import TranslationUnitDeps, parse_dependency_output
from headerdeps.path_classifier import SystemRoots
from headerdeps.tool_detection import detect_system_roots, find_compiler
from headerdeps.toolchain_invoker import ProcessTracker, build_dependency_command, invoke_toolchain

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RecordFailure:
    """A compile record that was skipped.

    Attributes:
        source_file: Source file of the record
        kind: Error class name (ToolchainNotFound, InvocationFailed, ...)
        message: Human readable reason
    """

    source_file: str
    kind: str
    message: str

    @classmethod
    def from_error(cls, error: RecordError) -> "RecordFailure":
        return cls(source_file=error.source_file, kind=type(error).__name__, message=str(error))


@dataclass
class RunSummary:
    """Outcome of one pipeline run."""

    result: AggregatedResult
    aggregator: DependencyAggregator
    system_roots: SystemRoots
    records_total: int
    failures: List[RecordFailure] = field(default_factory=list)

    @property
    def skipped_count(self) -> int:
        return len(self.failures)

    @property
    def records_succeeded(self) -> int:
        return self.records_total - self.skipped_count

    def failure_counts(self) -> Dict[str, int]:
        counts: Dict[str, int] = {}
        for failure in self.failures:
            counts[failure.kind] = counts.get(failure.kind, 0) + 1
        return counts


def scan_record(record: CompileRecord, config: HeaderDepsConfig, tracker: Optional[ProcessTracker] = None) -> TranslationUnitDeps:
    """Invoke the compiler for one record and parse its dependency output.

    Raises:
        RecordError: Any per-record failure
        RunCancelledError: If the run was cancelled meanwhile
    """
    output = invoke_toolchain(record, config.dependency_flags, config.per_invocation_timeout, tracker)
    return parse_dependency_output(output, record)


def _record_language(record: CompileRecord) -> str:
    """Language of a record: an explicit -x argument, else the source extension."""
    arguments = record.arguments
    for i, arg in enumerate(arguments[:-1]):
        if arg == "-x":
            return arguments[i + 1]
    return SOURCE_LANGUAGES.get(os.path.splitext(record.source_file)[1], DEFAULT_SOURCE_LANGUAGE)


def _record_compilers(records: Iterable[CompileRecord]) -> Set[Tuple[str, str]]:
    """Collect distinct (compiler, language) pairs.

    A relative compiler path (./tools/cc) runs from the record's working
    directory, so it is resolved there. Bare names are left for PATH lookup.
    """
    compilers: Set[Tuple[str, str]] = set()
    for record in records:
        try:
            compiler = build_dependency_command(record.arguments)[0]
        except ValueError:
            continue
        if os.sep in compiler and not os.path.isabs(compiler):
            compiler = os.path.normpath(os.path.join(record.working_directory, compiler))
        compilers.add((compiler, _record_language(record)))
    return compilers


def resolve_system_roots(records: Sequence[CompileRecord], config: HeaderDepsConfig) -> SystemRoots:
    """Compute the system roots for a run, once, before any record is scanned.

    Explicit roots are combined with the default include directories reported
    by each distinct compiler (when detection is enabled). When neither yields
    anything, DEFAULT_SYSTEM_ROOTS is used.

    Args:
        records: Records of the run
        config: Run configuration

    Returns:
        SystemRoots for the classifier
    """
    roots = SystemRoots.from_paths(config.system_root_paths)

    if config.detect_system_roots:
        compilers = _record_compilers(records)
        for compiler in sorted({compiler for compiler, _ in compilers}):
            tool_info = find_compiler(compiler)
            if not tool_info.is_found():
                logger.warning("Compiler %s not found; its records will be skipped", compiler)
            elif tool_info.version:
                logger.debug("Using %s (%s)", tool_info.command, tool_info.version)
        roots = roots.union(detect_system_roots(compilers))

    if not roots:
        logger.info("No system roots configured or detected, using defaults: %s", ", ".join(DEFAULT_SYSTEM_ROOTS))
        roots = SystemRoots.from_paths(DEFAULT_SYSTEM_ROOTS)

    logger.debug("System roots: %s", ", ".join(roots.sorted()))
    return roots


def run_pipeline(
    records: Sequence[CompileRecord],
    config: HeaderDepsConfig,
    cancellation_event: Optional[threading.Event] = None,
    system_roots: Optional[SystemRoots] = None,
) -> RunSummary:
    """Extract and aggregate header dependencies of all records.

    Args:
        records: Compile records to scan
        config: Run configuration
        cancellation_event: Optional event; when set, the run stops dispatching,
            terminates running compilers and raises RunCancelledError
        system_roots: Pre-computed system roots (resolved from config when None)

    Returns:
        RunSummary with the aggregated result and skipped records

    Raises:
        NoUsableRecordsError: If there are no records, or none produced dependencies
        RunCancelledError: If the run was cancelled or interrupted
    """
    if not records:
        raise NoUsableRecordsError("Compile database contains no usable records")

    if system_roots is None:
        system_roots = resolve_system_roots(records, config)

    cancel = cancellation_event or threading.Event()
    tracker = ProcessTracker()
    aggregator = DependencyAggregator(system_roots)
    failures: List[RecordFailure] = []

    workers = config.effective_workers
    window = workers * DISPATCH_WINDOW_FACTOR
    logger.info("Scanning %d translation units using %d workers...", len(records), workers)

    executor = ThreadPoolExecutor(max_workers=workers, thread_name_prefix="HeaderDepsWorker")
    pending: Set[Future] = set()
    record_iter = iter(records)
    exhausted = False
    try:
        while True:
            if cancel.is_set():
                raise RunCancelledError()

            while not exhausted and len(pending) < window:
                record = next(record_iter, None)
                if record is None:
                    exhausted = True
                    break
                pending.add(executor.submit(scan_record, record, config, tracker))

            if not pending:
                break

            done, pending = wait(pending, timeout=CANCELLATION_POLL_INTERVAL, return_when=FIRST_COMPLETED)
            for future in done:
                try:
                    unit = future.result()
                except RecordError as e:
                    logger.warning("Skipping %s: %s", e.source_file, e)
                    failures.append(RecordFailure.from_error(e))
                    continue
                aggregator.add(unit)
    except (RunCancelledError, KeyboardInterrupt) as exc:
        cancel.set()
        tracker.cancel()
        logger.warning("Run cancelled, discarding partial results")
        raise RunCancelledError() from exc
    except Exception:
        tracker.cancel()
        raise
    finally:
        executor.shutdown(wait=True, cancel_futures=True)

    if aggregator.unit_count == 0:
        raise NoUsableRecordsError(f"None of the {len(records)} compile records produced dependencies", failures)

    result = aggregator.finalize(config.exclude_system_headers, config.headers_only, config.exclude_patterns)
    if failures:
        logger.warning("Skipped %d of %d compile records", len(failures), len(records))

    failures.sort(key=lambda failure: failure.source_file)
    return RunSummary(result=result, aggregator=aggregator, system_roots=system_roots, records_total=len(records), failures=failures)

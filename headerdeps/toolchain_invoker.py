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
"""Run the compiler of a compile record in dependency-listing mode.

The record's own command is reused so include paths, defines and language
options stay exactly as the build uses them. Build wrappers, the object file
output and any dependency-file options are removed, and the configured
dependency flags (``-M`` by default) are inserted after the compiler.
"""

import os
import logging
import threading
import subprocess
from typing import List, Optional, Sequence, Set

from headerdeps.compile_db import CompileRecord
from headerdeps.constants import (
    BUILD_WRAPPERS,
    DEFAULT_DEPENDENCY_FLAGS,
    DEPENDENCY_FLAGS,
    DEPENDENCY_OUTPUT_FLAGS,
    DEPENDENCY_SCAN_TIMEOUT,
    InvocationFailed,
    InvocationTimedOut,
    RunCancelledError,
    ToolchainNotFound,
)

logger = logging.getLogger(__name__)


class ProcessTracker:
    """Track in-flight compiler processes so a cancelled run can terminate them.

    Once cancel() has been called no new process may be registered: register()
    kills the process and raises RunCancelledError instead.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._processes: Set[subprocess.Popen] = set()
        self._cancelled = False

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def register(self, process: subprocess.Popen) -> None:
        with self._lock:
            if not self._cancelled:
                self._processes.add(process)
                return
        process.kill()
        process.wait()
        raise RunCancelledError()

    def unregister(self, process: subprocess.Popen) -> None:
        with self._lock:
            self._processes.discard(process)

    def cancel(self) -> int:
        """Stop accepting processes and terminate all registered ones.

        Returns:
            Number of processes terminated
        """
        with self._lock:
            self._cancelled = True
            processes = list(self._processes)
            self._processes.clear()

        for process in processes:
            try:
                process.kill()
            except OSError as e:
                logger.debug("Failed to kill process %s: %s", process.pid, e)
        if processes:
            logger.info("Terminated %d running compiler process(es)", len(processes))
        return len(processes)


def _is_build_wrapper(arg: str) -> bool:
    """Check if argument is a build wrapper tool (ccache, distcc, ...)."""
    basename = os.path.basename(arg).lower()
    return basename in BUILD_WRAPPERS


def build_dependency_command(arguments: Sequence[str], dependency_flags: Sequence[str] = DEFAULT_DEPENDENCY_FLAGS) -> List[str]:
    """Turn a compile command into a dependency-listing command.

    Removes:
    - Leading build wrappers (ccache, distcc, icecc, sccache)
    - Output file (-o <file>, -o<file>)
    - Dependency output flags and their argument (-MF, -MT, -MQ, -MJ)
    - Dependency generation flags (-M, -MM, -MD, -MMD, -MG, -MP)

    Inserts the dependency flags directly after the compiler.

    Args:
        arguments: Compile command of the record, compiler first
        dependency_flags: Flags that make the compiler list dependencies

    Returns:
        New argument list

    Raises:
        ValueError: If no compiler remains after removing build wrappers
    """
    args = list(arguments)
    while args and _is_build_wrapper(args[0]):
        logger.debug("Removing build wrapper: %s", args[0])
        args.pop(0)

    if not args:
        raise ValueError("No compiler found in compile command")

    command = [args[0], *dependency_flags]
    i = 1
    while i < len(args):
        part = args[i]
        if part == "-o" or part in DEPENDENCY_OUTPUT_FLAGS:
            i += 2
            continue
        if part in DEPENDENCY_FLAGS:
            i += 1
            continue
        if part.startswith("-o") and len(part) > 2 and not part.startswith("-objc"):
            i += 1
            continue
        if part.startswith(DEPENDENCY_OUTPUT_FLAGS) and len(part) > 3:
            i += 1
            continue
        command.append(part)
        i += 1

    return command


def invoke_toolchain(
    record: CompileRecord,
    dependency_flags: Sequence[str] = DEFAULT_DEPENDENCY_FLAGS,
    timeout: Optional[float] = DEPENDENCY_SCAN_TIMEOUT,
    tracker: Optional[ProcessTracker] = None,
) -> str:
    """Run the record's compiler in dependency-listing mode.

    Args:
        record: Compile record to scan
        dependency_flags: Flags inserted after the compiler
        timeout: Seconds before the process is killed (None = no limit)
        tracker: Optional tracker used for run-level cancellation

    Returns:
        Raw dependency output (compiler stdout)

    Raises:
        ToolchainNotFound: If the compiler cannot be executed
        InvocationFailed: If the record is unusable or the compiler exits non-zero
        InvocationTimedOut: If the compiler exceeds the timeout
        RunCancelledError: If the tracker was cancelled
    """
    source_file = record.resolved_source()

    if not os.path.isdir(record.working_directory):
        raise InvocationFailed(f"Working directory does not exist: {record.working_directory}", source_file)
    if not os.path.exists(source_file):
        raise InvocationFailed(f"Source file does not exist: {source_file}", source_file)

    try:
        command = build_dependency_command(record.arguments, dependency_flags)
    except ValueError as e:
        raise InvocationFailed(str(e), source_file) from e

    logger.debug("Scanning %s: %s", source_file, command)

    try:
        process = subprocess.Popen(
            command,
            cwd=record.working_directory,
            stdin=subprocess.DEVNULL,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            text=True,
            errors="replace",
        )
    except (FileNotFoundError, PermissionError) as e:
        raise ToolchainNotFound(f"Compiler not found: {command[0]} ({e})", source_file) from e
    except OSError as e:
        raise InvocationFailed(f"Failed to start {command[0]}: {e}", source_file) from e
    except (ValueError, TypeError) as e:
        # e.g. an argument with an embedded NUL byte
        raise InvocationFailed(f"Invalid compile command: {e}", source_file) from e

    if tracker is not None:
        tracker.register(process)
    try:
        try:
            stdout, stderr = process.communicate(timeout=timeout)
        except subprocess.TimeoutExpired as exc:
            process.kill()
            process.communicate()
            raise InvocationTimedOut(f"{command[0]} timed out after {timeout} seconds", source_file, timeout or 0.0) from exc
    finally:
        if tracker is not None:
            tracker.unregister(process)

    if tracker is not None and tracker.cancelled:
        raise RunCancelledError()

    if process.returncode != 0:
        diagnostics = (stderr or "").strip()
        message = f"{command[0]} failed with code {process.returncode}"
        if diagnostics:
            message += f": {diagnostics[:1000]}"
        raise InvocationFailed(message, source_file, diagnostics, process.returncode)

    if stderr and stderr.strip():
        logger.debug("%s reported diagnostics for %s:\n%s", command[0], source_file, stderr.strip()[:1000])

    return stdout

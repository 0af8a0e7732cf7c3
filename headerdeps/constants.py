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
"""Shared constants and exception classes for buildCheck HeaderDeps.

This module provides centralized constants used across the header dependency
extraction pipeline to ensure consistency and make it easy to adjust defaults.
"""

from typing import Optional

# =============================================================================
# Exit Codes
# =============================================================================

EXIT_SUCCESS = 0
EXIT_INVALID_ARGS = 1
EXIT_RUNTIME_ERROR = 2
EXIT_KEYBOARD_INTERRUPT = 130

# =============================================================================
# Toolchain Invocation Constants
# =============================================================================

# Timeouts (seconds)
DEPENDENCY_SCAN_TIMEOUT = 60.0  # Per translation unit
TOOL_VERSION_TIMEOUT = 5  # For --version queries
SEARCH_PATH_QUERY_TIMEOUT = 30  # For default include search path queries

# Flags inserted after the compiler to list dependencies in make format
DEFAULT_DEPENDENCY_FLAGS = ("-M",)

# Build wrappers stripped from the front of compile commands
BUILD_WRAPPERS = ("ccache", "distcc", "icecc", "sccache")

# Make-dependency output flags that take an argument (flag and argument are removed)
DEPENDENCY_OUTPUT_FLAGS = ("-MF", "-MT", "-MQ", "-MJ")

# Dependency generation flags that conflict with the listing mode
DEPENDENCY_FLAGS = ("-M", "-MM", "-MD", "-MMD", "-MG", "-MP")

# =============================================================================
# Parallel Processing
# =============================================================================

DEFAULT_MAX_WORKERS = None  # None = use all CPU cores
DISPATCH_WINDOW_FACTOR = 2  # In-flight records per worker
CANCELLATION_POLL_INTERVAL = 0.2  # Seconds between cancellation checks

# =============================================================================
# Path Classification
# =============================================================================

# Used only when neither explicit roots nor toolchain detection yield any
DEFAULT_SYSTEM_ROOTS = ("/usr", "/lib", "/lib64", "/opt")

# Language passed to -x when querying default include directories
SOURCE_LANGUAGES = {".c": "c", ".m": "objective-c", ".mm": "objective-c++"}
DEFAULT_SOURCE_LANGUAGE = "c++"

# =============================================================================
# Build System Constants
# =============================================================================

COMPILE_COMMANDS_JSON = "compile_commands.json"  # Standard compilation database filename

# =============================================================================
# Graph Export Constants
# =============================================================================

SUPPORTED_GRAPH_FORMATS = [".graphml", ".gexf", ".json"]
DEFAULT_GRAPH_FORMAT = "graphml"

# =============================================================================
# Exception Classes
# =============================================================================


class BuildCheckError(Exception):
    """Base exception for all buildCheck errors.

    All buildCheck exceptions carry an exit_code attribute that indicates
    what exit code the program should use when this error is caught at the
    main entry point.
    """

    def __init__(self, message: str, exit_code: int = EXIT_RUNTIME_ERROR):
        super().__init__(message)
        self.exit_code = exit_code


# Validation errors (EXIT_INVALID_ARGS)
class ValidationError(BuildCheckError):
    """Raised when input validation fails (arguments, paths, etc)."""

    def __init__(self, message: str):
        super().__init__(message, EXIT_INVALID_ARGS)


class ArgumentError(ValidationError):
    """Raised when command-line arguments or configuration values are invalid."""


class CompileDatabaseError(ValidationError):
    """Raised when the compile database cannot be read or has the wrong shape."""


# Per-record errors. Never fatal to the run: the pipeline collects them.
class RecordError(BuildCheckError):
    """Raised when dependency extraction fails for a single compile record.

    Attributes:
        source_file: Source file of the record that failed
    """

    def __init__(self, message: str, source_file: str = ""):
        super().__init__(message)
        self.source_file = source_file


class ToolchainNotFound(RecordError):
    """Raised when the compiler named by a record cannot be executed."""


class InvocationFailed(RecordError):
    """Raised when the compiler exits non-zero or the record cannot be invoked.

    Attributes:
        diagnostics: Captured stderr of the compiler (may be empty)
        returncode: Exit status, or None if the process never ran
    """

    def __init__(self, message: str, source_file: str = "", diagnostics: str = "", returncode: Optional[int] = None):
        super().__init__(message, source_file)
        self.diagnostics = diagnostics
        self.returncode = returncode


class InvocationTimedOut(RecordError):
    """Raised when the compiler does not finish within the per-invocation timeout."""

    def __init__(self, message: str, source_file: str = "", timeout: float = 0.0):
        super().__init__(message, source_file)
        self.timeout = timeout


class MalformedDependencyOutput(RecordError):
    """Raised when the compiler output is empty or not in dependency-rule format."""


# Run-level errors
class NoUsableRecordsError(BuildCheckError):
    """Raised when a run has no compile records that produced dependencies."""

    def __init__(self, message: str, failures: Optional[list] = None):
        super().__init__(message, EXIT_RUNTIME_ERROR)
        self.failures = failures or []


class RunCancelledError(BuildCheckError):
    """Raised when a run is cancelled; partial results are discarded."""

    def __init__(self, message: str = "Run cancelled"):
        super().__init__(message, EXIT_KEYBOARD_INTERRUPT)

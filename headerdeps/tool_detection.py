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
"""Centralized external tool detection for buildCheck HeaderDeps.

This module detects the compilers named by compile records and asks them for
their default include search directories, which become the system roots used
for header classification.

Detection results are cached within the Python process session to avoid
repeated subprocess calls.

CLI Interface:
    python3 -m headerdeps.tool_detection --find-compiler g++       # Output command path, exit 0/1
    python3 -m headerdeps.tool_detection --include-dirs clang++     # Output one search dir per line
    python3 -m headerdeps.tool_detection --include-dirs gcc --language c
    python3 -m headerdeps.tool_detection --verbose                  # Enable debug logging
"""

import os
import sys
import shutil
import logging
import argparse
import subprocess
from typing import Dict, Iterable, List, Optional, Tuple
from dataclasses import dataclass

from headerdeps.constants import DEFAULT_SOURCE_LANGUAGE, SEARCH_PATH_QUERY_TIMEOUT, TOOL_VERSION_TIMEOUT
from headerdeps.path_classifier import SystemRoots

logger = logging.getLogger(__name__)

_SEARCH_LIST_START = "#include <...> search starts here:"
_SEARCH_LIST_END = "End of search list."
_FRAMEWORK_SUFFIX = " (framework directory)"

# Session-level caches keyed by compiler command
_tool_cache: Dict[str, "ToolInfo"] = {}
_include_dirs_cache: Dict[Tuple[str, str], Tuple[str, ...]] = {}


@dataclass
class ToolInfo:
    """Information about a detected external tool.

    Attributes:
        command: Resolved executable path (e.g., "/usr/bin/g++")
        full_command: Command as requested (e.g., "g++")
        version: First line of the tool's --version output
    """

    command: Optional[str]
    full_command: Optional[str]
    version: Optional[str]

    def is_found(self) -> bool:
        """Check if tool was found.

        Returns:
            True if command is not None
        """
        return self.command is not None


def clear_cache() -> None:
    """Clear the tool detection caches.

    Useful for testing or when environment changes during process lifetime.
    """
    _tool_cache.clear()
    _include_dirs_cache.clear()
    logger.debug("Tool detection cache cleared")


def _try_command(cmd_parts: List[str], timeout: int = TOOL_VERSION_TIMEOUT) -> Optional[str]:
    """Try to run a command with --version and return version output.

    Args:
        cmd_parts: Command parts (e.g., ["g++"])
        timeout: Timeout in seconds for subprocess call

    Returns:
        Version output string if successful, None otherwise
    """
    try:
        result = subprocess.run(cmd_parts + ["--version"], capture_output=True, text=True, check=True, timeout=timeout)
        return result.stdout.strip()
    except (subprocess.CalledProcessError, FileNotFoundError, PermissionError, subprocess.TimeoutExpired):
        return None


def _extract_version(output: str) -> str:
    """Return the first line of version output, stripped."""
    lines = output.split("\n")
    return lines[0].strip() if lines else output.strip()


def find_compiler(compiler: str) -> ToolInfo:
    """Find a compiler executable.

    Bare names are looked up in PATH, paths are checked directly.

    Args:
        compiler: Compiler name or path as it appears in a compile command

    Returns:
        ToolInfo with resolved command and version if found, or empty ToolInfo if not found
    """
    if compiler in _tool_cache:
        return _tool_cache[compiler]

    resolved = shutil.which(compiler)
    if resolved is None:
        logger.debug("%s not found", compiler)
        tool_info = ToolInfo(command=None, full_command=compiler, version=None)
    else:
        version_output = _try_command([resolved])
        version = _extract_version(version_output) if version_output else None
        logger.debug("Found %s at %s (version %s)", compiler, resolved, version)
        tool_info = ToolInfo(command=resolved, full_command=compiler, version=version)

    _tool_cache[compiler] = tool_info
    return tool_info


def parse_include_search_dirs(verbose_output: str) -> List[str]:
    """Parse the default ``#include <...>`` search list from ``-v`` output.

    Args:
        verbose_output: stderr of ``<compiler> -E -x <lang> - -v``

    Returns:
        Normalized search directories in compiler order
    """
    dirs: List[str] = []
    in_list = False
    for line in verbose_output.splitlines():
        stripped = line.strip()
        if stripped == _SEARCH_LIST_START:
            in_list = True
            continue
        if stripped == _SEARCH_LIST_END:
            break
        if in_list and stripped:
            if stripped.endswith(_FRAMEWORK_SUFFIX):
                stripped = stripped[: -len(_FRAMEWORK_SUFFIX)]
            dirs.append(os.path.normpath(stripped))
    return dirs


def query_default_include_dirs(compiler: str, language: str = DEFAULT_SOURCE_LANGUAGE, timeout: int = SEARCH_PATH_QUERY_TIMEOUT) -> Tuple[str, ...]:
    """Ask a GCC/Clang compatible compiler for its default include directories.

    Args:
        compiler: Compiler command
        language: Language passed to -x
        timeout: Timeout in seconds

    Returns:
        Tuple of search directories, empty if the compiler cannot be queried
    """
    cache_key = (compiler, language)
    if cache_key in _include_dirs_cache:
        return _include_dirs_cache[cache_key]

    dirs: Tuple[str, ...] = ()
    try:
        result = subprocess.run([compiler, "-E", "-x", language, "-", "-v"], input="", capture_output=True, text=True, timeout=timeout)
        dirs = tuple(parse_include_search_dirs(result.stderr))
        if not dirs:
            logger.debug("%s reported no include search directories (exit code %s)", compiler, result.returncode)
    except (FileNotFoundError, PermissionError):
        logger.debug("Cannot query include directories: %s not found", compiler)
    except subprocess.TimeoutExpired:
        logger.warning("Querying include directories of %s timed out after %s seconds", compiler, timeout)

    _include_dirs_cache[cache_key] = dirs
    return dirs


def detect_system_roots(compilers: Iterable[Tuple[str, str]]) -> SystemRoots:
    """Collect default include directories of every distinct compiler and language.

    Args:
        compilers: (compiler command, language) pairs found in the compile database

    Returns:
        SystemRoots covering all reported search directories
    """
    dirs: List[str] = []
    for compiler, language in sorted(set(compilers)):
        reported = query_default_include_dirs(compiler, language)
        logger.info("Detected %d default include directories for %s (%s)", len(reported), compiler, language)
        dirs.extend(reported)
    return SystemRoots.from_paths(dirs)


def main() -> int:
    """Main entry point for CLI usage.

    Returns:
        Exit code: 0 if found, 1 if not found
    """
    parser = argparse.ArgumentParser(description="Detect compilers for buildCheck HeaderDeps", formatter_class=argparse.RawDescriptionHelpFormatter)

    parser.add_argument("--find-compiler", metavar="NAME", help="Find a compiler command")
    parser.add_argument("--include-dirs", metavar="COMPILER", help="List default include search directories of a compiler")
    parser.add_argument("--language", default=DEFAULT_SOURCE_LANGUAGE, help="Language for --include-dirs (default: c++)")
    parser.add_argument("--verbose", action="store_true", help="Enable verbose debug logging")

    args = parser.parse_args()

    if args.verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(message)s", stream=sys.stderr)
    else:
        logging.basicConfig(level=logging.WARNING)

    if args.find_compiler:
        tool_info = find_compiler(args.find_compiler)
        if tool_info.is_found():
            print(tool_info.command)
            return 0
        return 1

    if args.include_dirs:
        dirs = query_default_include_dirs(args.include_dirs, args.language)
        for directory in dirs:
            print(directory)
        return 0 if dirs else 1

    parser.print_help()
    return 0


if __name__ == "__main__":
    sys.exit(main())

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
"""Parse make-style dependency output into normalized header paths.

Compilers run with -M print rules of the form::

    main.o: /src/main.cpp /src/lib/x.h \
      /usr/include/stdio.h

Rules may span several physical lines using backslash continuations, paths
containing spaces are written with ``\\ `` and a literal ``$`` is written as
``$$``. The parser reassembles continuations, tokenizes the prerequisite lists
and normalizes every path lexically against the record's working directory.
"""

import os
import re
import logging
from dataclasses import dataclass
from typing import FrozenSet, List, Tuple

from headerdeps.compile_db import CompileRecord
from headerdeps.constants import MalformedDependencyOutput

logger = logging.getLogger(__name__)

# Rule separator: a colon followed by whitespace or end of line. A drive letter
# colon (C:\...) is followed by a path separator and is not matched.
_RULE_SEPARATOR = re.compile(r"(?<!\\):(?=\s|$)")
_CONTINUATION = re.compile(r"\\\r?\n")


@dataclass(frozen=True)
class HeaderDependency:
    """A file read while compiling one translation unit.

    Attributes:
        path: Normalized absolute path of the dependency
        originating_source: Source file of the record that reported it
    """

    path: str
    originating_source: str


@dataclass(frozen=True)
class TranslationUnitDeps:
    """Dependencies reported for one compile record."""

    source_file: str
    headers: FrozenSet[HeaderDependency]

    @property
    def paths(self) -> FrozenSet[str]:
        return frozenset(dep.path for dep in self.headers)


def reassemble_continuations(output: str) -> List[str]:
    """Join backslash-continued physical lines into logical lines.

    Args:
        output: Raw dependency output

    Returns:
        Non-empty logical lines, stripped
    """
    joined = _CONTINUATION.sub(" ", output)
    return [line.strip() for line in joined.splitlines() if line.strip()]


def tokenize_prerequisites(text: str) -> List[str]:
    """Split a prerequisite list into path tokens.

    Whitespace separates tokens except when escaped with a backslash.
    ``$$`` is unescaped to ``$``.

    Args:
        text: Prerequisite part of a rule (after the colon)

    Returns:
        List of path tokens in order of appearance
    """
    tokens: List[str] = []
    current: List[str] = []
    i = 0
    while i < len(text):
        char = text[i]
        if char == "\\" and i + 1 < len(text) and text[i + 1] in " \t#":
            current.append(text[i + 1])
            i += 2
            continue
        if char == "$" and i + 1 < len(text) and text[i + 1] == "$":
            current.append("$")
            i += 2
            continue
        if char.isspace():
            if current:
                tokens.append("".join(current))
                current = []
        else:
            current.append(char)
        i += 1

    if current:
        tokens.append("".join(current))
    return tokens


def parse_dependency_rules(output: str) -> List[Tuple[str, List[str]]]:
    """Parse dependency output into (targets, prerequisites) rules.

    Args:
        output: Raw dependency output

    Returns:
        List of (target text, prerequisite tokens) tuples

    Raises:
        MalformedDependencyOutput: If the output is empty or has no rule
    """
    lines = reassemble_continuations(output)
    if not lines:
        raise MalformedDependencyOutput("Empty dependency output")

    rules: List[Tuple[str, List[str]]] = []
    for line in lines:
        if line.startswith("#"):
            continue
        match = _RULE_SEPARATOR.search(line)
        if match is None:
            logger.debug("Ignoring line without rule separator: %s", line[:200])
            continue
        targets = line[: match.start()].strip()
        rules.append((targets, tokenize_prerequisites(line[match.end() :])))

    if not rules:
        raise MalformedDependencyOutput(f"No dependency rule found in output: {lines[0][:200]}")
    return rules


def normalize_path(path: str, working_directory: str) -> str:
    """Normalize a dependency path lexically.

    Relative paths are resolved against the working directory and ``.``/``..``
    segments are collapsed. Symbolic links are not resolved.

    Args:
        path: Path as printed by the compiler
        working_directory: Directory the compiler ran in

    Returns:
        Normalized absolute path
    """
    return os.path.normpath(os.path.join(working_directory, path))


def parse_dependency_output(output: str, record: CompileRecord) -> TranslationUnitDeps:
    """Parse the dependency output of one compile record.

    The record's own source file is excluded from the result, so only files
    it depends on are returned.

    Args:
        output: Raw dependency output of the compiler
        record: Record the output belongs to

    Returns:
        TranslationUnitDeps with one HeaderDependency per unique path

    Raises:
        MalformedDependencyOutput: If the output is empty or unparseable
    """
    source_file = record.resolved_source()
    try:
        rules = parse_dependency_rules(output)
    except MalformedDependencyOutput as e:
        raise MalformedDependencyOutput(str(e), source_file) from e

    paths = set()
    for _, prerequisites in rules:
        for token in prerequisites:
            path = normalize_path(token, record.working_directory)
            if path != source_file:
                paths.add(path)

    if not paths:
        logger.warning("No dependency found for %s", source_file)

    headers = frozenset(HeaderDependency(path=path, originating_source=source_file) for path in paths)
    return TranslationUnitDeps(source_file=source_file, headers=headers)

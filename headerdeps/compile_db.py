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
"""Compile database records and loading.

A compile database (compile_commands.json) is a list of entries, each naming a
source file, the directory the compiler runs in, and either an ``arguments``
list or a shell-quoted ``command`` string. This module turns those entries into
immutable CompileRecord values for the dependency pipeline.
"""

import os
import json
import shlex
import logging
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Set, Tuple

from headerdeps.constants import CompileDatabaseError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CompileRecord:
    """One compile database entry.

    Attributes:
        source_file: Source file being compiled (absolute when loaded from a database)
        working_directory: Directory the compiler runs in
        arguments: Compiler invocation, first element is the compiler
    """

    source_file: str
    working_directory: str
    arguments: Tuple[str, ...]

    @property
    def compiler(self) -> str:
        return self.arguments[0] if self.arguments else ""

    def resolved_source(self) -> str:
        """Return the source file as a normalized absolute path."""
        return os.path.normpath(os.path.join(self.working_directory, self.source_file))


def _entry_arguments(entry: Dict[str, Any]) -> List[str]:
    """Get the argument list of an entry, splitting ``command`` when needed.

    Raises:
        ValueError: If the entry has neither form, or the command cannot be split
    """
    arguments = entry.get("arguments")
    if arguments:
        if not isinstance(arguments, list):
            raise ValueError("'arguments' must be a list")
        return [str(arg) for arg in arguments]

    command = entry.get("command")
    if command:
        if not isinstance(command, str):
            raise ValueError("'command' must be a string")
        return shlex.split(command)

    raise ValueError("entry has neither 'arguments' nor 'command'")


def records_from_entries(entries: Iterable[Dict[str, Any]]) -> List[CompileRecord]:
    """Convert decoded compile database entries into CompileRecords.

    Entries that are not objects, lack a file or directory, or have no usable
    command are skipped with a warning. When several entries compile the same
    source file only the first is kept.

    Args:
        entries: Decoded JSON entries

    Returns:
        List of CompileRecords in database order
    """
    records: List[CompileRecord] = []
    seen_sources: Set[str] = set()

    for index, entry in enumerate(entries):
        if not isinstance(entry, dict):
            logger.warning("Skipping invalid entry #%d in compile database: %r", index, entry)
            continue

        file_path = entry.get("file", "")
        directory = entry.get("directory", "")
        if not file_path or not directory:
            logger.warning("Skipping entry #%d without 'file' or 'directory'", index)
            continue
        if not isinstance(file_path, str) or not isinstance(directory, str):
            logger.warning("Skipping entry #%d: 'file' and 'directory' must be strings", index)
            continue

        try:
            arguments = _entry_arguments(entry)
        except ValueError as e:
            logger.warning("Skipping entry for %s: %s", file_path, e)
            continue

        if not arguments:
            logger.warning("Skipping entry for %s: empty command", file_path)
            continue

        source_file = os.path.normpath(os.path.join(directory, file_path))
        if source_file in seen_sources:
            logger.warning("Another command for same file. Skip: file=%s, arguments=%s", source_file, arguments)
            continue
        seen_sources.add(source_file)

        records.append(CompileRecord(source_file=source_file, working_directory=directory, arguments=tuple(arguments)))

    logger.debug("Loaded %d compile records", len(records))
    return records


def load_compile_database(compile_db_path: str) -> List[CompileRecord]:
    """Load compile_commands.json into CompileRecords.

    Args:
        compile_db_path: Path to compile_commands.json

    Returns:
        List of CompileRecords (possibly empty)

    Raises:
        CompileDatabaseError: If the file cannot be read, is not JSON, or is not a list
    """
    try:
        with open(compile_db_path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except (IOError, json.JSONDecodeError) as e:
        raise CompileDatabaseError(f"Failed to read compile database {compile_db_path}: {e}") from e

    if not isinstance(data, list):
        raise CompileDatabaseError(f"Invalid compile database format: expected list, got {type(data).__name__}")

    return records_from_entries(data)

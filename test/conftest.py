#!/usr/bin/env python3
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
"""Pytest configuration and shared fixtures for HeaderDeps tests.

Most pipeline tests run a real process: a small /bin/sh "compiler" that prints
the dependency rule stored next to each source file as ``<source>.d``. Sources
whose name ends in ``slow.cpp`` make it sleep instead, for timeout and
cancellation tests.
"""

import os
import sys
import json
import stat
from pathlib import Path
from typing import Callable, Dict, List, Optional

import pytest

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from headerdeps.compile_db import CompileRecord

FAKE_COMPILER_SCRIPT = """#!/bin/sh
for arg in "$@"; do
  case "$arg" in
    *slow.cpp) exec sleep 30 ;;
    *.cpp|*.c) cat "$arg.d" || exit 1; exit 0 ;;
  esac
done
echo "fakecc: no input files" >&2
exit 1
"""

@pytest.fixture
def fake_compiler(tmp_path: Path) -> str:
    """Create the fake compiler script and return its absolute path."""
    bin_dir = tmp_path / "bin"
    bin_dir.mkdir()
    compiler = bin_dir / "fakecc"
    compiler.write_text(FAKE_COMPILER_SCRIPT)
    compiler.chmod(compiler.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
    return str(compiler)


@pytest.fixture
def project_dir(tmp_path: Path) -> Path:
    """Project root with lib/x.h and lib/y.h headers."""
    root = tmp_path / "project"
    (root / "lib").mkdir(parents=True)
    (root / "lib" / "x.h").write_text("#pragma once\n")
    (root / "lib" / "y.h").write_text("#pragma once\n")
    return root


@pytest.fixture
def make_source(project_dir: Path) -> Callable[..., str]:
    """Create a source file and the dependency output the fake compiler prints for it.

    Call with the source name and the dependency tokens; pass deps=None to
    create a source without a .d file (the fake compiler then fails).
    """

    def _make(name: str, deps: Optional[List[str]] = None, raw_output: Optional[str] = None) -> str:
        source = project_dir / name
        source.parent.mkdir(parents=True, exist_ok=True)
        source.write_text("int main() { return 0; }\n")
        if raw_output is not None:
            Path(f"{source}.d").write_text(raw_output)
        elif deps is not None:
            obj = os.path.splitext(name)[0] + ".o"
            lines = [f"{obj}: {name}"] + list(deps)
            Path(f"{source}.d").write_text(" \\\n  ".join(lines) + "\n")
        return str(source)

    return _make


@pytest.fixture
def make_record(project_dir: Path, fake_compiler: str) -> Callable[..., CompileRecord]:
    """Build a CompileRecord compiling a source with the fake compiler."""

    def _make(name: str, working_directory: Optional[str] = None) -> CompileRecord:
        directory = working_directory or str(project_dir)
        return CompileRecord(
            source_file=os.path.normpath(os.path.join(str(project_dir), name)),
            working_directory=directory,
            arguments=(fake_compiler, "-Ilib", "-c", os.path.join(str(project_dir), name), "-o", name + ".o"),
        )

    return _make


@pytest.fixture
def write_compile_db(tmp_path: Path) -> Callable[[List[Dict[str, object]]], str]:
    """Write compile database entries to compile_commands.json and return its path."""

    def _write(entries: List[Dict[str, object]]) -> str:
        path = tmp_path / "compile_commands.json"
        path.write_text(json.dumps(entries, indent=2))
        return str(path)

    return _write

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
"""Tests for headerdeps.toolchain_invoker.

Invocation tests run the fake /bin/sh compiler from conftest.py.
"""

import os
import sys
import time
from pathlib import Path
from typing import Callable
from unittest.mock import MagicMock

import pytest

sys.path.insert(0, str(Path(__file__).parent.parent))

from headerdeps.compile_db import CompileRecord
from headerdeps.constants import InvocationFailed, InvocationTimedOut, RunCancelledError, ToolchainNotFound
from headerdeps.toolchain_invoker import ProcessTracker, build_dependency_command, invoke_toolchain

requires_posix_shell = pytest.mark.skipif(os.name != "posix" or not os.path.exists("/bin/sh"), reason="requires a POSIX shell")


@pytest.mark.unit
class TestBuildDependencyCommand:
    def test_inserts_flags_after_compiler(self) -> None:
        command = build_dependency_command(["g++", "-Iinclude", "-c", "a.cpp"])
        assert command == ["g++", "-M", "-Iinclude", "-c", "a.cpp"]

    def test_removes_output_file(self) -> None:
        assert build_dependency_command(["g++", "-c", "a.cpp", "-o", "a.o"]) == ["g++", "-M", "-c", "a.cpp"]
        assert build_dependency_command(["g++", "-c", "a.cpp", "-oa.o"]) == ["g++", "-M", "-c", "a.cpp"]

    def test_keeps_objc_flags(self) -> None:
        assert build_dependency_command(["clang", "-objc-arc", "a.m"]) == ["clang", "-M", "-objc-arc", "a.m"]

    def test_removes_dependency_flags(self) -> None:
        command = build_dependency_command(["g++", "-MD", "-MMD", "-MP", "-MF", "a.d", "-MT", "a.o", "-MQa.o", "-c", "a.cpp"])
        assert command == ["g++", "-M", "-c", "a.cpp"]

    def test_strips_build_wrappers(self) -> None:
        assert build_dependency_command(["ccache", "/usr/bin/sccache", "clang++", "-c", "a.cpp"]) == ["clang++", "-M", "-c", "a.cpp"]

    def test_custom_dependency_flags(self) -> None:
        assert build_dependency_command(["gcc", "-c", "a.c"], ("-M", "-MG")) == ["gcc", "-M", "-MG", "-c", "a.c"]

    def test_only_wrapper_is_an_error(self) -> None:
        with pytest.raises(ValueError):
            build_dependency_command(["ccache"])

    def test_input_arguments_untouched(self) -> None:
        arguments = ("g++", "-c", "a.cpp", "-o", "a.o")
        build_dependency_command(arguments)
        assert arguments == ("g++", "-c", "a.cpp", "-o", "a.o")


@pytest.mark.unit
class TestProcessTracker:
    def test_cancel_kills_registered_processes(self) -> None:
        tracker = ProcessTracker()
        first, second = MagicMock(), MagicMock()
        tracker.register(first)
        tracker.register(second)
        tracker.unregister(second)

        assert tracker.cancel() == 1
        first.kill.assert_called_once()
        second.kill.assert_not_called()
        assert tracker.cancelled

    def test_register_after_cancel(self) -> None:
        tracker = ProcessTracker()
        tracker.cancel()
        process = MagicMock()

        with pytest.raises(RunCancelledError):
            tracker.register(process)
        process.kill.assert_called_once()

    def test_kill_errors_are_ignored(self) -> None:
        tracker = ProcessTracker()
        process = MagicMock()
        process.kill.side_effect = ProcessLookupError()
        tracker.register(process)
        assert tracker.cancel() == 1


@requires_posix_shell
class TestInvokeToolchain:
    def test_returns_dependency_output(self, make_source: Callable[..., str], make_record: Callable[..., CompileRecord]) -> None:
        make_source("a.cpp", ["lib/x.h", "/usr/include/stdio.h"])
        output = invoke_toolchain(make_record("a.cpp"))
        assert "lib/x.h" in output
        assert "/usr/include/stdio.h" in output

    def test_compiler_failure(self, make_source: Callable[..., str], make_record: Callable[..., CompileRecord]) -> None:
        make_source("broken.cpp")
        with pytest.raises(InvocationFailed) as exc_info:
            invoke_toolchain(make_record("broken.cpp"))
        assert exc_info.value.returncode == 1
        assert "broken.cpp.d" in exc_info.value.diagnostics
        assert exc_info.value.source_file.endswith("broken.cpp")

    def test_missing_compiler(self, project_dir: Path, make_source: Callable[..., str]) -> None:
        source = make_source("a.cpp", ["lib/x.h"])
        record = CompileRecord(source_file=source, working_directory=str(project_dir), arguments=("/nonexistent/bin/cc-9000", "-c", source))
        with pytest.raises(ToolchainNotFound):
            invoke_toolchain(record)

    def test_missing_working_directory(self, project_dir: Path, fake_compiler: str) -> None:
        record = CompileRecord(source_file="/nowhere/a.cpp", working_directory="/nowhere", arguments=(fake_compiler, "-c", "a.cpp"))
        with pytest.raises(InvocationFailed, match="Working directory"):
            invoke_toolchain(record)

    def test_missing_source(self, project_dir: Path, make_record: Callable[..., CompileRecord]) -> None:
        with pytest.raises(InvocationFailed, match="Source file does not exist"):
            invoke_toolchain(make_record("gone.cpp"))

    def test_embedded_null_byte(self, project_dir: Path, make_source: Callable[..., str], fake_compiler: str) -> None:
        source = make_source("a.cpp", ["lib/x.h"])
        record = CompileRecord(source_file=source, working_directory=str(project_dir), arguments=(fake_compiler, "-DX=\x00", "-c", source))
        with pytest.raises(InvocationFailed, match="Invalid compile command"):
            invoke_toolchain(record)

    def test_timeout_kills_compiler(self, make_source: Callable[..., str], make_record: Callable[..., CompileRecord]) -> None:
        make_source("slow.cpp")
        start = time.monotonic()
        with pytest.raises(InvocationTimedOut) as exc_info:
            invoke_toolchain(make_record("slow.cpp"), timeout=0.5)
        assert exc_info.value.timeout == 0.5
        assert time.monotonic() - start < 10

    def test_tracker_unregisters_finished_process(self, make_source: Callable[..., str], make_record: Callable[..., CompileRecord]) -> None:
        make_source("a.cpp", ["lib/x.h"])
        tracker = ProcessTracker()
        invoke_toolchain(make_record("a.cpp"), tracker=tracker)
        assert tracker.cancel() == 0

    def test_runs_in_working_directory(self, tmp_path: Path, project_dir: Path, make_source: Callable[..., str], fake_compiler: str) -> None:
        make_source("sub/a.cpp", ["x.h"])
        record = CompileRecord(
            source_file=os.path.join(str(project_dir), "sub", "a.cpp"),
            working_directory=os.path.join(str(project_dir), "sub"),
            arguments=(fake_compiler, "-c", "a.cpp", "-o", "a.o"),
        )
        assert "x.h" in invoke_toolchain(record)

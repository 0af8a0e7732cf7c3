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
"""Tests for headerdeps.path_classifier."""

import sys
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).parent.parent))

from headerdeps.path_classifier import Classification, SystemRoots, classify_path, classify_paths, is_system_header, is_under_root


@pytest.fixture
def roots() -> SystemRoots:
    return SystemRoots.from_paths(["/usr/include", "/opt/sdk/include/"])


@pytest.mark.unit
class TestSystemRoots:
    def test_roots_are_normalized(self) -> None:
        roots = SystemRoots.from_paths(["/usr/include/", "/usr/./lib/../include", "/opt//sdk"])
        assert roots.sorted() == ("/opt/sdk", "/usr/include")

    def test_empty_entries_ignored(self) -> None:
        roots = SystemRoots.from_paths(["", "/usr"])
        assert len(roots) == 1

    def test_empty_roots_are_falsy(self) -> None:
        assert not SystemRoots.from_paths([])
        assert SystemRoots.from_paths(["/usr"])

    def test_union(self) -> None:
        combined = SystemRoots.from_paths(["/usr"]).union(SystemRoots.from_paths(["/opt", "/usr"]))
        assert combined.sorted() == ("/opt", "/usr")


@pytest.mark.unit
class TestIsUnderRoot:
    def test_path_below_root(self) -> None:
        assert is_under_root("/usr/include/stdio.h", "/usr/include")

    def test_root_itself(self) -> None:
        assert is_under_root("/usr/include", "/usr/include")

    def test_prefix_is_matched_per_component(self) -> None:
        assert not is_under_root("/usr/include2/a.h", "/usr/include")

    def test_filesystem_root_matches_everything_absolute(self) -> None:
        assert is_under_root("/home/user/a.h", "/")


class TestClassification:
    def test_system_header(self, roots: SystemRoots) -> None:
        assert classify_path("/usr/include/c++/13/vector", roots) == Classification.SYSTEM
        assert is_system_header("/opt/sdk/include/gl.h", roots)

    def test_project_header(self, roots: SystemRoots) -> None:
        assert classify_path("/home/dev/project/lib/x.h", roots) == Classification.PROJECT

    def test_no_roots_means_everything_is_project(self) -> None:
        assert classify_path("/usr/include/stdio.h", SystemRoots()) == Classification.PROJECT

    def test_classification_is_deterministic(self, roots: SystemRoots) -> None:
        paths = ["/usr/include/stdio.h", "/project/a.h", "/opt/sdk/include/b.h"]
        first = classify_paths(paths, roots)
        second = classify_paths(reversed(paths), roots)
        assert first == second
        assert first == {
            "/usr/include/stdio.h": Classification.SYSTEM,
            "/project/a.h": Classification.PROJECT,
            "/opt/sdk/include/b.h": Classification.SYSTEM,
        }

    def test_enum_values_are_stable(self) -> None:
        assert int(Classification.SYSTEM) == 1
        assert int(Classification.PROJECT) == 2

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
"""Classify dependency paths as system or project headers.

A path is a system header when it lies under one of the configured system
roots: the toolchain's default include search directories, SDK roots or an
explicit exclusion list. Roots are computed once per run and passed in, so
classification is a pure function of (path, roots).
"""

import os
import enum
import logging
from dataclasses import dataclass
from typing import Dict, FrozenSet, Iterable, Tuple

logger = logging.getLogger(__name__)


class Classification(enum.IntEnum):
    """Header classification types.

    Integer enum for JSON-serializable classification. Values are stable
    across versions.

    Attributes:
        SYSTEM: Supplied by the toolchain or platform
        PROJECT: Part of the project under analysis
    """

    SYSTEM = 1
    PROJECT = 2


def _normalize_root(root: str) -> str:
    normalized = os.path.normpath(root)
    # normpath keeps a trailing separator only for the filesystem root
    return normalized.rstrip(os.sep) or os.sep


@dataclass(frozen=True)
class SystemRoots:
    """Normalized set of system include roots.

    Build instances with from_paths() so every root is normalized once.

    Attributes:
        roots: Normalized root directories
    """

    roots: FrozenSet[str] = frozenset()

    @classmethod
    def from_paths(cls, paths: Iterable[str]) -> "SystemRoots":
        return cls(frozenset(_normalize_root(path) for path in paths if path))

    def union(self, other: "SystemRoots") -> "SystemRoots":
        return SystemRoots(self.roots | other.roots)

    def __bool__(self) -> bool:
        return bool(self.roots)

    def __len__(self) -> int:
        return len(self.roots)

    def sorted(self) -> Tuple[str, ...]:
        return tuple(sorted(self.roots))


def is_under_root(path: str, root: str) -> bool:
    """Check whether path equals root or lies below it.

    Matching is per path component: /usr/include2/a.h is not under /usr/include.
    """
    if root == os.sep:
        return path.startswith(os.sep)
    return path == root or path.startswith(root + os.sep)


def is_system_header(path: str, system_roots: SystemRoots) -> bool:
    """Check if a normalized path is a system header.

    Args:
        path: Normalized absolute path
        system_roots: Configured system roots

    Returns:
        True if the path lies under any system root
    """
    return any(is_under_root(path, root) for root in system_roots.roots)


def classify_path(path: str, system_roots: SystemRoots) -> Classification:
    """Classify a normalized path.

    Args:
        path: Normalized absolute path
        system_roots: Configured system roots

    Returns:
        Classification.SYSTEM or Classification.PROJECT
    """
    if is_system_header(path, system_roots):
        return Classification.SYSTEM
    return Classification.PROJECT


def classify_paths(paths: Iterable[str], system_roots: SystemRoots) -> Dict[str, Classification]:
    """Classify many paths at once.

    Returns:
        Mapping of path to Classification
    """
    return {path: classify_path(path, system_roots) for path in paths}

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
"""File and path utilities for filtering aggregated dependency paths."""

import os
import fnmatch
import logging
from dataclasses import dataclass
from typing import Dict, Iterable, Set, Tuple

from headerdeps.path_classifier import Classification

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ClassificationStats:
    """Statistics about path classification.

    Attributes:
        total: Total number of paths
        system: Count of system paths
        project: Count of project paths
    """

    total: int
    system: int
    project: int


def is_header_file(path: str) -> bool:
    """Check if a path looks like a header.

    Any extension starting with 'h' counts (.h, .hh, .hpp, .hxx, ...), files
    without an extension (<vector>, <iostream>) count as well.

    Args:
        path: File path

    Returns:
        True if the path is treated as a header
    """
    ext = os.path.splitext(path)[1]
    return not ext or ext[1:].startswith("h")


def filter_by_classification(
    paths: Iterable[str], classifications: Dict[str, Classification], exclude: Set[Classification]
) -> Tuple[Set[str], ClassificationStats]:
    """Filter paths by classification, excluding specified types.

    Paths missing from the classification map are treated as PROJECT.

    Args:
        paths: Paths to filter
        classifications: Pre-computed classifications
        exclude: Classifications to drop

    Returns:
        Tuple of (kept_paths, classification_stats)
    """
    counts = {Classification.SYSTEM: 0, Classification.PROJECT: 0}
    kept: Set[str] = set()

    for path in paths:
        classification = classifications.get(path, Classification.PROJECT)
        counts[classification] += 1
        if classification not in exclude:
            kept.add(path)

    stats = ClassificationStats(
        total=counts[Classification.SYSTEM] + counts[Classification.PROJECT],
        system=counts[Classification.SYSTEM],
        project=counts[Classification.PROJECT],
    )
    logger.debug("Classified %d paths: %d system, %d project", stats.total, stats.system, stats.project)
    return kept, stats


def exclude_paths_by_patterns(paths: Set[str], exclude_patterns: Iterable[str]) -> Tuple[Set[str], Dict[str, int]]:
    """Exclude paths matching any of the provided glob patterns.

    Args:
        paths: Set of paths
        exclude_patterns: Glob patterns (e.g., ["*/ThirdParty/*", "*.inl"])

    Returns:
        Tuple of (kept_paths, matches_per_pattern)
    """
    patterns = list(exclude_patterns)
    if not patterns:
        return set(paths), {}

    kept: Set[str] = set()
    pattern_match_counts: Dict[str, int] = {pattern: 0 for pattern in patterns}

    for path in paths:
        for pattern in patterns:
            if fnmatch.fnmatch(path, pattern):
                pattern_match_counts[pattern] += 1
                break
        else:
            kept.add(path)

    logger.info("Excluded %s paths using %s patterns", len(paths) - len(kept), len(patterns))
    for pattern, count in pattern_match_counts.items():
        if count == 0:
            logger.warning("Exclude pattern '%s' matched no paths", pattern)
        else:
            logger.debug("Pattern '%s' matched %s paths", pattern, count)

    return kept, pattern_match_counts


def relative_display_path(path: str, root: str) -> str:
    """Return path relative to root when it lies below root, else unchanged."""
    root = os.path.normpath(root)
    if path == root or path.startswith(root.rstrip(os.sep) + os.sep):
        return os.path.relpath(path, root)
    return path


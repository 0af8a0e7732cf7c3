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
"""Merge per translation unit dependencies into one deduplicated result.

Results of the per-record scans arrive in any order, from any thread. The
aggregator unions them under a single lock, keeping a source -> header graph so
the originating sources of every header stay available. Filters run only when
the result is finalized, after all records have been merged.
"""

import logging
import threading
from dataclasses import dataclass
from typing import FrozenSet, Iterable, Iterator, List, Set, Tuple

import networkx as nx

from headerdeps.dependency_parser import HeaderDependency, TranslationUnitDeps
from headerdeps.file_utils import ClassificationStats, exclude_paths_by_patterns, filter_by_classification, is_header_file, relative_display_path
from headerdeps.path_classifier import Classification, SystemRoots, classify_paths

logger = logging.getLogger(__name__)

NODE_KIND_SOURCE = "source"
NODE_KIND_HEADER = "header"


@dataclass(frozen=True)
class AggregatedResult:
    """Final, ordered set of unique dependency paths.

    Attributes:
        headers: Unique paths after filtering, sorted lexicographically
        unfiltered_count: Unique paths before any filter
        classification_stats: SYSTEM/PROJECT breakdown of the unfiltered paths
        excluded_non_headers: Paths dropped by the headers-only filter
        excluded_by_patterns: Paths dropped by exclude patterns
    """

    headers: Tuple[str, ...]
    unfiltered_count: int
    classification_stats: ClassificationStats
    excluded_non_headers: int = 0
    excluded_by_patterns: int = 0

    @property
    def filtered_count(self) -> int:
        return len(self.headers)

    def __iter__(self) -> Iterator[str]:
        return iter(self.headers)

    def __len__(self) -> int:
        return len(self.headers)

    def relative_to(self, root: str) -> List[str]:
        """Return the headers relative to root (paths outside root stay absolute)."""
        return [relative_display_path(path, root) for path in self.headers]


class DependencyAggregator:
    """Thread-safe union of HeaderDependency sets.

    Args:
        system_roots: Roots used to classify the merged paths
    """

    def __init__(self, system_roots: SystemRoots) -> None:
        self.system_roots = system_roots
        self._lock = threading.Lock()
        self._graph = nx.DiGraph()
        self._paths: Set[str] = set()
        self._units = 0

    def add(self, unit: TranslationUnitDeps) -> int:
        """Merge the dependencies of one translation unit.

        Args:
            unit: Parsed dependencies of one record

        Returns:
            Number of paths not seen before
        """
        with self._lock:
            self._units += 1
            self._graph.add_node(unit.source_file, kind=NODE_KIND_SOURCE)
            return self._merge(unit.headers)

    def _merge(self, dependencies: Iterable[HeaderDependency]) -> int:
        before = len(self._paths)
        for dep in dependencies:
            self._paths.add(dep.path)
            if not self._graph.has_node(dep.path):
                self._graph.add_node(dep.path, kind=NODE_KIND_HEADER)
            if not self._graph.has_node(dep.originating_source):
                self._graph.add_node(dep.originating_source, kind=NODE_KIND_SOURCE)
            self._graph.add_edge(dep.originating_source, dep.path)
        return len(self._paths) - before

    @property
    def unit_count(self) -> int:
        return self._units

    @property
    def all_paths(self) -> FrozenSet[str]:
        with self._lock:
            return frozenset(self._paths)

    def sources_including(self, path: str) -> List[str]:
        """List the sources whose translation unit reads path.

        Args:
            path: Normalized dependency path

        Returns:
            Sorted source files, empty if the path is unknown
        """
        with self._lock:
            if path not in self._paths:
                return []
            return sorted(self._graph.predecessors(path))

    def dependency_graph(self) -> "nx.DiGraph":
        """Return a copy of the source -> header graph with classification attributes."""
        with self._lock:
            graph = self._graph.copy()
            paths = set(self._paths)
        for path, classification in classify_paths(paths, self.system_roots).items():
            graph.nodes[path]["classification"] = classification.name.lower()
        return graph

    def finalize(self, exclude_system_headers: bool = False, headers_only: bool = False, exclude_patterns: Iterable[str] = ()) -> AggregatedResult:
        """Apply filters to the merged set and produce the ordered result.

        Filters run over the full merged set, so the unfiltered count is always
        reported alongside the filtered one.

        Args:
            exclude_system_headers: Drop SYSTEM paths
            headers_only: Keep only header-like paths
            exclude_patterns: Glob patterns of paths to drop

        Returns:
            AggregatedResult with lexicographically sorted paths
        """
        paths = self.all_paths
        classifications = classify_paths(paths, self.system_roots)

        excluded = {Classification.SYSTEM} if exclude_system_headers else set()
        kept, stats = filter_by_classification(paths, classifications, excluded)

        excluded_non_headers = 0
        if headers_only:
            headers = {path for path in kept if is_header_file(path)}
            excluded_non_headers = len(kept) - len(headers)
            kept = headers

        before_patterns = len(kept)
        kept, _ = exclude_paths_by_patterns(kept, exclude_patterns)

        result = AggregatedResult(
            headers=tuple(sorted(kept)),
            unfiltered_count=len(paths),
            classification_stats=stats,
            excluded_non_headers=excluded_non_headers,
            excluded_by_patterns=before_patterns - len(kept),
        )
        logger.info("Aggregated %d unique paths from %d translation units, %d after filtering", result.unfiltered_count, self._units, result.filtered_count)
        return result

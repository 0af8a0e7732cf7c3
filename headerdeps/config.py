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
"""Run configuration for the header dependency pipeline.

Example usage:
    from headerdeps.config import HeaderDepsConfig

    config = HeaderDepsConfig(exclude_system_headers=True, system_root_paths=frozenset({"/usr/include"}))
"""

import multiprocessing as mp
from dataclasses import dataclass, field
from typing import Any, FrozenSet, Optional, Tuple

from headerdeps.constants import DEFAULT_DEPENDENCY_FLAGS, DEFAULT_MAX_WORKERS, DEPENDENCY_SCAN_TIMEOUT, ArgumentError


@dataclass(frozen=True)
class HeaderDepsConfig:
    """Immutable configuration consumed by the pipeline.

    Attributes:
        exclude_system_headers: Drop headers classified as SYSTEM from the result
        system_root_paths: Explicit system root directories
        worker_concurrency: Parallel compiler invocations (None = all CPU cores)
        per_invocation_timeout: Seconds before one compiler invocation is killed (None = no limit)
        detect_system_roots: Ask each compiler for its default include directories
        headers_only: Keep only paths whose extension starts with 'h'
        exclude_patterns: Glob patterns of paths to drop from the result
        dependency_flags: Flags inserted after the compiler to list dependencies
    """

    exclude_system_headers: bool = False
    system_root_paths: FrozenSet[str] = frozenset()
    worker_concurrency: Optional[int] = DEFAULT_MAX_WORKERS
    per_invocation_timeout: Optional[float] = DEPENDENCY_SCAN_TIMEOUT
    detect_system_roots: bool = True
    headers_only: bool = False
    exclude_patterns: Tuple[str, ...] = ()
    dependency_flags: Tuple[str, ...] = field(default=DEFAULT_DEPENDENCY_FLAGS)

    def __post_init__(self) -> None:
        """Validate values."""
        if self.worker_concurrency is not None and self.worker_concurrency < 1:
            raise ArgumentError(f"worker_concurrency must be at least 1, got {self.worker_concurrency}")
        if self.per_invocation_timeout is not None and self.per_invocation_timeout <= 0:
            raise ArgumentError(f"per_invocation_timeout must be positive, got {self.per_invocation_timeout}")
        if not self.dependency_flags:
            raise ArgumentError("dependency_flags must not be empty")

    @property
    def effective_workers(self) -> int:
        return self.worker_concurrency or mp.cpu_count()

    @classmethod
    def from_args(cls, args: Any) -> "HeaderDepsConfig":
        """Build a configuration from parsed command line arguments."""
        return cls(
            exclude_system_headers=args.exclude_system_headers,
            system_root_paths=frozenset(args.system_root or ()),
            worker_concurrency=args.jobs,
            per_invocation_timeout=args.timeout if args.timeout and args.timeout > 0 else None,
            detect_system_roots=not args.no_detect_system_roots,
            headers_only=args.headers,
            exclude_patterns=tuple(args.exclude or ()),
        )

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
"""Runtime package checks for buildCheck HeaderDeps.

The graph aggregation needs networkx; the minimum versions below are the ones
shipped by Ubuntu 24.04 LTS.
"""

import sys
import logging
from importlib.metadata import PackageNotFoundError, version
from typing import Dict, Optional, Tuple

from packaging.version import parse

from headerdeps.color_utils import print_error
from headerdeps.constants import EXIT_RUNTIME_ERROR

logger = logging.getLogger(__name__)

PACKAGE_REQUIREMENTS: Dict[str, str] = {
    "networkx": "2.8.8",
    "packaging": "24.0",
    "colorama": "0.4.6",
}


def check_package_version(package_name: str, min_version: Optional[str] = None, raise_on_error: bool = True) -> Tuple[bool, bool, Optional[str]]:
    """Look up the installed version of a distribution and compare it to a minimum.

    Args:
        package_name: Distribution name on PyPI
        min_version: Minimum version, PACKAGE_REQUIREMENTS entry when None
        raise_on_error: Raise ImportError instead of returning a failed status

    Returns:
        (installed, new enough, installed version or None)

    Raises:
        ImportError: Missing or outdated package, when raise_on_error is set
        ValueError: No minimum version is known for package_name
    """
    required = min_version if min_version is not None else PACKAGE_REQUIREMENTS.get(package_name)
    if required is None:
        raise ValueError(f"No version requirement specified for {package_name}")

    try:
        installed = version(package_name)
    except PackageNotFoundError as exc:
        if raise_on_error:
            raise ImportError(f"{package_name} is not installed. Install with: pip install '{package_name}>={required}'") from exc
        return False, False, None

    new_enough = parse(installed) >= parse(required)
    if not new_enough and raise_on_error:
        raise ImportError(f"{package_name} {installed} is too old, >={required} is required")
    logger.debug("%s %s (need >=%s)", package_name, installed, required)
    return True, new_enough, installed


def require_package(package_name: str, context: str = "this tool") -> None:
    """Exit with EXIT_RUNTIME_ERROR and an install hint when a package is unusable."""
    required = PACKAGE_REQUIREMENTS.get(package_name)
    if required is None:
        print_error(f"Unknown package '{package_name}' - no version requirement defined")
        sys.exit(EXIT_RUNTIME_ERROR)

    is_installed, new_enough, installed = check_package_version(package_name, required, raise_on_error=False)
    if is_installed and new_enough:
        return
    if is_installed:
        print_error(f"{package_name} {installed} is too old for {context}.")
    else:
        print_error(f"{package_name} is required for {context}.")
    print(f"Install with: pip install --upgrade '{package_name}>={required}'", file=sys.stderr)
    sys.exit(EXIT_RUNTIME_ERROR)

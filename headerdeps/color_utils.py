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
"""Colored messages on the terminal, via colorama.

Diagnostics (errors, warnings, skipped-record summaries) go to stderr so that
stdout carries nothing but the dependency listing.
"""

import os
import sys
from typing import Optional, TextIO

from colorama import Fore, Style, init

# Keep escape codes even when stdout is not a TTY; main() calls Colors.disable()
init(autoreset=False, strip=False)


class Colors:
    """Escape codes used by the output helpers. Empty once disabled."""

    RED = Fore.RED
    GREEN = Fore.GREEN
    YELLOW = Fore.YELLOW
    CYAN = Fore.CYAN
    DIM = Style.DIM
    RESET = Style.RESET_ALL

    @classmethod
    def disable(cls) -> None:
        for name in ("RED", "GREEN", "YELLOW", "CYAN", "DIM", "RESET"):
            setattr(cls, name, "")


def colored(text: str, color: str = "", style: str = "") -> str:
    """Wrap text in a color (and optional style such as Colors.DIM)."""
    if not color:
        return text
    return f"{style}{color}{text}{Colors.RESET}"


def _emit(label: str, text: str, color: str, file: Optional[TextIO], prefix: bool) -> None:
    message = f"{label}: {text}" if prefix else text
    print(colored(message, color), file=file if file is not None else sys.stderr)


def print_success(text: str, file: Optional[TextIO] = None, prefix: bool = False) -> None:
    """Report a completed step (e.g. an exported graph) in green on stderr."""
    _emit("Success", text, Colors.GREEN, file, prefix)


def print_error(text: str, file: Optional[TextIO] = None, prefix: bool = True) -> None:
    _emit("Error", text, Colors.RED, file, prefix)


def print_warning(text: str, file: Optional[TextIO] = None, prefix: bool = True) -> None:
    _emit("Warning", text, Colors.YELLOW, file, prefix)


def print_info(text: str, file: Optional[TextIO] = None) -> None:
    _emit("Info", text, Colors.CYAN, file, prefix=False)


def should_use_color(no_color: bool = False) -> bool:
    """Use color only on a terminal, unless --no-color or NO_COLOR (no-color.org) says otherwise."""
    if no_color or not sys.stdout.isatty():
        return False
    return not os.environ.get("NO_COLOR")

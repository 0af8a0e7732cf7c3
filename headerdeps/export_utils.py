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
"""Export the source -> header dependency graph for external visualization."""

import os
import sys
import json
import logging
from typing import Optional

import networkx as nx
from networkx.readwrite import json_graph

from headerdeps.color_utils import print_success
from headerdeps.constants import DEFAULT_GRAPH_FORMAT, SUPPORTED_GRAPH_FORMATS
from headerdeps.file_utils import relative_display_path

logger = logging.getLogger(__name__)


def export_dependency_graph(filename: str, directed_graph: "nx.DiGraph", project_root: Optional[str] = None) -> str:
    """Export the dependency graph to GraphML, GEXF or node-link JSON.

    Node attributes:
        - label: File basename
        - path: Path relative to project_root (absolute when outside it)
        - kind: "source" or "header"
        - classification: "system" or "project" (headers only)

    Args:
        filename: Output filename (extension determines format)
        directed_graph: Graph with source -> header edges
        project_root: Optional root for relative node paths

    Returns:
        Name of the written file (an unknown extension gets .graphml appended)

    Raises:
        OSError: If the file cannot be written
    """
    ext = os.path.splitext(filename)[1].lower()

    G = directed_graph.copy()
    for node in G.nodes():
        G.nodes[node]["label"] = os.path.basename(node)
        G.nodes[node]["path"] = relative_display_path(node, project_root) if project_root else node

    if ext not in SUPPORTED_GRAPH_FORMATS:
        logger.warning("Unsupported graph format: %s. Defaulting to %s.", ext, DEFAULT_GRAPH_FORMAT)
        filename = f"{filename}.{DEFAULT_GRAPH_FORMAT}"
        ext = f".{DEFAULT_GRAPH_FORMAT}"

    if ext == ".graphml":
        nx.write_graphml(G, filename)
    elif ext == ".gexf":
        nx.write_gexf(G, filename)
    else:
        data = json_graph.node_link_data(G)
        with open(filename, "w", encoding="utf-8") as f:
            json.dump(data, f, indent=2)

    logger.info("Exported dependency graph to %s", filename)
    print_success(f"Exported dependency graph to {filename}", file=sys.stderr)
    return filename

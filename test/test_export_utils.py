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
"""Tests for headerdeps.export_utils."""

import sys
import json
from pathlib import Path

import networkx as nx
import pytest

sys.path.insert(0, str(Path(__file__).parent.parent))

from headerdeps.export_utils import export_dependency_graph


@pytest.fixture
def graph() -> nx.DiGraph:
    G = nx.DiGraph()
    G.add_node("/p/a.cpp", kind="source")
    G.add_node("/p/lib/x.h", kind="header", classification="project")
    G.add_node("/usr/include/stdio.h", kind="header", classification="system")
    G.add_edge("/p/a.cpp", "/p/lib/x.h")
    G.add_edge("/p/a.cpp", "/usr/include/stdio.h")
    return G


class TestExportDependencyGraph:
    def test_graphml(self, tmp_path: Path, graph: nx.DiGraph) -> None:
        output = str(tmp_path / "deps.graphml")
        assert export_dependency_graph(output, graph, "/p") == output

        loaded = nx.read_graphml(output)
        assert loaded.number_of_edges() == 2
        assert loaded.nodes["/p/lib/x.h"]["path"] == "lib/x.h"
        assert loaded.nodes["/p/lib/x.h"]["label"] == "x.h"
        assert loaded.nodes["/usr/include/stdio.h"]["path"] == "/usr/include/stdio.h"

    def test_gexf(self, tmp_path: Path, graph: nx.DiGraph) -> None:
        output = str(tmp_path / "deps.gexf")
        export_dependency_graph(output, graph)
        assert nx.read_gexf(output).number_of_nodes() == 3

    def test_json(self, tmp_path: Path, graph: nx.DiGraph) -> None:
        output = tmp_path / "deps.json"
        export_dependency_graph(str(output), graph)
        data = json.loads(output.read_text())
        assert {node["id"] for node in data["nodes"]} == set(graph.nodes())

    def test_unknown_extension_defaults_to_graphml(self, tmp_path: Path, graph: nx.DiGraph) -> None:
        written = export_dependency_graph(str(tmp_path / "deps.txt"), graph)
        assert written.endswith(".txt.graphml")
        assert Path(written).exists()

    def test_input_graph_unchanged(self, tmp_path: Path, graph: nx.DiGraph) -> None:
        export_dependency_graph(str(tmp_path / "deps.graphml"), graph, "/p")
        assert "path" not in graph.nodes["/p/lib/x.h"]

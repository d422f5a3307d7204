"""Undirected transaction graph whose vertices are accounts."""

from __future__ import annotations

import sys
from dataclasses import dataclass
from typing import Optional, TextIO


@dataclass(frozen=True)
class Vertex:
    """An account taking part in transactions."""

    addr: str


class Graph:
    """Undirected multigraph kept as an adjacency list.

    Vertices keep their insertion order; each edge is stored in both
    directions, and adding the same edge twice stores it twice.
    """

    def __init__(self) -> None:
        self.vertex_set: dict[Vertex, None] = {}
        self.edge_set: dict[Vertex, list[Vertex]] = {}

    def __contains__(self, v: object) -> bool:
        return v in self.vertex_set

    def __len__(self) -> int:
        return len(self.vertex_set)

    def add_vertex(self, v: Vertex) -> None:
        """Add a vertex; adding it again changes nothing."""
        self.vertex_set.setdefault(v, None)

    def add_edge(self, u: Vertex, v: Vertex) -> None:
        """Add an undirected edge of weight one, adding missing endpoints."""
        for endpoint in (u, v):
            if endpoint not in self.vertex_set:
                self.add_vertex(endpoint)
        self.edge_set.setdefault(u, []).append(v)
        self.edge_set.setdefault(v, []).append(u)

    def copy(self) -> Graph:
        """Return an independent copy of this graph."""
        dst = Graph()
        dst.vertex_set = dict.fromkeys(self.vertex_set)
        if self.edge_set:
            dst.edge_set = {
                v: list(self.edge_set.get(v, ())) for v in self.vertex_set
            }
        return dst

    def print_graph(self, file: Optional[TextIO] = None) -> None:
        """Write each vertex with its neighbours, one vertex per line."""
        out = file if file is not None else sys.stderr
        for v in self.vertex_set:
            neighbours = "".join(f" {u.addr}\t" for u in self.edge_set.get(v, ()))
            out.write(f"{v.addr} edge:{neighbours}\n")
        out.write("\n")
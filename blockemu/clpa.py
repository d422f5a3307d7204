"""Constrained label propagation (CLPA) partitioning of the account graph."""

from __future__ import annotations

import hashlib
import json
import math
import sys
from typing import Optional, TextIO

from .graph import Graph, Vertex
from .utils import addr2shard

_MOVE_LIMIT = 50


def _div(numerator: float, denominator: float) -> float:
    """Float division that yields inf or nan for a zero divisor."""
    if denominator == 0:
        if numerator == 0 or math.isnan(numerator):
            return math.nan
        return math.copysign(math.inf, numerator)
    return numerator / denominator


class CLPAState:
    """State of the constrained label propagation algorithm."""

    def __init__(
        self, weight_penalty: float, max_iterations: int, shard_num: int
    ) -> None:
        self.net_graph = Graph()
        self.partition_map: dict[Vertex, int] = {}
        self.edges2shard: list[int] = []
        self.vertexs_num_in_shard: list[int] = [0] * shard_num
        self.weight_penalty = weight_penalty
        self.min_edges2shard = 0
        self.max_iterations = max_iterations
        self.cross_shard_edge_num = 0
        self.shard_num = shard_num
        self.graph_hash = b""

    def encode(self) -> bytes:
        """Serialise the state deterministically."""
        state = {
            "net_graph": {
                "vertices": sorted(v.addr for v in self.net_graph.vertex_set),
                "edges": {
                    v.addr: [u.addr for u in neighbours]
                    for v, neighbours in self.net_graph.edge_set.items()
                },
            },
            "partition_map": {v.addr: s for v, s in self.partition_map.items()},
            "edges2shard": self.edges2shard,
            "vertexs_num_in_shard": self.vertexs_num_in_shard,
            "weight_penalty": self.weight_penalty,
            "min_edges2shard": self.min_edges2shard,
            "max_iterations": self.max_iterations,
            "cross_shard_edge_num": self.cross_shard_edge_num,
            "shard_num": self.shard_num,
            "graph_hash": self.graph_hash.hex(),
        }
        return json.dumps(state, sort_keys=True, separators=(",", ":")).encode()

    def hash(self) -> bytes:
        """SHA-256 digest of the encoded state."""
        return hashlib.sha256(self.encode()).digest()

    def add_vertex(self, v: Vertex) -> None:
        """Add a vertex, placing it in its recorded or default shard."""
        self.net_graph.add_vertex(v)
        if v not in self.partition_map:
            self.partition_map[v] = addr2shard(v.addr, self.shard_num)
        self.vertexs_num_in_shard[self.partition_map[v]] += 1

    def add_edge(self, u: Vertex, v: Vertex) -> None:
        """Add an edge, first adding any endpoint not yet in the graph."""
        for endpoint in (u, v):
            if endpoint not in self.net_graph.vertex_set:
                self.add_vertex(endpoint)
        self.net_graph.add_edge(u, v)

    def copy(self) -> CLPAState:
        """Return an independent copy of this state."""
        dst = CLPAState(self.weight_penalty, self.max_iterations, self.shard_num)
        dst.net_graph = self.net_graph.copy()
        dst.partition_map = dict(self.partition_map)
        dst.edges2shard = (list(self.edges2shard) + [0] * self.shard_num)[
            : self.shard_num
        ]
        dst.vertexs_num_in_shard = list(self.vertexs_num_in_shard)
        dst.min_edges2shard = self.min_edges2shard
        dst.cross_shard_edge_num = self.cross_shard_edge_num
        return dst

    def print_clpa(self, file: Optional[TextIO] = None) -> None:
        """Write the graph, the partition and the per-shard edge weights."""
        out = file if file is not None else sys.stderr
        self.net_graph.print_graph(out)
        out.write(f"{self.min_edges2shard}\n")
        out.write("".join(f"{v.addr} {s}\t" for v, s in self.partition_map.items()))
        out.write("".join(f"{w} " for w in self.edges2shard))
        out.write("\n")

    def _shard_of(self, v: Vertex) -> int:
        return self.partition_map.get(v, 0)

    def _refresh_min(self) -> None:
        self.min_edges2shard = min(self.edges2shard, default=sys.maxsize)

    def compute_edges2shard(self) -> None:
        """Recompute the edge weight of every shard and the cross-shard edge count."""
        self.edges2shard = [0] * self.shard_num
        inner_edges = [0] * self.shard_num
        for v, neighbours in self.net_graph.edge_set.items():
            v_shard = self._shard_of(v)
            for u in neighbours:
                u_shard = self._shard_of(u)
                if v_shard != u_shard:
                    self.edges2shard[u_shard] += 1
                else:
                    inner_edges[u_shard] += 1
        self.cross_shard_edge_num = sum(self.edges2shard) // 2
        for shard, inner in enumerate(inner_edges):
            self.edges2shard[shard] += inner // 2
        self._refresh_min()

    def _change_shard_recompute(self, v: Vertex, old: int) -> None:
        new = self._shard_of(v)
        for u in self.net_graph.edge_set.get(v, ()):
            neighbour_shard = self._shard_of(u)
            if neighbour_shard != new and neighbour_shard != old:
                self.edges2shard[new] += 1
                self.edges2shard[old] -= 1
            elif neighbour_shard == new:
                self.edges2shard[old] -= 1
                self.cross_shard_edge_num -= 1
            else:
                self.edges2shard[new] += 1
                self.cross_shard_edge_num += 1
        self._refresh_min()

    def init_partition(self) -> None:
        """Assign each vertex by the last eight hex digits of its address."""
        self.vertexs_num_in_shard = [0] * self.shard_num
        self.partition_map = {}
        for v in self.net_graph.vertex_set:
            tail = v.addr[-8:]
            if len(v.addr) < 8:
                raise ValueError(f"address {v.addr!r} is shorter than 8 characters")
            try:
                num = int(tail, 16)
            except ValueError as exc:
                raise ValueError(f"address tail {tail!r} is not hexadecimal") from exc
            shard = num % self.shard_num
            self.partition_map[v] = shard
            self.vertexs_num_in_shard[shard] += 1
        self.compute_edges2shard()

    def stable_init_partition(self) -> None:
        """Assign vertices to shards in turn, so that no shard is left empty."""
        if self.shard_num > len(self.net_graph.vertex_set):
            raise ValueError(
                "too many shards, number of shards should be less than nodes."
            )
        self.vertexs_num_in_shard = [0] * self.shard_num
        self.partition_map = {}
        for count, v in enumerate(self.net_graph.vertex_set):
            shard = count % self.shard_num
            self.partition_map[v] = shard
            self.vertexs_num_in_shard[shard] += 1
        self.compute_edges2shard()

    def _shard_score(self, v: Vertex, shard: int) -> float:
        neighbours = self.net_graph.edge_set.get(v, ())
        edges_to_shard = sum(1 for u in neighbours if self._shard_of(u) == shard)
        penalty = _div(
            self.weight_penalty * float(self.edges2shard[shard]),
            float(self.min_edges2shard),
        )
        return _div(float(edges_to_shard), float(len(neighbours))) * (1 - penalty)

    def partition(self) -> tuple[dict[str, int], int]:
        """Run CLPA; return the moved accounts with their new shards and the cross-shard edge count."""
        self.compute_edges2shard()
        print("Before running CLPA, cross-shard edge number:", self.cross_shard_edge_num)
        moved: dict[str, int] = {}
        move_counts: dict[str, int] = {}
        for _ in range(self.max_iterations):
            for v in self.net_graph.vertex_set:
                if move_counts.get(v.addr, 0) >= _MOVE_LIMIT:
                    continue
                scores: dict[int, float] = {}
                max_score = -9999.0
                now_shard = best_shard = self._shard_of(v)
                for u in self.net_graph.edge_set.get(v, ()):
                    u_shard = self._shard_of(u)
                    if u_shard in scores:
                        continue
                    scores[u_shard] = self._shard_score(v, u_shard)
                    if max_score < scores[u_shard]:
                        max_score = scores[u_shard]
                        best_shard = u_shard
                if best_shard != now_shard and self.vertexs_num_in_shard[now_shard] > 1:
                    self.partition_map[v] = best_shard
                    moved[v.addr] = best_shard
                    move_counts[v.addr] = move_counts.get(v.addr, 0) + 1
                    self.vertexs_num_in_shard[now_shard] -= 1
                    self.vertexs_num_in_shard[best_shard] += 1
                    self._change_shard_recompute(v, now_shard)
        for shard, count in enumerate(self.vertexs_num_in_shard):
            print(f"{shard} has vertexs: {count}")
        self.compute_edges2shard()
        print("After running CLPA, cross-shard edge number:", self.cross_shard_edge_num)
        return moved, self.cross_shard_edge_num

    def erase_edges(self) -> None:
        """Drop every edge while keeping vertices and partition."""
        self.net_graph.edge_set = {}
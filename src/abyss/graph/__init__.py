"""File dependency graph: reference resolution, construction and ordering."""

from abyss.graph.builder import GraphBuilder, build_graph
from abyss.graph.order import topological_order
from abyss.graph.resolver import ModuleResolver

__all__ = ["GraphBuilder", "ModuleResolver", "build_graph", "topological_order"]

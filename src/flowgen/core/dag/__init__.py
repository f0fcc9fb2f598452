# src/flowgen/core/dag/__init__.py
"""Graph model and structural analysis for flow documents."""

from flowgen.core.dag.analysis import (
    GraphAnalysis,
    GraphAnalyzer,
    classify_complexity,
    extract_subgraph,
    find_cycles,
    find_path,
    parallel_chains,
)
from flowgen.core.dag.graph import FlowGraph
from flowgen.core.dag.models import (
    AdjacencyView,
    EdgeInfo,
    GraphValidationError,
    NodeID,
    NodeInfo,
)

__all__ = [
    "AdjacencyView",
    "EdgeInfo",
    "FlowGraph",
    "GraphAnalysis",
    "GraphAnalyzer",
    "GraphValidationError",
    "NodeID",
    "NodeInfo",
    "classify_complexity",
    "extract_subgraph",
    "find_cycles",
    "find_path",
    "parallel_chains",
]

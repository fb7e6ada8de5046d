"""电路图与导线追踪

- CircuitGraph: 元件/连接构成的无向多重图
- find_path: BFS 最短路径
- trace_path: 对外的追踪服务
"""

from wirediag.core.graph.errors import (
    GraphIntegrityError,
    DisconnectedReferenceError,
    PathNotFoundError,
    NotFoundReason,
)
from wirediag.core.graph.circuit_graph import CircuitGraph, ComponentDetail, WireLink
from wirediag.core.graph.path_resolver import PathResult, find_path
from wirediag.core.graph.tracing import trace_path, validate_endpoints

__all__ = [
    "GraphIntegrityError",
    "DisconnectedReferenceError",
    "PathNotFoundError",
    "NotFoundReason",
    "CircuitGraph",
    "ComponentDetail",
    "WireLink",
    "PathResult",
    "find_path",
    "trace_path",
    "validate_endpoints",
]

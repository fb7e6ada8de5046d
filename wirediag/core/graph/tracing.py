"""导线追踪服务

组合 CircuitGraph 与 find_path，生成对外的追踪结果。
起点与终点相同在这里拒绝。
"""
from typing import Any, Dict, List

from wirediag.core.graph.circuit_graph import CircuitGraph
from wirediag.core.graph.errors import PathNotFoundError
from wirediag.core.graph.path_resolver import find_path
from wirediag.models.circuit import Component, Connection


def validate_endpoints(start_id: str, end_id: str) -> None:
    """校验追踪端点

    Raises:
        ValueError: 端点为空或相同
    """
    if not start_id or not end_id:
        raise ValueError("start and end components are required")
    if start_id == end_id:
        raise ValueError("start and end components must be different")


def trace_path(
    components: List[Component],
    connections: List[Connection],
    start_id: str,
    end_id: str,
) -> Dict[str, Any]:
    """追踪两个元件之间的导线

    Args:
        components: 接线图的元件
        connections: 接线图的连接
        start_id: 起点元件 ID
        end_id: 终点元件 ID

    Returns:
        {"success": True, "path": {...}} 或 {"success": False, "error": "..."}

    Raises:
        ValueError: 端点为空或相同
        GraphIntegrityError: 图数据有问题
    """
    validate_endpoints(start_id, end_id)

    graph = CircuitGraph.build(components, connections)
    result = find_path(graph, start_id, end_id)

    if isinstance(result, PathNotFoundError):
        return {
            "success": False,
            "error": f"no path: {result.message}",
            "reason": result.reason.value,
        }

    path: Dict[str, Any] = {
        "from": graph.get_component(start_id).model_dump(mode="json", by_alias=True),
        "to": graph.get_component(end_id).model_dump(mode="json", by_alias=True),
        "path": result.component_ids,
        "length": result.length,
        "connections": [c.model_dump(mode="json", by_alias=True) for c in result.connections],
    }
    if result.wire_color:
        path["wireColor"] = result.wire_color
    if result.wire_gauge:
        path["wireGauge"] = result.wire_gauge

    return {"success": True, "path": path}

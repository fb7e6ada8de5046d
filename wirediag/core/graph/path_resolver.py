"""路径查找

在 CircuitGraph 上用广度优先搜索查找两个元件之间的导线路径。

- 跳数最少的路径优先（接线图里除跳数外没有有意义的权重）
- 多条最短路径时，优先第一条边在连接列表中插入最早的路径，
  逐跳同理。邻接表按插入顺序排列，FIFO 遍历即可保证这一点
- 找不到时返回 PathNotFoundError，不抛异常
"""
from collections import deque
from typing import Dict, List, Optional, Tuple, Union

from pydantic import BaseModel, Field

from wirediag.core.graph.circuit_graph import CircuitGraph
from wirediag.core.graph.errors import NotFoundReason, PathNotFoundError
from wirediag.models.circuit import Connection


class PathResult(BaseModel):
    """路径查找结果

    Attributes:
        component_ids: 从起点到终点的元件 ID（含两端）
        connections: 依次经过的连接
        length: 跳数
        wire_color: 沿途导线颜色（去重后按顺序用 "/" 连接）
        wire_gauge: 沿途线径（同上）
    """

    component_ids: List[str]
    connections: List[Connection] = Field(default_factory=list)
    length: int
    wire_color: Optional[str] = None
    wire_gauge: Optional[str] = None

    @property
    def start_id(self) -> str:
        return self.component_ids[0]

    @property
    def end_id(self) -> str:
        return self.component_ids[-1]


def _aggregate(values: List[Optional[str]]) -> Optional[str]:
    """合并沿途的导线属性，保留首次出现的顺序"""
    seen: List[str] = []
    for value in values:
        if value and value not in seen:
            seen.append(value)
    return "/".join(seen) if seen else None


def find_path(
    graph: CircuitGraph,
    start_id: str,
    end_id: str,
) -> Union[PathResult, PathNotFoundError]:
    """查找最短导线路径

    起点与终点相同的情况由调用方拒绝，这里不做特殊处理。

    Args:
        graph: 电路图
        start_id: 起点元件 ID
        end_id: 终点元件 ID

    Returns:
        PathResult，或者 PathNotFoundError（未知元件 / 不连通）
    """
    for component_id in (start_id, end_id):
        if not graph.has_component(component_id):
            return PathNotFoundError(
                reason=NotFoundReason.UNKNOWN_COMPONENT,
                message=f"unknown component: {component_id}",
            )

    # parents[node] = (上一个节点, 经过的连接 ID)
    parents: Dict[str, Optional[Tuple[str, str]]] = {start_id: None}
    queue = deque([start_id])

    while queue:
        current = queue.popleft()
        if current == end_id:
            break
        for neighbor_id, connection_id in graph.neighbors_of(current):
            if neighbor_id in parents:
                continue
            parents[neighbor_id] = (current, connection_id)
            queue.append(neighbor_id)

    if end_id not in parents:
        return PathNotFoundError(
            reason=NotFoundReason.DISCONNECTED,
            message=f"no path between {start_id} and {end_id}: components are not connected",
        )

    # 回溯
    component_ids = [end_id]
    connection_ids: List[str] = []
    node = end_id
    while parents[node] is not None:
        previous, connection_id = parents[node]
        connection_ids.append(connection_id)
        component_ids.append(previous)
        node = previous
    component_ids.reverse()
    connection_ids.reverse()

    connections = [graph.get_connection(cid) for cid in connection_ids]
    return PathResult(
        component_ids=component_ids,
        connections=connections,
        length=len(connections),
        wire_color=_aggregate([c.wire_color for c in connections]),
        wire_gauge=_aggregate([c.wire_gauge for c in connections]),
    )

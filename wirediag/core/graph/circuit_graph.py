"""电路图

由元件和连接构建的无向多重图。每个邻接项保存 (邻居 ID, 连接 ID)，
顺序与连接列表的插入顺序一致，路径查找的确定性依赖这一点。
"""
from typing import Dict, Iterable, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from wirediag.core.graph.errors import DisconnectedReferenceError, GraphIntegrityError
from wirediag.models.circuit import Component, Connection


Neighbor = Tuple[str, str]  # (neighbor_id, connection_id)


class WireLink(BaseModel):
    """元件上的一根导线"""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    connection_id: str
    neighbor_id: str
    neighbor_name: str
    direction: str  # outgoing | incoming
    wire_color: Optional[str] = None
    wire_gauge: Optional[str] = None
    signal_type: str
    expected_voltage: Optional[float] = None


class ComponentDetail(BaseModel):
    """元件详情（元件 + 所有连接）"""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    component: Component
    links: List[WireLink] = Field(default_factory=list)

    @property
    def degree(self) -> int:
        return len(self.links)


class CircuitGraph:
    """电路图

    只在一次请求/会话内存在，不单独持久化。
    """

    def __init__(
        self,
        components: Dict[str, Component],
        connections: Dict[str, Connection],
        adjacency: Dict[str, List[Neighbor]],
    ):
        self._components = components
        self._connections = connections
        self._adjacency = adjacency

    @classmethod
    def build(
        cls,
        components: Iterable[Component],
        connections: Iterable[Connection],
    ) -> "CircuitGraph":
        """构建电路图，O(C + E)

        Args:
            components: 元件列表
            connections: 连接列表（顺序决定路径查找的平局规则）

        Returns:
            CircuitGraph

        Raises:
            GraphIntegrityError: 元件 ID 重复
            DisconnectedReferenceError: 连接引用了不存在的元件
        """
        component_map: Dict[str, Component] = {}
        adjacency: Dict[str, List[Neighbor]] = {}
        for component in components:
            if component.id in component_map:
                raise GraphIntegrityError(f"duplicate component id {component.id}")
            component_map[component.id] = component
            adjacency[component.id] = []

        connection_map: Dict[str, Connection] = {}
        for connection in connections:
            if connection.id in connection_map:
                raise GraphIntegrityError(f"duplicate connection id {connection.id}")
            for endpoint in (connection.from_component_id, connection.to_component_id):
                if endpoint not in component_map:
                    raise DisconnectedReferenceError(connection.id, endpoint)

            connection_map[connection.id] = connection
            adjacency[connection.from_component_id].append(
                (connection.to_component_id, connection.id)
            )
            # 自环只记录一次
            if connection.to_component_id != connection.from_component_id:
                adjacency[connection.to_component_id].append(
                    (connection.from_component_id, connection.id)
                )

        return cls(component_map, connection_map, adjacency)

    def neighbors_of(self, component_id: str) -> List[Neighbor]:
        """获取相邻元件

        孤立元件和未知元件都返回空列表。
        """
        return list(self._adjacency.get(component_id, []))

    def has_component(self, component_id: str) -> bool:
        return component_id in self._components

    def get_component(self, component_id: str) -> Optional[Component]:
        return self._components.get(component_id)

    def get_connection(self, connection_id: str) -> Optional[Connection]:
        return self._connections.get(connection_id)

    @property
    def components(self) -> List[Component]:
        return list(self._components.values())

    @property
    def connections(self) -> List[Connection]:
        return list(self._connections.values())

    def find_component(self, name_or_id: str) -> Optional[Component]:
        """按 ID 或名称（不区分大小写）查找元件"""
        if name_or_id in self._components:
            return self._components[name_or_id]
        key = name_or_id.strip().lower()
        for component in self._components.values():
            if component.name.strip().lower() == key or component.id.lower() == key:
                return component
        return None

    def describe_component(self, component_id: str) -> Optional[ComponentDetail]:
        """获取元件详情

        Args:
            component_id: 元件 ID

        Returns:
            元件及其所有连接，未知元件返回 None
        """
        component = self._components.get(component_id)
        if component is None:
            return None

        links = []
        for neighbor_id, connection_id in self._adjacency[component_id]:
            connection = self._connections[connection_id]
            links.append(
                WireLink(
                    connection_id=connection_id,
                    neighbor_id=neighbor_id,
                    neighbor_name=self._components[neighbor_id].name,
                    direction=(
                        "outgoing"
                        if connection.from_component_id == component_id
                        else "incoming"
                    ),
                    wire_color=connection.wire_color,
                    wire_gauge=connection.wire_gauge,
                    signal_type=connection.signal_type.value,
                    expected_voltage=connection.expected_voltage,
                )
            )
        return ComponentDetail(component=component, links=links)

    def __len__(self) -> int:
        return len(self._components)

    def __contains__(self, component_id: str) -> bool:
        return component_id in self._components

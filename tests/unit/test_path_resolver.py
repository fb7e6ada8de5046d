"""find_path 单元测试"""
from collections import deque

import pytest

from wirediag.core.graph import (
    CircuitGraph,
    NotFoundReason,
    PathNotFoundError,
    PathResult,
    find_path,
)
from wirediag.models.circuit import Component, Connection


def _graph(component_ids, edges):
    """edges: [(connection_id, from, to), ...]"""
    return CircuitGraph.build(
        [Component(id=i, name=i) for i in component_ids],
        [Connection(id=cid, from_component_id=a, to_component_id=b) for cid, a, b in edges],
    )


def _bfs_distance(graph, start, end):
    seen = {start: 0}
    queue = deque([start])
    while queue:
        node = queue.popleft()
        for neighbor, _ in graph.neighbors_of(node):
            if neighbor not in seen:
                seen[neighbor] = seen[node] + 1
                queue.append(neighbor)
    return seen.get(end)


class TestFindPath:
    """find_path 测试"""

    def test_bus_relay_actuator(self):
        """测试: Bus → R5 → Actuator"""
        graph = CircuitGraph.build(
            [
                Component(id="Bus", name="Main Bus", type="power_source"),
                Component(id="R5", name="R5", type="relay"),
                Component(id="Actuator", name="Gear Actuator", type="actuator"),
            ],
            [
                Connection(id="W1", from_component_id="Bus", to_component_id="R5",
                           wire_color="Red", wire_gauge="12AWG"),
                Connection(id="W2", from_component_id="R5", to_component_id="Actuator",
                           wire_color="White", wire_gauge="14AWG"),
            ],
        )

        result = find_path(graph, "Bus", "Actuator")

        assert isinstance(result, PathResult)
        assert result.component_ids == ["Bus", "R5", "Actuator"]
        assert result.length == 2
        assert [c.wire_color for c in result.connections] == ["Red", "White"]
        assert result.wire_color == "Red/White"
        assert result.wire_gauge == "12AWG/14AWG"
        assert result.start_id == "Bus"
        assert result.end_id == "Actuator"

    def test_fewest_hops_wins(self):
        """测试: 跳数最少的路径优先，即使它的边插入较晚"""
        graph = _graph(
            ["A", "B", "C", "D"],
            [("W1", "A", "B"), ("W2", "B", "C"), ("W3", "C", "D"), ("W4", "A", "D")],
        )

        result = find_path(graph, "A", "D")

        assert result.component_ids == ["A", "D"]
        assert result.length == 1

    def test_tie_break_earliest_first_edge(self):
        """测试: 多条最短路径时，优先第一条边插入最早的路径"""
        graph = _graph(
            ["S", "X", "Y", "T"],
            [("W1", "S", "Y"), ("W2", "S", "X"), ("W3", "X", "T"), ("W4", "Y", "T")],
        )

        result = find_path(graph, "S", "T")

        assert result.component_ids == ["S", "Y", "T"]
        assert [c.id for c in result.connections] == ["W1", "W4"]

    def test_tie_break_parallel_wires(self):
        """测试: 同一对元件间多根导线，选插入最早的"""
        graph = _graph(["A", "B"], [("W7", "A", "B"), ("W3", "B", "A")])

        result = find_path(graph, "A", "B")

        assert [c.id for c in result.connections] == ["W7"]

    def test_deterministic(self):
        """测试: 相同输入多次调用结果相同"""
        graph = _graph(
            ["A", "B", "C", "D", "E"],
            [("W1", "A", "B"), ("W2", "A", "C"), ("W3", "B", "D"),
             ("W4", "C", "D"), ("W5", "D", "E"), ("W6", "C", "E")],
        )

        results = [find_path(graph, "A", "E") for _ in range(5)]

        assert all(r == results[0] for r in results)

    def test_symmetric_length(self):
        """测试: 反向查找长度相同"""
        graph = _graph(
            ["A", "B", "C", "D", "E", "F"],
            [("W1", "A", "B"), ("W2", "B", "C"), ("W3", "A", "D"),
             ("W4", "D", "E"), ("W5", "E", "C"), ("W6", "C", "F")],
        )

        for start, end in [("A", "F"), ("B", "E"), ("D", "F")]:
            forward = find_path(graph, start, end)
            backward = find_path(graph, end, start)
            assert forward.length == backward.length

    def test_length_equals_bfs_distance(self):
        """测试: 路径长度等于 BFS 距离"""
        graph = _graph(
            [str(i) for i in range(8)],
            [("W1", "0", "1"), ("W2", "1", "2"), ("W3", "2", "3"), ("W4", "3", "4"),
             ("W5", "0", "5"), ("W6", "5", "6"), ("W7", "6", "4"), ("W8", "2", "7")],
        )

        for end in ["1", "2", "3", "4", "6", "7"]:
            result = find_path(graph, "0", end)
            assert result.length == _bfs_distance(graph, "0", end)
            assert len(result.component_ids) == result.length + 1

    def test_path_follows_connections(self):
        """测试: 每一跳都对应一根连接"""
        graph = _graph(
            ["A", "B", "C", "D"],
            [("W1", "B", "A"), ("W2", "C", "B"), ("W3", "C", "D")],
        )

        result = find_path(graph, "A", "D")

        for (a, b), connection in zip(
            zip(result.component_ids, result.component_ids[1:]), result.connections
        ):
            assert {a, b} == {connection.from_component_id, connection.to_component_id}

    def test_missing_wire_attributes(self):
        """测试: 沿途没有颜色/线径时聚合结果为 None"""
        graph = _graph(["A", "B"], [("W1", "A", "B")])

        result = find_path(graph, "A", "B")

        assert result.wire_color is None
        assert result.wire_gauge is None

    def test_repeated_colors_collapsed(self):
        """测试: 重复颜色只保留一次"""
        graph = CircuitGraph.build(
            [Component(id=i, name=i) for i in "ABC"],
            [
                Connection(id="W1", from_component_id="A", to_component_id="B", wire_color="Red"),
                Connection(id="W2", from_component_id="B", to_component_id="C", wire_color="Red"),
            ],
        )

        assert find_path(graph, "A", "C").wire_color == "Red"


class TestPathNotFound:
    """找不到路径测试"""

    def test_disconnected(self):
        """测试: 不连通返回 PathNotFoundError，不抛异常"""
        graph = _graph(["A", "B", "C", "D"], [("W1", "A", "B"), ("W2", "C", "D")])

        result = find_path(graph, "A", "D")

        assert isinstance(result, PathNotFoundError)
        assert result.reason == NotFoundReason.DISCONNECTED
        assert not result.is_unknown_component
        assert "not connected" in result.message

    @pytest.mark.parametrize("start,end", [("A", "GHOST"), ("GHOST", "A")])
    def test_unknown_component(self, start, end):
        """测试: 未知元件"""
        graph = _graph(["A", "B"], [("W1", "A", "B")])

        result = find_path(graph, start, end)

        assert isinstance(result, PathNotFoundError)
        assert result.reason == NotFoundReason.UNKNOWN_COMPONENT
        assert "GHOST" in result.message

    def test_isolated_component(self):
        """测试: 孤立元件"""
        graph = _graph(["A", "B", "LONELY"], [("W1", "A", "B")])

        result = find_path(graph, "A", "LONELY")

        assert result.reason == NotFoundReason.DISCONNECTED

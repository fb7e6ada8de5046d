"""Diagram DAO

负责 diagrams / components / connections 表的数据访问。
元件和连接按导入顺序（position）读出，路径搜索的平局规则依赖这个顺序。
"""
from typing import Any, Dict, List, Optional, Sequence

from wirediag.dao.base import BaseDAO
from wirediag.models.circuit import Component, Connection, Diagram


class DiagramDAO(BaseDAO):
    """接线图数据访问对象"""

    def save_extraction(
        self,
        diagram: Diagram,
        components: Sequence[Component],
        connections: Sequence[Connection],
    ) -> None:
        """保存一张接线图的识别结果（覆盖已有数据）

        Args:
            diagram: 接线图元数据
            components: 元件列表
            connections: 连接列表（顺序即插入顺序）
        """
        with self.transaction() as cursor:
            cursor.execute("DELETE FROM connections WHERE diagram_id = ?", (diagram.diagram_id,))
            cursor.execute("DELETE FROM components WHERE diagram_id = ?", (diagram.diagram_id,))
            cursor.execute(
                """
                INSERT OR REPLACE INTO diagrams
                (diagram_id, title, manufacturer, model, year, system, image_url)
                VALUES (?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    diagram.diagram_id,
                    diagram.title,
                    diagram.manufacturer,
                    diagram.model,
                    diagram.year,
                    diagram.system,
                    diagram.image_url,
                ),
            )
            cursor.executemany(
                """
                INSERT INTO components
                (diagram_id, component_id, name, type, location, part_number, function, position)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?)
                """,
                [
                    (
                        diagram.diagram_id,
                        c.id,
                        c.name,
                        c.type.value,
                        c.location,
                        c.part_number,
                        c.function,
                        position,
                    )
                    for position, c in enumerate(components)
                ],
            )
            cursor.executemany(
                """
                INSERT INTO connections
                (diagram_id, connection_id, from_component_id, to_component_id,
                 wire_color, wire_gauge, signal_type, expected_voltage, position)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                [
                    (
                        diagram.diagram_id,
                        c.id,
                        c.from_component_id,
                        c.to_component_id,
                        c.wire_color,
                        c.wire_gauge,
                        c.signal_type.value,
                        c.expected_voltage,
                        position,
                    )
                    for position, c in enumerate(connections)
                ],
            )

    def get_diagram(self, diagram_id: str) -> Optional[Diagram]:
        """
        获取接线图元数据

        Args:
            diagram_id: 接线图 ID

        Returns:
            接线图元数据，不存在时返回 None
        """
        with self.get_cursor() as (conn, cursor):
            cursor.execute(
                """
                SELECT diagram_id, title, manufacturer, model, year, system, image_url
                FROM diagrams
                WHERE diagram_id = ?
                """,
                (diagram_id,),
            )
            row = cursor.fetchone()
            return Diagram(**dict(row)) if row else None

    def exists(self, diagram_id: str) -> bool:
        with self.get_cursor() as (conn, cursor):
            cursor.execute("SELECT 1 FROM diagrams WHERE diagram_id = ?", (diagram_id,))
            return cursor.fetchone() is not None

    def get_components(self, diagram_id: str) -> List[Component]:
        """获取元件（按导入顺序）"""
        with self.get_cursor() as (conn, cursor):
            cursor.execute(
                """
                SELECT component_id AS id, name, type, location, part_number, function
                FROM components
                WHERE diagram_id = ?
                ORDER BY position
                """,
                (diagram_id,),
            )
            return [Component(**dict(row)) for row in cursor.fetchall()]

    def get_connections(self, diagram_id: str) -> List[Connection]:
        """获取连接（按导入顺序）"""
        with self.get_cursor() as (conn, cursor):
            cursor.execute(
                """
                SELECT connection_id AS id, from_component_id, to_component_id,
                       wire_color, wire_gauge, signal_type, expected_voltage
                FROM connections
                WHERE diagram_id = ?
                ORDER BY position
                """,
                (diagram_id,),
            )
            return [Connection(**dict(row)) for row in cursor.fetchall()]

    def list_diagrams(self, limit: int = 100) -> List[Dict[str, Any]]:
        """
        获取接线图列表

        Args:
            limit: 返回数量限制

        Returns:
            接线图字典列表（含元件、连接数量）
        """
        with self.get_cursor() as (conn, cursor):
            cursor.execute(
                """
                SELECT
                    d.diagram_id, d.title, d.system,
                    (SELECT COUNT(*) FROM components c WHERE c.diagram_id = d.diagram_id) AS component_count,
                    (SELECT COUNT(*) FROM connections n WHERE n.diagram_id = d.diagram_id) AS connection_count
                FROM diagrams d
                ORDER BY d.created_at DESC, d.diagram_id
                LIMIT ?
                """,
                (limit,),
            )
            return [dict(row) for row in cursor.fetchall()]

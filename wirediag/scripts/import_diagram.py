"""接线图导入脚本

从 JSON 文件导入元件识别结果到 SQLite 数据库

JSON 格式：
{
  "diagram": {"diagramId": "...", "title": "...", "system": "..."},
  "components": [{"id": "R5", "name": "R5 relay", "type": "relay", ...}],
  "connections": [{"id": "W1", "fromComponentId": "BUS", "toComponentId": "R5", ...}]
}

字段名 camelCase / snake_case 均可。
"""
import json
import re
from pathlib import Path
from typing import Any, Dict, Optional

from wirediag.dao.base import get_default_db_path
from wirediag.dao.diagram_dao import DiagramDAO
from wirediag.models.circuit import Component, Connection, Diagram


CAMEL_PATTERN = re.compile(r"(?<!^)(?=[A-Z])")


def _snake_keys(data: Dict[str, Any]) -> Dict[str, Any]:
    """camelCase 键转为 snake_case"""
    return {CAMEL_PATTERN.sub("_", key).lower(): value for key, value in data.items()}


def load_extraction(data_path: str) -> Dict[str, Any]:
    """
    读取并校验识别结果文件

    Args:
        data_path: JSON 文件路径

    Returns:
        {"diagram": Diagram, "components": [...], "connections": [...]}

    Raises:
        FileNotFoundError: 文件不存在
        ValueError: 格式错误
    """
    path = Path(data_path)
    if not path.exists():
        raise FileNotFoundError(f"数据文件不存在: {path}")

    with open(path, "r", encoding="utf-8") as f:
        data = json.load(f)

    if not isinstance(data, dict) or "components" not in data:
        raise ValueError("JSON 数据格式错误：根元素必须是包含 components 的对象")

    diagram_data = _snake_keys(data.get("diagram") or {})
    diagram_data.setdefault("diagram_id", path.stem)

    return {
        "diagram": Diagram(**diagram_data),
        "components": [Component(**_snake_keys(c)) for c in data.get("components", [])],
        "connections": [Connection(**_snake_keys(c)) for c in data.get("connections", [])],
    }


def import_diagram(data_path: str, db_path: Optional[str] = None) -> str:
    """
    导入一张接线图

    Args:
        data_path: JSON 文件路径
        db_path: 数据库文件路径，默认为 data/diagrams.db

    Returns:
        导入的 diagram_id
    """
    if db_path is None:
        db_path = get_default_db_path()

    if not Path(db_path).exists():
        raise FileNotFoundError(
            f"数据库文件不存在: {db_path}\n"
            f"请先运行: python -m wirediag init"
        )

    print(f"正在从 {data_path} 导入接线图...")
    extraction = load_extraction(data_path)
    diagram = extraction["diagram"]

    DiagramDAO(db_path).save_extraction(
        diagram,
        extraction["components"],
        extraction["connections"],
    )

    print(f"[OK] 导入完成: {diagram.diagram_id}")
    print(f"  元件: {len(extraction['components'])}")
    print(f"  连接: {len(extraction['connections'])}")
    return diagram.diagram_id


if __name__ == "__main__":
    import sys

    if len(sys.argv) < 2:
        print("用法: python import_diagram.py <data_path> [db_path]")
        sys.exit(1)

    import_diagram(sys.argv[1], sys.argv[2] if len(sys.argv) > 2 else None)

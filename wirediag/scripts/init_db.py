"""数据库初始化脚本

创建 SQLite 数据库的所有表结构

表结构：
- diagrams: 接线图元数据
- components: 元件（position 记录导入顺序）
- connections: 导线连接（position 记录导入顺序）

connections 不对 components 建外键：端点缺失属于上游识别数据问题，
在构建电路图时报告（GraphIntegrityError），而不是在导入时丢弃。
"""
import sqlite3
from pathlib import Path
from typing import Optional

from wirediag.dao.base import get_default_db_path


# 数据库 schema SQL
SCHEMA_SQL = """
-- 接线图表
CREATE TABLE IF NOT EXISTS diagrams (
    diagram_id TEXT PRIMARY KEY,
    title TEXT NOT NULL DEFAULT '',
    manufacturer TEXT,
    model TEXT,
    year INTEGER,
    system TEXT,                       -- 所属系统，如 landing gear
    image_url TEXT,
    created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
);

-- 元件表
CREATE TABLE IF NOT EXISTS components (
    diagram_id TEXT NOT NULL,
    component_id TEXT NOT NULL,
    name TEXT NOT NULL,
    type TEXT NOT NULL DEFAULT 'other',  -- relay|fuse|switch|sensor|actuator|connector|power_source|other
    location TEXT,
    part_number TEXT,
    function TEXT,
    position INTEGER NOT NULL,           -- 导入顺序
    PRIMARY KEY (diagram_id, component_id),
    FOREIGN KEY (diagram_id) REFERENCES diagrams(diagram_id)
);

-- 导线连接表
CREATE TABLE IF NOT EXISTS connections (
    diagram_id TEXT NOT NULL,
    connection_id TEXT NOT NULL,
    from_component_id TEXT NOT NULL,
    to_component_id TEXT NOT NULL,
    wire_color TEXT,
    wire_gauge TEXT,
    signal_type TEXT NOT NULL DEFAULT 'signal',  -- power|ground|signal|data
    expected_voltage REAL,
    position INTEGER NOT NULL,                   -- 导入顺序（路径搜索平局规则依赖）
    PRIMARY KEY (diagram_id, connection_id),
    FOREIGN KEY (diagram_id) REFERENCES diagrams(diagram_id)
);

CREATE INDEX IF NOT EXISTS idx_components_diagram ON components(diagram_id, position);
CREATE INDEX IF NOT EXISTS idx_connections_diagram ON connections(diagram_id, position);
"""


def init_database(db_path: Optional[str] = None) -> None:
    """
    初始化数据库，创建所有表结构

    Args:
        db_path: 数据库文件路径，默认为 data/diagrams.db（优先环境变量 DATA_DIR）
    """
    if db_path is None:
        db_path = get_default_db_path()
    Path(db_path).parent.mkdir(parents=True, exist_ok=True)

    print(f"正在初始化数据库: {db_path}")

    conn = sqlite3.connect(db_path)
    cursor = conn.cursor()

    try:
        cursor.executescript(SCHEMA_SQL)
        conn.commit()
        print("[OK] 数据库表结构创建成功")

        cursor.execute("SELECT name FROM sqlite_master WHERE type='table' ORDER BY name")
        tables = cursor.fetchall()
        print(f"\n已创建的表 ({len(tables)}):")
        for table in tables:
            print(f"  - {table[0]}")

    except Exception as e:
        print(f"[ERROR] 数据库初始化失败: {e}")
        conn.rollback()
        raise
    finally:
        conn.close()

    print(f"\n数据库初始化完成: {db_path}")


if __name__ == "__main__":
    init_database()

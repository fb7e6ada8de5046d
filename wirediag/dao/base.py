"""DAO 基类

接线图数据存放在单个 SQLite 文件中（默认 data/diagrams.db）。
读操作用 get_cursor，写操作用 transaction（异常时整体回滚）。
"""
import os
import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, Optional, Tuple


DB_FILENAME = "diagrams.db"


def get_default_db_path() -> str:
    """默认数据库路径：$DATA_DIR/diagrams.db，未设置时为项目根目录 data/diagrams.db"""
    data_dir = os.environ.get("DATA_DIR")
    if data_dir:
        return str(Path(data_dir) / DB_FILENAME)
    return str(Path(__file__).parent.parent.parent / "data" / DB_FILENAME)


class BaseDAO:
    """DAO 基类

    Attributes:
        db_path: 数据库文件路径
    """

    def __init__(self, db_path: Optional[str] = None):
        """
        Args:
            db_path: 数据库路径，None 时使用 get_default_db_path()
        """
        self.db_path = db_path or get_default_db_path()

    @contextmanager
    def get_connection(self, row_factory: bool = True) -> Iterator[sqlite3.Connection]:
        """
        数据库连接（退出时关闭）

        Args:
            row_factory: 是否按列名访问结果（sqlite3.Row）
        """
        conn = sqlite3.connect(self.db_path)
        if row_factory:
            conn.row_factory = sqlite3.Row
        try:
            yield conn
        finally:
            conn.close()

    @contextmanager
    def get_cursor(self, row_factory: bool = True) -> Iterator[Tuple[sqlite3.Connection, sqlite3.Cursor]]:
        """只读查询用的 (connection, cursor)"""
        with self.get_connection(row_factory) as conn:
            yield conn, conn.cursor()

    @contextmanager
    def transaction(self) -> Iterator[sqlite3.Cursor]:
        """写事务：正常退出时提交，异常时回滚并继续抛出"""
        with self.get_connection() as conn:
            cursor = conn.cursor()
            try:
                yield cursor
                conn.commit()
            except Exception:
                conn.rollback()
                raise

"""DAO 模块

提供数据访问对象，统一管理数据库操作
"""

from wirediag.dao.base import BaseDAO, get_default_db_path
from wirediag.dao.diagram_dao import DiagramDAO

__all__ = [
    "BaseDAO",
    "DiagramDAO",
    "get_default_db_path",
]

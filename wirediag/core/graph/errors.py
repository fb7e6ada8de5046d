"""电路图错误类型

- GraphIntegrityError: 图数据完整性错误（上游识别结果有问题），直接抛出
- PathNotFoundError: 路径不存在，作为返回值而不是异常
"""
from enum import Enum

from pydantic import BaseModel


class GraphIntegrityError(ValueError):
    """图数据完整性错误

    说明元件/连接数据本身有问题，需要在数据源头修复，不能静默忽略。
    """


class DisconnectedReferenceError(GraphIntegrityError):
    """连接引用了不存在的元件"""

    def __init__(self, connection_id: str, component_id: str):
        self.connection_id = connection_id
        self.component_id = component_id
        super().__init__(
            f"connection {connection_id} references unknown component {component_id}"
        )


class NotFoundReason(str, Enum):
    """路径查找失败原因"""
    UNKNOWN_COMPONENT = "unknown_component"
    DISCONNECTED = "disconnected"


class PathNotFoundError(BaseModel):
    """路径查找失败

    可恢复的预期结果，由 find_path 返回给调用方。
    """

    reason: NotFoundReason
    message: str

    @property
    def is_unknown_component(self) -> bool:
        return self.reason == NotFoundReason.UNKNOWN_COMPONENT

"""推理服务调用失败

作为返回值传回调用方，不会越过网关边界抛出：
- OracleFormatError: 输出无法解析为 JSON 或不符合契约
- OracleUnavailableError: 网络错误、超时、限流、服务端错误
"""
from typing import Optional

from pydantic import BaseModel

from wirediag.models.oracle import CallShape


class OracleFailure(BaseModel):
    """推理服务调用失败基类

    Attributes:
        call_shape: 调用形态
        message: 失败原因
        raw_payload: 原始输出（便于离线排查）
    """

    call_shape: CallShape
    message: str
    raw_payload: Optional[str] = None

    @property
    def kind(self) -> str:
        return type(self).__name__


class OracleFormatError(OracleFailure):
    """推理服务输出格式错误"""


class OracleUnavailableError(OracleFailure):
    """推理服务不可用"""

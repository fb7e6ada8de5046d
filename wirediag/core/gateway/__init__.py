"""推理网关

对外部推理服务（LLM）的调用封装：
- ReasoningGateway: 能力接口
- LLMReasoningGateway: 基于 LLMService 的实现
- OracleFailure: 调用失败（作为返回值）
"""

from wirediag.core.gateway.base import OracleContext, ReasoningGateway
from wirediag.core.gateway.errors import OracleFailure, OracleFormatError, OracleUnavailableError
from wirediag.core.gateway.llm_gateway import LLMReasoningGateway
from wirediag.core.gateway.parsing import parse_contract, parse_json_object, strip_code_fence

__all__ = [
    "OracleContext",
    "ReasoningGateway",
    "OracleFailure",
    "OracleFormatError",
    "OracleUnavailableError",
    "LLMReasoningGateway",
    "parse_contract",
    "parse_json_object",
    "strip_code_fence",
]

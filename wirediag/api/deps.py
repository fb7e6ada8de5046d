"""API 共享依赖

服务单例在第一次请求时创建，导入本模块不需要 config.yaml。
测试中通过 app.dependency_overrides 替换。
"""
from typing import Dict, Optional

from wirediag.core.gateway.base import ReasoningGateway
from wirediag.core.gateway.llm_gateway import LLMReasoningGateway
from wirediag.core.session.controller import SessionController
from wirediag.dao.diagram_dao import DiagramDAO
from wirediag.services.llm_service import LLMService
from wirediag.utils.config import Config, SessionConfig, load_config


_config: Optional[Config] = None
_gateway: Optional[ReasoningGateway] = None

# 会话映射: session_id -> SessionController（内存存储，服务重启后丢失）
_session_managers: Dict[str, SessionController] = {}


def get_config() -> Config:
    global _config
    if _config is None:
        _config = load_config()
    return _config


def get_gateway() -> ReasoningGateway:
    """推理网关单例"""
    global _gateway
    if _gateway is None:
        _gateway = LLMReasoningGateway(LLMService(get_config()))
    return _gateway


def get_session_config() -> SessionConfig:
    return get_config().session


def get_diagram_dao() -> DiagramDAO:
    return DiagramDAO()


def get_session_managers() -> Dict[str, SessionController]:
    return _session_managers

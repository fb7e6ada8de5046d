"""诊断会话

- DiagnosticState: 不可变的诊断状态
- ConversationMemory: 对话记忆
- Phase: 会话阶段与转换规则

SessionController 依赖推理网关，从 wirediag.core.session.controller 导入。
"""

from wirediag.core.session.diagnostic_state import DiagnosticState, clamp_confidence
from wirediag.core.session.errors import (
    InvalidTransitionError,
    SessionConcludedError,
    SessionError,
    TurnInProgressError,
)
from wirediag.core.session.lifecycle import Phase, can_transition, transition
from wirediag.core.session.memory import ConversationMemory

__all__ = [
    "DiagnosticState",
    "clamp_confidence",
    "ConversationMemory",
    "Phase",
    "can_transition",
    "transition",
    "SessionError",
    "InvalidTransitionError",
    "SessionConcludedError",
    "TurnInProgressError",
]

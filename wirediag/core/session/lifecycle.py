"""会话生命周期

COLLECTING_SYMPTOM → ANALYZING → AWAITING_EVIDENCE → CONCLUDED

AWAITING_EVIDENCE → ANALYZING 为重新评估路径；
除 CONCLUDED 外任意阶段都可以结束会话。
"""
from enum import Enum
from typing import Dict, FrozenSet

from wirediag.core.session.errors import InvalidTransitionError


class Phase(str, Enum):
    """会话阶段"""
    COLLECTING_SYMPTOM = "collecting_symptom"
    ANALYZING = "analyzing"
    AWAITING_EVIDENCE = "awaiting_evidence"
    CONCLUDED = "concluded"


TRANSITIONS: Dict[Phase, FrozenSet[Phase]] = {
    Phase.COLLECTING_SYMPTOM: frozenset({Phase.ANALYZING, Phase.CONCLUDED}),
    Phase.ANALYZING: frozenset({Phase.AWAITING_EVIDENCE, Phase.CONCLUDED}),
    Phase.AWAITING_EVIDENCE: frozenset({Phase.ANALYZING, Phase.CONCLUDED}),
    Phase.CONCLUDED: frozenset(),
}


def can_transition(current: Phase, target: Phase) -> bool:
    """是否允许从 current 转到 target（原地不动总是允许）"""
    return current == target or target in TRANSITIONS[current]


def transition(current: Phase, target: Phase) -> Phase:
    """执行阶段转换

    Raises:
        InvalidTransitionError: 不允许的转换
    """
    if current == Phase.CONCLUDED or not can_transition(current, target):
        raise InvalidTransitionError(current, target)
    return target

"""数据模型模块

组织结构：
- circuit: 接线图领域模型 (Component, Connection, Diagram)
- session: 会话证据与假设 (Measurement, Hypothesis, etc.)
- oracle: 推理服务输入输出契约 (MessageAnalysis, HypothesisUpdate, TurnReply)
"""
# 接线图模型
from wirediag.models.circuit import (
    Component,
    ComponentType,
    Connection,
    Diagram,
    SignalType,
)

# 会话模型
from wirediag.models.session import (
    DialogueMessage,
    Hypothesis,
    Measurement,
    TestedComponent,
    VehicleInfo,
)

# 推理契约模型
from wirediag.models.oracle import (
    CallShape,
    DiagnosticData,
    HypothesisUpdate,
    MessageAnalysis,
    ProgressUpdate,
    TestProcedure,
    Tone,
    TurnReply,
)

__all__ = [
    # 接线图模型
    "Component",
    "ComponentType",
    "Connection",
    "Diagram",
    "SignalType",
    # 会话模型
    "DialogueMessage",
    "Hypothesis",
    "Measurement",
    "TestedComponent",
    "VehicleInfo",
    # 推理契约模型
    "CallShape",
    "DiagnosticData",
    "HypothesisUpdate",
    "MessageAnalysis",
    "ProgressUpdate",
    "TestProcedure",
    "Tone",
    "TurnReply",
]

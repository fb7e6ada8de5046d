"""会话数据模型

诊断会话中记录的证据与假设：
- VehicleInfo: 被诊断的载具
- Measurement: 一次测量（不可变）
- TestedComponent: 已测试元件及结论（不可变）
- Hypothesis: 一次假设快照（不可变，追加到历史）
- DialogueMessage: 对话消息
"""
from datetime import datetime
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field


class VehicleInfo(BaseModel):
    """载具信息"""

    make: str = "Unknown"
    model: str = "Unknown"
    year: Optional[int] = None
    type: Literal["aircraft", "automotive", "marine"] = "aircraft"

    @property
    def display_name(self) -> str:
        parts = [str(self.year)] if self.year else []
        parts.extend([self.make, self.model])
        return " ".join(parts)


class Measurement(BaseModel):
    """测量记录"""

    model_config = ConfigDict(frozen=True)

    type: str = "voltage"
    value: float
    unit: str = ""
    location: str = ""
    expected: Optional[str] = None

    def describe(self) -> str:
        expected = self.expected or "TBD"
        return f"{self.location}: {self.value:g}{self.unit} (expected: {expected})"


class TestedComponent(BaseModel):
    """已测试元件"""

    __test__ = False

    model_config = ConfigDict(frozen=True)

    name: str
    result: str


class Hypothesis(BaseModel):
    """假设快照

    每次推理产生一个新的快照追加到 hypothesis_history，
    历史中的元素创建后不再修改。

    Attributes:
        statement: 当前认为的故障原因
        confidence: 置信度 0-100
        reasoning: 推理过程
        alternatives: 其他可能原因
        next_step: 建议的下一步检测
        safety_notes: 安全注意事项
        unknowns: 尚未掌握的信息
        created_at: 创建时间
    """

    model_config = ConfigDict(frozen=True)

    statement: str
    confidence: int = Field(ge=0, le=100)
    reasoning: str = ""
    alternatives: List[str] = Field(default_factory=list)
    next_step: str = ""
    safety_notes: List[str] = Field(default_factory=list)
    unknowns: List[str] = Field(default_factory=list)
    created_at: datetime = Field(default_factory=datetime.now)


class DialogueMessage(BaseModel):
    """对话消息"""

    model_config = ConfigDict(frozen=True)

    role: Literal["user", "assistant"]
    content: str
    timestamp: datetime = Field(default_factory=datetime.now)

"""推理服务输入输出模型

定义与外部推理服务（LLM）交互的结构化契约。
LLM 按 camelCase 输出 JSON，模型同时接受 snake_case 字段名。

- MessageAnalysis: extract 调用的输出
- HypothesisUpdate: hypothesize 调用的输出
- TurnReply: respond 调用的输出，也是一轮对话最终返回给调用方的结构
"""
from datetime import datetime
from enum import Enum
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from wirediag.models.session import Measurement


class CallShape(str, Enum):
    """推理服务调用形态

    不同形态使用不同的温度：extract 要求稳定，respond 允许发散。
    """
    EXTRACT = "extract"
    HYPOTHESIZE = "hypothesize"
    RESPOND = "respond"
    VISION = "vision"
    EXPLAIN = "explain"


class ContractModel(BaseModel):
    """契约模型基类（camelCase 别名）"""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_payload(self) -> dict:
        """转换为对外 JSON（camelCase，省略空字段）"""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


# ============================================================
# extract
# ============================================================

class Observation(ContractModel):
    """用户描述的观察"""
    type: str = "behavior"  # sound | visual | behavior
    description: str


class AnswerInfo(ContractModel):
    """对上一个问题的回答"""
    answering_previous_question: bool = False
    answer: Optional[str] = None


class ExtractedTest(ContractModel):
    """用户报告的元件测试结果"""
    name: str
    result: str


class MessageAnalysis(ContractModel):
    """用户消息分析结果

    measurements 和 observations 为必填字段，缺失视为格式错误。

    Attributes:
        measurements: 提取到的测量值
        observations: 提取到的观察
        answers: 是否在回答上一个问题
        new_symptoms: 新出现的症状
        questions_from_tech: 用户提出的问题
        emotional_state: 情绪状态
        needs_clarification: 是否需要澄清
        tested_components: 用户报告的元件测试结论
        current_system: 用户提到的系统
        unexpected_result: 用户表示上一步结果出乎意料
        contradicts_hypothesis: 新证据与当前假设矛盾
    """

    measurements: List[Measurement]
    observations: List[Observation]
    answers: Optional[AnswerInfo] = None
    new_symptoms: List[str] = Field(default_factory=list)
    questions_from_tech: List[str] = Field(default_factory=list)
    emotional_state: Literal["frustrated", "confused", "confident", "neutral"] = "neutral"
    needs_clarification: bool = False
    tested_components: List[ExtractedTest] = Field(default_factory=list)
    current_system: Optional[str] = None
    unexpected_result: bool = False
    contradicts_hypothesis: bool = False

    @field_validator("emotional_state", mode="before")
    @classmethod
    def _coerce_emotional_state(cls, value):
        if value in ("frustrated", "confused", "confident", "neutral"):
            return value
        return "neutral"

    @property
    def has_evidence(self) -> bool:
        """是否带来了新证据"""
        return bool(
            self.measurements or self.observations
            or self.new_symptoms or self.tested_components
        )

    @property
    def triggers_reassessment(self) -> bool:
        """是否触发重新评估"""
        return self.unexpected_result or self.contradicts_hypothesis


# ============================================================
# hypothesize
# ============================================================

class HypothesisUpdate(ContractModel):
    """推理结果"""

    current_hypothesis: str
    confidence: float
    reasoning: str
    next_logical_step: str
    alternative_theories: List[str] = Field(default_factory=list)
    what_we_still_dont_know: List[str] = Field(default_factory=list)
    safety_considerations: List[str] = Field(default_factory=list)
    estimated_time_to_fix: Optional[str] = None
    thinking_out_loud: Optional[str] = Field(default=None, alias="myThinkingOutLoud")


# ============================================================
# respond
# ============================================================

class Tone(str, Enum):
    """回复语气"""
    ENCOURAGING = "encouraging"
    THOUGHTFUL = "thoughtful"
    CONCERNED = "concerned"
    EXCITED = "excited"
    OBSERVANT = "observant"
    EDUCATIONAL = "educational"
    RECONSIDERING = "reconsidering"
    HELPFUL = "helpful"
    FRIENDLY = "friendly"
    APOLOGETIC = "apologetic"


class TestProcedure(ContractModel):
    """引导测试步骤"""

    __test__ = False

    action: str
    tool: str = ""
    location: str = ""
    expected_result: str = ""
    safety: str = ""


class ProgressUpdate(ContractModel):
    """进展说明"""
    what_we_just_learned: str = ""
    confidence_change: str = "0"
    next_step_preview: str = ""

    @field_validator("confidence_change", mode="before")
    @classmethod
    def _coerce_change(cls, value):
        # LLM 有时输出数字 10 / -15
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return f"{value:+g}" if value else "0"
        return value


class DiagnosticData(ContractModel):
    """回复中附带的诊断数据"""
    current_hypothesis: str
    confidence: int
    reasoning: Optional[str] = None
    alternative_theories: Optional[List[str]] = None


class TurnReply(ContractModel):
    """一轮对话的回复

    Attributes:
        message: 面向用户的消息
        tone: 语气
        action_type: 回复类型
        diagnostic_data: 当前假设与置信度
        test_procedure: 建议执行的测试
        highlight_components: 需要在图上高亮的元件
        progress_update: 进展说明
        quick_suggestions: 快捷回复（最多 4 条）
        timestamp: 时间戳
        degraded: 是否为降级回复（推理服务失败时的模板回复）
    """

    message: str
    tone: Tone = Tone.THOUGHTFUL
    action_type: Optional[
        Literal["asking_question", "guiding_test", "sharing_insight", "clarifying"]
    ] = None
    diagnostic_data: Optional[DiagnosticData] = None
    test_procedure: Optional[TestProcedure] = None
    highlight_components: Optional[List[str]] = None
    progress_update: Optional[ProgressUpdate] = None
    quick_suggestions: Optional[List[str]] = None
    timestamp: datetime = Field(default_factory=datetime.now)
    degraded: bool = False

    @field_validator("message")
    @classmethod
    def _message_not_blank(cls, value: str) -> str:
        if not value or not value.strip():
            raise ValueError("message 不能为空")
        return value.strip()

    @field_validator("tone", mode="before")
    @classmethod
    def _coerce_tone(cls, value):
        if isinstance(value, Tone):
            return value
        try:
            return Tone(str(value).strip().lower())
        except ValueError:
            return Tone.THOUGHTFUL

    @field_validator("action_type", mode="before")
    @classmethod
    def _coerce_action_type(cls, value):
        if value in ("asking_question", "guiding_test", "sharing_insight", "clarifying"):
            return value
        return None

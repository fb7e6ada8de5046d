"""推理网关接口

外部推理服务是不确定的，这里把它抽象成一组能力接口，
具体实现（LLM）和测试替身都实现同一个接口。

每个方法成功时返回契约模型，失败时返回 OracleFailure，不抛异常。
"""
from abc import ABC, abstractmethod
from typing import List, Optional, Union

from pydantic import BaseModel, Field

from wirediag.core.gateway.errors import OracleFailure
from wirediag.core.session.diagnostic_state import DiagnosticState
from wirediag.models.oracle import HypothesisUpdate, MessageAnalysis, TurnReply
from wirediag.models.session import Hypothesis


class OracleContext(BaseModel):
    """调用推理服务时附带的会话上下文

    Attributes:
        vehicle: 载具描述
        current_system: 当前系统
        main_symptom: 主症状
        tested_components: 已测试元件名称
        last_assistant_message: 上一条助手消息（判断用户是否在回答问题）
        recent_dialogue: 最近对话（已格式化）
        component_names: 接线图中的元件名称（用于高亮）
    """

    vehicle: str = "Unknown Unknown"
    current_system: str = ""
    main_symptom: str = ""
    tested_components: List[str] = Field(default_factory=list)
    last_assistant_message: str = ""
    recent_dialogue: str = ""
    component_names: List[str] = Field(default_factory=list)


class ReasoningGateway(ABC):
    """推理网关"""

    @abstractmethod
    async def extract(
        self,
        user_message: str,
        context: OracleContext,
    ) -> Union[MessageAnalysis, OracleFailure]:
        """从用户消息中提取测量、观察、新症状等结构化信息"""

    @abstractmethod
    async def hypothesize(
        self,
        state: DiagnosticState,
        context: OracleContext,
    ) -> Union[HypothesisUpdate, OracleFailure]:
        """根据完整诊断状态给出当前最可能的原因和下一步"""

    @abstractmethod
    async def respond(
        self,
        hypothesis: Optional[Hypothesis],
        analysis: Optional[MessageAnalysis],
        last_user_message: str,
        context: Optional[OracleContext] = None,
    ) -> Union[TurnReply, OracleFailure]:
        """生成面向用户的回复"""

    @abstractmethod
    async def analyze_image(
        self,
        image_url: str,
        context_comment: Optional[str] = None,
        symptom: str = "",
    ) -> Union[str, OracleFailure]:
        """分析用户上传的照片或接线图，返回自由文本"""

    @abstractmethod
    async def explain(
        self,
        topic: str,
        state: DiagnosticState,
    ) -> Union[str, OracleFailure]:
        """解释用户追问的“为什么”"""

"""诊断状态

一次诊断会话的证据与假设汇总。DiagnosticState 不可变，
所有更新操作都返回新的状态对象，原状态保持不变：

- record_symptom: 记录主症状
- apply_analysis: 合并用户消息中提取到的证据
- apply_hypothesis: 追加新的假设快照
- reassess: 重新评估（置信度扣减）
- with_resolution_note: 记录最终结论

置信度始终在 [0, 100]，hypothesis_history 只追加。
"""
import math
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from wirediag.models.oracle import HypothesisUpdate, MessageAnalysis
from wirediag.models.session import Hypothesis, Measurement, TestedComponent, VehicleInfo


MIN_CONFIDENCE = 0
MAX_CONFIDENCE = 100


def clamp_confidence(value: float) -> int:
    """将置信度规整到 [0, 100] 的整数"""
    if value is None or (isinstance(value, float) and math.isnan(value)):
        return MIN_CONFIDENCE
    if math.isinf(value):
        return MAX_CONFIDENCE if value > 0 else MIN_CONFIDENCE
    return int(max(MIN_CONFIDENCE, min(MAX_CONFIDENCE, round(value))))


class DiagnosticState(BaseModel):
    """诊断状态

    Attributes:
        vehicle_info: 载具信息
        main_symptom: 主症状
        current_system: 当前排查的系统
        known_facts: 已知事实（观察、新症状）
        tested_components: 已测试元件
        measurements: 测量记录
        hypothesis_history: 假设历史（最后一个为当前假设）
        confidence: 当前置信度
        resolution_note: 会话结束时的结论
    """

    model_config = ConfigDict(frozen=True)

    vehicle_info: VehicleInfo = Field(default_factory=VehicleInfo)
    main_symptom: str = ""
    current_system: str = ""
    known_facts: List[str] = Field(default_factory=list)
    tested_components: List[TestedComponent] = Field(default_factory=list)
    measurements: List[Measurement] = Field(default_factory=list)
    hypothesis_history: List[Hypothesis] = Field(default_factory=list)
    confidence: int = Field(default=50, ge=MIN_CONFIDENCE, le=MAX_CONFIDENCE)
    resolution_note: Optional[str] = None

    @property
    def current_hypothesis(self) -> Optional[Hypothesis]:
        """当前假设"""
        if self.hypothesis_history:
            return self.hypothesis_history[-1]
        return None

    @property
    def has_symptom(self) -> bool:
        return bool(self.main_symptom)

    @property
    def evidence_count(self) -> int:
        return len(self.measurements) + len(self.tested_components) + len(self.known_facts)

    def record_symptom(self, symptom: str) -> "DiagnosticState":
        """记录主症状

        Raises:
            ValueError: 症状为空
        """
        symptom = (symptom or "").strip()
        if not symptom:
            raise ValueError("symptom must not be empty")
        return self.model_copy(update={"main_symptom": symptom})

    def apply_analysis(self, analysis: MessageAnalysis) -> "DiagnosticState":
        """合并消息分析结果

        测量、已测元件追加；观察和新症状作为已知事实追加（去重）。
        """
        facts = list(self.known_facts)
        for text in [o.description for o in analysis.observations] + analysis.new_symptoms:
            text = text.strip()
            if text and text not in facts:
                facts.append(text)

        update = {
            "measurements": [*self.measurements, *analysis.measurements],
            "tested_components": [
                *self.tested_components,
                *(TestedComponent(name=t.name, result=t.result) for t in analysis.tested_components),
            ],
            "known_facts": facts,
        }
        if analysis.current_system:
            update["current_system"] = analysis.current_system
        return self.model_copy(update=update)

    def apply_hypothesis(self, hypothesis_update: HypothesisUpdate) -> "DiagnosticState":
        """追加新的假设快照"""
        confidence = clamp_confidence(hypothesis_update.confidence)
        hypothesis = Hypothesis(
            statement=hypothesis_update.current_hypothesis,
            confidence=confidence,
            reasoning=hypothesis_update.reasoning,
            alternatives=list(hypothesis_update.alternative_theories),
            next_step=hypothesis_update.next_logical_step,
            safety_notes=list(hypothesis_update.safety_considerations),
            unknowns=list(hypothesis_update.what_we_still_dont_know),
        )
        return self.model_copy(
            update={
                "hypothesis_history": [*self.hypothesis_history, hypothesis],
                "confidence": confidence,
            }
        )

    def reassess(self, penalty: int = 20) -> "DiagnosticState":
        """重新评估

        置信度扣减 penalty（最低为 0）。如果已有假设，追加一条降低置信度后的
        快照，使历史能说明置信度为什么下降。
        """
        confidence = clamp_confidence(self.confidence - penalty)
        update = {"confidence": confidence}

        current = self.current_hypothesis
        if current is not None:
            update["hypothesis_history"] = [
                *self.hypothesis_history,
                Hypothesis(
                    statement=current.statement,
                    confidence=confidence,
                    reasoning="Reconsidering: the last result did not match what this theory predicted.",
                    alternatives=list(current.alternatives),
                    next_step=current.next_step,
                    safety_notes=list(current.safety_notes),
                    unknowns=list(current.unknowns),
                ),
            ]
        return self.model_copy(update=update)

    def with_resolution_note(self, note: str) -> "DiagnosticState":
        """记录最终结论"""
        return self.model_copy(update={"resolution_note": note.strip()})

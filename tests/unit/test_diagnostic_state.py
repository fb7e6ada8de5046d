"""DiagnosticState 单元测试"""
import math

import pytest

from wirediag.core.session.diagnostic_state import DiagnosticState, clamp_confidence
from wirediag.models.oracle import HypothesisUpdate, MessageAnalysis
from wirediag.models.session import Measurement


def _update(statement="Failed R5 relay", confidence=60.0, **kwargs):
    return HypothesisUpdate(
        current_hypothesis=statement,
        confidence=confidence,
        reasoning=kwargs.pop("reasoning", "No output on pin 87"),
        next_logical_step=kwargs.pop("next_logical_step", "Check coil voltage"),
        **kwargs,
    )


class TestClampConfidence:
    """clamp_confidence 测试"""

    @pytest.mark.parametrize(
        "value,expected",
        [
            (60, 60),
            (60.6, 61),
            (-5, 0),
            (140, 100),
            (float("inf"), 100),
            (float("-inf"), 0),
            (math.nan, 0),
            (None, 0),
        ],
    )
    def test_clamp(self, value, expected):
        """测试: 规整到 [0, 100]"""
        assert clamp_confidence(value) == expected


class TestDiagnosticState:
    """DiagnosticState 测试"""

    def test_defaults(self):
        """测试: 初始状态"""
        state = DiagnosticState()

        assert state.confidence == 50
        assert state.current_hypothesis is None
        assert not state.has_symptom
        assert state.evidence_count == 0

    def test_record_symptom_returns_new_state(self):
        """测试: 记录症状返回新状态，原状态不变"""
        state = DiagnosticState()

        new_state = state.record_symptom("  gear light flickers ")

        assert new_state.main_symptom == "gear light flickers"
        assert state.main_symptom == ""

    def test_record_empty_symptom_raises(self):
        """测试: 空症状"""
        with pytest.raises(ValueError):
            DiagnosticState().record_symptom("   ")

    def test_apply_analysis(self):
        """测试: 合并测量、已测元件和已知事实"""
        analysis = MessageAnalysis.model_validate({
            "measurements": [{"type": "voltage", "value": 0, "unit": "V",
                              "location": "Pin 87", "expected": "28V"}],
            "observations": [{"type": "sound", "description": "relay clicks"}],
            "newSymptoms": ["lamp dims when gear moves"],
            "testedComponents": [{"name": "R5", "result": "clicks, no output"}],
            "currentSystem": "landing gear",
        })
        state = DiagnosticState().record_symptom("gear light flickers")

        new_state = state.apply_analysis(analysis)

        assert len(new_state.measurements) == 1
        assert new_state.measurements[0].location == "Pin 87"
        assert new_state.tested_components[0].name == "R5"
        assert new_state.known_facts == ["relay clicks", "lamp dims when gear moves"]
        assert new_state.current_system == "landing gear"
        assert state.measurements == []

    def test_apply_analysis_dedups_facts(self):
        """测试: 相同事实不重复记录"""
        analysis = MessageAnalysis(
            measurements=[],
            observations=[{"description": "relay clicks"}],
        )

        state = DiagnosticState().apply_analysis(analysis).apply_analysis(analysis)

        assert state.known_facts == ["relay clicks"]

    def test_apply_analysis_keeps_system_when_absent(self):
        """测试: 没有提到系统时保持原值"""
        state = DiagnosticState(current_system="landing gear")

        new_state = state.apply_analysis(MessageAnalysis(measurements=[], observations=[]))

        assert new_state.current_system == "landing gear"

    def test_apply_hypothesis(self):
        """测试: 追加假设快照"""
        state = DiagnosticState().apply_hypothesis(
            _update(alternative_theories=["Broken wire"], safety_considerations=["Pull breaker"])
        )

        assert state.confidence == 60
        assert len(state.hypothesis_history) == 1
        current = state.current_hypothesis
        assert current.statement == "Failed R5 relay"
        assert current.alternatives == ["Broken wire"]
        assert current.safety_notes == ["Pull breaker"]
        assert current.next_step == "Check coil voltage"

    @pytest.mark.parametrize("raw,expected", [(150, 100), (-20, 0), (72.4, 72)])
    def test_apply_hypothesis_clamps(self, raw, expected):
        """测试: 推理结果置信度越界时规整"""
        state = DiagnosticState().apply_hypothesis(_update(confidence=raw))

        assert state.confidence == expected
        assert state.current_hypothesis.confidence == expected

    def test_history_is_append_only(self):
        """测试: 历史只追加，已有元素不变"""
        state = DiagnosticState().apply_hypothesis(_update("first", 60))
        first = state.hypothesis_history[0]
        snapshot = first.model_dump()

        state = state.apply_hypothesis(_update("second", 40))
        state = state.reassess()
        state = state.apply_hypothesis(_update("third", 80))

        assert len(state.hypothesis_history) == 4
        assert state.hypothesis_history[0] is first
        assert first.model_dump() == snapshot
        assert state.current_hypothesis.statement == "third"

    def test_hypothesis_is_frozen(self):
        """测试: 假设快照不可修改"""
        state = DiagnosticState().apply_hypothesis(_update())

        with pytest.raises(Exception):
            state.current_hypothesis.confidence = 99

    def test_reassess_lowers_confidence(self):
        """测试: 重新评估扣减 20 并追加快照"""
        state = DiagnosticState().apply_hypothesis(_update(confidence=60))

        new_state = state.reassess()

        assert new_state.confidence == 40
        assert len(new_state.hypothesis_history) == 2
        assert new_state.current_hypothesis.confidence == 40
        assert new_state.current_hypothesis.statement == "Failed R5 relay"
        assert new_state.current_hypothesis.reasoning.startswith("Reconsidering")
        assert state.confidence == 60

    def test_repeated_reassess_floors_at_zero(self):
        """测试: 多次重新评估，置信度不低于 0"""
        state = DiagnosticState().apply_hypothesis(_update(confidence=45))

        lengths = []
        for _ in range(6):
            state = state.reassess()
            lengths.append(len(state.hypothesis_history))
            assert 0 <= state.confidence <= 100

        assert state.confidence == 0
        assert lengths == sorted(lengths)

    def test_reassess_without_hypothesis(self):
        """测试: 没有假设时只扣减置信度"""
        state = DiagnosticState().reassess(penalty=20)

        assert state.confidence == 30
        assert state.hypothesis_history == []

    def test_confidence_validated_on_model(self):
        """测试: 模型层面校验置信度范围"""
        with pytest.raises(Exception):
            DiagnosticState(confidence=120)

    def test_state_is_frozen(self):
        """测试: 状态对象不可修改"""
        state = DiagnosticState()
        with pytest.raises(Exception):
            state.confidence = 10

    def test_resolution_note(self):
        """测试: 记录最终结论"""
        state = DiagnosticState().with_resolution_note(" replaced R5 ")

        assert state.resolution_note == "replaced R5"

    def test_evidence_count(self):
        """测试: 证据计数"""
        state = DiagnosticState(
            measurements=[Measurement(value=0, unit="V", location="Pin 87")],
            known_facts=["relay clicks"],
        )

        assert state.evidence_count == 2

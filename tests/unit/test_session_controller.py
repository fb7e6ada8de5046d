"""SessionController 单元测试"""
import asyncio
from typing import List, Optional

import pytest

from wirediag.core.gateway import (
    OracleContext,
    OracleFormatError,
    OracleUnavailableError,
    ReasoningGateway,
    parse_contract,
)
from wirediag.core.session import (
    Phase,
    SessionConcludedError,
    TurnInProgressError,
)
from wirediag.core.session.controller import SessionController
from wirediag.core.session.fallbacks import EVIDENCE_PROMPT_MESSAGE, SYMPTOM_PROMPT_MESSAGE
from wirediag.models.circuit import Component
from wirediag.models.oracle import CallShape, HypothesisUpdate, MessageAnalysis, Tone, TurnReply
from wirediag.models.session import VehicleInfo
from wirediag.utils.config import SessionConfig


def run_async(coro):
    return asyncio.run(coro)


def analysis(**kwargs) -> MessageAnalysis:
    kwargs.setdefault("measurements", [])
    kwargs.setdefault("observations", [])
    return MessageAnalysis.model_validate(kwargs)


def hypothesis(statement="Intermittent ground at gear lamp", confidence=60.0) -> HypothesisUpdate:
    return HypothesisUpdate(
        current_hypothesis=statement,
        confidence=confidence,
        reasoning="Flicker follows vibration",
        next_logical_step="Check the lamp ground",
    )


def reply(message="Let's check the lamp ground first.", **kwargs) -> TurnReply:
    return TurnReply(message=message, **kwargs)


class ScriptedGateway(ReasoningGateway):
    """按脚本返回结果的推理网关"""

    def __init__(self, analyses=None, hypotheses=None, replies=None,
                 image_result="I can see relay R5 and the actuator feed.",
                 explanation="The relay contacts carry the actuator current."):
        self.analyses: List = list(analyses or [])
        self.hypotheses: List = list(hypotheses or [])
        self.replies: List = list(replies or [])
        self.image_result = image_result
        self.explanation = explanation
        self.calls: List[str] = []
        self.contexts: List[OracleContext] = []
        self.hypothesize_gate: Optional[asyncio.Event] = None

    async def extract(self, user_message, context):
        self.calls.append("extract")
        self.contexts.append(context)
        return self.analyses.pop(0) if self.analyses else analysis()

    async def hypothesize(self, state, context):
        self.calls.append("hypothesize")
        if self.hypothesize_gate is not None:
            await self.hypothesize_gate.wait()
        return self.hypotheses.pop(0) if self.hypotheses else hypothesis()

    async def respond(self, hypothesis, analysis, last_user_message, context=None):
        self.calls.append("respond")
        return self.replies.pop(0) if self.replies else reply()

    async def analyze_image(self, image_url, context_comment=None, symptom=""):
        self.calls.append("analyze_image")
        return self.image_result

    async def explain(self, topic, state):
        self.calls.append("explain")
        return self.explanation


def _unavailable(shape: CallShape) -> OracleUnavailableError:
    return OracleUnavailableError(call_shape=shape, message="APIConnectionError: Connection error.")


class TestFirstTurn:
    """首轮对话测试"""

    def test_symptom_recorded(self):
        """测试: 首轮消息记录为主症状，置信度来自推理结果"""
        gateway = ScriptedGateway(hypotheses=[hypothesis(confidence=60)])
        controller = SessionController(gateway)

        result = run_async(controller.handle_message("gear light flickers"))

        assert controller.state.main_symptom == "gear light flickers"
        assert controller.state.confidence == 60
        assert len(controller.state.hypothesis_history) == 1
        assert controller.phase == Phase.AWAITING_EVIDENCE
        assert result.diagnostic_data.confidence == 60
        assert result.diagnostic_data.current_hypothesis == "Intermittent ground at gear lamp"
        assert not result.degraded
        assert gateway.calls == ["extract", "hypothesize", "respond"]
        assert [m.role for m in controller.memory.messages] == ["user", "assistant"]

    def test_empty_first_message(self):
        """测试: 空消息返回引导回复，不调用推理服务"""
        gateway = ScriptedGateway()
        controller = SessionController(gateway)

        result = run_async(controller.handle_message("   "))

        assert result.message == SYMPTOM_PROMPT_MESSAGE
        assert controller.phase == Phase.COLLECTING_SYMPTOM
        assert gateway.calls == []
        assert len(controller.memory) == 0

    def test_initial_confidence_from_config(self):
        """测试: 初始置信度"""
        controller = SessionController(ScriptedGateway(), config=SessionConfig(initial_confidence=30))

        assert controller.state.confidence == 30
        assert controller.phase == Phase.COLLECTING_SYMPTOM

    def test_context_passed_to_gateway(self):
        """测试: 推理上下文包含载具、症状和接线图元件"""
        gateway = ScriptedGateway()
        controller = SessionController(
            gateway,
            vehicle_info=VehicleInfo(make="Cessna", model="172", year=1978),
            components=[Component(id="R5", name="Gear Relay")],
        )

        run_async(controller.handle_message("gear light flickers"))

        context = gateway.contexts[0]
        assert context.vehicle == "1978 Cessna 172"
        assert context.main_symptom == "gear light flickers"
        assert context.component_names == ["Gear Relay"]


class TestEvidenceTurn:
    """后续证据轮测试"""

    def test_measurement_added(self):
        """测试: 0V 测量追加到状态，假设历史 +1"""
        gateway = ScriptedGateway(
            analyses=[
                analysis(),
                analysis(measurements=[{"type": "voltage", "value": 0, "unit": "V",
                                        "location": "Pin 87", "expected": "28V"}]),
            ],
            hypotheses=[hypothesis(confidence=60), hypothesis("Failed R5 relay", 75)],
        )
        controller = SessionController(gateway)
        run_async(controller.handle_message("gear light flickers"))
        before = controller.state

        run_async(controller.handle_message("0V at pin 87, expected 28V"))

        after = controller.state
        assert len(after.measurements) == len(before.measurements) + 1
        assert len(after.hypothesis_history) == len(before.hypothesis_history) + 1
        assert after.measurements[-1].value == 0
        assert after.measurements[-1].expected == "28V"
        assert after.current_hypothesis.statement == "Failed R5 relay"
        assert 0 <= after.confidence <= 100
        assert controller.phase == Phase.AWAITING_EVIDENCE
        assert len(controller.memory) == 4

    def test_empty_evidence_message(self):
        """测试: 后续空消息返回证据引导"""
        controller = SessionController(ScriptedGateway())
        run_async(controller.handle_message("gear light flickers"))

        result = run_async(controller.handle_message(""))

        assert result.message == EVIDENCE_PROMPT_MESSAGE
        assert controller.phase == Phase.AWAITING_EVIDENCE

    def test_last_assistant_message_in_context(self):
        """测试: 上一条助手消息传给 extract"""
        gateway = ScriptedGateway(replies=[reply("Which gear, nose or main?")])
        controller = SessionController(gateway)
        run_async(controller.handle_message("gear light flickers"))

        run_async(controller.handle_message("nose gear"))

        assert gateway.contexts[1].last_assistant_message == "Which gear, nose or main?"
        assert "user: gear light flickers" in gateway.contexts[1].recent_dialogue

    def test_recent_dialogue_window(self):
        """测试: 上下文只包含最近 N 条对话"""
        gateway = ScriptedGateway()
        controller = SessionController(gateway, config=SessionConfig(context_window=2))
        for text in ["gear light flickers", "nose gear", "27V at the lamp"]:
            run_async(controller.handle_message(text))

        dialogue = gateway.contexts[-1].recent_dialogue
        assert dialogue.count("\n") == 1
        assert "nose gear" in dialogue
        assert "gear light flickers" not in dialogue


class TestOracleFailure:
    """推理服务失败测试"""

    def test_hypothesize_format_error_keeps_state(self):
        """测试: 推理输出非 JSON 时保留原假设，返回降级回复"""
        gateway = ScriptedGateway(
            hypotheses=[
                hypothesis(confidence=60),
                parse_contract("not json", HypothesisUpdate, CallShape.HYPOTHESIZE),
            ],
        )
        controller = SessionController(gateway)
        run_async(controller.handle_message("gear light flickers"))
        before = controller.state

        result = run_async(controller.handle_message("27V at the lamp"))

        assert controller.state == before
        assert controller.state.current_hypothesis.statement == "Intermittent ground at gear lamp"
        assert controller.phase == Phase.ANALYZING
        assert result.degraded
        assert result.message
        assert result.diagnostic_data.confidence == 60
        assert "respond" not in gateway.calls[3:]

    def test_extract_failure_on_first_turn(self):
        """测试: 首轮提取失败，症状已记录，阶段停在 ANALYZING"""
        gateway = ScriptedGateway(analyses=[_unavailable(CallShape.EXTRACT)])
        controller = SessionController(gateway)

        result = run_async(controller.handle_message("gear light flickers"))

        assert result.degraded
        assert result.action_type == "clarifying"
        assert controller.state.main_symptom == "gear light flickers"
        assert controller.state.hypothesis_history == []
        assert controller.phase == Phase.ANALYZING
        assert [m.role for m in controller.memory.messages] == ["user", "assistant"]

    def test_recover_after_failure(self):
        """测试: 失败后下一轮正常推进"""
        gateway = ScriptedGateway(analyses=[_unavailable(CallShape.EXTRACT)])
        controller = SessionController(gateway)
        run_async(controller.handle_message("gear light flickers"))

        result = run_async(controller.handle_message("it flickers when taxiing"))

        assert not result.degraded
        assert controller.phase == Phase.AWAITING_EVIDENCE
        assert controller.state.main_symptom == "gear light flickers"
        assert len(controller.state.hypothesis_history) == 1

    def test_respond_failure_discards_hypothesis(self):
        """测试: 回复生成失败时丢弃本轮推理结果"""
        gateway = ScriptedGateway(
            hypotheses=[hypothesis(confidence=60), hypothesis("Failed R5 relay", 80)],
            replies=[reply(), OracleFormatError(call_shape=CallShape.RESPOND, message="schema mismatch")],
        )
        controller = SessionController(gateway)
        run_async(controller.handle_message("gear light flickers"))
        before = controller.state

        result = run_async(controller.handle_message("0V at pin 87"))

        assert controller.state == before
        assert result.degraded
        assert "Intermittent ground at gear lamp" in result.message
        assert "60%" in result.message


class TestReassessment:
    """重新评估测试"""

    def test_unexpected_result_triggers_reassess(self):
        """测试: 结果出乎意料时先扣减置信度再推理"""
        gateway = ScriptedGateway(
            analyses=[analysis(), analysis(unexpectedResult=True)],
            hypotheses=[hypothesis(confidence=60), hypothesis("Broken ground wire", 50)],
        )
        controller = SessionController(gateway)
        run_async(controller.handle_message("gear light flickers"))

        result = run_async(controller.handle_message("that's weird, it reads 28V"))

        history = controller.state.hypothesis_history
        assert [h.confidence for h in history] == [60, 40, 50]
        assert history[1].statement == "Intermittent ground at gear lamp"
        assert result.tone == Tone.RECONSIDERING

    def test_contradiction_without_hypothesis(self):
        """测试: 还没有假设时不做重新评估"""
        gateway = ScriptedGateway(analyses=[analysis(contradictsHypothesis=True)])
        controller = SessionController(gateway)

        result = run_async(controller.handle_message("gear light flickers"))

        assert len(controller.state.hypothesis_history) == 1
        assert result.tone != Tone.RECONSIDERING

    def test_explicit_reassess(self):
        """测试: 显式重新评估不调用推理服务"""
        gateway = ScriptedGateway(hypotheses=[hypothesis(confidence=60)])
        controller = SessionController(gateway)
        run_async(controller.handle_message("gear light flickers"))
        calls_before = list(gateway.calls)

        result = run_async(controller.reassess())

        assert gateway.calls == calls_before
        assert controller.state.confidence == 40
        assert len(controller.state.hypothesis_history) == 2
        assert controller.phase == Phase.ANALYZING
        assert result.tone == Tone.RECONSIDERING
        assert result.diagnostic_data.confidence == 40

    def test_repeated_reassess(self):
        """测试: 多次重新评估置信度不低于 0"""
        controller = SessionController(ScriptedGateway(hypotheses=[hypothesis(confidence=30)]))
        run_async(controller.handle_message("gear light flickers"))

        for _ in range(3):
            run_async(controller.reassess())

        assert controller.state.confidence == 0
        assert len(controller.state.hypothesis_history) == 4


class TestReplyNormalization:
    """回复规整测试"""

    def test_highlights_mapped_to_ids(self):
        """测试: 高亮名称映射为元件 ID，未知名称丢弃"""
        gateway = ScriptedGateway(
            replies=[reply(highlight_components=["gear relay", "BUS", "Flux Capacitor", "R5"])]
        )
        controller = SessionController(
            gateway,
            components=[Component(id="R5", name="Gear Relay"), Component(id="BUS", name="Main Bus")],
        )

        result = run_async(controller.handle_message("gear light flickers"))

        assert result.highlight_components == ["R5", "BUS"]

    def test_highlights_without_diagram(self):
        """测试: 未绑定接线图时原样返回"""
        gateway = ScriptedGateway(replies=[reply(highlight_components=["R5"])])
        controller = SessionController(gateway)

        result = run_async(controller.handle_message("gear light flickers"))

        assert result.highlight_components == ["R5"]

    def test_quick_suggestions_capped(self):
        """测试: 快捷回复最多 4 条"""
        gateway = ScriptedGateway(replies=[reply(quick_suggestions=[f"option {i}" for i in range(6)])])
        controller = SessionController(gateway)

        result = run_async(controller.handle_message("gear light flickers"))

        assert result.quick_suggestions == ["option 0", "option 1", "option 2", "option 3"]

    def test_bind_diagram(self):
        """测试: 会话中途绑定接线图"""
        controller = SessionController(ScriptedGateway())

        controller.bind_diagram("gear-1", [Component(id="L1", name="Gear Lamp")])

        assert controller.diagram_id == "gear-1"
        assert controller.normalize_highlights(["gear lamp", "x"]) == ["L1"]


class TestPhotoAndExplain:
    """图片分析与解释测试"""

    def test_diagram_url_routes_to_vision(self):
        """测试: 附带 diagram_url 时转为图片分析"""
        gateway = ScriptedGateway()
        controller = SessionController(gateway)

        result = run_async(controller.handle_message("is this the right relay?", diagram_url="http://img/1.jpg"))

        assert gateway.calls == ["analyze_image"]
        assert result.tone == Tone.OBSERVANT
        assert result.message == "I can see relay R5 and the actuator feed."
        assert controller.memory.messages[0].content == "[Photo] is this the right relay?"
        assert controller.phase == Phase.COLLECTING_SYMPTOM

    def test_photo_failure(self):
        """测试: 图片分析失败返回降级回复"""
        gateway = ScriptedGateway(image_result=_unavailable(CallShape.VISION))
        controller = SessionController(gateway)

        result = run_async(controller.analyze_photo("http://img/1.jpg"))

        assert result.degraded
        assert "describe" in result.message
        assert controller.memory.messages[0].content == "[Photo]"

    def test_explain(self):
        """测试: 解释使用教学语气"""
        gateway = ScriptedGateway()
        controller = SessionController(gateway)

        result = run_async(controller.explain("why check the relay first?"))

        assert result.tone == Tone.EDUCATIONAL
        assert result.message == "The relay contacts carry the actuator current."

    def test_explain_failure(self):
        """测试: 解释失败"""
        gateway = ScriptedGateway(explanation=OracleFormatError(call_shape=CallShape.EXPLAIN, message="empty payload"))
        controller = SessionController(gateway)

        result = run_async(controller.explain("why?"))

        assert result.degraded


class TestConclusion:
    """会话结束测试"""

    def test_resolve(self):
        """测试: 结束会话并记录结论"""
        controller = SessionController(ScriptedGateway())
        run_async(controller.handle_message("gear light flickers"))

        result = run_async(controller.resolve("Replaced R5 relay"))

        assert controller.phase == Phase.CONCLUDED
        assert controller.is_concluded
        assert controller.state.resolution_note == "Replaced R5 relay"
        assert result.tone == Tone.EXCITED

    def test_resolve_not_fixed(self):
        """测试: 未修复结束"""
        controller = SessionController(ScriptedGateway())

        result = run_async(controller.resolve(fixed=False))

        assert controller.phase == Phase.CONCLUDED
        assert result.tone == Tone.FRIENDLY
        assert controller.state.resolution_note is None

    def test_concluded_rejects_turns(self):
        """测试: 结束后拒绝新的对话"""
        controller = SessionController(ScriptedGateway())
        run_async(controller.resolve())

        with pytest.raises(SessionConcludedError):
            run_async(controller.handle_message("one more thing"))
        with pytest.raises(SessionConcludedError):
            run_async(controller.reassess())

    def test_store_note_after_conclusion(self):
        """测试: 结束后仍可记录结论"""
        controller = SessionController(ScriptedGateway())
        run_async(controller.resolve())

        controller.store_resolution_note("Chafed ground wire behind panel")

        assert controller.state.resolution_note == "Chafed ground wire behind panel"

    def test_store_empty_note(self):
        """测试: 空结论"""
        controller = SessionController(ScriptedGateway())

        with pytest.raises(ValueError):
            controller.store_resolution_note("  ")


class TestConcurrency:
    """并发与取消测试"""

    def test_turn_in_progress(self):
        """测试: 上一轮未完成时拒绝新的一轮"""
        gateway = ScriptedGateway()
        controller = SessionController(gateway)

        async def scenario():
            gateway.hypothesize_gate = asyncio.Event()
            first = asyncio.create_task(controller.handle_message("gear light flickers"))
            await asyncio.sleep(0)
            assert controller.is_busy
            with pytest.raises(TurnInProgressError):
                await controller.handle_message("hello?")
            gateway.hypothesize_gate.set()
            return await first

        result = run_async(scenario())

        assert not controller.is_busy
        assert not result.degraded
        assert len(controller.memory) == 2

    def test_cancelled_turn_leaves_state(self):
        """测试: 取消的轮次不留下部分结果"""
        gateway = ScriptedGateway(
            analyses=[analysis(), analysis(measurements=[{"value": 0, "unit": "V", "location": "Pin 87"}])],
        )
        controller = SessionController(gateway)

        async def scenario():
            await controller.handle_message("gear light flickers")
            before = (controller.state, controller.phase, len(controller.memory))

            gateway.hypothesize_gate = asyncio.Event()
            task = asyncio.create_task(controller.handle_message("0V at pin 87"))
            await asyncio.sleep(0)
            task.cancel()
            with pytest.raises(asyncio.CancelledError):
                await task
            return before

        state, phase, turns = run_async(scenario())

        assert controller.state == state
        assert controller.state.measurements == []
        assert controller.phase == phase
        assert len(controller.memory) == turns
        assert not controller.is_busy

    def test_vehicle_info_updated_within_turn(self):
        """测试: 载具信息随轮次写入，提交后保留"""
        gateway = ScriptedGateway()
        controller = SessionController(gateway, vehicle_info=VehicleInfo(make="Cessna", model="172"))

        run_async(controller.handle_message("gear light flickers"))
        run_async(controller.handle_message(
            "27V at the lamp", vehicle_info=VehicleInfo(make="Piper", model="PA-28", year=1981)
        ))

        assert gateway.contexts[0].vehicle == "Cessna 172"
        assert gateway.contexts[1].vehicle == "1981 Piper PA-28"
        assert controller.state.vehicle_info.make == "Piper"
        assert len(controller.state.hypothesis_history) == 2

    def test_vehicle_update_rejected_while_busy(self):
        """测试: 进行中的轮次不会被并发的载具信息更新覆盖"""
        gateway = ScriptedGateway()
        controller = SessionController(gateway, vehicle_info=VehicleInfo(make="Cessna", model="172"))

        async def scenario():
            gateway.hypothesize_gate = asyncio.Event()
            first = asyncio.create_task(controller.handle_message("gear light flickers"))
            await asyncio.sleep(0)
            with pytest.raises(TurnInProgressError):
                await controller.reassess(vehicle_info=VehicleInfo(make="Piper", model="PA-28"))
            gateway.hypothesize_gate.set()
            await first

        run_async(scenario())

        assert controller.state.vehicle_info.make == "Cessna"
        assert controller.state.current_hypothesis is not None


class TestToDict:
    """会话概要测试"""

    def test_to_dict(self):
        """测试: camelCase 概要"""
        controller = SessionController(ScriptedGateway(), session_id="s-1", user_id="tech-7", diagram_id="gear-1")
        run_async(controller.handle_message("gear light flickers"))

        data = controller.to_dict()

        assert data["sessionId"] == "s-1"
        assert data["userId"] == "tech-7"
        assert data["diagramId"] == "gear-1"
        assert data["phase"] == "awaiting_evidence"
        assert data["mainSymptom"] == "gear light flickers"
        assert data["hypothesisCount"] == 1
        assert data["turns"] == 2

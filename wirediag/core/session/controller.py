"""会话控制器

一轮对话的编排：
1. 首轮消息记录为主症状（COLLECTING_SYMPTOM → ANALYZING）
2. gateway.extract 提取测量/观察 → apply_analysis（必要时 reassess）
3. gateway.hypothesize → apply_hypothesis
4. gateway.respond → TurnReply
5. 全部成功后一次性提交 state / phase / memory

任何一次推理调用失败：丢弃本轮推理得到的状态，返回该调用形态的降级回复；
提取成功后的失败停留在 ANALYZING。
所有 await 完成之前不修改会话，取消的轮次不会留下部分结果。
"""
import asyncio
import logging
import uuid
from contextlib import asynccontextmanager
from typing import Callable, Dict, List, Optional, Sequence

from wirediag.core.gateway.base import OracleContext, ReasoningGateway
from wirediag.core.gateway.errors import OracleFailure
from wirediag.core.session.diagnostic_state import DiagnosticState
from wirediag.core.session.errors import SessionConcludedError, TurnInProgressError
from wirediag.core.session.fallbacks import (
    evidence_prompt_reply,
    fallback_reply,
    symptom_prompt_reply,
)
from wirediag.core.session.lifecycle import Phase, transition
from wirediag.core.session.memory import ConversationMemory
from wirediag.models.circuit import Component
from wirediag.models.oracle import CallShape, DiagnosticData, Tone, TurnReply
from wirediag.models.session import VehicleInfo
from wirediag.utils.config import SessionConfig


logger = logging.getLogger(__name__)


REASSESS_MESSAGE = (
    "Hmm, that's not what I expected. Let me reconsider our approach here. "
    "Maybe we should take a step back and look at this from a different angle."
)

RESOLVED_MESSAGE = "Nice work. I've logged the fix so we have it for next time."
UNRESOLVED_MESSAGE = "Understood, let's park it here. I've saved where we got to."


class SessionController:
    """诊断会话控制器（会话聚合根）

    Attributes:
        session_id: 会话 ID
        user_id: 用户 ID
        diagram_id: 绑定的接线图 ID（可选）
        state: 诊断状态（不可变，每轮替换）
        phase: 会话阶段
        memory: 对话记忆
    """

    def __init__(
        self,
        gateway: ReasoningGateway,
        session_id: Optional[str] = None,
        user_id: str = "anonymous",
        vehicle_info: Optional[VehicleInfo] = None,
        diagram_id: Optional[str] = None,
        components: Optional[Sequence[Component]] = None,
        config: Optional[SessionConfig] = None,
        progress_callback: Optional[Callable[[str], None]] = None,
    ):
        """初始化

        Args:
            gateway: 推理网关
            session_id: 会话 ID，不传则自动生成
            user_id: 用户 ID
            vehicle_info: 载具信息
            diagram_id: 绑定的接线图 ID
            components: 接线图元件（用于高亮名称映射）
            config: 会话配置
            progress_callback: 进度回调函数
        """
        self.gateway = gateway
        self.session_id = session_id or str(uuid.uuid4())
        self.user_id = user_id
        self.diagram_id = diagram_id
        self.config = config or SessionConfig()
        self._progress_callback = progress_callback

        self.state = DiagnosticState(
            vehicle_info=vehicle_info or VehicleInfo(),
            confidence=self.config.initial_confidence,
        )
        self.phase = Phase.COLLECTING_SYMPTOM
        self.memory = ConversationMemory()

        self._components: List[Component] = list(components or [])
        self._lock = asyncio.Lock()

    def _report_progress(self, message: str):
        """报告进度"""
        if self._progress_callback:
            self._progress_callback(message)

    # ============================================================
    # 属性
    # ============================================================

    @property
    def is_concluded(self) -> bool:
        return self.phase == Phase.CONCLUDED

    @property
    def is_busy(self) -> bool:
        """是否有正在进行的轮次"""
        return self._lock.locked()

    @property
    def components(self) -> List[Component]:
        return list(self._components)

    def bind_diagram(self, diagram_id: str, components: Sequence[Component]):
        """绑定接线图（用于高亮映射）"""
        self.diagram_id = diagram_id
        self._components = list(components)

    # ============================================================
    # 轮次
    # ============================================================

    @asynccontextmanager
    async def _turn(self, vehicle_info: Optional[VehicleInfo] = None):
        """一轮对话：检查会话状态并独占执行

        载具信息在持有锁之后、推理调用之前写入，与症状采集一样不随推理失败回退。

        Raises:
            SessionConcludedError: 会话已结束
            TurnInProgressError: 上一轮尚未完成
        """
        if self.is_concluded:
            raise SessionConcludedError(f"session {self.session_id} is concluded")
        if self._lock.locked():
            raise TurnInProgressError(f"session {self.session_id} already has a turn in progress")
        async with self._lock:
            if vehicle_info is not None:
                self.state = self.state.model_copy(update={"vehicle_info": vehicle_info})
            yield

    async def handle_message(
        self,
        message: str,
        diagram_url: Optional[str] = None,
        vehicle_info: Optional[VehicleInfo] = None,
    ) -> TurnReply:
        """处理一条用户消息

        Args:
            message: 用户消息
            diagram_url: 附带的接线图/照片 URL（有则转为图片分析）
            vehicle_info: 更新后的载具信息（可选）

        Returns:
            本轮回复
        """
        async with self._turn(vehicle_info):
            if diagram_url:
                return await self._analyze_photo(diagram_url, message or None)
            return await self._handle_text(message)

    async def _handle_text(self, message: str) -> TurnReply:
        message = (message or "").strip()

        if not message:
            if self.phase == Phase.COLLECTING_SYMPTOM:
                return symptom_prompt_reply()
            return evidence_prompt_reply()

        # 症状采集在推理调用之前完成，推理失败也保留
        if self.phase == Phase.COLLECTING_SYMPTOM:
            self.state = self.state.record_symptom(message)
            self.phase = transition(self.phase, Phase.ANALYZING)
            logger.info("会话 %s 记录症状: %s", self.session_id, message)

        context = self._build_context()
        phase = self.phase
        state = self.state

        # 1. 提取
        self._report_progress("分析用户输入...")
        analysis = await self.gateway.extract(message, context)
        if isinstance(analysis, OracleFailure):
            return self._fail_turn(message, analysis)

        state = state.apply_analysis(analysis)
        reassessed = False
        if analysis.triggers_reassessment and state.current_hypothesis is not None:
            state = state.reassess(self.config.reassess_penalty)
            reassessed = True
            logger.info("会话 %s 触发重新评估，置信度降至 %d", self.session_id, state.confidence)
        if phase == Phase.AWAITING_EVIDENCE:
            phase = transition(phase, Phase.ANALYZING)

        # 2. 推理
        self._report_progress("更新假设...")
        hypothesis_update = await self.gateway.hypothesize(state, context)
        if isinstance(hypothesis_update, OracleFailure):
            return self._fail_turn(message, hypothesis_update, phase)
        state = state.apply_hypothesis(hypothesis_update)

        # 3. 回复
        self._report_progress("生成回复...")
        reply = await self.gateway.respond(
            state.current_hypothesis, analysis, message, context
        )
        if isinstance(reply, OracleFailure):
            return self._fail_turn(message, reply, phase)

        reply = self._finalize_reply(reply, state, reassessed)
        phase = transition(phase, Phase.AWAITING_EVIDENCE)

        # 4. 提交
        self.state = state
        self.phase = phase
        self.memory.add_user_message(message)
        self.memory.add_assistant_message(reply.message)
        logger.info(
            "会话 %s 第 %d 个假设: %s (%d%%)",
            self.session_id,
            len(state.hypothesis_history),
            state.current_hypothesis.statement,
            state.confidence,
        )
        return reply

    def _fail_turn(
        self,
        message: str,
        failure: OracleFailure,
        phase: Optional[Phase] = None,
    ) -> TurnReply:
        """推理失败：丢弃本轮推理结果，返回降级回复

        已进入 ANALYZING 的轮次（提取成功之后失败）停留在 ANALYZING。
        """
        logger.warning(
            "会话 %s %s 调用失败 (%s): %s",
            self.session_id,
            failure.call_shape.value,
            failure.kind,
            failure.message,
        )
        if phase is not None:
            self.phase = phase
        reply = fallback_reply(failure.call_shape, self.state.current_hypothesis)
        self.memory.add_user_message(message)
        self.memory.add_assistant_message(reply.message)
        return reply

    async def analyze_photo(
        self,
        image_url: str,
        comment: Optional[str] = None,
        vehicle_info: Optional[VehicleInfo] = None,
    ) -> TurnReply:
        """分析用户上传的照片

        Args:
            image_url: 图片 URL
            comment: 用户附言
            vehicle_info: 更新后的载具信息（可选）

        Returns:
            本轮回复（自由文本）
        """
        async with self._turn(vehicle_info):
            return await self._analyze_photo(image_url, comment)

    async def _analyze_photo(self, image_url: str, comment: Optional[str]) -> TurnReply:
        self._report_progress("查看图片...")
        text = await self.gateway.analyze_image(
            image_url, context_comment=comment, symptom=self.state.main_symptom
        )
        user_entry = f"[Photo] {comment}" if comment else "[Photo]"

        if isinstance(text, OracleFailure):
            logger.warning("会话 %s 图片分析失败: %s (%s)", self.session_id, failure_text(text), image_url)
            reply = fallback_reply(CallShape.VISION)
        else:
            reply = TurnReply(message=text, tone=Tone.OBSERVANT, action_type="sharing_insight")

        self.memory.add_user_message(user_entry)
        self.memory.add_assistant_message(reply.message)
        return reply

    async def explain(self, topic: str, vehicle_info: Optional[VehicleInfo] = None) -> TurnReply:
        """解释用户追问的“为什么”"""
        async with self._turn(vehicle_info):
            self._report_progress("组织解释...")
            text = await self.gateway.explain(topic, self.state)
            if isinstance(text, OracleFailure):
                logger.warning("会话 %s 解释失败: %s", self.session_id, failure_text(text))
                reply = fallback_reply(CallShape.EXPLAIN)
            else:
                reply = TurnReply(message=text, tone=Tone.EDUCATIONAL, action_type="sharing_insight")

            self.memory.add_user_message(topic)
            self.memory.add_assistant_message(reply.message)
            return reply

    async def reassess(self, vehicle_info: Optional[VehicleInfo] = None) -> TurnReply:
        """显式触发重新评估（不调用推理服务）"""
        async with self._turn(vehicle_info):
            state = self.state.reassess(self.config.reassess_penalty)
            phase = self.phase
            if phase == Phase.AWAITING_EVIDENCE:
                phase = transition(phase, Phase.ANALYZING)

            self.state = state
            self.phase = phase
            logger.info("会话 %s 重新评估，置信度降至 %d", self.session_id, state.confidence)

            reply = TurnReply(
                message=REASSESS_MESSAGE,
                tone=Tone.RECONSIDERING,
                diagnostic_data=DiagnosticData(
                    current_hypothesis="Reconsidering our approach",
                    confidence=state.confidence,
                ),
            )
            self.memory.add_assistant_message(reply.message)
            return reply

    async def resolve(
        self,
        note: Optional[str] = None,
        fixed: bool = True,
        vehicle_info: Optional[VehicleInfo] = None,
    ) -> TurnReply:
        """结束会话

        Args:
            note: 最终结论
            fixed: 是否已修复（否则视为放弃）
            vehicle_info: 更新后的载具信息（可选）
        """
        async with self._turn(vehicle_info):
            state = self.state
            if note and note.strip():
                state = state.with_resolution_note(note)
            self.state = state
            self.phase = transition(self.phase, Phase.CONCLUDED)
            logger.info("会话 %s 结束 (fixed=%s)", self.session_id, fixed)

            reply = TurnReply(
                message=RESOLVED_MESSAGE if fixed else UNRESOLVED_MESSAGE,
                tone=Tone.EXCITED if fixed else Tone.FRIENDLY,
                diagnostic_data=self._diagnostic_data(state),
            )
            self.memory.add_assistant_message(reply.message)
            return reply

    def store_resolution_note(self, note: str):
        """记录最终结论（会话结束后仍允许）

        Raises:
            ValueError: 结论为空
        """
        if not note or not note.strip():
            raise ValueError("resolution note must not be empty")
        self.state = self.state.with_resolution_note(note)

    # ============================================================
    # 内部方法
    # ============================================================

    def _build_context(self) -> OracleContext:
        state = self.state
        return OracleContext(
            vehicle=state.vehicle_info.display_name,
            current_system=state.current_system,
            main_symptom=state.main_symptom,
            tested_components=[t.name for t in state.tested_components],
            last_assistant_message=self.memory.last_assistant_message,
            recent_dialogue=self.memory.format_window(self.config.context_window),
            component_names=[c.name for c in self._components],
        )

    def _finalize_reply(
        self,
        reply: TurnReply,
        state: DiagnosticState,
        reassessed: bool,
    ) -> TurnReply:
        """补全诊断数据，规整高亮元件与快捷回复"""
        update = {"diagnostic_data": self._diagnostic_data(state)}

        if reply.highlight_components is not None:
            update["highlight_components"] = self.normalize_highlights(reply.highlight_components)
        if reply.quick_suggestions is not None:
            update["quick_suggestions"] = reply.quick_suggestions[: self.config.max_quick_suggestions]
        if reassessed:
            update["tone"] = Tone.RECONSIDERING

        return reply.model_copy(update=update)

    def _diagnostic_data(self, state: DiagnosticState) -> Optional[DiagnosticData]:
        current = state.current_hypothesis
        if current is None:
            return None
        return DiagnosticData(
            current_hypothesis=current.statement,
            confidence=current.confidence,
            reasoning=current.reasoning or None,
            alternative_theories=list(current.alternatives) or None,
        )

    def normalize_highlights(self, names: List[str]) -> List[str]:
        """将高亮名称映射为元件 ID

        按 ID 或名称（不区分大小写）匹配，匹配不到的丢弃；
        未绑定接线图时原样返回。
        """
        if not self._components:
            return list(names)

        by_id: Dict[str, str] = {c.id: c.id for c in self._components}
        by_name: Dict[str, str] = {}
        for c in self._components:
            by_name.setdefault(c.name.strip().lower(), c.id)

        result: List[str] = []
        for name in names:
            key = (name or "").strip()
            component_id = by_id.get(key) or by_name.get(key.lower())
            if component_id and component_id not in result:
                result.append(component_id)
        return result

    def to_dict(self) -> dict:
        """会话概要（用于 API 查询）"""
        state = self.state
        current = state.current_hypothesis
        return {
            "sessionId": self.session_id,
            "userId": self.user_id,
            "diagramId": self.diagram_id,
            "phase": self.phase.value,
            "vehicle": state.vehicle_info.display_name,
            "mainSymptom": state.main_symptom,
            "currentSystem": state.current_system,
            "confidence": state.confidence,
            "currentHypothesis": current.statement if current else None,
            "hypothesisCount": len(state.hypothesis_history),
            "measurementCount": len(state.measurements),
            "knownFacts": list(state.known_facts),
            "testedComponents": [t.model_dump() for t in state.tested_components],
            "resolutionNote": state.resolution_note,
            "turns": len(self.memory),
        }


def failure_text(failure: OracleFailure) -> str:
    return f"{failure.kind}: {failure.message}"

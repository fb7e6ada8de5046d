"""基于 LLM 的推理网关

通过 LLMService 调用兼容 OpenAI API 的模型，输出按契约模型解析。
SDK 抛出的错误（网络、超时、限流等）都转换为 OracleUnavailableError，格式问题
（包括空输出）转换为 OracleFormatError，调用方拿到的永远是模型实例或失败值。
"""
import asyncio
import logging
from typing import Optional, Union

from openai import OpenAIError

from wirediag.core.gateway.base import OracleContext, ReasoningGateway
from wirediag.core.gateway.errors import OracleFailure, OracleFormatError, OracleUnavailableError
from wirediag.core.gateway.parsing import parse_contract
from wirediag.core.gateway import prompts
from wirediag.core.session.diagnostic_state import DiagnosticState
from wirediag.models.oracle import CallShape, HypothesisUpdate, MessageAnalysis, TurnReply
from wirediag.models.session import Hypothesis
from wirediag.services.llm_service import LLMService


logger = logging.getLogger(__name__)


class LLMReasoningGateway(ReasoningGateway):
    """LLM 推理网关"""

    def __init__(self, llm_service: LLMService):
        """初始化

        Args:
            llm_service: LLM 服务
        """
        self.llm_service = llm_service
        self.temperatures = llm_service.config.llm.temperatures

    def temperature_for(self, call_shape: CallShape) -> float:
        """获取调用形态对应的温度"""
        return getattr(self.temperatures, call_shape.value)

    async def _call(
        self,
        call_shape: CallShape,
        prompt: str,
        system_prompt: str,
        image_url: Optional[str] = None,
    ) -> Union[str, OracleUnavailableError]:
        """调用 LLM，异常转换为 OracleUnavailableError"""
        temperature = self.temperature_for(call_shape)
        try:
            if image_url:
                return await self.llm_service.generate_with_image(
                    prompt,
                    image_url,
                    system_prompt=system_prompt,
                    temperature=temperature,
                )
            return await self.llm_service.generate(
                prompt,
                system_prompt=system_prompt,
                temperature=temperature,
            )
        except (OpenAIError, asyncio.TimeoutError) as e:
            logger.warning("%s 调用失败: %s", call_shape.value, e)
            return OracleUnavailableError(
                call_shape=call_shape,
                message=f"{type(e).__name__}: {e}",
            )

    def _log_failure(self, failure: OracleFailure):
        logger.warning(
            "%s 输出无效 (%s): %s\n原始输出: %s",
            failure.call_shape.value,
            failure.kind,
            failure.message,
            failure.raw_payload,
        )

    async def extract(
        self,
        user_message: str,
        context: OracleContext,
    ) -> Union[MessageAnalysis, OracleFailure]:
        prompt = prompts.build_extract_prompt(
            user_message,
            vehicle=context.vehicle,
            current_system=context.current_system,
            main_symptom=context.main_symptom,
            tested_components=context.tested_components,
            last_assistant_message=context.last_assistant_message,
        )
        raw = await self._call(CallShape.EXTRACT, prompt, prompts.EXTRACT_SYSTEM_PROMPT)
        if isinstance(raw, OracleFailure):
            return raw

        result = parse_contract(raw, MessageAnalysis, CallShape.EXTRACT)
        if isinstance(result, OracleFailure):
            self._log_failure(result)
        return result

    async def hypothesize(
        self,
        state: DiagnosticState,
        context: OracleContext,
    ) -> Union[HypothesisUpdate, OracleFailure]:
        prompt = prompts.build_hypothesize_prompt(state, context.recent_dialogue)
        raw = await self._call(CallShape.HYPOTHESIZE, prompt, prompts.HYPOTHESIZE_SYSTEM_PROMPT)
        if isinstance(raw, OracleFailure):
            return raw

        result = parse_contract(raw, HypothesisUpdate, CallShape.HYPOTHESIZE)
        if isinstance(result, OracleFailure):
            self._log_failure(result)
        return result

    async def respond(
        self,
        hypothesis: Optional[Hypothesis],
        analysis: Optional[MessageAnalysis],
        last_user_message: str,
        context: Optional[OracleContext] = None,
    ) -> Union[TurnReply, OracleFailure]:
        component_names = context.component_names if context else []
        prompt = prompts.build_respond_prompt(
            hypothesis, analysis, last_user_message, component_names
        )
        raw = await self._call(CallShape.RESPOND, prompt, prompts.RESPOND_SYSTEM_PROMPT)
        if isinstance(raw, OracleFailure):
            return raw

        result = parse_contract(raw, TurnReply, CallShape.RESPOND)
        if isinstance(result, OracleFailure):
            self._log_failure(result)
        return result

    async def analyze_image(
        self,
        image_url: str,
        context_comment: Optional[str] = None,
        symptom: str = "",
    ) -> Union[str, OracleFailure]:
        prompt = prompts.build_vision_prompt(symptom, context_comment)
        raw = await self._call(
            CallShape.VISION, prompt, prompts.VISION_SYSTEM_PROMPT, image_url=image_url
        )
        if isinstance(raw, OracleFailure):
            return raw
        if not raw:
            return OracleFormatError(call_shape=CallShape.VISION, message="empty payload", raw_payload=raw)
        return raw

    async def explain(
        self,
        topic: str,
        state: DiagnosticState,
    ) -> Union[str, OracleFailure]:
        prompt = prompts.build_explain_prompt(topic, state)
        raw = await self._call(CallShape.EXPLAIN, prompt, prompts.EXPLAIN_SYSTEM_PROMPT)
        if isinstance(raw, OracleFailure):
            return raw
        if not raw:
            return OracleFormatError(call_shape=CallShape.EXPLAIN, message="empty payload", raw_payload=raw)
        return raw

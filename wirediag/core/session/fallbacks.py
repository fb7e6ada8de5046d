"""降级回复模板

推理服务失败（格式错误或不可用）时，按调用形态返回固定的模板回复。
模板回复标记 degraded=True，会话继续可用。
"""
from typing import Optional

from wirediag.models.oracle import CallShape, DiagnosticData, Tone, TurnReply
from wirediag.models.session import Hypothesis


SYMPTOM_PROMPT_MESSAGE = (
    "Let's start with the problem. What symptom are you seeing, "
    "and on which system?"
)

EVIDENCE_PROMPT_MESSAGE = (
    "I'm listening. What did you measure or notice on that last check?"
)


def symptom_prompt_reply() -> TurnReply:
    """首轮消息为空时的引导回复"""
    return TurnReply(
        message=SYMPTOM_PROMPT_MESSAGE,
        tone=Tone.FRIENDLY,
        action_type="asking_question",
    )


def evidence_prompt_reply() -> TurnReply:
    """后续轮消息为空时的引导回复"""
    return TurnReply(
        message=EVIDENCE_PROMPT_MESSAGE,
        tone=Tone.HELPFUL,
        action_type="asking_question",
    )


def _diagnostic_data(hypothesis: Optional[Hypothesis]) -> Optional[DiagnosticData]:
    if hypothesis is None:
        return None
    return DiagnosticData(
        current_hypothesis=hypothesis.statement,
        confidence=hypothesis.confidence,
    )


def fallback_reply(
    call_shape: CallShape,
    current_hypothesis: Optional[Hypothesis] = None,
) -> TurnReply:
    """按调用形态生成降级回复

    Args:
        call_shape: 失败的调用形态
        current_hypothesis: 当前（未改变的）假设

    Returns:
        degraded=True 的回复
    """
    if call_shape == CallShape.EXTRACT:
        return TurnReply(
            message=(
                "I didn't quite catch that. Can you restate the reading, "
                "including where you measured it and what you expected?"
            ),
            tone=Tone.THOUGHTFUL,
            action_type="clarifying",
            diagnostic_data=_diagnostic_data(current_hypothesis),
            degraded=True,
        )

    if call_shape == CallShape.HYPOTHESIZE:
        return TurnReply(
            message=(
                "Let's gather a bit more information before I commit to a theory. "
                "What else are you seeing on that circuit?"
            ),
            tone=Tone.THOUGHTFUL,
            action_type="asking_question",
            diagnostic_data=_diagnostic_data(current_hypothesis),
            degraded=True,
        )

    if call_shape == CallShape.RESPOND:
        if current_hypothesis is not None:
            message = (
                f"I'm still leaning toward this: {current_hypothesis.statement} "
                f"({current_hypothesis.confidence}% confident)."
            )
            if current_hypothesis.next_step:
                message += f" Next step: {current_hypothesis.next_step}"
        else:
            message = (
                "Let me think about that for a second. "
                "Can you tell me more about what you're seeing?"
            )
        return TurnReply(
            message=message,
            tone=Tone.THOUGHTFUL,
            diagnostic_data=_diagnostic_data(current_hypothesis),
            degraded=True,
        )

    if call_shape == CallShape.VISION:
        return TurnReply(
            message="Having trouble loading that photo. Can you describe what you're seeing?",
            tone=Tone.HELPFUL,
            degraded=True,
        )

    return TurnReply(
        message="Good question. Let me think about how to explain this clearly...",
        tone=Tone.THOUGHTFUL,
        degraded=True,
    )

"""推理服务 prompt

每种调用形态一组 system prompt + user prompt 构建函数。
"""
import json
from typing import List, Optional

from wirediag.core.session.diagnostic_state import DiagnosticState
from wirediag.models.oracle import MessageAnalysis
from wirediag.models.session import Hypothesis


EXTRACT_SYSTEM_PROMPT = """You are analyzing what a technician just said during electrical troubleshooting.
Extract the key information and output JSON only, no other text:
{
  "measurements": [
    {"type": "voltage", "value": 27.8, "unit": "V", "location": "Pin 30", "expected": "28V"}
  ],
  "observations": [
    {"type": "sound|visual|behavior", "description": "hearing pump run"}
  ],
  "answers": {"answeringPreviousQuestion": true, "answer": "yes | no | description"},
  "newSymptoms": ["any new problems mentioned"],
  "questionsFromTech": ["any questions they're asking"],
  "testedComponents": [{"name": "R5 relay", "result": "clicks but no output"}],
  "currentSystem": "system being worked on, or null",
  "emotionalState": "frustrated|confused|confident|neutral",
  "needsClarification": false,
  "unexpectedResult": false,
  "contradictsHypothesis": false
}

Rules:
- "measurements" and "observations" are always present (use [] when none).
- "value" is a number. Put the unit in "unit".
- "unexpectedResult" is true only when the technician says the last result surprised them.
- "contradictsHypothesis" is true only when the new evidence rules out the current theory."""


HYPOTHESIZE_SYSTEM_PROMPT = """You are an experienced engineer with 20+ years troubleshooting complex electrical systems.
Think systematically, consider multiple possibilities, but have opinions based on experience.
Be honest about uncertainty. Output JSON only, no other text."""


RESPOND_SYSTEM_PROMPT = """You are an experienced engineer working as a teammate, not a chatbot.
Talk naturally, think out loud, ask questions, show personality.
You're standing next to the technician, helping them troubleshoot in real time.

Respond in JSON only:
{
  "message": "Your conversational response (2-4 sentences, natural)",
  "tone": "encouraging|thoughtful|concerned|excited",
  "actionType": "asking_question|guiding_test|sharing_insight|clarifying",
  "testProcedure": {
    "action": "What to test",
    "tool": "What tool to use",
    "location": "Specific location",
    "expectedResult": "What they should see",
    "safety": "Any precautions"
  },
  "highlightComponents": ["component names to highlight on the diagram"],
  "progressUpdate": {
    "whatWeJustLearned": "New information from their input",
    "confidenceChange": "+10|-15|0",
    "nextStepPreview": "Brief preview of what comes after this"
  },
  "quickSuggestions": ["Quick response option 1", "Option 2", "Option 3"]
}

"testProcedure" may be null when you are only asking a question.
At most 4 quick suggestions."""


VISION_SYSTEM_PROMPT = """You're an expert wiring diagram analyst helping troubleshoot electrical systems.
When looking at a wiring diagram or photo, you should:
- Identify visible components (relays, switches, connectors, fuses, etc.)
- Read wire labels and gauge sizes
- Trace circuit paths and connections
- Identify ground points and power sources
- Point out visible issues or concerns
- Relate what you see to potential failures

Be specific and technical but conversational. Reference actual component names and wire numbers you see."""


EXPLAIN_SYSTEM_PROMPT = (
    "You're explaining technical concepts to a teammate. "
    "Be clear, practical, use analogies. Keep it conversational."
)


def _bullets(items: List[str], empty: str = "- (none)") -> str:
    if not items:
        return empty
    return "\n".join(f"- {item}" for item in items)


def build_extract_prompt(
    user_message: str,
    vehicle: str,
    current_system: str,
    main_symptom: str,
    tested_components: List[str],
    last_assistant_message: str,
    current_hypothesis: Optional[str] = None,
) -> str:
    """构建 extract prompt"""
    sections = [
        "## Current context",
        f"- Vehicle: {vehicle}",
        f"- System: {current_system or 'unknown'}",
        f"- Problem: {main_symptom or 'not described yet'}",
        f"- What we've tested: {', '.join(tested_components) or 'nothing yet'}",
        f"- Current theory: {current_hypothesis or 'none yet'}",
        f"- Last thing we asked them: {last_assistant_message or '(nothing yet)'}",
        "",
        "## Technician said",
        user_message,
    ]
    return "\n".join(sections)


def build_hypothesize_prompt(
    state: DiagnosticState,
    recent_dialogue: str,
) -> str:
    """构建 hypothesize prompt"""
    current = state.current_hypothesis
    sections = [
        "## Current situation",
        f"Vehicle: {state.vehicle_info.display_name}",
        f"System: {state.current_system or 'unknown'}",
        f"Main problem: {state.main_symptom}",
        "",
        "## What we know",
        _bullets(state.known_facts),
        "",
        "## What we've tested",
        _bullets([f"{t.name}: {t.result}" for t in state.tested_components]),
        "",
        "## Measurements taken",
        _bullets([m.describe() for m in state.measurements]),
        "",
        "## Previous theory",
        (
            f"{current.statement} ({current.confidence}% confident)"
            if current else "none yet"
        ),
        "",
        "## Recent conversation",
        recent_dialogue or "(none)",
        "",
        "Now think this through like a real engineer would and output JSON:",
        json.dumps(
            {
                "currentHypothesis": "What I think is causing this",
                "confidence": "0-100",
                "reasoning": "Why I think this, connecting the dots",
                "alternativeTheories": ["Other possibilities"],
                "whatWeStillDontKnow": ["Gaps in our knowledge"],
                "nextLogicalStep": "What makes sense to test/check next",
                "safetyConsiderations": ["Any safety concerns"],
                "estimatedTimeToFix": "Quick estimate if we find the problem",
                "myThinkingOutLoud": "How I would explain my thought process to the tech",
            },
            indent=2,
        ),
    ]
    return "\n".join(sections)


def build_respond_prompt(
    hypothesis: Optional[Hypothesis],
    analysis: Optional[MessageAnalysis],
    last_user_message: str,
    component_names: List[str],
) -> str:
    """构建 respond prompt"""
    sections = ["## Current thought process"]
    if hypothesis:
        sections.append(f"Current hypothesis: {hypothesis.statement} ({hypothesis.confidence}% confident)")
        sections.append(f"Reasoning: {hypothesis.reasoning}")
        sections.append(f"Next logical step: {hypothesis.next_step}")
        if hypothesis.safety_notes:
            sections.append(f"Safety: {'; '.join(hypothesis.safety_notes)}")
    else:
        sections.append("No working theory yet.")

    sections.extend(["", "## What the tech just said", last_user_message])

    if analysis:
        sections.extend([
            "",
            "## What they're telling us",
            f"Measurements: {json.dumps([m.model_dump() for m in analysis.measurements])}",
            f"Observations: {json.dumps([o.description for o in analysis.observations])}",
            f"Their emotional state: {analysis.emotional_state}",
            f"Questions they have: {json.dumps(analysis.questions_from_tech)}",
        ])
        if analysis.needs_clarification:
            sections.append("Their message was unclear: ask a specific clarifying question.")

    if component_names:
        sections.extend([
            "",
            "## Components on the diagram (use these names for highlightComponents)",
            ", ".join(component_names),
        ])

    sections.extend([
        "",
        "Acknowledge what they told you, share your thinking, then ask a follow-up "
        "question or guide the next test.",
    ])
    return "\n".join(sections)


def build_vision_prompt(symptom: str, comment: Optional[str]) -> str:
    """构建图片分析 prompt"""
    request = (
        f'Tech says: "{comment}"' if comment
        else "Please analyze this wiring diagram in detail."
    )
    return (
        f"We're troubleshooting: {symptom or 'this electrical system'}\n"
        f"{request}\n\n"
        "Look at this image and tell me:\n"
        "1. What major components do you see?\n"
        "2. What is the main circuit flow?\n"
        "3. What could cause failures in this system?\n"
        "4. Any specific areas of concern?"
    )


def build_explain_prompt(topic: str, state: DiagnosticState) -> str:
    """构建解释 prompt"""
    current = state.current_hypothesis
    return (
        "The tech wants to understand WHY something is the case.\n\n"
        f"Context: {state.main_symptom or 'general troubleshooting'}\n"
        f"Current theory: {current.statement if current else 'none yet'}\n"
        f"They're asking about: {topic}\n\n"
        "Explain like you're teaching a teammate: clear, practical, with examples."
    )

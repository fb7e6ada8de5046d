"""推理服务输出解析

LLM 经常把 JSON 包在 markdown 代码块里，或者在前后加几句说明。
解析顺序：
1. 去掉首尾的代码块标记后直接解析
2. 从文本中查找 ```json ... ``` 代码块
3. 取第一个 "{" 到最后一个 "}" 之间的内容
"""
import json
import re
from typing import Any, Dict, Type, TypeVar, Union

from pydantic import BaseModel, ValidationError

from wirediag.core.gateway.errors import OracleFormatError
from wirediag.models.oracle import CallShape


ModelT = TypeVar("ModelT", bound=BaseModel)

FENCE_OPEN_PATTERN = re.compile(r"^```[\w-]*[ \t]*\n?")
FENCE_CLOSE_PATTERN = re.compile(r"\n?```\s*$")
FENCED_BLOCK_PATTERN = re.compile(r"```(?:json)?\s*\n?(.*?)\n?```", re.DOTALL)


def strip_code_fence(text: str) -> str:
    """去掉包裹整个文本的代码块标记"""
    text = text.strip()
    if text.startswith("```"):
        text = FENCE_OPEN_PATTERN.sub("", text)
        text = FENCE_CLOSE_PATTERN.sub("", text)
    return text.strip()


def parse_json_object(text: str) -> Dict[str, Any]:
    """从 LLM 输出中解析 JSON 对象

    Raises:
        ValueError: 无法解析，或解析结果不是对象
    """
    if not text or not text.strip():
        raise ValueError("empty payload")

    candidates = [strip_code_fence(text)]

    fenced = FENCED_BLOCK_PATTERN.search(text)
    if fenced:
        candidates.append(fenced.group(1).strip())

    start, end = text.find("{"), text.rfind("}")
    if start != -1 and end > start:
        candidates.append(text[start:end + 1])

    for candidate in candidates:
        try:
            data = json.loads(candidate)
        except json.JSONDecodeError:
            continue
        if not isinstance(data, dict):
            raise ValueError(f"expected a JSON object, got {type(data).__name__}")
        return data

    raise ValueError("payload is not valid JSON")


def parse_contract(
    raw: str,
    model_cls: Type[ModelT],
    call_shape: CallShape,
) -> Union[ModelT, OracleFormatError]:
    """解析并校验 LLM 输出

    Args:
        raw: LLM 原始输出
        model_cls: 契约模型
        call_shape: 调用形态（用于错误信息）

    Returns:
        契约模型实例，或 OracleFormatError
    """
    try:
        data = parse_json_object(raw)
    except ValueError as e:
        return OracleFormatError(call_shape=call_shape, message=str(e), raw_payload=raw)

    try:
        return model_cls.model_validate(data)
    except ValidationError as e:
        fields = ", ".join(".".join(str(p) for p in err["loc"]) for err in e.errors())
        return OracleFormatError(
            call_shape=call_shape,
            message=f"schema mismatch: {fields}",
            raw_payload=raw,
        )

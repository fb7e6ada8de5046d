"""LLM API 调用服务

使用 OpenAI SDK 调用兼容 OpenAI API 的 LLM 服务
"""
import asyncio
import logging
import re
from typing import Any, Callable, Dict, List, Optional

from openai import APIConnectionError, APITimeoutError, AsyncOpenAI, RateLimitError

from wirediag.utils.config import Config


logger = logging.getLogger(__name__)

# 匹配 <think>...</think> 标签（支持多行）
THINK_TAG_PATTERN = re.compile(r"<think>.*?</think>\s*", re.DOTALL)

# 进度回调类型
ProgressCallback = Callable[[str], None]


class LLMService:
    """LLM 服务封装（异步）"""

    DEFAULT_TIMEOUT = 30  # 秒
    DEFAULT_MAX_RETRIES = 1
    DEFAULT_RETRY_DELAY = 1  # 秒

    def __init__(
        self,
        config: Config,
        progress_callback: Optional[ProgressCallback] = None,
    ):
        """
        初始化 LLM 服务

        Args:
            config: 全局配置对象
            progress_callback: 进度回调函数（用于报告重试等状态）
        """
        self.config = config
        self._progress_callback = progress_callback
        self.model = config.llm.model
        self.vision_model = config.llm.vision_model or config.llm.model
        self.temperature = config.llm.temperature
        self.max_tokens = config.llm.max_tokens
        self.system_prompt = config.llm.system_prompt

        self.timeout = getattr(config.llm, "timeout", self.DEFAULT_TIMEOUT)
        self.max_retries = max(1, getattr(config.llm, "max_retries", self.DEFAULT_MAX_RETRIES))
        self.retry_delay = getattr(config.llm, "retry_delay", self.DEFAULT_RETRY_DELAY)

        # 异步客户端（延迟初始化）
        self._client: Optional[AsyncOpenAI] = None

    @property
    def client(self) -> AsyncOpenAI:
        """获取异步客户端（延迟初始化）"""
        if self._client is None:
            self._client = AsyncOpenAI(
                api_key=self.config.llm.api_key,
                base_url=self.config.llm.api_base,
            )
        return self._client

    def _report_progress(self, message: str):
        """报告进度"""
        if self._progress_callback:
            self._progress_callback(message)

    async def _generate(
        self,
        messages: List[Dict[str, Any]],
        system_prompt: Optional[str] = None,
        temperature: Optional[float] = None,
        model: Optional[str] = None,
        max_tokens: Optional[int] = None,
    ) -> str:
        """内部方法：生成回复

        Args:
            messages: 对话消息列表 [{"role": "user", "content": "..."}, ...]
            system_prompt: 系统提示（可选，覆盖默认）
            temperature: 温度参数（可选，覆盖默认）
            model: 模型（可选，覆盖默认）
            max_tokens: 最大输出 token（可选，覆盖默认）

        Returns:
            生成的回复文本

        Raises:
            APITimeoutError / APIConnectionError / RateLimitError: 重试耗尽后仍失败
        """
        full_messages: List[Dict[str, Any]] = []

        if system_prompt is None:
            system_prompt = self.system_prompt

        if system_prompt:
            full_messages.append({"role": "system", "content": system_prompt})

        full_messages.extend(messages)

        for attempt in range(self.max_retries):
            try:
                response = await self.client.chat.completions.create(
                    model=model or self.model,
                    messages=full_messages,
                    temperature=temperature if temperature is not None else self.temperature,
                    max_tokens=max_tokens or self.max_tokens,
                    timeout=self.timeout,
                )
                return self._clean_response(self._first_content(response))

            except (APITimeoutError, APIConnectionError, RateLimitError) as e:
                error_type = type(e).__name__
                if attempt < self.max_retries - 1:
                    wait_time = self.retry_delay * (attempt + 1)
                    self._report_progress(
                        f"LLM 调用失败 ({error_type})，{wait_time}s 后重试 ({attempt + 1}/{self.max_retries})..."
                    )
                    await asyncio.sleep(wait_time)
                    continue
                logger.warning("LLM 调用失败 (%s): %s", error_type, e)
                raise

        # max_retries >= 1，循环内一定返回或抛出
        raise RuntimeError("unreachable")

    def _first_content(self, response: Any) -> Optional[str]:
        """取第一个 choice 的文本

        部分兼容服务在内容过滤时返回空 choices，按空输出处理。
        """
        choices = getattr(response, "choices", None)
        if not choices:
            logger.warning("LLM 响应没有 choices")
            return None
        message = getattr(choices[0], "message", None)
        if message is None:
            logger.warning("LLM 响应缺少 message")
            return None
        return message.content

    def _clean_response(self, content: Optional[str]) -> str:
        """清理 LLM 响应

        - 去除 <think>...</think> 标签（模型的思考过程）
        - 去除首尾空白

        Args:
            content: 原始响应内容

        Returns:
            清理后的响应内容
        """
        if not content:
            return ""
        content = THINK_TAG_PATTERN.sub("", content)
        return content.strip()

    async def generate(
        self,
        prompt: str,
        system_prompt: Optional[str] = None,
        temperature: Optional[float] = None,
        max_tokens: Optional[int] = None,
    ) -> str:
        """生成回复（单轮对话）

        Args:
            prompt: 用户输入
            system_prompt: 系统提示（可选）
            temperature: 温度（可选）
            max_tokens: 最大输出 token（可选）

        Returns:
            生成的回复文本
        """
        messages = [{"role": "user", "content": prompt}]
        return await self._generate(
            messages,
            system_prompt=system_prompt,
            temperature=temperature,
            max_tokens=max_tokens,
        )

    async def generate_with_image(
        self,
        prompt: str,
        image_url: str,
        system_prompt: Optional[str] = None,
        temperature: Optional[float] = None,
        max_tokens: Optional[int] = None,
    ) -> str:
        """带图片的生成（视觉模型）

        Args:
            prompt: 文本部分
            image_url: 图片 URL
            system_prompt: 系统提示（可选）
            temperature: 温度（可选）
            max_tokens: 最大输出 token（可选）

        Returns:
            生成的回复文本
        """
        messages = [
            {
                "role": "user",
                "content": [
                    {"type": "text", "text": prompt},
                    {"type": "image_url", "image_url": {"url": image_url}},
                ],
            }
        ]
        return await self._generate(
            messages,
            system_prompt=system_prompt,
            temperature=temperature,
            model=self.vision_model,
            max_tokens=max_tokens,
        )

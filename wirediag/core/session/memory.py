"""对话记忆

按时间顺序追加的对话日志。构建 prompt 时只取最近 N 条（滑动窗口），
不做摘要压缩。
"""
from typing import List, Literal

from wirediag.models.session import DialogueMessage


class ConversationMemory:
    """对话记忆（只追加）"""

    def __init__(self):
        self._messages: List[DialogueMessage] = []

    def append(self, role: Literal["user", "assistant"], content: str) -> DialogueMessage:
        """追加一条消息，O(1)"""
        message = DialogueMessage(role=role, content=content)
        self._messages.append(message)
        return message

    def add_user_message(self, content: str) -> DialogueMessage:
        return self.append("user", content)

    def add_assistant_message(self, content: str) -> DialogueMessage:
        return self.append("assistant", content)

    def recent_window(self, n: int) -> List[DialogueMessage]:
        """获取最近 n 条消息（按时间顺序）"""
        if n <= 0:
            return []
        return self._messages[-n:]

    def format_window(self, n: int) -> str:
        """将最近 n 条消息格式化为 prompt 文本"""
        return "\n".join(f"{m.role}: {m.content}" for m in self.recent_window(n))

    @property
    def last_user_message(self) -> str:
        return self._last_content("user")

    @property
    def last_assistant_message(self) -> str:
        return self._last_content("assistant")

    def _last_content(self, role: str) -> str:
        for message in reversed(self._messages):
            if message.role == role:
                return message.content
        return ""

    @property
    def messages(self) -> List[DialogueMessage]:
        """全部消息（副本）"""
        return list(self._messages)

    def __len__(self) -> int:
        return len(self._messages)

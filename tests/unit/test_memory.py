"""ConversationMemory 单元测试"""
from wirediag.core.session.memory import ConversationMemory


class TestConversationMemory:
    """ConversationMemory 测试"""

    def test_append_in_order(self):
        """测试: 按时间顺序追加"""
        memory = ConversationMemory()
        memory.add_user_message("gear light flickers")
        memory.add_assistant_message("Which gear?")
        memory.add_user_message("nose gear")

        assert [m.role for m in memory.messages] == ["user", "assistant", "user"]
        assert len(memory) == 3

    def test_recent_window(self):
        """测试: 只取最近 n 条，保持时间顺序"""
        memory = ConversationMemory()
        for i in range(15):
            memory.append("user", f"message {i}")

        window = memory.recent_window(10)

        assert len(window) == 10
        assert window[0].content == "message 5"
        assert window[-1].content == "message 14"

    def test_recent_window_larger_than_log(self):
        """测试: n 大于已有条数"""
        memory = ConversationMemory()
        memory.add_user_message("only one")

        assert [m.content for m in memory.recent_window(10)] == ["only one"]

    def test_recent_window_zero(self):
        """测试: n <= 0 返回空列表"""
        memory = ConversationMemory()
        memory.add_user_message("hello")

        assert memory.recent_window(0) == []
        assert memory.recent_window(-3) == []

    def test_last_messages(self):
        """测试: 最后一条用户/助手消息"""
        memory = ConversationMemory()
        assert memory.last_assistant_message == ""

        memory.add_user_message("first")
        memory.add_assistant_message("question?")
        memory.add_user_message("second")

        assert memory.last_user_message == "second"
        assert memory.last_assistant_message == "question?"

    def test_format_window(self):
        """测试: 格式化为 prompt 文本"""
        memory = ConversationMemory()
        memory.add_user_message("27.8V at pin 30")
        memory.add_assistant_message("Good, now check pin 87")

        assert memory.format_window(10) == "user: 27.8V at pin 30\nassistant: Good, now check pin 87"

    def test_messages_is_copy(self):
        """测试: messages 返回副本"""
        memory = ConversationMemory()
        memory.add_user_message("hello")

        memory.messages.clear()

        assert len(memory) == 1

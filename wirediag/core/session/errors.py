"""会话错误类型"""


class SessionError(Exception):
    """会话错误基类"""


class InvalidTransitionError(SessionError):
    """非法的阶段转换"""

    def __init__(self, current, target):
        self.current = current
        self.target = target
        super().__init__(f"invalid phase transition: {current.value} -> {target.value}")


class SessionConcludedError(SessionError):
    """会话已结束，只允许记录最终结论"""


class TurnInProgressError(SessionError):
    """同一会话上一轮还未完成"""

"""
自定义异常模块
"""


class IrisError(Exception):
    """Iris 基础异常"""

    def __init__(self, message: str, status_code: int = 500):
        self.message = message
        self.status_code = status_code
        super().__init__(message)


class ForwardRuleNotFoundError(IrisError):
    """转发规则未找到"""

    def __init__(self, path: str):
        super().__init__(
            message=f"转发规则不存在: {path}",
            status_code=404,
        )


class ForwardError(IrisError):
    """内部转发错误"""

    def __init__(self, message: str, status_code: int = 502):
        super().__init__(message=message, status_code=status_code)


class ForwardTimeoutError(ForwardError):
    """转发目标响应超时"""

    def __init__(self, timeout: float):
        super().__init__(
            message=f"转发目标 {timeout} 秒内未响应",
            status_code=504,
        )


class ForwardLoopError(IrisError):
    """转发深度超限（疑似转发循环）"""

    def __init__(self, depth: int):
        super().__init__(
            message=f"转发深度已达上限: {depth}",
            status_code=508,
        )

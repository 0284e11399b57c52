"""
异常体系

- TaskEngineError：所有引擎异常的基类
- RecoverableActionError：单个动作失败，转换为失败的 StepResult，循环继续
- UserRejection：危险动作被用户拒绝或确认超时
- ReasonerError / ReasonerTimeout：推理服务调用失败
- TaskCancelled：任务被取消，在挂起点抛出
- InvalidTransitionError：非法的状态迁移
"""

USER_REJECTED_MESSAGE = "User rejected action"
CANCELLED_MESSAGE = "cancelled"


class TaskEngineError(Exception):
    """引擎异常基类"""


class RecoverableActionError(TaskEngineError):
    """单个动作执行失败（非致命）"""


class UserRejection(TaskEngineError):
    """用户拒绝危险动作，或确认超时"""

    def __init__(self, message: str = USER_REJECTED_MESSAGE) -> None:
        super().__init__(message)


class ReasonerError(TaskEngineError):
    """推理服务返回错误或不可达"""


class ReasonerTimeout(ReasonerError):
    """推理服务超时"""


class TaskCancelled(TaskEngineError):
    """任务已取消"""

    def __init__(self, message: str = CANCELLED_MESSAGE) -> None:
        super().__init__(message)


class InvalidTransitionError(TaskEngineError):
    """非法的任务状态迁移"""

    def __init__(self, current: str, target: str) -> None:
        super().__init__(f"Invalid task state transition: {current} -> {target}")
        self.current = current
        self.target = target

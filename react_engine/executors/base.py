"""
执行器抽象基类
"""
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Optional

from loguru import logger

from react_engine.actions import Action
from react_engine.cancellation import CancellationToken
from react_engine.errors import TaskCancelled
from react_engine.models import StepResult


@dataclass
class ExecutionContext:
    """
    单次动作执行的上下文

    Attributes:
        session_id: 会话 ID
        task_id: 任务 ID
        token: 任务取消令牌
        browser: 本任务的浏览器会话（未配置浏览器自动化时为 None）
    """
    session_id: str
    task_id: str
    token: CancellationToken
    browser: Optional[Any] = None


class BaseExecutor(ABC):
    """通道执行器抽象基类"""

    async def run(self, action: Action, ctx: ExecutionContext) -> StepResult:
        """
        模板方法：execute → 异常转换

        子类只需实现 execute()；除取消外的任何异常都转换为失败的 StepResult。
        """
        try:
            return await self.execute(action, ctx)
        except TaskCancelled:
            raise
        except Exception as e:
            logger.warning(
                f"❌ [{type(self).__name__}] {action.type} 动作失败: {e}"
            )
            return StepResult.fail(str(e) or type(e).__name__)

    @abstractmethod
    async def execute(self, action: Action, ctx: ExecutionContext) -> StepResult:
        """子类实现具体执行逻辑"""
        ...

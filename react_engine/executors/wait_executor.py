"""
等待执行器
"""
from react_engine.actions import WaitAction
from react_engine.executors.base import BaseExecutor, ExecutionContext
from react_engine.models import StepResult


class WaitExecutor(BaseExecutor):
    """按请求时长等待（未指定时默认 1000ms），可被取消"""

    def __init__(self, default_ms: int = 1000) -> None:
        self.default_ms = default_ms

    async def execute(self, action: WaitAction, ctx: ExecutionContext) -> StepResult:
        duration_ms = self.default_ms if action.duration_ms is None else max(action.duration_ms, 0)
        await ctx.token.sleep(duration_ms / 1000)
        return StepResult.ok(action.description, duration=duration_ms)

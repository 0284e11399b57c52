"""
协作式取消令牌

每个 Task 持有一个 CancellationToken。所有挂起点（推理调用、确认等待、
动作派发、桌面回执、wait 动作、步间延时）都通过 run() 与取消信号赛跑：
令牌触发时，正在进行的协程会被 cancel()，从而中断底层的 aiohttp / Playwright 调用。
"""
import asyncio
from typing import Any, Awaitable, Optional

from .errors import CANCELLED_MESSAGE, TaskCancelled


class CancellationToken:
    """单任务取消令牌"""

    def __init__(self) -> None:
        self._event = asyncio.Event()
        self.reason: str = CANCELLED_MESSAGE

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def cancel(self, reason: str = CANCELLED_MESSAGE) -> None:
        if not self._event.is_set():
            self.reason = reason
            self._event.set()

    def raise_if_cancelled(self) -> None:
        if self._event.is_set():
            raise TaskCancelled(self.reason)

    async def run(self, awaitable: Awaitable[Any], timeout: Optional[float] = None) -> Any:
        """
        执行 awaitable，同时监听取消信号

        Args:
            awaitable: 要执行的协程 / Future
            timeout: 超时秒数，None 表示不限

        Returns:
            awaitable 的结果

        Raises:
            TaskCancelled: 令牌在完成前被触发
            asyncio.TimeoutError: 超时
        """
        if self._event.is_set():
            # 协程对象不再执行，关闭以避免 "never awaited" 警告
            if asyncio.iscoroutine(awaitable):
                awaitable.close()
            raise TaskCancelled(self.reason)

        task = asyncio.ensure_future(awaitable)
        waiter = asyncio.ensure_future(self._event.wait())
        try:
            done, _ = await asyncio.wait(
                {task, waiter},
                timeout=timeout,
                return_when=asyncio.FIRST_COMPLETED,
            )
        except asyncio.CancelledError:
            task.cancel()
            raise
        finally:
            waiter.cancel()

        if task in done:
            return task.result()

        task.cancel()
        await asyncio.gather(task, return_exceptions=True)
        if self._event.is_set():
            raise TaskCancelled(self.reason)
        raise asyncio.TimeoutError()

    async def sleep(self, seconds: float) -> None:
        """可被取消的 sleep"""
        await self.run(asyncio.sleep(seconds))

"""
确认代理 - 危险动作的用户确认

每个 session 至多一个待确认项（一次性 Future）：
- open(session_id) 在发出确认请求之前登记，发送期间到达的答复不会丢失
- resolve(session_id, approved) 由外部确认事件调用
- 超时（默认 30 秒）视为拒绝
- 无论批准、拒绝、超时还是取消，待确认项都会被释放，
  同一 session 多次确认不会积累监听者
"""
import asyncio
from typing import Dict, Optional

from loguru import logger

from .cancellation import CancellationToken


class ConfirmationBroker:
    """会话级确认代理"""

    def __init__(self, timeout_ms: int = 30000) -> None:
        self.timeout_ms = timeout_ms
        self._pending: Dict[str, asyncio.Future] = {}

    def has_pending(self, session_id: str) -> bool:
        future = self._pending.get(session_id)
        return future is not None and not future.done()

    def open(self, session_id: str) -> asyncio.Future:
        """
        登记待确认项（在发出确认请求事件之前调用）

        同一 session 仍未答复的旧确认视为拒绝。

        Returns:
            asyncio.Future: 交给 wait_for 等待的一次性 Future
        """
        previous = self._pending.get(session_id)
        if previous is not None and not previous.done():
            logger.warning(f"⚠️ [ConfirmationBroker] session={session_id} 旧确认被新请求取代")
            previous.set_result(False)

        future: asyncio.Future = asyncio.get_running_loop().create_future()
        self._pending[session_id] = future
        return future

    def release(self, session_id: str, future: asyncio.Future) -> None:
        """释放待确认项；已被新请求取代时不动"""
        if self._pending.get(session_id) is future:
            del self._pending[session_id]

    async def wait_for(
        self,
        session_id: str,
        token: Optional[CancellationToken] = None,
        timeout_ms: Optional[int] = None,
        future: Optional[asyncio.Future] = None,
    ) -> bool:
        """
        挂起直到用户确认 / 拒绝 / 超时

        Args:
            session_id: 会话 ID
            token: 任务取消令牌
            timeout_ms: 覆盖默认超时
            future: open() 预先登记的 Future；为空时在此登记

        Returns:
            bool: True 表示批准；拒绝或超时为 False

        Raises:
            TaskCancelled: 等待期间任务被取消
        """
        if future is None:
            future = self.open(session_id)
        timeout = (timeout_ms if timeout_ms is not None else self.timeout_ms) / 1000

        try:
            if token is not None:
                approved = await token.run(future, timeout=timeout)
            else:
                approved = await asyncio.wait_for(future, timeout=timeout)
            logger.info(f"🔐 [ConfirmationBroker] session={session_id} 用户答复: {approved}")
            return bool(approved)
        except asyncio.TimeoutError:
            logger.warning(f"⏰ [ConfirmationBroker] session={session_id} 确认超时（{timeout:.0f}秒），视为拒绝")
            return False
        finally:
            self.release(session_id, future)

    def resolve(self, session_id: str, approved: bool) -> bool:
        """
        投递用户的确认结果

        Returns:
            bool: 是否有待确认项接收了该结果
        """
        future = self._pending.get(session_id)
        if future is None or future.done():
            logger.debug(f"🔐 [ConfirmationBroker] session={session_id} 无待确认项，忽略")
            return False
        future.set_result(bool(approved))
        return True

"""
桌面命令通道 - 带关联 ID 的请求 / 回执协议

向桌面代理发送 command:execute，每条命令带 correlationId；
桌面端回复 command:complete / command:failed 后，由传输层调用 acknowledge()。

两种模式：
- ack：等待回执，超时视为失败
- optimistic：发送后等待固定宽限期直接视为成功（桌面端不支持回执时使用）
"""
import asyncio
import time
import uuid
from dataclasses import dataclass
from typing import Any, Dict, Optional

from loguru import logger

from config.settings import DesktopAckMode
from ..cancellation import CancellationToken
from ..events import COMMAND_EXECUTE, Transport


@dataclass
class CommandAck:
    """
    桌面命令回执

    Attributes:
        correlation_id: 命令关联 ID
        success: 桌面端是否执行成功
        error: 失败原因
        result: 桌面端返回的数据
    """
    correlation_id: str
    success: bool
    error: Optional[str] = None
    result: Any = None


class DesktopCommandChannel:
    """桌面命令通道"""

    def __init__(self, transport: Transport, mode: DesktopAckMode = DesktopAckMode.ACK) -> None:
        self._transport = transport
        self.mode = DesktopAckMode(mode)
        self._pending: Dict[str, asyncio.Future] = {}

    @property
    def pending_count(self) -> int:
        return len(self._pending)

    async def send(self, command: str, params: Dict[str, Any], correlation_id: Optional[str] = None) -> str:
        """
        发送命令，不等待回执

        Returns:
            str: correlationId
        """
        correlation_id = correlation_id or uuid.uuid4().hex
        await self._transport.emit(COMMAND_EXECUTE, {
            "type": "EXECUTE_COMMAND",
            "command": command,
            "params": params,
            "correlationId": correlation_id,
            "timestamp": int(time.time() * 1000),
        })
        logger.debug(f"📤 [DesktopChannel] {command} 已发送 (id={correlation_id}) params={params}")
        return correlation_id

    async def request(
        self,
        command: str,
        params: Dict[str, Any],
        timeout_ms: int,
        token: Optional[CancellationToken] = None,
    ) -> CommandAck:
        """
        发送命令并等待回执

        Args:
            command: 命令名（OPEN_APP / SYSTEM_COMMAND / TYPE_TEXT / SEND_HOTKEY / MOUSE_GESTURE）
            params: 命令参数
            timeout_ms: 回执超时（optimistic 模式下为宽限期）
            token: 任务取消令牌

        Returns:
            CommandAck: 回执；超时返回 success=False

        Raises:
            TaskCancelled: 等待期间任务被取消
        """
        timeout = timeout_ms / 1000

        if self.mode == DesktopAckMode.OPTIMISTIC:
            correlation_id = await self.send(command, params)
            if token is not None:
                await token.sleep(timeout)
            else:
                await asyncio.sleep(timeout)
            return CommandAck(correlation_id=correlation_id, success=True, result="Command sent (no ack)")

        correlation_id = uuid.uuid4().hex
        future: asyncio.Future = asyncio.get_running_loop().create_future()
        # 先登记再发送，避免回执早于登记
        self._pending[correlation_id] = future
        try:
            await self.send(command, params, correlation_id=correlation_id)
            try:
                if token is not None:
                    return await token.run(future, timeout=timeout)
                return await asyncio.wait_for(future, timeout=timeout)
            except asyncio.TimeoutError:
                logger.warning(f"⏰ [DesktopChannel] {command} 未在 {timeout_ms}ms 内收到回执 (id={correlation_id})")
                return CommandAck(
                    correlation_id=correlation_id,
                    success=False,
                    error=f"No acknowledgement for {command} within {timeout_ms}ms",
                )
        finally:
            self._pending.pop(correlation_id, None)

    def acknowledge(
        self,
        correlation_id: str,
        success: bool,
        error: Optional[str] = None,
        result: Any = None,
    ) -> bool:
        """
        投递桌面端回执（command:complete / command:failed）

        Returns:
            bool: 是否匹配到等待中的命令
        """
        future = self._pending.get(correlation_id)
        if future is None or future.done():
            logger.debug(f"📥 [DesktopChannel] 回执无匹配命令，忽略 (id={correlation_id})")
            return False
        future.set_result(CommandAck(
            correlation_id=correlation_id,
            success=success,
            error=error,
            result=result,
        ))
        return True

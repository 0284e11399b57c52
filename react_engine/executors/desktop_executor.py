"""
桌面执行器 - app / system / keyboard / mouse

所有桌面动作都经由 DesktopCommandChannel 发送给桌面代理，并等待带关联 ID 的回执。
每个通道有各自的回执超时：
- app：OPEN_APP {name, action}
- system：SYSTEM_COMMAND {cmd}
- keyboard：TYPE_TEXT {text} 或 SEND_HOTKEY {hotkey}
- mouse：MOUSE_GESTURE {action, x, y}，坐标按屏幕尺寸归一化到 0-1
"""
from abc import abstractmethod
from typing import Any, Dict, Tuple

from loguru import logger

from react_engine.actions import Action, AppAction, KeyboardAction, MouseAction, SystemAction
from react_engine.errors import RecoverableActionError
from react_engine.executors.base import BaseExecutor, ExecutionContext
from react_engine.models import StepResult
from react_engine.services.desktop_channel import DesktopCommandChannel


class DesktopExecutor(BaseExecutor):
    """
    桌面通道执行器基类

    Attributes:
        channel: 桌面命令通道
        timeout_ms: 回执超时
    """

    def __init__(self, channel: DesktopCommandChannel, timeout_ms: int) -> None:
        self.channel = channel
        self.timeout_ms = timeout_ms

    @abstractmethod
    def build_command(self, action: Action) -> Tuple[str, Dict[str, Any]]:
        """动作 → (命令名, 参数)"""
        ...

    async def execute(self, action: Action, ctx: ExecutionContext) -> StepResult:
        command, params = self.build_command(action)
        ack = await self.channel.request(command, params, self.timeout_ms, token=ctx.token)
        if not ack.success:
            raise RecoverableActionError(ack.error or f"{command} failed")

        logger.debug(f"🖥️ [{type(self).__name__}] {command} 已确认 (id={ack.correlation_id})")
        return StepResult.ok(action.description, correlation_id=ack.correlation_id)


class AppExecutor(DesktopExecutor):
    def build_command(self, action: AppAction) -> Tuple[str, Dict[str, Any]]:
        if not action.name:
            raise RecoverableActionError("App name is required")
        return "OPEN_APP", {"name": action.name, "action": action.app_action}


class SystemExecutor(DesktopExecutor):
    def build_command(self, action: SystemAction) -> Tuple[str, Dict[str, Any]]:
        if not action.command:
            raise RecoverableActionError("System command is required")
        return "SYSTEM_COMMAND", {"cmd": action.command}


class KeyboardExecutor(DesktopExecutor):
    def build_command(self, action: KeyboardAction) -> Tuple[str, Dict[str, Any]]:
        if action.text:
            return "TYPE_TEXT", {"text": action.text}
        if action.hotkey:
            return "SEND_HOTKEY", {"hotkey": action.hotkey}
        raise RecoverableActionError("Keyboard action needs text or hotkey")


class MouseExecutor(DesktopExecutor):
    """屏幕像素坐标 → 0-1 归一化坐标"""

    def __init__(
        self,
        channel: DesktopCommandChannel,
        timeout_ms: int,
        screen_width: int = 1920,
        screen_height: int = 1080,
    ) -> None:
        super().__init__(channel, timeout_ms)
        self.screen_width = screen_width
        self.screen_height = screen_height

    def build_command(self, action: MouseAction) -> Tuple[str, Dict[str, Any]]:
        return "MOUSE_GESTURE", {
            "action": action.mouse_action or "MOVE",
            "x": action.x / self.screen_width,
            "y": action.y / self.screen_height,
        }

"""
执行器路由 - browser / app / system / keyboard / mouse / wait 分发

根据 Action.type 将动作路由到对应的通道执行器。
"""
from typing import Dict, Optional

from loguru import logger

from config.settings import Settings, settings as default_settings
from react_engine.actions import Action, ActionType
from react_engine.executors import (
    AppExecutor,
    BaseExecutor,
    BrowserExecutor,
    ExecutionContext,
    KeyboardExecutor,
    MouseExecutor,
    SystemExecutor,
    WaitExecutor,
)
from react_engine.models import StepResult
from react_engine.services.desktop_channel import DesktopCommandChannel

UNKNOWN_ACTION_TYPE = "Unknown action type"


class ActionExecutor:
    """
    动作分发表

    使用方式：
        executor = ActionExecutor.with_channels(desktop_channel)
        result = await executor.execute(action, ctx)
    """

    def __init__(self, executors: Dict[str, BaseExecutor]) -> None:
        self._executors = dict(executors)

    @classmethod
    def with_channels(
        cls,
        desktop_channel: DesktopCommandChannel,
        settings: Optional[Settings] = None,
    ) -> "ActionExecutor":
        """
        按配置组装全部通道执行器

        Args:
            desktop_channel: 桌面命令通道
            settings: 配置（默认使用全局 settings）
        """
        settings = settings or default_settings
        return cls({
            ActionType.BROWSER.value: BrowserExecutor(),
            ActionType.APP.value: AppExecutor(desktop_channel, settings.app_ack_timeout_ms),
            ActionType.SYSTEM.value: SystemExecutor(desktop_channel, settings.system_ack_timeout_ms),
            ActionType.KEYBOARD.value: KeyboardExecutor(desktop_channel, settings.keyboard_ack_timeout_ms),
            ActionType.MOUSE.value: MouseExecutor(
                desktop_channel,
                settings.mouse_ack_timeout_ms,
                screen_width=settings.screen_width,
                screen_height=settings.screen_height,
            ),
            ActionType.WAIT.value: WaitExecutor(settings.default_wait_ms),
        })

    def supports(self, action_type: str) -> bool:
        return action_type in self._executors

    async def execute(self, action: Action, ctx: ExecutionContext) -> StepResult:
        """
        根据动作类型路由到对应执行器并执行

        Args:
            action: 要执行的动作
            ctx: 执行上下文

        Returns:
            StepResult: 执行结果；未知类型返回 "Unknown action type"
        """
        executor = self._executors.get(action.type)
        if executor is None:
            logger.warning(f"⚠️ [ActionExecutor] 未知动作类型: {action.type!r}")
            return StepResult.fail(UNKNOWN_ACTION_TYPE)
        return await executor.run(action, ctx)

"""
外发事件名称与传输端口

传输层（WebSocket / Socket.io 等）不属于本模块，只需实现 Transport.emit。
"""
from typing import Any, Dict, Protocol

TASK_STARTED = "task:started"
TASK_STEP = "task:step"
TASK_CONFIRMATION_REQUIRED = "task:confirmation_required"
TASK_COMPLETED = "task:completed"
TASK_FAILED = "task:failed"
TASK_CANCELLED = "task:cancelled"

COMMAND_EXECUTE = "command:execute"

PHASE_REASONING = "reasoning"
PHASE_ACTING = "acting"
PHASE_OBSERVING = "observing"


class Transport(Protocol):
    """会话级事件出口"""

    async def emit(self, event: str, payload: Dict[str, Any]) -> None:
        ...

"""
活动任务注册表 - session_id → Task

由 TaskController 注入持有，不使用模块级全局状态，
便于隔离测试和多个控制器实例并存。
asyncio.Lock 保护同一 session 上 start / cancel 的竞争。
"""
import asyncio
from typing import Dict, List, Optional

from .models import Task


class TaskRegistry:
    """每个 session 至多一个活动任务"""

    def __init__(self) -> None:
        self._tasks: Dict[str, Task] = {}
        self._lock = asyncio.Lock()

    async def replace(self, task: Task) -> Optional[Task]:
        """
        登记任务，返回被替换的旧任务（没有则为 None）

        Args:
            task: 新任务
        """
        async with self._lock:
            previous = self._tasks.get(task.session_id)
            self._tasks[task.session_id] = task
            return previous

    async def pop(self, session_id: str) -> Optional[Task]:
        async with self._lock:
            return self._tasks.pop(session_id, None)

    async def remove(self, task: Task) -> bool:
        """
        仅当登记的正是该任务时才移除

        被替换或已被取消的任务不会误删新任务。

        Returns:
            bool: 是否移除
        """
        async with self._lock:
            if self._tasks.get(task.session_id) is task:
                del self._tasks[task.session_id]
                return True
            return False

    def get(self, session_id: str) -> Optional[Task]:
        return self._tasks.get(session_id)

    def active_sessions(self) -> List[str]:
        return list(self._tasks)

    def __contains__(self, session_id: object) -> bool:
        return session_id in self._tasks

    def __len__(self) -> int:
        return len(self._tasks)

"""
观察器 - 每步之后截图并判断任务是否完成

- 截图为尽力而为：失败只记录日志，不影响任务
- 任务完成标记来自动作自身的 is_final
- 可选的 verifier 可以否决 is_final 的自我声明
"""
from typing import Awaitable, Callable, Optional, Protocol

from loguru import logger

from .models import Observation, StepResult, Task

CompletionVerifier = Callable[[Task, Observation], Awaitable[bool]]


class Screenshotter(Protocol):
    async def capture(self) -> str:
        ...


class Observer:
    """
    单步观察器

    Attributes:
        screenshots: 截图服务（可选）
        verifier: 完成校验器（可选）
    """

    def __init__(
        self,
        screenshots: Optional[Screenshotter] = None,
        verifier: Optional[CompletionVerifier] = None,
    ) -> None:
        self.screenshots = screenshots
        self.verifier = verifier

    async def observe(self, task: Task, result: StepResult) -> Observation:
        """
        观察当前步骤的结果

        Args:
            task: 当前任务（最后一个 Step 即刚执行的动作）
            result: 动作执行结果

        Returns:
            Observation: 观察结果（同时追加到 task.context.observations）
        """
        observation = Observation(
            step_number=task.current_step,
            action_success=result.success,
        )

        if self.screenshots is not None:
            try:
                path = await self.screenshots.capture()
                observation.screenshot = path
                task.context.screenshots.append(path)
            except Exception as e:
                logger.warning(f"📸 [Observer] 截图失败（忽略）: {e}")

        if result.success:
            observation.summary = f"Step {task.current_step} completed successfully"
        else:
            observation.summary = f"Step {task.current_step} failed: {result.error}"

        last_action = task.last_action
        if last_action is not None and last_action.is_final:
            observation.task_complete = True
            if self.verifier is not None:
                observation.task_complete = await self.verifier(task, observation)
                if not observation.task_complete:
                    logger.info(f"🔍 [Observer] 校验器否决了第 {task.current_step} 步的完成声明")

        task.context.observations.append(observation)
        return observation

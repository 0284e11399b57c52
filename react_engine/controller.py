"""
任务控制器 - ReAct 循环驱动

TaskController 负责单个任务的完整生命周期：

    start → REASONING → [AWAITING_CONFIRMATION] → ACTING → OBSERVING → (循环)
          → COMPLETED | FAILED

- 每个 session 至多一个活动任务（新任务替换并取消旧任务）
- 每个挂起点都与任务的 CancellationToken 赛跑
- 动作失败不致命：记录错误后继续下一轮
- 任意退出路径都会把任务从注册表移除（按身份，只移除自己）
"""
from typing import Any, Callable, Dict, Optional

from loguru import logger

from config.settings import Settings, settings as default_settings
from .actions import Action, Done, ParseError
from .confirmation import ConfirmationBroker
from .errors import CANCELLED_MESSAGE, TaskCancelled, UserRejection
from .events import (
    PHASE_ACTING,
    PHASE_OBSERVING,
    PHASE_REASONING,
    TASK_CANCELLED,
    TASK_COMPLETED,
    TASK_CONFIRMATION_REQUIRED,
    TASK_FAILED,
    TASK_STARTED,
    TASK_STEP,
    Transport,
)
from .executor_router import ActionExecutor
from .executors import BrowserAutomation, ExecutionContext
from .guard import SecurityGate, validate_task_description
from .models import Task, TaskOutcome, TaskResult, TaskState
from .observer import Observer
from .reasoner import Reasoner
from .registry import TaskRegistry

BrowserFactory = Callable[[], BrowserAutomation]

# task:completed 覆盖的终止原因，其余走 task:failed
_COMPLETED_EVENT_OUTCOMES = (
    TaskOutcome.COMPLETED,
    TaskOutcome.REJECTED,
    TaskOutcome.MAX_STEPS_EXCEEDED,
)


class TaskController:
    """
    ReAct 任务控制器

    使用方式：
        controller = TaskController.from_settings(reasoner, executor)
        result = await controller.start("session-1", "打开记事本", transport)
    """

    def __init__(
        self,
        reasoner: Reasoner,
        executor: ActionExecutor,
        observer: Optional[Observer] = None,
        gate: Optional[SecurityGate] = None,
        broker: Optional[ConfirmationBroker] = None,
        registry: Optional[TaskRegistry] = None,
        browser_factory: Optional[BrowserFactory] = None,
        max_steps: int = 10,
        step_delay_ms: int = 500,
        treat_unparseable_as_done: bool = True,
        max_description_length: int = 1000,
    ) -> None:
        self.reasoner = reasoner
        self.executor = executor
        self.observer = observer or Observer()
        self.gate = gate or SecurityGate()
        self.broker = broker or ConfirmationBroker()
        self.registry = registry or TaskRegistry()
        self.browser_factory = browser_factory
        self.max_steps = max_steps
        self.step_delay_ms = step_delay_ms
        self.treat_unparseable_as_done = treat_unparseable_as_done
        self.max_description_length = max_description_length

    @classmethod
    def from_settings(
        cls,
        reasoner: Reasoner,
        executor: ActionExecutor,
        observer: Optional[Observer] = None,
        browser_factory: Optional[BrowserFactory] = None,
        settings: Optional[Settings] = None,
    ) -> "TaskController":
        """按配置组装控制器"""
        settings = settings or default_settings
        return cls(
            reasoner=reasoner,
            executor=executor,
            observer=observer,
            broker=ConfirmationBroker(timeout_ms=settings.confirmation_timeout_ms),
            browser_factory=browser_factory,
            max_steps=settings.max_steps,
            step_delay_ms=settings.step_delay_ms,
            treat_unparseable_as_done=settings.treat_unparseable_as_done,
            max_description_length=settings.max_description_length,
        )

    # ==================== 对外接口 ====================

    async def start(self, session_id: str, description: str, transport: Transport) -> TaskResult:
        """
        启动并运行一个任务，直到终态

        Args:
            session_id: 会话 ID
            description: 用户任务描述
            transport: 会话事件出口

        Returns:
            TaskResult: 任务汇总

        Raises:
            ValueError: session_id 为空或任务描述未通过校验
        """
        if not session_id:
            raise ValueError("session_id is required")
        problems = validate_task_description(description, self.max_description_length)
        if problems:
            raise ValueError("; ".join(problems))

        task = Task(session_id=session_id, description=description, max_steps=self.max_steps)
        previous = await self.registry.replace(task)
        if previous is not None:
            logger.warning(
                f"🔁 [TaskController] session={session_id} 已有任务 {previous.id}，取消并替换为 {task.id}"
            )
            previous.cancel_token.cancel()

        logger.info(f"🚀 [TaskController] 开始任务: task_id={task.id}, session={session_id}, desc={description!r}")

        browser: Optional[BrowserAutomation] = None
        try:
            if self.browser_factory is not None:
                browser = self.browser_factory()
            await self._emit(task, transport, TASK_STARTED, {"taskId": task.id, "description": description})
            await self._run_loop(task, transport, browser)
        except UserRejection as e:
            logger.info(f"🚫 [TaskController] task_id={task.id} 用户拒绝了危险动作")
            task.fail(TaskOutcome.REJECTED, str(e))
        except TaskCancelled:
            logger.info(f"🛑 [TaskController] task_id={task.id} 已取消")
            task.fail(TaskOutcome.CANCELLED, CANCELLED_MESSAGE)
        except Exception as e:
            logger.error(f"❌ [TaskController] task_id={task.id} 未处理异常: {e}")
            task.fail(TaskOutcome.ERROR, str(e) or type(e).__name__)
        finally:
            await self.registry.remove(task)
            if browser is not None:
                await self._close_browser(task, browser)

        result = TaskResult.from_task(task)
        logger.info(
            f"🏁 [TaskController] 任务结束: task_id={task.id}, outcome={result.outcome.value}, "
            f"steps={result.steps}, duration={result.duration_ms}ms"
        )

        if result.outcome in _COMPLETED_EVENT_OUTCOMES:
            await transport.emit(TASK_COMPLETED, result.to_payload())
        else:
            error = task.context.errors[-1] if task.context.errors else result.outcome.value
            await transport.emit(TASK_FAILED, {"taskId": task.id, "error": error})
        return result

    async def cancel(self, session_id: str, transport: Optional[Transport] = None) -> bool:
        """
        取消 session 的活动任务

        Returns:
            bool: 是否存在并取消了活动任务
        """
        task = await self.registry.pop(session_id)
        if task is None:
            logger.debug(f"🛑 [TaskController] session={session_id} 无活动任务可取消")
            if transport is not None:
                await transport.emit(TASK_CANCELLED, {"success": False})
            return False

        task.fail(TaskOutcome.CANCELLED, CANCELLED_MESSAGE)
        task.cancel_token.cancel()
        logger.info(f"🛑 [TaskController] 取消任务: task_id={task.id}, session={session_id}")
        if transport is not None:
            await transport.emit(TASK_CANCELLED, {"success": True})
        return True

    def confirm(self, session_id: str, approved: bool) -> bool:
        """投递用户确认结果，返回是否有待确认项接收"""
        return self.broker.resolve(session_id, approved)

    def get_active_task(self, session_id: str) -> Optional[Task]:
        return self.registry.get(session_id)

    # ==================== ReAct 循环 ====================

    async def _run_loop(self, task: Task, transport: Transport, browser: Optional[BrowserAutomation]) -> None:
        token = task.cancel_token

        for _ in range(task.max_steps):
            token.raise_if_cancelled()
            task.current_step += 1
            step_number = task.current_step

            # 1. REASON
            task.transition(TaskState.REASONING)
            await self._emit_step(task, transport, PHASE_REASONING, "Analyzing next action...")
            decision = await token.run(self.reasoner.decide(task.reasoning_context()))

            if isinstance(decision, Done):
                logger.info(f"✅ [TaskController] task_id={task.id} 推理器判定任务完成（第 {step_number} 轮）")
                task.complete()
                return
            if isinstance(decision, ParseError):
                logger.warning(
                    f"⚠️ [TaskController] task_id={task.id} 推理器回复无法解析: {decision.reason}"
                )
                if self.treat_unparseable_as_done:
                    task.complete()
                else:
                    task.fail(TaskOutcome.ERROR, f"Unparseable reasoner response: {decision.reason}")
                return

            action: Action = decision
            logger.debug(f"🧠 [TaskController] task_id={task.id} 第 {step_number} 轮动作: {action.to_dict()}")

            # 2. GATE
            verdict = self.gate.check(action)
            if verdict.required:
                task.transition(TaskState.AWAITING_CONFIRMATION)
                logger.info(f"🔐 [TaskController] task_id={task.id} 需要用户确认: {verdict.reason}")
                pending = self.broker.open(task.session_id)
                try:
                    await self._emit(task, transport, TASK_CONFIRMATION_REQUIRED, {
                        "action": action.to_dict(),
                        "message": f"Do you want to execute: {action.description}?",
                    })
                    approved = await self.broker.wait_for(task.session_id, token=token, future=pending)
                finally:
                    self.broker.release(task.session_id, pending)
                if not approved:
                    raise UserRejection()

            # 3. ACT
            task.transition(TaskState.ACTING)
            await self._emit_step(task, transport, PHASE_ACTING, f"Executing: {action.description}")
            ctx = ExecutionContext(
                session_id=task.session_id,
                task_id=task.id,
                token=token,
                browser=browser,
            )
            result = await self.executor.execute(action, ctx)
            task.record_step(action, result)
            if not result.success:
                logger.warning(f"⚠️ [TaskController] task_id={task.id} 第 {step_number} 步失败: {result.error}")
                task.context.errors.append(result.error or "Action failed")

            # 4. OBSERVE
            task.transition(TaskState.OBSERVING)
            await self._emit_step(task, transport, PHASE_OBSERVING, "Verifying result...")
            observation = await token.run(self.observer.observe(task, result))
            if observation.task_complete:
                logger.info(f"✅ [TaskController] task_id={task.id} 最终动作完成（第 {step_number} 轮）")
                task.complete()
                return

            # 5. PACE
            await token.sleep(self.step_delay_ms / 1000)

        logger.warning(f"⏹️ [TaskController] task_id={task.id} 达到最大步数 {task.max_steps}")
        task.fail(TaskOutcome.MAX_STEPS_EXCEEDED, f"Step limit exceeded ({task.max_steps})")

    async def _emit_step(self, task: Task, transport: Transport, phase: str, message: str) -> None:
        await self._emit(task, transport, TASK_STEP, {
            "step": task.current_step,
            "phase": phase,
            "message": message,
        })

    async def _emit(self, task: Task, transport: Transport, event: str, payload: Dict[str, Any]) -> None:
        """发送事件；发送期间任务可能已被取消"""
        await transport.emit(event, payload)
        task.cancel_token.raise_if_cancelled()

    async def _close_browser(self, task: Task, browser: BrowserAutomation) -> None:
        try:
            await browser.close()
        except Exception as e:
            logger.warning(f"⚠️ [TaskController] task_id={task.id} 关闭浏览器会话失败: {e}")

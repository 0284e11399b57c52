"""
Task / Step / StepResult / Observation 数据模型

定义 ReAct 循环的核心数据结构，包括：
- TaskState：任务状态枚举及合法迁移表
- TaskOutcome：终止原因
- StepResult：单个动作的执行结果
- Step：已执行的步骤（记录后不可变）
- Observation：每一步的观察结果
- Task：一次完整任务（仅存在于内存中，由 TaskController 独占）
- TaskResult：任务结束后的汇总
"""
import time
import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

from .actions import Action
from .cancellation import CancellationToken
from .errors import InvalidTransitionError


class TaskState(str, Enum):
    """任务状态"""
    PENDING = "pending"
    REASONING = "reasoning"
    ACTING = "acting"
    AWAITING_CONFIRMATION = "awaiting_confirmation"
    OBSERVING = "observing"
    COMPLETED = "completed"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (TaskState.COMPLETED, TaskState.FAILED)


# 合法迁移：PENDING → REASONING → [AWAITING_CONFIRMATION] → ACTING → OBSERVING → (循环) → COMPLETED | FAILED
# 任意非终态都可以进入 FAILED（取消 / 未处理异常）
_TRANSITIONS: Dict[TaskState, frozenset] = {
    TaskState.PENDING: frozenset({TaskState.REASONING, TaskState.FAILED}),
    TaskState.REASONING: frozenset({
        TaskState.AWAITING_CONFIRMATION,
        TaskState.ACTING,
        TaskState.COMPLETED,
        TaskState.FAILED,
    }),
    TaskState.AWAITING_CONFIRMATION: frozenset({TaskState.ACTING, TaskState.FAILED}),
    TaskState.ACTING: frozenset({TaskState.OBSERVING, TaskState.FAILED}),
    TaskState.OBSERVING: frozenset({TaskState.REASONING, TaskState.COMPLETED, TaskState.FAILED}),
    TaskState.COMPLETED: frozenset(),
    TaskState.FAILED: frozenset(),
}


def can_transition(current: TaskState, target: TaskState) -> bool:
    return target in _TRANSITIONS[current]


class TaskOutcome(str, Enum):
    """任务终止原因"""
    COMPLETED = "completed"
    REJECTED = "rejected"
    MAX_STEPS_EXCEEDED = "max_steps_exceeded"
    CANCELLED = "cancelled"
    ERROR = "error"


@dataclass
class StepResult:
    """
    动作执行结果

    Attributes:
        success: 是否成功
        error: 失败原因
        message: 结果描述
        data: 额外数据
    """
    success: bool
    error: Optional[str] = None
    message: str = ""
    data: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def ok(cls, message: str = "", **data: Any) -> "StepResult":
        return cls(success=True, message=message, data=data)

    @classmethod
    def fail(cls, error: str, **data: Any) -> "StepResult":
        return cls(success=False, error=error, data=data)


@dataclass(frozen=True)
class Step:
    """
    已执行的步骤

    Attributes:
        action: 推理器给出的动作
        result: 执行结果
        timestamp: 记录时间（epoch 秒）
    """
    action: Action
    result: StepResult
    timestamp: float = field(default_factory=time.time)

    def to_history(self) -> Dict[str, Any]:
        """回传给推理器的历史条目"""
        entry: Dict[str, Any] = {
            "description": self.action.description,
            "success": self.result.success,
        }
        if self.result.error:
            entry["error"] = self.result.error
        return entry


@dataclass
class Observation:
    """单步观察结果"""
    step_number: int
    action_success: bool
    screenshot: Optional[str] = None
    summary: str = ""
    task_complete: bool = False


@dataclass
class TaskContext:
    """任务运行过程中积累的上下文"""
    screenshots: List[str] = field(default_factory=list)
    observations: List[Observation] = field(default_factory=list)
    errors: List[str] = field(default_factory=list)


@dataclass
class ReasoningContext:
    """
    推理器输入

    Attributes:
        description: 任务描述
        steps: [{description, success, error?}]
        errors: 累计错误
    """
    description: str
    steps: List[Dict[str, Any]] = field(default_factory=list)
    errors: List[str] = field(default_factory=list)


def _new_task_id() -> str:
    return f"task_{int(time.time() * 1000)}_{uuid.uuid4().hex[:6]}"


@dataclass
class Task:
    """
    一次完整的 ReAct 任务

    Attributes:
        session_id: 所属会话
        description: 用户任务描述
        max_steps: 最大推理轮数
        state: 当前状态
        steps: 已执行步骤
        current_step: 当前轮次（从 1 开始，严格递增）
        outcome: 终止原因（终态时设置）
    """
    session_id: str
    description: str
    max_steps: int = 10
    id: str = field(default_factory=_new_task_id)
    state: TaskState = TaskState.PENDING
    steps: List[Step] = field(default_factory=list)
    current_step: int = 0
    started_at: float = field(default_factory=time.time)
    context: TaskContext = field(default_factory=TaskContext)
    outcome: Optional[TaskOutcome] = None
    cancel_token: CancellationToken = field(default_factory=CancellationToken, repr=False)

    def transition(self, target: TaskState) -> None:
        """
        状态迁移

        Raises:
            InvalidTransitionError: 迁移不在合法表中
        """
        if not can_transition(self.state, target):
            raise InvalidTransitionError(self.state.value, target.value)
        self.state = target

    def fail(self, outcome: TaskOutcome, error: Optional[str] = None) -> None:
        """进入 FAILED 终态；已是终态时不做任何事"""
        if self.state.is_terminal:
            return
        self.transition(TaskState.FAILED)
        self.outcome = outcome
        if error:
            self.context.errors.append(error)

    def complete(self) -> None:
        self.transition(TaskState.COMPLETED)
        self.outcome = TaskOutcome.COMPLETED

    def record_step(self, action: Action, result: StepResult) -> Step:
        step = Step(action=action, result=result)
        self.steps.append(step)
        return step

    def reasoning_context(self) -> ReasoningContext:
        return ReasoningContext(
            description=self.description,
            steps=[s.to_history() for s in self.steps],
            errors=list(self.context.errors),
        )

    @property
    def last_action(self) -> Optional[Action]:
        return self.steps[-1].action if self.steps else None

    @property
    def duration_ms(self) -> int:
        return int((time.time() - self.started_at) * 1000)


@dataclass
class TaskResult:
    """任务结束后的汇总，与 task:completed 事件对应"""
    task_id: str
    success: bool
    steps: int
    duration_ms: int
    errors: List[str]
    outcome: TaskOutcome

    @classmethod
    def from_task(cls, task: Task) -> "TaskResult":
        return cls(
            task_id=task.id,
            success=task.state == TaskState.COMPLETED,
            steps=len(task.steps),
            duration_ms=task.duration_ms,
            errors=list(task.context.errors),
            outcome=task.outcome or TaskOutcome.ERROR,
        )

    def to_payload(self) -> Dict[str, Any]:
        return {
            "taskId": self.task_id,
            "success": self.success,
            "steps": self.steps,
            "duration": self.duration_ms,
            "errors": list(self.errors),
            "outcome": self.outcome.value,
        }

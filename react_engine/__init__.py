"""
react_engine - ReAct 任务编排核心

推理（Reasoner）→ 安全闸门（SecurityGate）→ 用户确认（ConfirmationBroker）
→ 执行（ActionExecutor）→ 观察（Observer），由 TaskController 驱动循环。
"""
from .actions import (
    Action,
    ActionType,
    AppAction,
    BrowserAction,
    Decision,
    Done,
    KeyboardAction,
    MouseAction,
    ParseError,
    SystemAction,
    UnknownAction,
    WaitAction,
    parse_decision,
)
from .cancellation import CancellationToken
from .confirmation import ConfirmationBroker
from .controller import TaskController
from .errors import (
    InvalidTransitionError,
    ReasonerError,
    ReasonerTimeout,
    RecoverableActionError,
    TaskCancelled,
    TaskEngineError,
    UserRejection,
)
from .executor_router import ActionExecutor
from .guard import SecurityGate, validate_task_description
from .models import Observation, Step, StepResult, Task, TaskOutcome, TaskResult, TaskState
from .observer import Observer
from .reasoner import LLMReasoner, Reasoner
from .registry import TaskRegistry

__all__ = [
    "Action",
    "ActionType",
    "AppAction",
    "BrowserAction",
    "Decision",
    "Done",
    "KeyboardAction",
    "MouseAction",
    "ParseError",
    "SystemAction",
    "UnknownAction",
    "WaitAction",
    "parse_decision",
    "CancellationToken",
    "ConfirmationBroker",
    "TaskController",
    "InvalidTransitionError",
    "ReasonerError",
    "ReasonerTimeout",
    "RecoverableActionError",
    "TaskCancelled",
    "TaskEngineError",
    "UserRejection",
    "ActionExecutor",
    "SecurityGate",
    "validate_task_description",
    "Observation",
    "Step",
    "StepResult",
    "Task",
    "TaskOutcome",
    "TaskResult",
    "TaskState",
    "Observer",
    "LLMReasoner",
    "Reasoner",
    "TaskRegistry",
]

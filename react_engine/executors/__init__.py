"""通道执行器"""
from react_engine.executors.base import BaseExecutor, ExecutionContext
from react_engine.executors.browser_executor import BrowserAutomation, BrowserExecutor
from react_engine.executors.desktop_executor import (
    AppExecutor,
    DesktopExecutor,
    KeyboardExecutor,
    MouseExecutor,
    SystemExecutor,
)
from react_engine.executors.wait_executor import WaitExecutor

__all__ = [
    "BaseExecutor",
    "ExecutionContext",
    "BrowserAutomation",
    "BrowserExecutor",
    "DesktopExecutor",
    "AppExecutor",
    "SystemExecutor",
    "KeyboardExecutor",
    "MouseExecutor",
    "WaitExecutor",
]

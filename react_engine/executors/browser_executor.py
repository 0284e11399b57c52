"""
浏览器执行器

url → 导航；selector + text → 输入；仅 selector → 点击。
浏览器协作者的异常直接向上抛出，由 BaseExecutor.run 转换为失败结果。
"""
from typing import Protocol

from react_engine.actions import BrowserAction
from react_engine.errors import RecoverableActionError
from react_engine.executors.base import BaseExecutor, ExecutionContext
from react_engine.models import StepResult


class BrowserAutomation(Protocol):
    """浏览器自动化端口，失败时抛异常"""

    async def navigate(self, url: str) -> None:
        ...

    async def click(self, selector: str, click_type: str = "single") -> None:
        ...

    async def type(self, selector: str, text: str) -> None:
        ...

    async def close(self) -> None:
        ...


class BrowserExecutor(BaseExecutor):
    """浏览器通道执行器"""

    async def execute(self, action: BrowserAction, ctx: ExecutionContext) -> StepResult:
        browser = ctx.browser
        if browser is None:
            raise RecoverableActionError("Browser automation not available")

        if action.url:
            await ctx.token.run(browser.navigate(action.url))
        if action.selector and action.text:
            await ctx.token.run(browser.type(action.selector, action.text))
        elif action.selector:
            await ctx.token.run(browser.click(action.selector, action.click_type))

        return StepResult.ok(action.description)

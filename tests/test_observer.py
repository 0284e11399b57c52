"""
Observer 测试
"""
from unittest.mock import AsyncMock

import pytest

from fakes import FakeScreenshots


def _task_with_step(action, result):
    from react_engine.models import Task
    task = Task(session_id="s1", description="demo")
    task.current_step = 1
    task.record_step(action, result)
    return task


class TestObserver:
    """测试单步观察"""

    @pytest.mark.asyncio
    async def test_success_summary_and_screenshot(self):
        from react_engine.actions import AppAction
        from react_engine.models import StepResult
        from react_engine.observer import Observer

        result = StepResult.ok("opened")
        task = _task_with_step(AppAction(name="notepad"), result)
        observation = await Observer(screenshots=FakeScreenshots()).observe(task, result)

        assert observation.step_number == 1
        assert observation.action_success is True
        assert observation.summary == "Step 1 completed successfully"
        assert observation.screenshot == "/tmp/shot_1.png"
        assert observation.task_complete is False
        assert task.context.screenshots == ["/tmp/shot_1.png"]
        assert task.context.observations == [observation]

    @pytest.mark.asyncio
    async def test_failure_summary(self):
        from react_engine.actions import AppAction
        from react_engine.models import StepResult
        from react_engine.observer import Observer

        result = StepResult.fail("App not found")
        task = _task_with_step(AppAction(name="nope"), result)
        observation = await Observer().observe(task, result)
        assert observation.summary == "Step 1 failed: App not found"
        assert observation.screenshot is None

    @pytest.mark.asyncio
    async def test_screenshot_failure_is_not_fatal(self):
        from react_engine.actions import KeyboardAction
        from react_engine.models import StepResult
        from react_engine.observer import Observer

        result = StepResult.ok()
        task = _task_with_step(KeyboardAction(text="hi", is_final=True), result)
        observation = await Observer(screenshots=FakeScreenshots(fail=True)).observe(task, result)

        assert observation.screenshot is None
        assert observation.task_complete is True
        assert task.context.screenshots == []

    @pytest.mark.asyncio
    async def test_verifier_can_veto_final_claim(self):
        from react_engine.actions import KeyboardAction
        from react_engine.models import StepResult
        from react_engine.observer import Observer

        verifier = AsyncMock(return_value=False)
        result = StepResult.ok()
        task = _task_with_step(KeyboardAction(text="hi", is_final=True), result)
        observation = await Observer(verifier=verifier).observe(task, result)

        assert observation.task_complete is False
        verifier.assert_awaited_once_with(task, observation)

    @pytest.mark.asyncio
    async def test_verifier_not_called_for_non_final(self):
        from react_engine.actions import WaitAction
        from react_engine.models import StepResult
        from react_engine.observer import Observer

        verifier = AsyncMock(return_value=True)
        result = StepResult.ok()
        task = _task_with_step(WaitAction(duration_ms=1), result)
        observation = await Observer(verifier=verifier).observe(task, result)

        assert observation.task_complete is False
        verifier.assert_not_awaited()

"""
并发原语测试：CancellationToken / ConfirmationBroker / TaskRegistry
"""
import asyncio

import pytest


# ============================================================
# CancellationToken 测试
# ============================================================

class TestCancellationToken:
    """测试取消令牌"""

    @pytest.mark.asyncio
    async def test_run_returns_result(self):
        from react_engine.cancellation import CancellationToken

        async def answer():
            return 42

        token = CancellationToken()
        assert await token.run(answer()) == 42

    @pytest.mark.asyncio
    async def test_cancel_interrupts_inflight_call(self):
        from react_engine.cancellation import CancellationToken
        from react_engine.errors import TaskCancelled

        token = CancellationToken()
        started = asyncio.Event()
        interrupted = []

        async def slow():
            started.set()
            try:
                await asyncio.sleep(10)
            except asyncio.CancelledError:
                interrupted.append(True)
                raise

        runner = asyncio.ensure_future(token.run(slow()))
        await started.wait()
        token.cancel()
        with pytest.raises(TaskCancelled):
            await runner
        assert interrupted == [True]

    @pytest.mark.asyncio
    async def test_already_cancelled_does_not_start_work(self):
        from react_engine.cancellation import CancellationToken
        from react_engine.errors import TaskCancelled

        calls = []

        async def work():
            calls.append(1)

        token = CancellationToken()
        token.cancel()
        with pytest.raises(TaskCancelled):
            await token.run(work())
        assert calls == []

    @pytest.mark.asyncio
    async def test_timeout(self):
        from react_engine.cancellation import CancellationToken

        token = CancellationToken()
        with pytest.raises(asyncio.TimeoutError):
            await token.run(asyncio.sleep(10), timeout=0.01)
        assert not token.cancelled

    def test_raise_if_cancelled(self):
        from react_engine.cancellation import CancellationToken
        from react_engine.errors import TaskCancelled

        token = CancellationToken()
        token.raise_if_cancelled()
        token.cancel("stop")
        with pytest.raises(TaskCancelled) as exc_info:
            token.raise_if_cancelled()
        assert str(exc_info.value) == "stop"


# ============================================================
# ConfirmationBroker 测试
# ============================================================

class TestConfirmationBroker:
    """测试确认代理"""

    @pytest.mark.asyncio
    async def test_approve(self):
        from react_engine.confirmation import ConfirmationBroker

        broker = ConfirmationBroker(timeout_ms=1000)
        waiter = asyncio.ensure_future(broker.wait_for("s1"))
        await asyncio.sleep(0)
        assert broker.has_pending("s1")
        assert broker.resolve("s1", True) is True
        assert await waiter is True
        assert not broker.has_pending("s1")

    @pytest.mark.asyncio
    async def test_deny(self):
        from react_engine.confirmation import ConfirmationBroker

        broker = ConfirmationBroker(timeout_ms=1000)
        waiter = asyncio.ensure_future(broker.wait_for("s1"))
        await asyncio.sleep(0)
        broker.resolve("s1", False)
        assert await waiter is False

    @pytest.mark.asyncio
    async def test_timeout_is_denial_and_releases_entry(self):
        from react_engine.confirmation import ConfirmationBroker

        broker = ConfirmationBroker(timeout_ms=20)
        assert await broker.wait_for("s1") is False
        assert not broker.has_pending("s1")
        assert broker.resolve("s1", True) is False

    @pytest.mark.asyncio
    async def test_answer_before_wait_is_kept(self):
        from react_engine.confirmation import ConfirmationBroker

        broker = ConfirmationBroker(timeout_ms=1000)
        pending = broker.open("s1")
        assert broker.resolve("s1", True) is True
        assert await broker.wait_for("s1", future=pending) is True
        assert not broker.has_pending("s1")

    @pytest.mark.asyncio
    async def test_release_only_removes_own_entry(self):
        from react_engine.confirmation import ConfirmationBroker

        broker = ConfirmationBroker(timeout_ms=1000)
        first = broker.open("s1")
        second = broker.open("s1")
        assert first.result() is False
        broker.release("s1", first)
        assert broker.has_pending("s1")
        broker.release("s1", second)
        assert not broker.has_pending("s1")

    @pytest.mark.asyncio
    async def test_resolve_without_pending(self):
        from react_engine.confirmation import ConfirmationBroker
        assert ConfirmationBroker().resolve("nobody", True) is False

    @pytest.mark.asyncio
    async def test_second_request_supersedes_first(self):
        from react_engine.confirmation import ConfirmationBroker

        broker = ConfirmationBroker(timeout_ms=1000)
        first = asyncio.ensure_future(broker.wait_for("s1"))
        await asyncio.sleep(0)
        second = asyncio.ensure_future(broker.wait_for("s1"))
        await asyncio.sleep(0)

        assert await first is False
        broker.resolve("s1", True)
        assert await second is True
        assert not broker.has_pending("s1")

    @pytest.mark.asyncio
    async def test_cancellation_releases_entry(self):
        from react_engine.cancellation import CancellationToken
        from react_engine.confirmation import ConfirmationBroker
        from react_engine.errors import TaskCancelled

        broker = ConfirmationBroker(timeout_ms=1000)
        token = CancellationToken()
        waiter = asyncio.ensure_future(broker.wait_for("s1", token=token))
        await asyncio.sleep(0)
        token.cancel()
        with pytest.raises(TaskCancelled):
            await waiter
        assert not broker.has_pending("s1")

    @pytest.mark.asyncio
    async def test_sessions_are_independent(self):
        from react_engine.confirmation import ConfirmationBroker

        broker = ConfirmationBroker(timeout_ms=1000)
        a = asyncio.ensure_future(broker.wait_for("a"))
        b = asyncio.ensure_future(broker.wait_for("b"))
        await asyncio.sleep(0)
        broker.resolve("b", True)
        broker.resolve("a", False)
        assert await a is False
        assert await b is True


# ============================================================
# TaskRegistry 测试
# ============================================================

class TestTaskRegistry:
    """测试活动任务注册表"""

    @pytest.mark.asyncio
    async def test_replace_returns_previous(self):
        from react_engine.models import Task
        from react_engine.registry import TaskRegistry

        registry = TaskRegistry()
        first = Task(session_id="s1", description="one")
        second = Task(session_id="s1", description="two")
        assert await registry.replace(first) is None
        assert await registry.replace(second) is first
        assert registry.get("s1") is second
        assert len(registry) == 1

    @pytest.mark.asyncio
    async def test_remove_is_identity_checked(self):
        from react_engine.models import Task
        from react_engine.registry import TaskRegistry

        registry = TaskRegistry()
        old = Task(session_id="s1", description="old")
        new = Task(session_id="s1", description="new")
        await registry.replace(old)
        await registry.replace(new)

        assert await registry.remove(old) is False
        assert registry.get("s1") is new
        assert await registry.remove(new) is True
        assert "s1" not in registry

    @pytest.mark.asyncio
    async def test_pop(self):
        from react_engine.models import Task
        from react_engine.registry import TaskRegistry

        registry = TaskRegistry()
        task = Task(session_id="s1", description="one")
        await registry.replace(task)
        assert registry.active_sessions() == ["s1"]
        assert await registry.pop("s1") is task
        assert await registry.pop("s1") is None

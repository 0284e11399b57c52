"""
推理器测试：提示词构建 + LLMReasoner（aiohttp 全部 mock）
"""
import asyncio
from unittest.mock import AsyncMock, MagicMock, patch

import aiohttp
import pytest


def _mock_client_session(status=200, body=None, text=""):
    """构造 aiohttp.ClientSession 的 async context manager mock"""
    mock_resp = AsyncMock()
    mock_resp.status = status
    mock_resp.json = AsyncMock(return_value=body)
    mock_resp.text = AsyncMock(return_value=text)

    mock_session = AsyncMock()
    mock_session.post = MagicMock(return_value=AsyncMock(
        __aenter__=AsyncMock(return_value=mock_resp),
        __aexit__=AsyncMock(return_value=False),
    ))
    client = AsyncMock(
        __aenter__=AsyncMock(return_value=mock_session),
        __aexit__=AsyncMock(return_value=False),
    )
    return client, mock_session


def _completion(content):
    return {"choices": [{"message": {"content": content}}]}


class TestBuildReasoningPrompt:
    """测试提示词内容"""

    def test_first_step_prompt(self):
        from react_engine.models import ReasoningContext
        from react_engine.reasoner import build_reasoning_prompt

        prompt = build_reasoning_prompt(ReasoningContext(description="open notepad"))
        assert prompt.startswith("Task: open notepad")
        assert "This is the first step." in prompt
        assert '{"type": "DONE"}' in prompt
        assert "Errors encountered" not in prompt

    def test_history_and_errors(self):
        from react_engine.models import ReasoningContext
        from react_engine.reasoner import build_reasoning_prompt

        ctx = ReasoningContext(
            description="open notepad and type hello",
            steps=[
                {"description": "Open notepad", "success": True},
                {"description": "Type hello", "success": False, "error": "window not focused"},
            ],
            errors=["window not focused"],
        )
        prompt = build_reasoning_prompt(ctx)
        assert "Step 1: Open notepad → Success" in prompt
        assert "Step 2: Type hello → Failed: window not focused" in prompt
        assert "Errors encountered:\n- window not focused" in prompt


class TestLLMReasoner:
    """测试 LLM 推理器"""

    @pytest.mark.asyncio
    async def test_decide_returns_action(self):
        from react_engine.actions import AppAction
        from react_engine.models import ReasoningContext
        from react_engine.reasoner import LLMReasoner

        content = 'Next:\n```json\n{"type": "app", "description": "Open notepad", "params": {"name": "notepad"}}\n```'
        client, mock_session = _mock_client_session(body=_completion(content))

        with patch("aiohttp.ClientSession", return_value=client):
            reasoner = LLMReasoner(url="http://llm.test/", model="m1", token="secret", timeout_seconds=5)
            decision = await reasoner.decide(ReasoningContext(description="open notepad"))

        assert isinstance(decision, AppAction)
        assert decision.name == "notepad"

        args, kwargs = mock_session.post.call_args
        assert args[0] == "http://llm.test/v1/chat/completions"
        assert kwargs["headers"]["Authorization"] == "Bearer secret"
        assert kwargs["json"]["model"] == "m1"
        assert kwargs["json"]["messages"][1]["content"].startswith("Task: open notepad")
        assert kwargs["timeout"].total == 5

    @pytest.mark.asyncio
    async def test_decide_done(self):
        from react_engine.actions import Done
        from react_engine.models import ReasoningContext
        from react_engine.reasoner import LLMReasoner

        client, mock_session = _mock_client_session(body=_completion('{"type": "DONE"}'))
        with patch("aiohttp.ClientSession", return_value=client):
            decision = await LLMReasoner(url="http://llm.test").decide(ReasoningContext(description="x"))

        assert isinstance(decision, Done)
        assert "Authorization" not in mock_session.post.call_args.kwargs["headers"]

    @pytest.mark.asyncio
    async def test_unparseable_reply_is_parse_error(self):
        from react_engine.actions import ParseError
        from react_engine.models import ReasoningContext
        from react_engine.reasoner import LLMReasoner

        client, _ = _mock_client_session(body=_completion("I'm not sure what to do."))
        with patch("aiohttp.ClientSession", return_value=client):
            decision = await LLMReasoner(url="http://llm.test").decide(ReasoningContext(description="x"))
        assert isinstance(decision, ParseError)

    @pytest.mark.asyncio
    async def test_http_error_raises(self):
        from react_engine.errors import ReasonerError
        from react_engine.models import ReasoningContext
        from react_engine.reasoner import LLMReasoner

        client, _ = _mock_client_session(status=503, text="overloaded")
        with patch("aiohttp.ClientSession", return_value=client):
            with pytest.raises(ReasonerError, match="HTTP 503"):
                await LLMReasoner(url="http://llm.test").decide(ReasoningContext(description="x"))

    @pytest.mark.asyncio
    async def test_connection_error_raises(self):
        from react_engine.errors import ReasonerError
        from react_engine.models import ReasoningContext
        from react_engine.reasoner import LLMReasoner

        with patch("aiohttp.ClientSession") as mock_cls:
            mock_session = AsyncMock()
            mock_session.post = MagicMock(side_effect=aiohttp.ClientError("连接失败"))
            mock_cls.return_value.__aenter__ = AsyncMock(return_value=mock_session)
            mock_cls.return_value.__aexit__ = AsyncMock(return_value=False)

            with pytest.raises(ReasonerError, match="连接失败"):
                await LLMReasoner(url="http://llm.test").decide(ReasoningContext(description="x"))

    @pytest.mark.asyncio
    async def test_timeout_raises_reasoner_timeout(self):
        from react_engine.errors import ReasonerTimeout
        from react_engine.models import ReasoningContext
        from react_engine.reasoner import LLMReasoner

        with patch("aiohttp.ClientSession") as mock_cls:
            mock_session = AsyncMock()
            mock_session.post = MagicMock(side_effect=asyncio.TimeoutError())
            mock_cls.return_value.__aenter__ = AsyncMock(return_value=mock_session)
            mock_cls.return_value.__aexit__ = AsyncMock(return_value=False)

            with pytest.raises(ReasonerTimeout):
                await LLMReasoner(url="http://llm.test", timeout_seconds=1).decide(ReasoningContext(description="x"))

    @pytest.mark.asyncio
    async def test_malformed_body_raises(self):
        from react_engine.errors import ReasonerError
        from react_engine.models import ReasoningContext
        from react_engine.reasoner import LLMReasoner

        client, _ = _mock_client_session(body={"choices": []})
        with patch("aiohttp.ClientSession", return_value=client):
            with pytest.raises(ReasonerError, match="Unexpected LLM response structure"):
                await LLMReasoner(url="http://llm.test").decide(ReasoningContext(description="x"))

    @pytest.mark.asyncio
    async def test_missing_url_raises(self):
        from react_engine.errors import ReasonerError
        from react_engine.models import ReasoningContext
        from react_engine.reasoner import LLMReasoner

        with pytest.raises(ReasonerError, match="not configured"):
            await LLMReasoner(url="").decide(ReasoningContext(description="x"))

    def test_from_settings(self, test_settings):
        from react_engine.reasoner import LLMReasoner

        test_settings.reasoner_llm_url = "http://reasoner.test/"
        test_settings.reasoner_timeout_seconds = 12.5
        reasoner = LLMReasoner.from_settings(test_settings)
        assert reasoner.url == "http://reasoner.test"
        assert reasoner.timeout_seconds == 12.5
        assert reasoner.temperature == pytest.approx(0.1)

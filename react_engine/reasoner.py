"""
推理器 - 根据任务描述和历史决定下一步动作

Reasoner 是一个端口（Protocol）：TaskController 只依赖 decide()。
LLMReasoner 是默认实现，通过 aiohttp 调用 OpenAI 兼容的 /v1/chat/completions，
并用 parse_decision() 把回复解析为 Action / Done / ParseError。
"""
import asyncio
from typing import Any, Dict, List, Optional, Protocol

import aiohttp
from loguru import logger

from config.settings import Settings
from .actions import Decision, parse_decision
from .errors import ReasonerError, ReasonerTimeout
from .models import ReasoningContext

_SYSTEM_PROMPT = (
    "You are a desktop and browser automation agent. "
    "Decide the single next action needed to accomplish the user's task. "
    "Respond with exactly one JSON object and nothing else."
)

_ACTION_FORMAT = """Respond with the next action in this JSON format:
{
  "type": "browser|app|system|keyboard|mouse|wait|DONE",
  "description": "What this action does",
  "params": {
    // For browser: {"url": "...", "selector": "...", "text": "...", "clickType": "single|double"}
    // For app: {"name": "...", "action": "open|close"}
    // For system: {"command": "..."}
    // For keyboard: {"text": "..."} or {"hotkey": "ctrl+c"}
    // For mouse: {"x": 0, "y": 0, "action": "MOVE|CLICK|DOUBLE_CLICK|RIGHT_CLICK|SCROLL"}
    // For wait: {"duration": 1000}
  },
  "isFinal": false
}

If the task is complete, respond with: {"type": "DONE"}"""


class Reasoner(Protocol):
    async def decide(self, context: ReasoningContext) -> Decision:
        ...


def build_reasoning_prompt(context: ReasoningContext) -> str:
    """
    构建推理提示词

    Args:
        context: 任务描述 + 已执行步骤 + 累计错误

    Returns:
        str: 用户消息内容
    """
    lines = [f"Task: {context.description}", ""]

    if context.steps:
        lines.append("Previous steps:")
        for index, step in enumerate(context.steps, start=1):
            status = "Success" if step.get("success") else f"Failed: {step.get('error', 'unknown error')}"
            lines.append(f"Step {index}: {step.get('description', '')} → {status}")
        lines.append("")
    else:
        lines.append("This is the first step.")
        lines.append("")

    if context.errors:
        lines.append("Errors encountered:")
        lines.extend(f"- {error}" for error in context.errors)
        lines.append("")

    lines.append(_ACTION_FORMAT)
    return "\n".join(lines)


class LLMReasoner:
    """
    基于 OpenAI 兼容接口的推理器

    Attributes:
        url: LLM 服务地址（不含 /v1/chat/completions）
        model: 模型名
        token: Bearer token（可选）
        timeout_seconds: 单次请求超时
        temperature: 采样温度
    """

    def __init__(
        self,
        url: Optional[str],
        model: str = "default",
        token: Optional[str] = None,
        timeout_seconds: float = 60.0,
        temperature: float = 0.1,
    ) -> None:
        self.url = (url or "").rstrip("/")
        self.model = model
        self.token = token
        self.timeout_seconds = timeout_seconds
        self.temperature = temperature

    @classmethod
    def from_settings(cls, settings: Settings) -> "LLMReasoner":
        return cls(
            url=settings.reasoner_llm_url,
            model=settings.reasoner_llm_model,
            token=settings.reasoner_llm_token,
            timeout_seconds=settings.reasoner_timeout_seconds,
            temperature=settings.reasoner_temperature,
        )

    def _build_messages(self, context: ReasoningContext) -> List[Dict[str, str]]:
        return [
            {"role": "system", "content": _SYSTEM_PROMPT},
            {"role": "user", "content": build_reasoning_prompt(context)},
        ]

    async def decide(self, context: ReasoningContext) -> Decision:
        """
        请求 LLM 决定下一步

        Raises:
            ReasonerError: 服务未配置、HTTP 错误或响应结构异常
            ReasonerTimeout: 请求超时
        """
        if not self.url:
            raise ReasonerError("Reasoner LLM URL is not configured")

        headers = {"Content-Type": "application/json"}
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"

        payload: Dict[str, Any] = {
            "model": self.model,
            "messages": self._build_messages(context),
            "temperature": self.temperature,
        }

        logger.debug(f"🧠 [Reasoner] 请求下一步动作: 已执行 {len(context.steps)} 步")
        try:
            async with aiohttp.ClientSession() as session:
                async with session.post(
                        f"{self.url}/v1/chat/completions",
                        json=payload,
                        headers=headers,
                        timeout=aiohttp.ClientTimeout(total=self.timeout_seconds),
                ) as response:
                    if response.status != 200:
                        error_text = await response.text()
                        logger.error(f"❌ [Reasoner] LLM API 错误: {response.status} - {error_text[:200]}")
                        raise ReasonerError(f"LLM API returned HTTP {response.status}")

                    data = await response.json()
        except asyncio.TimeoutError as e:
            raise ReasonerTimeout(f"Reasoner timed out after {self.timeout_seconds}s") from e
        except aiohttp.ClientError as e:
            raise ReasonerError(f"LLM request failed: {e}") from e

        try:
            content = data["choices"][0]["message"]["content"] or ""
        except (KeyError, IndexError, TypeError) as e:
            raise ReasonerError(f"Unexpected LLM response structure: {e}") from e

        decision = parse_decision(content)
        logger.debug(f"🧠 [Reasoner] 决策: {decision}")
        return decision

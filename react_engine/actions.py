"""
动作模型 - 按通道区分的 tagged union

推理器每一轮产出一个决策（Decision）：
- 具体动作：BrowserAction / AppAction / SystemAction / KeyboardAction / MouseAction / WaitAction
- 未知类型：UnknownAction（执行时返回 "Unknown action type"）
- 完成：Done
- 解析失败：ParseError（显式值，而不是悄悄变成 None）

parse_decision() 负责把推理器的自由文本回复转换为 Decision：
从文本（可能包含说明文字或 ``` 代码块）中提取第一个括号平衡的 JSON 对象。
"""
import json
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, ClassVar, Dict, Optional, Union


class ActionType(str, Enum):
    """动作通道"""
    BROWSER = "browser"
    APP = "app"
    SYSTEM = "system"
    KEYBOARD = "keyboard"
    MOUSE = "mouse"
    WAIT = "wait"
    DONE = "done"


@dataclass(frozen=True)
class Action:
    """
    所有动作的公共字段

    Attributes:
        description: 人类可读的动作描述
        is_final: 推理器声明这是完成任务的最后一步
    """
    type: ClassVar[str] = ""

    description: str = "Executing action"
    is_final: bool = False

    def params(self) -> Dict[str, Any]:
        """通道参数（外发事件使用的键名）"""
        return {}

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": self.type,
            "description": self.description,
            "params": self.params(),
            "isFinal": self.is_final,
        }


@dataclass(frozen=True)
class BrowserAction(Action):
    type: ClassVar[str] = ActionType.BROWSER.value

    url: Optional[str] = None
    selector: Optional[str] = None
    text: Optional[str] = None
    click_type: str = "single"

    def params(self) -> Dict[str, Any]:
        return _compact({
            "url": self.url,
            "selector": self.selector,
            "text": self.text,
            "clickType": self.click_type,
        })


@dataclass(frozen=True)
class AppAction(Action):
    type: ClassVar[str] = ActionType.APP.value

    name: str = ""
    app_action: Optional[str] = None

    def params(self) -> Dict[str, Any]:
        return _compact({"name": self.name, "action": self.app_action})


@dataclass(frozen=True)
class SystemAction(Action):
    type: ClassVar[str] = ActionType.SYSTEM.value

    command: str = ""

    def params(self) -> Dict[str, Any]:
        return {"command": self.command}


@dataclass(frozen=True)
class KeyboardAction(Action):
    """输入文本（text）或发送快捷键（hotkey），text 优先"""
    type: ClassVar[str] = ActionType.KEYBOARD.value

    text: Optional[str] = None
    hotkey: Optional[str] = None

    def params(self) -> Dict[str, Any]:
        return _compact({"text": self.text, "hotkey": self.hotkey})


@dataclass(frozen=True)
class MouseAction(Action):
    """x / y 为屏幕像素坐标"""
    type: ClassVar[str] = ActionType.MOUSE.value

    x: int = 0
    y: int = 0
    mouse_action: str = "MOVE"

    def params(self) -> Dict[str, Any]:
        return {"x": self.x, "y": self.y, "action": self.mouse_action}


@dataclass(frozen=True)
class WaitAction(Action):
    type: ClassVar[str] = ActionType.WAIT.value

    duration_ms: Optional[int] = None  # None 表示使用默认时长

    def params(self) -> Dict[str, Any]:
        return _compact({"duration": self.duration_ms})


@dataclass(frozen=True)
class UnknownAction(Action):
    """推理器给出了不认识的动作类型"""
    type_name: str = ""
    raw_params: Dict[str, Any] = field(default_factory=dict)

    @property
    def type(self) -> str:  # type: ignore[override]
        return self.type_name

    def params(self) -> Dict[str, Any]:
        return dict(self.raw_params)


@dataclass(frozen=True)
class Done:
    """推理器声明任务已完成"""
    reason: str = ""


@dataclass(frozen=True)
class ParseError:
    """
    推理器回复无法解析

    Attributes:
        raw: 原始回复文本
        reason: 解析失败原因
    """
    raw: str
    reason: str


Decision = Union[Action, Done, ParseError]


def _compact(values: Dict[str, Any]) -> Dict[str, Any]:
    return {k: v for k, v in values.items() if v is not None}


def _is_true(value: Any) -> bool:
    """只认 JSON true 或字符串 "true"，"false" / 1 等一律为 False"""
    if isinstance(value, bool):
        return value
    return isinstance(value, str) and value.strip().lower() == "true"


def extract_json_object(text: str) -> Optional[str]:
    """
    提取文本中第一个括号平衡的 JSON 对象

    兼容说明文字、markdown 代码块包裹；字符串字面量中的花括号和转义引号不参与计数。

    Args:
        text: 推理器原始回复

    Returns:
        JSON 对象子串，未找到或括号不平衡时返回 None
    """
    start = text.find("{")
    if start == -1:
        return None

    depth = 0
    in_string = False
    escaped = False
    for index in range(start, len(text)):
        ch = text[index]
        if in_string:
            if escaped:
                escaped = False
            elif ch == "\\":
                escaped = True
            elif ch == '"':
                in_string = False
            continue

        if ch == '"':
            in_string = True
        elif ch == "{":
            depth += 1
        elif ch == "}":
            depth -= 1
            if depth == 0:
                return text[start:index + 1]
    return None


def parse_decision(text: str) -> Decision:
    """
    将推理器的自由文本回复解析为 Decision

    Args:
        text: 推理器原始回复

    Returns:
        Decision: Action / Done / ParseError
    """
    if not isinstance(text, str) or not text.strip():
        return ParseError(raw=str(text or ""), reason="empty response")

    json_str = extract_json_object(text)
    if json_str is None:
        return ParseError(raw=text, reason="no JSON object found")

    try:
        data = json.loads(json_str)
    except json.JSONDecodeError as e:
        return ParseError(raw=text, reason=f"invalid JSON: {e}")

    return decision_from_dict(data, raw=text)


def decision_from_dict(data: Any, raw: str = "") -> Decision:
    """
    将已解析的 JSON 字典转换为 Decision

    Args:
        data: {"type": ..., "description": ..., "params": {...}, "isFinal": ...}
        raw: 原始文本（仅用于 ParseError）

    Returns:
        Decision: Action / Done / ParseError
    """
    if not isinstance(data, dict):
        return ParseError(raw=raw, reason="response is not a JSON object")

    action_type = data.get("type")
    if not isinstance(action_type, str) or not action_type.strip():
        return ParseError(raw=raw, reason="missing action type")

    action_type = action_type.strip().lower()
    if action_type == ActionType.DONE.value:
        return Done(reason=str(data.get("description") or ""))

    params = data.get("params") or {}
    if not isinstance(params, dict):
        return ParseError(raw=raw, reason="params is not an object")

    common = {
        "description": str(data.get("description") or "Executing action"),
        "is_final": _is_true(data.get("isFinal")),
    }

    try:
        if action_type == ActionType.BROWSER.value:
            return BrowserAction(
                url=params.get("url"),
                selector=params.get("selector"),
                text=params.get("text"),
                click_type=params.get("clickType") or "single",
                **common,
            )
        if action_type == ActionType.APP.value:
            return AppAction(
                name=str(params.get("name") or ""),
                app_action=params.get("action") or params.get("appAction"),
                **common,
            )
        if action_type == ActionType.SYSTEM.value:
            return SystemAction(command=str(params.get("command") or ""), **common)
        if action_type == ActionType.KEYBOARD.value:
            return KeyboardAction(
                text=params.get("text"),
                hotkey=params.get("hotkey"),
                **common,
            )
        if action_type == ActionType.MOUSE.value:
            return MouseAction(
                x=int(params.get("x", 0)),
                y=int(params.get("y", 0)),
                mouse_action=params.get("action") or params.get("mouseAction") or "MOVE",
                **common,
            )
        if action_type == ActionType.WAIT.value:
            duration = params.get("duration")
            return WaitAction(
                duration_ms=int(duration) if duration is not None else None,
                **common,
            )
    except (TypeError, ValueError) as e:
        return ParseError(raw=raw, reason=f"invalid params for {action_type}: {e}")

    return UnknownAction(type_name=action_type, raw_params=params, **common)

"""
安全闸门 - 危险动作需用户确认

SecurityGate：纯函数式分类器，无状态、确定性。
只有 system 动作会被检查：命令文本（不区分大小写）包含拒绝列表中的任一词即需要确认。

validate_task_description：任务启动前对描述做基本校验
（非空、长度上限、明显恶意意图）。
"""
import re
from dataclasses import dataclass
from typing import List, Optional, Tuple

from .actions import Action, SystemAction

# 危险操作关键词（子串匹配）
DANGEROUS_OPERATIONS: Tuple[str, ...] = (
    "shutdown", "restart", "hibernate", "sleep",
    "delete", "remove", "rm", "del",
    "format", "reg delete", "regedit",
    "netsh", "firewall",
)

# 任务描述中的恶意意图
_MALICIOUS_PATTERNS: List[re.Pattern] = [
    re.compile(r"\bexploit\b", re.IGNORECASE),
    re.compile(r"\bhack\b", re.IGNORECASE),
    re.compile(r"\bmalware\b", re.IGNORECASE),
    re.compile(r"\bransomware\b", re.IGNORECASE),
    re.compile(r"\bkeylog", re.IGNORECASE),
    re.compile(r"password\s*steal", re.IGNORECASE),
]


@dataclass(frozen=True)
class GateVerdict:
    """闸门判定结果"""
    required: bool
    reason: Optional[str] = None


class SecurityGate:
    """
    危险动作闸门

    使用方式：
        gate = SecurityGate()
        if gate.requires_confirmation(action):
            ...
    """

    def __init__(self, deny_list: Tuple[str, ...] = DANGEROUS_OPERATIONS) -> None:
        self._deny_list = tuple(term.lower() for term in deny_list)

    def check(self, action: Action) -> GateVerdict:
        """
        判定动作是否需要确认

        Args:
            action: 推理器给出的动作

        Returns:
            GateVerdict: required=True 时 reason 为命中的关键词
        """
        if not isinstance(action, SystemAction):
            return GateVerdict(required=False)

        command = (action.command or "").lower()
        for term in self._deny_list:
            if term in command:
                return GateVerdict(required=True, reason=f"command contains '{term}'")
        return GateVerdict(required=False)

    def requires_confirmation(self, action: Action) -> bool:
        return self.check(action).required


def validate_task_description(description: str, max_length: int = 1000) -> List[str]:
    """
    校验任务描述

    Args:
        description: 用户任务描述
        max_length: 最大长度

    Returns:
        List[str]: 问题列表，空列表表示通过
    """
    errors: List[str] = []
    if not description or not description.strip():
        errors.append("Task description is required")
        return errors

    if len(description) > max_length:
        errors.append(f"Task description is too long (max {max_length} characters)")

    for pattern in _MALICIOUS_PATTERNS:
        if pattern.search(description):
            errors.append("Task contains potentially malicious intent")
            break

    return errors

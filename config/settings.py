"""
Configuration settings for react_engine
"""
import os
import tempfile
from enum import Enum
from typing import Optional

from pydantic_settings import BaseSettings


class Environment(str, Enum):
    DEVELOPMENT = "development"
    STAGING = "staging"
    PRODUCTION = "production"


class DesktopAckMode(str, Enum):
    ACK = "ack"                # 等待桌面端 command:complete / command:failed 回执
    OPTIMISTIC = "optimistic"  # 发送后等待固定宽限期，直接视为成功


class Settings(BaseSettings):
    # Reasoner (OpenAI 兼容 /v1/chat/completions)
    reasoner_llm_url: Optional[str] = None
    reasoner_llm_model: str = "default"
    reasoner_llm_token: Optional[str] = None
    reasoner_timeout_seconds: float = 60.0
    reasoner_temperature: float = 0.1

    # ReAct 循环
    max_steps: int = 10
    step_delay_ms: int = 500
    confirmation_timeout_ms: int = 30000
    default_wait_ms: int = 1000
    treat_unparseable_as_done: bool = True
    max_description_length: int = 1000

    # Desktop command channel
    desktop_ack_mode: DesktopAckMode = DesktopAckMode.ACK
    app_ack_timeout_ms: int = 3000
    system_ack_timeout_ms: int = 1000
    keyboard_ack_timeout_ms: int = 500
    mouse_ack_timeout_ms: int = 100
    screen_width: int = 1920  # 鼠标坐标归一化
    screen_height: int = 1080

    # Browser automation (Playwright)
    browser_headless: bool = False
    browser_slow_mo_ms: int = 100
    browser_timeout_ms: int = 30000

    # Screenshots
    screenshot_dir: str = os.path.join(tempfile.gettempdir(), "react-screenshots")

    # Application Configuration
    app_env: Environment = Environment.DEVELOPMENT
    log_level: str = "INFO"
    log_file: Optional[str] = None  # 例如 "logs/react_engine_{time}.log"

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = False


# Global settings instance
settings = Settings()

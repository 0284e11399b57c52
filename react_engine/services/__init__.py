"""外部协作者实现：浏览器、截图、桌面命令通道"""
from react_engine.services.browser import BrowserManager, PlaywrightBrowser
from react_engine.services.desktop_channel import CommandAck, DesktopCommandChannel
from react_engine.services.screenshot import ScreenshotError, ScreenshotService

__all__ = [
    "BrowserManager",
    "PlaywrightBrowser",
    "CommandAck",
    "DesktopCommandChannel",
    "ScreenshotError",
    "ScreenshotService",
]

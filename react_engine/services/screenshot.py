"""
屏幕截图服务

为观察阶段提供截图引用（文件路径）。截图失败抛出 ScreenshotError，
由 Observer 记录日志后忽略，不影响任务。
"""
import asyncio
import os
import time
from typing import Optional, Tuple

from loguru import logger

from .platform import get_screenshot_command


class ScreenshotError(RuntimeError):
    """截图失败"""


class ScreenshotService:
    """
    全屏截图服务

    Attributes:
        directory: 截图保存目录（不存在时自动创建）
        timeout: 截图命令超时（秒）
    """

    def __init__(self, directory: str, timeout: float = 10.0) -> None:
        self.directory = directory
        self.timeout = timeout
        os.makedirs(self.directory, exist_ok=True)
        logger.info(f"📸 [ScreenshotService] 截图目录: {self.directory}")

    async def capture(self, filename: Optional[str] = None) -> str:
        """
        执行屏幕截图

        Args:
            filename: 文件名（默认 screenshot_<毫秒时间戳>.png）

        Returns:
            str: 截图文件路径

        Raises:
            ScreenshotError: 截图命令失败、超时或没有生成有效图片
        """
        filepath = os.path.join(
            self.directory,
            filename or f"screenshot_{int(time.time() * 1000)}.png",
        )
        command = get_screenshot_command().format(path=filepath)

        proc = await asyncio.create_subprocess_shell(
            command,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )
        try:
            _, stderr = await asyncio.wait_for(proc.communicate(), timeout=self.timeout)
        except asyncio.TimeoutError:
            proc.kill()
            raise ScreenshotError(f"截图超时（{self.timeout:.0f}秒）")

        if proc.returncode != 0 or not os.path.exists(filepath):
            err = stderr.decode(errors="replace").strip() if stderr else "截图命令失败"
            raise ScreenshotError(f"截图失败: {err}")

        width, height = _get_image_size(filepath)
        if not width or not height:
            raise ScreenshotError(f"截图文件无效: {filepath}")

        logger.debug(f"📸 [ScreenshotService] 已保存 {filepath} ({width}x{height})")
        return filepath

    def cleanup(self, max_age_seconds: float = 3600) -> int:
        """
        删除过期截图

        Args:
            max_age_seconds: 最大保留时间（秒），默认 1 小时

        Returns:
            int: 删除的文件数
        """
        now = time.time()
        removed = 0
        for name in os.listdir(self.directory):
            path = os.path.join(self.directory, name)
            if not os.path.isfile(path):
                continue
            if now - os.path.getmtime(path) > max_age_seconds:
                os.remove(path)
                removed += 1
        if removed:
            logger.info(f"🗑️ [ScreenshotService] 已清理 {removed} 张过期截图")
        return removed


def _get_image_size(filepath: str) -> Tuple[Optional[int], Optional[int]]:
    """
    获取图片的像素尺寸

    Returns:
        (width, height) 或 (None, None)
    """
    from PIL import Image, UnidentifiedImageError

    try:
        with Image.open(filepath) as img:
            return img.size
    except (OSError, UnidentifiedImageError):
        return None, None

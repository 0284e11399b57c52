"""
平台检测与截图服务测试
"""
import os
import time
from unittest.mock import patch

import pytest


class TestPlatform:
    """测试平台检测"""

    @patch("platform.system", return_value="Darwin")
    def test_macos_detection(self, mock_sys):
        from react_engine.services.platform import PlatformType, detect_platform
        assert detect_platform() == PlatformType.MACOS

    @patch("platform.system", return_value="Linux")
    def test_linux_detection(self, mock_sys):
        from react_engine.services.platform import PlatformType, detect_platform
        assert detect_platform() == PlatformType.LINUX

    @patch("platform.system", return_value="Windows")
    def test_windows_detection(self, mock_sys):
        from react_engine.services.platform import PlatformType, detect_platform
        assert detect_platform() == PlatformType.WINDOWS

    @patch("platform.system", return_value="Plan9")
    def test_unknown_detection(self, mock_sys):
        from react_engine.services.platform import PlatformType, detect_platform
        assert detect_platform() == PlatformType.UNKNOWN

    @pytest.mark.parametrize("system", ["Darwin", "Linux", "Windows"])
    def test_screenshot_command_has_path_placeholder(self, system):
        from react_engine.services.platform import get_screenshot_command
        with patch("platform.system", return_value=system):
            command = get_screenshot_command()
        assert "{path}" in command
        assert command.format(path="/tmp/x.png").count("/tmp/x.png") == 1


class TestScreenshotService:
    """测试截图服务"""

    def test_creates_directory(self, tmp_path):
        from react_engine.services.screenshot import ScreenshotService
        target = tmp_path / "shots" / "nested"
        ScreenshotService(str(target))
        assert target.is_dir()

    @pytest.mark.asyncio
    async def test_capture_writes_valid_image(self, tmp_path):
        from PIL import Image
        from react_engine.services.screenshot import ScreenshotService

        source = tmp_path / "source.png"
        Image.new("RGB", (64, 32), color="white").save(source)
        service = ScreenshotService(str(tmp_path / "shots"))

        with patch(
            "react_engine.services.screenshot.get_screenshot_command",
            return_value=f"cp {source} {{path}}",
        ):
            path = await service.capture("step_1.png")

        assert path == os.path.join(str(tmp_path / "shots"), "step_1.png")
        assert os.path.exists(path)

    @pytest.mark.asyncio
    async def test_capture_command_failure(self, tmp_path):
        from react_engine.services.screenshot import ScreenshotError, ScreenshotService

        service = ScreenshotService(str(tmp_path))
        with patch("react_engine.services.screenshot.get_screenshot_command", return_value="exit 3"):
            with pytest.raises(ScreenshotError):
                await service.capture()

    @pytest.mark.asyncio
    async def test_capture_rejects_invalid_image(self, tmp_path):
        from react_engine.services.screenshot import ScreenshotError, ScreenshotService

        service = ScreenshotService(str(tmp_path))
        with patch(
            "react_engine.services.screenshot.get_screenshot_command",
            return_value="echo not-an-image > {path}",
        ):
            with pytest.raises(ScreenshotError, match="截图文件无效"):
                await service.capture("broken.png")

    def test_cleanup_removes_only_old_files(self, tmp_path):
        from react_engine.services.screenshot import ScreenshotService

        service = ScreenshotService(str(tmp_path))
        old = tmp_path / "old.png"
        new = tmp_path / "new.png"
        old.write_bytes(b"x")
        new.write_bytes(b"x")
        two_hours_ago = time.time() - 7200
        os.utime(old, (two_hours_ago, two_hours_ago))

        assert service.cleanup() == 1
        assert not old.exists()
        assert new.exists()


class TestLogging:
    """测试日志配置"""

    def test_setup_logging_with_file_sink(self, tmp_path, test_settings):
        import sys
        from loguru import logger
        from react_engine.log import setup_logging

        log_file = tmp_path / "engine.log"
        test_settings.log_file = str(log_file)
        try:
            setup_logging(test_settings, level="info")
            logger.info("🧪 [Test] 写入文件")
            logger.debug("🧪 [Test] 被过滤")
        finally:
            logger.remove()
            logger.add(sys.stderr)

        content = log_file.read_text(encoding="utf-8")
        assert "写入文件" in content
        assert "被过滤" not in content

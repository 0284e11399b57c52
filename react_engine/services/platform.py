"""
平台检测 - mac / linux / windows 自动适配

检测当前操作系统，提供平台相关的截图命令。
"""
import platform
from enum import Enum


class PlatformType(str, Enum):
    """支持的平台类型"""
    MACOS = "macos"
    LINUX = "linux"
    WINDOWS = "windows"
    UNKNOWN = "unknown"


def detect_platform() -> PlatformType:
    """
    检测当前操作系统平台

    Returns:
        PlatformType: 当前平台类型
    """
    system = platform.system().lower()
    if system == "darwin":
        return PlatformType.MACOS
    elif system == "linux":
        return PlatformType.LINUX
    elif system == "windows":
        return PlatformType.WINDOWS
    return PlatformType.UNKNOWN


# Windows: PowerShell + System.Drawing 全屏截图
_WINDOWS_SCREENSHOT_SCRIPT = (
    "Add-Type -AssemblyName System.Windows.Forms; "
    "Add-Type -AssemblyName System.Drawing; "
    "$screen = [System.Windows.Forms.Screen]::PrimaryScreen; "
    "$bitmap = New-Object System.Drawing.Bitmap($screen.Bounds.Width, $screen.Bounds.Height); "
    "$graphics = [System.Drawing.Graphics]::FromImage($bitmap); "
    "$graphics.CopyFromScreen($screen.Bounds.Location, [System.Drawing.Point]::Empty, $screen.Bounds.Size); "
    "$bitmap.Save('{path}', [System.Drawing.Imaging.ImageFormat]::Png); "
    "$graphics.Dispose(); $bitmap.Dispose()"
)


def get_screenshot_command() -> str:
    """
    获取平台对应的截图命令

    Returns:
        str: 截图命令模板，包含 {path} 占位符
    """
    p = detect_platform()
    if p == PlatformType.MACOS:
        return "screencapture -x {path}"
    if p == PlatformType.WINDOWS:
        return f'powershell -NoProfile -Command "{_WINDOWS_SCREENSHOT_SCRIPT}"'
    # Linux: 使用 scrot
    return "scrot {path}"

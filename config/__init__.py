from .settings import DesktopAckMode, Environment, Settings, settings

__all__ = ["DesktopAckMode", "Environment", "Settings", "settings"]

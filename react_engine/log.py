"""
日志配置
"""
import sys
from typing import Optional

from loguru import logger

from config.settings import Settings, settings as default_settings

CONSOLE_FORMAT = "<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | <level>{level: <8}</level> | <level>{message}</level>"
FILE_FORMAT = "{time:YYYY-MM-DD HH:mm:ss} | {level} | {name}:{function}:{line} - {message}"


def setup_logging(settings: Optional[Settings] = None, level: Optional[str] = None) -> None:
    """
    替换 loguru 默认输出

    Args:
        settings: 配置（log_level / log_file）
        level: 覆盖 settings.log_level
    """
    settings = settings or default_settings
    level = (level or settings.log_level).upper()

    logger.remove()
    logger.add(sys.stderr, format=CONSOLE_FORMAT, level=level)

    if settings.log_file:
        logger.add(
            settings.log_file,
            rotation="1 day",
            retention="7 days",
            level=level,
            format=FILE_FORMAT,
        )

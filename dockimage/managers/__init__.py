"""Docker镜像管理器模块

该模块包含各种管理器类，用于同步Docker镜像和加载项目配置。
"""

from .base_manager import BaseManager
from .config_manager import ConfigError, ConfigManager
from .image_manager import ImageManager

__all__ = [
    "BaseManager",
    "ImageManager",
    "ConfigManager",
    "ConfigError",
]

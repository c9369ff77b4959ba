"""CLI工具模块，包含CLI命令行接口的辅助函数和类"""

import os
import sys
from functools import wraps
from pathlib import Path
from threading import Lock
from typing import Any, Callable, Optional, TypeVar, cast

import typer
from loguru import logger

from .constants import DEFAULT_FILES
from .managers.config_manager import ConfigError, ConfigManager
from .managers.image.base import ImageManagerError, ResolvedImage
from .managers.image_manager import ImageManager

F = TypeVar('F', bound=Callable[..., Any])


# 项目上下文管理
class ProjectContext:
    """项目上下文管理类"""

    _instance: Optional['ProjectContext'] = None
    _lock: Lock = Lock()
    _project_dir: Optional[str] = None
    _config_file: Optional[str] = None

    def __init__(self) -> None:
        """初始化项目上下文"""
        if ProjectContext._instance is not None:
            raise RuntimeError("ProjectContext是单例类，请使用get_instance()获取实例")
        ProjectContext._instance = self

    @classmethod
    def get_instance(cls) -> 'ProjectContext':
        """获取ProjectContext单例实例"""
        with cls._lock:
            if cls._instance is None:
                cls._instance = ProjectContext()
            return cls._instance

    @classmethod
    def reset(cls) -> None:
        """重置单例实例"""
        with cls._lock:
            cls._instance = None

    @property
    def project_dir(self) -> str:
        """获取项目目录"""
        if self._project_dir is None:
            self._project_dir = self._find_project_dir()
        return self._project_dir

    @project_dir.setter
    def project_dir(self, path: Optional[str]) -> None:
        """设置项目目录"""
        self._project_dir = str(Path(path).resolve()) if path else None

    @property
    def config_file(self) -> Optional[str]:
        """获取配置文件路径"""
        return self._config_file

    @config_file.setter
    def config_file(self, path: Optional[str]) -> None:
        """设置配置文件路径，项目目录随之变为配置文件所在目录"""
        if path:
            resolved = Path(path).resolve()
            self._config_file = str(resolved)
            self._project_dir = str(resolved.parent)
        else:
            self._config_file = None

    def _find_project_dir(self) -> str:
        """
        从当前目录开始向上查找包含配置文件的目录

        Returns:
            str: 找到的项目目录路径，如果未找到则返回当前目录
        """
        current = Path.cwd()
        while current != current.parent:
            if any((current / name).exists() for name in DEFAULT_FILES["config_files"]):
                return str(current)
            current = current.parent
        return str(Path.cwd())


def get_config_manager() -> ConfigManager:
    """
    获取已加载配置的配置管理器

    Returns:
        ConfigManager: 配置管理器实例

    Raises:
        ConfigError: 配置加载失败时抛出
    """
    ctx = ProjectContext.get_instance()
    config_manager = ConfigManager(ctx.project_dir, ctx.config_file)
    config_manager.load_config()
    return config_manager


def get_image_manager(config_manager: ConfigManager) -> ImageManager:
    """
    根据配置创建镜像管理器

    Args:
        config_manager: 已加载配置的配置管理器

    Returns:
        ImageManager: 镜像管理器实例
    """
    docker_config = config_manager.get_config()["docker"]
    return ImageManager(
        credentials=config_manager.get_credentials(),
        host=docker_config["host"] or None,
        timeout=docker_config["timeout"],
    )


def check_config_exists(func: F) -> F:
    """
    检查配置文件是否存在的装饰器

    Args:
        func: 被装饰的函数

    Returns:
        Callable: 装饰后的函数
    """

    @wraps(func)
    def wrapper(*args, **kwargs):
        ctx = ProjectContext.get_instance()

        if ctx.config_file:
            exists = os.path.exists(ctx.config_file)
            config_file = ctx.config_file
        else:
            project_dir = ctx.project_dir  # 这里会自动查找项目目录
            config_file = os.path.join(project_dir, DEFAULT_FILES["config_files"][0])
            exists = any(
                os.path.exists(os.path.join(project_dir, name))
                for name in DEFAULT_FILES["config_files"]
            )

        if not exists:
            logger.error(f"错误：项目配置文件不存在: {config_file}")
            logger.info("请先使用 'dimg init' 命令初始化项目，或在包含dockimage.yml的目录中运行命令")
            sys.exit(1)

        return func(*args, **kwargs)

    return cast(F, wrapper)


def report_error(error: Exception) -> None:
    """
    输出错误信息及捕获的守护进程日志

    Args:
        error: 捕获的异常
    """
    if isinstance(error, ImageManagerError):
        logger.error(f"错误：{error}")
        if error.output and error.output not in str(error):
            logger.error(f"守护进程输出:\n{error.output}")
    elif isinstance(error, ConfigError):
        logger.error(f"配置错误：{error}")
    else:
        logger.error(f"错误：{error}")


def report_resolved(resolved: ResolvedImage) -> None:
    """
    输出镜像同步结果

    Args:
        resolved: 解析后的镜像
    """
    logger.success(f"镜像 {resolved.name} 已同步")
    logger.info(f"  资源ID: {resolved.resource_id}")
    logger.info(f"  latest: {resolved.latest}")
    for label, output in (
        ("build_output", resolved.build_output),
        ("pull_output", resolved.pull_output),
        ("push_output", resolved.push_output),
    ):
        if output:
            logger.debug(f"  {label}:\n{output}")


def confirm_action(message: str = "确认执行此操作?", default: bool = True) -> bool:
    """
    请求用户确认操作

    Args:
        message: 提示消息
        default: 默认选项

    Returns:
        bool: 用户是否确认
    """
    try:
        return typer.confirm(message, default=default)
    except (KeyboardInterrupt, EOFError, typer.Abort):
        logger.warning("\n操作已取消")
        return False

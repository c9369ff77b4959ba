"""CLI命令行接口模块"""

import os
import sys
from pathlib import Path
from typing import List, Optional

import typer
import yaml
from docker.errors import DockerException
from loguru import logger
from rich.console import Console
from rich.table import Table

from dockimage import configure_logging
from dockimage.cli_utils import (
    ProjectContext,
    check_config_exists,
    confirm_action,
    get_config_manager,
    get_image_manager,
    report_error,
    report_resolved,
)
from dockimage.constants import COLORS, DEFAULT_FILES
from dockimage.interactive import configure_project
from dockimage.managers.config_manager import ConfigError
from dockimage.managers.image.base import ImageManagerError
from dockimage.managers.image.index import fetch_local_images
from dockimage.managers.image.utils import parse_image_name

console = Console()

# 创建CLI应用
app = typer.Typer(
    help="Docker镜像同步工具",
    no_args_is_help=True,
    add_completion=False,
    rich_markup_mode="rich"
)


@app.callback()
def main_callback(
    config: Optional[Path] = typer.Option(None, "-c", "--config", help="配置文件路径"),
    verbose: bool = typer.Option(False, "-v", "--verbose", help="输出调试日志")
):
    """全局选项"""
    ProjectContext.reset()
    ctx = ProjectContext.get_instance()
    if config is not None:
        ctx.config_file = str(config)
    if verbose:
        configure_logging("DEBUG")


@app.command("init")
def init_project(
    project_dir: str = typer.Argument(None, help="项目目录路径"),
    force: bool = typer.Option(False, "-f", "--force", help="覆盖已存在的配置文件")
):
    """交互式生成项目配置文件"""
    try:
        project_dir = os.path.abspath(project_dir or os.getcwd())
        config_file = os.path.join(project_dir, DEFAULT_FILES["config_files"][0])
        if os.path.exists(config_file) and not force:
            logger.error(f"配置文件已存在: {config_file}")
            logger.info("使用 --force 参数覆盖")
            sys.exit(1)

        config = configure_project(os.path.basename(project_dir))
        with open(config_file, "w", encoding="utf-8") as f:
            yaml.safe_dump(config, f, allow_unicode=True, sort_keys=False)
        logger.success(f"配置文件已生成: {config_file}")
    except OSError as e:
        logger.error(f"生成配置文件失败: {e}")
        sys.exit(1)


@app.command("parse")
def parse_name(name: str = typer.Argument(..., help="镜像名称")):
    """解析镜像名称"""
    ref = parse_image_name(name)
    table = Table(show_header=False)
    table.add_column("字段", style=COLORS["info"])
    table.add_column("值")
    table.add_row("registry", ref.registry)
    table.add_row("repository", ref.repository)
    table.add_row("tag", ref.tag)
    table.add_row("fully_qualified_name", ref.fully_qualified_name)
    console.print(table)


@app.command("apply")
@check_config_exists
def apply_images(names: Optional[List[str]] = typer.Argument(None, help="镜像名称，默认处理全部镜像")):
    """构建或拉取镜像，按需推送"""
    try:
        config_manager = get_config_manager()
        images = config_manager.get_images(names)
        if not images:
            logger.warning("配置中没有镜像")
            return

        image_manager = get_image_manager(config_manager)
        for resource in images:
            resolved = image_manager.create(resource)
            report_resolved(resolved)
    except (ImageManagerError, ConfigError, DockerException) as e:
        report_error(e)
        sys.exit(1)


@app.command("read")
@check_config_exists
def read_image(name: str = typer.Argument(..., help="镜像名称")):
    """读取本地镜像状态"""
    try:
        config_manager = get_config_manager()
        image_manager = get_image_manager(config_manager)
        resolved = image_manager.read(config_manager.get_image(name))
        if resolved is None:
            logger.warning(f"本地不存在镜像 {name}")
            sys.exit(1)
        report_resolved(resolved)
    except (ImageManagerError, ConfigError, DockerException) as e:
        report_error(e)
        sys.exit(1)


@app.command("update")
@check_config_exists
def update_image(name: str = typer.Argument(..., help="镜像名称")):
    """重新查找镜像，按需推送（不会构建）"""
    try:
        config_manager = get_config_manager()
        image_manager = get_image_manager(config_manager)
        resolved = image_manager.update(config_manager.get_image(name))
        report_resolved(resolved)
    except (ImageManagerError, ConfigError, DockerException) as e:
        report_error(e)
        sys.exit(1)


@app.command("destroy")
@check_config_exists
def destroy_image(
    name: str = typer.Argument(..., help="镜像名称"),
    yes: bool = typer.Option(False, "-y", "--yes", help="不需要确认")
):
    """删除本地镜像"""
    try:
        config_manager = get_config_manager()
        resource = config_manager.get_image(name)
        if not yes and not confirm_action(f"确定要删除镜像 {name} 吗?", default=False):
            logger.warning("操作已取消")
            return

        image_manager = get_image_manager(config_manager)
        removed = image_manager.delete(resource)
        if removed:
            logger.success(f"已删除镜像 {name}")
        else:
            logger.info(f"未删除镜像 {name}")
    except (ImageManagerError, ConfigError, DockerException) as e:
        report_error(e)
        sys.exit(1)


@app.command("ls")
@check_config_exists
def list_images():
    """列出本地镜像索引"""
    try:
        config_manager = get_config_manager()
        image_manager = get_image_manager(config_manager)
        index = fetch_local_images(image_manager.docker_client)
    except (ImageManagerError, ConfigError, DockerException) as e:
        report_error(e)
        sys.exit(1)

    table = Table()
    table.add_column("查找键", style=COLORS["info"])
    table.add_column("镜像ID", style=COLORS["success"])
    for key in sorted(index):
        table.add_row(key, index[key]["Id"])
    console.print(table)


def main():
    """主入口函数"""
    app()

if __name__ == "__main__":
    main()

"""交互式命令模块"""

from typing import Any, Dict, List

import questionary

from .constants import DEFAULT_BUILD_SPEC, DEFAULT_FILES, DEFAULT_PROJECT_CONFIG


def configure_project(project_name: str) -> Dict[str, Any]:
    """交互式生成项目配置

    只询问最常用的选项，其他配置（如构建参数、标签等）请直接编辑配置文件。

    Args:
        project_name: 项目名称，作为默认镜像名称

    Returns:
        生成的项目配置
    """
    print("\n--- 镜像配置 ---")
    print("注意：此命令只生成基本配置。构建参数、附加标签等请直接编辑配置文件。\n")

    image_name = questionary.text("镜像名称", default=f"{project_name}:latest").ask()

    image: Dict[str, Any] = {
        "name": image_name,
        "build": [],
        "force_build": False,
        "keep_locally": False,
        "push_remote": False,
    }

    if questionary.confirm("是否从本地Dockerfile构建?", default=True).ask():
        build = dict(DEFAULT_BUILD_SPEC)
        build["path"] = questionary.text("构建上下文目录", default=".").ask()
        build["dockerfile"] = questionary.text(
            "Dockerfile路径", default=DEFAULT_FILES["dockerfile"]
        ).ask()
        image["build"] = [build]
        image["force_build"] = questionary.confirm("是否每次都强制构建?", default=False).ask()

    image["push_remote"] = questionary.confirm("是否推送到远程仓库?", default=False).ask()
    image["keep_locally"] = questionary.confirm("删除资源时是否保留本地镜像?", default=False).ask()

    registry_auth: List[Dict[str, str]] = []
    if image["push_remote"] and questionary.confirm("是否配置仓库认证?", default=False).ask():
        registry_auth.append(
            {
                "address": questionary.text("仓库地址", default="registry.hub.docker.com").ask(),
                "username": questionary.text("仓库用户名").ask(),
                # 密码通过环境变量 DOCKER_PASSWORD_<用户名> 或 DOCKER_PASSWORD 提供
                "password": "",
            }
        )

    config = dict(DEFAULT_PROJECT_CONFIG)
    config["docker"] = dict(DEFAULT_PROJECT_CONFIG["docker"])
    config["registry_auth"] = registry_auth
    config["images"] = [image]
    return config

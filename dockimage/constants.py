"""常量配置模块"""

from typing import Any, Dict, List, TypedDict

# 文件相关
class DefaultFiles(TypedDict):
    dockerfile: str
    config_files: List[str]
    env_file: str

DEFAULT_FILES: DefaultFiles = {
    "dockerfile": "Dockerfile",
    "config_files": ["dockimage.yml", "dockimage.yaml", "dockimage.json"],
    "env_file": ".env",
}

# Docker守护进程配置
class DockerConfig(TypedDict):
    host: str
    timeout: int
    config_file: str

# 仓库认证配置
class RegistryAuthConfig(TypedDict):
    address: str
    username: str
    password: str

# 项目默认配置
class DefaultProjectConfig(TypedDict):
    docker: DockerConfig
    registry_auth: List[RegistryAuthConfig]
    images: List[Dict[str, Any]]

DEFAULT_PROJECT_CONFIG: DefaultProjectConfig = {
    "docker": {
        "host": "",  # 为空时使用 DOCKER_HOST 等环境变量
        "timeout": 60,
        "config_file": "",  # 为空时使用 ~/.docker/config.json
    },
    "registry_auth": [],
    "images": [],
}

DEFAULT_REGISTRY_AUTH: RegistryAuthConfig = {
    "address": "",
    "username": "",
    "password": "",  # 为空时读取 DOCKER_PASSWORD_<用户名> 或 DOCKER_PASSWORD
}

# 镜像资源默认值
DEFAULT_IMAGE_RESOURCE: Dict[str, Any] = {
    "name": "",
    "build": [],
    "force_build": False,
    "keep_locally": False,
    "push_remote": False,
}

# 构建配置默认值，path 为必填项
DEFAULT_BUILD_SPEC: Dict[str, Any] = {
    "path": "",
    "dockerfile": DEFAULT_FILES["dockerfile"],
    "tag": [],
    "force_remove": False,
    "remove": True,
    "no_cache": False,
    "target": "",
    "build_arg": {},
    "label": {},
}

# 日志级别环境变量
LOG_LEVEL_ENV: str = "DOCKIMAGE_LOG_LEVEL"
DEFAULT_LOG_LEVEL: str = "INFO"

# 错误消息
class ErrorMessages(TypedDict):
    config_not_found: str
    config_invalid: str
    config_validation: str
    image_name_empty: str
    image_not_configured: str
    build_path_missing: str

ERROR_MESSAGES: ErrorMessages = {
    "config_not_found": "项目配置文件不存在: {}",
    "config_invalid": "无法解析配置文件 {}: {}",
    "config_validation": "配置验证失败: {}",
    "image_name_empty": "镜像名称不能为空",
    "image_not_configured": "配置中不存在镜像: {}",
    "build_path_missing": "镜像 {} 的构建配置缺少 path",
}

# 颜色配置
class Colors(TypedDict):
    success: str
    warning: str
    error: str
    info: str

COLORS: Colors = {"success": "green", "warning": "yellow", "error": "red", "info": "blue"}

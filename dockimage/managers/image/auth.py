"""镜像仓库认证相关功能"""

import os
from typing import TYPE_CHECKING, Iterable, Mapping, Optional

from docker import auth as docker_auth
from docker.errors import DockerException
from loguru import logger

from .base import Credential, CredentialTable

if TYPE_CHECKING:
    from .utils import ImageReference

# 未指定仓库地址时使用的公共仓库地址
DEFAULT_REGISTRY_ADDRESS = "https://registry.hub.docker.com"

# Docker CLI 配置中公共仓库可能出现的名称
DOCKER_HUB_ALIASES = (
    docker_auth.INDEX_URL,
    docker_auth.INDEX_NAME,
    "index.docker.io",
    "registry-1.docker.io",
)


def normalize_registry_address(address: str) -> str:
    """
    规范化仓库地址，缺少协议时补全为https

    Args:
        address: 仓库地址

    Returns:
        str: 规范化后的地址，空地址保持为空
    """
    if not address:
        return ""
    if address.startswith("https://") or address.startswith("http://"):
        return address
    return "https://" + address


def resolve_auth(ref: "ImageReference", creds: CredentialTable) -> Credential:
    """
    为镜像选择认证信息，未找到时返回空认证（匿名访问）

    Args:
        ref: 解析后的镜像名称
        creds: 认证信息表

    Returns:
        Credential: 认证信息
    """
    if ref.registry:
        key = normalize_registry_address(ref.registry)
    else:
        key = DEFAULT_REGISTRY_ADDRESS

    credential = creds.get(key)
    if credential is None:
        logger.debug(f"未找到仓库 {key} 的认证信息，使用匿名访问")
        return Credential()
    logger.debug(f"使用仓库 {key} 的认证信息")
    return credential


def _password_from_env(username: str) -> Optional[str]:
    env_var_name = f"DOCKER_PASSWORD_{username.upper()}"
    return os.environ.get(env_var_name) or os.environ.get("DOCKER_PASSWORD")


def load_credentials(
    config_path: Optional[str] = None,
    registry_auth: Optional[Iterable[Mapping[str, str]]] = None,
) -> CredentialTable:
    """
    加载认证信息表

    先读取Docker CLI配置文件（config.json），再用项目配置中的
    registry_auth 条目覆盖。所有键都会被规范化，公共仓库的各种别名
    统一映射到 DEFAULT_REGISTRY_ADDRESS。

    Args:
        config_path: Docker CLI配置文件路径，为空时使用SDK默认查找路径
        registry_auth: 项目配置中的仓库认证条目

    Returns:
        CredentialTable: 认证信息表
    """
    table: CredentialTable = {}

    try:
        auth_config = docker_auth.load_config(config_path or None)
    except DockerException as e:
        logger.warning(f"读取Docker配置文件失败: {e}")
        auth_config = None

    if auth_config is not None:
        for registry, entry in auth_config.auths.items():
            credential = Credential(**{k: v for k, v in entry.items() if v})
            if registry in DOCKER_HUB_ALIASES:
                table[DEFAULT_REGISTRY_ADDRESS] = credential
            else:
                table[normalize_registry_address(registry)] = credential

    for item in registry_auth or []:
        address = item.get("address", "")
        username = item.get("username", "")
        password = item.get("password", "")
        if username and not password:
            password = _password_from_env(username) or ""
            if not password:
                logger.warning(
                    f"仓库 {address} 未提供密码，请设置环境变量 "
                    f"DOCKER_PASSWORD_{username.upper()} 或 DOCKER_PASSWORD"
                )

        if address in DOCKER_HUB_ALIASES or not address:
            key = DEFAULT_REGISTRY_ADDRESS
        else:
            key = normalize_registry_address(address)
        table[key] = Credential(username=username, password=password, serveraddress=key)

    logger.debug(f"已加载 {len(table)} 个仓库的认证信息")
    return table

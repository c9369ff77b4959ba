"""基础管理器类"""

from typing import Optional

import docker
from docker.api import APIClient
from loguru import logger


class BaseManager:
    """所有管理器类的基类，包含共享的属性和方法"""

    docker_client: APIClient

    def __init__(
        self,
        docker_client: Optional[APIClient] = None,
        host: Optional[str] = None,
        timeout: Optional[int] = None,
    ) -> None:
        """
        初始化基础管理器

        Args:
            docker_client: 已创建的Docker底层API客户端，为空时自动创建
            host: Docker守护进程地址，为空时使用环境变量（DOCKER_HOST等）
            timeout: 请求超时时间（秒）
        """
        if docker_client is not None:
            self.docker_client = docker_client
            return

        # 初始化Docker客户端
        try:
            if host:
                self.docker_client = docker.APIClient(
                    base_url=host, version="auto", timeout=timeout or 60
                )
            else:
                self.docker_client = docker.from_env(timeout=timeout or 60).api
            logger.debug("Docker客户端初始化成功")
        except Exception as e:
            logger.error(f"Docker客户端初始化失败: {e}")
            raise

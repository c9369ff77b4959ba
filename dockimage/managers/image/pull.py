"""镜像拉取相关功能"""

from typing import Optional

from docker.errors import DockerException
from loguru import logger

from .auth import resolve_auth
from .base import CredentialTable, ImagePullError, StreamError
from .stream import decode_messages
from .utils import parse_image_name


class ImagePuller:
    """镜像拉取器类"""

    def __init__(self, docker_client, credentials: Optional[CredentialTable] = None):
        """
        初始化镜像拉取器

        Args:
            docker_client: Docker底层API客户端
            credentials: 仓库认证信息表
        """
        self.docker_client = docker_client
        self.credentials = credentials or {}

    def pull(self, image_name: str) -> str:
        """
        从远程仓库拉取镜像

        Args:
            image_name: 镜像名称

        Returns:
            str: 拉取日志

        Raises:
            ImagePullError: 拉取失败时抛出，不会自动重试
        """
        ref = parse_image_name(image_name)
        logger.debug(f"拉取镜像: {image_name}，仓库: {ref.registry or '默认仓库'}")
        auth_config = resolve_auth(ref, self.credentials)

        try:
            response = self.docker_client.pull(
                ref.fully_qualified_name,
                stream=True,
                decode=False,
                auth_config=dict(auth_config),
            )
            output = decode_messages(response)
        except StreamError as e:
            raise ImagePullError(f"解码拉取镜像消息失败: {e}", e.output) from e
        except (DockerException, OSError) as e:
            raise ImagePullError(f"拉取镜像 {ref.fully_qualified_name} 失败: {e}") from e

        logger.info(f"镜像 {ref.fully_qualified_name} 拉取完成")
        return output

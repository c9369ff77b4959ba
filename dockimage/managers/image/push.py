"""镜像推送相关功能"""

from typing import Optional

from docker.errors import DockerException
from loguru import logger

from .auth import resolve_auth
from .base import CredentialTable, ImagePushError, StreamError
from .stream import decode_messages
from .utils import parse_image_name


class ImagePusher:
    """镜像推送器类"""

    def __init__(self, docker_client, credentials: Optional[CredentialTable] = None):
        """
        初始化镜像推送器

        Args:
            docker_client: Docker底层API客户端
            credentials: 仓库认证信息表
        """
        self.docker_client = docker_client
        self.credentials = credentials or {}

    def push(self, image_name: str) -> str:
        """
        推送镜像到远程仓库

        Args:
            image_name: 镜像名称

        Returns:
            str: 推送日志

        Raises:
            ImagePushError: 推送失败时抛出，不会自动重试
        """
        ref = parse_image_name(image_name)
        logger.info(f"开始推送镜像 {ref.fully_qualified_name}...")
        auth_config = resolve_auth(ref, self.credentials)

        try:
            response = self.docker_client.push(
                ref.name,
                tag=ref.tag or None,
                stream=True,
                decode=False,
                auth_config=dict(auth_config),
            )
            output = decode_messages(response)
        except StreamError as e:
            error_msg = str(e)
            if "denied" in error_msg.lower():
                logger.warning("访问被拒绝，请检查仓库认证信息和推送权限")
            elif "not found" in error_msg.lower():
                logger.warning("镜像或仓库未找到，请检查名称是否正确")
            raise ImagePushError(f"解码推送镜像消息失败: {e}", e.output) from e
        except (DockerException, OSError) as e:
            raise ImagePushError(
                f"推送镜像 [{image_name}][{ref.fully_qualified_name}] 失败: {e}"
            ) from e

        logger.success(f"镜像 {ref.fully_qualified_name} 推送成功")
        return output

"""镜像标签管理相关功能"""

from docker.errors import DockerException
from loguru import logger

from .base import ImageBuildError
from .utils import parse_image_name


class ImageTagger:
    """镜像标签管理器类"""

    def __init__(self, docker_client):
        """
        初始化镜像标签管理器

        Args:
            docker_client: Docker底层API客户端
        """
        self.docker_client = docker_client

    def tag(self, source_tag: str, new_tag: str) -> None:
        """
        为镜像添加新标签

        Args:
            source_tag: 源镜像名称或ID
            new_tag: 新标签，格式为 "仓库名[:标签]"

        Raises:
            ImageBuildError: 添加标签失败时抛出
        """
        ref = parse_image_name(new_tag)
        try:
            ok = self.docker_client.tag(source_tag, ref.name, tag=ref.tag or None)
        except (DockerException, OSError) as e:
            raise ImageBuildError(f"为镜像 {source_tag} 添加标签 {new_tag} 失败: {e}") from e
        if ok is False:
            raise ImageBuildError(f"为镜像 {source_tag} 添加标签 {new_tag} 失败")
        logger.success(f"已为镜像 {source_tag} 添加标签 {new_tag}")

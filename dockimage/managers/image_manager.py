"""镜像管理器类 - 门面模式实现

ImageManager 是镜像同步的状态机：根据声明的镜像资源决定构建、拉取或复用
本地镜像，按需推送到远程仓库，最后重新解析镜像ID。
"""

from typing import Any, Dict, List, Optional, Tuple

from docker.api import APIClient
from docker.errors import DockerException
from loguru import logger

from .base_manager import BaseManager
from .image.base import (
    CredentialTable,
    ImageBuildError,
    ImageManagerError,
    ImageNotFoundError,
    ImagePullError,
    ImagePushError,
    ImageRecord,
    ImageRemoveError,
    ImageResolveError,
    ImageResource,
    ResolvedImage,
)
from .image.build import ImageBuilder
from .image.index import fetch_local_images, search_local_images
from .image.pull import ImagePuller
from .image.push import ImagePusher


class ImageManager(BaseManager):
    """镜像管理器类，用于同步本地与远程镜像状态"""

    def __init__(
        self,
        credentials: Optional[CredentialTable] = None,
        docker_client: Optional[APIClient] = None,
        host: Optional[str] = None,
        timeout: Optional[int] = None,
    ) -> None:
        """
        初始化镜像管理器

        Args:
            credentials: 仓库认证信息表
            docker_client: Docker底层API客户端，为空时自动创建
            host: Docker守护进程地址
            timeout: 请求超时时间（秒）
        """
        super().__init__(docker_client, host=host, timeout=timeout)
        self.credentials = credentials or {}

        # 初始化子组件
        self.builder = ImageBuilder(self.docker_client)
        self.puller = ImagePuller(self.docker_client, self.credentials)
        self.pusher = ImagePusher(self.docker_client, self.credentials)

    def find_image(self, image_name: str) -> Tuple[ImageRecord, Optional[str]]:
        """
        查找本地镜像，未找到时拉取后再查找一次

        Args:
            image_name: 镜像名称

        Returns:
            Tuple[ImageRecord, Optional[str]]: (镜像摘要, 拉取日志)，未拉取时日志为None

        Raises:
            ImageManagerError: 名称为空、获取列表失败或拉取失败时抛出
            ImageNotFoundError: 拉取后仍未找到镜像时抛出
        """
        logger.debug(f"查找镜像: [{image_name}]")
        if not image_name:
            raise ImageManagerError("不允许使用空的镜像名称")

        image = search_local_images(fetch_local_images(self.docker_client), image_name)
        if image is not None:
            return image, None

        try:
            pull_output = self.puller.pull(image_name)
        except ImagePullError as e:
            raise ImagePullError(f"无法拉取镜像 {image_name}: {e}", e.output) from e

        image = search_local_images(fetch_local_images(self.docker_client), image_name)
        if image is not None:
            return image, pull_output

        raise ImageNotFoundError(f"无法查找或拉取镜像 {image_name}", pull_output)

    def create(self, resource: ImageResource) -> ResolvedImage:
        """
        创建镜像资源：构建或拉取镜像，按需推送

        Args:
            resource: 镜像资源声明

        Returns:
            ResolvedImage: 解析后的镜像

        Raises:
            ImageBuildError: 构建失败时抛出
            ImageResolveError: 构建或拉取后仍无法找到镜像时抛出
            ImagePushError: 推送失败时抛出，本地镜像保留
        """
        image_name = resource.get("name", "")
        build_specs = resource.get("build") or []
        build_output: Optional[str] = None
        pull_output: Optional[str] = None

        if build_specs:
            do_build = bool(resource.get("force_build", False))
            if not do_build:
                try:
                    _, pull_output = self.find_image(image_name)
                except ImageManagerError as e:
                    do_build = True
                    logger.debug(f"拉取镜像 [{image_name}] 失败: {e}")
            if do_build:
                for spec in build_specs:
                    try:
                        build_output = self.builder.build(spec, image_name)
                    except ImageBuildError as e:
                        raise ImageBuildError(f"{e}\n\n{e.output}", e.output) from e

        try:
            image, find_pull_output = self.find_image(image_name)
        except ImageManagerError as e:
            raise ImageResolveError(f"无法读取Docker镜像: {e}", e.output) from e
        if find_pull_output is not None:
            pull_output = find_pull_output

        resolved = ResolvedImage(
            image_id=image["Id"],
            name=image_name,
            build_output=build_output,
            pull_output=pull_output,
        )
        logger.info(f"镜像 {image_name} 已解析为 {resolved.image_id}")

        if resource.get("push_remote", False):
            resolved.push_output = self._push(image_name)

        return self.read(resource, resolved) or resolved

    def read(
        self, resource: ImageResource, previous: Optional[ResolvedImage] = None
    ) -> Optional[ResolvedImage]:
        """
        读取镜像资源的当前状态，不会拉取或构建

        Args:
            resource: 镜像资源声明
            previous: 上一次同步的结果，其中的输出日志会保留

        Returns:
            Optional[ResolvedImage]: 本地未找到镜像时返回None
        """
        image_name = resource.get("name", "")
        index = fetch_local_images(self.docker_client)
        for key in index:
            logger.debug(f"本地镜像数据: {key}")

        image = search_local_images(index, image_name)
        if image is None:
            return None

        resolved = ResolvedImage(image_id=image["Id"], name=image_name)
        if previous is not None:
            resolved.build_output = previous.build_output
            resolved.pull_output = previous.pull_output
            resolved.push_output = previous.push_output
        return resolved

    def update(
        self, resource: ImageResource, previous: Optional[ResolvedImage] = None
    ) -> ResolvedImage:
        """
        更新镜像资源：重新查找（必要时拉取）镜像并按需推送，不会构建

        Args:
            resource: 镜像资源声明
            previous: 上一次同步的结果

        Returns:
            ResolvedImage: 解析后的镜像

        Raises:
            ImageResolveError: 无法找到镜像时抛出
            ImagePushError: 推送失败时抛出
        """
        image_name = resource.get("name", "")
        try:
            image, pull_output = self.find_image(image_name)
        except ImageManagerError as e:
            raise ImageResolveError(f"无法读取Docker镜像: {e}", e.output) from e

        resolved = ResolvedImage(image_id=image["Id"], name=image_name)
        if previous is not None:
            resolved.build_output = previous.build_output
            resolved.pull_output = previous.pull_output
            resolved.push_output = previous.push_output
        if pull_output is not None:
            resolved.pull_output = pull_output

        if resource.get("push_remote", False):
            resolved.push_output = self._push(image_name)

        return self.read(resource, resolved) or resolved

    def delete(self, resource: ImageResource) -> List[Dict[str, Any]]:
        """
        删除本地镜像

        Args:
            resource: 镜像资源声明

        Returns:
            List[Dict[str, Any]]: 守护进程返回的已删除条目，未删除时为空列表

        Raises:
            ImageManagerError: 名称为空时抛出
            ImageRemoveError: 删除失败时抛出
        """
        if resource.get("keep_locally", False):
            logger.info(f"保留本地镜像 {resource.get('name', '')}")
            return []

        index = fetch_local_images(self.docker_client)

        image_name = resource.get("name", "")
        if not image_name:
            raise ImageManagerError("不允许使用空的镜像名称")

        image = search_local_images(index, image_name)
        if image is None:
            return []

        try:
            removed = self.docker_client.remove_image(image["Id"])
        except (DockerException, OSError) as e:
            raise ImageRemoveError(f"无法删除Docker镜像 {image_name}: {e}") from e

        removed = removed or []
        logger.info(f"已删除镜像条目: {removed}")
        return removed

    def _push(self, image_name: str) -> str:
        try:
            return self.pusher.push(image_name)
        except ImagePushError as e:
            raise ImagePushError(f"无法推送镜像 [{image_name}]: {e}", e.output) from e

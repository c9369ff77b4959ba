"""本地镜像索引相关功能"""

from typing import Optional

from docker.errors import DockerException
from loguru import logger

from .base import ImageListError, ImageRecord, LocalImageIndex


def fetch_local_images(docker_client) -> LocalImageIndex:
    """
    从守护进程获取本地镜像列表并建立多键索引

    Docker在不同场景下使用不同的镜像标识（短ID、完整ID、标签、摘要），
    因此每个镜像都会以这些标识作为键写入索引，以便总能找到同一个镜像。
    索引每次调用都重新构建，不做缓存。

    Args:
        docker_client: Docker底层API客户端

    Returns:
        LocalImageIndex: 查找键到镜像摘要的映射

    Raises:
        ImageListError: 获取镜像列表失败时抛出
    """
    logger.debug("获取本地镜像列表")
    try:
        images = docker_client.images(all=False)
    except (DockerException, OSError) as e:
        raise ImageListError(f"无法获取Docker镜像列表: {e}") from e

    index: LocalImageIndex = {}
    for image in images:
        image_id = image["Id"]
        index[image_id[:12]] = image
        index[image_id] = image
        for repo_tag in image.get("RepoTags") or []:
            index[repo_tag] = image
        for repo_digest in image.get("RepoDigests") or []:
            index[repo_digest] = image

    return index


def search_local_images(index: LocalImageIndex, image_name: str) -> Optional[ImageRecord]:
    """
    在本地镜像索引中查找镜像

    先按名称精确查找，未找到时再补全":latest"标签查找一次，
    方便用户省略默认标签。

    Args:
        index: 本地镜像索引
        image_name: 镜像名称、ID或摘要

    Returns:
        Optional[ImageRecord]: 找到的镜像摘要，未找到返回None
    """
    logger.debug("在本地镜像中查找")

    image = index.get(image_name)
    if image is not None:
        logger.debug(f"通过名称找到本地镜像: {image_name}")
        return image

    image = index.get(image_name + ":latest")
    if image is not None:
        logger.debug(f"通过名称+latest找到本地镜像: {image_name}")
        return image

    return None

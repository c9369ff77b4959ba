"""镜像管理工具函数"""

from dataclasses import dataclass

from .auth import normalize_registry_address


@dataclass(frozen=True)
class ImageReference:
    """解析后的镜像名称"""

    raw: str
    registry: str
    repository: str
    tag: str
    fully_qualified_name: str

    @property
    def name(self) -> str:
        """不带标签的镜像名称（仓库地址/仓库名）"""
        if self.registry:
            return f"{self.registry}/{self.repository}"
        return self.repository

    @property
    def normalized_registry(self) -> str:
        return normalize_registry_address(self.registry)


def parse_image_name(image_name: str) -> ImageReference:
    """
    解析镜像名称，分离仓库地址、仓库名和标签

    仓库地址的判断规则：名称中包含多于一个"/"，或第一个"/"之前的部分
    包含"."、":"或等于"localhost"。标签只在仓库地址之后的部分查找，
    避免把端口号误认为标签。该函数不会抛出异常，也不会补全默认标签。

    Args:
        image_name: 镜像名称，例如 "localhost:5000/foo:1.0"

    Returns:
        ImageReference: 解析结果
    """
    registry = ""
    first_slash = image_name.find("/")
    if first_slash != -1:
        prefix = image_name[:first_slash]
        if (
            image_name.count("/") > 1
            or "." in prefix
            or ":" in prefix
            or prefix == "localhost"
        ):
            registry = prefix

    # 仓库地址之后的部分
    remainder = image_name[len(registry) + 1:] if registry else image_name
    repository, sep, tag = remainder.partition(":")
    if not sep:
        repository, tag = remainder, ""

    if registry:
        fully_qualified_name = f"{registry}/{repository}:{tag}"
    else:
        fully_qualified_name = f"{repository}:{tag}"

    return ImageReference(
        raw=image_name,
        registry=registry,
        repository=repository,
        tag=tag,
        fully_qualified_name=fully_qualified_name,
    )

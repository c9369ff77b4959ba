"""镜像管理基础类型定义"""

from dataclasses import dataclass
from typing import Any, Dict, List, Optional, TypedDict


class ImageManagerError(Exception):
    """镜像管理错误基类，携带操作过程中捕获的输出日志"""

    def __init__(self, message: str, output: str = "") -> None:
        super().__init__(message)
        self.output = output


class ImageListError(ImageManagerError):
    """获取本地镜像列表错误"""
    pass


class ImageNotFoundError(ImageManagerError):
    """本地与远程均未找到镜像"""
    pass


class ImageResolveError(ImageManagerError):
    """构建或拉取后仍无法解析镜像"""
    pass


class ImageBuildError(ImageManagerError):
    """镜像构建错误"""
    pass


class ImagePullError(ImageManagerError):
    """镜像拉取错误"""
    pass


class ImagePushError(ImageManagerError):
    """镜像推送错误"""
    pass


class ImageRemoveError(ImageManagerError):
    """镜像删除错误"""
    pass


class StreamError(ImageManagerError):
    """守护进程消息流错误"""
    pass


class StreamDecodeError(StreamError):
    """消息流结构错误，解码中止"""
    pass


class OperationFailedError(StreamError):
    """消息流中包含错误消息，操作失败"""
    pass


# 守护进程返回的镜像摘要，包含 Id / RepoTags / RepoDigests 等字段
ImageRecord = Dict[str, Any]

# 查找键 -> 镜像摘要，同一镜像可能对应多个键
LocalImageIndex = Dict[str, ImageRecord]


class Credential(TypedDict, total=False):
    """仓库认证信息类型，与docker SDK的auth_config格式一致"""
    username: str
    password: str
    email: str
    serveraddress: str
    auth: str
    identitytoken: str
    registrytoken: str


# 规范化仓库地址 -> 认证信息
CredentialTable = Dict[str, Credential]


class BuildSpec(TypedDict):
    """构建配置类型"""
    dockerfile: str
    path: str
    tag: List[str]
    force_remove: bool
    remove: bool
    no_cache: bool
    target: str
    build_arg: Optional[Dict[str, str]]
    label: Optional[Dict[str, str]]


class BuildOptions(TypedDict):
    """提交给守护进程的构建参数类型"""
    dockerfile: str
    tags: List[str]
    forcerm: bool
    rm: bool
    nocache: bool
    target: str
    buildargs: Dict[str, str]
    labels: Dict[str, str]


class ImageResource(TypedDict, total=False):
    """声明式镜像资源类型"""
    name: str
    build: List[BuildSpec]
    force_build: bool
    keep_locally: bool
    push_remote: bool


@dataclass
class ResolvedImage:
    """一次同步周期的结果：镜像ID、名称以及各阶段输出"""

    image_id: str
    name: str
    build_output: Optional[str] = None
    pull_output: Optional[str] = None
    push_output: Optional[str] = None

    @property
    def latest(self) -> str:
        return self.image_id

    @property
    def resource_id(self) -> str:
        """资源标识，由镜像ID与名称拼接而成"""
        return self.image_id + self.name

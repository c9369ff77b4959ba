"""Docker镜像管理相关功能模块

该子包包含镜像同步相关的各个功能模块，如名称解析、认证、本地索引、构建、拉取、推送等。
"""

from .auth import (
    DEFAULT_REGISTRY_ADDRESS,
    load_credentials,
    normalize_registry_address,
    resolve_auth,
)
from .base import (
    BuildOptions,
    BuildSpec,
    Credential,
    CredentialTable,
    ImageBuildError,
    ImageListError,
    ImageManagerError,
    ImageNotFoundError,
    ImagePullError,
    ImagePushError,
    ImageRecord,
    ImageRemoveError,
    ImageResolveError,
    ImageResource,
    LocalImageIndex,
    OperationFailedError,
    ResolvedImage,
    StreamDecodeError,
    StreamError,
)
from .build import ImageBuilder
from .context import read_ignore_patterns, tar_with_excludes, trim_build_essentials
from .index import fetch_local_images, search_local_images
from .pull import ImagePuller
from .push import ImagePusher
from .stream import decode_messages, render_message
from .tag import ImageTagger
from .utils import ImageReference, parse_image_name

__all__ = [
    "DEFAULT_REGISTRY_ADDRESS",
    "load_credentials",
    "normalize_registry_address",
    "resolve_auth",
    "BuildOptions",
    "BuildSpec",
    "Credential",
    "CredentialTable",
    "ImageBuildError",
    "ImageListError",
    "ImageManagerError",
    "ImageNotFoundError",
    "ImagePullError",
    "ImagePushError",
    "ImageRecord",
    "ImageRemoveError",
    "ImageResolveError",
    "ImageResource",
    "LocalImageIndex",
    "OperationFailedError",
    "ResolvedImage",
    "StreamDecodeError",
    "StreamError",
    "ImageBuilder",
    "read_ignore_patterns",
    "tar_with_excludes",
    "trim_build_essentials",
    "fetch_local_images",
    "search_local_images",
    "ImagePuller",
    "ImagePusher",
    "decode_messages",
    "render_message",
    "ImageTagger",
    "ImageReference",
    "parse_image_name",
]

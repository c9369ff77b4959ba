"""镜像构建相关功能"""

import os
from typing import Dict

from docker.errors import DockerException
from loguru import logger

from .base import BuildOptions, BuildSpec, ImageBuildError, StreamError
from .context import read_ignore_patterns, tar_with_excludes, trim_build_essentials
from .stream import decode_messages
from .tag import ImageTagger


class ImageBuilder:
    """镜像构建器类"""

    def __init__(self, docker_client) -> None:
        """
        初始化镜像构建器

        Args:
            docker_client: Docker底层API客户端
        """
        self.docker_client = docker_client
        self.tagger = ImageTagger(docker_client)

    @staticmethod
    def build_options(spec: BuildSpec, image_name: str) -> BuildOptions:
        """
        根据构建配置生成提交给守护进程的构建参数

        Args:
            spec: 构建配置
            image_name: 镜像名称，作为第一个标签

        Returns:
            BuildOptions: 构建参数
        """
        build_args: Dict[str, str] = dict(spec.get("build_arg") or {})
        labels: Dict[str, str] = dict(spec.get("label") or {})
        logger.debug(f"构建参数: {build_args}")
        logger.debug(f"标签: {labels}")

        return BuildOptions(
            dockerfile=spec.get("dockerfile") or "Dockerfile",
            tags=[image_name] + list(spec.get("tag") or []),
            forcerm=bool(spec.get("force_remove", False)),
            rm=bool(spec.get("remove", True)),
            nocache=bool(spec.get("no_cache", False)),
            target=spec.get("target") or "",
            buildargs=build_args,
            labels=labels,
        )

    def build(self, spec: BuildSpec, image_name: str) -> str:
        """
        构建Docker镜像

        Args:
            spec: 构建配置
            image_name: 镜像名称

        Returns:
            str: 构建日志

        Raises:
            ImageBuildError: 构建失败时抛出，output为已捕获的构建日志
        """
        options = self.build_options(spec, image_name)
        context_dir = os.path.expanduser(spec["path"])

        try:
            excludes = read_ignore_patterns(context_dir)
        except OSError as e:
            raise ImageBuildError(f"读取 {context_dir} 中的.dockerignore失败: {e}") from e
        excludes = trim_build_essentials(excludes, options["dockerfile"], keep_dockerfile=False)

        logger.info(f"开始构建镜像 {image_name}...")
        try:
            build_context = tar_with_excludes(context_dir, excludes, options["dockerfile"])
        except OSError as e:
            raise ImageBuildError(f"打包构建上下文 {context_dir} 失败: {e}") from e
        try:
            output = self._build_with_progress(build_context, options)
        finally:
            build_context.close()

        # SDK的构建接口只接受一个标签，其余标签在构建成功后补充
        for extra_tag in options["tags"][1:]:
            try:
                self.tagger.tag(image_name, extra_tag)
            except ImageBuildError as e:
                raise ImageBuildError(str(e), output) from e

        logger.success(f"镜像 {image_name} 构建成功")
        return output

    def _build_with_progress(self, build_context, options: BuildOptions) -> str:
        """
        提交构建请求并解码构建输出

        Args:
            build_context: 构建上下文tar文件对象
            options: 构建参数

        Returns:
            str: 构建日志

        Raises:
            ImageBuildError: 构建失败时抛出
        """
        image_name = options["tags"][0]
        try:
            response = self.docker_client.build(
                fileobj=build_context,
                custom_context=True,
                tag=image_name,
                dockerfile=options["dockerfile"],
                forcerm=options["forcerm"],
                rm=options["rm"],
                nocache=options["nocache"],
                target=options["target"] or None,
                buildargs=options["buildargs"],
                labels=options["labels"],
                decode=False,
            )
            return decode_messages(response)
        except StreamError as e:
            raise ImageBuildError(f"构建镜像 {image_name} 失败: {e}", e.output) from e
        except (DockerException, OSError) as e:
            raise ImageBuildError(f"构建镜像 {image_name} 失败: {e}") from e

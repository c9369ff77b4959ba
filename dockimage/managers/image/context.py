"""构建上下文相关功能"""

import os
from typing import IO, List, Optional

from docker.utils.build import Pattern, split_path, tar

DOCKERIGNORE = ".dockerignore"


def read_ignore_patterns(context_dir: str) -> List[str]:
    """
    读取构建上下文目录中的.dockerignore

    Args:
        context_dir: 构建上下文目录

    Returns:
        List[str]: 排除规则，文件不存在时返回空列表
    """
    dockerignore = os.path.join(context_dir, DOCKERIGNORE)
    if not os.path.exists(dockerignore):
        return []

    with open(dockerignore, "r", encoding="utf-8") as f:
        lines = [line.strip() for line in f.read().splitlines()]
    return [line for line in lines if line and not line.startswith("#")]


def _matches(patterns: List[str], filepath: str) -> bool:
    """
    判断文件是否被排除规则排除，后出现的规则优先

    SDK的PatternMatcher总会追加"!.dockerignore"，这里直接使用Pattern逐条匹配。
    文件所在的父目录被排除时，文件同样视为被排除。
    """
    matched = False
    parent_dirs = split_path(os.path.dirname(filepath))
    for pattern in (Pattern(p) for p in patterns):
        if not pattern.dirs:
            continue
        match = pattern.match(filepath)
        if not match and parent_dirs and len(pattern.dirs) <= len(parent_dirs):
            match = pattern.match("/".join(parent_dirs[: len(pattern.dirs)]))
        if match:
            matched = not pattern.exclusion
    return matched


def trim_build_essentials(
    patterns: List[str], dockerfile: str, keep_dockerfile: bool = False
) -> List[str]:
    """
    保证构建所需的文件不会被排除规则排除

    .dockerignore 和 Dockerfile 被排除时追加对应的"!"例外规则。

    Args:
        patterns: 排除规则
        dockerfile: Dockerfile路径，相对于构建上下文
        keep_dockerfile: 为True时不处理Dockerfile（例如Dockerfile来自标准输入）

    Returns:
        List[str]: 处理后的排除规则
    """
    trimmed = list(patterns)
    if not trimmed:
        return trimmed

    if _matches(trimmed, DOCKERIGNORE):
        trimmed.append("!" + DOCKERIGNORE)
    if not keep_dockerfile and _matches(trimmed, dockerfile):
        trimmed.append("!" + dockerfile)
    return trimmed


def tar_with_excludes(
    context_dir: str, patterns: List[str], dockerfile: Optional[str] = None
) -> IO[bytes]:
    """
    打包构建上下文目录

    Args:
        context_dir: 构建上下文目录
        patterns: 排除规则
        dockerfile: Dockerfile路径，相对于构建上下文

    Returns:
        IO[bytes]: 已定位到开头的tar文件对象
    """
    return tar(context_dir, exclude=list(patterns), dockerfile=(dockerfile, None))

"""配置管理器类"""

import copy
import json
import os
from typing import Any, Dict, List, Optional, Type, Union, cast

import yaml
from dotenv import load_dotenv
from loguru import logger

from ..constants import (
    DEFAULT_BUILD_SPEC,
    DEFAULT_FILES,
    DEFAULT_IMAGE_RESOURCE,
    DEFAULT_PROJECT_CONFIG,
    DEFAULT_REGISTRY_AUTH,
    ERROR_MESSAGES,
    DefaultProjectConfig,
)
from .image.auth import load_credentials
from .image.base import CredentialTable, ImageResource


class ConfigError(Exception):
    """配置错误"""

    pass


ValidationStructure = Dict[str, Union[Type[Any], 'ValidationStructure']]

def generate_validation_structure(config_template: Dict[str, Any]) -> ValidationStructure:
    """
    从配置模板生成验证结构

    Args:
        config_template: 配置模板

    Returns:
        ValidationStructure: 验证结构
    """
    validation_structure: ValidationStructure = {}

    for key, value in config_template.items():
        if isinstance(value, dict):
            validation_structure[key] = generate_validation_structure(value)
        elif isinstance(value, list):
            validation_structure[key] = list
        elif value is None:
            validation_structure[key] = str
        else:
            validation_structure[key] = type(value)

    return validation_structure


def _with_defaults(template: Dict[str, Any], values: Dict[str, Any]) -> Dict[str, Any]:
    """用模板中的默认值补全配置，嵌套字典递归处理"""
    result = copy.deepcopy(template)
    for key, value in values.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict) and result[key]:
            result[key] = _with_defaults(result[key], value)
        elif value is None and key in result:
            continue
        else:
            result[key] = value
    return result


class ConfigManager:
    """配置管理器类，用于加载和验证项目配置"""

    project_dir: str
    config_file: Optional[str]
    config: DefaultProjectConfig

    def __init__(self, project_dir: Optional[str] = None, config_file: Optional[str] = None) -> None:
        """
        初始化配置管理器

        Args:
            project_dir: 项目目录路径，默认为当前目录
            config_file: 配置文件路径，为空时在项目目录中查找
        """
        self.project_dir = project_dir or os.getcwd()
        self.config_file = config_file
        self.config = cast(DefaultProjectConfig, copy.deepcopy(DEFAULT_PROJECT_CONFIG))

        # 初始化验证结构
        self.REQUIRED_CONFIG_FIELDS = generate_validation_structure(dict(DEFAULT_PROJECT_CONFIG))
        self.REQUIRED_IMAGE_FIELDS = generate_validation_structure(DEFAULT_IMAGE_RESOURCE)
        self.REQUIRED_BUILD_FIELDS = generate_validation_structure(DEFAULT_BUILD_SPEC)
        self.REQUIRED_AUTH_FIELDS = generate_validation_structure(dict(DEFAULT_REGISTRY_AUTH))

    def find_config_file(self) -> str:
        """
        查找配置文件

        Returns:
            str: 配置文件路径

        Raises:
            ConfigError: 配置文件不存在时抛出
        """
        if self.config_file:
            if not os.path.exists(self.config_file):
                raise ConfigError(ERROR_MESSAGES["config_not_found"].format(self.config_file))
            return self.config_file

        for name in DEFAULT_FILES["config_files"]:
            candidate = os.path.join(self.project_dir, name)
            if os.path.exists(candidate):
                return candidate
        raise ConfigError(
            ERROR_MESSAGES["config_not_found"].format(
                os.path.join(self.project_dir, DEFAULT_FILES["config_files"][0])
            )
        )

    def load_config(self) -> DefaultProjectConfig:
        """
        加载配置文件，同时加载项目目录中的.env

        Returns:
            DefaultProjectConfig: 加载的配置

        Raises:
            ConfigError: 配置加载失败时抛出
        """
        config_file = self.find_config_file()

        env_file = os.path.join(self.project_dir, DEFAULT_FILES["env_file"])
        if os.path.exists(env_file):
            load_dotenv(env_file)
            logger.debug(f"已加载环境变量文件: {env_file}")

        try:
            with open(config_file, "r", encoding="utf-8") as f:
                if config_file.endswith(".json"):
                    raw = json.load(f)
                else:
                    raw = yaml.safe_load(f)
        except (OSError, ValueError, yaml.YAMLError) as e:
            raise ConfigError(ERROR_MESSAGES["config_invalid"].format(config_file, e)) from e

        if raw is None:
            raw = {}
        if not isinstance(raw, dict):
            raise ConfigError(ERROR_MESSAGES["config_validation"].format("配置文件顶层应为字典"))

        self.config_file = config_file
        self.config = cast(DefaultProjectConfig, _with_defaults(dict(DEFAULT_PROJECT_CONFIG), raw))
        try:
            self._validate_config_structure(dict(self.config), self.REQUIRED_CONFIG_FIELDS)
        except ConfigError as e:
            raise ConfigError(ERROR_MESSAGES["config_validation"].format(e)) from e

        self.config["registry_auth"] = [
            _with_defaults(dict(DEFAULT_REGISTRY_AUTH), item) if isinstance(item, dict) else item
            for item in self.config["registry_auth"] or []
        ]
        self.config["images"] = [self._image_with_defaults(item) for item in self.config["images"] or []]

        self.validate_config()
        logger.debug(f"已加载配置文件: {config_file}")
        return self.config

    def _image_with_defaults(self, item: Any) -> Any:
        if not isinstance(item, dict):
            return item
        image = _with_defaults(DEFAULT_IMAGE_RESOURCE, item)
        builds = image.get("build") or []
        if isinstance(builds, dict):
            builds = [builds]
        if isinstance(builds, list):
            image["build"] = [
                self._build_with_defaults(spec) if isinstance(spec, dict) else spec
                for spec in builds
            ]
        return image

    def _build_with_defaults(self, spec: Dict[str, Any]) -> Dict[str, Any]:
        build = _with_defaults(DEFAULT_BUILD_SPEC, spec)
        path = build["path"]
        # 相对路径以项目目录为基准，而不是当前工作目录
        if isinstance(path, str) and path:
            path = os.path.expanduser(path)
            if not os.path.isabs(path):
                path = os.path.normpath(os.path.join(self.project_dir, path))
            build["path"] = path
        return build

    def validate_config(self) -> None:
        """
        验证配置的完整性和正确性

        Raises:
            ConfigError: 配置验证失败时抛出
        """
        try:
            self._validate_config_structure(dict(self.config), self.REQUIRED_CONFIG_FIELDS)
            for item in self.config["registry_auth"]:
                self._validate_config_structure(item, self.REQUIRED_AUTH_FIELDS)
            for image in self.config["images"]:
                self._validate_image(image)
        except ConfigError as e:
            raise ConfigError(ERROR_MESSAGES["config_validation"].format(e)) from e

    def _validate_image(self, image: Any) -> None:
        """
        验证镜像资源声明

        Raises:
            ConfigError: 验证失败时抛出
        """
        self._validate_config_structure(image, self.REQUIRED_IMAGE_FIELDS)
        if not image["name"]:
            raise ConfigError(ERROR_MESSAGES["image_name_empty"])

        for spec in image["build"]:
            self._validate_config_structure(spec, self.REQUIRED_BUILD_FIELDS)
            if not spec["path"]:
                raise ConfigError(ERROR_MESSAGES["build_path_missing"].format(image["name"]))

    def _validate_config_structure(self, config: Any, required: ValidationStructure) -> None:
        """
        递归验证配置结构

        Args:
            config: 要验证的配置
            required: 必需的配置结构

        Raises:
            ConfigError: 配置结构验证失败时抛出
        """
        if not isinstance(config, dict):
            raise ConfigError(f"配置项类型错误: {config!r} 应为字典")

        for key, value_type in required.items():
            if key not in config:
                raise ConfigError(f"缺少必需的配置项: {key}")

            if isinstance(value_type, dict):
                if not isinstance(config[key], dict):
                    raise ConfigError(f"配置项类型错误: {key} 应为字典")
                self._validate_config_structure(config[key], value_type)
            elif not isinstance(config[key], value_type):
                raise ConfigError(f"配置项类型错误: {key} 应为 {value_type.__name__}")

    def get_images(self, names: Optional[List[str]] = None) -> List[ImageResource]:
        """
        获取镜像资源声明

        Args:
            names: 镜像名称列表，为空时返回全部

        Returns:
            List[ImageResource]: 镜像资源声明

        Raises:
            ConfigError: 指定的镜像未配置时抛出
        """
        images = cast(List[ImageResource], self.config["images"])
        if not names:
            return images

        by_name = {image["name"]: image for image in images}
        selected = []
        for name in names:
            if name not in by_name:
                raise ConfigError(ERROR_MESSAGES["image_not_configured"].format(name))
            selected.append(by_name[name])
        return selected

    def get_image(self, name: str) -> ImageResource:
        """获取单个镜像资源声明，未配置时返回只包含名称的声明"""
        for image in self.config["images"]:
            if image["name"] == name:
                return cast(ImageResource, image)
        return cast(ImageResource, {**DEFAULT_IMAGE_RESOURCE, "name": name})

    def get_credentials(self) -> CredentialTable:
        """
        加载仓库认证信息表

        Returns:
            CredentialTable: 认证信息表
        """
        docker_config = self.config["docker"]
        config_path = os.path.expanduser(docker_config["config_file"]) if docker_config["config_file"] else None
        return load_credentials(config_path, self.config["registry_auth"])

    def get_config(self) -> DefaultProjectConfig:
        """
        获取当前配置

        Returns:
            DefaultProjectConfig: 当前配置
        """
        return self.config

"""
服务配置加载.

从 YAML 文本(或已解析的映射)中选取当前运行环境的配置段,
包装为 IndifferentDict 并缓存. 之后读取配置的代码可以混用符号与字符串键.

    development:
      facebook:
        page_access_token: ${FACEBOOK_TOKEN}
    production:
      facebook:
        page_access_token: ${FACEBOOK_TOKEN}

运行环境名取自环境变量(默认 `BOT_ENV`), 未设置时为 `development`.
"""

from __future__ import annotations

import os
import string
import threading
from collections.abc import Mapping
from typing import Annotated, Any

import yaml
from pydantic import ValidationError

from pwt.indifferent.errors import ConfigurationError
from pwt.indifferent.indifferent_dict import IndifferentDict, indifferent
from pwt.indifferent.log.helpers import get_logger_adapter
from pwt.indifferent.pydantic_utils import (
    BaseModelEx,
    check,
    convert,
    format_validation_error,
)

logger = get_logger_adapter(__name__)

ENV_VAR_DEFAULT = "BOT_ENV"
ENV_DEFAULT = "development"


class LoaderOptions(BaseModelEx):
    env_var: Annotated[
        str,
        convert(str.strip),
        check(str.isidentifier, check_result=True),
    ] = ENV_VAR_DEFAULT
    default_env: Annotated[str, convert(str.strip)] = ENV_DEFAULT
    expand_env: bool = True


def loader_options(
    options: LoaderOptions | Mapping[str, Any] | None = None,
) -> LoaderOptions:
    """
    构造加载选项.

    参数:
        options: 已构造的选项, 或待验证的选项映射.

    异常:
        ConfigurationError: 选项验证失败, 消息中列出每个出错的字段.
    """
    if options is None:
        return LoaderOptions()
    if isinstance(options, LoaderOptions):
        return options
    try:
        return LoaderOptions.model_validate(dict(options))
    except ValidationError as ex:
        details = "; ".join(
            f"{error['field']}: {error['message']}"
            for error in format_validation_error(ex)
        )
        raise ConfigurationError(f"Invalid loader options: {details}", cause=ex)


def current_env(options: LoaderOptions | None = None) -> str:
    """返回当前运行环境名."""
    options = options or LoaderOptions()
    return os.environ.get(options.env_var) or options.default_env


class _BracedTemplate(string.Template):
    # 不匹配的分支保留组名, safe_substitute 依赖这四个组
    pattern = r"""
    \$(?:
        (?P<escaped>(?!))                 |
        (?P<named>(?!))                   |
        \{(?P<braced>[_a-z][_a-z0-9]*)\}   |
        (?P<invalid>(?!))
    )
    """


def render_template(text: str, variables: Mapping[str, Any] | None = None) -> str:
    """
    替换文本中的 `${NAME}` 占位符.

    只识别花括号形式; `$NAME` 与 `$$` 都是普通字符, 原样保留.

    参数:
        text: 模板文本.
        variables: 变量表, 默认使用 `os.environ`.

    返回:
        替换后的文本; 未知变量原样保留.
    """
    return _BracedTemplate(text).safe_substitute(
        os.environ if variables is None else variables
    )


def parse_services(
    source: str | Mapping[Any, Any],
    env: str | None = None,
    options: LoaderOptions | Mapping[str, Any] | None = None,
) -> IndifferentDict:
    """
    解析服务配置并返回指定环境的配置段.

    参数:
        source: YAML 文本, 或已解析的映射.
        env: 环境名, 默认取 `current_env`.
        options: 加载选项, 或待验证的选项映射.

    异常:
        ConfigurationError: 选项无效/YAML 无法解析/文档不是映射/找不到环境或环境段不是映射.
    """
    options = loader_options(options)
    env = env or current_env(options)

    if isinstance(source, str):
        text = render_template(source) if options.expand_env else source
        try:
            document = yaml.safe_load(text)
        except yaml.YAMLError as ex:
            raise ConfigurationError(
                f"Could not parse services configuration: {ex}", cause=ex
            )
    else:
        document = source

    if document is None:
        document = {}
    if not isinstance(document, Mapping):
        raise ConfigurationError(
            f"Services configuration must be a mapping, not {type(document).__name__}"
        )

    services = indifferent(document)
    if env not in services:
        raise ConfigurationError(
            f"Could not find services configuration for {env} environment"
        )

    section = services[env]
    if section is None:
        return IndifferentDict()
    if not isinstance(section, IndifferentDict):
        raise ConfigurationError(
            f"Services configuration for {env} environment must be a mapping"
        )
    return section


class ServicesConfig:
    """
    缓存已加载的服务配置.

    首次加载在锁内完成检查与创建, 保证并发初始化时只解析一次;
    加载完成后读取不再加锁.
    """

    def __init__(
        self, options: LoaderOptions | Mapping[str, Any] | None = None
    ) -> None:
        self.options = loader_options(options)
        self._config: IndifferentDict | None = None
        self._lock = threading.Lock()

    @property
    def config(self) -> IndifferentDict | None:
        return self._config

    def load(
        self, source: str | Mapping[Any, Any], env: str | None = None
    ) -> IndifferentDict:
        """返回已缓存的配置; 尚未加载时解析 `source`."""
        config = self._config
        if config is not None:
            return config

        with self._lock:
            if self._config is None:
                self._config = self._parse(source, env)
            return self._config

    def reload(
        self, source: str | Mapping[Any, Any], env: str | None = None
    ) -> IndifferentDict:
        """忽略缓存, 强制重新解析 `source`."""
        with self._lock:
            self._config = self._parse(source, env)
            return self._config

    def reset(self) -> None:
        with self._lock:
            self._config = None

    def _parse(
        self, source: str | Mapping[Any, Any], env: str | None
    ) -> IndifferentDict:
        env = env or current_env(self.options)
        logger.debug("Loading services configuration for %s environment", env)
        config = parse_services(source, env, self.options)
        logger.debug("Loaded services configuration: %s", ", ".join(map(str, config)))
        return config


_services = ServicesConfig()


def load_services_config(
    source: str | Mapping[Any, Any], env: str | None = None
) -> IndifferentDict:
    return _services.load(source, env)


def reload_services_config(
    source: str | Mapping[Any, Any], env: str | None = None
) -> IndifferentDict:
    return _services.reload(source, env)


def services_config() -> IndifferentDict | None:
    return _services.config


def reset_services_config() -> None:
    _services.reset()

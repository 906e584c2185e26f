"""
定义无差别访问字典及其配置加载器使用的异常体系.

异常层级结构如下:
    - IndifferentError: 所有异常的统一基类, 支持链式追踪.
        - KeyNotFound: `fetch` 找不到键, 且未提供回退值或缺失处理函数.
          同时继承 KeyError, 兼容标准映射的异常捕获.
        - ConfigurationError: 服务配置缺失/格式错误/无法解析.
"""

from __future__ import annotations

from typing import Any


class IndifferentError(Exception):
    """
    所有异常的基类, 具备错误链追踪能力.

    参数:
    - `*args`: 异常消息内容;
    - `cause`: 可选的原始异常, 自动赋值给 `__cause__`.
    """

    def __init__(self, *args: Any, cause: Exception | None = None) -> None:
        super().__init__(*args)
        self.cause: Exception | None = cause
        self.__cause__ = cause


class KeyNotFound(IndifferentError, KeyError):
    """
    `fetch` 查找失败.

    属性:
    - `key`: 归一化后的键;
    - `receiver`: 发起查找的映射对象.
    """

    def __init__(self, key: Any, receiver: Any = None) -> None:
        super().__init__(f"key not found: {key!r}")
        self.key = key
        self.receiver = receiver

    def __str__(self) -> str:
        # KeyError 默认会对消息再做一次 repr
        return str(self.args[0])


class ConfigurationError(IndifferentError):
    """服务配置无法加载."""

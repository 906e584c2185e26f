"""
基于 Pydantic v2 验证机制的通用工具集.

提供:
- 格式化 ValidationError 为结构化列表
- 构建字段转换器(验证前执行)
- 构建字段检查器(验证后执行)
- 扩展 BaseModel, 支持空值回退到字段默认值
"""

from __future__ import annotations

from functools import partial
from typing import Any, Callable

from pydantic import (
    AfterValidator,
    BaseModel,
    BeforeValidator,
    ValidationError,
    ValidationInfo,
    ValidatorFunctionWrapHandler,
    field_validator,
)
from pydantic_core import PydanticCustomError, PydanticUndefined


def format_validation_error(exc: ValidationError) -> list[dict[str, Any]]:
    """
    将 Pydantic 的 ValidationError 转换为结构化错误列表.

    Args:
        exc: Pydantic 抛出的验证异常对象.

    Returns:
        每个错误包含字段路径/提示信息/错误类型和原始输入值.
    """
    return [
        {
            "field": ".".join(map(str, error.get("loc", ()))),
            "message": error.get("msg", None),
            "type": error.get("type", None),
            "input": error.get("input", None),
        }
        for error in exc.errors()
    ]


def convert(
    func: Callable[..., Any],
    ignore_none: bool = True,
    description: str | None = None,
    **func_kwds: Any,
) -> BeforeValidator:
    """
    构造一个在 Pydantic 验证前执行的值转换器.

    Args:
        func: 转换函数, 接收单值并返回新值.
        ignore_none: 值为 None 时是否跳过转换.
        description: 自定义错误信息.
        **func_kwds: 传给 `func` 的额外关键字参数.
    """
    bound = partial(func, **func_kwds)

    def validator(data: Any) -> Any:
        if ignore_none and data is None:
            return data
        try:
            return bound(data)
        except Exception as ex:
            raise PydanticCustomError(
                "Convert failed",
                "{reason}",
                {"reason": description or str(ex)},
            )

    return BeforeValidator(validator)


def check(
    func: Callable[..., Any],
    ignore_none: bool = True,
    check_result: bool = False,
    description: str | None = None,
    **func_kwds: Any,
) -> AfterValidator:
    """
    构造一个在 Pydantic 验证后执行的检查器.

    Args:
        func: 检查函数, 抛出异常即视为失败.
        ignore_none: 值为 None 时是否跳过检查.
        check_result: 是否要求函数返回值为真.
        description: 自定义错误信息.
        **func_kwds: 传给 `func` 的额外关键字参数.
    """
    bound = partial(func, **func_kwds)

    def validator(data: Any) -> Any:
        if ignore_none and data is None:
            return data
        try:
            if not bound(data) and check_result:
                raise ValueError("Return value check failed")
        except Exception as ex:
            raise PydanticCustomError(
                "Check failed",
                "{reason}",
                {"reason": description or str(ex)},
            )
        return data

    return AfterValidator(validator)


class BaseModelEx(BaseModel):
    """
    扩展版 BaseModel.

    当字段值为空(空序列/空集合/空字符串/None)时, 自动回退到字段默认值(若有).
    """

    @field_validator("*", mode="wrap")
    @classmethod
    def use_default_value(
        cls: type[BaseModelEx],
        value: Any,
        validator: ValidatorFunctionWrapHandler,
        info: ValidationInfo,
        /,
    ) -> Any:
        if value in ([], {}, (), set(), "", None) and info.field_name:
            field_info = cls.model_fields.get(info.field_name)
            if field_info is not None:
                default = field_info.get_default(call_default_factory=True)
                if default is not PydanticUndefined:
                    return default
        return validator(value)

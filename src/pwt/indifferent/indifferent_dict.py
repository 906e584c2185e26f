"""
提供一个符号/字符串键无差别访问的字典实现.

设计目标:
- 键 `S.foo` 与 `"foo"` 视为同一个键; 符号在所有读写路径上被归一化为字符串.
- 非符号键保持原样(支持所有可哈希类型作为键).
- 嵌套映射在写入时递归包装为 IndifferentDict, 导出时递归还原为普通 dict.
- 列表/元组在写入时复制并逐项转换, 之后修改容器不会影响调用方原有的列表.
- 支持默认值/默认值工厂, 仅作用于 `d[key]`/`get`; `fetch` 从不使用默认策略.

主要组件:
- IndifferentDict: 无差别访问字典
- normalize_key: 键归一化
- to_indifferent: 嵌套值包装(优先使用值自身的 `__indifferent__` 能力)
- to_plain: 递归导出为普通结构
- indifferent: 从任意映射构造 IndifferentDict

示例:
    >>> from pwt.indifferent.symbol import S
    >>> rgb = IndifferentDict()
    >>> rgb[S.black] = "#000000"
    >>> rgb["black"]
    '#000000'
    >>> rgb["white"] = "#FFFFFF"
    >>> rgb[S.white]
    '#FFFFFF'
    >>> list(rgb.keys())
    ['black', 'white']

    # 非符号键保持原样
    >>> d = IndifferentDict({S.a: 1})
    >>> d[0] = 0
    >>> d
    IndifferentDict({'a': 1, 0: 0})
"""

from __future__ import annotations

from collections.abc import (
    Callable,
    ItemsView,
    Iterable,
    Iterator,
    Mapping,
    MutableMapping,
)
from functools import singledispatch
from typing import Any, Hashable, Protocol, runtime_checkable

from pwt.indifferent.errors import KeyNotFound
from pwt.indifferent.symbol import Symbol

DefaultFactory = Callable[["IndifferentDict", Any], Any]
Resolver = Callable[[Any, Any, Any], Any]


class _Unset:
    __slots__ = ()

    def __repr__(self) -> str:
        return "<unset>"


UNSET: Any = _Unset()


@runtime_checkable
class IndifferentPresentable(Protocol):
    """
    能够自行呈现为无差别访问视图的值.

    嵌套在 IndifferentDict 中时, 容器会调用 `__indifferent__()` 而不是自行包装.
    返回 `self` 表示按引用保存.
    """

    def __indifferent__(self) -> Mapping[Any, Any]: ...


def normalize_key(key: Any) -> Any:
    """符号转为规范字符串, 其它键原样返回."""
    if isinstance(key, Symbol):
        return str(key)
    return key


def to_indifferent(value: Any) -> Any:
    """
    嵌套值包装.

    - 值的类型提供 `__indifferent__` 时, 使用其返回值;
    - 映射包装为新的 IndifferentDict;
    - 其它值原样返回.
    """
    presenter = getattr(type(value), "__indifferent__", None)
    if presenter is not None:
        return presenter(value)
    if isinstance(value, Mapping):
        return IndifferentDict(value)
    return value


def _convert(value: Any, owned: bool = False) -> Any:
    """
    写入时的值转换.

    参数:
        value: 待写入的值.
        owned: 调用方是否转交了列表的独占所有权; 为真时原地转换并保留该列表.
    """
    if isinstance(value, list):
        items = [_convert(item, owned) for item in value]
        if owned:
            value[:] = items
            return value
        return items
    if type(value) is tuple:
        return tuple(_convert(item, owned) for item in value)
    return to_indifferent(value)


@singledispatch
def to_plain(value: Any) -> Any:
    """
    递归导出为普通结构.

    - IndifferentDict/映射 -> dict(键归一化)
    - list -> 新的 list
    - tuple -> 新的 tuple
    - 其它值原样返回(不做深拷贝)
    """
    return value


@to_plain.register(Mapping)
def _(value: Mapping) -> dict[Any, Any]:
    return {normalize_key(k): to_plain(v) for k, v in value.items()}


@to_plain.register(list)
def _(value: list) -> list[Any]:
    return [to_plain(item) for item in value]


@to_plain.register(tuple)
def _(value: tuple) -> tuple[Any, ...]:
    # 具名元组等子类视为标量
    if type(value) is not tuple:
        return value
    return tuple(to_plain(item) for item in value)


def _pairs(other: Any) -> Iterable[tuple[Any, Any]]:
    """把可转换为映射的对象展开为 (键, 值) 序列."""
    if isinstance(other, Mapping):
        return other.items()
    if hasattr(other, "keys"):
        return ((key, other[key]) for key in other.keys())
    if hasattr(other, "to_dict"):
        return other.to_dict().items()
    return other


def _dig_step(value: Any, key: Any) -> Any:
    if isinstance(value, IndifferentDict):
        return value._data.get(normalize_key(key))
    if isinstance(value, Mapping):
        return value.get(normalize_key(key))
    if isinstance(value, (list, tuple)):
        if isinstance(key, int) and not isinstance(key, bool):
            try:
                return value[key]
            except IndexError:
                return None
    return None


class IndifferentDict(MutableMapping[Any, Any]):
    """
    符号/字符串键无差别访问的字典.

    内部结构:
    - self._data: {归一化键: 已转换的值}, 保持插入顺序.
    - self._default / self._default_factory: 默认策略, 二者至多一个生效.

    默认策略:
    - `default`: 缺失键时返回的常量.
    - `default_factory`: `(容器, 归一化键) -> 值`, 每次查询时调用, 结果不缓存.
    - 均未设置时, `d[key]` 对缺失键抛 KeyError, `get` 返回 None.
    """

    def __init__(
        self,
        data: Any = None,
        /,
        *,
        default: Any = UNSET,
        default_factory: DefaultFactory | None = None,
        **kwargs: Any,
    ) -> None:
        if default is not UNSET and default_factory is not None:
            raise ValueError("default and default_factory are mutually exclusive")

        self._data: dict[Hashable, Any] = {}
        self._default: Any = UNSET
        self._default_factory: DefaultFactory | None = None

        if default_factory is not None:
            self._default_factory = default_factory
        elif default is not UNSET:
            self._default = default
        elif isinstance(data, IndifferentDict):
            data._copy_defaults_to(self)

        if data is not None:
            self.update(data)
        if kwargs:
            self.update(kwargs)

    @classmethod
    def from_pairs(cls, *pairs: tuple[Any, Any]) -> IndifferentDict:
        return cls(pairs)

    # ---- 默认策略 ----

    @property
    def default(self) -> Any:
        return None if self._default is UNSET else self._default

    @default.setter
    def default(self, value: Any) -> None:
        self._default = value
        self._default_factory = None

    @property
    def default_factory(self) -> DefaultFactory | None:
        return self._default_factory

    @default_factory.setter
    def default_factory(self, factory: DefaultFactory | None) -> None:
        self._default_factory = factory
        self._default = UNSET

    def has_default_policy(self) -> bool:
        return self._default_factory is not None or self._default is not UNSET

    def default_for(self, *args: Any) -> Any:
        """
        计算缺失键的默认值.

        - 设置了工厂: 以 `(self, 归一化键)` 调用工厂; 未传键时返回 None.
        - 否则返回常量默认值, 忽略参数.
        """
        if len(args) > 1:
            raise TypeError(f"default_for() takes at most 1 key ({len(args)} given)")
        if self._default_factory is not None:
            if not args:
                return None
            return self._default_factory(self, normalize_key(args[0]))
        return self.default

    def _copy_defaults_to(self, target: IndifferentDict) -> None:
        target._default = self._default
        target._default_factory = self._default_factory

    # ---- 核心映射协议 ----

    def __setitem__(self, key: Any, value: Any) -> None:
        self._data[normalize_key(key)] = _convert(value)

    def store(self, key: Any, value: Any, *, owned: bool = False) -> None:
        """
        写入一个值.

        `owned=True` 表示调用方放弃该列表的所有权, 列表被原地转换后直接保存.
        """
        self._data[normalize_key(key)] = _convert(value, owned)

    def __getitem__(self, key: Any) -> Any:
        norm_key = normalize_key(key)
        if norm_key in self._data:
            return self._data[norm_key]
        return self.__missing__(norm_key)

    def __missing__(self, key: Any) -> Any:
        if not self.has_default_policy():
            raise KeyError(key)
        return self.default_for(key)

    def __delitem__(self, key: Any) -> None:
        del self._data[normalize_key(key)]

    def __iter__(self) -> Iterator[Any]:
        return iter(self._data)

    def __len__(self) -> int:
        return len(self._data)

    def __contains__(self, key: Any) -> bool:
        return normalize_key(key) in self._data

    def __repr__(self) -> str:
        inner = ", ".join(f"{k!r}: {v!r}" for k, v in self._data.items())
        return f"{self.__class__.__name__}({{{inner}}})"

    def __indifferent__(self) -> IndifferentDict:
        return self

    def with_indifferent_access(self) -> IndifferentDict:
        return self.copy()

    # ---- 查找 ----

    def has(self, key: Any) -> bool:
        return normalize_key(key) in self._data

    has_key = has

    def get(self, key: Any, default: Any = UNSET) -> Any:
        """
        取值.

        键缺失时: 显式传入 `default` 则返回它, 否则按默认策略计算(无策略时为 None).
        """
        norm_key = normalize_key(key)
        if norm_key in self._data:
            return self._data[norm_key]
        if default is not UNSET:
            return default
        return self.default_for(norm_key)

    def fetch(
        self,
        key: Any,
        *fallback: Any,
        on_missing: Callable[[Any], Any] | None = None,
    ) -> Any:
        """
        严格取值, 不使用默认策略.

        键缺失时依次尝试: 回退值 -> `on_missing(归一化键)` -> 抛出 KeyNotFound.

        示例:
            >>> counters = IndifferentDict(foo=1)
            >>> counters.fetch("foo")
            1
            >>> counters.fetch("bar", 0)
            0
            >>> counters.fetch("bar", on_missing=lambda key: key.upper())
            'BAR'
        """
        if len(fallback) > 1:
            raise TypeError(
                f"fetch() takes at most 1 fallback value ({len(fallback)} given)"
            )
        norm_key = normalize_key(key)
        if norm_key in self._data:
            return self._data[norm_key]
        if fallback:
            return fallback[0]
        if on_missing is not None:
            return on_missing(norm_key)
        raise KeyNotFound(norm_key, self)

    def fetch_values(
        self, *keys: Any, on_missing: Callable[[Any], Any] | None = None
    ) -> list[Any]:
        return [self.fetch(key, on_missing=on_missing) for key in keys]

    def values_at(self, *keys: Any) -> list[Any]:
        return [self.get(key) for key in keys]

    def dig(self, *keys: Any) -> Any:
        """
        沿嵌套结构逐层取值, 不使用默认策略.

        每一层只归一化当前使用的键; 列表/元组接受整数下标.
        任一层缺失或无法继续下钻时返回 None, 从不抛出 KeyError.
        """
        if not keys:
            raise TypeError("dig() requires at least one key")
        value: Any = self
        for key in keys:
            value = _dig_step(value, key)
            if value is None:
                return None
        return value

    # ---- 修改 ----

    def update(
        self, other: Any = (), /, resolver: Resolver | None = None, **kwargs: Any
    ) -> IndifferentDict:
        """
        原地合并, 按 `other` 自身的迭代顺序逐键写入, 之后写入 `kwargs`.

        键冲突时, 若提供 `resolver(归一化键, 旧值, 新值)` 则以其返回值为准,
        否则新值覆盖旧值. `other` 中两个键归一化后相同时, 后出现者在前者之后写入.

        `other` 为 IndifferentDict 时, 其值已转换, 按引用写入.

        示例:
            >>> first = IndifferentDict(key=10)
            >>> second = IndifferentDict({S.key: 12})
            >>> first.update(second, resolver=lambda key, old, new: old + new)
            IndifferentDict({'key': 22})
        """
        if isinstance(other, IndifferentDict):
            self._update_pairs(other._data.items(), resolver, converted=True)
        else:
            self._update_pairs(_pairs(other), resolver, converted=False)
        if kwargs:
            self._update_pairs(kwargs.items(), resolver, converted=False)
        return self

    def _update_pairs(
        self,
        pairs: Iterable[tuple[Any, Any]],
        resolver: Resolver | None,
        converted: bool,
    ) -> None:
        for key, incoming in pairs:
            norm_key = normalize_key(key)
            value = incoming
            if resolver is not None and norm_key in self._data:
                value = resolver(norm_key, self._data[norm_key], incoming)
            if not (converted and value is incoming):
                value = _convert(value)
            self._data[norm_key] = value

    def merge(
        self, other: Any = (), /, resolver: Resolver | None = None, **kwargs: Any
    ) -> IndifferentDict:
        """与 `update` 语义相同, 但在副本上合并并返回副本."""
        return self.copy().update(other, resolver, **kwargs)

    def __or__(self, other: Any) -> IndifferentDict:
        if not isinstance(other, Mapping):
            return NotImplemented
        return self.merge(other)

    def __ror__(self, other: Any) -> IndifferentDict:
        if not isinstance(other, Mapping):
            return NotImplemented
        return type(self)(other).update(self)

    def __ior__(self, other: Any) -> IndifferentDict:
        return self.update(other)

    def replace(self, other: Any) -> IndifferentDict:
        """
        丢弃当前内容, 按构造时的规则从 `other` 重建.

        默认策略同样取自 `other`: 普通映射没有默认策略, 替换后策略被清除.
        """
        rebuilt = type(self)(other)
        self._data = rebuilt._data
        rebuilt._copy_defaults_to(self)
        return self

    def pop(self, key: Any, default: Any = UNSET) -> Any:
        norm_key = normalize_key(key)
        if default is UNSET:
            return self._data.pop(norm_key)
        return self._data.pop(norm_key, default)

    def delete(self, key: Any) -> Any:
        """删除键, 返回被删除的值; 键不存在时返回 None."""
        return self._data.pop(normalize_key(key), None)

    def popitem(self) -> tuple[Any, Any]:
        return self._data.popitem()

    def clear(self) -> None:
        self._data.clear()

    def setdefault(self, key: Any, default: Any = None) -> Any:
        norm_key = normalize_key(key)
        if norm_key not in self._data:
            self._data[norm_key] = _convert(default)
        return self._data[norm_key]

    # ---- 复制与派生 ----

    def copy(self) -> IndifferentDict:
        """
        浅拷贝: 新建存储, 条目相同, 默认策略相同.

        嵌套的 IndifferentDict 与列表被两者共享.
        """
        clone = type(self)()
        clone._data = self._data.copy()
        self._copy_defaults_to(clone)
        return clone

    __copy__ = copy
    dup = copy

    def select(
        self, predicate: Callable[[Any, Any], bool] | None = None
    ) -> IndifferentDict | ItemsView[Any, Any]:
        if predicate is None:
            return self.items()
        clone = self.copy()
        clone._data = {k: v for k, v in clone._data.items() if predicate(k, v)}
        return clone

    def reject(
        self, predicate: Callable[[Any, Any], bool] | None = None
    ) -> IndifferentDict | ItemsView[Any, Any]:
        if predicate is None:
            return self.items()
        clone = self.copy()
        clone._data = {k: v for k, v in clone._data.items() if not predicate(k, v)}
        return clone

    def transform_values(
        self, func: Callable[[Any], Any] | None = None
    ) -> IndifferentDict | ItemsView[Any, Any]:
        if func is None:
            return self.items()
        clone = self.copy()
        clone._data = {k: _convert(func(v)) for k, v in clone._data.items()}
        return clone

    def compact(self) -> IndifferentDict:
        clone = self.copy()
        clone._data = {k: v for k, v in clone._data.items() if v is not None}
        return clone

    # ---- 导出 ----

    def to_dict(self) -> dict[Any, Any]:
        """
        导出为普通 dict.

        嵌套结构被递归还原, 默认策略不会保留.
        """
        return {key: to_plain(value) for key, value in self._data.items()}


@to_plain.register(IndifferentDict)
def _(value: IndifferentDict) -> dict[Any, Any]:
    return value.to_dict()


def indifferent(data: Any = None, /, **kwargs: Any) -> IndifferentDict:
    """
    从任意映射构造 IndifferentDict.

        >>> indifferent({S.a: 1})["a"]
        1
    """
    return IndifferentDict(data, **kwargs)

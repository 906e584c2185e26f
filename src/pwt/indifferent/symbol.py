"""
符号(Symbol)类型.

符号是一个被驻留(interned)的名字: 同名符号在进程内只有一个实例.
符号不是字符串, `Symbol("a") != "a"`, 但无差别访问字典会把两者视为同一个键.

示例:
    >>> from pwt.indifferent.symbol import S, Symbol
    >>> S.black is Symbol("black")
    True
    >>> S.black
    :black
    >>> str(S["with space"])
    'with space'
"""

from __future__ import annotations

import threading
from typing import Any


class Symbol:
    """
    驻留的不可变名字.

    - 相等性即同一性, 同名符号总是同一个对象.
    - `str(sym)` 返回规范的字符串形式, `repr(sym)` 返回 `:name`.
    """

    __slots__ = ("_name", "__weakref__")

    _table: dict[str, Symbol] = {}
    _lock = threading.Lock()

    def __new__(cls, name: str) -> Symbol:
        if not isinstance(name, str):
            raise TypeError(
                f"Symbol name must be str, not {type(name).__name__}"
            )
        name = str(name)
        sym = cls._table.get(name)
        if sym is not None:
            return sym
        with cls._lock:
            sym = cls._table.get(name)
            if sym is None:
                sym = super().__new__(cls)
                object.__setattr__(sym, "_name", name)
                cls._table[name] = sym
        return sym

    @property
    def name(self) -> str:
        return self._name

    def __setattr__(self, key: str, value: Any) -> None:
        raise AttributeError(f"{type(self).__name__} is immutable")

    def __str__(self) -> str:
        return self._name

    def __repr__(self) -> str:
        return f":{self._name}"

    def __reduce__(self) -> tuple[Any, ...]:
        return (Symbol, (self._name,))

    def __copy__(self) -> Symbol:
        return self

    def __deepcopy__(self, memo: dict[int, Any]) -> Symbol:
        return self


class _SymbolFactory:
    """`S.name` 与 `S["name"]` 两种写法创建符号."""

    __slots__ = ()

    def __getattr__(self, name: str) -> Symbol:
        if name.startswith("__"):
            raise AttributeError(name)
        return Symbol(name)

    def __getitem__(self, name: str) -> Symbol:
        return Symbol(name)

    def __repr__(self) -> str:
        return "S"


S = _SymbolFactory()


def is_symbol(value: Any) -> bool:
    return isinstance(value, Symbol)

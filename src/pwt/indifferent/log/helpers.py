from __future__ import annotations

import logging
from typing import Any


def get_logger_adapter(name: str | None = None, **extra: Any) -> LoggerAdapter:
    return LoggerAdapter(logging.getLogger(name), **extra)


class LoggerAdapter:
    """
    日志适配器, 封装标准库 `logging.Logger`

    提供两种日志格式化风格:
    - `log`: `%` 占位符格式(默认 logging 行为), 参数延迟格式化
    - `logf`: `{}` 格式化(`str.format` 风格), 仅在级别启用时格式化

    每种风格均提供完整的日志级别方法(`debug`/`info`/`warning`/`error`/`critical`).
    通过构造函数传入的 `extra` 字段会自动合并到每条日志记录的 `extra` 中.
    """

    def __init__(self, logger: logging.Logger, **extra: Any) -> None:
        self.logger = logger
        self.extra = extra

    def _merge_extra(self, kwargs: dict[str, Any]) -> dict[str, Any]:
        kwargs["extra"] = {**self.extra, **kwargs.get("extra", {})}
        return kwargs

    def isEnabledFor(self, level: int) -> bool:
        return self.logger.isEnabledFor(level)

    def debug(self, msg: str, *args: Any, **kwargs: Any) -> None:
        self.log(logging.DEBUG, msg, *args, **kwargs)

    def info(self, msg: str, *args: Any, **kwargs: Any) -> None:
        self.log(logging.INFO, msg, *args, **kwargs)

    def warning(self, msg: str, *args: Any, **kwargs: Any) -> None:
        self.log(logging.WARNING, msg, *args, **kwargs)

    def error(self, msg: str, *args: Any, **kwargs: Any) -> None:
        self.log(logging.ERROR, msg, *args, **kwargs)

    def critical(self, msg: str, *args: Any, **kwargs: Any) -> None:
        self.log(logging.CRITICAL, msg, *args, **kwargs)

    def log(self, level: int, msg: str, *args: Any, **kwargs: Any) -> None:
        self.logger.log(level, msg, *args, **self._merge_extra(kwargs))

    def debugf(self, msg: str, *args: Any, **kwargs: Any) -> None:
        self.logf(logging.DEBUG, msg, *args, **kwargs)

    def infof(self, msg: str, *args: Any, **kwargs: Any) -> None:
        self.logf(logging.INFO, msg, *args, **kwargs)

    def warningf(self, msg: str, *args: Any, **kwargs: Any) -> None:
        self.logf(logging.WARNING, msg, *args, **kwargs)

    def errorf(self, msg: str, *args: Any, **kwargs: Any) -> None:
        self.logf(logging.ERROR, msg, *args, **kwargs)

    def criticalf(self, msg: str, *args: Any, **kwargs: Any) -> None:
        self.logf(logging.CRITICAL, msg, *args, **kwargs)

    def logf(self, level: int, msg: str, *args: Any, **kwargs: Any) -> None:
        """
        `{}` 风格日志.

        关键字参数中 `exc_info`/`stack_info`/`stacklevel`/`extra` 交给 logging,
        其余参数用于格式化消息.
        """
        if not self.logger.isEnabledFor(level):
            return
        options = {
            key: kwargs.pop(key)
            for key in ("exc_info", "stack_info", "stacklevel", "extra")
            if key in kwargs
        }
        # 格式化结果中可能含有 `%`, 不能再交给 logging 格式化
        text = msg.format(*args, **kwargs)
        self.logger.log(level, "%s", text, **self._merge_extra(options))

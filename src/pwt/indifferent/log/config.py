from __future__ import annotations

import logging
import sys
from typing import Annotated, Literal

from rich.logging import RichHandler

from pwt.indifferent.pydantic_utils import BaseModelEx, check, convert

LOGGER_NAME = "pwt.indifferent"

TEXT_FORMAT_DEFAULT = "{asctime} {levelname}: {message}"
DATE_FORMAT_DEFAULT = "%Y-%m-%d %H:%M:%S"

LEVEL_DEFAULT = "INFO"
LEVEL_TYPE = Literal["CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG"]


class LogOptions(BaseModelEx):
    level: Annotated[
        LEVEL_TYPE,
        convert(str.upper),
    ] = LEVEL_DEFAULT
    rich: bool = True
    show_time: bool = False
    text_format: Annotated[
        str,
        check(lambda value: logging.StrFormatStyle(value).validate()),
    ] = TEXT_FORMAT_DEFAULT


class _ManagedHandlerMixin:
    """标记由 `configure` 安装的处理器, 重复配置时据此替换."""


class ConsoleHandler(_ManagedHandlerMixin, RichHandler):
    def __init__(self, show_time: bool = False) -> None:
        super().__init__(
            show_time=show_time,
            show_path=False,
            markup=False,
            rich_tracebacks=False,
            log_time_format=DATE_FORMAT_DEFAULT,
        )


class StreamHandler(_ManagedHandlerMixin, logging.StreamHandler):
    pass


def get_handler(options: LogOptions) -> logging.Handler:
    """
    根据日志配置创建处理器.

    参数:
        options (LogOptions): 日志配置.

    返回:
        logging.Handler: `rich` 为真时输出到富文本控制台, 否则输出到标准错误流.
    """
    if options.rich:
        handler: logging.Handler = ConsoleHandler(options.show_time)
        handler.setFormatter(logging.Formatter("{message}", style="{"))
    else:
        handler = StreamHandler(sys.stderr)
        handler.setFormatter(
            logging.Formatter(options.text_format, DATE_FORMAT_DEFAULT, style="{")
        )
    handler.setLevel(options.level)
    return handler


def configure(
    options: LogOptions | None = None, name: str | None = LOGGER_NAME
) -> logging.Logger:
    """
    配置日志记录器, 可重复调用.

    仅替换先前由本函数安装的处理器, 其余处理器保持不变.
    """
    options = options or LogOptions()
    logger = logging.getLogger(name)
    logger.setLevel(options.level)

    for h in logger.handlers[:]:
        if isinstance(h, _ManagedHandlerMixin):
            logger.removeHandler(h)
    logger.addHandler(get_handler(options))
    return logger

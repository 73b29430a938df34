from __future__ import annotations

import logging
import sys
from types import MappingProxyType, TracebackType
from typing import Any, TextIO, cast

from colorama import Back, Fore, Style, init

from ._io import ANSI_ESCAPE_CODE_RE


class ColorFormatter(logging.Formatter):
    # We need to follow camel case style
    # ruff: noqa: N802

    COLOR_MAPPING = MappingProxyType(
        {
            logging.DEBUG: Fore.CYAN,
            logging.INFO: "",
            logging.WARN: Fore.YELLOW,
            logging.ERROR: Fore.RED + Style.BRIGHT,
            logging.FATAL: Back.RED + Fore.WHITE + Style.BRIGHT,
        }
    )

    def formatMessage(self, record: logging.LogRecord) -> str:
        cast(Any, record).level_color = self.COLOR_MAPPING[record.levelno]
        return super().formatMessage(record)

    def formatException(
        self,
        ei: tuple[type[BaseException], BaseException, TracebackType | None]
        | tuple[None, None, None],
    ) -> str:
        output = super().formatException(ei)
        return f"{Fore.CYAN}\nvexec > " + "\nvexec > ".join(
            output.splitlines()
        )


class NoColorFormatter(logging.Formatter):
    def formatMessage(self, record: logging.LogRecord) -> str:
        msg = super().formatMessage(record)
        return ANSI_ESCAPE_CODE_RE.sub("", msg)


class StderrHandler(logging.StreamHandler):  # type: ignore[type-arg]
    """
    Write to whatever ``sys.stderr`` is at the time of the call.
    """

    @property  # type: ignore[override]
    def stream(self) -> TextIO:
        return sys.stderr

    @stream.setter
    def stream(self, value: TextIO) -> None:
        pass


def setup_logging(level: int, *, colors: bool) -> None:
    if colors:
        init(strip=False)
        formatter: logging.Formatter = ColorFormatter(
            fmt=(
                f"{Fore.CYAN}{Style.DIM}vexec >{Style.RESET_ALL}"
                f" %(level_color)s%(message)s{Style.RESET_ALL}"
            )
        )
    else:
        formatter = NoColorFormatter(fmt="vexec > [%(levelname)s] %(message)s")

    logger = logging.getLogger()
    logger.setLevel(logging.NOTSET)

    handler = StderrHandler()
    handler.setLevel(level)
    handler.setFormatter(formatter)
    logger.addHandler(handler)

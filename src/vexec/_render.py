from __future__ import annotations

import logging
from typing import TYPE_CHECKING, BinaryIO, Iterable, Optional

from colorama import Fore, Style

from ._chunks import Source

if TYPE_CHECKING:
    from ._chunks import Chunk

LOGGER = logging.getLogger(__name__)

DEFAULT_STDOUT_COLOR = "RESET"
DEFAULT_STDERR_COLOR = "RED"


def color_code(name: str) -> str:
    """
    Get the escape sequence for the given :py:data:`colorama.Fore` color.

    :raise ValueError: if ``name`` is not a known color.
    """
    code = getattr(Fore, name.upper(), None)
    if not isinstance(code, str):
        raise ValueError(f"Unknown color: {name}")
    return code


class Renderer:
    """
    Write chunks to a binary output, coloring them by source.

    All the color state lives here, and is only touched from the thread
    calling :py:func:`render`.

    :param output: where to write the chunks.
    :param colors: whether to emit escape sequences at all.
    :param stdout_color: the :py:data:`colorama.Fore` color for stdout.
    :param stderr_color: the :py:data:`colorama.Fore` color for stderr.
    """

    def __init__(
        self,
        output: BinaryIO,
        *,
        colors: bool = True,
        stdout_color: str = DEFAULT_STDOUT_COLOR,
        stderr_color: str = DEFAULT_STDERR_COLOR,
    ) -> None:
        self._output = output
        self._colors = colors
        self._codes = {
            Source.STDOUT: color_code(stdout_color).encode("ascii"),
            Source.STDERR: color_code(stderr_color).encode("ascii"),
        }
        self._reset = Style.RESET_ALL.encode("ascii")

    def render(self, chunks: Iterable[Chunk]) -> None:
        current: Optional[Source] = None
        n_chunks = 0

        for chunk in chunks:
            if self._colors and chunk.source != current:
                self._output.write(self._codes[chunk.source])
                current = chunk.source
            self._output.write(chunk.data)
            n_chunks += 1

        # Always reset, so the terminal is left clean even without output
        if self._colors:
            self._output.write(self._reset)
        self._output.flush()

        LOGGER.debug("Rendered %d chunks", n_chunks)

import logging
import os
import sys
from typing import Optional

from ._chunks import DEFAULT_CHUNK_SIZE
from ._exceptions import ConfigurationException
from ._render import DEFAULT_STDERR_COLOR, DEFAULT_STDOUT_COLOR, color_code

LOGGER = logging.getLogger(__name__)

STRATEGIES = ("threads", "selector")
SIGNAL_POLICIES = ("success", "failure", "shell")


# This is a config class, it's easier to have everything there...
# pylint: disable=too-many-instance-attributes
class Config:
    """
    Holds the global configuration for ``vexec``.

    This contains everything that can be set from the command line.
    """

    chunk_size: int
    """
    The maximum number of bytes read from a stream at once.

    Every read produces a single chunk, and the interleaving between stdout
    and stderr can only happen at chunk boundaries. Small values give a
    finer interleaving, at the cost of more reads.
    """

    colors: bool
    """
    Whether to use colored output or not for the output.

    Here is how `vexec` decides:

    - The cli supports --colors|--no-colors to force the value
    - Then, it will look for ``PY_COLORS`` and enable colors if this is ``"1"``,
      and disable if it is ``"0"``. Any other option will abort the program.
    - Then, it will look if ``NO_COLOR`` is set. If so, it will disable colors.
    - Then, it will look if ``FORCE_COLOR`` is set. If so, it will enable colors.
    - Then, it will detect if this is running in various CIs (currently
      `github actions`_ is supported.) and enable colors if they support it.
    - Finally, it will look if stdout is attached to a tty and enable colors
      if so.
    """

    signal_policy: str
    """
    What exit code to use when the child is killed by a signal.

    - ``success``: exit with 0. This is the default.
    - ``failure``: exit with 1.
    - ``shell``: exit with 128 + the signal number, like most shells do.
    """

    stderr_color: str
    """
    The :py:data:`colorama.Fore` color name used for stderr.
    """

    stdout_color: str
    """
    The :py:data:`colorama.Fore` color name used for stdout.
    """

    strategy: str
    """
    How streams are read.

    - ``threads``: one thread per stream, racing for the store lock.
    - ``selector``: a single thread reading whichever stream is ready.
    """

    verbosity: int
    """
    The verbosity level to use.

    0 means an equal number of verbose and quiet flags have been passed
    positive means more verbose, and thus, negative less.
    """

    def __init__(
        self,
        verbosity: int = 0,
        colors: Optional[bool] = None,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
        strategy: str = "threads",
        signal_policy: str = "success",
        stdout_color: str = DEFAULT_STDOUT_COLOR,
        stderr_color: str = DEFAULT_STDERR_COLOR,
    ) -> None:
        self.verbosity = verbosity

        if chunk_size < 1:
            raise ConfigurationException(
                f"The chunk size must be at least 1, got {chunk_size}"
            )
        self.chunk_size = chunk_size

        if strategy not in STRATEGIES:
            raise ConfigurationException(
                f"Unknown strategy: {strategy}."
                f" Valid values are {', '.join(STRATEGIES)}"
            )
        self.strategy = strategy

        if signal_policy not in SIGNAL_POLICIES:
            raise ConfigurationException(
                f"Unknown signal policy: {signal_policy}."
                f" Valid values are {', '.join(SIGNAL_POLICIES)}"
            )
        self.signal_policy = signal_policy

        for color in [stdout_color, stderr_color]:
            try:
                color_code(color)
            except ValueError as exc:
                raise ConfigurationException(str(exc)) from exc
        self.stdout_color = stdout_color
        self.stderr_color = stderr_color

        self.colors = self._get_color_setting(colors)
        LOGGER.debug(
            "Using chunk_size=%d, strategy=%s, colors=%s",
            self.chunk_size,
            self.strategy,
            self.colors,
        )

    def _get_color_setting(self, colors: Optional[bool]) -> bool:
        # pylint: disable=too-many-return-statements
        if colors is not None:
            return colors

        env_colors = os.environ.get("PY_COLORS", None)
        if env_colors == "1":
            return True
        if env_colors == "0":
            return False
        if env_colors is not None:
            raise ConfigurationException(
                f"PY_COLORS set to {env_colors}. This is invalid,"
                " only '1' or '0' is supported.",
            )

        env_colors = os.environ.get("NO_COLOR", None)
        if env_colors is not None:
            return False

        env_colors = os.environ.get("FORCE_COLOR", None)
        if env_colors is not None:
            return True

        # Check for CIs that were asked for, and enable colors by default
        # when it's possible. Do this towards the end to ensure other config
        # can override
        if "GITHUB_ACTION" in os.environ:
            return True

        return sys.stdout.isatty()

import logging
import os
import shlex
import sys
from argparse import (
    REMAINDER,
    ArgumentParser,
    BooleanOptionalAction,
    Namespace,
    RawDescriptionHelpFormatter,
)
from importlib.metadata import version
from typing import List, Optional

from ._chunks import DEFAULT_CHUNK_SIZE
from ._config import SIGNAL_POLICIES, STRATEGIES, Config
from ._exceptions import BaseVexecException
from ._logging import setup_logging
from ._render import DEFAULT_STDERR_COLOR, DEFAULT_STDOUT_COLOR
from ._subproc import ProcessSupervisor

LOGGER = logging.getLogger(__name__)


def _parse_args(args: Optional[List[str]] = None) -> Namespace:
    parser = ArgumentParser(
        prog="vexec",
        formatter_class=RawDescriptionHelpFormatter,
        description=(
            "Run a command, and print its stdout and stderr in different"
            " colors, keeping the order in which they were written."
        ),
        epilog="""\
Environment variables:
  VEXEC_ADDOPTS\t\tExtra command line arguments, prepended to other arguments
""",
    )
    parser.add_argument(
        "--version", action="version", version=f"%(prog)s {version('vexec')}"
    )
    parser.add_argument(
        "-v", "--verbose", action="count", default=0, help="Be more verbose"
    )
    parser.add_argument(
        "-q", "--quiet", action="count", default=0, help="Be more quiet"
    )
    parser.add_argument(
        "--colors",
        action=BooleanOptionalAction,
        help=(
            "Force or prevent a colored output"
            " (default: true if stdout is a tty, false otherwise)"
        ),
    )
    parser.add_argument(
        "--chunk-size",
        type=int,
        default=DEFAULT_CHUNK_SIZE,
        help=(
            "Maximum number of bytes read from a stream at once. Output from"
            " both streams can only interleave at this granularity"
            " (default: %(default)d)"
        ),
    )
    parser.add_argument(
        "--strategy",
        choices=STRATEGIES,
        default="threads",
        help=(
            "Read each stream from its own thread, or both from a single"
            " thread waiting on a selector (default: %(default)s)"
        ),
    )
    parser.add_argument(
        "--signal-policy",
        choices=SIGNAL_POLICIES,
        default="success",
        help=(
            "Exit code to use when the command is killed by a signal: 0, 1 or"
            " 128 + the signal number (default: %(default)s)"
        ),
    )
    parser.add_argument(
        "--stdout-color",
        default=DEFAULT_STDOUT_COLOR,
        help="Color to use for stdout (default: %(default)s)",
    )
    parser.add_argument(
        "--stderr-color",
        default=DEFAULT_STDERR_COLOR,
        help="Color to use for stderr (default: %(default)s)",
    )
    parser.add_argument(
        "command",
        nargs=REMAINDER,
        help="The command to run, followed by its arguments",
    )

    parsed = parser.parse_args(args)
    if parsed.command and parsed.command[0] == "--":
        parsed.command = parsed.command[1:]
    return parsed


def _report(exc: BaseVexecException, verbosity: int) -> None:
    if verbosity >= 1:
        LOGGER.debug(exc, exc_info=exc)
    LOGGER.error("%s", exc)


def main(sys_args: Optional[List[str]] = None) -> None:
    if sys_args is None:
        sys_args = sys.argv[1:]
    if env_args := os.environ.get("VEXEC_ADDOPTS"):
        sys_args = shlex.split(env_args) + sys_args

    args = _parse_args(sys_args)
    verbosity = args.verbose - args.quiet
    level = logging.INFO - 10 * verbosity

    try:
        config = Config(
            verbosity,
            args.colors,
            args.chunk_size,
            args.strategy,
            args.signal_policy,
            args.stdout_color,
            args.stderr_color,
        )
    except BaseVexecException as exc:
        setup_logging(level, colors=False)
        _report(exc, verbosity)
        raise SystemExit(exc.exit_code) from exc

    setup_logging(level, colors=config.colors)

    try:
        supervisor = ProcessSupervisor.launch(args.command, config)
        disposition, chunks = supervisor.collect()
    except BaseVexecException as exc:
        _report(exc, verbosity)
        raise SystemExit(exc.exit_code) from exc

    try:
        supervisor.render(chunks)
    except BrokenPipeError:
        LOGGER.debug("Output was closed before all chunks were written")
        # Python flushes stdout on exit, which would fail again
        devnull = os.open(os.devnull, os.O_WRONLY)
        os.dup2(devnull, sys.stdout.fileno())

    exit_code = disposition.exit_code(config.signal_policy)
    LOGGER.debug("Exiting with code %d", exit_code)
    raise SystemExit(exit_code)


if __name__ == "__main__":
    main()

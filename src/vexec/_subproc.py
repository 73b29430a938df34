from __future__ import annotations

import enum
import logging
import os
import subprocess
import sys
from contextvars import copy_context
from dataclasses import dataclass
from threading import Thread
from typing import TYPE_CHECKING, BinaryIO, List, Optional, Tuple

from ._chunks import ChunkStore, Source
from ._exceptions import JoinException, LaunchException, WaitException
from ._readers import SelectorMultiplexer, StreamReader
from ._render import Renderer

if TYPE_CHECKING:
    from ._chunks import Chunk
    from ._config import Config
    from ._readers import _BaseReader

LOGGER = logging.getLogger(__name__)


class DispositionKind(enum.Enum):
    EXITED = "exited"
    SIGNALED = "signaled"
    ABNORMAL = "abnormal"


@dataclass(frozen=True)
class Disposition:
    """
    How the child process terminated.
    """

    kind: DispositionKind
    code: Optional[int] = None
    signal: Optional[int] = None

    @classmethod
    def from_wait_status(cls, status: int) -> Disposition:
        if os.WIFEXITED(status):
            return cls(DispositionKind.EXITED, code=os.WEXITSTATUS(status))
        if os.WIFSIGNALED(status):
            return cls(DispositionKind.SIGNALED, signal=os.WTERMSIG(status))
        return cls(DispositionKind.ABNORMAL)

    @property
    def returncode(self) -> Optional[int]:
        """
        The value :py:attr:`subprocess.Popen.returncode` would have.
        """
        if self.kind == DispositionKind.EXITED:
            return self.code
        if self.kind == DispositionKind.SIGNALED:
            assert self.signal is not None
            return -self.signal
        return None

    def exit_code(self, signal_policy: str = "success") -> int:
        """
        Get the exit code ``vexec`` should use for this disposition.

        :param signal_policy: see :py:attr:`Config.signal_policy`.
        """
        if self.kind == DispositionKind.EXITED:
            assert self.code is not None
            return self.code
        if self.kind == DispositionKind.SIGNALED:
            assert self.signal is not None
            if signal_policy == "failure":
                return 1
            if signal_policy == "shell":
                return 128 + self.signal
            return 0
        return 1


class ProcessSupervisor:
    """
    Run a child process and render its output once it terminates.

    Use :py:func:`launch` to create one.
    """

    def __init__(
        self,
        proc: subprocess.Popen[bytes],
        config: Config,
        output: BinaryIO,
    ) -> None:
        self.proc = proc
        self.store = ChunkStore(config.chunk_size)

        self._config = config
        self._renderer = Renderer(
            output,
            colors=config.colors,
            stdout_color=config.stdout_color,
            stderr_color=config.stderr_color,
        )

    @classmethod
    def launch(
        cls,
        command: List[str],
        config: Config,
        output: Optional[BinaryIO] = None,
    ) -> ProcessSupervisor:
        if not command:
            raise LaunchException(
                "vexec", "please give at least one command to run"
            )

        LOGGER.debug("Running command: '%s'", " ".join(command))

        try:
            proc = subprocess.Popen(
                command,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                close_fds=True,
            )
        except OSError as exc:
            raise LaunchException(
                command[0], exc.strerror or str(exc)
            ) from exc

        LOGGER.debug("Started child process %d", proc.pid)

        if output is None:
            output = sys.stdout.buffer
        return cls(proc, config, output)

    def collect(self) -> Tuple[Disposition, List[Chunk]]:
        """
        Capture all the output of the child until it terminates.

        :return: how the child terminated, and every chunk it wrote, in
                 order.
        """
        with self.proc:
            readers = self._start_readers()
            disposition = self.wait_child()

            for reader, thread in readers:
                self._join(reader, thread)

        return disposition, self.store.drain()

    def render(self, chunks: List[Chunk]) -> None:
        self._renderer.render(chunks)

    def run(self) -> Disposition:
        disposition, chunks = self.collect()
        self.render(chunks)
        return disposition

    def wait_child(self) -> Disposition:
        try:
            _, status = os.waitpid(self.proc.pid, 0)
        except OSError as exc:
            raise WaitException(self.proc.pid, str(exc)) from exc

        disposition = Disposition.from_wait_status(status)

        if disposition.kind == DispositionKind.EXITED:
            LOGGER.debug("Child exited with code %d", disposition.code)
        elif disposition.kind == DispositionKind.SIGNALED:
            LOGGER.debug(
                "Child was terminated by signal %d", disposition.signal
            )
        else:
            LOGGER.warning(
                "Child process %d terminated abnormally (status %d)",
                self.proc.pid,
                status,
            )
        # Let Popen know, it would otherwise try to wait again
        self.proc.returncode = (
            1 if disposition.returncode is None else disposition.returncode
        )
        return disposition

    def _start_readers(self) -> List[Tuple[_BaseReader, Thread]]:
        assert self.proc.stdout is not None
        assert self.proc.stderr is not None

        streams = [
            (self.proc.stdout.fileno(), Source.STDOUT),
            (self.proc.stderr.fileno(), Source.STDERR),
        ]

        readers: List[_BaseReader]
        if self._config.strategy == "selector":
            readers = [SelectorMultiplexer(streams, self.store)]
        else:
            readers = [
                StreamReader(fd, source, self.store) for fd, source in streams
            ]

        threads = []
        for reader in readers:
            thread = Thread(
                target=copy_context().run,
                args=[reader.run],
                name=reader.name,
                daemon=True,
            )
            thread.start()
            threads.append((reader, thread))

        return threads

    def _join(self, reader: _BaseReader, thread: Thread) -> None:
        try:
            thread.join()
        except RuntimeError as exc:
            raise JoinException(reader.name, str(exc)) from exc

    def __repr__(self) -> str:
        return f"ProcessSupervisor(pid={self.proc.pid})"


def run(
    command: List[str], config: Config, output: Optional[BinaryIO] = None
) -> Disposition:
    """
    Launch ``command``, render its output and return how it terminated.
    """
    return ProcessSupervisor.launch(command, config, output).run()


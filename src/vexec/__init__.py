"""
Everything explicitly exposed here is part of the ``vexec`` public API.

.. warning::

    While ``vexec`` is not at version 1.0.0, it does not guarantee API stability.
"""
from ._chunks import Chunk, ChunkStore, Source
from ._config import Config
from ._exceptions import (
    BaseVexecException,
    ConfigurationException,
    JoinException,
    LaunchException,
    WaitException,
)
from ._readers import SelectorMultiplexer, StreamReader
from ._render import Renderer
from ._subproc import Disposition, DispositionKind, ProcessSupervisor, run

__all__ = [
    "run",
    "ProcessSupervisor",
    "Disposition",
    "DispositionKind",
    "Config",
    "Source",
    "Chunk",
    "ChunkStore",
    "StreamReader",
    "SelectorMultiplexer",
    "Renderer",
    "BaseVexecException",
    "ConfigurationException",
    "LaunchException",
    "WaitException",
    "JoinException",
]

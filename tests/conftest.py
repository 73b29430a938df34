# pylint and pytest fixtures dependency injection are not friends
# pylint: disable=redefined-outer-name
import io

import pytest

from vexec import ChunkStore, Config

# Register assert rewrites before importing dependencies
pytest.register_assert_rewrite("tests._utils")


@pytest.fixture
def sample_config():
    return Config(verbosity=2, colors=True)


@pytest.fixture
def store():
    return ChunkStore(capacity=4)


@pytest.fixture
def output():
    return io.BytesIO()

import pytest

from async_parallel.core import ParallelContext, set_default_context


@pytest.fixture(autouse=True)
def default_context():
    """Give every test an unbounded process default, whatever the environment says."""
    set_default_context(ParallelContext())
    yield
    set_default_context(None)

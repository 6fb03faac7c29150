"""
Tests for ParallelContext and the process-wide default.
"""

import pytest

from async_parallel.core import (
    ENV_CONCURRENCY,
    ConfigurationError,
    ParallelContext,
    get_concurrency,
    get_default_context,
    set_concurrency,
    set_default_context,
)


class TestParallelContext:
    """Tests for ParallelContext."""

    def test_defaults(self):
        ctx = ParallelContext()

        assert ctx.concurrency == 0
        assert ctx.to_dict() == {"concurrency": 0}

    @pytest.mark.parametrize("value", [-1, 1.5, True, "2", None])
    def test_rejects_invalid(self, value):
        with pytest.raises(ConfigurationError):
            ParallelContext(concurrency=value)

    def test_resolve_concurrency(self):
        unbounded = ParallelContext()
        limited = ParallelContext(concurrency=3)

        assert unbounded.resolve_concurrency(10) == 10
        assert limited.resolve_concurrency(10) == 3
        # Explicit limit wins, 0 means unbounded
        assert limited.resolve_concurrency(10, 5) == 5
        assert limited.resolve_concurrency(10, 0) == 10
        # Capped at the element count, never below 1
        assert limited.resolve_concurrency(2) == 2
        assert unbounded.resolve_concurrency(0) == 1

    def test_resolve_rejects_negative(self):
        with pytest.raises(ConfigurationError):
            ParallelContext().resolve_concurrency(3, -2)

    def test_with_concurrency(self):
        ctx = ParallelContext(concurrency=4)

        narrow = ctx.with_concurrency(1)

        assert ctx.concurrency == 4
        assert narrow.concurrency == 1

    def test_from_env(self):
        assert ParallelContext.from_env({}).concurrency == 0
        assert ParallelContext.from_env({ENV_CONCURRENCY: " "}).concurrency == 0
        assert ParallelContext.from_env({ENV_CONCURRENCY: "8"}).concurrency == 8

    @pytest.mark.parametrize("raw", ["eight", "-3", "2.5"])
    def test_from_env_invalid(self, raw):
        with pytest.raises(ConfigurationError):
            ParallelContext.from_env({ENV_CONCURRENCY: raw})


class TestDefaultContext:
    """Tests for the process-wide default."""

    def test_set_and_get(self):
        set_concurrency(5)

        assert get_concurrency() == 5
        assert get_default_context().concurrency == 5

    def test_lazy_env_read(self, monkeypatch):
        monkeypatch.setenv(ENV_CONCURRENCY, "6")
        set_default_context(None)

        assert get_concurrency() == 6

    def test_replace_default(self):
        ctx = ParallelContext(concurrency=2)

        set_default_context(ctx)

        assert get_default_context() is ctx

    def test_setter_overrides_bad_env(self, monkeypatch):
        """set_concurrency works even when the environment value is malformed."""
        monkeypatch.setenv(ENV_CONCURRENCY, "eight")
        set_default_context(None)

        set_concurrency(4)

        assert get_concurrency() == 4

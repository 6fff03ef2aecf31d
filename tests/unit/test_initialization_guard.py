"""
Unit Tests for InitializationGuard
==================================

Test Coverage
-------------
- Concurrent callers share one in-flight run
- Completed runs are not repeated
- Failures reach every waiting caller and clear the handle
- Domain errors pass through unchanged, others become SeedingError
- reset() semantics
"""

import asyncio

import pytest

from levelup.core.exceptions import SeedingError
from levelup.core.logging.logger import get_logger
from levelup.modules.maintenance.guard import InitializationGuard
from levelup.modules.shared.exceptions import NotFoundError


class FakeInitializer:
    """Counts calls; fails the first `failures` calls with `error`."""

    def __init__(self, *, failures: int = 0, error: Exception | None = None) -> None:
        self.calls = 0
        self.failures = failures
        self.error = error or RuntimeError("storage unavailable")
        self.release = asyncio.Event()
        self.release.set()

    async def __call__(self) -> bool:
        self.calls += 1
        await self.release.wait()
        await asyncio.sleep(0)
        if self.calls <= self.failures:
            raise self.error
        return True


def make_guard(initializer: FakeInitializer) -> InitializationGuard:
    return InitializationGuard(initializer, get_logger("tests.guard"))


# ============================================================================
# SINGLE-FLIGHT TESTS
# ============================================================================


@pytest.mark.unit
class TestSingleFlight:
    async def test_concurrent_callers_share_one_run(self):
        # Arrange
        initializer = FakeInitializer()
        guard = make_guard(initializer)

        # Act
        results = await asyncio.gather(*(guard.ensure_initialized() for _ in range(5)))

        # Assert
        assert results == [True] * 5
        assert initializer.calls == 1
        assert guard.runs == 1
        assert guard.is_initialized is True

    async def test_later_calls_do_not_rerun(self):
        initializer = FakeInitializer()
        guard = make_guard(initializer)

        await guard.ensure_initialized()
        await guard.ensure_initialized()

        assert initializer.calls == 1

    async def test_in_flight_visible_while_running(self):
        initializer = FakeInitializer()
        initializer.release.clear()
        guard = make_guard(initializer)

        waiter = asyncio.create_task(guard.ensure_initialized())
        await asyncio.sleep(0)

        assert guard.in_flight is True
        assert guard.is_initialized is False

        initializer.release.set()
        await waiter
        assert guard.in_flight is False


# ============================================================================
# FAILURE TESTS
# ============================================================================


@pytest.mark.unit
class TestFailures:
    async def test_failure_reaches_all_waiters_and_clears_handle(self):
        # Arrange
        initializer = FakeInitializer(failures=1)
        guard = make_guard(initializer)

        # Act
        results = await asyncio.gather(
            *(guard.ensure_initialized() for _ in range(3)), return_exceptions=True
        )

        # Assert
        assert all(isinstance(r, SeedingError) for r in results)
        assert initializer.calls == 1
        assert guard.is_initialized is False
        assert guard.in_flight is False

    async def test_retry_after_failure(self):
        initializer = FakeInitializer(failures=1)
        guard = make_guard(initializer)

        with pytest.raises(SeedingError):
            await guard.ensure_initialized()

        assert await guard.ensure_initialized() is True
        assert initializer.calls == 2
        assert guard.runs == 2

    async def test_domain_error_not_wrapped(self):
        initializer = FakeInitializer(failures=1, error=NotFoundError("User", "player"))
        guard = make_guard(initializer)

        with pytest.raises(NotFoundError):
            await guard.ensure_initialized()


# ============================================================================
# RESET TESTS
# ============================================================================


@pytest.mark.unit
class TestReset:
    async def test_reset_allows_rerun(self):
        initializer = FakeInitializer()
        guard = make_guard(initializer)
        await guard.ensure_initialized()

        guard.reset()
        await guard.ensure_initialized()

        assert initializer.calls == 2

    async def test_reset_while_running_rejected(self):
        initializer = FakeInitializer()
        initializer.release.clear()
        guard = make_guard(initializer)
        waiter = asyncio.create_task(guard.ensure_initialized())
        await asyncio.sleep(0)

        with pytest.raises(RuntimeError):
            guard.reset()

        initializer.release.set()
        await waiter

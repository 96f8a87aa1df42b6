"""Tests for the single-flight gate."""

from __future__ import annotations

import asyncio

import pytest

from connwatch.monitor.gate import SingleFlight


class Worker:
    """Counts executions and blocks until released."""

    def __init__(self, result: object = "ok", error: Exception | None = None) -> None:
        self.result = result
        self.error = error
        self.calls = 0
        self.release = asyncio.Event()

    async def __call__(self) -> object:
        self.calls += 1
        await self.release.wait()
        if self.error is not None:
            raise self.error
        return self.result


class TestSingleFlight:
    @pytest.mark.asyncio
    async def test_concurrent_callers_share_one_execution(self) -> None:
        worker = Worker(result=42)
        gate = SingleFlight(worker)

        callers = [asyncio.create_task(gate.call()) for _ in range(10)]
        await asyncio.sleep(0.01)
        assert gate.pending
        worker.release.set()

        results = await asyncio.gather(*callers)
        assert results == [42] * 10
        assert worker.calls == 1
        assert gate.executions == 1

    @pytest.mark.asyncio
    async def test_run_returns_same_task_while_pending(self) -> None:
        worker = Worker()
        gate = SingleFlight(worker)
        first = gate.run()
        assert gate.run() is first
        worker.release.set()
        await first

    @pytest.mark.asyncio
    async def test_handle_cleared_after_completion(self) -> None:
        worker = Worker()
        worker.release.set()
        gate = SingleFlight(worker)

        await gate.call()
        assert not gate.pending
        await gate.call()
        assert worker.calls == 2

    @pytest.mark.asyncio
    async def test_on_complete_runs_once_per_execution(self) -> None:
        seen: list[object] = []
        worker = Worker(result="done")
        gate = SingleFlight(worker, on_complete=seen.append)

        callers = [asyncio.create_task(gate.call()) for _ in range(3)]
        await asyncio.sleep(0)
        worker.release.set()
        await asyncio.gather(*callers)

        assert seen == ["done"]
        assert gate.last_result == "done"

    @pytest.mark.asyncio
    async def test_failure_propagates_to_all_and_releases_gate(self) -> None:
        worker = Worker(error=RuntimeError("boom"))
        gate = SingleFlight(worker)

        callers = [asyncio.create_task(gate.call()) for _ in range(3)]
        await asyncio.sleep(0)
        worker.release.set()
        results = await asyncio.gather(*callers, return_exceptions=True)

        assert all(isinstance(r, RuntimeError) for r in results)
        assert worker.calls == 1
        assert not gate.pending

        worker.error = None
        assert await gate.call() == "ok"
        assert worker.calls == 2

    @pytest.mark.asyncio
    async def test_cancelled_caller_does_not_cancel_shared_execution(self) -> None:
        worker = Worker(result="shared")
        gate = SingleFlight(worker)

        impatient = asyncio.create_task(gate.call())
        patient = asyncio.create_task(gate.call())
        await asyncio.sleep(0)
        impatient.cancel()
        await asyncio.sleep(0)
        worker.release.set()

        assert await patient == "shared"
        assert impatient.cancelled()
        assert worker.calls == 1

    @pytest.mark.asyncio
    async def test_on_complete_error_is_logged_not_raised(self, caplog) -> None:
        def explode(_: object) -> None:
            raise ValueError("listener broke")

        worker = Worker(result="ok")
        worker.release.set()
        gate = SingleFlight(worker, on_complete=explode, name="probe")

        assert await gate.call() == "ok"
        assert "probe completion callback failed" in caplog.text

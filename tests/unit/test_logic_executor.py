import asyncio
import threading

import pytest

from scorecast.runtime import LogicExecutor


class TestLogicExecutorOrdering:
    @pytest.mark.asyncio
    async def test_tasks_run_in_submission_order(self):
        executor = LogicExecutor()
        executor.start()

        order: list[int] = []
        for idx in range(20):
            executor.post(lambda idx=idx: order.append(idx))

        await executor.run(lambda: None)

        assert order == list(range(20))

        await executor.close()

    @pytest.mark.asyncio
    async def test_coroutine_tasks_never_overlap(self):
        executor = LogicExecutor()
        executor.start()

        active = 0
        peak = 0

        async def task():
            nonlocal active, peak
            active += 1
            peak = max(peak, active)
            await asyncio.sleep(0.01)
            active -= 1

        await asyncio.gather(*[executor.run(task) for _ in range(5)])

        assert peak == 1

        await executor.close()

    @pytest.mark.asyncio
    async def test_posts_from_foreign_threads_all_execute(self):
        executor = LogicExecutor()
        executor.start()

        seen: list[tuple[int, int]] = []

        def submit(thread_idx: int):
            for idx in range(50):
                executor.post(lambda idx=idx: seen.append((thread_idx, idx)))

        threads = [threading.Thread(target=submit, args=(idx,)) for idx in range(4)]
        for thread in threads:
            thread.start()

        for thread in threads:
            await asyncio.get_running_loop().run_in_executor(None, thread.join)

        # Let the call_soon_threadsafe callbacks land on the queue.
        await asyncio.sleep(0.05)
        await executor.run(lambda: None)

        assert len(seen) == 200

        for thread_idx in range(4):
            per_thread = [idx for owner, idx in seen if owner == thread_idx]
            assert per_thread == list(range(50))

        await executor.close()


class TestLogicExecutorResults:
    @pytest.mark.asyncio
    async def test_run_returns_result(self):
        executor = LogicExecutor()
        executor.start()

        assert await executor.run(lambda: 41 + 1) == 42

        async def coroutine_task():
            return "done"

        assert await executor.run(coroutine_task) == "done"

        await executor.close()

    @pytest.mark.asyncio
    async def test_run_propagates_failure_and_keeps_running(self):
        executor = LogicExecutor()
        executor.start()

        def fail():
            raise ValueError("boom")

        with pytest.raises(ValueError, match="boom"):
            await executor.run(fail)

        assert await executor.run(lambda: "still alive") == "still alive"

        await executor.close()

    @pytest.mark.asyncio
    async def test_posted_failure_does_not_stop_executor(self):
        executor = LogicExecutor()
        executor.start()

        def fail():
            raise RuntimeError("posted failure")

        executor.post(fail)

        assert await executor.run(lambda: 1) == 1

        await executor.close()

    @pytest.mark.asyncio
    async def test_run_threadsafe_blocks_foreign_thread_until_done(self):
        executor = LogicExecutor()
        executor.start()

        result = await asyncio.get_running_loop().run_in_executor(
            None,
            lambda: executor.run_threadsafe(lambda: threading.get_ident(), timeout=5),
        )

        assert result == threading.get_ident()

        await executor.close()

    @pytest.mark.asyncio
    async def test_run_threadsafe_refuses_loop_thread(self):
        executor = LogicExecutor()
        executor.start()

        with pytest.raises(RuntimeError):
            executor.run_threadsafe(lambda: None)

        await executor.close()


class TestLogicExecutorLifecycle:
    @pytest.mark.asyncio
    async def test_close_drains_queued_tasks(self):
        executor = LogicExecutor()
        executor.start()

        ran: list[int] = []
        executor.post(lambda: ran.append(1))
        executor.post(lambda: ran.append(2))

        await executor.close()

        assert ran == [1, 2]
        assert executor.running is False
        assert executor.post(lambda: ran.append(3)) is False

        with pytest.raises(RuntimeError):
            await executor.run(lambda: None)

    @pytest.mark.asyncio
    async def test_close_is_idempotent(self):
        executor = LogicExecutor()
        executor.start()

        await executor.close()
        await executor.close()
        executor.abort()

        assert executor.closed is True

    @pytest.mark.asyncio
    async def test_abort_cancels_waiters(self):
        executor = LogicExecutor()
        executor.start()

        release = asyncio.Event()

        blocked = asyncio.ensure_future(executor.run(release.wait))
        queued = asyncio.ensure_future(executor.run(lambda: "never"))
        await asyncio.sleep(0.01)

        executor.abort()

        with pytest.raises(asyncio.CancelledError):
            await blocked

        with pytest.raises(asyncio.CancelledError):
            await queued

    @pytest.mark.asyncio
    async def test_start_after_close_raises(self):
        executor = LogicExecutor()
        executor.start()
        await executor.close()

        with pytest.raises(RuntimeError):
            executor.start()

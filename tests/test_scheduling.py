import asyncio

import pytest

from orangeface.scheduling import AsyncioFrameScheduler, ManualScheduler


class TestManualScheduler:

    def test_tick_runs_pending_callbacks(self):
        sched = ManualScheduler()
        seen = []
        sched.schedule(lambda: seen.append("a"))
        sched.schedule(lambda: seen.append("b"))
        assert sched.pending == 2
        assert sched.tick() == 2
        assert seen == ["a", "b"]
        assert sched.pending == 0
        assert sched.ticks == 1

    def test_callbacks_scheduled_during_tick_wait(self):
        sched = ManualScheduler()
        seen = []

        def again():
            seen.append(len(seen))
            sched.schedule(again)

        sched.schedule(again)
        assert sched.tick() == 1
        assert sched.pending == 1
        sched.tick()
        assert seen == [0, 1]

    def test_cancel(self):
        sched = ManualScheduler()
        seen = []
        handle = sched.schedule(lambda: seen.append(1))
        sched.cancel(handle)
        sched.cancel(None)
        sched.cancel(handle)
        assert sched.tick() == 0
        assert seen == []


class TestAsyncioFrameScheduler:

    def test_paces_and_cancels(self):
        async def scenario():
            aio = asyncio.get_running_loop()
            sched = AsyncioFrameScheduler(fps=50)
            stamps = []

            sched.schedule(lambda: stamps.append(aio.time()))
            sched.schedule(lambda: stamps.append(aio.time()))
            cancelled = sched.schedule(lambda: stamps.append(-1.0))
            sched.cancel(cancelled)

            await asyncio.sleep(0.15)
            return stamps

        stamps = asyncio.run(scenario())
        assert len(stamps) == 2
        assert stamps[1] - stamps[0] >= 0.02 - 1e-3

    def test_late_cycle_restarts_cadence(self):
        async def scenario():
            aio = asyncio.get_running_loop()
            sched = AsyncioFrameScheduler(fps=100)
            stamps = []
            sched.schedule(lambda: None)
            await asyncio.sleep(0.05)           # "ciclo" bem mais longo que 10 ms
            sched.schedule(lambda: stamps.append(aio.time()))
            sched.schedule(lambda: stamps.append(aio.time()))
            await asyncio.sleep(0.1)
            return stamps

        first, second = asyncio.run(scenario())
        # sem fila de atraso: o intervalo volta a valer a partir do tick atrasado
        assert second - first >= 0.01 - 1e-3

    @pytest.mark.parametrize("fps", [0, -5])
    def test_rejects_non_positive_fps(self, fps):
        with pytest.raises(ValueError):
            AsyncioFrameScheduler(fps=fps)

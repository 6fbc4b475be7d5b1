import pytest

from scorecast.env import Env
from scorecast.errors import InvalidConfigurationError
from scorecast.models import SessionState, SessionTime
from scorecast.runtime import (
    ClockState,
    GameClock,
    JobStatus,
    SessionRuntime,
    format_elapsed,
)


class RecordingRepository:
    def __init__(self, fail: bool = False) -> None:
        self.fail = fail
        self.clock: GameClock | None = None
        self.saved: list[float] = []
        self.backed_up: list[float] = []
        self.paused_during_save: list[bool] = []

    def save(self, state: SessionState):
        if self.fail:
            raise OSError("disk full")

        self.saved.append(state.session_time.elapsed)
        if self.clock:
            self.paused_during_save.append(self.clock.paused)

    def backup(self, state: SessionState):
        self.backed_up.append(state.session_time.elapsed)


class PausingRepository(RecordingRepository):
    def save(self, state: SessionState):
        super().save(state)
        self.clock.pause()


def create_runtime(
    state: SessionState,
    env: Env,
    repository: RecordingRepository | None = None,
    **overrides,
) -> SessionRuntime:
    if overrides:
        env = env.model_copy(update=overrides)

    if repository is None:
        repository = RecordingRepository()

    runtime = SessionRuntime(state, env=env, repository=repository)
    repository.clock = runtime.clock

    return runtime


class TestRuntimeSpeed:
    @pytest.mark.asyncio
    async def test_non_positive_speed_is_rejected(
        self,
        session_state: SessionState,
        test_env: Env,
    ):
        runtime = create_runtime(session_state, test_env)
        runtime.start()

        runtime.set_speed(2.0)
        assert await runtime.get_speed() == 2.0

        for invalid in (0, -1.5, float("nan"), float("inf")):
            with pytest.raises(InvalidConfigurationError):
                runtime.set_speed(invalid)

        assert await runtime.get_speed() == 2.0

        await runtime.shutdown()

    @pytest.mark.asyncio
    async def test_speed_set_before_start_is_kept(
        self,
        session_state: SessionState,
        test_env: Env,
    ):
        runtime = create_runtime(session_state, test_env)

        runtime.set_speed(3.0)
        assert session_state.session_time.speed == 3.0

        runtime.start()
        await runtime.clock.tick()

        assert await runtime.elapsed_seconds_exact() == 3.0

        await runtime.shutdown()


class TestBuiltinJobs:
    @pytest.mark.asyncio
    async def test_builtin_jobs_are_registered(
        self,
        session_state: SessionState,
        test_env: Env,
    ):
        runtime = create_runtime(session_state, test_env)

        assert sorted(runtime.clock.jobs.names()) == ["autosave", "multiplier", "scoring"]
        assert runtime.clock.jobs.get("autosave").period == 600
        assert runtime.clock.jobs.get("scoring").period == 10

        runtime.close()

    @pytest.mark.asyncio
    async def test_scoring_applies_multiplier_scaled_rate(
        self,
        session_state: SessionState,
        test_env: Env,
    ):
        runtime = create_runtime(
            session_state,
            test_env,
            SCORECAST_SCORING_PERIOD="3s",
            SCORECAST_SCORING_RATE=2.0,
        )
        runtime.start()

        await runtime.call_on_logic(lambda: setattr(runtime.state, "multiplier", 1.5))

        for _ in range(3):
            await runtime.clock.tick()

        scores = await runtime.call_on_logic(
            lambda: {
                entity_id: entity.attributes["score"]
                for entity_id, entity in runtime.state.entities.items()
            }
        )

        assert scores == {1: 3.0, 2: 13.0}

        await runtime.shutdown()

    @pytest.mark.asyncio
    async def test_multiplier_grows_by_factor(
        self,
        session_state: SessionState,
        test_env: Env,
    ):
        runtime = create_runtime(
            session_state,
            test_env,
            SCORECAST_MULTIPLIER_PERIOD="2s",
            SCORECAST_MULTIPLIER_GROWTH=1.1,
        )
        runtime.start()

        for _ in range(4):
            await runtime.clock.tick()

        multiplier = await runtime.call_on_logic(lambda: runtime.state.multiplier)
        assert multiplier == pytest.approx(1.21)

        await runtime.shutdown()

    @pytest.mark.asyncio
    async def test_autosave_pauses_saves_and_resumes(
        self,
        session_state: SessionState,
        test_env: Env,
    ):
        repository = RecordingRepository()
        runtime = create_runtime(
            session_state,
            test_env,
            repository=repository,
            SCORECAST_AUTOSAVE_PERIOD="2s",
        )
        runtime.start()

        await runtime.clock.tick()
        await runtime.clock.tick()

        autosave = runtime.clock.jobs.get("autosave")
        await autosave.task

        assert repository.saved == [2.0]
        assert repository.backed_up == [2.0]
        assert repository.paused_during_save == [True]
        assert runtime.clock.paused is False
        assert autosave.status == JobStatus.COMPLETE

        await runtime.shutdown()

    @pytest.mark.asyncio
    async def test_autosave_leaves_existing_pause_alone(
        self,
        session_state: SessionState,
        test_env: Env,
    ):
        repository = RecordingRepository()
        runtime = create_runtime(session_state, test_env, repository=repository)
        runtime.start()

        runtime.pause()
        await runtime._autosave()

        assert repository.saved == [0.0]
        assert runtime.clock.paused is True

        await runtime.shutdown()

    @pytest.mark.asyncio
    async def test_autosave_keeps_pause_issued_while_saving(
        self,
        session_state: SessionState,
        test_env: Env,
    ):
        repository = PausingRepository()
        runtime = create_runtime(session_state, test_env, repository=repository)
        runtime.start()

        await runtime._autosave()

        assert repository.saved == [0.0]
        assert runtime.clock.paused is True

        await runtime.shutdown()

    @pytest.mark.asyncio
    async def test_autosave_failure_does_not_stop_runtime(
        self,
        session_state: SessionState,
        test_env: Env,
    ):
        repository = RecordingRepository(fail=True)
        runtime = create_runtime(
            session_state,
            test_env,
            repository=repository,
            SCORECAST_AUTOSAVE_PERIOD="1s",
        )
        runtime.start()

        await runtime.clock.tick()
        await runtime.clock.jobs.get("autosave").task

        assert runtime.clock.paused is False

        await runtime.clock.tick()
        assert await runtime.elapsed_seconds() == 2

        await runtime.shutdown()


class TestRuntimePassThroughs:
    @pytest.mark.asyncio
    async def test_run_and_call_on_logic(
        self,
        session_state: SessionState,
        test_env: Env,
    ):
        runtime = create_runtime(session_state, test_env)
        runtime.start()

        assert runtime.run_on_logic(lambda: runtime.state.entities[1].adjust("score", 5)) is True
        score = await runtime.call_on_logic(lambda: runtime.state.entities[1].attributes["score"])

        assert score == 5.0

        await runtime.shutdown()

    @pytest.mark.asyncio
    async def test_register_and_unregister_periodic_job(
        self,
        session_state: SessionState,
        test_env: Env,
    ):
        runtime = create_runtime(session_state, test_env)
        runtime.start()

        fired: list[int] = []
        runtime.register_periodic_job("custom", lambda: fired.append(runtime.clock.now), 2, 1)

        for _ in range(3):
            await runtime.clock.tick()

        assert fired == [1, 3]
        assert runtime.unregister_job("custom") is True

        await runtime.clock.tick()
        assert fired == [1, 3]

        await runtime.shutdown()

    @pytest.mark.asyncio
    async def test_controls_delegate_to_clock(
        self,
        session_state: SessionState,
        test_env: Env,
    ):
        runtime = create_runtime(session_state, test_env)

        runtime.start()
        assert runtime.clock_state == ClockState.RUNNING

        runtime.pause()
        assert runtime.clock_state == ClockState.PAUSED

        runtime.resume()
        runtime.stop()
        assert runtime.clock_state == ClockState.STOPPED

        await runtime.shutdown()
        assert runtime.clock_state == ClockState.CLOSED


class TestRuntimeTime:
    @pytest.mark.asyncio
    async def test_elapsed_accessors(
        self,
        session_state_factory,
        test_env: Env,
    ):
        runtime = create_runtime(session_state_factory(elapsed=3724.5), test_env)
        runtime.start()

        await runtime.clock.tick()

        assert await runtime.elapsed_seconds() == 3725
        assert await runtime.elapsed_seconds_exact() == 3725.5
        assert await runtime.elapsed_formatted() == "01:02:05"

        await runtime.shutdown()

    @pytest.mark.asyncio
    async def test_reset_time_reanchors_jobs(
        self,
        session_state: SessionState,
        test_env: Env,
    ):
        runtime = create_runtime(session_state, test_env)
        runtime.start()

        for _ in range(4):
            await runtime.clock.tick()

        await runtime.reset_time()

        assert await runtime.elapsed_seconds_exact() == 0.0
        assert runtime.clock.jobs.get("scoring").next_due == 10

        await runtime.shutdown()

    @pytest.mark.asyncio
    async def test_load_state_swaps_state(
        self,
        session_state: SessionState,
        test_env: Env,
    ):
        runtime = create_runtime(session_state, test_env)
        runtime.start()

        loaded = SessionState(
            name="loaded",
            session_time=SessionTime(elapsed=100.0, speed=3.0),
        )
        await runtime.load_state(loaded)

        assert await runtime.get_speed() == 3.0
        assert runtime.clock.now == 100
        assert runtime.clock.jobs.get("scoring").next_due == 110

        await runtime.clock.tick()
        assert await runtime.elapsed_seconds() == 103

        await runtime.shutdown()

    @pytest.mark.asyncio
    async def test_state_snapshot_is_sequenced(
        self,
        session_state: SessionState,
        test_env: Env,
    ):
        runtime = create_runtime(session_state, test_env)
        runtime.start()

        first = runtime.codec.decode_envelope(await runtime.state_snapshot())
        second = runtime.codec.decode_envelope(await runtime.state_snapshot())

        assert second.sequence == first.sequence + 1
        assert second.state == session_state

        await runtime.shutdown()

    def test_format_elapsed(self):
        assert format_elapsed(0) == "00:00:00"
        assert format_elapsed(59) == "00:00:59"
        assert format_elapsed(3600 * 27 + 61) == "27:01:01"
